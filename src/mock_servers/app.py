"""FastAPI mock of the commerce REST API for local runs and integration tests."""

import os
import random
from collections import Counter
from typing import Dict, Iterable, List, Optional

from fastapi import FastAPI, Header, HTTPException, Query


def build_catalog(
    product_count: int,
    category_ids: List[int],
    random_seed: Optional[int] = None,
) -> List[Dict]:
    """
    Generate a deterministic list of raw product items.

    Even-numbered products reference their categories through
    ``extension_attributes.category_links``; odd-numbered ones through the
    comma-separated ``category_ids`` custom attribute.
    """
    rng = random.Random(random_seed)
    items = []
    for index in range(1, product_count + 1):
        assigned = sorted(rng.sample(category_ids, k=min(len(category_ids), rng.randint(1, 2))))
        item = {
            "id": index,
            "sku": f"SKU-{index:04d}",
            "name": f"Product {index}",
            "price": round(rng.uniform(5.0, 500.0), 2),
            "status": 1,
            "type_id": "simple",
            "weight": round(rng.uniform(0.1, 5.0), 2),
            "created_at": "2024-01-01 00:00:00",
            "updated_at": "2024-06-01 00:00:00",
            "media_gallery_entries": [
                {"file": f"/p/{index}.jpg", "position": 1, "types": ["image", "thumbnail"]}
            ],
        }
        if index % 2 == 0:
            item["extension_attributes"] = {
                "category_links": [
                    {"position": 0, "category_id": str(category_id)} for category_id in assigned
                ]
            }
            item["custom_attributes"] = []
        else:
            item["custom_attributes"] = [
                {"attribute_code": "category_ids", "value": ",".join(str(c) for c in assigned)}
            ]
        items.append(item)
    return items


def create_mock_app(
    name: str = "commerce-mock",
    product_count: int = 45,
    category_ids: Iterable[int] = (3, 4, 5, 6, 7),
    access_token: Optional[str] = "test-token",
    random_seed: Optional[int] = 42,
    error_rate: float = 0.0,
    failing_pages: Iterable[int] = (),
    failing_category_ids: Iterable[int] = (),
    failing_skus: Iterable[str] = (),
    missing_stock_skus: Iterable[str] = (),
    advertised_total: Optional[int] = None,
) -> FastAPI:
    """
    Create a mock commerce API with configurable behavior.

    Args:
        name: Server name
        product_count: Number of products in the catalog
        category_ids: Category ids products are assigned to
        access_token: Expected bearer token (None disables the check)
        random_seed: Seed for deterministic catalog and error injection
        error_rate: Probability of a 503 on category/stock lookups (0.0-1.0)
        failing_pages: Product pages that always return 500
        failing_category_ids: Category ids that always return 500
        failing_skus: SKUs whose stock lookup always returns 503
        missing_stock_skus: SKUs whose stock lookup returns 404
        advertised_total: total_count to report instead of the real count

    Returns:
        FastAPI application; ``app.state.request_counts`` counts requests
        per endpoint
    """
    app = FastAPI(title=f"Mock Commerce API - {name}")

    category_ids = list(category_ids)
    catalog = build_catalog(product_count, category_ids, random_seed)
    categories = {
        category_id: {
            "id": category_id,
            "parent_id": 2,
            "name": f"Category {category_id}",
            "is_active": True,
            "level": 2,
        }
        for category_id in category_ids
    }
    stock = {
        item["sku"]: {
            "item_id": item["id"],
            "product_id": item["id"],
            "stock_id": 1,
            "qty": float(item["id"] % 7 * 3),
            "is_in_stock": item["id"] % 7 != 0,
        }
        for item in catalog
    }

    failing_pages = set(failing_pages)
    failing_category_ids = set(failing_category_ids)
    failing_skus = set(failing_skus)
    missing_stock_skus = set(missing_stock_skus)
    rng = random.Random(random_seed)
    app.state.request_counts = Counter()

    def check_auth(authorization: Optional[str]) -> None:
        if access_token is None:
            return
        if authorization != f"Bearer {access_token}":
            raise HTTPException(status_code=401, detail="The consumer isn't authorized")

    def maybe_fail() -> None:
        if error_rate > 0 and rng.random() < error_rate:
            raise HTTPException(status_code=503, detail="Simulated error")

    @app.get("/rest/V1/products")
    async def get_products(
        page_size: int = Query(20, alias="searchCriteria[pageSize]"),
        current_page: int = Query(1, alias="searchCriteria[currentPage]"),
        fields: Optional[str] = Query(None),
        authorization: Optional[str] = Header(None),
    ):
        """Get a page of products."""
        app.state.request_counts["products"] += 1
        check_auth(authorization)

        if current_page in failing_pages:
            raise HTTPException(status_code=500, detail="Simulated page failure")
        if page_size < 1 or current_page < 1:
            raise HTTPException(status_code=400, detail="Invalid search criteria")

        start = (current_page - 1) * page_size
        return {
            "items": catalog[start:start + page_size],
            "total_count": advertised_total if advertised_total is not None else len(catalog),
        }

    @app.get("/rest/V1/categories/{category_id}")
    async def get_category(category_id: int, authorization: Optional[str] = Header(None)):
        """Get category detail."""
        app.state.request_counts["categories"] += 1
        check_auth(authorization)

        if category_id in failing_category_ids:
            raise HTTPException(status_code=500, detail="Simulated category failure")
        maybe_fail()
        if category_id not in categories:
            raise HTTPException(status_code=404, detail="No such entity with id")
        return categories[category_id]

    @app.get("/rest/V1/stockItems/{sku}")
    async def get_stock_item(sku: str, authorization: Optional[str] = Header(None)):
        """Get stock item for a SKU."""
        app.state.request_counts["inventory"] += 1
        check_auth(authorization)

        if sku in failing_skus:
            raise HTTPException(status_code=503, detail="Simulated stock failure")
        maybe_fail()
        if sku in missing_stock_skus or sku not in stock:
            raise HTTPException(status_code=404, detail="Product not found")
        return stock[sku]

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "server": name}

    return app


def create_app() -> FastAPI:
    """
    Factory function for uvicorn --factory.

    Reads catalog size, error rate and token from the environment.
    """
    return create_mock_app(
        name=os.getenv("SERVER_NAME", "commerce-mock"),
        product_count=int(os.getenv("PRODUCT_COUNT", 120)),
        access_token=os.getenv("COMMERCE_ACCESS_TOKEN", "test-token"),
        random_seed=int(os.getenv("RANDOM_SEED", 42)),
        error_rate=float(os.getenv("ERROR_RATE", 0.05)),
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="127.0.0.1", port=int(os.getenv("PORT", 8001)))
