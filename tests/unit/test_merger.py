"""Unit tests for enrichment merging."""

import pytest

from src.fetcher.commerce_api import placeholder_category
from src.fetcher.enrichment import BatchEnrichmentEngine
from src.models.data_models import UNKNOWN_CATEGORY_NAME, Category, InventoryRecord
from src.models.errors import EnrichmentFetchError
from src.monitoring.performance import Dataset
from src.processor.extractor import extract_identifiers
from src.processor.merger import count_enriched, merge_enrichment
from tests.fixtures.sample_data import make_category, make_inventory, make_product


class TestMergeEnrichment:

    def test_round_trip(self):
        products = [make_product("A", [3, 4]), make_product("B", [4])]
        categories = {3: make_category(3), 4: make_category(4)}
        inventory = {"A": make_inventory("A", qty=5), "B": make_inventory("B", qty=0, is_in_stock=False)}

        merged = merge_enrichment(products, categories, inventory)

        assert [p.sku for p in merged] == ["A", "B"]
        assert [c.id for c in merged[0].categories] == [3, 4]
        assert merged[0].qty == 5
        assert merged[0].is_in_stock is True
        assert merged[1].categories == [categories[4]]
        assert merged[1].qty == 0
        assert merged[1].is_in_stock is False
        assert all(p.is_enriched for p in merged)

    def test_missing_inventory_defaults_to_out_of_stock(self):
        merged = merge_enrichment([make_product("A")], {}, {})

        assert merged[0].qty == 0.0
        assert merged[0].is_in_stock is False
        assert merged[0].categories == []

    def test_missing_categories_filtered_and_placeholders_kept(self):
        placeholder = Category(id=4, name=UNKNOWN_CATEGORY_NAME)
        merged = merge_enrichment([make_product("A", [3, 4, 5])], {3: make_category(3), 4: placeholder}, {})

        assert merged[0].categories == [make_category(3), placeholder]

    def test_input_not_mutated(self):
        product = make_product("A", [3])
        merged = merge_enrichment([product], {3: make_category(3)}, {"A": make_inventory("A")})

        assert merged[0] is not product
        assert product.categories is None
        assert product.qty is None
        assert product.is_in_stock is None
        assert not product.is_enriched

    def test_empty_products(self):
        assert merge_enrichment([], {1: make_category(1)}, {"A": InventoryRecord(sku="A")}) == []


class TestCountEnriched:

    def test_counts_real_data_only(self):
        products = merge_enrichment(
            [make_product("A", [3]), make_product("B", [4]), make_product("C")],
            {3: make_category(3), 4: Category(id=4, name=UNKNOWN_CATEGORY_NAME)},
            {"A": make_inventory("A"), "B": InventoryRecord(sku="B")},
        )

        assert count_enriched(products) == {"categories": 1, "inventory": 1}


class TestEnrichmentScenario:

    @pytest.mark.asyncio
    async def test_failed_category_becomes_placeholder(self):
        products = [make_product("A", [5]), make_product("B", [5]), make_product("C", [7])]
        identifiers = extract_identifiers(products)
        assert identifiers.category_ids == {5, 7}

        async def fetch(category_id):
            if category_id == 7:
                raise EnrichmentFetchError("categories", 7, "HTTP 500", status_code=500)
            return Category(id=5, name="Shoes")

        async def no_sleep(delay):
            pass

        engine = BatchEnrichmentEngine(Dataset.CATEGORIES, fetch, placeholder_category, sleeper=no_sleep)
        category_map = await engine.enrich(sorted(identifiers.category_ids), batch_size=10, max_concurrent=2)

        merged = merge_enrichment(products, category_map, {})

        assert merged[0].categories == [Category(id=5, name="Shoes")]
        assert merged[1].categories == [Category(id=5, name="Shoes")]
        assert merged[2].categories == [Category(id=7, name=UNKNOWN_CATEGORY_NAME)]
