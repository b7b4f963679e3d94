"""Unit tests for output row building."""

import pytest

from src.models.data_models import UNKNOWN_CATEGORY_NAME, Category
from src.processor.merger import merge_enrichment
from src.processor.transform import (
    DEFAULT_FIELDS,
    ProductField,
    build_product_row,
    build_product_rows,
    parse_fields,
    primary_image_url,
    transform_image_entry,
)
from tests.fixtures.sample_data import make_category, make_inventory, make_product


@pytest.fixture
def enriched_product():
    product = make_product(
        "MB-01",
        [3, 4],
        price=34.0,
        media_entries=[{"file": "/m/b/mb01.jpg", "position": 1, "types": ["image", "small_image"]}],
    )
    return merge_enrichment(
        [product],
        {3: make_category(3, "Bags"), 4: Category(id=4, name=UNKNOWN_CATEGORY_NAME)},
        {"MB-01": make_inventory("MB-01", qty=12)},
    )[0]


class TestImages:

    def test_relative_file(self):
        image = transform_image_entry({"file": "/m/b/mb01.jpg", "position": 2})
        assert image == {"filename": "/m/b/mb01.jpg", "url": "catalog/product/m/b/mb01.jpg", "position": 2}

    def test_explicit_url_wins(self):
        image = transform_image_entry({"file": "/a.jpg", "url": "https://cdn.test/a.jpg", "types": ["image"]})
        assert image["url"] == "https://cdn.test/a.jpg"
        assert image["roles"] == ["image"]

    def test_absolute_file(self):
        assert transform_image_entry({"file": "https://cdn.test/b.jpg"})["url"] == "https://cdn.test/b.jpg"

    def test_primary_image_url(self):
        assert primary_image_url([]) == ""
        assert primary_image_url(None) == ""
        assert primary_image_url([{"url": "u1"}, {"url": "u2"}]) == "u1"


class TestRows:

    def test_default_row(self, enriched_product):
        row = build_product_row(enriched_product)

        assert list(row) == [field.value for field in DEFAULT_FIELDS]
        assert row["sku"] == "MB-01"
        assert row["price"] == 34.0
        assert row["qty"] == 12
        assert row["is_in_stock"] is True
        assert row["categories"] == ["Bags", UNKNOWN_CATEGORY_NAME]
        assert row["images"][0]["url"] == "catalog/product/m/b/mb01.jpg"

    def test_selected_fields_in_order(self, enriched_product):
        row = build_product_row(enriched_product, (ProductField.QTY, ProductField.SKU))
        assert list(row.items()) == [("qty", 12), ("sku", "MB-01")]

    def test_unenriched_product(self):
        row = build_product_row(make_product("X"))
        assert row["qty"] == 0
        assert row["is_in_stock"] is False
        assert row["categories"] == []

    def test_image_url_field(self, enriched_product):
        row = build_product_row(enriched_product, (ProductField.SKU, ProductField.IMAGE_URL))
        assert row == {"sku": "MB-01", "image_url": "catalog/product/m/b/mb01.jpg"}
        assert build_product_row(make_product("X"), (ProductField.IMAGE_URL,)) == {"image_url": ""}
        assert ProductField.IMAGE_URL not in DEFAULT_FIELDS

    def test_rows(self, enriched_product):
        assert len(build_product_rows([enriched_product, enriched_product])) == 2


class TestParseFields:

    def test_defaults(self):
        assert parse_fields(None) == DEFAULT_FIELDS
        assert parse_fields([]) == DEFAULT_FIELDS

    def test_names(self):
        assert parse_fields(["sku", "qty"]) == (ProductField.SKU, ProductField.QTY)
        assert parse_fields(["image_url"]) == (ProductField.IMAGE_URL,)

    def test_invalid(self):
        with pytest.raises(ValueError, match="Invalid fields requested: colour"):
            parse_fields(["sku", "colour"])
