"""Unit tests for the pipeline orchestrator."""

import asyncio

import pytest

from src.models.config import PipelineConfig
from src.models.data_models import UNKNOWN_CATEGORY_NAME, PipelineStage
from src.models.errors import ConfigurationError, PipelineTimeoutError, ProductFetchError
from src.monitoring.performance import Dataset
from src.pipeline.orchestrator import PipelineOrchestrator, fetch_and_enrich_products
from tests.fixtures.fake_client import CatalogHandler, FakeCommerceClient
from tests.fixtures.sample_data import make_catalog


def catalog_handler(count=12, **kwargs):
    items = make_catalog(count, category_cycle=(3, 4, 5))
    return CatalogHandler(
        items,
        categories={c: {"id": c, "name": f"Category {c}", "parent_id": 2, "level": 2} for c in (3, 4, 5)},
        stock={item["sku"]: {"qty": item["id"], "is_in_stock": True} for item in items},
        **kwargs
    )


class TestPipelineRun:

    @pytest.mark.asyncio
    async def test_full_run(self, sample_config, sleeper, tracker):
        client = FakeCommerceClient(catalog_handler())
        orchestrator = PipelineOrchestrator(sample_config, sleeper=sleeper)

        result = await orchestrator.run(client, tracker=tracker)

        assert result.stage == PipelineStage.DONE
        assert orchestrator.stage == PipelineStage.DONE
        assert len(result.products) == 12
        assert all(p.is_enriched for p in result.products)
        first = result.products[0]
        assert first.sku == "SKU-0001"
        assert [c.name for c in first.categories] == ["Category 3"]
        assert first.qty == 1
        assert first.is_in_stock is True

        metrics = result.metrics
        assert metrics.api_calls == {"products": 2, "categories": 3, "inventory": 12}
        assert metrics.total_api_calls == 17 == len(client.calls)
        assert metrics.processed_products == 12
        assert metrics.unique_categories == 3
        assert metrics.sku_count == 12
        assert metrics.data_sources_used == 3

    @pytest.mark.asyncio
    async def test_enrichment_failures_degrade(self, sample_config, sleeper):
        handler = catalog_handler(6, failing_categories=[4], failing_skus=["SKU-0001"])
        client = FakeCommerceClient(handler)

        result = await PipelineOrchestrator(sample_config, sleeper=sleeper).run(client)

        by_sku = {p.sku: p for p in result.products}
        assert by_sku["SKU-0001"].qty == 0.0
        assert by_sku["SKU-0001"].is_in_stock is False
        assert [c.name for c in by_sku["SKU-0002"].categories] == [UNKNOWN_CATEGORY_NAME]
        assert result.metrics.failed_lookups == {"products": 0, "categories": 1, "inventory": 1}
        assert result.stage == PipelineStage.DONE

    @pytest.mark.asyncio
    async def test_engines_run_side_by_side(self, sample_config, sleeper):
        in_flight = {"now": 0, "peak": 0}
        handler = catalog_handler(6)

        async def tracked(path, params):
            if path != "/products":
                in_flight["now"] += 1
                in_flight["peak"] = max(in_flight["peak"], in_flight["now"])
                await asyncio.sleep(0.01)
                in_flight["now"] -= 1
            return handler(path, params)

        config = sample_config.model_copy(update={"max_concurrent": 2})
        await PipelineOrchestrator(config, sleeper=sleeper).run(FakeCommerceClient(tracked))

        # Each engine keeps at most 2 in flight; together they exceed that
        assert in_flight["peak"] == 4

    @pytest.mark.asyncio
    async def test_identifiers_enriched_once(self, sample_config, sleeper):
        client = FakeCommerceClient(catalog_handler(12))

        await PipelineOrchestrator(sample_config, sleeper=sleeper).run(client)

        category_paths = client.paths("/categories/")
        assert sorted(category_paths) == ["/categories/3", "/categories/4", "/categories/5"]
        assert len(set(client.paths("/stockItems/"))) == len(client.paths("/stockItems/")) == 12

    @pytest.mark.asyncio
    async def test_empty_catalog(self, sample_config, sleeper):
        client = FakeCommerceClient(catalog_handler(0))

        result = await PipelineOrchestrator(sample_config, sleeper=sleeper).run(client)

        assert result.products == []
        assert client.paths() == ["/products"]
        assert sleeper.delays == []

    @pytest.mark.asyncio
    async def test_fetch_failure_fails_run(self, sample_config, sleeper, tracker):
        client = FakeCommerceClient(catalog_handler(12, failing_pages=[2]))
        orchestrator = PipelineOrchestrator(sample_config, sleeper=sleeper)

        with pytest.raises(ProductFetchError):
            await orchestrator.run(client, tracker=tracker)

        assert orchestrator.stage == PipelineStage.FAILED
        assert client.paths("/categories/") == []
        assert client.paths("/stockItems/") == []
        assert tracker.api_calls(Dataset.PRODUCTS) == 2

    @pytest.mark.asyncio
    async def test_deadline(self, sample_config):
        async def slow(path, params):
            await asyncio.sleep(5)

        config = sample_config.model_copy(update={"total_timeout": 0.05})
        orchestrator = PipelineOrchestrator(config)

        with pytest.raises(PipelineTimeoutError) as exc_info:
            await orchestrator.run(FakeCommerceClient(slow))

        assert exc_info.value.timeout == 0.05
        assert orchestrator.stage == PipelineStage.FAILED

    @pytest.mark.asyncio
    async def test_missing_settings_fail_before_fetch(self):
        orchestrator = PipelineOrchestrator(PipelineConfig(log_level="WARNING"))

        with pytest.raises(ConfigurationError):
            await orchestrator.run()
        assert orchestrator.stage is None

    @pytest.mark.asyncio
    async def test_injected_client_needs_no_settings(self, sleeper):
        config = PipelineConfig(page_size=5, inter_chunk_delay_ms=0, log_level="WARNING")
        client = FakeCommerceClient(catalog_handler(3))

        result = await PipelineOrchestrator(config, sleeper=sleeper).run(client)

        assert len(result.products) == 3

    @pytest.mark.asyncio
    async def test_inter_chunk_delay_used(self, sample_config, sleeper):
        client = FakeCommerceClient(catalog_handler(12))

        await PipelineOrchestrator(sample_config, sleeper=sleeper).run(client)

        # 3 categories -> 1 chunk; 12 SKUs in batches of 6 -> 4 chunks of 3
        assert sleeper.delays == [0.05] * 3


class TestFetchAndEnrichProducts:

    @pytest.mark.asyncio
    async def test_returns_products(self, sample_config, sleeper, tracker):
        client = FakeCommerceClient(catalog_handler(4))

        products = await fetch_and_enrich_products(client, sample_config, tracker=tracker, sleeper=sleeper)

        assert [p.sku for p in products] == ["SKU-0001", "SKU-0002", "SKU-0003", "SKU-0004"]
        assert tracker.api_calls(Dataset.INVENTORY) == 4
