"""Pipeline orchestrator coordinating fetch, enrichment and merge phases."""

import asyncio
from typing import Any, Awaitable, Callable, List, Optional

from src.fetcher.enrichment import build_category_engine, build_inventory_engine
from src.fetcher.http_client import AuthenticatedClient, CommerceHTTPClient
from src.fetcher.product_fetcher import ProductFetcher
from src.fetcher.retry_handler import RetryPolicy
from src.models.config import PipelineConfig
from src.models.data_models import PipelineResult, PipelineStage, Product
from src.models.errors import PipelineTimeoutError
from src.monitoring.logger import StructuredLogger
from src.monitoring.performance import PerformanceTracker
from src.processor.extractor import extract_identifiers
from src.processor.merger import count_enriched, merge_enrichment


class PipelineOrchestrator:
    """
    Runs one product enrichment pass.

    FETCHING -> EXTRACTING -> ENRICHING -> MERGING -> DONE. Only the
    fetching stage can fail the run; enrichment failures are absorbed per
    identifier by the engines.
    """

    def __init__(
        self,
        config: PipelineConfig,
        logger: Optional[StructuredLogger] = None,
        sleeper: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize orchestrator with pipeline configuration.

        Args:
            config: Pipeline configuration object
            logger: Structured logger (default: one at config.log_level)
            sleeper: Async sleep used for inter-chunk delays and retry backoff
        """
        self.config = config
        self.logger = logger or StructuredLogger(level=config.log_level)
        self.sleeper = sleeper
        self.stage: Optional[PipelineStage] = None

    async def run(
        self,
        client: Optional[AuthenticatedClient] = None,
        tracker: Optional[PerformanceTracker] = None,
    ) -> PipelineResult:
        """
        Run the complete pipeline under the configured deadline.

        When no client is given, a CommerceHTTPClient is built from the
        configuration, which must then carry a base URL and credentials.

        Args:
            client: Optional authenticated request client
            tracker: Optional performance tracker (a fresh one is used otherwise)

        Returns:
            PipelineResult with enriched products and metrics

        Raises:
            ConfigurationError: If settings are missing (before any fetch)
            ProductFetchError: If a product page request fails
            PipelineTimeoutError: If the run exceeds total_timeout
        """
        if client is None:
            self.config.require_commerce_settings()

        tracker = tracker or PerformanceTracker()

        try:
            return await asyncio.wait_for(
                self._run_with_client(client, tracker),
                timeout=self.config.total_timeout
            )
        except asyncio.TimeoutError:
            self._set_stage(PipelineStage.FAILED)
            self.logger.log("pipeline_timeout", timeout=self.config.total_timeout)
            raise PipelineTimeoutError(self.config.total_timeout) from None

    async def _run_with_client(
        self,
        client: Optional[AuthenticatedClient],
        tracker: PerformanceTracker,
    ) -> PipelineResult:
        if client is not None:
            return await self.execute(client, tracker)

        async with CommerceHTTPClient(
            self.config.commerce_base_url,
            self.config.commerce_access_token,
            connect_timeout=self.config.connect_timeout,
            read_timeout=self.config.read_timeout
        ) as http_client:
            return await self.execute(http_client, tracker)

    async def execute(
        self,
        client: AuthenticatedClient,
        tracker: PerformanceTracker,
    ) -> PipelineResult:
        """Pipeline stages without the deadline wrapper."""
        config = self.config
        tracker.start_timer()
        self.logger.log("pipeline_start", page_size=config.page_size, max_pages=config.max_pages)

        self._set_stage(PipelineStage.FETCHING)
        fetcher = ProductFetcher(client, tracker=tracker, logger=self.logger)
        try:
            products = await fetcher.fetch_products(config.page_size, config.max_pages)
        except Exception as e:
            self._set_stage(PipelineStage.FAILED)
            tracker.stop_timer()
            self.logger.pipeline_failed(stage=PipelineStage.FETCHING.value, error=str(e))
            raise
        tracker.set_processed_products(len(products))

        self._set_stage(PipelineStage.EXTRACTING)
        identifiers = extract_identifiers(products)
        tracker.set_identifier_counts(identifiers.category_ids, identifiers.skus)

        self._set_stage(PipelineStage.ENRICHING)
        retry_policy = RetryPolicy(
            max_attempts=config.enrichment_max_attempts,
            base_delay=config.retry_base_delay,
            max_delay=config.retry_max_delay,
            jitter_max=config.retry_jitter_max
        )
        category_engine = build_category_engine(
            client, retry_policy=retry_policy, tracker=tracker, logger=self.logger, sleeper=self.sleeper
        )
        inventory_engine = build_inventory_engine(
            client, retry_policy=retry_policy, tracker=tracker, logger=self.logger, sleeper=self.sleeper
        )
        # Independent datasets: run both engines side by side
        category_map, inventory_map = await asyncio.gather(
            category_engine.enrich(
                sorted(identifiers.category_ids),
                config.category_batch_size,
                config.max_concurrent,
                config.inter_chunk_delay_ms
            ),
            inventory_engine.enrich(
                sorted(identifiers.skus),
                config.inventory_batch_size,
                config.max_concurrent,
                config.inter_chunk_delay_ms
            ),
        )

        self._set_stage(PipelineStage.MERGING)
        enriched = merge_enrichment(products, category_map, inventory_map)

        self._set_stage(PipelineStage.DONE)
        tracker.stop_timer()
        metrics = tracker.snapshot()
        self.logger.log(
            "pipeline_complete",
            products=len(enriched),
            enriched=count_enriched(enriched),
            total_api_calls=metrics.total_api_calls,
            elapsed_ms=metrics.elapsed_ms
        )

        return PipelineResult(products=enriched, metrics=metrics, stage=self.stage)

    def _set_stage(self, stage: PipelineStage) -> None:
        self.stage = stage
        self.logger.stage(stage.value)


async def fetch_and_enrich_products(
    client: AuthenticatedClient,
    config: PipelineConfig,
    tracker: Optional[PerformanceTracker] = None,
    logger: Optional[StructuredLogger] = None,
    sleeper: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> List[Product]:
    """
    Fetch the catalog and return fully enriched products.

    Pass a tracker to read call counts and timing afterwards.

    Raises:
        ProductFetchError: If a product page request fails
        PipelineTimeoutError: If the run exceeds config.total_timeout
    """
    orchestrator = PipelineOrchestrator(config, logger=logger, sleeper=sleeper)
    result = await orchestrator.run(client, tracker=tracker)
    return result.products
