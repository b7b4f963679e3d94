"""Error taxonomy for the product enrichment pipeline."""

from typing import Optional


class PipelineError(Exception):
    """Base class for pipeline errors."""


class ConfigurationError(PipelineError):
    """Required settings are missing or invalid; raised before any fetch."""


class ProductFetchError(PipelineError):
    """A product page request failed. Fatal for the whole run."""

    def __init__(self, page: int, detail: str, status_code: Optional[int] = None):
        self.page = page
        self.detail = detail
        self.status_code = status_code
        super().__init__(f"Commerce API failed: page {page}: {detail}")


class EnrichmentFetchError(PipelineError):
    """A single category or stock lookup failed. Always absorbed by the engine."""

    def __init__(self, dataset: str, identifier, detail: str, status_code: Optional[int] = None):
        self.dataset = dataset
        self.identifier = identifier
        self.status_code = status_code
        super().__init__(f"{dataset} lookup failed for {identifier!r}: {detail}")


class PipelineTimeoutError(PipelineError):
    """The pipeline deadline expired before the run completed."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Pipeline cancelled after exceeding {timeout}s deadline")
