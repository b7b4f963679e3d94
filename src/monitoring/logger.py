"""Structured logging for pipeline monitoring."""

import json
import logging
from typing import Any, Optional


class StructuredLogger:
    """Structured logger with uniform schema."""

    def __init__(self, name: str = "enrichment", level: str = "INFO"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter('%(message)s'))
            self.logger.addHandler(handler)

    def log(self, event: str, level: int = logging.INFO, **kwargs) -> None:
        """
        Log structured event.

        Standard keys: event, dataset, page, status, identifier, attempt,
                      elapsed_ms, batch, chunk, chunk_size, stage
        """
        log_data = {"event": event, **kwargs}
        self.logger.log(level, json.dumps(log_data, default=str))

    def page_fetched(self, page: int, items: int, total_count: int, elapsed_ms: float) -> None:
        self.log("page_fetched", page=page, items=items, total_count=total_count, elapsed_ms=elapsed_ms)

    def pagination_stop(self, page: int, reason: str, products: int) -> None:
        self.log("pagination_stop", page=page, reason=reason, products=products)

    def enrichment_start(self, dataset: str, identifiers: int, batches: int) -> None:
        self.log("enrichment_start", dataset=dataset, identifiers=identifiers, batches=batches)

    def chunk_complete(self, dataset: str, batch: int, chunk: int, chunk_size: int, elapsed_ms: float) -> None:
        self.log(
            "chunk_complete",
            level=logging.DEBUG,
            dataset=dataset,
            batch=batch,
            chunk=chunk,
            chunk_size=chunk_size,
            elapsed_ms=elapsed_ms,
        )

    def enrichment_failure(self, dataset: str, identifier: Any, error: str, status: Optional[int] = None) -> None:
        self.log(
            "enrichment_failure",
            level=logging.WARNING,
            dataset=dataset,
            identifier=identifier,
            status=status,
            error=error,
        )

    def enrichment_complete(self, dataset: str, identifiers: int, failures: int, elapsed_ms: float) -> None:
        self.log(
            "enrichment_complete",
            dataset=dataset,
            identifiers=identifiers,
            failures=failures,
            elapsed_ms=elapsed_ms,
        )

    def stage(self, stage: str) -> None:
        self.log("stage", level=logging.DEBUG, stage=stage)

    def pipeline_failed(self, stage: str, error: str) -> None:
        self.log("pipeline_failed", level=logging.ERROR, stage=stage, error=error)
