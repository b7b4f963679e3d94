"""JSON output formatter for pipeline results.

Serializes the enriched products as output rows together with the run's
performance metrics. Example output structure:

    {
        "summary": {
            "total_products": 150,
            "elapsed_seconds": 3.21,
            "stage": "done"
        },
        "metrics": {
            "api_calls": {"products": 2, "categories": 12, "inventory": 150},
            "total_api_calls": 164,
            ...
        },
        "products": [
            {"sku": "MB-01", "name": "...", "qty": 12, "categories": ["Bags"], ...}
        ]
    }
"""

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from src.models.data_models import PerformanceMetrics, PipelineResult
from src.processor.transform import DEFAULT_FIELDS, ProductField, build_product_rows


class JSONOutputFormatter:
    """Formats pipeline results as JSON."""

    def __init__(self, fields: Sequence[ProductField] = DEFAULT_FIELDS):
        self.fields = fields

    def format(self, result: PipelineResult) -> Dict[str, Any]:
        """
        Format pipeline result as JSON-serializable dictionary.

        Args:
            result: Complete pipeline execution result

        Returns:
            Dictionary with summary, metrics and products sections
        """
        return {
            "summary": self._format_summary(result),
            "metrics": self._format_metrics(result.metrics),
            "products": build_product_rows(result.products, self.fields),
        }

    def _format_summary(self, result: PipelineResult) -> Dict[str, Any]:
        elapsed_ms = result.metrics.elapsed_ms if result.metrics else 0.0
        return {
            "total_products": len(result.products),
            "elapsed_seconds": round(elapsed_ms / 1000, 2),
            "stage": result.stage.value,
        }

    def _format_metrics(self, metrics: Optional[PerformanceMetrics]) -> Optional[Dict[str, Any]]:
        if metrics is None:
            return None
        data = asdict(metrics)
        data["elapsed_ms"] = round(metrics.elapsed_ms, 1)
        return data

    def save(self, result: PipelineResult, path: str = "out/products.json") -> None:
        """
        Save formatted result to JSON file.

        Creates parent directories if they don't exist.

        Args:
            result: Pipeline result to save
            path: Output file path (default: out/products.json)
        """
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        formatted_data = self.format(result)

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(formatted_data, f, indent=2, ensure_ascii=False)
