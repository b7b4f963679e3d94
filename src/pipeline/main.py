"""CLI entry point for the product enrichment pipeline.

This module provides the command-line interface for fetching and enriching
the product catalog, with a progress spinner, a results table and JSON output.
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from src.models.config import ConfigManager, PipelineConfig
from src.models.data_models import PipelineResult
from src.models.errors import ConfigurationError, PipelineError
from src.pipeline.orchestrator import PipelineOrchestrator
from src.pipeline.output import JSONOutputFormatter
from src.processor.transform import parse_fields


console = Console()


@click.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    default="config/config.yaml",
    help="Path to configuration YAML file",
)
@click.option("--base-url", type=str, help="Commerce REST base URL (overrides config)")
@click.option("--page-size", type=int, help="Products per page (overrides config)")
@click.option("--max-pages", type=int, help="Maximum product pages (overrides config)")
@click.option(
    "--max-concurrent",
    type=int,
    help="In-flight enrichment requests per dataset (overrides config)",
)
@click.option(
    "--timeout",
    "-t",
    type=float,
    help="Total pipeline execution timeout in seconds (overrides config)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Output JSON file path (overrides config)",
)
@click.option(
    "--fields",
    type=str,
    help="Comma-separated output fields, e.g. sku,name,qty,categories",
)
@click.option(
    "--log-level",
    "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (overrides config)",
)
@click.option(
    "--no-progress",
    is_flag=True,
    help="Disable progress display (useful for CI/CD)",
)
@click.version_option(version="1.0.0", prog_name="catalog-enrichment")
def main(
    config: Path,
    base_url: Optional[str],
    page_size: Optional[int],
    max_pages: Optional[int],
    max_concurrent: Optional[int],
    timeout: Optional[float],
    output: Optional[Path],
    fields: Optional[str],
    log_level: Optional[str],
    no_progress: bool,
) -> None:
    """
    Catalog Enrichment - fetch the product catalog and enrich it with
    category metadata and stock levels.

    Credentials are read from COMMERCE_ACCESS_TOKEN.

    Examples:

        # Run with default configuration
        $ python -m src.pipeline.main

        # Smaller pages, lower concurrency
        $ python -m src.pipeline.main --page-size 50 --max-concurrent 5

        # Only selected output fields
        $ python -m src.pipeline.main --fields sku,qty,is_in_stock
    """
    try:
        cli_overrides = {
            "commerce_base_url": base_url,
            "page_size": page_size,
            "max_pages": max_pages,
            "max_concurrent": max_concurrent,
            "total_timeout": timeout,
            "log_level": log_level.upper() if log_level else None,
        }

        config_manager = ConfigManager(config)
        pipeline_config = config_manager.load_config(cli_overrides)

        output_fields = parse_fields(
            [name.strip() for name in fields.split(",") if name.strip()] if fields else None
        )
        output_path = output if output else pipeline_config.output_path

        _display_config_summary(pipeline_config, no_progress)

        result = asyncio.run(_run_pipeline_with_progress(pipeline_config, no_progress))

        formatter = JSONOutputFormatter(fields=output_fields)
        formatter.save(result, str(output_path))

        _display_results(result, output_path, no_progress)

        sys.exit(0)

    except KeyboardInterrupt:
        console.print("\n[yellow]Pipeline interrupted by user[/yellow]")
        sys.exit(130)  # Standard exit code for SIGINT
    except ConfigurationError as e:
        console.print(f"\n[red]Configuration error:[/red] {e}", style="bold red")
        sys.exit(1)
    except PipelineError as e:
        console.print(f"\n[red]Error:[/red] {e}", style="bold red")
        sys.exit(1)
    except ValueError as e:
        console.print(f"\n[red]Invalid option:[/red] {e}", style="bold red")
        sys.exit(1)


async def _run_pipeline_with_progress(
    config: PipelineConfig,
    no_progress: bool,
) -> PipelineResult:
    """
    Run the pipeline with a progress spinner.

    Args:
        config: Pipeline configuration
        no_progress: Whether to disable the progress display

    Returns:
        Pipeline execution result
    """
    orchestrator = PipelineOrchestrator(config)

    if no_progress:
        console.print("[cyan]Running pipeline...[/cyan]")
        return await orchestrator.run()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task_id = progress.add_task("[cyan]Fetching and enriching products...", total=None)
        result = await orchestrator.run()
        progress.update(task_id, description="[green]Done", completed=True)
        return result


def _display_config_summary(config: PipelineConfig, no_progress: bool) -> None:
    """Display configuration summary before running."""
    if no_progress:
        return

    console.print("\n[bold cyan]Pipeline Configuration[/bold cyan]")
    console.print(f"  Commerce API: {config.commerce_base_url}")
    console.print(f"  Pagination: {config.page_size} per page, max {config.max_pages} pages")
    console.print(
        f"  Batches: {config.category_batch_size} categories / {config.inventory_batch_size} SKUs"
    )
    console.print(f"  Concurrency: {config.max_concurrent}, chunk delay {config.inter_chunk_delay_ms}ms")
    console.print(f"  Timeout: {config.total_timeout}s")
    console.print()


def _display_results(
    result: PipelineResult,
    output_path: Path,
    no_progress: bool,
) -> None:
    """Display final results summary."""
    metrics = result.metrics

    if no_progress:
        console.print(f"✓ Pipeline complete: {len(result.products)} products")
        console.print(f"✓ Output saved to: {output_path}")
        return

    console.print("\n[bold green]Pipeline Complete![/bold green]\n")

    summary_table = Table(title="Execution Summary", show_header=False)
    summary_table.add_column("Metric", style="cyan")
    summary_table.add_column("Value", style="green")

    summary_table.add_row("Products", str(len(result.products)))
    if metrics:
        summary_table.add_row("Unique Categories", str(metrics.unique_categories))
        summary_table.add_row("SKUs", str(metrics.sku_count))
        summary_table.add_row("Elapsed", f"{metrics.elapsed_ms / 1000:.2f}s")
        summary_table.add_row("Total API Calls", str(metrics.total_api_calls))

    console.print(summary_table)
    console.print()

    if metrics:
        calls_table = Table(title="API Calls per Dataset")
        calls_table.add_column("Dataset", style="cyan")
        calls_table.add_column("Calls", justify="right", style="green")
        calls_table.add_column("Defaulted", justify="right", style="yellow")

        for dataset, calls in metrics.api_calls.items():
            calls_table.add_row(dataset, str(calls), str(metrics.failed_lookups.get(dataset, 0)))

        console.print(calls_table)
        console.print()

    console.print(f"[bold]Output saved to:[/bold] {output_path}")
    console.print()


if __name__ == "__main__":
    main()
