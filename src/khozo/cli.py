"""Command-line interface for khozo."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from khozo import __version__
from khozo.config import Config, MonitoringConfig
from khozo.config.config import find_config_file
from khozo.container import DependencyContainer
from khozo.exceptions import ExtractionFailed, TargetResolutionFailure
from khozo.extractor.models import CONFIDENCE_BY_METHOD, TRUST_ORDER, OrganizationQuery
from khozo.locator import ResourceLocator
from khozo.observability import configure_logging, start_exporter
from khozo.pipeline import ExtractionOutcome

console = Console()
err_console = Console(stderr=True)


def _load_config(config_path: Optional[Path]) -> Config:
    path = config_path or find_config_file()
    if path is not None:
        return Config.from_yaml(path)
    return Config()


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", type=click.Path(exists=True), help="Configuration file path")
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level",
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], log_level: str) -> None:
    """khozo - multi-strategy content extraction for videos and notices."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config) if config else None
    ctx.obj["log_level"] = log_level


@cli.command()
@click.argument("source")
@click.option("--language", "-l", default=None, help="Preferred caption language code (default from config)")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def extract(ctx: click.Context, source: str, language: Optional[str], as_json: bool) -> None:
    """Extract content from a video URL, article URL or storage pointer."""
    config = _load_config(ctx.obj["config_path"])
    configure_logging(MonitoringConfig(log_level=ctx.obj["log_level"], log_file=config.monitoring.log_file))
    start_exporter(config.monitoring.prometheus_port)

    async def run_extraction() -> Any:
        container = DependencyContainer(ctx.obj["config_path"], config=config, watch_config=False)
        async with container.lifecycle():
            pipeline = await container.get_pipeline()
            return await pipeline.run(source, language=language)

    try:
        outcome = asyncio.run(run_extraction())
    except TargetResolutionFailure as e:
        err_console.print(f"[red]Could not resolve input:[/red] {e}")
        sys.exit(2)
    except ExtractionFailed as e:
        if as_json:
            click.echo(json.dumps({"error": e.user_message, "reason": e.reason, "attempts": len(e.attempts)}))
        else:
            err_console.print(f"[red]{e.user_message}[/red]")
            _print_attempts(e.attempts)
        sys.exit(1)

    if isinstance(outcome, OrganizationQuery):
        _print_organization(outcome, as_json)
        return

    if as_json:
        click.echo(json.dumps(outcome.to_dict(), ensure_ascii=False, indent=2))
    else:
        _print_outcome(outcome)


@cli.command()
@click.argument("query")
@click.option("--language", "-l", default="en", help="Requested language code")
def resolve(query: str, language: str) -> None:
    """Show how an input resolves, without extracting anything."""

    async def run_resolve() -> Any:
        # Storage pointers need the network; plain resolution does not.
        return await ResourceLocator().resolve(query, language=language)

    try:
        resolution = asyncio.run(run_resolve())
    except TargetResolutionFailure as e:
        err_console.print(f"[red]Could not resolve input:[/red] {e}")
        sys.exit(2)

    if isinstance(resolution, OrganizationQuery):
        _print_organization(resolution, as_json=False)
        return

    table = Table(title="Resolved target")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("kind", resolution.kind.value)
    table.add_row("identifier", resolution.identifier)
    table.add_row("source_url", resolution.source_url)
    table.add_row("language", resolution.language)
    console.print(table)


@cli.command()
@click.pass_context
def methods(ctx: click.Context) -> None:
    """List extraction methods in trust order."""
    config = _load_config(ctx.obj["config_path"])
    enabled = set(config.extraction.method_order)

    table = Table(title="Extraction methods")
    table.add_column("#", justify="right")
    table.add_column("Method", style="cyan")
    table.add_column("Confidence", justify="right")
    table.add_column("Enabled")
    for index, name in enumerate(TRUST_ORDER, start=1):
        table.add_row(str(index), name.value, f"{CONFIDENCE_BY_METHOD[name]:.2f}", "yes" if name in enabled else "no")
    console.print(table)


def _print_organization(signal: OrganizationQuery, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps({"organization": signal.organization, "query": signal.query}))
        return
    console.print(
        Panel(
            f"'{signal.query}' names an organization, not a single notice.\n"
            f"List all opportunities for [bold]{signal.organization}[/bold] instead.",
            title="Ambiguous query",
            border_style="yellow",
        )
    )


def _print_outcome(outcome: ExtractionOutcome) -> None:
    result = outcome.result
    summary: Dict[str, Any] = {
        "Title": outcome.title or "-",
        "Method": result.method.value,
        "Confidence": f"{result.confidence_score:.2f}",
        "Words": result.word_count,
        "Read time": f"{outcome.estimated_read_minutes} min",
        "Attempts": len(result.attempts),
    }
    table = Table(show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in summary.items():
        table.add_row(key, str(value))
    console.print(table)
    console.print(Panel(Text(result.timestamped_text), title=outcome.target.identifier))


def _print_attempts(attempts: Any) -> None:
    if not attempts:
        return
    table = Table(title="Attempts")
    table.add_column("Method", style="cyan")
    table.add_column("Outcome")
    table.add_column("Error")
    for attempt in attempts:
        table.add_row(attempt.method_name.value, "ok" if attempt.succeeded else "failed", Text(attempt.error or ""))
    err_console.print(table)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
