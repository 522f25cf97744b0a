# horizon/cli/main.py
"""Horizon - usage analytics CLI."""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from horizon import __version__
from horizon.core.config import ConfigLoader
from horizon.core.logging_config import setup_logging
from horizon.core.metrics import format_minutes, top_n, entropy, concentration
from horizon.core.service import EngagementService
from horizon.models.engagement import ContentType

app = typer.Typer(
    name="horizon",
    help="Horizon - passive usage analytics",
    add_completion=False,
)
console = Console()


def _run(config: Optional[Path], action):
    """Build the service from configuration, run one async action, then close it."""
    cfg = ConfigLoader.load(config)
    setup_logging(cfg['logging'].get('level', 'INFO'))

    async def runner():
        service = EngagementService.from_config(cfg)
        try:
            return await action(service)
        finally:
            await service.close()

    return asyncio.run(runner())


def _fail(e: Exception):
    console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
    raise typer.Exit(1)


@app.command()
def train(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Custom config file"),
):
    """Train the topic classifier on the built-in corpus and save it."""
    try:
        report = _run(config, lambda service: service.train())
    except Exception as e:
        _fail(e)

    console.print("[bold green]✓ Training completed[/bold green]")
    console.print(f"  Accuracy: {report.accuracy * 100:.1f}%")
    console.print(f"  Training time: {report.duration_s:.2f}s")
    console.print(f"  Categories: {', '.join(report.categories)}")
    console.print(f"  Vocabulary size: {report.vocabulary_size} words")

    table = Table(title="Probe Classification")
    table.add_column("Text", style="cyan")
    table.add_column("Topic", style="green")
    table.add_column("Confidence", justify="right")
    for text, category, confidence in report.probes:
        table.add_row(text, category, f"{confidence * 100:.1f}%")
    console.print(table)


@app.command()
def status(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Custom config file"),
):
    """Show whether a usable topic model is stored."""
    try:
        model = _run(config, lambda service: service.model_status())
    except Exception as e:
        _fail(e)

    if model.state == "not_trained":
        console.print("[yellow]⚠ Model not trained[/yellow] - run [bold]horizon train[/bold]")
        return
    if model.state == "needs_retraining":
        console.print("[yellow]⚠ Model needs retraining[/yellow] (incomplete or corrupted)")
    else:
        console.print("[green]✓ Model is trained and ready[/green]")

    console.print(f"  Categories: {', '.join(model.categories) or 'N/A'}")
    console.print(f"  Vocabulary size: {model.vocabulary_size} words")
    console.print(f"  Total words trained: {model.total_words}")
    console.print(f"  Model version: {model.version}")


@app.command()
def settings(
    tracking: Optional[bool] = typer.Option(None, "--tracking/--no-tracking", help="Enable engagement tracking"),
    titles: Optional[bool] = typer.Option(None, "--titles/--no-titles", help="Allow titles to be read"),
    ml: Optional[bool] = typer.Option(None, "--ml/--no-ml", help="Enable topic classification and embeddings"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Custom config file"),
):
    """Show or change tracking settings."""
    async def action(service: EngagementService):
        if tracking is None and titles is None and ml is None:
            return await service.read_settings()
        return await service.update_settings(
            enable_tracking=tracking,
            include_titles=titles,
            enable_ml=ml,
        )

    try:
        current = _run(config, action)
    except Exception as e:
        _fail(e)

    table = Table(title="Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    for name, value in current.to_dict().items():
        table.add_row(name, "on" if value else "off")
    console.print(table)


@app.command()
def record(
    domain: str = typer.Argument(..., help="Domain the time was spent on"),
    delta_ms: int = typer.Argument(..., help="Milliseconds of engagement"),
    content_type: ContentType = typer.Option(ContentType.UNKNOWN, "--content-type", "-t", help="Content type"),
    title: Optional[str] = typer.Option(None, "--title", help="Page or post title"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Custom config file"),
):
    """Record one engagement event through the full service path."""
    payload = {
        'type': 'engagement_time',
        'domain': domain,
        'deltaMs': delta_ms,
        'contentType': content_type.value,
    }
    if title:
        payload['title'] = title

    try:
        response = _run(config, lambda service: service.handle(payload))
    except Exception as e:
        _fail(e)

    console.print_json(json.dumps(response))
    if not response.get('success'):
        raise typer.Exit(1)


@app.command()
def summary(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Custom config file"),
    limit: int = typer.Option(10, "--limit", "-n", help="Number of domains to show"),
):
    """Show today's aggregate."""
    try:
        day = _run(config, lambda service: service.today_summary())
    except Exception as e:
        _fail(e)

    console.print(f"[bold]Today ({day.day})[/bold] • {format_minutes(day.total_ms)}")

    domains = Table(title="Top Domains")
    domains.add_column("Domain", style="cyan")
    domains.add_column("Time", style="green", justify="right")
    for name, ms in top_n(day.by_domain, limit):
        domains.add_row(name, format_minutes(ms))
    console.print(domains)

    types = Table(title="Content Types")
    types.add_column("Type", style="cyan")
    types.add_column("Time", style="green", justify="right")
    for name, ms in top_n(day.by_content_type, len(day.by_content_type)):
        types.add_row(name, format_minutes(ms))
    console.print(types)

    if day.by_topic:
        topics = Table(title="Topics")
        topics.add_column("Topic", style="cyan")
        topics.add_column("Time", style="green", justify="right")
        topics.add_column("Posts", justify="right")
        for name, ms in top_n(day.by_topic, len(day.by_topic)):
            topics.add_row(name, format_minutes(ms), str(day.by_topic_counts.get(name, 0)))
        console.print(topics)
    else:
        console.print("[dim]No topics classified today.[/dim]")

    console.print(f"Content type entropy: [bold]{entropy(day.by_content_type):.2f}[/bold]")
    console.print(f"Top-3 domain concentration: [bold]{concentration(day.by_domain, day.total_ms)}%[/bold]")
    console.print(f"[dim]Embedding samples retained: {len(day.embedding_samples)}[/dim]")


@app.command()
def cache(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Custom config file"),
):
    """Show embedding cache statistics."""
    async def action(service: EngagementService):
        await service.state.cache.load_once()
        return service.state.cache.stats()

    try:
        stats = _run(config, action)
    except Exception as e:
        _fail(e)

    table = Table(title="Embedding Cache")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Entries", f"{stats['entries']} / {stats['max_entries']}")
    table.add_row("Hits", str(stats['hits']))
    table.add_row("Misses", str(stats['misses']))
    console.print(table)


@app.command()
def export(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON to this file"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Custom config file"),
):
    """Export all stored data as JSON."""
    try:
        data = _run(config, lambda service: service.export())
    except Exception as e:
        _fail(e)

    text = json.dumps(data, indent=2)
    if output is None:
        console.print_json(text)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    console.print(f"[green]✓[/green] Exported {len(data)} keys to {output}")


@app.command()
def clear(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Custom config file"),
    confirm: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete all stored data, including the trained model."""
    if not confirm and not typer.confirm("Delete all stored data?", default=False):
        console.print("[yellow]Cancelled[/yellow]")
        return

    try:
        _run(config, lambda service: service.clear())
    except Exception as e:
        _fail(e)

    console.print("[green]✓[/green] All data cleared")


@app.command()
def version():
    """Show version."""
    console.print(f"Horizon v{__version__}")


if __name__ == "__main__":
    app()
