"""Main CLI entry point for Media Relay."""

import asyncio

import hydra
from omegaconf import DictConfig
from rich.console import Console
from rich.table import Table

from .config import RelayConfig
from .errors import ExtractionExhausted, MediaRelayError
from .pipeline import MediaPipeline
from .resolver import MediaResult
from .utils.formatting import human_readable_size
from .utils.logging import setup_logging

console = Console()


@hydra.main(version_base=None, config_path="../../conf", config_name="config")
def main(cfg: DictConfig) -> None:
    """Main entry point."""
    config = RelayConfig.from_hydra(cfg)
    setup_logging(config.log_level, console)

    console.print("[bold blue]Media Relay[/bold blue]")
    console.print()

    if cfg.get("serve"):
        from .api import run_server

        console.print(f"[cyan]Serving on[/cyan] http://{config.server.host}:{config.server.port}")
        run_server(config)
        return

    if not cfg.get("url"):
        console.print("[yellow]Nothing to do.[/yellow] Pass url=<link> or serve=true")
        return

    asyncio.run(resolve_url(cfg.url, config))


async def resolve_url(url: str, config: RelayConfig) -> None:
    """Resolve one URL and print what was found."""
    pipeline = MediaPipeline(config)
    try:
        with console.status(f"Resolving {url}..."):
            result = await pipeline.resolve_only(url)
        show_result(result)
    except ExtractionExhausted as e:
        console.print(f"[red]{e.message}[/red]")
        show_attempts(e.details["attempts"])
    except MediaRelayError as e:
        console.print(f"[red]{e.message}[/red] ({e.code})")
    finally:
        pipeline.close()


def show_result(result: MediaResult) -> None:
    """Display a resolved result."""
    table = Table(title="Resolved Media", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Title", result.title)
    table.add_row("Platform", result.source_platform.value)
    table.add_row("Class", result.media_class.value)
    table.add_row("Quality", result.quality_label)
    table.add_row("Strategy", result.strategy)
    table.add_row("Verdict", result.verdict.value)
    table.add_row("Size", human_readable_size(result.size_bytes))
    table.add_row("Media URL", result.media_url or "[dim](buffered locally)[/dim]")
    table.add_row("Thumbnail", result.thumbnail_url)
    if result.substituted:
        table.add_row("Substituted", f"[yellow]{result.substitution_query}[/yellow] -> {result.substitution_source}")
    for notice in result.notices:
        table.add_row("Notice", f"[yellow]{notice['reason']}[/yellow]")

    console.print(table)


def show_attempts(attempts: list[dict]) -> None:
    """Display failed strategy attempts."""
    table = Table(title="Strategy Attempts")
    table.add_column("#", justify="right")
    table.add_column("Strategy", style="cyan")
    table.add_column("Failure", style="red")
    table.add_column("Message")
    table.add_column("Time", justify="right")

    for attempt in attempts:
        table.add_row(
            str(attempt["index"]),
            attempt["strategy"],
            attempt["failure_kind"] or "-",
            attempt["message"] or "",
            f"{attempt['elapsed_ms']:.0f} ms",
        )

    console.print(table)


if __name__ == "__main__":
    main()
