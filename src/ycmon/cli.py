"""Command-line interface for ycmon."""

import asyncio
import json
from pathlib import Path
from typing import Optional

import aiohttp
import typer
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from .agent import OutputRunner
from .agent.collectors import SystemCollector
from .config import settings
from .output import OutputConfig, YandexCloudMonitoring, YcmonError, translate
from .utils import setup_logging

app = typer.Typer(
    name="ycmon",
    help="Publish host metrics to Yandex Cloud Monitoring",
    add_completion=False,
)

console = Console()

ConfigOption = typer.Option(None, "--config", "-c", help="YAML configuration file")


def run_async(coro):
    """Run async function in sync context."""
    return asyncio.run(coro)


def _load_config(config: Optional[Path]) -> OutputConfig:
    path = config or settings.config_file
    return OutputConfig.load(str(path) if path else None)


@app.callback()
def main(
    log_level: str = typer.Option(None, "--log-level", "-l", help="Override YCMON_LOG_LEVEL"),
):
    """Configure logging before any command runs."""
    setup_logging(log_level or settings.log_level, settings.log_file)


@app.command()
def run(config: Optional[Path] = ConfigOption):
    """Collect system metrics and publish them every interval."""
    output_config = _load_config(config)
    console.print(
        f"[bold]Publishing every {output_config.agent.interval}s "
        f"as {output_config.agent.hostname}[/bold]"
    )
    runner = OutputRunner(output_config)

    try:
        run_async(runner.start())
    except KeyboardInterrupt:
        pass
    except (YcmonError, aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def push(config: Optional[Path] = ConfigOption):
    """Collect once and publish a single batch."""
    output_config = _load_config(config)

    async def _push():
        collector = SystemCollector(output_config.agent.hostname)
        metrics = await collector.collect()
        async with YandexCloudMonitoring(output_config) as output:
            await output.connect()
            return len(metrics), await output.write(metrics)

    try:
        count, result = run_async(_push())
    except (YcmonError, aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if result is None:
        console.print("[yellow]Nothing to send[/yellow]")
    else:
        console.print(f"[green]Sent {count} metrics (HTTP {result.status_code})[/green]")


@app.command()
def preview(config: Optional[Path] = ConfigOption):
    """Collect once and print the request body without sending it."""
    output_config = _load_config(config)
    collector = SystemCollector(output_config.agent.hostname)

    translation = translate(run_async(collector.collect()))
    body = json.dumps(translation.to_batch().to_dict(), indent=2)

    console.print(Syntax(body, "json"))
    console.print(
        f"\n[cyan]{len(translation.points)} points, "
        f"{len(translation.skipped)} fields skipped[/cyan]"
    )


@app.command("show-config")
def show_config(config: Optional[Path] = ConfigOption):
    """Show the resolved endpoint configuration."""
    resolved = _load_config(config).resolve()

    table = Table(title="Output Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Endpoint", resolved.endpoint_url)
    table.add_row("Service", resolved.service)
    table.add_row("Timeout", f"{resolved.timeout:g}s")
    table.add_row("Metadata token URL", resolved.metadata_token_url)
    table.add_row("Metadata folder URL", resolved.metadata_folder_url)

    console.print(table)


if __name__ == "__main__":
    app()
