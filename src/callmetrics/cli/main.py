"""CLI entry point for callmetrics-sdk.

Invoked as::

    callmetrics [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m callmetrics.cli.main
"""
from __future__ import annotations

import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from callmetrics.config.loader import ConfigLoader
from callmetrics.schema.config import MetricsConfig
from callmetrics.schema.errors import CallMetricsError
from callmetrics.schema.snapshot import MetricSnapshot, decode_snapshot
from callmetrics.stats.api_stats import API_STATS
from callmetrics.stats.audio_route_stats import AUDIO_ROUTE_STATS
from callmetrics.stats.call_stats import CALL_STATS
from callmetrics.stats.error_stats import ERROR_STATS
from callmetrics.telemetry.pulled import MetricDescriptor
from callmetrics.telemetry.storage import FileStorage

console = Console()
error_console = Console(stderr=True, style="bold red")

_DESCRIPTORS: tuple[MetricDescriptor, ...] = (
    API_STATS,
    AUDIO_ROUTE_STATS,
    CALL_STATS,
    ERROR_STATS,
)


def _load_config(config: str | None) -> MetricsConfig:
    loader = ConfigLoader()
    try:
        if config:
            return loader.load_file(config)
        return loader.load_auto()
    except CallMetricsError as exc:
        error_console.print(f"Could not load config: {exc}")
        raise SystemExit(1) from exc


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="callmetrics-sdk")
def cli() -> None:
    """In-process call telemetry: keyed counters, running averages, rate-limited pulls"""


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from callmetrics import __version__

    console.print(f"[bold]callmetrics-sdk[/bold] v{__version__}")
    console.print(f"Python {sys.version}")


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------


@cli.command(name="init")
@click.option(
    "--directory",
    "-d",
    default=".",
    show_default=True,
    help="Directory in which to create the config file.",
)
def init_command(directory: str) -> None:
    """Initialise a callmetrics config file in DIRECTORY."""
    target_dir = Path(directory).resolve()
    config_path = target_dir / "callmetrics.yaml"

    if config_path.exists():
        console.print(
            f"[yellow]Config already exists at {config_path}. Skipping.[/yellow]"
        )
        return

    default_yaml = """\
# callmetrics configuration
storage_dir: .callmetrics
persist_delay_ms: 30000
min_pull_interval_ms: 82800000
revert_threshold_ms: 5000
"""
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        config_path.write_text(default_yaml, encoding="utf-8")
        console.print(f"[green]Created callmetrics config at {config_path}[/green]")
    except OSError as exc:
        error_console.print(f"Failed to create config: {exc}")
        raise SystemExit(1) from exc


# ---------------------------------------------------------------------------
# status
# ---------------------------------------------------------------------------


@cli.command(name="status")
@click.option(
    "--config",
    "-c",
    default=None,
    help="Path to callmetrics config file.",
)
def status_command(config: str | None) -> None:
    """Show the resolved configuration."""
    cfg = _load_config(config)

    table = Table(title="callmetrics status", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="dim")
    table.add_column("Value")

    for key, value in cfg.model_dump().items():
        table.add_row(key, str(value))

    console.print(table)


# ---------------------------------------------------------------------------
# dump
# ---------------------------------------------------------------------------


@cli.command(name="dump")
@click.option(
    "--config",
    "-c",
    default=None,
    help="Path to callmetrics config file.",
)
@click.option(
    "--storage-dir",
    "-s",
    default=None,
    help="Snapshot directory; overrides the configured storage_dir.",
)
@click.option("--json", "as_json", is_flag=True, help="Print snapshots as JSON.")
def dump_command(config: str | None, storage_dir: str | None, as_json: bool) -> None:
    """Show every persisted metric snapshot."""
    directory = storage_dir if storage_dir is not None else _load_config(config).storage_dir
    storage = FileStorage(directory)

    snapshots: dict[str, MetricSnapshot | None] = {}
    for descriptor in _DESCRIPTORS:
        try:
            data = storage.read(descriptor.file_name)
            snapshots[descriptor.file_name] = decode_snapshot(data) if data is not None else None
        except CallMetricsError as exc:
            error_console.print(f"Cannot read {descriptor.file_name}: {exc}")
            snapshots[descriptor.file_name] = None

    if as_json:
        payload = {
            name: snapshot.model_dump() if snapshot is not None else None
            for name, snapshot in snapshots.items()
        }
        console.print_json(json.dumps(payload))
        return

    for descriptor in _DESCRIPTORS:
        snapshot = snapshots[descriptor.file_name]
        if snapshot is None or snapshot.is_empty():
            console.print(f"[dim]{descriptor.metric_id.value}: (no data)[/dim]")
            continue
        fields = descriptor.key_type._fields
        table = Table(
            title=f"{descriptor.metric_id.value} (last pull {snapshot.pull_timestamp_millis})",
            header_style="bold cyan",
        )
        for name in fields:
            table.add_column(name)
        table.add_column("count", justify="right")
        if descriptor.aggregate_type.has_average:
            table.add_column("average", justify="right")
        for entry in snapshot.entries:
            row = [str(entry.key.get(name, "")) for name in fields]
            row.append(str(entry.count))
            if descriptor.aggregate_type.has_average:
                row.append(str(entry.average or 0))
            table.add_row(*row)
        console.print(table)


if __name__ == "__main__":
    cli()
