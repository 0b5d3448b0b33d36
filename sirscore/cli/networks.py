"""CLI commands for live network data.

Commands:
    - list: Supported networks and their upstream sources
    - snapshot: One live snapshot per network (table or JSON)
    - developers: Developer activity snapshot per network
    - watch: Poll networks and print every update until Ctrl-C

Rules Applied:
    - Typer CLI: Annotated syntax, Rich UI, asyncio.run per command
"""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Annotated

import typer
from prometheus_client import start_http_server
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from sirscore.config.settings import get_settings
from sirscore.core.exceptions import ConfigurationError
from sirscore.core.logger import setup_logger, setup_logger_from_config
from sirscore.data.client import AsyncUpstreamClient
from sirscore.data.models import DEVELOPER_METRIC_FIELDS, NETWORK_METRIC_FIELDS, DataQuality
from sirscore.logging.config import get_logging_config
from sirscore.live.monitor import NetworkMonitor
from sirscore.monitoring.metrics import PrometheusUpstreamCallback
from sirscore.networks.developer import DEVELOPER_BASELINES, DeveloperActivityFetcher
from sirscore.networks.registry import available_networks, create_fetcher, get_profile

if TYPE_CHECKING:
    from sirscore.data.models import DeveloperActivitySnapshot, NetworkSnapshot

console = Console()

app = typer.Typer(
    name="networks",
    help="Live network data (TPS, gas, market, TVL) with live/estimated labels",
    no_args_is_help=True,
)

NetworksArg = Annotated[
    list[str] | None,
    typer.Argument(help="Network ids (default: all supported networks)"),
]
VerboseOpt = Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose logging")]


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------


def _badge(quality: DataQuality) -> str:
    if quality is DataQuality.LIVE:
        return "[green]live[/green]"
    return "[yellow]estimated[/yellow]"


def _display(value: object) -> str:
    return "-" if value is None else str(value)


def _display_count(value: object) -> str:
    return f"{value:,}" if isinstance(value, int) else str(value)


def _snapshot_table(snapshot: NetworkSnapshot) -> Table:
    profile = get_profile(snapshot.network)
    live = f"{len(snapshot.live_fields)}/{len(NETWORK_METRIC_FIELDS)} live"
    title = f"{profile.display_name} ({live})"
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Field", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Quality")

    for field in NETWORK_METRIC_FIELDS:
        value = _display(getattr(snapshot, field))
        table.add_row(field, value, _badge(snapshot.data_quality[field]))

    table.caption = f"updated {snapshot.last_updated.isoformat(timespec='seconds')}"
    if snapshot.error:
        table.caption += f" | [red]fallback: {escape(snapshot.error)}[/red]"
    return table


def _developer_table(snapshots: list[DeveloperActivitySnapshot]) -> Table:
    table = Table(title="Developer Activity", show_header=True, header_style="bold magenta")
    table.add_column("Network", style="cyan")
    for field in DEVELOPER_METRIC_FIELDS:
        table.add_column(field.replace("_", " ").title(), justify="right")

    for snap in snapshots:
        cells = [
            f"{_display_count(getattr(snap, field))} {_badge(snap.data_quality[field])}"
            for field in DEVELOPER_METRIC_FIELDS
        ]
        table.add_row(snap.network, *cells)
    return table


def _summary_line(network_id: str, snapshot: NetworkSnapshot) -> str:
    live = len(snapshot.live_fields)
    return (
        f"[cyan]{network_id:<9}[/cyan] tps={_display(snapshot.tps):>8} "
        f"gas={_display(snapshot.gas_price):>10} mcap={snapshot.market_cap:>8} "
        f"tvl={snapshot.tvl:>8} [dim]{live}/{len(NETWORK_METRIC_FIELDS)} live[/dim]"
    )


def _resolve_networks(networks: list[str] | None, known: list[str]) -> list[str]:
    if not networks:
        return list(known)
    resolved = [n.lower() for n in networks]
    unknown = [n for n in resolved if n not in known]
    if unknown:
        raise ConfigurationError(
            f"Unknown network(s): {', '.join(unknown)}",
            context={"available": ", ".join(known)},
        )
    return resolved


def _setup(verbose: bool) -> None:
    settings = get_settings()
    setup_logger(
        log_dir=settings.log_dir,
        console_level="DEBUG" if verbose else "WARNING",
        file_logs=verbose,
    )


def _setup_watch(verbose: bool) -> None:
    """watch는 장기 실행: LOG_* 설정 전체 (rotation, JSON 파일 등)를 따름."""
    config = get_logging_config().model_copy(
        update={
            "log_dir": get_settings().log_dir,
            "console_level": "DEBUG" if verbose else "WARNING",
        }
    )
    setup_logger_from_config(config)


# ---------------------------------------------------------------------------
# list command
# ---------------------------------------------------------------------------


@app.command("list")
def list_networks() -> None:
    """List supported networks and their upstream sources."""
    table = Table(title="Supported Networks", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Sources")
    table.add_column("Finality", justify="right")
    table.add_column("Developer Data", justify="center")

    for network_id in available_networks():
        profile = get_profile(network_id)
        table.add_row(
            network_id,
            profile.display_name,
            ", ".join(profile.sources),
            profile.finality,
            "[green]yes[/green]" if network_id in DEVELOPER_BASELINES else "-",
        )
    console.print(table)


# ---------------------------------------------------------------------------
# snapshot command
# ---------------------------------------------------------------------------


async def _fetch_snapshots(network_ids: list[str]) -> list[NetworkSnapshot]:
    """선택한 네트워크의 스냅샷을 동시에 1회 조회."""
    settings = get_settings()
    async with AsyncUpstreamClient(settings) as client:
        fetchers = [create_fetcher(n, client, settings) for n in network_ids]
        return list(await asyncio.gather(*(f.fetch_snapshot() for f in fetchers)))


@app.command()
def snapshot(
    networks: NetworksArg = None,
    as_json: Annotated[
        bool, typer.Option("--json", "-j", help="Print JSON instead of tables")
    ] = False,
    verbose: VerboseOpt = False,
) -> None:
    """Fetch one live snapshot per network.

    Example:
        sirscore networks snapshot ethereum solana
        sirscore networks snapshot --json
    """
    _setup(verbose)
    try:
        network_ids = _resolve_networks(networks, available_networks())
        snapshots = asyncio.run(_fetch_snapshots(network_ids))
    except Exception as e:
        console.print(f"[bold red]Snapshot failed:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e

    if as_json:
        payload = {s.network: s.model_dump(mode="json") for s in snapshots}
        typer.echo(json.dumps(payload, indent=2))
        return

    for snap in snapshots:
        console.print(_snapshot_table(snap))


# ---------------------------------------------------------------------------
# developers command
# ---------------------------------------------------------------------------


async def _fetch_developers(network_ids: list[str]) -> list[DeveloperActivitySnapshot]:
    settings = get_settings()
    async with AsyncUpstreamClient(settings) as client:
        fetcher = DeveloperActivityFetcher(client, settings)
        return [await fetcher.fetch_snapshot(n) for n in network_ids]


@app.command()
def developers(
    networks: NetworksArg = None,
    as_json: Annotated[
        bool, typer.Option("--json", "-j", help="Print JSON instead of a table")
    ] = False,
    verbose: VerboseOpt = False,
) -> None:
    """Developer activity (GitHub repository search + baseline figures).

    Example:
        sirscore networks developers ethereum sui
    """
    _setup(verbose)
    try:
        network_ids = _resolve_networks(networks, list(DEVELOPER_BASELINES))
        snapshots = asyncio.run(_fetch_developers(network_ids))
    except Exception as e:
        console.print(f"[bold red]Developer activity failed:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e

    if as_json:
        payload = {s.network: s.model_dump(mode="json") for s in snapshots}
        typer.echo(json.dumps(payload, indent=2))
        return
    console.print(_developer_table(snapshots))


# ---------------------------------------------------------------------------
# watch command
# ---------------------------------------------------------------------------


async def _watch(
    network_ids: list[str],
    interval: float,
    *,
    include_developers: bool,
    metrics_port: int,
) -> None:
    settings = get_settings()
    metrics = None
    if metrics_port:
        start_http_server(metrics_port)
        metrics = PrometheusUpstreamCallback()
        console.print(f"[blue]Metrics[/blue] http://localhost:{metrics_port}/metrics")

    monitor = NetworkMonitor(
        network_ids,
        settings,
        interval=interval,
        include_developers=include_developers,
        metrics=metrics,
    )
    monitor.add_listener(lambda network_id, snap: console.print(_summary_line(network_id, snap)))
    monitor.add_developer_listener(
        lambda snaps: console.print(_developer_table(list(snaps.values())))
    )

    async with monitor:
        await asyncio.Event().wait()


@app.command()
def watch(
    networks: NetworksArg = None,
    interval: Annotated[
        float, typer.Option("--interval", "-i", min=1.0, help="Polling interval (seconds)")
    ] = 30.0,
    developers_flag: Annotated[
        bool, typer.Option("--developers", help="Also poll developer activity")
    ] = False,
    metrics_port: Annotated[
        int, typer.Option("--metrics-port", help="Expose Prometheus /metrics (0 = off)")
    ] = 0,
    verbose: VerboseOpt = False,
) -> None:
    """Poll networks and print every new snapshot until Ctrl-C.

    Example:
        sirscore networks watch ethereum base --interval 15 --metrics-port 9100
    """
    _setup_watch(verbose)
    try:
        network_ids = _resolve_networks(networks, available_networks())
    except ConfigurationError as e:
        console.print(f"[bold red]{escape(str(e))}[/bold red]")
        raise typer.Exit(code=1) from e

    console.print(
        Panel.fit(
            f"[bold]Watching[/bold] {', '.join(network_ids)}\nInterval: {interval:g}s",
            border_style="magenta",
        )
    )
    try:
        asyncio.run(
            _watch(
                network_ids,
                interval,
                include_developers=developers_flag,
                metrics_port=metrics_port,
            )
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped[/yellow]")
    except Exception as e:
        console.print(f"\n[bold red]Watch failed:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e
