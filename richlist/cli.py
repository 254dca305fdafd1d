"""Command line interface for the rich list service.

Usage:
    richlist refresh
    richlist height
    richlist top --limit 20
    richlist balances ADDRESS [ADDRESS ...]
    richlist serve --port 8000
"""

import sys
from argparse import ArgumentParser, Namespace
from asyncio import run

from rich.console import Console
from rich.table import Table

from richlist.balances.fetcher import fetch_balances_batch
from richlist.helpers.config import RichListSettings
from richlist.helpers.constants import DEFAULT_API_CONCURRENCY
from richlist.helpers.errors import RichListError
from richlist.helpers.parsers import format_sats
from richlist.helpers.progress import track_progress
from richlist.service import RichListService


console = Console()


async def refresh(service: RichListService) -> int:
    """Run one refresh cycle and print its metrics."""
    result = await service.refresh()
    if result.skipped:
        console.print(
            f"[yellow]No new blocks (height {result.height:,}), skipped[/yellow]"
        )
        return 0

    table = Table(title="Refresh Results")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Mode", result.mode.value)
    table.add_row("Height", f"{result.height:,}")
    table.add_row("Block gap", f"{result.block_gap:,}")
    table.add_row("Addresses checked", f"{result.total_addresses_checked:,}")
    table.add_row("New addresses", f"{result.new_addresses_discovered:,}")
    table.add_row("Entries", f"{result.count:,}")
    table.add_row("Time", f"{result.processing_time_seconds:.1f}s")
    console.print(table)
    console.print("\n[bold green]✓ Refresh complete[/bold green]")
    return 0


async def height(service: RichListService) -> int:
    console.print(f"Current height: [bold]{await service.get_height():,}[/bold]")
    return 0


async def top(service: RichListService, limit: int) -> int:
    """Print the head of the current snapshot."""
    snapshot = await service.get_snapshot()
    if snapshot is None:
        console.print("[yellow]No data yet. Run `richlist refresh` first.[/yellow]")
        return 1

    table = Table(title=f"Rich List at height {snapshot.height:,}")
    table.add_column("#", justify="right")
    table.add_column("Address")
    table.add_column("Balance", justify="right")
    table.add_column("Label")
    for rank, entry in enumerate(snapshot.entries[:limit], start=1):
        table.add_row(str(rank), entry.address, entry.balance, entry.label or "")
    console.print(table)
    console.print(f"[dim]Updated {snapshot.updated_at}[/dim]")
    return 0


async def balances(service: RichListService, addresses: list[str]) -> int:
    """Look up balances with a live progress bar."""
    with track_progress(
        "Fetching balances", total=len(addresses), console=console
    ) as (progress, task_id):
        records = await fetch_balances_batch(
            service.explorer,
            addresses,
            DEFAULT_API_CONCURRENCY,
            progress=progress,
            task_id=task_id,
        )

    table = Table(title="Balances")
    table.add_column("Address")
    table.add_column("Balance", justify="right")
    for record in records:
        table.add_row(record.address, format_sats(record.balance_sat))
    console.print(table)
    return 0


async def main(args: Namespace) -> int:
    """Dispatch a command.

    Returns:
        Process exit code
    """
    async with RichListService(RichListSettings.from_env()) as service:
        try:
            if args.command == "refresh":
                return await refresh(service)
            if args.command == "height":
                return await height(service)
            if args.command == "top":
                return await top(service, args.limit)
            if args.command == "balances":
                return await balances(service, args.addresses)
        except RichListError as e:
            console.print(f"[red]Error: {e}[/red]")
            return 1
    return 2


def serve(host: str, port: int) -> int:
    import uvicorn

    from richlist.api import create_app

    uvicorn.run(create_app(), host=host, port=port)
    return 0


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(description="Maintain a blockchain rich list")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("refresh", help="Run one refresh cycle")
    commands.add_parser("height", help="Print the current chain height")

    top_parser = commands.add_parser("top", help="Print the current rich list")
    top_parser.add_argument(
        "--limit", type=int, default=20, help="Entries to show (default: 20)"
    )

    balances_parser = commands.add_parser("balances", help="Look up address balances")
    balances_parser.add_argument("addresses", nargs="+", help="Addresses to look up")

    serve_parser = commands.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    return parser


def cli() -> None:
    args = build_parser().parse_args()
    if args.command == "serve":
        sys.exit(serve(args.host, args.port))
    sys.exit(run(main(args)))


if __name__ == "__main__":
    cli()
