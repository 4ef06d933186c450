"""Entry point for the Vigil uptime monitor."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from src.config import settings
from src.monitor.errors import FatalFailure, ValidationFailure
from src.monitor.models import ProbeOutcome
from src.monitor.prober import Prober
from src.monitor.scheduler import MonitorScheduler
from src.monitor.store import MonitorStore

console = Console()
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)


def open_store() -> MonitorStore:
    try:
        return MonitorStore(settings.db_path)
    except FatalFailure as e:
        console.print(f"[bold red]{e}[/bold red]")
        sys.exit(2)


def run_server() -> None:
    """Start the FastAPI server (scheduler runs in its lifespan)."""
    console.print(Panel("Starting Vigil uptime monitor", style="bold green"))
    uvicorn.run(
        "src.api.server:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
    )


async def _check_once(store: MonitorStore) -> list[ProbeOutcome]:
    prober = Prober(timeout=settings.probe_timeout)
    try:
        scheduler = MonitorScheduler(
            store,
            prober,
            max_concurrency=settings.max_concurrent_probes,
            success_status=settings.success_status,
        )
        return await scheduler.run_cycle()
    finally:
        await prober.close()


def run_check() -> None:
    """Run a single cycle and print the outcomes."""
    store = open_store()
    with console.status("[bold green]Probing targets..."):
        outcomes = asyncio.run(_check_once(store))

    table = Table(title="Check results")
    table.add_column("Alias")
    table.add_column("Status", justify="right")
    table.add_column("Latency", justify="right")
    table.add_column("Error")
    for o in outcomes:
        style = "green" if o.is_success(settings.success_status) else "red"
        table.add_row(o.target_alias, f"[{style}]{o.status}[/{style}]", f"{o.latency_ms:.0f}ms", o.error)
    console.print(table)


def run_targets(args: argparse.Namespace) -> None:
    store = open_store()

    if args.action == "add":
        try:
            target = store.insert_target(args.alias, args.url)
        except ValidationFailure as e:
            console.print(f"[bold red]Rejected:[/bold red] {e}")
            sys.exit(1)
        console.print(f"Added [bold]{target.alias}[/bold] → {target.url}")
    elif args.action == "remove":
        if not store.delete_target(args.alias):
            console.print(f"[yellow]No such target: {args.alias}[/yellow]")
            sys.exit(1)
        console.print(f"Removed [bold]{args.alias}[/bold]")
    else:
        table = Table(title="Targets")
        table.add_column("Alias")
        table.add_column("URL")
        table.add_column("Created")
        for t in store.list_targets():
            table.add_row(t.alias, t.url, t.created_at)
        console.print(table)


def main() -> None:
    parser = argparse.ArgumentParser(description="Vigil uptime monitor")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("serve", help="Start the API server and monitor loop")
    sub.add_parser("check", help="Probe every target once and record the results")

    targets_parser = sub.add_parser("targets", help="Manage monitored targets")
    targets_sub = targets_parser.add_subparsers(dest="action")
    targets_sub.add_parser("list", help="List targets")
    add_parser = targets_sub.add_parser("add", help="Register a target")
    add_parser.add_argument("alias")
    add_parser.add_argument("url")
    remove_parser = targets_sub.add_parser("remove", help="Delete a target and its history")
    remove_parser.add_argument("alias")

    args = parser.parse_args()

    if args.command == "serve":
        run_server()
    elif args.command == "check":
        run_check()
    elif args.command == "targets":
        run_targets(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
