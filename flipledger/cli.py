"""Command line helpers for flipledger."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from random import Random

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .app import LedgerApp
from .config import FlipLedgerConfig
from .diagnostics.checklist import run_checklist as checklist_run
from .diagnostics.distribution import DrawSimulator
from .loaders import validate_catalog_file
from .validators import validate_app

console = Console()

_SEVERITY_STYLE = {"error": "bold red", "warning": "yellow", "info": "cyan"}


def run_simulator() -> None:
    parser = argparse.ArgumentParser(description="flipledger pack odds simulator")
    parser.add_argument("pack_id", help="Pack type to simulate")
    parser.add_argument("--packs", type=int, default=2000, help="Number of packs to open")
    parser.add_argument("--catalog", help="Catalog JSON file (defaults to FLIPLEDGER_CATALOG_PATH)")
    parser.add_argument("--seed", type=int, help="RNG seed for a reproducible run")
    args = parser.parse_args()

    app = _build_app(args.catalog)
    simulator = DrawSimulator(app.catalog, rng=Random(args.seed))
    result = simulator.simulate(args.pack_id, packs=args.packs)

    table = Table(title=f"{result.pack_id}: {result.packs} packs, {result.draws} cards")
    table.add_column("Tier")
    table.add_column("Expected", justify="right")
    table.add_column("Observed", justify="right")
    table.add_column("Cards", justify="right")
    tiers = list(result.expected_shares) + [
        tier for tier in result.tier_counts if tier not in result.expected_shares
    ]
    for tier in tiers:
        table.add_row(
            tier,
            f"{result.expected_shares.get(tier, 0.0):.2%}",
            f"{result.observed_share(tier):.2%}",
            str(result.tier_counts.get(tier, 0)),
        )
    console.print(table)
    console.print(
        f"chi-squared {result.chi_squared:.3f} with {result.degrees_of_freedom} degrees of freedom"
    )
    if result.fallbacks:
        console.print(
            f"[yellow]{result.fallbacks} draws fell back to the full catalog; "
            "tier odds above are skewed.[/yellow]"
        )


def run_checklist() -> None:
    parser = argparse.ArgumentParser(description="flipledger balance checks")
    parser.add_argument("--catalog", help="Catalog JSON file (defaults to FLIPLEDGER_CATALOG_PATH)")
    args = parser.parse_args()

    app = _build_app(args.catalog)
    issues = checklist_run(app)
    if not issues:
        console.print("[green]No issues found.[/green]")
        return
    for issue in issues:
        style = _SEVERITY_STYLE.get(issue.severity, "")
        console.print(f"[{style}]{issue.severity.upper()}[/{style}] {issue.message}")
    if any(issue.severity == "error" for issue in issues):
        sys.exit(1)


def run_validate() -> None:
    parser = argparse.ArgumentParser(description="flipledger validator")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--catalog", help="Path to catalog JSON file for validation")
    group.add_argument(
        "--app",
        action="store_true",
        help="Validate the application configured from FLIPLEDGER_* variables",
    )
    args = parser.parse_args()

    if args.catalog:
        errors = validate_catalog_file(Path(args.catalog))
        if errors:
            console.print("[bold red]Catalog errors:[/bold red]")
            for err in errors:
                console.print(f"- {err}")
            sys.exit(1)
        console.print("[green]Catalog is valid.[/green]")
        return

    app = _build_app(None)
    issues = validate_app(app)
    if issues:
        console.print("[bold red]Configuration errors:[/bold red]")
        for issue in issues:
            console.print(f"- {issue}")
        sys.exit(1)
    console.print("[green]Configuration is valid.[/green]")


def run_server() -> None:
    import uvicorn

    from .api import create_app

    parser = argparse.ArgumentParser(description="flipledger HTTP server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--catalog", help="Catalog JSON file (defaults to FLIPLEDGER_CATALOG_PATH)")
    args = parser.parse_args()

    app = _build_app(args.catalog)
    uvicorn.run(create_app(app), host=args.host, port=args.port, log_config=None)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def _build_app(catalog: str | None) -> LedgerApp:
    config = FlipLedgerConfig.from_env()
    if catalog:
        config.catalog_path = catalog
    configure_logging(config.log_level)
    return LedgerApp(config)
