# pharma_catalog/cli/runner.py

"""Headless CLI runner: scrape sites, print reports, export, probe."""

import logging
from pathlib import Path

from rich.console import Console
from rich.table import Table

from pharma_catalog.config.settings import Settings
from pharma_catalog.models.price_history import Trend
from pharma_catalog.services.price_monitor import PriceReport
from pharma_catalog.services.run_orchestrator import (
    CatalogRunOrchestrator,
    RunMode,
    RunSummary,
)
from pharma_catalog.storage.catalog_store import CatalogStore

logger = logging.getLogger("pharma_catalog.cli")

# Stderr console for status messages so stdout carries only the report
_err = Console(stderr=True)


def resolve_sites(
    site_csv: str | None,
) -> list[dict[str, str]]:
    """Map a comma-separated list of site IDs to their config dicts.

    Returns all sites when *site_csv* is ``None``.
    Raises ``SystemExit`` on unknown IDs.
    """
    available = {
        s["id"]: s for s in Settings.AVAILABLE_SITES
    }
    if site_csv is None:
        return Settings.AVAILABLE_SITES

    requested = [
        s.strip() for s in site_csv.split(",") if s.strip()
    ]
    unknown = [r for r in requested if r not in available]
    if unknown:
        valid = ", ".join(sorted(available))
        _err.print(
            f"[red]Unknown site(s): {', '.join(unknown)}[/red]"
        )
        _err.print(f"[dim]Available: {valid}[/dim]")
        raise SystemExit(1)

    return [available[r] for r in requested]


def _print_report(
    site: str, report: PriceReport, console: Console,
) -> None:
    """Render a monitoring report for one site."""
    if not report.total_changes:
        console.print(
            f"[bold]{site}[/bold]: no price changes detected "
            f"in this monitoring cycle."
        )
    else:
        console.print(
            f"[bold]{site}[/bold]: {report.total_changes} price changes "
            f"([red]{len(report.increases)} up[/red], "
            f"[green]{len(report.decreases)} down[/green])"
        )
        changes = Table(
            title=f"Price Changes: {site}",
            show_lines=False,
            title_style="bold cyan",
        )
        changes.add_column("Product", max_width=60)
        changes.add_column("Old", justify="right")
        changes.add_column("New", justify="right")
        changes.add_column("Trend", justify="center")
        for event in report.increases + report.decreases:
            arrow = (
                "[red]▲[/red]" if event.trend is Trend.INCREASED
                else "[green]▼[/green]"
            )
            changes.add_row(
                event.title[:60], event.old_price, event.new_price, arrow,
            )
        console.print(changes)

    if report.top_products:
        top = Table(
            title="Most Frequent Price Changes",
            title_style="bold cyan",
        )
        top.add_column("#", style="dim", width=4)
        top.add_column("Product", max_width=60)
        top.add_column("Changes", justify="right")
        top.add_column("Latest Price", justify="right", style="green")
        for idx, item in enumerate(report.top_products, 1):
            top.add_row(
                str(idx), item.title[:60], str(item.change_count),
                item.latest_price,
            )
        console.print(top)

    if report.not_found:
        console.print(
            f"[yellow]{report.not_found} stored product(s) not found "
            f"in the current listing[/yellow]"
        )
    if report.unseen_listings:
        console.print(
            f"[dim]{report.unseen_listings} listed product(s) are not "
            f"in the catalog yet[/dim]"
        )


def print_summaries(
    summaries: list[RunSummary], console: Console | None = None,
) -> None:
    """Render the run table and any monitoring reports to stdout."""
    out = console or Console()
    table = Table(
        title="Catalog Runs",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Site", style="bold")
    table.add_column("Mode", justify="center")
    table.add_column("Batches", justify="right")
    table.add_column("Scraped", justify="right")
    table.add_column("New", justify="right", style="green")
    table.add_column("Total", justify="right")
    table.add_column("Notes", style="dim")

    for s in summaries:
        notes: list[str] = []
        if s.errors:
            notes.append(f"[red]failed: {s.errors[0][:60]}[/red]")
        if s.missing_container_batches:
            notes.append(
                f"{s.missing_container_batches} batch(es) without "
                f"container"
            )
        table.add_row(
            s.site,
            s.mode.value,
            str(s.batches),
            str(s.scraped_products),
            str(s.new_products) if s.mode is RunMode.BUILD else "—",
            str(s.total_products),
            "; ".join(notes),
        )
    out.print(table)

    for s in summaries:
        if s.report is not None:
            _print_report(s.site, s.report, out)


async def cli_run(
    site_csv: str | None,
    max_iterations: int | None = None,
    headful: bool = False,
    data_dir: str | None = None,
    url: str | None = None,
) -> int:
    """Scrape the selected sites and return an exit code (0=ok, 1=fail)."""
    sites = resolve_sites(site_csv)
    if url is not None and len(sites) != 1:
        _err.print("[red]--url needs exactly one site (-s).[/red]")
        return 1

    orchestrator = CatalogRunOrchestrator(
        data_dir=Path(data_dir) if data_dir else None,
        max_iterations=max_iterations,
        headless=False if headful else None,
    )

    site_labels = ", ".join(s["label"] for s in sites)
    _err.print(f"[bold]Scraping:[/bold] {site_labels}")

    summaries = await orchestrator.run_all(sites, url=url)

    for s in summaries:
        for error_msg in s.errors:
            _err.print(f"[red]{s.site}: {error_msg}[/red]")
        if s.ok:
            _err.print(
                f"[green]✓ {s.site}: {s.mode.value}, "
                f"{s.total_products} products stored[/green]"
            )

    print_summaries(summaries)
    return 0 if all(s.ok for s in summaries) else 1


def run_export_csv(
    site_csv: str | None, data_dir: str | None = None,
) -> int:
    """Export stored catalogs to CSV without scraping."""
    sites = resolve_sites(site_csv)
    store = CatalogStore(Path(data_dir) if data_dir else None)

    exported = 0
    for site in sites:
        catalog = store.load(site["id"])
        if catalog.is_first_build:
            _err.print(
                f"[yellow]{site['id']}: no stored catalog.[/yellow]"
            )
            continue
        path = store.files.export_csv(site["id"], catalog.products)
        _err.print(f"[dim]Exported {site['id']} → {path}[/dim]")
        exported += 1

    return 0 if exported else 1


async def run_health_check(
    site_csv: str | None, headful: bool = False,
) -> int:
    """Probe each site's selectors against the live listing."""
    from pharma_catalog.services.health_checker import (
        STATUS_DOWN,
        STATUS_OK,
        HealthChecker,
    )

    _err.print("[bold]Running selector health check...[/bold]")
    checker = HealthChecker(
        resolve_sites(site_csv), headless=False if headful else None,
    )
    results = await checker.check_all()

    table = Table(
        title="Site Health Check",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Site", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Items", justify="right")
    table.add_column("Latency", justify="right")
    table.add_column("Notes", style="dim")

    any_failed = False
    for r in results:
        if r.status == STATUS_OK:
            status = "[green]✅ OK[/green]"
        elif r.status == STATUS_DOWN:
            status = "[red]❌ DOWN[/red]"
            any_failed = True
        else:
            status = "[yellow]⚠️  DEGRADED[/yellow]"
            any_failed = True

        latency = (
            f"{r.latency_ms:.0f}ms"
            if r.latency_ms > 0
            else "—"
        )
        table.add_row(
            r.site_id, status, str(r.items), latency, r.message,
        )

    Console().print(table)
    return 1 if any_failed else 0
