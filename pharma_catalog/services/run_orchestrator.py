# pharma_catalog/services/run_orchestrator.py

"""Runs one scrape per site: build a new catalog or monitor prices."""

import asyncio
import importlib
import logging
from collections.abc import AsyncIterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from pharma_catalog.models.product import Product, utc_timestamp
from pharma_catalog.scrapers.base_scraper import BaseScraper
from pharma_catalog.scrapers.pagination import PageBatch
from pharma_catalog.services.price_monitor import PriceMonitor, PriceReport
from pharma_catalog.storage.catalog_store import Catalog, CatalogStore
from pharma_catalog.storage.price_history_store import PriceHistoryStore

logger = logging.getLogger("pharma_catalog.orchestrator")


class RunMode(str, Enum):
    """Build a first catalog, or compare against an existing one."""

    BUILD = "build"
    MONITOR = "monitor"


@dataclass
class RunSummary:
    """What happened during one site-run."""

    site: str
    mode: RunMode
    batches: int = 0
    scraped_products: int = 0
    new_products: int = 0
    total_products: int = 0
    missing_container_batches: int = 0
    report: PriceReport | None = None
    errors: list[str] = field(
        default_factory=lambda: list[str]()
    )

    @property
    def ok(self) -> bool:
        return not self.errors


def load_scraper_class(dotted_path: str) -> type[BaseScraper]:
    """Dynamically import a scraper class from its dotted module path."""
    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls: type[BaseScraper] = getattr(module, class_name)
    return cls


class CatalogRunOrchestrator:
    """Chooses the mode per site and drives the scraper through it."""

    def __init__(
        self,
        data_dir: Path | None = None,
        max_iterations: int | None = None,
        headless: bool | None = None,
    ) -> None:
        self.store = CatalogStore(data_dir)
        self.history_store = PriceHistoryStore(data_dir)
        self.monitor = PriceMonitor()
        self.max_iterations = max_iterations
        self.headless = headless

    # ── Flows ────────────────────────────────────────────

    def _track_batch(self, summary: RunSummary, batch: PageBatch) -> None:
        summary.batches += 1
        summary.scraped_products += len(batch.products)
        if not batch.container_found:
            summary.missing_container_batches += 1

    async def build_catalog(
        self,
        catalog: Catalog,
        batches: AsyncIterable[PageBatch],
        summary: RunSummary,
    ) -> None:
        """Append unseen products, checkpointing after every batch."""
        known = self.store.identifiers(catalog)
        if not self.history_store.exists(catalog.site):
            self.history_store.save(catalog.site, {})

        async for batch in batches:
            self._track_batch(summary, batch)
            fresh = self.store.filter_new(batch.products, known)
            logger.info(
                "[%s] Batch %d: %d scraped, %d unique new",
                catalog.site, batch.iteration, len(batch.products),
                len(fresh),
            )
            summary.new_products += self.store.append(catalog, fresh)

        summary.total_products = len(catalog)

    async def monitor_catalog(
        self,
        catalog: Catalog,
        batches: AsyncIterable[PageBatch],
        summary: RunSummary,
    ) -> None:
        """Collect the full current listing, then compare and persist."""
        current: list[Product] = []
        async for batch in batches:
            self._track_batch(summary, batch)
            current.extend(batch.products)

        history = self.history_store.load(catalog.site)
        result = self.monitor.compare(
            catalog.products, current, history, utc_timestamp(),
        )
        self.store.save(catalog)
        self.history_store.save(catalog.site, result.history)
        summary.report = self.monitor.build_report(result)
        summary.total_products = len(catalog)

    # ── Site runs ────────────────────────────────────────

    async def run_site(self, scraper: BaseScraper) -> RunSummary:
        """Scrape one site end to end.  Never raises; always closes."""
        site = scraper.site_id
        catalog = self.store.load(site)
        mode = RunMode.BUILD if catalog.is_first_build else RunMode.MONITOR
        summary = RunSummary(site=site, mode=mode)
        logger.info(
            "[%s] Starting %s run (%d stored products)",
            site, mode.value, len(catalog),
        )

        try:
            page = await scraper.open_listing()
            batches = scraper.paginator(page).batches()
            if mode is RunMode.BUILD:
                await self.build_catalog(catalog, batches, summary)
            else:
                await self.monitor_catalog(catalog, batches, summary)
        except Exception as exc:
            summary.errors.append(str(exc) or type(exc).__name__)
            logger.error(
                "[%s] Run aborted: %s", site, exc, exc_info=True,
            )
        finally:
            await scraper.close()

        if summary.missing_container_batches:
            logger.warning(
                "[%s] %d batch(es) had no listing container; selectors "
                "may be out of date",
                site, summary.missing_container_batches,
            )
        logger.info(
            "[%s] Finished %s run: %d new, %d total",
            site, mode.value, summary.new_products, summary.total_products,
        )
        return summary

    def create_scraper(
        self, site: dict[str, str], url: str | None = None,
    ) -> BaseScraper:
        scraper_cls = load_scraper_class(site["scraper"])
        return scraper_cls(
            url=url,
            max_iterations=self.max_iterations,
            headless=self.headless,
        )

    async def run_all(
        self,
        sites: list[dict[str, str]],
        url: str | None = None,
    ) -> list[RunSummary]:
        """Run every site concurrently; each owns its own browser."""
        async def run_one(site: dict[str, str]) -> RunSummary:
            scraper = self.create_scraper(site, url)
            return await self.run_site(scraper)

        outcomes: list[Any] = await asyncio.gather(
            *(run_one(site) for site in sites), return_exceptions=True,
        )

        summaries: list[RunSummary] = []
        for site, outcome in zip(sites, outcomes):
            if isinstance(outcome, RunSummary):
                summaries.append(outcome)
                continue
            logger.error(
                "[%s] Could not start run: %s",
                site["id"], outcome, exc_info=outcome,
            )
            summaries.append(RunSummary(
                site=site["id"],
                mode=RunMode.BUILD,
                errors=[str(outcome)],
            ))
        return summaries
