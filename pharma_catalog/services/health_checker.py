# pharma_catalog/services/health_checker.py

"""Selector health probe: does each site still render a readable listing?"""

import asyncio
import logging
import time
from dataclasses import dataclass

from pharma_catalog.config.settings import Settings
from pharma_catalog.scrapers.base_scraper import BaseScraper
from pharma_catalog.services.run_orchestrator import load_scraper_class

logger = logging.getLogger("pharma_catalog.health")

STATUS_OK = "ok"
STATUS_DEGRADED = "degraded"
STATUS_DOWN = "down"


@dataclass
class HealthResult:
    """Result of a single site health check."""

    site_id: str
    status: str  # "ok", "degraded", "down"
    latency_ms: float
    items: int
    message: str


async def probe_scraper(scraper: BaseScraper) -> HealthResult:
    """Open the first listing page and extract it once."""
    site_id = scraper.site_id
    start = time.monotonic()
    try:
        page = await scraper.open_listing()
        batch = await scraper.paginator(page).extract_current()
    except Exception as exc:
        return HealthResult(
            site_id=site_id,
            status=STATUS_DOWN,
            latency_ms=(time.monotonic() - start) * 1000,
            items=0,
            message=str(exc)[:80],
        )
    finally:
        await scraper.close()

    elapsed_ms = (time.monotonic() - start) * 1000
    if not batch.container_found:
        return HealthResult(
            site_id=site_id,
            status=STATUS_DEGRADED,
            latency_ms=elapsed_ms,
            items=0,
            message="Listing container not found",
        )
    if not batch.products:
        return HealthResult(
            site_id=site_id,
            status=STATUS_DEGRADED,
            latency_ms=elapsed_ms,
            items=0,
            message="Container found but no products extracted",
        )

    missing_ids = sum(1 for p in batch.products if not p.has_identifier)
    return HealthResult(
        site_id=site_id,
        status=STATUS_OK,
        latency_ms=elapsed_ms,
        items=len(batch.products),
        message=(
            f"{missing_ids} item(s) without identifier" if missing_ids
            else ""
        ),
    )


async def probe_site(
    site: dict[str, str], headless: bool | None = None,
) -> HealthResult:
    """Load the site's scraper and probe it."""
    try:
        scraper_cls = load_scraper_class(site["scraper"])
        scraper = scraper_cls(headless=headless)
    except Exception as exc:
        return HealthResult(
            site_id=site["id"],
            status=STATUS_DOWN,
            latency_ms=0.0,
            items=0,
            message=f"Failed to load scraper: {exc}",
        )
    return await probe_scraper(scraper)


class HealthChecker:
    """Runs concurrent health probes against all sites."""

    def __init__(
        self,
        sites: list[dict[str, str]] | None = None,
        headless: bool | None = None,
    ) -> None:
        self.sites = sites if sites is not None else Settings.AVAILABLE_SITES
        self.headless = headless

    async def check_all(self) -> list[HealthResult]:
        """Probe every registered site concurrently."""
        results: list[HealthResult] = list(
            await asyncio.gather(
                *(probe_site(site, self.headless) for site in self.sites)
            )
        )
        for r in results:
            logger.info(
                "Health check %s: %s (%.0fms, %d items) %s",
                r.site_id,
                r.status,
                r.latency_ms,
                r.items,
                r.message,
            )
        return results
