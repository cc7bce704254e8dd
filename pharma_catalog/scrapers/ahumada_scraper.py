# pharma_catalog/scrapers/ahumada_scraper.py

"""Scraper for farmaciasahumada.cl (Chile), a "load more" listing."""

from playwright.async_api import Page

from pharma_catalog.scrapers.base_scraper import BaseScraper


class AhumadaScraper(BaseScraper):
    """Farmacias Ahumada medicines listing.

    The grid starts with one block of tiles and appends another block
    every time "Más Resultados" is clicked; the URL never changes.
    """

    site_id = "ahumada"

    async def prepare_listing(self, page: Page) -> None:
        # Tiles are lazy-rendered after the container shows up.
        if await self.waiter.wait_for_any(
            page, self.config.listing.ready_selectors,
        ):
            count = await self.waiter.wait_until_stable(
                page, self.config.listing.count_selector,
            )
            self.logger.info("[ahumada] %d tiles on first load", count)
