# pharma_catalog/scrapers/salcobrand_scraper.py

"""Scraper for salcobrand.cl (Chile), a numbered page-turn listing."""

from playwright.async_api import Page

from pharma_catalog.scrapers.base_scraper import BaseScraper


class SalcobrandScraper(BaseScraper):
    """Salcobrand medicines listing (Algolia InstantSearch hits).

    The products-per-page select resets on some page turns, so the
    chosen size is checked again after every turn.
    """

    site_id = "salcobrand"

    async def prepare_listing(self, page: Page) -> None:
        await self.select_page_size(page)

    async def after_page_turn(self, page: Page) -> None:
        spec = self.config.page_size
        if spec is None or not spec.reapply:
            return
        current = await self.current_page_size(page)
        if current == spec.value:
            return
        self.logger.info(
            "[salcobrand] Page size reset to %s, selecting %s again",
            current, spec.value,
        )
        await self.select_page_size(page)
