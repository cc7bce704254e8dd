# pharma_catalog/scrapers/cruz_verde_scraper.py

"""Scraper for cruzverde.cl (Chile), a numbered page-turn listing."""

from playwright.async_api import Page

from pharma_catalog.scrapers.base_scraper import BaseScraper


class CruzVerdeScraper(BaseScraper):
    """Cruz Verde category listing.

    Product cards live inside Angular custom elements; the page-size
    control is a custom dropdown rather than a native ``<select>``.
    """

    site_id = "cruz_verde"

    async def prepare_listing(self, page: Page) -> None:
        """Switch the grid to 48 products per page before reading it."""
        await self.waiter.wait_for_any(
            page, self.config.listing.ready_selectors,
        )
        await self.select_page_size(page)
