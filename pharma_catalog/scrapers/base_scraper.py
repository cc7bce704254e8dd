# pharma_catalog/scrapers/base_scraper.py

"""Abstract base class for all pharmacy storefront scrapers."""

import logging
from abc import ABC, abstractmethod

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    async_playwright,
)
from playwright.async_api import Error as PlaywrightError

from pharma_catalog.config.settings import Settings
from pharma_catalog.scrapers.extractor import FieldExtractor
from pharma_catalog.scrapers.locators import LocatorResolver
from pharma_catalog.scrapers.page_waits import PageWaiter
from pharma_catalog.scrapers.pagination import (
    LoadMorePaginator,
    PageTurnPaginator,
    PaginationController,
)
from pharma_catalog.scrapers.site_config import (
    PAGINATION_LOAD_MORE,
    ControlSpec,
    SiteConfig,
    load_site_config,
)


class BaseScraper(ABC):
    """Drives one browser session against one storefront listing.

    Subclasses set ``site_id`` and implement :meth:`prepare_listing`
    for whatever the site needs between consent and pagination.
    """

    site_id: str = ""

    def __init__(
        self,
        url: str | None = None,
        max_iterations: int | None = None,
        headless: bool | None = None,
        config: SiteConfig | None = None,
    ) -> None:
        self.logger = logging.getLogger(f"pharma_catalog.{self.site_id}")
        self.settings = Settings()
        self.config = config or load_site_config(self.site_id)
        self.url = url or self._default_url()
        self.max_iterations = max_iterations
        self.headless = (
            self.settings.HEADLESS if headless is None else headless
        )
        self.resolver = LocatorResolver(self.site_id)
        self.extractor = FieldExtractor(self.config)
        self.waiter = PageWaiter(self.site_id)
        self.listing_checked = False

        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None

    def _default_url(self) -> str:
        """Listing URL registered for this site in Settings."""
        for site in self.settings.AVAILABLE_SITES:
            if site["id"] == self.site_id:
                return site["url"]
        msg = f"Site '{self.site_id}' is not registered"
        raise KeyError(msg)

    # ------------------------------------------------------------------
    # Browser lifecycle
    # ------------------------------------------------------------------

    async def _launch_browser(self) -> BrowserContext:
        """Launch Chromium and return a Chilean-locale context."""
        if self._context is not None:
            return self._context

        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.headless,
        )
        self._context = await self._browser.new_context(
            viewport=self.settings.VIEWPORT,
            locale=self.settings.LOCALE,
            timezone_id=self.settings.TIMEZONE,
            user_agent=self.settings.USER_AGENT,
        )
        self._context.set_default_timeout(
            self.settings.NAVIGATION_TIMEOUT * 1000
        )
        self.logger.debug(
            "[%s] Browser launched (headless=%s)",
            self.site_id, self.headless,
        )
        return self._context

    async def new_page(self) -> Page:
        """Create a new page in the shared browser context."""
        ctx = await self._launch_browser()
        return await ctx.new_page()

    async def close(self) -> None:
        """Shut the browser down; safe to call more than once."""
        steps = (
            ("context", self._context.close if self._context else None),
            ("browser", self._browser.close if self._browser else None),
            ("playwright", self._playwright.stop if self._playwright else None),
        )
        self._context = None
        self._browser = None
        self._playwright = None
        for name, step in steps:
            if step is None:
                continue
            try:
                await step()
            except PlaywrightError as exc:
                self.logger.warning(
                    "[%s] Error while closing %s: %s",
                    self.site_id, name, exc,
                )
        self.logger.debug("[%s] Browser closed", self.site_id)

    # ------------------------------------------------------------------
    # Listing preparation
    # ------------------------------------------------------------------

    async def navigate(self, page: Page) -> None:
        """Open the listing URL.  Raises if the site is unreachable."""
        await page.goto(
            self.url,
            wait_until="domcontentloaded",
            timeout=self.settings.NAVIGATION_TIMEOUT * 1000,
        )
        await self.waiter.wait_for_load(page)
        self.logger.info("[%s] Loaded %s", self.site_id, self.url)

    async def accept_consent(self, page: Page) -> bool:
        """Dismiss the cookie banner if one shows up.  Never fatal."""
        consent = self.config.consent
        if consent.is_empty:
            return False
        if consent.selectors:
            await self.waiter.wait_for_any(
                page,
                consent.selectors,
                timeout=self.settings.CONSENT_TIMEOUT,
            )
        match = await self.resolver.click_first(
            page, consent, purpose="cookie consent",
        )
        if match is None:
            self.logger.info(
                "[%s] Continuing without accepting cookies", self.site_id,
            )
            return False
        await self.waiter.settle()
        return True

    async def wait_for_listing(self, page: Page) -> bool:
        """Race the primary and alternative containers; reload once."""
        selectors = self.config.listing.ready_selectors
        if await self.waiter.wait_for_any(page, selectors):
            return True
        self.logger.warning(
            "[%s] Listing not ready, reloading once", self.site_id,
        )
        if not await self.waiter.reload(page):
            return False
        return await self.waiter.wait_for_any(page, selectors) is not None

    async def select_page_size(self, page: Page) -> bool:
        """Pick the configured products-per-page value.  Best effort."""
        spec = self.config.page_size
        if spec is None:
            return False

        for selector in spec.select:
            try:
                await page.select_option(
                    selector,
                    spec.value,
                    timeout=self.settings.CONSENT_TIMEOUT * 1000,
                )
            except PlaywrightError as exc:
                self.logger.debug(
                    "[%s] Page-size select '%s' failed: %s",
                    self.site_id, selector, exc,
                )
                continue
            self.logger.info(
                "[%s] Page size set to %s via '%s'",
                self.site_id, spec.value, selector,
            )
            await self.waiter.wait_for_load(page)
            await self.waiter.settle()
            return True

        if spec.opener:
            opened = await self.resolver.click_first(
                page,
                ControlSpec(selectors=spec.opener),
                purpose="page-size dropdown",
            )
            if opened is not None:
                await self.waiter.settle()
                option = ControlSpec(
                    selectors=spec.option,
                    texts=spec.option_texts,
                    exact_text=True,
                    text_scope=spec.option_scope,
                )
                if await self.resolver.click_first(
                    page, option, purpose=f"page-size option {spec.value}",
                ):
                    await self.waiter.wait_for_load(page)
                    await self.waiter.settle()
                    return True

        self.logger.info(
            "[%s] Could not set page size to %s", self.site_id, spec.value,
        )
        return False

    async def current_page_size(self, page: Page) -> str | None:
        """Value currently shown by a native page-size select, if any."""
        spec = self.config.page_size
        if spec is None:
            return None
        for selector in spec.select:
            try:
                value = await page.eval_on_selector(
                    selector, "(el) => el.value",
                )
            except PlaywrightError:
                continue
            return str(value) if value is not None else None
        return None

    @abstractmethod
    async def prepare_listing(self, page: Page) -> None:
        """Site-specific work after consent, before pagination starts."""
        ...

    async def after_page_turn(self, page: Page) -> None:
        """Hook run after every successful page turn."""
        return None

    async def open_listing(self) -> Page:
        """Navigate, dismiss consent, prepare, and wait for the listing."""
        page = await self.new_page()
        await self.navigate(page)
        await self.accept_consent(page)
        await self.prepare_listing(page)
        await self.wait_for_listing(page)
        self.listing_checked = True
        return page

    def paginator(self, page: Page) -> PaginationController:
        """Build the pagination controller this site uses."""
        cls: type[PaginationController] = (
            LoadMorePaginator
            if self.config.pagination == PAGINATION_LOAD_MORE
            else PageTurnPaginator
        )
        return cls(
            page,
            self.config,
            self.resolver,
            self.extractor,
            self.waiter,
            max_iterations=self.max_iterations,
            after_turn=self.after_page_turn,
            first_page_ready=self.listing_checked,
        )
