# pharma_catalog/scrapers/pagination.py

"""Pagination controllers: "load more" append and page-turn variants.

Both are async generators of :class:`PageBatch` objects so the caller
can checkpoint after each batch (build mode) or collect everything
before comparing (monitoring mode).  Both stop at the configured
iteration cap, where one iteration is one pagination action.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum, auto

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from pharma_catalog.config.settings import Settings
from pharma_catalog.models.product import Product
from pharma_catalog.scrapers.extractor import FieldExtractor, ListingBatch
from pharma_catalog.scrapers.locators import LocatorResolver
from pharma_catalog.scrapers.page_waits import PageWaiter
from pharma_catalog.scrapers.site_config import SiteConfig

_SCROLL_BOTTOM_JS = "() => window.scrollTo(0, document.body.scrollHeight)"


class PageState(Enum):
    """Lifecycle of the page-turn controller."""

    IDLE = auto()
    LOADING = auto()
    EXTRACTING = auto()
    DEGRADED = auto()
    DONE = auto()


@dataclass
class PageBatch:
    """Products yielded by one pagination step."""

    iteration: int
    products: list[Product] = field(
        default_factory=lambda: list[Product]()
    )
    container_found: bool = True


class PaginationController(ABC):
    """Shared plumbing for both pagination variants."""

    def __init__(
        self,
        page: Page,
        config: SiteConfig,
        resolver: LocatorResolver,
        extractor: FieldExtractor,
        waiter: PageWaiter,
        max_iterations: int | None = None,
        after_turn: Callable[[Page], Awaitable[None]] | None = None,
        first_page_ready: bool = False,
    ) -> None:
        self.page = page
        self.config = config
        self.resolver = resolver
        self.extractor = extractor
        self.waiter = waiter
        self.max_iterations = (
            Settings.MAX_PAGINATION_ITERATIONS
            if max_iterations is None
            else max_iterations
        )
        self.after_turn = after_turn
        # Page 1 readiness (and its single reload) already handled by caller
        self.first_page_ready = first_page_ready
        self.iterations = 0
        self.state = PageState.IDLE
        self.logger = logging.getLogger(
            f"pharma_catalog.{config.site_id}.pagination"
        )

    def _transition(self, state: PageState) -> None:
        if state is not self.state:
            self.logger.debug(
                "[%s] %s -> %s",
                self.config.site_id, self.state.name, state.name,
            )
        self.state = state

    async def extract_current(self) -> ListingBatch:
        """Extract whatever the page currently renders."""
        html = await self.page.content()
        return self.extractor.extract_listing(html)

    async def scroll_to_bottom(self) -> None:
        try:
            await self.page.evaluate(_SCROLL_BOTTOM_JS)
        except PlaywrightError as exc:
            self.logger.debug(
                "[%s] Scroll failed: %s", self.config.site_id, exc,
            )
        await self.waiter.settle()

    @abstractmethod
    def batches(self) -> AsyncIterator[PageBatch]:
        """Yield product batches until results or the cap run out."""
        ...


class LoadMorePaginator(PaginationController):
    """Repeatedly click "load more" and diff the growing listing."""

    @staticmethod
    def newly_appeared(
        products: list[Product],
        seen: set[str],
        previous_total: int,
    ) -> list[Product]:
        """Items not collected earlier in this run.

        Identified items are diffed by identifier; items without one can
        only be recognised by position in the append-only listing.
        """
        fresh: list[Product] = []
        for position, product in enumerate(products):
            if product.has_identifier:
                if product.identifier in seen:
                    continue
                seen.add(product.identifier)
                fresh.append(product)
            elif position >= previous_total:
                fresh.append(product)
        return fresh

    async def batches(self) -> AsyncIterator[PageBatch]:
        count_selector = self.config.listing.count_selector
        self._transition(PageState.EXTRACTING)
        first = await self.extract_current()
        seen: set[str] = set()
        fresh = self.newly_appeared(first.products, seen, 0)
        previous_total = len(first.products)
        yield PageBatch(0, fresh, first.container_found)

        while self.iterations < self.max_iterations:
            self._transition(PageState.LOADING)
            await self.scroll_to_bottom()
            before = await self.waiter.count(self.page, count_selector)
            match = await self.resolver.click_first(
                self.page,
                self.config.load_more,
                purpose="load-more control",
            )
            if match is None:
                self.logger.info(
                    "[%s] Load-more control gone after %d clicks",
                    self.config.site_id, self.iterations,
                )
                break
            self.iterations += 1

            await self.waiter.wait_until_stable(
                self.page, count_selector, baseline=before,
            )
            self._transition(PageState.EXTRACTING)
            current = await self.extract_current()
            fresh = self.newly_appeared(
                current.products, seen, previous_total,
            )
            previous_total = len(current.products)
            self.logger.info(
                "[%s] Load-more %d/%d: %d rendered, %d new",
                self.config.site_id,
                self.iterations,
                self.max_iterations,
                previous_total,
                len(fresh),
            )
            yield PageBatch(self.iterations, fresh, current.container_found)
        else:
            self.logger.info(
                "[%s] Reached load-more cap of %d",
                self.config.site_id, self.max_iterations,
            )

        self._transition(PageState.DONE)


class PageTurnPaginator(PaginationController):
    """Extract a page, click an enabled "next" control, repeat.

    Client-rendered listings swap tiles in place without a navigation,
    so after each turn the listing is polled until it stops showing the
    page that was just extracted.
    """

    @staticmethod
    def fingerprint(batch: ListingBatch) -> tuple[str, ...]:
        """Identifiers (titles for unidentified tiles) in render order."""
        return tuple(
            p.identifier if p.has_identifier else p.title
            for p in batch.products
        )

    async def ensure_ready(self, page_number: int) -> bool:
        """Wait for the listing; on timeout reload once and wait again."""
        selectors = self.config.listing.ready_selectors
        if await self.waiter.wait_for_any(self.page, selectors):
            return True

        self._transition(PageState.DEGRADED)
        self.logger.warning(
            "[%s] Page %d not ready, reloading once",
            self.config.site_id, page_number,
        )
        ready = False
        if await self.waiter.reload(self.page):
            ready = await self.waiter.wait_for_any(
                self.page, selectors,
            ) is not None
        if not ready:
            self.logger.warning(
                "[%s] Page %d still not ready, using what is present",
                self.config.site_id, page_number,
            )
        return ready

    async def wait_for_replacement(
        self, previous: tuple[str, ...], page_number: int,
    ) -> bool:
        """Poll until a non-empty listing other than *previous* renders.

        An emptied grid is the usual in-between state of a client-side
        swap, so it does not count as the new page.  Gives up softly
        after ``TURN_TIMEOUT``.
        """
        step = self.waiter.settings.POLL_INTERVAL
        polls = max(2, int(self.waiter.settings.TURN_TIMEOUT / step))
        for _ in range(polls):
            current = await self.extract_current()
            if current.products and self.fingerprint(current) != previous:
                return True
            await self.waiter.settle(step)
        self.logger.warning(
            "[%s] Page %d still shows the previous listing after %.0fs",
            self.config.site_id, page_number,
            self.waiter.settings.TURN_TIMEOUT,
        )
        return False

    async def batches(self) -> AsyncIterator[PageBatch]:
        page_number = 1
        self._transition(PageState.LOADING)
        while True:
            if page_number > 1 or not self.first_page_ready:
                await self.ensure_ready(page_number)
            self._transition(PageState.EXTRACTING)
            current = await self.extract_current()
            self.logger.info(
                "[%s] Page %d: %d products",
                self.config.site_id, page_number, len(current.products),
            )
            yield PageBatch(
                page_number, current.products, current.container_found,
            )

            if self.iterations >= self.max_iterations:
                self.logger.info(
                    "[%s] Reached page-turn cap of %d",
                    self.config.site_id, self.max_iterations,
                )
                break

            previous = self.fingerprint(current)
            match = await self.resolver.click_first(
                self.page,
                self.config.next_page,
                require_enabled=True,
                purpose="next-page control",
            )
            if match is None:
                self.logger.info(
                    "[%s] No enabled next-page control after page %d",
                    self.config.site_id, page_number,
                )
                break
            self.iterations += 1
            page_number += 1
            self._transition(PageState.LOADING)
            await self.waiter.wait_for_load(self.page)
            if self.after_turn is not None:
                await self.after_turn(self.page)
            await self.wait_for_replacement(previous, page_number)

        self._transition(PageState.DONE)
