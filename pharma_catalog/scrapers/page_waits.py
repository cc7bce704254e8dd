# pharma_catalog/scrapers/page_waits.py

"""Bounded, condition-based waits on a live page.

Every wait here has a ceiling and reports a timeout as a ``False`` /
``None`` result instead of raising, so a run always terminates even
against a permanently broken page.
"""

import asyncio
import logging
from collections.abc import Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from pharma_catalog.config.settings import Settings


class PageWaiter:
    """Poll-until-visible / poll-until-stable helpers for one site."""

    def __init__(self, site_id: str) -> None:
        self.site_id = site_id
        self.settings = Settings()
        self.logger = logging.getLogger(f"pharma_catalog.{site_id}.waits")

    async def settle(self, seconds: float | None = None) -> None:
        """Give client-side scripts a short, fixed moment to react."""
        await asyncio.sleep(
            self.settings.SETTLE_DELAY if seconds is None else seconds
        )

    async def wait_for_any(
        self,
        page: Page,
        selectors: Sequence[str],
        timeout: float | None = None,
    ) -> str | None:
        """Race several selectors; return the first to appear, else None."""
        if not selectors:
            return None
        timeout_ms = (timeout or self.settings.LISTING_TIMEOUT) * 1000
        tasks = {
            asyncio.ensure_future(
                page.wait_for_selector(selector, timeout=timeout_ms)
            ): selector
            for selector in selectors
        }
        pending = set(tasks)
        winner: str | None = None
        try:
            while pending and winner is None:
                done, pending = await asyncio.wait(
                    pending, return_when=asyncio.FIRST_COMPLETED,
                )
                for task in done:
                    exc = task.exception()
                    if exc is not None:
                        self.logger.debug(
                            "[%s] Wait for '%s' ended: %s",
                            self.site_id, tasks[task], exc,
                        )
                        continue
                    if winner is None and task.result() is not None:
                        winner = tasks[task]
        finally:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        if winner is None:
            self.logger.warning(
                "[%s] None of %d selectors appeared within %.0fs",
                self.site_id, len(selectors), timeout_ms / 1000,
            )
        return winner

    async def count(self, page: Page, selector: str) -> int:
        """Number of elements currently matching *selector*."""
        try:
            return len(await page.query_selector_all(selector))
        except PlaywrightError as exc:
            self.logger.debug(
                "[%s] Count of '%s' failed: %s", self.site_id, selector, exc,
            )
            return 0

    async def wait_until_stable(
        self,
        page: Page,
        selector: str,
        *,
        baseline: int | None = None,
        timeout: float | None = None,
        interval: float | None = None,
    ) -> int:
        """Poll the match count until it stops changing.

        With a *baseline* the count must also differ from it, so a
        click that has not rendered anything yet is not mistaken for a
        settled page.  Gives up after ``timeout / interval`` polls and
        returns the last count seen.
        """
        step = interval or self.settings.POLL_INTERVAL
        polls = max(2, int((timeout or self.settings.SETTLE_TIMEOUT) / step))
        previous = -1
        current = 0
        for _ in range(polls):
            current = await self.count(page, selector)
            if current == previous and current != baseline:
                return current
            previous = current
            await asyncio.sleep(step)
        self.logger.debug(
            "[%s] Count for '%s' did not settle (last=%d)",
            self.site_id, selector, current,
        )
        return current

    async def wait_for_load(
        self, page: Page, timeout: float | None = None,
    ) -> bool:
        """Wait for network idle after a navigation-triggering click."""
        timeout_ms = (timeout or self.settings.NAVIGATION_TIMEOUT) * 1000
        try:
            await page.wait_for_load_state("networkidle", timeout=timeout_ms)
            return True
        except PlaywrightError as exc:
            self.logger.info(
                "[%s] Load state wait ended early: %s", self.site_id, exc,
            )
            return False

    async def reload(self, page: Page) -> bool:
        """Reload the current page once; False if the reload itself failed."""
        timeout_ms = self.settings.NAVIGATION_TIMEOUT * 1000
        try:
            await page.reload(wait_until="networkidle", timeout=timeout_ms)
            return True
        except PlaywrightError as exc:
            self.logger.warning(
                "[%s] Reload failed: %s", self.site_id, exc,
            )
            return False
