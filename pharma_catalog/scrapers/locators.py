# pharma_catalog/scrapers/locators.py

"""Ordered-fallback locator resolution for live pages and listing items.

Storefront markup changes without notice, so every logical target
(cookie button, pagination control, price text) is described as an
ordered list of candidates.  Resolution walks the list and returns the
first hit; running out of candidates is a normal ``None`` outcome.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from bs4 import Tag
from playwright.async_api import ElementHandle, Page
from playwright.async_api import Error as PlaywrightError
from soupsieve import SelectorSyntaxError

from pharma_catalog.scrapers.site_config import ControlSpec, FieldLocator

# Clicks the first element under ``scope`` whose text matches a phrase.
# Phrases are tried in order so the most specific wording wins.
_CLICK_BY_TEXT_JS = """
({phrases, scope, exact}) => {
    const nodes = Array.from(document.querySelectorAll(scope));
    for (const phrase of phrases) {
        for (const node of nodes) {
            const text = (node.textContent || '').trim();
            const hit = exact ? text === phrase : text.includes(phrase);
            if (!hit) continue;
            if (node.disabled || node.closest('.disabled')) continue;
            node.click();
            return phrase;
        }
    }
    return null;
}
"""

_IS_DISABLED_JS = """
(el) => Boolean(el.disabled)
    || el.classList.contains('disabled')
    || el.closest('.disabled') !== null
    || el.getAttribute('aria-disabled') === 'true'
"""


@dataclass
class LocatorMatch:
    """The candidate that resolved, and its element when CSS-based."""

    locator: str
    handle: ElementHandle | None = None

    @property
    def by_text(self) -> bool:
        return self.handle is None


class LocatorResolver:
    """Resolve and click controls on a live Playwright page."""

    def __init__(self, site_id: str) -> None:
        self.site_id = site_id
        self.logger = logging.getLogger(
            f"pharma_catalog.{site_id}.locators"
        )

    async def is_disabled(self, handle: ElementHandle) -> bool:
        """True when the element (or an ancestor) is marked disabled."""
        try:
            return bool(await handle.evaluate(_IS_DISABLED_JS))
        except PlaywrightError as exc:
            self.logger.debug("Disabled check failed: %s", exc)
            return True

    async def resolve(
        self,
        scope: Page | ElementHandle,
        selectors: Sequence[str],
        *,
        require_enabled: bool = False,
    ) -> LocatorMatch | None:
        """Return the first selector that matches inside *scope*."""
        for selector in selectors:
            try:
                handle = await scope.query_selector(selector)
            except PlaywrightError as exc:
                self.logger.debug(
                    "[%s] Selector '%s' errored: %s",
                    self.site_id, selector, exc,
                )
                continue
            if handle is None:
                continue
            if require_enabled and await self.is_disabled(handle):
                self.logger.debug(
                    "[%s] Selector '%s' matched a disabled control",
                    self.site_id, selector,
                )
                continue
            return LocatorMatch(locator=selector, handle=handle)
        return None

    async def click_by_text(
        self,
        page: Page,
        texts: Sequence[str],
        *,
        scope: str = "button",
        exact: bool = False,
    ) -> str | None:
        """Click the first enabled element whose text matches; return the phrase."""
        if not texts:
            return None
        try:
            phrase = await page.evaluate(
                _CLICK_BY_TEXT_JS,
                {"phrases": list(texts), "scope": scope, "exact": exact},
            )
        except PlaywrightError as exc:
            self.logger.debug(
                "[%s] Text search failed: %s", self.site_id, exc,
            )
            return None
        return str(phrase) if phrase else None

    async def click_first(
        self,
        page: Page,
        control: ControlSpec,
        *,
        require_enabled: bool = False,
        purpose: str = "control",
    ) -> LocatorMatch | None:
        """Click the first resolvable candidate, text fallback last.

        The click may start a navigation or mutate the DOM in place;
        callers own the wait that follows.
        """
        for selector in control.selectors:
            match = await self.resolve(
                page, [selector], require_enabled=require_enabled,
            )
            if match is None or match.handle is None:
                continue
            try:
                await match.handle.click()
            except PlaywrightError as exc:
                self.logger.debug(
                    "[%s] Click on '%s' failed: %s",
                    self.site_id, selector, exc,
                )
                continue
            self.logger.info(
                "[%s] Clicked %s via '%s'",
                self.site_id, purpose, selector,
            )
            return match

        phrase = await self.click_by_text(
            page,
            control.texts,
            scope=control.text_scope,
            exact=control.exact_text,
        )
        if phrase is not None:
            self.logger.info(
                "[%s] Clicked %s by text '%s'",
                self.site_id, purpose, phrase,
            )
            return LocatorMatch(locator=f"text={phrase}")

        self.logger.info(
            "[%s] No %s found (%d selectors, %d texts tried)",
            self.site_id,
            purpose,
            len(control.selectors),
            len(control.texts),
        )
        return None


def read_field(
    item: Tag, candidates: Sequence[FieldLocator],
) -> str | None:
    """Return the first non-empty value produced by *candidates*.

    Works on a parsed listing item, so it never touches the browser.
    """
    for candidate in candidates:
        if candidate.css:
            try:
                node = item.select_one(candidate.css)
            except SelectorSyntaxError:
                continue
        else:
            node = item
        if node is None:
            continue

        if candidate.attr:
            raw = node.get(candidate.attr)
            if isinstance(raw, list):
                raw = " ".join(raw)
            value = (raw or "").strip()
        else:
            value = node.get_text(" ", strip=True)

        if value and candidate.pattern is not None:
            found = candidate.pattern.search(value)
            value = found.group(1) if found else ""
        if value:
            return value
    return None
