# pharma_catalog/scrapers/site_config.py

"""Typed view over the per-site locator chains in selectors.json."""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pharma_catalog.config.settings import Settings

logger = logging.getLogger("pharma_catalog.config")

PAGINATION_LOAD_MORE = "load_more"
PAGINATION_PAGE_TURN = "page_turn"


@dataclass(frozen=True)
class FieldLocator:
    """One candidate for reading a field inside a listing item.

    ``css`` of ``None`` targets the item element itself.  When ``attr``
    is set the attribute is read instead of the visible text, and
    ``pattern`` (if any) keeps only its first capture group.
    """

    css: str | None = None
    attr: str | None = None
    pattern: re.Pattern[str] | None = None

    @classmethod
    def from_raw(cls, raw: str | dict[str, Any]) -> "FieldLocator":
        if isinstance(raw, str):
            return cls(css=raw)
        pattern = raw.get("pattern")
        return cls(
            css=raw.get("css"),
            attr=raw.get("attr"),
            pattern=re.compile(pattern) if pattern else None,
        )


@dataclass(frozen=True)
class FieldSpec:
    """Ordered locator chain and sentinel for one product field."""

    name: str
    sentinel: str
    candidates: tuple[FieldLocator, ...]
    absolute_url: bool = False


@dataclass(frozen=True)
class ControlSpec:
    """Clickable control: CSS candidates plus a visible-text fallback."""

    selectors: tuple[str, ...] = ()
    texts: tuple[str, ...] = ()
    exact_text: bool = False
    text_scope: str = "button"

    @classmethod
    def from_raw(cls, raw: dict[str, Any] | None) -> "ControlSpec":
        if not raw:
            return cls()
        return cls(
            selectors=tuple(raw.get("selectors", [])),
            texts=tuple(raw.get("texts", [])),
            exact_text=bool(raw.get("exact_text", False)),
            text_scope=str(raw.get("text_scope", "button")),
        )

    @property
    def is_empty(self) -> bool:
        return not self.selectors and not self.texts


@dataclass(frozen=True)
class PageSizeSpec:
    """Products-per-page control, either a native select or a dropdown."""

    value: str
    select: tuple[str, ...] = ()
    opener: tuple[str, ...] = ()
    option: tuple[str, ...] = ()
    option_texts: tuple[str, ...] = ()
    option_scope: str = "div"
    reapply: bool = False


@dataclass(frozen=True)
class ListingSpec:
    """Where product tiles live on a listing page."""

    container: str
    alt_container: str
    item: str

    @property
    def ready_selectors(self) -> tuple[str, ...]:
        return tuple(s for s in (self.container, self.alt_container) if s)

    @property
    def count_selector(self) -> str:
        """Document-level selector matching tiles in either container."""
        item = self.item.replace(":scope", "").strip()
        return ", ".join(f"{c} {item}" for c in self.ready_selectors)


@dataclass(frozen=True)
class SiteConfig:
    """All locator chains for one storefront."""

    site_id: str
    origin: str
    pagination: str
    listing: ListingSpec
    fields: tuple[FieldSpec, ...]
    consent: ControlSpec = field(default_factory=ControlSpec)
    load_more: ControlSpec = field(default_factory=ControlSpec)
    next_page: ControlSpec = field(default_factory=ControlSpec)
    page_size: PageSizeSpec | None = None
    normalize_title: bool = False

    @classmethod
    def from_dict(cls, site_id: str, raw: dict[str, Any]) -> "SiteConfig":
        """Build a SiteConfig from its selectors.json block."""
        listing_raw: dict[str, Any] = raw["listing"]
        fields_raw: dict[str, Any] = raw["fields"]
        fields = tuple(
            FieldSpec(
                name=name,
                sentinel=str(spec.get("sentinel", f"No {name} found")),
                candidates=tuple(
                    FieldLocator.from_raw(c)
                    for c in spec.get("candidates", [])
                ),
                absolute_url=bool(spec.get("absolute_url", False)),
            )
            for name, spec in fields_raw.items()
        )
        page_size_raw: dict[str, Any] | None = raw.get("page_size")
        page_size = None
        if page_size_raw:
            page_size = PageSizeSpec(
                value=str(page_size_raw["value"]),
                select=tuple(page_size_raw.get("select", [])),
                opener=tuple(page_size_raw.get("open", [])),
                option=tuple(page_size_raw.get("option", [])),
                option_texts=tuple(page_size_raw.get("option_texts", [])),
                option_scope=str(page_size_raw.get("option_scope", "div")),
                reapply=bool(page_size_raw.get("reapply", False)),
            )
        return cls(
            site_id=site_id,
            origin=str(raw.get("origin", "")),
            pagination=str(raw.get("pagination", PAGINATION_PAGE_TURN)),
            listing=ListingSpec(
                container=str(listing_raw.get("container", "")),
                alt_container=str(listing_raw.get("alt_container", "")),
                item=str(listing_raw["item"]),
            ),
            fields=fields,
            consent=ControlSpec.from_raw(raw.get("consent")),
            load_more=ControlSpec.from_raw(raw.get("load_more")),
            next_page=ControlSpec.from_raw(raw.get("next_page")),
            page_size=page_size,
            normalize_title=bool(raw.get("normalize_title", False)),
        )


def load_site_config(
    site_id: str, path: Path | None = None,
) -> SiteConfig:
    """Load one site's locator chains from selectors.json."""
    selectors_path = path or Settings.SELECTORS_PATH
    with open(selectors_path, encoding="utf-8") as f:
        all_selectors: dict[str, Any] = json.load(f)
    if site_id not in all_selectors:
        msg = f"No selectors configured for site '{site_id}'"
        raise KeyError(msg)
    config = SiteConfig.from_dict(site_id, all_selectors[site_id])
    logger.debug(
        "Loaded selectors for %s (%d fields, pagination=%s)",
        site_id,
        len(config.fields),
        config.pagination,
    )
    return config
