# pharma_catalog/scrapers/extractor.py

"""Per-item field extraction from a rendered listing page."""

import logging
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from pharma_catalog.filters.normalize import absolute_url, normalize_title
from pharma_catalog.models.product import Product
from pharma_catalog.scrapers.locators import read_field
from pharma_catalog.scrapers.site_config import SiteConfig

_CORE_FIELDS: frozenset[str] = frozenset({
    "identifier", "title", "price", "image",
})


@dataclass
class ExtractionError:
    """Marker for an item that could not be turned into a Product."""

    index: int
    message: str


@dataclass
class ListingBatch:
    """Products extracted from one rendered state of a listing page.

    ``container_found`` is False when neither container locator
    matched, which may mean the end of results or a broken selector.
    """

    products: list[Product] = field(
        default_factory=lambda: list[Product]()
    )
    container_found: bool = False
    item_count: int = 0
    error_count: int = 0


class FieldExtractor:
    """Turn listing tiles into Product records using per-field chains."""

    def __init__(self, config: SiteConfig) -> None:
        self.config = config
        self.logger = logging.getLogger(
            f"pharma_catalog.{config.site_id}.extractor"
        )

    def extract_item(
        self, item: Tag, index: int,
    ) -> Product | ExtractionError:
        """Extract every configured field of one tile.

        A missing field becomes its sentinel; only an unexpected error
        while walking the tile yields an ``ExtractionError``.
        """
        try:
            values: dict[str, str] = {}
            for spec in self.config.fields:
                value = read_field(item, spec.candidates)
                if value is None:
                    values[spec.name] = spec.sentinel
                    continue
                if spec.absolute_url:
                    value = absolute_url(value, self.config.origin)
                values[spec.name] = value

            title = values.pop("title", None)
            if title is not None and self.config.normalize_title:
                title = normalize_title(title)

            product = Product(
                extras={
                    k: v for k, v in values.items()
                    if k not in _CORE_FIELDS
                },
            )
            if "identifier" in values:
                product.identifier = values["identifier"]
            if title is not None:
                product.title = title
            if "price" in values:
                product.price = values["price"]
            if "image" in values:
                product.image = values["image"]
            return product
        except Exception as exc:
            return ExtractionError(index=index, message=str(exc))

    def _find_items(
        self, soup: BeautifulSoup, container_selector: str,
    ) -> list[Tag] | None:
        """Return the tiles inside a container, or None if it is absent."""
        if not container_selector:
            return None
        try:
            container = soup.select_one(container_selector)
        except SelectorSyntaxError:
            self.logger.warning(
                "[%s] Invalid container selector '%s'",
                self.config.site_id, container_selector,
            )
            return None
        if container is None:
            return None
        try:
            return list(container.select(self.config.listing.item))
        except SelectorSyntaxError:
            self.logger.warning(
                "[%s] Invalid item selector '%s'",
                self.config.site_id, self.config.listing.item,
            )
            return []

    def extract_listing(self, html: str) -> ListingBatch:
        """Extract all tiles from a rendered page's HTML."""
        soup = BeautifulSoup(html, "lxml")
        listing = self.config.listing
        batch = ListingBatch()

        items: list[Tag] = []
        for selector in (listing.container, listing.alt_container):
            found = self._find_items(soup, selector)
            if found is None:
                continue
            batch.container_found = True
            items = found
            if items:
                break
            self.logger.debug(
                "[%s] Container '%s' has no items, trying alternative",
                self.config.site_id, selector,
            )

        if not batch.container_found:
            self.logger.warning(
                "[%s] No listing container matched; treating page as "
                "empty (end of results or broken selector)",
                self.config.site_id,
            )
            return batch

        batch.item_count = len(items)
        for index, item in enumerate(items, 1):
            result = self.extract_item(item, index)
            if isinstance(result, ExtractionError):
                batch.error_count += 1
                self.logger.warning(
                    "[%s] Dropped item %d: %s",
                    self.config.site_id, result.index, result.message,
                )
                continue
            batch.products.append(result)

        self.logger.debug(
            "[%s] Extracted %d/%d items",
            self.config.site_id,
            len(batch.products),
            batch.item_count,
        )
        return batch
