# pharma_catalog/storage/catalog_store.py

"""Per-site catalog persistence and identifier-based deduplication."""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from pharma_catalog.config.settings import Settings
from pharma_catalog.models.product import Product, utc_timestamp
from pharma_catalog.storage.file_manager import FileManager

logger = logging.getLogger("pharma_catalog.catalog")


class DedupRegistry:
    """Known product identifiers for one site-run.

    Only real identifiers are ever registered.  Products without one
    cannot be recognised again, so they always count as new.
    """

    def __init__(self, identifiers: Iterable[str] = ()) -> None:
        self._ids: set[str] = set()
        for identifier in identifiers:
            self._ids.add(identifier)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids)

    def add(self, product: Product) -> None:
        if product.has_identifier:
            self._ids.add(product.identifier)

    def filter_new(self, batch: Iterable[Product]) -> list[Product]:
        """Return products not seen before, registering them as seen.

        Registration happens while filtering, so an item repeated
        inside the same batch or in a later batch is dropped too.
        """
        fresh: list[Product] = []
        for product in batch:
            if product.has_identifier and product.identifier in self._ids:
                continue
            self.add(product)
            fresh.append(product)
        return fresh


@dataclass
class Catalog:
    """All stored products of one site, in file order."""

    site: str
    path: Path
    products: list[Product] = field(
        default_factory=lambda: list[Product]()
    )
    is_first_build: bool = True

    def __len__(self) -> int:
        return len(self.products)


class CatalogStore:
    """Load, extend and persist ``<site>_medicamentos.json`` files."""

    def __init__(self, data_dir: Path | None = None) -> None:
        self.files = FileManager(data_dir)

    def catalog_path(self, site: str) -> Path:
        filename = Settings.CATALOG_FILENAME.format(site=site)
        return self.files.site_dir(site) / filename

    def load(self, site: str) -> Catalog:
        """Read the stored catalog, or start an empty first build.

        A missing file, an unreadable file, and a file that is not a
        JSON array all mean there is no prior state.
        """
        path = self.catalog_path(site)
        raw = self.files.read_json(path)
        if raw is None:
            logger.info("[%s] No catalog at %s, first build", site, path)
            return Catalog(site=site, path=path)
        if not isinstance(raw, list):
            logger.warning(
                "[%s] Catalog %s is not a list, starting over", site, path,
            )
            self.files.quarantine(path)
            return Catalog(site=site, path=path)

        products = [Product.from_dict(item) for item in raw
                    if isinstance(item, dict)]
        logger.info(
            "[%s] Loaded %d stored products from %s",
            site, len(products), path,
        )
        return Catalog(
            site=site, path=path, products=products, is_first_build=False,
        )

    @staticmethod
    def identifiers(catalog: Catalog) -> DedupRegistry:
        """Registry of every real identifier already in the catalog."""
        return DedupRegistry(
            p.identifier for p in catalog.products if p.has_identifier
        )

    @staticmethod
    def filter_new(
        batch: Iterable[Product], known: DedupRegistry,
    ) -> list[Product]:
        return known.filter_new(batch)

    def append(
        self,
        catalog: Catalog,
        new_items: list[Product],
        timestamp: str | None = None,
    ) -> int:
        """Stamp *new_items*, add them to the catalog and persist it.

        Existing entries are left untouched.  Returns how many products
        were added.
        """
        if not new_items:
            return 0
        stamp = timestamp or utc_timestamp()
        for product in new_items:
            product.last_updated = stamp
        catalog.products.extend(new_items)
        self.save(catalog)
        logger.info(
            "[%s] Checkpoint: +%d products (%d total)",
            catalog.site, len(new_items), len(catalog),
        )
        return len(new_items)

    def save(self, catalog: Catalog) -> Path:
        return self.files.write_json(
            catalog.path, [p.to_dict() for p in catalog.products],
        )
