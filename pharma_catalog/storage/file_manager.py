# pharma_catalog/storage/file_manager.py

"""Whole-file JSON persistence and CSV export for catalog data."""

import csv
import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any

from pharma_catalog.config.settings import Settings
from pharma_catalog.filters.normalize import parse_price
from pharma_catalog.models.product import Product

logger = logging.getLogger("pharma_catalog.storage")


class FileManager:
    """Reads and atomically rewrites the per-site data files."""

    def __init__(self, data_dir: Path | None = None) -> None:
        self.data_dir: Path = data_dir or Settings.DATA_DIR
        self.data_dir.mkdir(parents=True, exist_ok=True)
        logger.debug("FileManager initialised, data_dir=%s", self.data_dir)

    def site_dir(self, site: str) -> Path:
        """Directory holding one site's catalog and history."""
        path = self.data_dir / site
        path.mkdir(parents=True, exist_ok=True)
        return path

    def quarantine(self, path: Path) -> Path | None:
        """Move an unreadable file aside so it is not overwritten."""
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        target = path.with_name(f"{path.name}.corrupt-{stamp}")
        try:
            path.replace(target)
        except OSError as exc:
            logger.warning("Could not move %s aside: %s", path, exc)
            return None
        logger.warning("Moved unreadable %s to %s", path.name, target)
        return target

    def read_json(self, path: Path) -> Any | None:
        """Return the parsed file, or None if missing or unreadable.

        An unreadable file is moved aside and reported as missing, so
        the caller starts from empty state instead of crashing.
        """
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Failed to read %s: %s", path, exc)
            self.quarantine(path)
            return None

    def write_json(self, path: Path, data: Any) -> Path:
        """Atomically replace *path* with pretty-printed UTF-8 JSON."""
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=path.parent,
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Wrote %s", path)
        return path

    def export_csv(self, site: str, products: list[Product]) -> Path:
        """Export a catalog to a human-readable CSV sorted by price."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = self.site_dir(site) / f"export_{site}_{timestamp}.csv"

        def _price_key(p: Product) -> float:
            value = parse_price(p.price)
            return value if value is not None else float("inf")

        sorted_products = sorted(products, key=_price_key)

        with open(filepath, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(
                ["Product ID", "Title", "Price", "Status", "Last Updated",
                 "URL"]
            )
            for p in sorted_products:
                writer.writerow([
                    p.identifier,
                    p.title,
                    p.price,
                    p.status or "",
                    p.last_updated,
                    p.extras.get("url", ""),
                ])

        logger.info(
            "Exported %d %s products to %s", len(products), site, filepath,
        )
        return filepath
