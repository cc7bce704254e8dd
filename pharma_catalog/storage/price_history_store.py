# pharma_catalog/storage/price_history_store.py

"""JSON-file price history, one append-only series per product."""

import logging
from pathlib import Path

from pharma_catalog.config.settings import Settings
from pharma_catalog.models.price_history import ProductHistory
from pharma_catalog.storage.file_manager import FileManager

logger = logging.getLogger("pharma_catalog.price_history")

PriceHistory = dict[str, ProductHistory]


class PriceHistoryStore:
    """Reads and writes ``<site>/price_history.json``."""

    def __init__(self, data_dir: Path | None = None) -> None:
        self.files = FileManager(data_dir)

    def history_path(self, site: str) -> Path:
        return self.files.site_dir(site) / Settings.HISTORY_FILENAME

    def exists(self, site: str) -> bool:
        return self.history_path(site).exists()

    def load(self, site: str) -> PriceHistory:
        """Return the stored history, or an empty one."""
        path = self.history_path(site)
        raw = self.files.read_json(path)
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            logger.warning(
                "[%s] History %s is not an object, starting over",
                site, path,
            )
            self.files.quarantine(path)
            return {}

        history: PriceHistory = {
            str(product_id): ProductHistory.from_dict(entry)
            for product_id, entry in raw.items()
            if isinstance(entry, dict)
        }
        logger.debug(
            "[%s] Loaded price history for %d products",
            site, len(history),
        )
        return history

    def save(self, site: str, history: PriceHistory) -> Path:
        return self.files.write_json(
            self.history_path(site),
            {pid: entry.to_dict() for pid, entry in history.items()},
        )
