# pharma_catalog/config/logging_config.py

"""Per-run timestamped logging configuration for pharma_catalog.

Each launch creates a dedicated log file inside ``logs/``, named with the
launch timestamp (e.g. ``logs/run_20261019_031500.log``).  All
``pharma_catalog.*`` loggers route through this file handler.

Sites are scraped concurrently, so their lines interleave in the run
log.  Each storefront therefore also gets its own
``run_<ts>_<site>.log`` holding only its ``pharma_catalog.<site>.*``
records (scraper, waits, pagination).  Those files are opened lazily and
only exist for sites that actually logged during the run.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from pharma_catalog.config.settings import Settings

# Reusable format strings --------------------------------------------------

_DETAILED_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | %(module)s:%(funcName)s:%(lineno)d | "
    "%(message)s"
)

_SITE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def site_log_handler(
    logs_dir: Path, timestamp: str, site_id: str,
) -> logging.FileHandler:
    """File handler that only accepts one site's logger subtree."""
    handler = logging.FileHandler(
        logs_dir / f"run_{timestamp}_{site_id}.log",
        encoding="utf-8",
        delay=True,
    )
    handler.setLevel(logging.DEBUG)
    handler.addFilter(logging.Filter(f"pharma_catalog.{site_id}"))
    handler.setFormatter(logging.Formatter(_SITE_FORMAT, datefmt=_DATE_FORMAT))
    return handler


def setup_logging(logs_dir: Path | None = None) -> Path:
    """Initialise the root ``pharma_catalog`` logger for the current run.

    Returns:
        The :class:`~pathlib.Path` to the combined log file for this run.
    """
    target_dir: Path = logs_dir or Settings.LOGS_DIR
    target_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = target_dir / f"run_{timestamp}.log"

    # --- Root project logger -----------------------------------------------
    root_logger = logging.getLogger("pharma_catalog")
    root_logger.setLevel(logging.DEBUG)

    # Prevent duplicate handlers on repeated calls (e.g. tests)
    if root_logger.handlers:
        return log_file

    # --- Combined file handler (DEBUG+) ------------------------------------
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_DETAILED_FORMAT, datefmt=_DATE_FORMAT)
    )

    # --- Console handler (WARNING+) – only important messages --------------
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(
        logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
    )

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # --- One file per storefront -------------------------------------------
    for site in Settings.AVAILABLE_SITES:
        root_logger.addHandler(
            site_log_handler(target_dir, timestamp, site["id"])
        )

    root_logger.info(
        "Logging initialised, log file: %s", log_file
    )

    return log_file
