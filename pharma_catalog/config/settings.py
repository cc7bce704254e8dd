# pharma_catalog/config/settings.py

"""Central configuration for the pharma_catalog engine."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean flag from the environment."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Central configuration for the pharma_catalog engine."""

    # --- Pagination ---
    MAX_PAGINATION_ITERATIONS: int = int(
        os.getenv("PHARMA_MAX_ITERATIONS", "20")
    )                                   # Load-more clicks / page turns

    # --- Waits (seconds) ---
    NAVIGATION_TIMEOUT: float = 30.0    # page.goto / reload
    LISTING_TIMEOUT: float = 15.0       # Listing container race
    CONSENT_TIMEOUT: float = 5.0        # Cookie banner appearance
    SETTLE_TIMEOUT: float = 5.0         # Poll-until-stable after a click
    TURN_TIMEOUT: float = 10.0          # New page replacing the old one
    POLL_INTERVAL: float = 0.5          # Granularity of stable polling
    SETTLE_DELAY: float = 1.0           # After consent / page-size change

    # --- Browser ---
    HEADLESS: bool = _env_bool("PHARMA_HEADLESS", True)
    VIEWPORT: dict[str, int] = {"width": 1366, "height": 900}
    LOCALE: str = "es-CL"
    TIMEZONE: str = "America/Santiago"
    USER_AGENT: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/131.0.0.0 Safari/537.36"
    )

    # --- Report ---
    REPORT_TOP_N: int = 5               # Products with most changes

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    SELECTORS_PATH: Path = (
        BASE_DIR / "pharma_catalog" / "config" / "selectors.json"
    )
    DATA_DIR: Path = Path(
        os.getenv("PHARMA_DATA_DIR", str(BASE_DIR / "data"))
    )
    LOGS_DIR: Path = BASE_DIR / "logs"
    CATALOG_FILENAME: str = "{site}_medicamentos.json"
    HISTORY_FILENAME: str = "price_history.json"

    # --- Sites ---
    AVAILABLE_SITES: list[dict[str, str]] = [
        {
            "id": "ahumada",
            "label": "Farmacias Ahumada",
            "url": "https://www.farmaciasahumada.cl/medicamentos",
            "scraper": (
                "pharma_catalog.scrapers.ahumada_scraper.AhumadaScraper"
            ),
        },
        {
            "id": "cruz_verde",
            "label": "Cruz Verde",
            "url": (
                "https://www.cruzverde.cl/medicamentos/"
                "sistema-respiratorio-y-alergias/"
            ),
            "scraper": (
                "pharma_catalog.scrapers.cruz_verde_scraper."
                "CruzVerdeScraper"
            ),
        },
        {
            "id": "salcobrand",
            "label": "Salcobrand",
            "url": "https://salcobrand.cl/t/medicamentos",
            "scraper": (
                "pharma_catalog.scrapers.salcobrand_scraper."
                "SalcobrandScraper"
            ),
        },
    ]
