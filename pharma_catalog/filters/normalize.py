# pharma_catalog/filters/normalize.py

"""Text and price normalisation for scraped listing fields."""

import re
import unicodedata
from urllib.parse import urljoin

# Labels some storefronts prepend to the displayed price
_PRICE_LABEL_RE = re.compile(
    r"(precio\s+internet|precio\s+farmacia|precio\s+normal|oferta)\s*:?",
    re.IGNORECASE,
)
_NUMBER_RE = re.compile(r"\d[\d.,]*")


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces and strip."""
    return " ".join(text.split())


def strip_diacritics(text: str) -> str:
    """Remove combining accent marks (e.g. 'Ibuprofeno Líquido' → 'Liquido')."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(
        ch for ch in decomposed if not unicodedata.combining(ch)
    )


def normalize_title(text: str) -> str:
    """Normalise a product title with inconsistent source encodings."""
    return collapse_whitespace(strip_diacritics(text))


def parse_price(text: str | None) -> float | None:
    """Parse a Chilean peso price string into a number.

    Dots are thousands separators and a comma is the decimal mark,
    so ``"$1.299"`` is 1299.0 and ``"$1.299,50"`` is 1299.5.
    Returns ``None`` for sentinels and anything without digits.
    """
    if not text:
        return None
    cleaned = _PRICE_LABEL_RE.sub("", text)
    match = _NUMBER_RE.search(cleaned)
    if not match:
        return None
    number = match.group(0).rstrip(".,")
    number = number.replace(".", "").replace(",", ".")
    try:
        return float(number)
    except ValueError:
        return None


def absolute_url(href: str, origin: str) -> str:
    """Resolve a possibly relative href against the site origin."""
    if not origin or href.startswith(("http://", "https://")):
        return href
    return urljoin(origin.rstrip("/") + "/", href)
