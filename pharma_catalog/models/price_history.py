# pharma_catalog/models/price_history.py

"""Price time-series models for price monitoring."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Trend(str, Enum):
    """Qualitative direction of a price change."""

    INCREASED = "increased"
    DECREASED = "decreased"
    UNCHANGED = "unchanged"
    UNKNOWN = "unknown"


@dataclass
class PriceHistoryEntry:
    """A single price observation in a product's history."""

    price: str
    timestamp: str
    is_initial: bool = False
    previous_price: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the on-disk JSON shape."""
        data: dict[str, Any] = {
            "price": self.price,
            "timestamp": self.timestamp,
        }
        if self.is_initial:
            data["isInitial"] = True
        else:
            data["previousPrice"] = self.previous_price
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PriceHistoryEntry":
        """Build an entry from a stored JSON object."""
        previous = data.get("previousPrice")
        return cls(
            price=str(data.get("price", "")),
            timestamp=str(data.get("timestamp", "")),
            is_initial=bool(data.get("isInitial", False)),
            previous_price=(
                str(previous) if previous is not None else None
            ),
        )


@dataclass
class ProductHistory:
    """Append-only price series for one product identifier."""

    title: str
    prices: list[PriceHistoryEntry] = field(
        default_factory=lambda: list[PriceHistoryEntry]()
    )

    @property
    def change_count(self) -> int:
        """Number of recorded changes beyond the initial price."""
        return sum(1 for entry in self.prices if not entry.is_initial)

    @property
    def latest_price(self) -> str:
        """Most recently observed price, or an empty string."""
        return self.prices[-1].price if self.prices else ""

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the on-disk JSON shape."""
        return {
            "title": self.title,
            "prices": [entry.to_dict() for entry in self.prices],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProductHistory":
        """Build a history from a stored JSON object."""
        raw_prices: list[Any] = list(data.get("prices") or [])
        return cls(
            title=str(data.get("title", "")),
            prices=[
                PriceHistoryEntry.from_dict(p)
                for p in raw_prices
                if isinstance(p, dict)
            ],
        )


@dataclass
class PriceChangeEvent:
    """A price difference detected during one monitoring pass."""

    product_id: str
    title: str
    old_price: str
    new_price: str
    timestamp: str
    trend: Trend
