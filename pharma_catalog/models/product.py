# pharma_catalog/models/product.py

"""Product data model shared by the extractor, store and monitor."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

NO_PRODUCT_ID = "No product ID found"
NO_TITLE = "No title found"
NO_PRICE = "No price found"
NO_IMAGE = "No image found"

STATUS_NOT_FOUND = "not_found"

# Keys owned by the core record; anything else is an auxiliary field
_CORE_KEYS: frozenset[str] = frozenset({
    "productId", "title", "price", "image",
    "lastUpdated", "priceChanged", "status",
})


def utc_timestamp() -> str:
    """Return the current UTC time as an ISO-8601 string ending in Z."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class Product:
    """One catalog entry for a pharmacy site.

    ``price`` is kept exactly as displayed; numeric parsing only happens
    where magnitudes must be compared (see ``filters.normalize``).
    """

    identifier: str = NO_PRODUCT_ID
    title: str = NO_TITLE
    price: str = NO_PRICE
    image: str = NO_IMAGE
    last_updated: str = ""
    price_changed: bool | None = None
    status: str | None = None
    extras: dict[str, str] = field(
        default_factory=lambda: dict[str, str]()
    )

    @property
    def has_identifier(self) -> bool:
        """True when the site supplied a real (non-sentinel) identifier."""
        return bool(self.identifier) and self.identifier != NO_PRODUCT_ID

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the on-disk JSON shape."""
        data: dict[str, Any] = {
            "productId": self.identifier,
            "title": self.title,
            "price": self.price,
            "image": self.image,
        }
        for key, value in self.extras.items():
            if key not in _CORE_KEYS:
                data[key] = value
        if self.last_updated:
            data["lastUpdated"] = self.last_updated
        if self.price_changed is not None:
            data["priceChanged"] = self.price_changed
        if self.status is not None:
            data["status"] = self.status
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Product":
        """Build a Product from a stored JSON object."""
        extras = {
            str(k): str(v)
            for k, v in data.items()
            if k not in _CORE_KEYS and v is not None
        }
        changed = data.get("priceChanged")
        status = data.get("status")
        return cls(
            identifier=str(data.get("productId") or NO_PRODUCT_ID),
            title=str(data.get("title") or NO_TITLE),
            price=str(data.get("price") or NO_PRICE),
            image=str(data.get("image") or NO_IMAGE),
            last_updated=str(data.get("lastUpdated") or ""),
            price_changed=bool(changed) if changed is not None else None,
            status=str(status) if status is not None else None,
            extras=extras,
        )
