# pharma_catalog/services/price_monitor.py

"""Compare a fresh listing against the stored catalog and record changes."""

import logging
from dataclasses import dataclass, field

from pharma_catalog.config.settings import Settings
from pharma_catalog.filters.normalize import parse_price
from pharma_catalog.models.price_history import (
    PriceChangeEvent,
    PriceHistoryEntry,
    ProductHistory,
    Trend,
)
from pharma_catalog.models.product import (
    STATUS_NOT_FOUND,
    Product,
    utc_timestamp,
)

logger = logging.getLogger("pharma_catalog.monitor")


def classify_trend(old_price: str, new_price: str) -> Trend:
    """Direction of a price change; UNKNOWN if either side won't parse."""
    old_value = parse_price(old_price)
    new_value = parse_price(new_price)
    if old_value is None or new_value is None:
        return Trend.UNKNOWN
    if new_value > old_value:
        return Trend.INCREASED
    if new_value < old_value:
        return Trend.DECREASED
    return Trend.UNCHANGED


@dataclass
class MonitorResult:
    """Outcome of comparing one site's stored and current listings."""

    products: list[Product]
    history: dict[str, ProductHistory]
    events: list[PriceChangeEvent] = field(
        default_factory=lambda: list[PriceChangeEvent]()
    )
    unchanged: int = 0
    not_found: int = 0
    unseen_listings: int = 0


@dataclass
class TopProduct:
    """A product ranked by how often its price has changed."""

    product_id: str
    title: str
    change_count: int
    latest_price: str


@dataclass
class PriceReport:
    """Summary of a monitoring pass, printed for the operator."""

    total_changes: int = 0
    increases: list[PriceChangeEvent] = field(
        default_factory=lambda: list[PriceChangeEvent]()
    )
    decreases: list[PriceChangeEvent] = field(
        default_factory=lambda: list[PriceChangeEvent]()
    )
    top_products: list[TopProduct] = field(
        default_factory=lambda: list[TopProduct]()
    )
    not_found: int = 0
    unseen_listings: int = 0


class PriceMonitor:
    """Detect price changes and maintain the append-only history."""

    def compare(
        self,
        stored: list[Product],
        current: list[Product],
        history: dict[str, ProductHistory],
        timestamp: str | None = None,
    ) -> MonitorResult:
        """Update *stored* in place from *current*; extend *history*.

        Stored products missing from *current* are kept and marked
        ``not_found``; nothing is ever removed.
        """
        stamp = timestamp or utc_timestamp()
        lookup: dict[str, Product] = {}
        for product in current:
            if product.has_identifier:
                lookup.setdefault(product.identifier, product)

        result = MonitorResult(products=stored, history=history)
        known: set[str] = set()

        for existing in stored:
            if existing.has_identifier:
                known.add(existing.identifier)
            fresh = (
                lookup.get(existing.identifier)
                if existing.has_identifier
                else None
            )

            if fresh is None:
                logger.info(
                    "Product not found in current listing: %s",
                    existing.title,
                )
                existing.status = STATUS_NOT_FOUND
                existing.last_updated = stamp
                result.not_found += 1
                continue

            series = history.get(existing.identifier)
            if series is None:
                series = ProductHistory(
                    title=existing.title,
                    prices=[PriceHistoryEntry(
                        price=existing.price,
                        timestamp=existing.last_updated or stamp,
                        is_initial=True,
                    )],
                )
                history[existing.identifier] = series

            existing.status = None
            if fresh.price == existing.price:
                existing.last_updated = stamp
                existing.price_changed = False
                result.unchanged += 1
                continue

            trend = classify_trend(existing.price, fresh.price)
            logger.info(
                "Price change for %s: %s -> %s (%s)",
                existing.title, existing.price, fresh.price, trend.value,
            )
            series.prices.append(PriceHistoryEntry(
                price=fresh.price,
                timestamp=stamp,
                previous_price=existing.price,
            ))
            result.events.append(PriceChangeEvent(
                product_id=existing.identifier,
                title=existing.title,
                old_price=existing.price,
                new_price=fresh.price,
                timestamp=stamp,
                trend=trend,
            ))
            existing.price = fresh.price
            existing.image = fresh.image
            existing.last_updated = stamp
            existing.price_changed = True

        result.unseen_listings = sum(
            1 for pid in lookup if pid not in known
        )
        logger.info(
            "Compared %d stored against %d current: %d changed, "
            "%d unchanged, %d not found, %d not in catalog",
            len(stored), len(current), len(result.events),
            result.unchanged, result.not_found, result.unseen_listings,
        )
        return result

    @staticmethod
    def build_report(
        result: MonitorResult, top_n: int | None = None,
    ) -> PriceReport:
        """Summarise events and rank products by historical changes."""
        limit = Settings.REPORT_TOP_N if top_n is None else top_n
        events = result.events
        ranked = sorted(
            (
                TopProduct(
                    product_id=pid,
                    title=series.title,
                    change_count=series.change_count,
                    latest_price=series.latest_price,
                )
                for pid, series in result.history.items()
                if series.change_count > 0
            ),
            key=lambda t: t.change_count,
            reverse=True,
        )
        return PriceReport(
            total_changes=len(events),
            increases=[e for e in events if e.trend is Trend.INCREASED],
            decreases=[e for e in events if e.trend is Trend.DECREASED],
            top_products=ranked[:limit],
            not_found=result.not_found,
            unseen_listings=result.unseen_listings,
        )
