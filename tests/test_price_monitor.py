# tests/test_price_monitor.py

"""Tests for price change detection and the monitoring report."""

import unittest

from pharma_catalog.models.price_history import (
    PriceHistoryEntry,
    ProductHistory,
    Trend,
)
from pharma_catalog.models.product import Product
from pharma_catalog.services.price_monitor import PriceMonitor, classify_trend

NOW = "2026-10-19T12:00:00.000Z"
EARLIER = "2026-10-01T08:00:00.000Z"


def _stored(identifier: str, price: str, title: str = "Producto") -> Product:
    return Product(
        identifier=identifier,
        title=title,
        price=price,
        image="old.jpg",
        last_updated=EARLIER,
    )


def _current(identifier: str, price: str) -> Product:
    return Product(
        identifier=identifier, title="Producto", price=price, image="new.jpg",
    )


class TestClassifyTrend(unittest.TestCase):

    def test_increase(self) -> None:
        self.assertIs(classify_trend("$1.000", "$1.200"), Trend.INCREASED)

    def test_decrease(self) -> None:
        self.assertIs(classify_trend("$12.990", "$9.990"), Trend.DECREASED)

    def test_same_magnitude_different_text(self) -> None:
        self.assertIs(
            classify_trend("$1.000", "Precio Internet: $1.000"),
            Trend.UNCHANGED,
        )

    def test_unparsable_is_unknown(self) -> None:
        self.assertIs(classify_trend("No price found", "$990"), Trend.UNKNOWN)
        self.assertIs(classify_trend("$990", "Agotado"), Trend.UNKNOWN)


class TestPriceMonitorCompare(unittest.TestCase):

    def setUp(self) -> None:
        self.monitor = PriceMonitor()

    def test_price_increase_event(self) -> None:
        stored = [_stored("A", "$1.000")]
        history: dict[str, ProductHistory] = {}

        result = self.monitor.compare(
            stored, [_current("A", "$1.200")], history, NOW,
        )

        self.assertEqual(len(result.events), 1)
        event = result.events[0]
        self.assertEqual(event.trend, Trend.INCREASED)
        self.assertEqual((event.old_price, event.new_price), ("$1.000", "$1.200"))
        product = stored[0]
        self.assertEqual(product.price, "$1.200")
        self.assertEqual(product.image, "new.jpg")
        self.assertEqual(product.last_updated, NOW)
        self.assertTrue(product.price_changed)

        series = history["A"]
        self.assertEqual(len(series.prices), 2)
        self.assertTrue(series.prices[0].is_initial)
        self.assertEqual(series.prices[0].price, "$1.000")
        self.assertEqual(series.prices[0].timestamp, EARLIER)
        self.assertEqual(series.prices[1].previous_price, "$1.000")
        self.assertEqual(series.prices[1].timestamp, NOW)

    def test_equal_price_no_event(self) -> None:
        stored = [_stored("A", "$1.000")]
        history: dict[str, ProductHistory] = {}

        result = self.monitor.compare(
            stored, [_current("A", "$1.000")], history, NOW,
        )

        self.assertEqual(result.events, [])
        self.assertIs(stored[0].price_changed, False)
        self.assertEqual(stored[0].last_updated, NOW)
        self.assertEqual(stored[0].image, "old.jpg")
        self.assertEqual(result.unchanged, 1)
        self.assertEqual(len(history["A"].prices), 1)

    def test_absent_product_marked_not_found(self) -> None:
        stored = [_stored("A", "$1.000"), _stored("B", "$2.000")]
        history: dict[str, ProductHistory] = {}

        result = self.monitor.compare(
            stored, [_current("A", "$1.000")], history, NOW,
        )

        self.assertEqual([p.identifier for p in result.products], ["A", "B"])
        self.assertEqual(stored[1].status, "not_found")
        self.assertEqual(stored[1].price, "$2.000")
        self.assertEqual(stored[1].last_updated, NOW)
        self.assertEqual(result.not_found, 1)
        self.assertNotIn("B", history)

    def test_reappearing_product_clears_status(self) -> None:
        stored = [_stored("A", "$1.000")]
        stored[0].status = "not_found"
        self.monitor.compare(stored, [_current("A", "$1.000")], {}, NOW)
        self.assertIsNone(stored[0].status)

    def test_history_is_appended_not_rewritten(self) -> None:
        history = {
            "A": ProductHistory(
                title="Producto",
                prices=[
                    PriceHistoryEntry("$900", EARLIER, is_initial=True),
                    PriceHistoryEntry(
                        "$1.000", EARLIER, previous_price="$900",
                    ),
                ],
            )
        }
        self.monitor.compare(
            [_stored("A", "$1.000")], [_current("A", "$950")], history, NOW,
        )
        prices = [e.price for e in history["A"].prices]
        self.assertEqual(prices, ["$900", "$1.000", "$950"])

    def test_unidentified_current_items_ignored(self) -> None:
        stored = [_stored("A", "$1.000")]
        result = self.monitor.compare(
            stored, [Product(title="sin id", price="$5")], {}, NOW,
        )
        self.assertEqual(stored[0].status, "not_found")
        self.assertEqual(result.unseen_listings, 0)

    def test_listings_not_in_catalog_are_counted_not_added(self) -> None:
        stored = [_stored("A", "$1.000")]
        result = self.monitor.compare(
            stored,
            [_current("A", "$1.000"), _current("Z", "$3.000")],
            {},
            NOW,
        )
        self.assertEqual(result.unseen_listings, 1)
        self.assertEqual(len(stored), 1)

    def test_first_current_occurrence_wins(self) -> None:
        stored = [_stored("A", "$1.000")]
        result = self.monitor.compare(
            stored,
            [_current("A", "$1.000"), _current("A", "$2.000")],
            {},
            NOW,
        )
        self.assertEqual(result.events, [])


class TestBuildReport(unittest.TestCase):

    def test_report_counts_and_ranking(self) -> None:
        monitor = PriceMonitor()
        history = {
            "B": ProductHistory(
                title="Frecuente",
                prices=[
                    PriceHistoryEntry("$1", EARLIER, is_initial=True),
                    PriceHistoryEntry("$2", EARLIER, previous_price="$1"),
                    PriceHistoryEntry("$3", EARLIER, previous_price="$2"),
                ],
            ),
            "D": ProductHistory(
                title="Quieto",
                prices=[PriceHistoryEntry("$5", EARLIER, is_initial=True)],
            ),
        }
        stored = [
            _stored("A", "$1.000", "Sube"),
            _stored("B", "$3", "Frecuente"),
            _stored("C", "$2.000", "Baja"),
            _stored("D", "$5", "Quieto"),
        ]
        current = [
            _current("A", "$1.200"),
            _current("B", "$4"),
            _current("C", "$1.500"),
            _current("D", "$5"),
        ]
        result = monitor.compare(stored, current, history, NOW)

        report = monitor.build_report(result, top_n=2)

        self.assertEqual(report.total_changes, 3)
        self.assertEqual([e.title for e in report.increases], ["Sube", "Frecuente"])
        self.assertEqual([e.title for e in report.decreases], ["Baja"])
        self.assertEqual(len(report.top_products), 2)
        top = report.top_products[0]
        self.assertEqual((top.product_id, top.change_count), ("B", 3))
        self.assertEqual(top.latest_price, "$4")
        self.assertNotIn("D", [t.product_id for t in report.top_products])

    def test_empty_report(self) -> None:
        monitor = PriceMonitor()
        result = monitor.compare([], [], {}, NOW)
        report = monitor.build_report(result)
        self.assertEqual(report.total_changes, 0)
        self.assertEqual(report.top_products, [])


if __name__ == "__main__":
    unittest.main()
