# tests/test_site_config.py

"""Tests for the selectors.json loader."""

import json
import tempfile
import unittest
from pathlib import Path

from pharma_catalog.scrapers.site_config import (
    PAGINATION_LOAD_MORE,
    PAGINATION_PAGE_TURN,
    ControlSpec,
    FieldLocator,
    ListingSpec,
    load_site_config,
)


class TestLoadSiteConfig(unittest.TestCase):

    def test_all_registered_sites_load(self) -> None:
        for site_id in ("ahumada", "cruz_verde", "salcobrand"):
            config = load_site_config(site_id)
            self.assertEqual(config.site_id, site_id)
            names = [f.name for f in config.fields]
            for required in ("identifier", "title", "price", "image"):
                self.assertIn(required, names)
            self.assertTrue(config.listing.container)
            self.assertTrue(config.listing.alt_container)

    def test_pagination_variants(self) -> None:
        self.assertEqual(
            load_site_config("ahumada").pagination, PAGINATION_LOAD_MORE,
        )
        self.assertEqual(
            load_site_config("cruz_verde").pagination, PAGINATION_PAGE_TURN,
        )
        self.assertFalse(load_site_config("ahumada").load_more.is_empty)
        self.assertFalse(load_site_config("salcobrand").next_page.is_empty)

    def test_page_size_specs(self) -> None:
        cruz = load_site_config("cruz_verde").page_size
        salco = load_site_config("salcobrand").page_size
        assert cruz is not None and salco is not None
        self.assertEqual(cruz.value, "48")
        self.assertTrue(cruz.opener)
        self.assertEqual(salco.value, "96")
        self.assertTrue(salco.select)
        self.assertTrue(salco.reapply)
        self.assertIsNone(load_site_config("ahumada").page_size)

    def test_unknown_site(self) -> None:
        with self.assertRaises(KeyError):
            load_site_config("farmacia_inexistente")

    def test_custom_path(self) -> None:
        raw = {
            "demo": {
                "listing": {"container": "#g", "item": ".t"},
                "fields": {"title": {"candidates": [".n"]}},
            }
        }
        path = Path(tempfile.mkdtemp()) / "selectors.json"
        path.write_text(json.dumps(raw), encoding="utf-8")
        config = load_site_config("demo", path)
        self.assertEqual(config.pagination, PAGINATION_PAGE_TURN)
        self.assertEqual(config.fields[0].sentinel, "No title found")
        self.assertTrue(config.consent.is_empty)


class TestConfigPieces(unittest.TestCase):

    def test_field_locator_from_string(self) -> None:
        locator = FieldLocator.from_raw(".price")
        self.assertEqual(locator.css, ".price")
        self.assertIsNone(locator.attr)
        self.assertIsNone(locator.pattern)

    def test_field_locator_with_pattern(self) -> None:
        locator = FieldLocator.from_raw(
            {"css": "a", "attr": "href", "pattern": r"/(\d+)\.html"}
        )
        assert locator.pattern is not None
        self.assertEqual(
            locator.pattern.search("/x/123.html").group(1), "123",
        )

    def test_control_spec_defaults(self) -> None:
        control = ControlSpec.from_raw(None)
        self.assertTrue(control.is_empty)
        self.assertEqual(control.text_scope, "button")

    def test_listing_count_selector(self) -> None:
        listing = ListingSpec(
            container="#a", alt_container="#b", item=":scope > li",
        )
        self.assertEqual(listing.ready_selectors, ("#a", "#b"))
        self.assertEqual(listing.count_selector, "#a > li, #b > li")


if __name__ == "__main__":
    unittest.main()
