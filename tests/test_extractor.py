# tests/test_extractor.py

"""Tests for per-item field extraction over rendered listing HTML."""

import unittest
from typing import Any
from unittest.mock import patch

from browser_fakes import listing_html, make_config, tile

from pharma_catalog.scrapers import locators
from pharma_catalog.scrapers.extractor import ExtractionError, FieldExtractor
from pharma_catalog.scrapers.site_config import load_site_config


class TestFieldExtractor(unittest.TestCase):

    def setUp(self) -> None:
        self.extractor = FieldExtractor(make_config())

    def test_full_tile(self) -> None:
        html = listing_html([
            tile("A", "Aspirina 100 mg", "$1.990", "https://img/a.jpg"),
        ])
        batch = self.extractor.extract_listing(html)
        self.assertTrue(batch.container_found)
        self.assertEqual(batch.item_count, 1)
        product = batch.products[0]
        self.assertEqual(product.identifier, "A")
        self.assertEqual(product.title, "Aspirina 100 mg")
        self.assertEqual(product.price, "$1.990")
        self.assertEqual(product.image, "https://img/a.jpg")

    def test_missing_price_becomes_sentinel(self) -> None:
        """A tile without a price is kept with the sentinel value."""
        html = listing_html([tile("A", price=None)])
        batch = self.extractor.extract_listing(html)
        self.assertEqual(len(batch.products), 1)
        self.assertEqual(batch.products[0].price, "No price found")
        self.assertEqual(batch.error_count, 0)

    def test_missing_identifier_and_image(self) -> None:
        html = listing_html([tile(None, image=None)])
        product = self.extractor.extract_listing(html).products[0]
        self.assertEqual(product.identifier, "No product ID found")
        self.assertFalse(product.has_identifier)
        self.assertEqual(product.image, "No image found")

    def test_alternative_container(self) -> None:
        html = listing_html([tile("B")], container_id="alt-grid")
        batch = self.extractor.extract_listing(html)
        self.assertTrue(batch.container_found)
        self.assertEqual([p.identifier for p in batch.products], ["B"])

    def test_empty_primary_falls_through_to_alternative(self) -> None:
        html = (
            '<div id="grid"></div>'
            f'<div id="alt-grid">{tile("C")}</div>'
        )
        batch = self.extractor.extract_listing(html)
        self.assertEqual([p.identifier for p in batch.products], ["C"])

    def test_no_container_is_empty_batch(self) -> None:
        with self.assertLogs("pharma_catalog.testshop.extractor", "WARNING"):
            batch = self.extractor.extract_listing(
                "<html><body><p>Sin resultados</p></body></html>"
            )
        self.assertFalse(batch.container_found)
        self.assertEqual(batch.products, [])

    def test_item_error_dropped_not_fatal(self) -> None:
        real_read_field = locators.read_field

        def flaky(item: Any, candidates: Any) -> str | None:
            if item.get("data-pid") == "BAD":
                raise ValueError("broken tile")
            return real_read_field(item, candidates)

        html = listing_html([tile("A"), tile("BAD"), tile("C")])
        with patch(
            "pharma_catalog.scrapers.extractor.read_field",
            side_effect=flaky,
        ):
            batch = self.extractor.extract_listing(html)
        self.assertEqual(
            [p.identifier for p in batch.products], ["A", "C"],
        )
        self.assertEqual(batch.item_count, 3)
        self.assertEqual(batch.error_count, 1)

    def test_extract_item_returns_error_record(self) -> None:
        with patch(
            "pharma_catalog.scrapers.extractor.read_field",
            side_effect=RuntimeError("boom"),
        ):
            from bs4 import BeautifulSoup

            node = BeautifulSoup(tile("A"), "lxml").select_one(".tile")
            assert node is not None
            result = self.extractor.extract_item(node, 4)
        assert isinstance(result, ExtractionError)
        self.assertEqual(result.index, 4)
        self.assertIn("boom", result.message)


class TestSiteMarkup(unittest.TestCase):
    """Realistic tiles against the shipped selectors.json chains."""

    def test_ahumada_tile(self) -> None:
        html = (
            '<div id="maincontent"><div class="container search-results">'
            "<div></div><div></div><div><div>"
            '<div class="product-tile" data-pid="108567">'
            '<div class="pdp-link"><a title="Tapsin Día 12 Tabletas" '
            'href="/tapsin-dia-108567.html">Tapsin Día</a></div>'
            '<div class="price"><span><span><span>$2.990</span>'
            "</span></span></div>"
            '<img class="tile-image" src="https://img.ahumada.cl/t.jpg">'
            "</div></div></div></div></div>"
        )
        extractor = FieldExtractor(load_site_config("ahumada"))
        product = extractor.extract_listing(html).products[0]
        self.assertEqual(product.identifier, "108567")
        self.assertEqual(product.title, "Tapsin Día 12 Tabletas")
        self.assertEqual(product.price, "$2.990")
        self.assertEqual(product.image, "https://img.ahumada.cl/t.jpg")

    def test_cruz_verde_card(self) -> None:
        html = (
            '<tpl-catalog><div class="atomic-container">'
            '<div class="grid grid-cols-4 gap-50"><div class="col-span-4">'
            "<div><ml-card-product><div>"
            '<a href="/loratadina-10-mg/272727.html">'
            '<img src="https://img.cruzverde.cl/l.jpg"></a>'
            '<p class="brand">Mintlab</p>'
            '<h3 class="title">Loratadina 10 mg 30 Comprimidos</h3>'
            '<ml-price-tag><div class="flex items-center order-4">'
            '<span class="font-bold text-prices text-16">$2.490</span>'
            "</div></ml-price-tag>"
            "</div></ml-card-product></div>"
            "</div></div></div></tpl-catalog>"
        )
        extractor = FieldExtractor(load_site_config("cruz_verde"))
        product = extractor.extract_listing(html).products[0]
        self.assertEqual(product.identifier, "272727")
        self.assertEqual(product.title, "Loratadina 10 mg 30 Comprimidos")
        self.assertEqual(product.price, "$2.490")
        self.assertEqual(
            product.extras["url"],
            "https://www.cruzverde.cl/loratadina-10-mg/272727.html",
        )
        self.assertEqual(product.extras["brand"], "Mintlab")
        self.assertEqual(
            product.extras["memberPrice"], "No member price found",
        )

    def test_salcobrand_hit(self) -> None:
        html = (
            '<div id="content"><div><div class="ais-Hits"><ul><li><div>'
            '<div class="product">'
            '<div class="product-image"><img src="/img/ibu.jpg"></div>'
            '<div><div class="info">'
            '<a href="/products/ibuprofeno-400?default_sku=5512345">'
            '<span class="product-info truncate">  Ibuprofeno   '
            "Pediátrico </span></a></div></div>"
            '<div class="product-prices">'
            '<span class="sale-price">$3.290</span></div>'
            "</div></div></li></ul></div></div></div>"
        )
        extractor = FieldExtractor(load_site_config("salcobrand"))
        batch = extractor.extract_listing(html)
        self.assertEqual(batch.item_count, 1)
        product = batch.products[0]
        self.assertEqual(product.identifier, "5512345")
        self.assertEqual(product.title, "Ibuprofeno Pediatrico")
        self.assertEqual(product.price, "$3.290")
        self.assertEqual(
            product.extras["url"],
            "https://salcobrand.cl/products/ibuprofeno-400"
            "?default_sku=5512345",
        )


if __name__ == "__main__":
    unittest.main()
