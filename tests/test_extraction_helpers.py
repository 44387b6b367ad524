"""Tests for the shared extraction helpers."""
import unittest

from bs4 import BeautifulSoup

from nova.adapters.base import (
    EmbeddedPattern,
    MalformedEmbeddedDataError,
    collect_images,
    dig,
    find_embedded_json,
    first_present,
    loads_js_object,
    normalize_image_url,
    parse_int,
    parse_price,
    parse_rating,
    title_tag_prefix,
)
from nova.adapters.aliexpress import extract_product_id, full_size_image as ali_full_size
from nova.adapters.amazon import full_size_image as amazon_full_size


class TestParsePrice(unittest.TestCase):

    def test_currency_prefixes_are_stripped(self):
        self.assertEqual(parse_price("US $12.99"), 12.99)
        self.assertEqual(parse_price("$24.95"), 24.95)
        self.assertEqual(parse_price("€45"), 45.0)

    def test_thousands_separator(self):
        self.assertEqual(parse_price("$1,299.00"), 1299.0)

    def test_range_takes_first_value(self):
        self.assertEqual(parse_price("$1.20 - $3.50"), 1.2)

    def test_numbers_pass_through(self):
        self.assertEqual(parse_price(19.99), 19.99)
        self.assertEqual(parse_price(5), 5.0)

    def test_missing_price_is_zero(self):
        for value in [None, "", "Contact supplier", -3, 0, True]:
            with self.subTest(value=value):
                self.assertEqual(parse_price(value), 0.0)


class TestNumberParsing(unittest.TestCase):

    def test_parse_int(self):
        self.assertEqual(parse_int("12,345 ratings"), 12345)
        self.assertEqual(parse_int(7), 7)
        self.assertIsNone(parse_int("no reviews"))
        self.assertIsNone(parse_int(None))

    def test_parse_rating(self):
        self.assertEqual(parse_rating("4.6 out of 5 stars"), 4.6)
        self.assertEqual(parse_rating(4), 4.0)
        self.assertIsNone(parse_rating("0"))
        self.assertIsNone(parse_rating("12 out of 10"))
        self.assertIsNone(parse_rating(None))


class TestImageNormalization(unittest.TestCase):

    def test_protocol_relative_becomes_https(self):
        self.assertEqual(
            normalize_image_url("//cdn.example.com/a.jpg"),
            "https://cdn.example.com/a.jpg",
        )

    def test_relative_resolved_against_page(self):
        self.assertEqual(
            normalize_image_url("/img/a.jpg", "https://shop.example.com/p/1"),
            "https://shop.example.com/img/a.jpg",
        )
        self.assertIsNone(normalize_image_url("img/a.jpg"))

    def test_data_uri_dropped(self):
        self.assertIsNone(normalize_image_url("data:image/png;base64,AAAA"))

    def test_data_uri_dropped_regardless_of_case(self):
        self.assertIsNone(normalize_image_url(" DATA:image/png;base64,AAA", "https://shop.example.com/p"))
        self.assertEqual(
            collect_images(
                ["DATA:image/png;base64,AAA", "Data:image/gif;base64,R0l", "/img/a.jpg"],
                base_url="https://shop.example.com/p",
            ),
            ["https://shop.example.com/img/a.jpg"],
        )

    def test_collect_images_dedupes_and_caps(self):
        sources = ["//cdn.example.com/a.jpg", "https://cdn.example.com/a.jpg", None, ""]
        sources += [f"https://cdn.example.com/{i}.jpg" for i in range(30)]
        images = collect_images(sources)
        self.assertEqual(images[0], "https://cdn.example.com/a.jpg")
        self.assertEqual(len(images), 15)
        self.assertEqual(len(set(images)), len(images))

    def test_aliexpress_thumbnails(self):
        self.assertEqual(
            ali_full_size("https://ae01.alicdn.com/kf/H1.jpg_220x220.jpg"),
            "https://ae01.alicdn.com/kf/H1.jpg",
        )
        self.assertEqual(
            ali_full_size("https://ae01.alicdn.com/kf/H1.jpg_640x640q75.jpg_.webp"),
            "https://ae01.alicdn.com/kf/H1.jpg",
        )
        self.assertEqual(
            ali_full_size("https://ae01.alicdn.com/kf/H1_50x50.png"),
            "https://ae01.alicdn.com/kf/H1.png",
        )

    def test_amazon_size_segment(self):
        self.assertEqual(
            amazon_full_size("https://m.media-amazon.com/images/I/71abc._AC_SX679_.jpg"),
            "https://m.media-amazon.com/images/I/71abc.jpg",
        )


class TestFieldAccess(unittest.TestCase):

    def test_dig(self):
        data = {"a": {"b": [{"c": 1}]}}
        self.assertEqual(dig(data, "a", "b", 0, "c"), 1)
        self.assertIsNone(dig(data, "a", "x", "c"))
        self.assertIsNone(dig(data, "a", "b", 5))
        self.assertIsNone(dig(None, "a"))

    def test_first_present_skips_empty_and_errors(self):
        data = {"title": "  "}
        value = first_present(
            lambda: data["missing"]["deeper"],
            lambda: data["title"],
            lambda: None,
            lambda: [],
            lambda: "  Found  ",
            lambda: "Too late",
        )
        self.assertEqual(value, "Found")

    def test_first_present_all_absent(self):
        self.assertIsNone(first_present(lambda: None, lambda: {}["x"]))

    def test_title_tag_prefix(self):
        soup = BeautifulSoup("<title>Wireless Charger - Shop - Site</title>", "lxml")
        self.assertEqual(title_tag_prefix(soup), "Wireless Charger")

    def test_extract_product_id(self):
        self.assertEqual(
            extract_product_id("https://www.aliexpress.com/item/1005001234567890.html"),
            "1005001234567890",
        )
        self.assertEqual(extract_product_id("https://a.aliexpress.com/4000123.html"), "4000123")
        self.assertIsNone(extract_product_id("https://www.aliexpress.com/store/123"))


class TestEmbeddedJson(unittest.TestCase):

    PATTERNS = [
        EmbeddedPattern("run_params", r"window\.runParams\s*=\s*"),
        EmbeddedPattern("action_module_data", r"data:\s*", required_key="actionModule"),
        EmbeddedPattern("init_data", r"__INIT_DATA__\s*=\s*"),
    ]

    def soup(self, script: str) -> BeautifulSoup:
        return BeautifulSoup(f"<html><body><script>{script}</script></body></html>", "lxml")

    def test_first_pattern_wins(self):
        soup = self.soup(
            'window.runParams = {"a": 1}; __INIT_DATA__ = {"b": 2};'
        )
        self.assertEqual(find_embedded_json(soup, self.PATTERNS), {"a": 1})

    def test_malformed_blob_falls_through_to_next_pattern(self):
        soup = self.soup(
            "window.runParams = {broken: json,};\n"
            '__INIT_DATA__ = {"data": {"titleModule": {"subject": "Init"}}};'
        )
        data = find_embedded_json(soup, self.PATTERNS)
        self.assertEqual(data["data"]["titleModule"]["subject"], "Init")

    def test_required_key(self):
        soup = self.soup(
            'var cfg = {data: {"other": 1}};\n'
            'var page = {data: {"actionModule": {}, "titleModule": {"subject": "X"}}};'
        )
        data = find_embedded_json(soup, self.PATTERNS)
        self.assertIn("actionModule", data)

    def test_nested_braces_decoded_whole(self):
        soup = self.soup('window.runParams = {"a": {"b": {"c": "};"}}};')
        self.assertEqual(find_embedded_json(soup, self.PATTERNS), {"a": {"b": {"c": "};"}}})

    def test_nothing_found(self):
        soup = self.soup("console.log('hi');")
        self.assertIsNone(find_embedded_json(soup, self.PATTERNS))

    def test_loads_js_object(self):
        self.assertEqual(loads_js_object("{'a': [1, 2,]}"), {"a": [1, 2]})
        with self.assertRaises(MalformedEmbeddedDataError):
            loads_js_object("{not json")


if __name__ == "__main__":
    unittest.main()
