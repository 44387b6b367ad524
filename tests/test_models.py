"""Tests for the normalized product record invariants."""
import unittest

from pydantic import ValidationError

from nova.models.product import MAX_IMAGES, NormalizedProductRecord, Platform


def make_record(**overrides) -> NormalizedProductRecord:
    fields = {
        "platform": Platform.GENERIC_HTTP,
        "source_url": "https://shop.example.com/p/1",
        "title": "Handmade Ceramic Vase",
        "price": 45.0,
    }
    fields.update(overrides)
    return NormalizedProductRecord(**fields)


class TestNormalizedProductRecord(unittest.TestCase):

    def test_images_deduped_without_data_uris(self):
        record = make_record(images=[
            "https://cdn.example.com/a.jpg",
            "data:image/png;base64,AAAA",
            "https://cdn.example.com/a.jpg",
            "https://cdn.example.com/b.jpg",
        ])
        self.assertEqual(record.images, [
            "https://cdn.example.com/a.jpg",
            "https://cdn.example.com/b.jpg",
        ])

    def test_uppercase_data_uris_dropped(self):
        record = make_record(images=["DATA:image/png;base64,AAAA", "https://cdn.example.com/a.jpg"])
        self.assertEqual(record.images, ["https://cdn.example.com/a.jpg"])

    def test_images_capped(self):
        record = make_record(images=[f"https://cdn.example.com/{i}.jpg" for i in range(40)])
        self.assertEqual(len(record.images), MAX_IMAGES)
        self.assertEqual(record.images[0], "https://cdn.example.com/0.jpg")

    def test_negative_and_garbage_price_become_zero(self):
        self.assertEqual(make_record(price=-5).price, 0.0)
        self.assertEqual(make_record(price=None).price, 0.0)
        self.assertEqual(make_record(price="n/a").price, 0.0)

    def test_original_price_below_price_is_dropped(self):
        self.assertIsNone(make_record(price=20.0, original_price=10.0).original_price)
        self.assertEqual(make_record(price=20.0, original_price=30.0).original_price, 30.0)
        self.assertIsNone(make_record(price=20.0, original_price=0).original_price)

    def test_defaults(self):
        record = make_record()
        self.assertEqual(record.currency, "USD")
        self.assertEqual(record.description, "")
        self.assertEqual(record.bullets, [])
        self.assertEqual(record.variants, [])
        self.assertFalse(record.is_demo)

    def test_immutable(self):
        record = make_record()
        with self.assertRaises(ValidationError):
            record.title = "Changed"

    def test_api_dict_uses_camel_case(self):
        data = make_record(original_price=60.0, review_count=3).to_api_dict()
        self.assertEqual(data["platform"], "genericHttp")
        self.assertEqual(data["sourceUrl"], "https://shop.example.com/p/1")
        self.assertEqual(data["originalPrice"], 60.0)
        self.assertEqual(data["reviewCount"], 3)
        self.assertIn("isDemo", data)
        self.assertIn("scrapedAt", data)
        self.assertNotIn("source_url", data)

    def test_accepts_alias_names(self):
        record = NormalizedProductRecord(
            platform="amazon",
            sourceUrl="https://www.amazon.com/dp/X",
            title="Water Bottle",
            price=10,
            isDemo=False,
        )
        self.assertEqual(record.platform, Platform.AMAZON)
        self.assertEqual(record.source_url, "https://www.amazon.com/dp/X")

    def test_field_presence(self):
        record = make_record(images=["https://cdn.example.com/a.jpg"])
        self.assertIn("images", record.get_present_fields())
        self.assertIn("bullets", record.get_missing_fields())
        self.assertNotIn("title", record.get_missing_fields())


if __name__ == "__main__":
    unittest.main()
