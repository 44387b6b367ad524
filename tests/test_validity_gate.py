"""Tests for the validity gate and the demo fallback record."""
import unittest
from datetime import datetime, timezone

from nova.layers.validity_gate import DEMO_RECORD, ValidityGate
from nova.models.product import NormalizedProductRecord, Platform

FIXED_TIME = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)
URL = "https://www.aliexpress.com/item/1005001234567890.html"


def candidate(**overrides) -> NormalizedProductRecord:
    fields = {
        "platform": Platform.ALIEXPRESS,
        "source_url": URL,
        "title": "Wireless Charger",
        "price": 12.99,
        "images": ["https://ae01.alicdn.com/kf/H1.jpg"],
    }
    fields.update(overrides)
    return NormalizedProductRecord(**fields)


class TestValidityGate(unittest.TestCase):

    def setUp(self):
        self.gate = ValidityGate(clock=lambda: FIXED_TIME)

    def test_accepts_valid_candidate(self):
        record = self.gate.accept(candidate(), Platform.ALIEXPRESS, URL)
        self.assertFalse(record.is_demo)
        self.assertEqual(record.title, "Wireless Charger")
        self.assertEqual(record.price, 12.99)
        self.assertEqual(record.scraped_at, FIXED_TIME)

    def test_acceptance_changes_only_stamp_fields(self):
        original = candidate(bullets=["Fast"], rating=4.2)
        record = self.gate.accept(original, Platform.ALIEXPRESS, URL)
        self.assertEqual(
            record.model_dump(exclude={"scraped_at", "is_demo"}),
            original.model_dump(exclude={"scraped_at", "is_demo"}),
        )

    def test_rejection_criteria(self):
        cases = {
            "extraction_failed": None,
            "title_missing": candidate(title=""),
            "title_too_short": candidate(title="Mug"),
            "error_page_title": candidate(title="404 - Page Not Found"),
            "price_missing": candidate(price=0),
        }
        for expected_reason, item in cases.items():
            with self.subTest(reason=expected_reason):
                self.assertEqual(self.gate.reject_reason(item), expected_reason)
                record = self.gate.accept(item, Platform.ALIEXPRESS, URL)
                self.assertTrue(record.is_demo)
                self.assertEqual(record.title, "Premium Wireless Bluetooth Earbuds Pro")

    def test_demo_record_is_addressed_to_request(self):
        record = self.gate.accept(None, Platform.AMAZON, "https://www.amazon.com/dp/X")
        self.assertEqual(record.platform, Platform.AMAZON)
        self.assertEqual(record.source_url, "https://www.amazon.com/dp/X")
        self.assertEqual(record.price, 49.99)
        self.assertEqual(record.original_price, 129.99)
        self.assertEqual(record.review_count, 12847)
        self.assertEqual(record.variants[0].name, "Color")
        self.assertEqual(len(record.images), 4)

    def test_demo_record_is_deterministic(self):
        first = self.gate.accept(candidate(price=0), Platform.ALIEXPRESS, URL)
        second = ValidityGate().accept(candidate(title="x"), Platform.ALIEXPRESS, URL)
        self.assertEqual(first.model_dump_json(), second.model_dump_json())

    def test_demo_record_passes_its_own_criteria(self):
        self.assertIsNone(self.gate.reject_reason(DEMO_RECORD))

    def test_gate_is_idempotent_on_demo_record(self):
        demo = self.gate.accept(None, Platform.CJ, URL)
        again = self.gate.accept(demo, Platform.CJ, URL)
        self.assertEqual(again, demo)
        self.assertTrue(again.is_demo)

    def test_constant_is_not_mutated(self):
        self.gate.accept(None, Platform.AMAZON, "https://www.amazon.com/dp/X")
        self.assertEqual(DEMO_RECORD.platform, Platform.GENERIC_HTTP)
        self.assertEqual(DEMO_RECORD.source_url, "")

    def test_mutating_a_demo_copy_leaves_later_copies_intact(self):
        first = self.gate.accept(None, Platform.CJ, URL)
        first.images.append("https://cdn.example.com/extra.jpg")
        first.bullets.clear()
        first.variants[0].options.clear()
        first.specifications.pop()

        second = self.gate.accept(None, Platform.CJ, URL)
        self.assertEqual(len(second.images), 4)
        self.assertEqual(len(second.bullets), 6)
        self.assertEqual(len(second.variants[0].options), 3)
        self.assertEqual(len(second.specifications), 4)
        self.assertEqual(len(DEMO_RECORD.images), 4)
        self.assertEqual(len(DEMO_RECORD.bullets), 6)

    def test_custom_demo_record(self):
        custom = DEMO_RECORD.model_copy(update={"title": "Custom Placeholder"})
        gate = ValidityGate(demo_record=custom)
        self.assertEqual(gate.accept(None, Platform.CJ, URL).title, "Custom Placeholder")


if __name__ == "__main__":
    unittest.main()
