import time
import unittest

from locator.domain import Category
from locator.errors import OracleUnavailableError
from locator.intent_classifier import (
    APOLOGY_REPLY,
    IntentClassifier,
    build_prompt,
    extract_marker_category,
    strip_marker,
)


class FakeOracle:
    def __init__(self, reply="", error=None, delay=0.0):
        self.reply = reply
        self.error = error
        self.delay = delay
        self.prompts = []

    def complete(self, prompt):
        self.prompts.append(prompt)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


class TestIntentClassifier(unittest.IsolatedAsyncioTestCase):
    async def test_rule_match_skips_oracle(self):
        oracle = FakeOracle()
        result = await IntentClassifier(oracle).classify("dimana atm terdekat")
        self.assertEqual(result.category, Category.ATM)
        self.assertEqual(result.reply_text, "Saya akan carikan ATM untuk Anda.")
        self.assertEqual(oracle.prompts, [])

    async def test_every_keyword_category_avoids_oracle(self):
        oracle = FakeOracle()
        classifier = IntentClassifier(oracle)
        for text, expected in [
            ("Cari RESTORAN padang", Category.RESTAURANT),
            ("apotek buka", Category.PHARMACY),
            ("pom bensin", Category.GAS_STATION),
            ("hospital nearby", Category.HOSPITAL),
            ("homestay bali", Category.HOTEL),
        ]:
            with self.subTest(text=text):
                result = await classifier.classify(text)
                self.assertEqual(result.category, expected)
        self.assertEqual(oracle.prompts, [])

    async def test_priority_decides_between_two_matches(self):
        result = await IntentClassifier(FakeOracle()).classify("ada atm di dekat hotel?")
        self.assertEqual(result.category, Category.ATM)

    async def test_oracle_marker_yields_category_and_strips_marker(self):
        oracle = FakeOracle(reply="Saya akan carikan tempat untuk Anda. LOCATION_SEARCH:restaurants")
        result = await IntentClassifier(oracle).classify("aku lapar sekali")
        self.assertEqual(result.category, Category.RESTAURANT)
        self.assertNotIn("LOCATION_SEARCH", result.reply_text)
        self.assertEqual(result.reply_text, "Saya akan carikan restoran untuk Anda.")
        self.assertEqual(len(oracle.prompts), 1)
        self.assertIn('Analyze: "aku lapar sekali"', oracle.prompts[0])

    async def test_markdown_wrapped_marker_is_recognized(self):
        oracle = FakeOracle(reply="Saya akan carikan restoran untuk Anda. **LOCATION_SEARCH:restaurants**")
        result = await IntentClassifier(oracle).classify("aku lapar sekali")
        self.assertEqual(result.category, Category.RESTAURANT)
        self.assertEqual(result.reply_text, "Saya akan carikan restoran untuk Anda.")

    async def test_oracle_conversational_reply(self):
        oracle = FakeOracle(reply="Halo! Ada yang bisa saya bantu?")
        result = await IntentClassifier(oracle).classify("apa kabar")
        self.assertEqual(result.category, Category.NONE)
        self.assertEqual(result.reply_text, "Halo! Ada yang bisa saya bantu?")

    async def test_unknown_marker_category_collapses_to_none(self):
        oracle = FakeOracle(reply="Baik.\nLOCATION_SEARCH: somewhere weird")
        result = await IntentClassifier(oracle).classify("bawa aku pergi")
        self.assertEqual(result.category, Category.NONE)
        self.assertEqual(result.reply_text, "Baik.")

    async def test_marker_only_reply_falls_back_to_apology(self):
        oracle = FakeOracle(reply="LOCATION_SEARCH:museum")
        result = await IntentClassifier(oracle).classify("bawa aku pergi")
        self.assertEqual(result.category, Category.NONE)
        self.assertEqual(result.reply_text, APOLOGY_REPLY)

    async def test_oracle_failure_returns_apology(self):
        oracle = FakeOracle(error=OracleUnavailableError("both endpoints down"))
        result = await IntentClassifier(oracle).classify("apa kabar")
        self.assertEqual(result.category, Category.NONE)
        self.assertEqual(result.reply_text, APOLOGY_REPLY)

    async def test_unexpected_oracle_exception_is_contained(self):
        oracle = FakeOracle(error=KeyError("choices"))
        result = await IntentClassifier(oracle).classify("apa kabar")
        self.assertEqual(result.category, Category.NONE)
        self.assertTrue(result.reply_text)

    async def test_oracle_timeout_is_enforced_by_classifier(self):
        oracle = FakeOracle(reply="LOCATION_SEARCH:hotels", delay=0.3)
        started = time.monotonic()
        result = await IntentClassifier(oracle, oracle_timeout=0.05).classify("apa kabar")
        self.assertLess(time.monotonic() - started, 0.25)
        self.assertEqual(result.category, Category.NONE)
        self.assertEqual(result.reply_text, APOLOGY_REPLY)


class TestMarkerHelpers(unittest.TestCase):
    def test_extract_first_marker_only(self):
        text = 'ok "LOCATION_SEARCH:pharmacy" and LOCATION_SEARCH:hotels'
        self.assertEqual(extract_marker_category(text), Category.PHARMACY)

    def test_extract_without_marker(self):
        self.assertIsNone(extract_marker_category("tidak ada penanda"))

    def test_strip_marker_keeps_other_lines(self):
        self.assertEqual(strip_marker("Siap! LOCATION_SEARCH:ATM\n"), "Siap!")

    def test_strip_marker_removes_emphasis_before_marker(self):
        self.assertEqual(strip_marker("Baik. **LOCATION_SEARCH:museum**"), "Baik.")
        self.assertEqual(strip_marker("Baik.\n`LOCATION_SEARCH:hotels`"), "Baik.")

    def test_prompt_template(self):
        prompt = build_prompt("cari makan enak")
        self.assertTrue(prompt.startswith('Analyze: "cari makan enak". If location search, respond:'))
        self.assertIn("LOCATION_SEARCH:[type]", prompt)


if __name__ == "__main__":
    unittest.main()
