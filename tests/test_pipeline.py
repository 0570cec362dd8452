import unittest
from unittest.mock import patch

import requests

from locator.domain import AccuracySource, Category
from locator.factory import build_assistant
from locator.config import Settings
from locator.intent_classifier import IntentClassifier
from locator.location_resolver import LocationResolver
from locator.pipeline import LocationAssistant
from locator.positioning import ip_geolocation
from locator.tiers import StaticFallbackTier


class RecordingOracle:
    def __init__(self, reply):
        self.reply = reply
        self.prompts = []

    def complete(self, prompt):
        self.prompts.append(prompt)
        return self.reply


class OrderedResolver(LocationResolver):
    def __init__(self, events):
        super().__init__([StaticFallbackTier()])
        self.events = events

    async def resolve_location(self):
        self.events.append("resolve")
        return await super().resolve_location()


class OrderedClassifier(IntentClassifier):
    def __init__(self, events, oracle):
        super().__init__(oracle)
        self.events = events

    async def classify(self, user_text):
        self.events.append("classify")
        return await super().classify(user_text)


class TestLocationAssistant(unittest.IsolatedAsyncioTestCase):
    async def test_resolves_location_before_classifying(self):
        events = []
        assistant = LocationAssistant(OrderedClassifier(events, RecordingOracle("x")), OrderedResolver(events))
        turn = await assistant.handle_message("dimana atm terdekat")
        self.assertEqual(events, ["resolve", "classify"])
        self.assertEqual(turn.classification.category, Category.ATM)
        self.assertEqual(turn.classification.reply_text, "Saya akan carikan ATM untuk Anda.")
        self.assertEqual(turn.location.accuracy_source, AccuracySource.STATIC_FALLBACK)

    async def test_empty_message_rejected(self):
        assistant = LocationAssistant(IntentClassifier(RecordingOracle("x")), LocationResolver([StaticFallbackTier()]))
        with self.assertRaises(ValueError):
            await assistant.handle_message("   ")

    async def test_built_assistant_end_to_end_with_fake_oracle(self):
        oracle = RecordingOracle("Halo! Ada yang bisa saya bantu?")
        settings = Settings(location_redis_url=None)
        assistant = build_assistant(settings, oracle=oracle)
        offline = requests.exceptions.ConnectionError("offline")
        with patch.object(ip_geolocation, "session") as session:
            session.get.side_effect = offline
            turn = await assistant.handle_message("apa kabar")
        session.get.assert_called_once()
        self.assertEqual(turn.classification.category, Category.NONE)
        self.assertEqual(turn.classification.reply_text, "Halo! Ada yang bisa saya bantu?")
        self.assertEqual(turn.location.accuracy_source, AccuracySource.STATIC_FALLBACK)
        self.assertEqual(len(oracle.prompts), 1)


if __name__ == "__main__":
    unittest.main()
