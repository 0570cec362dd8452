"""Request flow: resolve the requester's position, then classify their message."""

from __future__ import annotations

from dataclasses import dataclass

from .domain import ClassificationResult, Coordinate
from .intent_classifier import IntentClassifier
from .location_resolver import LocationResolver
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="pipeline")


@dataclass(frozen=True)
class AssistantTurn:
    """Classification plus the position it was made at."""
    classification: ClassificationResult
    location: Coordinate


class LocationAssistant:
    def __init__(self, classifier: IntentClassifier, resolver: LocationResolver) -> None:
        self.classifier = classifier
        self.resolver = resolver

    async def handle_message(self, message: str) -> AssistantTurn:
        """Answer one user message. Raises ValueError for an empty message."""
        if not message or not message.strip():
            raise ValueError("Message is required")
        # position is context only; classification does not depend on it
        location = await self.resolver.resolve_location()
        classification = await self.classifier.classify(message)
        logger.info(
            "Handled message",
            extra={"category": classification.category.value, "location_source": location.accuracy_source.value},
        )
        return AssistantTurn(classification=classification, location=location)
