"""
Classify a user message into a location-search category.

Keyword rules decide first. Only when no rule matches is the LLM oracle asked,
with a prompt that tells it to append a LOCATION_SEARCH marker when the
message is a place search. The marker is parsed strictly into a Category and
never shown to the user.
"""

from __future__ import annotations

import asyncio
import re
from typing import Optional, Protocol, Sequence

from .domain import Category, ClassificationResult
from .errors import ClassificationOracleFailure
from .intent_rules import CANNED_REPLIES, RULES, CategoryRule, match_category, normalize
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="intent_classifier")

MARKER = "LOCATION_SEARCH:"
APOLOGY_REPLY = "Maaf, silakan coba lagi."

PROMPT_TEMPLATE = (
    'Analyze: "{message}". If location search, respond: '
    '"Saya akan carikan [item] untuk Anda. LOCATION_SEARCH:[type]" '
    "where type is ATM, restaurants, pharmacy, gas station, hospitals, or hotels. "
    "If not location search, respond helpfully in Indonesian."
)

_MARKER_VALUE_RE = re.compile(re.escape(MARKER) + r'([^\n"]*)')
_MARKER_STRIP_RE = re.compile(r"[*_`]*" + re.escape(MARKER) + r".*")


class Oracle(Protocol):
    """Anything that turns a prompt into generated text, raising on failure."""

    def complete(self, prompt: str) -> str:
        ...


def build_prompt(user_text: str) -> str:
    return PROMPT_TEMPLATE.format(message=user_text)


def extract_marker_category(oracle_text: str) -> Optional[Category]:
    """Return the category named after the first marker, or None when there is no marker.

    A marker naming something outside the closed category set yields
    Category.NONE.
    """
    match = _MARKER_VALUE_RE.search(oracle_text or "")
    if not match:
        return None
    return Category.parse(match.group(1))


def strip_marker(text: str) -> str:
    """Remove marker text (up to end of line) from a reply."""
    return _MARKER_STRIP_RE.sub("", text or "").strip()


class IntentClassifier:
    """Rule-first intent classifier with an oracle fallback."""

    def __init__(
        self,
        oracle: Oracle,
        *,
        oracle_timeout: float = 25.0,
        rules: Sequence[CategoryRule] = RULES,
    ) -> None:
        self.oracle = oracle
        self.oracle_timeout = oracle_timeout
        self.rules = tuple(rules)

    async def classify(self, user_text: str) -> ClassificationResult:
        """Classify `user_text`; failures degrade to Category.NONE with an apology."""
        normalized = normalize(user_text)
        category = match_category(normalized, self.rules)
        if category is not None:
            logger.debug("Rule matched", extra={"category": category.value})
            return ClassificationResult(category=category, reply_text=CANNED_REPLIES[category])

        try:
            oracle_text = await self._ask_oracle(user_text)
        except asyncio.TimeoutError:
            logger.warning("Oracle timed out after %.1fs", self.oracle_timeout)
            return ClassificationResult(category=Category.NONE, reply_text=APOLOGY_REPLY)
        except ClassificationOracleFailure as exc:
            logger.warning("Oracle unavailable", extra={"error": str(exc)})
            return ClassificationResult(category=Category.NONE, reply_text=APOLOGY_REPLY)
        except Exception as exc:
            logger.exception("Unexpected oracle error: %s", exc)
            return ClassificationResult(category=Category.NONE, reply_text=APOLOGY_REPLY)

        return self._interpret(oracle_text)

    async def _ask_oracle(self, user_text: str) -> str:
        prompt = build_prompt(user_text)
        # The worker thread is not interrupted on timeout; its late reply is dropped.
        text = await asyncio.wait_for(asyncio.to_thread(self.oracle.complete, prompt), self.oracle_timeout)
        if not isinstance(text, str):
            raise ClassificationOracleFailure(f"Oracle returned {type(text).__name__}, expected text")
        return text

    def _interpret(self, oracle_text: str) -> ClassificationResult:
        category = extract_marker_category(oracle_text)
        if category is not None and category.is_location_search:
            logger.info("Oracle detected location search", extra={"category": category.value})
            return ClassificationResult(category=category, reply_text=CANNED_REPLIES[category])
        if category is not None:
            logger.warning("Oracle marker named an unknown category; treating as no intent")
        reply = strip_marker(oracle_text) or APOLOGY_REPLY
        return ClassificationResult(category=Category.NONE, reply_text=reply)
