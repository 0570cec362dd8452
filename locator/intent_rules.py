"""Keyword rules for location-search intents, in priority order.

The first matching rule wins, so a message mentioning both an ATM and a
restaurant is an ATM search. Reorder RULES to change precedence.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Sequence

from locator.domain import Category


@dataclass(frozen=True)
class CategoryRule:
    """A (pattern, category) pair tested against normalized text."""
    category: Category
    pattern: re.Pattern

    def matches(self, normalized_text: str) -> bool:
        return self.pattern.search(normalized_text) is not None


def _rule(category: Category, *keywords: str) -> CategoryRule:
    return CategoryRule(category, re.compile("|".join(re.escape(k) for k in keywords), re.IGNORECASE))


RULES: tuple[CategoryRule, ...] = (
    _rule(Category.ATM, "atm"),
    _rule(Category.RESTAURANT, "restoran", "restaurant", "makan", "kuliner", "tempat makan", "warung", "cafe", "gultik"),
    _rule(Category.PHARMACY, "apotek", "pharmacy", "obat", "farmasi"),
    _rule(Category.GAS_STATION, "spbu", "gas station", "bensin", "pertamina", "shell", "pom"),
    _rule(Category.HOSPITAL, "rumah sakit", "hospital", "rs ", "klinik"),
    _rule(Category.HOTEL, "hotel", "penginapan", "homestay"),
)

CANNED_REPLIES: dict[Category, str] = {
    Category.ATM: "Saya akan carikan ATM untuk Anda.",
    Category.RESTAURANT: "Saya akan carikan restoran untuk Anda.",
    Category.PHARMACY: "Saya akan carikan apotek untuk Anda.",
    Category.GAS_STATION: "Saya akan carikan SPBU untuk Anda.",
    Category.HOSPITAL: "Saya akan carikan rumah sakit untuk Anda.",
    Category.HOTEL: "Saya akan carikan hotel untuk Anda.",
}


def normalize(text: str) -> str:
    return (text or "").strip().lower()


def match_category(normalized_text: str, rules: Sequence[CategoryRule] = RULES) -> Optional[Category]:
    """Return the category of the first matching rule, or None."""
    for rule in rules:
        if rule.matches(normalized_text):
            return rule.category
    return None
