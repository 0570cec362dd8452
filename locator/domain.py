"""Domain vocabulary shared by the intent classifier and the location resolver.

Enums and strict Pydantic value types only; no classification or resolution
logic lives here.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _FrozenModel(BaseModel):
    """Immutable model that rejects unknown fields."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class Category(str, Enum):
    """Location-search intents. Values are the search terms used for map lookups."""
    ATM = "ATM"
    RESTAURANT = "restaurants"
    PHARMACY = "pharmacy"
    GAS_STATION = "gas station"
    HOSPITAL = "hospitals"
    HOTEL = "hotels"
    NONE = "none"

    @property
    def is_location_search(self) -> bool:
        return self is not Category.NONE

    @classmethod
    def parse(cls, raw: str | None) -> "Category":
        """Strictly map free text to a category; anything unrecognized is NONE.

        Accepts the search term or the member name, case-insensitively, with
        surrounding brackets, quotes, markdown emphasis and punctuation
        ignored.
        """
        if not raw:
            return cls.NONE
        key = raw.strip().strip("[]()\"'`*_.,;:!").strip().lower()
        return _CATEGORY_LOOKUP.get(key, cls.NONE)


_CATEGORY_LOOKUP: dict[str, Category] = {}
for _member in Category:
    if _member is Category.NONE:
        continue
    _CATEGORY_LOOKUP[_member.value.lower()] = _member
    _CATEGORY_LOOKUP[_member.name.lower()] = _member
    _CATEGORY_LOOKUP[_member.name.lower().replace("_", " ")] = _member
    _CATEGORY_LOOKUP[_member.name.lower().replace("_", "")] = _member
del _member


class AccuracySource(str, Enum):
    """Which resolution tier produced a coordinate."""
    PRECISE = "precise"
    APPROXIMATE = "approximate"
    NETWORK_DERIVED = "network_derived"
    STATIC_FALLBACK = "static_fallback"


class Coordinate(_FrozenModel):
    """A resolved position tagged with the tier that produced it."""
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    accuracy_source: AccuracySource
    accuracy_radius_meters: Optional[float] = Field(default=None, ge=0.0)


class ClassificationResult(_FrozenModel):
    """Outcome of classifying one user message."""
    category: Category = Category.NONE
    reply_text: str = Field(min_length=1)

    @property
    def is_location_search(self) -> bool:
        return self.category.is_location_search
