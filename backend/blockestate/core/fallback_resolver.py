"""Fallback Resolver — deterministic keyword classifier for substitute images.

Invariants:
    - Pure and total: same text -> same (category, image_ref); never raises, never does IO
    - Categories are tested in a fixed order; first match wins
    - Matching is case-insensitive substring search
"""

from typing import NamedTuple

from blockestate.core.domain_types import FallbackCategory

_UNSPLASH = "https://images.unsplash.com/{photo}?auto=format&fit=crop&w=1770&q=80"

_CATEGORY_KEYWORDS: tuple[tuple[FallbackCategory, tuple[str, ...]], ...] = (
    (FallbackCategory.VILLA, ("villa", "luxury", "mansion", "beachfront")),
    (FallbackCategory.APARTMENT, ("apartment", "condo", "flat", "loft")),
    (FallbackCategory.COMMERCIAL, ("commercial", "office", "building", "business")),
    (FallbackCategory.RETAIL, ("retail", "shop", "store", "mall")),
    (FallbackCategory.INDUSTRIAL, ("industrial", "warehouse", "factory", "manufacturing")),
    (FallbackCategory.HISTORIC, ("historic", "heritage", "vintage", "classic")),
    (FallbackCategory.MODERN, ("modern", "contemporary", "minimalist", "sleek")),
    (FallbackCategory.MOUNTAIN, ("mountain", "cabin", "chalet", "retreat")),
)

FALLBACK_IMAGES: dict[FallbackCategory, str] = {
    FallbackCategory.VILLA: _UNSPLASH.format(photo="photo-1580587771525-78b9dba3b914"),
    FallbackCategory.APARTMENT: _UNSPLASH.format(photo="photo-1600585154340-be6161a56a0c"),
    FallbackCategory.COMMERCIAL: _UNSPLASH.format(photo="photo-1577415124269-fc1140a69e91"),
    FallbackCategory.RETAIL: _UNSPLASH.format(photo="photo-1601760562234-9814eea6663a"),
    FallbackCategory.INDUSTRIAL: _UNSPLASH.format(photo="photo-1612633501998-813f90599051"),
    FallbackCategory.HISTORIC: _UNSPLASH.format(photo="photo-1600596542815-ffad4c1539a9"),
    FallbackCategory.MODERN: _UNSPLASH.format(photo="photo-1600607687939-ce8a6c25118c"),
    FallbackCategory.MOUNTAIN: _UNSPLASH.format(photo="photo-1542718610-a1d656d1884c"),
    FallbackCategory.DEFAULT: _UNSPLASH.format(photo="photo-1560518883-ce09059eeffa"),
}


class FallbackMatch(NamedTuple):
    category: FallbackCategory
    image_ref: str


def classify(text: str) -> FallbackCategory:
    lowered = (text or "").lower()
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(k in lowered for k in keywords):
            return category
    return FallbackCategory.DEFAULT


def resolve_fallback(text: str) -> FallbackMatch:
    """Pick the static substitute image for a property description."""
    category = classify(text)
    return FallbackMatch(category, FALLBACK_IMAGES[category])
