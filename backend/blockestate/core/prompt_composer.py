"""Prompt Composer — pure transformation from a GenerationRequest to an image prompt.

Invariants:
    - No IO; output is fully determined by (request, rng state, now)
    - Numeric features already present in the text are restated once, never duplicated
    - Style/era/mood clauses only appear when they differ from their defaults
    - Category art direction: first keyword match wins, default clause otherwise
    - Every prompt ends with a uniqueness token, so identical inputs never
      yield byte-identical prompts across calls
    - resalt_prompt() changes only the trailing token, never the body

Design Decisions:
    - rng and now injected: tests pin both, production passes random.Random() and utcnow
    - Keyword tables are ordered tuples, not dicts: match order is part of the contract
"""

import random
import re
from datetime import datetime

from blockestate.core.domain_types import (
    DEFAULT_ERA, DEFAULT_STYLE, GenerationRequest, PropertyDetails,
)

_BEDROOMS = re.compile(r"(\d+)\s*bed(room)?s?", re.IGNORECASE)
_BATHROOMS = re.compile(r"(\d+)\s*bath(room)?s?", re.IGNORECASE)
_SQUARE_FEET = re.compile(r"(\d+(?:,\d+)?)\s*sq(uare)?\s*ft", re.IGNORECASE)
_TRAILING_TOKEN = re.compile(r"\s*ref:\S*\s*$")

_MOOD_DEFAULT = "Default"

_ART_DIRECTION: tuple[tuple[tuple[str, ...], str], ...] = (
    (
        ("luxury", "villa", "mansion"),
        "Elegant lighting, sophisticated composition, emphasis on "
        "architectural features and luxury amenities.",
    ),
    (
        ("commercial", "office"),
        "Professional environment, productive space, sleek design, "
        "emphasis on business functionality.",
    ),
    (
        ("apartment", "condo"),
        "Urban setting, clean lines, focus on efficient use of space "
        "and city views if applicable.",
    ),
)
_DEFAULT_ART_DIRECTION = (
    "Balanced composition, inviting curb appeal, emphasis on the "
    "property's defining architectural character."
)

LIGHTING_PALETTE: tuple[str, ...] = (
    "neon sunset lighting, gradient purple to pink background",
    "golden hour glow, warm amber highlights",
    "cool twilight blues with glowing window light",
    "soft overcast daylight, muted pastel tones",
    "dramatic night scene, city lights and reflections",
    "crisp morning light, long soft shadows",
)

_DIGITAL_ART_STYLE = (
    "Vibrant colors, {lighting}, stylized as digital art for an NFT, "
    "extreme detail, 8k resolution, cinematic framing, professional CGI."
)

_SUFFIX_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"


def extract_features(text: str) -> list[str]:
    """Return feature phrases found in text that are not already spelled out."""
    features = []
    lowered = text.lower()
    bedrooms = _BEDROOMS.search(text)
    if bedrooms and "bedroom" not in lowered:
        features.append(f"{bedrooms.group(1)} bedrooms")
    bathrooms = _BATHROOMS.search(text)
    if bathrooms and "bathroom" not in lowered:
        features.append(f"{bathrooms.group(1)} bathrooms")
    square_feet = _SQUARE_FEET.search(text)
    if square_feet and "square feet" not in lowered:
        features.append(f"{square_feet.group(1)} square feet")
    return features


def art_direction_for(text: str) -> str:
    """Category-specific art direction; first matching category wins."""
    lowered = text.lower()
    for keywords, clause in _ART_DIRECTION:
        if any(k in lowered for k in keywords):
            return clause
    return _DEFAULT_ART_DIRECTION


def uniqueness_token(salt: str, rng: random.Random, now: datetime) -> str:
    suffix = "".join(rng.choice(_SUFFIX_ALPHABET) for _ in range(6))
    return f"ref:{int(now.timestamp() * 1000)}-{salt[:8]}-{suffix}"


def compose_prompt(
    request: GenerationRequest, rng: random.Random, now: datetime,
) -> str:
    """Build the full image prompt for a request."""
    details = request.raw_description.strip()
    features = extract_features(details)
    if features:
        details += ". Features " + ", ".join(features) + "."

    prompt = (
        "Create a detailed, high-quality visualization of a real estate "
        f"property: {details}"
    )
    if request.style and request.style != DEFAULT_STYLE:
        prompt += f", in the style of {request.style}"
    if request.era and request.era != DEFAULT_ERA:
        prompt += f", from the {request.era}"
    if request.mood and request.mood != _MOOD_DEFAULT:
        prompt += f", with a {request.mood} mood"

    prompt += ". " + art_direction_for(details)
    lighting = rng.choice(LIGHTING_PALETTE)
    prompt += " " + _DIGITAL_ART_STYLE.format(lighting=lighting)
    prompt += " " + uniqueness_token(request.salt, rng, now)
    return prompt


def resalt_prompt(
    prompt: str, salt: str, rng: random.Random, now: datetime,
) -> str:
    """Swap the trailing uniqueness token for one built from a new salt.

    Appends a token when the prompt has none (an enhancer may drop it).
    """
    body = _TRAILING_TOKEN.sub("", prompt).rstrip()
    return f"{body} {uniqueness_token(salt, rng, now)}"


def build_property_description(details: PropertyDetails) -> str:
    """Flatten structured property fields into the free-text description."""
    text = (
        f"{details.name}: {details.description} Located in {details.location}. "
        f"Value: ${details.price}."
    )
    specs = []
    if details.bedrooms:
        specs.append(f"{details.bedrooms} bedrooms")
    if details.bathrooms:
        specs.append(f"{details.bathrooms} bathrooms")
    if details.square_feet:
        specs.append(f"{details.square_feet} square feet")
    if details.year_built:
        specs.append(f"built in {details.year_built}")
    if details.property_type:
        specs.append(f"{details.property_type} property")
    if specs:
        text += f" Specifications: {', '.join(specs)}."
    return text
