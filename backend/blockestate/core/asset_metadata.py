"""Asset Metadata — token metadata document for a draft and its inline URI form.

Invariants:
    - Attribute order is stable (Location, Price, Square Footage, Year Built, Property Type)
    - Price is serialized as a decimal string, never a float
    - inline_metadata_uri is deterministic for a given draft
"""

import base64
import json

from blockestate.core.domain_types import AssetDraft


def build_metadata(draft: AssetDraft) -> dict:
    """Metadata document in the common NFT {name, description, image, attributes} shape."""
    return {
        "name": draft.name,
        "description": draft.description,
        "image": draft.image_ref,
        "attributes": [
            {"trait_type": "Location", "value": draft.location},
            {"trait_type": "Price", "value": str(draft.price), "display_type": "number"},
            {
                "trait_type": "Square Footage",
                "value": draft.square_footage,
                "display_type": "number",
            },
            {"trait_type": "Year Built", "value": draft.year_built, "display_type": "number"},
            {"trait_type": "Property Type", "value": draft.property_type},
        ],
    }


def inline_metadata_uri(metadata: dict) -> str:
    """Encode metadata as a data: URI for ledgers used without a pinning service."""
    raw = json.dumps(metadata, sort_keys=True, separators=(",", ":")).encode()
    return "data:application/json;base64," + base64.b64encode(raw).decode("ascii")
