"""Domain Types — value objects shared by the generation and tokenization pipelines.

Invariants:
    - GenerationRequest is frozen; a fresh salt means a new instance (with_fresh_salt)
    - GenerationResult variants always expose source_kind
    - AssetDraft.price is a Decimal (never float); AssetRecord.id is ledger-assigned
    - Share outcomes are independent of asset creation (separate union)

Design Decisions:
    - Pydantic models over dataclasses: same types validate at the API boundary
      and flow through services without conversion
    - str Enums: serialize to JSON without custom encoders
    - Discriminated unions on `kind`/`status`: callers match on one field
"""

import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal, NewType, Union

from pydantic import BaseModel, ConfigDict, Field


# ─── Identity Types ──────────────────────────────────────────────

AssetId = NewType("AssetId", int)
TxHash = NewType("TxHash", str)


# ─── Enums ───────────────────────────────────────────────────────

class SourceKind(str, Enum):
    """Where a generation result's image came from."""
    GENERATED = "generated"
    FALLBACK = "fallback"


class FallbackReason(str, Enum):
    """Why the orchestrator served a fallback image."""
    QUOTA_EXHAUSTED = "quota_exhausted"
    MISSING_CREDENTIAL = "missing_credential"
    RETRIES_EXHAUSTED = "retries_exhausted"
    UNEXPECTED_ERROR = "unexpected_error"


class FallbackCategory(str, Enum):
    """Property categories recognised by the fallback resolver, in match order."""
    VILLA = "villa"
    APARTMENT = "apartment"
    COMMERCIAL = "commercial"
    RETAIL = "retail"
    INDUSTRIAL = "industrial"
    HISTORIC = "historic"
    MODERN = "modern"
    MOUNTAIN = "mountain"
    DEFAULT = "default"


class ShareStatus(str, Enum):
    SIMULATED = "simulated"
    FAILED = "failed"
    SKIPPED = "skipped"


# ─── Generation ─────────────────────────────────────────────────

DEFAULT_STYLE = "Default"
DEFAULT_ERA = "Not specified"
DEFAULT_MOOD = "Nostalgic"


def _new_salt() -> str:
    return uuid.uuid4().hex


class GenerationRequest(BaseModel):
    """Immutable art-generation input. Salt guarantees distinct prompts per attempt."""
    model_config = ConfigDict(frozen=True)

    raw_description: str
    style: str = DEFAULT_STYLE
    era: str = DEFAULT_ERA
    mood: str = DEFAULT_MOOD
    is_preview: bool = False
    salt: str = Field(default_factory=_new_salt)

    def with_fresh_salt(self) -> "GenerationRequest":
        return self.model_copy(update={"salt": _new_salt()})


class PropertyDetails(BaseModel):
    """Structured property fields the UI collects before generation."""
    name: str
    description: str
    location: str
    price: Decimal
    bedrooms: int | None = None
    bathrooms: int | None = None
    square_feet: int | None = None
    year_built: int | None = None
    property_type: str | None = None


class GeneratedImage(BaseModel):
    kind: Literal["image"] = "image"
    source_kind: Literal[SourceKind.GENERATED] = SourceKind.GENERATED
    image_ref: str
    attempts: int


class FallbackImage(BaseModel):
    kind: Literal["image"] = "image"
    source_kind: Literal[SourceKind.FALLBACK] = SourceKind.FALLBACK
    image_ref: str
    category: FallbackCategory
    reason: FallbackReason


class FailedGeneration(BaseModel):
    kind: Literal["failed"] = "failed"
    source_kind: None = None
    reason: str


GenerationResult = Union[GeneratedImage, FallbackImage, FailedGeneration]


# ─── Ledger ─────────────────────────────────────────────────────

class AssetDraft(BaseModel):
    """Caller-built asset description, consumed once by create_asset."""
    name: str
    description: str
    location: str
    price: Decimal
    image_ref: str
    owner: str
    square_footage: int = 0
    year_built: int = 0
    property_type: str = ""


class AssetRecord(BaseModel):
    """On-ledger asset state as returned by getAssetDetails."""
    id: int = Field(ge=0)
    owner: str
    name: str
    description: str
    location: str
    price: Decimal
    square_footage: int = 0
    year_built: int = 0
    property_type: str = ""
    created_at: datetime
    is_active: bool
    is_fractionalized: bool
    fraction_contract: str | None = None


class AssetUpdate(BaseModel):
    """Mutable on-ledger fields, rewritten together by updateProperty."""
    name: str
    description: str
    location: str
    price: Decimal


class AssetUpdateResult(BaseModel):
    asset_id: int = Field(ge=0)
    tx_hash: str
    block_number: int
    confirmations: int
    update: AssetUpdate


class TxHandle(BaseModel):
    tx_hash: str
    submitted_at: datetime


class LedgerEvent(BaseModel):
    """Raw event entry as the RPC returns it. Decoded by core/event_decoding."""
    name: str
    args: dict[str, Any] = Field(default_factory=dict)


class TxReceipt(BaseModel):
    tx_hash: str
    confirmed: bool
    block_number: int
    confirmations: int
    events: list[LedgerEvent] = Field(default_factory=list)


# ─── Share Derivation ───────────────────────────────────────────

class SimulatedShares(BaseModel):
    """Fractionalization outcome. NOT ledger-confirmed: references are generated locally."""
    status: Literal[ShareStatus.SIMULATED] = ShareStatus.SIMULATED
    simulated: Literal[True] = True
    total_shares: int
    price_per_share: Decimal
    reference_tx_hash: str
    fraction_contract: str


class SimulatedPurchase(BaseModel):
    """Share purchase outcome. NOT ledger-confirmed, same as SimulatedShares."""
    status: Literal[ShareStatus.SIMULATED] = ShareStatus.SIMULATED
    simulated: Literal[True] = True
    asset_id: int = Field(ge=0)
    buyer: str
    shares: int
    price_per_share: Decimal
    total_cost: Decimal
    reference_tx_hash: str


class SharesFailed(BaseModel):
    status: Literal[ShareStatus.FAILED] = ShareStatus.FAILED
    reason: str


class SharesSkipped(BaseModel):
    status: Literal[ShareStatus.SKIPPED] = ShareStatus.SKIPPED


ShareOutcome = Annotated[
    Union[SimulatedShares, SharesFailed, SharesSkipped],
    Field(discriminator="status"),
]


class TokenizationResult(BaseModel):
    """Confirmed asset creation plus an independent share-derivation outcome."""
    tx_hash: str
    asset_id: int = Field(ge=0)
    block_number: int
    confirmations: int
    metadata_uri: str
    draft: AssetDraft
    shares: ShareOutcome
