"""Tokenization Schemas — request/response contracts for /api/v1/assets.

Invariants:
    - TokenizeRequest.price is parsed as Decimal (JSON numbers and strings both
      accepted, never coerced through float)
    - Text fields are stripped; empty values are left for validate_draft to reject
      so the error carries the domain field name
    - Share outcome in TokenizeResponse keeps its `simulated` flag; the draft's
      display fields are echoed back, price as a string
    - Share purchases are always answered with simulated=True
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from blockestate.core.domain_types import (
    AssetDraft, AssetRecord, AssetUpdate, AssetUpdateResult, ShareOutcome,
    SimulatedPurchase, TokenizationResult,
)


class TokenizeRequest(BaseModel):
    """Asset fields for createAsset. owner defaults to the configured ledger owner."""
    name: str = Field(max_length=200)
    description: str = Field(max_length=5_000)
    location: str = Field(max_length=200)
    price: Decimal
    image_ref: str
    owner: str | None = Field(None, max_length=80)
    square_footage: int = 0
    year_built: int = 0
    property_type: str = Field("", max_length=100)

    @field_validator("name", "description", "location", "image_ref", "property_type")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    def to_draft(self, default_owner: str | None) -> AssetDraft:
        return AssetDraft(
            name=self.name,
            description=self.description,
            location=self.location,
            price=self.price,
            image_ref=self.image_ref,
            owner=(self.owner or default_owner or "").strip(),
            square_footage=self.square_footage,
            year_built=self.year_built,
            property_type=self.property_type,
        )


class TokenizeResponse(BaseModel):
    tx_hash: str
    asset_id: int
    block_number: int
    confirmations: int
    metadata_uri: str
    name: str
    location: str
    price: str
    image_ref: str
    shares: ShareOutcome

    @classmethod
    def from_result(cls, result: TokenizationResult) -> "TokenizeResponse":
        return cls(
            tx_hash=result.tx_hash,
            asset_id=result.asset_id,
            block_number=result.block_number,
            confirmations=result.confirmations,
            metadata_uri=result.metadata_uri,
            name=result.draft.name,
            location=result.draft.location,
            price=str(result.draft.price),
            image_ref=result.draft.image_ref,
            shares=result.shares,
        )


class AssetRecordResponse(BaseModel):
    """On-ledger asset state. price serialized as a string to keep full precision."""
    id: int
    owner: str
    name: str
    description: str
    location: str
    price: str
    square_footage: int
    year_built: int
    property_type: str
    created_at: datetime
    is_active: bool
    is_fractionalized: bool
    fraction_contract: str | None = None

    @classmethod
    def from_record(cls, record: AssetRecord) -> "AssetRecordResponse":
        return cls(**record.model_dump(exclude={"price"}), price=str(record.price))


class TokenizationRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tx_hash: str
    asset_id: int
    block_number: int
    owner: str
    name: str
    location: str
    price: str
    image_ref: str
    metadata_uri: str
    confirmations: int
    share_status: str
    created_at: datetime


class AssetUpdateRequest(BaseModel):
    """Replacement values for updateProperty; all four are rewritten together."""
    name: str = Field(max_length=200)
    description: str = Field(max_length=5_000)
    location: str = Field(max_length=200)
    price: Decimal

    @field_validator("name", "description", "location")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    def to_update(self) -> AssetUpdate:
        return AssetUpdate(**self.model_dump())


class AssetUpdateResponse(BaseModel):
    asset_id: int
    tx_hash: str
    block_number: int
    confirmations: int
    name: str
    location: str
    price: str

    @classmethod
    def from_result(cls, result: AssetUpdateResult) -> "AssetUpdateResponse":
        return cls(
            asset_id=result.asset_id,
            tx_hash=result.tx_hash,
            block_number=result.block_number,
            confirmations=result.confirmations,
            name=result.update.name,
            location=result.update.location,
            price=str(result.update.price),
        )


class SharePurchaseRequest(BaseModel):
    """buyer defaults to the configured ledger owner."""
    shares: int = Field(ge=1)
    buyer: str | None = Field(None, max_length=80)


class SharePurchaseResponse(BaseModel):
    status: str
    simulated: bool
    asset_id: int
    buyer: str
    shares: int
    price_per_share: str
    total_cost: str
    reference_tx_hash: str

    @classmethod
    def from_purchase(cls, purchase: SimulatedPurchase) -> "SharePurchaseResponse":
        return cls(
            **purchase.model_dump(
                mode="json", exclude={"price_per_share", "total_cost"},
            ),
            price_per_share=str(purchase.price_per_share),
            total_cost=str(purchase.total_cost),
        )
