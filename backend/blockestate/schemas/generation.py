"""Art Generation Schemas — request/response contracts for /api/v1/art.

Invariants:
    - ArtGenerateRequest carries exactly one of description / details
    - ArtGenerateResponse always has an image_ref: provider failures surface as
      source_kind="fallback", never as an HTTP error

Design Decisions:
    - Flat response instead of the domain union: the UI branches on source_kind only
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from blockestate.core.domain_types import (
    DEFAULT_ERA, DEFAULT_MOOD, DEFAULT_STYLE, FallbackCategory, FallbackReason,
    PropertyDetails, SourceKind,
)


class ArtGenerateRequest(BaseModel):
    """Free-text description or structured property details, plus art direction."""
    description: str | None = Field(None, max_length=5_000)
    details: PropertyDetails | None = None
    style: str = Field(DEFAULT_STYLE, max_length=100)
    era: str = Field(DEFAULT_ERA, max_length=100)
    mood: str = Field(DEFAULT_MOOD, max_length=100)
    preview: bool = False

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("description cannot be empty or whitespace")
        return v

    @model_validator(mode="after")
    def check_one_source(self) -> "ArtGenerateRequest":
        if (self.description is None) == (self.details is None):
            raise ValueError("provide exactly one of description or details")
        return self


class ArtGenerateResponse(BaseModel):
    source_kind: SourceKind
    image_ref: str
    attempts: int | None = None
    category: FallbackCategory | None = None
    reason: FallbackReason | None = None


class QuotaStatusResponse(BaseModel):
    status: Literal["available", "exhausted"]
    reset_after_seconds: float | None = None
