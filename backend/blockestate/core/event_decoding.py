"""Event Decoding — typed extraction of the asset-creation event from a receipt.

Invariants:
    - Only events named CREATION_EVENT with a non-negative integer tokenId decode
    - Any other shape is treated as "not found" (returns None), never defaulted
    - The first well-formed creation event wins

Design Decisions:
    - Pydantic model per expected event instead of reflecting over arbitrary args:
      RPC gateways return tokenId as int or decimal string, both coerced here
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from blockestate.core.domain_types import LedgerEvent, TxReceipt

CREATION_EVENT = "PropertyMinted"


class PropertyMintedArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token_id: int = Field(alias="tokenId", ge=0)
    owner: str | None = None


class PropertyMintedEvent(BaseModel):
    name: Literal["PropertyMinted"]
    args: PropertyMintedArgs


def decode_creation_event(event: LedgerEvent) -> PropertyMintedEvent | None:
    try:
        return PropertyMintedEvent.model_validate(event.model_dump())
    except PydanticValidationError:
        return None


def find_created_asset_id(receipt: TxReceipt) -> int | None:
    """Asset id from the receipt's creation event, or None if no such event decodes."""
    for event in receipt.events:
        decoded = decode_creation_event(event)
        if decoded is not None:
            return decoded.args.token_id
    return None
