"""Tokenization Records — persistence of confirmed tokenizations for history views.

Invariants:
    - Only TokenizationResult (i.e. confirmed creations) is ever recorded
    - record_tokenization commits or raises DatabaseError (via the session manager)
    - A confirmed update rewrites the cached name, location and price of the
      asset's row; an asset tokenized elsewhere has no row and is left alone
"""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from blockestate.core.domain_types import AssetUpdateResult, TokenizationResult
from blockestate.models.tokenization_record import TokenizationRecord


async def record_tokenization(
    db: AsyncSession, result: TokenizationResult,
) -> TokenizationRecord:
    shares = result.shares.model_dump(mode="json")
    record = TokenizationRecord(
        tx_hash=result.tx_hash,
        asset_id=result.asset_id,
        block_number=result.block_number,
        owner=result.draft.owner,
        name=result.draft.name,
        location=result.draft.location,
        price=str(result.draft.price),
        image_ref=result.draft.image_ref,
        metadata_uri=result.metadata_uri,
        confirmations=result.confirmations,
        share_status=shares["status"],
        share_details=shares,
    )
    db.add(record)
    await db.commit()
    await db.refresh(record)
    return record


async def list_tokenizations(
    db: AsyncSession, owner: str | None = None, limit: int = 50,
) -> list[TokenizationRecord]:
    query = select(TokenizationRecord).order_by(
        TokenizationRecord.created_at.desc(),
    )
    if owner:
        query = query.where(TokenizationRecord.owner == owner)
    result = await db.execute(query.limit(limit))
    return list(result.scalars().all())


async def apply_asset_update(db: AsyncSession, result: AssetUpdateResult) -> int:
    """Refresh the cached row for an updated asset. Returns the rows changed."""
    outcome = await db.execute(
        update(TokenizationRecord)
        .where(TokenizationRecord.asset_id == result.asset_id)
        .values(
            name=result.update.name,
            location=result.update.location,
            price=str(result.update.price),
        )
    )
    await db.commit()
    return outcome.rowcount
