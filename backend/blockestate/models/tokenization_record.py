"""TokenizationRecord ORM — local history of confirmed tokenizations.

Invariants:
    - Written only after the ledger confirmed the createAsset transaction
    - tx_hash and asset_id are unique: the ledger never assigns an id twice,
      and a duplicate insert surfaces as DatabaseError instead of a second row
    - price stored as its decimal string (no float columns for money)

Design Decisions:
    - JSON column for share_details: the simulated outcome shape may change
      without a migration
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, BigInteger, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import Uuid

from blockestate.db.base import Base


class TokenizationRecord(Base):
    """One row per confirmed asset creation."""
    __tablename__ = "tokenization_records"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    tx_hash: Mapped[str] = mapped_column(String(80), nullable=False, unique=True)
    asset_id: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    owner: Mapped[str] = mapped_column(String(80), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    location: Mapped[str] = mapped_column(String(200), nullable=False)
    price: Mapped[str] = mapped_column(String(80), nullable=False)
    image_ref: Mapped[str] = mapped_column(Text, nullable=False)
    metadata_uri: Mapped[str] = mapped_column(Text, nullable=False)
    confirmations: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    share_status: Mapped[str] = mapped_column(String(20), nullable=False)
    share_details: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
