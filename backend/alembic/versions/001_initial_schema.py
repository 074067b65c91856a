"""Initial schema — tokenization_records.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "tokenization_records",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("tx_hash", sa.String(80), nullable=False, unique=True),
        sa.Column("asset_id", sa.BigInteger, nullable=False, unique=True),
        sa.Column("block_number", sa.BigInteger, nullable=False),
        sa.Column("owner", sa.String(80), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("location", sa.String(200), nullable=False),
        sa.Column("price", sa.String(80), nullable=False),
        sa.Column("image_ref", sa.Text, nullable=False),
        sa.Column("metadata_uri", sa.Text, nullable=False),
        sa.Column("confirmations", sa.Integer, nullable=False, server_default="0"),
        sa.Column("share_status", sa.String(20), nullable=False),
        sa.Column("share_details", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_tokenization_records_owner", "tokenization_records", ["owner"],
    )


def downgrade() -> None:
    op.drop_index("ix_tokenization_records_owner", table_name="tokenization_records")
    op.drop_table("tokenization_records")
