"""Tokenization Orchestrator — validate, submit, confirm, decode, then derive shares.

Invariants:
    - Validation rejects bad drafts before any IO (metadata store or ledger)
    - Any failure up to and including confirmation raises; no partial result escapes
    - The asset id comes only from a decoded creation event; absent -> EventNotFoundError
    - Share derivation runs after confirmation and can only degrade the shares field:
      a confirmed asset is always reported as created
    - Cancellation after submission is logged with the tx hash, then re-raised

Design Decisions:
    - Share derivation is simulated (SimulatedShares.simulated=True) until a real
      fractionalization contract exists
    - min_confirmations defaults to 2 (inclusion block plus one)
"""

import asyncio
import logging
from typing import Callable

from blockestate.core.asset_metadata import build_metadata
from blockestate.core.client_protocols import LedgerGateway, MetadataStore
from blockestate.core.domain_types import (
    AssetDraft, ShareOutcome, SharesFailed, SharesSkipped, SimulatedShares,
    TokenizationResult, TxReceipt,
)
from blockestate.core.errors import (
    EventNotFoundError, ShareDerivationError, ValidationError,
)
from blockestate.core.event_decoding import CREATION_EVENT, find_created_asset_id
from blockestate.core.money import to_minor_units
from blockestate.core.share_derivation import derive_shares

logger = logging.getLogger(__name__)

_REQUIRED_TEXT_FIELDS = ("name", "description", "location", "image_ref", "owner")


def validate_draft(draft: AssetDraft) -> None:
    """Raise ValidationError for drafts the ledger must never see."""
    for field in _REQUIRED_TEXT_FIELDS:
        if not getattr(draft, field).strip():
            raise ValidationError(f"{field} must not be empty", field)
    if draft.price <= 0:
        raise ValidationError("price must be greater than zero", "price")
    try:
        to_minor_units(draft.price)
    except ValueError as e:
        raise ValidationError(str(e), "price") from e
    if draft.square_footage < 0:
        raise ValidationError("square_footage must not be negative", "square_footage")
    if draft.year_built < 0:
        raise ValidationError("year_built must not be negative", "year_built")


class TokenizationOrchestrator:
    """Runs the create → confirm → decode → shares sequence against a ledger."""

    def __init__(
        self,
        ledger: LedgerGateway,
        metadata_store: MetadataStore,
        min_confirmations: int = 2,
        share_total: int = 10_000,
        derive_shares_enabled: bool = True,
        share_deriver: Callable[[AssetDraft, int], SimulatedShares] | None = None,
    ):
        self.ledger = ledger
        self.metadata_store = metadata_store
        self.min_confirmations = min_confirmations
        self.share_total = share_total
        self.derive_shares_enabled = derive_shares_enabled
        self._share_deriver = share_deriver or (
            lambda draft, total: derive_shares(draft.price, total)
        )

    async def tokenize(self, draft: AssetDraft) -> TokenizationResult:
        """Create the asset on the ledger and return the consolidated result."""
        validate_draft(draft)

        metadata_uri = await self.metadata_store.store(build_metadata(draft))
        handle = await self.ledger.create_asset(draft, metadata_uri)
        try:
            receipt = await self.ledger.await_confirmation(
                handle, self.min_confirmations,
            )
        except asyncio.CancelledError:
            logger.warning(
                "Tokenization cancelled after submission; transaction may still confirm",
                extra={"tx_hash": handle.tx_hash},
            )
            raise

        asset_id = self._extract_asset_id(receipt)
        logger.info(
            "Asset created",
            extra={
                "tx_hash": receipt.tx_hash,
                "asset_id": asset_id,
                "block_number": receipt.block_number,
                "confirmations": receipt.confirmations,
            },
        )

        shares = self._derive_shares(draft, asset_id)
        return TokenizationResult(
            tx_hash=receipt.tx_hash,
            asset_id=asset_id,
            block_number=receipt.block_number,
            confirmations=receipt.confirmations,
            metadata_uri=metadata_uri,
            draft=draft,
            shares=shares,
        )

    def _extract_asset_id(self, receipt: TxReceipt) -> int:
        asset_id = find_created_asset_id(receipt)
        if asset_id is None:
            logger.error(
                f"Confirmed receipt has no decodable {CREATION_EVENT} event",
                extra={
                    "tx_hash": receipt.tx_hash,
                    "events": [e.name for e in receipt.events],
                },
            )
            raise EventNotFoundError(receipt.tx_hash, CREATION_EVENT)
        return asset_id

    def _derive_shares(self, draft: AssetDraft, asset_id: int) -> ShareOutcome:
        if not self.derive_shares_enabled:
            return SharesSkipped()
        try:
            shares = self._share_deriver(draft, self.share_total)
        except ShareDerivationError as e:
            logger.warning(
                f"Share derivation failed: {e.message}",
                extra={"asset_id": asset_id, "share_status": "failed"},
            )
            return SharesFailed(reason=e.message)
        except Exception as e:
            logger.error(
                f"Unexpected share derivation failure: {e}",
                exc_info=True,
                extra={"asset_id": asset_id, "share_status": "failed"},
            )
            return SharesFailed(reason="internal error during share derivation")
        logger.info(
            "Shares derived (simulated)",
            extra={"asset_id": asset_id, "share_status": "simulated"},
        )
        return shares
