"""Asset Management — owner listings, confirmed updates and simulated share purchases.

Invariants:
    - Owner listing reads every id through read_asset_state, in ledger order; one
      unreadable asset fails the whole listing rather than silently shrinking it
    - update_asset validates before any IO and returns only after the update
      transaction reaches min_confirmations (same confirm path as tokenize)
    - Cancellation after an update is submitted is logged with the tx hash, then re-raised
    - purchase_shares never writes to the ledger: it prices the purchase from the
      asset's current on-ledger price and tags the outcome simulated=True
    - Purchases against an inactive asset are rejected (ValidationError)

Design Decisions:
    - Separate from TokenizationOrchestrator: these operations act on existing
      assets and never touch the metadata store or share derivation settings
"""

import asyncio
import logging
import secrets
from typing import Callable

from blockestate.core.client_protocols import LedgerGateway
from blockestate.core.domain_types import (
    AssetRecord, AssetUpdate, AssetUpdateResult, SimulatedPurchase,
)
from blockestate.core.errors import ShareDerivationError, ValidationError
from blockestate.core.money import to_minor_units
from blockestate.core.share_derivation import simulate_purchase

logger = logging.getLogger(__name__)

_UPDATE_TEXT_FIELDS = ("name", "description", "location")


def validate_update(update: AssetUpdate) -> None:
    for field in _UPDATE_TEXT_FIELDS:
        if not getattr(update, field).strip():
            raise ValidationError(f"{field} must not be empty", field)
    if update.price <= 0:
        raise ValidationError("price must be greater than zero", "price")
    try:
        to_minor_units(update.price)
    except ValueError as e:
        raise ValidationError(str(e), "price") from e


class AssetManagementService:
    """Operations on assets that already exist on the ledger."""

    def __init__(
        self,
        ledger: LedgerGateway,
        min_confirmations: int = 2,
        share_total: int = 10_000,
        token_hex: Callable[[int], str] = secrets.token_hex,
    ):
        self.ledger = ledger
        self.min_confirmations = min_confirmations
        self.share_total = share_total
        self._token_hex = token_hex

    async def list_owner_assets(self, owner: str) -> list[AssetRecord]:
        if not owner.strip():
            raise ValidationError("owner must not be empty", "owner")
        ids = await self.ledger.list_owner_asset_ids(owner)
        return [await self.ledger.read_asset_state(asset_id) for asset_id in ids]

    async def update_asset(
        self, asset_id: int, update: AssetUpdate,
    ) -> AssetUpdateResult:
        """Rewrite name, description, location and price, then wait for confirmation."""
        validate_update(update)
        handle = await self.ledger.submit_update(asset_id, update)
        try:
            receipt = await self.ledger.await_confirmation(
                handle, self.min_confirmations,
            )
        except asyncio.CancelledError:
            logger.warning(
                "Asset update cancelled after submission; transaction may still confirm",
                extra={"tx_hash": handle.tx_hash, "asset_id": asset_id},
            )
            raise
        logger.info(
            "Asset updated",
            extra={
                "tx_hash": receipt.tx_hash,
                "asset_id": asset_id,
                "block_number": receipt.block_number,
                "confirmations": receipt.confirmations,
            },
        )
        return AssetUpdateResult(
            asset_id=asset_id,
            tx_hash=receipt.tx_hash,
            block_number=receipt.block_number,
            confirmations=receipt.confirmations,
            update=update,
        )

    async def purchase_shares(
        self, asset_id: int, buyer: str, shares: int,
    ) -> SimulatedPurchase:
        record = await self.ledger.read_asset_state(asset_id)
        if not record.is_active:
            raise ValidationError(f"asset {asset_id} is not active", "asset_id")
        try:
            purchase = simulate_purchase(
                asset_id, record.price, self.share_total, shares, buyer,
                token_hex=self._token_hex,
            )
        except ShareDerivationError as e:
            raise ValidationError(e.message, "shares") from e
        logger.info(
            "Shares purchased (simulated)",
            extra={"asset_id": asset_id, "share_status": "simulated"},
        )
        return purchase
