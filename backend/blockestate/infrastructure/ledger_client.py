"""Ledger Client — JSON-RPC wrapper around the asset contract gateway.

Invariants:
    - create_asset and submit_update submit and return a TxHandle without waiting;
      they are never retried (submission is not idempotent)
    - await_confirmation returns only when head - inclusion_block + 1 >= min_confirmations
    - Deadline elapsed -> ConfirmationTimeoutError; receipt status 0 -> TransactionRevertedError
    - getAssetDetails returning null -> ResourceNotFoundError
    - getPropertiesOfOwner returning null -> no assets; any non-integer id -> LedgerRpcError
    - A head block number that is not an integer is a LedgerRpcError, so polling
      treats it like any other transient RPC failure
    - Transient RPC failures while polling are logged and polling continues until the deadline
    - Prices cross the wire as integer minor units (decimal strings); Decimal only at this boundary

Design Decisions:
    - Plain JSON-RPC 2.0 over httpx: the gateway exposes contract_transact /
      contract_call / ledger_* methods, so no ABI encoding happens client-side
    - sleep and clock injected: confirmation polling is testable without real time
"""

import asyncio
import itertools
import logging
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

import httpx

from blockestate.core.domain_types import (
    AssetDraft, AssetRecord, AssetUpdate, LedgerEvent, TxHandle, TxReceipt,
)
from blockestate.core.errors import (
    ConfirmationTimeoutError,
    ErrorContext,
    LedgerRpcError,
    ResourceNotFoundError,
    TransactionRevertedError,
)
from blockestate.core.money import from_minor_units, to_minor_units

logger = logging.getLogger(__name__)

CREATE_ASSET_FUNCTION = "createAsset"
UPDATE_ASSET_FUNCTION = "updateProperty"
ASSET_DETAILS_FUNCTION = "getAssetDetails"
OWNER_ASSETS_FUNCTION = "getPropertiesOfOwner"


class JsonRpcLedgerClient:
    """Asset contract operations over a JSON-RPC 2.0 gateway."""

    def __init__(
        self,
        rpc_url: str,
        timeout_seconds: float = 30.0,
        confirmation_timeout_seconds: float = 300.0,
        poll_interval_seconds: float = 2.0,
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.rpc_url = rpc_url
        self.confirmation_timeout_seconds = confirmation_timeout_seconds
        self.poll_interval_seconds = poll_interval_seconds
        self._http = http_client or httpx.AsyncClient(timeout=timeout_seconds)
        self._sleep = sleep
        self._clock = clock
        self._ids = itertools.count(1)

    # ─── Contract operations ────────────────────────────────────

    async def create_asset(self, draft: AssetDraft, metadata_uri: str) -> TxHandle:
        """Submit createAsset. Returns as soon as the gateway accepts the transaction."""
        args = [
            draft.owner,
            draft.name,
            draft.description,
            draft.location,
            str(to_minor_units(draft.price)),
            draft.square_footage,
            draft.year_built,
            draft.property_type,
            metadata_uri,
        ]
        return await self._transact(CREATE_ASSET_FUNCTION, args)

    async def submit_update(self, asset_id: int, update: AssetUpdate) -> TxHandle:
        """Submit updateProperty. Confirmation goes through await_confirmation."""
        args = [
            asset_id,
            update.name,
            update.description,
            update.location,
            str(to_minor_units(update.price)),
        ]
        return await self._transact(
            UPDATE_ASSET_FUNCTION, args, context=ErrorContext(asset_id=asset_id),
        )

    async def await_confirmation(
        self, handle: TxHandle, min_confirmations: int,
    ) -> TxReceipt:
        """Poll until the transaction reaches min_confirmations or the deadline passes."""
        deadline = self._clock() + self.confirmation_timeout_seconds
        confirmations = 0
        while True:
            try:
                receipt = await self._fetch_receipt(handle.tx_hash)
                if receipt is not None:
                    head = await self.block_number()
                    confirmations = max(0, head - receipt["block_number"] + 1)
                    if confirmations >= min_confirmations:
                        return TxReceipt(
                            tx_hash=handle.tx_hash,
                            confirmed=True,
                            block_number=receipt["block_number"],
                            confirmations=confirmations,
                            events=receipt["events"],
                        )
            except LedgerRpcError as e:
                logger.warning(
                    f"Receipt poll failed, will retry: {e.message}",
                    extra={"tx_hash": handle.tx_hash},
                )

            if self._clock() >= deadline:
                remaining = max(1, min_confirmations - confirmations)
                raise ConfirmationTimeoutError(
                    handle.tx_hash,
                    self.confirmation_timeout_seconds,
                    confirmations,
                    retry_after_ms=int(remaining * self.poll_interval_seconds * 1000),
                )
            await self._sleep(self.poll_interval_seconds)

    async def read_asset_state(self, asset_id: int) -> AssetRecord:
        raw = await self._rpc(
            "contract_call",
            {"function": ASSET_DETAILS_FUNCTION, "args": [asset_id]},
        )
        if raw is None:
            raise ResourceNotFoundError("Asset", str(asset_id))
        if not isinstance(raw, dict):
            raise LedgerRpcError(
                f"unexpected getAssetDetails result {raw!r}", "contract_call",
                context=ErrorContext(asset_id=asset_id),
            )
        try:
            return _parse_asset_record(asset_id, raw)
        except (KeyError, TypeError, ValueError) as e:
            raise LedgerRpcError(
                f"malformed getAssetDetails result: {e}", "contract_call",
                context=ErrorContext(asset_id=asset_id),
            ) from e

    async def list_owner_asset_ids(self, owner: str) -> list[int]:
        """Asset ids held by owner, in the order the contract returns them."""
        raw = await self._rpc(
            "contract_call",
            {"function": OWNER_ASSETS_FUNCTION, "args": [owner]},
        )
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise LedgerRpcError(
                f"unexpected getPropertiesOfOwner result {raw!r}", "contract_call",
            )
        try:
            ids = [int(v) for v in raw]
        except (TypeError, ValueError) as e:
            raise LedgerRpcError(
                f"non-integer asset id in {raw!r}", "contract_call",
            ) from e
        if any(i < 0 for i in ids):
            raise LedgerRpcError(f"negative asset id in {raw!r}", "contract_call")
        return ids

    async def block_number(self) -> int:
        raw = await self._rpc("ledger_blockNumber", [])
        try:
            return int(raw)
        except (TypeError, ValueError) as e:
            raise LedgerRpcError(
                f"unexpected block number {raw!r}", "ledger_blockNumber",
            ) from e

    async def aclose(self) -> None:
        await self._http.aclose()

    # ─── Internals ──────────────────────────────────────────────

    async def _transact(
        self, function: str, args: list, context: ErrorContext | None = None,
    ) -> TxHandle:
        tx_hash = await self._rpc(
            "contract_transact", {"function": function, "args": args},
        )
        if not isinstance(tx_hash, str) or not tx_hash:
            raise LedgerRpcError(
                f"expected transaction hash, got {tx_hash!r}", "contract_transact",
                context=context,
            )
        logger.info(f"{function} submitted", extra={"tx_hash": tx_hash})
        return TxHandle(tx_hash=tx_hash, submitted_at=datetime.now(timezone.utc))

    async def _fetch_receipt(self, tx_hash: str) -> dict | None:
        raw = await self._rpc("ledger_getTransactionReceipt", [tx_hash])
        if raw is None:
            return None
        try:
            reverted = int(raw.get("status", 1)) == 0
            block_number = int(raw["blockNumber"])
            events = [_to_event(e) for e in raw.get("events") or []]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise LedgerRpcError(
                f"malformed receipt: {e}", "ledger_getTransactionReceipt",
                context=ErrorContext(tx_hash=tx_hash),
            ) from e
        if reverted:
            raise TransactionRevertedError(tx_hash)
        return {"block_number": block_number, "events": events}

    async def _rpc(self, method: str, params: Any) -> Any:
        body = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        try:
            response = await self._http.post(self.rpc_url, json=body)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise LedgerRpcError(f"HTTP {e.response.status_code}", method) from e
        except httpx.HTTPError as e:
            raise LedgerRpcError(str(e) or type(e).__name__, method) from e
        except ValueError as e:
            raise LedgerRpcError("response is not JSON", method) from e

        if not isinstance(payload, dict):
            raise LedgerRpcError("response is not a JSON-RPC object", method)
        if payload.get("error"):
            err = payload["error"]
            raise LedgerRpcError(
                err.get("message", "unknown error"), method, rpc_code=err.get("code"),
            )
        return payload.get("result")


def _to_event(raw: Any) -> LedgerEvent:
    # Unknown shapes become nameless events; the typed decoder treats them as not found
    if not isinstance(raw, dict):
        return LedgerEvent(name="")
    args = raw.get("args")
    return LedgerEvent(
        name=str(raw.get("event") or ""),
        args=args if isinstance(args, dict) else {},
    )


def _parse_asset_record(asset_id: int, raw: dict) -> AssetRecord:
    fraction_contract = raw.get("fractionalizationContract") or None
    if fraction_contract and int(fraction_contract, 16) == 0:
        fraction_contract = None
    return AssetRecord(
        id=asset_id,
        owner=raw["owner"],
        name=raw["name"],
        description=raw["description"],
        location=raw["location"],
        price=from_minor_units(raw["price"]),
        square_footage=int(raw.get("squareFootage", 0)),
        year_built=int(raw.get("yearBuilt", 0)),
        property_type=raw.get("propertyType", ""),
        created_at=datetime.fromtimestamp(int(raw["createdAt"]), tz=timezone.utc),
        is_active=bool(raw.get("isActive", True)),
        is_fractionalized=bool(raw.get("isFractionalized", False)),
        fraction_contract=fraction_contract,
    )
