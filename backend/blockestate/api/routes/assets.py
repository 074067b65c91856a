"""Asset Routes — tokenization, ledger reads and updates, simulated share purchases,
and local tokenization history.

Invariants:
    - POST /assets/tokenize returns 201 only for a confirmed creation with a
      decoded asset id; every earlier failure reaches the global error handler
    - PUT /assets/{id} answers only after the update transaction is confirmed
    - A local-history write failure never turns a confirmed ledger write into an
      error response: the ledger is the source of truth, the table is a cache
    - asset_id path parameters are non-negative integers; anything else is a 400
      before the ledger is called
    - /tokenizations and /owner/{owner} are registered before /{asset_id} so
      they are not parsed as an id

Design Decisions:
    - History writes use their own session (not Depends(get_db)): the session
      dependency would re-raise the DatabaseError after the response is built
"""

import logging

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from blockestate.api.dependencies import (
    get_asset_service, get_ledger_client, get_tokenization_orchestrator,
)
from blockestate.config import get_settings
from blockestate.core.domain_types import AssetUpdateResult, TokenizationResult
from blockestate.core.errors import DatabaseError
from blockestate.infrastructure import database
from blockestate.infrastructure.database import get_db
from blockestate.infrastructure.ledger_client import JsonRpcLedgerClient
from blockestate.schemas.tokenization import (
    AssetRecordResponse, AssetUpdateRequest, AssetUpdateResponse,
    SharePurchaseRequest, SharePurchaseResponse, TokenizationRecordResponse,
    TokenizeRequest, TokenizeResponse,
)
from blockestate.services.asset_management import AssetManagementService
from blockestate.services.tokenization_orchestrator import TokenizationOrchestrator
from blockestate.services.tokenization_records import (
    apply_asset_update, list_tokenizations, record_tokenization,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/assets", tags=["assets"])

AssetId = Path(ge=0, description="Ledger-assigned asset id")


@router.post(
    "/tokenize", response_model=TokenizeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def tokenize_asset(
    body: TokenizeRequest,
    orchestrator: TokenizationOrchestrator = Depends(get_tokenization_orchestrator),
):
    draft = body.to_draft(get_settings().ledger_owner_address)
    result = await orchestrator.tokenize(draft)
    await _write_history(result)
    return TokenizeResponse.from_result(result)


@router.get("/tokenizations", response_model=list[TokenizationRecordResponse])
async def list_asset_tokenizations(
    owner: str | None = Query(None, max_length=80),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    records = await list_tokenizations(db, owner=owner, limit=limit)
    return [TokenizationRecordResponse.model_validate(r) for r in records]


@router.get("/owner/{owner}", response_model=list[AssetRecordResponse])
async def list_owner_assets(
    owner: str = Path(max_length=80),
    service: AssetManagementService = Depends(get_asset_service),
):
    """Assets the ledger reports for owner (not the local history)."""
    records = await service.list_owner_assets(owner)
    return [AssetRecordResponse.from_record(r) for r in records]


@router.get("/{asset_id}", response_model=AssetRecordResponse)
async def get_asset(
    asset_id: int = AssetId,
    ledger: JsonRpcLedgerClient = Depends(get_ledger_client),
):
    record = await ledger.read_asset_state(asset_id)
    return AssetRecordResponse.from_record(record)


@router.put("/{asset_id}", response_model=AssetUpdateResponse)
async def update_asset(
    body: AssetUpdateRequest,
    asset_id: int = AssetId,
    service: AssetManagementService = Depends(get_asset_service),
):
    result = await service.update_asset(asset_id, body.to_update())
    await _write_history(result)
    return AssetUpdateResponse.from_result(result)


@router.post(
    "/{asset_id}/shares/purchase", response_model=SharePurchaseResponse,
)
async def purchase_asset_shares(
    body: SharePurchaseRequest,
    asset_id: int = AssetId,
    service: AssetManagementService = Depends(get_asset_service),
):
    buyer = (body.buyer or get_settings().ledger_owner_address or "").strip()
    purchase = await service.purchase_shares(asset_id, buyer, body.shares)
    return SharePurchaseResponse.from_purchase(purchase)


async def _write_history(result: TokenizationResult | AssetUpdateResult) -> None:
    manager = database.db_manager
    if manager is None:
        logger.warning(
            "Database not initialized; asset history not written",
            extra={"tx_hash": result.tx_hash, "asset_id": result.asset_id},
        )
        return
    try:
        async with manager.session() as db:
            if isinstance(result, TokenizationResult):
                await record_tokenization(db, result)
            else:
                await apply_asset_update(db, result)
    except DatabaseError as e:
        logger.error(
            f"Failed to write asset history: {e.message}",
            extra={
                "error_code": e.code,
                "tx_hash": result.tx_hash,
                "asset_id": result.asset_id,
            },
        )
