"""Health & Readiness Probes — liveness, plus readiness of the stores tokenization needs.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 when the database or the ledger gateway is
      unreachable; both are required to record and confirm tokenizations
    - Image, enhancement and pinning providers never affect readiness: without
      them generation falls back and metadata is inlined. Their configuration
      is reported so operators can see which path requests will take
    - No credential value is ever echoed, only whether one is configured

Design Decisions:
    - Separate liveness/readiness: liveness restarts, readiness removes from load balancer
    - Ledger reachability is a block-number read: cheap, no contract call
"""

import logging
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from blockestate.api.dependencies import get_ledger_client, get_quota_state
from blockestate.config import Settings, get_settings
from blockestate.core.errors import LedgerRpcError
from blockestate.core.quota_state import QuotaState
from blockestate.infrastructure import database
from blockestate.infrastructure.ledger_client import JsonRpcLedgerClient

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Liveness check. Returns 200 if the process is up."""
    return {"status": "healthy", "service": "blockestate-api"}


@router.get("/ready")
async def readiness_check(
    ledger: JsonRpcLedgerClient = Depends(get_ledger_client),
    quota_state: QuotaState = Depends(get_quota_state),
):
    """Readiness: database and ledger gateway, plus provider configuration."""
    manager = database.db_manager
    db_ok = await manager.health_check() if manager else False

    ledger_head = None
    try:
        ledger_head = await ledger.block_number()
    except LedgerRpcError as e:
        logger.warning(f"Ledger readiness check failed: {e.message}")

    checks = {
        "database": "healthy" if db_ok else "unavailable",
        "ledger": "healthy" if ledger_head is not None else "unavailable",
    }
    body = {
        "checks": checks,
        "ledger_head": ledger_head,
        "providers": provider_modes(get_settings(), quota_state),
    }
    if not db_ok or ledger_head is None:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", **body},
        )
    return {"status": "ready", **body}


def provider_modes(settings: Settings, quota_state: QuotaState) -> dict[str, str]:
    """Which path each optional provider will take, without exposing credentials."""
    if not settings.inference_api_token:
        image = "fallback_only"
    elif quota_state.exhausted:
        image = "quota_exhausted"
    else:
        image = "configured"

    if not settings.enhancement_enabled:
        enhancement = "disabled"
    elif not settings.anthropic_api_key:
        enhancement = "no_credential"
    else:
        enhancement = "enabled"

    pinning = (
        "pinata"
        if settings.pinata_api_key and settings.pinata_secret_api_key
        else "inline"
    )
    return {
        "image_generation": image,
        "prompt_enhancement": enhancement,
        "metadata_storage": pinning,
    }
