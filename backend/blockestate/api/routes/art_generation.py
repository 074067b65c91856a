"""Art Generation Routes — property artwork with guaranteed image output.

Invariants:
    - POST /art/generate returns 200 for every provider outcome; the body's
      source_kind says whether the image is generated or a fallback
    - Each request gets its own salt, so repeated identical requests differ
"""

import logging

from fastapi import APIRouter, Depends

from blockestate.api.dependencies import get_generation_orchestrator, get_quota_state
from blockestate.core.domain_types import (
    FallbackImage, GeneratedImage, GenerationRequest,
)
from blockestate.core.prompt_composer import build_property_description
from blockestate.core.quota_state import QuotaState
from blockestate.schemas.generation import (
    ArtGenerateRequest, ArtGenerateResponse, QuotaStatusResponse,
)
from blockestate.services.generation_orchestrator import GenerationOrchestrator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/art", tags=["art"])


@router.post("/generate", response_model=ArtGenerateResponse)
async def generate_art(
    body: ArtGenerateRequest,
    orchestrator: GenerationOrchestrator = Depends(get_generation_orchestrator),
):
    description = (
        body.description
        if body.details is None
        else build_property_description(body.details)
    )
    request = GenerationRequest(
        raw_description=description,
        style=body.style,
        era=body.era,
        mood=body.mood,
        is_preview=body.preview,
    )
    result = await orchestrator.generate_art(request)

    if isinstance(result, GeneratedImage):
        return ArtGenerateResponse(
            source_kind=result.source_kind,
            image_ref=result.image_ref,
            attempts=result.attempts,
        )
    if isinstance(result, FallbackImage):
        return ArtGenerateResponse(
            source_kind=result.source_kind,
            image_ref=result.image_ref,
            category=result.category,
            reason=result.reason,
        )
    # generate_art only produces the two variants above
    raise RuntimeError(f"unexpected generation result: {result.kind}")


@router.get("/quota", response_model=QuotaStatusResponse)
async def quota_status(quota_state: QuotaState = Depends(get_quota_state)):
    return QuotaStatusResponse(
        status="exhausted" if quota_state.exhausted else "available",
        reset_after_seconds=quota_state.reset_after_seconds,
    )
