"""Dependency Wiring — builds clients and orchestrators once per process from Settings.

Invariants:
    - Exactly one QuotaState per process: every GenerationOrchestrator shares it
    - Each provider client is constructed once (lru_cache) and closed on shutdown
    - Routes depend on these functions, so tests swap them via app.dependency_overrides

Design Decisions:
    - lru_cache providers instead of module globals assigned lazily: same
      single-instance guarantee, and cache_clear() resets wiring between tests
    - Pinata store only when both keys are configured; inline data: URIs otherwise
"""

import logging
from functools import lru_cache

from blockestate.config import get_settings
from blockestate.core.quota_state import QuotaState
from blockestate.infrastructure.enhancement_client import AnthropicPromptEnhancer
from blockestate.infrastructure.image_client import InferenceImageClient
from blockestate.infrastructure.ledger_client import JsonRpcLedgerClient
from blockestate.infrastructure.metadata_pinning import (
    InlineMetadataStore, PinataMetadataStore,
)
from blockestate.services.asset_management import AssetManagementService
from blockestate.services.generation_orchestrator import GenerationOrchestrator
from blockestate.services.tokenization_orchestrator import TokenizationOrchestrator

logger = logging.getLogger(__name__)


@lru_cache
def get_quota_state() -> QuotaState:
    return QuotaState(reset_after_seconds=get_settings().quota_reset_after_seconds)


@lru_cache
def get_image_client() -> InferenceImageClient:
    settings = get_settings()
    if not settings.inference_api_token:
        logger.warning("No image inference token configured; generation will use fallbacks")
    return InferenceImageClient(
        api_url=settings.inference_api_url,
        api_token=settings.inference_api_token,
        timeout_seconds=settings.inference_timeout_seconds,
        min_image_bytes=settings.image_min_bytes,
    )


@lru_cache
def get_prompt_enhancer() -> AnthropicPromptEnhancer | None:
    settings = get_settings()
    if not settings.enhancement_enabled:
        return None
    return AnthropicPromptEnhancer(
        api_key=settings.anthropic_api_key,
        model=settings.enhancement_model,
        max_tokens=settings.enhancement_max_tokens,
        timeout_seconds=settings.enhancement_timeout_seconds,
    )


@lru_cache
def get_ledger_client() -> JsonRpcLedgerClient:
    settings = get_settings()
    return JsonRpcLedgerClient(
        rpc_url=settings.ledger_rpc_url,
        timeout_seconds=settings.ledger_rpc_timeout_seconds,
        confirmation_timeout_seconds=settings.ledger_confirmation_timeout_seconds,
        poll_interval_seconds=settings.ledger_poll_interval_seconds,
    )


@lru_cache
def get_metadata_store() -> InlineMetadataStore | PinataMetadataStore:
    settings = get_settings()
    if settings.pinata_api_key and settings.pinata_secret_api_key:
        return PinataMetadataStore(
            api_url=settings.pinata_api_url,
            api_key=settings.pinata_api_key,
            secret_api_key=settings.pinata_secret_api_key,
        )
    return InlineMetadataStore()


@lru_cache
def get_generation_orchestrator() -> GenerationOrchestrator:
    settings = get_settings()
    return GenerationOrchestrator(
        image_client=get_image_client(),
        enhancer=get_prompt_enhancer(),
        quota_state=get_quota_state(),
        max_retries=settings.image_max_retries,
        base_delay_ms=settings.image_base_delay_ms,
        max_delay_ms=settings.image_max_delay_ms,
    )


@lru_cache
def get_tokenization_orchestrator() -> TokenizationOrchestrator:
    settings = get_settings()
    return TokenizationOrchestrator(
        ledger=get_ledger_client(),
        metadata_store=get_metadata_store(),
        min_confirmations=settings.ledger_min_confirmations,
        share_total=settings.share_total,
        derive_shares_enabled=settings.share_derivation_enabled,
    )


@lru_cache
def get_asset_service() -> AssetManagementService:
    settings = get_settings()
    return AssetManagementService(
        ledger=get_ledger_client(),
        min_confirmations=settings.ledger_min_confirmations,
        share_total=settings.share_total,
    )


async def close_clients() -> None:
    """Close whichever HTTP clients were built during this process."""
    if get_image_client.cache_info().currsize:
        await get_image_client().aclose()
    if get_ledger_client.cache_info().currsize:
        await get_ledger_client().aclose()
    if get_prompt_enhancer.cache_info().currsize:
        enhancer = get_prompt_enhancer()
        if enhancer is not None:
            await enhancer.aclose()
    if get_metadata_store.cache_info().currsize:
        store = get_metadata_store()
        if isinstance(store, PinataMetadataStore):
            await store.aclose()
