"""Boundary Protocols — contracts between the orchestrators and external clients.

Invariants:
    - Orchestrators depend on these Protocols, never on concrete httpx/SDK clients
    - Implementations live in infrastructure/ and are injected by the API layer

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
"""

from typing import Protocol

from blockestate.core.domain_types import (
    AssetDraft, AssetRecord, AssetUpdate, TxHandle, TxReceipt,
)


class PromptEnhancer(Protocol):
    """Best-effort prompt rewrite. Must return the original prompt on failure."""
    async def enhance(
        self, prompt: str, style: str, era: str, mood: str,
    ) -> str: ...


class ImageGenerator(Protocol):
    """Single image inference call. Raises provider errors from core/errors.py."""
    @property
    def has_credential(self) -> bool: ...

    async def generate(
        self, prompt: str, is_preview: bool, attempt: int,
    ) -> str: ...


class MetadataStore(Protocol):
    """Turns a metadata document into the URI passed to createAsset."""
    async def store(self, metadata: dict) -> str: ...


class LedgerGateway(Protocol):
    """Asset contract operations used by the tokenization and asset services."""
    async def create_asset(
        self, draft: AssetDraft, metadata_uri: str,
    ) -> TxHandle: ...

    async def await_confirmation(
        self, handle: TxHandle, min_confirmations: int,
    ) -> TxReceipt: ...

    async def submit_update(
        self, asset_id: int, update: AssetUpdate,
    ) -> TxHandle: ...

    async def read_asset_state(self, asset_id: int) -> AssetRecord: ...

    async def list_owner_asset_ids(self, owner: str) -> list[int]: ...
