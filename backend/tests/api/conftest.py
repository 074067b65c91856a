"""API test fixtures — async DB, fake providers, and FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db overridden; db_manager patched for the history write that bypasses get_db
    - Orchestrators and the ledger client overridden with in-memory fakes,
      so no test reaches a real provider or gateway

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
    - Overrides go through app.dependency_overrides, never monkeypatching the routes
"""

import itertools
import random
from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)

from blockestate.api.dependencies import (
    get_asset_service, get_generation_orchestrator, get_ledger_client,
    get_quota_state, get_tokenization_orchestrator,
)
from blockestate.core.domain_types import (
    AssetRecord, LedgerEvent, TxHandle, TxReceipt,
)
from blockestate.core.errors import ResourceNotFoundError, TransactionRevertedError
from blockestate.core.quota_state import QuotaState
from blockestate.db.base import Base
from blockestate.infrastructure.database import get_db, DatabaseSessionManager
from blockestate.infrastructure.metadata_pinning import InlineMetadataStore
import blockestate.infrastructure.database as db_module
from blockestate.main import app
from blockestate.services.asset_management import AssetManagementService
from blockestate.services.generation_orchestrator import GenerationOrchestrator
from blockestate.services.tokenization_orchestrator import TokenizationOrchestrator


class FakeImageClient:
    """Returns or raises the configured outcome on every call."""

    def __init__(self):
        self.has_credential = True
        self.outcome = "data:image/png;base64,AAAA"
        self.calls = 0

    async def generate(self, prompt, is_preview, attempt):
        self.calls += 1
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


class FakeLedger:
    """In-memory asset ledger with configurable confirmation behaviour."""

    def __init__(self):
        self.confirm_error = None
        self.events = None
        self.reuse_tx_hash = False
        self.head = 100
        self.assets: dict[int, AssetRecord] = {}
        self.reads: list[int] = []
        self._tx_counter = itertools.count(1)
        self._ids = itertools.count(1)
        self._pending = {}

    def _handle(self, pending):
        n = 1 if self.reuse_tx_hash else next(self._tx_counter)
        handle = TxHandle(tx_hash=f"0x{n:064x}", submitted_at=datetime.now(timezone.utc))
        self._pending[handle.tx_hash] = pending
        return handle

    async def create_asset(self, draft, metadata_uri):
        return self._handle(("create", draft))

    async def submit_update(self, asset_id, update):
        return self._handle(("update", asset_id, update))

    async def await_confirmation(self, handle, min_confirmations):
        if self.confirm_error is not None:
            raise self.confirm_error
        pending = self._pending.pop(handle.tx_hash)
        events = self.events
        if pending[0] == "update":
            _, asset_id, update = pending
            if asset_id not in self.assets:
                raise TransactionRevertedError(handle.tx_hash)
            self.assets[asset_id] = self.assets[asset_id].model_copy(
                update=update.model_dump(),
            )
            events = []
        elif events is None:
            asset_id = next(self._ids)
            draft = pending[1]
            self.assets[asset_id] = AssetRecord(
                id=asset_id,
                owner=draft.owner,
                name=draft.name,
                description=draft.description,
                location=draft.location,
                price=draft.price,
                square_footage=draft.square_footage,
                year_built=draft.year_built,
                property_type=draft.property_type,
                created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
                is_active=True,
                is_fractionalized=False,
            )
            events = [LedgerEvent(name="PropertyMinted", args={"tokenId": asset_id})]
        return TxReceipt(
            tx_hash=handle.tx_hash, confirmed=True, block_number=50,
            confirmations=min_confirmations, events=events,
        )

    async def read_asset_state(self, asset_id):
        self.reads.append(asset_id)
        if asset_id not in self.assets:
            raise ResourceNotFoundError("Asset", str(asset_id))
        return self.assets[asset_id]

    async def list_owner_asset_ids(self, owner):
        return [i for i, a in self.assets.items() if a.owner == owner]

    async def block_number(self):
        if isinstance(self.head, Exception):
            raise self.head
        return self.head


async def _no_sleep(seconds):
    return None


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def image_client():
    return FakeImageClient()


@pytest.fixture
def quota_state():
    return QuotaState()


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
async def client(test_engine, test_session_factory, image_client, quota_state, ledger):
    """FastAPI test client with DB and provider dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    generation = GenerationOrchestrator(
        image_client, None, quota_state, rng=random.Random(3), sleep=_no_sleep,
    )
    tokenization = TokenizationOrchestrator(ledger, InlineMetadataStore())
    assets = AssetManagementService(ledger, token_hex=lambda n: "ab" * n)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_generation_orchestrator] = lambda: generation
    app.dependency_overrides[get_quota_state] = lambda: quota_state
    app.dependency_overrides[get_tokenization_orchestrator] = lambda: tokenization
    app.dependency_overrides[get_ledger_client] = lambda: ledger
    app.dependency_overrides[get_asset_service] = lambda: assets

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
def tokenize_body():
    return {
        "name": "Harbor Loft",
        "description": "Converted warehouse loft",
        "location": "Rotterdam",
        "price": "420000",
        "image_ref": "https://img.test/loft.jpg",
        "owner": "0xowner",
        "square_footage": 1200,
        "year_built": 1931,
        "property_type": "Residential",
    }
