"""Ledger Client — tests for JSON-RPC calls and confirmation polling.

Invariants tested:
    - createAsset sends integer minor units, never a float
    - Confirmation depth counts the inclusion block
    - Deadline -> ConfirmationTimeoutError; status 0 -> TransactionRevertedError
    - RPC errors while polling are retried until the deadline
    - getAssetDetails maps to AssetRecord (price back to Decimal)
    - A null or non-integer head block is an RPC failure, not a crash
    - updateProperty goes through contract_transact with minor units
    - getPropertiesOfOwner yields integer ids; anything else is an RPC failure
"""

import json
from decimal import Decimal

import httpx
import pytest

from blockestate.core.domain_types import AssetDraft, AssetUpdate, TxHandle
from blockestate.core.errors import (
    ConfirmationTimeoutError, LedgerRpcError, ResourceNotFoundError,
    TransactionRevertedError,
)
from blockestate.infrastructure.ledger_client import JsonRpcLedgerClient

RPC_URL = "http://ledger.test"
TX_HASH = "0x" + "1" * 64


class _FakeTime:
    """Shared clock + sleep: sleeping advances the clock."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def clock(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class _Gateway:
    """Scripted JSON-RPC gateway. Handlers map method -> callable(params) -> result."""

    def __init__(self, **handlers):
        self.handlers = handlers
        self.calls = []

    def __call__(self, request):
        body = json.loads(request.content)
        self.calls.append(body)
        handler = self.handlers[body["method"]]
        try:
            result = handler(body["params"])
        except _RpcFault as fault:
            return httpx.Response(200, json={
                "jsonrpc": "2.0", "id": body["id"],
                "error": {"code": fault.code, "message": fault.message},
            })
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    def methods(self):
        return [c["method"] for c in self.calls]


class _RpcFault(Exception):
    def __init__(self, code, message):
        self.code = code
        self.message = message


def _client(gateway, fake_time=None, timeout=10.0, poll=1.0):
    fake_time = fake_time or _FakeTime()
    return JsonRpcLedgerClient(
        RPC_URL,
        confirmation_timeout_seconds=timeout,
        poll_interval_seconds=poll,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(gateway)),
        sleep=fake_time.sleep,
        clock=fake_time.clock,
    )


def _draft():
    return AssetDraft(
        name="Harbor Loft",
        description="Loft",
        location="Rotterdam",
        price=Decimal("1.25"),
        image_ref="https://img.test/a.jpg",
        owner="0xowner",
        square_footage=1200,
        year_built=1931,
        property_type="Residential",
    )


def _handle():
    return TxHandle(tx_hash=TX_HASH, submitted_at="2026-01-01T00:00:00Z")


def _mined_receipt(block=100, events=None, status=1):
    return {
        "status": status,
        "blockNumber": block,
        "events": events if events is not None else [
            {"event": "PropertyMinted", "args": {"tokenId": 5}},
        ],
    }


async def test_create_asset_sends_minor_units():
    gateway = _Gateway(contract_transact=lambda params: TX_HASH)
    handle = await _client(gateway).create_asset(_draft(), "ipfs://meta")
    assert handle.tx_hash == TX_HASH
    params = gateway.calls[0]["params"]
    assert params["function"] == "createAsset"
    assert params["args"] == [
        "0xowner", "Harbor Loft", "Loft", "Rotterdam",
        "1250000000000000000", 1200, 1931, "Residential", "ipfs://meta",
    ]


async def test_create_asset_rpc_error():
    def reject(params):
        raise _RpcFault(-32000, "insufficient funds")

    with pytest.raises(LedgerRpcError) as exc_info:
        await _client(_Gateway(contract_transact=reject)).create_asset(_draft(), "x")
    assert exc_info.value.rpc_code == -32000


async def test_create_asset_http_error():
    client = JsonRpcLedgerClient(
        RPC_URL,
        http_client=httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(500)),
        ),
    )
    with pytest.raises(LedgerRpcError):
        await client.create_asset(_draft(), "x")


async def test_confirms_when_depth_reached():
    gateway = _Gateway(
        ledger_getTransactionReceipt=lambda params: _mined_receipt(block=100),
        ledger_blockNumber=lambda params: 101,
    )
    receipt = await _client(gateway).await_confirmation(_handle(), 2)
    assert receipt.confirmed
    assert receipt.confirmations == 2
    assert receipt.block_number == 100
    assert receipt.events[0].name == "PropertyMinted"


async def test_polls_until_mined_and_deep_enough():
    fake_time = _FakeTime()
    heads = iter([100, 100, 102])
    receipts = iter([None, _mined_receipt(block=100), _mined_receipt(block=100),
                     _mined_receipt(block=100)])
    gateway = _Gateway(
        ledger_getTransactionReceipt=lambda params: next(receipts),
        ledger_blockNumber=lambda params: next(heads),
    )
    receipt = await _client(gateway, fake_time).await_confirmation(_handle(), 3)
    assert receipt.confirmations == 3
    assert fake_time.sleeps == [1.0, 1.0, 1.0]


async def test_never_mined_times_out():
    fake_time = _FakeTime()
    gateway = _Gateway(ledger_getTransactionReceipt=lambda params: None)
    with pytest.raises(ConfirmationTimeoutError) as exc_info:
        await _client(gateway, fake_time, timeout=5.0).await_confirmation(_handle(), 2)
    assert exc_info.value.tx_hash == TX_HASH
    assert fake_time.now >= 5.0


async def test_shallow_confirmation_times_out_with_observed_depth():
    gateway = _Gateway(
        ledger_getTransactionReceipt=lambda params: _mined_receipt(block=100),
        ledger_blockNumber=lambda params: 100,
    )
    with pytest.raises(ConfirmationTimeoutError) as exc_info:
        await _client(gateway, timeout=3.0).await_confirmation(_handle(), 2)
    assert exc_info.value.confirmations == 1
    assert exc_info.value.context.retry_after_ms == 1000


async def test_reverted_transaction():
    gateway = _Gateway(
        ledger_getTransactionReceipt=lambda params: _mined_receipt(status=0),
    )
    with pytest.raises(TransactionRevertedError):
        await _client(gateway).await_confirmation(_handle(), 1)


async def test_rpc_errors_while_polling_are_retried():
    answers = iter(["fail", _mined_receipt(block=10)])

    def receipt(params):
        answer = next(answers)
        if answer == "fail":
            raise _RpcFault(-32603, "node syncing")
        return answer

    gateway = _Gateway(
        ledger_getTransactionReceipt=receipt,
        ledger_blockNumber=lambda params: 11,
    )
    result = await _client(gateway).await_confirmation(_handle(), 2)
    assert result.confirmations == 2


async def test_malformed_event_entries_become_nameless():
    gateway = _Gateway(
        ledger_getTransactionReceipt=lambda params: _mined_receipt(
            block=1, events=["garbage", {"event": "Transfer", "args": None}],
        ),
        ledger_blockNumber=lambda params: 5,
    )
    receipt = await _client(gateway).await_confirmation(_handle(), 1)
    assert [e.name for e in receipt.events] == ["", "Transfer"]


async def test_read_asset_state():
    gateway = _Gateway(contract_call=lambda params: {
        "owner": "0xowner",
        "name": "Harbor Loft",
        "description": "Loft",
        "location": "Rotterdam",
        "price": "1250000000000000000",
        "squareFootage": 1200,
        "yearBuilt": 1931,
        "propertyType": "Residential",
        "createdAt": 1767225600,
        "isActive": True,
        "isFractionalized": False,
        "fractionalizationContract": "0x" + "0" * 40,
    })
    record = await _client(gateway).read_asset_state(5)
    assert gateway.calls[0]["params"] == {"function": "getAssetDetails", "args": [5]}
    assert record.id == 5
    assert record.price == Decimal("1.25")
    assert record.fraction_contract is None
    assert record.created_at.year == 2026


async def test_read_unknown_asset():
    gateway = _Gateway(contract_call=lambda params: None)
    with pytest.raises(ResourceNotFoundError):
        await _client(gateway).read_asset_state(999)


async def test_read_malformed_asset():
    gateway = _Gateway(contract_call=lambda params: {"owner": "0x1"})
    with pytest.raises(LedgerRpcError):
        await _client(gateway).read_asset_state(1)


@pytest.mark.parametrize("head", [None, "latest", {"number": 5}])
async def test_block_number_rejects_non_integer_head(head):
    gateway = _Gateway(ledger_blockNumber=lambda params: head)
    with pytest.raises(LedgerRpcError) as exc_info:
        await _client(gateway).block_number()
    assert exc_info.value.method == "ledger_blockNumber"


async def test_null_head_while_polling_is_retried():
    heads = iter([None, 11])
    gateway = _Gateway(
        ledger_getTransactionReceipt=lambda params: _mined_receipt(block=10),
        ledger_blockNumber=lambda params: next(heads),
    )
    result = await _client(gateway).await_confirmation(_handle(), 2)
    assert result.confirmations == 2


async def test_null_head_until_deadline_times_out():
    gateway = _Gateway(
        ledger_getTransactionReceipt=lambda params: _mined_receipt(block=10),
        ledger_blockNumber=lambda params: None,
    )
    with pytest.raises(ConfirmationTimeoutError):
        await _client(gateway, timeout=3.0).await_confirmation(_handle(), 2)


async def test_submit_update_sends_minor_units():
    gateway = _Gateway(contract_transact=lambda params: TX_HASH)
    update = AssetUpdate(
        name="Harbor Loft II", description="Renovated", location="Rotterdam",
        price=Decimal("2.5"),
    )
    handle = await _client(gateway).submit_update(5, update)
    assert handle.tx_hash == TX_HASH
    assert gateway.calls[0]["params"] == {
        "function": "updateProperty",
        "args": [5, "Harbor Loft II", "Renovated", "Rotterdam", "2500000000000000000"],
    }


async def test_submit_update_without_hash_fails():
    gateway = _Gateway(contract_transact=lambda params: None)
    update = AssetUpdate(name="a", description="b", location="c", price=Decimal(1))
    with pytest.raises(LedgerRpcError) as exc_info:
        await _client(gateway).submit_update(5, update)
    assert exc_info.value.context.asset_id == 5


async def test_list_owner_asset_ids():
    gateway = _Gateway(contract_call=lambda params: [3, "7", 12])
    ids = await _client(gateway).list_owner_asset_ids("0xowner")
    assert ids == [3, 7, 12]
    assert gateway.calls[0]["params"] == {
        "function": "getPropertiesOfOwner", "args": ["0xowner"],
    }


async def test_list_owner_asset_ids_null_is_empty():
    gateway = _Gateway(contract_call=lambda params: None)
    assert await _client(gateway).list_owner_asset_ids("0xowner") == []


@pytest.mark.parametrize("raw", [{"ids": [1]}, ["one"], [-1]])
async def test_list_owner_asset_ids_malformed(raw):
    gateway = _Gateway(contract_call=lambda params: raw)
    with pytest.raises(LedgerRpcError):
        await _client(gateway).list_owner_asset_ids("0xowner")
