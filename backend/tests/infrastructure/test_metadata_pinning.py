"""Metadata Storage — tests for inline and Pinata metadata stores."""

import json

import httpx
import pytest

from blockestate.core.errors import MetadataPinningError
from blockestate.infrastructure.metadata_pinning import (
    InlineMetadataStore, PinataMetadataStore,
)

PIN_URL = "https://pinata.test/pinning/pinJSONToIPFS"
METADATA = {"name": "Harbor Loft", "attributes": []}


def _store(handler):
    requests = []

    def record(request):
        requests.append(request)
        return handler(request)

    store = PinataMetadataStore(
        PIN_URL, "key", "secret",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(record)),
    )
    return store, requests


async def test_inline_store_returns_data_uri():
    uri = await InlineMetadataStore().store(METADATA)
    assert uri.startswith("data:application/json;base64,")


async def test_pinata_returns_ipfs_uri():
    store, requests = _store(lambda r: httpx.Response(200, json={"IpfsHash": "QmHash"}))
    assert await store.store(METADATA) == "ipfs://QmHash"
    assert requests[0].headers["pinata_api_key"] == "key"
    assert requests[0].headers["pinata_secret_api_key"] == "secret"
    assert json.loads(requests[0].content) == METADATA


async def test_pinata_http_error():
    store, _ = _store(lambda r: httpx.Response(401))
    with pytest.raises(MetadataPinningError):
        await store.store(METADATA)


async def test_pinata_missing_hash():
    store, _ = _store(lambda r: httpx.Response(200, json={}))
    with pytest.raises(MetadataPinningError):
        await store.store(METADATA)


async def test_pinata_transport_error():
    def refuse(request):
        raise httpx.ConnectError("refused", request=request)

    store, _ = _store(refuse)
    with pytest.raises(MetadataPinningError):
        await store.store(METADATA)
