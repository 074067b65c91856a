"""Art Generation Routes — tests for /api/v1/art.

Invariants tested:
    - Provider failures still answer 200 with a fallback image
    - Exactly one of description / details required (400 otherwise)
    - Quota endpoint reflects the shared breaker
"""

from blockestate.core.errors import QuotaExhaustedError, TransientProviderError
from blockestate.core.fallback_resolver import FALLBACK_IMAGES
from blockestate.core.domain_types import FallbackCategory


async def test_generate_returns_generated_image(client, image_client):
    res = await client.post("/api/v1/art/generate", json={"description": "Loft in Lisbon"})
    assert res.status_code == 200
    body = res.json()
    assert body["source_kind"] == "generated"
    assert body["image_ref"] == "data:image/png;base64,AAAA"
    assert body["attempts"] == 1
    assert image_client.calls == 1


async def test_generate_falls_back_on_persistent_errors(client, image_client):
    image_client.outcome = TransientProviderError("HTTP 500", status_code=500)
    res = await client.post(
        "/api/v1/art/generate", json={"description": "Luxury villa, 5 bed"},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["source_kind"] == "fallback"
    assert body["category"] == "villa"
    assert body["reason"] == "retries_exhausted"
    assert body["image_ref"] == FALLBACK_IMAGES[FallbackCategory.VILLA]
    assert image_client.calls == 4


async def test_generate_from_property_details(client):
    res = await client.post("/api/v1/art/generate", json={
        "details": {
            "name": "Ridge House",
            "description": "Timber cabin",
            "location": "Aspen",
            "price": "850000",
            "bedrooms": 3,
        },
        "style": "Watercolor",
        "preview": True,
    })
    assert res.status_code == 200
    assert res.json()["source_kind"] == "generated"


async def test_generate_requires_a_description(client):
    res = await client.post("/api/v1/art/generate", json={"style": "Noir"})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_generate_rejects_blank_description(client):
    res = await client.post("/api/v1/art/generate", json={"description": "   "})
    assert res.status_code == 400


async def test_quota_trip_visible_and_skips_provider(client, image_client):
    res = await client.get("/api/v1/art/quota")
    assert res.json()["status"] == "available"

    image_client.outcome = QuotaExhaustedError(402)
    first = await client.post("/api/v1/art/generate", json={"description": "Condo"})
    assert first.json()["reason"] == "quota_exhausted"

    res = await client.get("/api/v1/art/quota")
    assert res.json()["status"] == "exhausted"

    image_client.outcome = "data:image/png;base64,BBBB"
    second = await client.post("/api/v1/art/generate", json={"description": "Condo"})
    assert second.json()["source_kind"] == "fallback"
    assert image_client.calls == 1


async def test_generate_without_image_credential_skips_provider(client, image_client):
    image_client.has_credential = False
    res = await client.post("/api/v1/art/generate", json={"description": "Mountain cabin"})
    assert res.status_code == 200
    body = res.json()
    assert body["reason"] == "missing_credential"
    assert body["category"] == "mountain"
    assert image_client.calls == 0
