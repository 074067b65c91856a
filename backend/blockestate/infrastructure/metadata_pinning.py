"""Metadata Storage — where token metadata lives before createAsset references it.

Invariants:
    - PinataMetadataStore returns ipfs://<hash> or raises MetadataPinningError
    - InlineMetadataStore never does IO; used when no pinning credentials are configured
    - Pinning happens before ledger submission, so a pinning failure aborts tokenize
      with nothing committed

Design Decisions:
    - Two small classes behind the MetadataStore protocol instead of a flag inside one
"""

import logging

import httpx

from blockestate.core.asset_metadata import inline_metadata_uri
from blockestate.core.errors import MetadataPinningError

logger = logging.getLogger(__name__)


class InlineMetadataStore:
    """Embeds metadata as a data: URI."""

    async def store(self, metadata: dict) -> str:
        return inline_metadata_uri(metadata)


class PinataMetadataStore:
    """Pins metadata JSON to IPFS through Pinata's pinJSONToIPFS endpoint."""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        secret_api_key: str,
        timeout_seconds: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_url = api_url
        self._headers = {
            "pinata_api_key": api_key,
            "pinata_secret_api_key": secret_api_key,
        }
        self._http = http_client or httpx.AsyncClient(timeout=timeout_seconds)

    async def store(self, metadata: dict) -> str:
        try:
            response = await self._http.post(
                self.api_url, json=metadata, headers=self._headers,
            )
            response.raise_for_status()
            ipfs_hash = response.json().get("IpfsHash")
        except httpx.HTTPStatusError as e:
            raise MetadataPinningError(f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise MetadataPinningError(str(e) or type(e).__name__) from e
        except (ValueError, AttributeError) as e:
            raise MetadataPinningError("unexpected response body") from e
        if not ipfs_hash:
            raise MetadataPinningError("response missing IpfsHash")
        logger.info(f"Metadata pinned: ipfs://{ipfs_hash}")
        return f"ipfs://{ipfs_hash}"

    async def aclose(self) -> None:
        await self._http.aclose()
