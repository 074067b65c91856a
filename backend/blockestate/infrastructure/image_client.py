"""Image Inference Client — one POST per call to the text-to-image endpoint.

Invariants:
    - No token configured -> MissingCredentialError before any request is built
    - HTTP 402 -> QuotaExhaustedError (terminal for the process, never retried here)
    - HTTP 401/403 -> MissingCredentialError (credential rejected)
    - Timeout, connection error, 5xx, other non-2xx -> TransientProviderError
    - Payload under min_image_bytes or non-image content -> InvalidResponseError
    - Every call carries a fresh seed (random bits mixed with wall-clock ns)

Design Decisions:
    - No retry loop here: the generation orchestrator owns retries and backoff
    - Preview requests trade quality for latency (lower guidance, fewer steps, 512px)
    - Success returned as a data: URI so callers get one string type for
      generated and fallback images alike
"""

import base64
import logging
import random
import time
from typing import Callable

import httpx

from blockestate.core.errors import (
    ErrorContext,
    InvalidResponseError,
    MissingCredentialError,
    QuotaExhaustedError,
    TransientProviderError,
)

logger = logging.getLogger(__name__)

_QUOTA_STATUS = 402
_CREDENTIAL_STATUSES = (401, 403)

NEGATIVE_PROMPT = "blurry, low quality, distorted, watermark, text, logo, cropped"

PREVIEW_PARAMETERS = {
    "guidance_scale": 5.0,
    "num_inference_steps": 20,
    "width": 512,
    "height": 512,
}
FINAL_PARAMETERS = {
    "guidance_scale": 7.5,
    "num_inference_steps": 50,
    "width": 1024,
    "height": 1024,
}


class InferenceImageClient:
    """Calls a hosted text-to-image model and classifies its failures."""

    PROVIDER = "image inference"

    def __init__(
        self,
        api_url: str,
        api_token: str | None,
        timeout_seconds: float = 30.0,
        min_image_bytes: int = 100,
        http_client: httpx.AsyncClient | None = None,
        rng: random.Random | None = None,
        clock_ns: Callable[[], int] = time.time_ns,
    ):
        self.api_url = api_url
        self.api_token = api_token
        self.min_image_bytes = min_image_bytes
        self._http = http_client or httpx.AsyncClient(timeout=timeout_seconds)
        self._rng = rng or random.Random()
        self._clock_ns = clock_ns

    @property
    def has_credential(self) -> bool:
        return bool(self.api_token)

    def next_seed(self) -> int:
        return (self._rng.getrandbits(32) ^ self._clock_ns()) % 2**32

    def build_payload(self, prompt: str, is_preview: bool) -> dict:
        parameters = dict(PREVIEW_PARAMETERS if is_preview else FINAL_PARAMETERS)
        parameters["seed"] = self.next_seed()
        parameters["negative_prompt"] = NEGATIVE_PROMPT
        return {"inputs": prompt, "parameters": parameters}

    async def generate(self, prompt: str, is_preview: bool, attempt: int) -> str:
        """Run one inference call. Returns a data: URI of the image."""
        context = ErrorContext(attempt=attempt)
        if not self.has_credential:
            raise MissingCredentialError(self.PROVIDER, context=context)

        payload = self.build_payload(prompt, is_preview)
        logger.info(
            "Requesting image generation",
            extra={"attempt": attempt + 1, "preview": is_preview},
        )
        try:
            response = await self._http.post(
                self.api_url,
                json=payload,
                headers={
                    "Authorization": f"Bearer {self.api_token}",
                    "Accept": "image/*",
                },
            )
        except httpx.TimeoutException as e:
            raise TransientProviderError(f"timeout: {e}", context=context) from e
        except httpx.TransportError as e:
            raise TransientProviderError(f"transport error: {e}", context=context) from e

        self._raise_for_status(response, context)
        return self._to_data_uri(response, context)

    def _raise_for_status(self, response: httpx.Response, context: ErrorContext) -> None:
        status = response.status_code
        if status == _QUOTA_STATUS:
            raise QuotaExhaustedError(status, context=context)
        if status in _CREDENTIAL_STATUSES:
            raise MissingCredentialError(self.PROVIDER, context=context)
        if not response.is_success:
            raise TransientProviderError(
                f"HTTP {status}", status_code=status, context=context,
            )

    def _to_data_uri(self, response: httpx.Response, context: ErrorContext) -> str:
        body = response.content
        content_type = response.headers.get("content-type", "image/jpeg").split(";")[0]
        if content_type == "application/octet-stream":
            content_type = "image/jpeg"
        if len(body) < self.min_image_bytes or not content_type.startswith("image/"):
            raise InvalidResponseError(len(body), context=context)
        encoded = base64.b64encode(body).decode("ascii")
        return f"data:{content_type};base64,{encoded}"

    async def aclose(self) -> None:
        await self._http.aclose()
