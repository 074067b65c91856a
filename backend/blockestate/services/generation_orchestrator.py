"""Generation Orchestrator — GenerateArt with bounded retries, backoff, and quota breaker.

Invariants:
    - generate_art() never raises (cancellation excepted): every path ends in
      GeneratedImage or FallbackImage
    - Quota breaker tripped -> zero image-provider calls, straight to fallback;
      checked before every attempt, so a breaker tripped by a concurrent request
      also stops this request's remaining retries
    - No image credential -> fallback before composing or enhancing (no paid
      enhancement call whose output would be discarded)
    - At most 1 + max_retries provider calls per invocation; delays strictly increase
    - QuotaExhaustedError trips the breaker and falls back without retrying
    - MissingCredentialError falls back immediately without retrying
    - Enhancement is best-effort and runs once, before the first attempt
    - Each retry draws a fresh salt; only the trailing uniqueness token changes

Design Decisions:
    - Explicit attempt loop instead of recursive continuation: termination is visible
    - ±25% jitter on backoff (2**attempt growth keeps delays strictly increasing)
    - rng, clock and sleep injected: tests assert exact call counts and delays
    - Fallback resolved from the raw description, not the composed prompt, so art
      direction text never influences the category
"""

import asyncio
import logging
import random
from datetime import datetime, timezone
from typing import Awaitable, Callable

from blockestate.core.client_protocols import ImageGenerator, PromptEnhancer
from blockestate.core.domain_types import (
    FallbackImage, FallbackReason, GeneratedImage, GenerationRequest,
    GenerationResult,
)
from blockestate.core.errors import (
    MissingCredentialError, QuotaExhaustedError, TransientProviderError,
)
from blockestate.core.fallback_resolver import resolve_fallback
from blockestate.core.prompt_composer import compose_prompt, resalt_prompt
from blockestate.core.quota_state import QuotaState

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GenerationOrchestrator:
    """Composes prompt composition, enhancement, generation and fallback."""

    def __init__(
        self,
        image_client: ImageGenerator,
        enhancer: PromptEnhancer | None,
        quota_state: QuotaState,
        max_retries: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 60_000,
        rng: random.Random | None = None,
        now: Callable[[], datetime] = _utcnow,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.image_client = image_client
        self.enhancer = enhancer
        self.quota_state = quota_state
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self._rng = rng or random.Random()
        self._now = now
        self._sleep = sleep

    async def generate_art(self, request: GenerationRequest) -> GenerationResult:
        """Generate an image for the request, falling back to a static asset when needed."""
        try:
            return await self._generate(request)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Unexpected generation failure: {e}", exc_info=True)
            return self._fallback(request, FallbackReason.UNEXPECTED_ERROR)

    async def _generate(self, request: GenerationRequest) -> GenerationResult:
        if self.quota_state.exhausted:
            logger.info("Quota breaker open, skipping image provider")
            return self._fallback(request, FallbackReason.QUOTA_EXHAUSTED)
        if not self.image_client.has_credential:
            logger.warning("No image credential configured, using fallback image")
            return self._fallback(request, FallbackReason.MISSING_CREDENTIAL)

        prompt = compose_prompt(request, self._rng, self._now())
        if self.enhancer is not None:
            prompt = await self.enhancer.enhance(
                prompt, request.style, request.era, request.mood,
            )

        for attempt in range(self.max_retries + 1):
            # Another request may have tripped the breaker while this one slept
            if self.quota_state.exhausted:
                logger.info(
                    "Quota breaker tripped during retries, abandoning provider",
                    extra={"attempt": attempt + 1},
                )
                return self._fallback(request, FallbackReason.QUOTA_EXHAUSTED)
            if attempt > 0:
                request = request.with_fresh_salt()
                prompt = resalt_prompt(prompt, request.salt, self._rng, self._now())
            try:
                image_ref = await self.image_client.generate(
                    prompt, request.is_preview, attempt,
                )
                logger.info(
                    "Image generated",
                    extra={"attempt": attempt + 1, "source_kind": "generated"},
                )
                return GeneratedImage(image_ref=image_ref, attempts=attempt + 1)

            except QuotaExhaustedError:
                self.quota_state.trip()
                return self._fallback(request, FallbackReason.QUOTA_EXHAUSTED)

            except MissingCredentialError as e:
                logger.warning(f"{e.message}, using fallback image")
                return self._fallback(request, FallbackReason.MISSING_CREDENTIAL)

            except TransientProviderError as e:
                if attempt >= self.max_retries:
                    logger.warning(
                        f"Image generation failed after {self.max_retries} retries: "
                        f"{e.message}",
                        extra={"attempt": attempt + 1, "error_code": e.code},
                    )
                    break
                delay = self._backoff(attempt)
                logger.warning(
                    f"Transient image error, retry after {delay}ms: {e.message}",
                    extra={"attempt": attempt + 1, "delay_ms": delay},
                )
                await self._sleep(delay / 1000)

        return self._fallback(request, FallbackReason.RETRIES_EXHAUSTED)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * self._rng.uniform(0.75, 1.25))  # nosec B311

    def _fallback(
        self, request: GenerationRequest, reason: FallbackReason,
    ) -> FallbackImage:
        match = resolve_fallback(request.raw_description)
        logger.info(
            "Using fallback image",
            extra={
                "source_kind": "fallback",
                "category": match.category.value,
                "reason": reason.value,
            },
        )
        return FallbackImage(
            image_ref=match.image_ref, category=match.category, reason=reason,
        )
