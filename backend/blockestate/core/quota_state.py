"""Quota State — process-wide circuit breaker for image-provider quota exhaustion.

Invariants:
    - trip() is compare-and-set: only the first caller per exhaustion event wins
    - Default policy is sticky: once tripped, stays tripped for the process lifetime
    - With reset_after_seconds set, the breaker re-opens once that window elapses
    - Reads never block

Design Decisions:
    - Explicit object injected into the orchestrator, not a module global:
      one instance per process is created by the dependency layer
    - threading.Lock guards the CAS only; asyncio callers never hold it across an await
"""

import logging
import threading
import time
from typing import Callable

logger = logging.getLogger(__name__)


class QuotaState:
    """Sticky quota-exhaustion flag with optional time-boxed reset."""

    def __init__(
        self,
        reset_after_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.reset_after_seconds = reset_after_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._tripped_at: float | None = None

    @property
    def exhausted(self) -> bool:
        tripped_at = self._tripped_at
        if tripped_at is None:
            return False
        if self.reset_after_seconds is None:
            return True
        if self._clock() - tripped_at < self.reset_after_seconds:
            return True
        self._reset(tripped_at)
        return False

    @property
    def tripped_at(self) -> float | None:
        return self._tripped_at

    def trip(self) -> bool:
        """Mark the provider exhausted. Returns True only for the call that tripped it."""
        with self._lock:
            if self._tripped_at is not None:
                return False
            self._tripped_at = self._clock()
        logger.error(
            "Image provider quota exhausted, breaker tripped",
            extra={"reset_after_seconds": self.reset_after_seconds},
        )
        return True

    def _reset(self, observed: float) -> None:
        with self._lock:
            if self._tripped_at != observed:
                return
            self._tripped_at = None
        logger.info("Quota breaker reset window elapsed, re-enabling provider")
