from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from app.services.errors import ModelBackendError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_sleep = asyncio.sleep


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    initial_delay: float = 1.0
    backoff_multiplier: float = 2.0

    @classmethod
    def from_settings(cls, s) -> "RetryPolicy":
        return cls(
            max_retries=max(0, int(s.llm_max_retries)),
            initial_delay=max(0.0, float(s.llm_initial_delay_sec)),
            backoff_multiplier=max(1.0, float(s.llm_backoff_multiplier)),
        )

    def delays(self) -> list[float]:
        return [self.initial_delay * (self.backoff_multiplier**i) for i in range(self.max_retries)]


async def call_with_retry(fn: Callable[[], Awaitable[T]], policy: RetryPolicy) -> T:
    """
    Await fn(); on ModelBackendError wait and try again, up to
    policy.max_retries extra attempts. The last error is re-raised.
    """
    delays = policy.delays()
    attempt = 0
    while True:
        try:
            return await fn()
        except ModelBackendError as e:
            if attempt >= len(delays):
                logger.error(f"model call failed after {attempt + 1} attempt(s): {e.message}")
                raise
            delay = delays[attempt]
            attempt += 1
            logger.info(f"model call failed ({e.message}); retry {attempt}/{len(delays)} in {delay:.1f}s")
            await _sleep(delay)
