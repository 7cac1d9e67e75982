"""Sequential throttle for AI provider calls.

Provider calls never overlap: a semaphore of size 1 admits one call at a
time, and after each call the next one is held back by a fixed spacing that
depends on the platform just called (ChatGPT 3s, everything else 1s by
default). This is a deliberate throttle against rate limits and relay
timeouts, not a retry mechanism.

Usage:
    throttle = SequentialThrottle.from_settings(settings)

    async with throttle.slot(Platform.CHATGPT):
        response = await collector.query_llm(text)
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from ai_visibility.core.config import Settings
from ai_visibility.schemas.query import Platform

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class SequentialThrottle:
    def __init__(
        self,
        delays: dict[Platform, float] | None = None,
        default_delay: float = 1.0,
        sleep: SleepFunc = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.delays = delays or {}
        self.default_delay = default_delay
        self._sleep = sleep
        self._clock = clock
        self._semaphore = asyncio.Semaphore(1)
        self._next_allowed: float | None = None  # None until the first call completes

    @classmethod
    def from_settings(cls, settings: Settings, sleep: SleepFunc = asyncio.sleep) -> SequentialThrottle:
        return cls(
            delays={Platform.CHATGPT: settings.chatgpt_call_delay},
            default_delay=settings.default_call_delay,
            sleep=sleep,
        )

    def delay_for(self, platform: Platform) -> float:
        return self.delays.get(platform, self.default_delay)

    @asynccontextmanager
    async def slot(self, platform: Platform) -> AsyncIterator[None]:
        """Hold the single call slot for *platform*, waiting out the spacing first."""
        async with self._semaphore:
            if self._next_allowed is not None:
                wait = self._next_allowed - self._clock()
                if wait > 0:
                    logger.debug("Throttle: waiting %.2fs before %s call", wait, platform.value)
                    await self._sleep(wait)
            try:
                yield
            finally:
                self._next_allowed = self._clock() + self.delay_for(platform)
