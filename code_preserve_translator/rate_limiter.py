#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Request pacing for the Code Preserve Translator.
A token bucket with an injectable clock and sleep so tests can run on virtual time.
"""

import time
import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger("code_preserve_translator.rate_limiter")


class TokenBucketRateLimiter:
    """Token bucket limiting how often backend calls may start."""

    def __init__(self, rate: float = 1.0, capacity: float = 1.0,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        """Initialize the rate limiter.

        Args:
            rate: Tokens added per second
            capacity: Maximum number of stored tokens (burst size)
            clock: Returns the current time in seconds
            sleep: Coroutine function used to wait
        """
        if rate <= 0 or capacity <= 0:
            raise ValueError("rate and capacity must be positive")
        self.rate = rate
        self.capacity = capacity
        self.clock = clock
        self.sleep = sleep
        self.tokens = capacity
        self.updated_at = clock()

    @classmethod
    def from_interval(cls, interval: float, **kwargs) -> "TokenBucketRateLimiter":
        """Build a limiter allowing one call per interval seconds."""
        return cls(rate=1.0 / interval, capacity=1.0, **kwargs)

    def _refill(self):
        now = self.clock()
        elapsed = now - self.updated_at
        if elapsed > 0:
            self.tokens = min(self.capacity, self.tokens + elapsed * self.rate)
        self.updated_at = now

    async def acquire(self, tokens: float = 1.0) -> float:
        """Wait until the requested tokens are available and take them.

        Returns:
            Total seconds spent waiting
        """
        waited = 0.0
        self._refill()
        while self.tokens < tokens - 1e-9:
            delay = (tokens - self.tokens) / self.rate
            logger.debug(f"Rate limit reached, waiting {delay:.2f}s")
            await self.sleep(delay)
            waited += delay
            self._refill()
        self.tokens -= tokens
        return waited
