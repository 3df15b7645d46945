"""
Tests for the token bucket rate limiter on virtual time.

Run with: pytest tests/test_rate_limiter.py -v
"""

import pytest

from code_preserve_translator.rate_limiter import TokenBucketRateLimiter


@pytest.fixture
def limiter(clock):
    return TokenBucketRateLimiter(rate=1.0, capacity=1.0, clock=clock, sleep=clock.sleep)


class TestTokenBucket:

    @pytest.mark.asyncio
    async def test_first_call_is_immediate(self, limiter, clock):
        assert await limiter.acquire() == 0
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_back_to_back_calls_wait(self, limiter, clock):
        start = clock.now
        await limiter.acquire()
        waited = await limiter.acquire()

        assert waited == pytest.approx(1.0)
        assert clock.now - start == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_tokens_do_not_exceed_capacity(self, limiter, clock):
        await limiter.acquire()
        clock.advance(5)

        assert await limiter.acquire() == 0
        assert await limiter.acquire() == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_from_interval(self, clock):
        limiter = TokenBucketRateLimiter.from_interval(2.0, clock=clock, sleep=clock.sleep)
        await limiter.acquire()

        assert await limiter.acquire() == pytest.approx(2.0)

    def test_invalid_rate(self):
        with pytest.raises(ValueError):
            TokenBucketRateLimiter(rate=0)
