import pytest

from wallet_api.services.moralis import RateLimitError, UpstreamError, UpstreamTimeoutError
from wallet_api.services.retry import (
    backoff_delay,
    is_rate_limit_error,
    is_retryable_error,
    retry_with_backoff,
)


class Recorder:
    def __init__(self):
        self.delays = []

    async def sleep(self, delay):
        self.delays.append(delay)


def failing(error, counter):
    async def call():
        counter.append(1)
        raise error
    return call


@pytest.mark.asyncio
async def test_rate_limit_error_exhausts_all_retries():
    calls, recorder = [], Recorder()

    with pytest.raises(RateLimitError):
        await retry_with_backoff(
            failing(RateLimitError("Moralis rate limit exceeded (too many requests)"), calls),
            retries=3,
            sleep=recorder.sleep,
            rand=lambda: 0.0,
        )

    assert len(calls) == 4
    assert recorder.delays == pytest.approx([0.3, 0.6, 1.2])


@pytest.mark.asyncio
async def test_non_retryable_error_fails_on_first_attempt():
    calls, recorder = [], Recorder()

    with pytest.raises(UpstreamError, match="invalid address"):
        await retry_with_backoff(
            failing(UpstreamError("Moralis API error 400: invalid address"), calls),
            retries=3,
            sleep=recorder.sleep,
        )

    assert len(calls) == 1
    assert recorder.delays == []


@pytest.mark.asyncio
async def test_recovers_after_transient_failures():
    attempts = []
    recorder = Recorder()

    async def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise UpstreamTimeoutError("Moralis request timeout: /nft")
        return "ok"

    result = await retry_with_backoff(flaky, retries=3, sleep=recorder.sleep, rand=lambda: 0.0)

    assert result == "ok"
    assert len(attempts) == 3
    assert len(recorder.delays) == 2


@pytest.mark.asyncio
async def test_zero_retries_means_single_attempt():
    calls = []
    with pytest.raises(RateLimitError):
        await retry_with_backoff(failing(RateLimitError("rate limit"), calls), retries=0, sleep=Recorder().sleep)
    assert len(calls) == 1


def test_backoff_delay_is_capped_and_jittered():
    assert backoff_delay(0, rand=lambda: 0.0) == pytest.approx(0.3)
    assert backoff_delay(2, rand=lambda: 0.0) == pytest.approx(1.2)
    assert backoff_delay(10, max_delay=10.0, rand=lambda: 0.0) == pytest.approx(10.0)
    # Jitter adds at most 20%
    assert backoff_delay(10, max_delay=10.0, rand=lambda: 0.999) < 12.0


@pytest.mark.parametrize("message,retryable,rate_limited", [
    ("Rate limit exceeded", True, True),
    ("429 Too Many Requests", True, True),
    ("Request timeout", True, False),
    ("Moralis network error: connection refused", True, False),
    ("invalid address", False, False),
])
def test_error_classification(message, retryable, rate_limited):
    error = Exception(message)
    assert is_retryable_error(error) is retryable
    assert is_rate_limit_error(error) is rate_limited
