"""Tests for the read-retry helper."""

import httpx
import pytest

from resume_analyzer.errors import AIUnavailable, InvalidResumeId, StorageUnavailable
from resume_analyzer.services import retry
from resume_analyzer.services.retry import is_retryable, retry_async


@pytest.fixture
def sleeps(monkeypatch):
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr(retry.asyncio, "sleep", fake_sleep)
    return delays


class Flaky:
    def __init__(self, failures: list[Exception], result="ok"):
        self.failures = list(failures)
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return self.result


def test_is_retryable():
    assert is_retryable(StorageUnavailable())
    assert is_retryable(httpx.ConnectError("down"))
    assert not is_retryable(InvalidResumeId())
    assert not is_retryable(ValueError())


async def test_succeeds_after_transient_failures(sleeps):
    call = Flaky([StorageUnavailable(), AIUnavailable()])

    assert await retry_async(call, attempts=3, delay=1.0) == "ok"
    assert call.calls == 3
    assert sleeps == [1.0, 1.5]


async def test_gives_up_after_attempts(sleeps):
    call = Flaky([StorageUnavailable()] * 5)

    with pytest.raises(StorageUnavailable):
        await retry_async(call, attempts=2, delay=0.5)
    assert call.calls == 3
    assert sleeps == [0.5, 0.75]


async def test_client_errors_are_not_retried(sleeps):
    call = Flaky([InvalidResumeId()])

    with pytest.raises(InvalidResumeId):
        await retry_async(call)
    assert call.calls == 1
    assert sleeps == []


async def test_negative_attempts_still_calls_once(sleeps):
    call = Flaky([])

    assert await retry_async(call, attempts=-2) == "ok"
    assert call.calls == 1


async def test_negative_attempts_raises_original_error(sleeps):
    call = Flaky([StorageUnavailable()])

    with pytest.raises(StorageUnavailable):
        await retry_async(call, attempts=-1)
    assert call.calls == 1
    assert sleeps == []
