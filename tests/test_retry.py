import asyncio

import pytest

from app.core.config import Settings
from app.services import retry as retry_mod
from app.services.errors import ModelBackendError
from app.services.retry import RetryPolicy, call_with_retry


@pytest.fixture
def sleeps(monkeypatch):
    recorded: list[float] = []

    async def fake_sleep(delay):
        recorded.append(delay)

    monkeypatch.setattr(retry_mod, "_sleep", fake_sleep)
    return recorded


def _flaky(failures: int, result="ok"):
    calls = {"n": 0}

    async def fn():
        calls["n"] += 1
        if calls["n"] <= failures:
            raise ModelBackendError(f"fail {calls['n']}")
        return result

    return fn, calls


def test_default_policy_doubles_from_one_second():
    assert RetryPolicy().delays() == [1.0, 2.0, 4.0]


def test_policy_from_settings():
    s = Settings(llm_max_retries=2, llm_initial_delay_sec=0.5, llm_backoff_multiplier=3.0)
    assert RetryPolicy.from_settings(s).delays() == [0.5, 1.5]


def test_succeeds_after_retries(sleeps):
    fn, calls = _flaky(2)
    assert asyncio.run(call_with_retry(fn, RetryPolicy())) == "ok"
    assert calls["n"] == 3
    assert sleeps == [1.0, 2.0]


def test_gives_up_after_budget(sleeps):
    fn, calls = _flaky(10)
    with pytest.raises(ModelBackendError, match="fail 4"):
        asyncio.run(call_with_retry(fn, RetryPolicy(max_retries=3)))
    assert calls["n"] == 4
    assert sleeps == [1.0, 2.0, 4.0]


def test_zero_retries(sleeps):
    fn, calls = _flaky(1)
    with pytest.raises(ModelBackendError):
        asyncio.run(call_with_retry(fn, RetryPolicy(max_retries=0)))
    assert calls["n"] == 1
    assert sleeps == []


def test_other_errors_are_not_retried(sleeps):
    async def fn():
        raise KeyError("bug")

    with pytest.raises(KeyError):
        asyncio.run(call_with_retry(fn, RetryPolicy()))
    assert sleeps == []
