"""
tests/test_retry.py
───────────────────
Tests for bounded retry and the shared backoff gate.
"""

import threading
import time

import pytest
import requests

from i18n_translate.errors import EngineRequestError, EngineResultError, EngineTimeoutError
from i18n_translate.retry import (
    RetryGate,
    RetryPolicy,
    is_rate_limit_error,
    is_timeout_error,
    rate_limit_wait_seconds,
    with_retry,
)

FAST_POLICY = RetryPolicy(
    max_retries=5,
    timeout_delay=0.01,
    rate_limit_multiplier=1,
    rate_limit_extra_delay=0,
    rate_limit_fallback_delay=0.01,
)


def rate_limited(retry_after_ms="10"):
    return EngineRequestError("too many requests", status=429, headers={"Retry-After-Ms": retry_after_ms})


class TestErrorClassification:
    def test_requests_timeout(self):
        assert is_timeout_error(requests.Timeout("read timed out"))

    def test_timeout_in_message(self):
        assert is_timeout_error(RuntimeError("connect ETIMEDOUT"))

    def test_engine_timeout(self):
        assert is_timeout_error(EngineTimeoutError("read timed out"))

    def test_other_errors_are_not_timeouts(self):
        assert not is_timeout_error(ValueError("bad payload"))

    def test_engine_error_message_is_ignored(self):
        assert not is_timeout_error(EngineRequestError("Gateway Timeout", status=504, body="timeout"))

    def test_rate_limit_status(self):
        assert is_rate_limit_error(rate_limited())
        assert not is_rate_limit_error(EngineRequestError("server error", status=500))


class TestRateLimitWait:
    def test_uses_retry_after_header(self):
        assert rate_limit_wait_seconds(rate_limited("500"), RetryPolicy()) == pytest.approx(3.2)

    def test_falls_back_without_header(self):
        error = EngineRequestError("too many requests", status=429)
        assert rate_limit_wait_seconds(error, RetryPolicy()) == 1.0


class TestRetryGate:
    def test_open_by_default(self):
        assert RetryGate().remaining() == 0.0

    def test_hold_never_shortens(self):
        gate = RetryGate()
        gate.hold(5)
        gate.hold(0.01)
        assert gate.remaining() > 4

    def test_wait_blocks_until_ready(self):
        gate = RetryGate()
        gate.hold(0.1)
        started = time.monotonic()
        gate.wait()
        assert time.monotonic() - started >= 0.09


class TestWithRetry:
    def test_rate_limited_twice_then_succeeds(self):
        attempts = []

        def operation():
            attempts.append(1)
            if len(attempts) < 3:
                raise rate_limited()
            return "ok"

        assert with_retry(operation, "test", RetryGate(), FAST_POLICY) == "ok"
        assert len(attempts) == 3

    def test_concurrent_call_waits_for_gate(self):
        gate = RetryGate()
        policy = RetryPolicy(max_retries=3, rate_limit_multiplier=1, rate_limit_extra_delay=0)
        first_failed = threading.Event()
        second_started = []

        def first():
            if not first_failed.is_set():
                first_failed.set()
                raise rate_limited("300")
            return "first"

        def second():
            second_started.append(time.monotonic())
            return "second"

        worker = threading.Thread(target=lambda: with_retry(first, "first", gate, policy))
        began = time.monotonic()
        worker.start()
        first_failed.wait(1)
        # give the first call time to close the gate
        time.sleep(0.05)
        assert with_retry(second, "second", gate, policy) == "second"
        worker.join()

        assert second_started[0] - began >= 0.25

    def test_non_retryable_error_raises_immediately(self):
        attempts = []

        def operation():
            attempts.append(1)
            raise EngineResultError("bad structure", ["pl: missing"])

        with pytest.raises(EngineResultError):
            with_retry(operation, "test", RetryGate(), FAST_POLICY)
        assert len(attempts) == 1

    def test_gives_up_after_max_retries(self):
        attempts = []

        def operation():
            attempts.append(1)
            raise requests.Timeout("timed out")

        with pytest.raises(EngineTimeoutError) as excinfo:
            with_retry(operation, "test", RetryGate(), RetryPolicy(max_retries=3, timeout_delay=0))
        assert len(attempts) == 3
        assert isinstance(excinfo.value.__cause__, requests.Timeout)

    def test_exhausted_engine_timeout_is_raised_as_is(self):
        error = EngineTimeoutError("DeepL 请求超时")

        def operation():
            raise error

        with pytest.raises(EngineTimeoutError) as excinfo:
            with_retry(operation, "test", RetryGate(), RetryPolicy(max_retries=2, timeout_delay=0))
        assert excinfo.value is error

    def test_server_error_mentioning_timeout_is_not_retried(self):
        attempts = []

        def operation():
            attempts.append(1)
            raise EngineRequestError("DeepL API错误: 400", status=400, body="upstream timeout")

        with pytest.raises(EngineRequestError):
            with_retry(operation, "test", RetryGate(), FAST_POLICY)
        assert len(attempts) == 1
