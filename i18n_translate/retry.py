#!/usr/bin/env python3
"""
重试模块 - 单次请求的有限重试，以及所有并发请求共享的退避闸门

超时和 429 限流会重试；其它错误（包括结构/解析错误）立即抛出。
任一请求进入退避时会推迟共享闸门，其余请求在下次尝试前都会等待闸门打开，
避免并发分块请求各自反复触发限流。
"""

import time
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

import requests

from .config import (
    MAX_RETRIES,
    TIMEOUT_RETRY_DELAY,
    RATE_LIMIT_RETRY_MULTIPLIER,
    RATE_LIMIT_RETRY_EXTRA_DELAY,
    RATE_LIMIT_FALLBACK_DELAY,
)
from .errors import EngineRequestError, EngineTimeoutError
from .logging import log_progress

T = TypeVar('T')


@dataclass
class RetryPolicy:
    """重试参数（时间单位：秒）"""
    max_retries: int = MAX_RETRIES
    timeout_delay: float = TIMEOUT_RETRY_DELAY
    rate_limit_multiplier: float = RATE_LIMIT_RETRY_MULTIPLIER
    rate_limit_extra_delay: float = RATE_LIMIT_RETRY_EXTRA_DELAY
    rate_limit_fallback_delay: float = RATE_LIMIT_FALLBACK_DELAY


class RetryGate:
    """共享退避闸门：记录一个"可再次请求"的时间点"""

    def __init__(self):
        self._condition = threading.Condition()
        self._ready_at = 0.0

    def hold(self, seconds: float) -> None:
        """将闸门至少推迟 seconds 秒，不会提前已有的等待时间"""
        with self._condition:
            self._ready_at = max(self._ready_at, time.monotonic() + seconds)
            self._condition.notify_all()

    def remaining(self) -> float:
        with self._condition:
            return max(0.0, self._ready_at - time.monotonic())

    def wait(self) -> None:
        """阻塞直到闸门打开"""
        with self._condition:
            while True:
                remaining = self._ready_at - time.monotonic()
                if remaining <= 0:
                    return
                self._condition.wait(remaining)


def _status_of(error: BaseException) -> Optional[int]:
    status = getattr(error, 'status', None)
    if status is None:
        response = getattr(error, 'response', None)
        status = getattr(response, 'status_code', None)
    return status


def _headers_of(error: BaseException) -> Any:
    headers = getattr(error, 'headers', None)
    if headers is None:
        response = getattr(error, 'response', None)
        headers = getattr(response, 'headers', None)
    return headers or {}


def is_timeout_error(error: BaseException) -> bool:
    if isinstance(error, (EngineTimeoutError, requests.Timeout, TimeoutError)):
        return True
    # 服务端错误只按类型和状态码判断，响应体里的文字不作数
    if isinstance(error, EngineRequestError):
        return False
    message = str(error)
    return (
        'timeout' in message.lower()
        or 'ETIMEDOUT' in message
        or 'timeout' in type(error).__name__.lower()
    )


def is_rate_limit_error(error: BaseException) -> bool:
    return _status_of(error) == 429


def rate_limit_wait_seconds(error: BaseException, policy: RetryPolicy) -> float:
    """根据 retry-after-ms 响应头计算等待时间，没有该响应头时使用默认值"""
    retry_after_ms = _headers_of(error).get('retry-after-ms')
    try:
        retry_after_ms = int(retry_after_ms) if retry_after_ms is not None else None
    except (TypeError, ValueError):
        retry_after_ms = None

    if retry_after_ms is None:
        return policy.rate_limit_fallback_delay
    return retry_after_ms / 1000 * policy.rate_limit_multiplier + policy.rate_limit_extra_delay


def with_retry(operation: Callable[[], T], operation_name: str,
               gate: RetryGate, policy: Optional[RetryPolicy] = None) -> T:
    """执行 operation，超时和限流时经共享闸门退避后重试

    重试耗尽时抛出最后一次错误；非引擎错误的超时转换为 EngineTimeoutError。
    """
    policy = policy or RetryPolicy()
    attempt = 0

    while True:
        attempt += 1
        waiting = gate.remaining()
        if waiting > 0:
            log_progress(f"{operation_name} > 等待共享退避闸门 {waiting:.1f}秒", "verbose")
        gate.wait()

        try:
            return operation()
        except Exception as e:
            rate_limited = is_rate_limit_error(e)
            timed_out = not rate_limited and is_timeout_error(e)

            if not (rate_limited or timed_out):
                raise
            if attempt >= policy.max_retries:
                if timed_out and not isinstance(e, EngineRequestError):
                    raise EngineTimeoutError(
                        f"{operation_name} > {policy.max_retries} 次尝试均超时: {e}"
                    ) from e
                raise

            if rate_limited:
                wait_time = rate_limit_wait_seconds(e, policy)
                log_progress(
                    f"{operation_name} > 第 {attempt}/{policy.max_retries} 次尝试触发限流，{wait_time:.1f}秒后重试...",
                    "warning"
                )
            else:
                wait_time = policy.timeout_delay
                log_progress(
                    f"{operation_name} > 第 {attempt}/{policy.max_retries} 次尝试超时，{wait_time:.1f}秒后重试...",
                    "warning"
                )

            gate.hold(wait_time)
