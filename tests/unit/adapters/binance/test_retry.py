"""
재시도 헬퍼 테스트

RetryPolicy 검증, 재시도/중단 분기, 전체 타임아웃.
"""

import asyncio

import pytest

from adapters.binance.errors import (
    AbortError,
    OperationTimeoutError,
    RetryError,
)
from adapters.binance.rate_limiter import BinanceApiError
from adapters.binance.retry import RetryPolicy, call_with_retry


def _no_wait(max_attempts: int = 3, timeout: float | None = None) -> RetryPolicy:
    return RetryPolicy(max_attempts=max_attempts, min_wait=0, max_wait=0, timeout=timeout)


class _Flaky:
    """지정한 예외를 순서대로 발생시킨 뒤 결과 반환"""

    def __init__(self, errors: list[Exception], result: str = "ok"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


class TestRetryPolicy:
    """RetryPolicy 검증"""

    def test_defaults(self) -> None:
        policy = RetryPolicy()

        assert policy.max_attempts >= 1
        assert policy.timeout is None

    def test_invalid_attempts(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)

    def test_invalid_timeout(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(timeout=0)


class TestCallWithRetry:
    """call_with_retry 테스트"""

    @pytest.mark.asyncio
    async def test_success(self) -> None:
        operation = _Flaky([])

        assert await call_with_retry(_no_wait(), operation) == "ok"
        assert operation.calls == 1

    @pytest.mark.asyncio
    async def test_retries_transient_then_succeeds(self) -> None:
        """일시적 오류 후 성공"""
        operation = _Flaky([
            Exception("connect ETIMEDOUT 1.2.3.4:443"),
            BinanceApiError(code=-1021, message="Timestamp for this request is outside of the recvWindow."),
        ])

        assert await call_with_retry(_no_wait(), operation) == "ok"
        assert operation.calls == 3

    @pytest.mark.asyncio
    async def test_fatal_not_retried(self) -> None:
        """치명적 오류는 한 번만 시도"""
        operation = _Flaky([Exception("Insufficient balance")])

        with pytest.raises(AbortError) as exc_info:
            await call_with_retry(_no_wait(), operation)

        assert operation.calls == 1
        assert exc_info.value.message == "[binance] Insufficient balance"

    @pytest.mark.asyncio
    async def test_attempts_exhausted(self) -> None:
        """시도 횟수 소진 시 마지막 RetryError 전달"""
        operation = _Flaky([Exception("read ECONNRESET")] * 5)

        with pytest.raises(RetryError) as exc_info:
            await call_with_retry(_no_wait(max_attempts=2), operation)

        assert operation.calls == 2
        assert exc_info.value.not_fatal is True

    @pytest.mark.asyncio
    async def test_classified_error_passthrough(self) -> None:
        """이미 분류된 AbortError는 그대로 전달"""
        error = AbortError("Trades not found")
        operation = _Flaky([error])

        with pytest.raises(AbortError) as exc_info:
            await call_with_retry(_no_wait(), operation)

        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_original_chained(self) -> None:
        """분류된 에러는 원본 예외를 보존"""
        original = Exception("Insufficient balance")

        with pytest.raises(AbortError) as exc_info:
            await call_with_retry(_no_wait(), _Flaky([original]))

        assert exc_info.value.original is original
        assert exc_info.value.__cause__ is original

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        """전체 제한 시간 초과"""

        async def slow() -> str:
            await asyncio.sleep(10)
            return "late"

        with pytest.raises(OperationTimeoutError) as exc_info:
            await call_with_retry(_no_wait(timeout=0.05), slow)

        assert exc_info.value.not_fatal is False

    @pytest.mark.asyncio
    async def test_default_policy(self) -> None:
        """policy가 None이면 기본 정책"""
        assert await call_with_retry(None, _Flaky([])) == "ok"

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self) -> None:
        """태스크 취소는 분류하지 않고 전달"""
        started = asyncio.Event()

        async def wait_forever() -> str:
            started.set()
            await asyncio.sleep(10)
            return "never"

        task = asyncio.create_task(call_with_retry(_no_wait(), wait_forever))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
