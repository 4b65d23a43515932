"""
재시도 헬퍼

연산을 실행하고, 실패를 분류기로 판정하여 RetryError만 재시도한다.
대기 시간은 지수 백오프 (tenacity), 전체 연산은 선택적 타임아웃으로 제한.

사용 예:
    policy = RetryPolicy(max_attempts=3)
    data = await call_with_retry(policy, lambda: client.get_account())
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from adapters.binance.errors import (
    OperationTimeoutError,
    RetryError,
    TraderError,
    classify_error,
)
from core.constants import Defaults

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """재시도 정책

    Attributes:
        max_attempts: 최대 시도 횟수 (첫 시도 포함)
        min_wait: 최소 대기 시간 (초)
        max_wait: 최대 대기 시간 (초)
        timeout: 재시도를 포함한 전체 제한 시간 (초, None이면 무제한)
    """

    max_attempts: int = Defaults.RETRY_ATTEMPTS
    min_wait: float = Defaults.RETRY_MIN_WAIT_SEC
    max_wait: float = Defaults.RETRY_MAX_WAIT_SEC
    timeout: float | None = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be positive")


DEFAULT_POLICY = RetryPolicy()


def _log_retry(state: RetryCallState) -> None:
    error = state.outcome.exception() if state.outcome else None
    logger.warning(
        "재시도 가능한 오류, 재시도 예정",
        extra={
            "attempt": state.attempt_number,
            "error": str(error),
            "sleep": state.next_action.sleep if state.next_action else None,
        },
    )


async def _attempt(operation: Callable[[], Awaitable[T]]) -> T:
    """연산 1회 실행, 실패는 TraderError로 분류해서 다시 발생"""
    try:
        return await operation()
    except TraderError:
        raise
    except Exception as e:
        raise classify_error(e) from e


async def _run(policy: RetryPolicy, operation: Callable[[], Awaitable[T]]) -> T:
    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_exponential(multiplier=policy.min_wait, min=policy.min_wait, max=policy.max_wait),
        retry=retry_if_exception_type(RetryError),
        before_sleep=_log_retry,
        reraise=True,
    )
    return await retrying(_attempt, operation)


async def call_with_retry(
    policy: RetryPolicy | None,
    operation: Callable[[], Awaitable[T]],
) -> T:
    """operation을 성공하거나 치명적 오류가 날 때까지 실행

    Args:
        policy: 재시도 정책 (None이면 DEFAULT_POLICY)
        operation: 인자 없는 코루틴 팩토리 (시도마다 새 코루틴 생성)

    Returns:
        operation 결과

    Raises:
        RetryError: 시도 횟수를 모두 소진한 일시적 오류
        AbortError: 치명적 오류
        OperationTimeoutError: policy.timeout 초과
        asyncio.CancelledError: 호출 태스크가 취소된 경우 (분류하지 않음)
    """
    policy = policy or DEFAULT_POLICY

    if policy.timeout is None:
        return await _run(policy, operation)

    try:
        return await asyncio.wait_for(_run(policy, operation), timeout=policy.timeout)
    except asyncio.TimeoutError as e:
        raise OperationTimeoutError(
            f"Operation timed out after {policy.timeout} seconds"
        ) from e

