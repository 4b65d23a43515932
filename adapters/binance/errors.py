"""
Binance 에러 분류기

실패한 API 호출을 재시도 가능(RetryError) / 치명적(AbortError)으로 분류.
재시도 헬퍼는 RetryError만 재시도하고, AbortError는 즉시 호출자에게 전달한다.

분류 순서:
1. 구조화된 정보 (RateLimitError, Binance 에러 코드 -1021, HTTP 429/5xx, httpx 전송 오류)
2. 에러 메시지 문자열 매칭 (RECOVERABLE_ERRORS, 대소문자 구분)
3. 그 외는 모두 치명적 (중복 주문 방지를 위해 기본값은 "재시도 안 함")
"""

from typing import Any

import httpx

from adapters.binance.rate_limiter import BinanceApiError, RateLimitError


ERROR_PREFIX = "[binance] "

# 일시적 오류 시그니처 (부분 문자열, 대소문자 구분)
RECOVERABLE_ERRORS = (
    "SOCKETTIMEDOUT",
    "TIMEDOUT",
    "CONNRESET",
    "CONNREFUSED",
    "NOTFOUND",
    "Error -1021",
    "Response code 429",
    "Response code 5",
    "ETIMEDOUT",
)

# 타임스탬프가 recvWindow 밖 (시계 오차)
TIMESTAMP_DRIFT_CODE = -1021

# 취소 시점에 이미 체결/종료된 주문
UNKNOWN_ORDER_CODE = -2011
UNKNOWN_ORDER_SIGNATURES = (
    "UNKNOWN_ORDER",
    "Unknown order sent",
)


class TraderError(Exception):
    """트레이더 연산 실패 (분류 완료)

    Attributes:
        message: 모듈 접두어가 붙은 에러 메시지 (원본 텍스트 보존)
        original: 원본 예외
        not_fatal: 재시도 가능 여부
    """

    not_fatal: bool = False

    def __init__(self, message: str, original: BaseException | None = None):
        if not message.startswith(ERROR_PREFIX):
            message = ERROR_PREFIX + message
        self.message = message
        self.original = original
        super().__init__(message)


class RetryError(TraderError):
    """일시적 오류 - 재시도 대상"""

    not_fatal = True


class AbortError(TraderError):
    """치명적 오류 - 재시도하지 않음"""

    pass


class OperationTimeoutError(AbortError):
    """재시도를 포함한 전체 연산 시간 초과"""

    pass


class UnknownOrderStatusError(AbortError):
    """알 수 없는 주문 상태 (계약 위반)"""

    def __init__(self, status: Any):
        self.status = status
        super().__init__(f"Unknown order status: {status!r}")


class MarketNotConfiguredError(ValueError):
    """currency/asset 쌍이 마켓 테이블에 없음"""

    def __init__(self, currency: str, asset: str):
        self.currency = currency
        self.asset = asset
        super().__init__(
            f"{ERROR_PREFIX}Market {asset}/{currency} is not configured"
        )


def includes(text: Any, signatures: tuple[str, ...]) -> bool:
    """문자열이 시그니처 중 하나를 포함하는지 확인 (문자열이 아니면 False)"""
    if not isinstance(text, str):
        return False
    return any(signature in text for signature in signatures)


def error_message(error: BaseException | str) -> str:
    """예외의 메시지 텍스트 (비어 있으면 예외 타입 이름)"""
    if isinstance(error, str):
        return error
    return str(error) or type(error).__name__


def check_response(body: Any) -> Any:
    """응답 본문의 에러 페이로드 확인

    {"code": ..., "msg": ...} 형태이고 code가 truthy일 때만 에러.
    code가 0/False인 페이로드는 정상 응답으로 취급.

    Raises:
        BinanceApiError: 에러 페이로드인 경우
    """
    if isinstance(body, dict) and body.get("code"):
        raise BinanceApiError(code=body["code"], message=str(body.get("msg", "")))
    return body


def is_retryable(error: BaseException | str) -> bool:
    """재시도 가능한 오류인지 판정"""
    if isinstance(error, RetryError):
        return True
    if isinstance(error, AbortError):
        return False

    if isinstance(error, RateLimitError):
        return True

    if isinstance(error, BinanceApiError):
        if error.code == TIMESTAMP_DRIFT_CODE:
            return True
        status = error.status_code
        if status is not None and (status == 429 or status >= 500):
            return True

    if isinstance(error, (httpx.TimeoutException, httpx.NetworkError)):
        return True

    return includes(error_message(error), RECOVERABLE_ERRORS)


def is_unknown_order(error: BaseException) -> bool:
    """취소 대상 주문이 이미 존재하지 않는 경우 (체결 완료)"""
    original = getattr(error, "original", None)
    for candidate in (error, original):
        if isinstance(candidate, BinanceApiError) and candidate.code == UNKNOWN_ORDER_CODE:
            if includes(candidate.message, UNKNOWN_ORDER_SIGNATURES):
                return True
    return includes(error_message(error), UNKNOWN_ORDER_SIGNATURES)


def classify_error(error: BaseException | str) -> TraderError:
    """실패를 RetryError 또는 AbortError로 분류

    이미 분류된 TraderError는 그대로 반환.
    문자열 에러는 메시지로 간주.
    """
    if isinstance(error, TraderError):
        return error

    original = error if isinstance(error, BaseException) else None
    message = error_message(error)

    if is_retryable(error):
        return RetryError(message, original=original)
    return AbortError(message, original=original)
