"""
Binance 에러 분류기 테스트

재시도 가능/치명적 판정, 에러 페이로드 검사, 주문 없음 판정.
"""

import httpx
import pytest

from adapters.binance.errors import (
    ERROR_PREFIX,
    AbortError,
    MarketNotConfiguredError,
    RetryError,
    TraderError,
    UnknownOrderStatusError,
    check_response,
    classify_error,
    includes,
    is_retryable,
    is_unknown_order,
)
from adapters.binance.rate_limiter import BinanceApiError, OrderError, RateLimitError


class TestIncludes:
    """부분 문자열 매칭"""

    def test_match(self) -> None:
        assert includes("connect ETIMEDOUT 1.2.3.4:443", ("ETIMEDOUT",))

    def test_case_sensitive(self) -> None:
        """대소문자 구분"""
        assert not includes("etimedout", ("ETIMEDOUT",))

    def test_non_string(self) -> None:
        """문자열이 아니면 False"""
        assert not includes(None, ("ETIMEDOUT",))
        assert not includes(429, ("429",))


class TestTraderError:
    """TraderError 계층"""

    def test_prefix_added(self) -> None:
        """모듈 접두어 추가, 원본 텍스트 보존"""
        error = AbortError("Insufficient balance")

        assert error.message == ERROR_PREFIX + "Insufficient balance"
        assert str(error) == "[binance] Insufficient balance"

    def test_prefix_not_duplicated(self) -> None:
        """이미 접두어가 있으면 다시 붙이지 않음"""
        error = RetryError("[binance] ETIMEDOUT")

        assert error.message == "[binance] ETIMEDOUT"

    def test_not_fatal_flag(self) -> None:
        assert RetryError("x").not_fatal is True
        assert AbortError("x").not_fatal is False

    def test_unknown_order_status_is_abort(self) -> None:
        """알 수 없는 주문 상태는 치명적"""
        error = UnknownOrderStatusError("PENDING_NEW")

        assert isinstance(error, AbortError)
        assert error.status == "PENDING_NEW"
        assert "PENDING_NEW" in error.message

    def test_market_not_configured(self) -> None:
        """설정되지 않은 마켓은 ValueError 계열"""
        error = MarketNotConfiguredError("USDT", "FOO")

        assert isinstance(error, ValueError)
        assert not isinstance(error, TraderError)
        assert str(error) == "[binance] Market FOO/USDT is not configured"


class TestCheckResponse:
    """응답 본문 에러 페이로드 검사"""

    def test_error_payload(self) -> None:
        """truthy code는 에러"""
        with pytest.raises(BinanceApiError) as exc_info:
            check_response({"code": -2010, "msg": "Account has insufficient balance"})

        assert exc_info.value.code == -2010
        assert exc_info.value.message == "Account has insufficient balance"

    def test_zero_code_is_success(self) -> None:
        """code가 0이면 정상 응답"""
        body = {"code": 0, "msg": "ok"}

        assert check_response(body) is body

    def test_list_passthrough(self) -> None:
        body = [{"symbol": "BTCUSDT"}]

        assert check_response(body) is body


class TestIsRetryable:
    """재시도 가능 판정"""

    @pytest.mark.parametrize(
        "message",
        [
            "connect ETIMEDOUT 52.84.150.34:443",
            "ESOCKETTIMEDOUT",
            "read ECONNRESET",
            "connect ECONNREFUSED 127.0.0.1:443",
            "getaddrinfo ENOTFOUND api.binance.com",
            "Error -1021: Timestamp for this request is outside of the recvWindow.",
            "Response code 429",
            "Response code 502: Bad Gateway",
        ],
    )
    def test_recoverable_messages(self, message: str) -> None:
        assert is_retryable(message)
        assert is_retryable(Exception(message))

    def test_fatal_message(self) -> None:
        assert not is_retryable("Insufficient balance")
        assert not is_retryable("Response code 400")

    def test_rate_limit_error(self) -> None:
        assert is_retryable(RateLimitError(retry_after=10))

    def test_timestamp_drift_code(self) -> None:
        """-1021 코드는 메시지와 무관하게 재시도"""
        error = BinanceApiError(code=-1021, message="Timestamp for this request was 1000ms ahead")

        assert is_retryable(error)

    def test_server_error_status(self) -> None:
        error = BinanceApiError(code=503, message="Service Unavailable", status_code=503)

        assert is_retryable(error)

    def test_client_error_status(self) -> None:
        error = BinanceApiError(code=-2010, message="Account has insufficient balance", status_code=400)

        assert not is_retryable(error)

    def test_httpx_transport_errors(self) -> None:
        assert is_retryable(httpx.ConnectTimeout("timed out"))
        assert is_retryable(httpx.ConnectError("connection refused"))

    def test_classified_errors(self) -> None:
        assert is_retryable(RetryError("x"))
        assert not is_retryable(AbortError("ETIMEDOUT"))


class TestClassifyError:
    """분류 결과"""

    def test_retry(self) -> None:
        original = Exception("connect ETIMEDOUT 1.2.3.4:443")

        result = classify_error(original)

        assert isinstance(result, RetryError)
        assert result.not_fatal is True
        assert result.original is original
        assert "ETIMEDOUT" in result.message

    def test_abort(self) -> None:
        result = classify_error(Exception("Insufficient balance"))

        assert isinstance(result, AbortError)
        assert result.not_fatal is False
        assert result.message == "[binance] Insufficient balance"

    def test_string_error(self) -> None:
        result = classify_error("Response code 429")

        assert isinstance(result, RetryError)
        assert result.original is None

    def test_classified_passthrough(self) -> None:
        error = AbortError("Trades not found")

        assert classify_error(error) is error

    def test_empty_message_uses_type_name(self) -> None:
        result = classify_error(KeyError())

        assert isinstance(result, AbortError)
        assert "KeyError" in result.message


class TestIsUnknownOrder:
    """취소 시 주문 없음 판정"""

    def test_binance_code(self) -> None:
        error = OrderError(code=-2011, message="Unknown order sent.", status_code=400)

        assert is_unknown_order(error)

    def test_wrapped_original(self) -> None:
        """분류된 에러의 원본 예외 검사"""
        original = OrderError(code=-2011, message="Unknown order sent.", status_code=400)

        assert is_unknown_order(classify_error(original))

    def test_message_signature(self) -> None:
        assert is_unknown_order(Exception("UNKNOWN_ORDER"))

    def test_other_cancel_rejection(self) -> None:
        """-2011이어도 다른 사유는 주문 없음이 아님"""
        error = OrderError(code=-2011, message="Order was not canceled due to cancel restrictions.")

        assert not is_unknown_order(error)
