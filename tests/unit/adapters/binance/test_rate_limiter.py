"""
Rate Limiter 테스트

RateLimitTracker 및 에러 클래스 테스트.
"""

from datetime import datetime, timedelta, timezone

from adapters.binance.rate_limiter import (
    RateLimitTracker,
    RateLimitError,
    BinanceApiError,
    OrderError,
)
from core.constants import RateLimitThresholds


class TestRateLimitError:
    """RateLimitError 테스트"""

    def test_create_error(self) -> None:
        """에러 생성"""
        error = RateLimitError(retry_after=30)

        assert error.retry_after == 30
        assert "30 seconds" in str(error)

    def test_response_code_message(self) -> None:
        """429 응답 메시지는 재시도 시그니처를 포함"""
        error = RateLimitError(retry_after=10, message="Response code 429")

        assert str(error).startswith("Response code 429")


class TestBinanceApiError:
    """BinanceApiError 테스트"""

    def test_create_error(self) -> None:
        """에러 생성"""
        error = BinanceApiError(code=-1121, message="Invalid symbol.", status_code=400)

        assert error.code == -1121
        assert error.message == "Invalid symbol."
        assert error.status_code == 400
        assert str(error) == "Binance API Error -1121: Invalid symbol."

    def test_status_code_optional(self) -> None:
        """응답 본문 에러는 HTTP 상태 없음"""
        error = BinanceApiError(code=-1021, message="Timestamp outside recvWindow")

        assert error.status_code is None
        assert "Error -1021" in str(error)


class TestOrderError:
    """OrderError 테스트"""

    def test_order_error_is_binance_api_error(self) -> None:
        """OrderError는 BinanceApiError의 서브클래스"""
        error = OrderError(code=-2011, message="Unknown order sent.")

        assert isinstance(error, BinanceApiError)
        assert error.code == -2011


class TestRateLimitTracker:
    """RateLimitTracker 테스트"""

    def test_default_values(self) -> None:
        """기본값 확인"""
        tracker = RateLimitTracker()

        assert tracker.used_weight_1m == 0
        assert tracker.order_count_10s == 0
        assert tracker.retry_after == 0

    def test_update_from_headers(self) -> None:
        """헤더에서 업데이트 (대소문자 무관)"""
        tracker = RateLimitTracker()

        tracker.update_from_headers({
            "x-mbx-used-weight-1m": "300",
            "X-MBX-ORDER-COUNT-10S": "5",
            "Retry-After": "60",
        })

        assert tracker.used_weight_1m == 300
        assert tracker.order_count_10s == 5
        assert tracker.retry_after == 60

    def test_missing_headers_keep_values(self) -> None:
        """헤더가 없으면 기존 값 유지"""
        tracker = RateLimitTracker()
        tracker.used_weight_1m = 120

        tracker.update_from_headers({"Content-Type": "application/json"})

        assert tracker.used_weight_1m == 120

    def test_thresholds(self) -> None:
        """경고/중단 임계값"""
        tracker = RateLimitTracker()

        tracker.used_weight_1m = RateLimitThresholds.WEIGHT_WARN - 1
        assert tracker.should_warn is False

        tracker.used_weight_1m = RateLimitThresholds.WEIGHT_WARN
        assert tracker.should_warn is True
        assert tracker.should_stop is False

        tracker.used_weight_1m = RateLimitThresholds.WEIGHT_STOP
        assert tracker.should_stop is True

    def test_window_expiry(self) -> None:
        """이전 분에 기록된 가중치는 만료"""
        tracker = RateLimitTracker()
        tracker.used_weight_1m = RateLimitThresholds.WEIGHT_STOP
        tracker.last_updated = datetime(2024, 1, 1, 12, 0, 59, tzinfo=timezone.utc)

        same_minute = datetime(2024, 1, 1, 12, 0, 59, 900000, tzinfo=timezone.utc)
        next_minute = datetime(2024, 1, 1, 12, 1, 0, tzinfo=timezone.utc)

        assert tracker.is_window_expired(same_minute) is False
        assert tracker.is_window_expired(next_minute) is True

    def test_stale_weight_does_not_stop(self) -> None:
        """지난 분의 가중치로는 요청을 막지 않음"""
        tracker = RateLimitTracker()
        tracker.used_weight_1m = RateLimitThresholds.WEIGHT_STOP
        tracker.last_updated = datetime.now(timezone.utc) - timedelta(minutes=5)

        assert tracker.should_stop is False

    def test_expire_stale_resets(self) -> None:
        """만료된 카운터만 초기화"""
        tracker = RateLimitTracker()
        tracker.used_weight_1m = 500
        tracker.last_updated = datetime(2024, 1, 1, 12, 0, 10, tzinfo=timezone.utc)

        assert tracker.expire_stale(datetime(2024, 1, 1, 12, 0, 50, tzinfo=timezone.utc)) is False
        assert tracker.used_weight_1m == 500

        assert tracker.expire_stale(datetime(2024, 1, 1, 12, 1, 5, tzinfo=timezone.utc)) is True
        assert tracker.used_weight_1m == 0
        assert tracker.should_stop is False

    def test_remaining_weight(self) -> None:
        """남은 가중치 (최소 0)"""
        tracker = RateLimitTracker()
        tracker.used_weight_1m = 1000

        assert tracker.remaining_weight == RateLimitThresholds.WEIGHT_STOP - 1000

        tracker.used_weight_1m = RateLimitThresholds.WEIGHT_STOP + 100
        assert tracker.remaining_weight == 0

    def test_reset(self) -> None:
        """리셋"""
        tracker = RateLimitTracker()
        tracker.used_weight_1m = 1000
        tracker.order_count_10s = 50
        tracker.retry_after = 30

        tracker.reset()

        assert tracker.used_weight_1m == 0
        assert tracker.order_count_10s == 0
        assert tracker.retry_after == 0

    def test_to_dict(self) -> None:
        """딕셔너리 변환 (로깅용)"""
        tracker = RateLimitTracker()
        tracker.used_weight_1m = RateLimitThresholds.WEIGHT_WARN

        result = tracker.to_dict()

        assert result["used_weight_1m"] == RateLimitThresholds.WEIGHT_WARN
        assert result["should_warn"] is True
        assert "last_updated" in result
