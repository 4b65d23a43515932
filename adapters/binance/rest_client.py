"""
Binance Spot REST API 클라이언트

HMAC-SHA256 서명, Rate Limit 추적, 서버 시간 오프셋 보정.
원시 JSON 응답을 반환하며 재시도는 하지 않는다 (adapters.binance.retry 담당).
"""

import hashlib
import hmac
import logging
import time
from typing import Any
from urllib.parse import urlencode

import httpx

from adapters.binance.errors import TIMESTAMP_DRIFT_CODE, check_response
from adapters.binance.rate_limiter import (
    RateLimitTracker,
    RateLimitError,
    BinanceApiError,
)
from core.config.loader import ExchangeConfig
from core.constants import Defaults

logger = logging.getLogger(__name__)


class BinanceRestClient:
    """Binance Spot REST API 클라이언트

    IExchangeRestClient Protocol 구현.
    각 메서드는 정확히 한 번의 HTTP 요청을 수행한다.

    Args:
        base_url: REST API 베이스 URL
        api_key: API 키
        api_secret: API 시크릿
        timeout: 요청 타임아웃 (초)
        recv_window: 서명 요청 허용 지연 (밀리초)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        api_secret: str,
        timeout: float = Defaults.REQUEST_TIMEOUT_SEC,
        recv_window: int = Defaults.RECV_WINDOW_MS,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout = timeout
        self.recv_window = recv_window

        self.rate_tracker = RateLimitTracker()
        self._client: httpx.AsyncClient | None = None

        # 서버 시간 동기화용 오프셋 (밀리초)
        self._time_offset: int = 0
        self._time_synced: bool = False

    @classmethod
    def from_config(cls, config: ExchangeConfig) -> "BinanceRestClient":
        """ExchangeConfig로 클라이언트 생성"""
        return cls(
            base_url=config.rest_url,
            api_key=config.api_key,
            api_secret=config.api_secret,
            timeout=config.timeout,
            recv_window=config.recv_window,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """HTTP 클라이언트 가져오기 (lazy initialization)"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """HTTP 클라이언트 종료"""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _generate_signature(self, query_string: str) -> str:
        """HMAC-SHA256 서명 생성

        Args:
            query_string: URL 인코딩된 파라미터 문자열

        Returns:
            16진수 서명 문자열
        """
        return hmac.new(
            self.api_secret.encode("utf-8"),
            query_string.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def _get_timestamp(self) -> int:
        """서버 시간 오프셋이 적용된 타임스탬프 반환 (밀리초)"""
        return int(time.time() * 1000) + self._time_offset

    async def sync_time(self) -> int:
        """서버 시간과 동기화

        로컬 시간과 서버 시간의 차이를 계산하여 오프셋 저장.

        Returns:
            계산된 시간 오프셋 (밀리초)
        """
        local_time = int(time.time() * 1000)
        server_time = await self.get_server_time()
        self._time_offset = server_time - local_time
        self._time_synced = True

        logger.info(
            "서버 시간 동기화 완료",
            extra={"offset_ms": self._time_offset},
        )

        return self._time_offset

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        signed: bool = False,
    ) -> Any:
        """API 요청 실행 (단일 시도)

        Args:
            method: HTTP 메서드 (GET, POST, DELETE)
            path: API 경로 (예: /api/v3/order)
            params: 요청 파라미터
            signed: 서명 필요 여부

        Returns:
            JSON 응답

        Raises:
            RateLimitError: 가중치 임계값 도달 또는 429 응답 시
            BinanceApiError: API 에러 응답 시
            httpx.TimeoutException, httpx.RequestError: 전송 오류
        """
        if self.rate_tracker.expire_stale():
            logger.debug("가중치 창 만료, Rate Limit 카운터 초기화")

        if self.rate_tracker.should_stop:
            logger.warning(
                "Rate limit threshold reached",
                extra={"rate_info": self.rate_tracker.to_dict()},
            )
            raise RateLimitError(
                retry_after=60,
                message="Request weight threshold reached",
            )

        request_params = dict(params) if params else {}
        headers = {"X-MBX-APIKEY": self.api_key}
        url = f"{self.base_url}{path}"

        if signed:
            if not self._time_synced:
                await self.sync_time()

            request_params["timestamp"] = self._get_timestamp()
            request_params["recvWindow"] = self.recv_window
            query_string = urlencode(request_params)
            request_params["signature"] = self._generate_signature(query_string)

        client = await self._get_client()
        response = await client.request(
            method,
            url,
            params=request_params,
            headers=headers,
        )

        self.rate_tracker.update_from_headers(dict(response.headers))

        if response.status_code == 429:
            retry_after = int(response.headers.get("Retry-After", 30))
            logger.warning(
                "Rate limited by Binance",
                extra={"retry_after": retry_after, "path": path},
            )
            raise RateLimitError(
                retry_after=retry_after,
                message="Response code 429",
            )

        if response.status_code >= 400:
            try:
                error_data = response.json()
                code = error_data.get("code", response.status_code)
                message = error_data.get("msg", response.text)
            except ValueError:
                code = response.status_code
                message = f"Response code {response.status_code}: {response.text}"

            # 시계 오차: 다음 서명 요청 전에 재동기화
            if code == TIMESTAMP_DRIFT_CODE:
                logger.warning(
                    "타임스탬프 오류, 다음 요청 시 시간 재동기화",
                    extra={"code": code, "path": path},
                )
                self._time_synced = False

            raise BinanceApiError(
                code=code,
                message=message,
                status_code=response.status_code,
            )

        return check_response(response.json())

    # -------------------------------------------------------------------------
    # 공개 데이터
    # -------------------------------------------------------------------------

    async def get_server_time(self) -> int:
        """서버 시간 조회 (밀리초 타임스탬프)"""
        data = await self._request("GET", "/api/v3/time")
        return data["serverTime"]

    async def get_exchange_info(self, symbol: str | None = None) -> dict[str, Any]:
        """거래소 정보 조회 (심볼별 필터 포함)"""
        params = {"symbol": symbol} if symbol else None
        return await self._request("GET", "/api/v3/exchangeInfo", params=params)

    async def get_agg_trades(
        self,
        symbol: str,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """집계 체결 내역 조회

        Args:
            symbol: 거래 심볼 (예: BTCUSDT)
            start_time: 시작 시간 (밀리초, end_time과 1시간 이내)
            end_time: 종료 시간 (밀리초)
            limit: 조회 개수 (최대 1000)
        """
        params: dict[str, Any] = {"symbol": symbol}
        if start_time is not None:
            params["startTime"] = start_time
        if end_time is not None:
            params["endTime"] = end_time
        if limit is not None:
            params["limit"] = min(limit, 1000)

        return await self._request("GET", "/api/v3/aggTrades", params=params)

    async def get_book_tickers(self) -> list[dict[str, Any]]:
        """전체 심볼 최우선 호가 조회"""
        return await self._request("GET", "/api/v3/ticker/bookTicker")

    # -------------------------------------------------------------------------
    # 계좌 조회
    # -------------------------------------------------------------------------

    async def get_account(self) -> dict[str, Any]:
        """계좌 정보 조회 (잔고 포함)"""
        return await self._request("GET", "/api/v3/account", signed=True)

    async def get_my_trades(
        self,
        symbol: str,
        limit: int = Defaults.MY_TRADES_LIMIT,
    ) -> list[dict[str, Any]]:
        """계정 체결 내역 조회 (최근 limit건)"""
        params = {"symbol": symbol, "limit": min(limit, 1000)}
        return await self._request(
            "GET",
            "/api/v3/myTrades",
            params=params,
            signed=True,
        )

    # -------------------------------------------------------------------------
    # 주문
    # -------------------------------------------------------------------------

    async def new_order(self, params: dict[str, Any]) -> dict[str, Any]:
        """주문 생성

        Args:
            params: 주문 파라미터 (symbol, side, type, timeInForce, quantity, price)
        """
        data = await self._request(
            "POST",
            "/api/v3/order",
            params=params,
            signed=True,
        )
        logger.info(
            "주문 생성 완료",
            extra={
                "order_id": str(data.get("orderId")),
                "symbol": params.get("symbol"),
                "side": params.get("side"),
                "qty": params.get("quantity"),
                "price": params.get("price"),
            },
        )
        return data

    async def query_order(self, symbol: str, order_id: str) -> dict[str, Any]:
        """주문 조회"""
        return await self._request(
            "GET",
            "/api/v3/order",
            params={"symbol": symbol, "orderId": order_id},
            signed=True,
        )

    async def cancel_order(self, symbol: str, order_id: str) -> dict[str, Any]:
        """주문 취소"""
        data = await self._request(
            "DELETE",
            "/api/v3/order",
            params={"symbol": symbol, "orderId": order_id},
            signed=True,
        )
        logger.info(
            "주문 취소 완료",
            extra={"order_id": order_id, "symbol": symbol},
        )
        return data

    async def __aenter__(self) -> "BinanceRestClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
