"""
어댑터 인터페이스 정의

Protocol 기반으로 정의하여 의존성 주입 및 Mock 교체 가능.
모든 구현체는 이 Protocol을 준수해야 함.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable

from adapters.models import Capabilities, OrderCheck, OrderFill, Portfolio, Ticker, Trade
from core.markets import MarketTable


@runtime_checkable
class IExchangeRestClient(Protocol):
    """거래소 REST API 클라이언트 인터페이스

    원시 JSON 응답(dict/list)을 반환한다. 정규화는 트레이더가 담당.
    각 메서드는 정확히 한 번의 요청을 수행하고 재시도하지 않는다.
    """

    async def get_agg_trades(
        self,
        symbol: str,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """집계 체결 내역 조회"""
        ...

    async def get_account(self) -> dict[str, Any]:
        """계좌 정보 조회 (balances 포함)"""
        ...

    async def get_book_tickers(self) -> list[dict[str, Any]]:
        """전체 심볼 최우선 호가 조회"""
        ...

    async def new_order(self, params: dict[str, Any]) -> dict[str, Any]:
        """주문 생성

        Raises:
            BinanceApiError: 주문 거부 시
        """
        ...

    async def query_order(self, symbol: str, order_id: str) -> dict[str, Any]:
        """주문 조회"""
        ...

    async def cancel_order(self, symbol: str, order_id: str) -> dict[str, Any]:
        """주문 취소

        Raises:
            BinanceApiError: 이미 종료된 주문이면 -2011 "Unknown order sent."
        """
        ...

    async def get_my_trades(self, symbol: str, limit: int = 500) -> list[dict[str, Any]]:
        """계정 체결 내역 조회"""
        ...


@runtime_checkable
class ITrader(Protocol):
    """트레이더 인터페이스

    거래 프레임워크가 소비하는 단일 거래 쌍용 어댑터.
    모든 연산은 한 번의 외부 호출 후 결과 하나 또는 TraderError 하나를 반환.
    """

    name: str
    pair: str

    async def get_trades(
        self,
        since: datetime | int | None = None,
        descending: bool = False,
    ) -> list[Trade]:
        """최근 공개 체결 목록"""
        ...

    async def get_portfolio(self) -> Portfolio:
        """자산/통화 사용 가능 잔고"""
        ...

    async def get_fee(self) -> Decimal:
        """메이커 수수료율 (소수, 0.001 = 0.1%)"""
        ...

    async def get_ticker(self) -> Ticker:
        """최우선 매도/매수 호가"""
        ...

    async def buy(self, amount: Any, price: Any) -> str:
        """지정가 매수, 주문 ID 반환"""
        ...

    async def sell(self, amount: Any, price: Any) -> str:
        """지정가 매도, 주문 ID 반환"""
        ...

    async def get_order(self, order_id: str) -> OrderFill:
        """주문 체결 집계"""
        ...

    async def check_order(self, order_id: str) -> OrderCheck:
        """주문 상태 확인"""
        ...

    async def cancel_order(self, order_id: str) -> bool:
        """주문 취소 (이미 체결되었으면 True)"""
        ...

    def round_price(self, price: Any) -> str:
        ...

    def round_amount(self, amount: Any) -> str:
        ...

    def is_valid_price(self, price: Any) -> bool:
        """최소 가격 이상인지"""
        ...

    def is_valid_lot(self, price: Any, amount: Any) -> bool:
        """가격 * 수량이 최소 주문 금액 이상인지"""
        ...

    def outbid_price(self, price: Any, is_up: bool) -> str:
        """한 틱 위/아래로 조정한 가격"""
        ...

    @classmethod
    def get_capabilities(cls, markets: MarketTable | None = None) -> Capabilities:
        """지원 기능 및 마켓 목록"""
        ...
