"""
Binance 트레이더 어댑터

단일 거래 쌍(asset/currency)에 대해 거래 프레임워크가 사용하는 공통 트레이더 인터페이스.
각 연산은 재시도 헬퍼로 감싼 외부 호출 한 번과 응답 정규화로 구성된다.
ITrader Protocol 준수.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Awaitable, Callable, TypeVar

from adapters.binance.errors import (
    AbortError,
    MarketNotConfiguredError,
    TraderError,
    is_unknown_order,
)
from adapters.binance.models import (
    find_book_ticker,
    parse_agg_trade,
    parse_order_check,
    parse_order_fill,
    parse_order_id,
    parse_portfolio,
)
from adapters.binance.precision import (
    Number,
    round_to_tick,
    scientific_to_decimal,
    to_decimal,
)
from adapters.binance.rest_client import BinanceRestClient
from adapters.interfaces import IExchangeRestClient
from adapters.models import (
    Capabilities,
    OrderCheck,
    OrderFill,
    Portfolio,
    Ticker,
    Trade,
)
from adapters.binance.retry import RetryPolicy, call_with_retry
from core.config.loader import TraderConfig
from core.constants import BinanceEndpoints, Defaults, FeeRates
from core.markets import MarketDescriptor, MarketTable, load_market_table
from core.types import OrderSide, OrderType, TimeInForce
from core.utils.timezone import now_ms, to_timestamp_ms

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BinanceTrader:
    """Binance Spot 트레이더

    생성 시 currency/asset 쌍에 맞는 마켓 메타데이터를 한 번 조회하여 고정한다.
    인스턴스는 단일 소유자가 순차적으로 사용하는 것을 전제로 하며 내부 잠금은 없다.

    Args:
        config: 자격 증명과 거래 쌍
        client: REST 클라이언트 (None이면 BinanceRestClient 생성)
        markets: 마켓 테이블 (None이면 기본 markets.json)
        retry_policy: 재시도 정책 (None이면 기본 정책)
        base_url: client를 생성할 때 사용할 REST URL

    Raises:
        MarketNotConfiguredError: 마켓 테이블에 해당 쌍이 없는 경우
    """

    name = "binance"

    def __init__(
        self,
        config: TraderConfig,
        client: IExchangeRestClient | None = None,
        markets: MarketTable | None = None,
        retry_policy: RetryPolicy | None = None,
        base_url: str = BinanceEndpoints.PROD_REST_URL,
    ):
        self.key = config.api_key
        self.secret = config.api_secret
        self.currency = config.currency
        self.asset = config.asset
        self.pair = config.pair

        table = markets if markets is not None else load_market_table()
        market = table.find(self.currency, self.asset)
        if market is None:
            raise MarketNotConfiguredError(self.currency, self.asset)
        self.market: MarketDescriptor = market

        self.client: IExchangeRestClient = client or BinanceRestClient(
            base_url=base_url,
            api_key=self.key,
            api_secret=self.secret,
        )
        self.retry_policy = retry_policy

    async def close(self) -> None:
        """클라이언트 리소스 정리"""
        close = getattr(self.client, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "BinanceTrader":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _call(self, func_name: str, operation: Callable[[], Awaitable[T]]) -> T:
        """재시도 헬퍼로 연산 실행, 분류된 실패는 로그 후 그대로 전달"""
        try:
            return await call_with_retry(self.retry_policy, operation)
        except TraderError as e:
            log = logger.warning if e.not_fatal else logger.error
            log(
                f"{func_name} 실패",
                extra={
                    "pair": self.pair,
                    "error": e.message,
                    "retryable": e.not_fatal,
                },
            )
            raise

    # -------------------------------------------------------------------------
    # 시장 데이터
    # -------------------------------------------------------------------------

    async def get_trades(
        self,
        since: datetime | int | None = None,
        descending: bool = False,
    ) -> list[Trade]:
        """최근 공개 체결 목록

        Args:
            since: 시작 시점 (datetime 또는 밀리초). 지정 시 since부터
                1시간 구간을 조회하되 종료 시각은 현재를 넘지 않는다.
            descending: True면 최신 체결이 먼저 오도록 역순 정렬
        """
        start_time = None
        end_time = None
        if since is not None:
            start_time = to_timestamp_ms(since)
            end_time = min(start_time + Defaults.TRADES_WINDOW_MS, now_ms())

        async def fetch() -> list[Trade]:
            data = await self.client.get_agg_trades(
                self.pair,
                start_time=start_time,
                end_time=end_time,
            )
            return [parse_agg_trade(item) for item in data]

        trades = await self._call("get_trades", fetch)

        if descending:
            trades.reverse()
        return trades

    async def get_portfolio(self) -> Portfolio:
        """자산/통화의 사용 가능 잔고 (없거나 NaN이면 0)"""

        async def fetch() -> Portfolio:
            data = await self.client.get_account()
            return parse_portfolio(data, self.asset, self.currency)

        return await self._call("get_portfolio", fetch)

    async def get_fee(self) -> Decimal:
        # 기본 메이커 수수료 (BNB 할인 미반영)
        return FeeRates.MAKER_PERCENT / 100

    async def get_ticker(self) -> Ticker:
        """최우선 매도/매수 호가

        Raises:
            AbortError: 응답에 거래 쌍이 없는 경우
        """

        async def fetch() -> Ticker:
            data = await self.client.get_book_tickers()
            ticker = find_book_ticker(data, self.pair)
            if ticker is None:
                raise AbortError(f"Market {self.pair} not found on Binance")
            return ticker

        return await self._call("get_ticker", fetch)

    # -------------------------------------------------------------------------
    # 정밀도
    # -------------------------------------------------------------------------

    def round_amount(self, amount: Number) -> str:
        """수량을 수량 단위로 절사"""
        return round_to_tick(amount, self.market.minimal_order.amount)

    def round_price(self, price: Number) -> str:
        """가격을 가격 단위로 절사"""
        return round_to_tick(price, self.market.minimal_order.price)

    def is_valid_price(self, price: Number) -> bool:
        """최소 가격 이상인지"""
        return to_decimal(price) >= self.market.minimal_order.price

    def is_valid_lot(self, price: Number, amount: Number) -> bool:
        """주문 금액(가격 * 수량)이 최소 주문 금액 이상인지"""
        return to_decimal(price) * to_decimal(amount) >= self.market.minimal_order.order

    def outbid_price(self, price: Number, is_up: bool) -> str:
        """가격을 한 틱 올리거나 내린 뒤 다시 절사"""
        tick = self.market.minimal_order.price
        value = to_decimal(price)
        new_price = value + tick if is_up else value - tick
        return self.round_price(new_price)

    # -------------------------------------------------------------------------
    # 주문
    # -------------------------------------------------------------------------

    async def add_order(self, side: str, amount: Number, price: Number) -> str:
        """지정가(GTC) 주문 생성

        amount/price는 다시 절사하지 않는다. 호출자가 round_amount/round_price로
        미리 맞춰야 한다.

        Returns:
            거래소 주문 ID (불투명 문자열)
        """
        params = {
            "symbol": self.pair,
            "side": OrderSide(side.upper()).value,
            "type": OrderType.LIMIT.value,
            "timeInForce": TimeInForce.GTC.value,
            "quantity": scientific_to_decimal(amount),
            "price": scientific_to_decimal(price),
        }

        async def submit() -> str:
            data = await self.client.new_order(params)
            return parse_order_id(data)

        return await self._call("add_order", submit)

    async def buy(self, amount: Number, price: Number) -> str:
        return await self.add_order(OrderSide.BUY.value, amount, price)

    async def sell(self, amount: Number, price: Number) -> str:
        return await self.add_order(OrderSide.SELL.value, amount, price)

    async def get_order(self, order_id: str) -> OrderFill:
        """주문 체결 집계 (평균가, 수량, 수수료)

        최근 계정 체결 500건에서 order_id의 체결만 모은다.
        그보다 오래된 주문은 찾지 못한다.

        Raises:
            AbortError: 체결이 하나도 없는 경우 ("Trades not found")
        """
        order_id = str(order_id)

        async def fetch() -> OrderFill:
            data = await self.client.get_my_trades(
                self.pair,
                limit=Defaults.MY_TRADES_LIMIT,
            )
            fill = parse_order_fill(data, order_id, self.asset, self.currency)
            if fill is None:
                raise AbortError("Trades not found")
            return fill

        return await self._call("get_order", fetch)

    async def check_order(self, order_id: str) -> OrderCheck:
        """주문 상태 확인

        Raises:
            UnknownOrderStatusError: 알 수 없는 주문 상태 (재시도하지 않음)
        """
        order_id = str(order_id)

        async def fetch() -> OrderCheck:
            data = await self.client.query_order(self.pair, order_id)
            return parse_order_check(data)

        return await self._call("check_order", fetch)

    async def cancel_order(self, order_id: str) -> bool:
        """주문 취소

        Returns:
            True: 이미 체결되어 취소할 주문이 없음 (취소가 늦음)
            False: 정상 취소
        """
        order_id = str(order_id)

        async def cancel() -> bool:
            await self.client.cancel_order(self.pair, order_id)
            return False

        try:
            return await call_with_retry(self.retry_policy, cancel)
        except TraderError as e:
            if is_unknown_order(e):
                logger.info(
                    "취소 대상 주문 없음 (이미 체결)",
                    extra={"order_id": order_id, "pair": self.pair},
                )
                return True
            logger.error(
                "cancel_order 실패",
                extra={
                    "pair": self.pair,
                    "error": e.message,
                    "retryable": e.not_fatal,
                },
            )
            raise

    # -------------------------------------------------------------------------
    # 기능 명세
    # -------------------------------------------------------------------------

    @classmethod
    def get_capabilities(cls, markets: MarketTable | None = None) -> Capabilities:
        """트레이더 기능 명세 (정적 데이터)"""
        table = markets if markets is not None else load_market_table()
        return Capabilities(
            name="Binance",
            slug="binance",
            currencies=table.currencies,
            assets=table.assets,
            markets=table.markets,
            requires=("key", "secret"),
            provides_history="date",
            provides_full_history=True,
            tid="tid",
            tradable=True,
            gekko_broker=0.6,
        )
