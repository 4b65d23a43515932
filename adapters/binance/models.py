"""
Binance API 응답 -> 공통 모델 변환

Binance Spot API 응답을 adapters.models의 표준 모델로 변환.
모든 금액/수량은 문자열에서 Decimal로 변환.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from adapters.binance.errors import UnknownOrderStatusError
from adapters.models import OrderCheck, OrderFill, Portfolio, Ticker, Trade
from core.constants import FeeRates
from core.types import OrderStatus
from core.utils.timezone import utc_from_timestamp_ms


CLOSED_STATUSES = (
    OrderStatus.CANCELED.value,
    OrderStatus.REJECTED.value,
    OrderStatus.EXPIRED.value,
)
OPEN_STATUSES = (
    OrderStatus.NEW.value,
    OrderStatus.PARTIALLY_FILLED.value,
)


def _decimal_or_zero(value: Any) -> Decimal:
    """숫자 문자열 -> Decimal (없거나 NaN/비숫자면 0)"""
    if value is None:
        return Decimal("0")
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        return Decimal("0")
    if not result.is_finite():
        return Decimal("0")
    return result


def parse_agg_trade(data: dict[str, Any]) -> Trade:
    """Binance 집계 체결 응답 -> Trade 모델

    Binance GET /api/v3/aggTrades 응답 항목 예시:
    {
        "a": 26129,             # aggregate trade id
        "p": "0.01633102",      # price
        "q": "4.70443515",      # quantity
        "f": 27781,             # first trade id
        "l": 27781,             # last trade id
        "T": 1498793709153,     # timestamp (ms)
        "m": true,              # buyer was maker
        "M": true               # best price match
    }
    """
    return Trade(
        tid=str(data["a"]),
        date=int(data["T"]) // 1000,
        price=Decimal(data["p"]),
        amount=Decimal(data["q"]),
    )


def find_free_balance(balances: Iterable[dict[str, Any]], asset: str) -> Decimal:
    """잔고 목록에서 asset의 사용 가능 수량 (없으면 0)"""
    for item in balances:
        if item.get("asset") == asset:
            return _decimal_or_zero(item.get("free"))
    return Decimal("0")


def parse_portfolio(data: dict[str, Any], asset: str, currency: str) -> Portfolio:
    """Binance 계좌 응답 -> Portfolio 모델

    Binance GET /api/v3/account 응답 예시 (일부):
    {
        "makerCommission": 15,
        "canTrade": true,
        "balances": [
            {"asset": "BTC", "free": "4723846.89208129", "locked": "0.00000000"},
            {"asset": "LTC", "free": "4763368.68006011", "locked": "0.00000000"}
        ]
    }
    """
    balances = data.get("balances") or []
    return Portfolio(
        asset=asset,
        currency=currency,
        asset_amount=find_free_balance(balances, asset),
        currency_amount=find_free_balance(balances, currency),
    )


def find_book_ticker(data: Iterable[dict[str, Any]], symbol: str) -> Ticker | None:
    """전체 심볼 호가 응답에서 symbol의 Ticker 추출

    Binance GET /api/v3/ticker/bookTicker 응답 항목 예시:
    {
        "symbol": "LTCBTC",
        "bidPrice": "4.00000000",
        "bidQty": "431.00000000",
        "askPrice": "4.00000200",
        "askQty": "9.00000000"
    }

    Returns:
        Ticker 또는 None (심볼 없음)
    """
    for item in data:
        if item.get("symbol") == symbol:
            return Ticker(
                ask=Decimal(item["askPrice"]),
                bid=Decimal(item["bidPrice"]),
            )
    return None


def parse_order_id(data: dict[str, Any]) -> str:
    """주문 생성 응답에서 주문 ID 추출 (불투명 문자열)

    Binance POST /api/v3/order 응답 예시 (ACK):
    {
        "symbol": "BTCUSDT",
        "orderId": 28,
        "orderListId": -1,
        "clientOrderId": "6gCrw2kRUAF9CvJDGP16IP",
        "transactTime": 1507725176595
    }
    """
    return str(data["orderId"])


def parse_order_check(data: dict[str, Any]) -> OrderCheck:
    """Binance 주문 조회 응답 -> OrderCheck

    - CANCELED / REJECTED / EXPIRED: 종료, 미체결
    - NEW / PARTIALLY_FILLED: 진행 중, filled_amount = executedQty
    - FILLED: 완전 체결

    Raises:
        UnknownOrderStatusError: 위 상태 외의 값
    """
    status = data.get("status")

    if status in CLOSED_STATUSES:
        return OrderCheck(executed=False, open=False)

    if status in OPEN_STATUSES:
        return OrderCheck(
            executed=False,
            open=True,
            filled_amount=_decimal_or_zero(data.get("executedQty")),
        )

    if status == OrderStatus.FILLED.value:
        return OrderCheck(executed=True, open=False)

    raise UnknownOrderStatusError(status)


def aggregate_fills(
    trades: Iterable[dict[str, Any]],
    order_id: str,
) -> tuple[Decimal, Decimal, datetime, dict[str, Decimal]] | None:
    """계정 체결 목록에서 order_id의 체결을 집계

    Binance GET /api/v3/myTrades 응답 항목 예시:
    {
        "symbol": "BNBBTC",
        "id": 28457,
        "orderId": 100234,
        "price": "4.00000100",
        "qty": "12.00000000",
        "quoteQty": "48.000012",
        "commission": "10.10000000",
        "commissionAsset": "BNB",
        "time": 1499865549590,
        "isBuyer": true,
        "isMaker": false,
        "isBestMatch": true
    }

    가중 평균가는 체결 순서대로 누적 계산:
        price = (price * amount + fill_price * fill_qty) / (amount + fill_qty)
        amount += fill_qty

    Returns:
        (평균가, 총 수량, 마지막 체결 시간, 수수료 맵) 또는 None (체결 없음)
    """
    # 주문 ID는 숫자/문자열로 섞여 오므로 문자열로 비교
    matched = [t for t in trades if str(t.get("orderId")) == str(order_id)]
    if not matched:
        return None

    price = Decimal("0")
    amount = Decimal("0")
    date = datetime.fromtimestamp(0, tz=timezone.utc)
    fees: dict[str, Decimal] = {}

    for trade in matched:
        fill_price = Decimal(trade["price"])
        fill_qty = Decimal(trade["qty"])

        if "time" in trade:
            date = utc_from_timestamp_ms(trade["time"])

        if amount + fill_qty != 0:
            price = (price * amount + fill_price * fill_qty) / (amount + fill_qty)
        amount += fill_qty

        fee_asset = trade.get("commissionAsset", "")
        fees[fee_asset] = fees.get(fee_asset, Decimal("0")) + _decimal_or_zero(
            trade.get("commission")
        )

    return price, amount, date, fees


def estimate_fee_percent(
    fees: dict[str, Decimal],
    amount: Decimal,
    asset: str,
    currency: str,
) -> Decimal:
    """지불한 수수료로 수수료율(퍼센트) 추정 - 근사값

    - 수수료 자산이 하나:
      - BNB이고 거래 쌍에 BNB가 없음: BNB 할인율 (5bp, BNB 시세가 없어 계산 불가)
      - 거래 자산(asset): fee / amount * 100
      - 그 외 (기준 통화 포함): 기본율 10bp
    - 수수료 자산이 여러 개: 기본율 10bp

    기준 통화로 지불된 수수료는 체결가를 이용해 계산할 수 있지만 구현하지 않음.
    """
    if len(fees) != 1:
        return FeeRates.BASE_PERCENT

    discount = FeeRates.DISCOUNT_ASSET
    if discount in fees and discount not in (asset, currency):
        return FeeRates.BNB_DISCOUNT_PERCENT

    if asset in fees and amount:
        return fees[asset] / amount * 100

    return FeeRates.BASE_PERCENT


def parse_order_fill(
    trades: Iterable[dict[str, Any]],
    order_id: str,
    asset: str,
    currency: str,
) -> OrderFill | None:
    """계정 체결 목록 -> OrderFill (order_id 체결이 없으면 None)"""
    aggregated = aggregate_fills(trades, order_id)
    if aggregated is None:
        return None

    price, amount, date, fees = aggregated
    return OrderFill(
        price=price,
        amount=amount,
        date=date,
        fees=fees,
        fee_percent=estimate_fee_percent(fees, amount, asset, currency),
    )
