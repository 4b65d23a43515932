"""
Mock 거래소 클라이언트

테스트용 Mock REST 클라이언트.
IExchangeRestClient Protocol 준수 - Binance Spot 원시 응답 형식을 그대로 반환.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from adapters.binance.rate_limiter import BinanceApiError, OrderError
from core.types import OrderStatus
from core.utils.timezone import now_ms


@dataclass
class MockState:
    """Mock 상태 (메모리 내 저장)"""

    # 잔고 (asset -> {"asset", "free", "locked"})
    balances: dict[str, dict[str, str]] = field(default_factory=dict)

    # 최우선 호가 (symbol -> bookTicker 항목)
    book_tickers: dict[str, dict[str, str]] = field(default_factory=dict)

    # 공개 집계 체결 (symbol -> aggTrades 항목 목록, 시간순)
    agg_trades: dict[str, list[dict[str, Any]]] = field(default_factory=dict)

    # 주문 (order_id -> 주문 조회 응답)
    orders: dict[str, dict[str, Any]] = field(default_factory=dict)

    # 계정 체결 (myTrades 항목 목록, 시간순)
    my_trades: list[dict[str, Any]] = field(default_factory=list)

    # 메서드별 주입된 실패 (method -> 예외 목록, 앞에서부터 소비)
    failures: dict[str, list[Exception]] = field(default_factory=dict)

    # 호출 기록 (method, kwargs)
    calls: list[tuple[str, dict[str, Any]]] = field(default_factory=list)

    # 주문/체결 카운터
    order_counter: int = 0
    trade_counter: int = 0


class MockExchangeRestClient:
    """Mock REST 클라이언트

    IExchangeRestClient Protocol 구현.
    메모리 내 상태 관리로 테스트 시나리오 지원.

    사용 예시:
    ```python
    client = MockExchangeRestClient()
    client.set_balance("USDT", "1000")

    data = await client.new_order({"symbol": "BTCUSDT", ...})
    client.simulate_fill(str(data["orderId"]), qty="0.5", price="100")

    # 다음 호출 실패 주입
    client.fail_next("get_account", BinanceApiError(-1021, "Timestamp ..."))
    ```
    """

    def __init__(self, state: MockState | None = None):
        self.state = state or MockState()

    # -------------------------------------------------------------------------
    # 상태 조작 메서드 (테스트용)
    # -------------------------------------------------------------------------

    def set_balance(self, asset: str, free: str, locked: str = "0") -> None:
        """잔고 설정"""
        self.state.balances[asset] = {"asset": asset, "free": free, "locked": locked}

    def set_book_ticker(self, symbol: str, bid: str, ask: str) -> None:
        """최우선 호가 설정"""
        self.state.book_tickers[symbol] = {
            "symbol": symbol,
            "bidPrice": bid,
            "bidQty": "1.00000000",
            "askPrice": ask,
            "askQty": "1.00000000",
        }

    def add_agg_trade(self, symbol: str, price: str, qty: str, timestamp_ms: int) -> None:
        """공개 집계 체결 추가"""
        trades = self.state.agg_trades.setdefault(symbol, [])
        trades.append({
            "a": len(trades) + 1,
            "p": price,
            "q": qty,
            "f": len(trades) + 1,
            "l": len(trades) + 1,
            "T": timestamp_ms,
            "m": False,
            "M": True,
        })

    def fail_next(self, method: str, error: Exception, times: int = 1) -> None:
        """method의 다음 times번 호출이 error를 발생시키도록 설정"""
        self.state.failures.setdefault(method, []).extend([error] * times)

    def calls_of(self, method: str) -> list[dict[str, Any]]:
        """method 호출 인자 기록"""
        return [kwargs for name, kwargs in self.state.calls if name == method]

    def simulate_fill(
        self,
        order_id: str,
        qty: str | None = None,
        price: str | None = None,
        commission: str = "0",
        commission_asset: str = "USDT",
    ) -> dict[str, Any] | None:
        """주문 체결 시뮬레이션 - myTrades 항목 생성 및 주문 상태 갱신"""
        order = self.state.orders.get(order_id)
        if order is None:
            return None

        original = Decimal(order["origQty"])
        executed = Decimal(order["executedQty"])
        fill_qty = Decimal(qty) if qty is not None else original - executed
        fill_price = price or order["price"]

        self.state.trade_counter += 1
        trade = {
            "symbol": order["symbol"],
            "id": self.state.trade_counter,
            "orderId": order["orderId"],
            "orderListId": -1,
            "price": fill_price,
            "qty": str(fill_qty),
            "quoteQty": str(fill_qty * Decimal(fill_price)),
            "commission": commission,
            "commissionAsset": commission_asset,
            "time": now_ms(),
            "isBuyer": order["side"] == "BUY",
            "isMaker": True,
            "isBestMatch": True,
        }
        self.state.my_trades.append(trade)

        executed += fill_qty
        order["executedQty"] = str(executed)
        order["status"] = (
            OrderStatus.FILLED.value
            if executed >= original
            else OrderStatus.PARTIALLY_FILLED.value
        )

        return trade

    def set_order_status(self, order_id: str, status: str) -> None:
        """주문 상태 강제 변경 (알 수 없는 상태 테스트용)"""
        self.state.orders[order_id]["status"] = status

    def _record(self, method: str, **kwargs: Any) -> None:
        self.state.calls.append((method, kwargs))
        pending = self.state.failures.get(method)
        if pending:
            raise pending.pop(0)

    # -------------------------------------------------------------------------
    # 공개 데이터
    # -------------------------------------------------------------------------

    async def get_agg_trades(
        self,
        symbol: str,
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """집계 체결 내역 조회"""
        self._record(
            "get_agg_trades",
            symbol=symbol,
            start_time=start_time,
            end_time=end_time,
            limit=limit,
        )
        trades = self.state.agg_trades.get(symbol, [])
        if start_time is not None:
            trades = [t for t in trades if t["T"] >= start_time]
        if end_time is not None:
            trades = [t for t in trades if t["T"] <= end_time]
        if limit is not None:
            trades = trades[-limit:]
        return [dict(t) for t in trades]

    async def get_book_tickers(self) -> list[dict[str, Any]]:
        """전체 심볼 최우선 호가 조회"""
        self._record("get_book_tickers")
        return [dict(t) for t in self.state.book_tickers.values()]

    # -------------------------------------------------------------------------
    # 계좌 조회
    # -------------------------------------------------------------------------

    async def get_account(self) -> dict[str, Any]:
        """계좌 정보 조회"""
        self._record("get_account")
        return {
            "makerCommission": 10,
            "takerCommission": 10,
            "canTrade": True,
            "accountType": "SPOT",
            "balances": [dict(b) for b in self.state.balances.values()],
        }

    async def get_my_trades(self, symbol: str, limit: int = 500) -> list[dict[str, Any]]:
        """계정 체결 내역 조회 (최근 limit건)"""
        self._record("get_my_trades", symbol=symbol, limit=limit)
        trades = [t for t in self.state.my_trades if t["symbol"] == symbol]
        return [dict(t) for t in trades[-limit:]]

    # -------------------------------------------------------------------------
    # 주문
    # -------------------------------------------------------------------------

    async def new_order(self, params: dict[str, Any]) -> dict[str, Any]:
        """주문 생성 (숫자 orderId 반환)"""
        self._record("new_order", params=dict(params))

        self.state.order_counter += 1
        order_id = self.state.order_counter
        created = now_ms()

        self.state.orders[str(order_id)] = {
            "symbol": params["symbol"],
            "orderId": order_id,
            "orderListId": -1,
            "clientOrderId": f"mock_client_{order_id}",
            "price": str(params.get("price", "0")),
            "origQty": str(params["quantity"]),
            "executedQty": "0",
            "cummulativeQuoteQty": "0",
            "status": OrderStatus.NEW.value,
            "timeInForce": params.get("timeInForce", "GTC"),
            "type": params.get("type", "LIMIT"),
            "side": params["side"],
            "time": created,
            "updateTime": created,
            "isWorking": True,
        }

        return {
            "symbol": params["symbol"],
            "orderId": order_id,
            "orderListId": -1,
            "clientOrderId": f"mock_client_{order_id}",
            "transactTime": created,
        }

    async def query_order(self, symbol: str, order_id: str) -> dict[str, Any]:
        """주문 조회"""
        self._record("query_order", symbol=symbol, order_id=order_id)
        order = self.state.orders.get(str(order_id))
        if order is None or order["symbol"] != symbol:
            raise BinanceApiError(code=-2013, message="Order does not exist.", status_code=400)
        return dict(order)

    async def cancel_order(self, symbol: str, order_id: str) -> dict[str, Any]:
        """주문 취소 (종료된 주문이면 -2011 Unknown order sent.)"""
        self._record("cancel_order", symbol=symbol, order_id=order_id)
        order = self.state.orders.get(str(order_id))

        closed = (
            OrderStatus.FILLED.value,
            OrderStatus.CANCELED.value,
            OrderStatus.REJECTED.value,
            OrderStatus.EXPIRED.value,
        )
        if order is None or order["symbol"] != symbol or order["status"] in closed:
            raise OrderError(code=-2011, message="Unknown order sent.", status_code=400)

        order["status"] = OrderStatus.CANCELED.value
        return dict(order)
