"""
마켓 메타데이터 테이블

거래 쌍별 최소 가격 단위, 수량 단위, 최소 주문 금액을 담은 정적 테이블.
프로세스 시작 시 한 번 로드되어 트레이더 인스턴스에 주입된다.

markets.json 형식:
{
    "currencies": ["USDT", "BTC"],
    "assets": ["BTC", "ETH"],
    "markets": [
        {
            "pair": ["USDT", "BTC"],          # [currency, asset]
            "minimalOrder": {
                "amount": "0.00001",         # 수량 단위 (LOT_SIZE.stepSize)
                "price": "0.01",             # 가격 단위 (PRICE_FILTER.tickSize)
                "order": "5"                 # 최소 주문 금액 (MIN_NOTIONAL)
            }
        }
    ]
}
"""

import json
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any

from core.constants import Paths


class MarketDataError(Exception):
    """마켓 테이블 로드/파싱 실패"""

    pass


@dataclass(frozen=True)
class MinimalOrder:
    """최소 주문 조건

    Attributes:
        price: 최소 가격 단위 (tick size)
        amount: 최소 수량 단위 (step size)
        order: 최소 주문 금액 (가격 * 수량)
    """

    price: Decimal
    amount: Decimal
    order: Decimal


@dataclass(frozen=True)
class MarketDescriptor:
    """거래 쌍 메타데이터 (읽기 전용)

    Attributes:
        pair: (currency, asset) 튜플
        minimal_order: 최소 주문 조건
    """

    pair: tuple[str, str]
    minimal_order: MinimalOrder

    @property
    def currency(self) -> str:
        return self.pair[0]

    @property
    def asset(self) -> str:
        return self.pair[1]

    @property
    def symbol(self) -> str:
        """Binance 심볼 (asset + currency)"""
        return self.asset + self.currency


@dataclass(frozen=True)
class MarketTable:
    """정적 마켓 테이블"""

    currencies: tuple[str, ...]
    assets: tuple[str, ...]
    markets: tuple[MarketDescriptor, ...]

    def find(self, currency: str, asset: str) -> MarketDescriptor | None:
        """currency/asset에 해당하는 마켓 조회

        Returns:
            MarketDescriptor 또는 None (설정되지 않은 쌍)
        """
        currency = currency.upper()
        asset = asset.upper()
        for market in self.markets:
            if market.pair == (currency, asset):
                return market
        return None

    def to_dict(self) -> dict[str, Any]:
        """markets.json 형식으로 변환"""
        return {
            "currencies": list(self.currencies),
            "assets": list(self.assets),
            "markets": [
                {
                    "pair": list(m.pair),
                    "minimalOrder": {
                        "amount": _to_plain(m.minimal_order.amount),
                        "price": _to_plain(m.minimal_order.price),
                        "order": _to_plain(m.minimal_order.order),
                    },
                }
                for m in self.markets
            ],
        }


def _to_decimal(value: Any) -> Decimal:
    # float는 repr 문자열을 거쳐 이진 부동소수점 오차를 피한다
    return Decimal(str(value))


def _to_plain(value: Decimal) -> str:
    normalized = value.normalize()
    return format(normalized, "f")


def parse_market_table(data: dict[str, Any]) -> MarketTable:
    """markets.json 딕셔너리 -> MarketTable

    Raises:
        MarketDataError: 필수 필드가 없거나 값이 숫자가 아닌 경우
    """
    try:
        markets = []
        for item in data["markets"]:
            currency, asset = item["pair"]
            minimal = item["minimalOrder"]
            markets.append(
                MarketDescriptor(
                    pair=(currency.upper(), asset.upper()),
                    minimal_order=MinimalOrder(
                        price=_to_decimal(minimal["price"]),
                        amount=_to_decimal(minimal["amount"]),
                        order=_to_decimal(minimal["order"]),
                    ),
                )
            )
    except (KeyError, TypeError, ValueError, ArithmeticError) as e:
        raise MarketDataError(f"마켓 데이터 형식 오류: {e}") from e

    currencies = data.get("currencies") or sorted({m.currency for m in markets})
    assets = data.get("assets") or sorted({m.asset for m in markets})

    return MarketTable(
        currencies=tuple(currencies),
        assets=tuple(assets),
        markets=tuple(markets),
    )


def load_market_table(path: Path | None = None) -> MarketTable:
    """markets.json 파일 로드

    Args:
        path: 파일 경로 (None이면 기본 테이블, 캐시됨)

    Raises:
        MarketDataError: 파일이 없거나 형식이 잘못된 경우
    """
    if path is None:
        return _default_market_table()
    return _read_market_file(path)


@lru_cache(maxsize=1)
def _default_market_table() -> MarketTable:
    return _read_market_file(Paths.MARKETS_FILE)


def _read_market_file(path: Path) -> MarketTable:
    if not path.exists():
        raise MarketDataError(f"마켓 파일을 찾을 수 없습니다: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise MarketDataError(f"마켓 파일 파싱 실패: {e}") from e

    return parse_market_table(data)


def markets_from_exchange_info(info: dict[str, Any]) -> MarketTable:
    """Binance GET /api/v3/exchangeInfo 응답 -> MarketTable

    TRADING 상태 심볼만 포함.
    - PRICE_FILTER.tickSize -> price
    - LOT_SIZE.stepSize -> amount
    - MIN_NOTIONAL.minNotional 또는 NOTIONAL.minNotional -> order
    """
    markets = []
    for symbol in info.get("symbols", []):
        if symbol.get("status") != "TRADING":
            continue

        filters = {f["filterType"]: f for f in symbol.get("filters", [])}
        price_filter = filters.get("PRICE_FILTER")
        lot_size = filters.get("LOT_SIZE")
        notional = filters.get("MIN_NOTIONAL") or filters.get("NOTIONAL")

        if price_filter is None or lot_size is None:
            continue

        min_notional = notional.get("minNotional", "0") if notional else "0"

        markets.append(
            MarketDescriptor(
                pair=(symbol["quoteAsset"], symbol["baseAsset"]),
                minimal_order=MinimalOrder(
                    price=Decimal(price_filter["tickSize"]).normalize(),
                    amount=Decimal(lot_size["stepSize"]).normalize(),
                    order=Decimal(min_notional).normalize(),
                ),
            )
        )

    return MarketTable(
        currencies=tuple(sorted({m.currency for m in markets})),
        assets=tuple(sorted({m.asset for m in markets})),
        markets=tuple(markets),
    )
