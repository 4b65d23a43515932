"""
어댑터 공통 데이터 모델

거래소 API 응답을 표준화한 도메인 모델.
모든 금액/수량은 Decimal 타입 사용.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from core.markets import MarketDescriptor


@dataclass(frozen=True)
class Trade:
    """공개 체결 기록 (aggTrades)

    Attributes:
        tid: 거래소 체결 ID (aggregate trade id)
        date: 체결 시간 (Unix 초)
        price: 체결 가격
        amount: 체결 수량
    """

    tid: str
    date: int
    price: Decimal
    amount: Decimal


@dataclass(frozen=True)
class Portfolio:
    """포트폴리오 스냅샷 (캐시하지 않음)

    Attributes:
        asset: 자산 코드 (예: BTC)
        currency: 기준 통화 코드 (예: USDT)
        asset_amount: 사용 가능한 자산 수량
        currency_amount: 사용 가능한 통화 수량
    """

    asset: str
    currency: str
    asset_amount: Decimal
    currency_amount: Decimal

    def as_list(self) -> list[dict[str, Any]]:
        """[{name, amount}, ...] 형식 (프레임워크 호환)"""
        return [
            {"name": self.asset, "amount": self.asset_amount},
            {"name": self.currency, "amount": self.currency_amount},
        ]


@dataclass(frozen=True)
class Ticker:
    """최우선 호가"""

    ask: Decimal
    bid: Decimal


@dataclass(frozen=True)
class OrderFill:
    """주문 체결 집계

    Attributes:
        price: 가중 평균 체결가
        amount: 총 체결 수량
        date: 마지막 체결 시간
        fees: 수수료 자산 -> 누적 수수료
        fee_percent: 추정 수수료율 (퍼센트, 근사값)
    """

    price: Decimal
    amount: Decimal
    date: datetime
    fees: dict[str, Decimal] = field(default_factory=dict)
    fee_percent: Decimal = Decimal("0")


@dataclass(frozen=True)
class OrderCheck:
    """주문 상태 확인 결과

    Attributes:
        executed: 완전 체결 여부
        open: 미체결 주문이 남아 있는지 여부
        filled_amount: 부분 체결 수량 (open 상태에서만)
    """

    executed: bool
    open: bool
    filled_amount: Decimal | None = None


@dataclass(frozen=True)
class Capabilities:
    """트레이더 기능 명세 (정적 데이터)

    프레임워크가 어댑터의 식별자, 필요한 자격 증명,
    지원 마켓, 이력 제공 방식을 확인하는 데 사용.
    """

    name: str
    slug: str
    currencies: tuple[str, ...]
    assets: tuple[str, ...]
    markets: tuple[MarketDescriptor, ...]
    requires: tuple[str, ...]
    provides_history: str
    provides_full_history: bool
    tid: str
    tradable: bool
    gekko_broker: float
