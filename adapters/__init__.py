"""
어댑터 레이어

거래소 연동을 담당.
Protocol 기반 인터페이스로 Mock 교체 가능.
"""

from adapters.interfaces import (
    IExchangeRestClient,
    ITrader,
)
from adapters.models import (
    Capabilities,
    OrderCheck,
    OrderFill,
    Portfolio,
    Ticker,
    Trade,
)

__all__ = [
    # Interfaces
    "IExchangeRestClient",
    "ITrader",
    # Models
    "Capabilities",
    "OrderCheck",
    "OrderFill",
    "Portfolio",
    "Ticker",
    "Trade",
]
