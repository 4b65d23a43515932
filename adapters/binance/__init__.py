"""
Binance 어댑터

Binance Spot REST API 연동과 트레이더 인터페이스 구현.
"""

from adapters.binance.errors import (
    AbortError,
    MarketNotConfiguredError,
    OperationTimeoutError,
    RetryError,
    TraderError,
    UnknownOrderStatusError,
    classify_error,
)
from adapters.binance.rate_limiter import RateLimitTracker, RateLimitError, BinanceApiError
from adapters.binance.rest_client import BinanceRestClient
from adapters.binance.retry import RetryPolicy, call_with_retry
from adapters.binance.trader import BinanceTrader

__all__ = [
    "BinanceRestClient",
    "BinanceTrader",
    "RateLimitTracker",
    "RateLimitError",
    "BinanceApiError",
    "TraderError",
    "RetryError",
    "AbortError",
    "OperationTimeoutError",
    "UnknownOrderStatusError",
    "MarketNotConfiguredError",
    "classify_error",
    "RetryPolicy",
    "call_with_retry",
]
