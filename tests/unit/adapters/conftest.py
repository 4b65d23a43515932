"""
어댑터 테스트 픽스처

공통 테스트 설정 및 픽스처 제공.
"""

import pytest

from adapters.binance.trader import BinanceTrader
from adapters.mock.exchange_client import MockExchangeRestClient
from adapters.binance.retry import RetryPolicy
from core.config.loader import TraderConfig
from core.markets import MarketTable, parse_market_table


# -------------------------------------------------------------------------
# 설정 픽스처
# -------------------------------------------------------------------------

@pytest.fixture
def market_table() -> MarketTable:
    """테스트용 마켓 테이블"""
    return parse_market_table({
        "currencies": ["BTC", "USDT"],
        "assets": ["BTC", "ETH", "XRP"],
        "markets": [
            {
                "pair": ["USDT", "BTC"],
                "minimalOrder": {"amount": "0.00001", "price": "0.01", "order": "5"},
            },
            {
                "pair": ["BTC", "XRP"],
                "minimalOrder": {"amount": "1", "price": "0.00000001", "order": "0.0001"},
            },
            {
                "pair": ["BTC", "ETH"],
                "minimalOrder": {"amount": "0.0001", "price": "0.000001", "order": "0.0001"},
            },
        ],
    })


@pytest.fixture
def trader_config() -> TraderConfig:
    """BTC/USDT 트레이더 설정"""
    return TraderConfig(
        api_key="test_key",
        api_secret="test_secret",
        currency="USDT",
        asset="BTC",
    )


@pytest.fixture
def fast_policy() -> RetryPolicy:
    """대기 없는 재시도 정책 (3회)"""
    return RetryPolicy(max_attempts=3, min_wait=0, max_wait=0)


# -------------------------------------------------------------------------
# Mock 클라이언트 / 트레이더 픽스처
# -------------------------------------------------------------------------

@pytest.fixture
def mock_client() -> MockExchangeRestClient:
    """Mock REST 클라이언트 (BTCUSDT 호가, 잔고 설정)"""
    client = MockExchangeRestClient()
    client.set_balance("BTC", "0.5")
    client.set_balance("USDT", "1000.25")
    client.set_book_ticker("BTCUSDT", bid="30000.10", ask="30000.20")
    return client


@pytest.fixture
def trader(
    trader_config: TraderConfig,
    mock_client: MockExchangeRestClient,
    market_table: MarketTable,
    fast_policy: RetryPolicy,
) -> BinanceTrader:
    """Mock 클라이언트에 연결된 BTC/USDT 트레이더"""
    return BinanceTrader(
        trader_config,
        client=mock_client,
        markets=market_table,
        retry_policy=fast_policy,
    )
