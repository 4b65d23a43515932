#!/usr/bin/env python3
"""
Thin Slice 검증 스크립트

읽기 전용 연산으로 트레이더 전체 흐름을 확인 (주문은 생성하지 않음)

흐름:
1. secrets.yaml 로드 (mode, 자격 증명, trader 섹션)
2. 마켓 테이블에서 거래 쌍 바인딩
3. 호가 / 잔고 / 최근 체결 조회
4. 최소 주문 조건과 정밀도 확인
"""

import asyncio
import logging
import sys
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from adapters.binance.errors import TraderError
from adapters.binance.rest_client import BinanceRestClient
from adapters.binance.trader import BinanceTrader
from adapters.binance.retry import RetryPolicy
from core.config.loader import get_settings
from core.logging import setup_logging

logger = logging.getLogger(__name__)


async def main() -> int:
    settings = get_settings()
    exchange_config = settings.exchange_config
    trader_config = settings.trader_config

    logger.info(f"모드: {settings.mode.value}, 거래 쌍: {trader_config.pair}")

    client = BinanceRestClient.from_config(exchange_config)
    policy = RetryPolicy(max_attempts=3, timeout=60)

    async with BinanceTrader(trader_config, client=client, retry_policy=policy) as trader:
        try:
            ticker = await trader.get_ticker()
            logger.info(f"[1] 호가: bid={ticker.bid} ask={ticker.ask}")

            portfolio = await trader.get_portfolio()
            logger.info(
                f"[2] 잔고: {trader.asset}={portfolio.asset_amount} "
                f"{trader.currency}={portfolio.currency_amount}"
            )

            trades = await trader.get_trades(descending=True)
            logger.info(f"[3] 최근 체결 {len(trades)}건")
        except TraderError as e:
            logger.error(f"검증 실패: {e.message}")
            return 1

        minimal = trader.market.minimal_order
        logger.info(
            f"[4] 최소 주문: price={minimal.price} amount={minimal.amount} "
            f"order={minimal.order}"
        )
        logger.info(
            f"    bid 한 틱 위: {trader.outbid_price(ticker.bid, True)}, "
            f"최소 수량 절사 예: {trader.round_amount(minimal.amount * 3)}"
        )

    return 0


if __name__ == "__main__":
    setup_logging("thin_slice")
    sys.exit(asyncio.run(main()))
