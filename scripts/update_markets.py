#!/usr/bin/env python3
"""
마켓 테이블 갱신 스크립트

Binance exchangeInfo를 조회해 adapters/binance/markets.json을 다시 생성한다.
공개 엔드포인트만 사용하므로 API 키가 필요 없다.

사용법:
    python scripts/update_markets.py
    python scripts/update_markets.py --quote USDT --quote BTC --output /tmp/markets.json
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from adapters.binance.rest_client import BinanceRestClient
from core.constants import BinanceEndpoints, Paths
from core.logging import setup_logging
from core.markets import MarketTable, markets_from_exchange_info

logger = logging.getLogger(__name__)


def filter_quotes(table: MarketTable, quotes: list[str]) -> MarketTable:
    """기준 통화 목록으로 마켓 필터링 (빈 목록이면 전체)"""
    if not quotes:
        return table

    wanted = {q.upper() for q in quotes}
    markets = tuple(m for m in table.markets if m.currency in wanted)
    return MarketTable(
        currencies=tuple(sorted({m.currency for m in markets})),
        assets=tuple(sorted({m.asset for m in markets})),
        markets=markets,
    )


async def main(args: argparse.Namespace) -> int:
    async with BinanceRestClient(
        base_url=args.base_url,
        api_key="",
        api_secret="",
    ) as client:
        info = await client.get_exchange_info()

    table = filter_quotes(markets_from_exchange_info(info), args.quote)

    output = Path(args.output)
    output.write_text(
        json.dumps(table.to_dict(), indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )

    logger.info(
        f"마켓 테이블 저장 완료: {output} "
        f"(markets={len(table.markets)}, currencies={len(table.currencies)})"
    )
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Binance 마켓 테이블 갱신")
    parser.add_argument(
        "--base-url",
        default=BinanceEndpoints.PROD_REST_URL,
        help="REST API 베이스 URL",
    )
    parser.add_argument(
        "--quote",
        action="append",
        default=[],
        help="포함할 기준 통화 (여러 번 지정 가능, 생략 시 전체)",
    )
    parser.add_argument(
        "--output",
        default=str(Paths.MARKETS_FILE),
        help="출력 파일 경로",
    )

    setup_logging("update_markets")
    sys.exit(asyncio.run(main(parser.parse_args())))
