"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from decimal import Decimal
from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → 프로젝트 루트)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class BinanceEndpoints:
    """Binance Spot API 엔드포인트 (고정값)

    공식 문서: https://developers.binance.com/docs/binance-spot-api-docs/rest-api
    """

    # Production (Spot)
    PROD_REST_URL: str = "https://api.binance.com"

    # Testnet (Spot)
    TEST_REST_URL: str = "https://testnet.binance.vision"


class Defaults:
    """기본값 상수"""

    # REST 요청 타임아웃 (초)
    REQUEST_TIMEOUT_SEC: float = 15.0
    # 서명 요청 허용 지연 (밀리초, Binance 권장값)
    RECV_WINDOW_MS: int = 60000

    # 주문 체결 조회 시 가져올 최근 체결 수
    MY_TRADES_LIMIT: int = 500
    # since 지정 시 체결 이력 조회 구간 (밀리초)
    TRADES_WINDOW_MS: int = 60 * 60 * 1000

    # 재시도 정책
    RETRY_ATTEMPTS: int = 5
    RETRY_MIN_WAIT_SEC: float = 1.0
    RETRY_MAX_WAIT_SEC: float = 30.0


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # 설정 파일
    SECRETS_FILE: Path = CONFIG_DIR / "secrets.yaml"

    # 마켓 메타데이터 (정적 테이블)
    MARKETS_FILE: Path = PROJECT_ROOT / "adapters" / "binance" / "markets.json"


class RateLimitThresholds:
    """Rate Limit 임계값 (Spot 1분 가중치 한도 6000 기준)"""

    WEIGHT_WARN: int = 4500  # 경고
    WEIGHT_STOP: int = 5900  # 요청 중단


class FeeRates:
    """수수료율 근사값 (퍼센트 단위)

    실제 계정 등급/할인은 반영하지 않음.
    """

    MAKER_PERCENT: Decimal = Decimal("0.1")  # 기본 메이커 수수료 10bp
    BNB_DISCOUNT_PERCENT: Decimal = Decimal("0.05")  # BNB 지불 시 5bp
    BASE_PERCENT: Decimal = Decimal("0.1")

    # 할인 토큰
    DISCOUNT_ASSET: str = "BNB"
