"""
설정 로더

secrets.yaml 로드 및 거래소/트레이더 설정 생성
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from core.constants import BinanceEndpoints, Defaults, Paths
from core.types import TradingMode


@dataclass(frozen=True)
class Secrets:
    """보안 설정 (secrets.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    mode: TradingMode
    api_key: str
    api_secret: str


@dataclass(frozen=True)
class ExchangeConfig:
    """거래소 연결 설정

    API 키와 엔드포인트 정보를 포함
    """

    rest_url: str
    api_key: str
    api_secret: str
    timeout: float = Defaults.REQUEST_TIMEOUT_SEC
    recv_window: int = Defaults.RECV_WINDOW_MS


@dataclass(frozen=True)
class TraderConfig:
    """트레이더 생성 설정

    자격 증명과 거래 쌍(currency/asset)을 묶음.
    currency/asset은 대문자로 정규화된다.
    """

    api_key: str
    api_secret: str
    currency: str
    asset: str

    def __post_init__(self) -> None:
        if not self.currency or not self.asset:
            raise ValueError("currency and asset are required")
        object.__setattr__(self, "currency", self.currency.upper())
        object.__setattr__(self, "asset", self.asset.upper())

    @property
    def pair(self) -> str:
        """거래 심볼 (asset + currency, 예: BTCUSDT)"""
        return self.asset + self.currency


class SecretsLoadError(Exception):
    """Secrets 로드 실패 예외"""

    pass


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise SecretsLoadError(f"secrets.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SecretsLoadError(f"secrets.yaml 파싱 실패: {e}") from e

    if data is None:
        raise SecretsLoadError("secrets.yaml이 비어 있습니다")

    return data


def load_secrets(path: Path | None = None) -> Secrets:
    """secrets.yaml 파일 로드

    Args:
        path: secrets.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Secrets 인스턴스

    Raises:
        SecretsLoadError: 파일이 없거나 형식이 잘못된 경우
        ValueError: 유효하지 않은 mode인 경우
    """
    if path is None:
        path = Paths.SECRETS_FILE

    data = _read_yaml(path)

    # mode 검증
    mode_str = data.get("mode")
    if mode_str is None:
        raise SecretsLoadError("secrets.yaml에 'mode' 필드가 없습니다")

    try:
        mode = TradingMode(mode_str)
    except ValueError as e:
        valid_modes = [m.value for m in TradingMode]
        raise ValueError(
            f"유효하지 않은 mode입니다: '{mode_str}'. "
            f"유효한 값: {valid_modes}"
        ) from e

    # 해당 모드의 API 키 로드
    mode_config = data.get(mode.value)
    if mode_config is None:
        raise SecretsLoadError(
            f"secrets.yaml에 '{mode.value}' 설정이 없습니다"
        )

    api_key = mode_config.get("api_key")
    api_secret = mode_config.get("api_secret")

    if not api_key:
        raise SecretsLoadError(
            f"secrets.yaml의 {mode.value} 섹션에 'api_key'가 없습니다"
        )
    if not api_secret:
        raise SecretsLoadError(
            f"secrets.yaml의 {mode.value} 섹션에 'api_secret'가 없습니다"
        )

    return Secrets(
        mode=mode,
        api_key=api_key,
        api_secret=api_secret,
    )


def load_trader_config(
    secrets: Secrets,
    path: Path | None = None,
) -> TraderConfig:
    """secrets.yaml의 trader 섹션에서 거래 쌍 로드

    Args:
        secrets: 자격 증명을 제공할 Secrets 인스턴스
        path: secrets.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        TraderConfig 인스턴스

    Raises:
        SecretsLoadError: trader 섹션 또는 currency/asset이 없는 경우
    """
    if path is None:
        path = Paths.SECRETS_FILE

    data = _read_yaml(path)

    trader = data.get("trader")
    if not trader:
        raise SecretsLoadError("secrets.yaml에 'trader' 설정이 없습니다")

    currency = trader.get("currency")
    asset = trader.get("asset")
    if not currency or not asset:
        raise SecretsLoadError(
            "secrets.yaml의 trader 섹션에 'currency'와 'asset'이 필요합니다"
        )

    return TraderConfig(
        api_key=secrets.api_key,
        api_secret=secrets.api_secret,
        currency=currency,
        asset=asset,
    )


def get_exchange_config(secrets: Secrets) -> ExchangeConfig:
    """모드에 따른 거래소 설정 반환

    Args:
        secrets: Secrets 인스턴스

    Returns:
        ExchangeConfig 인스턴스 (Production 또는 Testnet)
    """
    if secrets.mode == TradingMode.PRODUCTION:
        rest_url = BinanceEndpoints.PROD_REST_URL
    else:
        rest_url = BinanceEndpoints.TEST_REST_URL

    return ExchangeConfig(
        rest_url=rest_url,
        api_key=secrets.api_key,
        api_secret=secrets.api_secret,
    )


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    secrets.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _secrets: Secrets | None = None
    _secrets_path: Path | None = None

    def __new__(cls, secrets_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, secrets_path: Path | None = None) -> None:
        if self._secrets is None:
            type(self)._secrets = load_secrets(secrets_path)
            type(self)._secrets_path = secrets_path

    @property
    def mode(self) -> TradingMode:
        """현재 거래 모드"""
        assert self._secrets is not None
        return self._secrets.mode

    @property
    def api_key(self) -> str:
        """API 키"""
        assert self._secrets is not None
        return self._secrets.api_key

    @property
    def api_secret(self) -> str:
        """API Secret"""
        assert self._secrets is not None
        return self._secrets.api_secret

    @property
    def exchange_config(self) -> ExchangeConfig:
        """현재 모드의 거래소 설정"""
        assert self._secrets is not None
        return get_exchange_config(self._secrets)

    @property
    def trader_config(self) -> TraderConfig:
        """trader 섹션의 거래 쌍 설정"""
        assert self._secrets is not None
        return load_trader_config(self._secrets, self._secrets_path)

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._secrets = None
        cls._secrets_path = None


def get_settings(secrets_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        secrets_path: secrets.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(secrets_path)
