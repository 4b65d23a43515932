"""
시간 유틸리티

내부 저장: UTC 원칙. Binance 타임스탬프(밀리초) 변환 헬퍼.
"""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)"""
    return datetime.now(timezone.utc)


def now_ms() -> int:
    """현재 시간의 밀리초 타임스탬프"""
    return to_timestamp_ms(now_utc())


def utc_from_timestamp_ms(ts_ms: int) -> datetime:
    """밀리초 타임스탬프를 UTC datetime으로 변환

    Example:
        >>> utc_from_timestamp_ms(1708444800000)
        datetime(2024, 2, 20, 16, 0, 0, tzinfo=timezone.utc)
    """
    return datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc)


def to_timestamp_ms(dt: datetime | int) -> int:
    """datetime을 밀리초 타임스탬프로 변환

    int는 이미 밀리초 타임스탬프로 간주하고 그대로 반환.
    naive datetime은 UTC로 간주.
    """
    if isinstance(dt, int):
        return dt
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)
