"""
시간 관련 유틸리티 함수

저장소는 모두 naive UTC datetime을 사용합니다.
"""
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """현재 UTC 시각 (naive)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(dt: Optional[datetime]) -> datetime:
    """
    임의의 datetime을 naive UTC로 정규화합니다.

    Args:
        dt: naive(UTC로 간주) 또는 timezone-aware datetime. None이면 현재 시각.

    Returns:
        datetime: tzinfo가 없는 UTC 시각
    """
    if dt is None:
        return utcnow()
    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def format_clock_time(dt: datetime) -> str:
    """메시지 표시용 시:분 (로컬 시간대)"""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone().strftime("%H:%M")
