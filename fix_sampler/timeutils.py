"""Time formatting and interval statistics."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable

from zoneinfo import ZoneInfo


def tzinfo_from_name(tz_name: str) -> timezone:
    """Create tzinfo from an IANA timezone name.

    Raises:
        ValueError: If timezone name is invalid on this system.
    """

    try:
        return ZoneInfo(tz_name)
    except Exception as exc:  # ZoneInfo raises KeyError / ZoneInfoNotFoundError (platform dependent)
        raise ValueError(f"无效时区：{tz_name!r}。例如可用：Asia/Shanghai") from exc


def dt_from_epoch_ms(epoch_ms: int, tz_name: str) -> datetime:
    """Convert epoch milliseconds to timezone-aware datetime."""

    tz = tzinfo_from_name(tz_name)
    return datetime.fromtimestamp(epoch_ms / 1000.0, tz=tz)


@dataclass(frozen=True, slots=True)
class DistStats:
    """Order statistics of a numeric series."""

    count: int
    min: float
    median: float
    p95: float
    max: float


def dist_stats(values: Iterable[float]) -> DistStats | None:
    """Compute min/median/p95/max, or None for an empty series."""

    v = sorted(values)
    n = len(v)
    if n == 0:
        return None
    median = v[n // 2] if n % 2 == 1 else 0.5 * (v[n // 2 - 1] + v[n // 2])
    return DistStats(count=n, min=v[0], median=median, p95=v[int(0.95 * (n - 1))], max=v[-1])


def delta_stats(epoch_ms_sorted: Iterable[int]) -> DistStats | None:
    """Sampling-interval statistics in seconds.

    Args:
        epoch_ms_sorted: Epoch ms sorted ascending.

    Returns:
        DistStats or None if less than 2 points.
    """

    ms = list(epoch_ms_sorted)
    if len(ms) < 2:
        return None
    return dist_stats((ms[i] - ms[i - 1]) / 1000.0 for i in range(1, len(ms)) if ms[i] >= ms[i - 1])
