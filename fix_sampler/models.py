"""Data models for position fixes and sampling sessions."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Final


@dataclass(frozen=True, slots=True)
class PositionSample:
    """A single fix reported by the location service.

    Attributes:
        latitude: Latitude in decimal degrees.
        longitude: Longitude in decimal degrees.
        accuracy_m: Horizontal accuracy radius in meters. Smaller is better.
        captured_at_ms: Unix epoch milliseconds when the fix was taken.
    """

    latitude: float
    longitude: float
    accuracy_m: float
    captured_at_ms: int

    def __post_init__(self) -> None:
        if not math.isfinite(self.accuracy_m) or self.accuracy_m < 0:
            raise ValueError(f"accuracy_m 必须是非负的有限值：{self.accuracy_m}")

    @property
    def captured_at_s(self) -> float:
        """Unix epoch seconds as float."""

        return self.captured_at_ms / 1000.0


class PositionErrorCode(IntEnum):
    """Error codes as reported by platform geolocation APIs."""

    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3


@dataclass(frozen=True, slots=True)
class PositionError:
    """Error reported by a location subscription."""

    code: PositionErrorCode
    message: str = ""

    @property
    def permission_denied(self) -> bool:
        return self.code == PositionErrorCode.PERMISSION_DENIED


@dataclass(frozen=True, slots=True)
class WatchOptions:
    """Options passed to the location service when a watch starts."""

    high_accuracy: bool = True
    max_cache_age_ms: int = 0
    per_fix_timeout_ms: int = 15_000


class SessionState(Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    REJECTED = "rejected"


GOOD_ENOUGH_M: Final[float] = 20.0
DEADLINE_MS: Final[int] = 10_000
PER_FIX_TIMEOUT_MS: Final[int] = 15_000
DEFAULT_TZ: Final[str] = "Asia/Shanghai"
