"""Sampler parameters."""

from __future__ import annotations

from dataclasses import dataclass

from fix_sampler.models import DEADLINE_MS, GOOD_ENOUGH_M, PER_FIX_TIMEOUT_MS, WatchOptions


@dataclass(frozen=True, slots=True)
class SamplerConfig:
    """Parameters for one sampling session.

    Attributes:
        good_enough_m: Early-exit threshold. A fix at or below it ends the session at once.
        deadline_ms: Wall-clock budget from session start, independent of per-fix timeouts.
        per_fix_timeout_ms: How long the location service may wait for each individual fix.
        high_accuracy: Ask the service for its most precise source (real GPS).
        max_cache_age_ms: Maximum age of a cached fix the service may return. 0 disables caching.
    """

    good_enough_m: float = GOOD_ENOUGH_M
    deadline_ms: int = DEADLINE_MS
    per_fix_timeout_ms: int = PER_FIX_TIMEOUT_MS
    high_accuracy: bool = True
    max_cache_age_ms: int = 0

    def validate(self) -> None:
        """Raise ValueError when a parameter is out of range."""

        if self.good_enough_m < 0:
            raise ValueError(f"good_enough_m 不能为负数：{self.good_enough_m}")
        if self.deadline_ms <= 0:
            raise ValueError(f"deadline_ms 必须大于 0：{self.deadline_ms}")
        if self.per_fix_timeout_ms <= 0:
            raise ValueError(f"per_fix_timeout_ms 必须大于 0：{self.per_fix_timeout_ms}")
        if self.max_cache_age_ms < 0:
            raise ValueError(f"max_cache_age_ms 不能为负数：{self.max_cache_age_ms}")

    def watch_options(self) -> WatchOptions:
        return WatchOptions(
            high_accuracy=self.high_accuracy,
            max_cache_age_ms=self.max_cache_age_ms,
            per_fix_timeout_ms=self.per_fix_timeout_ms,
        )
