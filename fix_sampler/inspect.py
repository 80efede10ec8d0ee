"""Inspect a recorded trace and export replay results."""

from __future__ import annotations

import csv
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from fix_sampler.models import PositionSample
from fix_sampler.simulate import ReplayResult
from fix_sampler.timeutils import DistStats, delta_stats, dist_stats, dt_from_epoch_ms


@dataclass(frozen=True, slots=True)
class InspectResult:
    """How usable a trace is for best-effort sampling."""

    samples: int
    min_time_ms: int | None
    max_time_ms: int | None
    delta: DistStats | None
    accuracy: DistStats | None
    good_enough: int
    first_good_enough_index: int | None


def inspect_samples(samples: Sequence[PositionSample], good_enough_m: float) -> InspectResult:
    """Inspect already-loaded fixes."""

    if not samples:
        return InspectResult(
            samples=0,
            min_time_ms=None,
            max_time_ms=None,
            delta=None,
            accuracy=None,
            good_enough=0,
            first_good_enough_index=None,
        )

    times = sorted(s.captured_at_ms for s in samples)
    good = [i for i, s in enumerate(samples) if s.accuracy_m <= good_enough_m]
    return InspectResult(
        samples=len(samples),
        min_time_ms=times[0],
        max_time_ms=times[-1],
        delta=delta_stats(times),
        accuracy=dist_stats(s.accuracy_m for s in samples),
        good_enough=len(good),
        first_good_enough_index=good[0] if good else None,
    )


def export_replay_csv(result: ReplayResult, out_path: str | Path, tz_name: str) -> None:
    """Write the best-so-far history of a replay, one row per handled fix.

    Output columns:
        - step, time_local, epoch_ms
        - best_latitude, best_longitude, best_accuracy_m
    """

    p = Path(out_path)
    with p.open("w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(
            f,
            fieldnames=["step", "time_local", "epoch_ms", "best_latitude", "best_longitude", "best_accuracy_m"],
        )
        w.writeheader()
        for i, best in enumerate(result.best_history, start=1):
            w.writerow(
                {
                    "step": i,
                    "time_local": dt_from_epoch_ms(best.captured_at_ms, tz_name).isoformat(sep=" "),
                    "epoch_ms": best.captured_at_ms,
                    "best_latitude": best.latitude,
                    "best_longitude": best.longitude,
                    "best_accuracy_m": best.accuracy_m,
                }
            )
