"""CSV input for recorded location traces."""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from fix_sampler.models import PositionSample

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("geoTime", "latitude", "longitude", "horizontalAccuracy")


@dataclass(frozen=True, slots=True)
class CsvSummary:
    """Quick summary of CSV parsing."""

    rows_total: int
    rows_parsed: int
    rows_skipped: int
    fieldnames: Sequence[str]


def _parse_row(row: dict[str, str]) -> PositionSample:
    accuracy = float(row["horizontalAccuracy"].strip())
    if accuracy < 0:
        # -1 表示设备没有给出精度，这样的定位无法比较
        raise ValueError("missing accuracy")
    return PositionSample(
        latitude=float(row["latitude"].strip()),
        longitude=float(row["longitude"].strip()),
        accuracy_m=accuracy,
        captured_at_ms=int(row["geoTime"].strip()),
    )


def _check_fields(fieldnames: Sequence[str] | None) -> None:
    missing = [f for f in REQUIRED_FIELDS if f not in (fieldnames or ())]
    if missing:
        raise KeyError(f"CSV缺少必要字段：{missing}. 实际字段：{list(fieldnames or ())}")


def load_samples(csv_path: str | Path) -> tuple[list[PositionSample], CsvSummary]:
    """Load all usable fixes into memory.

    Rows with damaged values, a non-finite accuracy or the negative accuracy sentinel are
    skipped and counted.

    Returns:
        (samples, summary)
    """

    p = Path(csv_path)
    rows_total = 0
    parsed: list[PositionSample] = []
    fieldnames: Sequence[str] = ()

    with p.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        fieldnames = reader.fieldnames or ()
        if fieldnames:
            _check_fields(fieldnames)
        for row in reader:
            rows_total += 1
            try:
                parsed.append(_parse_row(row))
            except (ValueError, TypeError, AttributeError):
                continue

    summary = CsvSummary(
        rows_total=rows_total,
        rows_parsed=len(parsed),
        rows_skipped=rows_total - len(parsed),
        fieldnames=fieldnames,
    )
    if summary.rows_skipped > 0:
        logger.warning("CSV中有 %s 行解析失败已跳过", summary.rows_skipped)
    return parsed, summary


def events_from_samples(
    samples: Sequence[PositionSample],
    start_index: int = 0,
    time_scale: float = 1.0,
) -> list[tuple[int, PositionSample]]:
    """Turn recorded fixes into replay events.

    Args:
        samples: Fixes in recording order.
        start_index: First fix of the session; earlier rows are ignored.
        time_scale: Divides the recorded gaps. 60 replays a minute-spaced trace as one fix per second.

    Returns:
        ``(offset_ms, sample)`` pairs, offsets relative to ``samples[start_index]``.
    """

    if time_scale <= 0:
        raise ValueError(f"time_scale 必须大于 0：{time_scale}")
    if start_index < 0:
        raise ValueError(f"start_index 不能为负数：{start_index}")
    window = samples[start_index:]
    if not window:
        return []
    t0 = window[0].captured_at_ms
    return [(max(0, int((s.captured_at_ms - t0) / time_scale)), s) for s in window]
