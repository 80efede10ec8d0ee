from __future__ import annotations

import argparse
import csv
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Final

from zoneinfo import ZoneInfo


TZ: Final[str] = "Asia/Shanghai"


@dataclass(frozen=True, slots=True)
class Site:
    name: str
    lat: float
    lon: float


def _epoch_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def generate_fixes(
    *,
    sessions: int,
    fixes_per_session: int,
    seed: int,
    start_local: datetime,
    sites: list[Site],
) -> list[dict[str, str]]:
    """Generate fake warm-up traces: coarse network fixes converging to GPS-grade fixes."""

    rng = random.Random(seed)
    tz = ZoneInfo(TZ)
    cur = start_local.replace(tzinfo=tz)

    out: list[dict[str, str]] = []
    for _ in range(sessions):
        site = rng.choice(sites)
        # Cold start: first fix is cell/wifi grade, then the receiver settles
        acc = rng.uniform(80.0, 400.0)
        floor = rng.choice([4.0, 8.0, 15.0, 35.0, 60.0])
        for _ in range(fixes_per_session):
            jitter_deg = acc / 111_000.0
            lat = site.lat + rng.uniform(-jitter_deg, jitter_deg)
            lon = site.lon + rng.uniform(-jitter_deg, jitter_deg)
            # Occasionally a fix comes without accuracy (-1)
            hacc = -1.0 if rng.random() < 0.03 else acc
            out.append(
                {
                    "geoTime": str(_epoch_ms(cur)),
                    "latitude": f"{lat:.7f}",
                    "longitude": f"{lon:.7f}",
                    "horizontalAccuracy": f"{hacc:.1f}",
                    "locationType": str(0 if acc > 50 else 1),
                }
            )
            cur = cur + timedelta(milliseconds=rng.uniform(700, 2500))
            acc = max(floor, acc * rng.uniform(0.45, 1.05))
        cur = cur + timedelta(minutes=rng.uniform(10, 90))

    out.sort(key=lambda r: int(r["geoTime"]))
    return out


def main() -> int:
    p = argparse.ArgumentParser(description="Generate a fake location-fix CSV for demo/testing (privacy-safe).")
    p.add_argument("--out", type=str, default="sample_data/fixes.csv", help="Output CSV path")
    p.add_argument("--sessions", type=int, default=20, help="Number of warm-up sessions")
    p.add_argument("--fixes-per-session", type=int, default=15, help="Fixes per session")
    p.add_argument("--seed", type=int, default=42, help="Random seed (reproducible)")
    p.add_argument(
        "--start",
        type=str,
        default="2025-01-01 08:00:00",
        help="Start local time in Asia/Shanghai, e.g. '2025-01-01 08:00:00'",
    )
    args = p.parse_args()

    sites = [
        Site("shanghai_lab", 31.2304000, 121.4737000),
        Site("chengdu_campus", 30.7456421, 103.9284974),
        Site("beijing_trip", 39.9042000, 116.4074000),
    ]
    rows = generate_fixes(
        sessions=args.sessions,
        fixes_per_session=args.fixes_per_session,
        seed=args.seed,
        start_local=datetime.fromisoformat(args.start),
        sites=sites,
    )
    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    fieldnames = ["geoTime", "latitude", "longitude", "horizontalAccuracy", "locationType"]
    with out_path.open("w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(f, fieldnames=fieldnames)
        w.writeheader()
        w.writerows(rows)

    print(f"Generated: {out_path} (rows={len(rows)}, seed={args.seed})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
