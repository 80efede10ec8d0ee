from __future__ import annotations

import pytest

from fix_sampler.models import PositionSample


def fix(accuracy_m: float, t_ms: int = 0, lat: float = 31.2304, lon: float = 121.4737) -> PositionSample:
    return PositionSample(latitude=lat, longitude=lon, accuracy_m=accuracy_m, captured_at_ms=t_ms)


@pytest.fixture
def trace_csv(tmp_path):
    p = tmp_path / "fixes.csv"
    p.write_text(
        "geoTime,latitude,longitude,horizontalAccuracy,locationType\n"
        "1735689600000,31.2304000,121.4737000,120.0,0\n"
        "1735689601000,31.2304100,121.4737100,45.0,0\n"
        "1735689602000,31.2304200,121.4737200,-1,1\n"
        "1735689603000,31.2304300,121.4737300,18.0,1\n"
        "1735689604000,31.2304400,121.4737400,6.0,1\n"
        "broken,row,,,\n",
        encoding="utf-8",
    )
    return p
