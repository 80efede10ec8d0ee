from __future__ import annotations

import pytest

from conftest import fix
from fix_sampler.inspect import export_replay_csv, inspect_samples
from fix_sampler.simulate import replay
from fix_sampler.trace_io import events_from_samples, load_samples


def test_load_samples_skips_bad_rows(trace_csv):
    samples, summary = load_samples(trace_csv)

    assert [s.accuracy_m for s in samples] == [120.0, 45.0, 18.0, 6.0]
    assert summary.rows_total == 6
    assert summary.rows_parsed == 4
    assert summary.rows_skipped == 2
    assert samples[0].captured_at_ms == 1735689600000
    assert samples[0].captured_at_s == pytest.approx(1735689600.0)


def test_missing_column_raises(tmp_path):
    p = tmp_path / "bad.csv"
    p.write_text("geoTime,latitude,longitude\n1,2,3\n", encoding="utf-8")

    with pytest.raises(KeyError, match="horizontalAccuracy"):
        load_samples(p)


def test_events_offsets_are_relative_and_scaled(trace_csv):
    samples, _ = load_samples(trace_csv)

    events = events_from_samples(samples)
    assert [t for t, _ in events] == [0, 1000, 3000, 4000]

    events = events_from_samples(samples, start_index=1, time_scale=2.0)
    assert [t for t, _ in events] == [0, 1000, 1500]
    assert events[0][1].accuracy_m == 45.0


def test_events_edge_cases():
    assert events_from_samples([fix(10)], start_index=5) == []
    with pytest.raises(ValueError):
        events_from_samples([fix(10)], time_scale=0)
    with pytest.raises(ValueError):
        events_from_samples([fix(10)], start_index=-1)


def test_replay_of_recorded_trace(trace_csv):
    samples, _ = load_samples(trace_csv)
    res = replay(events_from_samples(samples))

    assert res.sample.accuracy_m == 18.0
    assert res.finished_at_ms == 3000


def test_inspect_samples(trace_csv):
    samples, _ = load_samples(trace_csv)
    res = inspect_samples(samples, good_enough_m=20)

    assert res.samples == 4
    assert res.good_enough == 2
    assert res.first_good_enough_index == 2
    assert res.accuracy.min == 6.0
    assert res.accuracy.max == 120.0
    assert res.delta.count == 3

    empty = inspect_samples([], good_enough_m=20)
    assert empty.samples == 0
    assert empty.accuracy is None


def test_export_replay_csv(trace_csv, tmp_path):
    samples, _ = load_samples(trace_csv)
    res = replay(events_from_samples(samples))
    out = tmp_path / "history.csv"

    export_replay_csv(res, out, "Asia/Shanghai")

    lines = out.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "step,time_local,epoch_ms,best_latitude,best_longitude,best_accuracy_m"
    assert len(lines) == 4
    assert lines[-1].endswith(",18.0")


def test_non_finite_accuracy_rows_are_skipped(tmp_path):
    p = tmp_path / "nan.csv"
    p.write_text(
        "geoTime,latitude,longitude,horizontalAccuracy\n"
        "1000,31.23,121.47,nan\n"
        "2000,31.23,121.47,25\n"
        "3000,31.23,121.47,inf\n"
        "4000,31.23,121.47,22\n",
        encoding="utf-8",
    )
    samples, summary = load_samples(p)

    assert [s.accuracy_m for s in samples] == [25.0, 22.0]
    assert summary.rows_skipped == 2

    res = replay(events_from_samples(samples))
    assert res.sample.accuracy_m == 22.0
    assert res.exit_edge == "deadline"
