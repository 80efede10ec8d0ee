from __future__ import annotations

import threading

import pytest

from conftest import fix
from fix_sampler import LocationSampler, NoSignalAcquired, SamplerConfig, SessionState
from fix_sampler.capability import PollingLocationWatcher, ThreadingScheduler
from fix_sampler.models import WatchOptions


def _scripted_get_fix(accuracies):
    it = iter(accuracies)

    def get_fix(timeout_s):
        try:
            return fix(next(it))
        except StopIteration:
            return None

    return get_fix


def test_threading_scheduler_fires_and_cancels():
    sched = ThreadingScheduler()
    fired = threading.Event()
    never = threading.Event()

    sched.after(10, fired.set)
    h = sched.after(200, never.set)
    sched.cancel(h)

    assert fired.wait(2.0)
    assert not never.wait(0.4)


def test_polling_watcher_reports_fixes_and_timeouts():
    watcher = PollingLocationWatcher(_scripted_get_fix([100.0]), poll_interval_s=0.01)
    samples, errors = [], []
    got_error = threading.Event()

    def on_error(err):
        errors.append(err)
        got_error.set()

    h = watcher.start_watch(WatchOptions(per_fix_timeout_ms=50), samples.append, on_error)
    assert got_error.wait(2.0)
    watcher.cancel_watch(h)

    assert [s.accuracy_m for s in samples] == [100.0]
    assert errors[0].code.name == "TIMEOUT"


def test_sampler_end_to_end_with_threads():
    watcher = PollingLocationWatcher(_scripted_get_fix([150.0, 60.0, 12.0, 3.0]), poll_interval_s=0.01)
    sampler = LocationSampler(watcher, ThreadingScheduler(), SamplerConfig(deadline_ms=5000))

    result = sampler.acquire_best_effort_location().result(timeout=5)

    assert result.accuracy_m == 12.0
    assert sampler.last_session.state is SessionState.RESOLVED
    assert sampler.last_session.samples_seen == 3


def test_sampler_degrades_on_timeout_error_after_fixes():
    watcher = PollingLocationWatcher(_scripted_get_fix([150.0, 60.0]), poll_interval_s=0.01)
    sampler = LocationSampler(watcher, ThreadingScheduler(), SamplerConfig(deadline_ms=5000))

    result = sampler.acquire_best_effort_location().result(timeout=5)

    assert result.accuracy_m == 60.0
    assert sampler.last_session.exit_edge == "error"


def test_permission_error_rejects():
    def get_fix(timeout_s):
        raise PermissionError("denied by user")

    sampler = LocationSampler(PollingLocationWatcher(get_fix, poll_interval_s=0.01), ThreadingScheduler())
    fut = sampler.acquire_best_effort_location()

    with pytest.raises(NoSignalAcquired) as ei:
        fut.result(timeout=5)
    assert ei.value.reason == "permission_denied"
    assert "denied by user" in ei.value.detail.message


def test_backend_failure_maps_to_position_unavailable():
    def get_fix(timeout_s):
        raise OSError("no receiver")

    sampler = LocationSampler(PollingLocationWatcher(get_fix, poll_interval_s=0.01), ThreadingScheduler())
    exc = sampler.acquire_best_effort_location().exception(timeout=5)

    assert isinstance(exc, NoSignalAcquired)
    assert exc.reason == "no_signal"
    assert exc.detail.code.name == "POSITION_UNAVAILABLE"
