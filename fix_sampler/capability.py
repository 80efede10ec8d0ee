"""Platform capabilities consumed by the sampler.

The sampler never touches a global location service. It receives a LocationWatcher and a
Scheduler, so tests can swap in the deterministic versions from fix_sampler.simulate.
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Any, Callable, Hashable, Protocol

from fix_sampler.models import PositionError, PositionErrorCode, PositionSample, WatchOptions

logger = logging.getLogger(__name__)

SampleCallback = Callable[[PositionSample], None]
ErrorCallback = Callable[[PositionError], None]


class LocationWatcher(Protocol):
    """A continuous location subscription."""

    def start_watch(self, options: WatchOptions, on_sample: SampleCallback, on_error: ErrorCallback) -> Hashable:
        ...

    def cancel_watch(self, handle: Hashable) -> None:
        ...


class Scheduler(Protocol):
    """One-shot timers."""

    def after(self, duration_ms: int, callback: Callable[[], None]) -> Any:
        ...

    def cancel(self, handle: Any) -> None:
        ...


class ThreadingScheduler:
    """Real-time timers backed by threading.Timer."""

    def after(self, duration_ms: int, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(duration_ms / 1000.0, callback)
        timer.daemon = True
        timer.start()
        return timer

    def cancel(self, handle: threading.Timer) -> None:
        handle.cancel()


class PollingLocationWatcher:
    """Turn a blocking ``get_fix(timeout_s)`` function into a continuous watch.

    Each active watch runs its own daemon thread. Every fix goes to ``on_sample``.
    A ``None`` result is reported as TIMEOUT, a PermissionError as PERMISSION_DENIED,
    and any other exception as POSITION_UNAVAILABLE. Polling keeps going after an error,
    the way platform watches do. Ending the watch is the subscriber's job.
    """

    def __init__(
        self,
        get_fix: Callable[[float], PositionSample | None],
        *,
        poll_interval_s: float = 1.0,
    ) -> None:
        self._get_fix = get_fix
        self._poll_interval_s = poll_interval_s
        self._ids = itertools.count(1)
        self._stops: dict[int, threading.Event] = {}
        self._lock = threading.Lock()

    def start_watch(self, options: WatchOptions, on_sample: SampleCallback, on_error: ErrorCallback) -> int:
        handle = next(self._ids)
        stop = threading.Event()
        with self._lock:
            self._stops[handle] = stop
        t = threading.Thread(
            target=self._worker,
            args=(options, on_sample, on_error, stop),
            name=f"LocationWatch-{handle}",
            daemon=True,
        )
        t.start()
        return handle

    def cancel_watch(self, handle: int) -> None:
        with self._lock:
            stop = self._stops.pop(handle, None)
        if stop is not None:
            stop.set()

    def _worker(
        self,
        options: WatchOptions,
        on_sample: SampleCallback,
        on_error: ErrorCallback,
        stop: threading.Event,
    ) -> None:
        timeout_s = options.per_fix_timeout_ms / 1000.0
        while not stop.is_set():
            try:
                fix = self._get_fix(timeout_s)
            except PermissionError as exc:
                fix = None
                err = PositionError(PositionErrorCode.PERMISSION_DENIED, str(exc))
            except Exception as exc:
                logger.debug("get_fix 失败：%r", exc)
                fix = None
                err = PositionError(PositionErrorCode.POSITION_UNAVAILABLE, str(exc))
            else:
                err = PositionError(PositionErrorCode.TIMEOUT, f"{timeout_s:.1f}s 内没有新的定位") if fix is None else None

            if stop.is_set():
                return
            if fix is not None:
                on_sample(fix)
            elif err is not None:
                on_error(err)
            stop.wait(self._poll_interval_s)
