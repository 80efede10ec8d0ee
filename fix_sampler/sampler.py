"""Best-effort location sampling.

A session subscribes to the location service and keeps the most accurate fix it has seen.
It ends on whichever of these happens first:

  - a fix at or below ``good_enough_m`` arrives (resolve with that fix);
  - the subscription reports an error (resolve with the best fix, or reject if there is none);
  - the deadline expires (same rule as an error).

Before the outcome is published, the subscription and the deadline timer are cancelled.
Callbacks that arrive after that are ignored.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Any, Callable, Hashable

from fix_sampler.capability import LocationWatcher, Scheduler, ThreadingScheduler
from fix_sampler.config import SamplerConfig
from fix_sampler.errors import NoLocationCapability, NoSignalAcquired
from fix_sampler.models import PositionError, PositionSample, SessionState

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[PositionSample, PositionSample], None]


class SamplingSession:
    """One run of the sampler: ``PENDING -> RESOLVED | REJECTED``.

    Each of the three exit edges (good-enough fix, subscription error, deadline) is a guarded
    transition out of PENDING. Only the first one that fires takes effect.

    Attributes:
        state: Current SessionState.
        best: Most accurate fix so far (ties keep the earliest), or None.
        samples_seen: Number of fixes handled while PENDING.
        outcome: The resolved PositionSample or the NoSignalAcquired error, once finished.
        exit_edge: "good_enough", "error" or "deadline", once finished.
    """

    def __init__(
        self,
        watcher: LocationWatcher,
        scheduler: Scheduler,
        config: SamplerConfig | None = None,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self.config = config or SamplerConfig()
        self.config.validate()
        self._watcher = watcher
        self._scheduler = scheduler
        self._on_progress = on_progress
        # Re-entrant: a watcher may deliver synchronously from inside start_watch().
        self._lock = threading.RLock()

        self.state = SessionState.PENDING
        self.best: PositionSample | None = None
        self.samples_seen = 0
        self.outcome: PositionSample | NoSignalAcquired | None = None
        self.exit_edge: str | None = None

        self._started = False
        self._starting = False
        self._watch_handle: Hashable | None = None
        self._timer: Any = None
        self._on_done: Callable[[SamplingSession], None] | None = None

    @property
    def done(self) -> bool:
        return self.state is not SessionState.PENDING

    def start(self, on_done: Callable[[SamplingSession], None] | None = None) -> None:
        """Open the subscription and arm the deadline.

        Args:
            on_done: Called once with this session after the outcome is set.
        """

        with self._lock:
            if self._started:
                raise RuntimeError("SamplingSession.start() 只能调用一次")
            self._started = True
            self._on_done = on_done

            self._timer = self._scheduler.after(self.config.deadline_ms, self.handle_deadline)
            # on_done is held back until the handle is known and cancelled.
            self._starting = True
            try:
                handle = self._watcher.start_watch(self.config.watch_options(), self.handle_sample, self.handle_error)
            finally:
                self._starting = False
            if self.done:
                # Finished synchronously before the handle was known.
                self._watcher.cancel_watch(handle)
            else:
                self._watch_handle = handle
        if self.done:
            self._notify()
        logger.debug("采样开始：deadline=%sms, good_enough=%sm", self.config.deadline_ms, self.config.good_enough_m)

    def handle_sample(self, sample: PositionSample) -> None:
        with self._lock:
            if self.done:
                return
            self.samples_seen += 1
            logger.debug("收到定位：精度=%.1fm (#%s)", sample.accuracy_m, self.samples_seen)

            if self.best is None or sample.accuracy_m < self.best.accuracy_m:
                self.best = sample
            if self._on_progress is not None:
                try:
                    self._on_progress(sample, self.best)
                except Exception:
                    logger.exception("on_progress 回调出错，已忽略")

            if sample.accuracy_m <= self.config.good_enough_m:
                finished = self._finish(SessionState.RESOLVED, sample, "good_enough")
            else:
                finished = False
        if finished:
            self._notify()

    def handle_error(self, error: PositionError) -> None:
        with self._lock:
            if self.done:
                return
            if self.best is not None:
                logger.info("定位出错（%s），使用已有最佳定位 %.1fm", error.code.name, self.best.accuracy_m)
                self._finish(SessionState.RESOLVED, self.best, "error")
            else:
                self._finish(SessionState.REJECTED, NoSignalAcquired(error), "error")
        self._notify()

    def handle_deadline(self) -> None:
        with self._lock:
            if self.done:
                return
            if self.best is not None:
                logger.info("时间到，使用最佳定位 %.1fm（共 %s 次）", self.best.accuracy_m, self.samples_seen)
                self._finish(SessionState.RESOLVED, self.best, "deadline")
            else:
                self._finish(SessionState.REJECTED, NoSignalAcquired(deadline_expired=True), "deadline")
        self._notify()

    def _finish(self, state: SessionState, outcome: PositionSample | NoSignalAcquired, edge: str) -> bool:
        # Caller holds the lock and has checked the session is PENDING.
        self.state = state
        self.outcome = outcome
        self.exit_edge = edge
        if self._watch_handle is not None:
            self._watcher.cancel_watch(self._watch_handle)
            self._watch_handle = None
        if self._timer is not None:
            self._scheduler.cancel(self._timer)
            self._timer = None
        logger.info("采样结束：state=%s, edge=%s", state.value, edge)
        return True

    def _notify(self) -> None:
        with self._lock:
            if self._starting:
                return
            on_done, self._on_done = self._on_done, None
        if on_done is not None:
            on_done(self)


class LocationSampler:
    """Entry point used by the caller.

    Args:
        watcher: Location capability. None means the environment has no location service.
        scheduler: Timer capability. Defaults to real-time threading timers.
        config: Sampling parameters.
    """

    def __init__(
        self,
        watcher: LocationWatcher | None,
        scheduler: Scheduler | None = None,
        config: SamplerConfig | None = None,
    ) -> None:
        self._watcher = watcher
        self._scheduler = scheduler or ThreadingScheduler()
        self.config = config or SamplerConfig()
        self.last_session: SamplingSession | None = None

    def acquire_best_effort_location(
        self,
        on_progress: ProgressCallback | None = None,
    ) -> Future[PositionSample]:
        """Start a session and return a Future for its single outcome.

        Raises:
            NoLocationCapability: No watcher was provided.

        The Future resolves with a PositionSample or fails with NoSignalAcquired.
        Calls must be serialized by the caller.
        """

        if self._watcher is None:
            raise NoLocationCapability()

        future: Future[PositionSample] = Future()
        future.set_running_or_notify_cancel()

        def _deliver(session: SamplingSession) -> None:
            if isinstance(session.outcome, PositionSample):
                future.set_result(session.outcome)
            else:
                future.set_exception(session.outcome)

        session = SamplingSession(self._watcher, self._scheduler, self.config, on_progress=on_progress)
        self.last_session = session
        session.start(on_done=_deliver)
        return future
