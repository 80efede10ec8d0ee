"""Deterministic capabilities and trace replay.

Everything here runs on virtual time: no threads, no sleeping. A recorded trace that took
minutes replays instantly and gives the same outcome every time.
"""

from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass, field
from typing import Callable, Iterable, Sequence, Union

from fix_sampler.capability import ErrorCallback, SampleCallback
from fix_sampler.config import SamplerConfig
from fix_sampler.errors import NoSignalAcquired
from fix_sampler.models import PositionError, PositionSample, SessionState, WatchOptions
from fix_sampler.sampler import SamplingSession

Event = Union[PositionSample, PositionError]


class VirtualScheduler:
    """A fake clock with a queue of one-shot timers."""

    def __init__(self) -> None:
        self.now_ms = 0
        self._seq = itertools.count()
        self._queue: list[tuple[int, int, Callable[[], None]]] = []
        self._cancelled: set[int] = set()

    def after(self, duration_ms: int, callback: Callable[[], None]) -> int:
        seq = next(self._seq)
        heapq.heappush(self._queue, (self.now_ms + int(duration_ms), seq, callback))
        return seq

    def cancel(self, handle: int) -> None:
        self._cancelled.add(handle)

    @property
    def pending(self) -> int:
        return sum(1 for _, seq, _ in self._queue if seq not in self._cancelled)

    def advance_to(self, t_ms: int) -> None:
        """Fire every timer due at or before ``t_ms``, in due order."""

        while self._queue and self._queue[0][0] <= t_ms:
            due, seq, cb = heapq.heappop(self._queue)
            if seq in self._cancelled:
                self._cancelled.discard(seq)
                continue
            self.now_ms = due
            cb()
        self.now_ms = max(self.now_ms, t_ms)

    def run(self) -> None:
        """Fire timers until the queue is empty."""

        while self._queue:
            self.advance_to(self._queue[0][0])


class ScriptedLocationWatcher:
    """Emit a fixed script of fixes and errors on a VirtualScheduler.

    Args:
        scheduler: Clock the script is played on.
        events: ``(offset_ms, event)`` pairs, offsets relative to start_watch().
    """

    def __init__(self, scheduler: VirtualScheduler, events: Iterable[tuple[int, Event]]) -> None:
        self._scheduler = scheduler
        self._events = sorted(events, key=lambda e: e[0])
        self._timers: dict[int, list[int]] = {}
        self._ids = itertools.count(1)
        self.options: WatchOptions | None = None
        self.started = 0
        self.cancelled = 0
        self.delivered = 0

    @property
    def active(self) -> int:
        return len(self._timers)

    def start_watch(self, options: WatchOptions, on_sample: SampleCallback, on_error: ErrorCallback) -> int:
        handle = next(self._ids)
        self.options = options
        self.started += 1
        timers: list[int] = []
        self._timers[handle] = timers
        for offset, ev in self._events:
            timers.append(self._scheduler.after(offset, self._emitter(ev, on_sample, on_error)))
        return handle

    def cancel_watch(self, handle: int) -> None:
        for t in self._timers.pop(handle, []):
            self._scheduler.cancel(t)
        self.cancelled += 1

    def _emitter(self, ev: Event, on_sample: SampleCallback, on_error: ErrorCallback) -> Callable[[], None]:
        def _fire() -> None:
            self.delivered += 1
            if isinstance(ev, PositionError):
                on_error(ev)
            else:
                on_sample(ev)

        return _fire


@dataclass(slots=True)
class ReplayResult:
    """Outcome of replaying one session on virtual time."""

    state: SessionState
    outcome: PositionSample | NoSignalAcquired | None
    exit_edge: str | None
    samples_seen: int
    finished_at_ms: int
    best_history: list[PositionSample] = field(default_factory=list)
    watch_cancelled: bool = False
    timer_pending: int = 0

    @property
    def sample(self) -> PositionSample | None:
        return self.outcome if isinstance(self.outcome, PositionSample) else None

    @property
    def error(self) -> NoSignalAcquired | None:
        return self.outcome if isinstance(self.outcome, NoSignalAcquired) else None


def replay(events: Sequence[tuple[int, Event]], config: SamplerConfig | None = None) -> ReplayResult:
    """Run one sampling session against a scripted trace.

    Args:
        events: ``(offset_ms, PositionSample | PositionError)`` pairs.
        config: Sampler parameters.

    Returns:
        ReplayResult with the outcome and the best-so-far history (one entry per handled fix).
    """

    clock = VirtualScheduler()
    watcher = ScriptedLocationWatcher(clock, events)
    history: list[PositionSample] = []
    finished_at: list[tuple[int, int]] = []

    session = SamplingSession(
        watcher,
        clock,
        config,
        on_progress=lambda _s, best: history.append(best),
    )
    session.start(on_done=lambda _sess: finished_at.append((clock.now_ms, clock.pending)))
    clock.run()

    return ReplayResult(
        state=session.state,
        outcome=session.outcome,
        exit_edge=session.exit_edge,
        samples_seen=session.samples_seen,
        finished_at_ms=finished_at[0][0] if finished_at else clock.now_ms,
        best_history=history,
        watch_cancelled=watcher.active == 0 and watcher.cancelled > 0,
        timer_pending=finished_at[0][1] if finished_at else clock.pending,
    )
