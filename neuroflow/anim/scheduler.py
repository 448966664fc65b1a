"""Single-threaded virtual clock for timers and attribute transitions.

All times are milliseconds. Nothing here runs on its own: the clock moves
only when :meth:`Scheduler.advance` is called, either from a canvas timer
(:class:`CanvasDriver`), from animation export frames, or directly in tests.
Every scheduling call returns a :class:`Handle`; whoever scheduled the work
keeps the handle and is responsible for cancelling it.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import time
from typing import Callable, List, Optional, Set

from neuroflow.anim.easing import linear

log = logging.getLogger(__name__)


class Handle:
    """Cancellation handle for a timer, interval or transition."""

    def __init__(self, scheduler: "Scheduler", label: str = ""):
        self._scheduler = scheduler
        self.label = label
        self.cancelled = False
        self.finished = False

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.finished)

    def cancel(self) -> None:
        if not self.active:
            return
        self.cancelled = True
        self._scheduler._forget(self)
        self._on_cancel()

    def _on_cancel(self) -> None:
        pass

    def _finish(self) -> None:
        self.finished = True
        self._scheduler._forget(self)


class Timer(Handle):
    def __init__(self, scheduler, due: float, callback: Callable[[], None], interval: Optional[float] = None, label: str = ""):
        super().__init__(scheduler, label)
        self.due = due
        self.callback = callback
        self.interval = interval


class Transition(Handle):
    """Tween driven by the clock; ``update`` receives eased progress in [0, 1]."""

    def __init__(
        self,
        scheduler,
        start: float,
        duration: float,
        update: Callable[[float], None],
        ease: Callable[[float], float] = linear,
        on_start: Optional[Callable[[], None]] = None,
        on_end: Optional[Callable[[], None]] = None,
        on_cancel: Optional[Callable[[], None]] = None,
        label: str = "",
    ):
        super().__init__(scheduler, label)
        self.start = start
        self.duration = duration
        self.update = update
        self.ease = ease
        self.on_start = on_start
        self.on_end = on_end
        self.on_cancel = on_cancel
        self.started = False

    def _on_cancel(self) -> None:
        if self.on_cancel is not None:
            self.on_cancel()

    def _step(self, now: float) -> None:
        if now < self.start:
            return
        if not self.started:
            self.started = True
            if self.on_start is not None:
                self.on_start()
        if self.duration <= 0:
            t = 1.0
        else:
            t = min(1.0, (now - self.start) / self.duration)
        self.update(self.ease(t))
        if t >= 1.0:
            self._finish()
            if self.on_end is not None:
                self.on_end()


class Scheduler:
    """Virtual clock with one-shot timers, intervals and transitions."""

    def __init__(self, now: float = 0.0):
        self.now = float(now)
        self._heap: list = []
        self._seq = itertools.count()
        self._transitions: List[Transition] = []
        self._live: Set[Handle] = set()

    # -- scheduling ---------------------------------------------------------

    def call_later(self, delay: float, callback: Callable[[], None], label: str = "") -> Timer:
        timer = Timer(self, self.now + max(0.0, delay), callback, label=label)
        self._push(timer)
        return timer

    def call_every(self, interval: float, callback: Callable[[], None], label: str = "") -> Timer:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        timer = Timer(self, self.now + interval, callback, interval=interval, label=label)
        self._push(timer)
        return timer

    def transition(
        self,
        duration: float,
        update: Callable[[float], None],
        delay: float = 0.0,
        ease: Callable[[float], float] = linear,
        on_start: Optional[Callable[[], None]] = None,
        on_end: Optional[Callable[[], None]] = None,
        on_cancel: Optional[Callable[[], None]] = None,
        label: str = "",
    ) -> Transition:
        tr = Transition(
            self, self.now + max(0.0, delay), duration, update,
            ease=ease, on_start=on_start, on_end=on_end, on_cancel=on_cancel, label=label,
        )
        self._transitions.append(tr)
        self._live.add(tr)
        return tr

    # -- clock --------------------------------------------------------------

    def advance(self, dt: float) -> None:
        """Move the clock forward by ``dt`` ms, firing everything that falls due."""
        if dt < 0:
            raise ValueError(f"cannot move the clock backwards ({dt})")
        target = self.now + dt
        while self._heap and self._heap[0][0] <= target:
            due, _, timer = heapq.heappop(self._heap)
            if not timer.active:
                continue
            self.now = max(self.now, due)
            self._step_transitions()
            if timer.interval is not None:
                timer.due = due + timer.interval
                heapq.heappush(self._heap, (timer.due, next(self._seq), timer))
            else:
                timer._finish()
            timer.callback()
        self.now = target
        self._step_transitions()

    def pending(self) -> int:
        """Number of timers and transitions that can still fire."""
        return len(self._live)

    def cancel_all(self) -> None:
        for handle in list(self._live):
            handle.cancel()

    # -- internals ----------------------------------------------------------

    def _push(self, timer: Timer) -> None:
        heapq.heappush(self._heap, (timer.due, next(self._seq), timer))
        self._live.add(timer)

    def _forget(self, handle: Handle) -> None:
        self._live.discard(handle)

    def _step_transitions(self) -> None:
        if not self._transitions:
            return
        for tr in list(self._transitions):
            if tr.active:
                tr._step(self.now)
        self._transitions = [tr for tr in self._transitions if tr.active]


class HandleGroup:
    """The handles one component scheduled; ``cancel_all`` releases them together."""

    def __init__(self, name: str = ""):
        self.name = name
        self._handles: List[Handle] = []

    def add(self, handle: Handle) -> Handle:
        self._handles = [h for h in self._handles if h.active]
        self._handles.append(handle)
        return handle

    def cancel_all(self) -> int:
        cancelled = 0
        for handle in self._handles:
            if handle.active:
                handle.cancel()
                cancelled += 1
        self._handles.clear()
        if cancelled:
            log.debug(f"{self.name or 'group'}: cancelled {cancelled} handle(s)")
        return cancelled

    def __len__(self) -> int:
        return sum(1 for h in self._handles if h.active)


class CanvasDriver:
    """Advances a scheduler in wall-clock time from a matplotlib canvas timer."""

    def __init__(self, scheduler: Scheduler, canvas, interval_ms: int = 16):
        self.scheduler = scheduler
        self.canvas = canvas
        self._timer = canvas.new_timer(interval=interval_ms)
        self._timer.add_callback(self._tick)
        self._last: Optional[float] = None

    def start(self) -> None:
        self._last = time.monotonic()
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()
        self._last = None

    def _tick(self) -> None:
        now = time.monotonic()
        if self._last is None:
            self._last = now
        self.scheduler.advance((now - self._last) * 1000.0)
        self._last = now
        self.canvas.draw_idle()
