"""Phase timer driving the network diagram, plus the view-switch notification."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from neuroflow.anim.scheduler import HandleGroup, Scheduler
from neuroflow.constants import NETWORK_LAYERS, Phase
from neuroflow.data import SampleData, SampleSource, random_sample_source
from neuroflow.geometry import validate_topology

log = logging.getLogger(__name__)

PHASE_INTERVAL = 5000.0

VIEWS = ("backprop", "predictive", "loop")


@dataclass(frozen=True)
class CoordinatorState:
    topology: Tuple[int, ...]
    phase: Phase
    is_animating: bool
    data: SampleData


Listener = Callable[[CoordinatorState], None]


def next_phase(phase: Phase) -> Phase:
    return Phase((int(phase) + 1) % len(Phase))


class PhaseCoordinator:
    """Cycles IDLE -> PHASE1 -> PHASE2 -> IDLE while running.

    Fresh sample data is drawn once per full cycle, when the phase wraps back
    to IDLE. Pausing stops the phase timer; resuming restarts it from the
    current phase.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        topology: Sequence[int] = NETWORK_LAYERS,
        source: Optional[SampleSource] = None,
        interval: float = PHASE_INTERVAL,
        is_animating: bool = True,
    ):
        self.scheduler = scheduler
        self.topology = validate_topology(topology)
        self.source = source if source is not None else random_sample_source()
        self.interval = interval
        self.phase = Phase.IDLE
        self.is_animating = is_animating
        self.data = self.source(self.topology)
        self.cycles = 0
        self.handles = HandleGroup("coordinator")
        self._listeners: List[Listener] = []
        self._view_listeners: List[Callable[[str], None]] = []
        if is_animating:
            self._start_timer()

    @property
    def state(self) -> CoordinatorState:
        return CoordinatorState(self.topology, self.phase, self.is_animating, self.data)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and push the current state to it immediately."""
        self._listeners.append(listener)
        listener(self.state)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def advance(self) -> Phase:
        self.phase = next_phase(self.phase)
        if self.phase is Phase.IDLE:
            self.data = self.source(self.topology)
            self.cycles += 1
        log.info(f"Phase -> {self.phase.name} (cycle {self.cycles})")
        self._notify()
        return self.phase

    def pause(self) -> None:
        if not self.is_animating:
            return
        self.is_animating = False
        self.handles.cancel_all()
        log.info("Paused")
        self._notify()

    def resume(self) -> None:
        if self.is_animating:
            return
        self.is_animating = True
        self._start_timer()
        log.info("Resumed")
        self._notify()

    def toggle(self) -> bool:
        if self.is_animating:
            self.pause()
        else:
            self.resume()
        return self.is_animating

    def stop(self) -> None:
        self.handles.cancel_all()
        self._listeners.clear()
        self._view_listeners.clear()

    # -- view switch ----------------------------------------------------------

    def on_view_request(self, callback: Callable[[str], None]) -> None:
        self._view_listeners.append(callback)

    def request_view(self, view: str) -> None:
        """Fire-and-forget request for the host to show another view."""
        if view not in VIEWS:
            raise ValueError(f"Unknown view: {view!r} (expected one of {VIEWS})")
        for callback in list(self._view_listeners):
            callback(view)

    # -- internals ------------------------------------------------------------

    def _start_timer(self) -> None:
        self.handles.add(self.scheduler.call_every(self.interval, self.advance, label="phase"))

    def _notify(self) -> None:
        state = self.state
        for listener in list(self._listeners):
            listener(state)


def bind(coordinator: PhaseCoordinator, visualizer) -> Callable[[], None]:
    """Forward coordinator state to a :class:`NetworkVisualizer`."""

    def push(state: CoordinatorState) -> None:
        visualizer.update(
            topology=state.topology,
            phase=state.phase,
            is_animating=state.is_animating,
            activations=state.data.activations,
            errors=state.data.errors,
        )

    return coordinator.subscribe(push)
