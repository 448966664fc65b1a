"""Self-scheduled prediction / state / error cycle for the local-loop diagram.

Independent of the external phase: once started, the loop emits a burst of
particles along the three curved paths every :data:`LOOP_PERIOD` ms and pulses
the comparator ring. Error particles leave well after the prediction and state
particles, since the residual only exists once both inputs have arrived.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from neuroflow.anim.easing import quad_out, sin_in_out
from neuroflow.anim.scheduler import HandleGroup, Scheduler
from neuroflow.constants import COLORS, SIGNAL_STYLES, SignalKind
from neuroflow.curves import CurvePath
from neuroflow.geometry import LoopGeometry
from neuroflow.surface import PARTICLES, RenderSurface

log = logging.getLogger(__name__)

LOOP_PERIOD = 3800.0
TRAVEL_DURATION = 1700.0
GHOST_LAG = 90.0
GHOST_SCALE = 1.7
GHOST_OPACITY = 0.2
DOT_OPACITY = 0.95
PULSE_DURATION = 1100.0
PULSE_OPACITY = 0.6
PULSE_WIDTH = 1.5

PATH_KINDS: Dict[str, SignalKind] = {
    "prediction": SignalKind.PREDICTION,
    "state": SignalKind.ACTIVATION,
    "error": SignalKind.ERROR,
}


@dataclass(frozen=True)
class Emission:
    path: str
    delay: float
    radius_scale: float


# (path, delay ms, radius scale): a bright lead particle and a smaller trailing one per path.
LOOP_EMISSIONS = (
    Emission("prediction", 0.0, 1.0),
    Emission("prediction", 320.0, 0.65),
    Emission("state", 150.0, 1.0),
    Emission("state", 470.0, 0.65),
    Emission("error", 2100.0, 1.0),
    Emission("error", 2420.0, 0.65),
)


def loop_paths(geometry: LoopGeometry) -> Dict[str, CurvePath]:
    return {
        "prediction": CurvePath(geometry.prediction_path),
        "state": CurvePath(geometry.state_path),
        "error": CurvePath(geometry.error_path),
    }


@dataclass
class LoopHandle:
    """Everything one running loop scheduled; pass back to :meth:`LoopAnimator.stop`."""

    geometry: LoopGeometry
    handles: HandleGroup = field(default_factory=lambda: HandleGroup("loop"))
    cycles: int = 0
    stopped: bool = False


class LoopAnimator:
    def __init__(self, surface: RenderSurface, scheduler: Scheduler, period: float = LOOP_PERIOD):
        self.surface = surface
        self.scheduler = scheduler
        self.period = period
        self._running: List[LoopHandle] = []

    def start(self, geometry: LoopGeometry, paths: Dict[str, CurvePath] = None) -> LoopHandle:
        handle = LoopHandle(geometry)
        if geometry.is_empty:
            handle.stopped = True
            return handle
        paths = paths if paths is not None else loop_paths(geometry)

        def run_cycle() -> None:
            handle.cycles += 1
            for emission in LOOP_EMISSIONS:
                self._emit(handle, paths[emission.path], PATH_KINDS[emission.path], emission)

        def pulse() -> None:
            self._pulse(handle)

        run_cycle()
        handle.handles.add(self.scheduler.call_every(self.period, run_cycle, label="loop-cycle"))
        pulse()
        handle.handles.add(self.scheduler.call_every(self.period, pulse, label="loop-pulse"))
        self._running.append(handle)
        log.debug(f"Local loop started ({geometry.breakpoint.value}, period {self.period:.0f} ms)")
        return handle

    def stop(self, handle: LoopHandle) -> None:
        """Cancel pending repeats and remove particles still in flight."""
        if handle.stopped:
            return
        handle.handles.cancel_all()
        handle.stopped = True
        if handle in self._running:
            self._running.remove(handle)
        log.debug(f"Local loop stopped after {handle.cycles} cycle(s)")

    def stop_all(self) -> None:
        for handle in list(self._running):
            self.stop(handle)

    # -- particles ------------------------------------------------------------

    def _emit(self, handle: LoopHandle, path: CurvePath, kind: SignalKind, emission: Emission) -> None:
        style = SIGNAL_STYLES[kind]
        radius = handle.geometry.particle_radius * emission.radius_scale
        self._travel(handle, path, style.color, radius, DOT_OPACITY, emission.delay, glow=style.glow_id)
        self._travel(handle, path, style.color, radius * GHOST_SCALE, GHOST_OPACITY, emission.delay + GHOST_LAG)

    def _travel(self, handle: LoopHandle, path: CurvePath, color: str, radius: float, opacity: float, delay: float, glow=None) -> None:
        # Hidden at the start point until its delay elapses.
        dot = self.surface.circle(
            path.start, radius, layer=PARTICLES, facecolor=color, alpha=0.0, glow=glow, zorder=5,
        )

        def show() -> None:
            dot.set_alpha(opacity)

        def update(t: float) -> None:
            dot.set_center(path.point_at(t))

        def remove() -> None:
            self.surface.remove(dot)

        handle.handles.add(
            self.scheduler.transition(
                TRAVEL_DURATION, update, delay=delay, ease=sin_in_out,
                on_start=show, on_end=remove, on_cancel=remove, label="loop-particle",
            )
        )

    def _pulse(self, handle: LoopHandle) -> None:
        geo = handle.geometry
        r0 = geo.comparator_radius
        ring = self.surface.circle(
            geo.comparator_center, r0, layer=PARTICLES, edgecolor=COLORS["error"],
            linewidth=PULSE_WIDTH, alpha=PULSE_OPACITY, zorder=3,
        )

        def update(t: float) -> None:
            ring.set_radius(r0 + geo.pulse_growth * t)
            ring.set_alpha(PULSE_OPACITY * (1.0 - t))

        def remove() -> None:
            self.surface.remove(ring)

        handle.handles.add(
            self.scheduler.transition(
                PULSE_DURATION, update, ease=quad_out, on_end=remove, on_cancel=remove, label="loop-pulse",
            )
        )
