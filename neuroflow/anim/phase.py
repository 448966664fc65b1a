"""Phase-driven particle animation over the layered network.

Selection and timing (:func:`plan_phase`) are kept separate from drawing
(:class:`PhaseAnimator`) so which edges fire, in which direction and when can
be checked without a surface.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from neuroflow.anim.easing import cubic_in_out
from neuroflow.anim.scheduler import HandleGroup, Scheduler
from neuroflow.constants import SIGNAL_STYLES, Direction, Phase, SignalKind, Variant, parse_phase, parse_variant
from neuroflow.geometry import Geometry
from neuroflow.graph import Edge, Graph
from neuroflow.surface import PARTICLES, RenderSurface

log = logging.getLogger(__name__)

PARTICLE_OPACITY = 0.9


@dataclass(frozen=True)
class ParticlePlan:
    """One particle: travel from ``origin`` to ``destination`` after ``delay`` ms."""

    edge: Edge
    origin: str
    destination: str
    delay: float
    kind: SignalKind

    @property
    def reversed(self) -> bool:
        return self.origin != self.edge.source


def plan_phase(phase, variant, graph: Graph, geometry: Geometry) -> List[ParticlePlan]:
    """Which edges animate for ``phase``, in which direction and with what delay."""
    phase = parse_phase(phase)
    variant = parse_variant(variant)
    if phase is Phase.IDLE or geometry.is_empty:
        return []

    step = geometry.profile.delay_step
    n_layers = len(graph.topology)
    plans: List[ParticlePlan] = []

    if variant is Variant.BACKPROP:
        if phase is Phase.PHASE1:
            # Left-to-right cascade, one delay step per boundary.
            for boundary in range(n_layers - 1):
                for edge in graph.edges_between(boundary, Direction.FORWARD):
                    plans.append(ParticlePlan(edge, edge.source, edge.target, boundary * step, SignalKind.ACTIVATION))
        else:
            # Gradient sweep from the output back to the input over the same edges.
            for upper in range(n_layers - 1, 0, -1):
                delay = (n_layers - upper - 1) * step
                for edge in graph.edges_between(upper - 1, Direction.FORWARD):
                    plans.append(ParticlePlan(edge, edge.target, edge.source, delay, SignalKind.ERROR))
    else:
        # Layers act locally: one synchronised wave, no cascade.
        if phase is Phase.PHASE1:
            direction, kind = Direction.DOWN, SignalKind.PREDICTION
        else:
            direction, kind = Direction.UP, SignalKind.ERROR
        for edge in graph.edges_with(direction):
            plans.append(ParticlePlan(edge, edge.source, edge.target, 0.0, kind))

    return plans


class PhaseAnimator:
    """Turns particle plans into self-removing particles on the surface."""

    def __init__(self, surface: RenderSurface, scheduler: Scheduler):
        self.surface = surface
        self.scheduler = scheduler
        self.handles = HandleGroup("phase-animator")

    def animate_phase(self, phase, variant, graph: Graph, geometry: Geometry, is_animating: bool = True) -> int:
        """Schedule the particles for ``phase``; returns how many were scheduled."""
        if not is_animating:
            return 0
        plans = plan_phase(phase, variant, graph, geometry)
        for plan in plans:
            self._spawn(plan, geometry)
        if plans:
            log.debug(f"Phase {parse_phase(phase).name}/{parse_variant(variant).value}: {len(plans)} particles")
        return len(plans)

    def cancel_all(self) -> int:
        return self.handles.cancel_all()

    @property
    def in_flight(self) -> int:
        return len(self.handles)

    def _spawn(self, plan: ParticlePlan, geometry: Geometry) -> None:
        style = SIGNAL_STYLES[plan.kind]
        x0, y0 = geometry.position(plan.origin)
        x1, y1 = geometry.position(plan.destination)
        dot = self.surface.circle(
            (x0, y0), geometry.profile.particle_radius, layer=PARTICLES,
            facecolor=style.color, alpha=PARTICLE_OPACITY, glow=style.glow_id, zorder=5,
        )

        def update(t: float) -> None:
            dot.set_center((x0 + (x1 - x0) * t, y0 + (y1 - y0) * t))
            dot.set_alpha(PARTICLE_OPACITY * (1.0 - t))

        def remove() -> None:
            self.surface.remove(dot)

        self.handles.add(
            self.scheduler.transition(
                geometry.profile.particle_duration, update, delay=plan.delay,
                ease=cubic_in_out, on_end=remove, on_cancel=remove, label="particle",
            )
        )
