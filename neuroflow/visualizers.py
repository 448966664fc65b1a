"""Render surface managers: own a surface, redraw it, and clean up after it.

A redraw always runs in the same order: cancel what the previous draw
scheduled, clear the surface, recompute geometry, define styling resources,
draw the static diagram, then hand off to an animator. Nothing is scheduled
until the old handles are gone, so no particle ever moves against stale
positions.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Sequence

import numpy as np

from neuroflow.anim.loop import LoopAnimator, LoopHandle, loop_paths
from neuroflow.anim.phase import PhaseAnimator
from neuroflow.anim.scheduler import HandleGroup, Scheduler
from neuroflow.constants import (
    COLORS,
    GRID_COLOR,
    LABEL_COLOR,
    NETWORK_LAYERS,
    NODE_STROKE,
    PANEL_COLOR,
    Direction,
    Phase,
    Variant,
    parse_phase,
    parse_variant,
)
from neuroflow.geometry import (
    Breakpoint,
    Geometry,
    LoopGeometry,
    compute_geometry,
    compute_loop_geometry,
    validate_topology,
    visible_layer_labels,
)
from neuroflow.graph import Graph, build_graph, build_nodes
from neuroflow.surface import STATIC, RenderSurface

log = logging.getLogger(__name__)

NETWORK_CAPTIONS = {
    Variant.BACKPROP: "Sequential Forward + Backward Gradient Flow",
    Variant.PREDICTIVE: "Bidirectional Predictive Inference",
}
MOUNT_DELAY = 120.0


class SurfaceManager:
    """Base class: resize observation, redraw bookkeeping and teardown."""

    name = "surface"

    def __init__(self, surface: Optional[RenderSurface] = None, scheduler: Optional[Scheduler] = None):
        self.surface = surface if surface is not None else RenderSurface()
        self.scheduler = scheduler if scheduler is not None else Scheduler()
        self.timers = HandleGroup(f"{self.name}-timers")
        self.geometry = None
        self.redraw_count = 0
        self.torn_down = False
        self._resize_cid = self.surface.on_resize(self._on_resize)

    def _on_resize(self, event) -> None:
        self.redraw()

    def redraw(self, keep_particles: bool = False) -> bool:
        """Rebuild the whole diagram; returns False when nothing could be drawn."""
        if self.torn_down:
            log.warning(f"{self.name}: redraw after teardown ignored")
            return False
        width, height = self.surface.size()
        geometry = self._compute_geometry(width, height)
        if keep_particles and self.geometry is not None and geometry.size_key == self.geometry.size_key:
            self.surface.clear(STATIC)
        else:
            self._cancel_pending()
            self.surface.clear()
            keep_particles = False
        self.geometry = None if geometry.is_empty else geometry
        if geometry.is_empty:
            log.debug(f"{self.name}: degenerate size {width:.0f}x{height:.0f}, nothing drawn")
            return False
        self._define_resources(geometry)
        self._draw_static(geometry)
        if not keep_particles:
            self._animate(geometry)
        self.redraw_count += 1
        self.surface.draw()
        return True

    def teardown(self) -> None:
        if self.torn_down:
            return
        self._cancel_pending()
        self.timers.cancel_all()
        self.surface.disconnect(self._resize_cid)
        self.surface.clear()
        self.geometry = None
        self.torn_down = True
        log.debug(f"{self.name}: torn down")

    # -- hooks ----------------------------------------------------------------

    def _compute_geometry(self, width: float, height: float):
        raise NotImplementedError

    def _cancel_pending(self) -> None:
        raise NotImplementedError

    def _define_resources(self, geometry) -> None:
        pass

    def _draw_static(self, geometry) -> None:
        raise NotImplementedError

    def _animate(self, geometry) -> None:
        pass


# ============================================================
# Layered network
# ============================================================


class NetworkVisualizer(SurfaceManager):
    """Layered network whose particles follow the externally driven phase."""

    name = "network"

    def __init__(
        self,
        topology: Sequence[int] = NETWORK_LAYERS,
        variant=Variant.BACKPROP,
        phase=Phase.IDLE,
        is_animating: bool = True,
        activations=None,
        errors=None,
        surface: Optional[RenderSurface] = None,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        super().__init__(surface, scheduler)
        self.topology = validate_topology(topology)
        self.variant = parse_variant(variant)
        self.phase = parse_phase(phase)
        self.is_animating = bool(is_animating)
        self.activations = activations
        self.errors = errors
        self.rng = rng if rng is not None else np.random.default_rng()
        self.animator = PhaseAnimator(self.surface, self.scheduler)
        self.graph: Graph = self._build_graph()

    def _build_graph(self) -> Graph:
        return build_graph(self.topology, self.variant, self.activations, self.errors, rng=self.rng)

    def update(
        self,
        topology: Optional[Sequence[int]] = None,
        variant=None,
        phase=None,
        is_animating: Optional[bool] = None,
        activations=None,
        errors=None,
    ) -> bool:
        """Apply new coordinator state; redraws when anything changed."""
        if self.torn_down:
            log.warning("network: update after teardown ignored")
            return False
        structural = False
        changed = False
        if topology is not None and validate_topology(topology) != self.topology:
            self.topology = validate_topology(topology)
            structural = True
        if variant is not None and parse_variant(variant) is not self.variant:
            self.variant = parse_variant(variant)
            structural = True
        if phase is not None and parse_phase(phase) is not self.phase:
            self.phase = parse_phase(phase)
            changed = True
        if is_animating is not None and bool(is_animating) != self.is_animating:
            self.is_animating = bool(is_animating)
            changed = True
        data_changed = False
        if activations is not None and activations is not self.activations:
            self.activations = activations
            data_changed = True
        if errors is not None and errors is not self.errors:
            self.errors = errors
            data_changed = True

        if structural:
            self.graph = self._build_graph()
        elif data_changed:
            self.graph = replace(self.graph, nodes=build_nodes(self.topology, self.activations, self.errors))
        if not (structural or changed or data_changed):
            return False
        log.debug(
            f"network: phase={self.phase.name} variant={self.variant.value} "
            f"animating={self.is_animating} structural={structural}"
        )
        # Paused redraws leave in-flight particles alone unless the structure moved.
        return self.redraw(keep_particles=not self.is_animating and not structural)

    def _compute_geometry(self, width, height) -> Geometry:
        return compute_geometry(self.topology, width, height)

    def _cancel_pending(self) -> None:
        self.animator.cancel_all()

    def _define_resources(self, geometry: Geometry) -> None:
        blur = geometry.profile.glow_blur
        self.surface.define_glow("glow-act", COLORS["activation"], blur)
        self.surface.define_glow("glow-err", COLORS["error"], blur)
        self.surface.define_glow("glow-pred", COLORS["prediction"], blur)

    def _draw_static(self, geometry: Geometry) -> None:
        s = self.surface
        prof = geometry.profile
        top = prof.margins.top

        s.text((12, 12), NETWORK_CAPTIONS[self.variant], color=LABEL_COLOR, size=prof.label_font - 1, ha="left")
        for layer, label in visible_layer_labels(geometry):
            s.text((geometry.layer_x[layer], top - 10), label, color=LABEL_COLOR, size=prof.label_font)

        for edge in self.graph.edges:
            color, dashes = COLORS["neutral"], None
            if self.variant is Variant.PREDICTIVE:
                if edge.direction is Direction.DOWN:
                    color, dashes = COLORS["prediction"], (4, 4)
                else:
                    color = COLORS["error"]
            s.line(
                geometry.position(edge.source), geometry.position(edge.target),
                color=color, width=prof.edge_width, alpha=prof.edge_opacity, dashes=dashes,
            )

        r = geometry.node_radius
        for node in self.graph.nodes:
            center = geometry.position(node.id)
            s.circle(center, r, facecolor=COLORS["bg"], edgecolor=NODE_STROKE, linewidth=prof.node_stroke, zorder=3)
            s.circle(center, r * 0.72 * abs(node.activation), facecolor=COLORS["activation"], alpha=0.45, zorder=3.1)
            err = abs(node.error)
            s.circle(
                center, r + prof.error_ring_gap, edgecolor=COLORS["error"],
                linewidth=prof.error_ring_width * err, alpha=0.55 if err > 0.05 else 0.0, zorder=3.2,
            )

    def _animate(self, geometry: Geometry) -> None:
        self.animator.animate_phase(self.phase, self.variant, self.graph, geometry, self.is_animating)


# ============================================================
# Predictive-coding local loop
# ============================================================


class LocalLoopVisualizer(SurfaceManager):
    """Two layers and an error unit, animated by the self-scheduled loop."""

    name = "local-loop"

    def __init__(self, surface: Optional[RenderSurface] = None, scheduler: Optional[Scheduler] = None):
        super().__init__(surface, scheduler)
        self.animator = LoopAnimator(self.surface, self.scheduler)
        self.loop: Optional[LoopHandle] = None
        self.visible = False
        self._paths = None

    def mount(self, delay: float = MOUNT_DELAY) -> None:
        """Draw for the first time after a short settle delay."""

        def show() -> None:
            self.visible = True
            self.redraw()

        self.timers.add(self.scheduler.call_later(delay, show, label="mount"))

    def _on_resize(self, event) -> None:
        if self.visible:
            self.redraw()

    def _compute_geometry(self, width, height) -> LoopGeometry:
        return compute_loop_geometry(width, height)

    def _cancel_pending(self) -> None:
        if self.loop is not None:
            self.animator.stop(self.loop)
            self.loop = None

    def _define_resources(self, geo: LoopGeometry) -> None:
        s = self.surface
        s.define_glow("glow-pred", COLORS["prediction"], geo.glow_blur, 0.6)
        s.define_glow("glow-act", COLORS["activation"], geo.glow_blur, 0.6)
        s.define_glow("glow-err", COLORS["error"], geo.glow_blur, 0.6)
        s.define_gradient("box-lower", [(0.0, COLORS["activation"], 0.12), (1.0, PANEL_COLOR, 0.9)])
        s.define_gradient("box-higher", [(0.0, COLORS["prediction"], 0.12), (1.0, PANEL_COLOR, 0.9)])
        s.define_gradient(
            "comp-grad", [(0.0, COLORS["error"], 0.18), (1.0, PANEL_COLOR, 1.0)],
            kind="radial", center=(0.5, 0.35), radius=0.65,
        )
        head = 4 if geo.breakpoint is Breakpoint.COMPACT else 5
        s.define_arrow("arr-pred", COLORS["prediction"], head)
        s.define_arrow("arr-state", COLORS["activation"], head)
        s.define_arrow("arr-error", COLORS["error"], head)

    def _draw_static(self, geo: LoopGeometry) -> None:
        s = self.surface
        compact = geo.breakpoint is Breakpoint.COMPACT
        fs = geo.font_scale

        x0, y0, x1, y1 = geo.inner_bounds
        grid = [
            (x, y)
            for x in np.arange(x0, x1 + 1e-9, geo.grid_step)
            for y in np.arange(y0, y1 + 1e-9, geo.grid_step)
        ]
        s.dots(grid, 1.0, color=GRID_COLOR, alpha=0.03)

        self._draw_box(geo, geo.lower_center, "LOWER LAYER", "(Sensory / L)", COLORS["activation"], "box-lower", "glow-act")
        self._draw_box(geo, geo.higher_center, "HIGHER LAYER", "(Abstract / L+1)", COLORS["prediction"], "box-higher", "glow-pred")

        cx, cy = geo.comparator_center
        r = geo.comparator_radius
        s.circle((cx, cy), r + 12, facecolor=COLORS["error"], alpha=0.04, glow="glow-err", zorder=2)
        s.circle((cx, cy), r + 4, edgecolor=COLORS["error"], linewidth=0.5, alpha=0.3, linestyle=(3, 5), zorder=2)
        s.circle((cx, cy), r, edgecolor=COLORS["error"], linewidth=1.2, gradient="comp-grad", zorder=2.5)
        s.text((cx, cy), "Σ", color=COLORS["error"], size=24 * (0.67 if compact else 1.0), family="serif", weight="light")

        badge_w, badge_h = (60, 14) if compact else (88, 18)
        badge_y = cy - r - (18 if compact else 26)
        s.rect(
            (cx - badge_w / 2, badge_y - badge_h / 2), badge_w, badge_h, rounding=4,
            facecolor=COLORS["error"], alpha=0.1, zorder=2.5,
        )
        s.text((cx, badge_y), "ERROR UNIT", color=COLORS["error"], size=8 * (0.75 if compact else 1.0), weight="bold")

        paths = loop_paths(geo)
        s.curve(paths["prediction"], color=COLORS["prediction"], width=geo.stroke_width, arrow="arr-pred", glow="glow-pred")
        s.curve(paths["state"], color=COLORS["activation"], width=geo.stroke_width, arrow="arr-state", glow="glow-act")
        s.curve(paths["error"], color=COLORS["error"], width=geo.stroke_width, arrow="arr-error", glow="glow-err")

        s.text(
            geo.prediction_label, "↓ PREDICTION" if compact else "↓ TOP-DOWN PREDICTION",
            color=COLORS["prediction"], size=9 * fs, weight="bold",
        )
        s.text(
            geo.state_label, "↑ STATE" if compact else "↑ ACTUAL STATE",
            color=COLORS["activation"], size=9 * fs, weight="bold",
        )
        ex, ey = geo.residual_label
        s.rect(
            (ex - geo.residual_width / 2, ey - 8), geo.residual_width, 16, rounding=7,
            facecolor=COLORS["bg"], edgecolor=COLORS["error"], linewidth=0.7, zorder=3,
        )
        s.text((ex, ey), "RESIDUAL ERROR", color=COLORS["error"], size=8 * fs, weight="bold")
        self._paths = paths

    def _draw_box(self, geo: LoopGeometry, center, label, sublabel, color, gradient_id, glow_id) -> None:
        s = self.surface
        compact = geo.breakpoint is Breakpoint.COMPACT
        box_w, box_h = geo.box_size
        cx, cy = center
        bx, by = cx - box_w / 2, cy - box_h / 2

        s.rect((bx - 6, by - 6), box_w + 12, box_h + 12, rounding=14, facecolor=color, alpha=0.05, glow=glow_id)
        s.rect((bx, by), box_w, box_h, rounding=10, edgecolor=color, linewidth=1, gradient=gradient_id)
        s.rect((bx + 1, by + 1), box_w - 2, 3, rounding=1.5, facecolor=color, alpha=0.7, zorder=2.6)

        cols, rows = 2, (3 if compact else 4)
        sp_x = box_w / (cols + 1)
        sp_y = (box_h - 12) / (rows + 1)
        dot_r = 3 if compact else 5
        for row in range(1, rows + 1):
            for col in range(1, cols + 1):
                nx, ny = bx + col * sp_x, by + 11 + row * sp_y
                if col < cols:
                    s.line((nx + dot_r, ny), (nx + sp_x - dot_r, ny), color=color, width=0.5, alpha=0.2, zorder=2.7)
                s.circle((nx, ny), dot_r, edgecolor=color, linewidth=1, alpha=0.4, zorder=2.7)
                s.circle((nx, ny), 1.2 if compact else 1.8, facecolor=color, alpha=0.65, zorder=2.8)

        s.text((cx, by + box_h + (14 if compact else 20)), label, color=color, size=10 * geo.font_scale, weight="bold")
        s.text((cx, by + box_h + (24 if compact else 34)), sublabel, color=LABEL_COLOR, size=9 * geo.font_scale)

    def _animate(self, geo: LoopGeometry) -> None:
        self.loop = self.animator.start(geo, self._paths)
