"""Responsive layout for the layered network and the local-loop diagrams.

Everything here is a pure function of (topology, width, height): identical
inputs give identical positions, which keeps redraws stable and makes the
layout testable without a drawing surface.

Positions are absolute surface pixels with the origin at the top-left corner
and y growing downward.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Sequence, Tuple

import numpy as np


Point = Tuple[float, float]

NETWORK_BREAKPOINTS = (520, 800)
LOOP_BREAKPOINTS = (480, 720)


class Breakpoint(str, Enum):
    COMPACT = "compact"
    MEDIUM = "medium"
    WIDE = "wide"


@dataclass(frozen=True)
class Margins:
    top: float
    right: float
    bottom: float
    left: float


@dataclass(frozen=True)
class LayoutProfile:
    """Breakpoint-dependent sizing for the layered network diagram."""

    margins: Margins
    radius_range: Tuple[float, float]
    x_padding: float
    y_padding: float
    particle_radius: float
    particle_duration: float  # ms
    delay_step: float         # ms between cascading layer boundaries
    glow_blur: float
    label_font: float
    edge_opacity: float
    edge_width: float
    node_stroke: float
    error_ring_gap: float
    error_ring_width: float
    hidden_labels: bool


NETWORK_PROFILES: Dict[Breakpoint, LayoutProfile] = {
    Breakpoint.COMPACT: LayoutProfile(
        margins=Margins(24, 16, 10, 16),
        radius_range=(5.0, 9.0),
        x_padding=0.3,
        y_padding=0.8,
        particle_radius=2.0,
        particle_duration=550.0,
        delay_step=400.0,
        glow_blur=2.0,
        label_font=8.0,
        edge_opacity=0.08,
        edge_width=0.6,
        node_stroke=0.8,
        error_ring_gap=2.0,
        error_ring_width=1.2,
        hidden_labels=False,
    ),
    Breakpoint.MEDIUM: LayoutProfile(
        margins=Margins(28, 28, 12, 28),
        radius_range=(6.0, 11.0),
        x_padding=0.25,
        y_padding=0.75,
        particle_radius=2.5,
        particle_duration=650.0,
        delay_step=500.0,
        glow_blur=2.5,
        label_font=9.0,
        edge_opacity=0.12,
        edge_width=0.8,
        node_stroke=0.9,
        error_ring_gap=2.5,
        error_ring_width=1.6,
        hidden_labels=True,
    ),
    Breakpoint.WIDE: LayoutProfile(
        margins=Margins(32, 40, 16, 40),
        radius_range=(7.0, 13.0),
        x_padding=0.2,
        y_padding=0.7,
        particle_radius=3.0,
        particle_duration=800.0,
        delay_step=600.0,
        glow_blur=3.0,
        label_font=10.0,
        edge_opacity=0.15,
        edge_width=1.0,
        node_stroke=1.0,
        error_ring_gap=3.0,
        error_ring_width=2.0,
        hidden_labels=True,
    ),
}

# Share of the inner height the neurons of the fullest layer may occupy.
BAND_FRACTION = 0.55
BAND_RANGE = (0.2, 0.8)
RADIUS_SPACING = 2.4


def classify_breakpoint(width: float, thresholds: Tuple[float, float] = NETWORK_BREAKPOINTS) -> Breakpoint:
    """Map a viewport width onto a layout density profile."""
    compact, medium = thresholds
    if width < compact:
        return Breakpoint.COMPACT
    if width < medium:
        return Breakpoint.MEDIUM
    return Breakpoint.WIDE


def point_scale(n: int, start: float, stop: float, padding: float = 0.0, align: float = 0.5) -> np.ndarray:
    """Evenly spaced positions for ``n`` ordinal values (d3 ``scalePoint``)."""
    if n <= 0:
        return np.zeros(0)
    step = (stop - start) / max(1.0, n - 1 + padding * 2)
    offset = start + (stop - start - step * (n - 1)) * align
    return offset + step * np.arange(n, dtype=np.float64)


def validate_topology(topology: Sequence[int]) -> Tuple[int, ...]:
    layers = tuple(int(n) for n in topology)
    if not layers:
        raise ValueError("topology must contain at least one layer")
    if any(n <= 0 for n in layers):
        raise ValueError(f"layer sizes must be positive, got {list(layers)}")
    return layers


def neuron_id(layer: int, index: int) -> str:
    return f"l{layer}-n{index}"


# ============================================================
# Layered network
# ============================================================


@dataclass(frozen=True)
class Geometry:
    """Node positions plus the sizing policy used to draw them."""

    width: float
    height: float
    breakpoint: Breakpoint
    profile: LayoutProfile
    node_radius: float
    positions: Dict[str, Point] = field(default_factory=dict)
    layer_x: Tuple[float, ...] = ()

    @property
    def margins(self) -> Margins:
        return self.profile.margins

    @property
    def is_empty(self) -> bool:
        return not self.positions

    @property
    def size_key(self) -> Tuple[float, float]:
        return (self.width, self.height)

    def position(self, node_id: str) -> Point:
        return self.positions[node_id]

    @classmethod
    def empty(cls, width: float, height: float) -> "Geometry":
        bp = classify_breakpoint(max(width, 0.0))
        return cls(width=width, height=height, breakpoint=bp, profile=NETWORK_PROFILES[bp], node_radius=0.0)


def compute_geometry(topology: Sequence[int], width: float, height: float) -> Geometry:
    """Lay out every neuron of ``topology`` inside a ``width`` x ``height`` surface."""
    layers = validate_topology(topology)
    width = float(width)
    height = float(height)
    if not (width > 0 and height > 0):
        return Geometry.empty(width, height)

    bp = classify_breakpoint(width)
    profile = NETWORK_PROFILES[bp]
    mg = profile.margins
    inner_w = width - mg.left - mg.right
    inner_h = height - mg.top - mg.bottom
    if inner_w <= 0 or inner_h <= 0:
        return Geometry.empty(width, height)

    max_nodes = max(layers)
    radius_from_height = inner_h * BAND_FRACTION / (max_nodes * RADIUS_SPACING)
    r_min, r_max = profile.radius_range
    node_radius = float(np.clip(radius_from_height, r_min, r_max))

    xs = point_scale(len(layers), 0.0, inner_w, profile.x_padding) + mg.left
    band_lo, band_hi = BAND_RANGE[0] * inner_h, BAND_RANGE[1] * inner_h

    positions: Dict[str, Point] = {}
    for layer, count in enumerate(layers):
        ys = point_scale(count, band_lo, band_hi, profile.y_padding) + mg.top
        for index, y in enumerate(ys):
            positions[neuron_id(layer, index)] = (float(xs[layer]), float(y))

    return Geometry(
        width=width,
        height=height,
        breakpoint=bp,
        profile=profile,
        node_radius=node_radius,
        positions=positions,
        layer_x=tuple(float(x) for x in xs),
    )


def layer_label(layer: int, n_layers: int) -> str:
    if layer == 0:
        return "Input"
    if layer == n_layers - 1:
        return "Output"
    return f"H{layer}"


def visible_layer_labels(geometry: Geometry) -> List[Tuple[int, str]]:
    """Layer labels to draw; compact layouts only keep Input and Output."""
    n = len(geometry.layer_x)
    labels = []
    for layer in range(n):
        if not geometry.profile.hidden_labels and 0 < layer < n - 1:
            continue
        labels.append((layer, layer_label(layer, n)))
    return labels


# ============================================================
# Predictive-coding local loop (two boxes + comparator)
# ============================================================


LOOP_MARGINS: Dict[Breakpoint, Margins] = {
    Breakpoint.COMPACT: Margins(28, 12, 36, 12),
    Breakpoint.MEDIUM: Margins(36, 36, 44, 36),
    Breakpoint.WIDE: Margins(44, 52, 52, 52),
}


@dataclass(frozen=True)
class LoopGeometry:
    width: float
    height: float
    breakpoint: Breakpoint
    margins: Margins
    box_size: Tuple[float, float] = (0.0, 0.0)
    comparator_radius: float = 0.0
    lower_center: Point = (0.0, 0.0)
    higher_center: Point = (0.0, 0.0)
    comparator_center: Point = (0.0, 0.0)
    prediction_path: Tuple[Point, ...] = ()
    state_path: Tuple[Point, ...] = ()
    error_path: Tuple[Point, ...] = ()
    prediction_label: Point = (0.0, 0.0)
    state_label: Point = (0.0, 0.0)
    residual_label: Point = (0.0, 0.0)
    residual_width: float = 0.0
    particle_radius: float = 0.0
    pulse_growth: float = 0.0
    grid_step: float = 0.0
    glow_blur: float = 0.0
    stroke_width: float = 0.0
    font_scale: float = 1.0
    valid: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.valid

    @property
    def size_key(self) -> Tuple[float, float]:
        return (self.width, self.height)

    @property
    def inner_bounds(self) -> Tuple[float, float, float, float]:
        """(x0, y0, x1, y1) of the drawable area inside the margins."""
        mg = self.margins
        return (mg.left, mg.top, self.width - mg.right, self.height - mg.bottom)


def compute_loop_geometry(width: float, height: float) -> LoopGeometry:
    """Lay out the lower box, higher box, comparator and the three signal paths."""
    width = float(width)
    height = float(height)
    bp = classify_breakpoint(max(width, 0.0), LOOP_BREAKPOINTS)
    mg = LOOP_MARGINS[bp]
    if not (width > 0 and height > 0):
        return LoopGeometry(width, height, bp, mg)
    iw = width - mg.left - mg.right
    ih = height - mg.top - mg.bottom
    if iw <= 0 or ih <= 0:
        return LoopGeometry(width, height, bp, mg)

    compact = bp is Breakpoint.COMPACT
    if compact:
        box_w, box_h = min(56.0, iw * 0.22), min(86.0, ih * 0.60)
        comp_r = min(20.0, iw * 0.09)
        pred_rise, state_drop, err_dip = min(22.0, ih * 0.18), min(18.0, ih * 0.15), min(24.0, ih * 0.20)
    elif bp is Breakpoint.MEDIUM:
        box_w, box_h, comp_r = 80.0, 120.0, 32.0
        pred_rise, state_drop, err_dip = 30.0, 22.0, 32.0
    else:
        box_w, box_h, comp_r = 96.0, 148.0, 38.0
        pred_rise, state_drop, err_dip = 42.0, 30.0, 44.0

    cy = ih / 2
    lower_cx = box_w / 2
    higher_cx = iw - box_w / 2
    comp_cx = iw / 2

    pred_y = cy - pred_rise
    state_y = cy + state_drop
    err_y = cy + err_dip
    upper_mid = (comp_cx + higher_cx) / 2
    lower_mid = (comp_cx + lower_cx) / 2

    prediction = (
        (higher_cx - box_w / 2, pred_y),
        (upper_mid, pred_y - (10 if compact else 16)),
        (comp_cx + comp_r + 2, cy - comp_r * 0.55),
    )
    state = (
        (lower_cx + box_w / 2, state_y),
        (lower_mid, state_y + (10 if compact else 14)),
        (comp_cx - comp_r - 2, cy + comp_r * 0.45),
    )
    error = (
        (comp_cx + comp_r + 2, cy + comp_r * 0.6),
        (upper_mid, err_y + (6 if compact else 10)),
        (higher_cx - box_w / 2, cy + (12 if compact else 18)),
    )

    def shift(p: Point) -> Point:
        return (float(p[0] + mg.left), float(p[1] + mg.top))

    return LoopGeometry(
        width=width,
        height=height,
        breakpoint=bp,
        margins=mg,
        box_size=(float(box_w), float(box_h)),
        comparator_radius=float(comp_r),
        lower_center=shift((lower_cx, cy)),
        higher_center=shift((higher_cx, cy)),
        comparator_center=shift((comp_cx, cy)),
        prediction_path=tuple(shift(p) for p in prediction),
        state_path=tuple(shift(p) for p in state),
        error_path=tuple(shift(p) for p in error),
        prediction_label=shift((upper_mid + (2 if compact else 6), pred_y - (14 if compact else 24))),
        state_label=shift((lower_mid, state_y + (20 if compact else 30))),
        residual_label=shift((upper_mid + 4, err_y + (20 if compact else 28))),
        residual_width=70.0 if compact else 108.0,
        particle_radius=2.5 if compact else 4.0,
        pulse_growth=18.0 if compact else 24.0,
        grid_step=20.0 if compact else 28.0,
        glow_blur=3.0 if compact else 5.0,
        stroke_width=1.4 if compact else 1.8,
        font_scale=0.8 if compact else 1.0,
        valid=True,
    )
