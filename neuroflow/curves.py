"""Smooth curved paths through a few control points, addressable by arc length."""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np
from matplotlib.path import Path
from scipy.interpolate import CubicSpline


class CurvePath:
    """Natural cubic spline through ``points`` with centripetal parametrisation.

    The curve is sampled once on construction; positions along it are looked
    up by arc length so a particle moving with linear progress moves at a
    constant speed along the drawn line.
    """

    def __init__(self, points: Sequence[Tuple[float, float]], samples: int = 96, alpha: float = 0.5):
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        if len(pts) == 0:
            raise ValueError("a curve needs at least one control point")
        # Drop consecutive duplicates; the spline knots must strictly increase.
        keep = np.ones(len(pts), dtype=bool)
        keep[1:] = np.any(np.abs(np.diff(pts, axis=0)) > 1e-9, axis=1)
        pts = pts[keep]
        self.control_points = pts

        if len(pts) == 1:
            self.vertices = np.repeat(pts, 2, axis=0)
        else:
            seg = np.linalg.norm(np.diff(pts, axis=0), axis=1) ** alpha
            knots = np.concatenate([[0.0], np.cumsum(seg)])
            spline = CubicSpline(knots, pts, bc_type="natural")
            self.vertices = spline(np.linspace(0.0, knots[-1], samples))

        steps = np.linalg.norm(np.diff(self.vertices, axis=0), axis=1)
        self._cumulative = np.concatenate([[0.0], np.cumsum(steps)])

    @property
    def length(self) -> float:
        return float(self._cumulative[-1])

    @property
    def start(self) -> Tuple[float, float]:
        return (float(self.vertices[0, 0]), float(self.vertices[0, 1]))

    @property
    def end(self) -> Tuple[float, float]:
        return (float(self.vertices[-1, 0]), float(self.vertices[-1, 1]))

    def point_at_length(self, distance: float) -> Tuple[float, float]:
        d = float(np.clip(distance, 0.0, self.length))
        x = np.interp(d, self._cumulative, self.vertices[:, 0])
        y = np.interp(d, self._cumulative, self.vertices[:, 1])
        return (float(x), float(y))

    def point_at(self, fraction: float) -> Tuple[float, float]:
        return self.point_at_length(fraction * self.length)

    def to_path(self) -> Path:
        return Path(self.vertices)
