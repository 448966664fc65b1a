"""Easing curves mapping linear progress in [0, 1] to eased progress (d3 conventions)."""

from __future__ import annotations

import math


def linear(t: float) -> float:
    return t


def cubic_in_out(t: float) -> float:
    t *= 2
    if t <= 1:
        return t * t * t / 2
    t -= 2
    return (t * t * t + 2) / 2


def sin_in_out(t: float) -> float:
    return (1 - math.cos(math.pi * t)) / 2


def quad_out(t: float) -> float:
    return t * (2 - t)
