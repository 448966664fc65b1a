"""Colours, enums, and default topology shared by the diagrams."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict


NETWORK_LAYERS = (3, 4, 4, 2)

COLORS: Dict[str, str] = {
    "activation": "#059669",  # emerald 600
    "error": "#dc2626",       # red 600
    "prediction": "#2563eb",  # blue 600
    "neutral": "#64748b",     # slate 500
    "bg": "#0f172a",          # slate 900
}

# Non-themed greys used for outlines and secondary labels.
NODE_STROKE = "#334155"
LABEL_COLOR = "#475569"
PANEL_COLOR = "#1e293b"
GRID_COLOR = "#94a3b8"


class Variant(str, Enum):
    BACKPROP = "backprop"
    PREDICTIVE = "predictive"


class Phase(IntEnum):
    IDLE = 0
    PHASE1 = 1  # forward / top-down
    PHASE2 = 2  # backward / bottom-up


class Direction(str, Enum):
    FORWARD = "forward"
    UP = "up"
    DOWN = "down"


class SignalKind(str, Enum):
    ACTIVATION = "activation"
    ERROR = "error"
    PREDICTION = "prediction"


@dataclass(frozen=True)
class SignalStyle:
    color: str
    glow_id: str


SIGNAL_STYLES: Dict[SignalKind, SignalStyle] = {
    SignalKind.ACTIVATION: SignalStyle(COLORS["activation"], "glow-act"),
    SignalKind.ERROR: SignalStyle(COLORS["error"], "glow-err"),
    SignalKind.PREDICTION: SignalStyle(COLORS["prediction"], "glow-pred"),
}


def parse_variant(value) -> Variant:
    """Accept a ``Variant`` or its string value."""
    try:
        return Variant(value)
    except ValueError:
        raise ValueError(f"Unknown variant: {value!r}") from None


def parse_phase(value) -> Phase:
    try:
        return Phase(int(value))
    except (TypeError, ValueError):
        raise ValueError(f"Unknown phase: {value!r}") from None
