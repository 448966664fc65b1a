"""
neuroflow: animated diagrams contrasting backpropagation with predictive coding.
"""

# Submodules
from neuroflow import anim, constants, coordinator, curves, data, geometry, graph, surface, visualizers

# Constants
from neuroflow.constants import (
    COLORS,
    NETWORK_LAYERS,
    SIGNAL_STYLES,
    Direction,
    Phase,
    SignalKind,
    Variant,
)

# Layout
from neuroflow.geometry import (
    Breakpoint,
    Geometry,
    LoopGeometry,
    classify_breakpoint,
    compute_geometry,
    compute_loop_geometry,
    point_scale,
)
from neuroflow.curves import CurvePath

# Graph and data
from neuroflow.graph import Edge, Graph, Neuron, build_graph
from neuroflow.data import SampleData, constant_sample_source, random_sample_source

# Animation
from neuroflow.anim import (
    LoopAnimator,
    ParticlePlan,
    PhaseAnimator,
    Scheduler,
    plan_phase,
)

# Surfaces
from neuroflow.surface import RenderSurface
from neuroflow.visualizers import LocalLoopVisualizer, NetworkVisualizer
from neuroflow.coordinator import PhaseCoordinator, bind

__all__ = [
    # Submodules
    "anim",
    "constants",
    "coordinator",
    "curves",
    "data",
    "geometry",
    "graph",
    "surface",
    "visualizers",
    # Constants
    "COLORS",
    "NETWORK_LAYERS",
    "SIGNAL_STYLES",
    "Direction",
    "Phase",
    "SignalKind",
    "Variant",
    # Layout
    "Breakpoint",
    "Geometry",
    "LoopGeometry",
    "classify_breakpoint",
    "compute_geometry",
    "compute_loop_geometry",
    "point_scale",
    "CurvePath",
    # Graph and data
    "Edge",
    "Graph",
    "Neuron",
    "build_graph",
    "SampleData",
    "constant_sample_source",
    "random_sample_source",
    # Animation
    "LoopAnimator",
    "ParticlePlan",
    "PhaseAnimator",
    "Scheduler",
    "plan_phase",
    # Surfaces
    "RenderSurface",
    "LocalLoopVisualizer",
    "NetworkVisualizer",
    "PhaseCoordinator",
    "bind",
]
