"""Timed particle animation: clock, easing, phase sweeps and the local loop."""

from neuroflow.anim.easing import cubic_in_out, linear, quad_out, sin_in_out
from neuroflow.anim.loop import LOOP_EMISSIONS, LOOP_PERIOD, LoopAnimator, LoopHandle
from neuroflow.anim.phase import ParticlePlan, PhaseAnimator, plan_phase
from neuroflow.anim.scheduler import CanvasDriver, Handle, HandleGroup, Scheduler, Transition

__all__ = [
    "cubic_in_out",
    "linear",
    "quad_out",
    "sin_in_out",
    "LOOP_EMISSIONS",
    "LOOP_PERIOD",
    "LoopAnimator",
    "LoopHandle",
    "ParticlePlan",
    "PhaseAnimator",
    "plan_phase",
    "CanvasDriver",
    "Handle",
    "HandleGroup",
    "Scheduler",
    "Transition",
]
