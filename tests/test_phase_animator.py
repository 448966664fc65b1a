"""Phase particle selection, timing and cleanup on the layered network."""

from collections import Counter

import numpy as np
import pytest

from neuroflow.anim.phase import PhaseAnimator, plan_phase
from neuroflow.anim.scheduler import Scheduler
from neuroflow.constants import COLORS, Direction, Phase, SignalKind, Variant
from neuroflow.geometry import compute_geometry
from neuroflow.graph import build_graph
from neuroflow.surface import PARTICLES, RenderSurface

TOPOLOGY = [3, 4, 4, 2]


@pytest.fixture
def wide():
    return compute_geometry(TOPOLOGY, 1000, 400)


@pytest.fixture
def backprop():
    return build_graph(TOPOLOGY, Variant.BACKPROP, rng=np.random.default_rng(0))


@pytest.fixture
def predictive():
    return build_graph(TOPOLOGY, Variant.PREDICTIVE, rng=np.random.default_rng(0))


def delay_histogram(plans):
    return dict(Counter(p.delay for p in plans))


class TestPlanBackprop:
    def test_forward_cascade(self, backprop, wide):
        plans = plan_phase(Phase.PHASE1, Variant.BACKPROP, backprop, wide)
        assert len(plans) == 36
        assert delay_histogram(plans) == {0.0: 12, 600.0: 16, 1200.0: 8}
        assert all(p.kind is SignalKind.ACTIVATION and not p.reversed for p in plans)

    def test_backward_sweep_runs_output_first(self, backprop, wide):
        plans = plan_phase(Phase.PHASE2, Variant.BACKPROP, backprop, wide)
        assert len(plans) == 36
        assert delay_histogram(plans) == {0.0: 8, 600.0: 16, 1200.0: 12}
        assert all(p.kind is SignalKind.ERROR and p.reversed for p in plans)
        first = [p for p in plans if p.delay == 0.0]
        assert all(p.origin.startswith("l3-") for p in first)

    def test_delay_step_follows_breakpoint(self, backprop):
        compact = compute_geometry(TOPOLOGY, 400, 400)
        plans = plan_phase(Phase.PHASE1, Variant.BACKPROP, backprop, compact)
        assert sorted(set(p.delay for p in plans)) == [0.0, 400.0, 800.0]


class TestPlanPredictive:
    def test_phase1_top_down_predictions(self, predictive, wide):
        plans = plan_phase(Phase.PHASE1, Variant.PREDICTIVE, predictive, wide)
        assert len(plans) == 36
        assert all(p.edge.direction is Direction.DOWN for p in plans)
        assert all(p.kind is SignalKind.PREDICTION for p in plans)
        assert delay_histogram(plans) == {0.0: 36}

    def test_phase2_bottom_up_errors(self, predictive, wide):
        plans = plan_phase(Phase.PHASE2, Variant.PREDICTIVE, predictive, wide)
        assert len(plans) == 36
        assert all(p.edge.direction is Direction.UP for p in plans)
        assert all(p.kind is SignalKind.ERROR for p in plans)
        assert delay_histogram(plans) == {0.0: 36}


class TestPlanNothing:
    def test_idle(self, backprop, predictive, wide):
        assert plan_phase(Phase.IDLE, Variant.BACKPROP, backprop, wide) == []
        assert plan_phase(0, "predictive", predictive, wide) == []

    def test_empty_geometry(self, backprop):
        assert plan_phase(Phase.PHASE1, Variant.BACKPROP, backprop, compute_geometry(TOPOLOGY, 0, 0)) == []


@pytest.fixture
def surface():
    s = RenderSurface(width=1000, height=400)
    s.define_glow("glow-act", COLORS["activation"], 3)
    s.define_glow("glow-err", COLORS["error"], 3)
    s.define_glow("glow-pred", COLORS["prediction"], 3)
    return s


class TestPhaseAnimator:
    def test_particles_scheduled_and_drawn(self, surface, backprop, wide):
        sched = Scheduler()
        animator = PhaseAnimator(surface, sched)
        assert animator.animate_phase(Phase.PHASE1, Variant.BACKPROP, backprop, wide) == 36
        assert surface.count(PARTICLES) == 36
        assert sched.pending() == 36
        assert animator.in_flight == 36

    def test_particle_moves_and_fades(self, surface, backprop, wide):
        sched = Scheduler()
        animator = PhaseAnimator(surface, sched)
        plans = plan_phase(Phase.PHASE1, Variant.BACKPROP, backprop, wide)
        animator.animate_phase(Phase.PHASE1, Variant.BACKPROP, backprop, wide)
        dot = surface.artists(PARTICLES)[0]
        (x0, y0), (x1, y1) = wide.position(plans[0].origin), wide.position(plans[0].destination)
        assert dot.get_radius() == wide.profile.particle_radius

        sched.advance(400)  # half of the 800 ms wide-profile travel
        cx, cy = dot.get_center()
        assert cx == pytest.approx((x0 + x1) / 2)
        assert cy == pytest.approx((y0 + y1) / 2)
        assert dot.get_alpha() == pytest.approx(0.45)

    def test_particles_remove_themselves(self, surface, backprop, wide):
        sched = Scheduler()
        animator = PhaseAnimator(surface, sched)
        animator.animate_phase(Phase.PHASE1, Variant.BACKPROP, backprop, wide)
        sched.advance(800)
        assert surface.count(PARTICLES) == 24
        sched.advance(2000)
        assert surface.count(PARTICLES) == 0
        assert sched.pending() == 0

    def test_not_animating_schedules_nothing(self, surface, backprop, wide):
        sched = Scheduler()
        animator = PhaseAnimator(surface, sched)
        assert animator.animate_phase(Phase.PHASE1, Variant.BACKPROP, backprop, wide, is_animating=False) == 0
        assert surface.count(PARTICLES) == 0
        assert sched.pending() == 0

    def test_cancel_all_removes_in_flight(self, surface, predictive, wide):
        sched = Scheduler()
        animator = PhaseAnimator(surface, sched)
        animator.animate_phase(Phase.PHASE2, Variant.PREDICTIVE, predictive, wide)
        sched.advance(100)
        assert animator.cancel_all() == 36
        assert surface.count(PARTICLES) == 0
        assert sched.pending() == 0
