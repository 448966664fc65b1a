"""Surface managers: redraw ordering, resize, pause and teardown."""

import numpy as np
import pytest
from matplotlib.lines import Line2D

from neuroflow.anim.scheduler import Scheduler
from neuroflow.constants import Phase
from neuroflow.export import export_gif
from neuroflow.geometry import Breakpoint
from neuroflow.surface import PARTICLES, STATIC, RenderSurface
from neuroflow.visualizers import MOUNT_DELAY, LocalLoopVisualizer, NetworkVisualizer


def network(phase=Phase.PHASE1, variant="backprop", width=1000, height=400, **kwargs):
    sched = Scheduler()
    vis = NetworkVisualizer(
        topology=[3, 4, 4, 2],
        variant=variant,
        phase=phase,
        surface=RenderSurface(width=width, height=height),
        scheduler=sched,
        rng=np.random.default_rng(0),
        **kwargs,
    )
    return vis, sched


class TestNetworkRedraw:
    def test_initial_draw(self):
        vis, sched = network()
        assert vis.redraw()
        lines = [a for a in vis.surface.artists(STATIC) if isinstance(a, Line2D)]
        assert len(lines) == 36
        assert vis.surface.count(PARTICLES) == 36
        assert sched.pending() == 36

    def test_predictive_draws_both_edge_directions(self):
        vis, _ = network(variant="predictive", phase=Phase.IDLE)
        vis.redraw()
        lines = [a for a in vis.surface.artists(STATIC) if isinstance(a, Line2D)]
        assert len(lines) == 72
        assert vis.surface.count(PARTICLES) == 0

    def test_resize_replaces_particles(self):
        vis, sched = network()
        vis.redraw()
        old = vis.surface.artists(PARTICLES)
        vis.surface.set_size(600, 400)
        assert vis.redraw_count == 2
        assert vis.geometry.breakpoint is Breakpoint.MEDIUM
        new = vis.surface.artists(PARTICLES)
        assert len(new) == 36
        assert not set(map(id, old)) & set(map(id, new))
        assert sched.pending() == 36
        assert all(dot.get_radius() == 2.5 for dot in new)

    def test_degenerate_resize_draws_nothing(self):
        vis, sched = network()
        vis.redraw()
        vis.surface.set_size(10, 400)
        assert vis.geometry is None
        assert vis.surface.count(STATIC) == 0
        assert vis.surface.count(PARTICLES) == 0
        assert sched.pending() == 0
        vis.surface.set_size(1000, 400)
        assert vis.surface.count(PARTICLES) == 36

    def test_teardown_leaves_nothing_pending(self):
        vis, sched = network()
        vis.redraw()
        sched.advance(300)
        vis.teardown()
        assert sched.pending() == 0
        assert vis.surface.count(PARTICLES) == 0
        assert vis.surface.count(STATIC) == 0
        assert not vis.update(phase=Phase.PHASE2)
        vis.surface.set_size(700, 400)
        assert vis.redraw_count == 1


class TestNetworkUpdate:
    def test_unchanged_state_does_not_redraw(self):
        vis, _ = network()
        vis.redraw()
        assert not vis.update(phase=Phase.PHASE1, is_animating=True)
        assert vis.redraw_count == 1

    def test_phase_change_restarts_particles(self):
        vis, sched = network()
        vis.redraw()
        sched.advance(100)
        assert vis.update(phase=Phase.PHASE2)
        assert vis.surface.count(PARTICLES) == 36
        assert sched.pending() == 36

    def test_pause_keeps_in_flight_particles(self):
        vis, sched = network()
        vis.redraw()
        sched.advance(100)
        vis.update(is_animating=False)
        assert vis.surface.count(PARTICLES) == 36
        vis.update(phase=Phase.PHASE2)
        assert vis.surface.count(PARTICLES) == 36
        sched.advance(5000)
        assert vis.surface.count(PARTICLES) == 0
        assert sched.pending() == 0

    def test_resume_starts_current_phase(self):
        vis, sched = network(is_animating=False)
        vis.redraw()
        assert vis.surface.count(PARTICLES) == 0
        vis.update(is_animating=True)
        assert vis.surface.count(PARTICLES) == 36

    def test_structural_change_while_paused_clears_particles(self):
        vis, sched = network()
        vis.redraw()
        vis.update(is_animating=False)
        vis.update(topology=[2, 3, 2])
        assert vis.surface.count(PARTICLES) == 0
        assert sched.pending() == 0
        assert len(vis.graph.edges) == 12

    def test_data_change_keeps_weights(self):
        vis, _ = network(phase=Phase.IDLE)
        vis.redraw()
        weights = [e.weight for e in vis.graph.edges]
        vis.update(activations=[[1.0, 1.0, 1.0]], errors=[[0.3] * 3])
        assert [e.weight for e in vis.graph.edges] == weights
        assert vis.graph.node_map()["l0-n2"].activation == 1.0
        assert vis.graph.node_map()["l1-n0"].activation == 0.0


class TestLocalLoop:
    def test_mount_draws_after_settle_delay(self):
        sched = Scheduler()
        vis = LocalLoopVisualizer(surface=RenderSurface(width=1000, height=220), scheduler=sched)
        vis.mount()
        sched.advance(MOUNT_DELAY - 1)
        assert vis.redraw_count == 0
        assert vis.surface.count(STATIC) == 0
        sched.advance(1)
        assert vis.redraw_count == 1
        assert vis.surface.count(PARTICLES) == 13
        assert sched.pending() == 15

    def test_resize_before_mount_is_ignored(self):
        sched = Scheduler()
        vis = LocalLoopVisualizer(surface=RenderSurface(width=1000, height=220), scheduler=sched)
        vis.mount()
        vis.surface.set_size(400, 220)
        assert vis.redraw_count == 0
        sched.advance(MOUNT_DELAY)
        assert vis.geometry.breakpoint is Breakpoint.COMPACT

    def test_resize_restarts_loop(self):
        sched = Scheduler()
        vis = LocalLoopVisualizer(surface=RenderSurface(width=1000, height=220), scheduler=sched)
        vis.mount()
        sched.advance(MOUNT_DELAY + 500)
        first = vis.loop
        vis.surface.set_size(600, 220)
        assert first.stopped
        assert vis.loop is not first
        assert vis.surface.count(PARTICLES) == 13
        assert sched.pending() == 15

    def test_teardown_before_mount_cancels_it(self):
        sched = Scheduler()
        vis = LocalLoopVisualizer(surface=RenderSurface(width=1000, height=220), scheduler=sched)
        vis.mount()
        vis.teardown()
        sched.advance(1000)
        assert vis.redraw_count == 0
        assert sched.pending() == 0

    def test_teardown_stops_loop(self):
        sched = Scheduler()
        vis = LocalLoopVisualizer(surface=RenderSurface(width=1000, height=220), scheduler=sched)
        vis.mount(0)
        sched.advance(4000)
        vis.teardown()
        assert sched.pending() == 0
        assert vis.surface.count(PARTICLES) == 0


def test_export_gif_steps_the_clock(tmp_path):
    sched = Scheduler()
    vis = NetworkVisualizer(
        topology=[2, 3, 1], phase=Phase.PHASE1,
        surface=RenderSurface(width=240, height=120, dpi=40), scheduler=sched,
        rng=np.random.default_rng(1),
    )
    vis.redraw()
    out = export_gif(vis.surface, sched, tmp_path / "clip.gif", seconds=0.3, fps=10)
    assert out.exists()
    assert out.stat().st_size > 0
    assert 0 < sched.now <= 200.0 + 1e-6
    vis.teardown()
    assert sched.pending() == 0


def test_export_rejects_bad_fps(tmp_path):
    with pytest.raises(ValueError):
        export_gif(RenderSurface(width=100, height=100), Scheduler(), tmp_path / "x.gif", fps=0)
