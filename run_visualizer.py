"""
Entry point for the learning-architecture diagrams.

Usage:
    # Live window, backpropagation view
    python run_visualizer.py view=backprop

    # Predictive coding with a custom topology
    python run_visualizer.py view=predictive topology=[4,6,6,3]

    # Local predictive-coding loop, exported headless to a GIF
    python run_visualizer.py view=loop mode=export export.path=loop.gif export.seconds=8

Keys in the live window: space pauses/resumes, b/p/l switch view.
"""

import logging

import hydra
import numpy as np
from omegaconf import DictConfig, OmegaConf

from neuroflow.anim.scheduler import CanvasDriver, Scheduler
from neuroflow.coordinator import VIEWS, PhaseCoordinator, bind
from neuroflow.data import random_sample_source
from neuroflow.export import export_gif
from neuroflow.surface import RenderSurface
from neuroflow.visualizers import LocalLoopVisualizer, NetworkVisualizer

log = logging.getLogger(__name__)

VIEW_KEYS = {"b": "backprop", "p": "predictive", "l": "loop"}


def build_view(cfg: DictConfig, view: str, surface: RenderSurface, scheduler: Scheduler, coordinator: PhaseCoordinator):
    """Create the visualizer for ``view`` and hook it up; returns (visualizer, unbind)."""
    if view not in VIEWS:
        raise ValueError(f"Unknown view: {view}")
    if view == "loop":
        vis = LocalLoopVisualizer(surface=surface, scheduler=scheduler)
        vis.mount()
        return vis, None
    vis = NetworkVisualizer(
        topology=list(cfg.topology),
        variant=view,
        surface=surface,
        scheduler=scheduler,
        rng=np.random.default_rng(cfg.seed),
    )
    unbind = bind(coordinator, vis)
    return vis, unbind


def run_live(cfg: DictConfig, scheduler: Scheduler, coordinator: PhaseCoordinator):
    import matplotlib.pyplot as plt

    fig = plt.figure(figsize=(cfg.width / cfg.dpi, cfg.height / cfg.dpi), dpi=cfg.dpi)
    fig.canvas.manager.set_window_title("Neural Learning Architectures")
    current = {}

    def show(view: str) -> None:
        if current:
            if current["unbind"] is not None:
                current["unbind"]()
            current["vis"].teardown()
            fig.clear()
        surface = RenderSurface(figure=fig)
        current["vis"], current["unbind"] = build_view(cfg, view, surface, scheduler, coordinator)
        current["view"] = view
        log.info(f"Showing {view}")

    def on_key(event) -> None:
        if event.key == " ":
            coordinator.toggle()
        elif event.key in VIEW_KEYS and VIEW_KEYS[event.key] != current.get("view"):
            coordinator.request_view(VIEW_KEYS[event.key])

    coordinator.on_view_request(show)
    fig.canvas.mpl_connect("key_press_event", on_key)
    show(cfg.view)

    driver = CanvasDriver(scheduler, fig.canvas, interval_ms=cfg.frame_interval_ms)
    driver.start()
    try:
        plt.show()
    finally:
        driver.stop()
        current["vis"].teardown()
        coordinator.stop()


def run_export(cfg: DictConfig, scheduler: Scheduler, coordinator: PhaseCoordinator):
    surface = RenderSurface(width=cfg.width, height=cfg.height, dpi=cfg.dpi)
    vis, _ = build_view(cfg, cfg.view, surface, scheduler, coordinator)
    try:
        path = export_gif(surface, scheduler, cfg.export.path, seconds=cfg.export.seconds, fps=cfg.export.fps)
    finally:
        vis.teardown()
        coordinator.stop()
    log.info(f"Saved {path} (pending work after teardown: {scheduler.pending()})")
    return path


@hydra.main(version_base=None, config_path="configs", config_name="config")
def main(cfg: DictConfig):
    log.info(f"Config:\n{OmegaConf.to_yaml(cfg)}")

    scheduler = Scheduler()
    coordinator = PhaseCoordinator(
        scheduler,
        topology=list(cfg.topology),
        source=random_sample_source(cfg.seed),
        interval=cfg.phase_interval_ms,
        is_animating=not cfg.start_paused,
    )

    if cfg.mode == "live":
        run_live(cfg, scheduler, coordinator)
    elif cfg.mode == "export":
        run_export(cfg, scheduler, coordinator)
    else:
        raise ValueError(f"Unknown mode: {cfg.mode}")


if __name__ == "__main__":
    main()
