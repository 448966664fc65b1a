"""Headless export: step the shared clock once per frame and write a GIF."""

from __future__ import annotations

import logging
from pathlib import Path

from matplotlib.animation import FuncAnimation, PillowWriter

from neuroflow.anim.scheduler import Scheduler
from neuroflow.surface import RenderSurface

log = logging.getLogger(__name__)


def export_gif(surface: RenderSurface, scheduler: Scheduler, path, seconds: float = 15.0, fps: int = 20, dpi=None) -> Path:
    """Render ``seconds`` of animation from ``surface`` into ``path``."""
    if fps <= 0:
        raise ValueError(f"fps must be positive, got {fps}")
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    frame_ms = 1000.0 / fps
    n_frames = max(1, int(round(seconds * fps)))

    def step(frame: int):
        if frame > 0:
            scheduler.advance(frame_ms)
        return []

    anim = FuncAnimation(surface.figure, step, frames=n_frames, interval=frame_ms, blit=False, repeat=False)
    log.info(f"Writing {n_frames} frames at {fps} fps to {path}")
    anim.save(str(path), writer=PillowWriter(fps=fps), dpi=dpi or surface.figure.dpi)
    return path
