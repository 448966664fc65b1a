"""The single matplotlib drawing surface the visualizers own.

The surface maps one data unit to one pixel, origin top-left, y downward, so
layout code can think in pixels the way it would on an SVG canvas. Artists are
grouped into named layers so a caller can clear the static diagram without
touching in-flight particles (and vice versa). Glows, gradients and arrow heads
are styling resources registered under a stable id and looked up when drawing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
import matplotlib.patheffects as pe
from matplotlib.backend_bases import ResizeEvent
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.collections import PatchCollection
from matplotlib.colors import to_rgb
from matplotlib.figure import Figure
from matplotlib.lines import Line2D
from matplotlib.patches import Circle, FancyArrowPatch, FancyBboxPatch, PathPatch

from neuroflow.constants import COLORS
from neuroflow.curves import CurvePath

log = logging.getLogger(__name__)

STATIC = "static"
PARTICLES = "particles"


# ============================================================
# Styling resources
# ============================================================


@dataclass(frozen=True)
class Glow:
    color: str
    blur: float
    opacity: float = 0.7

    def effects(self, px_to_pt: float, base_width: float = 0.0) -> list:
        halo = (base_width + 2 * self.blur) * px_to_pt
        return [
            pe.Stroke(linewidth=halo * 2, foreground=self.color, alpha=self.opacity * 0.25),
            pe.Stroke(linewidth=halo, foreground=self.color, alpha=self.opacity * 0.5),
            pe.Normal(),
        ]


@dataclass(frozen=True)
class Gradient:
    """Colour stops as (offset, colour, opacity); linear runs top to bottom."""

    stops: Tuple[Tuple[float, str, float], ...]
    kind: str = "linear"
    center: Tuple[float, float] = (0.5, 0.5)
    radius: float = 0.5

    def image(self, size: int = 64) -> np.ndarray:
        if self.kind == "linear":
            t = np.repeat(np.linspace(0.0, 1.0, size)[:, None], size, axis=1)
        elif self.kind == "radial":
            yy, xx = np.mgrid[0:size, 0:size] / max(size - 1, 1)
            t = np.clip(np.hypot(xx - self.center[0], yy - self.center[1]) / self.radius, 0.0, 1.0)
        else:
            raise ValueError(f"Unknown gradient kind: {self.kind}")
        offsets = [s[0] for s in self.stops]
        rgba = np.array([(*to_rgb(s[1]), s[2]) for s in self.stops])
        img = np.empty(t.shape + (4,))
        for ch in range(4):
            img[..., ch] = np.interp(t, offsets, rgba[:, ch])
        return img


@dataclass(frozen=True)
class ArrowHead:
    color: str
    size: float


# ============================================================
# Surface
# ============================================================


class RenderSurface:
    """A figure with one full-bleed axes, drawn in pixel coordinates."""

    def __init__(
        self,
        figure: Optional[Figure] = None,
        width: float = 800,
        height: float = 400,
        dpi: float = 100,
        background: str = COLORS["bg"],
    ):
        if figure is None:
            figure = Figure(figsize=(width / dpi, height / dpi), dpi=dpi)
            FigureCanvasAgg(figure)
        self.figure = figure
        self.figure.set_facecolor(background)
        self.ax = figure.add_axes([0, 0, 1, 1])
        self.ax.set_axis_off()
        self.ax.set_facecolor(background)
        self.ax.set_autoscale_on(False)
        self.ax.set_aspect("auto")
        self._layers: Dict[str, List] = {}
        self._resources: Dict[str, object] = {}
        self._fit_limits()

    # -- size -----------------------------------------------------------------

    @property
    def canvas(self):
        return self.figure.canvas

    @property
    def px_to_pt(self) -> float:
        return 72.0 / self.figure.dpi

    def size(self) -> Tuple[float, float]:
        bbox = self.figure.bbox
        return (float(bbox.width), float(bbox.height))

    def set_size(self, width: float, height: float, notify: bool = True) -> None:
        """Resize the figure and, like a window manager would, emit ``resize_event``."""
        dpi = self.figure.dpi
        self.figure.set_size_inches(max(width, 0.0) / dpi, max(height, 0.0) / dpi, forward=False)
        if notify:
            event = ResizeEvent("resize_event", self.canvas)
            self.canvas.callbacks.process("resize_event", event)

    def on_resize(self, callback: Callable) -> int:
        return self.canvas.mpl_connect("resize_event", callback)

    def disconnect(self, cid: int) -> None:
        self.canvas.mpl_disconnect(cid)

    def _fit_limits(self) -> None:
        w, h = self.size()
        self.ax.set_xlim(0, max(w, 1.0))
        self.ax.set_ylim(max(h, 1.0), 0)

    # -- resources ------------------------------------------------------------

    def define(self, resource_id: str, resource) -> None:
        self._resources[resource_id] = resource

    def define_glow(self, resource_id: str, color: str, blur: float, opacity: float = 0.7) -> None:
        self.define(resource_id, Glow(color, blur, opacity))

    def define_gradient(self, resource_id: str, stops, kind: str = "linear", center=(0.5, 0.5), radius: float = 0.5) -> None:
        self.define(resource_id, Gradient(tuple(stops), kind, center, radius))

    def define_arrow(self, resource_id: str, color: str, size: float) -> None:
        self.define(resource_id, ArrowHead(color, size))

    def resource(self, resource_id: str):
        try:
            return self._resources[resource_id]
        except KeyError:
            raise KeyError(f"No styling resource named {resource_id!r}") from None

    def _glow_effects(self, glow: Optional[str], base_width: float = 0.0):
        if glow is None:
            return None
        return self.resource(glow).effects(self.px_to_pt, base_width)

    # -- layers ---------------------------------------------------------------

    def _track(self, layer: str, artist):
        self._layers.setdefault(layer, []).append(artist)
        return artist

    def count(self, layer: str) -> int:
        return len(self._layers.get(layer, []))

    def artists(self, layer: str) -> List:
        return list(self._layers.get(layer, []))

    def remove(self, artist) -> None:
        for items in self._layers.values():
            if artist in items:
                items.remove(artist)
                artist.remove()
                return

    def clear(self, layer: Optional[str] = None) -> None:
        names = list(self._layers) if layer is None else [layer]
        for name in names:
            for artist in self._layers.pop(name, []):
                artist.remove()
        if layer is None:
            self._resources.clear()
            self._fit_limits()

    # -- primitives -----------------------------------------------------------

    def circle(
        self,
        center: Tuple[float, float],
        radius: float,
        layer: str = STATIC,
        facecolor="none",
        edgecolor="none",
        linewidth: float = 0.0,
        alpha: float = 1.0,
        linestyle="solid",
        glow: Optional[str] = None,
        gradient: Optional[str] = None,
        zorder: float = 2,
    ) -> Circle:
        patch = Circle(
            center, radius,
            facecolor=facecolor, edgecolor=edgecolor, linewidth=linewidth * self.px_to_pt,
            alpha=alpha, linestyle=self._dashes(linestyle), zorder=zorder,
        )
        effects = self._glow_effects(glow, linewidth)
        if effects:
            patch.set_path_effects(effects)
        self.ax.add_patch(patch)
        self._track(layer, patch)
        if gradient is not None:
            x, y = center
            self._gradient_fill(layer, gradient, (x - radius, y - radius, 2 * radius, 2 * radius), patch, zorder)
        return patch

    def line(
        self,
        start: Tuple[float, float],
        end: Tuple[float, float],
        layer: str = STATIC,
        color: str = COLORS["neutral"],
        width: float = 1.0,
        alpha: float = 1.0,
        dashes: Optional[Sequence[float]] = None,
        zorder: float = 1,
    ) -> Line2D:
        artist = Line2D(
            [start[0], end[0]], [start[1], end[1]],
            color=color, linewidth=width * self.px_to_pt, alpha=alpha,
            linestyle=self._dashes(dashes), zorder=zorder,
        )
        self.ax.add_line(artist)
        return self._track(layer, artist)

    def curve(
        self,
        path: CurvePath,
        layer: str = STATIC,
        color: str = COLORS["neutral"],
        width: float = 1.0,
        alpha: float = 1.0,
        arrow: Optional[str] = None,
        glow: Optional[str] = None,
        zorder: float = 2,
    ):
        if arrow is not None:
            head = self.resource(arrow)
            artist = FancyArrowPatch(
                path=path.to_path(), arrowstyle="-|>", mutation_scale=head.size * 2 * self.px_to_pt,
                color=head.color, linewidth=width * self.px_to_pt, alpha=alpha, zorder=zorder,
            )
            artist.set_edgecolor(color)
        else:
            artist = PathPatch(
                path.to_path(), facecolor="none", edgecolor=color,
                linewidth=width * self.px_to_pt, alpha=alpha, zorder=zorder,
            )
        effects = self._glow_effects(glow, width)
        if effects:
            artist.set_path_effects(effects)
        self.ax.add_patch(artist)
        return self._track(layer, artist)

    def rect(
        self,
        xy: Tuple[float, float],
        width: float,
        height: float,
        rounding: float = 0.0,
        layer: str = STATIC,
        facecolor="none",
        edgecolor="none",
        linewidth: float = 0.0,
        alpha: float = 1.0,
        gradient: Optional[str] = None,
        glow: Optional[str] = None,
        zorder: float = 2,
    ) -> FancyBboxPatch:
        patch = FancyBboxPatch(
            xy, width, height,
            boxstyle=f"round,pad=0,rounding_size={max(rounding, 0.0)}",
            facecolor=facecolor, edgecolor=edgecolor, linewidth=linewidth * self.px_to_pt,
            alpha=alpha, zorder=zorder,
        )
        effects = self._glow_effects(glow, linewidth)
        if effects:
            patch.set_path_effects(effects)
        self.ax.add_patch(patch)
        self._track(layer, patch)
        if gradient is not None:
            self._gradient_fill(layer, gradient, (xy[0], xy[1], width, height), patch, zorder)
        return patch

    def text(
        self,
        xy: Tuple[float, float],
        text: str,
        layer: str = STATIC,
        color: str = COLORS["neutral"],
        size: float = 10.0,
        weight: str = "normal",
        family: str = "monospace",
        ha: str = "center",
        va: str = "center",
        zorder: float = 4,
    ):
        artist = self.ax.text(
            xy[0], xy[1], text, color=color, fontsize=size * self.px_to_pt,
            fontweight=weight, family=family, ha=ha, va=va, zorder=zorder,
        )
        return self._track(layer, artist)

    def dots(
        self,
        centers: Sequence[Tuple[float, float]],
        radius: float,
        layer: str = STATIC,
        color: str = COLORS["neutral"],
        alpha: float = 1.0,
        zorder: float = 0.5,
    ) -> PatchCollection:
        """Many identical small circles as one collection (background grids)."""
        collection = PatchCollection(
            [Circle(c, radius) for c in centers],
            facecolor=color, edgecolor="none", alpha=alpha, zorder=zorder,
        )
        self.ax.add_collection(collection, autolim=False)
        return self._track(layer, collection)

    def draw(self) -> None:
        self.canvas.draw_idle()

    # -- helpers --------------------------------------------------------------

    def _dashes(self, dashes):
        if dashes is None:
            return "solid"
        if isinstance(dashes, str):
            return dashes
        return (0, tuple(d * self.px_to_pt for d in dashes))

    def _gradient_fill(self, layer: str, gradient_id: str, box, clip_patch, zorder: float) -> None:
        gradient = self.resource(gradient_id)
        x, y, w, h = box
        image = self.ax.imshow(
            gradient.image(), extent=(x, x + w, y + h, y), origin="upper",
            aspect="auto", interpolation="bilinear", zorder=zorder - 0.01,
        )
        image.set_clip_path(clip_patch)
        clip_patch.set_facecolor("none")
        self._track(layer, image)
