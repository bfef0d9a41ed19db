"""
Live pygame view of the gas.

``GasViewer`` is a snapshot sink: every call draws the box with its
particles coloured from blue (slowest) to red (fastest), a title line
with time, pressure and kinetic energy, and the current speed histogram.
Frames can also be dumped as PNG files to build an animation afterwards.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
import pygame
from numpy import ndarray

from box import Box
from results import speed_histogram
from simulation import Snapshot

log = logging.getLogger("gasbox.viewer")

BG_TOP = (24, 28, 40)
BG_BOTTOM = (8, 10, 16)
BOX_COLOR = (250, 250, 250)
BORDER_COLOR = (182, 186, 198)
BAR_COLOR = (31, 119, 180)
TEXT_COLOR = (230, 230, 235)


def get_font(size: int, *, bold: bool = False) -> "pygame.font.Font":
    """System sans-serif font with the usual fallbacks."""
    families = ["Segoe UI", "Roboto", "Arial", "sans-serif"]
    return pygame.font.SysFont(families, size, bold=bold)


def build_vertical_gradient(
    size: Tuple[int, int], top_color: Tuple[int, int, int], bottom_color: Tuple[int, int, int]
) -> pygame.Surface:
    """Create a vertical gradient surface for the window background."""
    width, height = size
    surface = pygame.Surface((max(width, 1), max(height, 1)))
    if height <= 1:
        surface.fill(top_color)
        return surface
    for y in range(height):
        ratio = y / (height - 1)
        color = tuple(int(top_color[i] + (bottom_color[i] - top_color[i]) * ratio) for i in range(3))
        pygame.draw.line(surface, color, (0, y), (width, y))
    return surface


def to_pixels(r: ndarray, box: Box, rect: pygame.Rect) -> ndarray:
    """Map 2×N box coordinates onto ``rect`` (y axis pointing up)."""
    r = np.asarray(r, dtype=float)
    px = rect.left + (r[0] - box.xmin) / box.width * rect.width
    py = rect.bottom - (r[1] - box.ymin) / box.height * rect.height
    return np.round(np.vstack((px, py))).astype(int)


def speed_colors(speeds: ndarray) -> List[Tuple[int, int, int]]:
    """Blue-to-red colour per particle, normalised over the current speeds."""
    speeds = np.asarray(speeds, dtype=float)
    if speeds.size == 0:
        return []
    v_min = float(np.min(speeds))
    v_max = float(np.max(speeds))
    denom = v_max - v_min if v_max > v_min else 1.0
    normalized = (speeds - v_min) / denom
    return [(int(255 * c), 0, int(255 * (1.0 - c))) for c in normalized]


class GasViewer:
    """Draw snapshots to a window (or any surface) as the run progresses."""

    def __init__(
        self,
        box: Box,
        radius: float,
        size: Tuple[int, int] = (1000, 640),
        fps: int = 30,
        bins: int = 100,
        frames_dir: Optional[str | Path] = None,
        surface: Optional[pygame.Surface] = None,
    ):
        self.box = box
        self.radius = radius
        self.fps = fps
        self.bins = bins
        self.frames_dir = Path(frames_dir) if frames_dir else None
        self.closed = False
        self._owns_display = surface is None
        if surface is None:
            pygame.init()
            surface = pygame.display.set_mode((int(size[0]), int(size[1])))
            pygame.display.set_caption("Hard-disk gas")
        elif not pygame.font.get_init():
            pygame.font.init()
        self.surface = surface
        self.clock = pygame.time.Clock()
        self._relayout(self.surface.get_size())
        if self.frames_dir is not None:
            self.frames_dir.mkdir(parents=True, exist_ok=True)

    def _relayout(self, size: Tuple[int, int]) -> None:
        width, height = size
        margin = max(12, int(height * 0.04))
        title_h = max(24, int(height * 0.07))
        side = max(10, min(height - title_h - 2 * margin, int(width * 0.6) - 2 * margin))
        self.box_rect = pygame.Rect(margin, title_h + margin, side, side)
        hist_left = self.box_rect.right + 2 * margin
        self.hist_rect = pygame.Rect(
            hist_left, title_h + margin, max(10, width - hist_left - margin), side
        )
        self.title_font = get_font(max(14, int(title_h * 0.55)), bold=True)
        self.small_font = get_font(max(11, int(title_h * 0.4)))
        self.background = build_vertical_gradient(size, BG_TOP, BG_BOTTOM)

    # -------------------------------------------------------------------------
    def draw(self, snapshot: Snapshot) -> None:
        self.surface.blit(self.background, (0, 0))
        title = (f"t = {snapshot.time:.2f} s   P = {snapshot.pressure:.4f}   "
                 f"E = {snapshot.energy:.4f}")
        self.surface.blit(self.title_font.render(title, True, TEXT_COLOR), (self.box_rect.left, 8))
        self._draw_particles(snapshot)
        self.draw_histogram(snapshot.speeds)

    def _draw_particles(self, snapshot: Snapshot) -> None:
        pygame.draw.rect(self.surface, BOX_COLOR, self.box_rect)
        points = to_pixels(snapshot.r, self.box, self.box_rect)
        r_px = max(1, int(round(self.radius / self.box.width * self.box_rect.width)))
        for idx, color in enumerate(speed_colors(snapshot.speeds)):
            pygame.draw.circle(self.surface, color, (int(points[0, idx]), int(points[1, idx])), r_px)
        pygame.draw.rect(self.surface, BORDER_COLOR, self.box_rect.inflate(6, 6), 3)

    def draw_histogram(self, speeds: ndarray) -> ndarray:
        """Draw the speed histogram bars; returns the bar heights in pixels."""
        rect = self.hist_rect
        counts, edges = speed_histogram(speeds, self.bins)
        peak = int(counts.max()) if counts.size else 0
        heights = np.zeros(len(counts), dtype=int)
        if peak > 0:
            heights = np.round(counts / peak * (rect.height - 20)).astype(int)
        bar_w = rect.width / max(len(counts), 1)
        for idx, h in enumerate(heights):
            if h <= 0:
                continue
            left = rect.left + int(idx * bar_w)
            bar = pygame.Rect(left, rect.bottom - int(h), max(1, int(bar_w * 0.9)), int(h))
            pygame.draw.rect(self.surface, BAR_COLOR, bar)
        pygame.draw.rect(self.surface, BORDER_COLOR, rect, 1)
        label = f"speed {edges[0]:.3g} .. {edges[-1]:.3g}   N = {len(speeds)}"
        self.surface.blit(self.small_font.render(label, True, TEXT_COLOR), (rect.left + 4, rect.top + 4))
        return heights

    # -------------------------------------------------------------------------
    def __call__(self, snapshot: Snapshot) -> None:
        if self.closed:
            return
        if self._owns_display:
            for event in pygame.event.get():
                if event.type == pygame.QUIT or (event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE):
                    log.info("Viewer closed at step %d", snapshot.step)
                    self.close()
                    return
        self.draw(snapshot)
        if self.frames_dir is not None:
            pygame.image.save(self.surface, str(self.frames_dir / f"frame_{snapshot.step:05d}.png"))
        if self._owns_display:
            pygame.display.flip()
            self.clock.tick(self.fps)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._owns_display:
            pygame.quit()
