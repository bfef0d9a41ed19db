"""Plain-text result files for the gas and oscillator runs.

All files are whitespace separated and start with ``#`` comment lines so
gnuplot and ``numpy.loadtxt`` read them directly.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, TextIO, Tuple

import numpy as np
from numpy import ndarray

from duffing import DuffingOscillator
from paths import results_path
from simulation import Snapshot

log = logging.getLogger("gasbox.results")


def ensure_results_dir(directory: str | Path) -> Path:
    path = results_path(directory)
    path.mkdir(parents=True, exist_ok=True)
    return path


class _LineWriter:
    """Base for sinks that append lines to one file, opened lazily."""

    header: str = ""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._fh: Optional[TextIO] = None

    def _handle(self) -> TextIO:
        if self._fh is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = self.path.open('w', encoding='utf-8')
            if self.header:
                self._fh.write(self.header)
        return self._fh

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None
            log.info("Wrote %s", self.path)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class SnapshotWriter(_LineWriter):
    """Snapshot sink writing every frame as a gnuplot ``index`` block.

    Each block holds one ``x  y  speed`` row per particle, in particle
    order, and blocks are separated by two blank lines.
    """

    header = "# x\ty\tspeed\n"

    def __init__(self, path: str | Path):
        super().__init__(path)
        self.frames = 0

    def __call__(self, snapshot: Snapshot) -> None:
        fh = self._handle()
        if self.frames:
            fh.write("\n\n")
        fh.write(f"# step={snapshot.step} t={snapshot.time:.6f} "
                 f"P={snapshot.pressure:.9g} E={snapshot.energy:.9g}\n")
        for x, y, speed in zip(snapshot.r[0], snapshot.r[1], snapshot.speeds):
            fh.write(f"{x:.9g}\t{y:.9g}\t{speed:.9g}\n")
        self.frames += 1


class PressureWriter(_LineWriter):
    """Time-series sink: one ``t  p`` row per step."""

    header = "# t\tp\n"

    def __call__(self, time: float, pressure: float) -> None:
        self._handle().write(f"{time:.9g}\t{pressure:.9g}\n")


def write_duffing_data(osc: DuffingOscillator, name: str, directory: str | Path) -> Path:
    """Write the computed trajectory to ``<directory>/<name>.dat``."""
    path = ensure_results_dir(directory) / f"{name}.dat"
    np.savetxt(path, osc.as_array(), fmt="%.10g", header=osc.describe(), comments="# ")
    log.info("Wrote %d states to %s", len(osc), path)
    return path


def speed_histogram(speeds: ndarray, bins: int = 100) -> Tuple[ndarray, ndarray]:
    """Histogram of the finite, positive speeds.

    A zero-width range is widened by ``1e-9`` so that all samples land in
    a valid bin.  Returns ``(counts, edges)`` as from ``numpy.histogram``.
    """
    values = np.asarray(speeds, dtype=float)
    values = values[np.isfinite(values) & (values > 0.0)]
    if values.size == 0:
        return np.zeros(bins, dtype=int), np.linspace(0.0, 1.0, bins + 1)
    v_min = float(values.min())
    v_max = float(values.max())
    if v_max - v_min <= 1e-9:
        v_max = v_min + 1e-9
    return np.histogram(values, bins=bins, range=(v_min, v_max))
