"""Run configuration: the ``config.json`` loader and typed parameter sets."""
from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import List, Optional

import configloader

from paths import config_path
from singleton import singleton

log = logging.getLogger("gasbox.config")


class InvalidParameterError(ValueError):
    """A simulation parameter is outside its admissible range."""


@singleton
class ConfigLoader(object):
    def __init__(self):
        self._loader = configloader.ConfigLoader()
        self._path = config_path()
        self.update()

    @property
    def path(self) -> Path:
        return self._path

    def update(self):
        with self._path.open("r", encoding="utf-8") as f:
            self._loader.update_from_json_file(f)

    def __getitem__(self, item):
        return self._loader[item]

    def __contains__(self, item):
        return item in self._loader

    def get(self, key: str, default=None):
        if key not in self._loader:
            return default
        return self._loader[key]

    def set(self, key: str | tuple, value):
        """
        Change record with key in config.
        It's not implemented by __setitem__ for config safety
        :param key: If key is str then changing cfg[key].
        If key is tuple (key_1, ..., key_n) then changing cfg[key_1][...][key_n]
        :param value: New value
        """

        if isinstance(key, str):
            if key not in self._loader:
                raise ValueError('key not in config keys')
            self._loader[key] = value
        else:
            to_update = self._loader
            for k in key[:-1]:
                if k not in to_update:
                    raise ValueError('key not in config keys')
                to_update = to_update[k]

            if key[-1] not in to_update:
                raise ValueError('key not in config keys')
            to_update[key[-1]] = value

        self._write()

    def _write(self) -> None:
        with self._path.open("w", encoding="utf-8") as f:
            json.dump(obj=dict(self._loader), fp=f, ensure_ascii=False, indent=2, separators=(',', ': '))


################################################################################
# Parameter sets
################################################################################

def grid_size(particles: int) -> int:
    """Cells per side of the square placement grid (ceil of sqrt(n))."""
    return int(math.ceil(math.sqrt(particles)))


@dataclass
class GasParameters:
    """Inputs of one hard-disk gas run.

    Attributes
    ----------
    side: float
        Side length of the square box; the box spans ``[-side/2, side/2]``.
    particles: int
        Number of disks.
    v_max: float
        Upper bound of the uniformly drawn initial speed.
    radius: float or None
        Disk radius.  ``None`` selects :meth:`suggested_radius`.
    mass: float
        Mass shared by every disk.
    dt, steps:
        Fixed time step and number of steps.
    seed: int or None
        Seed of the velocity generator; ``None`` draws fresh entropy.
    """
    side: float = 10.0
    particles: int = 100
    v_max: float = 2.0
    radius: Optional[float] = None
    mass: float = 1.0
    dt: float = 0.01
    steps: int = 300
    seed: Optional[int] = None

    def radius_limit(self) -> float:
        """Exclusive upper bound for the radius: half a grid cell."""
        return self.side / (2.0 * grid_size(self.particles))

    def suggested_radius(self) -> float:
        return 0.9 * self.radius_limit()

    def effective_radius(self) -> float:
        return self.suggested_radius() if self.radius is None else float(self.radius)

    def validate(self) -> None:
        """Raise :class:`InvalidParameterError` for unusable parameters."""
        self.validate_run()
        self.validate_radius()

    def validate_run(self) -> None:
        """Check everything except the radius."""
        if not self.side > 0.0:
            raise InvalidParameterError(f"box side must be positive, got {self.side!r}")
        if self.particles < 1:
            raise InvalidParameterError(f"particle count must be >= 1, got {self.particles!r}")
        if self.v_max < 0.0:
            raise InvalidParameterError(f"v_max must be >= 0, got {self.v_max!r}")
        if not self.mass > 0.0:
            raise InvalidParameterError(f"mass must be positive, got {self.mass!r}")
        if not self.dt > 0.0:
            raise InvalidParameterError(f"dt must be positive, got {self.dt!r}")
        if self.steps < 0:
            raise InvalidParameterError(f"steps must be >= 0, got {self.steps!r}")

    def validate_radius(self) -> None:
        radius = self.effective_radius()
        limit = self.radius_limit()
        if radius <= 0.0 or radius >= limit:
            raise InvalidParameterError(
                f"radius {radius!r} out of range: expected 0 < R < {limit:.6g}"
            )


@dataclass
class DuffingParameters:
    """Physical constants, time grid and initial state of the coupled pair."""
    alpha: float = -1.0
    beta: float = 3.0
    gamma: float = 1.5
    omega: float = 0.6
    coupling: float = 0.0
    mass: List[float] = field(default_factory=lambda: [1.0, 1.0])
    damping: List[float] = field(default_factory=lambda: [0.05, 0.05])
    t0: float = 0.0
    tf: float = 70.0
    dt: float = 0.01
    x1: float = -0.9999
    x2: float = 1.0001
    y1: float = 0.0
    y2: float = 0.0


def _coerce(value, fallback):
    """Convert ``value`` to the type of ``fallback``; keep ``fallback`` on failure."""
    try:
        if isinstance(fallback, bool):
            if not isinstance(value, bool):
                raise TypeError(f"expected true or false, got {value!r}")
            return value
        if isinstance(fallback, int):
            return int(value)
        if isinstance(fallback, float):
            return float(value)
        if isinstance(fallback, list):
            values = [float(v) for v in value]
            if len(values) != len(fallback):
                raise ValueError(f"expected {len(fallback)} values")
            return values
    except (TypeError, ValueError):
        log.warning("Ignoring malformed config value %r", value)
        return fallback
    return value


def _optional(value, cast):
    if value is None:
        return None
    try:
        return cast(value)
    except (TypeError, ValueError):
        log.warning("Ignoring malformed config value %r", value)
        return None


def _section(name: str) -> dict:
    cfg = ConfigLoader()
    section = cfg.get(name)
    return section if isinstance(section, dict) else {}


def load_gas_parameters() -> GasParameters:
    """Read the ``gas`` section of ``config.json``."""
    section = _section("gas")
    defaults = GasParameters()
    values = {}
    for f in fields(GasParameters):
        if f.name not in section:
            continue
        raw = section[f.name]
        if f.name == "radius":
            values[f.name] = _optional(raw, float)
        elif f.name == "seed":
            values[f.name] = _optional(raw, int)
        else:
            values[f.name] = _coerce(raw, getattr(defaults, f.name))
    return GasParameters(**values)


def load_duffing_parameters() -> DuffingParameters:
    """Read the ``duffing`` section of ``config.json``."""
    section = _section("duffing")
    defaults = DuffingParameters()
    values = {
        f.name: _coerce(section[f.name], getattr(defaults, f.name))
        for f in fields(DuffingParameters)
        if f.name in section
    }
    return DuffingParameters(**values)


@dataclass
class ResultsConfig:
    """Where result files go and what they are called."""
    directory: str = "results"
    positions_file: str = "positions.dat"
    pressure_file: str = "pressure.dat"


def load_results_config() -> ResultsConfig:
    section = _section("results")
    defaults = ResultsConfig()
    return ResultsConfig(**{
        f.name: str(section.get(f.name, getattr(defaults, f.name)))
        for f in fields(ResultsConfig)
    })


@dataclass
class ViewerConfig:
    size: List[float] = field(default_factory=lambda: [1000.0, 640.0])
    fps: int = 30
    histogram_bins: int = 100
    save_frames: bool = False


def load_viewer_config() -> ViewerConfig:
    section = _section("viewer")
    defaults = ViewerConfig()
    values = {
        f.name: _coerce(section[f.name], getattr(defaults, f.name))
        for f in fields(ViewerConfig)
        if f.name in section
    }
    return ViewerConfig(**values)


def load_logging_config() -> tuple[str, Optional[str]]:
    """Return ``(level, log_file)`` from the ``logging`` section."""
    section = _section("logging")
    level = str(section.get("level", "INFO")).upper()
    log_file = section.get("file")
    return level, (str(log_file) if log_file else None)
