"""
Simulation of a hard-disk gas in a 2D box.

This module defines a Simulation class that models the motion of many
identical disks in a square box centred on the origin.  The disks move
ballistically until they touch one another or a wall.  Touching disks
swap the velocity components along the line of centres (the elastic
result for equal masses); disks touching a wall have the corresponding
velocity component reversed.  Every wall reversal contributes ``m v^2 / 3``
to the box pressure estimate, which is averaged once per step.

The step is a plain sequential loop over the particles: particle ``i``
is first collided against every ``j > i``, then reflected off the walls,
then moved.  Later particles therefore see the already moved earlier
ones, exactly as in the classic single-pass formulation, so the loop is
not vectorised.

Callers observe a run through two sinks: a snapshot sink receiving the
state at the start of every step and a time-series sink receiving the
``(time, pressure)`` sample produced at its end.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import numpy as np
from numpy import ndarray

from box import Box
from config import GasParameters, grid_size
from particle import Particle

log = logging.getLogger("gasbox.simulation")


class NonFiniteStateError(FloatingPointError):
    """A particle position or velocity became NaN or infinite."""


@dataclass
class Snapshot:
    """State of the gas at the start of a step.

    Attributes
    ----------
    step: int
        Index of the step about to be computed.
    time: float
        ``step * dt``.
    r: ndarray
        Positions as a 2×N array (row 0 is x, row 1 is y).
    speeds: ndarray
        Speed of every particle, in particle order.
    energy: float
        Total kinetic energy.
    pressure: float
        Pressure finalized at the end of the previous step.
    """
    step: int
    time: float
    r: ndarray
    speeds: ndarray
    energy: float
    pressure: float


SnapshotSink = Callable[[Snapshot], None]
PressureSink = Callable[[float, float], None]


@dataclass
class StepResult:
    snapshot: Snapshot
    time: float
    pressure: float
    wall_impacts: int
    collisions: int


################################################################################
# Initial conditions
################################################################################

def grid_positions(side: float, particles: int) -> List[Tuple[float, float]]:
    """Centres of the first ``particles`` cells of a ceil(sqrt(n))² grid.

    The grid covers ``[-side/2, side/2]²``; cells are filled column by
    column (the outer index moves along x) and the spare cells stay empty.
    """
    cells = grid_size(particles)
    half = side / 2.0
    cell = side / cells
    positions = []
    for i in range(cells):
        for j in range(cells):
            if len(positions) == particles:
                return positions
            positions.append((-half + (i + 0.5) * cell, -half + (j + 0.5) * cell))
    return positions


def random_velocities(count: int, v_max: float, rng: np.random.Generator) -> ndarray:
    """Uniform heading in ``[0, 2pi)`` and uniform speed in ``[0, v_max]``.

    Returns a 2×N array.  Heading and speed are drawn alternately, per
    particle, so a given seed always yields the same particle-by-particle
    assignment regardless of ``count``.
    """
    v = np.zeros((2, count))
    for k in range(count):
        angle = rng.uniform(0.0, 2.0 * math.pi)
        speed = rng.uniform(0.0, v_max)
        v[0, k] = speed * math.cos(angle)
        v[1, k] = speed * math.sin(angle)
    return v


################################################################################
# Simulation class
################################################################################

class Simulation:
    """Evolve a hard-disk gas in a square box and estimate its pressure.

    Use :meth:`from_parameters` for the usual grid start, or pass ready
    made particles and a box for scripted scenarios.
    """

    def __init__(
        self,
        particles: List[Particle],
        box: Box,
        dt: float,
        steps: int = 0,
        snapshot_sink: Optional[SnapshotSink] = None,
        pressure_sink: Optional[PressureSink] = None,
    ):
        if not dt > 0.0:
            raise ValueError(f"dt must be positive, got {dt!r}")
        self._particles: List[Particle] = list(particles)
        self._box: Box = box
        self._dt: float = float(dt)
        self._steps: int = int(steps)
        self._step_no: int = 0
        self._pressure_history: List[Tuple[float, float]] = []
        self.snapshot_sink = snapshot_sink
        self.pressure_sink = pressure_sink

    @classmethod
    def from_parameters(
        cls,
        params: GasParameters,
        snapshot_sink: Optional[SnapshotSink] = None,
        pressure_sink: Optional[PressureSink] = None,
    ) -> 'Simulation':
        """Validate ``params`` and place the particles on the start grid.

        Raises
        ------
        config.InvalidParameterError
            Before any particle is created, when a parameter (typically the
            radius) is out of range.
        """
        params.validate()
        radius = params.effective_radius()
        rng = np.random.default_rng(params.seed)
        positions = grid_positions(params.side, params.particles)
        velocities = random_velocities(params.particles, params.v_max, rng)
        particles = [
            Particle(params.mass, x, y, velocities[0, k], velocities[1, k], radius)
            for k, (x, y) in enumerate(positions)
        ]
        log.info(
            "Created %d particles in a box of side %g (R=%g, v_max=%g)",
            params.particles, params.side, radius, params.v_max,
        )
        return cls(particles, Box.centered(params.side), params.dt, params.steps,
                   snapshot_sink=snapshot_sink, pressure_sink=pressure_sink)

    # -------------------------------------------------------------------------
    # Properties to expose the state
    @property
    def particles(self) -> List[Particle]:
        return self._particles

    @property
    def box(self) -> Box:
        return self._box

    @property
    def dt(self) -> float:
        return self._dt

    @property
    def steps(self) -> int:
        return self._steps

    @property
    def step_no(self) -> int:
        """Number of steps computed so far."""
        return self._step_no

    @property
    def elapsed_time(self) -> float:
        return self._step_no * self._dt

    @property
    def r(self) -> ndarray:
        """Return positions as a 2×N array."""
        return np.array([[p.x for p in self._particles], [p.y for p in self._particles]], dtype=float).reshape(2, -1)

    @property
    def v(self) -> ndarray:
        """Return velocities as a 2×N array."""
        return np.array([[p.vx for p in self._particles], [p.vy for p in self._particles]], dtype=float).reshape(2, -1)

    @property
    def pressure(self) -> float:
        return self._box.pressure()

    def speeds(self) -> ndarray:
        return np.array([p.speed() for p in self._particles], dtype=float)

    def get_pressure_history(self) -> List[Tuple[float, float]]:
        """Return a shallow copy of the recorded ``(time, pressure)`` samples."""
        return list(self._pressure_history)

    # -------------------------------------------------------------------------
    # Thermodynamic properties
    def kinetic_energy(self) -> float:
        """Total kinetic energy; a diagnostic that never feeds the dynamics."""
        return float(sum(p.kinetic_energy() for p in self._particles))

    def snapshot(self) -> Snapshot:
        return Snapshot(
            step=self._step_no,
            time=self._step_no * self._dt,
            r=self.r,
            speeds=self.speeds(),
            energy=self.kinetic_energy(),
            pressure=self._box.pressure(),
        )

    # -------------------------------------------------------------------------
    def collision_pass(self) -> int:
        """Resolve every unordered pair once (``i < j``); no wall or motion.

        Returns the number of pairs whose velocities were exchanged.
        """
        collisions = 0
        parts = self._particles
        for i in range(len(parts)):
            for j in range(i + 1, len(parts)):
                if parts[i].resolve_collision(parts[j]):
                    collisions += 1
        return collisions

    def step(self) -> StepResult:
        """Advance the gas by one time step of length ``dt``."""
        snapshot = self.snapshot()
        if self.snapshot_sink is not None:
            self.snapshot_sink(snapshot)

        self._box.reset_pressure_accumulators()

        collisions = 0
        wall_impacts = 0
        parts = self._particles
        for i in range(len(parts)):
            for j in range(i + 1, len(parts)):
                if parts[i].resolve_collision(parts[j]):
                    collisions += 1
            wall_impacts += parts[i].reflect_off_walls(self._box)
            parts[i].advance(self._dt)

        pressure = self._box.finalize_pressure()
        timestamp = snapshot.time
        self._step_no += 1
        self._validate_state()

        self._pressure_history.append((timestamp, pressure))
        if self.pressure_sink is not None:
            self.pressure_sink(timestamp, pressure)

        log.debug(
            "step %d t=%.4f P=%.6g E=%.6g collisions=%d wall impacts=%d",
            snapshot.step, timestamp, pressure, snapshot.energy, collisions, wall_impacts,
        )
        return StepResult(snapshot, timestamp, pressure, wall_impacts, collisions)

    def run(self, steps: Optional[int] = None) -> List[Tuple[float, float]]:
        """Compute ``steps`` steps (the configured count by default).

        Returns the ``(time, pressure)`` samples produced by this call.
        """
        count = self._steps if steps is None else int(steps)
        if count < 0:
            raise ValueError(f"steps must be >= 0, got {count!r}")
        log.info("Running %d steps of dt=%g with %d particles", count, self._dt, len(self._particles))
        start = len(self._pressure_history)
        for _ in range(count):
            self.step()
        log.info(
            "Finished at t=%.4f: P=%.6g E=%.6g",
            self.elapsed_time, self._box.pressure(), self.kinetic_energy(),
        )
        return self._pressure_history[start:]

    def _validate_state(self) -> None:
        for idx, particle in enumerate(self._particles):
            if not particle.is_finite():
                raise NonFiniteStateError(
                    f"particle {idx} has a non-finite state after step {self._step_no}: {particle!r}"
                )

    # -------------------------------------------------------------------------
    def __iter__(self) -> 'Simulation':
        return self

    def __next__(self) -> StepResult:
        """Compute the next step until the configured step count is reached."""
        if self._step_no >= self._steps:
            raise StopIteration
        return self.step()
