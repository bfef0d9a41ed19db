"""A single hard disk: kinematic state, wall reflection and pair collisions."""
from __future__ import annotations

import math
from typing import Tuple

from box import Box


class Particle:
    """Hard disk moving ballistically between collisions.

    The heading is never stored; :meth:`heading` derives it from the
    velocity every time it is asked for.
    """

    def __init__(self, mass: float = 1.0, x: float = 0.0, y: float = 0.0,
                 vx: float = 0.0, vy: float = 0.0, radius: float = 0.1):
        self.initialize(mass, x, y, vx, vy, radius)

    def initialize(self, mass: float, x: float, y: float, vx: float, vy: float, radius: float) -> None:
        """Set the full particle state."""
        if not mass > 0.0:
            raise ValueError(f"mass must be positive, got {mass!r}")
        if not radius > 0.0:
            raise ValueError(f"radius must be positive, got {radius!r}")
        self.m = float(mass)
        self.x = float(x)
        self.y = float(y)
        self.vx = float(vx)
        self.vy = float(vy)
        self.R = float(radius)

    def __repr__(self) -> str:
        return (f"Particle(m={self.m!r}, x={self.x!r}, y={self.y!r}, "
                f"vx={self.vx!r}, vy={self.vy!r}, R={self.R!r})")

    # -------------------------------------------------------------------------
    def position(self) -> Tuple[float, float]:
        return self.x, self.y

    def velocity(self) -> Tuple[float, float]:
        return self.vx, self.vy

    def speed(self) -> float:
        return math.sqrt(self.vx * self.vx + self.vy * self.vy)

    def heading(self) -> float:
        """Angle of the velocity with respect to the x axis, in ``(-pi, pi]``."""
        return math.atan2(self.vy, self.vx)

    def kinetic_energy(self) -> float:
        return 0.5 * self.m * (self.vx * self.vx + self.vy * self.vy)

    def is_finite(self) -> bool:
        return all(math.isfinite(value) for value in (self.x, self.y, self.vx, self.vy))

    # -------------------------------------------------------------------------
    def advance(self, dt: float) -> None:
        """Free flight over ``dt``; velocities only change in collisions."""
        self.x += self.vx * dt
        self.y += self.vy * dt

    def reflect_off_walls(self, box: Box) -> int:
        """Flip the velocity components of the axes whose walls are within ``R``.

        Each flip reports ``m v^2`` to the box pressure accumulators.  The
        test is a plain distance threshold, so a fast disk can still tunnel
        through a wall when ``dt`` is large.

        Returns
        -------
        int
            Number of wall impacts recorded (0, 1 or 2 for a corner).
        """
        impacts = 0
        if (self.x - box.xmin) <= self.R or (box.xmax - self.x) <= self.R:
            self.vx = -self.vx
            box.accumulate_wall_impact(self.m * (self.vx * self.vx + self.vy * self.vy))
            impacts += 1
        if (self.y - box.ymin) <= self.R or (box.ymax - self.y) <= self.R:
            self.vy = -self.vy
            box.accumulate_wall_impact(self.m * (self.vx * self.vx + self.vy * self.vy))
            impacts += 1
        return impacts

    def resolve_collision(self, other: 'Particle') -> bool:
        """Elastic collision with ``other`` when the disks touch or overlap.

        The normal velocity components are swapped, which is the elastic
        result for equal masses only; the masses are deliberately not used.
        Coincident centres have no contact normal and are left untouched.

        Returns
        -------
        bool
            True when velocities were exchanged.
        """
        dx = other.x - self.x
        dy = other.y - self.y
        dist2 = dx * dx + dy * dy
        r_sum = self.R + other.R
        if dist2 > r_sum * r_sum:
            return False

        dist = math.sqrt(dist2)
        if dist == 0:
            return False

        nx = dx / dist
        ny = dy / dist

        vn1 = self.vx * nx + self.vy * ny
        vn2 = other.vx * nx + other.vy * ny

        vn1_new = vn2
        vn2_new = vn1

        self.vx += (vn1_new - vn1) * nx
        self.vy += (vn1_new - vn1) * ny
        other.vx += (vn2_new - vn2) * nx
        other.vy += (vn2_new - vn2) * ny
        return True
