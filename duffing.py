"""
Two coupled, damped Duffing oscillators.

    m1 x1'' = -(d1 x1' + m1 a x1 + b x1^3 + k (x1 - x2) + g cos(w t))
    m2 x2'' = -(d2 x2' + m2 a x2 + b x2^3 + k (x2 - x1))

Only the first oscillator is driven.  The state is kept as growing lists
(one entry per time point) that :class:`integrator.RK4Integrator` extends.
"""
from __future__ import annotations

import math
from typing import List, Sequence

import numpy as np
from numpy import ndarray

from config import DuffingParameters


class DuffingOscillator:
    def __init__(self, alpha: float, beta: float, gamma: float, omega: float,
                 coupling: float, mass: Sequence[float], damping: Sequence[float]):
        if len(mass) != 2 or len(damping) != 2:
            raise ValueError("mass and damping need one value per oscillator")
        if any(m <= 0.0 for m in mass):
            raise ValueError(f"masses must be positive, got {list(mass)!r}")
        self.alpha = float(alpha)
        self.beta = float(beta)
        self.gamma = float(gamma)
        self.omega = float(omega)
        self.k = float(coupling)
        self.m = [float(v) for v in mass]
        self.delta = [float(v) for v in damping]

        self.t: List[float] = []
        self.x1: List[float] = []
        self.x2: List[float] = []
        self.y1: List[float] = []
        self.y2: List[float] = []

    @classmethod
    def from_parameters(cls, params: DuffingParameters) -> 'DuffingOscillator':
        """Build and initialize an oscillator from a parameter set."""
        osc = cls(params.alpha, params.beta, params.gamma, params.omega,
                  params.coupling, params.mass, params.damping)
        osc.initialize(params.t0, params.tf, params.dt, params.x1, params.x2, params.y1, params.y2)
        return osc

    def initialize(self, t0: float, tf: float, dt: float,
                   x1: float, x2: float, y1: float, y2: float) -> None:
        """Build the time grid and set the initial state.

        The grid is accumulated as ``t += dt`` while ``t <= tf``; the
        rounding of that sum decides whether ``tf`` itself is included.
        """
        if not dt > 0.0:
            raise ValueError(f"dt must be positive, got {dt!r}")
        if tf < t0:
            raise ValueError(f"final time {tf!r} precedes initial time {t0!r}")
        self.t = []
        ti = float(t0)
        while ti <= tf:
            self.t.append(ti)
            ti += dt
        self.x1 = [float(x1)]
        self.x2 = [float(x2)]
        self.y1 = [float(y1)]
        self.y2 = [float(y2)]

    def f1(self, t: float, x1: float, x2: float, y1: float, y2: float) -> float:
        """Acceleration of oscillator 1."""
        return -(y1 * self.delta[0] + self.m[0] * self.alpha * x1 + self.beta * x1 * x1 * x1
                 + self.k * (x1 - x2) + self.gamma * math.cos(self.omega * t)) / self.m[0]

    def f2(self, t: float, x1: float, x2: float, y1: float, y2: float) -> float:
        """Acceleration of oscillator 2."""
        return -(y2 * self.delta[1] + self.m[1] * self.alpha * x2 + self.beta * x2 * x2 * x2
                 + self.k * (x2 - x1)) / self.m[1]

    def __len__(self) -> int:
        """Number of computed states."""
        return min(len(self.x1), len(self.t))

    def describe(self) -> str:
        return (f"alfa={self.alpha:g} beta={self.beta:g} gamma={self.gamma:g} "
                f"omega={self.omega:g} k={self.k:g}")

    def as_array(self) -> ndarray:
        """Computed trajectory as rows of ``t x1 x2 y1 y2``."""
        n = len(self)
        return np.column_stack((self.t[:n], self.x1[:n], self.x2[:n], self.y1[:n], self.y2[:n]))
