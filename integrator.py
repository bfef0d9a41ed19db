"""Fixed-step classical Runge-Kutta integration of the Duffing pair."""
from __future__ import annotations

import logging
import math

from duffing import DuffingOscillator

log = logging.getLogger("gasbox.integrator")


class RK4Integrator:
    """Fourth order Runge-Kutta over the oscillator's own time grid.

    The second order system is split into positions (stages ``k``, driven
    by the velocities) and velocities (stages ``l``, driven by the
    accelerations).  The step size comes from consecutive time points.
    """

    @staticmethod
    def step(osc: DuffingOscillator, i: int) -> None:
        """Append the state at ``t[i + 1]`` computed from the state at ``t[i]``."""
        t = osc.t[i]
        h = osc.t[i + 1] - t
        x1, x2, y1, y2 = osc.x1[i], osc.x2[i], osc.y1[i], osc.y2[i]

        k1 = [0.0] * 4
        k2 = [0.0] * 4
        l1 = [0.0] * 4
        l2 = [0.0] * 4

        k1[0] = h * y1
        k2[0] = h * y2
        l1[0] = h * osc.f1(t, x1, x2, y1, y2)
        l2[0] = h * osc.f2(t, x1, x2, y1, y2)

        k1[1] = h * (y1 + l1[0] / 2)
        k2[1] = h * (y2 + l2[0] / 2)
        l1[1] = h * osc.f1(t + h / 2, x1 + k1[0] / 2, x2 + k2[0] / 2, y1 + l1[0] / 2, y2 + l2[0] / 2)
        l2[1] = h * osc.f2(t + h / 2, x1 + k1[0] / 2, x2 + k2[0] / 2, y1 + l1[0] / 2, y2 + l2[0] / 2)

        k1[2] = h * (y1 + l1[1] / 2)
        k2[2] = h * (y2 + l2[1] / 2)
        l1[2] = h * osc.f1(t + h / 2, x1 + k1[1] / 2, x2 + k2[1] / 2, y1 + l1[1] / 2, y2 + l2[1] / 2)
        l2[2] = h * osc.f2(t + h / 2, x1 + k1[1] / 2, x2 + k2[1] / 2, y1 + l1[1] / 2, y2 + l2[1] / 2)

        k1[3] = h * (y1 + l1[2])
        k2[3] = h * (y2 + l2[2])
        l1[3] = h * osc.f1(t + h, x1 + k1[2], x2 + k2[2], y1 + l1[2], y2 + l2[2])
        l2[3] = h * osc.f2(t + h, x1 + k1[2], x2 + k2[2], y1 + l1[2], y2 + l2[2])

        osc.x1.append(x1 + (k1[0] + 2 * k1[1] + 2 * k1[2] + k1[3]) / 6)
        osc.x2.append(x2 + (k2[0] + 2 * k2[1] + 2 * k2[2] + k2[3]) / 6)
        osc.y1.append(y1 + (l1[0] + 2 * l1[1] + 2 * l1[2] + l1[3]) / 6)
        osc.y2.append(y2 + (l2[0] + 2 * l2[1] + 2 * l2[2] + l2[3]) / 6)

    @classmethod
    def integrate(cls, osc: DuffingOscillator) -> int:
        """Fill the rest of the time grid; return the number of steps taken.

        Integration stops at the first step producing a NaN or infinity.
        That state is kept as the last entry and the halt is logged.
        """
        if not osc.x1:
            raise ValueError("oscillator has no initial state; call initialize() first")
        start = len(osc.x1) - 1
        steps = 0
        for i in range(start, len(osc.t) - 1):
            cls.step(osc, i)
            steps += 1
            if not all(math.isfinite(v) for v in (osc.x1[-1], osc.y1[-1], osc.x2[-1], osc.y2[-1])):
                log.error("Non-finite state at step i=%d (t=%g); integration halted", i, osc.t[i + 1])
                break
        log.info("Integrated %d RK4 steps up to t=%g", steps, osc.t[len(osc) - 1])
        return steps
