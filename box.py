"""Rectangular container of the gas and its wall-pressure bookkeeping."""
from __future__ import annotations


class Box:
    """Axis-aligned box with pressure accumulators.

    Every wall impact contributes ``m v^2 / 3`` to a running sum; at the end
    of a step the pressure is the mean contribution over the impacts seen
    since the last reset.
    """

    def __init__(self, xmin: float = -0.5, xmax: float = 0.5, ymin: float = -0.5, ymax: float = 0.5):
        self.pn: float = 0.0
        self.n: int = 0
        self.p: float = 0.0
        self.set_extents(xmin, xmax, ymin, ymax)

    @classmethod
    def centered(cls, side: float) -> 'Box':
        """Square box of the given side centred on the origin."""
        half = side / 2.0
        return cls(-half, half, -half, half)

    def set_extents(self, xmin: float, xmax: float, ymin: float, ymax: float) -> None:
        if not (xmin < xmax and ymin < ymax):
            raise ValueError(
                f"invalid box extents x=[{xmin}, {xmax}] y=[{ymin}, {ymax}]"
            )
        self.xmin = float(xmin)
        self.xmax = float(xmax)
        self.ymin = float(ymin)
        self.ymax = float(ymax)

    @property
    def width(self) -> float:
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        return self.ymax - self.ymin

    def reset_pressure_accumulators(self) -> None:
        """Start a new averaging window; the last pressure stays readable."""
        self.pn = 0.0
        self.n = 0

    def accumulate_wall_impact(self, mass_speed_sq: float) -> None:
        self.pn += mass_speed_sq / 3
        self.n += 1

    def finalize_pressure(self) -> float:
        """Average the contributions of the current window.

        A window without impacts keeps the previous pressure.
        """
        if self.n > 0:
            self.p = self.pn / self.n
        return self.p

    def pressure(self) -> float:
        return self.p
