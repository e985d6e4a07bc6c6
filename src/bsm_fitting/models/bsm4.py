from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

if TYPE_CHECKING:  # pragma: no cover
    from .bsm2 import BSM2
    from .bsm3 import BSM3


def bsm_lnl_func(theta, c, m):
    """Binary symmetric model log-likelihood in terms of theta = exp(r (t + b)).

    lnl = c log(1 + 1/theta) + m log(1 - 1/theta) - (c + m) log 2

    Never raises: theta < 1 gives NaN and theta == 1 gives -inf.
    """
    theta = np.asarray(theta, dtype=float)
    with np.errstate(all="ignore"):
        return (
            c * np.log1p(1.0 / theta)
            + m * np.log1p(-1.0 / theta)
            - (c + m) * np.log(2.0)
        )


@dataclass
class BSM4:
    """Unconstrained four-parameter binary symmetric model {c, m, r, b}."""

    c: float
    m: float
    r: float
    b: float

    def theta(self, t: Any) -> Any:
        t = np.asarray(t, dtype=float)
        with np.errstate(all="ignore"):
            return np.exp(np.float64(self.r) * (t + self.b))

    def lnl(self, t: Any) -> Any:
        return bsm_lnl_func(self.theta(t), self.c, self.m)

    def dlnl(self, t: Any) -> Any:
        """First derivative of lnl with respect to t."""
        theta = self.theta(t)
        with np.errstate(all="ignore"):
            return self.r * (-self.c / (theta + 1.0) + self.m / (theta - 1.0))

    def d2lnl(self, t: Any) -> Any:
        """Second derivative of lnl with respect to t."""
        theta = self.theta(t)
        with np.errstate(all="ignore"):
            return (
                self.r ** 2
                * theta
                * (self.c / (theta + 1.0) ** 2 - self.m / (theta - 1.0) ** 2)
            )

    def ml_t(self) -> float:
        """Location of the log-likelihood maximum (negative if it lies before t = 0)."""
        c, m = np.float64(self.c), np.float64(self.m)
        with np.errstate(all="ignore"):
            return float(np.log((c + m) / (c - m)) / self.r - self.b)

    def to_bsm3(self) -> "BSM3":
        """Reduced form anchored at t = 0 (d1 is the slope there)."""
        from .bsm3 import BSM3

        with np.errstate(all="ignore"):
            theta_b = float(np.exp(np.float64(self.r) * self.b))
        return BSM3(c=self.c, m=self.m, theta_b=theta_b, d1=float(self.dlnl(0.0)))

    def to_bsm2(self) -> "BSM2":
        """Reduced form anchored at the maximum, with the curvature there."""
        from .bsm2 import BSM2

        t0 = self.ml_t()
        return BSM2(c=self.c, m=self.m, t0=t0, d1=0.0, d2=float(self.d2lnl(t0)))
