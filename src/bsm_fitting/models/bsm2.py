from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Tuple

import numpy as np

from ..constraints import Constraint, ordering, rate_positivity
from ..errors import InvalidModelError
from .bsm4 import BSM4, bsm_lnl_func

LOWER_BOUND = 1.0


@dataclass
class BSM2:
    """Two-parameter BSM with its maximum pinned at t0.

    Parameters in the model
    -----------------------
    c, m : fitted, c > m >= 1
    t0   : location of the target log-likelihood maximum (fixed)
    d1   : first derivative of the target at t0 (fixed, informational)
    d2   : second derivative of the target at t0 (fixed, < 0)

    The rate r is solved in closed form so that the model's curvature at t0
    equals d2, and the offset b so that its maximum sits at t0:

        rho   = (c + m) / (c - m)
        r     = 2 sqrt(-c m d2 / (c + m)) / (c - m)
        theta = rho * exp(r (t - t0))
    """

    c: float
    m: float
    t0: float
    d1: float
    d2: float

    free_names: ClassVar[Tuple[str, ...]] = ("c", "m")

    def _cm(self) -> Tuple[np.float64, np.float64]:
        return np.float64(self.c), np.float64(self.m)

    # ---- derived quantities ----
    def var_rho(self) -> np.float64:
        c, m = self._cm()
        with np.errstate(all="ignore"):
            return (c + m) / (c - m)

    def var_r(self) -> np.float64:
        c, m = self._cm()
        with np.errstate(all="ignore"):
            return 2.0 * np.sqrt(-c * m * self.d2 / (c + m)) / (c - m)

    def var_b(self) -> np.float64:
        with np.errstate(all="ignore"):
            return np.log(self.var_rho()) / self.var_r() - self.t0

    def var_nu(self) -> np.float64:
        """nu = (c - m) exp(r t0); c + m - nu >= 0 iff b >= 0."""
        c, m = self._cm()
        with np.errstate(all="ignore"):
            return (c - m) * np.exp(self.var_r() * self.t0)

    def var_theta(self, t: Any) -> Any:
        t = np.asarray(t, dtype=float)
        with np.errstate(all="ignore"):
            return self.var_rho() * np.exp(self.var_r() * (t - self.t0))

    # ---- evaluation ----
    def lnl(self, t: Any) -> Any:
        return bsm_lnl_func(self.var_theta(t), self.c, self.m)

    def norm_lnl(self, t: Any) -> Any:
        """lnl(t) - lnl(t0); zero at t0."""
        return self.lnl(t) - self.lnl(self.t0)

    def gradient(self, t: Any) -> np.ndarray:
        """Partial derivatives of norm_lnl(t) with respect to (c, m).

        Returns shape (2,) for scalar t and (n, 2) for t of shape (n,).
        """
        t = np.asarray(t, dtype=float)
        c, m = self._cm()
        with np.errstate(all="ignore"):
            rho = self.var_rho()
            r = self.var_r()
            theta = self.var_theta(t)
            s = t - self.t0

            # theta * d(lnl)/d(theta); vanishes at theta = rho
            dl = -c / (theta + 1.0) + m / (theta - 1.0)

            dlog_rho_c = -2.0 * m / (c * c - m * m)
            dlog_rho_m = 2.0 * c / (c * c - m * m)
            dlog_r_c = 0.5 * m / (c * (c + m)) - 1.0 / (c - m)
            dlog_r_m = 0.5 * c / (m * (c + m)) + 1.0 / (c - m)

            grad_c = (
                np.log1p(1.0 / theta)
                - np.log1p(1.0 / rho)
                + dl * (dlog_rho_c + s * r * dlog_r_c)
            )
            grad_m = (
                np.log1p(-1.0 / theta)
                - np.log1p(-1.0 / rho)
                + dl * (dlog_rho_m + s * r * dlog_r_m)
            )
        return np.stack([grad_c, grad_m], axis=-1)

    # ---- fitting hooks ----
    def bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        lo = np.full(len(self.free_names), LOWER_BOUND, dtype=float)
        hi = np.full(len(self.free_names), np.inf, dtype=float)
        return lo, hi

    def constraints(self) -> Tuple[Constraint, ...]:
        return (ordering(2), rate_positivity(self.t0, self.d2))

    # ---- conversion ----
    def to_bsm4(self) -> BSM4:
        """Equivalent unconstrained model; raises InvalidModelError unless r > 0, b >= 0."""
        r = float(self.var_r())
        b = float(self.var_b())
        _check_rate_offset(r, b)
        return BSM4(c=float(self.c), m=float(self.m), r=r, b=b)

    def is_valid(self) -> bool:
        try:
            self.to_bsm4()
        except InvalidModelError:
            return False
        return True


def _check_rate_offset(r: float, b: float) -> None:
    if not (np.isfinite(r) and r > 0.0):
        raise InvalidModelError(f"derived rate r={r!r} is not positive or undefined.")
    if not (np.isfinite(b) and b >= 0.0):
        raise InvalidModelError(f"derived offset b={b!r} is negative or undefined.")
