from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Tuple

import numpy as np

from ..constraints import Constraint, ordering, rate_sign
from ..errors import InvalidModelError
from .bsm2 import LOWER_BOUND, _check_rate_offset
from .bsm4 import BSM4, bsm_lnl_func


@dataclass
class BSM3:
    """Three-parameter BSM anchored at t = 0 ("theta_b" form).

    Parameters in the model
    -----------------------
    c, m    : fitted, c > m >= 1
    theta_b : fitted, theta(0) = exp(r b) > 1
    d1      : first derivative of the target log-likelihood at t = 0 (fixed)

    Derived quantities (never stored)
    ---------------------------------
    r     = d1 (theta_b^2 - 1) / ((m - c) theta_b + m + c)
    q     = (c - m) theta_b - c - m
    b     = log(theta_b) / r
    theta = theta_b exp(r t)
    """

    c: float
    m: float
    theta_b: float
    d1: float

    free_names: ClassVar[Tuple[str, ...]] = ("c", "m", "theta_b")

    def _cmt(self) -> Tuple[np.float64, np.float64, np.float64]:
        return np.float64(self.c), np.float64(self.m), np.float64(self.theta_b)

    # ---- derived quantities ----
    def var_r(self) -> np.float64:
        c, m, theta_b = self._cmt()
        with np.errstate(all="ignore"):
            return (self.d1 * (theta_b ** 2 - 1.0)) / ((m - c) * theta_b + m + c)

    def var_q(self) -> np.float64:
        c, m, theta_b = self._cmt()
        return (c - m) * theta_b - c - m

    def var_b(self) -> np.float64:
        with np.errstate(all="ignore"):
            return np.log(np.float64(self.theta_b)) / self.var_r()

    def var_theta(self, t: Any) -> Any:
        t = np.asarray(t, dtype=float)
        with np.errstate(all="ignore"):
            return np.float64(self.theta_b) * np.exp(self.var_r() * t)

    # ---- evaluation ----
    def lnl(self, t: Any) -> Any:
        return bsm_lnl_func(self.var_theta(t), self.c, self.m)

    def norm_lnl(self, t: Any) -> Any:
        """lnl(t) - lnl(0); zero at t = 0."""
        return self.lnl(t) - self.lnl(0.0)

    def gradient(self, t: Any) -> np.ndarray:
        """Partial derivatives of norm_lnl(t) with respect to (c, m, theta_b).

        Returns shape (3,) for scalar t and (n, 3) for t of shape (n,).
        """
        t = np.asarray(t, dtype=float)
        c, m, theta_b = self._cmt()
        f_1 = np.float64(self.d1)
        with np.errstate(all="ignore"):
            r = self.var_r()
            q = self.var_q()
            theta = self.var_theta(t)

            # theta * d(lnl)/d(theta) at t and at the anchor
            dl = -c / (theta + 1.0) + m / (theta - 1.0)
            dl_b = -c / (theta_b + 1.0) + m / (theta_b - 1.0)

            grad_c = (
                np.log1p(1.0 / theta)
                - np.log1p(1.0 / theta_b)
                - dl * r * t * (theta_b - 1.0) / q
            )
            grad_m = (
                np.log1p(-1.0 / theta)
                - np.log1p(-1.0 / theta_b)
                + dl * r * t * (theta_b + 1.0) / q
            )
            grad_theta_b = (
                dl * (1.0 / theta_b - t * (2.0 * f_1 * theta_b + r * (c - m)) / q)
                - dl_b / theta_b
            )
        return np.stack([grad_c, grad_m, grad_theta_b], axis=-1)

    # ---- fitting hooks ----
    def bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        lo = np.full(len(self.free_names), LOWER_BOUND, dtype=float)
        hi = np.full(len(self.free_names), np.inf, dtype=float)
        return lo, hi

    def constraints(self) -> Tuple[Constraint, ...]:
        return (ordering(3), rate_sign(self.d1))

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
