"""Feasibility constraints for the reduced BSM forms.

Every constraint uses the canonical form ``g(x) <= 0`` and returns its
analytic gradient alongside the value. Constraints never raise: outside the
region where they are defined they return non-finite values.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Tuple

import numpy as np

__all__ = ["Constraint", "ordering", "rate_positivity", "rate_sign"]

ConstraintFunc = Callable[[np.ndarray], Tuple[float, np.ndarray]]


@dataclass(frozen=True)
class Constraint:
    """Inequality constraint g(x) <= 0 with gradient."""

    name: str
    fun: ConstraintFunc

    def __call__(self, x) -> Tuple[float, np.ndarray]:
        return self.fun(np.asarray(x, dtype=float))

    def value(self, x) -> float:
        return self(x)[0]

    def gradient(self, x) -> np.ndarray:
        return self(x)[1]


def ordering(n_params: int = 2) -> Constraint:
    """c > m, written as m - c <= 0; x = (c, m, ...)."""

    def fun(x: np.ndarray) -> Tuple[float, np.ndarray]:
        grad = np.zeros(n_params, dtype=float)
        grad[0] = -1.0
        grad[1] = 1.0
        return float(x[1] - x[0]), grad

    return Constraint(name="ordering", fun=fun)


def rate_positivity(t0: float, d2: float) -> Constraint:
    """c + m - nu > 0 for the two-parameter form; x = (c, m).

    Equivalent to t0 <= (1/r) log((c + m)/(c - m)), i.e. b >= 0, and becomes
    t0 - (1/r) log((c + m)/(c - m)) <= 0.
    """
    t_0 = np.float64(t0)
    f_2 = np.float64(d2)

    def fun(x: np.ndarray) -> Tuple[float, np.ndarray]:
        c = np.float64(x[0])
        m = np.float64(x[1])
        with np.errstate(all="ignore"):
            k = -c * f_2 * m / (c + m)
            sqrt_k = np.sqrt(k)
            log_ratio = np.log((c + m) / (c - m))

            grad = np.empty(2, dtype=float)
            grad[0] = (
                0.5 * (c - m) ** 2 * (-1.0 / (c - m) + (c + m) / (c - m) ** 2) / (sqrt_k * (c + m))
                - 0.5 * log_ratio / sqrt_k
                - 0.25 * (c - m) * (-c * f_2 * m / (c + m) ** 2 + f_2 * m / (c + m)) * log_ratio / k ** 1.5
            )
            grad[1] = (
                -0.5 * (c - m) ** 2 * (1.0 / (c - m) + (c + m) / (c - m) ** 2) / (sqrt_k * (c + m))
                + 0.5 * log_ratio / sqrt_k
                - 0.25 * (c - m) * (-c * f_2 * m / (c + m) ** 2 + c * f_2 / (c + m)) * log_ratio / k ** 1.5
            )
            value = t_0 - 0.5 * (c - m) * log_ratio / sqrt_k
        return float(value), grad

    return Constraint(name="rate_positivity", fun=fun)


def rate_sign(d1: float) -> Constraint:
    """r > 0 for the theta_b form; x = (c, m, theta_b).

    With theta_b > 1, r = d1 (theta_b^2 - 1) / -q is positive exactly when
    d1 * q < 0, so the constraint is d1 * q <= 0.
    """
    f_1 = np.float64(d1)

    def fun(x: np.ndarray) -> Tuple[float, np.ndarray]:
        c = np.float64(x[0])
        m = np.float64(x[1])
        theta_b = np.float64(x[2])
        q = (c - m) * theta_b - c - m
        grad = f_1 * np.array([theta_b - 1.0, -(theta_b + 1.0), c - m], dtype=float)
        return float(f_1 * q), grad

    return Constraint(name="rate_sign", fun=fun)
