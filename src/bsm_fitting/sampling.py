"""Sample-point selection and likelihood weighting."""
from __future__ import annotations

import math
from typing import Any, Callable, Tuple

import numpy as np

from .errors import DomainError

__all__ = ["N_POINTS", "four_points", "evaluate", "normalize", "compute_weights"]

N_POINTS = 4


def four_points(d1: float, min_t: float, max_t: float) -> np.ndarray:
    """Choose four sample points spanning [min_t, max_t].

    t[2] is where an exponential whose rate is sqrt(-d1) has dropped to half
    its slope, log(2) / sqrt(-d1); t[1] is halfway between min_t and t[2].

    Raises
    ------
    DomainError
        If t[2] does not fall strictly inside (min_t, max_t). A non-negative
        d1 has no such point and fails the same way.
    """
    min_t = float(min_t)
    max_t = float(max_t)
    d1 = float(d1)

    t_half = math.log(2.0) / math.sqrt(-d1) if d1 < 0.0 else math.nan
    if not (min_t < t_half < max_t):
        raise DomainError(
            f"Half-derivative point log(2)/sqrt(-d1)={t_half!r} (d1={d1!r}) "
            f"is not inside ({min_t!r}, {max_t!r})."
        )

    return np.array([min_t, 0.5 * (min_t + t_half), t_half, max_t], dtype=float)


def evaluate(lnl_fn: Callable[[float], Any], t: Any) -> np.ndarray:
    """Evaluate the likelihood callback once per point."""
    return np.array([float(lnl_fn(float(ti))) for ti in np.ravel(t)], dtype=float)


def normalize(lnl: Any, max_lnl: float) -> np.ndarray:
    """Shift log-likelihoods so that ``max_lnl`` maps to zero."""
    return np.asarray(lnl, dtype=float) - float(max_lnl)


def compute_weights(lnl: Any, alpha: float) -> Tuple[np.ndarray, float]:
    """Exponential tilt toward high likelihood.

    w_i = exp(lnl_i - max_lnl) ** alpha; alpha = 0 yields unit weights.

    Returns
    -------
    w : ndarray
    max_lnl : float
    """
    alpha = float(alpha)
    if not alpha >= 0.0:
        raise ValueError(f"alpha must be >= 0, got {alpha!r}.")
    lnl = np.asarray(lnl, dtype=float)
    max_lnl = float(np.max(lnl))
    w = np.exp(lnl - max_lnl) ** alpha
    return w, max_lnl
