"""Bracketed one-dimensional minimization and root finding.

Both helpers iterate until the bracket is narrower than ``tolerance`` or
``max_iter`` is spent, then return the best estimate found. Running out of
iterations is not an error; callers that need strict convergence should check
the bracket themselves.
"""
from __future__ import annotations

from typing import Callable

from scipy.optimize import minimize_scalar, root_scalar

__all__ = ["minimize", "find_root"]

_MIN_METHODS = ("brent", "golden", "bounded")
_ROOT_METHODS = ("brentq", "brenth", "bisect", "ridder")


def minimize(
    fn: Callable[[float], float],
    guess: float,
    lower: float,
    upper: float,
    max_iter: int = 100,
    tolerance: float = 1e-3,
    method: str = "brent",
) -> float:
    """Minimize ``fn`` over the bracket (lower, guess, upper).

    For "brent" and "golden" the guess must satisfy
    fn(guess) < fn(lower) and fn(guess) < fn(upper); "bounded" only uses
    (lower, upper).
    """
    if method not in _MIN_METHODS:
        raise ValueError(f"Unknown method {method!r}. Available: {_MIN_METHODS}")

    if method == "bounded":
        res = minimize_scalar(
            fn,
            bounds=(float(lower), float(upper)),
            method="bounded",
            options={"xatol": float(tolerance), "maxiter": int(max_iter)},
        )
    else:
        res = minimize_scalar(
            fn,
            bracket=(float(lower), float(guess), float(upper)),
            method=method,
            options={"xtol": float(tolerance), "maxiter": int(max_iter)},
        )
    return float(res.x)


def find_root(
    fn: Callable[[float], float],
    lower: float,
    upper: float,
    max_iter: int = 100,
    tolerance: float = 1e-3,
    method: str = "brentq",
) -> float:
    """Root of ``fn`` inside [lower, upper]; fn(lower) and fn(upper) must differ in sign."""
    if method not in _ROOT_METHODS:
        raise ValueError(f"Unknown method {method!r}. Available: {_ROOT_METHODS}")

    sol = root_scalar(
        fn,
        bracket=(float(lower), float(upper)),
        method=method,
        xtol=float(tolerance),
        maxiter=int(max_iter),
    )
    return float(sol.root)
