from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

import numpy as np

from ..constraints import Constraint

MAX_ITERATIONS = 1000
MAX_EVALUATIONS = 1000
XTOL_REL = math.sqrt(float(np.finfo(float).eps))

ObjectiveFunc = Callable[[np.ndarray], Tuple[float, Optional[np.ndarray]]]


class FitStatus(IntEnum):
    """Outcome of a constrained fit; zero means converged."""

    CONVERGED = 0
    MAX_ITERATIONS = 1
    INFEASIBLE = 2
    FAILED = 3
    INVALID_MODEL = 4

    @property
    def success(self) -> bool:
        return self is FitStatus.CONVERGED


@dataclass(frozen=True)
class BackendResult:
    """Normalized result returned by any backend."""

    x: np.ndarray  # last iterate, shape (P,)
    status: FitStatus
    message: str = ""
    objective: float = math.nan
    nit: int = 0
    nfev: int = 0
    stats: Dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.status.success


class Backend(Protocol):
    """Backend protocol: minimize one objective under bounds and g(x) <= 0 constraints."""

    name: str

    def fit_one(
        self,
        *,
        objective: ObjectiveFunc,
        x0: np.ndarray,
        lower: np.ndarray,
        upper: np.ndarray,
        constraints: Sequence[Constraint],
        options: Dict[str, Any],
    ) -> BackendResult: ...


def scipy_bounds(lower: np.ndarray, upper: np.ndarray) -> List[Tuple[Optional[float], Optional[float]]]:
    """(lo, hi) pairs with None for infinite sides."""
    out = []
    for lo_i, hi_i in zip(np.asarray(lower, dtype=float), np.asarray(upper, dtype=float)):
        lo_b = None if not math.isfinite(lo_i) else float(lo_i)
        hi_b = None if not math.isfinite(hi_i) else float(hi_i)
        out.append((lo_b, hi_b))
    return out


class StopRun(Exception):
    """Raised from inside a scipy callback to end the run with a known status."""

    def __init__(self, status: FitStatus, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


class RunMonitor:
    """Wraps one objective for one scipy run.

    Caps the number of objective evaluations. Between accepted iterates it
    also stops the run once the step is no more than ``xtol_rel * |x|`` or
    the objective changes by no more than ``ftol_rel * |f|``; a zero
    tolerance turns that test off. Every stop raises StopRun and leaves the
    last accepted iterate in ``self.x``.
    """

    def __init__(
        self,
        objective: ObjectiveFunc,
        x0: np.ndarray,
        *,
        max_evaluations: int = MAX_EVALUATIONS,
        xtol_rel: float = XTOL_REL,
        ftol_rel: float = XTOL_REL,
    ):
        self._objective = objective
        self.max_evaluations = int(max_evaluations)
        self.xtol_rel = float(xtol_rel)
        self.ftol_rel = float(ftol_rel)
        self.x = np.array(x0, dtype=float)
        self.nfev = 0
        self.nit = 0
        self._recent: deque = deque(maxlen=16)

    def objective(self, x: np.ndarray) -> Tuple[float, Optional[np.ndarray]]:
        if self.nfev >= self.max_evaluations:
            raise StopRun(
                FitStatus.MAX_ITERATIONS,
                f"Evaluation limit ({self.max_evaluations}) reached.",
            )
        self.nfev += 1
        value, grad = self._objective(x)
        self._recent.append((np.array(x, dtype=float), float(value)))
        return value, grad

    def iterate(self, xk: np.ndarray, *args: Any) -> None:
        xk = np.array(xk, dtype=float)
        step = float(np.linalg.norm(xk - self.x))
        f_prev = self.value_at(self.x)
        f = self.value_at(xk)
        self.x = xk
        self.nit += 1
        if step == 0.0:
            return

        x_norm = float(np.linalg.norm(xk))
        if self.xtol_rel > 0.0 and step <= self.xtol_rel * x_norm:
            raise StopRun(
                FitStatus.CONVERGED,
                f"Relative step {step / x_norm:.3g} below xtol_rel={self.xtol_rel:.3g}.",
            )
        if (
            self.ftol_rel > 0.0
            and math.isfinite(f)
            and math.isfinite(f_prev)
            and abs(f - f_prev) <= self.ftol_rel * abs(f)
        ):
            raise StopRun(
                FitStatus.CONVERGED,
                f"Relative objective change below ftol_rel={self.ftol_rel:.3g}.",
            )

    def value_at(self, x: np.ndarray) -> float:
        """Objective at x if it is among the recent evaluations, else nan."""
        for xi, fi in reversed(self._recent):
            if np.array_equal(xi, x):
                return fi
        return math.nan

    def stopped(self, stop: StopRun, name: str) -> BackendResult:
        return BackendResult(
            x=self.x.copy(),
            status=stop.status,
            message=stop.message,
            objective=self.value_at(self.x),
            nit=self.nit,
            nfev=self.nfev,
            stats={"backend": name, "stopped_by": "monitor"},
        )
