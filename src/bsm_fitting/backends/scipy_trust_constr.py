from __future__ import annotations

from typing import Any, Dict, Sequence

import numpy as np
from scipy.optimize import Bounds, NonlinearConstraint, minimize

from ..constraints import Constraint
from .common import (
    MAX_EVALUATIONS,
    MAX_ITERATIONS,
    XTOL_REL,
    BackendResult,
    FitStatus,
    ObjectiveFunc,
    RunMonitor,
    StopRun,
)

GTOL = 1e-6

# trust-constr: 0 = maxiter, 1 = gtol, 2 = xtol, 3 = callback
_STATUS = {
    0: FitStatus.MAX_ITERATIONS,
    1: FitStatus.CONVERGED,
    2: FitStatus.CONVERGED,
}


def _as_nonlinear(con: Constraint) -> NonlinearConstraint:
    return NonlinearConstraint(
        lambda x: np.atleast_1d(con(x)[0]),
        -np.inf,
        0.0,
        jac=lambda x: np.atleast_2d(con(x)[1]),
    )


class ScipyTrustConstrBackend:
    name = "scipy.trust_constr"

    def fit_one(
        self,
        *,
        objective: ObjectiveFunc,
        x0: np.ndarray,
        lower: np.ndarray,
        upper: np.ndarray,
        constraints: Sequence[Constraint],
        options: Dict[str, Any],
    ) -> BackendResult:
        """Fit using scipy.optimize.minimize(method="trust-constr").

        Backend options:
        - maxiter: iteration limit (default: 1000)
        - maxfev: objective evaluation limit (default: 1000)
        - xtol: trust-radius tolerance (default: sqrt(machine epsilon) * max(1, |x0|))
        - gtol: Lagrangian gradient tolerance (default: 1e-6)
        """
        x0 = np.asarray(x0, dtype=float)
        maxiter = int(options.get("maxiter", MAX_ITERATIONS))
        xtol = float(options.get("xtol", XTOL_REL * max(1.0, float(np.linalg.norm(x0)))))
        gtol = float(options.get("gtol", GTOL))
        # interior-point steps shrink at every barrier update; relative tests off
        monitor = RunMonitor(
            objective,
            x0,
            max_evaluations=int(options.get("maxfev", MAX_EVALUATIONS)),
            xtol_rel=0.0,
            ftol_rel=0.0,
        )

        try:
            res = minimize(
                monitor.objective,
                x0,
                jac=True,
                method="trust-constr",
                bounds=Bounds(np.asarray(lower, dtype=float), np.asarray(upper, dtype=float)),
                constraints=[_as_nonlinear(c) for c in constraints],
                callback=monitor.iterate,
                options={"maxiter": maxiter, "xtol": xtol, "gtol": gtol},
            )
        except StopRun as stop:
            return monitor.stopped(stop, self.name)

        status = _STATUS.get(int(res.status), FitStatus.FAILED)
        return BackendResult(
            x=np.asarray(res.x, dtype=float),
            status=status,
            message=str(res.message),
            objective=float(res.fun),
            nit=int(getattr(res, "nit", monitor.nit)),
            nfev=monitor.nfev,
            stats={"backend": self.name, "scipy_status": int(res.status)},
        )
