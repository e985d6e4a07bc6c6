from __future__ import annotations

from typing import Any, Dict, Sequence

import numpy as np
from scipy.optimize import minimize

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
    scipy_bounds,
)

# SLSQP tests the absolute change in the objective, which is already tiny near
# the start of a noiseless fit; the relative tests in RunMonitor decide instead.
FTOL = 1e-14

# scipy SLSQP exit modes
_STATUS = {
    0: FitStatus.CONVERGED,
    4: FitStatus.INFEASIBLE,
    9: FitStatus.MAX_ITERATIONS,
}


def _as_ineq(con: Constraint) -> Dict[str, Any]:
    # scipy wants fun(x) >= 0
    return {
        "type": "ineq",
        "fun": lambda x: -con(x)[0],
        "jac": lambda x: -con(x)[1],
    }


class ScipySLSQPBackend:
    name = "scipy.slsqp"

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
        """Fit using scipy.optimize.minimize(method="SLSQP").

        Backend options:
        - maxiter: iteration limit (default: 1000)
        - maxfev: objective evaluation limit (default: 1000)
        - xtol_rel: stop once |step| <= xtol_rel * |x| (default: sqrt(machine epsilon))
        - ftol_rel: stop once |df| <= ftol_rel * |f| (default: sqrt(machine epsilon))
        - ftol: SLSQP absolute objective-change tolerance (default: 1e-14)
        """
        maxiter = int(options.get("maxiter", MAX_ITERATIONS))
        ftol = float(options.get("ftol", FTOL))
        monitor = RunMonitor(
            objective,
            x0,
            max_evaluations=int(options.get("maxfev", MAX_EVALUATIONS)),
            xtol_rel=float(options.get("xtol_rel", XTOL_REL)),
            ftol_rel=float(options.get("ftol_rel", XTOL_REL)),
        )

        try:
            res = minimize(
                monitor.objective,
                np.asarray(x0, dtype=float),
                jac=True,
                method="SLSQP",
                bounds=scipy_bounds(lower, upper),
                constraints=[_as_ineq(c) for c in constraints],
                callback=monitor.iterate,
                options={"maxiter": maxiter, "ftol": ftol},
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
