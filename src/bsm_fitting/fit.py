from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional
from warnings import warn

import numpy as np

from .backends import FitStatus, get_backend
from .data import SampleSet
from .diagnostics import Diagnostics
from .models import BSM3
from .objective import WeightedObjective
from .sampling import compute_weights, evaluate, four_points, normalize

__all__ = ["fit", "fit_weighted", "fit_samples", "fit_auto"]


def fit_weighted(
    t: Any,
    lnl: Any,
    w: Any,
    model: Any,
    *,
    backend: str = "scipy.slsqp",
    backend_options: Optional[Dict[str, Any]] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> FitStatus:
    """Weighted constrained least-squares fit of ``model`` to normalized samples.

    ``lnl`` must already be normalized so that it reads zero at the model's
    anchor (t0 for BSM2, 0 for BSM3). The fit starts from the model's current
    free parameters and writes the final iterate back into ``model`` on every
    outcome; check the returned status before trusting it.
    """
    samples = SampleSet.from_arrays(t, lnl, w)
    return fit_samples(
        samples,
        model,
        backend=backend,
        backend_options=backend_options,
        diagnostics=diagnostics,
    )


def fit(
    t: Any,
    lnl: Any,
    model: Any,
    *,
    backend: str = "scipy.slsqp",
    backend_options: Optional[Dict[str, Any]] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> FitStatus:
    """Unweighted fit (every sample has weight 1)."""
    return fit_weighted(
        t,
        lnl,
        None,
        model,
        backend=backend,
        backend_options=backend_options,
        diagnostics=diagnostics,
    )


def fit_samples(
    samples: SampleSet,
    model: Any,
    *,
    backend: str = "scipy.slsqp",
    backend_options: Optional[Dict[str, Any]] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> FitStatus:
    """Fit driver shared by every model variant.

    The model supplies ``free_names``, ``bounds()``, ``constraints()``,
    ``norm_lnl``/``gradient`` and ``is_valid()``; the driver runs the backend
    and copies the result into the model in place.
    """
    impl = get_backend(backend)
    free_names = tuple(model.free_names)
    lower, upper = model.bounds()
    x0 = _seed_within_bounds(model, free_names, lower, upper)

    objective = WeightedObjective(model, samples, diagnostics=diagnostics)
    result = impl.fit_one(
        objective=objective,
        x0=x0,
        lower=lower,
        upper=upper,
        constraints=model.constraints(),
        options=dict(backend_options or {}),
    )

    for name, value in zip(free_names, np.asarray(result.x, dtype=float)):
        setattr(model, name, float(value))

    status = result.status
    if status is FitStatus.CONVERGED and not model.is_valid():
        status = FitStatus.INVALID_MODEL
        warn(
            f"{type(model).__name__} fit converged to a point with no valid "
            f"(r > 0, b >= 0) interpretation: {model!r}",
            RuntimeWarning,
        )
    elif status is not FitStatus.CONVERGED:
        warn(
            f"{type(model).__name__} fit did not converge ({status.name}): "
            f"{result.message}",
            RuntimeWarning,
        )

    if diagnostics is not None:
        diagnostics.finished(status, np.asarray(result.x, dtype=float), result.message)
    return status


def fit_auto(
    lnl_fn: Callable[[float], float],
    model: BSM3,
    min_t: float,
    max_t: float,
    alpha: float = 0.0,
    *,
    backend: str = "scipy.slsqp",
    backend_options: Optional[Dict[str, Any]] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> FitStatus:
    """Pick four sample points, evaluate ``lnl_fn`` there and fit.

    Samples are normalized to the value at ``min_t`` and weighted by
    ``exp(lnl - max_lnl) ** alpha``. Point selection happens before any
    likelihood evaluation, so a DomainError costs no calls to ``lnl_fn``.
    """
    if not isinstance(model, BSM3):
        raise TypeError(
            f"fit_auto requires a BSM3 model (anchored at t = 0), got {type(model).__name__}."
        )

    t = four_points(model.d1, min_t, max_t)
    raw = evaluate(lnl_fn, t)
    lnl = normalize(raw, raw[0])
    w, _ = compute_weights(lnl, alpha)

    if diagnostics is not None:
        diagnostics.samples(t, lnl, w)

    return fit_weighted(
        t,
        lnl,
        w,
        model,
        backend=backend,
        backend_options=backend_options,
        diagnostics=diagnostics,
    )


def _seed_within_bounds(
    model: Any, free_names: tuple, lower: np.ndarray, upper: np.ndarray
) -> np.ndarray:
    """Current free parameters, clipped into bounds (with a warning)."""
    x0 = np.array([float(getattr(model, n)) for n in free_names], dtype=float)
    clipped = np.clip(x0, lower, upper)
    moved: List[str] = [n for n, a, b in zip(free_names, x0, clipped) if a != b]
    if moved:
        warn("Clipped seed values into bounds for: " + ", ".join(moved), UserWarning)
    return clipped
