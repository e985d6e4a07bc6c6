from __future__ import annotations

from dataclasses import replace
from typing import Any, Optional, Tuple

import numpy as np

from .data import SampleSet
from .diagnostics import Diagnostics, FitTrace


class WeightedObjective:
    """Weighted sum of squared errors between observed and model normalized lnl.

    Closes over one sample set and a template model whose fixed coefficients
    stay frozen; only the model's ``free_names`` vary with ``x``.

        error_i = lnl_i - norm_lnl(t_i)
        f(x)    = sum_i w_i error_i^2
        df/dx_k = -2 sum_i w_i error_i d norm_lnl(t_i) / dx_k
    """

    def __init__(
        self,
        model: Any,
        samples: SampleSet,
        *,
        diagnostics: Optional[Diagnostics] = None,
    ):
        self.template = model
        self.free_names = tuple(model.free_names)
        self.samples = samples
        self.diagnostics = diagnostics
        self.iteration = 0

    def model_at(self, x: Any) -> Any:
        """Copy of the template model with free parameters set from x."""
        x = np.asarray(x, dtype=float)
        return replace(
            self.template, **{n: float(v) for n, v in zip(self.free_names, x)}
        )

    def residuals(self, x: Any) -> np.ndarray:
        model = self.model_at(x)
        with np.errstate(all="ignore"):
            return self.samples.lnl - model.norm_lnl(self.samples.t)

    def __call__(self, x: Any, grad: bool = True) -> Tuple[float, Optional[np.ndarray]]:
        x = np.asarray(x, dtype=float)
        model = self.model_at(x)
        s = self.samples

        with np.errstate(all="ignore"):
            err = s.lnl - model.norm_lnl(s.t)
            werr = s.w * err
            value = float(np.sum(werr * err))
            gradient = None
            if grad:
                gradient = -2.0 * (werr @ model.gradient(s.t))

        self.iteration += 1
        if self.diagnostics is not None:
            self.diagnostics.iterate(
                FitTrace(
                    iteration=self.iteration,
                    x=x.copy(),
                    objective=value,
                    gradient=None if gradient is None else gradient.copy(),
                )
            )
        return value, gradient

    def value(self, x: Any) -> float:
        """Objective only, no gradient."""
        return self(x, grad=False)[0]
