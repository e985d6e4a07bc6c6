from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from .errors import DomainError
from .util import as_vector


@dataclass(frozen=True)
class SampleSet:
    """Observed (t, lnl, w) triples for one fit call.

    Arrays are copied into contiguous read-only buffers on construction, so the
    objective and constraint callbacks can only borrow them.
    """

    t: np.ndarray
    lnl: np.ndarray
    w: np.ndarray

    def __post_init__(self) -> None:
        t = as_vector(self.t, "t")
        lnl = as_vector(self.lnl, "lnl")
        w = as_vector(self.w, "w")

        n = t.shape[0]
        if n == 0:
            raise ValueError("SampleSet requires at least one sample.")
        if lnl.shape[0] != n or w.shape[0] != n:
            raise ValueError(
                f"t, lnl and w must have equal length (got {n}, {lnl.shape[0]}, {w.shape[0]})."
            )
        if not (np.all(np.isfinite(t)) and np.all(np.isfinite(lnl))):
            raise DomainError("Sample points and log-likelihoods must be finite.")
        if not np.all(np.isfinite(w)) or np.any(w < 0.0):
            raise DomainError("Sample weights must be finite and non-negative.")

        object.__setattr__(self, "t", t)
        object.__setattr__(self, "lnl", lnl)
        object.__setattr__(self, "w", w)

    @staticmethod
    def from_arrays(t: Any, lnl: Any, w: Optional[Any] = None) -> "SampleSet":
        """Build a sample set; unit weights when ``w`` is None."""
        if w is None:
            w = np.ones(np.shape(np.atleast_1d(t)), dtype=float)
        return SampleSet(t=t, lnl=lnl, w=w)

    def __len__(self) -> int:
        return int(self.t.shape[0])

    def sse(self, predicted: Any) -> float:
        """Weighted sum of squared errors against predicted normalized lnl."""
        err = self.lnl - np.asarray(predicted, dtype=float)
        return float(np.sum(self.w * err * err))
