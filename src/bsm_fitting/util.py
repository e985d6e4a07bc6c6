from __future__ import annotations

from typing import Any

import numpy as np


def as_vector(values: Any, name: str) -> np.ndarray:
    """Return a contiguous, read-only 1-D float copy of ``values``."""
    arr = np.array(values, dtype=float, copy=True)
    if arr.ndim == 0:
        arr = arr.reshape(1)
    if arr.ndim != 1:
        raise ValueError(f"{name} must be one-dimensional, got shape {arr.shape}.")
    arr = np.ascontiguousarray(arr)
    arr.setflags(write=False)
    return arr


def format_array(values: Any, fmt: str = "g") -> str:
    """Render a vector as ``{ a, b, c }``."""
    return "{ " + ", ".join(format(float(v), fmt) for v in np.ravel(values)) + " }"
