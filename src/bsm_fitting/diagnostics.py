"""Optional diagnostics sinks for the fit driver.

A sink only observes: nothing it does feeds back into the numbers the
objective returns.
"""
from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Any, List, Optional, TextIO

import numpy as np

from .util import format_array

__all__ = ["FitTrace", "Diagnostics", "StreamDiagnostics", "RecordingDiagnostics"]


@dataclass(frozen=True)
class FitTrace:
    """One objective evaluation."""

    iteration: int
    x: np.ndarray
    objective: float
    gradient: Optional[np.ndarray] = None


class Diagnostics:
    """Base sink: every hook is a no-op."""

    def samples(self, t: np.ndarray, lnl: np.ndarray, w: np.ndarray) -> None:
        pass

    def iterate(self, trace: FitTrace) -> None:
        pass

    def finished(self, status: Any, x: np.ndarray, message: str = "") -> None:
        pass


class StreamDiagnostics(Diagnostics):
    """Print samples and iterates to a text stream (stderr by default)."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream

    def _write(self, line: str) -> None:
        stream = self.stream if self.stream is not None else sys.stderr
        stream.write(line + "\n")

    def samples(self, t, lnl, w) -> None:
        self._write(f"t = {format_array(t)}")
        self._write(f"lnl = {format_array(lnl)}")
        self._write(f"w = {format_array(w)}")

    def iterate(self, trace: FitTrace) -> None:
        line = (
            f"N[{trace.iteration:4d}] rsse = {np.sqrt(trace.objective):.3f}"
            f", model = {format_array(trace.x, '.3f')}"
        )
        if trace.gradient is not None:
            line += f", grad = {format_array(trace.gradient, '.6f')}"
        self._write(line)

    def finished(self, status, x, message: str = "") -> None:
        name = getattr(status, "name", str(status))
        self._write(f"status = {name}, model = {format_array(x, '.6g')} {message}".rstrip())


@dataclass
class RecordingDiagnostics(Diagnostics):
    """Keep everything in memory (handy in tests and notebooks)."""

    traces: List[FitTrace] = field(default_factory=list)
    sample_sets: List[tuple] = field(default_factory=list)
    status: Any = None

    def samples(self, t, lnl, w) -> None:
        self.sample_sets.append((np.array(t), np.array(lnl), np.array(w)))

    def iterate(self, trace: FitTrace) -> None:
        self.traces.append(trace)

    def finished(self, status, x, message: str = "") -> None:
        self.status = status
