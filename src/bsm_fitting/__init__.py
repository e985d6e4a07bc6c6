"""bsm_fitting public API."""
from .backends import AVAILABLE_BACKENDS, FitStatus
from .constraints import Constraint
from .data import SampleSet
from .diagnostics import Diagnostics, FitTrace, RecordingDiagnostics, StreamDiagnostics
from .errors import DomainError, InvalidModelError
from .fit import fit, fit_auto, fit_samples, fit_weighted
from .models import BSM2, BSM3, BSM4
from .objective import WeightedObjective
from .plotting import plot_fit
from .sampling import compute_weights, four_points
from . import numeric

__all__ = [
    "AVAILABLE_BACKENDS",
    "BSM2",
    "BSM3",
    "BSM4",
    "Constraint",
    "Diagnostics",
    "DomainError",
    "FitStatus",
    "FitTrace",
    "InvalidModelError",
    "RecordingDiagnostics",
    "SampleSet",
    "StreamDiagnostics",
    "WeightedObjective",
    "compute_weights",
    "fit",
    "fit_auto",
    "fit_samples",
    "fit_weighted",
    "four_points",
    "numeric",
    "plot_fit",
]
