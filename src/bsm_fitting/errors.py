from __future__ import annotations

__all__ = ["DomainError", "InvalidModelError"]


class DomainError(ValueError):
    """An input lies outside the domain a routine requires.

    Raised by the point-selection heuristic when its half-derivative point
    does not fall strictly inside ``(min_t, max_t)``, and by sample-set
    validation.
    """


class InvalidModelError(ArithmeticError):
    """A fitted model has no valid four-parameter interpretation (r <= 0 or b < 0)."""
