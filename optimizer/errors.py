from __future__ import annotations

from typing import Optional

from scipy.optimize import OptimizeResult


class ConfigurationError(ValueError):
    """Malformed bounds, shapes or index groups. Raised before any iteration."""


class DomainError(ValueError):
    """Initial point outside the supplied bounds."""


class NonConvergenceFatal(RuntimeError):
    """
    Iteration cap exceeded. The best point reached before the abort is kept on
    ``result`` so callers can inspect it, but the call itself has failed.
    """
    def __init__(self, message: str, result: Optional[OptimizeResult] = None):
        super().__init__(message)
        self.result = result


class NonConvergenceWarning(RuntimeWarning):
    """Soft stop: the solver returned its best point without meeting tol."""
