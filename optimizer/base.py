from __future__ import annotations
from typing import Callable, Dict, List, Optional, Tuple
import numpy as np
from scipy.optimize import OptimizeResult, approx_fprime

from .errors import ConfigurationError

Bounds = List[Tuple[float, float]]

# Result status flags
CONVERGED = 0
SOFT_STOP = 1
FATAL = 2

_STATUS_NAMES = {CONVERGED: "converged", SOFT_STOP: "soft-stopped", FATAL: "fatal-aborted"}

EPSILON = float(np.sqrt(np.finfo(float).eps))


def project(x: np.ndarray, bounds: Bounds) -> np.ndarray:
    lo, hi = as_box(bounds)
    return np.minimum(np.maximum(x, lo), hi)


def as_box(bounds, n: Optional[int] = None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Split bounds given as a list of (lo, hi) pairs (or an (n, 2) array) into
    fresh lower and upper arrays.
    """
    arr = np.array(bounds, dtype=float)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ConfigurationError(f"bounds must be a sequence of (lo, hi) pairs, got shape {arr.shape}")
    if n is not None and arr.shape[0] != n:
        raise ConfigurationError(f"expected {n} (lo, hi) pairs, got {arr.shape[0]}")
    lo, hi = arr[:, 0].copy(), arr[:, 1].copy()
    if np.any(lo > hi):
        bad = np.flatnonzero(lo > hi).tolist()
        raise ConfigurationError(f"lower bound exceeds upper bound for coordinates {bad}")
    return lo, hi


def numeric_gradient(f: Callable, x: np.ndarray, epsilon: float = EPSILON) -> np.ndarray:
    """Forward-difference gradient of a scalar function of a vector."""
    return approx_fprime(np.asarray(x, dtype=float), f, epsilon)


def numeric_derivative(f: Callable, x: float, epsilon: float = EPSILON) -> float:
    """Forward-difference derivative of a scalar function of a scalar."""
    return float(approx_fprime(np.array([x], dtype=float), lambda v: f(float(v[0])), epsilon)[0])


class Solver:
    """
    Shared shell for the deterministic solvers.

    All iteration state lives inside a single ``run`` call, so one solver
    instance can be reused for independent problems. Knobs are read from an
    ``options`` dict the same way for every solver:

    - trace: record the iterate history on the result (default False)
    - epsilon: finite-difference step when no gradient is supplied
    """
    def __init__(self, options: Optional[Dict] = None):
        self.options: Dict = dict(options or {})
        self.trace: bool = bool(self.options.get("trace", False))
        self.epsilon: float = float(self.options.get("epsilon", EPSILON))

    def gradient(self, f: Callable, grad: Optional[Callable] = None) -> Callable:
        if grad is not None:
            return grad
        return lambda x: numeric_gradient(f, x, self.epsilon)

    def make_result(self, x, fun: float, status: int, nit: int, nfev: int,
                    message: str, history: Optional[List[Dict]] = None, **extra) -> OptimizeResult:
        res = OptimizeResult(
            x=x,
            fun=float(fun),
            status=status,
            success=status == CONVERGED,
            message=message,
            nit=nit,
            nfev=nfev,
            **extra,
        )
        if self.trace:
            res.history = list(history or [])
        return res


def status_name(status: int) -> str:
    return _STATUS_NAMES.get(status, "unknown")
