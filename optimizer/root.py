from __future__ import annotations
from typing import Callable, Dict, Optional, Sequence
import math
import warnings

from scipy.optimize import OptimizeResult

from .base import Solver, CONVERGED, SOFT_STOP, numeric_derivative
from .errors import ConfigurationError, DomainError, NonConvergenceWarning


class RootFinder(Solver):
    """
    Bounded 1-D root finder.

    Newton's ratio f(x)/f'(x) only decides the direction and size of the move;
    the move itself is a fraction ``1 - exp(-|f/f'|)`` of the distance to the
    bound on that side, so the iterate can never leave (lo, hi). Convergence is
    linear rather than quadratic.

    Options:
    - tol: absolute residual tolerance (default 1e-6)
    - maxiter: iteration cap, soft (default 1000)
    """
    def __init__(self, options: Optional[Dict] = None):
        super().__init__(options)
        self.tol: float = float(self.options.get("tol", 1e-6))
        self.maxiter: int = int(self.options.get("maxiter", 1000))

    def run(self, f: Callable[[float], float], x0: float, bounds: Sequence[float],
            grad: Optional[Callable[[float], float]] = None) -> OptimizeResult:
        if len(bounds) != 2:
            raise ConfigurationError(
                f"bounds should hold exactly two values (lower, upper), got {len(bounds)}")
        lo, hi = float(bounds[0]), float(bounds[1])
        if lo >= hi:
            raise ConfigurationError(
                f"lower bound {lo} must be strictly smaller than upper bound {hi}")
        x = float(x0)
        if not lo < x < hi:
            raise DomainError(f"initial point {x} is not inside the open interval ({lo}, {hi})")

        if grad is None:
            grad = lambda v: numeric_derivative(f, v, self.epsilon)

        fval = f(x)
        f_lo = f(lo)
        if abs(f_lo) < self.tol:
            return self.make_result(lo, f_lo, CONVERGED, 0, 2, "root at lower bound")
        f_hi = f(hi)
        if abs(f_hi) < self.tol:
            return self.make_result(hi, f_hi, CONVERGED, 0, 3, "root at upper bound")

        nfev = 3
        it = 1
        history = [{"iter": 0, "x": x, "f": fval}] if self.trace else None

        while abs(fval) >= self.tol:
            gval = grad(x)
            ratio = fval / gval if gval != 0 else math.copysign(math.inf, fval)
            rate = 1.0 - math.exp(-abs(ratio))
            if ratio < 0:
                x += (hi - x) * rate
            else:
                x -= (x - lo) * rate
            fval = f(x)
            nfev += 1
            if history is not None:
                history.append({"iter": it, "x": x, "f": fval})

            it += 1
            if it >= self.maxiter:
                warnings.warn(
                    f"Maximum iterations ({self.maxiter}) exceeded, returning current best guess "
                    f"x={x!r} with residual {fval!r}",
                    NonConvergenceWarning,
                    stacklevel=3,
                )
                return self.make_result(x, fval, SOFT_STOP, it, nfev,
                                        "iteration cap reached", history)

        return self.make_result(x, fval, CONVERGED, it, nfev, "residual below tol", history)


def find_root(f: Callable[[float], float], x0: float, bounds: Sequence[float],
              grad: Optional[Callable[[float], float]] = None,
              tol: float = 1e-6, maxiter: int = 1000) -> float:
    """Return a root of ``f`` inside ``bounds`` starting from ``x0``."""
    res = RootFinder({"tol": tol, "maxiter": maxiter}).run(f, x0, bounds, grad=grad)
    return res.x
