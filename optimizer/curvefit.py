from __future__ import annotations
from typing import Callable, Dict, Optional, Sequence, Union
import warnings
import numpy as np

from scipy.optimize import OptimizeResult

from .base import Solver, CONVERGED, SOFT_STOP, FATAL, numeric_gradient
from .errors import ConfigurationError, NonConvergenceFatal, NonConvergenceWarning


class CurveFitter(Solver):
    """
    Least-squares parameter fit by per-coordinate adaptive-step descent.

    The cost ``f_cost(observed, *params)`` is minimised directly. Every
    coordinate moves by ``sign(g) * min(cost / |g|, max_stepsize)``. A rejected
    candidate shrinks the step bound of the steepest coordinate to a quarter;
    the next accepted candidate doubles that same bound again.

    Options:
    - tol: relative improvement below which the fit is converged (default 1e-6)
    - maxiter: hard iteration cap (default 100000)
    - max_nonimprovement: rejected candidates in a row before a soft stop (default 20)
    - max_stepsize: initial step bound, scalar or one per parameter (default 1.0)
    """
    def __init__(self, options: Optional[Dict] = None):
        super().__init__(options)
        opt = self.options
        self.tol: float = float(opt.get("tol", 1e-6))
        self.maxiter: int = int(opt.get("maxiter", 100000))
        self.max_nonimprovement: int = int(opt.get("max_nonimprovement", 20))
        self.max_stepsize: Union[float, Sequence[float]] = opt.get("max_stepsize", 1.0)

    def _steps(self, fval: float, gval: np.ndarray, max_step: np.ndarray) -> np.ndarray:
        mag = np.abs(gval)
        with np.errstate(divide="ignore", invalid="ignore"):
            cauchy = np.where(mag > 0, fval / mag, np.inf)
        return np.sign(gval) * np.minimum(cauchy, max_step)

    def run(self, f_cost: Callable, observed, init: Sequence[float]) -> OptimizeResult:
        params = np.array(init, dtype=float)
        if params.ndim != 1 or params.size == 0:
            raise ConfigurationError("init must be a non-empty 1-D sequence of parameters")
        max_step = np.asarray(self.max_stepsize, dtype=float)
        if max_step.ndim > 0 and max_step.shape != params.shape:
            raise ConfigurationError(
                f"max_stepsize has {max_step.size} entries but there are {params.size} parameters")
        # Private copy, the bounds are rescaled in place during the fit
        max_step = np.broadcast_to(max_step, params.shape).copy()

        func = lambda p: float(f_cost(observed, *p))
        fgrad = lambda p: numeric_gradient(func, p, self.epsilon)

        fval = func(params)
        gval = fgrad(params)
        nfev = 1
        # Sign of every parameter at the start of the fit. Kept for inspection on the
        # result; the search itself may flip signs.
        sign = np.sign(params)
        step = self._steps(fval, gval, max_step)

        it = 1
        delta = 1.0
        bounceback = False
        idx = int(np.argmax(np.abs(gval) * max_step))
        non_improvement = 0
        history = [{"iter": 0, "f": fval, "x": params.copy()}] if self.trace else None

        while delta >= self.tol:
            candidate = params - step
            f_new = func(candidate)
            nfev += 1
            if f_new < fval:
                delta = (fval - f_new) / fval
                params = candidate
                fval = f_new
                gval = fgrad(params)
                if bounceback:
                    max_step[idx] *= 2.0
                bounceback = False
                non_improvement = 0
            else:
                non_improvement += 1
                bounceback = True
                idx = int(np.argmax(np.abs(gval * max_step)))
                max_step[idx] *= 0.25
            step = self._steps(fval, gval, max_step)
            if history is not None:
                history.append({"iter": it, "f": fval, "x": params.copy()})

            it += 1
            if it >= self.maxiter:
                res = self.make_result(params, fval, FATAL, it, nfev,
                                       "iteration cap reached", history, sign=sign)
                raise NonConvergenceFatal(
                    f"Maximum iterations ({self.maxiter}) exceeded, terminating curve fit", res)

            if non_improvement >= self.max_nonimprovement:
                warnings.warn(
                    f"Objective not improving after {self.max_nonimprovement} iterations, "
                    f"returning current best guess (cost {fval!r})",
                    NonConvergenceWarning,
                    stacklevel=3,
                )
                return self.make_result(params, fval, SOFT_STOP, it, nfev,
                                        "non-improvement streak", history, sign=sign)

        return self.make_result(params, fval, CONVERGED, it, nfev,
                                "relative improvement below tol", history, sign=sign)


def lsq_curve_fit(f_cost: Callable, observed, init: Sequence[float],
                  max_stepsize: Union[float, Sequence[float]] = 1.0,
                  tol: float = 1e-6, maxiter: int = 100000,
                  max_nonimprovement: int = 20) -> np.ndarray:
    """
    Fit parameters minimising ``f_cost(observed, *params)`` from ``init``.

    Returns the fitted parameter vector. Raises NonConvergenceFatal when
    ``maxiter`` is reached; warns and returns the best point when the cost has
    not improved for ``max_nonimprovement`` candidates in a row.
    """
    fitter = CurveFitter({
        "tol": tol,
        "maxiter": maxiter,
        "max_nonimprovement": max_nonimprovement,
        "max_stepsize": max_stepsize,
    })
    return fitter.run(f_cost, observed, init).x
