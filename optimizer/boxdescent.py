from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Union
import numpy as np

from scipy.optimize import OptimizeResult

from .base import Solver, Bounds, CONVERGED, FATAL, as_box
from .errors import ConfigurationError, NonConvergenceFatal


@dataclass
class Constraint:
    """
    Inequality constraint, feasible iff ``predicate(x) <= 0``.

    ``indices`` are the decision coordinates pulled back toward the lower edge
    of the bounding box while the constraint is violated.
    """
    predicate: Callable[[np.ndarray], float]
    indices: Sequence[int]
    name: str = ""


@dataclass
class BoundingBox:
    lower: np.ndarray
    upper: np.ndarray

    @classmethod
    def from_bounds(cls, bounds: Bounds, n: int) -> "BoundingBox":
        lo, hi = as_box(bounds, n)
        return cls(lower=lo, upper=hi)

    def width(self) -> np.ndarray:
        return self.upper - self.lower

    def is_open(self, tol: np.ndarray) -> bool:
        return bool(np.any(self.width() >= tol))

    def advance(self, x: np.ndarray, gval: np.ndarray) -> None:
        # A non-positive slope means the minimum lies at or above x, and vice versa
        rising = gval <= 0
        falling = gval >= 0
        self.lower[rising] = x[rising]
        self.upper[falling] = x[falling]


class BoxDescent(Solver):
    """
    Box-constrained local minimiser driven by an advancing bounding box.

    Each iteration the box edge behind the current point (as seen from the sign
    of the gradient) is moved up to the point, then the point moves by
    ``stepsize * box width`` against the gradient sign. Steps shrink with the
    box; the search stops once every box width is below ``tol``. There is no
    line search.

    With constraints the penalised objective ``f + sum(penalty * max(g, 0))``
    is minimised. While any constraint is violated the gradient step is skipped
    and the coordinates governed by each violated constraint are pulled a
    ``stepsize`` fraction back toward the lower box edge instead.

    Options:
    - stepsize: fraction of the box width moved per step (default 0.5)
    - tol: box width tolerance, scalar or one per coordinate (default 1e-6)
    - maxiter: hard iteration cap (default 1000)
    - penalty: weight per constraint, scalar or one per constraint (default 1e4)
    - cap_on_violation: lower the upper box edge to a violating point before
      pulling back (default False, which leaves the box untouched during
      restoration).
    """
    def __init__(self, options: Optional[Dict] = None):
        super().__init__(options)
        opt = self.options
        self.stepsize: float = float(opt.get("stepsize", 0.5))
        self.tol: Union[float, Sequence[float]] = opt.get("tol", 1e-6)
        self.maxiter: int = int(opt.get("maxiter", 1000))
        self.penalty: Union[float, Sequence[float]] = opt.get("penalty", 1e4)
        self.cap_on_violation: bool = bool(opt.get("cap_on_violation", False))

    def _per_coordinate(self, value, n: int, what: str) -> np.ndarray:
        arr = np.asarray(value, dtype=float)
        if arr.ndim > 0 and arr.shape != (n,):
            raise ConfigurationError(f"{what} has {arr.size} entries, expected 1 or {n}")
        return np.broadcast_to(arr, (n,)).copy()

    def _check_constraints(self, constraints: Optional[Sequence[Constraint]], n: int) -> List[Constraint]:
        checked = []
        for k, c in enumerate(constraints or []):
            idx = np.asarray(c.indices, dtype=int).ravel()
            if idx.size == 0:
                raise ConfigurationError(f"constraint {c.name or k} governs no coordinates")
            if np.any(idx < 0) or np.any(idx >= n):
                raise ConfigurationError(
                    f"constraint {c.name or k} refers to coordinates {idx.tolist()} outside 0..{n - 1}")
            checked.append(Constraint(c.predicate, np.unique(idx), c.name))
        return checked

    def run(self, f: Callable[[np.ndarray], float], x0: Sequence[float], bounds: Optional[Bounds] = None,
            grad: Optional[Callable] = None,
            constraints: Optional[Sequence[Constraint]] = None) -> OptimizeResult:
        x = np.array(x0, dtype=float).ravel()
        n = x.size
        if bounds is None:
            bounds = [(0.0, 1.0)] * n
        box = BoundingBox.from_bounds(bounds, n)
        # Start inside the box
        x = np.minimum(np.maximum(x, box.lower), box.upper)
        tol = self._per_coordinate(self.tol, n, "tol")

        cons = self._check_constraints(constraints, n)
        nfev = 0

        def fcount(v):
            nonlocal nfev
            nfev += 1
            return f(v)

        if cons:
            lam = self._per_coordinate(self.penalty, len(cons), "penalty")

            def objective(v):
                return fcount(v) + sum(l * max(c.predicate(v), 0.0) for l, c in zip(lam, cons))
        else:
            objective = fcount
        fgrad = self.gradient(objective, grad)

        it = 1
        history = [] if self.trace else None

        while box.is_open(tol):
            if all(c.predicate(x) <= 0 for c in cons):
                gval = np.asarray(fgrad(x), dtype=float)
                box.advance(x, gval)
                x = x - self.stepsize * box.width() * np.sign(gval)
            else:
                for c in cons:
                    if c.predicate(x) >= 0:
                        idx = c.indices
                        if self.cap_on_violation:
                            box.upper[idx] = np.minimum(box.upper[idx], x[idx])
                        x[idx] -= (x[idx] - box.lower[idx]) * self.stepsize

            if history is not None:
                history.append({"iter": it, "f": float(objective(x)), "x": x.copy(),
                                "width": float(np.max(box.width()))})

            it += 1
            if it > self.maxiter:
                res = self.make_result(x, objective(x), FATAL, it - 1, nfev,
                                       "iteration cap reached", history)
                raise NonConvergenceFatal(
                    f"Maximum iterations ({self.maxiter}) exceeded, box width still "
                    f"{np.max(box.width()):.3e}", res)

        return self.make_result(x, objective(x), CONVERGED, it - 1, nfev,
                                "bounding box below tol", history,
                                lower=box.lower.copy(), upper=box.upper.copy())


def minimize_box(f: Callable[[np.ndarray], float], x0: Sequence[float], bounds: Optional[Bounds] = None,
                 grad: Optional[Callable] = None, stepsize: float = 0.5,
                 tol: Union[float, Sequence[float]] = 1e-6, maxiter: int = 1000) -> np.ndarray:
    """Minimise ``f`` inside ``bounds`` (default [0, 1] per coordinate) from ``x0``."""
    opt = BoxDescent({"stepsize": stepsize, "tol": tol, "maxiter": maxiter})
    return opt.run(f, x0, bounds, grad=grad).x


def minimize_box_constrained(f: Callable[[np.ndarray], float], x0: Sequence[float],
                             constraints: Sequence[Constraint], bounds: Optional[Bounds] = None,
                             grad: Optional[Callable] = None,
                             penalty: Union[float, Sequence[float]] = 1e4, stepsize: float = 0.5,
                             tol: Union[float, Sequence[float]] = 1e-6, maxiter: int = 1000,
                             cap_on_violation: bool = False) -> np.ndarray:
    """
    Minimise ``f`` inside ``bounds`` subject to ``c.predicate(x) <= 0`` for every
    constraint, with feasibility restoration on the coordinates each constraint names.
    """
    opt = BoxDescent({
        "stepsize": stepsize,
        "tol": tol,
        "maxiter": maxiter,
        "penalty": penalty,
        "cap_on_violation": cap_on_violation,
    })
    return opt.run(f, x0, bounds, grad=grad, constraints=constraints).x
