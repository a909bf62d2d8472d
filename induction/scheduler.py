from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence
import numpy as np

from scipy.optimize import OptimizeResult

from optimizer.base import status_name
from optimizer.boxdescent import BoxDescent, Constraint
from optimizer.errors import ConfigurationError
from .bounds import Coordinate, DecisionLayout, resolve_bounds
from .model import EvaluableModel


@dataclass
class ModelConstraint:
    """
    Period constraint ``func(model, period) <= 0``, evaluated after the model
    has been re-run with the candidate decisions. ``parameters`` lists the
    positions (in the coordinate list) of the decision parameters that are
    pulled back while it is violated.
    """
    func: Callable[[EvaluableModel, int], float]
    parameters: Sequence[int]
    name: str = ""


@dataclass
class PeriodProblem:
    """
    Binds the model handle, one period and the decision layout, and builds the
    objective and constraint closures the box optimiser sees for that period.
    Every evaluation writes the candidate into the model and re-runs it.
    """
    model: EvaluableModel
    period: int
    layout: DecisionLayout

    def apply(self, x: np.ndarray) -> None:
        for (comp, param), vals in zip(self.layout.coordinates, self.layout.split(x)):
            self.model.set(comp, param, self.period, vals)

    def evaluate(self, x: np.ndarray) -> None:
        self.apply(x)
        self.model.run()

    def objective(self, func: Callable[[EvaluableModel], float]) -> Callable[[np.ndarray], float]:
        def f(x):
            self.evaluate(x)
            return float(func(self.model))
        return f

    def constraint(self, con: ModelConstraint) -> Constraint:
        def g(x):
            self.evaluate(x)
            return float(con.func(self.model, self.period))
        return Constraint(g, self.layout.indices(con.parameters), con.name)


class BackwardInduction:
    """
    Period-by-period optimisation of an external model, last period first.

    When period t is solved every later period already holds its own optimum,
    so each local problem is solved against the continuation that will actually
    be used. This is one backward sweep, not dynamic programming: no
    continuation values are computed and the joint optimum is not guaranteed.

    The model is mutated in place: initial decisions (projected onto the bounds)
    are written before the sweep and each period's optimum is written as soon
    as it is found.

    Options (passed through to BoxDescent unless noted):
    - stepsize, tol, penalty, cap_on_violation, epsilon
    - maxiter: per-period iteration cap (default 100)
    - verbose: print one progress line per period (default False)
    """
    def __init__(self, model: EvaluableModel, coordinates: Sequence[Coordinate],
                 objective: Callable[[EvaluableModel], float],
                 lower=None, upper=None,
                 constraints: Sequence[ModelConstraint] = (),
                 init=None, options: Optional[Dict] = None):
        self.model = model
        self.layout = DecisionLayout.from_model(model, coordinates)
        self.objective = objective
        self.constraints: List[ModelConstraint] = list(constraints)
        for con in self.constraints:
            self.layout.indices(con.parameters)

        self.lower = resolve_bounds(lower, self.layout, 0.0, "lower bound")
        self.upper = resolve_bounds(upper, self.layout, 1.0, "upper bound")
        if np.any(self.lower > self.upper):
            raise ConfigurationError("lower bounds exceed upper bounds for some periods/coordinates")

        opt = dict(options or {})
        self.verbose: bool = bool(opt.pop("verbose", False))
        opt.setdefault("maxiter", 100)
        self.solver = BoxDescent(opt)

        T, n = self.layout.n_periods, self.layout.n_vars
        if init is None:
            start = self.layout.initial(model)
        else:
            start = np.asarray(init, dtype=float)
            if start.size != T * n:
                raise ConfigurationError(f"init has {start.size} values, expected {T} x {n}")
            start = start.reshape(T, n)
        self.init = np.clip(start, self.lower, self.upper)
        self.decisions = self.init.copy()
        self._primed = False

    @property
    def n_periods(self) -> int:
        return self.layout.n_periods

    def problem(self, period: int) -> PeriodProblem:
        if not isinstance(period, (int, np.integer)) or not 0 <= period < self.n_periods:
            raise ConfigurationError(f"period {period!r} outside 0..{self.n_periods - 1}")
        return PeriodProblem(self.model, int(period), self.layout)

    def prime(self) -> None:
        """Write the starting decisions for every period and re-run the model."""
        for t in range(self.n_periods):
            self.problem(t).apply(self.decisions[t])
        self.model.run()
        self._primed = True

    def solve_period(self, period: int) -> OptimizeResult:
        prob = self.problem(period)
        if not self._primed:
            self.prime()
        t = prob.period
        f = prob.objective(self.objective)
        cons = [prob.constraint(c) for c in self.constraints]
        bounds = np.column_stack([self.lower[t], self.upper[t]])

        res = self.solver.run(f, self.decisions[t], bounds, constraints=cons or None)

        self.decisions[t] = res.x
        prob.evaluate(res.x)
        if self.verbose:
            print(f"[Period {t}] Iters: {res.nit} | Evals: {res.nfev} | Objective: {res.fun:.6e} "
                  f"| Status: {status_name(res.status)}")
        return res

    def solve(self, periods: Optional[Sequence[int]] = None) -> np.ndarray:
        """
        Solve the listed periods (all by default) from last to first and return
        the (periods, coordinates) decision matrix. Rows of periods that were
        not solved keep their starting values.
        """
        order = range(self.n_periods) if periods is None else [self.problem(t).period for t in periods]
        for t in sorted(set(order), reverse=True):
            self.solve_period(t)
        return self.decisions.copy()


def solve(model: EvaluableModel, coordinates: Sequence[Coordinate],
          objective: Callable[[EvaluableModel], float],
          lower=None, upper=None, periods: Optional[Sequence[int]] = None,
          constraints: Sequence[ModelConstraint] = (), init=None, **options) -> np.ndarray:
    """Backward-induction solve of ``model``; returns the decision matrix."""
    sched = BackwardInduction(model, coordinates, objective, lower=lower, upper=upper,
                              constraints=constraints, init=init, options=options)
    return sched.solve(periods)
