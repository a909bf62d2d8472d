from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from optimizer.curvefit import lsq_curve_fit


def tfp_curve(tfp0: float, g0: float, delta: float, n_periods: int) -> np.ndarray:
    """
    Total factor productivity path with a decaying growth rate.

    Parameters
    ----------
    tfp0 : float
        Productivity level before the first period.
    g0 : float
        Growth rate in the first period.
    delta : float
        Decay of the growth rate; period i grows by g0 / (1 + delta)^i.
    n_periods : int
        Length of the path.

    Returns
    -------
    path : np.ndarray
        tfp0 * prod_{j<=i} (1 + g0 / (1 + delta)^j) for i = 0 .. n_periods-1.
    """
    i = np.arange(n_periods, dtype=float)
    return tfp0 * np.cumprod(1.0 + g0 / (1.0 + delta) ** i)


def tfp_cost(observed, tfp0: float, g0: float, delta: float) -> float:
    """Sum of squared residuals between ``observed`` and the curve."""
    obs = np.asarray(observed, dtype=float)
    res = obs - tfp_curve(tfp0, g0, delta, obs.size)
    return float(np.sum(res ** 2))


def growth_rates(series) -> np.ndarray:
    s = np.asarray(series, dtype=float)
    return (s[1:] - s[:-1]) / s[:-1]


def initial_guess(observed, init_decay: float = 0.05) -> Tuple[float, float, float]:
    """Start from the first observation, the mean observed growth and a given decay."""
    obs = np.asarray(observed, dtype=float)
    return float(obs[0]), float(np.mean(growth_rates(obs))), float(init_decay)


def fit_tfp_curve(observed, init: Sequence[float] = None, init_decay: float = 0.05,
                  max_stepsize: Sequence[float] = (1.0, 1e-2, 1e-2), **kwargs) -> np.ndarray:
    """Least-squares fit of (tfp0, g0, delta) to an observed productivity series."""
    if init is None:
        init = initial_guess(observed, init_decay)
    return lsq_curve_fit(tfp_cost, observed, init, max_stepsize=list(max_stepsize), **kwargs)


def project_tfp(params: Sequence[float], tfp_start: float, offset: int, n_periods: int) -> np.ndarray:
    """
    Project a fitted curve forward from a new starting level.

    The growth rate is rebased to ``offset`` periods after the first fitted
    observation; the decay is kept.
    """
    _, g0, delta = params
    g_start = g0 / (1.0 + delta) ** offset
    return tfp_curve(tfp_start, g_start, delta, n_periods)
