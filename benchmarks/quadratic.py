import numpy as np


def bowl(x: np.ndarray, center) -> float:
    """
    Shifted quadratic bowl sum((x - center)^2).
    Global minimum at x = center, f = 0.
    """
    x = np.asarray(x, dtype=float)
    c = np.asarray(center, dtype=float)
    return float(np.sum((x - c) ** 2))


def bowl_gradient(x: np.ndarray, center) -> np.ndarray:
    x = np.asarray(x, dtype=float)
    return 2.0 * (x - np.asarray(center, dtype=float))


def negative_sum(x: np.ndarray) -> float:
    """-(x1 + ... + xn); unbounded below without constraints."""
    return -float(np.sum(x))
