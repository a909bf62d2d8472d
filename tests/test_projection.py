import numpy as np
import pytest

from optimizer.base import as_box, project
from optimizer.errors import ConfigurationError


def test_project_clips():
    bounds = [(-1.0, 1.0)] * 3
    x = np.array([ -2.0, 0.5,  5.0 ])
    y = project(x, bounds)
    assert np.allclose(y, np.array([-1.0, 0.5, 1.0]))


def test_as_box_returns_fresh_arrays():
    bounds = np.array([[0.0, 1.0], [2.0, 3.0]])
    lo, hi = as_box(bounds)
    lo[0] = 5.0
    assert bounds[0, 0] == 0.0
    assert np.allclose(hi, [1.0, 3.0])


def test_as_box_rejects_inverted_and_misshaped_bounds():
    with pytest.raises(ConfigurationError):
        as_box([(1.0, 0.0)])
    with pytest.raises(ConfigurationError):
        as_box([0.0, 1.0])
    with pytest.raises(ConfigurationError):
        as_box([(0.0, 1.0)] * 2, n=3)
