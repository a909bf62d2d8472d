import numpy as np
import pytest

from induction.bounds import DecisionLayout, pair_coordinates, resolve_bounds
from optimizer.errors import ConfigurationError
from benchmarks.targets import TargetModel

# 4 periods, parameters s (scalar) and xi (2 entries): 3 coordinates per period
T = 4


def layout():
    m = TargetModel({"s": (T,), "xi": (T, 2)})
    return DecisionLayout.from_model(m, [("alloc", "s"), ("alloc", "xi")])


def test_layout_sizes_and_slices():
    lay = layout()
    assert lay.sizes == [1, 2]
    assert lay.n_vars == 3
    assert lay.n_periods == T
    parts = lay.split(np.array([0.1, 0.2, 0.3]))
    assert parts[0].shape == ()
    assert np.allclose(parts[1], [0.2, 0.3])
    assert np.array_equal(lay.indices([1]), [1, 2])


def test_default_bounds():
    assert np.all(resolve_bounds(None, layout(), 0.0) == 0.0)
    assert resolve_bounds(None, layout(), 1.0).shape == (T, 3)


def test_full_matrix():
    vals = np.arange(T * 3, dtype=float)
    out = resolve_bounds(vals, layout(), 0.0)
    # Flat input runs over periods first
    assert np.array_equal(out[:, 0], [0, 1, 2, 3])
    assert np.array_equal(out[0], [0, 4, 8])
    assert np.array_equal(out, vals.reshape((T, 3), order="F"))
    assert np.array_equal(resolve_bounds(vals.reshape(T, 3), layout(), 0.0), vals.reshape(T, 3))


def test_per_coordinate_broadcast_over_periods():
    out = resolve_bounds([0.1, 0.2, 0.3], layout(), 0.0)
    assert np.allclose(out, np.tile([0.1, 0.2, 0.3], (T, 1)))


def test_per_parameter_expanded_over_coordinates():
    out = resolve_bounds([0.5, 0.9], layout(), 0.0)
    assert np.allclose(out, np.tile([0.5, 0.9, 0.9], (T, 1)))


def test_per_period_broadcast_warns():
    with pytest.warns(UserWarning, match="per period"):
        out = resolve_bounds([0.1, 0.2, 0.3, 0.4], layout(), 0.0)
    assert np.allclose(out[:, 0], [0.1, 0.2, 0.3, 0.4])
    assert np.allclose(out[2], [0.3, 0.3, 0.3])


def test_any_other_length_is_rejected():
    with pytest.raises(ConfigurationError):
        resolve_bounds([0.1] * 5, layout(), 0.0)


def test_pair_coordinates_lengths_must_match():
    assert pair_coordinates(["welfare", "production"], ["s", "xi"]) == [("welfare", "s"), ("production", "xi")]
    assert pair_coordinates("welfare", "s") == [("welfare", "s")]
    with pytest.raises(ConfigurationError):
        pair_coordinates(["welfare", "welfare"], ["s"])


def test_index_groups_are_validated():
    with pytest.raises(ConfigurationError):
        layout().indices([2])
    with pytest.raises(ConfigurationError):
        layout().indices([])
