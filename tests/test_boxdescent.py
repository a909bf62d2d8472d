import numpy as np
import pytest

from optimizer.boxdescent import BoxDescent, BoundingBox, Constraint, minimize_box, minimize_box_constrained
from optimizer.errors import ConfigurationError, NonConvergenceFatal
from benchmarks.quadratic import bowl, bowl_gradient, negative_sum

CENTER = (0.3, 0.7)
BOX = [(0.0, 1.0), (0.0, 1.0)]


def test_bowl_converges_to_center():
    x = minimize_box(lambda v: bowl(v, CENTER), [0.5, 0.5], BOX, tol=1e-6)
    assert np.allclose(x, CENTER, atol=1e-5)


def test_bowl_with_analytic_gradient():
    res = BoxDescent({"tol": 1e-8}).run(lambda v: bowl(v, CENTER), [0.5, 0.5], BOX,
                                        grad=lambda v: bowl_gradient(v, CENTER))
    assert res.success
    assert np.allclose(res.x, CENTER, atol=1e-7)
    assert np.all(res.upper - res.lower < 1e-8)


def test_minimum_on_the_boundary():
    x = minimize_box(lambda v: bowl(v, (1.5, -0.2)), [0.5, 0.5], BOX)
    assert np.allclose(x, [1.0, 0.0], atol=1e-5)


def test_box_stays_inside_bounds_and_shrinks():
    res = BoxDescent({"trace": True}).run(lambda v: bowl(v, CENTER), [0.5, 0.5], BOX)
    widths = [h["width"] for h in res.history]
    assert all(w2 <= w1 for w1, w2 in zip(widths, widths[1:]))
    xs = np.array([h["x"] for h in res.history])
    assert np.all(xs >= 0.0) and np.all(xs <= 1.0)


def test_start_outside_bounds_is_projected():
    x = minimize_box(lambda v: bowl(v, CENTER), [3.0, -2.0], BOX)
    assert np.allclose(x, CENTER, atol=1e-5)


def test_iteration_cap_is_fatal():
    with pytest.raises(NonConvergenceFatal) as excinfo:
        minimize_box(lambda v: bowl(v, CENTER), [0.5, 0.5], BOX, maxiter=5)
    assert excinfo.value.result.status == 2


def test_tol_length_must_match():
    with pytest.raises(ConfigurationError):
        minimize_box(lambda v: bowl(v, CENTER), [0.5, 0.5], BOX, tol=[1e-6, 1e-6, 1e-6])


def test_bounding_box_advance():
    box = BoundingBox.from_bounds(BOX, 2)
    box.advance(np.array([0.4, 0.6]), np.array([-1.0, 2.0]))
    assert np.allclose(box.lower, [0.4, 0.0])
    assert np.allclose(box.upper, [1.0, 0.6])


def test_constrained_sum_reaches_the_constraint():
    # Early iterates overshoot the budget from this start; only the returned point is checked
    budget = Constraint(lambda v: v[0] + v[1] - 1.0, indices=[0, 1], name="budget")
    res = BoxDescent({"tol": 1e-6}).run(negative_sum, [0.25, 0.25], BOX, constraints=[budget])
    assert res.success
    assert abs(res.x.sum() - 1.0) < 1e-5
    assert res.x.sum() <= 1.0 + 1e-5


def test_constrained_functional_wrapper():
    budget = Constraint(lambda v: v[0] + v[1] - 1.0, indices=[0, 1])
    x = minimize_box_constrained(negative_sum, [0.25, 0.25], [budget], BOX)
    assert abs(x.sum() - 1.0) < 1e-5


def test_restoration_only_moves_governed_coordinates():
    # Violated from the start: only coordinate 0 is pulled back
    cap = Constraint(lambda v: v[0] - 0.5, indices=[0])
    opt = BoxDescent({"trace": True, "maxiter": 1})
    with pytest.raises(NonConvergenceFatal) as excinfo:
        opt.run(lambda v: bowl(v, (1.0, 0.2)), [0.9, 0.4], BOX, constraints=[cap])
    hist = excinfo.value.result.history
    assert np.isclose(hist[0]["x"][0], 0.45)
    assert np.isclose(hist[0]["x"][1], 0.4)


def test_restoration_closes_the_box_within_default_maxiter():
    # Upper edge only moves once the penalty enters the gradient at the boundary
    budget = Constraint(lambda v: v[0] + v[1] - 1.0, indices=[0, 1])
    res = BoxDescent({"cap_on_violation": False}).run(negative_sum, [0.25, 0.25], BOX, constraints=[budget])
    assert res.success
    assert res.nit <= 1000
    assert abs(res.x.sum() - 1.0) < 1e-5


def test_capped_restoration_reaches_the_constraint():
    budget = Constraint(lambda v: v[0] + v[1] - 1.0, indices=[0, 1])
    x = minimize_box_constrained(negative_sum, [0.25, 0.25], [budget], BOX, cap_on_violation=True)
    assert abs(x.sum() - 1.0) < 1e-5


def test_constrained_iterates_stay_feasible_from_the_midpoint():
    budget = Constraint(lambda v: v[0] + v[1] - 1.0, indices=[0, 1])
    res = BoxDescent({"trace": True}).run(negative_sum, [0.5, 0.5], BOX, constraints=[budget])
    assert res.success
    assert max(h["x"].sum() for h in res.history) <= 1.0 + 1e-6
    assert abs(res.x.sum() - 1.0) < 1e-5


def test_constraint_indices_are_validated():
    with pytest.raises(ConfigurationError):
        minimize_box_constrained(negative_sum, [0.25, 0.25],
                                 [Constraint(lambda v: v[0] - 1.0, indices=[2])], BOX)
    with pytest.raises(ConfigurationError):
        minimize_box_constrained(negative_sum, [0.25, 0.25],
                                 [Constraint(lambda v: v[0] - 1.0, indices=[])], BOX)
