import logging

import numpy as np
import pytest

from ganesh import Bounds, Minimizer, NelderMead, Summary
from ganesh.core.function import CallableFunction
from ganesh.solvers.gradient_free.nelder_mead import (
    MIN_SIMPLEX_SIZE,
    NelderMeadFTerminator,
    NelderMeadXTerminator,
    adaptive_coefficients,
    orthogonal_simplex,
    repair_degenerate_simplex,
)
from ganesh.test_functions import MultivariateNormal, Rosenbrock


def sphere(x: np.ndarray) -> float:
    return float(np.sum(x**2))


def test_adaptive_coefficients():
    alpha, beta, gamma, delta = adaptive_coefficients(4)
    assert alpha == 1.0
    assert beta == pytest.approx(1.5)
    assert gamma == pytest.approx(0.625)
    assert delta == pytest.approx(0.75)
    solver = NelderMead.with_adaptive(4)
    assert solver.beta == pytest.approx(1.5)


def test_adaptive_flag_sets_coefficients_at_initialize():
    solver = NelderMead(adaptive=True)
    Minimizer(solver, max_steps=1).minimize(sphere, np.ones(10))
    assert solver.beta == pytest.approx(1.2)
    assert solver.delta == pytest.approx(0.9)


def test_invalid_coefficients():
    with pytest.raises(ValueError):
        NelderMead(alpha=0.0)
    with pytest.raises(ValueError):
        NelderMead(gamma=1.5)
    with pytest.raises(ValueError):
        NelderMead(f_terminator=None, x_terminator=None)


def test_orthogonal_simplex():
    simplex = orthogonal_simplex(np.array([1.0, 2.0]), 0.5)
    np.testing.assert_array_equal(simplex, [[1.0, 2.0], [1.5, 2.0], [1.0, 2.5]])


def test_degenerate_simplex_is_repaired():
    coincident = np.array([[0.0, 0.0], [0.0, 0.0], [1.0, 1.0]])
    collinear = np.array([[0.0, 0.0], [1.0, 1.0], [2.0, 2.0]])
    for vertices in (coincident, collinear):
        repaired = repair_degenerate_simplex(vertices)
        edges = repaired[1:] - repaired[0]
        assert np.linalg.matrix_rank(edges) == 2
        assert np.all(np.linalg.norm(edges, axis=1) >= MIN_SIMPLEX_SIZE)
        np.testing.assert_array_equal(repaired[0], vertices[0])


def test_zero_size_simplex_still_converges():
    status = Minimizer(NelderMead(simplex_size=0.0)).minimize(sphere, [1.0, -1.0])
    assert status.converged
    np.testing.assert_allclose(status.x, [0.0, 0.0], atol=1e-3)


def test_custom_simplex():
    simplex = [[2.0, 2.0], [2.5, 2.0], [2.0, 2.5]]
    status = Minimizer(NelderMead(simplex=simplex)).minimize(Rosenbrock(2), [0.0, 0.0])
    assert status.converged
    np.testing.assert_allclose(status.x, [1.0, 1.0], atol=1e-3)


def test_custom_simplex_shape_mismatch():
    from ganesh import DimensionMismatch

    solver = NelderMead(simplex=[[0.0, 0.0], [1.0, 0.0]])
    with pytest.raises(DimensionMismatch):
        Minimizer(solver).minimize(sphere, [0.0, 0.0])


def test_nan_region_is_avoided():
    def walled(x):
        if x[0] > 1.5:
            return float("nan")
        return float((x[0] - 1.0) ** 2 + (x[1] + 0.5) ** 2)

    status = Minimizer(NelderMead()).minimize(walled, [0.0, 0.0])
    assert status.converged
    np.testing.assert_allclose(status.x, [1.0, -0.5], atol=1e-3)


@pytest.mark.parametrize("f_terminator", list(NelderMeadFTerminator))
@pytest.mark.parametrize("x_terminator", list(NelderMeadXTerminator))
def test_terminators_converge_on_quadratic(f_terminator, x_terminator):
    solver = NelderMead(f_terminator=f_terminator, x_terminator=x_terminator)
    status = Minimizer(solver, max_steps=2000).minimize(
        lambda x: sphere(x) + 1.0, [1.0, 2.0, -1.0]
    )
    assert status.converged
    assert f_terminator.name in status.message
    assert x_terminator.name in status.message
    np.testing.assert_allclose(status.x, np.zeros(3), atol=1e-2)


def test_single_terminator():
    solver = NelderMead(x_terminator=None)
    status = Minimizer(solver).minimize(sphere, [1.0, 1.0])
    assert status.converged
    assert status.message == "term_f = STDDEV"


def test_parameter_errors_match_gaussian_width():
    cov = np.array([[4.0, 0.0], [0.0, 0.25]])
    func = MultivariateNormal([1.0, 2.0], cov)
    status = Minimizer(NelderMead()).minimize(func, [0.0, 0.0])
    np.testing.assert_allclose(status.std, [2.0, 0.5], rtol=1e-2)
    np.testing.assert_allclose(status.covariance, cov, atol=1e-2)


def test_parameter_errors_with_bounds_are_external():
    func = MultivariateNormal([1.0, 2.0], [[1.0, 0.0], [0.0, 1.0]])
    bounds = Bounds([(-10.0, 10.0), (0.0, None)])
    status = Minimizer(NelderMead(), bounds=bounds).minimize(func, [0.0, 1.0])
    np.testing.assert_allclose(status.x, [1.0, 2.0], atol=1e-3)
    np.testing.assert_allclose(status.std, [1.0, 1.0], rtol=2e-2)


def test_parameter_errors_disabled():
    status = Minimizer(NelderMead(compute_parameter_errors=False)).minimize(sphere, [1.0])
    assert np.all(np.isnan(status.std))
    assert status.covariance is None


def test_singular_hessian_gives_nan_std(caplog):
    def flat_in_y(x):
        return float(x[0] ** 2)

    with caplog.at_level(logging.WARNING):
        status = Minimizer(NelderMead(x_terminator=None)).minimize(flat_in_y, [1.0, 3.0])
    assert np.isnan(status.std[1]) or np.isinf(status.std[1])


def test_step_counts_evaluations():
    calls = []

    def fun(x):
        calls.append(1)
        return sphere(x)

    func = CallableFunction(fun)
    solver = NelderMead()
    status = Summary()
    x0 = np.array([1.0, 1.0])
    solver.initialize(func, x0, None, None, status)
    assert status.cost_evals == 3
    solver.step(0, func, None, None, status)
    assert status.cost_evals == len(calls)
    assert status.cost_evals > 3
