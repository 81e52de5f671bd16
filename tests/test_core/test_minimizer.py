import numpy as np
import pytest

from ganesh import (
    AtomicAbortSignal,
    Bounds,
    DimensionMismatch,
    Function,
    InitializationFailed,
    InvalidInitialPoint,
    Minimizer,
    NelderMead,
    Solver,
    SolverError,
    StepFailed,
)
from ganesh.core.minimizer import MSG_ABORTED, MSG_MAX_STEPS, MSG_OBSERVER_STOP
from ganesh.core.observers import MaxEvalsObserver, TrackingObserver
from ganesh.test_functions import Rosenbrock


class FailingSolver(Solver):
    def __init__(self, fail_in: str) -> None:
        self.fail_in = fail_in

    def initialize(self, func, x0, bounds, user_data, status):
        if self.fail_in == "initialize":
            raise SolverError("cannot start")
        status.with_position(x0, func.evaluate(x0, user_data))
        status.cost_evals += 1

    def step(self, i_step, func, bounds, user_data, status):
        if self.fail_in == "step":
            raise SolverError("singular system")

    def check_convergence(self, func, bounds, user_data, status):
        return False


def test_rosenbrock_converges_from_two_two():
    status = Minimizer(NelderMead(), 2).minimize(Rosenbrock(2), [2.0, 2.0])
    assert status.converged
    assert status.frozen
    np.testing.assert_allclose(status.x, [1.0, 1.0], atol=1e-3)
    assert status.fx < 1e-6
    assert status.n_steps > 0
    assert "term_f = STDDEV" in status.message


@pytest.mark.parametrize("n", [2, 3, 4, 5])
def test_generalized_rosenbrock_terminates_without_nan(n):
    status = Minimizer(NelderMead(adaptive=True), n).minimize(Rosenbrock(n), np.full(n, 5.0))
    assert np.isfinite(status.fx)
    assert np.all(np.isfinite(status.x))
    assert status.converged or status.message == MSG_MAX_STEPS


def test_zero_max_steps_returns_x0(counting_rosenbrock):
    x0 = [2.0, 2.0]
    status = Minimizer(NelderMead(), max_steps=0).minimize(counting_rosenbrock, x0)
    assert not status.converged
    assert status.message == MSG_MAX_STEPS
    assert status.n_steps == 0
    np.testing.assert_array_equal(status.x, x0)
    assert status.fx == pytest.approx(401.0)


def test_abort_before_first_step(counting_rosenbrock):
    signal = AtomicAbortSignal()
    signal.abort()
    status = Minimizer(NelderMead(), abort_signal=signal).minimize(counting_rosenbrock, [2.0, 2.0])
    assert status.message == MSG_ABORTED
    assert status.n_steps == 0
    assert not status.converged
    np.testing.assert_allclose(status.x, [2.0, 2.0])


def test_zero_max_steps_with_bounds_returns_x0_exactly():
    bounds = Bounds([(0.0, 3.0), (None, 2.5), (-1.0, None)])
    x0 = np.array([2.0, 2.2, 0.3])
    status = Minimizer(NelderMead(), bounds=bounds, max_steps=0).minimize(Rosenbrock(3), x0)
    assert status.n_steps == 0
    np.testing.assert_array_equal(status.x, x0)
    assert status.fx == pytest.approx(Rosenbrock(3).evaluate(x0))


def test_abort_before_first_step_with_bounds_returns_x0_exactly():
    signal = AtomicAbortSignal()
    signal.abort()
    bounds = Bounds([(0.0, 3.0), (None, 2.5), (-1.0, None)])
    x0 = np.array([2.0, 2.2, 0.3])
    minimizer = Minimizer(NelderMead(), bounds=bounds, abort_signal=signal)
    status = minimizer.minimize(Rosenbrock(3), x0)
    assert status.message == MSG_ABORTED
    np.testing.assert_array_equal(status.x, x0)


def test_abort_during_run_stops_at_step_boundary():
    signal = AtomicAbortSignal()

    def abort_after_three(step, status):
        if step == 2:
            signal.abort()

    minimizer = Minimizer(NelderMead()).with_abort_signal(signal).on_post_step(abort_after_three)
    status = minimizer.minimize(Rosenbrock(2), [2.0, 2.0])
    assert status.n_steps == 3
    assert status.message == MSG_ABORTED


def test_abort_signal_passed_to_minimize_takes_precedence():
    signal = AtomicAbortSignal()
    signal.abort()
    status = Minimizer(NelderMead()).minimize(Rosenbrock(2), [2.0, 2.0], abort_signal=signal)
    assert status.message == MSG_ABORTED


def test_cost_evals_match_function_calls(counting_rosenbrock):
    seen = []

    def record(step, status):
        seen.append(status.cost_evals)

    minimizer = Minimizer(NelderMead(compute_parameter_errors=False)).on_post_step(record)
    status = minimizer.minimize(counting_rosenbrock, [2.0, 2.0])
    assert status.cost_evals == counting_rosenbrock.calls
    assert all(a <= b for a, b in zip(seen, seen[1:]))


def test_cost_evals_count_only_vertex_evaluations(counting_rosenbrock):
    counts = []
    minimizer = Minimizer(NelderMead()).on_post_step(
        lambda step, status: counts.append(status.cost_evals)
    )
    status = minimizer.minimize(counting_rosenbrock, [2.0, 2.0])
    assert status.cost_evals == counts[-1]
    # the Hessian for parameter errors calls the function but is not counted
    assert counting_rosenbrock.calls > status.cost_evals
    assert np.all(np.isfinite(status.std))


def test_bounds_dimension_mismatch_before_evaluation(counting_rosenbrock):
    minimizer = Minimizer(NelderMead(), bounds=[(0.0, 1.0)] * 3)
    with pytest.raises(DimensionMismatch):
        minimizer.minimize(counting_rosenbrock, [2.0, 2.0])
    assert counting_rosenbrock.calls == 0
    assert minimizer.status.cost_evals == 0


def test_dimension_and_names_mismatch(counting_rosenbrock):
    with pytest.raises(DimensionMismatch):
        Minimizer(NelderMead(), 3).minimize(counting_rosenbrock, [2.0, 2.0])
    with pytest.raises(DimensionMismatch):
        Minimizer(NelderMead(), parameter_names=["a"]).minimize(counting_rosenbrock, [2.0, 2.0])
    assert counting_rosenbrock.calls == 0


def test_missing_x0_raises():
    with pytest.raises(ValueError):
        Minimizer(NelderMead()).minimize(Rosenbrock(2))


def test_status_hook_injects_x0():
    minimizer = Minimizer(NelderMead()).on_status(lambda status: status.with_x0([2.0, 2.0]))
    status = minimizer.minimize(Rosenbrock(2))
    np.testing.assert_array_equal(status.x0, [2.0, 2.0])
    assert status.converged


def test_bounded_minimum_lies_on_boundary():
    bounds = Bounds([(-2.0, 0.5), (-2.0, 2.0)])
    minimizer = Minimizer(NelderMead(), bounds=bounds, max_steps=5000)
    status = minimizer.minimize(Rosenbrock(2), [-1.0, 1.0])
    assert bounds.contains(status.x)
    assert status.x[0] == pytest.approx(0.5, abs=1e-3)
    assert status.x[1] == pytest.approx(0.25, abs=1e-2)


def test_every_evaluation_is_inside_bounds(counting_rosenbrock):
    bounds = Bounds([(1.5, 3.0), (None, 2.5)])
    Minimizer(NelderMead(), bounds=bounds, max_steps=200).minimize(counting_rosenbrock, [2.0, 2.0])
    for point in counting_rosenbrock.points:
        assert bounds.contains(point)


def test_invalid_initial_point_is_wrapped():
    def bad(x):
        return float("nan")

    with pytest.raises(InitializationFailed) as info:
        Minimizer(NelderMead()).minimize(bad, [1.0, 1.0])
    assert isinstance(info.value.cause, InvalidInitialPoint)
    assert isinstance(info.value.__cause__, InvalidInitialPoint)


def test_exception_at_initial_point_is_chained():
    def boom(x):
        raise RuntimeError("model crashed")

    with pytest.raises(InitializationFailed) as info:
        Minimizer(NelderMead()).minimize(boom, [1.0])
    assert isinstance(info.value.cause.__cause__, RuntimeError)


def test_solver_errors_are_wrapped():
    with pytest.raises(InitializationFailed):
        Minimizer(FailingSolver("initialize")).minimize(Rosenbrock(2), [0.0, 0.0])
    with pytest.raises(StepFailed) as info:
        Minimizer(FailingSolver("step")).minimize(Rosenbrock(2), [0.0, 0.0])
    assert "singular system" in str(info.value.cause)


def test_user_errors_during_steps_propagate():
    class Fragile(Function):
        calls = 0

        def evaluate(self, x, user_data=None):
            self.calls += 1
            if self.calls > 5:
                raise KeyError("lost data")
            return float(np.sum(x**2))

    with pytest.raises(KeyError):
        Minimizer(NelderMead()).minimize(Fragile(), [1.0, 1.0])


def test_observer_can_stop_run():
    status = (
        Minimizer(NelderMead())
        .with_observer(MaxEvalsObserver(20))
        .minimize(Rosenbrock(2), [2.0, 2.0])
    )
    assert status.message == MSG_OBSERVER_STOP
    assert status.cost_evals >= 20
    assert not status.converged


def test_tracking_observer_and_pre_step_hooks():
    tracker = TrackingObserver()
    pre_steps = []
    minimizer = (
        Minimizer(NelderMead(), max_steps=10)
        .on_pre_step(lambda step, status: pre_steps.append(step))
        .with_observer(tracker)
    )
    status = minimizer.minimize(Rosenbrock(2), [2.0, 2.0])
    assert pre_steps == list(range(10))
    assert len(tracker.history) == 10
    values = [fx for _, fx in tracker.history]
    assert all(a >= b for a, b in zip(values, values[1:]))
    assert status.message == MSG_MAX_STEPS


def test_user_data_reaches_function():
    def shifted(x, target):
        return float(np.sum((x - target) ** 2))

    status = Minimizer(NelderMead()).minimize(shifted, [0.0, 0.0], user_data=np.array([3.0, -1.0]))
    np.testing.assert_allclose(status.x, [3.0, -1.0], atol=1e-3)


def test_invalid_configuration():
    with pytest.raises(TypeError):
        Minimizer(object())
    with pytest.raises(ValueError):
        Minimizer(NelderMead(), max_steps=-1)
    with pytest.raises(ValueError):
        Minimizer(NelderMead(), 0)


def test_parameter_names_in_summary():
    status = (
        Minimizer(NelderMead())
        .with_parameter_names(["a", "b"])
        .with_max_steps(50)
        .minimize(Rosenbrock(2), [2.0, 2.0])
    )
    assert status.parameter_names == ("a", "b")
    assert "\na " in str(status)
