import numpy as np
import pytest
import torch

from ganesh import LBFGSB, Minimizer, NelderMead
from ganesh.torch import TorchFunction, as_float_tensor, torch_dtype


def rosenbrock(x: torch.Tensor) -> torch.Tensor:
    return (1 - x[0]) ** 2 + 100 * (x[1] - x[0] ** 2) ** 2


def test_torch_dtype_follows_config():
    assert torch_dtype() == torch.float64
    assert as_float_tensor([1, 2]).dtype == torch.float64


def test_evaluate_and_autograd_gradient():
    func = TorchFunction(rosenbrock)
    x = np.array([-1.2, 1.0])
    assert func.has_gradient
    assert func.evaluate(x) == pytest.approx(24.2)
    expected = np.array([-2 * 2.2 - 400 * -1.2 * (1.0 - 1.44), 200 * (1.0 - 1.44)])
    np.testing.assert_allclose(func.gradient(x), expected)


def test_user_data_is_forwarded():
    func = TorchFunction(lambda x, target: torch.sum((x - target) ** 2))
    assert func.evaluate(np.array([1.0, 1.0]), torch.tensor([0.0, 1.0])) == pytest.approx(1.0)


def test_unused_input_has_zero_gradient():
    func = TorchFunction(lambda x: torch.tensor(3.0))
    np.testing.assert_array_equal(func.gradient(np.array([1.0, 2.0])), [0.0, 0.0])


def test_non_scalar_output_raises():
    func = TorchFunction(lambda x: x * 2)
    with pytest.raises(ValueError):
        func.evaluate(np.array([1.0, 2.0]))


def test_lbfgsb_with_autograd():
    status = Minimizer(LBFGSB()).minimize(TorchFunction(rosenbrock), [-1.2, 1.0])
    assert status.converged
    assert status.gradient_evals > 0
    np.testing.assert_allclose(status.x, [1.0, 1.0], atol=1e-3)


def test_nelder_mead_with_torch_function():
    func = TorchFunction(lambda x: torch.sum((x - 2.0) ** 2))
    status = Minimizer(NelderMead()).minimize(func, [0.0, 0.0, 0.0])
    np.testing.assert_allclose(status.x, [2.0, 2.0, 2.0], atol=1e-3)
    np.testing.assert_allclose(status.std, np.full(3, np.sqrt(0.5)), rtol=1e-3)
