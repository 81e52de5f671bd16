"""
Example: Minimizing and sampling with ganesh

This example fits the Rosenbrock function with Nelder-Mead (with and without
bounds) and with L-BFGS-B, then draws samples from a correlated Gaussian with
the affine-invariant ensemble sampler.
"""

import numpy as np

from ganesh import AIES, LBFGSB, Minimizer, NelderMead
from ganesh.test_functions import MultivariateNormal, Rosenbrock


def example_nelder_mead():
    """Example: Unbounded Nelder-Mead on the 2D Rosenbrock function."""
    print("=" * 60)
    print("Example 1: Nelder-Mead - Rosenbrock")
    print("=" * 60)

    minimizer = Minimizer(NelderMead(), max_steps=5000)
    summary = minimizer.minimize(Rosenbrock(2), x0=[-1.2, 1.0])
    print(summary)
    print()


def example_bounded():
    """Example: The same problem with the minimum outside the box."""
    print("=" * 60)
    print("Example 2: Nelder-Mead - Bounded Rosenbrock")
    print("=" * 60)

    minimizer = (
        Minimizer(NelderMead.with_adaptive(2))
        .with_bounds([(-2.0, 0.5), (None, 2.0)])
        .with_parameter_names(["a", "b"])
        .with_max_steps(5000)
    )
    summary = minimizer.minimize(Rosenbrock(2), x0=[-1.2, 1.0])
    print(summary)
    print()


def example_lbfgsb():
    """Example: Gradient-based minimization of a 5D Rosenbrock."""
    print("=" * 60)
    print("Example 3: L-BFGS-B - 5D Rosenbrock")
    print("=" * 60)

    summary = Minimizer(LBFGSB(), max_steps=2000).minimize(Rosenbrock(5), x0=np.zeros(5))
    print(f"Converged: {summary.converged} ({summary.message})")
    print(f"x = {np.round(summary.x, 4)}")
    print(f"Evaluations: f = {summary.cost_evals}, grad = {summary.gradient_evals}")
    print()


def example_sampling():
    """Example: Sampling a correlated 2D Gaussian."""
    print("=" * 60)
    print("Example 4: AIES - Correlated Gaussian")
    print("=" * 60)

    cov = np.array([[1.0, 0.6], [0.6, 2.0]])
    sampler = AIES(n_walkers=16, rng=np.random.default_rng(42))
    Minimizer(sampler, max_steps=1000).minimize(MultivariateNormal([0.0, 0.0], cov), x0=[0.5, -0.5])
    samples = sampler.get_flat_chain(burn=200)
    print(f"Acceptance fraction: {sampler.acceptance_fraction:.3f}")
    print(f"Sample mean: {np.round(samples.mean(axis=0), 3)}")
    print(f"Sample covariance:\n{np.round(np.cov(samples, rowvar=False), 3)}")
    print()


if __name__ == "__main__":
    example_nelder_mead()
    example_bounded()
    example_lbfgsb()
    example_sampling()
    print("All examples completed")
