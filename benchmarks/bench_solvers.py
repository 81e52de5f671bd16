"""Benchmark the minimizers and samplers on standard objectives."""

import time
from typing import Dict

import numpy as np

from ganesh import AIES, ESS, LBFGSB, Minimizer, NelderMead
from ganesh.test_functions import MultivariateNormal, Rosenbrock


def benchmark_minimizer(solver_name: str, n: int, n_repeats: int = 5) -> Dict[str, float]:
    """Benchmark a minimizer on the n-dimensional Rosenbrock function.

    Args:
        solver_name: ``"nelder_mead"`` or ``"lbfgsb"``.
        n: Problem dimension.
        n_repeats: Number of timed runs.

    Returns:
        Dictionary with timing results.
    """
    factories = {
        "nelder_mead": lambda: NelderMead.with_adaptive(n),
        "lbfgsb": LBFGSB,
    }
    func = Rosenbrock(n)
    x0 = np.zeros(n)

    # Warmup
    summary = Minimizer(factories[solver_name](), max_steps=20000).minimize(func, x0)

    start = time.perf_counter()
    for _ in range(n_repeats):
        summary = Minimizer(factories[solver_name](), max_steps=20000).minimize(func, x0)
    end = time.perf_counter()

    total_time = end - start
    return {
        "n": n,
        "fx": summary.fx,
        "n_steps": summary.n_steps,
        "cost_evals": summary.cost_evals,
        "time_per_run_sec": total_time / n_repeats,
    }


def benchmark_sampler(sampler_name: str, n: int, n_steps: int = 500) -> Dict[str, float]:
    """Benchmark an ensemble sampler on an n-dimensional standard normal.

    Args:
        sampler_name: ``"aies"`` or ``"ess"``.
        n: Problem dimension.
        n_steps: Number of sampler steps.

    Returns:
        Dictionary with timing results.
    """
    samplers = {"aies": AIES, "ess": ESS}
    sampler = samplers[sampler_name](rng=np.random.default_rng(0))
    func = MultivariateNormal(np.zeros(n), np.eye(n))

    start = time.perf_counter()
    summary = Minimizer(sampler, max_steps=n_steps).minimize(func, np.zeros(n))
    end = time.perf_counter()

    total_time = end - start
    return {
        "n": n,
        "n_steps": n_steps,
        "cost_evals": summary.cost_evals,
        "total_time_sec": total_time,
        "steps_per_sec": n_steps / total_time,
    }


if __name__ == "__main__":
    print("Benchmarking minimizers on Rosenbrock...")
    for name in ("nelder_mead", "lbfgsb"):
        for n in (2, 5, 10):
            results = benchmark_minimizer(name, n)
            print(f"{name} (n={n}):")
            print(f"  Time per run: {results['time_per_run_sec']*1e3:.2f} ms")
            print(f"  Steps: {results['n_steps']}, evaluations: {results['cost_evals']}")
            print(f"  f(x): {results['fx']:.3g}")

    print("\nBenchmarking samplers on a standard normal...")
    for name in ("aies", "ess"):
        results = benchmark_sampler(name, n=5)
        print(f"{name} (n=5):")
        print(f"  Steps per second: {results['steps_per_sec']:.0f}")
        print(f"  Evaluations: {results['cost_evals']}")
