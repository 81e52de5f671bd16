import numpy as np
import pytest

from ganesh import AIES, Bounds, DimensionMismatch, Minimizer
from ganesh.solvers.mcmc.autocorr import AutocorrelationTerminator
from ganesh.test_functions import MultivariateNormal

MEAN = np.array([1.0, -1.0])
COV = np.array([[1.0, 0.0], [0.0, 0.25]])


def test_samples_match_target_distribution():
    solver = AIES(n_walkers=16, rng=np.random.default_rng(1))
    status = Minimizer(solver, max_steps=1500).minimize(MultivariateNormal(MEAN, COV), MEAN)
    samples = solver.get_flat_chain(burn=500)
    np.testing.assert_allclose(samples.mean(axis=0), MEAN, atol=0.2)
    np.testing.assert_allclose(samples.std(axis=0), np.sqrt(np.diag(COV)), rtol=0.2)
    np.testing.assert_allclose(status.std, np.sqrt(np.diag(COV)), rtol=0.2)
    assert status.message == "Max steps reached"
    assert not status.converged
    assert 0.0 < solver.acceptance_fraction < 1.0


def test_chain_shape_and_counters():
    solver = AIES(n_walkers=6)
    status = Minimizer(solver, max_steps=20).minimize(MultivariateNormal(MEAN, COV), [0.0, 0.0])
    assert solver.get_chain().shape == (6, 20, 2)
    assert solver.get_chain(burn=10, thin=2).shape == (6, 5, 2)
    assert solver.get_flat_chain().shape == (120, 2)
    assert solver.get_costs().shape == (6, 20)
    assert status.cost_evals == 6 + 6 * 20


def test_default_walker_count():
    solver = AIES()
    Minimizer(solver, max_steps=1).minimize(MultivariateNormal(MEAN, COV), MEAN)
    assert solver.get_chain().shape[0] == 6


def test_best_sample_tracked():
    func = MultivariateNormal(MEAN, COV)
    status = Minimizer(AIES(), max_steps=200).minimize(func, [3.0, 3.0])
    assert status.fx <= func.evaluate(np.array([3.0, 3.0]))
    assert status.fx == pytest.approx(func.evaluate(status.x))


def test_bounded_sampling_stays_inside():
    bounds = Bounds([(0.0, None), (-2.0, 0.0)])
    solver = AIES(n_walkers=8)
    Minimizer(solver, bounds=bounds, max_steps=300).minimize(
        MultivariateNormal(MEAN, COV), [0.5, -0.5]
    )
    chain = solver.get_flat_chain()
    assert np.all(chain[:, 0] >= 0.0)
    assert np.all((chain[:, 1] >= -2.0) & (chain[:, 1] <= 0.0))


def test_walk_move_mixture():
    solver = AIES(moves=[(AIES.stretch(), 0.5), (AIES.walk(n_subset=3), 0.5)], n_walkers=8)
    Minimizer(solver, max_steps=800).minimize(MultivariateNormal(MEAN, COV), MEAN)
    samples = solver.get_flat_chain(burn=200)
    np.testing.assert_allclose(samples.mean(axis=0), MEAN, atol=0.3)


def test_explicit_walkers():
    walkers = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])
    solver = AIES(walkers=walkers)
    Minimizer(solver, max_steps=2).minimize(MultivariateNormal(MEAN, COV), [0.0, 0.0])
    assert solver.get_chain().shape == (4, 2, 2)
    with pytest.raises(DimensionMismatch):
        Minimizer(AIES(walkers=walkers[:, :1]), max_steps=2).minimize(
            MultivariateNormal(MEAN, COV), [0.0, 0.0]
        )


def test_autocorrelation_terminator_stops_run():
    terminator = AutocorrelationTerminator(n_check=50, n_taus=10.0, dtau=0.5)
    solver = AIES(n_walkers=16, terminator=terminator)
    status = Minimizer(solver, max_steps=4000).minimize(MultivariateNormal(MEAN, COV), MEAN)
    assert status.converged
    assert "tau" in status.message
    assert status.n_steps < 4000
    assert status.n_steps % 50 == 0


def test_terminator_sees_chain_only_at_check_points():
    class RecordingTerminator(AutocorrelationTerminator):
        def __init__(self) -> None:
            super().__init__(n_check=5, n_taus=1000.0)
            self.lengths = []

        def check(self, chain):
            self.lengths.append(chain.shape[1])
            return super().check(chain)

    terminator = RecordingTerminator()
    solver = AIES(n_walkers=8, terminator=terminator)
    Minimizer(solver, max_steps=20).minimize(MultivariateNormal(MEAN, COV), MEAN)
    assert terminator.lengths == [5, 10, 15, 20]

def test_invalid_options():
    with pytest.raises(ValueError):
        AIES.stretch(a=1.0)
    with pytest.raises(ValueError):
        AIES(n_walkers=2)
    with pytest.raises(ValueError):
        AIES(moves=[(AIES.stretch(), 0.0)])
