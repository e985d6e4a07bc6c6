import numpy as np
import pytest

from bsm_fitting import BSM2, BSM3, SampleSet, WeightedObjective, compute_weights
from bsm_fitting.constraints import ordering, rate_positivity, rate_sign


def _fd_gradient(func, x, h=1e-6):
    x = np.asarray(x, dtype=float)
    out = np.empty_like(x)
    for k in range(x.size):
        e = np.zeros_like(x)
        e[k] = h
        out[k] = (func(x + e) - func(x - e)) / (2.0 * h)
    return out


def _noisy_samples(model, t, seed=0):
    rng = np.random.default_rng(seed)
    lnl = model.norm_lnl(t) + rng.normal(0.0, 0.05, size=t.size)
    return lnl


def test_uniform_weights_give_plain_sse():
    model = BSM2(c=3.0, m=1.5, t0=0.0, d1=0.0, d2=-1.0)
    t = np.array([0.0, 0.5, 1.0, 2.0, 3.0])
    lnl = _noisy_samples(model, t)

    w, max_lnl = compute_weights(lnl, 0.0)
    assert np.all(w == 1.0)
    assert max_lnl == pytest.approx(np.max(lnl))

    objective = WeightedObjective(model, SampleSet.from_arrays(t, lnl, w))
    guess = np.array([4.0, 2.0])
    plain = float(np.sum((lnl - objective.model_at(guess).norm_lnl(t)) ** 2))

    assert objective.value(guess) == pytest.approx(plain)
    assert WeightedObjective(model, SampleSet.from_arrays(t, lnl)).value(guess) == pytest.approx(plain)


def test_weights_scale_squared_errors():
    model = BSM2(c=3.0, m=1.5, t0=0.0, d1=0.0, d2=-1.0)
    t = np.array([0.0, 1.0, 2.0])
    lnl = np.array([0.0, -0.5, -1.5])
    w = np.array([1.0, 0.5, 0.25])

    objective = WeightedObjective(model, SampleSet.from_arrays(t, lnl, w))
    err = lnl - model.norm_lnl(t)
    assert objective.value([3.0, 1.5]) == pytest.approx(float(np.sum(w * err ** 2)))


@pytest.mark.parametrize(
    "model, x",
    [
        (BSM2(c=3.0, m=1.5, t0=0.3, d1=0.0, d2=-1.0), [2.5, 1.2]),
        (BSM3(c=3.0, m=1.0, theta_b=2.5, d1=-0.5), [3.5, 1.3, 2.8]),
        (BSM3(c=2.0, m=1.0, theta_b=1.5, d1=2.0), [2.4, 1.1, 1.6]),
    ],
    ids=["bsm2", "bsm3_down", "bsm3_up"],
)
def test_objective_gradient_matches_finite_differences(model, x):
    t = np.array([0.0, 0.25, 0.5, 1.0, 2.0])
    lnl = _noisy_samples(model, t, seed=3)
    w = np.linspace(1.0, 0.2, t.size)
    objective = WeightedObjective(model, SampleSet.from_arrays(t, lnl, w))

    value, grad = objective(x)
    assert np.isfinite(value)
    assert np.allclose(grad, _fd_gradient(objective.value, x), rtol=1e-5, atol=1e-8)


def test_objective_counts_iterations_without_changing_results():
    model = BSM2(c=3.0, m=1.5, t0=0.0, d1=0.0, d2=-1.0)
    t = np.array([0.0, 1.0, 2.0])
    objective = WeightedObjective(model, SampleSet.from_arrays(t, [0.0, -0.4, -1.3]))

    first = objective([3.0, 1.5])
    second = objective([3.0, 1.5])
    assert objective.iteration == 2
    assert first[0] == second[0]
    assert objective.template.c == 3.0  # template is never mutated


def test_ordering_constraint_sign():
    con = ordering(2)
    for c, m in [(2.0, 1.0), (5.0, 5.0), (1.0, 1.0), (10.0, 1.5)]:
        assert con.value([c, m]) <= 0.0
    for c, m in [(1.0, 2.0), (3.0, 3.5)]:
        assert con.value([c, m]) > 0.0
    assert np.array_equal(con.gradient([2.0, 1.0]), [-1.0, 1.0])
    assert np.array_equal(ordering(3).gradient([2.0, 1.0, 1.5]), [-1.0, 1.0, 0.0])


@pytest.mark.parametrize("x", [[3.0, 1.5], [2.0, 1.0], [8.0, 1.2], [1.6, 1.5]])
def test_rate_positivity_gradient_matches_finite_differences(x):
    con = rate_positivity(t0=0.4, d2=-1.3)
    assert np.allclose(con.gradient(x), _fd_gradient(con.value, x), rtol=1e-6, atol=1e-8)


def test_rate_positivity_is_b_nonnegative():
    for t0 in (0.0, 0.3, 0.6, 2.0):
        model = BSM2(c=3.0, m=1.5, t0=t0, d1=0.0, d2=-1.0)
        value = rate_positivity(model.t0, model.d2).value([model.c, model.m])
        assert value == pytest.approx(-model.var_b())
        assert (value <= 0.0) == (model.var_b() >= 0.0)


@pytest.mark.parametrize("d1", [-0.5, 2.0])
def test_rate_sign_gradient_and_meaning(d1):
    con = rate_sign(d1)
    x = np.array([3.0, 1.0, 2.5])
    assert np.allclose(con.gradient(x), _fd_gradient(con.value, x), rtol=1e-6, atol=1e-8)

    model = BSM3(c=3.0, m=1.0, theta_b=2.5, d1=d1)
    assert (con.value(x) <= 0.0) == (model.var_r() > 0.0)


def test_constraints_do_not_raise_on_degenerate_points():
    con = rate_positivity(t0=0.4, d2=-1.0)
    value, grad = con([2.0, 2.0])
    assert not np.isfinite(value)
    assert grad.shape == (2,)
