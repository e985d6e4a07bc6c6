from dataclasses import replace

import numpy as np
import pytest

from bsm_fitting import BSM2, BSM3, BSM4, InvalidModelError


def _bsm2() -> BSM2:
    return BSM2(c=3.0, m=1.5, t0=0.2, d1=0.0, d2=-1.0)


def _bsm3_rising() -> BSM3:
    # maximum after t = 0 (positive slope at the anchor)
    return BSM3(c=2.0, m=1.0, theta_b=1.5, d1=2.0)


def _bsm3_falling() -> BSM3:
    # maximum before t = 0 (negative slope at the anchor)
    return BSM3(c=3.0, m=1.0, theta_b=2.5, d1=-0.5)


def _numeric_gradient(model, t, h=1e-6):
    cols = []
    for name in model.free_names:
        v = getattr(model, name)
        hi = replace(model, **{name: v + h}).norm_lnl(t)
        lo = replace(model, **{name: v - h}).norm_lnl(t)
        cols.append((hi - lo) / (2.0 * h))
    return np.stack(cols, axis=-1)


T_GRID = np.array([0.0, 0.05, 0.2, 0.5, 1.0, 2.0, 4.0])


def test_norm_lnl_is_zero_at_anchor():
    assert _bsm2().norm_lnl(0.2) == 0.0
    assert _bsm3_rising().norm_lnl(0.0) == 0.0
    assert _bsm3_falling().norm_lnl(0.0) == 0.0


@pytest.mark.parametrize(
    "model", [_bsm2(), _bsm3_rising(), _bsm3_falling()], ids=["bsm2", "bsm3_up", "bsm3_down"]
)
def test_gradient_matches_finite_differences(model):
    analytic = model.gradient(T_GRID)
    numeric = _numeric_gradient(model, T_GRID)

    assert analytic.shape == (T_GRID.size, len(model.free_names))
    assert np.all(np.isfinite(analytic))
    assert np.allclose(analytic, numeric, rtol=1e-6, atol=1e-8)


def test_gradient_shape_for_scalar_t():
    assert _bsm2().gradient(1.0).shape == (2,)
    assert _bsm3_rising().gradient(1.0).shape == (3,)


def test_bsm2_derived_quantities():
    model = _bsm2()
    # K = -c m d2 / (c + m) = 1, so r = 2 / (c - m)
    assert model.var_r() == pytest.approx(2.0 / 1.5)
    assert model.var_rho() == pytest.approx(3.0)
    assert model.var_b() == pytest.approx(np.log(3.0) / (2.0 / 1.5) - 0.2)
    assert model.var_theta(model.t0) == pytest.approx(model.var_rho())
    # b >= 0 <=> c + m - nu >= 0
    assert model.c + model.m - model.var_nu() > 0.0

    late = replace(model, t0=2.0)
    assert late.var_b() < 0.0
    assert late.c + late.m - late.var_nu() < 0.0


def test_bsm2_maximum_and_curvature_at_t0():
    model = _bsm2()
    four = model.to_bsm4()
    assert four.ml_t() == pytest.approx(model.t0)
    assert four.dlnl(model.t0) == pytest.approx(0.0, abs=1e-12)
    assert four.d2lnl(model.t0) == pytest.approx(model.d2)


def test_bsm3_derived_quantities():
    model = _bsm3_rising()
    assert model.var_q() == pytest.approx(-1.5)
    assert model.var_r() == pytest.approx(2.0 * 1.25 / 1.5)
    assert model.var_b() == pytest.approx(np.log(1.5) / model.var_r())
    assert model.var_theta(0.0) == pytest.approx(1.5)


def test_bsm3_to_bsm4_preserves_curve():
    model = _bsm3_falling()
    four = model.to_bsm4()

    assert four.r > 0.0
    assert four.b >= 0.0
    assert np.allclose(four.lnl(T_GRID) - four.lnl(0.0), model.norm_lnl(T_GRID))
    # the fixed slope is the model's slope at the anchor
    assert four.dlnl(0.0) == pytest.approx(model.d1)


def test_to_bsm4_rejects_negative_rate():
    model = BSM3(c=2.0, m=1.0, theta_b=1.5, d1=-2.0)
    assert model.var_r() < 0.0
    assert not model.is_valid()
    with pytest.raises(InvalidModelError, match="rate"):
        model.to_bsm4()


def test_to_bsm4_rejects_negative_offset():
    model = BSM3(c=2.0, m=1.0, theta_b=0.5, d1=-2.0)
    assert model.var_r() > 0.0
    assert model.var_b() < 0.0
    with pytest.raises(InvalidModelError, match="offset"):
        model.to_bsm4()


def test_bsm4_reduced_forms_agree():
    truth = BSM4(c=2.0, m=1.0, r=1.6, b=0.25)

    three = truth.to_bsm3()
    assert three.var_r() == pytest.approx(truth.r)
    assert three.var_b() == pytest.approx(truth.b)
    assert np.allclose(three.norm_lnl(T_GRID), truth.lnl(T_GRID) - truth.lnl(0.0))

    two = truth.to_bsm2()
    assert two.t0 == pytest.approx(np.log(3.0) / 1.6 - 0.25)
    assert two.var_r() == pytest.approx(truth.r)
    assert two.var_b() == pytest.approx(truth.b)
    assert np.allclose(two.lnl(T_GRID), truth.lnl(T_GRID))


def test_evaluators_return_nan_instead_of_raising():
    degenerate = BSM2(c=2.0, m=2.0, t0=0.0, d1=0.0, d2=-1.0)
    assert np.isnan(degenerate.norm_lnl(1.0))
    assert not np.all(np.isfinite(degenerate.gradient(np.array([0.5, 1.0]))))

    below_one = BSM3(c=2.0, m=1.0, theta_b=0.5, d1=2.0)
    assert np.isnan(below_one.lnl(0.0))
