import numpy as np
import pytest
from scipy.special import expit
from scipy.stats import binom

from prevanc.backends import NumpyBackend
from prevanc.objective import ObjectiveFunction
from prevanc.parameters import ParameterVector


def test_value_is_sum_of_components(four_regions, rng):
    f = ObjectiveFunction(four_regions)
    x = rng.normal(scale=0.5, size=f.n_params)
    parts = f.components(x)
    assert len(parts) == 11
    assert f(x) == pytest.approx(sum(parts.values()))
    assert f(x) == pytest.approx(f.penalty(x) + f.negative_log_likelihood(x))


def test_backends_agree(four_regions, rng):
    x = rng.normal(scale=0.5, size=ParameterVector.size(4))
    jax_f = ObjectiveFunction(four_regions)
    np_f = ObjectiveFunction(four_regions, backend="numpy")
    assert jax_f(x) == pytest.approx(np_f(x), rel=1e-12)
    np.testing.assert_allclose(np_f.gradient(x), jax_f.gradient(x), rtol=1e-4, atol=1e-4)


def test_hessian_is_symmetric(four_regions, rng):
    f = ObjectiveFunction(four_regions)
    H = f.hessian(rng.normal(scale=0.3, size=f.n_params))
    assert H.shape == (f.n_params, f.n_params)
    np.testing.assert_allclose(H, H.T, atol=1e-10)


def test_fixed_effects_reduction(four_regions):
    # zero random effects: likelihood depends on the intercepts alone
    f = ObjectiveFunction(four_regions)
    p = ParameterVector.zeros(4)
    p.beta_prev, p.beta_anc, p.beta_art = -1.5, 0.4, 0.9
    base = f.components(p.to_flat())

    p.log_sigma_phi_prev, p.log_sigma_b_anc, p.log_sigma_phi_art = 1.3, -0.8, 0.2
    moved = f.components(p.to_flat())
    assert moved["nll_prev"] == pytest.approx(base["nll_prev"])
    assert moved["nll_anc"] == pytest.approx(base["nll_anc"])

    d = four_regions
    expected_prev = -binom.logpmf(d.y_prev, d.m_prev, expit(-1.5)).sum()
    expected_anc = -binom.logpmf(d.y_anc, d.m_anc, expit(-1.5 + 0.4)).sum()
    assert base["nll_prev"] == pytest.approx(expected_prev)
    assert base["nll_anc"] == pytest.approx(expected_anc)

    # only the log-sd prior terms changed
    changed = {k for k in base if not np.isclose(base[k], moved[k])}
    assert changed == {"prior_log_sigma_phi_prev", "prior_log_sigma_b_anc", "prior_log_sigma_phi_art"}


def test_art_parameters_only_enter_priors(four_regions, rng):
    f = ObjectiveFunction(four_regions)
    x = rng.normal(size=f.n_params)
    g = f.gradient(x)
    p = ParameterVector.from_flat(x, 4)
    # d/d beta_art of the N(0, 1) prior is beta_art
    idx = ParameterVector.labels(4).index("beta_art")
    assert g[idx] == pytest.approx(p.beta_art)


def test_zero_art_count_does_not_block_objective():
    from prevanc.data import RegionData
    data = RegionData(y_prev=[3], m_prev=[30], y_anc=[4], m_anc=[30], A_art=[0], N_art=[500])
    f = ObjectiveFunction(data, backend=NumpyBackend())
    assert np.isfinite(f(np.zeros(f.n_params)))


def test_compiled_value_matches_eager(four_regions, rng):
    f = ObjectiveFunction(four_regions)
    x = rng.normal(scale=0.5, size=f.n_params)
    value = f(x)
    assert isinstance(value, float)
    assert value == pytest.approx(float(f._evaluate(x)), rel=1e-12)
