import numpy as np
import pytest
from scipy.stats import norm

from prevanc.backends import JaxBackend, NumpyBackend
from prevanc.config import PriorSettings
from prevanc.parameters import ParameterVector
from prevanc.priors import log_sd_penalty, normal_logpdf, penalty, penalty_terms


def test_normal_logpdf_matches_scipy():
    x = np.array([-3.0, 0.0, 1.5])
    np.testing.assert_allclose(normal_logpdf(x, -2.0, 1.0, NumpyBackend()), norm.logpdf(x, -2.0, 1.0))


def test_log_sd_penalty_includes_jacobian():
    backend = NumpyBackend()
    for log_sigma in (-1.0, 0.0, 0.7):
        without_jacobian = -norm.logpdf(np.exp(log_sigma), 0.0, 2.5)
        assert log_sd_penalty(log_sigma, 2.5, backend) == pytest.approx(without_jacobian - log_sigma)


def test_log_sd_penalty_mode_at_prior_scale():
    # d/dl [exp(2l) / (2 s^2) - l] = 0  =>  sigma = s
    backend = JaxBackend()
    grad = backend.gradient(lambda l: log_sd_penalty(l, 2.5, backend))
    assert grad(np.array(np.log(2.5))) == pytest.approx(0.0, abs=1e-12)


def test_penalty_at_zero():
    n = 3
    terms = penalty_terms(ParameterVector.zeros(n), NumpyBackend())
    c = 0.5 * np.log(2 * np.pi)
    assert len(terms) == 9
    assert terms["log_sigma_phi_prev"] == pytest.approx(c + np.log(2.5) + 0.5 / 2.5 ** 2)
    assert terms["beta_prev"] == pytest.approx(c + 2.0)
    assert terms["beta_anc"] == pytest.approx(c)
    assert terms["phi_art"] == pytest.approx(n * c)


def test_penalty_is_permutation_invariant(rng):
    n = 7
    p = ParameterVector.from_flat(rng.normal(size=ParameterVector.size(n)), n)
    perm = rng.permutation(n)
    q = ParameterVector.from_flat(p.to_flat(), n)
    q.phi_prev, q.b_anc, q.phi_art = p.phi_prev[perm], p.b_anc[perm], p.phi_art[perm]
    backend = NumpyBackend()
    assert penalty(q, backend) == pytest.approx(penalty(p, backend), rel=1e-13)


def test_custom_priors_change_intercept_term():
    p = ParameterVector.zeros(1)
    backend = NumpyBackend()
    base = penalty_terms(p, backend)["beta_prev"]
    shifted = penalty_terms(p, backend, PriorSettings(beta_prev=(0.0, 1.0)))["beta_prev"]
    assert base - shifted == pytest.approx(2.0)


def test_prior_settings_validated():
    with pytest.raises(ValueError):
        PriorSettings(sigma_scale=0.0)
    with pytest.raises(ValueError, match="beta_anc"):
        PriorSettings(beta_anc=(0.0, -1.0))
