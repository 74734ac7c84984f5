import numpy as np
import pytest
from scipy.special import expit

from prevanc.backends import JaxBackend, NumpyBackend
from prevanc.data import RegionData
from prevanc.errors import DomainError
from prevanc.parameters import ParameterVector
from prevanc.transforms import art_coverage, link_predictors, precisions, transform


def test_single_region_at_zero_init(single_region):
    backend = NumpyBackend()
    out = transform(ParameterVector.zeros(1), single_region, backend)
    assert out["eta_prev"][0] == pytest.approx(0.0)
    assert out["rho_prev"][0] == pytest.approx(0.5)
    expected = np.exp(np.log(500) + np.log(out["rho_prev"][0]) - np.log(1000))
    assert out["alpha_art"][0] == pytest.approx(expected)
    assert out["alpha_art"][0] == pytest.approx(0.25)
    assert out["tau_phi_prev"] == pytest.approx(1.0)


def test_linear_predictors(rng):
    n = 6
    p = ParameterVector.from_flat(rng.normal(size=ParameterVector.size(n)), n)
    link = link_predictors(p, NumpyBackend())
    np.testing.assert_allclose(link.eta_prev, p.beta_prev + np.exp(p.log_sigma_phi_prev) * p.phi_prev)
    np.testing.assert_allclose(link.eta_art, p.beta_art + np.exp(p.log_sigma_phi_art) * p.phi_art)
    np.testing.assert_allclose(link.rho_anc, expit(link.eta_anc))


def test_anc_offset_depends_only_on_bias_terms(rng):
    n = 5
    x = rng.normal(size=ParameterVector.size(n))
    p = ParameterVector.from_flat(x, n)
    offset = link_predictors(p, NumpyBackend())
    diff = offset.eta_anc - offset.eta_prev
    np.testing.assert_allclose(diff, p.beta_anc + np.exp(p.log_sigma_b_anc) * p.b_anc)

    # change the survey block only
    p.beta_prev = p.beta_prev + 3.0
    p.phi_prev = p.phi_prev[::-1] * 2.0
    other = link_predictors(p, NumpyBackend())
    np.testing.assert_allclose(other.eta_anc - other.eta_prev, diff)


@pytest.mark.parametrize("backend", [JaxBackend(), NumpyBackend()])
def test_prevalence_in_open_unit_interval(backend):
    n = 3
    p = ParameterVector.zeros(n)
    p.beta_prev = -20.0
    p.phi_prev = np.array([-1.0, 0.0, 1.0])
    p.beta_anc = 25.0
    link = link_predictors(p, backend)
    for rho in (np.asarray(link.rho_prev), np.asarray(link.rho_anc)):
        assert np.all(rho > 0) and np.all(rho < 1)


def test_alpha_art_rejects_zero_count():
    data = RegionData(y_prev=[5, 5], m_prev=[10, 10], y_anc=[5, 5], m_anc=[10, 10],
                      A_art=[10, 0], N_art=[100, 100], regions=["a", "b"])
    p = ParameterVector.zeros(2)
    with pytest.raises(DomainError, match="A_art == 0") as err:
        transform(p, data, NumpyBackend())
    assert err.value.regions == ["b"]
    with pytest.raises(DomainError):
        art_coverage(np.zeros(2), data, JaxBackend())


def test_alpha_art_uses_log_prevalence(single_region):
    alpha = art_coverage(np.array([-700.0]), single_region, NumpyBackend())
    assert alpha[0] == pytest.approx(0.5 * np.exp(-700.0), rel=1e-9)
    deep = art_coverage(np.array([-800.0]), single_region, NumpyBackend())
    assert np.isfinite(deep[0])


def test_precision_round_trip(rng):
    p = ParameterVector.from_flat(rng.normal(size=ParameterVector.size(2)), 2)
    tau = precisions(p, NumpyBackend())
    assert tau["tau_b_anc"] == pytest.approx(1.0 / np.exp(p.log_sigma_b_anc) ** 2, rel=1e-12)


def test_transform_checks_region_count(single_region):
    with pytest.raises(ValueError, match="regions"):
        transform(ParameterVector.zeros(2), single_region, NumpyBackend())
