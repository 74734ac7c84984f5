"""
===========================================================
simulate.py
Last Updated: 2026-10-19
===========================================================
Synthetic region data drawn from the joint model.

Useful for checking that a fit recovers known parameters and for
examples without real surveillance data.

    rho_prev = invlogit(beta_prev + sigma_phi_prev * phi_prev)
    rho_anc  = invlogit(logit(rho_prev) + beta_anc + sigma_b_anc * b_anc)
    y_prev ~ Binomial(m_prev, rho_prev)
    y_anc  ~ Binomial(m_anc, rho_anc)
    A_art  ~ Binomial(N_art, coverage * rho_prev)
-----------------------------------------------------------
License: MIT
===========================================================
"""
import numpy as np
from typing import Optional, Union

from prevanc.backends import NumpyBackend
from prevanc.config import PriorSettings
from prevanc.data import RegionData
from prevanc.parameters import ParameterVector
from prevanc.transforms import link_predictors


def true_parameters(
        n: int,
        priors: Optional[PriorSettings] = None,
        sigma: float = 0.5,
        seed: Optional[int] = None
) -> ParameterVector:
    """Draw intercepts and random effects from the priors with a fixed sigma for every block"""
    priors = priors or PriorSettings()
    rng = np.random.default_rng(seed)
    sd = priors.random_effect_sd
    return ParameterVector(
        beta_prev=rng.normal(*priors.beta_prev),
        phi_prev=rng.normal(0.0, sd, n),
        log_sigma_phi_prev=np.log(sigma),
        beta_anc=rng.normal(*priors.beta_anc),
        b_anc=rng.normal(0.0, sd, n),
        log_sigma_b_anc=np.log(sigma),
        beta_art=rng.normal(*priors.beta_art),
        phi_art=rng.normal(0.0, sd, n),
        log_sigma_phi_art=np.log(sigma),
    )


def simulate_regions(
        n: int,
        params: Optional[ParameterVector] = None,
        m_prev: Union[int, np.ndarray] = 500,
        m_anc: Union[int, np.ndarray] = 300,
        N_art: Union[int, np.ndarray] = 100_000,
        coverage: Union[float, np.ndarray] = 0.6,
        seed: Optional[int] = None
) -> RegionData:
    """Simulate survey, ANC and ART observations for n regions.

    Parameters:
    n: int. Number of regions
    params: ParameterVector, optional. Generating parameters (drawn if None)
    m_prev, m_anc: int or array. Survey / ANC sample sizes
    N_art: int or array. Population per region
    coverage: float or array. ART coverage among people living with HIV
    seed: int, optional

    Returns:
    data: RegionData
    """
    rng = np.random.default_rng(seed)
    if params is None:
        params = true_parameters(n, seed=rng.integers(2**32))
    if params.n != n:
        raise ValueError(f"params are sized for {params.n} regions, expected {n}")

    link = link_predictors(params, NumpyBackend())
    m_prev = np.broadcast_to(np.asarray(m_prev, dtype=int), n)
    m_anc = np.broadcast_to(np.asarray(m_anc, dtype=int), n)
    N_art = np.broadcast_to(np.asarray(N_art, dtype=int), n)
    coverage = np.broadcast_to(np.asarray(coverage, dtype=float), n)
    if np.any((coverage < 0) | (coverage > 1)):
        raise ValueError("coverage must lie in [0, 1]")

    return RegionData(
        y_prev=rng.binomial(m_prev, link.rho_prev),
        m_prev=m_prev,
        y_anc=rng.binomial(m_anc, link.rho_anc),
        m_anc=m_anc,
        A_art=rng.binomial(N_art, coverage * link.rho_prev),
        N_art=N_art,
    )
