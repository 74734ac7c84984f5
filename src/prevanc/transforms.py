"""
===========================================================
transforms.py
Last Updated: 2026-10-19
===========================================================

Description:
    Map the parameter vector to link-scale linear predictors and
    their probability-scale images.

        eta_prev = beta_prev + sigma_phi_prev * phi_prev
        eta_anc  = eta_prev + beta_anc + sigma_b_anc * b_anc
        eta_art  = beta_art + sigma_phi_art * phi_art
        rho_prev = invlogit(eta_prev), rho_anc = invlogit(eta_anc)

    ANC prevalence is survey prevalence plus a bias on the logit
    scale. ART coverage is the consistency identity

        alpha_art = A_art * rho_prev / N_art

    evaluated on the log scale. It is only defined for A_art > 0;
    a zero count raises DomainError instead of returning 0 or NaN.

Notes:
    - Pure functions of (params, data, backend); nothing is cached.
    - log(rho_prev) is taken as log_invlogit(eta_prev), finite for
      any finite eta even where rho_prev underflows to 0.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import numpy as np
from dataclasses import dataclass
from typing import Any, Dict

from prevanc.backends import NumericBackend
from prevanc.data import RegionData
from prevanc.errors import DomainError
from prevanc.parameters import ParameterVector


@dataclass
class LinkPredictors:
    """Standard deviations, linear predictors and prevalences for one evaluation"""

    sigma_phi_prev: Any
    sigma_b_anc: Any
    sigma_phi_art: Any
    eta_prev: Any
    eta_anc: Any
    eta_art: Any
    rho_prev: Any
    rho_anc: Any


def link_predictors(params: ParameterVector, backend: NumericBackend) -> LinkPredictors:
    sigma_phi_prev = backend.exp(params.log_sigma_phi_prev)
    eta_prev = params.beta_prev + sigma_phi_prev * params.phi_prev

    sigma_b_anc = backend.exp(params.log_sigma_b_anc)
    eta_anc = eta_prev + params.beta_anc + sigma_b_anc * params.b_anc

    sigma_phi_art = backend.exp(params.log_sigma_phi_art)
    eta_art = params.beta_art + sigma_phi_art * params.phi_art

    return LinkPredictors(
        sigma_phi_prev=sigma_phi_prev,
        sigma_b_anc=sigma_b_anc,
        sigma_phi_art=sigma_phi_art,
        eta_prev=eta_prev,
        eta_anc=eta_anc,
        eta_art=eta_art,
        rho_prev=backend.invlogit(eta_prev),
        rho_anc=backend.invlogit(eta_anc),
    )


def check_art_domain(data: RegionData):
    """Raise DomainError if alpha_art is undefined for any region (A_art == 0)"""
    zero = np.flatnonzero(data.A_art == 0)
    if zero.size:
        labels = [data.regions[i] for i in zero]
        raise DomainError(
            f"alpha_art is undefined where A_art == 0 (regions {labels}); "
            f"log(A_art) has no finite value",
            regions=labels,
        )


def art_coverage(eta_prev, data: RegionData, backend: NumericBackend):
    """alpha_art = exp(log A_art + log rho_prev - log N_art)"""
    check_art_domain(data)
    log_alpha = (
        backend.log(backend.asarray(data.A_art))
        + backend.log_invlogit(eta_prev)
        - backend.log(backend.asarray(data.N_art))
    )
    return backend.exp(log_alpha)


def precisions(params: ParameterVector, backend: NumericBackend) -> Dict[str, Any]:
    """tau = 1 / sigma^2 = exp(-2 log_sigma) for each random-effect block"""
    return {
        "tau_phi_prev": backend.exp(-2.0 * params.log_sigma_phi_prev),
        "tau_b_anc": backend.exp(-2.0 * params.log_sigma_b_anc),
        "tau_phi_art": backend.exp(-2.0 * params.log_sigma_phi_art),
    }


def transform(params: ParameterVector, data: RegionData, backend: NumericBackend) -> Dict[str, Any]:
    """
    Every derived quantity for one parameter point.

    Returns:
    dict with sigma_*, eta_*, rho_prev, rho_anc, alpha_art and tau_*

    Raises:
    DomainError if any A_art is zero
    """
    if params.n != data.n:
        raise ValueError(f"Parameters are sized for {params.n} regions, data has {data.n}")
    link = link_predictors(params, backend)
    out = dict(vars(link))
    out["alpha_art"] = art_coverage(link.eta_prev, data, backend)
    out.update(precisions(params, backend))
    return out
