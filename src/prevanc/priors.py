"""
===========================================================
priors.py
Last Updated: 2026-10-19
===========================================================
Penalty (prior) layer

Negative log prior density, added to the negative log-likelihood:

    sigma_*            N(sigma; 0, 2.5) restricted to sigma > 0,
                       parameterised by log_sigma with Jacobian term
    beta_prev          N(-2, 1)
    beta_anc, beta_art N(0, 1)
    phi_prev, b_anc, phi_art   iid N(0, 1) per region

The random effects are independent across regions (no adjacency
structure), so the penalty does not depend on region order.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import numpy as np
from typing import Dict, Optional

from prevanc.backends import NumericBackend
from prevanc.config import PriorSettings
from prevanc.parameters import BLOCKS, ParameterVector

_LOG_SQRT_2PI = float(0.5 * np.log(2.0 * np.pi))


def normal_logpdf(x, mean: float, sd: float, backend: NumericBackend):
    """Elementwise log N(x; mean, sd) for a constant mean and sd"""
    return -_LOG_SQRT_2PI - float(np.log(sd)) - 0.5 * backend.square((x - mean) / sd)


def log_sd_penalty(log_sigma, scale: float, backend: NumericBackend):
    """
    -[log N(sigma; 0, scale) + log_sigma] with sigma = exp(log_sigma)

    The + log_sigma term is the log Jacobian |d sigma / d log_sigma|.
    Dropping it places the prior on log_sigma instead of sigma and
    moves the posterior mode.
    """
    sigma = backend.exp(log_sigma)
    log_density = normal_logpdf(sigma, 0.0, scale, backend)
    log_jacobian = log_sigma
    return -(log_density + log_jacobian)


def intercept_penalty(beta, mean: float, sd: float, backend: NumericBackend):
    return -normal_logpdf(beta, mean, sd, backend)


def random_effect_penalty(effect, sd: float, backend: NumericBackend):
    return -backend.sum(normal_logpdf(effect, 0.0, sd, backend))


def penalty_terms(params: ParameterVector, backend: NumericBackend,
                  priors: Optional[PriorSettings] = None) -> Dict[str, object]:
    """The nine prior contributions keyed by parameter name"""
    priors = priors or PriorSettings()
    terms = {}
    for intercept, effect, log_sd in BLOCKS:
        mean, sd = getattr(priors, intercept)
        terms[log_sd] = log_sd_penalty(getattr(params, log_sd), priors.sigma_scale, backend)
        terms[intercept] = intercept_penalty(getattr(params, intercept), mean, sd, backend)
        terms[effect] = random_effect_penalty(getattr(params, effect), priors.random_effect_sd, backend)
    return terms


def penalty(params: ParameterVector, backend: NumericBackend,
            priors: Optional[PriorSettings] = None):
    """Total negative log prior"""
    return sum(penalty_terms(params, backend, priors).values())
