"""
===========================================================
likelihood.py
Last Updated: 2026-10-19
===========================================================
Likelihood layer

Binomial log-likelihood of survey and ANC positives, evaluated
directly on the logit scale:

    log p     = log_invlogit(eta)
    log (1-p) = log_invlogit(-eta)
    ll        = y log p + (m - y) log(1 - p) + log C(m, y)

Both log terms saturate linearly in eta instead of under/overflowing,
so value and gradient stay finite for any finite eta, including
y = 0 and y = m. The normalising constant is added only for m > 1.

The ART arm is deliberately unscored: A_art / N_art enter the
reported alpha_art only and never the fit. Whether a binomial term
for ART was intended is an open question with the model owners;
do not add one here without that decision.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
from typing import Dict

from prevanc.backends import NumericBackend
from prevanc.data import RegionData
from prevanc.transforms import LinkPredictors


def binomial_logit_logpmf(y, m, eta, backend: NumericBackend):
    """Elementwise robust binomial log-probability of y successes in m trials, logit(p) = eta"""
    y = backend.asarray(y)
    m = backend.asarray(m)
    ll = y * backend.log_invlogit(eta) + (m - y) * backend.log_invlogit(-eta)
    log_choose = (backend.lgamma(m + 1.0)
                  - backend.lgamma(y + 1.0)
                  - backend.lgamma(m - y + 1.0))
    return ll + backend.asarray(m > 1) * log_choose


def likelihood_terms(link: LinkPredictors, data: RegionData,
                     backend: NumericBackend) -> Dict[str, object]:
    """Negative log-likelihood per arm"""
    return {
        "prev": -backend.sum(binomial_logit_logpmf(data.y_prev, data.m_prev, link.eta_prev, backend)),
        "anc": -backend.sum(binomial_logit_logpmf(data.y_anc, data.m_anc, link.eta_anc, backend)),
    }


def likelihood(link: LinkPredictors, data: RegionData, backend: NumericBackend):
    """Total negative log-likelihood (survey + ANC)"""
    return sum(likelihood_terms(link, data, backend).values())
