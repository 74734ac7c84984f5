"""
===========================================================
objective.py
Last Updated: 2026-10-19
===========================================================

Description:
    Penalized negative log-likelihood of the joint model as a
    function of the flat parameter vector:

        f(x) = penalty(x) + nll_prev(x) + nll_anc(x)

    This is what the optimizer minimizes; its minimizer is the MAP
    point. Gradient and Hessian come from the numeric backend.

Example Usage:
    from prevanc.objective import ObjectiveFunction
    f = ObjectiveFunction(data)
    x0 = ParameterVector.zeros(data.n).to_flat()
    f(x0), f.gradient(x0), f.hessian(x0)

Notes:
    - Every call rebuilds all derived quantities from x.
    - alpha_art is not part of the objective, so zero ART counts
      never block a fit.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import numpy as np
from typing import Dict, Optional, Union

from prevanc.backends import NumericBackend, get_backend
from prevanc.config import PriorSettings
from prevanc.data import RegionData
from prevanc.likelihood import likelihood_terms
from prevanc.parameters import ParameterVector
from prevanc.priors import penalty_terms
from prevanc.transforms import link_predictors


class ObjectiveFunction:
    """
    Penalized negative log-likelihood for one data set.

    Parameters:
    data: RegionData. Observations (fixed for the lifetime of the object)
    backend: NumericBackend or str, optional. Defaults to the jax backend
    priors: PriorSettings, optional. Defaults to the reference priors
    """

    def __init__(
            self,
            data: RegionData,
            backend: Union[NumericBackend, str, None] = None,
            priors: Optional[PriorSettings] = None
    ):
        self.data = data
        self.backend = get_backend(backend)
        self.priors = priors or PriorSettings()
        self._value = self.backend.compile(self._evaluate)
        self._gradient = self.backend.gradient(self._evaluate)
        self._hessian = self.backend.hessian(self._evaluate)

    @property
    def n_params(self) -> int:
        return ParameterVector.size(self.data.n)

    def unpack(self, x) -> ParameterVector:
        return ParameterVector.from_flat(x, self.data.n)

    def _terms(self, x) -> Dict[str, object]:
        params = self.unpack(self.backend.asarray(x))
        link = link_predictors(params, self.backend)
        terms = {f"prior_{k}": v for k, v in penalty_terms(params, self.backend, self.priors).items()}
        terms.update({f"nll_{k}": v for k, v in likelihood_terms(link, self.data, self.backend).items()})
        return terms

    def _evaluate(self, x):
        return sum(self._terms(x).values())

    def __call__(self, x) -> float:
        return self._value(x)

    def gradient(self, x) -> np.ndarray:
        return self._gradient(x)

    def hessian(self, x) -> np.ndarray:
        return self._hessian(x)

    def components(self, x) -> Dict[str, float]:
        """Value of each prior and likelihood term at x"""
        return {k: float(v) for k, v in self._terms(x).items()}

    def penalty(self, x) -> float:
        return sum(v for k, v in self.components(x).items() if k.startswith("prior_"))

    def negative_log_likelihood(self, x) -> float:
        return sum(v for k, v in self.components(x).items() if k.startswith("nll_"))
