"""
===========================================================
reporting.py
Last Updated: 2026-10-19
===========================================================

Description:
    Point estimates and delta-method standard errors for the
    reported quantities of a MAP fit:

        se(q) = sqrt(diag(J_q Cov J_q^T)),  J_q = dq/dx at x_hat

    where Cov is the inverse Hessian of the objective. Any
    differentiable function of the flat parameter vector can be
    reported through delta_method(); sdreport() applies it to the
    fixed list REPORTED_QUANTITIES, in that order, with vector
    quantities expanded per region.

Example Usage:
    from prevanc.reporting import fit_and_report
    report = fit_and_report(data)
    report.table
    report.estimates("rho_prev")

Notes:
    - Convergence status and Hessian definiteness are carried on
      the report so callers can decide whether to trust it.
    - alpha_art raises DomainError if any A_art is zero.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import warnings
import numpy as np
import pandas as pd
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple, Union

from prevanc.backends import NumericBackend, get_backend
from prevanc.config import OptimizerSettings, PriorSettings
from prevanc.data import RegionData
from prevanc.fitting import FitResult, fit_map
from prevanc.parameters import ParameterVector
from prevanc.transforms import art_coverage, link_predictors, precisions

REPORTED_QUANTITIES = (
    "beta_prev", "tau_phi_prev", "phi_prev", "rho_prev",
    "beta_anc", "tau_b_anc", "b_anc", "rho_anc",
    "beta_art", "tau_phi_art", "phi_art", "alpha_art",
)

VECTOR_QUANTITIES = frozenset(
    ("phi_prev", "rho_prev", "b_anc", "rho_anc", "phi_art", "alpha_art"))

# name -> q(params, data, backend)
QUANTITIES: Dict[str, Callable] = {
    "beta_prev": lambda p, d, b: p.beta_prev,
    "tau_phi_prev": lambda p, d, b: precisions(p, b)["tau_phi_prev"],
    "phi_prev": lambda p, d, b: p.phi_prev,
    "rho_prev": lambda p, d, b: link_predictors(p, b).rho_prev,
    "beta_anc": lambda p, d, b: p.beta_anc,
    "tau_b_anc": lambda p, d, b: precisions(p, b)["tau_b_anc"],
    "b_anc": lambda p, d, b: p.b_anc,
    "rho_anc": lambda p, d, b: link_predictors(p, b).rho_anc,
    "beta_art": lambda p, d, b: p.beta_art,
    "tau_phi_art": lambda p, d, b: precisions(p, b)["tau_phi_art"],
    "phi_art": lambda p, d, b: p.phi_art,
    "alpha_art": lambda p, d, b: art_coverage(link_predictors(p, b).eta_prev, d, b),
}


def delta_method(
        func: Callable,
        x: np.ndarray,
        cov: np.ndarray,
        backend: Union[NumericBackend, str, None] = None
) -> Tuple[np.ndarray, np.ndarray]:
    """First-order standard errors of func(x) given the covariance of x.

    Parameters:
    func: callable. Differentiable map from the flat parameter vector to a scalar or vector
    x: ndarray. Point at which to linearise (the MAP estimate)
    cov: ndarray. Covariance of x
    backend: NumericBackend, optional

    Returns:
    estimate: ndarray. func(x), at least 1-d
    std_error: ndarray. Same shape; nan where the variance came out negative
    """
    backend = get_backend(backend)
    x = np.asarray(x, dtype=float)
    estimate = np.atleast_1d(np.asarray(func(backend.asarray(x)), dtype=float))
    J = backend.jacobian(func)(x).reshape(estimate.size, x.size)
    variance = np.einsum("ij,jk,ik->i", J, cov, J)
    if np.any(variance < 0):
        warnings.warn("Negative delta-method variance; standard error set to nan")
    std_error = np.sqrt(np.where(variance >= 0, variance, np.nan))
    return estimate, std_error


@dataclass
class SDReport:
    """
    Reported estimates of a fit.

    Attributes:
    table: DataFrame. Columns quantity, region, estimate, std_error;
        one row per scalar quantity and one per region for vectors
    converged: bool. Optimizer convergence flag
    pd_hessian: bool. Whether the Hessian at the optimum was positive definite
    message: str. Optimizer message
    """

    table: pd.DataFrame
    converged: bool
    pd_hessian: bool
    message: str

    def _rows(self, name: str) -> pd.DataFrame:
        if name not in REPORTED_QUANTITIES:
            raise KeyError(f"Unknown quantity '{name}'. Available: {list(REPORTED_QUANTITIES)}")
        return self.table[self.table["quantity"] == name]

    def estimates(self, name: str) -> np.ndarray:
        return self._rows(name)["estimate"].to_numpy()

    def std_errors(self, name: str) -> np.ndarray:
        return self._rows(name)["std_error"].to_numpy()

    def summary(self) -> pd.DataFrame:
        """One row per quantity: count, mean estimate, mean standard error"""
        grouped = self.table.groupby("quantity", sort=False)
        out = grouped.agg(n=("estimate", "size"),
                          estimate=("estimate", "mean"),
                          std_error=("std_error", "mean"))
        return out.reindex(list(REPORTED_QUANTITIES))

    def print_summary(self):
        """Print a short human-readable summary of the report."""
        print("PREVALENCE / ANC / ART MODEL REPORT:")
        print(f"Converged: {self.converged} ({self.message})")
        print(f"Positive definite Hessian: {self.pd_hessian}")
        print(f"\n--- ESTIMATES (mean over regions for vectors) ---")
        for name, row in self.summary().iterrows():
            print(f"{name:>14s}: {row['estimate']:10.4f}  (se {row['std_error']:.4f}, n={int(row['n'])})")


def sdreport(
        fit: FitResult,
        data: RegionData,
        backend: Union[NumericBackend, str, None] = None
) -> SDReport:
    """Estimates and standard errors for every quantity in REPORTED_QUANTITIES.

    Raises:
    DomainError: alpha_art is undefined because some A_art is zero
    """
    backend = get_backend(backend) if backend is not None else fit.backend
    if fit.params.n != data.n:
        raise ValueError(f"Fit has {fit.params.n} regions, data has {data.n}")

    frames = []
    for name in REPORTED_QUANTITIES:
        q = QUANTITIES[name]

        def func(x, q=q):
            return q(ParameterVector.from_flat(x, data.n), data, backend)

        estimate, std_error = delta_method(func, fit.x, fit.covariance, backend)
        regions = list(data.regions) if name in VECTOR_QUANTITIES else [None]
        frames.append(pd.DataFrame({
            "quantity": name,
            "region": regions,
            "estimate": estimate,
            "std_error": std_error,
        }))

    table = pd.concat(frames, ignore_index=True)
    return SDReport(table=table, converged=fit.converged,
                    pd_hessian=fit.pd_hessian, message=fit.message)


def fit_and_report(
        data: RegionData,
        init: Union[ParameterVector, np.ndarray, None] = None,
        backend: Union[NumericBackend, str, None] = None,
        priors: Optional[PriorSettings] = None,
        optimizer: Optional[OptimizerSettings] = None
) -> SDReport:
    """Fit the model and report all quantities in one call"""
    fit = fit_map(data, init=init, backend=backend, priors=priors, optimizer=optimizer)
    return sdreport(fit, data)
