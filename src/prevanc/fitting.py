"""
===========================================================
fitting.py
Last Updated: 2026-10-19
===========================================================

Description:
    Find the maximum a posteriori (MAP) parameter point of the joint
    survey / ANC / ART model with scipy.optimize.minimize, then take
    the exact Hessian of the objective there. The inverse Hessian is
    the parameter covariance used by the reporting layer.

Example Usage:
    from prevanc.fitting import fit_map
    fit = fit_map(data)
    fit.params.beta_prev, fit.converged

Notes:
    - Optimizer settings (method, maxiter, gtol) are passed through
      to scipy unchanged.
    - Non-convergence is reported on the result and as a warning,
      never raised.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import time
import warnings
import numpy as np
from dataclasses import dataclass
from scipy.optimize import minimize
from typing import Optional, Union

from prevanc.backends import NumericBackend
from prevanc.config import OptimizerSettings, PriorSettings
from prevanc.data import RegionData
from prevanc.objective import ObjectiveFunction
from prevanc.parameters import ParameterVector


@dataclass
class FitResult:
    """MAP point, curvature and optimizer diagnostics"""

    params: ParameterVector
    x: np.ndarray
    objective: float
    gradient: np.ndarray
    hessian: np.ndarray
    covariance: np.ndarray
    converged: bool
    pd_hessian: bool
    message: str
    n_iterations: Optional[int]
    n_evaluations: Optional[int]
    elapsed: float
    backend: NumericBackend
    priors: PriorSettings

    @property
    def max_gradient(self) -> float:
        return float(np.max(np.abs(self.gradient)))


def parameter_covariance(hessian: np.ndarray):
    """
    Inverse of the Hessian at the optimum.

    Returns:
    cov: ndarray. Covariance matrix
    pd: bool. Whether the Hessian was positive definite; if not,
        the pseudo-inverse is returned and a warning is issued
    """
    try:
        L = np.linalg.cholesky(hessian)
    except np.linalg.LinAlgError:
        warnings.warn(
            "Hessian at the optimum is not positive definite; "
            "standard errors use its pseudo-inverse and may be unreliable"
        )
        return np.linalg.pinv(hessian), False
    L_inv = np.linalg.inv(L)
    return L_inv.T @ L_inv, True


def fit_map(
        data: RegionData,
        init: Union[ParameterVector, np.ndarray, None] = None,
        backend: Union[NumericBackend, str, None] = None,
        priors: Optional[PriorSettings] = None,
        optimizer: Optional[OptimizerSettings] = None
) -> FitResult:
    """Fit the model by minimizing the penalized negative log-likelihood.

    Parameters:
    data: RegionData. Validated observations
    init: ParameterVector or flat array, optional. Starting point (zeros if None)
    backend: NumericBackend or name, optional. Numeric backend (jax by default)
    priors: PriorSettings, optional
    optimizer: OptimizerSettings, optional. Passed through to scipy

    Returns:
    fit: FitResult
    """
    objective = ObjectiveFunction(data, backend=backend, priors=priors)
    optimizer = optimizer or OptimizerSettings()

    if init is None:
        x0 = ParameterVector.zeros(data.n).to_flat()
    elif isinstance(init, ParameterVector):
        x0 = init.to_flat()
    else:
        x0 = np.asarray(init, dtype=float)
    if x0.shape != (objective.n_params,):
        raise ValueError(
            f"Initial parameter vector has shape {x0.shape}, expected ({objective.n_params},)")

    start = time.perf_counter()
    result = minimize(
        fun=objective,
        x0=x0,
        jac=objective.gradient,
        hess=objective.hessian if optimizer.needs_hessian() else None,
        method=optimizer.method,
        options=optimizer.minimize_options(),
    )
    x_hat = np.asarray(result.x, dtype=float)
    hessian = objective.hessian(x_hat)
    elapsed = time.perf_counter() - start

    if not result.success:
        warnings.warn(f"Optimizer did not converge: {result.message}")
    covariance, pd_hessian = parameter_covariance(hessian)

    return FitResult(
        params=ParameterVector.from_flat(x_hat, data.n),
        x=x_hat,
        objective=float(result.fun),
        gradient=objective.gradient(x_hat),
        hessian=hessian,
        covariance=covariance,
        converged=bool(result.success),
        pd_hessian=pd_hessian,
        message=str(result.message),
        n_iterations=getattr(result, "nit", None),
        n_evaluations=getattr(result, "nfev", None),
        elapsed=elapsed,
        backend=objective.backend,
        priors=objective.priors,
    )
