"""
===========================================================
config.py
Last Updated: 2026-10-19
===========================================================
Settings for the prior specification and the optimizer.

Defaults reproduce the reference model:
    beta_prev ~ N(-2, 1), beta_anc ~ N(0, 1), beta_art ~ N(0, 1)
    sigma_*   ~ half-normal(2.5)   (placed on log_sigma_* with Jacobian)
    phi_prev, b_anc, phi_art ~ N(0, 1) iid per region

The optimizer settings are not interpreted here; they are handed
to scipy.optimize.minimize as they are.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class PriorSettings:
    """
    Prior means / scales for intercepts, random effects and standard deviations.

    Attributes:
    beta_prev: (mean, sd) of the survey intercept prior
    beta_anc: (mean, sd) of the ANC bias intercept prior
    beta_art: (mean, sd) of the ART intercept prior
    sigma_scale: scale of the half-normal prior on every sigma_*
    random_effect_sd: sd of the iid normal prior on phi_prev, b_anc, phi_art
    """

    # ==================== Intercepts ====================================
    beta_prev: Tuple[float, float] = (-2.0, 1.0)  # baseline prevalence ~12% on logit scale
    beta_anc: Tuple[float, float] = (0.0, 1.0)
    beta_art: Tuple[float, float] = (0.0, 1.0)

    # ==================== Hyperparameters ===============================
    sigma_scale: float = 2.5
    random_effect_sd: float = 1.0

    def __post_init__(self):
        for name in ("beta_prev", "beta_anc", "beta_art"):
            mean, sd = getattr(self, name)
            if sd <= 0:
                raise ValueError(f"prior sd for {name} must be positive")
        if self.sigma_scale <= 0:
            raise ValueError("sigma_scale must be positive")
        if self.random_effect_sd <= 0:
            raise ValueError("random_effect_sd must be positive")


# minimize methods that require (or use) hess=
HESSIAN_METHODS = frozenset(("newton-cg", "dogleg", "trust-ncg", "trust-krylov", "trust-exact"))


@dataclass
class OptimizerSettings:
    """
    Pass-through configuration for scipy.optimize.minimize.

    method: str. Any gradient-based minimize method ('BFGS', 'L-BFGS-B', 'trust-ncg', ...)
    maxiter: int. Iteration limit
    gtol: float. Gradient tolerance
    options: dict. Extra solver options, merged last
    use_hessian: bool, optional. Hand the exact Hessian to the solver;
        None decides from the method (Newton-CG and the trust-region methods)
    """

    method: str = "BFGS"
    maxiter: int = 1000
    gtol: float = 1e-5
    options: Dict[str, Any] = field(default_factory=dict)
    use_hessian: Optional[bool] = None

    def needs_hessian(self) -> bool:
        """Whether minimize should receive hess="""
        if self.use_hessian is not None:
            return self.use_hessian
        return self.method.lower() in HESSIAN_METHODS

    def minimize_options(self) -> Dict[str, Any]:
        """Options dictionary for scipy.optimize.minimize"""
        opts = {"maxiter": self.maxiter, "gtol": self.gtol}
        opts.update(self.options)
        return opts
