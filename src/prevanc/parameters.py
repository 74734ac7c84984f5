"""
===========================================================
parameters.py
Last Updated: 2026-10-19
===========================================================
The parameter vector being fitted.

Flat layout (length 3 + 3n + 3), one block per arm:
    beta_prev, phi_prev[0..n-1], log_sigma_phi_prev,
    beta_anc,  b_anc[0..n-1],    log_sigma_b_anc,
    beta_art,  phi_art[0..n-1],  log_sigma_phi_art

Standard deviations are stored on the log scale so the optimizer
searches an unconstrained space; sigma = exp(log_sigma) > 0 always.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import numpy as np
from dataclasses import dataclass
from typing import Any, List

# (intercept, random effect vector, log standard deviation) per arm
BLOCKS = (
    ("beta_prev", "phi_prev", "log_sigma_phi_prev"),
    ("beta_anc", "b_anc", "log_sigma_b_anc"),
    ("beta_art", "phi_art", "log_sigma_phi_art"),
)


@dataclass
class ParameterVector:
    """
    Intercepts, per-region random effects and log standard deviations.

    Entries may be floats / numpy arrays or traced autodiff arrays;
    nothing here forces a concrete type.
    """

    beta_prev: Any
    phi_prev: Any
    log_sigma_phi_prev: Any
    beta_anc: Any
    b_anc: Any
    log_sigma_b_anc: Any
    beta_art: Any
    phi_art: Any
    log_sigma_phi_art: Any

    @staticmethod
    def size(n: int) -> int:
        return 3 * n + 6

    @classmethod
    def zeros(cls, n: int) -> "ParameterVector":
        """Zero initialisation: all intercepts, effects and log sds at 0"""
        return cls.from_flat(np.zeros(cls.size(n)), n)

    @classmethod
    def from_flat(cls, x, n: int) -> "ParameterVector":
        """Split a flat vector into named blocks (slicing only, safe under tracing)"""
        if not hasattr(x, "shape"):
            x = np.asarray(x, dtype=float)
        if np.ndim(x) != 1 or np.shape(x)[0] != cls.size(n):
            raise ValueError(
                f"Parameter vector has shape {np.shape(x)}, expected ({cls.size(n)},) for n={n}")
        values = {}
        k = 0
        for intercept, effect, log_sd in BLOCKS:
            values[intercept] = x[k]
            values[effect] = x[k + 1:k + 1 + n]
            values[log_sd] = x[k + 1 + n]
            k += n + 2
        return cls(**values)

    def to_flat(self) -> np.ndarray:
        parts = []
        for intercept, effect, log_sd in BLOCKS:
            parts.append(np.atleast_1d(np.asarray(getattr(self, intercept), dtype=float)))
            parts.append(np.asarray(getattr(self, effect), dtype=float).ravel())
            parts.append(np.atleast_1d(np.asarray(getattr(self, log_sd), dtype=float)))
        return np.concatenate(parts)

    @property
    def n(self) -> int:
        return int(np.shape(self.phi_prev)[0])

    @staticmethod
    def labels(n: int) -> List[str]:
        """Name of every entry of the flat vector, e.g. 'phi_prev[2]'"""
        names = []
        for intercept, effect, log_sd in BLOCKS:
            names.append(intercept)
            names.extend(f"{effect}[{i}]" for i in range(n))
            names.append(log_sd)
        return names
