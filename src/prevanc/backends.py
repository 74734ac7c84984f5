"""
===========================================================
backends.py
Last Updated: 2026-10-19
===========================================================

Description:
    Numeric backends for the model layers. Every layer receives a
    backend and does its elementwise math through it, so the same
    objective can be evaluated on plain numpy arrays or traced by
    an automatic-differentiation library.

    Defines:
        - NumericBackend: protocol every backend satisfies
        - JaxBackend: jax.numpy arithmetic with exact gradients,
                      Hessians and Jacobians (default)
        - NumpyBackend: numpy / scipy arithmetic with forward
                        finite-difference derivatives
        - get_backend(): resolve a backend by name

Notes:
    - Derivative builders take f(x) and return a callable that
      accepts and returns numpy float64 arrays.
    - JAX runs in float64; x64 mode is switched on at import.
-----------------------------------------------------------
License: MIT
===========================================================
"""
from __future__ import annotations
import numpy as np
from typing import Any, Callable, Protocol, Union

import jax

jax.config.update("jax_enable_x64", True)

import jax.numpy as jnp
from jax.scipy.special import gammaln as jax_gammaln
from scipy.optimize import approx_fprime
from scipy.special import expit, gammaln, log_expit


class NumericBackend(Protocol):
    """Operations the model layers require of an array library"""

    name: str

    def asarray(self, x) -> Any: ...
    def exp(self, x) -> Any: ...
    def log(self, x) -> Any: ...
    def log1p(self, x) -> Any: ...
    def invlogit(self, x) -> Any: ...
    def log_invlogit(self, x) -> Any: ...
    def lgamma(self, x) -> Any: ...
    def square(self, x) -> Any: ...
    def sum(self, x) -> Any: ...

    def compile(self, f: Callable) -> Callable[[np.ndarray], float]: ...
    def gradient(self, f: Callable) -> Callable[[np.ndarray], np.ndarray]: ...
    def hessian(self, f: Callable) -> Callable[[np.ndarray], np.ndarray]: ...
    def jacobian(self, f: Callable) -> Callable[[np.ndarray], np.ndarray]: ...


class JaxBackend:
    """jax.numpy backend with reverse-mode gradients and exact Hessians"""

    name = "jax"

    def __init__(self, jit: bool = True):
        self.jit = jit

    def asarray(self, x):
        return jnp.asarray(x, dtype=jnp.float64)

    def exp(self, x):
        return jnp.exp(x)

    def log(self, x):
        return jnp.log(x)

    def log1p(self, x):
        return jnp.log1p(x)

    def invlogit(self, x):
        return jax.nn.sigmoid(x)

    def log_invlogit(self, x):
        # log(1 / (1 + exp(-x))) without forming exp(-x) for large |x|
        return jax.nn.log_sigmoid(x)

    def lgamma(self, x):
        return jax_gammaln(x)

    def square(self, x):
        return jnp.square(x)

    def sum(self, x):
        return jnp.sum(x)

    def _wrap(self, fn):
        fn = jax.jit(fn) if self.jit else fn

        def call(x):
            return np.asarray(fn(jnp.asarray(x, dtype=jnp.float64)), dtype=float)
        return call

    def compile(self, f):
        fn = jax.jit(f) if self.jit else f

        def call(x):
            return float(fn(jnp.asarray(x, dtype=jnp.float64)))
        return call

    def gradient(self, f):
        return self._wrap(jax.grad(f))

    def hessian(self, f):
        return self._wrap(jax.hessian(f))

    def jacobian(self, f):
        # reported quantities have few inputs relative to outputs
        return self._wrap(jax.jacfwd(f))


class NumpyBackend:
    """
    numpy backend. Derivatives are forward finite differences
    (scipy.optimize.approx_fprime), so it suits plain evaluation and
    small problems rather than production fits.
    """

    name = "numpy"

    def __init__(self, epsilon: float = 1.4901161193847656e-08):
        self.epsilon = epsilon

    def asarray(self, x):
        return np.asarray(x, dtype=float)

    def exp(self, x):
        return np.exp(x)

    def log(self, x):
        return np.log(x)

    def log1p(self, x):
        return np.log1p(x)

    def invlogit(self, x):
        return expit(x)

    def log_invlogit(self, x):
        return log_expit(x)

    def lgamma(self, x):
        return gammaln(x)

    def square(self, x):
        return np.square(x)

    def sum(self, x):
        return np.sum(x)

    def compile(self, f):
        return lambda x: float(f(np.asarray(x, dtype=float)))

    def gradient(self, f):
        def grad(x):
            x = np.asarray(x, dtype=float)
            return approx_fprime(x, lambda z: float(f(z)), self.epsilon)
        return grad

    def hessian(self, f):
        # step sqrt(eps) on a finite-difference gradient
        grad = self.gradient(f)
        step = np.sqrt(self.epsilon)

        def hess(x):
            x = np.asarray(x, dtype=float)
            H = np.atleast_2d(approx_fprime(x, grad, step))
            return 0.5 * (H + H.T)
        return hess

    def jacobian(self, f):
        def jac(x):
            x = np.asarray(x, dtype=float)
            J = approx_fprime(x, lambda z: np.atleast_1d(np.asarray(f(z), dtype=float)),
                              self.epsilon)
            return np.atleast_2d(J)
        return jac


_BACKENDS = {"jax": JaxBackend, "numpy": NumpyBackend}


def get_backend(backend: Union[str, NumericBackend, None] = None) -> NumericBackend:
    """Resolve a backend instance from a name, an instance, or None (jax)"""
    if backend is None:
        return JaxBackend()
    if isinstance(backend, str):
        try:
            return _BACKENDS[backend.lower()]()
        except KeyError:
            raise ValueError(
                f"Unknown backend '{backend}'. Available: {sorted(_BACKENDS)}"
            ) from None
    return backend
