"""Time-stepping schemes for the finite-difference engine.

All schemes advance the backward Black-Scholes PDE by one layer,

    V_tau = 0.5 sigma^2 S^2 V_SS + (r - q) S V_S - r V,

given per-node coefficients already scaled by dt:

    alpha_i = diffusion_i * dt / dx^2,    beta_i = drift_i * dt / (2 dx)

where (diffusion, drift) is (0.5 sigma^2 S_i^2, (r - q) S_i) on the spot grid
and (0.5 sigma^2, r - q - 0.5 sigma^2) on the log-spot grid. Each scheme
receives the full previous layer and the two new edge values and returns
the full new layer; it never mutates its inputs.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np

from ..enums import PDEMethod
from ..exceptions import ConfigurationError, StabilityError
from ..linear_algebra import solve_tridiagonal

__all__ = [
    "EXPLICIT_STABILITY_LIMIT",
    "FiniteDifferenceScheme",
    "ExplicitScheme",
    "ImplicitScheme",
    "CrankNicolsonScheme",
    "scheme_for",
]

EXPLICIT_STABILITY_LIMIT = 0.5


def _explicit_operator(
    V_old: np.ndarray, alpha: np.ndarray, beta: np.ndarray, r_dt: float, weight: float
) -> np.ndarray:
    """Interior values of (1 + weight * L dt) V_old for the discretized operator L."""
    a = weight * alpha
    b = weight * beta
    return (a - b) * V_old[:-2] + (1.0 - 2.0 * a - weight * r_dt) * V_old[1:-1] + (a + b) * V_old[2:]


def _solve_pinned_system(
    rhs_interior: np.ndarray,
    alpha: np.ndarray,
    beta: np.ndarray,
    r_dt: float,
    weight: float,
    left: float,
    right: float,
) -> np.ndarray:
    """Solve (1 - weight * L dt) V = rhs with edge rows pinned to (left, right)."""
    a = weight * alpha
    b = weight * beta
    n = rhs_interior.size + 2

    lower = np.zeros(n - 1)
    diag = np.ones(n)
    upper = np.zeros(n - 1)
    lower[:-1] = -a + b
    diag[1:-1] = 1.0 + 2.0 * a + weight * r_dt
    upper[1:] = -a - b

    rhs = np.empty(n)
    rhs[0] = left
    rhs[1:-1] = rhs_interior
    rhs[-1] = right
    return solve_tridiagonal(lower, diag, upper, rhs)


class FiniteDifferenceScheme(ABC):
    """One backward step of the finite-difference solver."""

    method: PDEMethod

    def check_stability(self, alpha: np.ndarray) -> None:
        """Raise StabilityError if the scheme cannot be used with these coefficients."""

    @abstractmethod
    def step(
        self,
        V_old: np.ndarray,
        alpha: np.ndarray,
        beta: np.ndarray,
        r_dt: float,
        left: float,
        right: float,
    ) -> np.ndarray:
        """Return the next (earlier in calendar time) layer."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class ExplicitScheme(FiniteDifferenceScheme):
    """Forward-Euler in remaining time: each node is a fixed combination of three neighbors.

    Only conditionally stable: diffusion * dt / dx^2 must not exceed 0.5.
    """

    method = PDEMethod.EXPLICIT

    def check_stability(self, alpha: np.ndarray) -> None:
        ratio = float(np.max(alpha)) if alpha.size else 0.0
        if ratio > EXPLICIT_STABILITY_LIMIT:
            raise StabilityError(
                f"Explicit scheme unstable: diffusion*dt/dx^2 = {ratio:.4g} exceeds "
                f"{EXPLICIT_STABILITY_LIMIT}. Increase time_steps, reduce spot_steps, "
                "or use the implicit / Crank-Nicolson scheme."
            )

    def step(self, V_old, alpha, beta, r_dt, left, right) -> np.ndarray:
        V_new = np.empty_like(V_old)
        V_new[1:-1] = _explicit_operator(V_old, alpha, beta, r_dt, 1.0)
        V_new[0] = left
        V_new[-1] = right
        return V_new


class ImplicitScheme(FiniteDifferenceScheme):
    """Backward-Euler: one tridiagonal solve per step, unconditionally stable."""

    method = PDEMethod.IMPLICIT

    def step(self, V_old, alpha, beta, r_dt, left, right) -> np.ndarray:
        return _solve_pinned_system(V_old[1:-1], alpha, beta, r_dt, 1.0, left, right)


class CrankNicolsonScheme(FiniteDifferenceScheme):
    """Average of the explicit and implicit discretizations (second order in time)."""

    method = PDEMethod.CRANK_NICOLSON

    def step(self, V_old, alpha, beta, r_dt, left, right) -> np.ndarray:
        rhs = _explicit_operator(V_old, alpha, beta, r_dt, 0.5)
        return _solve_pinned_system(rhs, alpha, beta, r_dt, 0.5, left, right)


_SCHEMES: dict[PDEMethod, FiniteDifferenceScheme] = {
    PDEMethod.EXPLICIT: ExplicitScheme(),
    PDEMethod.IMPLICIT: ImplicitScheme(),
    PDEMethod.CRANK_NICOLSON: CrankNicolsonScheme(),
}


def scheme_for(method: PDEMethod | str) -> FiniteDifferenceScheme:
    """Stateless scheme instance for a PDEMethod."""
    if isinstance(method, str):
        method = PDEMethod(method)
    try:
        return _SCHEMES[method]
    except KeyError as exc:
        raise ConfigurationError(f"Unknown PDE method: {method!r}") from exc
