"""Finite difference (PDE) valuation.

Current scope
-------------
Backward Black-Scholes PDE on a uniform grid spanning [0.1 S, 2 S]:
- time stepping: explicit, implicit, or Crank-Nicolson (see ``pde_schemes``)
- spatial grids: spot or log-spot
- early exercise: projection onto intrinsic value at interior nodes, decided
  by the ExercisePolicy exactly as in the binomial engine
- knock-out payoffs: dead interior nodes are zeroed after every step
"""

from __future__ import annotations

import logging

import numpy as np

from ..enums import PDESpaceGrid
from ..exceptions import ConfigurationError
from ..utils import log_timing
from .boundary import BoundaryCondition, DiscountedPayoffBoundary
from .exercise import EUROPEAN, ExercisePolicy
from .market import MarketParameters, check_pricing_inputs
from .params import PDEParams
from .payoffs import Payoff
from .pde_schemes import scheme_for


logger = logging.getLogger(__name__)

GRID_LOWER_MULT = 0.1
GRID_UPPER_MULT = 2.0


def _build_grid(
    spot: float, spot_steps: int, space_grid: PDESpaceGrid
) -> tuple[np.ndarray, np.ndarray, float]:
    """Return (coordinates, spot values, dx) for the chosen space grid."""
    s_min = GRID_LOWER_MULT * spot
    s_max = GRID_UPPER_MULT * spot
    if space_grid is PDESpaceGrid.LOG_SPOT:
        coords = np.linspace(np.log(s_min), np.log(s_max), spot_steps + 1)
        spots = np.exp(coords)
    else:
        coords = np.linspace(s_min, s_max, spot_steps + 1)
        spots = coords
    dx = float(coords[1] - coords[0])
    return coords, spots, dx


def _operator_coeffs(
    *,
    spots: np.ndarray,
    dx: float,
    dt: float,
    params: MarketParameters,
    space_grid: PDESpaceGrid,
) -> tuple[np.ndarray, np.ndarray]:
    """Interior (alpha, beta) = (diffusion * dt / dx^2, drift * dt / (2 dx))."""
    sigma2 = params.volatility**2
    carry = params.risk_free_rate - params.dividend_yield
    interior = spots[1:-1]
    if space_grid is PDESpaceGrid.LOG_SPOT:
        diffusion = np.full(interior.size, 0.5 * sigma2)
        drift = np.full(interior.size, carry - 0.5 * sigma2)
    else:
        diffusion = 0.5 * sigma2 * interior**2
        drift = carry * interior
    alpha = diffusion * dt / dx**2
    beta = drift * dt / (2.0 * dx)
    return alpha, beta


class PDEEngine:
    """Finite-difference pricer for the backward Black-Scholes PDE.

    Grid arrays are allocated per call, so an instance is reentrant.

    Parameters
    ==========
    params: PDEParams
        grid resolution, stepping scheme and space grid
    boundary: BoundaryCondition, optional
        edge/terminal values shared across calls. When None, each call uses
        the discounted-payoff far field of the payoff being priced (floored
        at intrinsic for early exercise).
    """

    def __init__(
        self,
        params: PDEParams | None = None,
        boundary: BoundaryCondition | None = None,
    ) -> None:
        if params is None:
            params = PDEParams()
        if not isinstance(params, PDEParams):
            raise ConfigurationError(f"PDEEngine requires PDEParams, got {type(params).__name__}")
        if boundary is not None and not isinstance(boundary, BoundaryCondition):
            raise ConfigurationError(
                f"boundary must be a BoundaryCondition, got {type(boundary).__name__}"
            )
        self.params = params
        self.boundary = boundary
        self.scheme = scheme_for(params.method)

    def __repr__(self) -> str:
        return (
            f"PDEEngine(method={self.params.method.value}, space_grid={self.params.space_grid.value}, "
            f"spot_steps={self.params.spot_steps}, time_steps={self.params.time_steps})"
        )

    def solve(
        self,
        params: MarketParameters,
        payoff: Payoff,
        exercise: ExercisePolicy = EUROPEAN,
    ) -> tuple[np.ndarray, np.ndarray]:
        """Run the backward solve and return (spot grid, layer-0 values)."""
        check_pricing_inputs(params, payoff, exercise)
        cfg = self.params
        boundary = self.boundary
        if boundary is None:
            boundary = DiscountedPayoffBoundary(payoff, early_exercise=not exercise.is_european())

        coords, spots, dx = _build_grid(params.spot, cfg.spot_steps, cfg.space_grid)
        dt = params.time_to_maturity / cfg.time_steps
        alpha, beta = _operator_coeffs(
            spots=spots, dx=dx, dt=dt, params=params, space_grid=cfg.space_grid
        )
        self.scheme.check_stability(alpha)
        r_dt = params.risk_free_rate * dt

        logger.debug(
            "PDE %s grid=%s spot_steps=%d time_steps=%d dx=%.6g dt=%.6g max_alpha=%.4g",
            cfg.method.value,
            cfg.space_grid.value,
            cfg.spot_steps,
            cfg.time_steps,
            dx,
            dt,
            float(np.max(alpha)),
        )

        interior_spots = spots[1:-1]
        intrinsic = np.asarray(payoff.evaluate(interior_spots), dtype=float)
        dead = payoff.is_knocked_out(interior_spots)

        V = np.asarray(boundary.terminal_condition(spots), dtype=float).copy()
        V[1:-1] = np.where(dead, 0.0, V[1:-1])

        for n in range(1, cfg.time_steps + 1):
            remaining_time = n * dt
            left = boundary.lower_boundary(remaining_time, float(spots[0]), params)
            right = boundary.upper_boundary(remaining_time, float(spots[-1]), params)
            V = self.scheme.step(V, alpha, beta, r_dt, left, right)

            solved = V[1:-1]
            exercise_now = exercise.should_exercise(remaining_time, interior_spots, intrinsic, solved)
            solved = np.where(exercise_now, intrinsic, solved)
            V[1:-1] = np.where(dead, 0.0, solved)

        return spots, V

    def price(
        self,
        params: MarketParameters,
        payoff: Payoff,
        exercise: ExercisePolicy = EUROPEAN,
    ) -> float:
        """Present value interpolated at the current spot, floored at zero."""
        check_pricing_inputs(params, payoff, exercise)
        if params.time_to_maturity == 0.0:
            return float(payoff.evaluate(params.spot))

        with log_timing(logger, "PDE price", self.params.log_timings):
            spots, V = self.solve(params, payoff, exercise)

        if self.params.space_grid is PDESpaceGrid.LOG_SPOT:
            # Only the coordinate is transformed; the grid stores option values.
            value = np.interp(np.log(params.spot), np.log(spots), V)
        else:
            value = np.interp(params.spot, spots, V)
        return max(float(value), 0.0)
