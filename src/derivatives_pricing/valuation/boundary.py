"""Boundary conditions for the finite-difference grid.

A boundary condition supplies the values pinned at the two edge nodes of each
time layer, plus the terminal layer. Instances are read-only and may be shared
across any number of pricings.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

import numpy as np

from ..exceptions import ConfigurationError
from .payoffs import Payoff

if TYPE_CHECKING:
    from .market import MarketParameters

__all__ = ["BoundaryCondition", "DiscountedPayoffBoundary", "DirichletBoundary"]


class BoundaryCondition(ABC):
    """Edge and terminal values for the backward PDE solve."""

    @abstractmethod
    def lower_boundary(self, remaining_time: float, spot: float, params: MarketParameters) -> float:
        """Value at the lowest grid spot with ``remaining_time`` left to expiry."""

    @abstractmethod
    def upper_boundary(self, remaining_time: float, spot: float, params: MarketParameters) -> float:
        """Value at the highest grid spot with ``remaining_time`` left to expiry."""

    @abstractmethod
    def terminal_condition(self, spot: np.ndarray) -> np.ndarray:
        """Values of the final time layer."""


@dataclass(frozen=True, slots=True)
class DiscountedPayoffBoundary(BoundaryCondition):
    """Far-field value = discounted payoff of the forward.

    ``exp(-r tau) * payoff(S exp((r - q) tau))``, which for a call is
    ``max(S e^{-q tau} - K e^{-r tau}, 0)``. With ``early_exercise`` the
    value is floored at immediate intrinsic value.
    """

    payoff: Payoff
    early_exercise: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.payoff, Payoff):
            raise ConfigurationError(
                f"payoff must be a Payoff, got {type(self.payoff).__name__}"
            )

    def _edge_value(self, remaining_time: float, spot: float, params: MarketParameters) -> float:
        r = params.risk_free_rate
        q = params.dividend_yield
        forward = spot * np.exp((r - q) * remaining_time)
        value = float(np.exp(-r * remaining_time) * self.payoff.evaluate(forward))
        if self.early_exercise:
            value = max(value, float(self.payoff.evaluate(spot)))
        return value

    def lower_boundary(self, remaining_time: float, spot: float, params: MarketParameters) -> float:
        return self._edge_value(remaining_time, spot, params)

    def upper_boundary(self, remaining_time: float, spot: float, params: MarketParameters) -> float:
        return self._edge_value(remaining_time, spot, params)

    def terminal_condition(self, spot: np.ndarray) -> np.ndarray:
        return np.asarray(self.payoff.evaluate(spot), dtype=float)


@dataclass(frozen=True, slots=True)
class DirichletBoundary(BoundaryCondition):
    """User-supplied edge values as functions of remaining time only."""

    lower: Callable[[float], float]
    upper: Callable[[float], float]
    terminal: Callable[[np.ndarray], np.ndarray]

    def __post_init__(self) -> None:
        for name in ("lower", "upper", "terminal"):
            if not callable(getattr(self, name)):
                raise ConfigurationError(f"DirichletBoundary.{name} must be callable")

    def lower_boundary(self, remaining_time: float, spot: float, params: MarketParameters) -> float:
        return float(self.lower(remaining_time))

    def upper_boundary(self, remaining_time: float, spot: float, params: MarketParameters) -> float:
        return float(self.upper(remaining_time))

    def terminal_condition(self, spot: np.ndarray) -> np.ndarray:
        return np.asarray(self.terminal(spot), dtype=float)
