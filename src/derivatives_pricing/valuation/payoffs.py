"""Payoff variants.

Every payoff is immutable and vectorized over spot. Payoffs that have a
closed-form price declare an :class:`AnalyticKind` tag; the analytic
registry dispatches on that tag alone.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

import numpy as np

from ..enums import AnalyticKind, BarrierType, OptionType
from ..exceptions import ConfigurationError, InvalidParameterError

__all__ = [
    "Payoff",
    "VanillaPayoff",
    "CashOrNothingPayoff",
    "BarrierPayoff",
    "CustomPayoff",
]


def _validate_non_negative(owner: str, name: str, value: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{owner}.{name} must be numeric") from exc
    if not np.isfinite(value):
        raise InvalidParameterError(f"{owner}.{name} must be finite")
    if value < 0.0:
        raise InvalidParameterError(f"{owner}.{name} must be >= 0, got {value}")
    return value


def _validate_option_type(owner: str, option_type) -> OptionType:
    if isinstance(option_type, str):
        return OptionType(option_type)
    if not isinstance(option_type, OptionType):
        raise ConfigurationError(
            f"{owner}.option_type must be OptionType enum, got {type(option_type).__name__}"
        )
    return option_type


class Payoff(ABC):
    """Value of the option at expiry as a function of the underlying."""

    @abstractmethod
    def evaluate(self, spot: np.ndarray | float) -> np.ndarray:
        """Vectorized payoff as a function of spot."""

    def evaluate_path(self, path: np.ndarray) -> float:
        """Payoff of a single simulated path (default: terminal value only)."""
        path = np.asarray(path, dtype=float)
        return float(self.evaluate(path[-1]))

    def evaluate_paths(self, paths: np.ndarray) -> np.ndarray:
        """Payoff of each row of a (num_paths, steps+1) path matrix."""
        paths = np.asarray(paths, dtype=float)
        return np.asarray(self.evaluate(paths[:, -1]), dtype=float)

    def is_knocked_out(self, spot: np.ndarray | float) -> np.ndarray:
        """True where the contract has died (always False for non-barrier payoffs)."""
        return np.zeros(np.shape(spot), dtype=bool)

    @property
    def analytic_kind(self) -> AnalyticKind | None:
        return None


@dataclass(frozen=True, slots=True)
class VanillaPayoff(Payoff):
    """max(S - K, 0) for calls, max(K - S, 0) for puts."""

    option_type: OptionType
    strike: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "option_type", _validate_option_type("VanillaPayoff", self.option_type))
        object.__setattr__(self, "strike", _validate_non_negative("VanillaPayoff", "strike", self.strike))

    def evaluate(self, spot: np.ndarray | float) -> np.ndarray:
        spot = np.asarray(spot, dtype=float)
        if self.option_type is OptionType.CALL:
            return np.maximum(spot - self.strike, 0.0)
        return np.maximum(self.strike - spot, 0.0)

    @property
    def analytic_kind(self) -> AnalyticKind:
        if self.option_type is OptionType.CALL:
            return AnalyticKind.VANILLA_CALL
        return AnalyticKind.VANILLA_PUT


@dataclass(frozen=True, slots=True)
class CashOrNothingPayoff(Payoff):
    """Pays a fixed ``payout`` if the option finishes in the money, else nothing."""

    option_type: OptionType
    strike: float
    payout: float

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "option_type", _validate_option_type("CashOrNothingPayoff", self.option_type)
        )
        object.__setattr__(
            self, "strike", _validate_non_negative("CashOrNothingPayoff", "strike", self.strike)
        )
        object.__setattr__(
            self, "payout", _validate_non_negative("CashOrNothingPayoff", "payout", self.payout)
        )

    def evaluate(self, spot: np.ndarray | float) -> np.ndarray:
        spot = np.asarray(spot, dtype=float)
        if self.option_type is OptionType.CALL:
            in_the_money = spot > self.strike
        else:
            in_the_money = spot < self.strike
        return np.where(in_the_money, self.payout, 0.0)

    @property
    def analytic_kind(self) -> AnalyticKind:
        if self.option_type is OptionType.CALL:
            return AnalyticKind.CASH_OR_NOTHING_CALL
        return AnalyticKind.CASH_OR_NOTHING_PUT


@dataclass(frozen=True, slots=True)
class BarrierPayoff(Payoff):
    """Knock-out barrier call (no rebate).

    Attributes
    ==========
    barrier_type:
        DOWN_AND_OUT (dies if spot <= barrier) or UP_AND_OUT (dies if spot >= barrier).
    strike:
        Call strike.
    barrier:
        Barrier level, monitored on every path point.

    ``evaluate`` only sees a single spot, so it applies the barrier to that
    spot; ``evaluate_path(s)`` checks the whole path.
    """

    barrier_type: BarrierType
    strike: float
    barrier: float

    def __post_init__(self) -> None:
        if isinstance(self.barrier_type, str):
            object.__setattr__(self, "barrier_type", BarrierType(self.barrier_type))
        if not isinstance(self.barrier_type, BarrierType):
            raise ConfigurationError(
                f"barrier_type must be BarrierType enum, got {type(self.barrier_type).__name__}"
            )
        object.__setattr__(self, "strike", _validate_non_negative("BarrierPayoff", "strike", self.strike))
        object.__setattr__(self, "barrier", _validate_non_negative("BarrierPayoff", "barrier", self.barrier))

    def is_knocked_out(self, spot: np.ndarray | float) -> np.ndarray:
        spot = np.asarray(spot, dtype=float)
        if self.barrier_type is BarrierType.DOWN_AND_OUT:
            return spot <= self.barrier
        return spot >= self.barrier

    def evaluate(self, spot: np.ndarray | float) -> np.ndarray:
        spot = np.asarray(spot, dtype=float)
        call = np.maximum(spot - self.strike, 0.0)
        return np.where(self.is_knocked_out(spot), 0.0, call)

    def evaluate_path(self, path: np.ndarray) -> float:
        path = np.asarray(path, dtype=float)
        if np.any(self.is_knocked_out(path)):
            return 0.0
        return float(max(path[-1] - self.strike, 0.0))

    def evaluate_paths(self, paths: np.ndarray) -> np.ndarray:
        paths = np.asarray(paths, dtype=float)
        alive = ~np.any(self.is_knocked_out(paths), axis=1)
        return np.where(alive, np.maximum(paths[:, -1] - self.strike, 0.0), 0.0)

    @property
    def analytic_kind(self) -> AnalyticKind:
        if self.barrier_type is BarrierType.DOWN_AND_OUT:
            return AnalyticKind.DOWN_AND_OUT_CALL
        return AnalyticKind.UP_AND_OUT_CALL


@dataclass(frozen=True, slots=True)
class CustomPayoff(Payoff):
    """Payoff defined by a user-supplied function of terminal spot.

    Notes
    -----
    - payoff_fn must be vectorized over spot (accept float or np.ndarray and return np.ndarray)
    - no analytic kind is declared, so only the numerical engines can price it
    - parallel Monte Carlo pickles the payoff, so use a module-level function there
    """

    payoff_fn: Callable[[np.ndarray | float], np.ndarray]
    name: str = "custom"

    def __post_init__(self) -> None:
        if not callable(self.payoff_fn):
            raise ConfigurationError("payoff_fn must be callable")

    def evaluate(self, spot: np.ndarray | float) -> np.ndarray:
        # Ensure a float ndarray output (for downstream math and boolean comparisons).
        return np.asarray(self.payoff_fn(spot), dtype=float)
