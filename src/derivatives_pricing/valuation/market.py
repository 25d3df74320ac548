"""Market inputs shared by every pricing engine."""

from __future__ import annotations

from dataclasses import dataclass, replace as dc_replace
import math
import numbers

from ..exceptions import ConfigurationError, InvalidParameterError
from .exercise import ExercisePolicy
from .payoffs import Payoff


@dataclass(frozen=True, slots=True)
class MarketParameters:
    """Immutable bundle of market inputs for a single valuation.

    Attributes
    ==========
    spot:
        Current price of the underlying (> 0).
    risk_free_rate:
        Continuously compounded risk-free rate.
    volatility:
        Annualized volatility (>= 0).
    dividend_yield:
        Continuous dividend yield. Default: 0.0.
    time_to_maturity:
        Time to expiry in years (>= 0).

    Bumped copies (for Greeks) are produced with :meth:`replace` or the
    ``with_*`` helpers; the original is never mutated.
    """

    spot: float
    risk_free_rate: float
    volatility: float
    time_to_maturity: float
    dividend_yield: float = 0.0

    def __post_init__(self) -> None:
        for name in ("spot", "risk_free_rate", "volatility", "time_to_maturity", "dividend_yield"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise InvalidParameterError(
                    f"{name} must be a real number, got {type(value).__name__}"
                )
            if not math.isfinite(value):
                raise InvalidParameterError(f"{name} must be finite, got {value}")
            object.__setattr__(self, name, float(value))
        if self.spot <= 0:
            raise InvalidParameterError(f"spot must be positive, got {self.spot}")
        if self.volatility < 0:
            raise InvalidParameterError(f"volatility must be non-negative, got {self.volatility}")
        if self.time_to_maturity < 0:
            raise InvalidParameterError(
                f"time_to_maturity must be non-negative, got {self.time_to_maturity}"
            )

    def replace(self, **kwargs: float) -> "MarketParameters":
        """Return a validated copy with the given fields changed."""
        return dc_replace(self, **kwargs)

    def with_spot(self, spot: float) -> "MarketParameters":
        return self.replace(spot=spot)

    def with_volatility(self, volatility: float) -> "MarketParameters":
        return self.replace(volatility=volatility)

    def with_rate(self, risk_free_rate: float) -> "MarketParameters":
        return self.replace(risk_free_rate=risk_free_rate)

    def with_time_to_maturity(self, time_to_maturity: float) -> "MarketParameters":
        return self.replace(time_to_maturity=time_to_maturity)

    @property
    def discount_factor(self) -> float:
        """exp(-r T)"""
        return math.exp(-self.risk_free_rate * self.time_to_maturity)

    @property
    def dividend_discount_factor(self) -> float:
        """exp(-q T)"""
        return math.exp(-self.dividend_yield * self.time_to_maturity)


def check_pricing_inputs(params, payoff, exercise) -> None:
    """Type-check the three arguments every engine's ``price`` consumes."""
    if not isinstance(params, MarketParameters):
        raise ConfigurationError(f"params must be MarketParameters, got {type(params).__name__}")
    if not isinstance(payoff, Payoff):
        raise ConfigurationError(f"payoff must be a Payoff, got {type(payoff).__name__}")
    if not isinstance(exercise, ExercisePolicy):
        raise ConfigurationError(
            f"exercise must be an ExercisePolicy, got {type(exercise).__name__}"
        )
