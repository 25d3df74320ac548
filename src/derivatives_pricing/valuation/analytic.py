"""Closed-form pricing through a registry of calculators keyed by payoff kind.

Payoffs declare an :class:`AnalyticKind`; the engine looks the tag up in its
registry and hands the contract to the registered calculator. Calculators are
shared objects: one instance may serve several kinds and several engines.
Registration and removal happen at runtime under a lock, so an engine shared
across threads sees a consistent mapping.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging
import threading
from typing import Iterable

from ..enums import AnalyticKind, BarrierType, OptionType
from ..exceptions import ConfigurationError, InvalidParameterError, UnsupportedFeatureError
from .barrier import barrier_call_analytical
from .bsm import bsm_price, cash_or_nothing_price
from .exercise import EUROPEAN, ExercisePolicy
from .market import MarketParameters, check_pricing_inputs
from .payoffs import Payoff

__all__ = [
    "AnalyticCalculator",
    "VanillaCalculator",
    "BinaryCalculator",
    "BarrierCalculator",
    "AnalyticEngine",
]


logger = logging.getLogger(__name__)


class AnalyticCalculator(ABC):
    """Closed-form pricer for a fixed set of payoff kinds."""

    supported_kinds: tuple[AnalyticKind, ...] = ()

    @abstractmethod
    def price(self, params: MarketParameters, payoff: Payoff) -> float:
        """Price a European contract whose kind is in ``supported_kinds``."""

    def _require_kind(self, payoff: Payoff) -> AnalyticKind:
        kind = payoff.analytic_kind
        if kind not in self.supported_kinds:
            raise InvalidParameterError(
                f"{type(self).__name__} cannot price payoff kind {kind!r}; "
                f"supported: {[k.value for k in self.supported_kinds]}"
            )
        return kind

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class VanillaCalculator(AnalyticCalculator):
    supported_kinds = (AnalyticKind.VANILLA_CALL, AnalyticKind.VANILLA_PUT)

    def price(self, params: MarketParameters, payoff: Payoff) -> float:
        kind = self._require_kind(payoff)
        option_type = OptionType.CALL if kind is AnalyticKind.VANILLA_CALL else OptionType.PUT
        return bsm_price(
            params.spot,
            payoff.strike,
            params.time_to_maturity,
            params.risk_free_rate,
            params.volatility,
            option_type,
            dividend_yield=params.dividend_yield,
        )


class BinaryCalculator(AnalyticCalculator):
    supported_kinds = (AnalyticKind.CASH_OR_NOTHING_CALL, AnalyticKind.CASH_OR_NOTHING_PUT)

    def price(self, params: MarketParameters, payoff: Payoff) -> float:
        kind = self._require_kind(payoff)
        option_type = (
            OptionType.CALL if kind is AnalyticKind.CASH_OR_NOTHING_CALL else OptionType.PUT
        )
        return cash_or_nothing_price(
            params.spot,
            payoff.strike,
            payoff.payout,
            params.time_to_maturity,
            params.risk_free_rate,
            params.volatility,
            option_type,
            dividend_yield=params.dividend_yield,
        )


class BarrierCalculator(AnalyticCalculator):
    supported_kinds = (AnalyticKind.DOWN_AND_OUT_CALL, AnalyticKind.UP_AND_OUT_CALL)

    def price(self, params: MarketParameters, payoff: Payoff) -> float:
        kind = self._require_kind(payoff)
        barrier_type = (
            BarrierType.DOWN_AND_OUT
            if kind is AnalyticKind.DOWN_AND_OUT_CALL
            else BarrierType.UP_AND_OUT
        )
        return barrier_call_analytical(
            params.spot,
            payoff.strike,
            payoff.barrier,
            params.time_to_maturity,
            params.risk_free_rate,
            params.volatility,
            barrier_type,
            dividend_yield=params.dividend_yield,
        )


def _default_calculators() -> list[AnalyticCalculator]:
    return [VanillaCalculator(), BinaryCalculator(), BarrierCalculator()]


class AnalyticEngine:
    """Dispatches European payoffs to closed-form calculators by analytic kind.

    Parameters
    ==========
    calculators: iterable of AnalyticCalculator, optional
        Initial registrations. Defaults to vanilla, binary and barrier.
    """

    def __init__(self, calculators: Iterable[AnalyticCalculator] | None = None) -> None:
        self._lock = threading.Lock()
        self._registry: dict[AnalyticKind, AnalyticCalculator] = {}
        if calculators is None:
            calculators = _default_calculators()
        for calculator in calculators:
            self.register(calculator)

    def __repr__(self) -> str:
        return f"AnalyticEngine(kinds={[k.value for k in self.registered_kinds()]})"

    def register(
        self,
        calculator: AnalyticCalculator,
        kinds: Iterable[AnalyticKind] | None = None,
    ) -> None:
        """Register ``calculator`` for ``kinds`` (default: all its supported kinds).

        An existing registration for the same kind is replaced.
        """
        if not isinstance(calculator, AnalyticCalculator):
            raise ConfigurationError(
                f"calculator must be an AnalyticCalculator, got {type(calculator).__name__}"
            )
        kinds = tuple(calculator.supported_kinds if kinds is None else kinds)
        for kind in kinds:
            if not isinstance(kind, AnalyticKind):
                raise ConfigurationError(f"kind must be AnalyticKind enum, got {type(kind).__name__}")
        with self._lock:
            for kind in kinds:
                self._registry[kind] = calculator
        logger.debug("Registered %r for %s", calculator, [k.value for k in kinds])

    def remove(self, kind: AnalyticKind) -> AnalyticCalculator | None:
        """Unregister and return the calculator for ``kind`` (None if absent)."""
        with self._lock:
            removed = self._registry.pop(kind, None)
        logger.debug("Removed calculator for %s: %r", getattr(kind, "value", kind), removed)
        return removed

    def get(self, kind: AnalyticKind) -> AnalyticCalculator | None:
        with self._lock:
            return self._registry.get(kind)

    def registered_kinds(self) -> list[AnalyticKind]:
        with self._lock:
            return list(self._registry)

    def price(
        self,
        params: MarketParameters,
        payoff: Payoff,
        exercise: ExercisePolicy = EUROPEAN,
    ) -> float:
        """Closed-form value of a European contract.

        Raises
        ======
        InvalidParameterError
            if exercise is not European
        UnsupportedFeatureError
            if the payoff declares no analytic kind or none is registered for it
        """
        check_pricing_inputs(params, payoff, exercise)
        if not exercise.is_european():
            raise InvalidParameterError("Analytic pricing supports European exercise only")

        kind = payoff.analytic_kind
        if kind is None:
            raise UnsupportedFeatureError(
                f"{type(payoff).__name__} declares no analytic kind; use a numerical engine"
            )
        calculator = self.get(kind)
        if calculator is None:
            raise UnsupportedFeatureError(f"No analytic calculator registered for {kind.value}")

        if params.time_to_maturity == 0.0:
            return float(payoff.evaluate(params.spot))
        return calculator.price(params, payoff)
