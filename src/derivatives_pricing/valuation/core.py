"""Engine selector and bump-and-reprice Greeks.

:class:`PricingEngine` is a closed tagged union: it wraps exactly one of the
four concrete engines, tagged by :class:`PricingMethod`, and forwards the
single ``price`` call. Client code is written once against ``PricingEngine``
and can switch technique by changing the factory call only.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging

from ..enums import PDEMethod, PDESpaceGrid, PricingMethod
from ..exceptions import ConfigurationError, InvalidParameterError
from ..stochastic_processes import StochasticProcess
from .analytic import AnalyticCalculator, AnalyticEngine
from .binomial import BinomialEngine
from .boundary import BoundaryCondition
from .exercise import EUROPEAN, ExercisePolicy
from .market import MarketParameters
from .monte_carlo import MonteCarloEngine
from .params import BinomialParams, MonteCarloParams, PDEParams
from .payoffs import Payoff
from .pde import PDEEngine


logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365.0

_ENGINE_TYPES = {
    PricingMethod.ANALYTIC: AnalyticEngine,
    PricingMethod.BINOMIAL: BinomialEngine,
    PricingMethod.MONTE_CARLO: MonteCarloEngine,
    PricingMethod.PDE_FD: PDEEngine,
}

Engine = AnalyticEngine | BinomialEngine | MonteCarloEngine | PDEEngine


@dataclass(frozen=True, slots=True)
class PricingEngine:
    """One pricing technique behind a uniform ``price(params, payoff, exercise)`` call.

    Build with the factories :meth:`analytic`, :meth:`binomial`,
    :meth:`monte_carlo` and :meth:`pde`; the constructor checks that the
    wrapped engine matches its tag.
    """

    method: PricingMethod
    engine: Engine

    def __post_init__(self) -> None:
        if isinstance(self.method, str):
            object.__setattr__(self, "method", PricingMethod(self.method))
        if not isinstance(self.method, PricingMethod):
            raise ConfigurationError(
                f"method must be PricingMethod enum, got {type(self.method).__name__}"
            )
        expected = _ENGINE_TYPES[self.method]
        if not isinstance(self.engine, expected):
            raise ConfigurationError(
                f"{self.method.value} requires {expected.__name__}, got {type(self.engine).__name__}"
            )

    # ── Factories ───────────────────────────────────────────────────

    @classmethod
    def analytic(cls, calculators: list[AnalyticCalculator] | None = None) -> "PricingEngine":
        return cls(PricingMethod.ANALYTIC, AnalyticEngine(calculators))

    @classmethod
    def binomial(
        cls,
        num_steps: int = 500,
        *,
        smoothing: bool = False,
        richardson: bool = False,
        log_timings: bool = False,
    ) -> "PricingEngine":
        params = BinomialParams(
            num_steps=num_steps,
            smoothing=smoothing,
            richardson=richardson,
            log_timings=log_timings,
        )
        return cls(PricingMethod.BINOMIAL, BinomialEngine(params))

    @classmethod
    def monte_carlo(
        cls,
        num_paths: int = 10_000,
        time_steps: int = 100,
        *,
        process: StochasticProcess | None = None,
        **kwargs,
    ) -> "PricingEngine":
        """Monte Carlo engine; extra keyword arguments go to MonteCarloParams."""
        params = MonteCarloParams(num_paths=num_paths, time_steps=time_steps, **kwargs)
        return cls(PricingMethod.MONTE_CARLO, MonteCarloEngine(params, process=process))

    @classmethod
    def pde(
        cls,
        spot_steps: int = 200,
        time_steps: int = 200,
        method: PDEMethod | str = PDEMethod.CRANK_NICOLSON,
        space_grid: PDESpaceGrid | str = PDESpaceGrid.SPOT,
        *,
        boundary: BoundaryCondition | None = None,
        log_timings: bool = False,
    ) -> "PricingEngine":
        params = PDEParams(
            spot_steps=spot_steps,
            time_steps=time_steps,
            method=method,
            space_grid=space_grid,
            log_timings=log_timings,
        )
        return cls(PricingMethod.PDE_FD, PDEEngine(params, boundary=boundary))

    # ── Valuation ───────────────────────────────────────────────────

    def price(
        self,
        params: MarketParameters,
        payoff: Payoff,
        exercise: ExercisePolicy = EUROPEAN,
    ) -> float:
        """Present value of ``payoff`` under ``params`` with the wrapped technique."""
        value = self.engine.price(params, payoff, exercise)
        logger.debug("%s price=%.10g", self.method.value, value)
        return value

    def price_with_european_control(
        self,
        params: MarketParameters,
        payoff: Payoff,
        exercise: ExercisePolicy,
    ) -> float:
        """Early-exercise price corrected by the engine's error on the European twin.

        ``price(exercise) + (analytic European - numerical European)``; requires
        an analytic calculator for the payoff.
        """
        if self.method is PricingMethod.ANALYTIC:
            raise InvalidParameterError("European control variate needs a numerical engine")
        base = self.price(params, payoff, exercise)
        euro_numerical = self.price(params, payoff, EUROPEAN)
        euro_analytic = AnalyticEngine().price(params, payoff, EUROPEAN)
        return base + (euro_analytic - euro_numerical)

    # ── Greeks (bump-and-reprice) ───────────────────────────────────

    def delta(
        self,
        params: MarketParameters,
        payoff: Payoff,
        exercise: ExercisePolicy = EUROPEAN,
        epsilon: float | None = None,
    ) -> float:
        """Central-difference delta; default spot bump is 1% of spot."""
        if epsilon is None:
            epsilon = params.spot / 100
        value_down = self.price(params.with_spot(params.spot - epsilon), payoff, exercise)
        value_up = self.price(params.with_spot(params.spot + epsilon), payoff, exercise)
        return (value_up - value_down) / (2 * epsilon)

    def gamma(
        self,
        params: MarketParameters,
        payoff: Payoff,
        exercise: ExercisePolicy = EUROPEAN,
        epsilon: float | None = None,
    ) -> float:
        """Central second difference in spot; default spot bump is 1% of spot."""
        if epsilon is None:
            epsilon = params.spot / 100
        value_down = self.price(params.with_spot(params.spot - epsilon), payoff, exercise)
        value_up = self.price(params.with_spot(params.spot + epsilon), payoff, exercise)
        value_center = self.price(params, payoff, exercise)
        return (value_up - 2 * value_center + value_down) / (epsilon**2)

    def vega(
        self,
        params: MarketParameters,
        payoff: Payoff,
        exercise: ExercisePolicy = EUROPEAN,
        epsilon: float = 0.01,
    ) -> float:
        """Vega per 1% point change in volatility.

        Uses a one-sided difference when the volatility is closer to zero than
        ``epsilon``.
        """
        vol = params.volatility
        value_up = self.price(params.with_volatility(vol + epsilon), payoff, exercise)
        if vol >= epsilon:
            value_down = self.price(params.with_volatility(vol - epsilon), payoff, exercise)
            return (value_up - value_down) / (2 * epsilon) / 100
        value_center = self.price(params, payoff, exercise)
        return (value_up - value_center) / epsilon / 100

    def theta(
        self,
        params: MarketParameters,
        payoff: Payoff,
        exercise: ExercisePolicy = EUROPEAN,
        time_bump_days: float = 1.0,
    ) -> float:
        """Change in value per calendar day as the option ages.

        Returns 0.0 when less than ``time_bump_days`` remain.
        """
        bump = time_bump_days / DAYS_PER_YEAR
        if params.time_to_maturity <= bump:
            return 0.0
        value_now = self.price(params, payoff, exercise)
        value_later = self.price(
            params.with_time_to_maturity(params.time_to_maturity - bump), payoff, exercise
        )
        return (value_later - value_now) / time_bump_days

    def rho(
        self,
        params: MarketParameters,
        payoff: Payoff,
        exercise: ExercisePolicy = EUROPEAN,
        rate_bump: float = 0.01,
    ) -> float:
        """Change in value per 1% change in the risk-free rate."""
        rate = params.risk_free_rate
        value_up = self.price(params.with_rate(rate + rate_bump / 2), payoff, exercise)
        value_down = self.price(params.with_rate(rate - rate_bump / 2), payoff, exercise)
        # rates are bumped by ± rate_bump/2, so the denominator is rate_bump
        return (value_up - value_down) / rate_bump / 100

    def greeks(
        self,
        params: MarketParameters,
        payoff: Payoff,
        exercise: ExercisePolicy = EUROPEAN,
    ) -> dict[str, float]:
        return {
            "delta": self.delta(params, payoff, exercise),
            "gamma": self.gamma(params, payoff, exercise),
            "vega": self.vega(params, payoff, exercise),
            "theta": self.theta(params, payoff, exercise),
            "rho": self.rho(params, payoff, exercise),
        }
