"""Implied volatility by bisection, usable with any pricing engine."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Callable

from ..enums import OptionType, PricingMethod
from ..exceptions import ArbitrageViolationError, ConvergenceError, InvalidParameterError
from .core import PricingEngine
from .exercise import EUROPEAN, ExercisePolicy
from .market import MarketParameters, check_pricing_inputs
from .payoffs import Payoff, VanillaPayoff


logger = logging.getLogger(__name__)

MAX_UPPER_VOL = 100.0
# CRR needs sigma*sqrt(dt) > |r-q|*dt; the margin keeps p strictly inside (0, 1)
LATTICE_VOL_MARGIN = 1.01


@dataclass(frozen=True, slots=True)
class ImpliedVolResult:
    """Result container for implied volatility calculation."""

    implied_vol: float
    iterations: int
    converged: bool


def price_bounds(
    params: MarketParameters, payoff: VanillaPayoff, exercise: ExercisePolicy = EUROPEAN
) -> tuple[float, float]:
    """Compute no-arbitrage lower/upper bounds for a vanilla option price.

    Returns
    -------
    tuple[float, float]
        Price interval ``(lower, upper)``.
    """
    spot = params.spot
    strike = payoff.strike

    if not exercise.is_european():
        if payoff.option_type is OptionType.CALL:
            return max(0.0, spot - strike), spot
        return max(0.0, strike - spot), strike

    df_r = params.discount_factor
    df_q = params.dividend_discount_factor
    if payoff.option_type is OptionType.CALL:
        lower = max(0.0, spot * df_q - strike * df_r)
        upper = spot * df_q
    else:  # PUT
        lower = max(0.0, strike * df_r - spot * df_q)
        upper = strike * df_r
    return lower, upper


def _bracket_upper(f: Callable[[float], float], high: float) -> float:
    """Double the upper volatility until the residual turns non-negative."""
    while f(high) < 0:
        high *= 2.0
        if high > MAX_UPPER_VOL:
            raise ConvergenceError(
                f"Could not bracket implied volatility below {MAX_UPPER_VOL}",
                last_bound=high,
            )
    return high


def lattice_min_vol(params: MarketParameters, num_steps: int) -> float:
    """Smallest volatility a CRR lattice with ``num_steps`` steps accepts for ``params``."""
    carry = abs(params.risk_free_rate - params.dividend_yield)
    return LATTICE_VOL_MARGIN * carry * math.sqrt(params.time_to_maturity / num_steps)


def _bisection(
    *,
    f: Callable[[float], float],
    low: float,
    high: float,
    tol: float,
    max_iter: int,
) -> ImpliedVolResult:
    """Run bisection on the implied-vol residual function."""
    vol = 0.5 * (low + high)
    for i in range(max_iter):
        f_mid = f(vol)
        if abs(f_mid) <= tol or 0.5 * (high - low) <= tol:
            return ImpliedVolResult(implied_vol=vol, iterations=i + 1, converged=True)
        if f_mid > 0:
            high = vol
        else:
            low = vol
        vol = 0.5 * (low + high)

    raise ConvergenceError(
        f"Bisection did not converge in {max_iter} iterations; bracket [{low:.6g}, {high:.6g}]",
        last_bound=vol,
    )


def implied_volatility(
    target_price: float,
    params: MarketParameters,
    payoff: Payoff,
    engine: PricingEngine | None = None,
    exercise: ExercisePolicy = EUROPEAN,
    *,
    tol: float = 1e-8,
    max_iter: int = 200,
    min_vol: float = 1e-3,
    initial_upper: float = 1.0,
) -> ImpliedVolResult:
    """Volatility at which ``engine`` reproduces ``target_price``.

    Parameters
    ==========
    target_price: float
        observed option price
    params: MarketParameters
        market inputs; the volatility field is ignored
    payoff: Payoff
        contract; vanilla payoffs are checked against model-free bounds
    engine: PricingEngine, optional
        pricing technique (default: analytic)
    exercise: ExercisePolicy
        exercise style passed to the engine
    tol: float
        tolerance on both the price residual and the bracket width
    max_iter: int
        bisection iteration budget
    min_vol: float
        lower end of the search bracket; a binomial engine raises it to the
        smallest volatility its lattice accepts
    initial_upper: float
        first upper bracket, doubled until it exceeds the target (at most up to 100)

    Returns
    =======
    ImpliedVolResult

    Raises
    ======
    ArbitrageViolationError
        if the target lies outside the no-arbitrage bounds
    ConvergenceError
        if no bracket exists or bisection exhausts ``max_iter``
    """
    check_pricing_inputs(params, payoff, exercise)
    if not math.isfinite(target_price) or target_price < 0:
        raise InvalidParameterError(f"target_price must be finite and >= 0, got {target_price}")
    if params.time_to_maturity <= 0:
        raise InvalidParameterError("Implied volatility requires positive time_to_maturity")
    if not 0 < min_vol < initial_upper:
        raise InvalidParameterError("need 0 < min_vol < initial_upper")
    if engine is None:
        engine = PricingEngine.analytic()
    if engine.method is PricingMethod.BINOMIAL:
        floor = lattice_min_vol(params, engine.engine.coarsest_steps)
        if floor > min_vol:
            logger.debug("Raising min_vol from %.6g to lattice floor %.6g", min_vol, floor)
            min_vol = floor
            initial_upper = max(initial_upper, 2.0 * min_vol)

    if isinstance(payoff, VanillaPayoff):
        lower, upper = price_bounds(params, payoff, exercise)
        if target_price < lower - tol or target_price > upper + tol:
            raise ArbitrageViolationError(
                f"Price {target_price:.6g} violates no-arbitrage bounds [{lower:.6g}, {upper:.6g}]"
            )

    def f(vol: float) -> float:
        return engine.price(params.with_volatility(vol), payoff, exercise) - target_price

    if f(min_vol) > tol:
        raise ConvergenceError(
            f"Target price is below the model price at min_vol={min_vol}", last_bound=min_vol
        )
    high = _bracket_upper(f, initial_upper)
    result = _bisection(f=f, low=min_vol, high=high, tol=tol, max_iter=max_iter)
    logger.debug(
        "Implied vol=%.8f iterations=%d engine=%s",
        result.implied_vol,
        result.iterations,
        engine.method.value,
    )
    return result
