"""Barrier option valuation.

Barrier options are path-dependent options where the payoff depends on whether
the underlying asset price crosses a barrier level during the option's lifetime.

Only knock-out calls without rebate are covered, under continuous monitoring
(Reiner-Rubinstein formulas in the A/B/C/D notation of Haug).
"""

from __future__ import annotations

import numpy as np
from scipy.stats import norm

from ..enums import BarrierType, OptionType
from ..exceptions import InvalidParameterError
from .bsm import bsm_price


def _deterministic_knock_out_call(
    spot: float,
    strike: float,
    barrier: float,
    time_to_maturity: float,
    risk_free_rate: float,
    barrier_type: BarrierType,
    dividend_yield: float,
) -> float:
    """Zero-volatility limit: the spot drifts monotonically to its forward."""
    forward = spot * np.exp((risk_free_rate - dividend_yield) * time_to_maturity)
    if barrier_type is BarrierType.DOWN_AND_OUT and min(spot, forward) <= barrier:
        return 0.0
    if barrier_type is BarrierType.UP_AND_OUT and max(spot, forward) >= barrier:
        return 0.0
    return float(np.exp(-risk_free_rate * time_to_maturity) * max(forward - strike, 0.0))


def barrier_call_analytical(
    spot: float,
    strike: float,
    barrier: float,
    time_to_maturity: float,
    risk_free_rate: float,
    volatility: float,
    barrier_type: BarrierType,
    dividend_yield: float = 0.0,
) -> float:
    """Calculate a knock-out call price using Reiner-Rubinstein analytical formulas.

    Valid for continuous monitoring only.

    Parameters
    ----------
    spot : float
        Current spot price
    strike : float
        Strike price
    barrier : float
        Barrier level
    time_to_maturity : float
        Time to maturity in years
    risk_free_rate : float
        Risk-free rate
    volatility : float
        Volatility (annualized)
    barrier_type : BarrierType
        DOWN_AND_OUT or UP_AND_OUT
    dividend_yield : float, optional
        Continuous dividend yield (default: 0.0)

    Returns
    -------
    float
        Barrier option price (0 if the barrier is already breached)

    References
    ----------
    Rubinstein, M., & Reiner, E. (1991). Breaking down the barriers.
    Risk, 4(8), 28-35.
    Haug, E. G. (2007). The Complete Guide to Option Pricing Formulas, 2nd ed.
    """
    if spot <= 0:
        raise InvalidParameterError(f"spot must be positive, got {spot}")
    if barrier < 0:
        raise InvalidParameterError(f"barrier must be >= 0, got {barrier}")
    if strike < 0:
        raise InvalidParameterError(f"strike must be >= 0, got {strike}")
    if time_to_maturity < 0 or volatility < 0:
        raise InvalidParameterError("time_to_maturity and volatility must be non-negative")

    S = spot
    K = strike
    H = barrier
    T = time_to_maturity
    r = risk_free_rate
    q = dividend_yield
    sigma = volatility

    if barrier_type is BarrierType.DOWN_AND_OUT and S <= H:
        return 0.0
    if barrier_type is BarrierType.UP_AND_OUT and (S >= H or K >= H):
        return 0.0
    if T == 0:
        return max(S - K, 0.0)
    if sigma == 0:
        return _deterministic_knock_out_call(S, K, H, T, r, barrier_type, q)
    if H == 0:
        # A positive spot never reaches zero: the down-and-out call is the vanilla call
        return bsm_price(S, K, T, r, sigma, OptionType.CALL, dividend_yield=q)
    if K == 0:
        # Tiny positive strike keeps the logs finite; the limit is continuous.
        K = 1e-12

    # Helper variables
    vol_sqrt_t = sigma * np.sqrt(T)
    mu = (r - q - 0.5 * sigma**2) / sigma**2
    shift = (1.0 + mu) * vol_sqrt_t
    df_r = np.exp(-r * T)
    df_q = np.exp(-q * T)
    eta = 1.0 if barrier_type is BarrierType.DOWN_AND_OUT else -1.0

    x1 = np.log(S / K) / vol_sqrt_t + shift
    x2 = np.log(S / H) / vol_sqrt_t + shift
    y1 = np.log(H**2 / (S * K)) / vol_sqrt_t + shift
    y2 = np.log(H / S) / vol_sqrt_t + shift

    # Power terms
    power_s = (H / S) ** (2.0 * (mu + 1.0))
    power_k = (H / S) ** (2.0 * mu)

    A = S * df_q * norm.cdf(x1) - K * df_r * norm.cdf(x1 - vol_sqrt_t)
    B = S * df_q * norm.cdf(x2) - K * df_r * norm.cdf(x2 - vol_sqrt_t)
    C = S * df_q * power_s * norm.cdf(eta * y1) - K * df_r * power_k * norm.cdf(
        eta * y1 - eta * vol_sqrt_t
    )
    D = S * df_q * power_s * norm.cdf(eta * y2) - K * df_r * power_k * norm.cdf(
        eta * y2 - eta * vol_sqrt_t
    )

    if barrier_type is BarrierType.DOWN_AND_OUT:
        price = A - C if K > H else B - D
    else:  # UP_AND_OUT with K < H
        price = A - B + C - D

    return max(float(price), 0.0)
