"""Black-Scholes-Merton closed forms with continuous dividend yield.

Pure scalar functions; the analytic registry's calculators and the Monte
Carlo control-variate helper consume them as leaves.
"""

from __future__ import annotations

import numpy as np

from ..enums import OptionType
from ..exceptions import InvalidParameterError
from ..statistics import d1_d2, norm_cdf


def _check_scalars(spot: float, strike: float, time_to_maturity: float, volatility: float) -> None:
    if spot <= 0:
        raise InvalidParameterError(f"spot must be positive, got {spot}")
    if strike < 0:
        raise InvalidParameterError(f"strike must be >= 0, got {strike}")
    if time_to_maturity < 0:
        raise InvalidParameterError(f"time_to_maturity must be >= 0, got {time_to_maturity}")
    if volatility < 0:
        raise InvalidParameterError(f"volatility must be >= 0, got {volatility}")


def bsm_price(
    spot: float,
    strike: float,
    time_to_maturity: float,
    risk_free_rate: float,
    volatility: float,
    option_type: OptionType,
    dividend_yield: float = 0.0,
) -> float:
    """European call/put value under Black-Scholes-Merton.

    Returns intrinsic value at zero maturity. A zero strike call is worth
    the dividend-discounted spot.
    """
    _check_scalars(spot, strike, time_to_maturity, volatility)
    if time_to_maturity == 0:
        if option_type is OptionType.CALL:
            return max(spot - strike, 0.0)
        return max(strike - spot, 0.0)

    df_r = np.exp(-risk_free_rate * time_to_maturity)
    df_q = np.exp(-dividend_yield * time_to_maturity)
    if strike == 0:
        return float(spot * df_q) if option_type is OptionType.CALL else 0.0

    d1, d2 = d1_d2(spot, strike, time_to_maturity, volatility, risk_free_rate, dividend_yield)
    if option_type is OptionType.CALL:
        price = spot * df_q * norm_cdf(d1) - strike * df_r * norm_cdf(d2)
    else:
        price = strike * df_r * norm_cdf(-d2) - spot * df_q * norm_cdf(-d1)
    return max(float(price), 0.0)


def cash_or_nothing_price(
    spot: float,
    strike: float,
    payout: float,
    time_to_maturity: float,
    risk_free_rate: float,
    volatility: float,
    option_type: OptionType,
    dividend_yield: float = 0.0,
) -> float:
    """Cash-or-nothing binary: payout * exp(-rT) * N(d2) for calls, N(-d2) for puts."""
    _check_scalars(spot, strike, time_to_maturity, volatility)
    if payout < 0:
        raise InvalidParameterError(f"payout must be >= 0, got {payout}")
    if time_to_maturity == 0:
        in_the_money = spot > strike if option_type is OptionType.CALL else spot < strike
        return float(payout) if in_the_money else 0.0
    if strike == 0:
        return float(payout * np.exp(-risk_free_rate * time_to_maturity)) if option_type is OptionType.CALL else 0.0

    _, d2 = d1_d2(spot, strike, time_to_maturity, volatility, risk_free_rate, dividend_yield)
    df_r = np.exp(-risk_free_rate * time_to_maturity)
    if option_type is OptionType.CALL:
        return float(payout * df_r * norm_cdf(d2))
    return float(payout * df_r * norm_cdf(-d2))
