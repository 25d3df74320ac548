"""Normal distribution helpers built on scipy.stats."""

from __future__ import annotations

import numpy as np
from scipy.stats import multivariate_normal, norm

from .exceptions import InvalidParameterError

__all__ = ["norm_cdf", "norm_pdf", "bivariate_norm_cdf", "d1_d2"]


def norm_cdf(x):
    """Standard normal CDF (scalar or array)."""
    return norm.cdf(x)


def norm_pdf(x):
    """Standard normal PDF (scalar or array)."""
    return norm.pdf(x)


def bivariate_norm_cdf(a: float, b: float, rho: float) -> float:
    """P(X <= a, Y <= b) for standard normals X, Y with correlation rho."""
    if not -1.0 <= rho <= 1.0:
        raise InvalidParameterError(f"rho must be in [-1, 1], got {rho}")
    if np.isneginf(a) or np.isneginf(b):
        return 0.0
    if np.isposinf(a):
        return float(norm.cdf(b))
    if np.isposinf(b):
        return float(norm.cdf(a))
    # Degenerate correlations have a closed form
    if rho >= 1.0 - 1e-12:
        return float(norm.cdf(min(a, b)))
    if rho <= -1.0 + 1e-12:
        return float(max(norm.cdf(a) + norm.cdf(b) - 1.0, 0.0))
    cov = np.array([[1.0, rho], [rho, 1.0]])
    return float(
        multivariate_normal(mean=[0.0, 0.0], cov=cov, abseps=1e-10, releps=1e-10).cdf([a, b])
    )


def d1_d2(
    spot: float,
    strike: float,
    time_to_maturity: float,
    volatility: float,
    risk_free_rate: float,
    dividend_yield: float,
) -> tuple[float, float]:
    """Black-Scholes-Merton d1 and d2.

    Zero (or near-zero) vol is the deterministic limit:
    d1 = d2 = +inf when forward > strike, -inf when forward < strike, 0 at the money.
    """
    if time_to_maturity <= 0:
        raise InvalidParameterError("time_to_maturity must be positive")
    if strike <= 0:
        raise InvalidParameterError("strike must be positive")

    forward = spot * np.exp((risk_free_rate - dividend_yield) * time_to_maturity)
    denominator = volatility * np.sqrt(time_to_maturity)

    if denominator < 1e-300:
        if forward > strike:
            return np.inf, np.inf
        elif forward < strike:
            return -np.inf, -np.inf
        else:
            return 0.0, 0.0

    numerator = np.log(forward / strike) + 0.5 * volatility**2 * time_to_maturity
    d1 = numerator / denominator
    d2 = d1 - denominator
    return float(d1), float(d2)
