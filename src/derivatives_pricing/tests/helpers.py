import numpy as np

from derivatives_pricing.valuation import MarketParameters


SPOT = 100.0
STRIKE = 100.0
RATE = 0.05
VOL = 0.20
MATURITY = 1.0
# Black-Scholes value of the ATM call above (q = 0)
BSM_ATM_CALL = 10.450583572185565


def make_params(
    spot: float = SPOT,
    risk_free_rate: float = RATE,
    volatility: float = VOL,
    time_to_maturity: float = MATURITY,
    dividend_yield: float = 0.0,
) -> MarketParameters:
    return MarketParameters(
        spot=spot,
        risk_free_rate=risk_free_rate,
        volatility=volatility,
        time_to_maturity=time_to_maturity,
        dividend_yield=dividend_yield,
    )


def diagonally_dominant_system(n: int, seed: int = 7):
    """Random strictly diagonally dominant tridiagonal system (lower, diag, upper, rhs)."""
    rng = np.random.default_rng(seed)
    lower = rng.uniform(-1.0, 1.0, n - 1)
    upper = rng.uniform(-1.0, 1.0, n - 1)
    diag = 2.5 + rng.uniform(0.0, 1.0, n)
    rhs = rng.normal(size=n)
    return lower, diag, upper, rhs


def tridiagonal_matvec(lower, diag, upper, x):
    """Multiply the tridiagonal matrix (lower, diag, upper) by x."""
    out = diag * x
    out[1:] += lower * x[:-1]
    out[:-1] += upper * x[1:]
    return out
