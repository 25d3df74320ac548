"""Shared pytest fixtures for derivatives_pricing tests."""

import pytest

from derivatives_pricing.enums import OptionType
from derivatives_pricing.valuation import (
    MarketParameters,
    PricingEngine,
    VanillaPayoff,
)

from derivatives_pricing.tests.helpers import SPOT, STRIKE, make_params


@pytest.fixture()
def spot() -> float:
    return SPOT


@pytest.fixture()
def strike() -> float:
    return STRIKE


# ---------------------------------------------------------------------------
# Market / payoffs
# ---------------------------------------------------------------------------


@pytest.fixture()
def market_params() -> MarketParameters:
    """ATM market with no dividends."""
    return make_params()


@pytest.fixture()
def call_payoff(strike: float) -> VanillaPayoff:
    return VanillaPayoff(OptionType.CALL, strike)


@pytest.fixture()
def put_payoff(strike: float) -> VanillaPayoff:
    return VanillaPayoff(OptionType.PUT, strike)


# ---------------------------------------------------------------------------
# Engines
# ---------------------------------------------------------------------------


@pytest.fixture()
def analytic_engine() -> PricingEngine:
    return PricingEngine.analytic()


@pytest.fixture()
def binomial_engine() -> PricingEngine:
    return PricingEngine.binomial(500)


@pytest.fixture()
def pde_engine() -> PricingEngine:
    return PricingEngine.pde(200, 200)
