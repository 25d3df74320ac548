"""Tests for the Cox-Ross-Rubinstein lattice engine."""

import numpy as np
import pytest

from derivatives_pricing.enums import BarrierType, OptionType
from derivatives_pricing.exceptions import (
    ArbitrageViolationError,
    ConfigurationError,
    InvalidParameterError,
    UnsupportedFeatureError,
)
from derivatives_pricing.tests.helpers import BSM_ATM_CALL, make_params
from derivatives_pricing.valuation import (
    AMERICAN,
    EUROPEAN,
    AnalyticEngine,
    BarrierPayoff,
    BinomialEngine,
    BinomialParams,
    CashOrNothingPayoff,
    CustomPayoff,
    PricingEngine,
    VanillaPayoff,
)


class TestBinomialEuropean:
    def test_converges_to_black_scholes(self, market_params, call_payoff):
        engine = BinomialEngine(BinomialParams(num_steps=2000))
        assert np.isclose(engine.price(market_params, call_payoff), BSM_ATM_CALL, atol=1e-2)

    def test_put_call_parity_on_lattice(self, call_payoff, put_payoff):
        params = make_params(dividend_yield=0.03)
        engine = BinomialEngine(BinomialParams(num_steps=300))
        call = engine.price(params, call_payoff)
        put = engine.price(params, put_payoff)
        forward_gap = params.spot * params.dividend_discount_factor - 100.0 * params.discount_factor
        assert np.isclose(call - put, forward_gap, atol=1e-8)

    def test_custom_payoff(self, market_params):
        # straddle = call + put
        engine = BinomialEngine(BinomialParams(num_steps=400))
        straddle = CustomPayoff(lambda s: np.abs(np.asarray(s) - 100.0), name="straddle")
        call = engine.price(market_params, VanillaPayoff(OptionType.CALL, 100.0))
        put = engine.price(market_params, VanillaPayoff(OptionType.PUT, 100.0))
        assert np.isclose(engine.price(market_params, straddle), call + put, atol=1e-10)

    def test_binary_close_to_analytic(self, market_params):
        payoff = CashOrNothingPayoff(OptionType.CALL, 100.0, 10.0)
        engine = BinomialEngine(BinomialParams(num_steps=1001))
        analytic = AnalyticEngine().price(market_params, payoff)
        assert np.isclose(engine.price(market_params, payoff), analytic, atol=0.1)

    def test_zero_maturity_returns_payoff(self, put_payoff):
        params = make_params(spot=90.0, time_to_maturity=0.0)
        assert BinomialEngine().price(params, put_payoff) == pytest.approx(10.0)


class TestBinomialAmerican:
    def setup_method(self):
        self.engine = BinomialEngine(BinomialParams(num_steps=500))

    def test_american_put_worth_more(self, market_params, put_payoff):
        european = self.engine.price(market_params, put_payoff, EUROPEAN)
        american = self.engine.price(market_params, put_payoff, AMERICAN)
        assert american > european
        # reference value for this contract is about 6.09
        assert np.isclose(american, 6.09, atol=0.02)

    def test_american_call_without_dividends_equals_european(self, market_params, call_payoff):
        european = self.engine.price(market_params, call_payoff, EUROPEAN)
        american = self.engine.price(market_params, call_payoff, AMERICAN)
        assert np.isclose(american, european, atol=1e-10)

    def test_american_call_with_dividends_worth_more(self, call_payoff):
        params = make_params(dividend_yield=0.08)
        european = self.engine.price(params, call_payoff, EUROPEAN)
        american = self.engine.price(params, call_payoff, AMERICAN)
        assert american > european

    def test_deep_in_the_money_put_at_least_intrinsic(self, put_payoff):
        params = make_params(spot=50.0)
        assert self.engine.price(params, put_payoff, AMERICAN) >= 50.0


class TestBinomialBarrier:
    def test_down_and_out_below_vanilla(self, market_params, call_payoff):
        engine = BinomialEngine(BinomialParams(num_steps=500))
        barrier = BarrierPayoff(BarrierType.DOWN_AND_OUT, 100.0, 80.0)
        knocked = engine.price(market_params, barrier)
        analytic = AnalyticEngine().price(market_params, barrier)
        assert 0.0 < knocked < engine.price(market_params, call_payoff)
        # the lattice barrier sits on a node level, not exactly at 80
        assert abs(knocked - analytic) < 0.5

    def test_up_and_out_is_zeroed_above_barrier(self, market_params):
        engine = BinomialEngine(BinomialParams(num_steps=200))
        payoff = BarrierPayoff(BarrierType.UP_AND_OUT, 100.0, 100.5)
        assert engine.price(market_params, payoff) < 0.5


class TestBinomialRefinements:
    # reference American put from a fine plain lattice
    def setup_method(self):
        self.params = make_params()
        self.put = VanillaPayoff(OptionType.PUT, 100.0)
        self.reference = BinomialEngine(BinomialParams(num_steps=4000)).price(self.params, self.put, AMERICAN)

    def error(self, **kwargs):
        engine = BinomialEngine(BinomialParams(num_steps=100, **kwargs))
        return abs(engine.price(self.params, self.put, AMERICAN) - self.reference)

    def test_smoothing_reduces_american_put_error(self):
        assert self.error(smoothing=True) < self.error()

    def test_smoothing_with_richardson_reduces_american_put_error(self):
        assert self.error(smoothing=True, richardson=True) < self.error()

    def test_smoothing_european_call_closer_to_black_scholes(self, call_payoff):
        plain = BinomialEngine(BinomialParams(num_steps=100)).price(self.params, call_payoff)
        smooth = BinomialEngine(BinomialParams(num_steps=100, smoothing=True)).price(self.params, call_payoff)
        assert abs(smooth - BSM_ATM_CALL) < abs(plain - BSM_ATM_CALL)

    def test_richardson_combines_full_and_half_lattices(self):
        full = BinomialEngine(BinomialParams(num_steps=100, smoothing=True))
        half = BinomialEngine(BinomialParams(num_steps=50, smoothing=True))
        extrapolated = BinomialEngine(BinomialParams(num_steps=100, smoothing=True, richardson=True))
        expected = 2.0 * full.price(self.params, self.put, AMERICAN) - half.price(self.params, self.put, AMERICAN)
        assert np.isclose(extrapolated.price(self.params, self.put, AMERICAN), expected, rtol=0.0, atol=1e-12)

    def test_richardson_needs_even_steps(self):
        with pytest.raises(InvalidParameterError, match="even"):
            BinomialParams(num_steps=101, richardson=True)
        assert BinomialParams(num_steps=101).num_steps == 101

    def test_smoothing_rejects_non_vanilla_payoff(self):
        engine = BinomialEngine(BinomialParams(num_steps=100, smoothing=True))
        payoff = CashOrNothingPayoff(OptionType.CALL, 100.0, 10.0)
        with pytest.raises(UnsupportedFeatureError, match="VanillaPayoff"):
            engine.price(self.params, payoff)

    def test_factory_forwards_refinements(self):
        engine = PricingEngine.binomial(100, smoothing=True, richardson=True)
        assert engine.engine.params.smoothing
        assert engine.engine.params.richardson
        assert engine.engine.coarsest_steps == 50


class TestBinomialValidation:
    def test_minimum_steps(self):
        with pytest.raises(InvalidParameterError, match="num_steps"):
            BinomialParams(num_steps=9)
        assert BinomialParams(num_steps=10).num_steps == 10

    def test_wrong_params_type(self):
        with pytest.raises(ConfigurationError):
            BinomialEngine(object())  # type: ignore[arg-type]

    def test_arbitrage_violation_for_tiny_volatility(self, call_payoff):
        params = make_params(volatility=0.001)
        with pytest.raises(ArbitrageViolationError):
            BinomialEngine(BinomialParams(num_steps=10)).price(params, call_payoff)

    def test_zero_volatility_rejected(self, call_payoff):
        with pytest.raises(ArbitrageViolationError):
            BinomialEngine().price(make_params(volatility=0.0), call_payoff)

    def test_wrong_payoff_type(self, market_params):
        with pytest.raises(ConfigurationError, match="Payoff"):
            BinomialEngine().price(market_params, "call")  # type: ignore[arg-type]
