"""Tests for the Monte Carlo engine."""

import logging

import numpy as np
import pytest

from derivatives_pricing.enums import BarrierType, OptionType
from derivatives_pricing.exceptions import ConfigurationError, InvalidParameterError, NotSetError
from derivatives_pricing.stochastic_processes import ArithmeticBrownianMotion, GeometricBrownianMotion
from derivatives_pricing.tests.helpers import BSM_ATM_CALL, make_params
from derivatives_pricing.valuation import (
    AMERICAN,
    AnalyticEngine,
    BarrierPayoff,
    CashOrNothingPayoff,
    MonteCarloEngine,
    MonteCarloParams,
    VanillaPayoff,
    control_variate_estimate,
)


def mc_engine(process=None, **kwargs):
    kwargs.setdefault("random_seed", 42)
    return MonteCarloEngine(MonteCarloParams(**kwargs), process=process)


class TestMonteCarloPricing:
    def test_call_near_black_scholes(self, market_params, call_payoff):
        result = mc_engine(num_paths=50_000, time_steps=1).price_with_stats(market_params, call_payoff)
        assert result.num_samples == 50_000
        assert abs(result.value - BSM_ATM_CALL) < 4 * result.std_error
        assert result.std_error < 0.1

    def test_put_near_black_scholes(self, put_payoff):
        params = make_params(dividend_yield=0.02)
        expected = AnalyticEngine().price(params, put_payoff)
        result = mc_engine(num_paths=50_000, time_steps=1).price_with_stats(params, put_payoff)
        assert abs(result.value - expected) < 4 * result.std_error

    def test_binary_near_analytic(self, market_params):
        payoff = CashOrNothingPayoff(OptionType.CALL, 100.0, 10.0)
        result = mc_engine(num_paths=50_000, time_steps=1).price_with_stats(market_params, payoff)
        assert abs(result.value - 5.323248154537634) < 4 * result.std_error

    def test_antithetic_reduces_std_error(self, market_params, call_payoff):
        plain = mc_engine(num_paths=20_000, time_steps=1).price_with_stats(market_params, call_payoff)
        paired = mc_engine(num_paths=20_000, time_steps=1, antithetic=True).price_with_stats(
            market_params, call_payoff
        )
        assert paired.num_samples == 10_000
        assert paired.std_error < plain.std_error
        assert abs(paired.value - BSM_ATM_CALL) < 4 * paired.std_error

    def test_down_and_out_close_to_continuous_value(self, market_params):
        payoff = BarrierPayoff(BarrierType.DOWN_AND_OUT, 100.0, 80.0)
        continuous = AnalyticEngine().price(market_params, payoff)
        value = mc_engine(num_paths=20_000, time_steps=250).price(market_params, payoff)
        # same seed and grid: every path pays the vanilla payoff or nothing
        vanilla = mc_engine(num_paths=20_000, time_steps=250).price(
            market_params, VanillaPayoff(OptionType.CALL, 100.0)
        )
        assert value < vanilla
        assert abs(value - continuous) < 0.75

    def test_arithmetic_brownian_motion_process(self, call_payoff):
        params = make_params()
        process = ArithmeticBrownianMotion(0.0, 20.0)
        result = mc_engine(process=process, num_paths=40_000, time_steps=1).price_with_stats(
            params, call_payoff
        )
        # Bachelier ATM value: sigma * sqrt(T) / sqrt(2 pi), discounted
        expected = np.exp(-0.05) * 20.0 / np.sqrt(2.0 * np.pi)
        assert abs(result.value - expected) < 4 * result.std_error

    def test_exercise_policy_is_ignored(self, market_params, put_payoff):
        engine = mc_engine(num_paths=5_000, time_steps=10)
        assert engine.price(market_params, put_payoff, AMERICAN) == engine.price(market_params, put_payoff)

    def test_zero_maturity_returns_payoff(self, put_payoff):
        params = make_params(spot=80.0, time_to_maturity=0.0)
        result = mc_engine().price_with_stats(params, put_payoff)
        assert result.value == pytest.approx(20.0)
        assert result.std_error == 0.0
        assert result.num_samples == 0


class TestMonteCarloReproducibility:
    def test_same_seed_same_price(self, market_params, call_payoff):
        first = mc_engine(num_paths=5_000, time_steps=20).price(market_params, call_payoff)
        second = mc_engine(num_paths=5_000, time_steps=20).price(market_params, call_payoff)
        assert first == second

    def test_different_seed_different_price(self, market_params, call_payoff):
        first = mc_engine(num_paths=5_000, time_steps=20, random_seed=1).price(market_params, call_payoff)
        second = mc_engine(num_paths=5_000, time_steps=20, random_seed=2).price(market_params, call_payoff)
        assert first != second

    def test_parallel_matches_serial(self, market_params, call_payoff):
        common = dict(num_paths=2_000, time_steps=10, num_workers=2, parallel_threshold=0)
        serial = mc_engine(parallel=False, **common).price_with_stats(market_params, call_payoff)
        parallel = mc_engine(parallel=True, **common).price_with_stats(market_params, call_payoff)
        assert parallel == serial

    def test_template_process_is_not_advanced(self, market_params, call_payoff):
        process = GeometricBrownianMotion(0.05, 0.2, random_seed=7)
        snapshot = process.deep_clone().simulate_path(100.0, 1.0, 10)
        mc_engine(process=process, num_paths=2_000, time_steps=10).price(market_params, call_payoff)
        assert np.array_equal(process.simulate_path(100.0, 1.0, 10), snapshot)

    def test_engine_reused_gives_same_answer(self, market_params, call_payoff):
        engine = mc_engine(num_paths=2_000, time_steps=5)
        assert engine.price(market_params, call_payoff) == engine.price(market_params, call_payoff)


class TestControlVariate:
    def test_vanilla_control_is_exact_for_vanilla(self, market_params, call_payoff):
        result = mc_engine(num_paths=5_000, time_steps=1).price_with_control_variate(
            market_params, call_payoff
        )
        assert np.isclose(result.value, BSM_ATM_CALL, atol=1e-8)
        assert result.std_error < 1e-8

    def test_control_reduces_barrier_std_error(self, market_params):
        payoff = BarrierPayoff(BarrierType.DOWN_AND_OUT, 100.0, 80.0)
        engine = mc_engine(num_paths=10_000, time_steps=50)
        plain = engine.price_with_stats(market_params, payoff)
        controlled = engine.price_with_control_variate(market_params, payoff)
        assert controlled.std_error < plain.std_error
        assert abs(controlled.value - plain.value) < 4 * plain.std_error

    def test_non_vanilla_control_needs_value(self, market_params, call_payoff):
        control = CashOrNothingPayoff(OptionType.CALL, 100.0, 10.0)
        with pytest.raises(InvalidParameterError, match="control_value"):
            mc_engine().price_with_control_variate(market_params, call_payoff, control_payoff=control)

    def test_estimator_removes_linear_noise(self):
        rng = np.random.default_rng(0)
        x = rng.normal(size=1_000)
        y = 3.0 + 2.0 * x
        estimate, std_error, beta = control_variate_estimate(y, x, 0.0)
        assert np.isclose(beta, 2.0)
        assert np.isclose(estimate, 3.0)
        assert std_error < 1e-10

    def test_estimator_shape_mismatch(self):
        with pytest.raises(InvalidParameterError):
            control_variate_estimate(np.ones(3), np.ones(4), 0.0)


class TestMonteCarloConfiguration:
    @pytest.mark.parametrize(
        "kwargs, match",
        [
            ({"num_paths": 999}, "num_paths"),
            ({"time_steps": 0}, "time_steps"),
            ({"num_workers": 0}, "num_workers"),
            ({"parallel_threshold": -1}, "parallel_threshold"),
            ({"random_seed": -1}, "random_seed"),
        ],
    )
    def test_invalid_params(self, kwargs, match):
        with pytest.raises(InvalidParameterError, match=match):
            MonteCarloParams(**kwargs)

    def test_missing_process_without_default(self, market_params, call_payoff):
        engine = mc_engine(use_default_process=False)
        with pytest.raises(NotSetError):
            engine.price(market_params, call_payoff)

    def test_wrong_process_type(self):
        with pytest.raises(ConfigurationError):
            MonteCarloEngine(MonteCarloParams(), process="gbm")  # type: ignore[arg-type]

    def test_high_std_error_warning(self, market_params, caplog):
        payoff = VanillaPayoff(OptionType.CALL, 150.0)
        with caplog.at_level(logging.WARNING, logger="derivatives_pricing.valuation.monte_carlo"):
            mc_engine(num_paths=1_000, time_steps=1).price(market_params, payoff)
        assert "standard error" in caplog.text
