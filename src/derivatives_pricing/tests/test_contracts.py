"""Tests for market parameters, payoffs, exercise policies and boundary conditions."""

import dataclasses

import numpy as np
import pytest

from derivatives_pricing.enums import AnalyticKind, BarrierType, ExerciseType, OptionType
from derivatives_pricing.exceptions import ConfigurationError, InvalidParameterError
from derivatives_pricing.tests.helpers import make_params
from derivatives_pricing.valuation import (
    AMERICAN,
    EUROPEAN,
    BarrierPayoff,
    CashOrNothingPayoff,
    CustomPayoff,
    DirichletBoundary,
    DiscountedPayoffBoundary,
    MarketParameters,
    VanillaPayoff,
    exercise_policy,
)


class TestMarketParameters:
    @pytest.mark.parametrize(
        "overrides, match",
        [
            ({"spot": 0.0}, "spot"),
            ({"spot": -5.0}, "spot"),
            ({"volatility": -0.01}, "volatility"),
            ({"time_to_maturity": -1.0}, "time_to_maturity"),
            ({"risk_free_rate": float("nan")}, "risk_free_rate"),
        ],
    )
    def test_invalid_inputs_raise(self, overrides, match):
        with pytest.raises(InvalidParameterError, match=match):
            make_params(**overrides)

    def test_zero_vol_and_zero_maturity_allowed(self):
        params = make_params(volatility=0.0, time_to_maturity=0.0)
        assert params.volatility == 0.0
        assert params.time_to_maturity == 0.0

    def test_non_numeric_raises(self):
        with pytest.raises(InvalidParameterError, match="real number"):
            MarketParameters(spot="100", risk_free_rate=0.05, volatility=0.2, time_to_maturity=1.0)

    def test_frozen(self, market_params):
        with pytest.raises(dataclasses.FrozenInstanceError):
            market_params.spot = 101.0  # type: ignore[misc]

    def test_bumps_are_copy_on_write(self, market_params):
        bumped = market_params.with_spot(101.0)
        assert bumped.spot == 101.0
        assert market_params.spot == 100.0
        assert bumped.volatility == market_params.volatility
        assert market_params.with_volatility(0.3).volatility == 0.3
        assert market_params.with_rate(0.01).risk_free_rate == 0.01
        assert market_params.with_time_to_maturity(0.5).time_to_maturity == 0.5

    def test_replace_revalidates(self, market_params):
        with pytest.raises(InvalidParameterError):
            market_params.replace(spot=-1.0)

    def test_discount_factors(self):
        params = make_params(risk_free_rate=0.05, dividend_yield=0.02, time_to_maturity=2.0)
        assert np.isclose(params.discount_factor, np.exp(-0.1))
        assert np.isclose(params.dividend_discount_factor, np.exp(-0.04))


class TestPayoffs:
    def test_vanilla(self):
        call = VanillaPayoff(OptionType.CALL, 100.0)
        put = VanillaPayoff("put", 100.0)
        spots = np.array([80.0, 100.0, 120.0])
        assert np.allclose(call.evaluate(spots), [0.0, 0.0, 20.0])
        assert np.allclose(put.evaluate(spots), [20.0, 0.0, 0.0])
        assert call.analytic_kind is AnalyticKind.VANILLA_CALL
        assert put.analytic_kind is AnalyticKind.VANILLA_PUT

    def test_cash_or_nothing(self):
        call = CashOrNothingPayoff(OptionType.CALL, 100.0, 10.0)
        put = CashOrNothingPayoff(OptionType.PUT, 100.0, 10.0)
        spots = np.array([90.0, 110.0])
        assert np.allclose(call.evaluate(spots), [0.0, 10.0])
        assert np.allclose(put.evaluate(spots), [10.0, 0.0])
        assert call.analytic_kind is AnalyticKind.CASH_OR_NOTHING_CALL
        assert put.analytic_kind is AnalyticKind.CASH_OR_NOTHING_PUT

    def test_default_path_payoff_uses_last_point(self):
        call = VanillaPayoff(OptionType.CALL, 100.0)
        assert call.evaluate_path(np.array([100.0, 150.0, 105.0])) == pytest.approx(5.0)
        paths = np.array([[100.0, 90.0], [100.0, 130.0]])
        assert np.allclose(call.evaluate_paths(paths), [0.0, 30.0])

    def test_down_and_out_path(self):
        payoff = BarrierPayoff(BarrierType.DOWN_AND_OUT, 100.0, 80.0)
        assert payoff.analytic_kind is AnalyticKind.DOWN_AND_OUT_CALL
        assert payoff.evaluate_path(np.array([100.0, 79.0, 120.0])) == 0.0
        assert payoff.evaluate_path(np.array([100.0, 81.0, 120.0])) == pytest.approx(20.0)
        paths = np.array([[100.0, 79.0, 120.0], [100.0, 81.0, 120.0]])
        assert np.allclose(payoff.evaluate_paths(paths), [0.0, 20.0])
        assert np.allclose(payoff.evaluate(np.array([75.0, 110.0])), [0.0, 10.0])

    def test_up_and_out_path(self):
        payoff = BarrierPayoff("up_and_out", 100.0, 130.0)
        assert payoff.analytic_kind is AnalyticKind.UP_AND_OUT_CALL
        assert payoff.evaluate_path(np.array([100.0, 131.0, 120.0])) == 0.0
        assert payoff.evaluate_path(np.array([100.0, 125.0, 120.0])) == pytest.approx(20.0)

    def test_custom_payoff_has_no_analytic_kind(self):
        straddle = CustomPayoff(lambda s: np.abs(np.asarray(s) - 100.0), name="straddle")
        assert straddle.analytic_kind is None
        assert np.allclose(straddle.evaluate(np.array([90.0, 110.0])), [10.0, 10.0])
        assert not np.any(straddle.is_knocked_out(np.array([1.0, 2.0])))

    @pytest.mark.parametrize(
        "factory",
        [
            lambda: VanillaPayoff(OptionType.CALL, -1.0),
            lambda: CashOrNothingPayoff(OptionType.CALL, 100.0, -10.0),
            lambda: BarrierPayoff(BarrierType.DOWN_AND_OUT, 100.0, -80.0),
        ],
    )
    def test_negative_terms_raise(self, factory):
        with pytest.raises(InvalidParameterError, match=">= 0"):
            factory()

    def test_wrong_types_raise(self):
        with pytest.raises(ConfigurationError):
            VanillaPayoff(1, 100.0)  # type: ignore[arg-type]
        with pytest.raises(ConfigurationError):
            CustomPayoff("not callable")  # type: ignore[arg-type]


class TestExercisePolicies:
    def test_european_only_at_expiry(self):
        intrinsic = np.array([5.0, 5.0])
        continuation = np.array([1.0, 10.0])
        assert not np.any(EUROPEAN.should_exercise(0.5, 100.0, intrinsic, continuation))
        assert np.all(EUROPEAN.should_exercise(0.0, 100.0, intrinsic, continuation))
        assert EUROPEAN.is_european()

    def test_american_when_intrinsic_beats_continuation(self):
        out = AMERICAN.should_exercise(0.5, 100.0, np.array([5.0, 5.0]), np.array([1.0, 10.0]))
        assert list(out) == [True, False]
        assert not AMERICAN.is_european()

    def test_policy_lookup_returns_singletons(self):
        assert exercise_policy(ExerciseType.EUROPEAN) is EUROPEAN
        assert exercise_policy("american") is AMERICAN


class TestBoundaryConditions:
    def test_call_far_field_is_discounted_forward_intrinsic(self):
        params = make_params(dividend_yield=0.02)
        boundary = DiscountedPayoffBoundary(VanillaPayoff(OptionType.CALL, 100.0))
        tau = 0.5
        expected = 200.0 * np.exp(-0.02 * tau) - 100.0 * np.exp(-0.05 * tau)
        assert boundary.upper_boundary(tau, 200.0, params) == pytest.approx(expected)
        assert boundary.lower_boundary(tau, 10.0, params) == 0.0

    def test_put_boundary_with_early_exercise_floors_at_intrinsic(self):
        params = make_params()
        payoff = VanillaPayoff(OptionType.PUT, 100.0)
        european = DiscountedPayoffBoundary(payoff)
        american = DiscountedPayoffBoundary(payoff, early_exercise=True)
        assert european.lower_boundary(1.0, 10.0, params) < 90.0
        assert american.lower_boundary(1.0, 10.0, params) == pytest.approx(90.0)

    def test_terminal_condition_is_payoff(self):
        payoff = VanillaPayoff(OptionType.CALL, 100.0)
        boundary = DiscountedPayoffBoundary(payoff)
        spots = np.linspace(50.0, 150.0, 11)
        assert np.allclose(boundary.terminal_condition(spots), payoff.evaluate(spots))

    def test_dirichlet_boundary(self):
        boundary = DirichletBoundary(
            lower=lambda t: 0.0,
            upper=lambda t: 100.0 * np.exp(-0.05 * t),
            terminal=lambda s: np.zeros_like(s),
        )
        params = make_params()
        assert boundary.upper_boundary(1.0, 200.0, params) == pytest.approx(100.0 * np.exp(-0.05))
        assert boundary.lower_boundary(1.0, 10.0, params) == 0.0
