"""Option valuation and pricing engines.

This module prices options with interchangeable techniques behind one call,
``price(params, payoff, exercise)``: closed-form formulas, Cox-Ross-Rubinstein
binomial trees, finite-difference PDE solvers and Monte Carlo simulation.

Public API
----------
Engine selector:
    PricingEngine: Tagged union over the four engines, plus Greeks

Contracts:
    MarketParameters: Immutable market inputs
    VanillaPayoff, CashOrNothingPayoff, BarrierPayoff, CustomPayoff: Payoffs
    EUROPEAN, AMERICAN: Exercise policy singletons
    DiscountedPayoffBoundary, DirichletBoundary: PDE boundary conditions

Engines and parameter classes:
    AnalyticEngine (+ calculators), BinomialEngine / BinomialParams,
    PDEEngine / PDEParams, MonteCarloEngine / MonteCarloParams
"""

from .analytic import (
    AnalyticCalculator,
    AnalyticEngine,
    BarrierCalculator,
    BinaryCalculator,
    VanillaCalculator,
)
from .barrier import barrier_call_analytical
from .binomial import BinomialEngine
from .boundary import BoundaryCondition, DirichletBoundary, DiscountedPayoffBoundary
from .bsm import bsm_price, cash_or_nothing_price
from .core import PricingEngine
from .exercise import AMERICAN, EUROPEAN, AmericanExercise, EuropeanExercise, ExercisePolicy, exercise_policy
from .implied_volatility import ImpliedVolResult, implied_volatility, price_bounds
from .market import MarketParameters
from .monte_carlo import MonteCarloEngine, MonteCarloResult, control_variate_estimate
from .params import BinomialParams, MonteCarloParams, PDEParams
from .payoffs import BarrierPayoff, CashOrNothingPayoff, CustomPayoff, Payoff, VanillaPayoff
from .pde import PDEEngine

__all__ = [
    # Engine selector
    "PricingEngine",
    # Contracts
    "MarketParameters",
    "Payoff",
    "VanillaPayoff",
    "CashOrNothingPayoff",
    "BarrierPayoff",
    "CustomPayoff",
    "ExercisePolicy",
    "EuropeanExercise",
    "AmericanExercise",
    "EUROPEAN",
    "AMERICAN",
    "exercise_policy",
    "BoundaryCondition",
    "DiscountedPayoffBoundary",
    "DirichletBoundary",
    # Engines
    "AnalyticEngine",
    "AnalyticCalculator",
    "VanillaCalculator",
    "BinaryCalculator",
    "BarrierCalculator",
    "BinomialEngine",
    "PDEEngine",
    "MonteCarloEngine",
    "MonteCarloResult",
    "control_variate_estimate",
    # Parameter classes
    "BinomialParams",
    "PDEParams",
    "MonteCarloParams",
    # Closed forms
    "bsm_price",
    "cash_or_nothing_price",
    "barrier_call_analytical",
    # Implied volatility
    "ImpliedVolResult",
    "implied_volatility",
    "price_bounds",
]
