from .enums import AnalyticKind, BarrierType, ExerciseType, OptionType, PDEMethod, PDESpaceGrid, PricingMethod
from .exceptions import (
    ArbitrageViolationError,
    CalculationError,
    ConfigurationError,
    ConvergenceError,
    DerivativesPricingError,
    EmptyDataError,
    InvalidParameterError,
    NotSetError,
    NumericalError,
    StabilityError,
    UnsupportedFeatureError,
)
from .stochastic_processes import ArithmeticBrownianMotion, GeometricBrownianMotion, StochasticProcess
from .valuation import (
    AMERICAN,
    EUROPEAN,
    BarrierPayoff,
    CashOrNothingPayoff,
    CustomPayoff,
    MarketParameters,
    PricingEngine,
    VanillaPayoff,
    implied_volatility,
)


__all__ = [
    "AnalyticKind",
    "BarrierType",
    "ExerciseType",
    "OptionType",
    "PDEMethod",
    "PDESpaceGrid",
    "PricingMethod",
    "DerivativesPricingError",
    "InvalidParameterError",
    "ConfigurationError",
    "NotSetError",
    "EmptyDataError",
    "UnsupportedFeatureError",
    "NumericalError",
    "CalculationError",
    "ConvergenceError",
    "ArbitrageViolationError",
    "StabilityError",
    "StochasticProcess",
    "ArithmeticBrownianMotion",
    "GeometricBrownianMotion",
    "MarketParameters",
    "VanillaPayoff",
    "CashOrNothingPayoff",
    "BarrierPayoff",
    "CustomPayoff",
    "EUROPEAN",
    "AMERICAN",
    "PricingEngine",
    "implied_volatility",
]
