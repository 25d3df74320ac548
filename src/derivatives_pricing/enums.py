"""Enums for option valuation."""

from enum import Enum

__all__ = [
    "OptionType",
    "ExerciseType",
    "BarrierType",
    "AnalyticKind",
    "PricingMethod",
    "PDEMethod",
    "PDESpaceGrid",
]


class OptionType(Enum):
    CALL = "call"
    PUT = "put"


class ExerciseType(Enum):
    EUROPEAN = "european"
    AMERICAN = "american"


class BarrierType(Enum):
    DOWN_AND_OUT = "down_and_out"
    UP_AND_OUT = "up_and_out"


class AnalyticKind(Enum):
    """Tag a payoff declares so the analytic registry can find its calculator."""

    VANILLA_CALL = "vanilla_call"
    VANILLA_PUT = "vanilla_put"
    CASH_OR_NOTHING_CALL = "cash_or_nothing_call"
    CASH_OR_NOTHING_PUT = "cash_or_nothing_put"
    DOWN_AND_OUT_CALL = "down_and_out_call"
    UP_AND_OUT_CALL = "up_and_out_call"


class PricingMethod(Enum):
    ANALYTIC = "analytic"
    BINOMIAL = "binomial"
    MONTE_CARLO = "monte_carlo"
    PDE_FD = "pde_fd"


class PDEMethod(Enum):
    IMPLICIT = "implicit"
    EXPLICIT = "explicit"
    CRANK_NICOLSON = "crank_nicolson"


class PDESpaceGrid(Enum):
    SPOT = "spot"
    LOG_SPOT = "log_spot"
