"""Custom exception hierarchy for the derivatives_pricing library.

All library-specific exceptions inherit from :class:`DerivativesPricingError`,
enabling callers to catch *any* library error with a single ``except`` clause::

    try:
        pv = PricingEngine.binomial(500).price(params, payoff)
    except DerivativesPricingError as exc:
        log.error("Library error: %s", exc)
"""

from __future__ import annotations


class DerivativesPricingError(Exception):
    """Base exception for all library errors."""


# ── Input validation ────────────────────────────────────────────────


class InvalidParameterError(DerivativesPricingError, ValueError):
    """Precondition violated at construction or call time (out-of-range, non-finite, etc.)."""


class ConfigurationError(InvalidParameterError):
    """Wrong types passed to a public API (e.g. raw str where an enum or payoff is expected)."""


class NotSetError(DerivativesPricingError):
    """A required collaborator (e.g. a stochastic process) was never attached."""


class EmptyDataError(DerivativesPricingError):
    """A statistics helper was given zero-length input."""


# ── Feature support ─────────────────────────────────────────────────


class UnsupportedFeatureError(DerivativesPricingError):
    """No calculator exists for the requested payoff kind / exercise combination."""


# ── Numerical issues ────────────────────────────────────────────────


class NumericalError(DerivativesPricingError):
    """Base for errors arising from numerical computation."""


class CalculationError(NumericalError):
    """A numerical routine failed outright (e.g. singular tridiagonal system)."""


class ArbitrageViolationError(NumericalError):
    """Inputs imply an arbitrage (price outside model-free bounds, probability outside [0, 1])."""


class ConvergenceError(NumericalError):
    """An iterative solver failed to converge within the allowed iterations.

    ``last_bound`` holds the last bracket or estimate reached, when available.
    """

    def __init__(self, message: str, last_bound: float | None = None) -> None:
        super().__init__(message)
        self.last_bound = last_bound


class StabilityError(NumericalError):
    """A numerical scheme's stability conditions are violated."""
