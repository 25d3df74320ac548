"""Valuation of European and American options using the binomial option pricing model of
Cox-Ross-Rubinstein

Two opt-in accuracy refinements are available through BinomialParams:
- smoothing (binomial Black-Scholes): the last lattice step is replaced by the
  one-period Black-Scholes value, which removes the payoff kink from the lattice
- richardson: 2 V(N) - V(N/2), cancelling the leading 1/N error term
"""

from __future__ import annotations

import logging

import numpy as np

from ..exceptions import ArbitrageViolationError, ConfigurationError, UnsupportedFeatureError
from ..utils import log_timing
from .bsm import bsm_price
from .exercise import EUROPEAN, ExercisePolicy
from .market import MarketParameters, check_pricing_inputs
from .params import BinomialParams
from .payoffs import Payoff, VanillaPayoff


logger = logging.getLogger(__name__)


def _node_spots(spot: float, log_up: float, layer: int) -> np.ndarray:
    """Spots of layer ``layer``: S * u^(2i - layer), recomputed from the root."""
    idx = np.arange(layer + 1)
    return spot * np.exp((2 * idx - layer) * log_up)


def _one_period_bsm(
    params: MarketParameters, payoff: VanillaPayoff, spots: np.ndarray, delta_t: float
) -> np.ndarray:
    """European value over one step at each node spot."""
    return np.array(
        [
            bsm_price(
                float(s),
                payoff.strike,
                delta_t,
                params.risk_free_rate,
                params.volatility,
                payoff.option_type,
                dividend_yield=params.dividend_yield,
            )
            for s in spots
        ]
    )


class BinomialEngine:
    """Backward induction on a recombining CRR lattice.

    The engine only holds its validated configuration, so one instance can
    serve any number of (concurrent) pricing calls.
    """

    def __init__(self, params: BinomialParams | None = None) -> None:
        if params is None:
            params = BinomialParams()
        if not isinstance(params, BinomialParams):
            raise ConfigurationError(
                f"BinomialEngine requires BinomialParams, got {type(params).__name__}"
            )
        self.params = params

    def __repr__(self) -> str:
        return (
            f"BinomialEngine(num_steps={self.params.num_steps}, "
            f"smoothing={self.params.smoothing}, richardson={self.params.richardson})"
        )

    @property
    def coarsest_steps(self) -> int:
        """Fewest steps any lattice built for one price uses (N/2 under Richardson)."""
        if self.params.richardson:
            return self.params.num_steps // 2
        return self.params.num_steps

    def _lattice_parameters(
        self, params: MarketParameters, num_steps: int
    ) -> tuple[float, float, float, float]:
        """Return (dt, log_up, p, discount) for ``num_steps`` steps."""
        delta_t = params.time_to_maturity / num_steps
        log_up = params.volatility * np.sqrt(delta_t)
        u = np.exp(log_up)
        d = 1.0 / u

        growth = np.exp((params.risk_free_rate - params.dividend_yield) * delta_t)
        if u == d or growth < d or growth > u:
            raise ArbitrageViolationError(
                "Arbitrage condition violated: need d <= exp((r-q)*dt) <= u with u > d. "
                "Increase num_steps or volatility."
            )

        p = (growth - d) / (u - d)
        discount = np.exp(-params.risk_free_rate * delta_t)
        return delta_t, log_up, p, discount

    @staticmethod
    def _settle_layer(
        payoff: Payoff,
        exercise: ExercisePolicy,
        remaining_time: float,
        spots: np.ndarray,
        continuation: np.ndarray,
    ) -> np.ndarray:
        intrinsic = np.asarray(payoff.evaluate(spots), dtype=float)
        exercise_now = exercise.should_exercise(remaining_time, spots, intrinsic, continuation)
        values = np.where(exercise_now, intrinsic, continuation)
        return np.where(payoff.is_knocked_out(spots), 0.0, values)

    def _induct(
        self,
        params: MarketParameters,
        payoff: Payoff,
        exercise: ExercisePolicy,
        num_steps: int,
    ) -> float:
        """Root value of a lattice with ``num_steps`` steps."""
        delta_t, log_up, p, discount = self._lattice_parameters(params, num_steps)
        logger.debug(
            "Binomial num_steps=%d dt=%.6g p=%.6f smoothing=%s exercise=%s",
            num_steps,
            delta_t,
            p,
            self.params.smoothing,
            exercise,
        )

        if self.params.smoothing:
            top = num_steps - 1
            spots = _node_spots(params.spot, log_up, top)
            continuation = _one_period_bsm(params, payoff, spots, delta_t)
            values = self._settle_layer(payoff, exercise, delta_t, spots, continuation)
        else:
            top = num_steps
            spots = _node_spots(params.spot, log_up, top)
            values = np.asarray(payoff.evaluate(spots), dtype=float)
            values = np.where(payoff.is_knocked_out(spots), 0.0, values)

        for j in range(top - 1, -1, -1):
            continuation = discount * (p * values[1 : j + 2] + (1.0 - p) * values[: j + 1])
            # Node spots are recomputed from the root, never carried between layers
            spots = _node_spots(params.spot, log_up, j)
            remaining_time = params.time_to_maturity - j * delta_t
            values = self._settle_layer(payoff, exercise, remaining_time, spots, continuation)

        return float(values[0])

    def price(
        self,
        params: MarketParameters,
        payoff: Payoff,
        exercise: ExercisePolicy = EUROPEAN,
    ) -> float:
        """Present value from the root of the lattice.

        Parameters
        ==========
        params: MarketParameters
            market inputs
        payoff: Payoff
            contract payoff at expiry (also used as intrinsic value at inner nodes)
        exercise: ExercisePolicy
            consulted at every inner node

        Returns
        =======
        float
            present value
        """
        check_pricing_inputs(params, payoff, exercise)
        if params.time_to_maturity == 0.0:
            return float(payoff.evaluate(params.spot))
        if self.params.smoothing and not isinstance(payoff, VanillaPayoff):
            raise UnsupportedFeatureError(
                f"Binomial smoothing needs a VanillaPayoff, got {type(payoff).__name__}"
            )

        num_steps = self.params.num_steps
        with log_timing(logger, "Binomial price", self.params.log_timings):
            value = self._induct(params, payoff, exercise, num_steps)
            if self.params.richardson:
                coarse = self._induct(params, payoff, exercise, num_steps // 2)
                value = 2.0 * value - coarse
        return value
