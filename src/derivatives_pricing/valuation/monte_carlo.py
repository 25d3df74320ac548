"""Monte Carlo valuation with optional antithetic pairing and process-level parallelism.

Reproducibility: one controlling generator seeded with ``random_seed`` draws
an integer seed per path chunk before any work is dispatched. Each chunk
gets its own deep-cloned, reseeded process, so no two chunks share a live
generator. The chunk layout depends only on ``num_workers``, hence the
serial and parallel runs of the same configuration agree exactly.
"""

from __future__ import annotations

from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from itertools import repeat
import logging

import numpy as np

from ..enums import OptionType
from ..exceptions import ConfigurationError, InvalidParameterError, NotSetError
from ..stochastic_processes import GeometricBrownianMotion, StochasticProcess
from ..utils import log_timing
from .bsm import bsm_price
from .exercise import EUROPEAN, ExercisePolicy
from .market import MarketParameters, check_pricing_inputs
from .params import MonteCarloParams
from .payoffs import Payoff, VanillaPayoff


logger = logging.getLogger(__name__)

STD_ERROR_WARN_RATIO = 0.01


@dataclass(frozen=True, slots=True)
class MonteCarloResult:
    """Discounted estimate with its standard error.

    ``num_samples`` counts independent samples: paths, or mirrored pairs
    in antithetic mode.
    """

    value: float
    std_error: float
    num_samples: int


def _simulate_chunk(
    process: StochasticProcess,
    spot: float,
    time_to_maturity: float,
    time_steps: int,
    num_samples: int,
    antithetic: bool,
    payoff: Payoff,
) -> tuple[int, float, float]:
    """Simulate one chunk and return (count, sum, sum of squares) of undiscounted samples."""
    if num_samples == 0:
        return 0, 0.0, 0.0
    if antithetic:
        paths, mirrored = process.simulate_antithetic_paths(
            spot, time_to_maturity, time_steps, num_samples
        )
        samples = 0.5 * (payoff.evaluate_paths(paths) + payoff.evaluate_paths(mirrored))
    else:
        paths = process.simulate_paths(spot, time_to_maturity, time_steps, num_samples)
        samples = payoff.evaluate_paths(paths)
    return int(samples.size), float(samples.sum()), float(np.dot(samples, samples))


def _warn_if_high_std_error(result: MonteCarloResult) -> None:
    """Emit a warning log if MC standard error is high relative to the PV estimate."""
    scale = max(abs(result.value), 1.0e-12)
    ratio = result.std_error / scale
    logger.debug(
        "MC value=%.6g std_error=%.6g ratio=%.6g samples=%d",
        result.value,
        result.std_error,
        ratio,
        result.num_samples,
    )
    if result.value != 0.0 and ratio > STD_ERROR_WARN_RATIO:
        logger.warning(
            "MC standard error is %.2f%% of the estimate; consider more paths or antithetic sampling",
            100.0 * ratio,
        )


def control_variate_estimate(
    samples: np.ndarray,
    control_samples: np.ndarray,
    control_mean: float,
) -> tuple[float, float, float]:
    """Beta-adjusted control-variate estimator.

    Parameters
    ==========
    samples: np.ndarray
        target samples Y
    control_samples: np.ndarray
        control samples X, drawn jointly with Y
    control_mean: float
        known expectation of X

    Returns
    =======
    tuple of (estimate, std_error, beta)
        estimate = mean(Y) - beta * (mean(X) - control_mean), beta = Cov(X, Y) / Var(X)
    """
    y = np.asarray(samples, dtype=float)
    x = np.asarray(control_samples, dtype=float)
    if y.shape != x.shape:
        raise InvalidParameterError("samples and control_samples must have the same shape")
    if y.size < 2:
        raise InvalidParameterError("control variate needs at least two samples")
    var_x = float(np.var(x, ddof=1))
    beta = 0.0 if var_x == 0.0 else float(np.cov(x, y, ddof=1)[0, 1] / var_x)
    adjusted = y - beta * (x - control_mean)
    estimate = float(np.mean(adjusted))
    std_error = float(np.std(adjusted, ddof=1) / np.sqrt(adjusted.size))
    return estimate, std_error, beta


class MonteCarloEngine:
    """Risk-neutral Monte Carlo pricer.

    Parameters
    ==========
    params: MonteCarloParams
        path count, time steps, seeding and parallelism
    process: StochasticProcess, optional
        path generator used as a template; it is cloned and reseeded for every
        chunk and never advanced itself. When None, geometric Brownian motion
        with drift r - q is built per call unless ``use_default_process`` is False.

    The exercise policy passed to ``price`` is accepted for interface parity
    but ignored: payoffs are always evaluated at the end of the path.
    """

    def __init__(
        self,
        params: MonteCarloParams | None = None,
        process: StochasticProcess | None = None,
    ) -> None:
        if params is None:
            params = MonteCarloParams()
        if not isinstance(params, MonteCarloParams):
            raise ConfigurationError(
                f"MonteCarloEngine requires MonteCarloParams, got {type(params).__name__}"
            )
        if process is not None and not isinstance(process, StochasticProcess):
            raise ConfigurationError(
                f"process must be a StochasticProcess, got {type(process).__name__}"
            )
        self.params = params
        self.process = process

    def __repr__(self) -> str:
        return (
            f"MonteCarloEngine(num_paths={self.params.num_paths}, "
            f"time_steps={self.params.time_steps}, antithetic={self.params.antithetic}, "
            f"process={self.process!r})"
        )

    def _resolve_process(self, params: MarketParameters) -> StochasticProcess:
        if self.process is not None:
            return self.process
        if not self.params.use_default_process:
            raise NotSetError("No stochastic process attached to MonteCarloEngine")
        return GeometricBrownianMotion(
            drift=params.risk_free_rate - params.dividend_yield,
            volatility=params.volatility,
        )

    def _worker_processes(self, template: StochasticProcess, count: int) -> list[StochasticProcess]:
        """Clone ``template`` once per chunk with seeds drawn up front from the master stream."""
        master = np.random.default_rng(self.params.random_seed)
        seeds = master.integers(0, np.iinfo(np.int64).max, size=count)
        logger.debug("MC master_seed=%s chunk_seeds=%s", self.params.random_seed, seeds.tolist())
        clones = []
        for seed in seeds:
            clone = template.deep_clone()
            clone.reseed(int(seed))
            clones.append(clone)
        return clones

    def _num_samples(self) -> int:
        if self.params.antithetic:
            return self.params.num_paths // 2
        return self.params.num_paths

    def _use_parallel(self) -> bool:
        cfg = self.params
        return cfg.parallel and cfg.num_workers > 1 and cfg.num_paths > cfg.parallel_threshold

    def price_with_stats(
        self,
        params: MarketParameters,
        payoff: Payoff,
        exercise: ExercisePolicy = EUROPEAN,
    ) -> MonteCarloResult:
        """Discounted mean payoff and its standard error."""
        check_pricing_inputs(params, payoff, exercise)
        if params.time_to_maturity == 0.0:
            return MonteCarloResult(float(payoff.evaluate(params.spot)), 0.0, 0)
        if not exercise.is_european():
            logger.debug("MC ignores %r; pricing the path-terminal payoff", exercise)

        cfg = self.params
        template = self._resolve_process(params)
        chunk_sizes = [
            int(chunk.size) for chunk in np.array_split(np.arange(self._num_samples()), cfg.num_workers)
        ]
        processes = self._worker_processes(template, len(chunk_sizes))
        parallel = self._use_parallel()
        logger.debug(
            "MC paths=%d steps=%d antithetic=%s chunks=%s parallel=%s",
            cfg.num_paths,
            cfg.time_steps,
            cfg.antithetic,
            chunk_sizes,
            parallel,
        )

        chunk_args = (
            processes,
            repeat(params.spot),
            repeat(params.time_to_maturity),
            repeat(cfg.time_steps),
            chunk_sizes,
            repeat(cfg.antithetic),
            repeat(payoff),
        )
        with log_timing(logger, "MC price", cfg.log_timings):
            if parallel:
                with ProcessPoolExecutor(max_workers=cfg.num_workers) as ex:
                    # map preserves chunk order, so the reduction is deterministic
                    stats = list(ex.map(_simulate_chunk, *chunk_args))
            else:
                stats = list(map(_simulate_chunk, *chunk_args))

        n = sum(s[0] for s in stats)
        total = sum(s[1] for s in stats)
        total_sq = sum(s[2] for s in stats)
        mean = total / n
        variance = max(0.0, (total_sq - n * mean * mean) / (n - 1)) if n > 1 else 0.0

        discount = params.discount_factor
        result = MonteCarloResult(
            value=discount * mean,
            std_error=discount * float(np.sqrt(variance / n)),
            num_samples=n,
        )
        _warn_if_high_std_error(result)
        return result

    def price(
        self,
        params: MarketParameters,
        payoff: Payoff,
        exercise: ExercisePolicy = EUROPEAN,
    ) -> float:
        return self.price_with_stats(params, payoff, exercise).value

    def price_with_control_variate(
        self,
        params: MarketParameters,
        payoff: Payoff,
        control_payoff: VanillaPayoff | None = None,
        control_value: float | None = None,
    ) -> MonteCarloResult:
        """Estimate with a jointly simulated control of known value.

        By default the control is a vanilla option with the payoff's strike
        (at-the-money call if the payoff has no strike) whose value comes from
        Black-Scholes-Merton. Supply ``control_value`` for any other control or
        when the attached process is not risk-neutral GBM. Runs serially.
        """
        check_pricing_inputs(params, payoff, EUROPEAN)
        if params.time_to_maturity == 0.0:
            return MonteCarloResult(float(payoff.evaluate(params.spot)), 0.0, 0)

        if control_payoff is None:
            strike = getattr(payoff, "strike", params.spot)
            option_type = getattr(payoff, "option_type", OptionType.CALL)
            control_payoff = VanillaPayoff(option_type, strike)
        if control_value is None:
            if not isinstance(control_payoff, VanillaPayoff):
                raise InvalidParameterError(
                    "control_value is required unless the control is a VanillaPayoff"
                )
            control_value = bsm_price(
                params.spot,
                control_payoff.strike,
                params.time_to_maturity,
                params.risk_free_rate,
                params.volatility,
                control_payoff.option_type,
                dividend_yield=params.dividend_yield,
            )

        cfg = self.params
        process = self._worker_processes(self._resolve_process(params), 1)[0]
        discount = params.discount_factor
        with log_timing(logger, "MC control variate", cfg.log_timings):
            if cfg.antithetic:
                paths, mirrored = process.simulate_antithetic_paths(
                    params.spot, params.time_to_maturity, cfg.time_steps, self._num_samples()
                )
                y = 0.5 * (payoff.evaluate_paths(paths) + payoff.evaluate_paths(mirrored))
                x = 0.5 * (
                    control_payoff.evaluate_paths(paths) + control_payoff.evaluate_paths(mirrored)
                )
            else:
                paths = process.simulate_paths(
                    params.spot, params.time_to_maturity, cfg.time_steps, self._num_samples()
                )
                y = payoff.evaluate_paths(paths)
                x = control_payoff.evaluate_paths(paths)

        estimate, std_error, beta = control_variate_estimate(discount * y, discount * x, control_value)
        logger.debug("MC control variate beta=%.6f control_value=%.6f", beta, control_value)
        result = MonteCarloResult(value=estimate, std_error=std_error, num_samples=int(y.size))
        _warn_if_high_std_error(result)
        return result
