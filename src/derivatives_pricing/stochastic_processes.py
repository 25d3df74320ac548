"Path simulation classes for Brownian-motion driven stochastic processes"

from __future__ import annotations

from abc import ABC, abstractmethod
import copy
import logging

import numpy as np
import pandas as pd

from .exceptions import InvalidParameterError

__all__ = [
    "StochasticProcess",
    "ArithmeticBrownianMotion",
    "GeometricBrownianMotion",
    "paths_to_frame",
]


logger = logging.getLogger(__name__)


class StochasticProcess(ABC):
    """Providing base methods for simulation classes.

    Every process owns a private ``numpy.random.Generator``. Concurrent
    workers must each get their own copy via ``deep_clone`` followed by
    ``reseed``; a live generator is never shared.

    Attributes
    ==========
    drift: float
        drift rate per unit time
    volatility: float
        diffusion coefficient per unit sqrt(time)

    Methods
    =======
    reseed:
        replaces the generator state with a fresh seeded stream
    advance_one_step:
        evolves a price (scalar or array) over dt using fresh draws
    simulate_path:
        returns one path of length steps+1 starting at the initial price
    simulate_antithetic_pair:
        returns a path and its mirror driven by the negated draws
    simulate_paths / simulate_antithetic_paths:
        vectorized batches of the above, shape (num_paths, steps+1)
    deep_clone:
        independent copy including generator state
    """

    def __init__(self, drift: float, volatility: float, random_seed: int | None = None):
        if not np.isfinite(drift):
            raise InvalidParameterError(f"drift must be finite, got {drift}")
        if not np.isfinite(volatility) or volatility < 0:
            raise InvalidParameterError(f"volatility must be non-negative, got {volatility}")
        self.drift = float(drift)
        self.volatility = float(volatility)
        self._rng = np.random.default_rng(random_seed)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(drift={self.drift!r}, volatility={self.volatility!r})"

    @abstractmethod
    def _evolve(self, price: np.ndarray, dt: float, shocks: np.ndarray) -> np.ndarray:
        """Apply one step of the discretized dynamics given standard normal shocks."""

    def reseed(self, seed: int | None) -> None:
        self._rng = np.random.default_rng(seed)

    def advance_one_step(self, price, dt: float):
        if dt < 0:
            raise InvalidParameterError(f"dt must be non-negative, got {dt}")
        price_arr = np.asarray(price, dtype=float)
        shocks = self._rng.standard_normal(price_arr.shape)
        out = self._evolve(price_arr, dt, shocks)
        return float(out) if out.ndim == 0 else out

    def _path_from_shocks(
        self, initial_value: float, dt: float, shocks: np.ndarray
    ) -> np.ndarray:
        """Build paths row-wise from a (num_paths, steps) shock matrix."""
        num_paths, steps = shocks.shape
        paths = np.empty((num_paths, steps + 1), dtype=float)
        paths[:, 0] = initial_value
        for t in range(1, steps + 1):
            paths[:, t] = self._evolve(paths[:, t - 1], dt, shocks[:, t - 1])
        return paths

    @staticmethod
    def _validate_horizon(time_to_maturity: float, steps: int) -> float:
        if time_to_maturity < 0:
            raise InvalidParameterError(
                f"time_to_maturity must be non-negative, got {time_to_maturity}"
            )
        if steps < 1:
            raise InvalidParameterError(f"steps must be >= 1, got {steps}")
        return time_to_maturity / steps

    def simulate_path(self, initial_value: float, time_to_maturity: float, steps: int) -> np.ndarray:
        return self.simulate_paths(initial_value, time_to_maturity, steps, 1)[0]

    def simulate_antithetic_pair(
        self, initial_value: float, time_to_maturity: float, steps: int
    ) -> tuple[np.ndarray, np.ndarray]:
        paths, mirrored = self.simulate_antithetic_paths(initial_value, time_to_maturity, steps, 1)
        return paths[0], mirrored[0]

    def simulate_paths(
        self,
        initial_value: float,
        time_to_maturity: float,
        steps: int,
        num_paths: int,
    ) -> np.ndarray:
        """Simulate ``num_paths`` independent paths.

        Returns
        =======
        np.ndarray
            shape (num_paths, steps + 1); column 0 is the initial value
        """
        dt = self._validate_horizon(time_to_maturity, steps)
        if num_paths < 1:
            raise InvalidParameterError(f"num_paths must be >= 1, got {num_paths}")
        logger.debug("%s simulating %d paths x %d steps", type(self).__name__, num_paths, steps)
        shocks = self._rng.standard_normal((num_paths, steps))
        return self._path_from_shocks(initial_value, dt, shocks)

    def simulate_antithetic_paths(
        self,
        initial_value: float,
        time_to_maturity: float,
        steps: int,
        num_pairs: int,
    ) -> tuple[np.ndarray, np.ndarray]:
        """Simulate ``num_pairs`` paths plus mirrors driven by the negated shocks."""
        dt = self._validate_horizon(time_to_maturity, steps)
        if num_pairs < 1:
            raise InvalidParameterError(f"num_pairs must be >= 1, got {num_pairs}")
        shocks = self._rng.standard_normal((num_pairs, steps))
        return (
            self._path_from_shocks(initial_value, dt, shocks),
            self._path_from_shocks(initial_value, dt, -shocks),
        )

    def deep_clone(self) -> "StochasticProcess":
        return copy.deepcopy(self)


class ArithmeticBrownianMotion(StochasticProcess):
    """dS = mu dt + sigma dW (Euler scheme, exact for constant coefficients)."""

    def _evolve(self, price: np.ndarray, dt: float, shocks: np.ndarray) -> np.ndarray:
        return price + self.drift * dt + self.volatility * np.sqrt(dt) * shocks


class GeometricBrownianMotion(StochasticProcess):
    """dS = mu S dt + sigma S dW, stepped exactly in log space."""

    def _evolve(self, price: np.ndarray, dt: float, shocks: np.ndarray) -> np.ndarray:
        return price * np.exp(
            (self.drift - 0.5 * self.volatility**2) * dt
            + self.volatility * np.sqrt(dt) * shocks
        )


def paths_to_frame(paths: np.ndarray, time_to_maturity: float) -> pd.DataFrame:
    """Tabulate simulated paths with one row per time point and one column per path."""
    paths = np.atleast_2d(np.asarray(paths, dtype=float))
    steps = paths.shape[1] - 1
    if steps < 1:
        raise InvalidParameterError("paths must contain at least two time points")
    times = np.linspace(0.0, time_to_maturity, steps + 1)
    columns = [f"path_{i}" for i in range(paths.shape[0])]
    return pd.DataFrame(paths.T, index=pd.Index(times, name="time"), columns=columns)
