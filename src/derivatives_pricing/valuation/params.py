"""Parameter classes for method-specific valuation configuration.

Each pricing method (Monte Carlo, Binomial, PDE) has its own parameter class
that explicitly documents the configuration options available for that method.
"""

from dataclasses import dataclass

from ..enums import PDEMethod, PDESpaceGrid
from ..exceptions import InvalidParameterError

MIN_BINOMIAL_STEPS = 10
MIN_PDE_STEPS = 50
MIN_PDE_LOG_STEPS = 100
MIN_MC_PATHS = 1000


@dataclass(frozen=True, slots=True)
class BinomialParams:
    """Parameters for binomial tree option valuation.

    Attributes
    ==========
    num_steps:
        Number of time steps in the binomial tree (>= 10).
        More steps increase accuracy but also computation time.
        Default: 500.
    smoothing:
        Replace the last lattice step by the one-period Black-Scholes value
        (binomial Black-Scholes). Vanilla payoffs only.
    richardson:
        Return 2 V(N) - V(N/2) to cancel the leading 1/N error term.
        Requires an even num_steps.
    log_timings:
        Log wall time of each pricing call at DEBUG level.
    """

    num_steps: int = 500
    smoothing: bool = False
    richardson: bool = False
    log_timings: bool = False

    def __post_init__(self):
        if self.num_steps < MIN_BINOMIAL_STEPS:
            raise InvalidParameterError(
                f"num_steps must be >= {MIN_BINOMIAL_STEPS}, got {self.num_steps}"
            )
        if self.richardson and self.num_steps % 2 != 0:
            raise InvalidParameterError(
                f"num_steps must be even for Richardson extrapolation, got {self.num_steps}"
            )


@dataclass(frozen=True, slots=True)
class PDEParams:
    """Parameters for PDE finite difference option valuation.

    Attributes:
        spot_steps: Number of spatial intervals in the grid spanning
                    [0.1 * spot, 2 * spot] (or its logarithm). Default: 200.
        time_steps: Number of time steps. Default: 200.
        method: Time-stepping scheme for the FD solver.
        space_grid: Spatial discretization grid in spot or log-spot space.
                    LOG_SPOT requires at least 100 spot and time steps.
        log_timings: Log wall time of each pricing call at DEBUG level.
    """

    spot_steps: int = 200
    time_steps: int = 200
    method: PDEMethod | str = PDEMethod.CRANK_NICOLSON
    space_grid: PDESpaceGrid | str = PDESpaceGrid.SPOT
    log_timings: bool = False

    def __post_init__(self):
        if isinstance(self.method, str):
            object.__setattr__(self, "method", PDEMethod(self.method))
        if isinstance(self.space_grid, str):
            object.__setattr__(self, "space_grid", PDESpaceGrid(self.space_grid))
        minimum = MIN_PDE_LOG_STEPS if self.space_grid is PDESpaceGrid.LOG_SPOT else MIN_PDE_STEPS
        if self.spot_steps < minimum:
            raise InvalidParameterError(
                f"spot_steps must be >= {minimum} for {self.space_grid.value} grid, "
                f"got {self.spot_steps}"
            )
        if self.time_steps < minimum:
            raise InvalidParameterError(
                f"time_steps must be >= {minimum} for {self.space_grid.value} grid, "
                f"got {self.time_steps}"
            )


@dataclass(frozen=True, slots=True)
class MonteCarloParams:
    """Parameters for Monte Carlo option valuation.

    Attributes
    ==========
    num_paths:
        Number of simulated paths (>= 1000). With antithetic sampling this
        is split into num_paths // 2 mirrored pairs.
    time_steps:
        Number of time steps per path (>= 1).
    antithetic:
        Pair every path with one driven by the negated draws.
    random_seed:
        Master seed for reproducibility. If None, uses OS entropy.
    parallel:
        Fan path generation out to a process pool.
    num_workers:
        Number of path chunks (and pool workers when parallel). The chunking
        is the same in serial and parallel mode, so both give identical
        results for the same seed.
    parallel_threshold:
        Parallel mode only kicks in when num_paths exceeds this.
    use_default_process:
        Fall back to geometric Brownian motion with drift r - q when no
        process is attached. If False, pricing without a process fails.
    log_timings:
        Log wall time of each pricing call at DEBUG level.
    """

    num_paths: int = 10_000
    time_steps: int = 100
    antithetic: bool = False
    random_seed: int | None = None
    parallel: bool = False
    num_workers: int = 4
    parallel_threshold: int = 100_000
    use_default_process: bool = True
    log_timings: bool = False

    def __post_init__(self):
        if self.num_paths < MIN_MC_PATHS:
            raise InvalidParameterError(
                f"num_paths must be >= {MIN_MC_PATHS}, got {self.num_paths}"
            )
        if self.time_steps < 1:
            raise InvalidParameterError(f"time_steps must be >= 1, got {self.time_steps}")
        if self.num_workers < 1:
            raise InvalidParameterError(f"num_workers must be >= 1, got {self.num_workers}")
        if self.parallel_threshold < 0:
            raise InvalidParameterError(
                f"parallel_threshold must be >= 0, got {self.parallel_threshold}"
            )
        if self.random_seed is not None and self.random_seed < 0:
            raise InvalidParameterError(f"random_seed must be >= 0, got {self.random_seed}")
