"""Monte Carlo estimation of ruin probability.

A trial is a random walk on wealth: it starts at the initial wealth and adds
one increment drawn from an :class:`~bunpu.alias_sampler.AliasSampler` per
step. The trial is ruined the first time wealth reaches zero or below, at
which point it stops. The fraction of ruined trials estimates the
probability of ruin within the step horizon.

Trials are independent, so large runs can be split into chunks executed in
worker processes. Each chunk draws from its own child of a single
``SeedSequence``; no generator or counter is shared between workers.

For short horizons :func:`exact_ruin_probability` gives a deterministic
answer by propagating the wealth distribution itself, step by step.
"""

from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
import logging
import time
from typing import List, Optional, Tuple, Union

import numpy as np
import pandas as pd
from scipy import stats
from tqdm import tqdm

from .algebra import convolve, split_at
from .alias_sampler import AliasSampler
from .components import Atom, Distribution, Tail
from .config import Config, RuinSimulationConfig
from .random_source import NumpyRandomSource, RandomSource, spawn_sources
from .reducer import reduce

logger = logging.getLogger(__name__)

_SURVIVAL_FLOOR = 1e-9


def _ruin_step(
    sampler: AliasSampler, initial_wealth: float, steps: int, rng: RandomSource
) -> int:
    """Run one trial; return the 1-based step of ruin, or 0 if it survives."""
    wealth = initial_wealth
    for step in range(1, steps + 1):
        wealth += sampler.sample(rng)
        if wealth <= 0:
            return step
    return 0


def count_ruined_trials(
    sampler: AliasSampler,
    initial_wealth: float,
    steps: int,
    n_trials: int,
    rng: RandomSource,
) -> int:
    """Count ruined trials of the wealth random walk.

    Args:
        sampler: Sampler over the per-step increment distribution.
        initial_wealth: Wealth at the start of each trial.
        steps: Maximum number of steps per trial.
        n_trials: Number of independent trials.
        rng: Source of uniform variates shared by all trials of this call.

    Returns:
        Number of trials whose wealth reached zero or below, in ``[0, n_trials]``.
    """
    ruined = 0
    for _ in range(n_trials):
        if _ruin_step(sampler, initial_wealth, steps, rng):
            ruined += 1
    return ruined


def exact_ruin_probability(
    step: Distribution,
    initial_wealth: float,
    steps: int,
    max_components: int = 200,
) -> float:
    """Ruin probability by propagating the wealth distribution directly.

    Each step convolves the surviving wealth with the increment, moves the
    mass at or below zero into the ruined total, and renormalizes what is
    left. Whenever the wealth distribution grows past ``max_components`` it
    is collapsed with :func:`~bunpu.reducer.reduce`, keeping zero as a
    boundary. Deterministic, and practical for short horizons; long
    horizons are better served by :class:`RuinSimulator`.

    Convolution drops tail pairs, so the ruined share of each step is
    measured against the mass that survives convolution.

    Args:
        step: Per-step increment distribution.
        initial_wealth: Starting wealth.
        steps: Number of steps.
        max_components: Size above which the wealth distribution is reduced.

    Returns:
        Probability of ruin within ``steps`` steps, in ``[0, 1]``.

    Raises:
        ValueError: If ``steps`` is negative, ``max_components`` is less than
            one, or ``step`` has no mass outside its tails.
    """
    if steps < 0:
        raise ValueError(f"steps must be non-negative, got {steps}")
    if max_components < 1:
        raise ValueError(f"max_components must be at least 1, got {max_components}")
    if steps and sum(c.weight for c in step if not isinstance(c, Tail)) <= 0:
        raise ValueError("Increment distribution has no mass outside its tails")

    wealth = Distribution.of(Atom(initial_wealth, 1.0))
    ruined = 0.0
    surviving = 1.0

    for i in range(steps):
        wealth = convolve(wealth, step)
        if len(wealth) > max_components:
            wealth = reduce(wealth, max_components, boundaries=(0.0,))

        fail, safe = split_at(wealth, 0.0)
        fail_share = fail.total_weight / wealth.total_weight
        ruined += surviving * fail_share
        surviving *= 1.0 - fail_share

        if surviving < _SURVIVAL_FLOOR:
            logger.debug(f"Survival below {_SURVIVAL_FLOOR} after {i + 1} steps")
            return 1.0

        wealth = safe.normalized()

    return ruined


def _run_chunk(
    chunk: Tuple[AliasSampler, float, int, int, NumpyRandomSource],
) -> np.ndarray:
    """Simulate one chunk of trials in a worker process."""
    sampler, initial_wealth, steps, n_trials, rng = chunk
    return np.array(
        [_ruin_step(sampler, initial_wealth, steps, rng) for _ in range(n_trials)],
        dtype=np.int64,
    )


@dataclass
class RuinSimulationResults:
    """Results of a ruin simulation.

    Attributes:
        ruin_count: Number of ruined trials.
        n_trials: Number of trials run.
        steps: Step budget per trial.
        initial_wealth: Starting wealth of every trial.
        ruin_steps: Per-trial 1-based ruin step, ``0`` for surviving trials.
        execution_time: Wall-clock time in seconds.
        confidence_level: Level used by :meth:`summary`.
    """

    ruin_count: int
    n_trials: int
    steps: int
    initial_wealth: float
    ruin_steps: np.ndarray
    execution_time: float
    confidence_level: float = 0.95

    @property
    def ruin_probability(self) -> float:
        if self.n_trials == 0:
            return 0.0
        return self.ruin_count / self.n_trials

    @property
    def survival_curve(self) -> np.ndarray:
        """Fraction of trials still solvent after each step ``1..steps``."""
        if self.n_trials == 0 or self.steps == 0:
            return np.ones(self.steps)
        ruined_at = np.bincount(self.ruin_steps, minlength=self.steps + 1)[1:]
        return 1.0 - np.cumsum(ruined_at) / self.n_trials

    def confidence_interval(self, level: Optional[float] = None) -> Tuple[float, float]:
        """Clopper-Pearson interval for the ruin probability.

        Args:
            level: Confidence level; defaults to ``confidence_level``.

        Returns:
            ``(lower, upper)`` bounds; ``(0.0, 1.0)`` when no trials ran.
        """
        level = self.confidence_level if level is None else level
        k, n = self.ruin_count, self.n_trials
        if n == 0:
            return 0.0, 1.0
        alpha = 1.0 - level
        lower = 0.0 if k == 0 else float(stats.beta.ppf(alpha / 2, k, n - k + 1))
        upper = 1.0 if k == n else float(stats.beta.ppf(1 - alpha / 2, k + 1, n - k))
        return lower, upper

    def summary(self) -> str:
        """Generate summary report."""
        lower, upper = self.confidence_interval()
        lines = [
            "Ruin Simulation Results",
            "=" * 40,
            f"Trials: {self.n_trials:,}",
            f"Steps per trial: {self.steps:,}",
            f"Initial wealth: {self.initial_wealth:,.2f}",
            f"Execution time: {self.execution_time:.2f} seconds",
            "",
            f"Ruined trials: {self.ruin_count:,}",
            f"Ruin probability: {self.ruin_probability:6.2%} "
            f"[{lower:6.2%}, {upper:6.2%}] at {self.confidence_level:.0%}",
        ]
        if self.ruin_count > 0:
            ruined = self.ruin_steps[self.ruin_steps > 0]
            lines.append(f"Median step of ruin: {np.median(ruined):.0f}")
        return "\n".join(lines)

    def to_dataframe(self) -> pd.DataFrame:
        """Per-trial outcomes with columns ``trial``, ``ruined``, ``ruin_step``."""
        return pd.DataFrame(
            {
                "trial": np.arange(self.n_trials),
                "ruined": self.ruin_steps > 0,
                "ruin_step": self.ruin_steps,
            }
        )


class RuinSimulator:
    """Runs configured ruin simulations over a fixed increment sampler."""

    def __init__(self, sampler: AliasSampler):
        """Initialize simulator.

        Args:
            sampler: Sampler over the per-step increment distribution.
        """
        self.sampler = sampler

    def run(
        self,
        config: Union[Config, RuinSimulationConfig],
        rng: Optional[RandomSource] = None,
    ) -> RuinSimulationResults:
        """Estimate the ruin probability.

        Args:
            config: Simulation settings. A full :class:`~bunpu.config.Config`
                also applies its logging settings before the run.
            rng: Random source for a sequential run. Defaults to a
                :class:`NumpyRandomSource` seeded from ``config.seed``.
                Ignored by parallel runs, which spawn per-chunk streams.

        Returns:
            RuinSimulationResults with counts and per-trial ruin steps.
        """
        if isinstance(config, Config):
            config.setup_logging()
            config = config.simulation

        start_time = time.time()
        logger.info(
            f"Simulating {config.n_trials:,} trials of {config.steps:,} steps "
            f"from wealth {config.initial_wealth}"
        )

        if config.parallel and config.n_trials > config.chunk_size:
            ruin_steps = self._run_parallel(config)
        else:
            ruin_steps = self._run_sequential(config, rng or NumpyRandomSource(config.seed))

        ruin_count = int(np.count_nonzero(ruin_steps))
        results = RuinSimulationResults(
            ruin_count=ruin_count,
            n_trials=config.n_trials,
            steps=config.steps,
            initial_wealth=config.initial_wealth,
            ruin_steps=ruin_steps,
            execution_time=time.time() - start_time,
            confidence_level=config.confidence_level,
        )
        logger.info(
            f"Ruined {ruin_count:,} of {config.n_trials:,} trials "
            f"({results.ruin_probability:.2%}) in {results.execution_time:.2f}s"
        )
        return results

    def _run_sequential(self, config: RuinSimulationConfig, rng: RandomSource) -> np.ndarray:
        ruin_steps = np.zeros(config.n_trials, dtype=np.int64)
        iterator = range(config.n_trials)
        if config.progress_bar:
            iterator = tqdm(iterator, desc="Ruin trials")
        for trial in iterator:
            ruin_steps[trial] = _ruin_step(self.sampler, config.initial_wealth, config.steps, rng)
        return ruin_steps

    def _create_chunks(
        self, config: RuinSimulationConfig
    ) -> List[Tuple[AliasSampler, float, int, int, NumpyRandomSource]]:
        sizes = [
            min(config.chunk_size, config.n_trials - start)
            for start in range(0, config.n_trials, config.chunk_size)
        ]
        sources = spawn_sources(config.seed, len(sizes))
        return [
            (self.sampler, config.initial_wealth, config.steps, size, source)
            for size, source in zip(sizes, sources)
        ]

    def _run_parallel(self, config: RuinSimulationConfig) -> np.ndarray:
        chunks = self._create_chunks(config)
        logger.debug(f"Dispatching {len(chunks)} chunks to worker processes")

        results: List[Optional[np.ndarray]] = [None] * len(chunks)
        with ProcessPoolExecutor(max_workers=config.n_workers) as executor:
            futures = {executor.submit(_run_chunk, chunk): i for i, chunk in enumerate(chunks)}

            with tqdm(
                total=len(chunks), desc="Ruin chunks", disable=not config.progress_bar
            ) as pbar:
                for future in as_completed(futures):
                    results[futures[future]] = future.result()
                    pbar.update(1)

        return np.concatenate([r for r in results if r is not None])
