from __future__ import annotations

import dataclasses
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from retire_core.domain.errors import CancelledError, ComputationError
from retire_core.domain.models import MarketParameters, ScenarioOutcome, SimulationConfig, UserFinancialProfile
from retire_core.services.projector import draw_scenario, project
from retire_core.services.random_variates import RandomVariateGenerator
from retire_core.services.validation import (
    clamp_simulations,
    resolve_market_params,
    validate_profile,
    validate_run_settings,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]
BatchResult = Tuple[List[ScenarioOutcome], int]


@dataclasses.dataclass(frozen=True)
class BatchRunResult:
    outcomes: List[ScenarioOutcome]
    requested: int
    executed: int
    excluded: int
    market_params: MarketParameters


def _run_batch(
    start: int,
    end: int,
    params: MarketParameters,
    profile: UserFinancialProfile,
    rng: RandomVariateGenerator,
) -> BatchResult:
    outcomes: List[ScenarioOutcome] = []
    excluded = 0
    for i in range(start, end):
        draw = draw_scenario(params, rng)
        try:
            outcomes.append(project(draw, profile, simulation_id=i + 1))
        except ComputationError as exc:
            excluded += 1
            logger.warning("Excluding scenario %d from aggregation: %s", i + 1, exc)
    return outcomes, excluded


def batch_bounds(count: int, batch_size: int) -> List[Tuple[int, int]]:
    return [(start, min(start + batch_size, count)) for start in range(0, count, batch_size)]


class SimulationBatchRunner:
    """
    Runs scenarios in fixed-size batches, in-line or on a thread pool.

    Every batch draws from its own child generator spawned from the run generator,
    so a seeded run gives the same outcomes whatever the worker count or the order
    batches finish in. The cancel event is checked at batch boundaries; a cancelled
    run raises CancelledError and returns nothing.
    """

    def __init__(
        self,
        rng: Union[RandomVariateGenerator, np.random.Generator, None] = None,
        cancel_event: Optional[threading.Event] = None,
        progress: Optional[ProgressCallback] = None,
    ):
        if isinstance(rng, np.random.Generator):
            rng = RandomVariateGenerator(rng=rng)
        self.rng = rng
        self.cancel_event = cancel_event
        self.progress = progress

    def _cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def _root_generator(self, config: SimulationConfig) -> RandomVariateGenerator:
        if self.rng is not None:
            return self.rng
        return RandomVariateGenerator(seed=config.seed)

    def _report_progress(self, done: int, total: int) -> None:
        if self.progress is not None:
            self.progress(done, total)

    def run(self, config: SimulationConfig) -> BatchRunResult:
        validate_run_settings(config)
        count = clamp_simulations(config.simulations, config.max_simulations)
        if count != config.simulations:
            logger.info("Requested %s simulations, clamped to %d", config.simulations, count)
        validate_profile(config.user_data)
        params = resolve_market_params(config.market_params)

        bounds = batch_bounds(count, config.batch_size)
        streams = self._root_generator(config).spawn(len(bounds))
        logger.info("Running %d scenarios in %d batches (workers=%d)", count, len(bounds), config.max_workers)

        if config.max_workers == 1 or len(bounds) == 1:
            results = self._run_inline(bounds, streams, params, config.user_data, count)
        else:
            results = self._run_pooled(bounds, streams, params, config.user_data, count, config.max_workers)

        outcomes: List[ScenarioOutcome] = []
        excluded = 0
        for batch_outcomes, batch_excluded in results:
            outcomes.extend(batch_outcomes)
            excluded += batch_excluded

        if not outcomes:
            raise ComputationError(f"All {count} scenarios failed; nothing to aggregate")
        if excluded:
            logger.warning("%d of %d scenarios excluded after numeric failures", excluded, count)
        logger.info("Completed %d scenarios", len(outcomes))

        return BatchRunResult(
            outcomes=outcomes,
            requested=count,
            executed=len(outcomes),
            excluded=excluded,
            market_params=params,
        )

    def _run_inline(
        self,
        bounds: Sequence[Tuple[int, int]],
        streams: Sequence[RandomVariateGenerator],
        params: MarketParameters,
        profile: UserFinancialProfile,
        count: int,
    ) -> List[BatchResult]:
        results: List[BatchResult] = []
        for (start, end), stream in zip(bounds, streams):
            if self._cancelled():
                logger.warning("Simulation cancelled at scenario %d/%d", start, count)
                raise CancelledError(completed=start, requested=count)
            results.append(_run_batch(start, end, params, profile, stream))
            logger.debug("Batch %d-%d done", start + 1, end)
            self._report_progress(end, count)
        return results

    def _run_pooled(
        self,
        bounds: Sequence[Tuple[int, int]],
        streams: Sequence[RandomVariateGenerator],
        params: MarketParameters,
        profile: UserFinancialProfile,
        count: int,
        max_workers: int,
    ) -> List[BatchResult]:
        if self._cancelled():
            raise CancelledError(completed=0, requested=count)

        by_index: Dict[int, BatchResult] = {}
        completed = 0
        workers = min(max_workers, len(bounds))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="retire-batch") as executor:
            futures = {
                executor.submit(_run_batch, start, end, params, profile, stream): idx
                for idx, ((start, end), stream) in enumerate(zip(bounds, streams))
            }
            for future in as_completed(futures):
                if self._cancelled():
                    for f in futures:
                        f.cancel()
                    logger.warning("Simulation cancelled after %d/%d scenarios", completed, count)
                    raise CancelledError(completed=completed, requested=count)
                idx = futures[future]
                by_index[idx] = future.result()
                start, end = bounds[idx]
                completed += end - start
                logger.debug("Batch %d-%d done (%d/%d)", start + 1, end, completed, count)
                self._report_progress(completed, count)

        return [by_index[idx] for idx in range(len(bounds))]
