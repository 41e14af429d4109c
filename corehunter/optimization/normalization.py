# corehunter/optimization/normalization.py

"""
Pareto-bound normalization of objectives.

One preliminary search per objective approximates the subset that is best
for that objective alone. Evaluating every objective on every preliminary
optimum gives a cross-evaluation matrix V with V[o][p] = objective o on the
optimum of objective p. A maximized objective then ranges from the minimum
of its row (its Pareto minimum) up to V[o][o]; a minimized objective from
V[o][o] up to the maximum of its row.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, List, Optional, Sequence

import numpy as np

from ..exceptions import OptimizationError
from ..objectives.base import NormalizationRange, Objective
from .listeners import CoreHunterListener
from .search import RandomDescent, SearchResult, StopConditions

logger = logging.getLogger(__name__)


def cross_evaluate(objectives: Sequence[Objective], subsets: Sequence, data) -> np.ndarray:
    """Returns V with V[o][p] = objectives[o] evaluated on subsets[p]."""
    return np.array([[objective.evaluate(subset, data) for subset in subsets] for objective in objectives])


def ranges_from_matrix(values: np.ndarray, minimizing: Sequence[bool]) -> List[NormalizationRange]:
    ranges = []
    for o, is_minimizing in enumerate(minimizing):
        own = values[o, o]
        if is_minimizing:
            ranges.append(NormalizationRange(own, max(own, values[o].max())))
        else:
            ranges.append(NormalizationRange(min(own, values[o].min()), own))
    return ranges


class NormalizationEngine:
    """
    Runs the preliminary searches concurrently, one worker thread per
    objective, and derives the normalization ranges once all have finished.
    """

    def __init__(self, stop_conditions: StopConditions,
                 seed_sequence: Optional[np.random.SeedSequence] = None,
                 listener: Optional[CoreHunterListener] = None,
                 optimizer_factory: Callable = RandomDescent):
        self.stop_conditions = stop_conditions
        self.seed_sequence = seed_sequence if seed_sequence is not None else np.random.SeedSequence()
        self.listener = listener or CoreHunterListener()
        self.optimizer_factory = optimizer_factory
        self._seed_lock = threading.Lock()

    def _spawn_seeds(self, count: int):
        with self._seed_lock:
            return self.seed_sequence.spawn(count)

    def optimize_each(self, objectives: Sequence[Objective], data, subset_size: int) -> List[SearchResult]:
        """
        Runs one search per objective and waits for all of them.

        Raises:
            OptimizationError: If any run fails or finds no subset.
        """
        seeds = self._spawn_seeds(len(objectives))
        with ThreadPoolExecutor(max_workers=len(objectives), thread_name_prefix="normalization") as executor:
            futures = [
                executor.submit(
                    self.optimizer_factory(seed).optimize,
                    objective, data, subset_size, self.stop_conditions, self.listener,
                    f"Normalization run {o + 1}/{len(objectives)}",
                )
                for o, (objective, seed) in enumerate(zip(objectives, seeds))
            ]
            wait(futures)
        results = []
        for o, future in enumerate(futures):
            error = future.exception()
            if error is not None:
                raise OptimizationError(f"Preliminary search for objective {o} failed: {error}") from error
            result = future.result()
            if result is None or not result.subset:
                raise OptimizationError(f"Preliminary search for objective {o} found no feasible subset.")
            results.append(result)
        return results

    def normalize(self, objectives: Sequence[Objective], data, subset_size: int) -> List[NormalizationRange]:
        logger.info("Normalizing %d objectives for subsets of size %d", len(objectives), subset_size)
        results = self.optimize_each(objectives, data, subset_size)
        values = cross_evaluate(objectives, [r.subset for r in results], data)
        ranges = ranges_from_matrix(values, [o.is_minimizing for o in objectives])
        for objective, normalization_range in zip(objectives, ranges):
            logger.info("Normalization range of %r: [%.6f, %.6f]",
                        objective, normalization_range.lower, normalization_range.upper)
        return ranges
