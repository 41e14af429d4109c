# corehunter/optimization/search.py

"""
Subset optimizer boundary and the random descent implementation.

An optimizer receives an objective (anything with evaluate(subset, data) and
is_minimizing), the data, the subset size and stop conditions, and returns the
best subset it found together with its value.
"""

import logging
import time
from dataclasses import dataclass
from typing import FrozenSet, Optional, Protocol

import numpy as np

from ..exceptions import OptimizationError, ValidationError
from .listeners import CoreHunterListener

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StopConditions:
    """
    When a search run stops. At least one condition is required.

    Attributes:
        time_limit (float, optional): Seconds since the start of the run.
        max_time_without_improvement (float, optional): Seconds since the last improvement.
        max_steps (int, optional): Number of evaluated neighbours.
    """
    time_limit: Optional[float] = None
    max_time_without_improvement: Optional[float] = None
    max_steps: Optional[int] = None

    def __post_init__(self):
        if self.time_limit is None and self.max_time_without_improvement is None and self.max_steps is None:
            raise ValidationError("At least one stop condition is required.")
        for name in ("time_limit", "max_time_without_improvement", "max_steps"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValidationError(f"{name} must be positive, got {value}.")


@dataclass(frozen=True)
class SearchResult:
    subset: FrozenSet[int]
    value: float
    steps: int = 0
    runtime: float = 0.0


class SubsetOptimizer(Protocol):

    def optimize(self, objective, data, subset_size: int, stop_conditions: StopConditions,
                 listener: Optional[CoreHunterListener] = None, name: str = "search") -> SearchResult:
        ...


class RandomDescent:
    """
    Random descent over fixed-size subsets.

    Starts from a random subset; every step swaps one random selected
    accession with one random unselected accession and keeps the swap only
    if it strictly improves the objective.
    """

    def __init__(self, seed=None):
        """
        Args:
            seed (int | np.random.SeedSequence | np.random.Generator, optional): Seed of the random generator.
        """
        self.seed = seed

    def optimize(self, objective, data, subset_size: int, stop_conditions: StopConditions,
                 listener: Optional[CoreHunterListener] = None, name: str = "search") -> SearchResult:
        n = data.size
        if not 1 <= subset_size <= n:
            raise OptimizationError(f"No subset of size {subset_size} exists for {n} accessions.")
        listener = listener or CoreHunterListener()
        rng = np.random.default_rng(self.seed)
        minimizing = objective.is_minimizing

        permutation = rng.permutation(n)
        selected = permutation[:subset_size].copy()
        unselected = permutation[subset_size:].copy()
        best_value = objective.evaluate(frozenset(selected.tolist()), data)
        if np.isnan(best_value):
            raise OptimizationError(f"Objective {objective!r} evaluated to NaN.")

        listener.search_started(name)
        start = last_improvement = time.monotonic()
        steps = 0
        listener.new_best_solution(name, best_value, steps)
        while unselected.size > 0:
            now = time.monotonic()
            if stop_conditions.time_limit is not None and now - start >= stop_conditions.time_limit:
                break
            if (stop_conditions.max_time_without_improvement is not None
                    and now - last_improvement >= stop_conditions.max_time_without_improvement):
                break
            if stop_conditions.max_steps is not None and steps >= stop_conditions.max_steps:
                break
            steps += 1
            i = rng.integers(subset_size)
            j = rng.integers(unselected.size)
            selected[i], unselected[j] = unselected[j], selected[i]
            value = objective.evaluate(frozenset(selected.tolist()), data)
            if value < best_value if minimizing else value > best_value:
                best_value = value
                last_improvement = time.monotonic()
                listener.new_best_solution(name, best_value, steps)
            else:
                selected[i], unselected[j] = unselected[j], selected[i]

        result = SearchResult(frozenset(selected.tolist()), float(best_value), steps, time.monotonic() - start)
        listener.search_stopped(name, result)
        logger.debug("%s finished: value %.6f after %d steps", name, result.value, steps)
        return result
