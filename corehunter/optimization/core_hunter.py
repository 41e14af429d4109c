# corehunter/optimization/core_hunter.py

import logging
import threading
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional

import numpy as np

from ..config import CoreHunterSettings, ExecutionMode
from ..data_management.core_data import CoreHunterData
from ..exceptions import ValidationError
from ..objectives.base import NormalizationRange
from ..objectives.registry import CoreHunterObjective, build_objective, check_objective, default_objectives
from .listeners import CoreHunterListener
from .normalization import NormalizationEngine
from .search import RandomDescent, SearchResult, StopConditions
from .weighted import WeightedComponent, WeightedObjective

logger = logging.getLogger(__name__)


@dataclass
class CoreHunterArguments:
    """
    Input of a sampling run.

    Attributes:
        data (CoreHunterData): Data to sample from.
        subset_size (int): Core size, between 2 and the number of accessions.
        objectives (list[CoreHunterObjective]): Defaults to default_objectives(data).
        normalize (bool): Whether multiple objectives are normalized before weighting.
    """
    data: CoreHunterData
    subset_size: int
    objectives: List[CoreHunterObjective] = None
    normalize: bool = True

    def __post_init__(self):
        if self.data is None:
            raise ValidationError("Data is required.")
        if not 2 <= self.subset_size <= self.data.size:
            raise ValidationError(
                f"Subset size should be between 2 and the number of accessions ({self.data.size}), "
                f"got {self.subset_size}."
            )
        if self.objectives is None:
            self.objectives = default_objectives(self.data)
        self.objectives = list(self.objectives)
        if not self.objectives:
            raise ValidationError("At least one objective is required.")
        for objective in self.objectives:
            check_objective(objective, self.data)
        if sum(o.weight for o in self.objectives) <= 0:
            raise ValidationError("At least one objective should have a positive weight.")


class CoreHunter:
    """
    Samples core collections with random descent.

    A single objective is optimized directly. Multiple objectives are combined
    into a WeightedObjective; when the arguments ask for normalization, each
    objective without a fixed range is rescaled with the range found by
    NormalizationEngine.
    """

    def __init__(self, mode=ExecutionMode.DEFAULT,
                 time_limit: Optional[float] = None,
                 max_time_without_improvement: Optional[float] = None,
                 listener: Optional[CoreHunterListener] = None,
                 seed: Optional[int] = None,
                 max_steps: Optional[int] = None):
        if isinstance(mode, str):
            mode = ExecutionMode.from_string(mode)
        self.mode = mode
        self.time_limit = time_limit
        self.max_time_without_improvement = max_time_without_improvement
        self.max_steps = max_steps
        self.listener = listener or CoreHunterListener()
        self._seed_sequence = np.random.SeedSequence(seed)
        self._seed_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Optional[CoreHunterSettings] = None,
                      listener: Optional[CoreHunterListener] = None) -> "CoreHunter":
        """Creates an executor from settings, read from the environment when omitted."""
        if settings is None:
            settings = CoreHunterSettings.from_environment()
        return cls(settings.mode, settings.time_limit, settings.max_time_without_improvement,
                   listener, settings.seed)

    @property
    def stop_conditions(self) -> StopConditions:
        """Configured stop conditions; without any, the idle limit of the execution mode applies."""
        idle = self.max_time_without_improvement
        if self.time_limit is None and idle is None and self.max_steps is None:
            idle = self.mode.default_max_time_without_improvement
        return StopConditions(self.time_limit, idle, self.max_steps)

    def _spawn_seed(self) -> np.random.SeedSequence:
        with self._seed_lock:
            return self._seed_sequence.spawn(1)[0]

    def _engine(self) -> NormalizationEngine:
        return NormalizationEngine(self.stop_conditions, self._spawn_seed(), self.listener)

    def normalize(self, arguments: CoreHunterArguments) -> List[NormalizationRange]:
        """
        Computes the normalization range of every objective of the arguments.

        Raises:
            OptimizationError: If a preliminary search fails.
        """
        self.listener.preprocessing_started("Normalizing objectives.")
        try:
            return self._engine().normalize(
                [build_objective(o) for o in arguments.objectives], arguments.data, arguments.subset_size
            )
        finally:
            self.listener.preprocessing_stopped("Objectives normalized.")

    def execute(self, arguments: CoreHunterArguments) -> FrozenSet[int]:
        """Samples a core and returns the selected accession indices."""
        return self.search(arguments).subset

    def search(self, arguments: CoreHunterArguments) -> SearchResult:
        """Like execute(), but returns the full search result."""
        self.listener.preprocessing_started("Preparing objectives.")
        try:
            objective = self._prepare(arguments)
        finally:
            self.listener.preprocessing_stopped("Objectives prepared.")

        logger.info("Sampling core of size %d from %d accessions with %r",
                    arguments.subset_size, arguments.data.size, objective)
        return RandomDescent(self._spawn_seed()).optimize(
            objective, arguments.data, arguments.subset_size, self.stop_conditions, self.listener, "Core sampling"
        )

    def _prepare(self, arguments: CoreHunterArguments):
        objectives = arguments.objectives
        if len(objectives) == 1:
            return build_objective(objectives[0])
        ranges = [o.normalization_range for o in objectives]
        if arguments.normalize and any(r is None for r in ranges):
            computed = self._engine().normalize(
                [build_objective(o) for o in objectives], arguments.data, arguments.subset_size
            )
            ranges = [given if given is not None else found for given, found in zip(ranges, computed)]
        return WeightedObjective([
            WeightedComponent(build_objective(o), o.weight, r) for o, r in zip(objectives, ranges)
        ])

    def evaluate(self, subset: Iterable[int], data: CoreHunterData, objective: CoreHunterObjective) -> float:
        """Evaluates a subset with one objective."""
        check_objective(objective, data)
        return build_objective(objective).evaluate(subset, data)
