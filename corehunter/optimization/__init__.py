# corehunter optimization package

from .listeners import CoreHunterListener, LoggingListener
from .search import RandomDescent, SearchResult, StopConditions, SubsetOptimizer
from .weighted import WeightedComponent, WeightedObjective, rescale
from .normalization import NormalizationEngine, cross_evaluate, ranges_from_matrix
from .core_hunter import CoreHunter, CoreHunterArguments

__all__ = [
    "CoreHunterListener",
    "LoggingListener",
    "RandomDescent",
    "SearchResult",
    "StopConditions",
    "SubsetOptimizer",
    "WeightedComponent",
    "WeightedObjective",
    "rescale",
    "NormalizationEngine",
    "cross_evaluate",
    "ranges_from_matrix",
    "CoreHunter",
    "CoreHunterArguments",
]
