# corehunter objectives package

from .base import NormalizationRange, Objective
from .measures import CoreHunterMeasure, distance_matrix
from .distance_objectives import (
    AverageAccessionToNearestEntry,
    AverageEntryToEntry,
    AverageEntryToNearestEntry,
)
from .allele_objectives import (
    Coverage,
    ExpectedHeterozygosity,
    NumberEffectiveAlleles,
    ProportionNonInformativeAlleles,
    ShannonDiversity,
)
from .registry import (
    CoreHunterObjective,
    CoreHunterObjectiveType,
    allowed_measures,
    allowed_objectives,
    build_objective,
    create_objective,
    default_objective,
    default_objectives,
)

__all__ = [
    "NormalizationRange",
    "Objective",
    "CoreHunterMeasure",
    "distance_matrix",
    "AverageAccessionToNearestEntry",
    "AverageEntryToEntry",
    "AverageEntryToNearestEntry",
    "Coverage",
    "ExpectedHeterozygosity",
    "NumberEffectiveAlleles",
    "ProportionNonInformativeAlleles",
    "ShannonDiversity",
    "CoreHunterObjective",
    "CoreHunterObjectiveType",
    "allowed_measures",
    "allowed_objectives",
    "build_objective",
    "create_objective",
    "default_objective",
    "default_objectives",
]
