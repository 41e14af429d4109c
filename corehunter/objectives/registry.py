# corehunter/objectives/registry.py

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from ..exceptions import ValidationError
from .allele_objectives import (
    Coverage,
    ExpectedHeterozygosity,
    NumberEffectiveAlleles,
    ProportionNonInformativeAlleles,
    ShannonDiversity,
)
from .base import NormalizationRange, Objective
from .distance_objectives import (
    AverageAccessionToNearestEntry,
    AverageEntryToEntry,
    AverageEntryToNearestEntry,
)
from .measures import CoreHunterMeasure


class CoreHunterObjectiveType(Enum):
    AV_ENTRY_TO_NEAREST_ENTRY = ("EN", "Average entry-to-nearest-entry distance", True, False)
    AV_ACCESSION_TO_NEAREST_ENTRY = ("AN", "Average accession-to-nearest-entry distance", True, True)
    AV_ENTRY_TO_ENTRY = ("EE", "Average entry-to-entry distance", True, False)
    COVERAGE = ("CV", "Allele coverage", False, False)
    HETEROZYGOUS_LOCI = ("HE", "Expected heterozygosity", False, False)
    SHANNON_DIVERSITY = ("SH", "Shannon diversity index", False, False)
    NUMBER_EFFECTIVE_ALLELES = ("NE", "Number of effective alleles", False, False)
    PROPORTION_NON_INFORMATIVE_ALLELES = ("PN", "Proportion of non-informative alleles", False, True)

    def __init__(self, abbreviation, description, requires_measure, minimizing):
        self.abbreviation = abbreviation
        self.description = description
        self.requires_measure = requires_measure
        self.minimizing = minimizing

    @classmethod
    def from_abbreviation(cls, abbreviation: str) -> "CoreHunterObjectiveType":
        for objective_type in cls:
            if objective_type.abbreviation == abbreviation.strip().upper():
                return objective_type
        raise ValidationError(
            f"Unknown objective type '{abbreviation}'. Expected one of: {[t.abbreviation for t in cls]}."
        )

    def __str__(self):
        return self.description


DEFAULT_OBJECTIVE_TYPE = CoreHunterObjectiveType.AV_ENTRY_TO_NEAREST_ENTRY
DEFAULT_GENOTYPE_MEASURE = CoreHunterMeasure.MODIFIED_ROGERS

_DISTANCE_OBJECTIVES = {
    CoreHunterObjectiveType.AV_ENTRY_TO_NEAREST_ENTRY: AverageEntryToNearestEntry,
    CoreHunterObjectiveType.AV_ACCESSION_TO_NEAREST_ENTRY: AverageAccessionToNearestEntry,
    CoreHunterObjectiveType.AV_ENTRY_TO_ENTRY: AverageEntryToEntry,
}

_ALLELE_OBJECTIVES = {
    CoreHunterObjectiveType.COVERAGE: Coverage,
    CoreHunterObjectiveType.HETEROZYGOUS_LOCI: ExpectedHeterozygosity,
    CoreHunterObjectiveType.SHANNON_DIVERSITY: ShannonDiversity,
    CoreHunterObjectiveType.NUMBER_EFFECTIVE_ALLELES: NumberEffectiveAlleles,
    CoreHunterObjectiveType.PROPORTION_NON_INFORMATIVE_ALLELES: ProportionNonInformativeAlleles,
}


@dataclass(frozen=True)
class CoreHunterObjective:
    """
    Describes one objective of a sampling run.

    Attributes:
        objective_type (CoreHunterObjectiveType): What is optimized.
        measure (CoreHunterMeasure, optional): Distance measure, required for distance based types.
        weight (float): Non-negative weight in a weighted combination.
        normalization_range (NormalizationRange, optional): Fixed range used for rescaling.
    """
    objective_type: CoreHunterObjectiveType
    measure: Optional[CoreHunterMeasure] = None
    weight: float = 1.0
    normalization_range: Optional[NormalizationRange] = None

    def __post_init__(self):
        if self.objective_type.requires_measure and self.measure is None:
            raise ValidationError(f"Objective '{self.objective_type}' requires a distance measure.")
        if not self.objective_type.requires_measure and self.measure is not None:
            raise ValidationError(f"Objective '{self.objective_type}' does not use a distance measure.")
        if math.isnan(self.weight) or math.isinf(self.weight) or self.weight < 0:
            raise ValidationError(f"Objective weight should be a non-negative number, got {self.weight}.")

    @property
    def is_minimizing(self) -> bool:
        return self.objective_type.minimizing

    def with_range(self, normalization_range: Optional[NormalizationRange]) -> "CoreHunterObjective":
        return CoreHunterObjective(self.objective_type, self.measure, self.weight, normalization_range)

    def __str__(self):
        if self.measure is None:
            return f"{self.objective_type.abbreviation} (weight {self.weight})"
        return f"{self.objective_type.abbreviation}/{self.measure.abbreviation} (weight {self.weight})"


def create_objective(objective_type, measure=None, weight: float = 1.0,
                     min_value: Optional[float] = None, max_value: Optional[float] = None) -> CoreHunterObjective:
    """
    Creates an objective descriptor from abbreviations, e.g. ("EN", "MR").

    Args:
        objective_type (str | CoreHunterObjectiveType): Objective type or its abbreviation.
        measure (str | CoreHunterMeasure, optional): Measure or its abbreviation.
        weight (float): Weight, defaults to 1.
        min_value, max_value (float, optional): Fixed normalization range; give both or neither.
    """
    if isinstance(objective_type, str):
        objective_type = CoreHunterObjectiveType.from_abbreviation(objective_type)
    if isinstance(measure, str):
        measure = CoreHunterMeasure.from_abbreviation(measure) if measure.strip() else None
    if (min_value is None) != (max_value is None):
        raise ValidationError("Give both a minimum and a maximum for the normalization range, or neither.")
    normalization_range = None if min_value is None else NormalizationRange(min_value, max_value)
    return CoreHunterObjective(objective_type, measure, float(weight), normalization_range)


def build_objective(objective: CoreHunterObjective) -> Objective:
    """Returns the evaluator of an objective descriptor."""
    if objective.objective_type in _DISTANCE_OBJECTIVES:
        return _DISTANCE_OBJECTIVES[objective.objective_type](objective.measure)
    return _ALLELE_OBJECTIVES[objective.objective_type]()


def allowed_objectives(data) -> List[CoreHunterObjectiveType]:
    """Objective types that can be evaluated on the given data."""
    if data is None:
        return []
    types = [
        CoreHunterObjectiveType.AV_ACCESSION_TO_NEAREST_ENTRY,
        CoreHunterObjectiveType.AV_ENTRY_TO_ENTRY,
        CoreHunterObjectiveType.AV_ENTRY_TO_NEAREST_ENTRY,
    ]
    if data.has_genotypes():
        types.extend(_ALLELE_OBJECTIVES)
    return types


def allowed_measures(data, objective_type) -> List[CoreHunterMeasure]:
    """Measures that can be combined with an objective type on the given data."""
    if isinstance(objective_type, str):
        objective_type = CoreHunterObjectiveType.from_abbreviation(objective_type)
    if not objective_type.requires_measure:
        return []
    measures = []
    if data.has_genotypes():
        measures.extend([CoreHunterMeasure.MODIFIED_ROGERS, CoreHunterMeasure.CAVALLI_SFORZA_EDWARDS])
    if data.has_phenotypes():
        measures.append(CoreHunterMeasure.GOWERS)
    if data.has_distances():
        measures.append(CoreHunterMeasure.PRECOMPUTED_DISTANCE)
    return measures


def check_objective(objective: CoreHunterObjective, data):
    """
    Raises:
        ValidationError: If the objective can not be evaluated on the data.
    """
    if objective.objective_type not in allowed_objectives(data):
        raise ValidationError(f"Objective '{objective.objective_type}' requires genotypes.")
    if objective.measure is not None and objective.measure not in allowed_measures(data, objective.objective_type):
        raise ValidationError(f"Measure '{objective.measure}' is not available for this data.")


def default_objective(data) -> Optional[CoreHunterObjective]:
    """
    Entry-to-nearest-entry with weight 1, using genotypes if present, otherwise
    phenotypes, otherwise precomputed distances.
    """
    if data is None:
        return None
    if data.has_genotypes():
        return CoreHunterObjective(DEFAULT_OBJECTIVE_TYPE, DEFAULT_GENOTYPE_MEASURE)
    if data.has_phenotypes():
        return CoreHunterObjective(DEFAULT_OBJECTIVE_TYPE, CoreHunterMeasure.GOWERS)
    if data.has_distances():
        return CoreHunterObjective(DEFAULT_OBJECTIVE_TYPE, CoreHunterMeasure.PRECOMPUTED_DISTANCE)
    return None


def default_objectives(data) -> List[CoreHunterObjective]:
    """One entry-to-nearest-entry objective per available kind of data, with equal weights summing to 1."""
    if data is None:
        return []
    measures = []
    if data.has_genotypes():
        measures.append(DEFAULT_GENOTYPE_MEASURE)
    if data.has_phenotypes():
        measures.append(CoreHunterMeasure.GOWERS)
    if data.has_distances():
        measures.append(CoreHunterMeasure.PRECOMPUTED_DISTANCE)
    return [CoreHunterObjective(DEFAULT_OBJECTIVE_TYPE, m, 1.0 / len(measures)) for m in measures]
