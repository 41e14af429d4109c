# corehunter/objectives/measures.py

"""
Distance measures between accessions. Each measure yields a full (n x n)
matrix, computed once per CoreHunterData and measure and cached on the data.
"""

from enum import Enum

import numpy as np

from ..data_management.distances import gower_distance_matrix
from ..data_management.genotypes import GenotypeFrequencyData
from ..exceptions import ValidationError


class CoreHunterMeasure(Enum):
    MODIFIED_ROGERS = ("MR", "Modified Rogers distance")
    CAVALLI_SFORZA_EDWARDS = ("CE", "Cavalli-Sforza and Edwards distance")
    GOWERS = ("GD", "Gower distance")
    PRECOMPUTED_DISTANCE = ("PD", "Precomputed distance")

    def __init__(self, abbreviation, description):
        self.abbreviation = abbreviation
        self.description = description

    @classmethod
    def from_abbreviation(cls, abbreviation: str) -> "CoreHunterMeasure":
        for measure in cls:
            if measure.abbreviation == abbreviation.strip().upper():
                return measure
        raise ValidationError(
            f"Unknown measure '{abbreviation}'. Expected one of: {[m.abbreviation for m in cls]}."
        )

    def __str__(self):
        return self.description


def _genotype_terms(genotypes: GenotypeFrequencyData):
    observed = (~genotypes.missing).astype(np.float64)
    return genotypes.values, observed, genotypes.number_of_markers


def _finish(squared_sum: np.ndarray, num_markers: int) -> np.ndarray:
    distances = np.sqrt(np.clip(squared_sum, 0.0, None) / (2.0 * num_markers))
    np.fill_diagonal(distances, 0.0)
    return distances


def modified_rogers_matrix(genotypes: GenotypeFrequencyData) -> np.ndarray:
    """
    Modified Rogers distance: sqrt(sum over markers and alleles of
    (p_x - p_y)^2 / 2M). Allele terms with a missing frequency in either
    accession are skipped.
    """
    f, observed, m = _genotype_terms(genotypes)
    squared = f * f
    total = squared @ observed.T + observed @ squared.T - 2.0 * (f @ f.T)
    return _finish(total, m)


def cavalli_sforza_edwards_matrix(genotypes: GenotypeFrequencyData) -> np.ndarray:
    """
    Cavalli-Sforza and Edwards distance: sqrt(sum over markers and alleles of
    (sqrt(p_x) - sqrt(p_y))^2 / 2M), with the same missing value rule as
    modified_rogers_matrix().
    """
    f, observed, m = _genotype_terms(genotypes)
    roots = np.sqrt(f)
    total = f @ observed.T + observed @ f.T - 2.0 * (roots @ roots.T)
    return _finish(total, m)


def distance_matrix(data, measure: CoreHunterMeasure) -> np.ndarray:
    """
    Returns the (cached, read-only) distance matrix of a measure on the given data.

    Raises:
        ValidationError: If the data lacks the table the measure needs.
    """
    if measure in (CoreHunterMeasure.MODIFIED_ROGERS, CoreHunterMeasure.CAVALLI_SFORZA_EDWARDS):
        if not data.has_genotypes():
            raise ValidationError(f"{measure} requires genotypes.")
        compute = modified_rogers_matrix if measure is CoreHunterMeasure.MODIFIED_ROGERS \
            else cavalli_sforza_edwards_matrix
        return data.cached_matrix(measure, lambda: compute(data.genotypes))
    if measure is CoreHunterMeasure.GOWERS:
        if not data.has_phenotypes():
            raise ValidationError(f"{measure} requires phenotypes.")
        return data.cached_matrix(measure, lambda: gower_distance_matrix(data.phenotypes))
    if not data.has_distances():
        raise ValidationError(f"{measure} requires precomputed distances.")
    return data.cached_matrix(measure, data.distances.to_matrix)
