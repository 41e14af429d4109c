# corehunter/api.py

"""
Flat functional interface for scripting and foreign-language bindings.

Accession indices are 0-based. Missing values may be given as None or NaN;
exported frequency tables use NaN. Time arguments are in seconds; None or a
non-positive value means "not set".
"""

from typing import List, Optional, Sequence

import numpy as np

from .data_management.core_data import CoreHunterData
from .data_management.data_structures import AccessionData, create_headers
from .data_management.distances import DistanceMatrixData
from .data_management import genotypes as _genotypes
from .data_management.genotypes import BiAllelicGenotypeData, GenotypeFrequencyData
from .data_management import io_handlers
from .data_management.io_handlers import infer_file_type
from .data_management.phenotypes import PhenotypeData
from .exceptions import ValidationError
from .objectives import registry
from .objectives.measures import CoreHunterMeasure
from .objectives.registry import CoreHunterObjective, CoreHunterObjectiveType
from .optimization.core_hunter import CoreHunter, CoreHunterArguments
from .optimization.listeners import LoggingListener

__all__ = [
    "get_ids", "get_names", "get_ids_from_indices", "get_indices_from_ids",
    "read_distance_matrix_data", "create_distance_matrix_data",
    "read_genotype_data", "create_default_genotype_data", "create_biparental_genotype_data",
    "create_frequency_genotype_data", "get_alleles", "get_marker_names", "get_allele_frequencies",
    "read_phenotype_data", "get_ranges",
    "create_objective", "create_arguments", "create_default_objectives", "create_default_objective",
    "get_allowed_objectives", "get_allowed_measures",
    "get_normalization_ranges", "sample_core", "evaluate_core", "infer_file_type",
]


# all data

def get_ids(data: AccessionData) -> List[Optional[str]]:
    return data.identifiers


def get_names(data: AccessionData) -> List[Optional[str]]:
    return data.names


def get_ids_from_indices(data: AccessionData, indices: Sequence[int]) -> List[Optional[str]]:
    identifiers = []
    for i in indices:
        header = data.get_header(int(i))
        identifiers.append(header.identifier if header is not None else None)
    return identifiers


def get_indices_from_ids(data: AccessionData, ids: Sequence[str]) -> List[int]:
    return [data.index_of(identifier) for identifier in ids]


# distance matrix data

def read_distance_matrix_data(file_path) -> DistanceMatrixData:
    return io_handlers.read_distance_data(file_path)


def create_distance_matrix_data(distances, ids: Sequence[str], names: Optional[Sequence[str]] = None) -> DistanceMatrixData:
    if distances is None:
        raise ValidationError("Distances are required.")
    if ids is None:
        raise ValidationError("Ids are required.")
    return DistanceMatrixData(distances, create_headers(ids, names, size=len(distances)))


# genotype data

def read_genotype_data(file_path, genotype_format: str = "default") -> GenotypeFrequencyData:
    return io_handlers.read_genotype_data(file_path, genotype_format)


def create_default_genotype_data(alleles, ids, names=None, column_names=None) -> GenotypeFrequencyData:
    return _genotypes.create_default_genotype_data(alleles, ids, names, column_names)


def create_biparental_genotype_data(allele_scores, ids, names=None, marker_names=None) -> BiAllelicGenotypeData:
    if allele_scores is None or len(allele_scores) == 0:
        raise ValidationError("Allele scores are required.")
    if ids is None:
        raise ValidationError("Ids are required.")
    return BiAllelicGenotypeData(allele_scores, create_headers(ids, names, size=len(allele_scores)), marker_names)


def create_frequency_genotype_data(frequencies, ids, names=None, column_names=None,
                                   allele_names=None) -> GenotypeFrequencyData:
    return _genotypes.create_frequency_genotype_data(frequencies, ids, names, column_names, allele_names)


def get_alleles(data: GenotypeFrequencyData) -> List[List[Optional[str]]]:
    return data.get_alleles()


def get_marker_names(data: GenotypeFrequencyData) -> List[Optional[str]]:
    return data.get_marker_names()


def get_allele_frequencies(data: GenotypeFrequencyData) -> np.ndarray:
    return data.get_allele_frequencies()


# phenotype data

def read_phenotype_data(file_path) -> PhenotypeData:
    return io_handlers.read_phenotype_data(file_path)


def get_ranges(data: PhenotypeData) -> List[Optional[float]]:
    return data.get_ranges()


# arguments

def create_objective(objective_type: str, measure: Optional[str] = None, weight: float = 1.0,
                     min_value: Optional[float] = None, max_value: Optional[float] = None) -> CoreHunterObjective:
    return registry.create_objective(objective_type, measure, weight, min_value, max_value)


def create_arguments(data: CoreHunterData, size: int, objectives: Optional[Sequence[CoreHunterObjective]] = None,
                     normalize: bool = True) -> CoreHunterArguments:
    return CoreHunterArguments(data, size, None if objectives is None else list(objectives), normalize)


def create_default_objectives(data: CoreHunterData) -> List[CoreHunterObjective]:
    return registry.default_objectives(data)


def create_default_objective(data: CoreHunterData) -> Optional[CoreHunterObjective]:
    return registry.default_objective(data)


def get_allowed_objectives(data: CoreHunterData) -> List[CoreHunterObjectiveType]:
    return registry.allowed_objectives(data)


def get_allowed_measures(data: CoreHunterData, objective_type) -> List[CoreHunterMeasure]:
    return registry.allowed_measures(data, objective_type)


# execution

def _seconds(value: Optional[float]) -> Optional[float]:
    return value if value is not None and value > 0 else None


def _executor(mode, time_limit, max_time_without_improvement, seed, silent=True) -> CoreHunter:
    return CoreHunter(mode, _seconds(time_limit), _seconds(max_time_without_improvement),
                      listener=None if silent else LoggingListener(), seed=seed)


def get_normalization_ranges(arguments: CoreHunterArguments, mode: str = "default",
                             time_limit: Optional[float] = None,
                             max_time_without_improvement: Optional[float] = None,
                             seed: Optional[int] = None) -> np.ndarray:
    """
    Returns the normalization ranges of all objectives as an (objectives x 2)
    array of lower and upper bounds.
    """
    ranges = _executor(mode, time_limit, max_time_without_improvement, seed).normalize(arguments)
    return np.array([r.as_tuple() for r in ranges])


def sample_core(arguments: CoreHunterArguments, mode: str = "default",
                time_limit: Optional[float] = None,
                max_time_without_improvement: Optional[float] = None,
                silent: bool = True, seed: Optional[int] = None) -> List[int]:
    """Samples a core collection and returns the sorted indices of the selected accessions."""
    core = _executor(mode, time_limit, max_time_without_improvement, seed, silent).execute(arguments)
    return sorted(core)


def evaluate_core(selected: Sequence[int], data: CoreHunterData, objective: CoreHunterObjective) -> float:
    return CoreHunter().evaluate(selected, data, objective)
