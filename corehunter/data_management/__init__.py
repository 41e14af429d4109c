# corehunter data_management package

from .data_structures import AccessionData, AccessionHeader, create_headers
from .genotypes import (
    BiAllelicGenotypeData,
    GenotypeFrequencyData,
    create_default_genotype_data,
    create_frequency_genotype_data,
    infer_marker_names,
)
from .phenotypes import DataType, Feature, PhenotypeData, ScaleType
from .distances import DistanceMatrixData, create_gower_distance_data, gower_distance_matrix
from .core_data import CoreHunterData, DataCapabilities
from .io_handlers import (
    FileType,
    GenotypeFormat,
    infer_file_type,
    read_distance_data,
    read_genotype_data,
    read_phenotype_data,
    write_distance_data,
    write_genotype_data,
    write_phenotype_data,
)
from .repository import CoreHunterDataType, Dataset, DatasetRepository

__all__ = [
    "AccessionData",
    "AccessionHeader",
    "create_headers",
    "BiAllelicGenotypeData",
    "GenotypeFrequencyData",
    "create_default_genotype_data",
    "create_frequency_genotype_data",
    "infer_marker_names",
    "DataType",
    "Feature",
    "PhenotypeData",
    "ScaleType",
    "DistanceMatrixData",
    "create_gower_distance_data",
    "gower_distance_matrix",
    "CoreHunterData",
    "DataCapabilities",
    "FileType",
    "GenotypeFormat",
    "infer_file_type",
    "read_distance_data",
    "read_genotype_data",
    "read_phenotype_data",
    "write_distance_data",
    "write_genotype_data",
    "write_phenotype_data",
    "CoreHunterDataType",
    "Dataset",
    "DatasetRepository",
]
