# corehunter package initialization

import logging

from .exceptions import (
    CoreHunterError,
    DataLookupError,
    DatasetError,
    DatasetIOError,
    OptimizationError,
    ValidationError,
)
from .config import CoreHunterSettings, ExecutionMode, configure_logging
from .data_management import (
    BiAllelicGenotypeData,
    CoreHunterData,
    DatasetRepository,
    DistanceMatrixData,
    GenotypeFrequencyData,
    PhenotypeData,
)
from .objectives import CoreHunterMeasure, CoreHunterObjective, CoreHunterObjectiveType, create_objective
from .optimization import CoreHunter, CoreHunterArguments, CoreHunterListener

__all__ = [
    "CoreHunterError",
    "DataLookupError",
    "DatasetError",
    "DatasetIOError",
    "OptimizationError",
    "ValidationError",
    "CoreHunterSettings",
    "ExecutionMode",
    "configure_logging",
    "BiAllelicGenotypeData",
    "CoreHunterData",
    "DatasetRepository",
    "DistanceMatrixData",
    "GenotypeFrequencyData",
    "PhenotypeData",
    "CoreHunterMeasure",
    "CoreHunterObjective",
    "CoreHunterObjectiveType",
    "create_objective",
    "CoreHunter",
    "CoreHunterArguments",
    "CoreHunterListener",
]

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
