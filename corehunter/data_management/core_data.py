# corehunter/data_management/core_data.py

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Hashable, Optional

import numpy as np

from ..exceptions import ValidationError
from .data_structures import AccessionData, read_only
from .distances import DistanceMatrixData
from .genotypes import GenotypeFrequencyData
from .phenotypes import PhenotypeData

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DataCapabilities:
    """Which kinds of data a CoreHunterData instance carries."""
    genotypes: bool = False
    phenotypes: bool = False
    distances: bool = False


class CoreHunterData(AccessionData):
    """
    Combines genotypes, phenotypes and precomputed distances over one set of
    accessions. At least one table is required; tables given together must
    have the same size and the same identifiers at every position.

    Derived distance matrices are computed once per key and cached; the cache
    is shared between threads and guarded by a lock.
    """

    def __init__(self, genotypes: Optional[GenotypeFrequencyData] = None,
                 phenotypes: Optional[PhenotypeData] = None,
                 distances: Optional[DistanceMatrixData] = None,
                 name: str = "Core Hunter data"):
        tables = [t for t in (genotypes, phenotypes, distances) if t is not None]
        if not tables:
            raise ValidationError("At least one of genotypes, phenotypes or distances is required.")
        reference = tables[0]
        for table in tables[1:]:
            if table.size != reference.size:
                raise ValidationError(
                    f"Data sizes do not match: '{reference.name}' has {reference.size} accessions, "
                    f"'{table.name}' has {table.size}."
                )
            if table.identifiers != reference.identifiers:
                position = next(i for i, (a, b) in enumerate(zip(reference.identifiers, table.identifiers)) if a != b)
                raise ValidationError(
                    f"Accession identifiers of '{reference.name}' and '{table.name}' differ at position {position}."
                )
        super().__init__(name, reference.size, reference.headers)
        self._genotypes = genotypes
        self._phenotypes = phenotypes
        self._distances = distances
        self._capabilities = DataCapabilities(genotypes is not None, phenotypes is not None, distances is not None)
        self._cache = {}
        self._cache_lock = threading.Lock()

    @property
    def genotypes(self) -> Optional[GenotypeFrequencyData]:
        return self._genotypes

    @property
    def phenotypes(self) -> Optional[PhenotypeData]:
        return self._phenotypes

    @property
    def distances(self) -> Optional[DistanceMatrixData]:
        return self._distances

    @property
    def capabilities(self) -> DataCapabilities:
        return self._capabilities

    def has_genotypes(self) -> bool:
        return self._capabilities.genotypes

    def has_phenotypes(self) -> bool:
        return self._capabilities.phenotypes

    def has_distances(self) -> bool:
        return self._capabilities.distances

    def cached_matrix(self, key: Hashable, compute: Callable[[], np.ndarray]) -> np.ndarray:
        """
        Returns the matrix cached under key, computing it on first use.
        The returned array is read-only.
        """
        with self._cache_lock:
            matrix = self._cache.get(key)
            if matrix is None:
                logger.debug("Computing %s matrix for %d accessions", key, self.size)
                matrix = read_only(compute())
                self._cache[key] = matrix
            return matrix

    def get_summary(self) -> dict:
        summary = super().get_summary()
        summary["capabilities"] = self._capabilities
        return summary
