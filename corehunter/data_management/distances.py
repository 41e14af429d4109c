# corehunter/data_management/distances.py

from typing import Optional, Sequence

import numpy as np
from scipy.spatial.distance import squareform

from ..exceptions import ValidationError
from .data_structures import AccessionData, AccessionHeader, read_only
from .phenotypes import PhenotypeData
from .validators import validate_distance_matrix

DISTANCE_DATA_NAME = "Precomputed distance matrix"


class DistanceMatrixData(AccessionData):
    """
    Precomputed pairwise distances between accessions.
    Only the condensed upper triangle is stored.
    """

    def __init__(self, distances,
                 headers: Optional[Sequence[Optional[AccessionHeader]]] = None,
                 name: str = DISTANCE_DATA_NAME):
        matrix = validate_distance_matrix(distances)
        super().__init__(name, matrix.shape[0], headers)
        self._condensed = read_only(squareform(matrix, checks=False))

    @property
    def condensed(self) -> np.ndarray:
        return self._condensed

    def get_distance(self, first: int, second: int) -> float:
        self.check_index(first)
        self.check_index(second)
        if first == second:
            return 0.0
        i, j = min(first, second), max(first, second)
        n = self.size
        return float(self._condensed[n * i - i * (i + 1) // 2 + (j - i - 1)])

    def to_matrix(self) -> np.ndarray:
        """Returns the full square distance matrix (a new array)."""
        if self.size == 1:
            return np.zeros((1, 1))
        return squareform(self._condensed)


def gower_distance_matrix(data: PhenotypeData) -> np.ndarray:
    """
    Computes Gower's distance between all pairs of accessions.

    Per feature, numeric scales contribute |x - y| / range (0 when the range
    is 0) and nominal scales contribute 0 for equal and 1 for different
    values. Features missing for either accession are skipped; the distance
    is the mean over the remaining features, or 0 if none remain.

    Args:
        data (PhenotypeData): Phenotype table.

    Returns:
        np.ndarray: Symmetric (n x n) matrix with zero diagonal.
    """
    n = data.size
    total = np.zeros((n, n))
    comparable = np.zeros((n, n))
    for j, feature in enumerate(data.features):
        if feature.scale.is_numeric:
            x = data.numeric_values(j)
            valid = ~np.isnan(x)
            if feature.range:
                diff = np.abs(x[:, None] - x[None, :]) / feature.range
            else:
                diff = np.zeros((n, n))
        else:
            codes = data.category_codes(j)
            valid = codes >= 0
            diff = (codes[:, None] != codes[None, :]).astype(np.float64)
        both = valid[:, None] & valid[None, :]
        total += np.where(both, diff, 0.0)
        comparable += both
    with np.errstate(invalid="ignore", divide="ignore"):
        distances = np.where(comparable > 0, total / comparable, 0.0)
    np.fill_diagonal(distances, 0.0)
    return distances


def create_gower_distance_data(data: PhenotypeData, name: Optional[str] = None) -> DistanceMatrixData:
    """Wraps the Gower distances of a phenotype table as precomputed distance data."""
    if data is None:
        raise ValidationError("Phenotype data is required.")
    return DistanceMatrixData(gower_distance_matrix(data), data.headers, name or f"Gower distances ({data.name})")
