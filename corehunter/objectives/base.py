# corehunter/objectives/base.py

from dataclasses import dataclass
from typing import Iterable

import numpy as np

from ..exceptions import ValidationError


@dataclass(frozen=True)
class NormalizationRange:
    """Closed value range [lower, upper] of an objective; may be degenerate."""
    lower: float
    upper: float

    def __post_init__(self):
        lower, upper = float(self.lower), float(self.upper)
        if np.isnan(lower) or np.isnan(upper):
            raise ValidationError("Normalization bounds should be numbers.")
        if lower > upper:
            raise ValidationError(f"Lower bound {lower} exceeds upper bound {upper}.")
        object.__setattr__(self, "lower", lower)
        object.__setattr__(self, "upper", upper)

    @property
    def is_degenerate(self) -> bool:
        return self.lower == self.upper

    def as_tuple(self):
        return self.lower, self.upper


class Objective:
    """
    Evaluates a subset of accessions.

    Subclasses implement _evaluate() on a sorted array of selected indices.
    Evaluation is pure: the same subset and data always give the same value.
    """
    minimizing = False

    def evaluate(self, subset: Iterable[int], data) -> float:
        """
        Args:
            subset (Iterable[int]): Selected accession indices.
            data (CoreHunterData): Data the subset is drawn from.

        Returns:
            float: Objective value.

        Raises:
            ValueError: If the subset is empty.
            DataLookupError: If an index is out of range.
        """
        return float(self._evaluate(data.selection_array(subset), data))

    def _evaluate(self, selected: np.ndarray, data) -> float:
        raise NotImplementedError

    @property
    def is_minimizing(self) -> bool:
        return self.minimizing

    def __repr__(self):
        return f"{type(self).__name__}()"
