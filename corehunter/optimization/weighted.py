# corehunter/optimization/weighted.py

from dataclasses import dataclass
from typing import Optional, Sequence

from ..exceptions import ValidationError
from ..objectives.base import NormalizationRange, Objective


def rescale(value: float, minimizing: bool, normalization_range: Optional[NormalizationRange]) -> float:
    """
    Maps an objective value to a score where higher is better.

    With a range the score lies in [0, 1]: (v - lower) / (upper - lower) when
    maximizing, (upper - v) / (upper - lower) when minimizing, clamped; a
    degenerate range always scores 1. Without a range the score is v when
    maximizing and -v when minimizing.
    """
    if normalization_range is None:
        return -value if minimizing else value
    if normalization_range.is_degenerate:
        return 1.0
    width = normalization_range.upper - normalization_range.lower
    if minimizing:
        score = (normalization_range.upper - value) / width
    else:
        score = (value - normalization_range.lower) / width
    return min(1.0, max(0.0, score))


@dataclass(frozen=True)
class WeightedComponent:
    objective: Objective
    weight: float
    normalization_range: Optional[NormalizationRange] = None


class WeightedObjective(Objective):
    """Weighted sum of rescaled objective values. Always maximized."""
    minimizing = False

    def __init__(self, components: Sequence[WeightedComponent]):
        if not components:
            raise ValidationError("A weighted objective needs at least one component.")
        if any(c.weight < 0 for c in components):
            raise ValidationError("Weights should be non-negative.")
        self.components = tuple(components)

    def _evaluate(self, selected, data):
        return sum(
            c.weight * rescale(c.objective.evaluate(selected, data), c.objective.is_minimizing, c.normalization_range)
            for c in self.components
        )

    def __repr__(self):
        return f"WeightedObjective({', '.join(f'{c.weight}*{c.objective!r}' for c in self.components)})"
