# corehunter/objectives/distance_objectives.py

import numpy as np

from .base import Objective
from .measures import CoreHunterMeasure, distance_matrix


class DistanceObjective(Objective):
    """Objective computed from the pairwise distances of one measure."""

    def __init__(self, measure: CoreHunterMeasure):
        self.measure = measure

    def _evaluate(self, selected: np.ndarray, data) -> float:
        return self._from_matrix(distance_matrix(data, self.measure), selected)

    def _from_matrix(self, distances: np.ndarray, selected: np.ndarray) -> float:
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}({self.measure.abbreviation})"


class AverageEntryToEntry(DistanceObjective):
    """Mean distance over all unordered pairs of selected accessions; 0 for a single accession."""

    def _from_matrix(self, distances, selected):
        k = selected.size
        if k < 2:
            return 0.0
        block = distances[np.ix_(selected, selected)]
        return float(np.triu(block, 1).sum() / (k * (k - 1) / 2))


class AverageEntryToNearestEntry(DistanceObjective):
    """Mean distance from each selected accession to the closest other selected one; 0 for a single accession."""

    def _from_matrix(self, distances, selected):
        if selected.size < 2:
            return 0.0
        block = np.array(distances[np.ix_(selected, selected)])
        np.fill_diagonal(block, np.inf)
        return float(block.min(axis=1).mean())


class AverageAccessionToNearestEntry(DistanceObjective):
    """
    Mean distance from every accession in the collection to the closest
    selected accession. Selected accessions contribute 0. Lower values mean
    a more representative subset.
    """
    minimizing = True

    def _from_matrix(self, distances, selected):
        return float(distances[:, selected].min(axis=1).mean())
