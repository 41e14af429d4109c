# corehunter/objectives/allele_objectives.py

"""
Objectives computed from allele frequencies of the selected accessions.

Presence of an allele: the allele is absent from a subset only when every
selected accession has an observed frequency of exactly 0 for it. A missing
frequency never proves absence.

Diversity indices (expected heterozygosity, Shannon diversity, effective
number of alleles) start from the subset-average frequencies (missing
counted as 0), renormalised per marker, and are averaged over markers.
Markers whose average frequencies sum to 0 are left out of that average;
if no marker remains the value is 0.

For markers with missing values the indices therefore differ from the plain
formulas on raw averages: averages [0.5, 0.25] are scaled to [2/3, 1/3] and
give an effective number of alleles of 1.8, not 1 / (0.25 + 0.0625) = 3.2.
"""

import numpy as np
from scipy.special import entr

from ..exceptions import ValidationError
from .base import Objective


def _genotypes(data):
    if not data.has_genotypes():
        raise ValidationError("Allele based objectives require genotypes.")
    return data.genotypes


def absent_alleles(genotypes, selected: np.ndarray) -> np.ndarray:
    """Boolean mask over all allele columns, True where the allele is absent from the selection."""
    observed_zero = ~genotypes.missing[selected] & (genotypes.values[selected] == 0.0)
    return observed_zero.all(axis=0)


def _marker_distributions(genotypes, selected: np.ndarray):
    """
    Returns the renormalised average frequencies and the marker starts
    restricted to markers with a non-zero frequency sum.
    """
    averages = genotypes.values[selected].sum(axis=0) / selected.size
    starts = genotypes.offsets[:-1]
    sums = np.add.reduceat(averages, starts)
    counts = np.diff(genotypes.offsets)
    informative = sums > 0
    scale = np.repeat(np.where(informative, sums, 1.0), counts)
    return averages / scale, starts, informative


class ProportionNonInformativeAlleles(Objective):
    """Fraction of the total allele pool that is absent from the subset."""
    minimizing = True

    def _evaluate(self, selected, data):
        genotypes = _genotypes(data)
        return absent_alleles(genotypes, selected).sum() / genotypes.total_number_of_alleles


class Coverage(Objective):
    """Fraction of the total allele pool present in the subset (1 - proportion of non-informative alleles)."""

    def _evaluate(self, selected, data):
        return 1.0 - ProportionNonInformativeAlleles()._evaluate(selected, data)


class _MarkerIndex(Objective):

    def _evaluate(self, selected, data):
        q, starts, informative = _marker_distributions(_genotypes(data), selected)
        if not informative.any():
            return 0.0
        per_marker = self._per_marker(q, starts)
        return float(per_marker[informative].mean())

    def _per_marker(self, q: np.ndarray, starts: np.ndarray) -> np.ndarray:
        raise NotImplementedError


class ExpectedHeterozygosity(_MarkerIndex):
    """Average over markers of 1 - sum(q^2), q the renormalised average frequencies."""

    def _per_marker(self, q, starts):
        return 1.0 - np.add.reduceat(q * q, starts)


class ShannonDiversity(_MarkerIndex):
    """Average over markers of -sum(q ln q), q the renormalised average frequencies."""

    def _per_marker(self, q, starts):
        return np.add.reduceat(entr(q), starts)


class NumberEffectiveAlleles(_MarkerIndex):
    """Average over markers of 1 / sum(q^2), q the renormalised average frequencies."""

    def _per_marker(self, q, starts):
        homozygosity = np.add.reduceat(q * q, starts)
        with np.errstate(divide="ignore"):
            return np.where(homozygosity > 0, 1.0 / homozygosity, 0.0)
