# corehunter/data_management/genotypes.py

"""
Genotype tables: multi-allelic frequency data, biallelic dosage data and the
constructors for string (default format) and flat frequency input.

All variants share one internal layout: a flat (accessions x alleles) float
table, a boolean missing mask of the same shape and a per-marker offset table,
so the alleles of marker m occupy columns offsets[m]..offsets[m+1].
"""

import re
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..exceptions import DataLookupError, ValidationError
from .data_structures import AccessionData, AccessionHeader, create_headers, read_only
from .validators import (
    is_missing,
    marker_offsets,
    validate_allele_frequencies,
    validate_allele_names,
    validate_allele_scores,
    validate_flat_frequencies,
    validate_marker_names,
)

MULTI_ALLELIC_DATA_NAME = "Multi-allelic marker data"
BIALLELIC_DATA_NAME = "Biallelic marker data"
DEFAULT_DATA_NAME = "Default marker data"

_COLUMN_SUFFIX = re.compile(r"[-_.]\d+$")


class GenotypeFrequencyData(AccessionData):
    """
    Allele frequencies per accession, marker and allele.

    Frequencies can be given as a ragged nested sequence
    ``frequencies[i][m][a]`` or, when ``allele_counts`` is passed, as a flat
    (n x total_alleles) table. None or NaN denote missing values.
    """

    def __init__(self, frequencies,
                 headers: Optional[Sequence[Optional[AccessionHeader]]] = None,
                 marker_names: Optional[Sequence[Optional[str]]] = None,
                 allele_names=None,
                 name: str = MULTI_ALLELIC_DATA_NAME,
                 allele_counts: Optional[Sequence[int]] = None):
        if allele_counts is None:
            counts, values, missing = validate_allele_frequencies(frequencies)
        else:
            counts, values, missing = validate_flat_frequencies(frequencies, allele_counts)
        super().__init__(name, values.shape[0], headers)
        self._allele_counts = tuple(counts)
        self._offsets = read_only(marker_offsets(counts))
        self._values = read_only(values)
        self._missing = read_only(missing)
        self._marker_names = tuple(validate_marker_names(marker_names, len(counts)))
        self._allele_names = tuple(tuple(names) for names in validate_allele_names(allele_names, counts))

    @property
    def number_of_markers(self) -> int:
        return len(self._allele_counts)

    @property
    def total_number_of_alleles(self) -> int:
        return int(self._offsets[-1])

    @property
    def allele_counts(self) -> Tuple[int, ...]:
        return self._allele_counts

    @property
    def offsets(self) -> np.ndarray:
        """Read-only column offsets of the markers (length number_of_markers + 1)."""
        return self._offsets

    @property
    def values(self) -> np.ndarray:
        """Read-only (n x total_alleles) frequencies, 0.0 where missing."""
        return self._values

    @property
    def missing(self) -> np.ndarray:
        """Read-only (n x total_alleles) missing value mask."""
        return self._missing

    def number_of_alleles(self, marker: int) -> int:
        self._check_marker(marker)
        return self._allele_counts[marker]

    def marker_name(self, marker: int) -> Optional[str]:
        self._check_marker(marker)
        return self._marker_names[marker]

    def allele_name(self, marker: int, allele: int) -> Optional[str]:
        self._check_allele(marker, allele)
        return self._allele_names[marker][allele]

    def marker_columns(self, marker: int) -> slice:
        """Returns the column slice of the given marker in the flat table."""
        self._check_marker(marker)
        return slice(int(self._offsets[marker]), int(self._offsets[marker + 1]))

    def allele_frequency(self, index: int, marker: int, allele: int) -> Optional[float]:
        """
        Returns the frequency of an allele in one accession.

        Returns:
            float | None: None if the value is missing.
        """
        self.check_index(index)
        self._check_allele(marker, allele)
        column = self._offsets[marker] + allele
        if self._missing[index, column]:
            return None
        return float(self._values[index, column])

    def average_allele_frequency(self, ids, marker: int, allele: int) -> float:
        """
        Average frequency of an allele over the selected accessions.
        Missing values contribute 0 and the denominator is the number of selected accessions.

        Raises:
            ValueError: If the selection is empty.
        """
        self._check_allele(marker, allele)
        selected = self.selection_array(ids)
        column = self._offsets[marker] + allele
        return float(self._values[selected, column].sum() / selected.size)

    def average_frequencies(self, ids) -> np.ndarray:
        """Vectorised average_allele_frequency() over all allele columns."""
        selected = self.selection_array(ids)
        return self._values[selected].sum(axis=0) / selected.size

    def get_alleles(self) -> List[List[Optional[str]]]:
        return [list(names) for names in self._allele_names]

    def get_marker_names(self) -> List[Optional[str]]:
        return list(self._marker_names)

    def get_allele_frequencies(self) -> np.ndarray:
        """Returns a copy of the flat frequency table with NaN at missing positions."""
        return np.where(self._missing, np.nan, self._values)

    def get_summary(self) -> dict:
        summary = super().get_summary()
        summary.update({
            "markers": self.number_of_markers,
            "alleles": self.total_number_of_alleles,
            "missing_values": int(self._missing.sum()),
        })
        return summary

    def _check_marker(self, marker: int):
        if not 0 <= marker < len(self._allele_counts):
            raise DataLookupError(f"Marker index {marker} out of range [0, {len(self._allele_counts)}).")

    def _check_allele(self, marker: int, allele: int):
        self._check_marker(marker)
        if not 0 <= allele < self._allele_counts[marker]:
            raise DataLookupError(
                f"Allele index {allele} out of range [0, {self._allele_counts[marker]}) for marker {marker}."
            )


class BiAllelicGenotypeData(GenotypeFrequencyData):
    """
    Biallelic marker data given as allele dosage scores in [0, ploidy].

    A score s is stored as frequency 1 - s/ploidy for allele "0" and s/ploidy
    for allele "1"; a missing score makes both frequencies missing.
    """

    def __init__(self, scores,
                 headers: Optional[Sequence[Optional[AccessionHeader]]] = None,
                 marker_names: Optional[Sequence[Optional[str]]] = None,
                 ploidy: int = 2,
                 name: str = BIALLELIC_DATA_NAME):
        score_values, score_missing = validate_allele_scores(scores, ploidy)
        n, m = score_values.shape
        fraction = score_values / ploidy
        flat = np.empty((n, 2 * m), dtype=np.float64)
        flat[:, 0::2] = 1.0 - fraction
        flat[:, 1::2] = fraction
        flat[:, 0::2][score_missing] = np.nan
        flat[:, 1::2][score_missing] = np.nan
        super().__init__(flat, headers, marker_names, [["0", "1"]] * m, name, allele_counts=[2] * m)
        self._ploidy = ploidy
        self._scores = read_only(score_values)
        self._score_missing = read_only(score_missing)

    @property
    def ploidy(self) -> int:
        return self._ploidy

    def allele_score(self, index: int, marker: int) -> Optional[int]:
        """Returns the dosage score of an accession at a marker, None if missing."""
        self.check_index(index)
        self._check_marker(marker)
        if self._score_missing[index, marker]:
            return None
        return int(self._scores[index, marker])

    def get_allele_scores(self) -> List[List[Optional[int]]]:
        return [
            [None if self._score_missing[i, j] else int(self._scores[i, j]) for j in range(self.number_of_markers)]
            for i in range(self.size)
        ]


def infer_marker_names(column_names: Sequence[str], strip_suffix: bool = True) -> List[Tuple[str, int]]:
    """
    Groups consecutive columns into markers.

    Consecutive identical names belong to one marker. With strip_suffix,
    consecutive names that only differ in a trailing ``-<n>``, ``_<n>`` or
    ``.<n>`` suffix also belong to one marker, named after the common base.

    Returns:
        list[tuple[str, int]]: (marker name, number of columns) per marker, in column order.
    """
    markers = []
    # mode of the current group: None (single column), "same" or "suffix"
    mode = None
    previous = None
    for column in column_names:
        if column is None or str(column).strip() == "":
            raise ValidationError("Column names should not be empty.")
        column = str(column)
        base = _COLUMN_SUFFIX.sub("", column) if strip_suffix else column
        if markers and column == previous and mode in (None, "same"):
            mode = "same"
            markers[-1][1] += 1
        elif (markers and strip_suffix and column != previous and base != column
              and base == markers[-1][2] and mode in (None, "suffix")):
            mode = "suffix"
            markers[-1][0] = base
            markers[-1][1] += 1
        else:
            mode = None
            markers.append([column, 1, base])
        previous = column
    # a lone suffixed column is named after its base
    return [(base if strip_suffix else name, count) if count == 1 else (name, count)
            for name, count, base in markers]


def _group_columns(column_names: Sequence[str], num_columns: int, strip_suffix: bool = True):
    if column_names is None:
        raise ValidationError("Column names are required.")
    if len(column_names) != num_columns:
        raise ValidationError(
            f"Number of column names ({len(column_names)}) does not correspond to number of columns ({num_columns})."
        )
    return infer_marker_names(column_names, strip_suffix)


def _is_missing_allele(value) -> bool:
    return is_missing(value) or (isinstance(value, str) and value.strip() == "")


def create_default_genotype_data(alleles, ids: Sequence[Optional[str]],
                                 names: Optional[Sequence[Optional[str]]] = None,
                                 column_names: Sequence[str] = None,
                                 name: str = DEFAULT_DATA_NAME,
                                 strip_suffix: bool = True) -> GenotypeFrequencyData:
    """
    Creates genotype data from observed allele strings, one column per allele slot.

    Columns are grouped into markers with infer_marker_names(). The alleles of
    a marker are the distinct observed strings in first-seen order. The
    frequency of an allele in an accession is its number of occurrences divided
    by the number of columns of the marker. If some columns are missing, the
    frequencies of alleles not observed in the remaining columns are missing.

    Args:
        alleles: (n x columns) matrix of allele strings; None, NaN or '' is missing.
        ids (Sequence[str]): Unique accession identifiers.
        names (Sequence[str], optional): Accession names, defaults to ids.
        column_names (Sequence[str]): Column names, e.g. mk1-1, mk1-2, mk2-1, ...
        name (str): Dataset name.
        strip_suffix (bool): Whether numeric column suffixes are stripped when grouping.

    Returns:
        GenotypeFrequencyData: The converted frequency table.
    """
    if alleles is None or len(alleles) == 0:
        raise ValidationError("Empty allele matrix.")
    if ids is None:
        raise ValidationError("Ids are required.")
    n = len(alleles)
    num_columns = len(alleles[0])
    headers = create_headers(ids, names, size=n)
    markers = _group_columns(column_names, num_columns, strip_suffix)
    for i, row in enumerate(alleles):
        if len(row) != num_columns:
            raise ValidationError(f"Incorrect number of values at row {i}.")

    marker_names = []
    allele_names = []
    frequencies = [[] for _ in range(n)]
    start = 0
    for marker, num_slots in markers:
        stop = start + num_slots
        observed = {}
        for row in alleles:
            for value in row[start:stop]:
                if not _is_missing_allele(value):
                    observed.setdefault(str(value).strip(), len(observed))
        if not observed:
            raise ValidationError(f"No alleles observed for marker '{marker}'.")
        marker_names.append(marker)
        allele_names.append(list(observed))
        for i, row in enumerate(alleles):
            counts = [0] * len(observed)
            num_observed = 0
            for value in row[start:stop]:
                if not _is_missing_allele(value):
                    counts[observed[str(value).strip()]] += 1
                    num_observed += 1
            if num_observed == 0:
                frequencies[i].append([None] * len(observed))
            elif num_observed < num_slots:
                frequencies[i].append([c / num_slots if c > 0 else None for c in counts])
            else:
                frequencies[i].append([c / num_slots for c in counts])
        start = stop

    return GenotypeFrequencyData(frequencies, headers, marker_names, allele_names, name)


def create_frequency_genotype_data(frequencies, ids: Sequence[Optional[str]],
                                   names: Optional[Sequence[Optional[str]]] = None,
                                   column_names: Sequence[str] = None,
                                   allele_names: Sequence[Optional[str]] = None,
                                   name: str = MULTI_ALLELIC_DATA_NAME,
                                   strip_suffix: bool = True) -> GenotypeFrequencyData:
    """
    Creates genotype data from a flat (n x columns) frequency matrix.
    Columns are grouped into markers with infer_marker_names(); allele_names
    holds one name per column. NaN or None marks a missing frequency.
    """
    if frequencies is None or len(frequencies) == 0:
        raise ValidationError("Empty allele frequency matrix.")
    if ids is None:
        raise ValidationError("Ids are required.")
    num_columns = len(frequencies[0])
    headers = create_headers(ids, names, size=len(frequencies))
    markers = _group_columns(column_names, num_columns, strip_suffix)
    if allele_names is None:
        raise ValidationError("Allele names are required.")
    if len(allele_names) != num_columns:
        raise ValidationError("Number of allele names does not correspond to number of columns.")
    split_names = []
    start = 0
    for _, count in markers:
        split_names.append([None if is_missing(a) else a for a in allele_names[start:start + count]])
        start += count
    return GenotypeFrequencyData(
        frequencies, headers,
        marker_names=[marker for marker, _ in markers],
        allele_names=split_names,
        name=name,
        allele_counts=[count for _, count in markers],
    )
