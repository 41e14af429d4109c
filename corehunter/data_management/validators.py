# corehunter/data_management/validators.py

"""
Validation helpers used while constructing accession datasets.

Every function either returns the validated (and normalised) content or
raises ValidationError naming the offending accession/marker. None of them
print or log; a dataset object is only created after validation succeeded.
"""

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..exceptions import ValidationError

# Tolerance on allele frequency sums
FREQUENCY_SUM_TOLERANCE = 1e-10
# Tolerance on distance matrix symmetry
SYMMETRY_TOLERANCE = 1e-10


def is_missing(value) -> bool:
    """None and NaN both denote a missing value."""
    if value is None:
        return True
    try:
        return math.isnan(value)
    except TypeError:
        return False


def validate_allele_frequencies(frequencies) -> Tuple[List[int], np.ndarray, np.ndarray]:
    """
    Validates a ragged accession x marker x allele frequency array.

    The first accession fixes the number of markers and the number of alleles
    per marker; all other accessions must match. Present frequencies must be
    non-negative and sum to at most one per (accession, marker); if no value
    is missing for a (accession, marker) pair they must sum to one.

    Args:
        frequencies: Nested sequence frequencies[i][m][a]; None or NaN means missing.

    Returns:
        tuple: (allele_counts, values, missing) where allele_counts lists the
               number of alleles per marker, values is an (n, total_alleles)
               float array with 0.0 at missing positions and missing is the
               matching boolean mask.
    """
    if frequencies is None:
        raise ValidationError("Allele frequency entries not defined.")
    n = len(frequencies)
    if n == 0:
        raise ValidationError("Empty allele frequency matrix.")

    allele_counts: Optional[List[int]] = None
    rows = []
    masks = []
    for i in range(n):
        accession_freqs = frequencies[i]
        if accession_freqs is None:
            raise ValidationError(f"Allele frequencies not defined for accession {i}.")
        if allele_counts is None:
            allele_counts = [-1] * len(accession_freqs)
        elif len(accession_freqs) != len(allele_counts):
            raise ValidationError(
                f"All accessions should have the same number of markers. "
                f"Expected: {len(allele_counts)}, accession {i} has {len(accession_freqs)}."
            )
        row = []
        mask = []
        for m, marker_freqs in enumerate(accession_freqs):
            if marker_freqs is None:
                raise ValidationError(f"Allele frequencies not defined for accession {i} at marker {m}.")
            if allele_counts[m] == -1:
                if len(marker_freqs) == 0:
                    raise ValidationError(f"Marker {m} has no alleles.")
                allele_counts[m] = len(marker_freqs)
            elif len(marker_freqs) != allele_counts[m]:
                raise ValidationError(
                    f"Number of alleles per marker should be consistent across all accessions. "
                    f"Marker {m}: expected {allele_counts[m]}, accession {i} has {len(marker_freqs)}."
                )
            for a, f in enumerate(marker_freqs):
                if is_missing(f):
                    row.append(0.0)
                    mask.append(True)
                    continue
                try:
                    f = float(f)
                except (TypeError, ValueError):
                    raise ValidationError(
                        f"Frequency {f!r} for accession {i}, marker {m}, allele {a} is not numeric."
                    ) from None
                if math.isinf(f):
                    raise ValidationError(f"Infinite frequency for accession {i}, marker {m}, allele {a}.")
                if f < 0.0:
                    raise ValidationError(
                        f"Negative frequency {f} for accession {i}, marker {m}, allele {a}."
                    )
                row.append(f)
                mask.append(False)
        rows.append(row)
        masks.append(mask)
    if not allele_counts:
        raise ValidationError("Genotype data should contain at least one marker.")

    values = np.array(rows, dtype=np.float64).reshape(n, sum(allele_counts))
    missing = np.array(masks, dtype=bool).reshape(n, sum(allele_counts))
    validate_frequency_sums(values, missing, marker_offsets(allele_counts))
    return allele_counts, values, missing


def validate_flat_frequencies(frequencies, allele_counts: Sequence[int]) -> Tuple[List[int], np.ndarray, np.ndarray]:
    """
    Validates a flat (accession x allele column) frequency table whose columns
    are grouped into markers by allele_counts. None and NaN mean missing.

    Returns:
        tuple: (allele_counts, values, missing), as validate_allele_frequencies().
    """
    counts = [int(c) for c in allele_counts]
    if not counts:
        raise ValidationError("Genotype data should contain at least one marker.")
    if any(c < 1 for c in counts):
        m = next(m for m, c in enumerate(counts) if c < 1)
        raise ValidationError(f"Marker {m} has no alleles.")
    try:
        table = np.array(frequencies, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Allele frequencies are not numeric or not rectangular: {e}") from e
    if table.ndim != 2 or table.shape[0] == 0:
        raise ValidationError("Empty allele frequency matrix.")
    if table.shape[1] != sum(counts):
        raise ValidationError(
            f"Number of frequency columns ({table.shape[1]}) does not match total number of alleles ({sum(counts)})."
        )
    if np.any(np.isinf(table)):
        i, c = np.argwhere(np.isinf(table))[0]
        raise ValidationError(f"Infinite frequency for accession {i} at column {c}.")
    missing = np.isnan(table)
    values = np.where(missing, 0.0, table)
    validate_frequency_sums(values, missing, marker_offsets(counts))
    return counts, values, missing


def marker_offsets(allele_counts: Sequence[int]) -> np.ndarray:
    """Column offsets of each marker in a flat allele table; marker m spans offsets[m]..offsets[m+1]."""
    return np.concatenate(([0], np.cumsum(allele_counts, dtype=np.intp))).astype(np.intp)


def validate_frequency_sums(values: np.ndarray, missing: np.ndarray, offsets: np.ndarray):
    """
    Checks the per (accession, marker) sum rules on a flat frequency table.

    Raises:
        ValidationError: If a value is negative, a sum exceeds one, or a sum
                         without missing values differs from one.
    """
    if np.any(values < 0):
        i, c = np.argwhere(values < 0)[0]
        m = int(np.searchsorted(offsets, c, side="right")) - 1
        raise ValidationError(f"Negative frequency {values[i, c]} for accession {i}, marker {m}.")
    starts = offsets[:-1]
    sums = np.add.reduceat(values, starts, axis=1)
    any_missing = np.add.reduceat(missing.astype(np.intp), starts, axis=1) > 0
    too_large = sums > 1.0 + FREQUENCY_SUM_TOLERANCE
    if np.any(too_large):
        i, m = np.argwhere(too_large)[0]
        raise ValidationError(f"Allele frequency sum {sums[i, m]} exceeds one for accession {i} at marker {m}.")
    incomplete = ~any_missing & (np.abs(1.0 - sums) > FREQUENCY_SUM_TOLERANCE)
    if np.any(incomplete):
        i, m = np.argwhere(incomplete)[0]
        raise ValidationError(
            f"Allele frequencies of accession {i} at marker {m} should sum to one (sum: {sums[i, m]})."
        )


def validate_marker_names(marker_names: Optional[Sequence[Optional[str]]], num_markers: int) -> List[Optional[str]]:
    if marker_names is None:
        return [None] * num_markers
    if len(marker_names) != num_markers:
        raise ValidationError(
            f"Incorrect number of marker names provided. Expected: {num_markers}, actual: {len(marker_names)}."
        )
    return list(marker_names)


def validate_allele_names(allele_names, allele_counts: Sequence[int]) -> List[List[Optional[str]]]:
    """Checks per-marker allele name lists against the allele counts; None entries are filled."""
    if allele_names is None:
        return [[None] * c for c in allele_counts]
    if len(allele_names) != len(allele_counts):
        raise ValidationError(
            f"Incorrect number of marker-allele names provided. "
            f"Expected: {len(allele_counts)}, actual: {len(allele_names)}."
        )
    checked = []
    for m, (names, count) in enumerate(zip(allele_names, allele_counts)):
        if names is None:
            checked.append([None] * count)
        elif len(names) != count:
            raise ValidationError(
                f"Incorrect number of allele names provided for marker {m}. Expected: {count}, actual: {len(names)}."
            )
        else:
            checked.append(list(names))
    return checked


def validate_allele_scores(scores, ploidy: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Validates a dosage score matrix (accession x marker).

    Returns:
        tuple: (values, missing) integer score array (0 at missing positions)
               and boolean missing mask, both of shape (n, m).
    """
    if isinstance(ploidy, bool) or not isinstance(ploidy, (int, np.integer)) or ploidy < 1:
        raise ValidationError(f"Ploidy should be a positive integer, got {ploidy!r}.")
    if scores is None:
        raise ValidationError("Allele scores are required.")
    n = len(scores)
    if n == 0:
        raise ValidationError("Empty allele score matrix.")
    m = len(scores[0]) if scores[0] is not None else 0
    values = np.zeros((n, m), dtype=np.int64)
    missing = np.zeros((n, m), dtype=bool)
    for i, row in enumerate(scores):
        if row is None or len(row) != m:
            raise ValidationError(f"Incorrect number of allele scores at row {i}. Expected: {m}.")
        for j, s in enumerate(row):
            if is_missing(s):
                missing[i, j] = True
                continue
            try:
                integral = not isinstance(s, bool) and float(s) == int(s)
            except (TypeError, ValueError, OverflowError):
                integral = False
            if not integral:
                raise ValidationError(f"Allele score at accession {i}, marker {j} is not an integer: {s!r}.")
            s = int(s)
            if not 0 <= s <= ploidy:
                raise ValidationError(
                    f"Allele score {s} at accession {i}, marker {j} outside of range [0, {ploidy}]."
                )
            values[i, j] = s
    return values, missing


def validate_distance_matrix(distances) -> np.ndarray:
    """
    Validates a full square distance matrix: symmetric, zero diagonal,
    finite and non-negative entries.

    Returns:
        np.ndarray: float64 copy of the matrix.
    """
    if distances is None:
        raise ValidationError("Distances are required.")
    try:
        matrix = np.array(distances, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Distance matrix is not numeric or not rectangular: {e}") from e
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise ValidationError(f"Distance matrix should be square, got shape {matrix.shape}.")
    if not np.all(np.isfinite(matrix)):
        i, j = np.argwhere(~np.isfinite(matrix))[0]
        raise ValidationError(f"Missing or infinite distance between accessions {i} and {j}.")
    if np.any(matrix < 0):
        i, j = np.argwhere(matrix < 0)[0]
        raise ValidationError(f"Negative distance between accessions {i} and {j}.")
    if np.any(np.diag(matrix) != 0.0):
        i = int(np.flatnonzero(np.diag(matrix))[0])
        raise ValidationError(f"Distance of accession {i} to itself should be zero.")
    asymmetric = np.abs(matrix - matrix.T) > SYMMETRY_TOLERANCE
    if np.any(asymmetric):
        i, j = np.argwhere(asymmetric)[0]
        raise ValidationError(f"Distance matrix is not symmetric at ({i}, {j}).")
    return matrix
