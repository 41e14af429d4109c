# corehunter/data_management/io_handlers.py

"""
Delimited text readers and writers for genotype, phenotype and distance data.

Every file starts with a header row whose first cell is ``ID``, optionally
followed by ``NAME``; the remaining header cells name the data columns.
Metadata rows (``MARKER`` and ``ALLELE`` for frequency genotypes, ``TYPE``,
``MIN`` and ``MAX`` for phenotypes) follow the header row and are recognised
by their first cell. Empty cells are missing values. ``.csv`` files are comma
separated, ``.txt`` files tab separated.

The ``MARKER`` row holds the 0-based marker index of every allele column.
When present it defines the marker boundaries and the header cell of the
first column of a marker is its name (empty for unnamed markers); without it
columns with identical consecutive names form one marker.
"""

import logging
import os
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

from ..exceptions import DatasetIOError, ValidationError
from .data_structures import AccessionData, create_headers
from .distances import DistanceMatrixData
from .genotypes import (
    BiAllelicGenotypeData,
    GenotypeFrequencyData,
    create_default_genotype_data,
    create_frequency_genotype_data,
)
from .phenotypes import DataType, Feature, PhenotypeData, infer_feature
from .validators import marker_offsets

logger = logging.getLogger(__name__)

ID_HEADER = "ID"
NAME_HEADER = "NAME"
MARKER_ROW = "MARKER"
ALLELE_ROW = "ALLELE"
TYPE_ROW = "TYPE"
MIN_ROW = "MIN"
MAX_ROW = "MAX"


class FileType(Enum):
    TXT = "txt"
    CSV = "csv"

    @property
    def delimiter(self) -> str:
        return "\t" if self is FileType.TXT else ","


class GenotypeFormat(Enum):
    """Layout of a genotype file."""
    DEFAULT = "default"
    FREQUENCY = "frequency"
    BIPARENTAL = "biparental"

    @classmethod
    def from_string(cls, value: str) -> "GenotypeFormat":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValidationError(
                f"Unknown genotype format '{value}'. Expected one of: {[f.value for f in cls]}."
            ) from None


def infer_file_type(file_path: str) -> FileType:
    """
    Infers the file type from the extension (.txt or .csv, case insensitive).

    Raises:
        DatasetIOError: For any other extension.
    """
    extension = os.path.splitext(str(file_path))[1].lower()
    if extension == ".txt":
        return FileType.TXT
    if extension == ".csv":
        return FileType.CSV
    raise DatasetIOError(f"Unsupported file type '{extension}' for {file_path}. Expected .txt or .csv.")


def resolve_file_type(file_path, file_type) -> FileType:
    """Returns the given file type (FileType or its name), or the type inferred from file_path if None."""
    if file_type is None:
        return infer_file_type(file_path)
    if isinstance(file_type, str):
        try:
            return FileType(file_type.strip().lower())
        except ValueError:
            raise DatasetIOError(f"Unsupported file type '{file_type}'.") from None
    return file_type


def _read_table(file_path, file_type: FileType) -> List[List[str]]:
    """Reads a delimited file into rows of stripped string cells."""
    try:
        table = pd.read_csv(file_path, sep=file_type.delimiter, header=None, dtype=str,
                            keep_default_na=False, skip_blank_lines=True)
    except FileNotFoundError as e:
        raise DatasetIOError(f"File not found: {file_path}") from e
    except pd.errors.EmptyDataError as e:
        raise DatasetIOError(f"File is empty: {file_path}") from e
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise DatasetIOError(f"Could not parse {file_path}: {e}") from e
    except OSError as e:
        raise DatasetIOError(f"Could not read {file_path}: {e}") from e
    short_rows = table.isna().any(axis=1)
    if short_rows.any():
        row = int(np.flatnonzero(short_rows.to_numpy())[0])
        raise DatasetIOError(f"Inconsistent number of columns at row {row + 1} of {file_path}.")
    return [[cell.strip() for cell in row] for row in table.itertuples(index=False, name=None)]


class _Layout:
    """Header, metadata rows and data rows of a parsed file."""

    def __init__(self, rows: List[List[str]], file_path, metadata_keys: Tuple[str, ...] = ()):
        if not rows:
            raise DatasetIOError(f"No header row in {file_path}.")
        header = rows[0]
        if header[0].upper() != ID_HEADER:
            raise DatasetIOError(f"First header cell of {file_path} should be '{ID_HEADER}', got '{header[0]}'.")
        self.has_names = len(header) > 1 and header[1].upper() == NAME_HEADER
        self.offset = 2 if self.has_names else 1
        self.columns = header[self.offset:]
        if not self.columns:
            raise DatasetIOError(f"No data columns in {file_path}.")
        self.metadata = {}
        position = 1
        while position < len(rows) and rows[position][0].upper() in metadata_keys:
            key = rows[position][0].upper()
            if key in self.metadata:
                raise DatasetIOError(f"Duplicate {key} row in {file_path}.")
            self.metadata[key] = rows[position][self.offset:]
            position += 1
        data_rows = rows[position:]
        if not data_rows:
            raise DatasetIOError(f"No data rows in {file_path}.")
        self.ids = []
        self.names = [] if self.has_names else None
        self.values = []
        for r, row in enumerate(data_rows, start=position + 1):
            if row[0] == "":
                raise DatasetIOError(f"Missing identifier at row {r} of {file_path}.")
            self.ids.append(row[0])
            if self.has_names:
                self.names.append(row[1] or None)
            self.values.append([cell if cell != "" else None for cell in row[self.offset:]])


def _parse_float(cell: Optional[str], file_path) -> float:
    if cell is None:
        return np.nan
    try:
        return float(cell)
    except ValueError:
        raise DatasetIOError(f"Invalid number '{cell}' in {file_path}.") from None


def _parse_int(cell: Optional[str], file_path) -> Optional[int]:
    if cell is None:
        return None
    try:
        return int(cell)
    except ValueError:
        try:
            value = float(cell)
        except ValueError:
            raise DatasetIOError(f"Invalid integer '{cell}' in {file_path}.") from None
        if not value.is_integer():
            raise DatasetIOError(f"Invalid integer '{cell}' in {file_path}.")
        return int(value)


def _marker_allele_counts(indices: List[str], file_path) -> List[int]:
    """Number of alleles per marker from the marker index of each column."""
    counts = []
    for c, cell in enumerate(indices):
        index = _parse_int(cell or None, file_path)
        if index is not None and index == len(counts) - 1:
            counts[-1] += 1
        elif index is not None and index == len(counts):
            counts.append(1)
        else:
            raise DatasetIOError(
                f"Invalid marker index '{cell}' in column {c + 1} of the {MARKER_ROW} row of {file_path}; "
                f"expected consecutive indices starting at 0."
            )
    return counts


def read_genotype_data(file_path, genotype_format="default", file_type=None) -> GenotypeFrequencyData:
    """
    Reads genotype data in one of the supported formats.

    Args:
        file_path (str): Path of a .txt or .csv file.
        genotype_format (str | GenotypeFormat): 'default', 'frequency' or 'biparental'.
        file_type (str | FileType, optional): Overrides the type inferred from the extension.

    Returns:
        GenotypeFrequencyData: BiAllelicGenotypeData for the biparental format.

    Raises:
        DatasetIOError: If the file can not be read or parsed.
        ValidationError: If the content violates a genotype data invariant.
    """
    file_type = resolve_file_type(file_path, file_type)
    if isinstance(genotype_format, str):
        genotype_format = GenotypeFormat.from_string(genotype_format)
    rows = _read_table(file_path, file_type)
    name = os.path.basename(str(file_path))

    if genotype_format is GenotypeFormat.FREQUENCY:
        layout = _Layout(rows, file_path, (MARKER_ROW, ALLELE_ROW))
        frequencies = [[_parse_float(cell, file_path) for cell in row] for row in layout.values]
        allele_names = [a or None for a in layout.metadata.get(ALLELE_ROW, [""] * len(layout.columns))]
        if MARKER_ROW in layout.metadata:
            allele_counts = _marker_allele_counts(layout.metadata[MARKER_ROW], file_path)
            offsets = marker_offsets(allele_counts)
            data = GenotypeFrequencyData(
                frequencies, create_headers(layout.ids, layout.names),
                marker_names=[layout.columns[start] or None for start in offsets[:-1]],
                allele_names=[allele_names[start:stop] for start, stop in zip(offsets[:-1], offsets[1:])],
                name=name,
                allele_counts=allele_counts,
            )
        else:
            data = create_frequency_genotype_data(
                frequencies, layout.ids, layout.names,
                column_names=layout.columns,
                allele_names=allele_names,
                name=name,
                strip_suffix=False,
            )
    elif genotype_format is GenotypeFormat.BIPARENTAL:
        layout = _Layout(rows, file_path)
        scores = [[_parse_int(cell, file_path) for cell in row] for row in layout.values]
        data = BiAllelicGenotypeData(
            scores, create_headers(layout.ids, layout.names),
            marker_names=[column or None for column in layout.columns], name=name
        )
    else:
        layout = _Layout(rows, file_path)
        data = create_default_genotype_data(layout.values, layout.ids, layout.names, layout.columns, name=name)

    logger.info("Read %s genotype data from %s: %d accessions, %d markers",
                genotype_format.value, file_path, data.size, data.number_of_markers)
    return data


def read_phenotype_data(file_path, file_type=None) -> PhenotypeData:
    """
    Reads phenotype data. Feature types come from the optional TYPE row
    (``scale[:datatype]``) and ranges from the optional MIN and MAX rows;
    features without a TYPE row are inferred from their values.
    """
    file_type = resolve_file_type(file_path, file_type)
    layout = _Layout(_read_table(file_path, file_type), file_path, (TYPE_ROW, MIN_ROW, MAX_ROW))
    types = layout.metadata.get(TYPE_ROW)
    minimums = layout.metadata.get(MIN_ROW, [""] * len(layout.columns))
    maximums = layout.metadata.get(MAX_ROW, [""] * len(layout.columns))
    features = []
    for j, column in enumerate(layout.columns):
        low = None if minimums[j] == "" else _parse_float(minimums[j], file_path)
        high = None if maximums[j] == "" else _parse_float(maximums[j], file_path)
        if types is not None and types[j] != "":
            features.append(Feature.from_type_label(column, types[j], low, high))
        else:
            inferred = infer_feature(column, pd.Series([row[j] for row in layout.values], dtype=object))
            if inferred.scale.is_numeric:
                inferred = Feature(column, inferred.scale, inferred.data_type, low, high)
            features.append(inferred)
    data = PhenotypeData(layout.values, features, create_headers(layout.ids, layout.names),
                         name=os.path.basename(str(file_path)))
    logger.info("Read phenotype data from %s: %d accessions, %d features",
                file_path, data.size, data.number_of_features)
    return data


def read_distance_data(file_path, file_type=None) -> DistanceMatrixData:
    """
    Reads a square distance matrix. Column headers must repeat the row identifiers.
    """
    file_type = resolve_file_type(file_path, file_type)
    layout = _Layout(_read_table(file_path, file_type), file_path)
    if layout.columns != layout.ids:
        raise ValidationError(f"Column identifiers of {file_path} do not match the row identifiers.")
    distances = [[_parse_float(cell, file_path) for cell in row] for row in layout.values]
    data = DistanceMatrixData(distances, create_headers(layout.ids, layout.names),
                              name=os.path.basename(str(file_path)))
    logger.info("Read distance matrix from %s: %d accessions", file_path, data.size)
    return data


def _label_columns(data: AccessionData, file_path) -> Tuple[List[str], List[List[str]]]:
    ids = data.identifiers
    if any(identifier is None for identifier in ids):
        raise DatasetIOError(f"Can not write {file_path}: every accession needs an identifier.")
    names = data.names
    with_names = any(name is not None and name != identifier for name, identifier in zip(names, ids))
    if with_names:
        return [ID_HEADER, NAME_HEADER], [[identifier, name or ""] for identifier, name in zip(ids, names)]
    return [ID_HEADER], [[identifier] for identifier in ids]


def _write_table(rows: List[List[str]], file_path, file_type: FileType):
    try:
        pd.DataFrame(rows, dtype=object).to_csv(file_path, sep=file_type.delimiter, header=False, index=False)
    except OSError as e:
        raise DatasetIOError(f"Could not write {file_path}: {e}") from e


def _format_float(value: float) -> str:
    return "" if np.isnan(value) else repr(float(value))


def write_genotype_data(data: GenotypeFrequencyData, file_path, file_type=None, genotype_format=None):
    """
    Writes genotype data. Dosage data is written in the biparental format
    unless 'frequency' is requested; other data in the frequency format.
    """
    file_type = resolve_file_type(file_path, file_type)
    if isinstance(genotype_format, str):
        genotype_format = GenotypeFormat.from_string(genotype_format)
    if genotype_format is None:
        biparental = isinstance(data, BiAllelicGenotypeData)
        genotype_format = GenotypeFormat.BIPARENTAL if biparental else GenotypeFormat.FREQUENCY
    labels, label_rows = _label_columns(data, file_path)
    marker_names = [name if name is not None else "" for name in data.get_marker_names()]

    if genotype_format is GenotypeFormat.BIPARENTAL:
        if not isinstance(data, BiAllelicGenotypeData):
            raise DatasetIOError("Only allele score data can be written in the biparental format.")
        rows = [labels + marker_names]
        for label, scores in zip(label_rows, data.get_allele_scores()):
            rows.append(label + ["" if s is None else str(s) for s in scores])
    elif genotype_format is GenotypeFormat.FREQUENCY:
        padding = [""] * (len(labels) - 1)
        header = list(labels)
        marker_row = [MARKER_ROW] + padding
        allele_row = [ALLELE_ROW] + padding
        for m, alleles in enumerate(data.get_alleles()):
            header.extend([marker_names[m]] * len(alleles))
            marker_row.extend([str(m)] * len(alleles))
            allele_row.extend(a if a is not None else "" for a in alleles)
        rows = [header, marker_row]
        if any(cell != "" for cell in allele_row[len(labels):]):
            rows.append(allele_row)
        for label, freqs in zip(label_rows, data.get_allele_frequencies()):
            rows.append(label + [_format_float(f) for f in freqs])
    else:
        raise DatasetIOError("Genotype data can only be written in the frequency or biparental format.")

    _write_table(rows, file_path, file_type)
    logger.info("Wrote %s genotype data to %s", genotype_format.value, file_path)


def _format_value(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return repr(value)
    return str(value)


def write_phenotype_data(data: PhenotypeData, file_path, file_type=None):
    file_type = resolve_file_type(file_path, file_type)
    labels, label_rows = _label_columns(data, file_path)
    features = data.features
    padding = [""] * (len(labels) - 1)
    rows = [
        labels + [f.name for f in features],
        [TYPE_ROW] + padding + [f.type_label for f in features],
        [MIN_ROW] + padding + [_format_bound(f, f.min_value) for f in features],
        [MAX_ROW] + padding + [_format_bound(f, f.max_value) for f in features],
    ]
    for i, label in enumerate(label_rows):
        rows.append(label + [_format_value(data.get_value(i, j)) for j in range(len(features))])
    _write_table(rows, file_path, file_type)
    logger.info("Wrote phenotype data to %s", file_path)


def _format_bound(feature: Feature, bound) -> str:
    if bound is None:
        return ""
    if feature.data_type is DataType.INTEGER and float(bound).is_integer():
        return str(int(bound))
    return repr(float(bound))


def write_distance_data(data: DistanceMatrixData, file_path, file_type=None):
    file_type = resolve_file_type(file_path, file_type)
    labels, label_rows = _label_columns(data, file_path)
    matrix = data.to_matrix()
    rows = [labels + list(data.identifiers)]
    for label, distances in zip(label_rows, matrix):
        rows.append(label + [repr(float(d)) for d in distances])
    _write_table(rows, file_path, file_type)
    logger.info("Wrote distance matrix to %s", file_path)
