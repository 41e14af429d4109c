# corehunter/data_management/data_structures.py

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import numpy as np

from ..exceptions import DataLookupError, ValidationError


@dataclass(frozen=True)
class AccessionHeader:
    """
    Name and unique identifier of one accession.
    Both are optional; identifiers are unique within a dataset when present.
    """
    identifier: Optional[str] = None
    name: Optional[str] = None

    def __str__(self):
        if self.name is not None and self.identifier is not None and self.name != self.identifier:
            return f"{self.name} ({self.identifier})"
        return self.name if self.name is not None else str(self.identifier)


def create_headers(ids: Optional[Sequence[Optional[str]]],
                   names: Optional[Sequence[Optional[str]]] = None,
                   size: Optional[int] = None) -> Optional[List[AccessionHeader]]:
    """
    Combines identifier and name lists into accession headers.
    When names are omitted, identifiers double as names.

    Returns:
        list[AccessionHeader] | None: None if neither ids nor names are given.
    """
    if ids is None and names is None:
        return None
    n = len(ids) if ids is not None else len(names)
    if size is not None and n != size:
        raise ValidationError(f"Number of ids/names ({n}) does not correspond to number of accessions ({size}).")
    if ids is not None and names is not None and len(names) != n:
        raise ValidationError("Number of names does not correspond to number of ids.")
    if names is None:
        names = ids
    if ids is None:
        ids = [None] * n
    return [AccessionHeader(identifier=ids[i], name=names[i]) for i in range(n)]


class AccessionData:
    """
    Base class of all accession datasets: a dataset name and one optional
    header per accession, addressed by a 0-based index.
    """

    def __init__(self, name: str, size: int, headers: Optional[Sequence[Optional[AccessionHeader]]] = None):
        """
        Args:
            name (str): Dataset name.
            size (int): Number of accessions.
            headers (Sequence[AccessionHeader], optional): One header per accession;
                                                           None entries mean no header.
        """
        if size < 0:
            raise ValidationError("Dataset size can not be negative.")
        self._name = name
        self._size = size
        if headers is None:
            self._headers = (None,) * size
        else:
            if len(headers) != size:
                raise ValidationError(
                    f"Number of headers does not correspond to dataset size. Expected: {size}, actual: {len(headers)}."
                )
            self._headers = tuple(headers)
        self._index = {}
        for i, header in enumerate(self._headers):
            if header is None or header.identifier is None:
                continue
            if header.identifier in self._index:
                raise ValidationError(
                    f"Duplicate identifier '{header.identifier}' for accessions {self._index[header.identifier]} and {i}."
                )
            self._index[header.identifier] = i

    @property
    def name(self) -> str:
        return self._name

    @property
    def size(self) -> int:
        """Returns the number of accessions."""
        return self._size

    @property
    def ids(self) -> range:
        """Returns the accession indices (0 .. size-1)."""
        return range(self._size)

    @property
    def headers(self) -> tuple:
        return self._headers

    def get_header(self, index: int) -> Optional[AccessionHeader]:
        self.check_index(index)
        return self._headers[index]

    @property
    def identifiers(self) -> List[Optional[str]]:
        return [h.identifier if h is not None else None for h in self._headers]

    @property
    def names(self) -> List[Optional[str]]:
        return [h.name if h is not None else None for h in self._headers]

    def index_of(self, identifier: str) -> int:
        """Returns the index of the accession with the given unique identifier."""
        try:
            return self._index[identifier]
        except KeyError:
            raise DataLookupError(f"Unknown accession identifier '{identifier}'.") from None

    def check_index(self, index: int):
        if not 0 <= index < self._size:
            raise DataLookupError(f"Accession index {index} out of range [0, {self._size}).")

    def selection_array(self, ids: Iterable[int]) -> np.ndarray:
        """
        Converts a selection of accession indices into a sorted integer array.

        Raises:
            ValueError: If the selection is empty.
            DataLookupError: If an index is out of range.
        """
        selected = np.fromiter(sorted(set(int(i) for i in ids)), dtype=np.intp)
        if selected.size == 0:
            raise ValueError("Selection of accessions is empty.")
        if selected[0] < 0 or selected[-1] >= self._size:
            bad = selected[0] if selected[0] < 0 else selected[-1]
            raise DataLookupError(f"Accession index {bad} out of range [0, {self._size}).")
        return selected

    def get_summary(self) -> dict:
        """
        Returns a summary of the dataset.
        """
        return {
            "name": self._name,
            "size": self._size,
            "identifiers_preview": self.identifiers[:5],
            "names_preview": self.names[:5],
        }

    def __len__(self):
        return self._size

    def __str__(self):
        return f"{type(self).__name__} '{self._name}' with {self._size} accessions."


def read_only(array: np.ndarray) -> np.ndarray:
    """Marks a numpy array as non-writeable and returns it."""
    array.setflags(write=False)
    return array
