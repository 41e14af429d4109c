# corehunter/data_management/repository.py

"""
File-backed repository of datasets.

Layout below the repository root::

    datasets.json                 metadata of all datasets (versioned schema)
    GENOTYPIC/<id>.<ext>          copy of the loaded genotype file
    GENOTYPIC/<id>.corehunter     internal copy, written as tab separated text
    PHENOTYPIC/...                same for phenotypes
    DISTANCES/...                 same for distances
"""

import json
import logging
import os
import shutil
import threading
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from ..config import CoreHunterSettings
from ..exceptions import DatasetError, DatasetIOError
from .core_data import CoreHunterData
from .io_handlers import (
    FileType,
    GenotypeFormat,
    read_distance_data,
    read_genotype_data,
    read_phenotype_data,
    resolve_file_type,
    write_distance_data,
    write_genotype_data,
    write_phenotype_data,
)
from .genotypes import BiAllelicGenotypeData

logger = logging.getLogger(__name__)

METADATA_FILE = "datasets.json"
SCHEMA_VERSION = 1
INTERNAL_SUFFIX = ".corehunter"


class CoreHunterDataType(Enum):
    GENOTYPIC = "genotypic"
    PHENOTYPIC = "phenotypic"
    DISTANCES = "distances"


@dataclass
class Dataset:
    """
    Metadata of one dataset in the repository.

    Attributes:
        identifier (str): Unique dataset identifier.
        name (str): Display name.
        description (str, optional): Free text description.
        size (int, optional): Number of accessions, set once data is loaded.
        files (dict): Per data type: original file name, file type and formats.
    """
    identifier: str
    name: str
    description: Optional[str] = None
    size: Optional[int] = None
    files: Dict[str, Dict[str, str]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, values: dict) -> "Dataset":
        return cls(
            identifier=values["identifier"],
            name=values.get("name", values["identifier"]),
            description=values.get("description"),
            size=values.get("size"),
            files=dict(values.get("files", {})),
        )


class DatasetRepository:
    """
    Stores datasets and their genotype, phenotype and distance data below one
    root directory. Loaded CoreHunterData objects are cached in memory.
    """

    def __init__(self, path: Optional[str] = None):
        """
        Args:
            path (str, optional): Repository root. Defaults to the configured data path
                                  (COREHUNTER_DATA_PATH).
        """
        if path is None:
            path = CoreHunterSettings.from_environment().data_path
        self._path = os.path.abspath(str(path))
        self._lock = threading.RLock()
        self._datasets: Dict[str, Dataset] = {}
        self._cache: Dict[str, CoreHunterData] = {}
        try:
            os.makedirs(self._path, exist_ok=True)
        except OSError as e:
            raise DatasetIOError(f"Can not create repository directory {self._path}: {e}") from e
        self._read_metadata()

    @property
    def path(self) -> str:
        return self._path

    # ---------------------------------------------------------------- datasets

    def all_datasets(self) -> List[Dataset]:
        with self._lock:
            return list(self._datasets.values())

    def get_dataset(self, dataset_id: str) -> Optional[Dataset]:
        with self._lock:
            return self._datasets.get(dataset_id)

    def add_dataset(self, dataset: Dataset):
        if dataset is None:
            raise DatasetError("Dataset undefined.")
        _check_identifier(dataset.identifier)
        with self._lock:
            if dataset.identifier in self._datasets:
                raise DatasetError(f"Dataset already added: {dataset.identifier}")
            self._datasets[dataset.identifier] = dataset
            self._write_metadata()
        logger.info("Added dataset %s", dataset.identifier)

    def remove_dataset(self, dataset_id: str) -> bool:
        """Removes a dataset together with all of its data files."""
        with self._lock:
            dataset = self._require(dataset_id)
            self._delete_files(dataset)
            del self._datasets[dataset_id]
            self._cache.pop(dataset_id, None)
            self._write_metadata()
        logger.info("Removed dataset %s", dataset_id)
        return True

    # -------------------------------------------------------------------- data

    def load_data(self, dataset_id: str, file_path, data_type, genotype_format=None, file_type=None) -> CoreHunterData:
        """
        Loads a data file into a dataset.

        The file is copied into the repository, parsed and stored again as an
        internal tab separated copy. A dataset holds at most one table of each
        data type.

        Args:
            dataset_id (str): Identifier of an existing dataset.
            file_path (str): File to load.
            data_type (str | CoreHunterDataType): genotypic, phenotypic or distances.
            genotype_format (str | GenotypeFormat, optional): Format of genotype files, 'default' if omitted.
            file_type (str | FileType, optional): Overrides the type inferred from the extension.

        Returns:
            CoreHunterData: The updated data of the dataset.
        """
        data_type = _data_type(data_type)
        file_type = resolve_file_type(file_path, file_type)
        if not os.path.isfile(file_path):
            raise DatasetIOError(f"Unknown path: {file_path}")

        with self._lock:
            dataset = self._require(dataset_id)
            current = self.get_data(dataset_id)
            copy_path = self._file_path(dataset_id, data_type, "." + file_type.value)
            if data_type.value in dataset.files or os.path.exists(copy_path):
                raise DatasetError(f"{data_type.value.capitalize()} data is already associated with dataset {dataset_id}.")

            os.makedirs(os.path.dirname(copy_path), exist_ok=True)
            internal_path = self._file_path(dataset_id, data_type, INTERNAL_SUFFIX)
            entry = {"file": os.path.basename(copy_path), "file_type": file_type.value}
            try:
                shutil.copyfile(file_path, copy_path)
                if data_type is CoreHunterDataType.GENOTYPIC:
                    if genotype_format is None:
                        genotype_format = GenotypeFormat.DEFAULT
                    elif isinstance(genotype_format, str):
                        genotype_format = GenotypeFormat.from_string(genotype_format)
                    table = read_genotype_data(copy_path, genotype_format, file_type)
                    internal_format = (GenotypeFormat.BIPARENTAL if isinstance(table, BiAllelicGenotypeData)
                                       else GenotypeFormat.FREQUENCY)
                    write_genotype_data(table, internal_path, FileType.TXT, internal_format)
                    entry["genotype_format"] = genotype_format.value
                    entry["internal_format"] = internal_format.value
                    data = _combine(current, dataset.name, genotypes=table)
                elif data_type is CoreHunterDataType.PHENOTYPIC:
                    table = read_phenotype_data(copy_path, file_type)
                    write_phenotype_data(table, internal_path, FileType.TXT)
                    data = _combine(current, dataset.name, phenotypes=table)
                else:
                    table = read_distance_data(copy_path, file_type)
                    write_distance_data(table, internal_path, FileType.TXT)
                    data = _combine(current, dataset.name, distances=table)
            except Exception:
                for path in (copy_path, internal_path):
                    if os.path.exists(path):
                        os.remove(path)
                raise

            dataset.files[data_type.value] = entry
            dataset.size = data.size
            self._cache[dataset_id] = data
            self._write_metadata()
        logger.info("Loaded %s data into dataset %s from %s", data_type.value, dataset_id, file_path)
        return data

    def get_data(self, dataset_id: str) -> Optional[CoreHunterData]:
        """Returns the data of a dataset, reading the internal copies on first access. None if no data is loaded."""
        with self._lock:
            dataset = self._require(dataset_id)
            if dataset_id in self._cache:
                return self._cache[dataset_id]
            if not dataset.files:
                return None
            tables = {}
            for data_type in CoreHunterDataType:
                entry = dataset.files.get(data_type.value)
                if entry is None:
                    continue
                internal_path = self._file_path(dataset_id, data_type, INTERNAL_SUFFIX)
                if data_type is CoreHunterDataType.GENOTYPIC:
                    tables["genotypes"] = read_genotype_data(internal_path, entry["internal_format"], FileType.TXT)
                elif data_type is CoreHunterDataType.PHENOTYPIC:
                    tables["phenotypes"] = read_phenotype_data(internal_path, FileType.TXT)
                else:
                    tables["distances"] = read_distance_data(internal_path, FileType.TXT)
            data = CoreHunterData(name=dataset.name, **tables)
            self._cache[dataset_id] = data
            return data

    def evict(self, dataset_id: str):
        """Drops the cached data of a dataset; it is read again on the next access."""
        with self._lock:
            self._cache.pop(dataset_id, None)

    def remove_data(self, dataset_id: str):
        """Removes all data of a dataset but keeps the dataset itself."""
        with self._lock:
            dataset = self._require(dataset_id)
            self._delete_files(dataset)
            dataset.files.clear()
            dataset.size = None
            self._cache.pop(dataset_id, None)
            self._write_metadata()

    def get_original_data(self, dataset_id: str, data_type):
        """Reads the data table of the given type again from the copy of the originally loaded file."""
        data_type = _data_type(data_type)
        with self._lock:
            dataset = self._require(dataset_id)
            entry = dataset.files.get(data_type.value)
            if entry is None:
                return None
            copy_path = os.path.join(self._path, data_type.name, entry["file"])
            file_type = FileType(entry["file_type"])
        if data_type is CoreHunterDataType.GENOTYPIC:
            return read_genotype_data(copy_path, entry["genotype_format"], file_type)
        if data_type is CoreHunterDataType.PHENOTYPIC:
            return read_phenotype_data(copy_path, file_type)
        return read_distance_data(copy_path, file_type)

    # ----------------------------------------------------------------- helpers

    def _require(self, dataset_id: str) -> Dataset:
        if dataset_id is None:
            raise DatasetError("Dataset id not defined.")
        dataset = self._datasets.get(dataset_id)
        if dataset is None:
            raise DatasetError(f"Unknown dataset with id: {dataset_id}")
        return dataset

    def _file_path(self, dataset_id: str, data_type: CoreHunterDataType, suffix: str) -> str:
        return os.path.join(self._path, data_type.name, dataset_id + suffix)

    def _delete_files(self, dataset: Dataset):
        for data_type in CoreHunterDataType:
            entry = dataset.files.get(data_type.value)
            if entry is None:
                continue
            for name in (entry["file"], dataset.identifier + INTERNAL_SUFFIX):
                path = os.path.join(self._path, data_type.name, name)
                if os.path.exists(path):
                    os.remove(path)

    def _read_metadata(self):
        metadata_path = os.path.join(self._path, METADATA_FILE)
        if not os.path.exists(metadata_path):
            return
        try:
            with open(metadata_path, "r", encoding="utf-8") as f:
                metadata = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise DatasetIOError(f"Can not read repository metadata {metadata_path}: {e}") from e
        version = metadata.get("version")
        if version != SCHEMA_VERSION:
            raise DatasetIOError(f"Unsupported repository metadata version {version} in {metadata_path}.")
        for values in metadata.get("datasets", []):
            dataset = Dataset.from_dict(values)
            self._datasets[dataset.identifier] = dataset

    def _write_metadata(self):
        metadata_path = os.path.join(self._path, METADATA_FILE)
        metadata = {"version": SCHEMA_VERSION, "datasets": [asdict(d) for d in self._datasets.values()]}
        temporary = metadata_path + ".tmp"
        try:
            with open(temporary, "w", encoding="utf-8") as f:
                json.dump(metadata, f, indent=2)
            os.replace(temporary, metadata_path)
        except OSError as e:
            raise DatasetIOError(f"Can not write repository metadata {metadata_path}: {e}") from e


def _check_identifier(dataset_id):
    """Dataset identifiers name files below the repository root, so they must be plain file names."""
    if not isinstance(dataset_id, str) or dataset_id.strip() == "":
        raise DatasetError(f"Invalid dataset id: {dataset_id!r}")
    separators = [s for s in (os.sep, os.altsep, "/", "\\") if s]
    if dataset_id in (".", "..") or any(s in dataset_id for s in separators):
        raise DatasetError(f"Dataset id should not contain path separators: {dataset_id!r}")


def _data_type(value) -> CoreHunterDataType:
    if isinstance(value, CoreHunterDataType):
        return value
    if value is None:
        raise DatasetError("Data type not defined.")
    try:
        return CoreHunterDataType(str(value).lower())
    except ValueError:
        raise DatasetError(f"Unknown data type: {value}") from None


def _combine(current: Optional[CoreHunterData], name: str, **tables) -> CoreHunterData:
    merged = {}
    if current is not None:
        merged = {"genotypes": current.genotypes, "phenotypes": current.phenotypes, "distances": current.distances}
    merged.update(tables)
    return CoreHunterData(name=name, **merged)
