# corehunter/data_management/phenotypes.py

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from ..exceptions import DataLookupError, ValidationError
from .data_structures import AccessionData, AccessionHeader

PHENOTYPE_DATA_NAME = "Phenotypic trait data"


class ScaleType(Enum):
    NOMINAL = "nominal"
    ORDINAL = "ordinal"
    INTERVAL = "interval"
    RATIO = "ratio"

    @property
    def is_numeric(self) -> bool:
        return self is not ScaleType.NOMINAL


class DataType(Enum):
    INTEGER = "integer"
    DOUBLE = "double"
    STRING = "string"
    BOOLEAN = "boolean"

    @property
    def is_numeric(self) -> bool:
        return self in (DataType.INTEGER, DataType.DOUBLE)


# data type used when a feature only declares its scale
DEFAULT_DATA_TYPES = {
    ScaleType.NOMINAL: DataType.STRING,
    ScaleType.ORDINAL: DataType.INTEGER,
    ScaleType.INTERVAL: DataType.DOUBLE,
    ScaleType.RATIO: DataType.DOUBLE,
}

_BOOLEAN_VALUES = {"true": True, "false": False, "1": True, "0": False}


@dataclass(frozen=True)
class Feature:
    """
    Describes one phenotypic trait.

    Attributes:
        name (str): Feature name.
        scale (ScaleType): Measurement scale.
        data_type (DataType): Type of the values.
        min_value (float, optional): Lower bound of the value range (numeric scales only).
        max_value (float, optional): Upper bound of the value range (numeric scales only).
    """
    name: str
    scale: ScaleType = ScaleType.NOMINAL
    data_type: Optional[DataType] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None

    def __post_init__(self):
        if isinstance(self.scale, str):
            object.__setattr__(self, "scale", _parse_enum(ScaleType, self.scale, "scale"))
        if self.data_type is None:
            object.__setattr__(self, "data_type", DEFAULT_DATA_TYPES[self.scale])
        elif isinstance(self.data_type, str):
            object.__setattr__(self, "data_type", _parse_enum(DataType, self.data_type, "data type"))
        if self.scale.is_numeric and not self.data_type.is_numeric:
            raise ValidationError(
                f"Feature '{self.name}': {self.scale.value} scale requires numeric values, got {self.data_type.value}."
            )
        if not self.scale.is_numeric and (self.min_value is not None or self.max_value is not None):
            raise ValidationError(f"Feature '{self.name}': nominal features have no value range.")
        if self.min_value is not None and self.max_value is not None and self.min_value > self.max_value:
            raise ValidationError(
                f"Feature '{self.name}': minimum {self.min_value} exceeds maximum {self.max_value}."
            )

    @property
    def range(self) -> Optional[float]:
        if self.min_value is None or self.max_value is None:
            return None
        return float(self.max_value) - float(self.min_value)

    @property
    def type_label(self) -> str:
        """Label used in the TYPE row of phenotype files, e.g. ``ratio:double``."""
        return f"{self.scale.value}:{self.data_type.value}"

    @classmethod
    def from_type_label(cls, name: str, label: str, min_value=None, max_value=None) -> "Feature":
        scale, _, data_type = label.strip().partition(":")
        return cls(name, scale, data_type or None, min_value, max_value)


def _parse_enum(enum_cls, value: str, what: str):
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        raise ValidationError(
            f"Unknown {what} '{value}'. Expected one of: {[e.value for e in enum_cls]}."
        ) from None


def _convert_column(feature: Feature, column: pd.Series) -> pd.Series:
    """Converts raw column values to the pandas dtype of the feature; None/NaN/'' become missing."""
    raw = column.astype(object).map(lambda v: None if pd.isna(v) or (isinstance(v, str) and v.strip() == "") else v)
    try:
        if feature.data_type is DataType.INTEGER:
            numeric = pd.to_numeric(raw, errors="raise")
            if not np.all(np.mod(numeric.dropna(), 1) == 0):
                raise ValueError("non-integer value")
            return numeric.astype("Int64")
        if feature.data_type is DataType.DOUBLE:
            return pd.to_numeric(raw, errors="raise").astype("float64")
        if feature.data_type is DataType.BOOLEAN:
            def to_bool(v):
                if v is None or isinstance(v, (bool, np.bool_)):
                    return v
                return _BOOLEAN_VALUES[str(v).strip().lower()]
            return raw.map(to_bool).astype("boolean")
    except (ValueError, TypeError, KeyError) as e:
        raise ValidationError(
            f"Invalid {feature.data_type.value} value for feature '{feature.name}': {e}"
        ) from e
    return raw.map(lambda v: None if v is None else str(v)).astype("string")


class PhenotypeData(AccessionData):
    """
    Phenotypic trait values, one row per accession and one column per feature,
    stored in a pandas DataFrame with nullable dtypes.

    Numeric features without a declared range get the observed minimum and
    maximum as range; declared ranges must contain every observed value.
    """

    def __init__(self, values, features: Sequence[Feature],
                 headers: Optional[Sequence[Optional[AccessionHeader]]] = None,
                 name: str = PHENOTYPE_DATA_NAME):
        if features is None or len(features) == 0:
            raise ValidationError("At least one feature is required.")
        if isinstance(values, pd.DataFrame):
            frame = values.reset_index(drop=True)
        else:
            try:
                frame = pd.DataFrame(list(values), dtype=object)
            except (TypeError, ValueError) as e:
                raise ValidationError(f"Phenotype values are not a rectangular table: {e}") from e
        if frame.shape[0] == 0:
            raise ValidationError("Empty phenotype table.")
        if frame.shape[1] != len(features):
            raise ValidationError(
                f"Number of columns ({frame.shape[1]}) does not correspond to number of features ({len(features)})."
            )
        super().__init__(name, frame.shape[0], headers)

        columns = {}
        checked = []
        for j, feature in enumerate(features):
            column = _convert_column(feature, frame.iloc[:, j])
            if feature.scale.is_numeric:
                feature = self._resolve_range(feature, column)
            checked.append(feature)
            columns[j] = column
        self._features = tuple(checked)
        self._frame = pd.DataFrame(columns)
        self._frame.columns = [f.name for f in self._features]

    @staticmethod
    def _resolve_range(feature: Feature, column: pd.Series) -> Feature:
        observed = column.dropna().astype("float64")
        low = float(observed.min()) if len(observed) else None
        high = float(observed.max()) if len(observed) else None
        if feature.min_value is not None and low is not None and low < feature.min_value:
            raise ValidationError(f"Feature '{feature.name}': value {low} below minimum {feature.min_value}.")
        if feature.max_value is not None and high is not None and high > feature.max_value:
            raise ValidationError(f"Feature '{feature.name}': value {high} above maximum {feature.max_value}.")
        min_value = feature.min_value if feature.min_value is not None else low
        max_value = feature.max_value if feature.max_value is not None else high
        return Feature(feature.name, feature.scale, feature.data_type, min_value, max_value)

    @property
    def features(self) -> List[Feature]:
        return list(self._features)

    @property
    def number_of_features(self) -> int:
        return len(self._features)

    @property
    def frame(self) -> pd.DataFrame:
        """Returns a copy of the value table."""
        return self._frame.copy()

    def get_feature(self, feature: int) -> Feature:
        self._check_feature(feature)
        return self._features[feature]

    def get_value(self, index: int, feature: int):
        """Returns a single value as a plain Python object, None if missing."""
        self.check_index(index)
        self._check_feature(feature)
        value = self._frame.iat[index, feature]
        if pd.isna(value):
            return None
        if isinstance(value, np.generic):
            return value.item()
        return value

    def numeric_values(self, feature: int) -> np.ndarray:
        """Values of a numeric feature as a float array with NaN where missing."""
        f = self.get_feature(feature)
        if not f.scale.is_numeric:
            raise ValidationError(f"Feature '{f.name}' is not numeric.")
        return self._frame.iloc[:, feature].astype("float64").to_numpy(na_value=np.nan)

    def category_codes(self, feature: int) -> np.ndarray:
        """Integer category codes of a feature, -1 where missing."""
        self._check_feature(feature)
        codes, _ = pd.factorize(self._frame.iloc[:, feature], use_na_sentinel=True)
        return codes

    def get_ranges(self) -> List[Optional[float]]:
        """Returns max - min per feature, None for features without a range."""
        return [f.range for f in self._features]

    def get_summary(self) -> dict:
        summary = super().get_summary()
        summary["features"] = [f.name for f in self._features]
        return summary

    def _check_feature(self, feature: int):
        if not 0 <= feature < len(self._features):
            raise DataLookupError(f"Feature index {feature} out of range [0, {len(self._features)}).")


def infer_feature(name: str, column: pd.Series) -> Feature:
    """
    Guesses a feature descriptor from raw text values: booleans become
    nominal booleans, integers interval integers, other numbers ratio doubles
    and everything else nominal strings.
    """
    observed = [str(v).strip() for v in column if not pd.isna(v) and str(v).strip() != ""]
    if observed and all(v.lower() in ("true", "false") for v in observed):
        return Feature(name, ScaleType.NOMINAL, DataType.BOOLEAN)
    numeric = pd.to_numeric(pd.Series(observed, dtype=object), errors="coerce")
    if observed and not numeric.isna().any():
        if np.all(np.mod(numeric, 1) == 0):
            return Feature(name, ScaleType.INTERVAL, DataType.INTEGER)
        return Feature(name, ScaleType.RATIO, DataType.DOUBLE)
    return Feature(name, ScaleType.NOMINAL, DataType.STRING)
