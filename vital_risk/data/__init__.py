"""Vital-sign records, risk labels and training data handling."""

import logging
import math
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..utils import ValidationError

logger = logging.getLogger(__name__)


class FeatureName(str, Enum):
    """The six readings of a vital-sign vector, in array column order."""

    TEMPERATURE = "temperature"
    HEART_RATE = "heart_rate"
    OXYGEN_SATURATION = "oxygen_saturation"
    SYSTOLIC = "systolic"
    DIASTOLIC = "diastolic"
    SIGNAL_QUALITY = "signal_quality"

    @property
    def position(self) -> int:
        return FEATURES.index(self)


FEATURES: List[FeatureName] = list(FeatureName)


class RiskLabel(str, Enum):
    """Risk categories, declared from least to most severe."""

    NORMAL = "Normal"
    REDUCED = "Reduced"
    CRITICAL = "Critical"

    @property
    def position(self) -> int:
        """Position in canonical order, which is also the severity rank."""
        return LABELS.index(self)

    @classmethod
    def parse(cls, value: Any) -> "RiskLabel":
        """Parse a label from its name, a source term or a class index.

        Raises:
            ValidationError: If the value does not name a risk label.
        """
        if isinstance(value, cls):
            return value

        if isinstance(value, (int, np.integer)) and not isinstance(value, bool):
            if 0 <= int(value) < len(LABELS):
                return LABELS[int(value)]
            raise ValidationError(f"Unknown risk label index: {value}", field="label")

        key = str(value).strip().lower()
        if key.isdigit():
            return cls.parse(int(key))
        if key in _LABEL_ALIASES:
            return _LABEL_ALIASES[key]

        raise ValidationError(f"Unknown risk label: {value!r}", field="label")


LABELS: List[RiskLabel] = list(RiskLabel)

_LABEL_ALIASES: Dict[str, RiskLabel] = {
    "normal": RiskLabel.NORMAL,
    "reduced": RiskLabel.REDUCED,
    "kurang normal": RiskLabel.REDUCED,
    "critical": RiskLabel.CRITICAL,
    "berbahaya": RiskLabel.CRITICAL,
}

# External field names accepted at the ingestion boundary.
FIELD_ALIASES: Dict[str, FeatureName] = {
    "temperature": FeatureName.TEMPERATURE,
    "suhu": FeatureName.TEMPERATURE,
    "heart_rate": FeatureName.HEART_RATE,
    "heartRate": FeatureName.HEART_RATE,
    "bpm": FeatureName.HEART_RATE,
    "oxygen_saturation": FeatureName.OXYGEN_SATURATION,
    "oxygenSaturation": FeatureName.OXYGEN_SATURATION,
    "spo2": FeatureName.OXYGEN_SATURATION,
    "systolic": FeatureName.SYSTOLIC,
    "tekanan_sys": FeatureName.SYSTOLIC,
    "diastolic": FeatureName.DIASTOLIC,
    "tekanan_dia": FeatureName.DIASTOLIC,
    "signal_quality": FeatureName.SIGNAL_QUALITY,
    "signalQuality": FeatureName.SIGNAL_QUALITY,
    # Column names used by exported model files
    "Suhu Tubuh (C)": FeatureName.TEMPERATURE,
    "Detak Jantung": FeatureName.HEART_RATE,
    "Saturasi Oksigen": FeatureName.OXYGEN_SATURATION,
    "Sistolik": FeatureName.SYSTOLIC,
    "Diastolik": FeatureName.DIASTOLIC,
    "Kualitas Sinyal": FeatureName.SIGNAL_QUALITY,
}


def parse_feature(name: Any) -> FeatureName:
    """Resolve a feature from any accepted field name.

    Raises:
        ValidationError: If the name is not a known feature.
    """
    if isinstance(name, FeatureName):
        return name
    feature = FIELD_ALIASES.get(str(name))
    if feature is None:
        raise ValidationError(f"Unknown vital sign field: {name!r}", field=str(name))
    return feature


def _coerce_reading(name: str, value: Any) -> float:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{name} must be a number, got {value!r}", field=name)

    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise ValidationError(f"{name} must be a number, got {value!r}", field=name) from None

    if not isinstance(value, (int, float, np.integer, np.floating)):
        raise ValidationError(f"{name} must be a number, got {value!r}", field=name)

    value = float(value)
    if not math.isfinite(value):
        raise ValidationError(f"{name} must be finite, got {value}", field=name)

    return value


@dataclass(frozen=True)
class VitalSigns:
    """One point-in-time vital-sign reading.

    Attributes:
        temperature: Body temperature in Celsius.
        heart_rate: Heart rate in bpm.
        oxygen_saturation: SpO2 in percent.
        systolic: Systolic blood pressure in mmHg.
        diastolic: Diastolic blood pressure in mmHg.
        signal_quality: Sensor signal quality, 0-100.
    """

    temperature: float
    heart_rate: float
    oxygen_saturation: float
    systolic: float
    diastolic: float
    signal_quality: float

    def __post_init__(self):
        for f in fields(self):
            object.__setattr__(self, f.name, _coerce_reading(f.name, getattr(self, f.name)))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "VitalSigns":
        """Build a reading from an external record.

        Accepts snake_case, camelCase and the device's own field names.

        Args:
            data: Record holding the six readings.

        Returns:
            Validated reading of this class.

        Raises:
            ValidationError: If a field is missing, non-numeric or not finite.
        """
        if not isinstance(data, Mapping):
            raise ValidationError(f"Expected a mapping of readings, got {type(data).__name__}")

        values: Dict[str, Any] = {}
        for key, raw in data.items():
            feature = FIELD_ALIASES.get(key)
            if feature is not None and feature.value not in values:
                values[feature.value] = raw

        missing = [f.value for f in FEATURES if f.value not in values]
        if missing:
            logger.warning(f"Rejected reading with missing fields: {missing}")
            raise ValidationError(f"Missing vital sign field(s): {', '.join(missing)}", field=missing[0])

        try:
            return cls(**values)
        except ValidationError as e:
            logger.warning(f"Rejected reading: {e}")
            raise

    def get(self, feature: FeatureName) -> float:
        return getattr(self, parse_feature(feature).value)

    def as_array(self) -> np.ndarray:
        """Readings as a float array in ``FeatureName`` order."""
        return np.array([self.get(f) for f in FEATURES], dtype=float)

    def to_dict(self) -> Dict[str, float]:
        return {f.value: self.get(f) for f in FEATURES}


@dataclass(frozen=True)
class TrainingExample:
    """A labeled reading used to build class statistics."""

    vitals: VitalSigns
    label: RiskLabel

    def __post_init__(self):
        object.__setattr__(self, "label", RiskLabel.parse(self.label))


class VitalSignsGenerator:
    """Generate synthetic labeled device readings for research and testing."""

    # Value bands (low-abnormal, normal, high-abnormal) per checked parameter,
    # expressed in calibrated units.
    _BANDS = {
        "temperature": ((34.5, 35.9), (36.2, 37.1), (37.5, 40.0)),
        "heart_rate": ((40.0, 55.0), (62.0, 98.0), (105.0, 150.0)),
        "oxygen_saturation": ((82.0, 93.0), (95.5, 99.5), None),
        "blood_pressure": (((75.0, 88.0), (45.0, 58.0)), ((95.0, 118.0), (62.0, 78.0)),
                           ((125.0, 170.0), (82.0, 105.0))),
    }

    def __init__(self, seed: int = 42, systolic_offset: float = 15.0, diastolic_offset: float = 10.0):
        """Initialize the generator.

        Args:
            seed: Random seed for reproducibility.
            systolic_offset: Sensor bias added to generated systolic readings.
            diastolic_offset: Sensor bias added to generated diastolic readings.
        """
        self.rng = np.random.RandomState(seed)
        self.systolic_offset = systolic_offset
        self.diastolic_offset = diastolic_offset

    def generate_examples(self, n_per_label: int) -> List[TrainingExample]:
        """Generate ``n_per_label`` raw device readings for every risk label.

        Normal readings have at most one abnormal parameter, Reduced exactly two
        and Critical three or four.
        """
        logger.info(f"Generating {n_per_label} synthetic readings per risk label")

        examples = []
        for label in LABELS:
            for _ in range(n_per_label):
                if label is RiskLabel.NORMAL:
                    n_abnormal = self.rng.randint(0, 2)
                elif label is RiskLabel.REDUCED:
                    n_abnormal = 2
                else:
                    n_abnormal = self.rng.randint(3, 5)
                examples.append(TrainingExample(self.generate_reading(n_abnormal), label))

        return examples

    def generate_reading(self, n_abnormal: int) -> VitalSigns:
        """Generate one raw reading with ``n_abnormal`` out-of-range parameters."""
        parameters = list(self._BANDS)
        abnormal = set(self.rng.choice(parameters, size=n_abnormal, replace=False))

        values = {}
        for parameter in parameters:
            band = self._pick_band(parameter, parameter in abnormal)
            if parameter == "blood_pressure":
                (sys_low, sys_high), (dia_low, dia_high) = band
                values["systolic"] = self.rng.uniform(sys_low, sys_high) + self.systolic_offset
                values["diastolic"] = self.rng.uniform(dia_low, dia_high) + self.diastolic_offset
            else:
                values[parameter] = self.rng.uniform(*band)

        values["signal_quality"] = self.rng.uniform(60.0, 100.0)

        return VitalSigns(**{k: round(float(v), 2) for k, v in values.items()})

    def _pick_band(self, parameter: str, abnormal: bool):
        low, normal, high = self._BANDS[parameter]
        if not abnormal:
            return normal
        options = [b for b in (low, high) if b is not None]
        return options[self.rng.randint(0, len(options))]


def examples_to_dataframe(examples: Sequence[TrainingExample]) -> pd.DataFrame:
    """Convert training examples to a DataFrame with a ``label`` column."""
    rows = []
    for example in examples:
        row = example.vitals.to_dict()
        row["label"] = example.label.value
        rows.append(row)

    return pd.DataFrame(rows, columns=[f.value for f in FEATURES] + ["label"])


def examples_from_dataframe(df: pd.DataFrame, label_column: Optional[str] = None) -> List[TrainingExample]:
    """Build training examples from a DataFrame.

    Args:
        df: One row per reading, columns named as accepted by ``VitalSigns.from_mapping``.
        label_column: Label column; defaults to ``label`` or ``kondisi``.

    Returns:
        List of training examples.

    Raises:
        ValidationError: If the label column is missing or a row is invalid.
    """
    if label_column is None:
        label_column = next((c for c in ("label", "kondisi") if c in df.columns), None)
    if label_column is None or label_column not in df.columns:
        raise ValidationError("Training data has no label column", field="label")

    examples = []
    for row in df.to_dict(orient="records"):
        label = RiskLabel.parse(row.pop(label_column))
        examples.append(TrainingExample(VitalSigns.from_mapping(row), label))

    logger.info(f"Loaded {len(examples)} training examples")
    return examples


def load_training_csv(path: Union[str, Path], label_column: Optional[str] = None) -> List[TrainingExample]:
    """Read labeled readings from a CSV file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Training data not found: {path}")

    return examples_from_dataframe(pd.read_csv(path), label_column=label_column)


def label_counts(examples: Iterable[TrainingExample]) -> Dict[RiskLabel, int]:
    """Number of examples per risk label, in canonical order."""
    counts = {label: 0 for label in LABELS}
    for example in examples:
        counts[example.label] += 1
    return counts
