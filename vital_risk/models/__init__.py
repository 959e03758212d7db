"""Risk classifiers for calibrated vital-sign readings.

Two independent strategies share the ``RiskClassifier`` interface:

* ``RuleBasedClassifier`` counts abnormal parameters against fixed clinical
  ranges and reports a fixed probability triple per label.
* ``GaussianNaiveBayesClassifier`` scores each label with per-class Gaussian
  feature statistics learned from labeled readings.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
from scipy.special import logsumexp

from ..data import (
    FEATURES,
    LABELS,
    FeatureName,
    RiskLabel,
    TrainingExample,
    VitalSigns,
    label_counts,
    parse_feature,
)
from ..utils import (
    InsufficientDataError,
    UntrainedModelError,
    ValidationError,
    VitalSignsThresholds,
)

logger = logging.getLogger(__name__)

DEFAULT_VARIANCE_FLOOR = 0.01
DEFAULT_DENSITY_EPSILON = 1e-10
DEFAULT_MIN_EXAMPLES = 2
MIN_STANDARD_DEVIATION = 1e-6

# Population baseline used to standardize readings for exported models that
# ship without their own ``training_stats``.
BASELINE_TRAINING_STATS: Dict[str, Dict[str, float]] = {
    "means": {
        "temperature": 37.0,
        "heart_rate": 80.0,
        "systolic": 120.0,
        "diastolic": 80.0,
        "oxygen_saturation": 98.0,
    },
    "stds": {
        "temperature": 0.5,
        "heart_rate": 15.0,
        "systolic": 15.0,
        "diastolic": 10.0,
        "oxygen_saturation": 2.0,
    },
}


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of classifying one calibrated reading.

    Attributes:
        label: Winning risk label.
        confidence: Probability of the winning label.
        probabilities: Probability per risk label, summing to 1.
        feature_contributions: Non-negative weight per feature, summing to 1.
        vitals: The calibrated reading the decision was made on.
        strategy: Name of the classifier that produced the result.
        abnormal_parameters: Parameters flagged out of range (rule-based only).
        explanation_text: Optional operator-facing summary.
        raw_vitals: The reading as the device sent it, before calibration, when known.
    """

    label: RiskLabel
    confidence: float
    probabilities: Mapping[RiskLabel, float]
    feature_contributions: Mapping[FeatureName, float]
    vitals: VitalSigns
    strategy: str
    abnormal_parameters: Tuple[str, ...] = ()
    explanation_text: Optional[str] = None
    raw_vitals: Optional[VitalSigns] = None

    def __post_init__(self):
        probabilities = {RiskLabel.parse(k): float(v) for k, v in self.probabilities.items()}
        contributions = {parse_feature(k): float(v) for k, v in self.feature_contributions.items()}

        if set(probabilities) != set(LABELS):
            raise ValueError("Probabilities must cover every risk label")
        if set(contributions) != set(FEATURES):
            raise ValueError("Feature contributions must cover every feature")

        object.__setattr__(self, "label", RiskLabel.parse(self.label))
        object.__setattr__(self, "confidence", float(self.confidence))
        object.__setattr__(self, "probabilities", MappingProxyType(probabilities))
        object.__setattr__(self, "feature_contributions", MappingProxyType(contributions))
        object.__setattr__(self, "abnormal_parameters", tuple(self.abnormal_parameters))

    def with_explanation(self, text: str) -> "ClassificationResult":
        return replace(self, explanation_text=text)

    def with_raw_vitals(self, raw_vitals: VitalSigns) -> "ClassificationResult":
        return replace(self, raw_vitals=raw_vitals)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the output shape consumed by storage and display."""
        result = {
            "label": self.label.value,
            "confidence": self.confidence,
            "probabilities": {label.value: self.probabilities[label] for label in LABELS},
            "featureContributions": {f.value: self.feature_contributions[f] for f in FEATURES},
        }
        if self.explanation_text is not None:
            result["explanationText"] = self.explanation_text
        return result


class RiskClassifier(ABC):
    """Interface shared by every classification strategy."""

    name: str = ""

    @abstractmethod
    def classify(self, vitals: VitalSigns) -> ClassificationResult:
        """Classify a calibrated reading."""

    def describe(self) -> Dict[str, Any]:
        return {"algorithm": self.name}


class CheckedParameter(str, Enum):
    """Parameters tested by the rule-based classifier."""

    BLOOD_PRESSURE = "blood_pressure"
    HEART_RATE = "heart_rate"
    OXYGEN_SATURATION = "oxygen_saturation"
    TEMPERATURE = "temperature"


# Feature that carries each checked parameter's weight in explanations.
# Blood pressure is represented by its systolic entry.
_PARAMETER_FEATURES = {
    CheckedParameter.BLOOD_PRESSURE: FeatureName.SYSTOLIC,
    CheckedParameter.HEART_RATE: FeatureName.HEART_RATE,
    CheckedParameter.OXYGEN_SATURATION: FeatureName.OXYGEN_SATURATION,
    CheckedParameter.TEMPERATURE: FeatureName.TEMPERATURE,
}

# Fixed (Normal, Reduced, Critical) probabilities keyed by the winning label.
RULE_PROBABILITIES: Dict[RiskLabel, Tuple[float, float, float]] = {
    RiskLabel.NORMAL: (0.85, 0.10, 0.05),
    RiskLabel.REDUCED: (0.15, 0.80, 0.05),
    RiskLabel.CRITICAL: (0.05, 0.05, 0.90),
}

ABNORMAL_WEIGHT = 0.25
BASELINE_WEIGHT = 0.1


class RuleBasedClassifier(RiskClassifier):
    """Count abnormal vital signs and map the count to a risk label.

    Blood pressure counts once even though it has two components. Signal
    quality is not checked. The probability triple depends only on the
    winning label, so two readings with the same label always receive the
    same confidence.
    """

    name = "rule_based"

    def __init__(self, thresholds: Optional[VitalSignsThresholds] = None):
        self.thresholds = thresholds or VitalSignsThresholds()

    def find_abnormal_parameters(self, vitals: VitalSigns) -> List[CheckedParameter]:
        """Return the checked parameters that fall outside their normal range."""
        abnormal = []

        if not self.thresholds.is_blood_pressure_normal(vitals.systolic, vitals.diastolic):
            abnormal.append(CheckedParameter.BLOOD_PRESSURE)
        if not self.thresholds.is_normal("heart_rate", vitals.heart_rate):
            abnormal.append(CheckedParameter.HEART_RATE)
        if not self.thresholds.is_normal("oxygen_saturation", vitals.oxygen_saturation):
            abnormal.append(CheckedParameter.OXYGEN_SATURATION)
        if not self.thresholds.is_normal("temperature", vitals.temperature):
            abnormal.append(CheckedParameter.TEMPERATURE)

        return abnormal

    @staticmethod
    def label_for_count(abnormal_count: int) -> RiskLabel:
        if abnormal_count >= 3:
            return RiskLabel.CRITICAL
        elif abnormal_count == 2:
            return RiskLabel.REDUCED
        else:
            return RiskLabel.NORMAL

    def classify(self, vitals: VitalSigns) -> ClassificationResult:
        abnormal = self.find_abnormal_parameters(vitals)
        label = self.label_for_count(len(abnormal))
        probabilities = dict(zip(LABELS, RULE_PROBABILITIES[label]))

        weights = {feature: BASELINE_WEIGHT for feature in FEATURES}
        for parameter in abnormal:
            weights[_PARAMETER_FEATURES[parameter]] = ABNORMAL_WEIGHT
        total = sum(weights.values())
        contributions = {feature: weight / total for feature, weight in weights.items()}

        logger.debug(f"Rule-based: {len(abnormal)} abnormal parameter(s) -> {label.value}")

        return ClassificationResult(
            label=label,
            confidence=probabilities[label],
            probabilities=probabilities,
            feature_contributions=contributions,
            vitals=vitals,
            strategy=self.name,
            abnormal_parameters=tuple(p.value for p in abnormal),
        )

    def describe(self) -> Dict[str, Any]:
        """Summarize the ranges and decision rules."""
        return {
            "algorithm": self.name,
            "feature_count": len(CheckedParameter),
            "normal_ranges": {
                "temperature": self.thresholds.TEMPERATURE,
                "heart_rate": self.thresholds.HEART_RATE,
                "oxygen_saturation": self.thresholds.OXYGEN_SATURATION,
                "systolic": self.thresholds.SYSTOLIC,
                "diastolic": self.thresholds.DIASTOLIC,
            },
            "classification_rules": {
                RiskLabel.CRITICAL.value: "abnormal_count >= 3",
                RiskLabel.REDUCED.value: "abnormal_count == 2",
                RiskLabel.NORMAL.value: "abnormal_count <= 1",
            },
        }


@dataclass(frozen=True, eq=False)
class FeatureStandardization:
    """Z-score parameters applied to a reading before it is scored.

    Statistics trained in standardized units (as exported by an external
    trainer) need the same transform at classification time.
    """

    means: np.ndarray
    stds: np.ndarray

    def __post_init__(self):
        means = np.array(self.means, dtype=float)
        stds = np.array(self.stds, dtype=float)

        if means.shape != (len(FEATURES),) or stds.shape != (len(FEATURES),):
            raise ValidationError(f"Standardization needs one mean and std per feature ({len(FEATURES)})")
        if not (np.all(np.isfinite(means)) and np.all(np.isfinite(stds))):
            raise ValidationError("Standardization parameters must be finite")

        stds = np.maximum(stds, MIN_STANDARD_DEVIATION)
        for array in (means, stds):
            array.setflags(write=False)

        object.__setattr__(self, "means", means)
        object.__setattr__(self, "stds", stds)

    def apply(self, x: np.ndarray) -> np.ndarray:
        return (x - self.means) / self.stds

    def to_dict(self, features: Sequence[FeatureName]) -> Dict[str, Dict[str, float]]:
        return {
            "means": {f.value: float(self.means[f.position]) for f in features},
            "stds": {f.value: float(self.stds[f.position]) for f in features},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], features: Sequence[FeatureName]) -> "FeatureStandardization":
        """Parse a ``{"means": ..., "stds": ...}`` table covering ``features``.

        Raises:
            ValidationError: If a table or one of ``features`` is missing.
        """
        if "means" not in data or "stds" not in data:
            raise ValidationError("Training stats need 'means' and 'stds' tables")

        means = _feature_values(data["means"])
        stds = _feature_values(data["stds"])
        missing = [f.value for f in features if f not in means or f not in stds]
        if missing:
            raise ValidationError(f"Training stats missing feature(s): {', '.join(missing)}", field=missing[0])

        # Features outside ``features`` are never scored; identity placeholders
        return cls(
            means=[means[f] if f in features else 0.0 for f in FEATURES],
            stds=[stds[f] if f in features else 1.0 for f in FEATURES],
        )


@dataclass(frozen=True, eq=False)
class ClassStatistics:
    """Per-label priors and per-feature Gaussian parameters.

    Arrays are indexed by canonical label order and ``FeatureName`` order and
    are read-only; retraining produces a new instance.

    Statistics may cover a subset of the features. Features outside
    ``feature_mask`` carry neutral evidence: they add nothing to any label's
    log-probability and receive zero contribution.

    Attributes:
        priors: Shape (3,), sums to 1.
        means: Shape (3, 6).
        variances: Shape (3, 6), strictly positive.
        counts: Training examples per label.
        feature_mask: Which features the statistics cover, in ``FeatureName`` order.
        standardization: Optional z-score transform applied to readings before scoring.
    """

    priors: np.ndarray
    means: np.ndarray
    variances: np.ndarray
    counts: Tuple[int, ...] = (0, 0, 0)
    feature_mask: Tuple[bool, ...] = (True,) * len(FEATURES)
    standardization: Optional[FeatureStandardization] = None

    def __post_init__(self):
        n_labels, n_features = len(LABELS), len(FEATURES)

        priors = np.array(self.priors, dtype=float)
        means = np.array(self.means, dtype=float)
        variances = np.array(self.variances, dtype=float)
        feature_mask = tuple(bool(m) for m in self.feature_mask)

        if priors.shape != (n_labels,):
            raise ValidationError(f"Priors must have shape ({n_labels},), got {priors.shape}")
        if means.shape != (n_labels, n_features) or variances.shape != (n_labels, n_features):
            raise ValidationError(f"Means and variances must have shape ({n_labels}, {n_features})")
        if not (np.all(np.isfinite(priors)) and np.all(np.isfinite(means)) and np.all(np.isfinite(variances))):
            raise ValidationError("Class statistics must be finite")
        if np.any(priors < 0) or abs(priors.sum() - 1.0) > 1e-6:
            raise ValidationError(f"Priors must be non-negative and sum to 1, got {priors.tolist()}")
        if np.any(variances <= 0):
            raise ValidationError("Variances must be strictly positive")
        if len(feature_mask) != n_features or not any(feature_mask):
            raise ValidationError(f"Feature mask must have {n_features} entries with at least one feature")

        for array in (priors, means, variances):
            array.setflags(write=False)

        object.__setattr__(self, "priors", priors)
        object.__setattr__(self, "means", means)
        object.__setattr__(self, "variances", variances)
        object.__setattr__(self, "counts", tuple(int(c) for c in self.counts))
        object.__setattr__(self, "feature_mask", feature_mask)

    def prior(self, label: RiskLabel) -> float:
        return float(self.priors[RiskLabel.parse(label).position])

    def mean(self, label: RiskLabel, feature: FeatureName) -> float:
        return float(self.means[RiskLabel.parse(label).position, parse_feature(feature).position])

    def variance(self, label: RiskLabel, feature: FeatureName) -> float:
        return float(self.variances[RiskLabel.parse(label).position, parse_feature(feature).position])

    @property
    def n_samples(self) -> int:
        return sum(self.counts)

    @property
    def active_features(self) -> List[FeatureName]:
        return [f for f, active in zip(FEATURES, self.feature_mask) if active]

    def to_dict(self) -> Dict[str, Any]:
        """Export as a plain mapping keyed by label and feature names.

        Only covered features are written; ``training_stats`` is included
        when the statistics standardize their inputs.
        """
        features = self.active_features
        result = {
            "prior": {label.value: float(self.priors[i]) for i, label in enumerate(LABELS)},
            "means": {
                label.value: {f.value: float(self.means[i, f.position]) for f in features}
                for i, label in enumerate(LABELS)
            },
            "variances": {
                label.value: {f.value: float(self.variances[i, f.position]) for f in features}
                for i, label in enumerate(LABELS)
            },
            "counts": {label.value: self.counts[i] for i, label in enumerate(LABELS)},
        }
        if self.standardization is not None:
            result["training_stats"] = self.standardization.to_dict(features)
        return result

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        variance_floor: float = DEFAULT_VARIANCE_FLOOR,
        default_training_stats: Optional[Mapping[str, Any]] = None,
    ) -> "ClassStatistics":
        """Import statistics exported by ``to_dict`` or by an external trainer.

        Labels may be names, source terms or class indices ("0", "1", "2").
        A ``std`` table is accepted in place of ``variances``. Every label must
        cover the same features; features absent from all of them are left out
        of scoring. Externally trained models store z-scored statistics: their
        ``training_stats`` (or ``default_training_stats``, for example
        ``BASELINE_TRAINING_STATS``, when the export has none) become the
        standardization applied before scoring.

        Raises:
            ValidationError: If a label, table or feature is missing or the
                labels disagree on which features they cover.
        """
        prior_table = data.get("prior", data.get("priors"))
        if prior_table is None or "means" not in data:
            raise ValidationError("Class statistics need 'prior' and 'means' tables")

        if "variances" in data:
            spread_name, squared = "variances", False
        elif "std" in data:
            spread_name, squared = "std", True
        else:
            raise ValidationError("Class statistics need a 'variances' or 'std' table")

        priors = _label_table(prior_table)
        means = {label: _feature_values(row) for label, row in _label_table(data["means"]).items()}
        spreads = {label: _feature_values(row) for label, row in _label_table(data[spread_name]).items()}

        features = [f for f in FEATURES if f in means[LABELS[0]]]
        if not features:
            raise ValidationError("Class statistics cover no features")
        for table_name, table in (("means", means), (spread_name, spreads)):
            for label in LABELS:
                if set(table[label]) != set(features):
                    differing = sorted(f.value for f in set(table[label]) ^ set(features))
                    raise ValidationError(
                        f"Class statistics '{table_name}' for {label.value} cover different "
                        f"features: {', '.join(differing)}",
                        field=differing[0],
                    )

        mean_rows = [[means[label].get(f, 0.0) for f in FEATURES] for label in LABELS]
        spread_rows = np.array([[spreads[label].get(f, 1.0) for f in FEATURES] for label in LABELS])
        variances = spread_rows ** 2 if squared else spread_rows

        counts = data.get("counts")
        counts = tuple(int(v) for v in _label_table(counts).values()) if counts else (0, 0, 0)

        training_stats = data.get("training_stats", default_training_stats)
        standardization = (
            FeatureStandardization.from_dict(training_stats, features) if training_stats is not None else None
        )

        logger.info(
            f"Imported class statistics over {len(features)} feature(s)"
            f"{' with standardization' if standardization is not None else ''}"
        )

        return cls(
            priors=[float(priors[label]) for label in LABELS],
            means=mean_rows,
            variances=np.maximum(variances, variance_floor),
            counts=counts,
            feature_mask=tuple(f in features for f in FEATURES),
            standardization=standardization,
        )


def _label_table(table: Mapping[Any, Any]) -> Dict[RiskLabel, Any]:
    parsed = {RiskLabel.parse(k): v for k, v in table.items()}
    missing = [label.value for label in LABELS if label not in parsed]
    if missing:
        raise ValidationError(f"Class statistics missing label(s): {', '.join(missing)}", field="label")
    return {label: parsed[label] for label in LABELS}


def _feature_values(row: Mapping[Any, Any]) -> Dict[FeatureName, float]:
    return {parse_feature(k): float(v) for k, v in row.items()}


def train_class_statistics(
    examples: Iterable[TrainingExample],
    variance_floor: float = DEFAULT_VARIANCE_FLOOR,
    min_examples: int = DEFAULT_MIN_EXAMPLES,
) -> ClassStatistics:
    """Compute batch Gaussian statistics from labeled readings.

    Priors are label frequencies. Variances are population variances
    (divided by the label count) floored at ``variance_floor``, which also
    covers labels with a single example.

    Args:
        examples: Labeled readings, already in the space they will be classified in.
        variance_floor: Smallest allowed variance.
        min_examples: Smallest allowed training set.

    Returns:
        New class statistics.

    Raises:
        InsufficientDataError: If there are too few examples or a label has none.
    """
    if variance_floor <= 0:
        raise ValueError("Variance floor must be positive")

    examples = list(examples)
    if len(examples) < min_examples:
        raise InsufficientDataError(
            f"Need at least {min_examples} training examples, got {len(examples)}"
        )

    counts = label_counts(examples)
    empty = [label.value for label, count in counts.items() if count == 0]
    if empty:
        raise InsufficientDataError(f"No training examples for label(s): {', '.join(empty)}")

    features = np.vstack([example.vitals.as_array() for example in examples])
    targets = np.array([example.label.position for example in examples])

    means = np.vstack([features[targets == i].mean(axis=0) for i in range(len(LABELS))])
    variances = np.vstack([features[targets == i].var(axis=0) for i in range(len(LABELS))])
    priors = np.array([counts[label] for label in LABELS], dtype=float) / len(examples)

    logger.info(
        f"Trained class statistics on {len(examples)} examples "
        f"({', '.join(f'{label.value}={count}' for label, count in counts.items())})"
    )

    return ClassStatistics(
        priors=priors,
        means=means,
        variances=np.maximum(variances, variance_floor),
        counts=tuple(counts[label] for label in LABELS),
    )


def gaussian_density(x: np.ndarray, mean: np.ndarray, variance: np.ndarray) -> np.ndarray:
    """Normal probability density, element-wise."""
    return np.exp(-((x - mean) ** 2) / (2 * variance)) / np.sqrt(2 * np.pi * variance)


class GaussianNaiveBayesClassifier(RiskClassifier):
    """Gaussian Naive Bayes over the six readings.

    Statistics are either injected or produced by ``train``. Retraining swaps
    in a new ``ClassStatistics`` reference; each ``classify`` call reads that
    reference once, so concurrent callers see old or new statistics, never a mix.

    Feature contributions are ``|ln(density + eps)|`` for the winning label,
    normalized. They measure magnitude of evidence, not signed impact on the
    decision.
    """

    name = "gaussian"

    def __init__(
        self,
        statistics: Optional[ClassStatistics] = None,
        density_epsilon: float = DEFAULT_DENSITY_EPSILON,
        variance_floor: float = DEFAULT_VARIANCE_FLOOR,
        min_examples: int = DEFAULT_MIN_EXAMPLES,
    ):
        """Initialize the classifier.

        Args:
            statistics: Pre-computed class statistics, if any.
            density_epsilon: Added to every density before taking its log.
            variance_floor: Passed to training.
            min_examples: Passed to training.
        """
        if density_epsilon <= 0:
            raise ValueError("Density epsilon must be positive")

        self._statistics = statistics
        self.density_epsilon = density_epsilon
        self.variance_floor = variance_floor
        self.min_examples = min_examples

    @property
    def statistics(self) -> Optional[ClassStatistics]:
        return self._statistics

    @property
    def is_trained(self) -> bool:
        return self._statistics is not None

    def train(self, examples: Sequence[TrainingExample]) -> ClassStatistics:
        """Fit statistics on ``examples`` and replace the current ones."""
        statistics = train_class_statistics(
            examples, variance_floor=self.variance_floor, min_examples=self.min_examples
        )
        self._statistics = statistics
        return statistics

    def log_densities(self, vitals: VitalSigns, statistics: ClassStatistics) -> np.ndarray:
        """``ln(density + eps)`` per label and feature, shape (3, 6).

        Readings are standardized first when the statistics carry a
        standardization. Features the statistics do not cover are 0 for
        every label.
        """
        x = vitals.as_array()
        if statistics.standardization is not None:
            x = statistics.standardization.apply(x)

        densities = gaussian_density(x[np.newaxis, :], statistics.means, statistics.variances)
        log_densities = np.log(densities + self.density_epsilon)
        log_densities[:, ~np.array(statistics.feature_mask)] = 0.0
        return log_densities

    def classify(
        self,
        vitals: VitalSigns,
        statistics: Optional[ClassStatistics] = None,
    ) -> ClassificationResult:
        """Classify a calibrated reading.

        Args:
            vitals: Calibrated reading.
            statistics: Statistics to use instead of the held ones.

        Returns:
            Classification result.

        Raises:
            UntrainedModelError: If no statistics were given or trained.
        """
        stats = statistics if statistics is not None else self._statistics
        if stats is None:
            raise UntrainedModelError("Gaussian classifier has no statistics; call train() first")

        log_densities = self.log_densities(vitals, stats)
        with np.errstate(divide="ignore"):
            log_priors = np.log(stats.priors)
        log_probs = log_priors + log_densities.sum(axis=1)

        probabilities = np.exp(log_probs - logsumexp(log_probs))
        probabilities = probabilities / probabilities.sum()

        # argmax keeps the first maximum, so exact ties go to the least severe label
        winner = int(np.argmax(probabilities))
        label = LABELS[winner]

        evidence = np.abs(log_densities[winner])
        total = evidence.sum()
        if total > 0:
            contributions = evidence / total
        else:
            mask = np.array(stats.feature_mask, dtype=float)
            contributions = mask / mask.sum()

        logger.debug(f"Gaussian: log-probabilities {log_probs.tolist()} -> {label.value}")

        return ClassificationResult(
            label=label,
            confidence=float(probabilities[winner]),
            probabilities={lab: float(p) for lab, p in zip(LABELS, probabilities)},
            feature_contributions={f: float(c) for f, c in zip(FEATURES, contributions)},
            vitals=vitals,
            strategy=self.name,
        )

    def describe(self) -> Dict[str, Any]:
        description = {"algorithm": self.name, "trained": self.is_trained}
        if self._statistics is not None:
            description["training_data_count"] = self._statistics.n_samples
            description["features"] = [f.value for f in self._statistics.active_features]
            description["standardized"] = self._statistics.standardization is not None
            description["class_priors"] = {
                label.value: self._statistics.prior(label) for label in LABELS
            }
        return description


def create_classifier(strategy: str, **kwargs) -> RiskClassifier:
    """Create a classifier by strategy name.

    Args:
        strategy: ``rule_based`` or ``gaussian`` (aliases accepted).
        **kwargs: Constructor parameters; ones the strategy does not take are ignored.

    Returns:
        Initialized classifier.

    Raises:
        ValueError: If the strategy is not recognized.
    """
    classifiers = {
        "rule_based": RuleBasedClassifier,
        "rules": RuleBasedClassifier,
        "gaussian": GaussianNaiveBayesClassifier,
        "naive_bayes": GaussianNaiveBayesClassifier,
        "gnb": GaussianNaiveBayesClassifier,
    }

    key = str(strategy).lower()
    if key not in classifiers:
        raise ValueError(f"Unknown classifier: {strategy}. Available classifiers: {list(classifiers.keys())}")

    classifier_class = classifiers[key]

    # Filter kwargs to the parameters each classifier takes
    if classifier_class is RuleBasedClassifier:
        valid_params = {k: v for k, v in kwargs.items() if k in ["thresholds"]}
    else:
        valid_params = {k: v for k, v in kwargs.items()
                        if k in ["statistics", "density_epsilon", "variance_floor", "min_examples"]}

    return classifier_class(**valid_params)
