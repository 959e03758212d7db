"""Validate, calibrate, classify and explain one reading."""

import logging
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from omegaconf import DictConfig

from ..calibration import CalibrationOffsets, Calibrator
from ..data import TrainingExample, VitalSigns
from ..explainability import FeatureExplanation, build_explanation_text, explain
from ..models import (
    ClassificationResult,
    ClassStatistics,
    GaussianNaiveBayesClassifier,
    RiskClassifier,
    create_classifier,
)

logger = logging.getLogger(__name__)

Reading = Union[VitalSigns, Mapping[str, Any]]


class VitalSignsPipeline:
    """Runs a reading through calibration and the configured classifier.

    Errors from validation or an untrained model propagate to the caller;
    the pipeline never substitutes a default label.
    """

    def __init__(self, classifier: RiskClassifier, calibrator: Optional[Calibrator] = None):
        self.classifier = classifier
        self.calibrator = calibrator or Calibrator()

    @classmethod
    def from_config(
        cls,
        config: DictConfig,
        statistics: Optional[ClassStatistics] = None,
    ) -> "VitalSignsPipeline":
        """Build a pipeline from a validated configuration.

        Args:
            config: Configuration as returned by ``load_config``.
            statistics: Optional statistics for the Gaussian strategy.
        """
        gaussian = config.get("gaussian") or {}
        params = {
            key: gaussian[key]
            for key in ("density_epsilon", "variance_floor", "min_examples")
            if gaussian.get(key) is not None
        }
        classifier = create_classifier(config.classifier.strategy, statistics=statistics, **params)
        calibrator = Calibrator(CalibrationOffsets.from_config(config.get("calibration")))

        logger.info(f"Pipeline using {classifier.name} classifier, {calibrator!r}")
        return cls(classifier, calibrator)

    def _to_vitals(self, reading: Reading) -> VitalSigns:
        if isinstance(reading, VitalSigns):
            return reading
        return VitalSigns.from_mapping(reading)

    def classify(self, reading: Reading) -> ClassificationResult:
        """Classify a raw device reading or external record.

        Raises:
            ValidationError: If the reading is invalid.
            UntrainedModelError: If a Gaussian classifier has no statistics.
        """
        vitals = self._to_vitals(reading)
        calibrated = self.calibrator.calibrate(vitals)
        result = self.classifier.classify(calibrated).with_raw_vitals(vitals)
        return result.with_explanation(build_explanation_text(result))

    def explain(self, reading: Reading) -> Tuple[ClassificationResult, List[FeatureExplanation]]:
        result = self.classify(reading)
        return result, explain(result)

    def train(self, examples: Sequence[TrainingExample]) -> ClassStatistics:
        """Calibrate the examples and retrain the Gaussian classifier on them.

        Raises:
            TypeError: If the classifier is not trainable.
            InsufficientDataError: If the examples cannot support training.
        """
        if not isinstance(self.classifier, GaussianNaiveBayesClassifier):
            raise TypeError(f"{self.classifier.name} classifier does not train")

        calibrated = [
            TrainingExample(self.calibrator.calibrate(example.vitals), example.label)
            for example in examples
        ]
        return self.classifier.train(calibrated)
