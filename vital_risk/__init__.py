"""Vital-sign risk classification core."""

from .calibration import CalibratedVitalSigns, CalibrationOffsets, Calibrator
from .data import FeatureName, RiskLabel, TrainingExample, VitalSigns
from .explainability import FeatureExplanation, explain
from .models import (
    BASELINE_TRAINING_STATS,
    ClassificationResult,
    ClassStatistics,
    FeatureStandardization,
    GaussianNaiveBayesClassifier,
    RiskClassifier,
    RuleBasedClassifier,
    create_classifier,
    train_class_statistics,
)
from .pipeline import VitalSignsPipeline
from .utils import InsufficientDataError, UntrainedModelError, ValidationError, load_config

__version__ = "0.1.0"
