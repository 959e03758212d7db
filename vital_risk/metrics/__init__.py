"""Metrics and evaluation for risk classifiers."""

import logging
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
from sklearn.metrics import (
    accuracy_score,
    classification_report,
    confusion_matrix,
    f1_score,
    precision_recall_fscore_support,
    precision_score,
    recall_score,
)
from sklearn.model_selection import StratifiedKFold

from ..calibration import Calibrator
from ..data import LABELS, RiskLabel, TrainingExample, label_counts
from ..models import (
    DEFAULT_DENSITY_EPSILON,
    DEFAULT_MIN_EXAMPLES,
    DEFAULT_VARIANCE_FLOOR,
    GaussianNaiveBayesClassifier,
    RiskClassifier,
)
from ..utils import InsufficientDataError

logger = logging.getLogger(__name__)

_LABEL_INDICES = list(range(len(LABELS)))


class ClassificationMetrics:
    """Metrics calculator over the three risk labels."""

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        """Reset all metrics."""
        self.predictions: List[int] = []
        self.targets: List[int] = []
        self.confidences: List[float] = []

    def update(
        self,
        predictions: Sequence[RiskLabel],
        targets: Sequence[RiskLabel],
        confidences: Optional[Sequence[float]] = None,
    ) -> None:
        """Update metrics with new predictions.

        Args:
            predictions: Predicted labels.
            targets: Ground truth labels.
            confidences: Confidence of each prediction.
        """
        if len(predictions) != len(targets):
            raise ValueError("Predictions and targets must have the same length")

        self.predictions.extend(RiskLabel.parse(p).position for p in predictions)
        self.targets.extend(RiskLabel.parse(t).position for t in targets)

        if confidences is not None:
            self.confidences.extend(float(c) for c in confidences)

    def compute(self) -> Dict[str, Any]:
        """Compute all metrics.

        Returns:
            Accuracy, weighted precision/recall/F1, per-label scores keyed by
            label name and the confusion matrix in canonical label order.
        """
        if not self.targets:
            raise ValueError("No predictions to evaluate")

        predictions = np.array(self.predictions)
        targets = np.array(self.targets)

        metrics: Dict[str, Any] = {}
        metrics["accuracy"] = float(accuracy_score(targets, predictions))
        metrics["precision"] = float(precision_score(
            targets, predictions, labels=_LABEL_INDICES, average="weighted", zero_division=0))
        metrics["recall"] = float(recall_score(
            targets, predictions, labels=_LABEL_INDICES, average="weighted", zero_division=0))
        metrics["f1"] = float(f1_score(
            targets, predictions, labels=_LABEL_INDICES, average="weighted", zero_division=0))

        precision, recall, f1, support = precision_recall_fscore_support(
            targets, predictions, labels=_LABEL_INDICES, zero_division=0
        )
        metrics["per_class"] = {
            label.value: {
                "precision": float(precision[i]),
                "recall": float(recall[i]),
                "f1": float(f1[i]),
                "support": int(support[i]),
            }
            for i, label in enumerate(LABELS)
        }

        metrics["confusion_matrix"] = self.get_confusion_matrix().tolist()

        if self.confidences:
            metrics["mean_confidence"] = float(np.mean(self.confidences))

        return metrics

    def get_confusion_matrix(self) -> np.ndarray:
        """Confusion matrix with rows as true labels, canonical order."""
        return confusion_matrix(self.targets, self.predictions, labels=_LABEL_INDICES)

    def get_classification_report(self) -> str:
        """Get detailed classification report."""
        return classification_report(
            self.targets,
            self.predictions,
            labels=_LABEL_INDICES,
            target_names=[label.value for label in LABELS],
            zero_division=0,
        )


def evaluate_classifier(
    classifier: RiskClassifier,
    examples: Sequence[TrainingExample],
    calibrator: Optional[Calibrator] = None,
) -> Dict[str, Any]:
    """Classify every example and score the predictions.

    Args:
        classifier: Classifier to evaluate.
        examples: Labeled readings. Calibrated first when ``calibrator`` is given.
        calibrator: Optional calibrator applied to each reading.

    Returns:
        Metrics dictionary with ``n_samples`` added.
    """
    metrics = ClassificationMetrics()

    predictions, targets, confidences = [], [], []
    for example in examples:
        vitals = calibrator.calibrate(example.vitals) if calibrator else example.vitals
        result = classifier.classify(vitals)
        predictions.append(result.label)
        targets.append(example.label)
        confidences.append(result.confidence)

    metrics.update(predictions, targets, confidences)
    results = metrics.compute()
    results["n_samples"] = len(targets)

    logger.info(f"{classifier.name} accuracy: {results['accuracy']:.3f} on {len(targets)} samples")
    return results


def cross_validate_gaussian(
    examples: Sequence[TrainingExample],
    n_splits: int = 5,
    seed: int = 42,
    calibrator: Optional[Calibrator] = None,
    variance_floor: float = DEFAULT_VARIANCE_FLOOR,
    density_epsilon: float = DEFAULT_DENSITY_EPSILON,
    min_examples: int = DEFAULT_MIN_EXAMPLES,
) -> Dict[str, Any]:
    """Stratified k-fold accuracy of the Gaussian classifier.

    Each fold trains a fresh classifier on the remaining folds.

    Raises:
        InsufficientDataError: If some label has fewer examples than folds, or
            a training fold is smaller than ``min_examples``.
    """
    if n_splits < 2:
        raise ValueError("Cross-validation needs at least 2 folds")

    examples = list(examples)
    if calibrator is not None:
        examples = [TrainingExample(calibrator.calibrate(e.vitals), e.label) for e in examples]

    counts = label_counts(examples)
    too_small = [label.value for label, count in counts.items() if count < n_splits]
    if too_small:
        raise InsufficientDataError(
            f"Need at least {n_splits} examples per label for {n_splits}-fold cross-validation; "
            f"too few for: {', '.join(too_small)}"
        )

    targets = np.array([e.label.position for e in examples])
    splitter = StratifiedKFold(n_splits=n_splits, shuffle=True, random_state=seed)

    fold_scores = []
    for fold, (train_idx, test_idx) in enumerate(splitter.split(np.zeros(len(targets)), targets)):
        classifier = GaussianNaiveBayesClassifier(
            density_epsilon=density_epsilon,
            variance_floor=variance_floor,
            min_examples=min_examples,
        )
        classifier.train([examples[i] for i in train_idx])
        fold_results = evaluate_classifier(classifier, [examples[i] for i in test_idx])
        fold_scores.append(fold_results["accuracy"])
        logger.info(f"Fold {fold + 1}/{n_splits}: accuracy {fold_results['accuracy']:.3f}")

    return {
        "n_splits": n_splits,
        "fold_accuracies": fold_scores,
        "mean_cv_score": float(np.mean(fold_scores)),
        "std_cv_score": float(np.std(fold_scores)),
    }
