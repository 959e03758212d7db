"""Batch training and evaluation of the risk classifiers."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple

import numpy as np
from omegaconf import DictConfig, OmegaConf
from sklearn.model_selection import train_test_split

from ..calibration import CalibrationOffsets, Calibrator
from ..data import LABELS, TrainingExample, VitalSignsGenerator, label_counts, load_training_csv
from ..metrics import cross_validate_gaussian, evaluate_classifier
from ..models import GaussianNaiveBayesClassifier, RuleBasedClassifier
from ..pipeline import VitalSignsPipeline

logger = logging.getLogger(__name__)


def build_training_set(config: DictConfig) -> List[TrainingExample]:
    """Load labeled readings from ``data.training_csv`` or generate them."""
    training_csv = config.data.get("training_csv")
    if training_csv:
        logger.info(f"Loading training data from {training_csv}")
        return load_training_csv(training_csv)

    offsets = CalibrationOffsets.from_config(config.calibration)
    generator = VitalSignsGenerator(
        seed=config.seed,
        systolic_offset=offsets.systolic_offset,
        diastolic_offset=offsets.diastolic_offset,
    )
    return generator.generate_examples(n_per_label=config.data.n_per_label)


def split_examples(
    examples: List[TrainingExample],
    test_size: float,
    seed: int,
) -> Tuple[List[TrainingExample], List[TrainingExample]]:
    """Stratified train/test split."""
    targets = np.array([e.label.position for e in examples])
    train_idx, test_idx = train_test_split(
        np.arange(len(examples)),
        test_size=test_size,
        random_state=seed,
        stratify=targets,
    )
    return [examples[i] for i in train_idx], [examples[i] for i in test_idx]


def run_experiment(config: DictConfig, output_dir: Path) -> Dict[str, Any]:
    """Train the Gaussian classifier and compare it with the rule-based one.

    Args:
        config: Validated configuration.
        output_dir: Directory for ``results.json``.

    Returns:
        Results dictionary.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    logger.info("Starting experiment")

    examples = build_training_set(config)
    counts = label_counts(examples)
    logger.info(f"Dataset: {len(examples)} examples ({', '.join(f'{k.value}={v}' for k, v in counts.items())})")

    train_examples, test_examples = split_examples(examples, config.data.test_size, config.seed)

    gaussian_config = OmegaConf.merge(config, {"classifier": {"strategy": "gaussian"}})
    pipeline = VitalSignsPipeline.from_config(gaussian_config)
    pipeline.train(train_examples)

    calibrator: Calibrator = pipeline.calibrator
    gaussian: GaussianNaiveBayesClassifier = pipeline.classifier

    logger.info("Evaluating classifiers")
    results: Dict[str, Any] = {
        "n_train": len(train_examples),
        "n_test": len(test_examples),
        "class_distribution": {label.value: counts[label] for label in LABELS},
        "model": pipeline.classifier.describe(),
        "gaussian": evaluate_classifier(gaussian, test_examples, calibrator=calibrator),
        "rule_based": evaluate_classifier(RuleBasedClassifier(), test_examples, calibrator=calibrator),
        "cross_validation": cross_validate_gaussian(
            examples,
            n_splits=config.evaluation.cv_folds,
            seed=config.seed,
            calibrator=calibrator,
            variance_floor=config.gaussian.variance_floor,
            density_epsilon=config.gaussian.density_epsilon,
            min_examples=config.gaussian.min_examples,
        ),
    }

    results_path = output_dir / "results.json"
    with open(results_path, "w") as f:
        json.dump(results, f, indent=2)
    logger.info(f"Results saved to {results_path}")

    return results
