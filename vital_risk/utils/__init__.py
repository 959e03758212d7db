"""Core utilities for the vital-sign risk classification core."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from omegaconf import DictConfig, OmegaConf


class VitalRiskError(Exception):
    """Base class for errors raised by the classification core."""


class ValidationError(VitalRiskError, ValueError):
    """A vital-sign reading is missing, non-numeric or not finite."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class InsufficientDataError(VitalRiskError, ValueError):
    """Training data is too small or is missing a risk label."""


class UntrainedModelError(VitalRiskError, RuntimeError):
    """A statistical classifier was asked to classify before training."""


DEFAULT_CONFIG: Dict[str, Any] = {
    "seed": 42,
    "classifier": {
        "strategy": "rule_based",
    },
    "calibration": {
        # Sensor reads high against a reference cuff.
        "systolic_offset": 15.0,
        "diastolic_offset": 10.0,
    },
    "gaussian": {
        "variance_floor": 0.01,
        "density_epsilon": 1.0e-10,
        "min_examples": 2,
    },
    "data": {
        "training_csv": None,
        "n_per_label": 60,
        "test_size": 0.25,
    },
    "evaluation": {
        "cv_folds": 5,
    },
    "logging": {
        "level": "INFO",
    },
    "output": {
        "save_dir": "outputs",
    },
}

KNOWN_STRATEGIES = ("rule_based", "rules", "gaussian", "naive_bayes", "gnb")


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """Setup logging configuration.

    Args:
        level: Logging level.
        log_file: Optional log file path.

    Returns:
        Configured logger.
    """
    logger = logging.getLogger("vital_risk")
    logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


class VitalSignsThresholds:
    """Clinical normal ranges used by the rule-based classifier.

    Bounds are inclusive. Blood pressure values are post-calibration.
    """

    TEMPERATURE = (36.1, 37.2)  # Celsius
    HEART_RATE = (60.0, 100.0)  # bpm
    OXYGEN_SATURATION = (95.0, 100.0)  # percentage
    SYSTOLIC = (90.0, 120.0)  # mmHg
    DIASTOLIC = (60.0, 80.0)  # mmHg

    @classmethod
    def get_normal_range(cls, vital_sign: str) -> Tuple[float, float]:
        """Get normal range for a vital sign.

        Args:
            vital_sign: Name of the vital sign.

        Returns:
            Tuple of (lower_bound, upper_bound).

        Raises:
            ValueError: If vital sign has no normal range.
        """
        vital_sign = vital_sign.lower().replace(" ", "_")

        ranges = {
            "temperature": cls.TEMPERATURE,
            "heart_rate": cls.HEART_RATE,
            "oxygen_saturation": cls.OXYGEN_SATURATION,
            "systolic": cls.SYSTOLIC,
            "diastolic": cls.DIASTOLIC,
        }

        if vital_sign not in ranges:
            raise ValueError(f"Unknown vital sign: {vital_sign}")

        return ranges[vital_sign]

    @classmethod
    def is_normal(cls, vital_sign: str, value: float) -> bool:
        """Check if a vital sign value is within its normal range."""
        low, high = cls.get_normal_range(vital_sign)
        return low <= value <= high

    @classmethod
    def is_blood_pressure_normal(cls, systolic: float, diastolic: float) -> bool:
        """Both components must be in range for blood pressure to be normal."""
        return cls.is_normal("systolic", systolic) and cls.is_normal("diastolic", diastolic)


def load_config(
    path: Optional[Union[str, Path]] = None,
    overrides: Optional[List[str]] = None,
) -> DictConfig:
    """Load configuration on top of the defaults.

    Args:
        path: Optional YAML file merged over ``DEFAULT_CONFIG``.
        overrides: Optional dotlist overrides, e.g. ``["classifier.strategy=gaussian"]``.

    Returns:
        Validated configuration.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the merged configuration is invalid.
    """
    config = OmegaConf.create(DEFAULT_CONFIG)

    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        config = OmegaConf.merge(config, OmegaConf.load(config_path))

    if overrides:
        config = OmegaConf.merge(config, OmegaConf.from_dotlist(list(overrides)))

    return validate_config(config)


def validate_config(config: DictConfig) -> DictConfig:
    """Validate configuration parameters.

    Args:
        config: Configuration object.

    Returns:
        Validated configuration.

    Raises:
        ValueError: If configuration is invalid.
    """
    required_keys = ["classifier", "calibration", "gaussian"]

    for key in required_keys:
        if key not in config:
            raise ValueError(f"Missing required config key: {key}")

    if "strategy" not in config.classifier:
        raise ValueError("Classifier strategy is required")

    if str(config.classifier.strategy).lower() not in KNOWN_STRATEGIES:
        raise ValueError(
            f"Unknown classifier strategy: {config.classifier.strategy}. "
            f"Available strategies: {list(KNOWN_STRATEGIES)}"
        )

    for key in ("systolic_offset", "diastolic_offset"):
        if key not in config.calibration:
            raise ValueError(f"Calibration {key} is required")

    if config.gaussian.get("variance_floor", 0) <= 0:
        raise ValueError("Variance floor must be positive")

    if config.gaussian.get("density_epsilon", 0) <= 0:
        raise ValueError("Density epsilon must be positive")

    if config.gaussian.get("min_examples", 0) < 2:
        raise ValueError("Minimum training examples must be at least 2")

    if "evaluation" in config and config.evaluation.get("cv_folds", 2) < 2:
        raise ValueError("Cross-validation needs at least 2 folds")

    return config


def format_vital_sign_name(name: str) -> str:
    """Format vital sign name for display."""
    return name.replace("_", " ").title()
