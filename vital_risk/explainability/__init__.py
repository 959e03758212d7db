"""Feature-contribution explanations for classification results."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from ..data import FEATURES, FeatureName
from ..models import ClassificationResult
from ..utils import format_vital_sign_name

logger = logging.getLogger(__name__)

DISPLAY_NAMES: Dict[FeatureName, str] = {
    FeatureName.TEMPERATURE: "Body Temperature (C)",
    FeatureName.HEART_RATE: "Heart Rate (BPM)",
    FeatureName.OXYGEN_SATURATION: "Oxygen Saturation (%)",
    FeatureName.SYSTOLIC: "Systolic (mmHg)",
    FeatureName.DIASTOLIC: "Diastolic (mmHg)",
    FeatureName.SIGNAL_QUALITY: "Signal Quality",
}


@dataclass(frozen=True)
class FeatureExplanation:
    """One feature's share of a classification decision.

    ``raw_value`` is the reading as the device sent it; ``calibrated_value``
    is what the classifier saw. They differ only for blood pressure.
    """

    feature_name: FeatureName
    contribution_percent: float
    raw_value: float
    calibrated_value: float

    @property
    def display_name(self) -> str:
        return DISPLAY_NAMES.get(self.feature_name, format_vital_sign_name(self.feature_name.value))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "featureName": self.feature_name.value,
            "contributionPercent": self.contribution_percent,
            "rawValue": self.raw_value,
            "calibratedValue": self.calibrated_value,
        }


def explain(result: ClassificationResult) -> List[FeatureExplanation]:
    """Rank features by their contribution to ``result``, largest first.

    Uses the contributions the classifier already computed; equal
    contributions keep feature order. Raw values come from the uncalibrated
    reading when the result carries one.

    Args:
        result: Output of either classifier.

    Returns:
        One entry per feature, contribution expressed in percent.
    """
    ranked = sorted(FEATURES, key=lambda f: result.feature_contributions[f], reverse=True)
    raw = result.raw_vitals if result.raw_vitals is not None else result.vitals

    return [
        FeatureExplanation(
            feature_name=feature,
            contribution_percent=result.feature_contributions[feature] * 100,
            raw_value=raw.get(feature),
            calibrated_value=result.vitals.get(feature),
        )
        for feature in ranked
    ]


def build_explanation_text(result: ClassificationResult, top_k: int = 3) -> str:
    """Render a short operator summary of a result.

    Rule-based results list the abnormal parameters; other strategies list
    the ``top_k`` features carrying the most evidence.
    """
    lines = [
        f"Classification: {result.label.value} ({result.confidence * 100:.1f}% confidence)",
        f"Method: {result.strategy}",
    ]

    if result.strategy == "rule_based":
        abnormal = [format_vital_sign_name(p) for p in result.abnormal_parameters]
        lines.append(f"Abnormal parameters: {len(abnormal)}/4 ({', '.join(abnormal) or 'none'})")
        lines.append("Rules: >= 3 abnormal -> Critical, 2 -> Reduced, <= 1 -> Normal")
    else:
        top = explain(result)[:top_k]
        lines.append(
            "Strongest evidence: "
            + ", ".join(f"{e.display_name} {e.contribution_percent:.1f}%" for e in top)
        )

    probabilities = ", ".join(f"{label.value} {p * 100:.1f}%" for label, p in result.probabilities.items())
    lines.append(f"Probabilities: {probabilities}")

    return "\n".join(lines)
