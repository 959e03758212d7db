#!/usr/bin/env python3
"""Simple example script demonstrating vital-sign risk classification."""

from vital_risk.data import VitalSignsGenerator
from vital_risk.explainability import explain
from vital_risk.metrics import evaluate_classifier
from vital_risk.pipeline import VitalSignsPipeline
from vital_risk.utils import load_config


def print_result(title, pipeline, reading):
    result, explanations = pipeline.explain(reading)
    print(title)
    print(f"  Label: {result.label.value}  Confidence: {result.confidence:.3f}")
    print("  Probabilities: " + ", ".join(
        f"{label.value}={p:.3f}" for label, p in result.probabilities.items()))
    for entry in explanations[:3]:
        print(f"  {entry.display_name:<24} {entry.contribution_percent:5.1f}%  value={entry.raw_value:.1f}")
    print()


def main():
    """Main example function."""
    print("Vital-Sign Risk Classification - Example")
    print("=" * 50)
    print("DISCLAIMER: research/education only, NOT for clinical use!")
    print()

    readings = {
        "Healthy reading": {
            "temperature": 36.8, "heart_rate": 80, "oxygen_saturation": 98,
            "systolic": 115, "diastolic": 75, "signal_quality": 88,
        },
        "Fever, tachycardia, hypoxemia": {
            "suhu": 39.0, "bpm": 125, "spo2": 89,
            "tekanan_sys": 130, "tekanan_dia": 85, "signal_quality": 70,
        },
    }

    # Rule-based strategy
    rule_pipeline = VitalSignsPipeline.from_config(load_config())
    for title, reading in readings.items():
        print_result(f"[rule_based] {title}", rule_pipeline, reading)

    # Gaussian strategy trained on synthetic readings
    generator = VitalSignsGenerator(seed=42)
    train_examples = generator.generate_examples(n_per_label=60)
    test_examples = generator.generate_examples(n_per_label=20)

    gaussian_pipeline = VitalSignsPipeline.from_config(
        load_config(overrides=["classifier.strategy=gaussian"]))
    statistics = gaussian_pipeline.train(train_examples)
    print(f"Trained on {statistics.n_samples} readings")
    print()

    for title, reading in readings.items():
        print_result(f"[gaussian] {title}", gaussian_pipeline, reading)

    metrics = evaluate_classifier(
        gaussian_pipeline.classifier, test_examples, calibrator=gaussian_pipeline.calibrator)
    print(f"Held-out accuracy: {metrics['accuracy']:.3f}")
    print("Confusion matrix (Normal, Reduced, Critical):")
    for row in metrics["confusion_matrix"]:
        print("  " + " ".join(f"{v:4d}" for v in row))


if __name__ == "__main__":
    main()
