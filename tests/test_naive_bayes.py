"""Tests for the Gaussian classifier, evaluation metrics and batch training."""

import copy
import json
import math

import numpy as np
import pytest

from vital_risk.calibration import CalibratedVitalSigns, Calibrator
from vital_risk.data import (
    FEATURES,
    LABELS,
    FeatureName,
    RiskLabel,
    TrainingExample,
    VitalSigns,
    VitalSignsGenerator,
    examples_to_dataframe,
    label_counts,
)
from vital_risk.metrics import ClassificationMetrics, cross_validate_gaussian, evaluate_classifier
from vital_risk.models import (
    BASELINE_TRAINING_STATS,
    ClassStatistics,
    GaussianNaiveBayesClassifier,
    gaussian_density,
    train_class_statistics,
)
from vital_risk.pipeline import VitalSignsPipeline
from vital_risk.train import run_experiment, split_examples
from vital_risk.utils import (
    InsufficientDataError,
    UntrainedModelError,
    ValidationError,
    load_config,
)


BASE = [36.8, 80.0, 98.0, 100.0, 65.0, 88.0]

# Five-feature model as exported by the external trainer: class indices,
# z-scored means and stds, no signal quality.
EXPORTED_MODEL = {
    "prior": {"1": 0.5515306763892381, "0": 0.3602118430978124, "2": 0.08825748051294946},
    "means": {
        "0": {"Suhu Tubuh (C)": -0.03933939280809739, "Detak Jantung": -0.2824981676508042,
              "Sistolik": -0.5555745032162653, "Diastolik": -0.2816968044585138,
              "Saturasi Oksigen": 0.22642570982723753},
        "1": {"Suhu Tubuh (C)": -0.023117008866446697, "Detak Jantung": 0.04897450782755786,
              "Sistolik": 0.23487130052370211, "Diastolik": 0.06450132773134688,
              "Saturasi Oksigen": -0.029220796712011533},
        "2": {"Suhu Tubuh (C)": 0.3050195243450615, "Detak Jantung": 0.846933787128908,
              "Sistolik": 0.7997711710008396, "Diastolik": 0.7466343230523473,
              "Saturasi Oksigen": -0.7415241870267099},
    },
    "std": {
        "0": {"Suhu Tubuh (C)": 0.572679218922528, "Detak Jantung": 0.5968008763227654,
              "Sistolik": 0.4654107058543759, "Diastolik": 0.5386643648485151,
              "Saturasi Oksigen": 0.49836299758150154},
        "1": {"Suhu Tubuh (C)": 1.0406749495600613, "Detak Jantung": 1.0626506689254747,
              "Sistolik": 1.0329016412390835, "Diastolik": 1.0758618001494007,
              "Saturasi Oksigen": 0.981288817872472},
        "2": {"Suhu Tubuh (C)": 1.7669391779553554, "Detak Jantung": 1.327612864028202,
              "Sistolik": 1.2391668343572593, "Diastolik": 1.4163792612548238,
              "Saturasi Oksigen": 1.8803182483263856},
    },
}

EXPORTED_COLUMNS = ["Suhu Tubuh (C)", "Detak Jantung", "Saturasi Oksigen", "Sistolik", "Diastolik"]


def make_vitals(cls=CalibratedVitalSigns, **overrides):
    values = dict(zip([f.value for f in FEATURES], BASE))
    values.update(overrides)
    return cls(**values)


def make_statistics(priors, mean_shifts, variance=1.0):
    """Statistics whose label means are ``BASE`` shifted by a constant."""
    means = [[v + shift for v in BASE] for shift in mean_shifts]
    return ClassStatistics(
        priors=priors,
        means=means,
        variances=np.full((len(LABELS), len(FEATURES)), variance),
    )


@pytest.fixture
def small_training_set():
    return [
        TrainingExample(make_vitals(temperature=36.5), RiskLabel.NORMAL),
        TrainingExample(make_vitals(temperature=37.5), RiskLabel.NORMAL),
        TrainingExample(make_vitals(heart_rate=120, oxygen_saturation=90), RiskLabel.REDUCED),
        TrainingExample(make_vitals(temperature=39.0, heart_rate=125, oxygen_saturation=89),
                        RiskLabel.CRITICAL),
    ]


@pytest.fixture(scope="module")
def generated_examples():
    return VitalSignsGenerator(seed=42).generate_examples(n_per_label=30)


class TestTrainClassStatistics:
    """Test batch statistics."""

    def test_priors_are_label_frequencies(self, small_training_set):
        stats = train_class_statistics(small_training_set)
        assert stats.priors.tolist() == pytest.approx([0.5, 0.25, 0.25])
        assert stats.counts == (2, 1, 1)
        assert stats.n_samples == 4

    def test_population_variance(self, small_training_set):
        """Variance divides by the label count, not count - 1."""
        stats = train_class_statistics(small_training_set)
        assert stats.mean(RiskLabel.NORMAL, FeatureName.TEMPERATURE) == pytest.approx(37.0)
        assert stats.variance(RiskLabel.NORMAL, FeatureName.TEMPERATURE) == pytest.approx(0.25)

    def test_variance_floor(self, small_training_set):
        """Constant features and single-example labels get the floor."""
        stats = train_class_statistics(small_training_set)
        assert stats.variance(RiskLabel.NORMAL, FeatureName.HEART_RATE) == pytest.approx(0.01)
        assert stats.variances[RiskLabel.REDUCED.position].tolist() == pytest.approx([0.01] * 6)

        stats = train_class_statistics(small_training_set, variance_floor=0.5)
        assert stats.variance(RiskLabel.NORMAL, FeatureName.TEMPERATURE) == pytest.approx(0.5)
        assert np.all(stats.variances > 0)

    def test_too_few_examples(self, small_training_set):
        with pytest.raises(InsufficientDataError):
            train_class_statistics([])
        with pytest.raises(InsufficientDataError):
            train_class_statistics(small_training_set[:1])
        with pytest.raises(InsufficientDataError):
            train_class_statistics(small_training_set, min_examples=10)

    def test_missing_label(self, small_training_set):
        """Every label needs at least one example."""
        with pytest.raises(InsufficientDataError) as exc_info:
            train_class_statistics(small_training_set[:3])
        assert "Critical" in str(exc_info.value)

    def test_insufficient_data_is_value_error(self):
        with pytest.raises(ValueError):
            train_class_statistics([])


class TestClassStatistics:
    """Test the statistics container."""

    def test_arrays_are_read_only(self, small_training_set):
        stats = train_class_statistics(small_training_set)
        with pytest.raises(ValueError):
            stats.means[0, 0] = 0.0
        with pytest.raises(ValueError):
            stats.priors[0] = 1.0

    def test_rejects_invalid_values(self):
        with pytest.raises(ValidationError):
            make_statistics([0.5, 0.5, 0.5], [0, 5, 10])
        with pytest.raises(ValidationError):
            make_statistics([0.4, 0.4, 0.2], [0, 5, 10], variance=0.0)
        with pytest.raises(ValidationError):
            ClassStatistics(priors=[0.5, 0.5], means=np.zeros((3, 6)), variances=np.ones((3, 6)))
        with pytest.raises(ValidationError):
            make_statistics([0.4, 0.4, 0.2], [0, float("nan"), 10])

    def test_dict_round_trip(self, small_training_set):
        stats = train_class_statistics(small_training_set)
        restored = ClassStatistics.from_dict(stats.to_dict())

        np.testing.assert_allclose(restored.priors, stats.priors)
        np.testing.assert_allclose(restored.means, stats.means)
        np.testing.assert_allclose(restored.variances, stats.variances)
        assert restored.counts == stats.counts

    def test_from_dict_missing_feature(self, small_training_set):
        data = train_class_statistics(small_training_set).to_dict()
        del data["means"]["Reduced"]["signal_quality"]
        with pytest.raises(ValidationError):
            ClassStatistics.from_dict(data)

    def test_from_dict_missing_table(self, small_training_set):
        data = train_class_statistics(small_training_set).to_dict()
        del data["variances"]
        with pytest.raises(ValidationError):
            ClassStatistics.from_dict(data)

        data = train_class_statistics(small_training_set).to_dict()
        del data["prior"]["Critical"]
        with pytest.raises(ValidationError):
            ClassStatistics.from_dict(data)


class TestExportedModel:
    """Test importing and scoring with an externally trained model."""

    @pytest.fixture
    def exported(self):
        return ClassStatistics.from_dict(EXPORTED_MODEL, default_training_stats=BASELINE_TRAINING_STATS)

    def test_loads_five_features(self, exported):
        """Signal quality is absent from the export and left out of scoring."""
        assert exported.feature_mask == (True, True, True, True, True, False)
        assert FeatureName.SIGNAL_QUALITY not in exported.active_features
        assert exported.prior(RiskLabel.REDUCED) == pytest.approx(0.5515306763892381)
        assert exported.variance(RiskLabel.NORMAL, FeatureName.TEMPERATURE) == pytest.approx(
            0.572679218922528 ** 2)
        assert exported.mean(RiskLabel.CRITICAL, FeatureName.SYSTOLIC) == pytest.approx(0.7997711710008396)

    def test_baseline_standardization(self, exported):
        standardization = exported.standardization
        assert standardization is not None
        assert standardization.means[FeatureName.SYSTOLIC.position] == 120.0
        assert standardization.stds[FeatureName.HEART_RATE.position] == 15.0

    def test_no_standardization_without_training_stats(self):
        stats = ClassStatistics.from_dict(EXPORTED_MODEL)
        assert stats.standardization is None
        assert stats.feature_mask[FeatureName.SIGNAL_QUALITY.position] is False

    def test_training_stats_in_export_take_precedence(self):
        data = dict(EXPORTED_MODEL, training_stats={
            "means": dict.fromkeys(EXPORTED_COLUMNS, 0.0),
            "stds": dict.fromkeys(EXPORTED_COLUMNS, 1.0),
        })
        stats = ClassStatistics.from_dict(data, default_training_stats=BASELINE_TRAINING_STATS)
        assert stats.standardization.means.tolist() == [0.0] * 6
        assert stats.standardization.stds.tolist() == [1.0] * 6

    def test_healthy_reading_scores_normal(self, exported):
        """A reading at the baseline standardizes to zero and favours Normal."""
        classifier = GaussianNaiveBayesClassifier(statistics=exported)
        result = classifier.classify(VitalSigns(
            temperature=37.0, heart_rate=80, oxygen_saturation=98,
            systolic=120, diastolic=80, signal_quality=88,
        ))
        assert result.label is RiskLabel.NORMAL
        assert sum(result.probabilities.values()) == pytest.approx(1.0)

    def test_abnormal_reading_scores_critical(self, exported):
        classifier = GaussianNaiveBayesClassifier(statistics=exported)
        result = classifier.classify(VitalSigns(
            temperature=39.5, heart_rate=110, oxygen_saturation=92,
            systolic=160, diastolic=100, signal_quality=88,
        ))
        assert result.label is RiskLabel.CRITICAL

    def test_missing_feature_is_neutral(self, exported):
        """Signal quality changes nothing and receives no contribution."""
        classifier = GaussianNaiveBayesClassifier(statistics=exported)
        low = classifier.classify(VitalSigns(
            temperature=38.0, heart_rate=100, oxygen_saturation=95,
            systolic=130, diastolic=85, signal_quality=0,
        ))
        high = classifier.classify(VitalSigns(
            temperature=38.0, heart_rate=100, oxygen_saturation=95,
            systolic=130, diastolic=85, signal_quality=100,
        ))

        assert dict(low.probabilities) == dict(high.probabilities)
        assert low.feature_contributions[FeatureName.SIGNAL_QUALITY] == 0.0
        assert sum(low.feature_contributions.values()) == pytest.approx(1.0)

    def test_round_trip_keeps_mask_and_standardization(self, exported):
        restored = ClassStatistics.from_dict(exported.to_dict())

        assert restored.feature_mask == exported.feature_mask
        np.testing.assert_allclose(restored.variances, exported.variances)
        np.testing.assert_allclose(restored.standardization.means, exported.standardization.means)
        np.testing.assert_allclose(restored.standardization.stds, exported.standardization.stds)

    def test_labels_must_cover_same_features(self):
        data = copy.deepcopy(EXPORTED_MODEL)
        del data["means"]["1"]["Sistolik"]
        with pytest.raises(ValidationError) as exc_info:
            ClassStatistics.from_dict(data)
        assert exc_info.value.field == "systolic"

    def test_training_stats_must_cover_features(self):
        training_stats = copy.deepcopy(BASELINE_TRAINING_STATS)
        del training_stats["stds"]["diastolic"]
        with pytest.raises(ValidationError):
            ClassStatistics.from_dict(EXPORTED_MODEL, default_training_stats=training_stats)

    def test_describe(self, exported):
        description = GaussianNaiveBayesClassifier(statistics=exported).describe()
        assert description["standardized"] is True
        assert "signal_quality" not in description["features"]


class TestGaussianNaiveBayesClassifier:
    """Test Gaussian classification."""

    def test_untrained_raises(self):
        classifier = GaussianNaiveBayesClassifier()
        assert not classifier.is_trained
        with pytest.raises(UntrainedModelError):
            classifier.classify(make_vitals())

    def test_explicit_statistics(self):
        """Statistics passed to classify are used without training."""
        stats = make_statistics([1 / 3, 1 / 3, 1 / 3], [0, 5, 10])
        result = GaussianNaiveBayesClassifier().classify(make_vitals(), statistics=stats)
        assert result.label is RiskLabel.NORMAL
        assert result.confidence > 0.99

    def test_probabilities_sum_to_one(self, generated_examples):
        pipeline = VitalSignsPipeline.from_config(load_config(overrides=["classifier.strategy=gaussian"]))
        pipeline.train(generated_examples)

        for example in generated_examples[::7]:
            result = pipeline.classify(example.vitals)
            assert sum(result.probabilities.values()) == pytest.approx(1.0, abs=1e-9)
            assert all(0.0 <= p <= 1.0 for p in result.probabilities.values())
            assert result.confidence == max(result.probabilities.values())
            assert sum(result.feature_contributions.values()) == pytest.approx(1.0, abs=1e-9)
            assert all(c >= 0 for c in result.feature_contributions.values())

    def test_deterministic(self, small_training_set):
        classifier = GaussianNaiveBayesClassifier()
        classifier.train(small_training_set)
        vitals = make_vitals(heart_rate=110)

        first = classifier.classify(vitals)
        second = classifier.classify(vitals)
        assert first.to_dict() == second.to_dict()

    def test_tie_goes_to_lower_severity(self):
        """Equal log-probabilities resolve to the least severe label."""
        classifier = GaussianNaiveBayesClassifier()

        stats = make_statistics([0.4, 0.4, 0.2], [0, 0, 10])
        result = classifier.classify(make_vitals(), statistics=stats)
        assert result.label is RiskLabel.NORMAL
        assert result.probabilities[RiskLabel.NORMAL] == result.probabilities[RiskLabel.REDUCED]

        stats = make_statistics([0.2, 0.4, 0.4], [10, 0, 0])
        result = classifier.classify(make_vitals(), statistics=stats)
        assert result.label is RiskLabel.REDUCED

    def test_far_out_of_distribution(self, generated_examples):
        """Underflowing densities still yield a valid, uniform-evidence result."""
        classifier = GaussianNaiveBayesClassifier()
        classifier.train(generated_examples)
        extreme = make_vitals(**{f.value: 1e6 for f in FEATURES})

        result = classifier.classify(extreme)

        assert sum(result.probabilities.values()) == pytest.approx(1.0)
        assert all(math.isfinite(p) for p in result.probabilities.values())
        # Equal priors and identical evidence for every label
        assert result.label is RiskLabel.NORMAL
        assert result.probabilities[RiskLabel.NORMAL] == pytest.approx(1 / 3)
        for contribution in result.feature_contributions.values():
            assert contribution == pytest.approx(1 / 6)

    def test_contributions_follow_log_density(self):
        stats = make_statistics([1 / 3, 1 / 3, 1 / 3], [0, 5, 10])
        classifier = GaussianNaiveBayesClassifier(statistics=stats)
        vitals = make_vitals(temperature=38.0, heart_rate=80.5)

        result = classifier.classify(vitals)

        winner = result.label.position
        x = vitals.as_array()
        evidence = np.abs(np.log(
            gaussian_density(x, stats.means[winner], stats.variances[winner]) + 1e-10))
        expected = evidence / evidence.sum()
        assert [result.feature_contributions[f] for f in FEATURES] == pytest.approx(expected.tolist())
        assert result.feature_contributions[FeatureName.TEMPERATURE] == max(
            result.feature_contributions.values())

    def test_log_densities_shape(self, small_training_set):
        classifier = GaussianNaiveBayesClassifier()
        stats = classifier.train(small_training_set)
        assert classifier.log_densities(make_vitals(), stats).shape == (3, 6)

    def test_retraining_swaps_statistics(self, small_training_set, generated_examples):
        """Retraining replaces the reference; earlier statistics stay intact."""
        classifier = GaussianNaiveBayesClassifier()
        first = classifier.train(small_training_set)
        first_means = first.means.copy()

        second = classifier.train(generated_examples)

        assert classifier.statistics is second
        assert second is not first
        np.testing.assert_array_equal(first.means, first_means)

    def test_describe(self, small_training_set):
        classifier = GaussianNaiveBayesClassifier()
        assert classifier.describe() == {"algorithm": "gaussian", "trained": False}

        classifier.train(small_training_set)
        description = classifier.describe()
        assert description["training_data_count"] == 4
        assert description["class_priors"]["Normal"] == pytest.approx(0.5)

    def test_invalid_epsilon(self):
        with pytest.raises(ValueError):
            GaussianNaiveBayesClassifier(density_epsilon=0)


class TestGaussianPipeline:
    """Test training through the pipeline."""

    def test_training_data_is_calibrated(self, generated_examples):
        """Statistics live in the calibrated space that classify works in."""
        pipeline = VitalSignsPipeline.from_config(load_config(overrides=["classifier.strategy=gaussian"]))
        stats = pipeline.train(generated_examples)

        raw_systolic = [e.vitals.systolic for e in generated_examples if e.label is RiskLabel.NORMAL]
        assert stats.mean(RiskLabel.NORMAL, FeatureName.SYSTOLIC) == pytest.approx(
            np.mean(raw_systolic) - 15.0)

    def test_classifies_clear_cases(self, generated_examples):
        pipeline = VitalSignsPipeline.from_config(load_config(overrides=["classifier.strategy=gaussian"]))
        pipeline.train(generated_examples)

        healthy = {"temperature": 36.8, "heart_rate": 80, "oxygen_saturation": 98,
                   "systolic": 115, "diastolic": 75, "signal_quality": 88}
        result = pipeline.classify(healthy)
        assert result.label is RiskLabel.NORMAL
        assert result.strategy == "gaussian"
        assert "Strongest evidence" in result.explanation_text

        critical = {"temperature": 39.5, "heart_rate": 140, "oxygen_saturation": 85,
                    "systolic": 165, "diastolic": 110, "signal_quality": 80}
        assert pipeline.classify(critical).label is RiskLabel.CRITICAL

    def test_min_examples_from_config(self, small_training_set):
        config = load_config(overrides=["classifier.strategy=gaussian", "gaussian.min_examples=10"])
        pipeline = VitalSignsPipeline.from_config(config)
        with pytest.raises(InsufficientDataError):
            pipeline.train(small_training_set)

    def test_injected_statistics(self):
        stats = make_statistics([1 / 3, 1 / 3, 1 / 3], [0, 5, 10])
        pipeline = VitalSignsPipeline.from_config(
            load_config(overrides=["classifier.strategy=gaussian"]), statistics=stats)
        # Raw 115/75 calibrates to the Normal means
        result = pipeline.classify(make_vitals(VitalSigns, systolic=115, diastolic=75))
        assert result.label is RiskLabel.NORMAL


class TestClassificationMetrics:
    """Test metrics calculation."""

    def test_compute(self):
        metrics = ClassificationMetrics()
        metrics.update(
            predictions=["Normal", "Normal", "Reduced", "Critical"],
            targets=["Normal", "Reduced", "Reduced", "Critical"],
            confidences=[0.9, 0.8, 0.7, 0.6],
        )
        results = metrics.compute()

        assert results["accuracy"] == pytest.approx(0.75)
        assert results["confusion_matrix"] == [[1, 0, 0], [1, 1, 0], [0, 0, 1]]
        assert results["per_class"]["Reduced"]["recall"] == pytest.approx(0.5)
        assert results["per_class"]["Normal"]["precision"] == pytest.approx(0.5)
        assert results["mean_confidence"] == pytest.approx(0.75)
        assert "Critical" in metrics.get_classification_report()

    def test_no_data(self):
        with pytest.raises(ValueError):
            ClassificationMetrics().compute()

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            ClassificationMetrics().update(["Normal"], ["Normal", "Reduced"])

    def test_reset(self):
        metrics = ClassificationMetrics()
        metrics.update([RiskLabel.NORMAL], [RiskLabel.NORMAL])
        metrics.reset()
        assert metrics.predictions == []

    def test_evaluate_classifier(self, small_training_set):
        classifier = GaussianNaiveBayesClassifier()
        classifier.train(small_training_set)
        results = evaluate_classifier(classifier, small_training_set)
        assert results["n_samples"] == 4
        assert 0.0 <= results["accuracy"] <= 1.0


class TestCrossValidation:
    """Test stratified cross-validation."""

    def test_folds(self, generated_examples):
        results = cross_validate_gaussian(generated_examples, n_splits=3, calibrator=Calibrator())
        assert results["n_splits"] == 3
        assert len(results["fold_accuracies"]) == 3
        assert 0.0 <= results["mean_cv_score"] <= 1.0
        assert results["std_cv_score"] >= 0.0

    def test_too_few_per_label(self):
        examples = VitalSignsGenerator(seed=0).generate_examples(n_per_label=2)
        with pytest.raises(InsufficientDataError):
            cross_validate_gaussian(examples, n_splits=5)

    def test_min_examples_applies_to_folds(self, generated_examples):
        """Each fold's training split must meet the configured minimum."""
        with pytest.raises(InsufficientDataError):
            cross_validate_gaussian(generated_examples, n_splits=3, min_examples=100)

    def test_run_experiment_passes_min_examples(self, tmp_path):
        config = load_config(overrides=[
            "data.n_per_label=20", "evaluation.cv_folds=3", "gaussian.min_examples=42",
        ])
        with pytest.raises(InsufficientDataError):
            run_experiment(config, tmp_path)


class TestTraining:
    """Test the batch experiment."""

    def test_split_is_stratified(self, generated_examples):
        train, test = split_examples(generated_examples, test_size=0.2, seed=0)
        assert len(train) + len(test) == len(generated_examples)
        assert label_counts(test) == {label: 6 for label in LABELS}

    def test_run_experiment(self, tmp_path):
        config = load_config(overrides=["data.n_per_label=20", "evaluation.cv_folds=3"])
        results = run_experiment(config, tmp_path)

        assert results["n_train"] + results["n_test"] == 60
        assert results["rule_based"]["accuracy"] == 1.0
        assert results["model"]["trained"] is True
        assert len(results["cross_validation"]["fold_accuracies"]) == 3

        with open(tmp_path / "results.json") as f:
            saved = json.load(f)
        assert saved["class_distribution"] == {"Normal": 20, "Reduced": 20, "Critical": 20}

    def test_run_experiment_from_csv(self, tmp_path):
        path = tmp_path / "training.csv"
        examples_to_dataframe(VitalSignsGenerator(seed=5).generate_examples(n_per_label=12)).to_csv(
            path, index=False)
        config = load_config(overrides=[f"data.training_csv={path}", "evaluation.cv_folds=3"])

        results = run_experiment(config, tmp_path / "out")
        assert results["n_train"] + results["n_test"] == 36
