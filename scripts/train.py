#!/usr/bin/env python3
"""Train and evaluate the vital-sign risk classifiers."""

import argparse
from datetime import datetime
from pathlib import Path

from omegaconf import OmegaConf

from vital_risk.train import run_experiment
from vital_risk.utils import load_config, setup_logging


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Train the Gaussian risk classifier and compare it with the rule-based one",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        "--config",
        type=str,
        default="configs/default.yaml",
        help="Path to configuration file"
    )

    parser.add_argument(
        "--training-csv",
        type=str,
        default=None,
        help="CSV of labeled readings (synthetic data when omitted)"
    )

    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Output directory for results"
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )

    parser.add_argument(
        "overrides",
        nargs="*",
        help="Config overrides in dotlist form, e.g. evaluation.cv_folds=10"
    )

    return parser.parse_args()


def main():
    """Main function."""
    args = parse_args()

    overrides = list(args.overrides)
    if args.training_csv:
        overrides.append(f"data.training_csv={args.training_csv}")
    if args.output_dir:
        overrides.append(f"output.save_dir={args.output_dir}")
    if args.seed is not None:
        overrides.append(f"seed={args.seed}")
    if args.log_level:
        overrides.append(f"logging.level={args.log_level}")

    config = load_config(args.config, overrides=overrides)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    output_dir = Path(config.output.save_dir) / f"experiment_{timestamp}"
    output_dir.mkdir(parents=True, exist_ok=True)

    logger = setup_logging(
        level=config.logging.level,
        log_file=str(output_dir / "training.log")
    )

    logger.info("Starting vital-sign risk classifier training")
    logger.info(f"Configuration: {OmegaConf.to_container(config, resolve=True)}")
    logger.info(f"Output directory: {output_dir}")

    try:
        results = run_experiment(config=config, output_dir=output_dir)

        logger.info("Training completed successfully")
        logger.info(f"Gaussian accuracy: {results['gaussian']['accuracy']:.3f}")
        logger.info(f"Rule-based accuracy: {results['rule_based']['accuracy']:.3f}")
        logger.info(f"Cross-validation: {results['cross_validation']['mean_cv_score']:.3f}")

        config_save_path = output_dir / "config.yaml"
        with open(config_save_path, 'w') as f:
            OmegaConf.save(config, f)

        logger.info(f"Configuration saved to {config_save_path}")

    except Exception as e:
        logger.error(f"Training failed: {e}")
        raise


if __name__ == "__main__":
    main()
