"""
Run the churn EDA and train + evaluate the tree models end-to-end.

Run:
  python scripts/train.py --csv data/raw/Churn_Modelling.csv

This script will:
- Load, clean and verify the data
- Save descriptive statistics and EDA plots
- Hold out a stratified test split
- Tune a decision tree (cp) and a random forest (mtry) by k-fold CV on the train split
- Evaluate both on the test split (confusion matrix, accuracy, sensitivity, specificity)
- Rank feature importance and save plots, metrics and fitted models
"""

from __future__ import annotations

import argparse
import logging
import math
from pathlib import Path

from bank_churn.config import (
    CV_FOLDS,
    DEFAULT_RAW_CSV,
    FIGURES_DIR,
    MODEL_FAMILIES,
    MODELS_DIR,
    N_TREES,
    RANDOM_STATE,
    REPORTS_DIR,
    TRAIN_FRACTION,
)
from bank_churn.errors import ChurnPipelineError
from bank_churn.pipeline import RunConfig, run_pipeline

logger = logging.getLogger("bank_churn")


def _fmt(value: float) -> str:
    return "n/a" if math.isnan(value) else f"{value:.4f}"


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--csv",
        type=str,
        default=str(DEFAULT_RAW_CSV),
        help="Path to the raw bank churn CSV. Default: data/raw/Churn_Modelling.csv",
    )
    parser.add_argument("--random_state", type=int, default=RANDOM_STATE)
    parser.add_argument("--train_fraction", type=float, default=TRAIN_FRACTION)
    parser.add_argument("--folds", type=int, default=CV_FOLDS)
    parser.add_argument("--n_estimators", type=int, default=N_TREES)
    parser.add_argument(
        "--models",
        nargs="+",
        choices=MODEL_FAMILIES,
        default=MODEL_FAMILIES,
        help="Model families to train",
    )
    parser.add_argument("--log_level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = RunConfig(
        train_fraction=args.train_fraction,
        folds=args.folds,
        seed=args.random_state,
        families=tuple(args.models),
        n_estimators=args.n_estimators,
    )

    try:
        result = run_pipeline(Path(args.csv), config)
    except ChurnPipelineError:
        logger.exception("Pipeline failed")
        raise

    print("\nRun complete.")
    for family, evaluation in result.evaluations.items():
        artifact = result.artifacts[family]
        m = evaluation.metrics
        print(
            f"{family}: {artifact.param_name}={artifact.best_value} | "
            f"accuracy={_fmt(m['accuracy'])} "
            f"sensitivity={_fmt(m['sensitivity'])} "
            f"specificity={_fmt(m['specificity'])}"
        )
        print(f"  top features (permutation): {', '.join(result.importances[family].permutation['feature'].head(3))}")
        print(f"  top features (impurity):    {', '.join(result.importances[family].impurity['feature'].head(3))}")
    print(f"Saved models -> {MODELS_DIR}")
    print(f"Saved metrics -> {REPORTS_DIR / 'metrics.json'}")
    print(f"Saved figures -> {FIGURES_DIR}")


if __name__ == "__main__":
    main()
