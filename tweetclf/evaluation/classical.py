from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import joblib
import pandas as pd

from tweetclf.data.datasets import load_csv_dataset
from tweetclf.evaluation.metrics import (
    accuracy_from_confusion,
    compute_classification_metrics,
    confusion_table,
    format_metrics_report,
)
from tweetclf.features.bow import FeatureTable
from tweetclf.models.svm import SVMClassifier, SVMConfig
from tweetclf.utils.errors import ConfigurationError
from tweetclf.utils.logging import get_logger


@dataclass
class EvaluationResult:
    accuracy: float
    confusion: pd.DataFrame
    predictions: pd.DataFrame
    metrics: Dict = field(repr=False)


def evaluate_model(
    classifier: SVMClassifier,
    test: FeatureTable,
    labels: Optional[Sequence[str]] = None,
) -> EvaluationResult:
    """Predict the test rows and score them against their true labels.

    ``labels`` fixes the rows/columns of the confusion matrix; pass the full
    label set so classes missing from the test split still show up as zeros.
    """
    logger = get_logger()
    if len(test) == 0:
        raise ConfigurationError("Test split is empty; nothing to evaluate")
    y_true = test.labels.to_numpy()
    if labels is None:
        labels = sorted(set(y_true) | set(classifier.classes_))
    labels = list(labels)

    y_pred = classifier.predict(test.features.to_numpy(dtype=float))
    cm = confusion_table(y_true, y_pred, labels)
    accuracy = accuracy_from_confusion(cm)
    metrics = compute_classification_metrics(y_true, y_pred, labels)
    logger.info(f"Test accuracy: {accuracy:.4f} on {len(test)} documents")

    predictions = pd.DataFrame({"actual": y_true, "predicted": y_pred}, index=test.frame.index)
    return EvaluationResult(accuracy=accuracy, confusion=cm, predictions=predictions, metrics=metrics)


@dataclass
class ClassicalEvalConfig:
    checkpoint_dir: str
    data_csv: str
    text_col: str = "text"
    label_col: str = "class"
    encoding: str = "utf-8"
    output_dir: str = "outputs/eval"


def evaluate_saved(cfg: ClassicalEvalConfig) -> EvaluationResult:
    """Score a labelled CSV with the normalizer, featurizer and SVM saved by a training run."""
    logger = get_logger()
    ckpt = Path(cfg.checkpoint_dir)
    Path(cfg.output_dir).mkdir(parents=True, exist_ok=True)

    normalizer = joblib.load(ckpt / "normalizer.joblib")
    featurizer = joblib.load(ckpt / "featurizer.joblib")
    svm = SVMClassifier(SVMConfig()).load(str(ckpt / "svm_model.joblib"))

    data = load_csv_dataset(cfg.data_csv, cfg.text_col, cfg.label_col, encoding=cfg.encoding)
    streams = normalizer.normalize_corpus([ex.text for ex in data])
    table = featurizer.transform(streams, [ex.label for ex in data])
    labels: List[str] = sorted(set(table.labels) | set(svm.classes_))
    result = evaluate_model(svm, table, labels)

    output_dir = Path(cfg.output_dir)
    predictions = result.predictions.assign(
        row=[ex.row for ex in data],
        text=[ex.text for ex in data],
    )[["row", "text", "actual", "predicted"]]
    predictions.to_csv(output_dir / "predictions.csv", index=False)
    result.confusion.to_csv(output_dir / "confusion_matrix.csv")
    with open(output_dir / "metrics.json", "w", encoding="utf-8") as f:
        json.dump(result.metrics, f, indent=2, ensure_ascii=False)
    with open(output_dir / "metrics_report.txt", "w", encoding="utf-8") as f:
        f.write(format_metrics_report(result.metrics))
    logger.info(f"Predictions and metrics written to {output_dir}")
    return result
