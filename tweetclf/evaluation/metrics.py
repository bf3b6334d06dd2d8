#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Confusion matrices, accuracy and per-class summaries for the classifier."""

from typing import Dict, List, Sequence

import numpy as np
import pandas as pd
from sklearn.metrics import (
    confusion_matrix,
    f1_score,
    precision_score,
    recall_score,
)

from tweetclf.utils.errors import ConfigurationError


def confusion_table(
    y_true: Sequence[str],
    y_pred: Sequence[str],
    labels: Sequence[str],
) -> pd.DataFrame:
    """Actual x predicted counts over ``labels``; labels absent from the data stay as zero rows/columns."""
    cm = confusion_matrix(y_true, y_pred, labels=list(labels))
    return pd.DataFrame(
        cm,
        index=pd.Index(list(labels), name="actual"),
        columns=pd.Index(list(labels), name="predicted"),
    )


def accuracy_from_confusion(cm: pd.DataFrame) -> float:
    """Trace over grand total. Unweighted, so it follows the majority classes."""
    values = cm.to_numpy()
    total = values.sum()
    if total == 0:
        raise ConfigurationError("Confusion matrix is empty; there is nothing to score")
    return float(np.trace(values) / total)


def compute_classification_metrics(
    y_true: Sequence[str],
    y_pred: Sequence[str],
    labels: Sequence[str],
) -> Dict:
    """Compute standard classification metrics."""
    labels = list(labels)
    cm = confusion_table(y_true, y_pred, labels)

    precision_macro = precision_score(y_true, y_pred, labels=labels, average='macro', zero_division=0)
    recall_macro = recall_score(y_true, y_pred, labels=labels, average='macro', zero_division=0)
    f1_macro = f1_score(y_true, y_pred, labels=labels, average='macro', zero_division=0)

    # Per-class metrics
    precision_per_class = precision_score(y_true, y_pred, labels=labels, average=None, zero_division=0)
    recall_per_class = recall_score(y_true, y_pred, labels=labels, average=None, zero_division=0)
    f1_per_class = f1_score(y_true, y_pred, labels=labels, average=None, zero_division=0)

    return {
        "accuracy": accuracy_from_confusion(cm),
        "precision_macro": float(precision_macro),
        "recall_macro": float(recall_macro),
        "f1_macro": float(f1_macro),
        "labels": labels,
        "confusion_matrix": cm.to_numpy().tolist(),
        "support_per_class": cm.sum(axis=1).astype(int).tolist(),
        "precision_per_class": precision_per_class.tolist(),
        "recall_per_class": recall_per_class.tolist(),
        "f1_per_class": f1_per_class.tolist(),
    }


def format_metrics_report(metrics: Dict, label_names: List[str] = None) -> str:
    """Format metrics into a human-readable report."""
    label_names = label_names or metrics.get("labels", [])
    lines = []
    lines.append("=" * 70)
    lines.append("EVALUATION METRICS REPORT")
    lines.append("=" * 70)
    lines.append("")

    lines.append("OVERALL METRICS")
    lines.append("-" * 70)
    lines.append(f"Accuracy:          {metrics['accuracy']:.4f} ({metrics['accuracy']*100:.2f}%)")
    lines.append("  (raw accuracy; not adjusted for class imbalance)")
    lines.append("")
    if "precision_macro" in metrics:
        lines.append(f"Precision (Macro): {metrics['precision_macro']:.4f}")
        lines.append(f"Recall (Macro):    {metrics['recall_macro']:.4f}")
        lines.append(f"F1-Score (Macro):  {metrics['f1_macro']:.4f}")
        lines.append("")

    if "best_params" in metrics:
        lines.append("-" * 70)
        lines.append("SELECTED HYPERPARAMETERS")
        lines.append("-" * 70)
        for key, value in sorted(metrics["best_params"].items()):
            lines.append(f"{key:<18} {value}")
        if "cv_accuracy" in metrics:
            lines.append(f"{'mean CV accuracy':<18} {metrics['cv_accuracy']:.4f}")
        lines.append("")

    # Per-class metrics
    if label_names and 'precision_per_class' in metrics:
        lines.append("-" * 70)
        lines.append("PER-CLASS METRICS")
        lines.append("-" * 70)
        lines.append(f"{'Class':<20} {'Precision':>12} {'Recall':>12} {'F1-Score':>12} {'Support':>9}")
        lines.append("-" * 70)

        for i, name in enumerate(label_names):
            if i < len(metrics['precision_per_class']):
                prec = metrics['precision_per_class'][i]
                rec = metrics['recall_per_class'][i]
                f1 = metrics['f1_per_class'][i]
                support = metrics.get('support_per_class', [0] * len(label_names))[i]
                lines.append(f"{name:<20} {prec:>12.4f} {rec:>12.4f} {f1:>12.4f} {support:>9d}")
        lines.append("")

    if "confusion_matrix" in metrics and label_names:
        lines.append("-" * 70)
        lines.append("CONFUSION MATRIX (rows: actual, columns: predicted)")
        lines.append("-" * 70)
        cm = pd.DataFrame(metrics["confusion_matrix"], index=label_names, columns=label_names)
        lines.append(cm.to_string())
        lines.append("")

    lines.append("=" * 70)

    return "\n".join(lines)
