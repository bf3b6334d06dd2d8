from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import joblib
import pandas as pd

from tweetclf.data.datasets import Example, label_distribution, load_csv_dataset, stratified_split
from tweetclf.evaluation.classical import EvaluationResult, evaluate_model
from tweetclf.evaluation.metrics import format_metrics_report
from tweetclf.features.bow import BowConfig, FeatureTable, TermFrequencyFeaturizer, top_terms_by_label
from tweetclf.features.text import NormalizerConfig, TextNormalizer
from tweetclf.models.svm import SearchResult, SVMSearchConfig, grid_search_svm
from tweetclf.utils.config import PipelineConfig
from tweetclf.utils.errors import ConfigurationError
from tweetclf.utils.logging import get_logger


@dataclass
class PipelineResult:
    documents: List[Example]
    table: FeatureTable
    train: FeatureTable
    test: FeatureTable
    search: SearchResult
    evaluation: EvaluationResult
    normalizer: TextNormalizer
    featurizer: TermFrequencyFeaturizer

    @property
    def accuracy(self) -> float:
        return self.evaluation.accuracy


def build_features(
    data: List[Example],
    cfg: PipelineConfig,
    stopwords: Optional[List[str]] = None,
):
    """Normalize every document and build the pruned document-term table.

    The vocabulary comes from the whole corpus, before any split.
    """
    normalizer = TextNormalizer(
        NormalizerConfig(
            domain_terms=tuple(cfg.domain_terms),
            stopword_source=cfg.stopword_source,
            stemmer=cfg.stemmer,
            show_progress=cfg.show_progress,
        ),
        stopwords=stopwords,
    )
    streams = normalizer.normalize_corpus([ex.text for ex in data])
    featurizer = TermFrequencyFeaturizer(BowConfig(min_doc_fraction=cfg.min_doc_fraction, label_col=cfg.label_col))
    table = featurizer.fit_transform(streams, [ex.label for ex in data])
    return normalizer, featurizer, table


def run_pipeline(
    cfg: PipelineConfig,
    data: Optional[List[Example]] = None,
    stopwords: Optional[List[str]] = None,
) -> PipelineResult:
    """Load -> normalize -> featurize -> split -> grid search -> evaluate, then save artifacts."""
    logger = get_logger()
    cfg.validate()
    if data is None:
        logger.info(f"Loading dataset from {cfg.data_csv}")
        data = load_csv_dataset(cfg.data_csv, cfg.text_col, cfg.label_col, encoding=cfg.encoding)
    if not data:
        raise ConfigurationError("No labelled documents to train on")

    distribution = label_distribution(data)
    logger.info("Class distribution: " + ", ".join(f"{k}={v}" for k, v in distribution.items()))

    normalizer, featurizer, table = build_features(data, cfg, stopwords=stopwords)
    train, test = stratified_split(table, cfg.train_ratio, cfg.seed)

    search = grid_search_svm(
        train.features.to_numpy(dtype=float),
        train.labels.to_numpy(),
        SVMSearchConfig(
            kernels=tuple(cfg.kernels),
            C_values=tuple(cfg.C_values),
            gamma_values=tuple(cfg.gamma_values),
            cv_folds=cfg.cv_folds,
            seed=cfg.seed,
        ),
    )
    evaluation = evaluate_model(search.classifier, test, labels=list(distribution.index))

    result = PipelineResult(
        documents=data,
        table=table,
        train=train,
        test=test,
        search=search,
        evaluation=evaluation,
        normalizer=normalizer,
        featurizer=featurizer,
    )
    if cfg.output_dir:
        save_artifacts(result, cfg, cfg.output_dir)
    return result


def save_artifacts(result: PipelineResult, cfg: PipelineConfig, output_dir: str) -> None:
    logger = get_logger()
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    joblib.dump(result.normalizer, str(out / "normalizer.joblib"))
    joblib.dump(result.featurizer, str(out / "featurizer.joblib"))
    result.search.classifier.save(str(out / "svm_model.joblib"))

    metrics = dict(result.evaluation.metrics)
    metrics.update({
        "best_params": result.search.best_params,
        "cv_accuracy": result.search.best_score,
        "documents": len(result.table),
        "train_documents": len(result.train),
        "test_documents": len(result.test),
        "raw_vocabulary_size": result.featurizer.raw_vocabulary_size_,
        "vocabulary_size": len(result.table.vocabulary),
        "config": cfg.to_dict(),
    })
    with open(out / "metrics.json", "w", encoding="utf-8") as f:
        json.dump(metrics, f, indent=2, ensure_ascii=False)
    with open(out / "metrics_report.txt", "w", encoding="utf-8") as f:
        f.write(format_metrics_report(metrics))

    result.evaluation.confusion.to_csv(out / "confusion_matrix.csv")
    result.search.cv_results.to_csv(out / "cv_results.csv", index=False)
    top_terms_by_label(result.table).to_csv(out / "top_terms.csv", index=False)

    docs = result.documents
    predictions = result.evaluation.predictions.assign(
        row=[docs[i].row for i in result.evaluation.predictions.index],
        text=[docs[i].text for i in result.evaluation.predictions.index],
    )[["row", "text", "actual", "predicted"]]
    predictions.to_csv(out / "predictions.csv", index=False)
    logger.info(f"Artifacts saved to {out}")


def split_assignment(result: PipelineResult) -> pd.Series:
    """Per-document ``"train"``/``"test"`` tag, indexed like the feature table."""
    tags = pd.Series("train", index=result.table.frame.index, name="split")
    tags.loc[result.test.frame.index] = "test"
    return tags
