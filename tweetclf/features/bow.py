#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Bag-of-stems feature extraction.
Counts stems per document, prunes rare terms by document frequency and
materializes a dense, labelled feature table for the SVM.
"""

from __future__ import annotations

import keyword
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.feature_extraction.text import CountVectorizer

from tweetclf.utils.errors import ConfigurationError
from tweetclf.utils.logging import get_logger


def _identity(tokens: List[str]) -> List[str]:
    # Token streams are already normalized; module level so the vectorizer pickles.
    return tokens


def sanitize_feature_name(term: str) -> str:
    """Make ``term`` usable as an identifier, e.g. ``"5"`` -> ``"X5"``, ``"class"`` -> ``"class_"``."""
    name = "".join(c if ("X" + c).isidentifier() else "_" for c in term) or "X"
    if not name.isidentifier():
        name = "X" + name
    if keyword.iskeyword(name):
        name += "_"
    return name


def sanitize_feature_names(terms: Iterable[str], reserved: Iterable[str] = ()) -> List[str]:
    """Sanitize every term, suffixing ``_1``, ``_2``... on collisions."""
    seen = set(reserved)
    names = []
    for term in terms:
        base = sanitize_feature_name(term)
        name, n = base, 1
        while name in seen:
            name = f"{base}_{n}"
            n += 1
        seen.add(name)
        names.append(name)
    return names


@dataclass
class FeatureTable:
    """Dense document-term counts plus the label column.

    ``vocabulary[i]`` is the stem behind ``columns[i]``. Row index is kept
    through splitting so partitions stay traceable to source documents.
    """

    frame: pd.DataFrame
    vocabulary: List[str]
    columns: List[str]
    label_col: str = "class"

    def __len__(self) -> int:
        return len(self.frame)

    @property
    def features(self) -> pd.DataFrame:
        return self.frame[self.columns]

    @property
    def labels(self) -> pd.Series:
        return self.frame[self.label_col]

    @property
    def has_labels(self) -> bool:
        return self.label_col in self.frame.columns

    def subset(self, index) -> "FeatureTable":
        return FeatureTable(
            frame=self.frame.loc[index],
            vocabulary=self.vocabulary,
            columns=self.columns,
            label_col=self.label_col,
        )


@dataclass
class BowConfig:
    min_doc_fraction: float = 0.01
    label_col: str = "class"


def min_document_count(min_doc_fraction: float, n_documents: int) -> int:
    """Smallest document frequency satisfying ``df >= min_doc_fraction * n_documents``.

    The product is rounded before ``ceil`` so that e.g. ``0.07 * 100``
    (``7.000000000000001`` in floating point) requires 7 documents, not 8.
    """
    return max(1, math.ceil(round(min_doc_fraction * n_documents, 9)))


class TermFrequencyFeaturizer:
    def __init__(self, cfg: BowConfig):
        self.cfg = cfg
        self.vectorizer = CountVectorizer(analyzer=_identity)
        self.vocabulary_: Optional[List[str]] = None
        self.columns_: Optional[List[str]] = None
        self.raw_vocabulary_size_: int = 0
        self.min_count_: int = 1

    def fit_transform(self, token_streams: Sequence[List[str]], labels: Sequence[str]) -> FeatureTable:
        logger = get_logger()
        self.raw_vocabulary_size_ = len({tok for stream in token_streams for tok in stream})
        self.min_count_ = min_document_count(self.cfg.min_doc_fraction, len(token_streams))
        # Integer min_df is an exact document count.
        self.vectorizer.set_params(min_df=self.min_count_)
        try:
            counts = self.vectorizer.fit_transform(token_streams)
        except ValueError as exc:
            # CountVectorizer refuses empty vocabularies, before or after pruning.
            raise ConfigurationError(
                f"No terms left with min_doc_fraction={self.cfg.min_doc_fraction} "
                f"over {len(token_streams)} documents "
                f"(raw vocabulary: {self.raw_vocabulary_size_} terms): {exc}"
            ) from exc

        self.vocabulary_ = [str(t) for t in self.vectorizer.get_feature_names_out()]
        self.columns_ = sanitize_feature_names(self.vocabulary_, reserved=[self.cfg.label_col])
        logger.info(
            f"Vocabulary pruned from {self.raw_vocabulary_size_} to {len(self.vocabulary_)} terms "
            f"(min_doc_fraction={self.cfg.min_doc_fraction}, at least {self.min_count_} documents)"
        )
        return self._materialize(counts, labels)

    def transform(self, token_streams: Sequence[List[str]], labels: Optional[Sequence[str]] = None) -> FeatureTable:
        if self.vocabulary_ is None:
            raise RuntimeError("Featurizer is not fitted; call fit_transform first")
        return self._materialize(self.vectorizer.transform(token_streams), labels)

    def _materialize(self, counts, labels: Optional[Sequence[str]]) -> FeatureTable:
        frame = pd.DataFrame(counts.toarray(), columns=self.columns_)
        if labels is not None:
            if len(labels) != len(frame):
                raise ValueError(f"Got {len(labels)} labels for {len(frame)} documents")
            frame[self.cfg.label_col] = list(labels)
        return FeatureTable(
            frame=frame,
            vocabulary=list(self.vocabulary_),
            columns=list(self.columns_),
            label_col=self.cfg.label_col,
        )


def top_terms_by_label(table: FeatureTable, top_n: int = 10) -> pd.DataFrame:
    """Most frequent stems per label, the tabular form of a per-class word cloud."""
    term_of = dict(zip(table.columns, table.vocabulary))
    totals = table.frame.groupby(table.label_col, sort=True)[table.columns].sum()
    rows = []
    for label, counts in totals.iterrows():
        counts = counts[counts > 0].sort_values(ascending=False, kind="mergesort")
        for rank, (column, count) in enumerate(counts.head(top_n).items(), start=1):
            rows.append({
                "label": label,
                "rank": rank,
                "term": term_of[column],
                "count": int(count),
            })
    return pd.DataFrame(rows, columns=["label", "rank", "term", "count"])


def document_frequencies(table: FeatureTable) -> pd.Series:
    """Number of documents each retained term appears in."""
    counts = table.features.to_numpy()
    return pd.Series(np.count_nonzero(counts, axis=0), index=table.vocabulary, name="doc_freq")
