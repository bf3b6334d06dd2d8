from __future__ import annotations

import io
import warnings
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

import numpy as np
import pandas as pd
from sklearn.model_selection import train_test_split

from tweetclf.features.bow import FeatureTable
from tweetclf.utils.errors import ConfigurationError, MalformedInputError
from tweetclf.utils.logging import get_logger


@dataclass
class Example:
    text: str
    label: str
    row: int = 0


def _read_text(path: str, encoding: str) -> str:
    raw = Path(path).read_bytes()
    try:
        return raw.decode(encoding)
    except UnicodeDecodeError as exc:
        line = raw.count(b"\n", 0, exc.start) + 1
        raise MalformedInputError(
            f"cannot decode {path} as {encoding} at line {line}, byte {exc.start}: {exc.reason}"
        ) from exc


def load_csv_dataset(
    path: str,
    text_col: str = "text",
    label_col: str = "class",
    encoding: str = "utf-8",
    sep: str = ",",
) -> List[Example]:
    """Read labelled documents, keeping only the text and label columns.

    Rows with an empty label are unlabelled and skipped, as are blank lines.
    ``Example.row`` is the 1-based data row (header excluded) the document came
    from; blank lines count as rows so numbers match the file.
    """
    logger = get_logger()
    content = _read_text(path, encoding)
    try:
        with warnings.catch_warnings():
            # With index_col=False pandas only warns about rows wider than the header.
            warnings.simplefilter("error", pd.errors.ParserWarning)
            frame = pd.read_csv(
                io.StringIO(content),
                sep=sep,
                dtype=str,
                keep_default_na=False,
                index_col=False,
                skip_blank_lines=False,
            )
    except pd.errors.EmptyDataError as exc:
        raise MalformedInputError(f"{path} has no header or rows") from exc
    except (pd.errors.ParserError, pd.errors.ParserWarning) as exc:
        raise MalformedInputError(f"cannot parse {path}: {exc}") from exc

    missing = [col for col in (text_col, label_col) if col not in frame.columns]
    if missing:
        raise MalformedInputError(f"{path} is missing column(s) {missing}; found {list(frame.columns)}")

    data: List[Example] = []
    dropped = 0
    blank = (frame.isna() | frame.eq("")).all(axis=1).to_numpy()
    for row, (text, label) in enumerate(frame[[text_col, label_col]].itertuples(index=False, name=None), start=1):
        if blank[row - 1]:
            continue
        if pd.isna(label) or not str(label).strip():
            dropped += 1
            continue
        if pd.isna(text):
            raise MalformedInputError(f"labelled row has no '{text_col}' value", row=row)
        data.append(Example(text=str(text), label=str(label).strip(), row=row))

    logger.info(f"Loaded {len(data)} labelled documents from {path} ({dropped} unlabelled rows dropped)")
    return data


def label_distribution(data: List[Example]) -> pd.Series:
    counts = Counter(ex.label for ex in data)
    return pd.Series(counts, name="count", dtype="int64").sort_index()


def stratified_split(
    table: FeatureTable,
    train_ratio: float = 0.7,
    seed: int = 42,
) -> Tuple[FeatureTable, FeatureTable]:
    """Split rows into train/test so every label keeps its share in both parts."""
    logger = get_logger()
    if not 0.0 < train_ratio < 1.0:
        raise ConfigurationError(f"train_ratio must be in (0, 1), got {train_ratio}")

    labels = table.labels
    counts = labels.value_counts()
    too_rare = counts[counts < 2]
    if not too_rare.empty:
        raise ConfigurationError(
            f"Cannot stratify: label(s) {sorted(too_rare.index)} have fewer than 2 documents"
        )

    try:
        train_idx, test_idx = train_test_split(
            table.frame.index.to_numpy(),
            train_size=train_ratio,
            random_state=seed,
            stratify=labels.to_numpy(),
        )
    except ValueError as exc:
        raise ConfigurationError(f"Cannot split {len(table)} documents with train_ratio={train_ratio}: {exc}") from exc

    train, test = table.subset(np.sort(train_idx)), table.subset(np.sort(test_idx))
    logger.info(f"Train={len(train)}, Test={len(test)} (train_ratio={train_ratio}, seed={seed})")
    return train, test
