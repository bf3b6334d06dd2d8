"""Shared fixtures for tweetclf tests."""

from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from tweetclf.utils.config import PipelineConfig

# Two word-disjoint classes. After stopword/domain-term removal and stemming
# the vocabulary is exactly {appl, banana, cherri}.
TOY_ROWS = [
    ("apple", "A"),
    ("Apple!", "A"),
    ("an apple", "A"),
    ("java apple", "A"),
    ("apple apple", "A"),
    ("banana cherry", "B"),
    ("cherry banana", "B"),
    ("Banana, cherry!", "B"),
    ("the banana and the cherry", "B"),
    ("banana cherry cherry", "B"),
]

LABEL_WORDS = {
    "job": ["hiring", "developer", "position", "salary", "recruiter"],
    "learning": ["tutorial", "course", "beginner", "lesson", "study"],
    "opinion": ["hate", "love", "worst", "verbose", "boilerplate"],
    "help": ["error", "exception", "stacktrace", "fix", "compile"],
    "coffee": ["coffee", "cup", "espresso", "brew", "morning"],
    "geography": ["island", "indonesia", "jakarta", "travel", "beach"],
    "irrelevant": ["lol", "random", "cat", "movie", "game"],
}


def make_tweets(per_label: int = 12) -> list[tuple[str, str]]:
    rows = []
    for label, words in LABEL_WORDS.items():
        for i in range(per_label):
            picked = [words[i % 5], words[(i + 1) % 5], words[(i + 3) % 5]]
            rows.append((f"Java {' '.join(picked)} #{label}!", label))
    return rows


def write_csv(path: Path, rows, columns=("text", "class")) -> Path:
    pd.DataFrame(rows, columns=list(columns)).to_csv(path, index=False)
    return path


@pytest.fixture
def toy_csv(tmp_path: Path) -> Path:
    return write_csv(tmp_path / "toy.csv", TOY_ROWS)


@pytest.fixture
def tweets_csv(tmp_path: Path) -> Path:
    rows = make_tweets() + [("unlabelled java tweet", ""), ("another one", "")]
    return write_csv(tmp_path / "tweets.csv", rows)


@pytest.fixture
def toy_config(toy_csv: Path, tmp_path: Path) -> PipelineConfig:
    return PipelineConfig(
        data_csv=str(toy_csv),
        kernels=("linear",),
        C_values=(1.0,),
        cv_folds=3,
        output_dir=str(tmp_path / "toy_run"),
    )


@pytest.fixture
def tweets_config(tweets_csv: Path, tmp_path: Path) -> PipelineConfig:
    return PipelineConfig(
        data_csv=str(tweets_csv),
        C_values=(0.1, 1.0),
        gamma_values=(0.01, 0.1),
        cv_folds=5,
        output_dir=str(tmp_path / "tweets_run"),
    )
