from __future__ import annotations

import argparse
import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

import yaml

from tweetclf.utils.errors import ConfigurationError

KERNELS = ("linear", "rbf")
STOPWORD_SOURCES = ("sklearn", "nltk")
STEMMERS = ("snowball", "porter")


@dataclass
class PipelineConfig:
    data_csv: str = "data/tweets.csv"
    text_col: str = "text"
    label_col: str = "class"
    encoding: str = "utf-8"
    # Normalizer
    domain_terms: Tuple[str, ...] = ("java",)
    stopword_source: str = "sklearn"
    stemmer: str = "snowball"
    # Feature builder
    min_doc_fraction: float = 0.01
    # Splitter
    train_ratio: float = 0.7
    seed: int = 42
    # Grid search
    cv_folds: int = 10
    kernels: Tuple[str, ...] = KERNELS
    C_values: Tuple[float, ...] = (0.1, 1.0, 10.0)
    gamma_values: Tuple[float, ...] = (0.001, 0.01, 0.1)
    output_dir: Optional[str] = "outputs/svm_bow"
    show_progress: bool = False

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "PipelineConfig":
        """Build a config from a flat mapping, ignoring keys that are not fields."""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in values.items():
            if key not in known or value is None:
                continue
            if isinstance(value, list):
                value = tuple(value)
            kwargs[key] = value
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, tuple):
                data[key] = list(value)
        return data

    def validate(self) -> "PipelineConfig":
        if not 0.0 < self.min_doc_fraction <= 1.0:
            raise ConfigurationError(f"min_doc_fraction must be in (0, 1], got {self.min_doc_fraction}")
        if not 0.0 < self.train_ratio < 1.0:
            raise ConfigurationError(f"train_ratio must be in (0, 1), got {self.train_ratio}")
        if self.cv_folds < 2:
            raise ConfigurationError(f"cv_folds must be at least 2, got {self.cv_folds}")
        if not self.kernels:
            raise ConfigurationError("At least one kernel is required")
        unknown = [k for k in self.kernels if k not in KERNELS]
        if unknown:
            raise ConfigurationError(f"Unsupported kernel(s): {unknown}; choose from {KERNELS}")
        if not self.C_values or any(c <= 0 for c in self.C_values):
            raise ConfigurationError("C_values must be a non-empty list of positive numbers")
        if "rbf" in self.kernels and (not self.gamma_values or any(g <= 0 for g in self.gamma_values)):
            raise ConfigurationError("gamma_values must be a non-empty list of positive numbers for the rbf kernel")
        if self.stopword_source not in STOPWORD_SOURCES:
            raise ConfigurationError(f"Unknown stopword source: {self.stopword_source}")
        if self.stemmer not in STEMMERS:
            raise ConfigurationError(f"Unknown stemmer: {self.stemmer}")
        return self


def load_experiment_config(path: str) -> dict[str, Any]:
    """Load a YAML or JSON config file."""
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    with open(config_path, "r", encoding="utf-8") as f:
        if config_path.suffix.lower() in {".yml", ".yaml"}:
            data = yaml.safe_load(f)
        else:
            data = json.load(f)
    return data or {}


def apply_config(namespace: argparse.Namespace, config: Mapping[str, Any]) -> None:
    """Inject config values into the argparse namespace (supports nested dicts)."""

    def _assign(key: str, value: Any):
        if hasattr(namespace, key):
            setattr(namespace, key, value)

    def _walk(prefix: str, value: Any):
        if isinstance(value, Mapping):
            for sub_key, sub_val in value.items():
                _walk(sub_key, sub_val)
        else:
            _assign(prefix, value)

    for top_key, top_val in config.items():
        _walk(top_key, top_val)
