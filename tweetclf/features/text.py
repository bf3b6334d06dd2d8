from __future__ import annotations

import string
import unicodedata
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Sequence, Tuple

import nltk
from nltk.corpus import stopwords as nltk_stopwords
from nltk.stem import PorterStemmer, SnowballStemmer
from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS
from tqdm import tqdm

from tweetclf.utils.errors import ConfigurationError

_PUNCTUATION = frozenset(string.punctuation)


def strip_punctuation(text: str) -> str:
    """Delete ASCII punctuation and every Unicode ``P*`` character (curly quotes, ellipsis...)."""
    return "".join(
        c for c in text if c not in _PUNCTUATION and not unicodedata.category(c).startswith("P")
    )


@dataclass
class NormalizerConfig:
    domain_terms: Tuple[str, ...] = ("java",)
    stopword_source: str = "sklearn"
    stemmer: str = "snowball"
    show_progress: bool = False


def ensure_nltk_stopwords() -> List[str]:
    try:
        return nltk_stopwords.words("english")
    except LookupError:
        nltk.download("stopwords", quiet=True)
        return nltk_stopwords.words("english")


def load_stopwords(source: str) -> FrozenSet[str]:
    """Return the English stopword set shipped with scikit-learn or nltk."""
    if source == "sklearn":
        return frozenset(ENGLISH_STOP_WORDS)
    if source == "nltk":
        return frozenset(ensure_nltk_stopwords())
    raise ConfigurationError(f"Unknown stopword source: {source}")


def build_stemmer(name: str):
    if name == "snowball":
        return SnowballStemmer("english")
    if name == "porter":
        return PorterStemmer()
    raise ConfigurationError(f"Unknown stemmer: {name}")


class TextNormalizer:
    """Turns raw tweet text into a stream of word stems.

    Steps, in order: lowercase, delete punctuation (no replacement, so
    ``"c++/c#"`` becomes ``"cc"``), drop stopwords and the domain terms,
    stem what is left. A text made only of stopwords yields an empty list.
    """

    def __init__(self, cfg: NormalizerConfig, stopwords: Optional[Iterable[str]] = None):
        self.cfg = cfg
        base = load_stopwords(cfg.stopword_source) if stopwords is None else stopwords
        self.stopwords: FrozenSet[str] = frozenset(w.lower() for w in base) | frozenset(
            t.lower() for t in cfg.domain_terms
        )
        self.stemmer = build_stemmer(cfg.stemmer)

    def normalize(self, text: str) -> List[str]:
        text = strip_punctuation(text.lower())
        return [self.stemmer.stem(tok) for tok in text.split() if tok not in self.stopwords]

    def normalize_corpus(self, texts: Sequence[str]) -> List[List[str]]:
        return [
            self.normalize(text)
            for text in tqdm(texts, desc="Normalizing", disable=not self.cfg.show_progress)
        ]
