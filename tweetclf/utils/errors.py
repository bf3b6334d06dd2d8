from __future__ import annotations


class TweetClassifierError(Exception):
    """Base class for errors raised by the tweet classification pipeline."""


class ConfigurationError(TweetClassifierError, ValueError):
    """A setting makes the run meaningless (empty vocabulary, degenerate folds, ...)."""


class MalformedInputError(TweetClassifierError, ValueError):
    """The input table cannot be read without silently corrupting the corpus."""

    def __init__(self, message: str, row: int | None = None):
        if row is not None:
            message = f"row {row}: {message}"
        super().__init__(message)
        self.row = row
