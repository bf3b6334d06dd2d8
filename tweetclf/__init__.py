"""Keyword-tweet category classification with a bag-of-stems SVM."""

__version__ = "0.1.0"
