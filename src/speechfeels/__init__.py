"""Sentence-level sentiment analysis of speech corpora."""

__version__ = "0.1.0"
