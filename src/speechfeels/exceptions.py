"""Exceptions raised by speechfeels."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class SpeechfeelsError(Exception):
    """Base exception for all speechfeels errors."""


class SpeechfeelsConfigError(SpeechfeelsError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message)
        self.config_key = config_key


class MetadataParseError(SpeechfeelsError):
    """Raised when a filename does not look like ``<year>-<president>.<ext>``."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class AnnotationError(SpeechfeelsError):
    """Raised when the annotator produces malformed or unlabelable output."""

    def __init__(self, message: str, paragraph_index: Optional[int] = None):
        super().__init__(message)
        self.paragraph_index = paragraph_index


class PoolError(SpeechfeelsError):
    """Raised when a task fails inside the worker pool for non-annotation reasons."""

    def __init__(self, message: str, task_index: Optional[int] = None):
        super().__init__(message)
        self.task_index = task_index
