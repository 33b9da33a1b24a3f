"""Annotator capability boundary and its concurrency guarantees.

Annotators are called concurrently from every worker of the pool. An
implementation either declares itself re-entrant (``thread_safe = True``) or
is wrapped in a :class:`SerializedAnnotator`, which holds a lock around each
call to the underlying engine.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import List

from speechfeels.models import SentenceResult

logger = logging.getLogger(__name__)


class Annotator(ABC):
    """Maps one paragraph of text to its ordered sentence results."""

    #: Whether ``annotate`` may be called from several threads at once.
    thread_safe: bool = False

    @abstractmethod
    def annotate(self, text: str) -> List[SentenceResult]:
        """Split ``text`` into sentences and label each one.

        Raises:
            AnnotationError: If the engine output cannot be turned into labels.
        """


class SerializedAnnotator(Annotator):
    """Guards a single non-re-entrant annotator with a mutex."""

    thread_safe = True

    def __init__(self, inner: Annotator) -> None:
        self.inner = inner
        self._lock = threading.Lock()

    def annotate(self, text: str) -> List[SentenceResult]:
        with self._lock:
            results = self.inner.annotate(text)
        return list(results)


def ensure_thread_safe(annotator: Annotator) -> Annotator:
    """Return ``annotator`` unchanged if re-entrant, otherwise a serialized wrapper."""
    if getattr(annotator, "thread_safe", False):
        return annotator
    logger.debug("Serializing access to %s", type(annotator).__name__)
    return SerializedAnnotator(annotator)
