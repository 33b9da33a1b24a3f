"""Core speechfeels data models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Tuple

from speechfeels.exceptions import AnnotationError


class SentimentLabel(str, Enum):
    """Five-class sentiment, from most negative to most positive."""

    VERY_NEGATIVE = "Very negative"
    NEGATIVE = "Negative"
    NEUTRAL = "Neutral"
    POSITIVE = "Positive"
    VERY_POSITIVE = "Very positive"

    @classmethod
    def from_class(cls, index: int) -> "SentimentLabel":
        """Map a predicted class index (0 = very negative) onto a label."""
        members = list(cls)
        if isinstance(index, bool) or not 0 <= index < len(members):
            raise AnnotationError(f"Predicted class {index!r} has no sentiment label")
        return members[index]

    @property
    def css_class(self) -> str:
        return self.value.lower().replace(" ", "-")


@dataclass(frozen=True, slots=True)
class SentenceResult:
    """A sentence and the sentiment assigned to it."""

    text: str
    label: SentimentLabel


@dataclass(frozen=True, slots=True)
class SpeechMetadata:
    """Metadata parsed from a speech filename."""

    president: str
    year: str
    filename: str


@dataclass(frozen=True, slots=True)
class Document:
    """A segmented input document, ready for annotation."""

    path: Path
    metadata: SpeechMetadata
    paragraphs: Tuple[str, ...]


Paragraph = Tuple[SentenceResult, ...]


@dataclass(frozen=True, slots=True)
class AnnotatedDocument:
    """Metadata plus the annotated sentences of every paragraph, in source order."""

    metadata: SpeechMetadata
    paragraphs: Tuple[Paragraph, ...]

    @property
    def paragraph_count(self) -> int:
        return len(self.paragraphs)

    @property
    def sentence_count(self) -> int:
        return sum(len(paragraph) for paragraph in self.paragraphs)


@dataclass(frozen=True, slots=True)
class DocumentResult:
    """Outcome of processing one input path: a document or the error that stopped it."""

    path: Path
    document: AnnotatedDocument | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.document is not None
