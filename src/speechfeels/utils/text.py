"""Text helpers for paragraph and sentence segmentation."""

from __future__ import annotations

import re
from typing import List

_BLANK_LINE_RE = re.compile(r"\n[ \t\r\f\v]*\n")
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")


def split_paragraphs(text: str) -> List[str]:
    """Split text into paragraphs separated by blank lines.

    Paragraphs are trimmed and empty ones dropped; source order is kept.
    """
    if not text:
        return []
    normalized = text.replace("\r\n", "\n")
    return [para.strip() for para in _BLANK_LINE_RE.split(normalized) if para.strip()]


def split_sentences(text: str) -> List[str]:
    """Split a paragraph into sentences at terminal punctuation.

    Line breaks and runs of whitespace inside a sentence collapse to single spaces.
    """
    sentences = (normalize_whitespace(s) for s in _SENTENCE_SPLIT_RE.split(text.strip()))
    return [s for s in sentences if s]


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces."""
    return " ".join(text.split())
