"""Speech loading: filename metadata and paragraph segmentation."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from speechfeels.exceptions import MetadataParseError
from speechfeels.models import Document, SpeechMetadata
from speechfeels.utils.text import split_paragraphs

LOGGER = logging.getLogger(__name__)

_FILENAME_RE = re.compile(r"^([0-9]+)-([^.]+)\..+$")


def parse_metadata(path: Path) -> SpeechMetadata:
    """Parse a path like ``foo/2009-Obama.txt`` into its president and year."""
    filename = Path(path).name
    match = _FILENAME_RE.match(filename)
    if match is None:
        raise MetadataParseError(
            f"Filename {filename!r} does not match '<year>-<president>.<ext>'",
            path=Path(path),
        )
    year, president = match.groups()
    return SpeechMetadata(president=president, year=year, filename=filename)


def load_document(path: Path, *, encoding: str = "utf-8") -> Document:
    """Read and segment one speech file."""
    path = Path(path)
    metadata = parse_metadata(path)
    text = path.read_text(encoding=encoding)
    paragraphs = tuple(split_paragraphs(text))
    LOGGER.info("  Found %d paragraphs in %s", len(paragraphs), metadata.filename)
    return Document(path=path, metadata=metadata, paragraphs=paragraphs)
