"""Rendering of annotated documents to JSON and HTML."""

from __future__ import annotations

import html
import json
from typing import Any, Dict, Iterable, List

from speechfeels.models import AnnotatedDocument, Paragraph, SentimentLabel

_STYLESHEET = """
  .very-negative { background-color: #d7301f; color: #fff; }
  .negative { background-color: #fc8d59; }
  .neutral { background-color: transparent; }
  .positive { background-color: #91cf60; }
  .very-positive { background-color: #1a9850; color: #fff; }
"""


def document_to_dict(document: AnnotatedDocument) -> Dict[str, Any]:
    meta = document.metadata
    return {
        "president": meta.president,
        "year": meta.year,
        "filename": meta.filename,
        "paras": [
            [[sentence.text, sentence.label.value] for sentence in paragraph]
            for paragraph in document.paragraphs
        ],
    }


def to_json(documents: Iterable[AnnotatedDocument], *, indent: int | None = 2) -> str:
    """Serialize documents as a JSON list, one object per document."""
    return json.dumps([document_to_dict(doc) for doc in documents], indent=indent)


def paragraph_to_html(paragraph: Paragraph) -> str:
    spans = "".join(
        f'  <span class="{sentence.label.css_class}">{html.escape(sentence.text, quote=False)}</span>\n'
        for sentence in paragraph
    )
    return f"<p>\n{spans}</p>\n"


def document_to_html(document: AnnotatedDocument) -> str:
    meta = document.metadata
    heading = html.escape(f"{meta.president} ({meta.year})")
    body = "".join(paragraph_to_html(paragraph) for paragraph in document.paragraphs)
    return f'<article data-filename="{html.escape(meta.filename)}">\n<h2>{heading}</h2>\n{body}</article>\n'


def to_html(documents: Iterable[AnnotatedDocument], *, full_page: bool = True) -> str:
    """Render documents as HTML, optionally wrapped in a standalone page."""
    articles = "".join(document_to_html(doc) for doc in documents)
    if not full_page:
        return articles
    legend = " ".join(
        f'<span class="{label.css_class}">{label.value}</span>' for label in SentimentLabel
    )
    return (
        "<!DOCTYPE html>\n<html>\n<head>\n<meta charset=\"utf-8\">\n"
        f"<title>Speech sentiment</title>\n<style>{_STYLESHEET}</style>\n</head>\n"
        f"<body>\n<div class=\"legend\">{legend}</div>\n{articles}</body>\n</html>\n"
    )


RENDERERS = {"json": to_json, "html": to_html}


def render(documents: List[AnnotatedDocument], output_format: str) -> str:
    try:
        renderer = RENDERERS[output_format]
    except KeyError:
        raise ValueError(f"Unknown output format: {output_format}") from None
    return renderer(documents)
