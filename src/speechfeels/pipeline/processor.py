"""Annotation of a single document."""

from __future__ import annotations

import logging

from speechfeels.models import AnnotatedDocument, Document
from speechfeels.pipeline.pool import AnnotationTask, WorkerPool
from speechfeels.sentiment.annotator import Annotator

LOGGER = logging.getLogger(__name__)


class DocumentProcessor:
    """Fans a document's paragraphs out to the pool and reassembles them in order."""

    def __init__(self, pool: WorkerPool, annotator: Annotator) -> None:
        self.pool = pool
        self.annotator = annotator

    def process(self, document: Document) -> AnnotatedDocument:
        """Annotate every paragraph of ``document``.

        Either all paragraphs are annotated or the first failure is raised;
        a partially annotated document is never returned.
        """
        batch = [
            AnnotationTask(index=index, text=text)
            for index, text in enumerate(document.paragraphs)
        ]
        results = self.pool.run(batch, self.annotator.annotate)

        paragraphs = tuple(tuple(sentences) for sentences in results)
        LOGGER.debug(
            "Annotated %d sentences in %d paragraphs of %s",
            sum(len(p) for p in paragraphs),
            len(paragraphs),
            document.metadata.filename,
        )
        return AnnotatedDocument(metadata=document.metadata, paragraphs=paragraphs)
