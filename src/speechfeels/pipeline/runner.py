"""Corpus-level driver for the annotation pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Sequence

from speechfeels.config import FailurePolicy
from speechfeels.exceptions import SpeechfeelsError
from speechfeels.ingestion.loader import load_document
from speechfeels.models import Document, DocumentResult
from speechfeels.pipeline.pool import WorkerPool
from speechfeels.pipeline.processor import DocumentProcessor
from speechfeels.sentiment.annotator import Annotator, ensure_thread_safe

LOGGER = logging.getLogger(__name__)

DocumentLoader = Callable[[Path], Document]


@dataclass(slots=True)
class RunStats:
    succeeded: int = 0
    failed: int = 0
    processed_files: list[Path] = field(default_factory=list)

    def record(self, result: DocumentResult) -> None:
        if result.ok:
            self.succeeded += 1
        else:
            self.failed += 1
        self.processed_files.append(result.path)


class Runner:
    """Processes documents one after another on a single shared worker pool.

    The runner owns the pool for the duration of :meth:`run_all`: it is
    created before the first document and shut down after the last one, or
    as soon as the run aborts.
    """

    def __init__(
        self,
        annotator: Annotator,
        *,
        workers: int | None = None,
        policy: FailurePolicy = FailurePolicy.FAIL_FAST,
        loader: DocumentLoader = load_document,
    ) -> None:
        self.annotator = ensure_thread_safe(annotator)
        self.workers = workers
        self.policy = FailurePolicy(policy)
        self.loader = loader
        self.stats = RunStats()

    def run_all(self, paths: Sequence[Path]) -> List[DocumentResult]:
        """Annotate every path in order.

        Under ``FAIL_FAST`` the first failing document stops the run and its
        error is raised. Under ``ISOLATE`` failures are returned alongside
        successes and the remaining documents are still processed.
        """
        self.stats = RunStats()
        results: List[DocumentResult] = []
        if not paths:
            return results

        with WorkerPool(self.workers) as pool:
            LOGGER.info("Annotating %d documents with %d workers", len(paths), pool.size)
            processor = DocumentProcessor(pool, self.annotator)
            for path in paths:
                result = self._run_one(Path(path), processor)
                self.stats.record(result)
                results.append(result)
                if result.error is not None and self.policy is FailurePolicy.FAIL_FAST:
                    raise result.error

        return results

    def _run_one(self, path: Path, processor: DocumentProcessor) -> DocumentResult:
        LOGGER.info("Processing %s", path)
        try:
            document = self.loader(path)
            annotated = processor.process(document)
        except (SpeechfeelsError, OSError, UnicodeDecodeError) as exc:
            LOGGER.error("Failed to process %s: %s", path, exc)
            return DocumentResult(path=path, error=exc)
        return DocumentResult(path=path, document=annotated)
