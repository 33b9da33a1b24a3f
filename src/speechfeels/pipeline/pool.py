"""Fixed-size worker pool with order-preserving batch completion."""

from __future__ import annotations

import logging
import os
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence

from speechfeels.exceptions import AnnotationError, PoolError
from speechfeels.models import SentenceResult

LOGGER = logging.getLogger(__name__)

TaskFunction = Callable[[str], List[SentenceResult]]


def default_pool_size() -> int:
    """Two more workers than there are CPUs."""
    return 2 + (os.cpu_count() or 1)


@dataclass(frozen=True, slots=True)
class AnnotationTask:
    """One paragraph awaiting annotation; ``index`` is its position in the batch."""

    index: int
    text: str


class WorkerPool:
    """Runs batches of annotation tasks on a fixed set of worker threads.

    ``run`` blocks until the whole batch has finished and returns results in
    task-index order, whatever order the workers completed in. The first
    failure cancels tasks that have not started yet; tasks already running
    are allowed to finish and their results are dropped.
    """

    def __init__(self, size: int | None = None) -> None:
        self.size = default_pool_size() if size is None else size
        if self.size < 1:
            raise ValueError(f"Pool size must be at least 1, got {self.size}")
        self._executor = ThreadPoolExecutor(
            max_workers=self.size, thread_name_prefix="speechfeels-worker"
        )
        self._closed = False
        LOGGER.debug("Started worker pool with %d workers", self.size)

    @property
    def closed(self) -> bool:
        return self._closed

    def run(self, batch: Sequence[AnnotationTask], fn: TaskFunction) -> List[List[SentenceResult]]:
        """Apply ``fn`` to every task text and return the results in index order."""
        tasks = list(batch)
        if sorted(task.index for task in tasks) != list(range(len(tasks))):
            raise ValueError("Batch task indices must be exactly 0..n-1")
        if not tasks:
            return []
        if self._closed:
            raise PoolError("Cannot run a batch on a closed worker pool")

        futures: Dict[Future, AnnotationTask] = {}
        try:
            for task in tasks:
                futures[self._executor.submit(fn, task.text)] = task
        except RuntimeError as exc:
            for future in futures:
                future.cancel()
            raise PoolError(f"Worker pool rejected task: {exc}") from exc

        done, pending = wait(futures, return_when=FIRST_EXCEPTION)

        failed = sorted(
            ((futures[f].index, f.exception()) for f in done if f.exception() is not None),
            key=lambda item: item[0],
        )
        if failed:
            cancelled = sum(1 for future in pending if future.cancel())
            index, exc = failed[0]
            LOGGER.debug(
                "Task %d of %d failed, cancelled %d pending tasks", index, len(tasks), cancelled
            )
            error = self._as_batch_error(exc, index)
            if error is exc:
                raise error
            raise error from exc

        slots: List[List[SentenceResult] | None] = [None] * len(tasks)
        for future, task in futures.items():
            slots[task.index] = future.result()
        return [list(slot) for slot in slots]

    @staticmethod
    def _as_batch_error(exc: BaseException, index: int) -> Exception:
        if isinstance(exc, AnnotationError):
            if exc.paragraph_index is None:
                exc.paragraph_index = index
            return exc
        if isinstance(exc, PoolError):
            return exc
        return PoolError(f"Task {index} failed: {exc!r}", task_index=index)

    def shutdown(self) -> None:
        """Wait for in-flight work and join every worker."""
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=True)
        LOGGER.debug("Worker pool shut down")

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
