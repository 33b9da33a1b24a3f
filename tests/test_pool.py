"""Tests for the order-preserving worker pool."""

from __future__ import annotations

import random
import threading
import time
from typing import List
from unittest.mock import patch

import pytest

from speechfeels.exceptions import AnnotationError, PoolError
from speechfeels.models import SentenceResult, SentimentLabel
from speechfeels.pipeline.pool import AnnotationTask, WorkerPool, default_pool_size


def _echo(text: str) -> List[SentenceResult]:
    return [SentenceResult(text=text, label=SentimentLabel.NEUTRAL)]


def _batch(texts: List[str]) -> List[AnnotationTask]:
    return [AnnotationTask(index=i, text=text) for i, text in enumerate(texts)]


class ConcurrencyProbe:
    """Task function that records how many calls overlap."""

    def __init__(self, delay: float = 0.02) -> None:
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self.calls = 0
        self._lock = threading.Lock()

    def __call__(self, text: str) -> List[SentenceResult]:
        with self._lock:
            self.active += 1
            self.calls += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(self.delay)
            return _echo(text)
        finally:
            with self._lock:
                self.active -= 1


class TestDefaultPoolSize:
    """Test default_pool_size helper."""

    def test_cpus_plus_two(self) -> None:
        """Should add two workers to the CPU count."""
        with patch("speechfeels.pipeline.pool.os.cpu_count", return_value=8):
            assert default_pool_size() == 10

    def test_unknown_cpu_count(self) -> None:
        """Should assume one CPU when the count is unknown."""
        with patch("speechfeels.pipeline.pool.os.cpu_count", return_value=None):
            assert default_pool_size() == 3


class TestWorkerPoolLifecycle:
    """Test pool construction and shutdown."""

    def test_explicit_size(self) -> None:
        """Should keep the requested size."""
        with WorkerPool(3) as pool:
            assert pool.size == 3

    def test_default_size(self) -> None:
        """Should fall back to default_pool_size."""
        with patch("speechfeels.pipeline.pool.os.cpu_count", return_value=2):
            with WorkerPool() as pool:
                assert pool.size == 4

    def test_invalid_size(self) -> None:
        """Should reject pools without workers."""
        with pytest.raises(ValueError):
            WorkerPool(0)

    def test_context_manager_shuts_down(self) -> None:
        """Should close the pool on exit."""
        with WorkerPool(2) as pool:
            assert not pool.closed
        assert pool.closed

    def test_shutdown_is_idempotent(self) -> None:
        """Should allow shutting down twice."""
        pool = WorkerPool(2)
        pool.shutdown()
        pool.shutdown()
        assert pool.closed

    def test_run_after_shutdown(self) -> None:
        """Should raise PoolError for a closed pool."""
        pool = WorkerPool(2)
        pool.shutdown()

        with pytest.raises(PoolError):
            pool.run(_batch(["a"]), _echo)

    def test_reused_across_batches(self) -> None:
        """Should serve several batches with the same workers."""
        with WorkerPool(2) as pool:
            first = pool.run(_batch(["a", "b"]), _echo)
            second = pool.run(_batch(["c"]), _echo)

        assert [r[0].text for r in first] == ["a", "b"]
        assert [r[0].text for r in second] == ["c"]


class TestWorkerPoolOrdering:
    """Test that results come back in submission order."""

    @pytest.mark.parametrize("count", [0, 1, 2, 25])
    def test_random_delays(self, count: int) -> None:
        """Should preserve order whatever the per-task delays."""
        rng = random.Random(count)
        delays = {f"paragraph {i}": rng.uniform(0, 0.02) for i in range(count)}

        def slow_echo(text: str) -> List[SentenceResult]:
            time.sleep(delays[text])
            return _echo(text)

        texts = list(delays)
        with WorkerPool(4) as pool:
            results = pool.run(_batch(texts), slow_echo)

        assert [r[0].text for r in results] == texts

    def test_later_tasks_finish_first(self) -> None:
        """Should preserve order when completion order is reversed."""
        texts = [f"p{i}" for i in range(6)]
        finished: List[str] = []
        lock = threading.Lock()

        def reversed_echo(text: str) -> List[SentenceResult]:
            time.sleep(0.01 * (len(texts) - int(text[1:])))
            with lock:
                finished.append(text)
            return _echo(text)

        with WorkerPool(len(texts)) as pool:
            results = pool.run(_batch(texts), reversed_echo)

        assert finished[0] != "p0"
        assert [r[0].text for r in results] == texts

    def test_unordered_batch(self) -> None:
        """Should place results by task index, not by list position."""
        batch = [AnnotationTask(index=2, text="c"), AnnotationTask(index=0, text="a"), AnnotationTask(index=1, text="b")]

        with WorkerPool(2) as pool:
            results = pool.run(batch, _echo)

        assert [r[0].text for r in results] == ["a", "b", "c"]

    def test_multi_sentence_results(self) -> None:
        """Should keep each task's own sentence order."""

        def split(text: str) -> List[SentenceResult]:
            return [SentenceResult(word, SentimentLabel.POSITIVE) for word in text.split()]

        with WorkerPool(2) as pool:
            results = pool.run(_batch(["a b c", "d e"]), split)

        assert [[s.text for s in r] for r in results] == [["a", "b", "c"], ["d", "e"]]

    @pytest.mark.parametrize(
        "indices",
        [[0, 0], [1, 2], [0, 2]],
    )
    def test_invalid_indices(self, indices: List[int]) -> None:
        """Should reject batches whose indices are not 0..n-1."""
        batch = [AnnotationTask(index=i, text="x") for i in indices]

        with WorkerPool(2) as pool:
            with pytest.raises(ValueError):
                pool.run(batch, _echo)


class TestWorkerPoolExhaustion:
    """Test bounded concurrency."""

    def test_ten_tasks_three_workers(self) -> None:
        """Should return all results with at most three tasks in flight."""
        probe = ConcurrencyProbe()
        texts = [f"t{i}" for i in range(10)]

        with WorkerPool(3) as pool:
            results = pool.run(_batch(texts), probe)

        assert len(results) == 10
        assert [r[0].text for r in results] == texts
        assert probe.calls == 10
        assert 1 <= probe.max_active <= 3


class TestWorkerPoolFailures:
    """Test fail-fast behaviour."""

    def test_annotation_error_propagates(self) -> None:
        """Should re-raise AnnotationError with the failing index attached."""

        def failing(text: str) -> List[SentenceResult]:
            if text == "bad":
                raise AnnotationError("unlabeled node")
            return _echo(text)

        with WorkerPool(2) as pool:
            with pytest.raises(AnnotationError) as excinfo:
                pool.run(_batch(["ok", "ok", "bad", "ok"]), failing)

        assert excinfo.value.paragraph_index == 2

    def test_unexpected_error_wrapped(self) -> None:
        """Should wrap other exceptions in PoolError."""

        def crashing(text: str) -> List[SentenceResult]:
            raise RuntimeError("worker crashed")

        with WorkerPool(2) as pool:
            with pytest.raises(PoolError) as excinfo:
                pool.run(_batch(["only"]), crashing)

        assert excinfo.value.task_index == 0
        assert isinstance(excinfo.value.__cause__, RuntimeError)

    def test_lowest_index_failure_reported(self) -> None:
        """Should report a single error, the lowest failing index observed."""

        def all_fail(text: str) -> List[SentenceResult]:
            raise AnnotationError(f"failed {text}")

        with WorkerPool(1) as pool:
            with pytest.raises(AnnotationError) as excinfo:
                pool.run(_batch(["a", "b", "c"]), all_fail)

        assert excinfo.value.paragraph_index == 0

    def test_pending_tasks_cancelled(self) -> None:
        """Should not start queued tasks after a failure."""
        probe = ConcurrencyProbe(delay=0.05)

        def first_fails(text: str) -> List[SentenceResult]:
            if text == "t0":
                raise AnnotationError("boom")
            return probe(text)

        with WorkerPool(1) as pool:
            with pytest.raises(AnnotationError):
                pool.run(_batch([f"t{i}" for i in range(10)]), first_fails)

        assert probe.calls < 9

    def test_pool_usable_after_failure(self) -> None:
        """Should accept new batches after a failed one."""

        def failing(text: str) -> List[SentenceResult]:
            raise AnnotationError("boom")

        with WorkerPool(2) as pool:
            with pytest.raises(AnnotationError):
                pool.run(_batch(["x"]), failing)
            results = pool.run(_batch(["y"]), _echo)

        assert results[0][0].text == "y"
