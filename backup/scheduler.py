"""Admission-controlled worker pool for backup tasks."""
from __future__ import annotations

import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable, Generic, Iterable, List, Optional, Set, TypeVar

T = TypeVar("T")
R = TypeVar("R")


class BoundedScheduler(Generic[T, R]):
    """Run ``worker(item)`` for each item with at most ``limit`` in flight.

    Items are admitted in iteration order. Once the pool is full the caller
    blocks until any one running task finishes, then exactly one more item
    is admitted. Results come back in submission order; completion order is
    unconstrained.
    """

    def __init__(
        self,
        limit: int,
        *,
        on_complete: Optional[Callable[[T, R], None]] = None,
        thread_name_prefix: str = "backup-task",
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be a positive integer")
        self._limit = int(limit)
        self._on_complete = on_complete
        self._thread_name_prefix = thread_name_prefix
        self._lock = threading.Lock()
        self._in_flight = 0
        self._peak = 0

    # ------------------------------------------------------------------
    @property
    def limit(self) -> int:
        return self._limit

    @property
    def peak(self) -> int:
        """Highest number of tasks observed running at the same time."""
        with self._lock:
            return self._peak

    # ------------------------------------------------------------------
    def _wrap(self, worker: Callable[[T], R], item: T) -> R:
        with self._lock:
            self._in_flight += 1
            self._peak = max(self._peak, self._in_flight)
        try:
            return worker(item)
        finally:
            with self._lock:
                self._in_flight -= 1

    def _finish(self, done: Iterable[Future], owners: dict) -> None:
        for future in done:
            if self._on_complete is not None:
                self._on_complete(owners[future], future.result())

    def run(self, items: Iterable[T], worker: Callable[[T], R]) -> List[R]:
        ordered: List[Future] = []
        owners: dict = {}
        pending: Set[Future] = set()
        with ThreadPoolExecutor(max_workers=self._limit, thread_name_prefix=self._thread_name_prefix) as pool:
            for item in items:
                if len(pending) >= self._limit:
                    done, pending = wait(pending, return_when=FIRST_COMPLETED)
                    self._finish(done, owners)
                future = pool.submit(self._wrap, worker, item)
                owners[future] = item
                ordered.append(future)
                pending.add(future)
            if pending:
                done, _ = wait(pending)
                self._finish(done, owners)
        return [future.result() for future in ordered]


__all__ = ["BoundedScheduler"]
