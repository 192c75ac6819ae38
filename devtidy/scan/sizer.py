from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from types import TracebackType

from devtidy.config.schema import default_workers
from devtidy.models.scan import CancelCheck
from devtidy.services.fs import DEFAULT_FS, FileSystem

logger = logging.getLogger(__name__)


class _Accumulator:
    __slots__ = ("_lock", "total")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.total = 0

    def add(self, size: int) -> None:
        with self._lock:
            self.total += size


class SizeAggregator:
    """Sum of regular-file sizes under a path.

    File stats run on a shared thread pool; each call bounds its in-flight
    stats with a semaphore of ``workers`` permits. Unreadable entries count as
    zero. Results are never cached here.
    """

    def __init__(self, workers: int | None = None, fs: FileSystem = DEFAULT_FS) -> None:
        self._workers = max(1, workers if workers is not None else default_workers())
        self._fs = fs
        self._pool: ThreadPoolExecutor | None = None
        self._pool_lock = threading.Lock()

    def _executor(self) -> ThreadPoolExecutor:
        with self._pool_lock:
            if self._pool is None:
                self._pool = ThreadPoolExecutor(max_workers=self._workers, thread_name_prefix="devtidy-size")
            return self._pool

    def close(self) -> None:
        with self._pool_lock:
            if self._pool is not None:
                self._pool.shutdown(wait=True)
                self._pool = None

    def __enter__(self) -> SizeAggregator:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _file_size(self, path: str) -> int:
        try:
            st = self._fs.stat(path)
        except OSError:
            return 0
        return st.size if st.is_file else 0

    def total_size(self, path: str, cancel_check: CancelCheck | None = None) -> int:
        try:
            root_stat = self._fs.stat(path)
        except OSError as exc:
            logger.debug("Cannot stat %s: %s", path, exc)
            return 0
        if not root_stat.is_dir:
            return root_stat.size if root_stat.is_file else 0

        acc = _Accumulator()
        permits = threading.BoundedSemaphore(self._workers)
        pool = self._executor()

        def _measure(file_path: str) -> None:
            try:
                acc.add(self._file_size(file_path))
            finally:
                permits.release()

        stack = [path]
        while stack:
            if cancel_check is not None and cancel_check():
                break
            current = stack.pop()
            try:
                entries = self._fs.scandir(current)
            except OSError as exc:
                logger.debug("Skipping unreadable directory %s: %s", current, exc)
                continue
            for entry in entries:
                if entry.is_dir:
                    stack.append(entry.path)
                    continue
                permits.acquire()
                try:
                    pool.submit(_measure, entry.path)
                except RuntimeError:
                    permits.release()
                    raise

        # Draining every permit waits out the in-flight stats.
        for _ in range(self._workers):
            permits.acquire()
        for _ in range(self._workers):
            permits.release()
        return acc.total
