from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Iterable, Iterator
from typing import Callable

from devtidy.config.defaults import SKIP_DIRS
from devtidy.config.schema import default_workers
from devtidy.models.scan import CancelCheck, ProgressCallback, ScanStats
from devtidy.services.fs import DEFAULT_FS, DirEntry, FileSystem

logger = logging.getLogger(__name__)

DescendCheck = Callable[[DirEntry], bool]

_PUT_TIMEOUT = 0.05


class DirectoryWalker:
    """Bounded-concurrency traversal yielding every directory under a root.

    ``workers`` threads share one LIFO work list. Each pops a directory, lists
    its subdirectories, emits them on a bounded output queue and pushes back
    the ones ``should_descend`` accepts. The walk ends once the work list is
    empty and every worker is idle. Traversal order is unspecified.

    One walker runs one walk at a time; ``stats`` describes the latest walk.
    """

    def __init__(
        self,
        workers: int | None = None,
        fs: FileSystem = DEFAULT_FS,
        skip_dirs: Iterable[str] = SKIP_DIRS,
    ) -> None:
        self._workers = max(1, workers if workers is not None else default_workers())
        self._fs = fs
        self._skip_dirs = frozenset(skip_dirs)
        self.stats = ScanStats()
        self.cancelled = False

    @property
    def workers(self) -> int:
        return self._workers

    def walk(
        self,
        root: str,
        should_descend: DescendCheck | None = None,
        cancel_check: CancelCheck | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> Iterator[DirEntry]:
        self.stats = ScanStats()
        self.cancelled = False

        work: list[str] = [root]
        busy = 0
        cond = threading.Condition()
        stats_lock = threading.Lock()
        stop = threading.Event()
        closed = threading.Event()
        # None marks the end of the walk.
        out: queue.Queue[DirEntry | None] = queue.Queue(maxsize=2 * self._workers)

        def _is_cancelled() -> bool:
            if self.cancelled:
                return True
            if cancel_check is not None and cancel_check():
                self.cancelled = True
                return True
            return False

        def _halt() -> None:
            stop.set()
            with cond:
                cond.notify_all()

        def _take() -> str | None:
            nonlocal busy
            with cond:
                while not work and busy > 0 and not stop.is_set():
                    cond.wait()
                if stop.is_set() or not work:
                    cond.notify_all()
                    return None
                busy += 1
                return work.pop()

        def _push(path: str) -> None:
            with cond:
                work.append(path)
                cond.notify()

        def _release() -> None:
            nonlocal busy
            with cond:
                busy -= 1
                cond.notify_all()

        def _emit(item: DirEntry | None) -> bool:
            while not closed.is_set():
                try:
                    out.put(item, timeout=_PUT_TIMEOUT)
                    return True
                except queue.Full:
                    continue
            return False

        def _visit(path: str) -> None:
            try:
                entries = list(self._fs.scandir(path))
            except OSError as exc:
                logger.debug("Skipping unreadable directory %s: %s", path, exc)
                with stats_lock:
                    self.stats.access_errors += 1
                return

            with stats_lock:
                self.stats.directories += 1
                visited = self.stats.directories
            if progress_callback is not None:
                progress_callback(path, visited)

            for entry in entries:
                if stop.is_set():
                    return
                if not entry.is_dir or entry.name in self._skip_dirs:
                    continue
                if not _emit(entry):
                    return
                if should_descend is None or should_descend(entry):
                    _push(entry.path)

        def run_worker() -> None:
            while True:
                path = _take()
                if path is None:
                    return
                try:
                    if _is_cancelled():
                        _halt()
                        continue
                    _visit(path)
                except Exception:  # noqa: BLE001
                    logger.exception("Unexpected failure walking %s", path)
                    with stats_lock:
                        self.stats.access_errors += 1
                finally:
                    _release()

        def coordinate() -> None:
            threads = [threading.Thread(target=run_worker, daemon=True) for _ in range(self._workers)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()
            _emit(None)

        coordinator = threading.Thread(target=coordinate, daemon=True)
        coordinator.start()
        try:
            while True:
                item = out.get()
                if item is None:
                    break
                yield item
        finally:
            closed.set()
            _halt()
            coordinator.join(timeout=1.0)
