from __future__ import annotations

import logging
import threading
import time
from collections import deque
from collections.abc import Iterable, Iterator
from concurrent.futures import Future, ThreadPoolExecutor

from result import Err, Ok

from devtidy.config.defaults import BUILTIN_RULES, SKIP_DIRS
from devtidy.config.schema import PatternRule
from devtidy.models.enums import ScanMode
from devtidy.models.item import Item
from devtidy.models.scan import (
    CancelCheck,
    ProgressCallback,
    ScanError,
    ScanErrorCode,
    ScanOptions,
    ScanResult,
    ScanSnapshot,
    ScanStats,
)
from devtidy.scan._base import load_gitignore, resolve_root
from devtidy.scan.sizer import SizeAggregator
from devtidy.scan.walker import DirectoryWalker
from devtidy.services.formatting import relative_to
from devtidy.services.fs import DEFAULT_FS, DirEntry, FileSystem
from devtidy.services.patterns import classify_by_name, first_gitignore_match, gitignore_category

logger = logging.getLogger(__name__)


class AcceptedPaths:
    """Paths already turned into items. ``claim`` is an atomic check-and-insert."""

    __slots__ = ("_lock", "_paths")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._paths: set[str] = set()

    def claim(self, path: str) -> bool:
        with self._lock:
            if path in self._paths:
                return False
            self._paths.add(path)
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._paths)


class Classifier:
    def __init__(
        self,
        workers: int | None = None,
        fs: FileSystem = DEFAULT_FS,
        rules: Iterable[PatternRule] = BUILTIN_RULES,
        skip_dirs: Iterable[str] = SKIP_DIRS,
    ) -> None:
        self._fs = fs
        self._rules = tuple(rules)
        self._walker = DirectoryWalker(workers=workers, fs=fs, skip_dirs=skip_dirs)
        self._sizer = SizeAggregator(workers=self._walker.workers, fs=fs)

    @property
    def walker(self) -> DirectoryWalker:
        return self._walker

    def category_for(
        self,
        root: str,
        entry: DirEntry,
        mode: ScanMode,
        gitignore_lines: tuple[str, ...] = (),
    ) -> str | None:
        if mode is ScanMode.GITIGNORE:
            line = first_gitignore_match(gitignore_lines, relative_to(entry.path, root))
            return gitignore_category(line) if line is not None else None
        return classify_by_name(entry.name, self._rules)

    def iter_items(
        self,
        root: str,
        mode: ScanMode = ScanMode.BUILTIN,
        gitignore_lines: Iterable[str] = (),
        progress_callback: ProgressCallback | None = None,
        cancel_check: CancelCheck | None = None,
    ) -> Iterator[Item]:
        """Yield one item per accepted directory as soon as it is sized.

        Accepted directories are never descended into, and no path is ever
        yielded twice.
        """
        lines = tuple(gitignore_lines)
        accepted = AcceptedPaths()

        def should_descend(entry: DirEntry) -> bool:
            return self.category_for(root, entry, mode, lines) is None

        def build(path: str, category: str) -> Item:
            size = self._sizer.total_size(path, cancel_check=cancel_check)
            logger.debug("Accepted %s (%s, %d bytes)", path, category, size)
            return Item(path=path, category=category, size_bytes=size)

        pool = ThreadPoolExecutor(max_workers=self._walker.workers, thread_name_prefix="devtidy-classify")
        pending: deque[Future[Item]] = deque()
        try:
            for entry in self._walker.walk(root, should_descend, cancel_check, progress_callback):
                category = self.category_for(root, entry, mode, lines)
                if category is None or not accepted.claim(entry.path):
                    continue
                pending.append(pool.submit(build, entry.path, category))
                while pending and pending[0].done():
                    yield pending.popleft().result()
            while pending:
                yield pending.popleft().result()
        finally:
            pool.shutdown(wait=True, cancel_futures=True)

    def classify(
        self,
        root: str,
        mode: ScanMode = ScanMode.BUILTIN,
        gitignore_lines: Iterable[str] = (),
        progress_callback: ProgressCallback | None = None,
        cancel_check: CancelCheck | None = None,
    ) -> list[Item]:
        items = list(self.iter_items(root, mode, gitignore_lines, progress_callback, cancel_check))
        items.sort(key=lambda item: item.path)
        return items

    def scan(
        self,
        path: str,
        options: ScanOptions,
        progress_callback: ProgressCallback | None = None,
        cancel_check: CancelCheck | None = None,
    ) -> ScanResult:
        resolved = resolve_root(path, self._fs)
        if isinstance(resolved, ScanError):
            return Err(resolved)
        root = resolved

        lines: list[str] = []
        if options.mode is ScanMode.GITIGNORE:
            loaded = load_gitignore(root, self._fs)
            if isinstance(loaded, ScanError):
                return Err(loaded)
            lines = loaded

        started = time.perf_counter()
        items = self.classify(root, options.mode, lines, progress_callback, cancel_check)
        duration = time.perf_counter() - started

        walk_stats = self._walker.stats
        # Sizing observes the same check, so a late cancel leaves partial sizes behind.
        if self._walker.cancelled or (cancel_check is not None and cancel_check()):
            return Err(
                ScanError(
                    code=ScanErrorCode.CANCELLED,
                    path=root,
                    message="Scan cancelled",
                )
            )

        stats = ScanStats(
            directories=walk_stats.directories,
            access_errors=walk_stats.access_errors,
            items=len(items),
        )
        logger.info(
            "Scanned %s in %.2fs: %d directories, %d item(s)",
            root,
            duration,
            stats.directories,
            stats.items,
        )
        return Ok(
            ScanSnapshot(
                root=root,
                mode=options.mode,
                items=items,
                stats=stats,
                duration_seconds=duration,
                gitignore_lines=lines,
            )
        )

    def close(self) -> None:
        self._sizer.close()
