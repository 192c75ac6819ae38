from __future__ import annotations

import logging
import threading

from result import Err, Ok, Result

from devtidy.models.cleanup import (
    CleanupCompleteCallback,
    CleanupError,
    CleanupErrorCode,
    CleanupProgress,
    CleanupProgressCallback,
    CleanupSummary,
    DeletionError,
)
from devtidy.models.enums import CleanupState
from devtidy.models.item import Item
from devtidy.models.scan import CancelCheck
from devtidy.services.fs import DEFAULT_FS, FileSystem
from devtidy.services.inventory import InventoryStore

logger = logging.getLogger(__name__)


class CleanupExecutor:
    """Deletes the selected inventory items one at a time.

    ``start`` snapshots the selection; ``step`` processes one item and returns
    its progress event; ``tick`` does the same after honouring ``cancel``;
    ``run`` drives the ticks to completion. Deletion failures never raise:
    they ride on the progress event and the item stays in the store, still
    selected.

    The executor mutates the store, so it must be driven from the thread
    that owns the store. ``cancel`` is the only method safe to call from
    elsewhere.
    """

    def __init__(
        self,
        store: InventoryStore,
        fs: FileSystem = DEFAULT_FS,
        on_complete: CleanupCompleteCallback | None = None,
    ) -> None:
        self._store = store
        self._fs = fs
        self._on_complete = on_complete
        self._state = CleanupState.IDLE
        self._pending: list[Item] = []
        self._index = 0
        self._summary = CleanupSummary()
        self._cleaned_bytes = 0
        self._cancelled = threading.Event()

    @property
    def state(self) -> CleanupState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state is CleanupState.RUNNING

    @property
    def cleaned_bytes(self) -> int:
        """Bytes freed across every run of this executor."""
        return self._cleaned_bytes

    @property
    def summary(self) -> CleanupSummary:
        return self._summary

    def start(self, items: list[Item] | None = None) -> Result[int, CleanupError]:
        if self.running:
            return Err(CleanupError(CleanupErrorCode.ALREADY_RUNNING, "A cleanup is already running"))
        snapshot = list(items) if items is not None else self._store.selected_items()
        if not snapshot:
            return Err(CleanupError(CleanupErrorCode.NO_SELECTION, "No items selected"))

        self._pending = snapshot
        self._index = 0
        self._summary = CleanupSummary()
        self._cancelled.clear()
        self._state = CleanupState.RUNNING
        logger.debug("Cleanup started with %d item(s)", len(snapshot))
        return Ok(len(snapshot))

    def cancel(self) -> None:
        self._cancelled.set()

    def step(self) -> CleanupProgress | None:
        if not self.running:
            return None
        if self._index >= len(self._pending):
            self._finish()
            return None

        item = self._pending[self._index]
        self._index += 1
        error = self._delete(item)

        event = CleanupProgress(
            item_path=item.path,
            completed=self._index,
            total=len(self._pending),
            error=error,
        )
        if self._index >= len(self._pending):
            self._finish()
        return event

    def run(
        self,
        on_progress: CleanupProgressCallback | None = None,
        cancel_check: CancelCheck | None = None,
        delay: float = 0.0,
    ) -> CleanupSummary:
        """Process every pending item, pausing *delay* seconds between items.

        A cancellation observed before an item stops the run; items already
        processed stay deleted and the rest are left untouched.
        """
        first = True
        while self.running:
            if not first and delay > 0:
                self._cancelled.wait(delay)
            first = False
            event = self.tick(cancel_check)
            if event is not None and on_progress is not None:
                on_progress(event)
        return self._summary

    def tick(self, cancel_check: CancelCheck | None = None) -> CleanupProgress | None:
        """Process the next item unless a cancellation is pending.

        A pending cancellation ends the run instead; ``None`` is returned
        whenever nothing was deleted.
        """
        if not self.running:
            return None
        if self._cancelled.is_set() or (cancel_check is not None and cancel_check()):
            self._summary.cancelled = True
            self._finish()
            return None
        return self.step()

    def _delete(self, item: Item) -> DeletionError | None:
        try:
            self._fs.remove_tree(item.path)
        except OSError as exc:
            logger.warning("Failed to delete %s: %s", item.path, exc)
            error = DeletionError(path=item.path, message=str(exc))
            self._summary.failed.append(error)
            return error

        self._cleaned_bytes += item.size_bytes
        self._summary.cleaned_bytes += item.size_bytes
        self._summary.deleted.append(item.path)
        self._store.remove(item.path)
        logger.debug("Deleted %s (%d bytes)", item.path, item.size_bytes)
        return None

    def _finish(self) -> None:
        self._state = CleanupState.IDLE
        self._pending = []
        self._index = 0
        summary = self._summary
        logger.info(
            "Cleanup finished: %d deleted, %d failed, %d bytes freed%s",
            len(summary.deleted),
            len(summary.failed),
            summary.cleaned_bytes,
            " (cancelled)" if summary.cancelled else "",
        )
        if self._on_complete is not None:
            self._on_complete(summary)
