from __future__ import annotations

import os
import threading

from result import Err, Ok

from devtidy.models.cleanup import CleanupErrorCode, CleanupProgress, CleanupSummary
from devtidy.models.enums import CleanupState
from devtidy.models.item import Item
from devtidy.services.cleanup import CleanupExecutor
from devtidy.services.fs import OsFileSystem
from devtidy.services.inventory import InventoryStore
from tests.fs_mock import MemoryFileSystem


def _fixture() -> tuple[MemoryFileSystem, InventoryStore]:
    fs = (
        MemoryFileSystem()
        .add_file("/root/a/node_modules/pkg/index.js", size=100)
        .add_file("/root/b/target/debug/bin", size=50)
        .add_file("/root/c/dist/app.js", size=30)
    )
    store = InventoryStore(
        [
            Item("/root/a/node_modules", "Node.js dependencies", 100),
            Item("/root/b/target", "Rust build artifacts", 50),
            Item("/root/c/dist", "Distribution files", 30),
        ]
    )
    return fs, store


def test_deletes_selected_item_and_reports_progress() -> None:
    fs, store = _fixture()
    store.replace(
        [
            Item("/root/a/node_modules", "Node.js dependencies", 100, selected=True),
            Item("/root/b/target", "Rust build artifacts", 50),
        ]
    )
    events: list[CleanupProgress] = []
    executor = CleanupExecutor(store, fs=fs)

    assert executor.start() == Ok(1)
    assert executor.state is CleanupState.RUNNING
    summary = executor.run(on_progress=events.append)

    assert executor.state is CleanupState.IDLE
    assert summary.cleaned_bytes == 100
    assert executor.cleaned_bytes == 100
    assert [item.path for item in store.items()] == ["/root/b/target"]
    assert events == [CleanupProgress(item_path="/root/a/node_modules", completed=1, total=1)]
    assert not fs.exists("/root/a/node_modules")
    assert fs.exists("/root/b/target/debug/bin")


def test_empty_selection_is_rejected_without_state_change() -> None:
    fs, store = _fixture()
    events: list[CleanupProgress] = []
    executor = CleanupExecutor(store, fs=fs)

    result = executor.start()

    assert isinstance(result, Err)
    assert result.unwrap_err().code is CleanupErrorCode.NO_SELECTION
    assert executor.state is CleanupState.IDLE
    assert executor.step() is None
    executor.run(on_progress=events.append)
    assert events == []
    assert len(store) == 3


def test_progress_is_monotonic_in_snapshot_order() -> None:
    fs, store = _fixture()
    store.set_all(True)
    executor = CleanupExecutor(store, fs=fs)
    executor.start()

    # Toggling mid-run must not change the snapshot.
    first = executor.step()
    store.toggle("/root/c/dist")
    rest = [executor.step(), executor.step()]

    events = [first, *rest]
    assert [e.completed for e in events if e is not None] == [1, 2, 3]
    assert [e.item_path for e in events if e is not None] == [
        "/root/a/node_modules",
        "/root/b/target",
        "/root/c/dist",
    ]
    assert all(e is not None and e.total == 3 for e in events)
    assert executor.state is CleanupState.IDLE
    assert len(store) == 0


def test_failed_deletion_is_surfaced_and_item_kept() -> None:
    fs, store = _fixture()
    store.set_all(True)
    fs.undeletable.add("/root/b/target")
    events: list[CleanupProgress] = []
    executor = CleanupExecutor(store, fs=fs)
    executor.start()

    summary = executor.run(on_progress=events.append)

    assert summary.cleaned_bytes == 130
    assert [e.completed for e in events] == [1, 2, 3]
    failed = events[1]
    assert failed.item_path == "/root/b/target"
    assert failed.error is not None
    assert "Permission denied" in failed.error.message
    assert not failed.ok
    kept = store.get("/root/b/target")
    assert kept is not None and kept.selected
    assert [f.path for f in summary.failed] == ["/root/b/target"]
    assert summary.deleted == ["/root/a/node_modules", "/root/c/dist"]


def test_missing_path_is_a_successful_no_op() -> None:
    fs, store = _fixture()
    fs.remove_tree("/root/a/node_modules")
    store.toggle("/root/a/node_modules")
    executor = CleanupExecutor(store, fs=fs)
    executor.start()

    summary = executor.run()

    assert summary.failed == []
    assert "/root/a/node_modules" not in store


def test_cancel_stops_before_next_item() -> None:
    fs, store = _fixture()
    store.set_all(True)
    executor = CleanupExecutor(store, fs=fs)
    executor.start()

    def on_progress(event: CleanupProgress) -> None:
        if event.completed == 1:
            executor.cancel()

    summary = executor.run(on_progress=on_progress)

    assert summary.cancelled
    assert summary.deleted == ["/root/a/node_modules"]
    assert executor.state is CleanupState.IDLE
    assert "/root/b/target" in store and "/root/c/dist" in store
    assert fs.exists("/root/b/target/debug/bin")


def test_cancel_check_observed_before_first_item() -> None:
    fs, store = _fixture()
    store.set_all(True)
    executor = CleanupExecutor(store, fs=fs)
    executor.start()

    summary = executor.run(cancel_check=lambda: True)

    assert summary.cancelled
    assert summary.processed == 0
    assert len(store) == 3


def test_start_while_running_is_rejected() -> None:
    fs, store = _fixture()
    store.set_all(True)
    executor = CleanupExecutor(store, fs=fs)
    executor.start()

    again = executor.start()

    assert isinstance(again, Err)
    assert again.unwrap_err().code is CleanupErrorCode.ALREADY_RUNNING


def test_completion_callback_and_cumulative_total() -> None:
    fs, store = _fixture()
    completed: list[CleanupSummary] = []
    executor = CleanupExecutor(store, fs=fs, on_complete=completed.append)

    store.toggle("/root/a/node_modules")
    executor.start()
    executor.run()
    store.toggle("/root/c/dist")
    executor.start()
    executor.run()

    assert [s.cleaned_bytes for s in completed] == [100, 30]
    assert executor.cleaned_bytes == 130


def test_explicit_items_override_store_selection() -> None:
    fs, store = _fixture()
    executor = CleanupExecutor(store, fs=fs)
    target = store.get("/root/b/target")
    assert target is not None

    assert executor.start([target]) == Ok(1)
    executor.run()

    assert "/root/b/target" not in store


def test_real_filesystem_deletion(tmp_path) -> None:  # type: ignore[no-untyped-def]
    victim = tmp_path / "proj" / "node_modules"
    (victim / "pkg").mkdir(parents=True)
    (victim / "pkg" / "index.js").write_bytes(b"x" * 10)
    stray = tmp_path / "proj" / "debug.log"
    stray.write_text("log")
    store = InventoryStore(
        [
            Item(str(victim), "Node.js dependencies", 10, selected=True),
            Item(str(stray), "Log files", 3, selected=True),
        ]
    )
    executor = CleanupExecutor(store, fs=OsFileSystem())
    executor.start()

    summary = executor.run()

    assert summary.cleaned_bytes == 13
    assert not victim.exists()
    assert not stray.exists()
    assert os.path.isdir(tmp_path / "proj")


def test_cancel_during_pause_stops_before_next_item() -> None:
    fs, store = _fixture()
    store.set_all(True)
    executor = CleanupExecutor(store, fs=fs)
    executor.start()
    timers: list[threading.Timer] = []

    def on_progress(event: CleanupProgress) -> None:
        if event.completed == 1:
            timer = threading.Timer(0.05, executor.cancel)
            timers.append(timer)
            timer.start()

    summary = executor.run(on_progress=on_progress, delay=0.5)
    for timer in timers:
        timer.join()

    assert summary.cancelled
    assert summary.deleted == ["/root/a/node_modules"]
    assert "/root/b/target" in store and "/root/c/dist" in store


def test_tick_drives_one_item_at_a_time_and_honours_cancel() -> None:
    fs, store = _fixture()
    store.set_all(True)
    executor = CleanupExecutor(store, fs=fs)
    executor.start()

    first = executor.tick()
    assert first is not None and first.item_path == "/root/a/node_modules"
    assert executor.running

    executor.cancel()
    assert executor.tick() is None
    assert not executor.running
    assert executor.summary.cancelled
    assert executor.summary.deleted == ["/root/a/node_modules"]
    assert len(store) == 2
