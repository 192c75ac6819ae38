from __future__ import annotations

from typing import override

from result import Err
from rich.text import Text
from textual import on
from textual.app import App, ComposeResult
from textual.containers import Container, Vertical
from textual.screen import ModalScreen
from textual.widgets import DataTable, Input, Static

from devtidy.config.schema import AppConfig
from devtidy.models.cleanup import CleanupProgress, CleanupSummary, DeletionError
from devtidy.models.item import Item
from devtidy.models.scan import ScanSnapshot
from devtidy.services.cleanup import CleanupExecutor
from devtidy.services.formatting import format_bytes, relative_bar, relative_to
from devtidy.services.fs import DEFAULT_FS, FileSystem
from devtidy.services.inventory import InventoryStore

_CHECK = "✓"


class HelpOverlay(ModalScreen[None]):
    CSS = """
    HelpOverlay {
        align: center middle;
        background: rgba(0,0,0,0.45);
    }
    #help-box {
        width: 70%;
        height: auto;
        background: #282a2e;
        border: solid #81a2be;
        padding: 1 2;
        color: #c5c8c6;
    }
    """

    @override
    def compose(self) -> ComposeResult:
        content = "\n".join(
            [
                "[b #81a2be]Navigation[/]",
                "  j/k or arrows: Move",
                "  Home / End: Top/Bottom",
                "",
                "[b #81a2be]Selection[/]",
                f"  Space: Toggle selection ({_CHECK} = selected)",
                "  a: Select all / none",
                "  c: Clean selected items",
                "",
                "[b #81a2be]Search / Filter[/]",
                "  /: Filter items by path",
                "  Escape: Clear filter",
                "",
                "[b #81a2be]Other[/]",
                "  ?: Toggle help",
                "  q / Ctrl+C: Quit",
            ]
        )
        yield Static(content, id="help-box")

    def key_escape(self) -> None:
        self.dismiss()

    def key_q(self) -> None:
        self.dismiss()

    def key_question_mark(self) -> None:
        self.dismiss()


class SearchOverlay(ModalScreen[str]):
    CSS = """
    SearchOverlay {
        align: center middle;
        background: rgba(0,0,0,0.45);
    }
    #search-box {
        width: 60%;
        height: auto;
        max-height: 9;
        background: #282a2e;
        border: solid #81a2be;
        padding: 1 2;
        color: #c5c8c6;
    }
    #search-label {
        width: 100%;
        color: #81a2be;
        text-style: bold;
        margin-bottom: 1;
    }
    #search-input {
        width: 100%;
    }
    """

    def __init__(self, current_filter: str = "") -> None:
        super().__init__()
        self._current_filter = current_filter

    @override
    def compose(self) -> ComposeResult:
        yield Vertical(
            Static("Filter items (Enter to apply, Escape to cancel)", id="search-label"),
            Input(
                placeholder="Type to filter…",
                value=self._current_filter,
                id="search-input",
            ),
            id="search-box",
        )

    def on_mount(self) -> None:
        self.query_one("#search-input", Input).focus()

    @on(Input.Submitted)
    def _on_submit(self, event: Input.Submitted) -> None:
        self.dismiss(event.value)

    def key_escape(self) -> None:
        self.dismiss(self._current_filter)


class DevTidyApp(App[None]):
    """Selection and cleanup screen over one scan's inventory.

    The app is the inventory's owner. Cleanup advances one item per timer
    tick on the app thread, and selection keys are ignored while it runs.
    """

    CSS = """
    #app-grid {
        padding: 0 1;
    }
    #path-row, #status-row, #progress-row {
        height: 1;
    }
    #status-row {
        padding: 0 1;
    }
    #content-table {
        height: 1fr;
    }
    """

    def __init__(
        self,
        snapshot: ScanSnapshot,
        config: AppConfig,
        fs: FileSystem = DEFAULT_FS,
    ) -> None:
        super().__init__()
        self.snapshot = snapshot
        self.config = config
        self.store = InventoryStore(snapshot.items)
        self.executor = CleanupExecutor(self.store, fs=fs, on_complete=self._on_cleanup_complete)
        self.rows: list[Item] = []
        self.selected_index = 0
        self._filter = ""
        self._progress: CleanupProgress | None = None
        self._closing = False
        self._failures: dict[str, DeletionError] = {}

    @property
    def cleaned_bytes(self) -> int:
        return self.executor.cleaned_bytes

    def cleanup_summary(self) -> CleanupSummary:
        """Everything freed while the app ran, plus the deletions still failing."""
        return CleanupSummary(
            cleaned_bytes=self.executor.cleaned_bytes,
            failed=list(self._failures.values()),
            cancelled=self.executor.summary.cancelled,
        )

    @override
    def compose(self) -> ComposeResult:
        yield Container(
            Static(id="path-row"),
            Static("─" * 200, id="separator-top"),
            DataTable(id="content-table"),
            Static("─" * 200, id="separator-bottom"),
            Static(id="progress-row"),
            Static(id="status-row"),
            id="app-grid",
        )

    def on_mount(self) -> None:
        table = self.query_one("#content-table", DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.focus()
        self._refresh_all()

    def on_resize(self) -> None:
        self._refresh_all()

    def _refresh_all(self) -> None:
        self._render_header_row()
        self._render_content_table()
        self._render_footer_rows()

    def _render_header_row(self) -> None:
        self.query_one("#path-row", Static).update(
            Text.from_markup(f"[#81a2be]Directory:[/] {self.snapshot.root}  [#969896]({self.snapshot.mode.value})[/]")
        )

    def _visible_items(self) -> list[Item]:
        items = self.store.items()
        if not self._filter:
            return items
        p = self._filter.lower()
        return [item for item in items if p in item.path.lower() or p in item.category.lower()]

    def _render_content_table(self) -> None:
        table = self.query_one("#content-table", DataTable)
        table.clear(columns=True)

        size_w = 12
        cat_w = 28
        path_w = max(20, self.size.width - size_w - cat_w - 16)
        table.add_column("", width=2)
        table.add_column("PATH", width=path_w)
        table.add_column("CATEGORY", width=cat_w)
        table.add_column("SIZE", width=size_w)

        self.rows = self._visible_items()
        for item in self.rows:
            mark = _CHECK if item.selected else ""
            path = relative_to(item.path, self.snapshot.root)
            if item.selected:
                table.add_row(
                    Text(mark, style="bold #b5bd68"),
                    Text(path, style="bold #b5bd68"),
                    Text(item.category, style="#b5bd68"),
                    Text(format_bytes(item.size_bytes), style="#b5bd68"),
                    key=item.path,
                )
            else:
                table.add_row(mark, path, item.category, format_bytes(item.size_bytes), key=item.path)

        if self.rows:
            self.selected_index = max(0, min(self.selected_index, len(self.rows) - 1))
            table.move_cursor(row=self.selected_index, animate=False)
        else:
            self.selected_index = 0

    def _render_footer_rows(self) -> None:
        progress_row = self.query_one("#progress-row", Static)
        event = self._progress
        if self.executor.running and event is not None:
            bar = relative_bar(event.completed, event.total, 30)
            progress_row.update(
                Text.from_markup(f"[#f0c674]Cleaning {event.completed}/{event.total}[/] [#8abeb7]{bar}[/]")
            )
        elif self.executor.running:
            progress_row.update(Text.from_markup("[#f0c674]Cleaning in progress...[/]"))
        else:
            progress_row.update("")

        left = (
            f"Scan time: {self.snapshot.duration_seconds:.2f}s ({len(self.store)} items)"
            f" | Selected: {self.store.selected_count()} items ({format_bytes(self.store.total_selected_size())})"
        )
        if self.cleaned_bytes:
            left += f" | Cleaned: {format_bytes(self.cleaned_bytes)}"
        if self._filter:
            left += f" | Filter: '{self._filter}'"
        hints = "space toggle | a all | c clean | / filter | ? help | q quit"

        width = self.size.width - 4
        gap = 4
        max_hints_len = width - len(left) - gap
        if max_hints_len < 10:
            status = left
        else:
            if len(hints) > max_hints_len:
                hints = hints[: max_hints_len - 1] + "…"
            pad = width - len(left) - len(hints)
            status = left + " " * max(gap, pad) + hints
        self.query_one("#status-row", Static).update(Text.from_markup(f"[#969896]{status}[/]"))

    def _sync_selection_from_table(self) -> None:
        if not self.rows:
            self.selected_index = 0
            return
        table = self.query_one("#content-table", DataTable)
        self.selected_index = max(0, min(len(self.rows) - 1, table.cursor_row))

    def _current_item(self) -> Item | None:
        self._sync_selection_from_table()
        if not self.rows:
            return None
        return self.rows[self.selected_index]

    def _move_selection(self, delta: int) -> None:
        if not self.rows:
            return
        self.selected_index = max(0, min(len(self.rows) - 1, self.selected_index + delta))
        self.query_one("#content-table", DataTable).move_cursor(row=self.selected_index, animate=False)

    def _toggle_current(self) -> None:
        if self.executor.running:
            return
        item = self._current_item()
        if item is None:
            return
        self.store.toggle(item.path)
        self._refresh_all()

    def _toggle_all(self) -> None:
        if self.executor.running or not len(self.store):
            return
        everything = self.store.selected_count() == len(self.store)
        self.store.set_all(not everything)
        self._refresh_all()

    def _start_cleaning(self) -> None:
        if self.executor.running:
            return
        started = self.executor.start()
        if isinstance(started, Err):
            self.notify(started.unwrap_err().message, severity="warning", timeout=2)
            return
        self._progress = None
        self._render_footer_rows()
        self._clean_tick()

    def _clean_tick(self) -> None:
        # Runs on the app thread, so the store is never touched concurrently.
        if self._closing:
            return
        event = self.executor.tick()
        if event is not None:
            self._on_cleanup_progress(event)
        if self.executor.running:
            self.set_timer(self.config.cleanup_delay_ms / 1000, self._clean_tick)

    def _on_cleanup_progress(self, event: CleanupProgress) -> None:
        self._progress = event
        if event.error is not None:
            self._failures[event.item_path] = event.error
            self.notify(f"Failed: {event.error.path}: {event.error.message}", severity="error", timeout=4)
        else:
            self._failures.pop(event.item_path, None)
        self._refresh_all()

    def _on_cleanup_complete(self, summary: CleanupSummary) -> None:
        self._progress = None
        if self._closing:
            return
        message = f"Cleaned {format_bytes(summary.cleaned_bytes)}"
        if summary.failed:
            message += f", {len(summary.failed)} failed"
        self.notify(message, timeout=3)
        self._refresh_all()

    def _on_search_result(self, value: str | None) -> None:
        self._filter = value or ""
        self.selected_index = 0
        self._refresh_all()

    def _quit(self) -> None:
        self._closing = True
        self.executor.cancel()
        self.executor.tick()
        self.exit()

    @on(DataTable.RowHighlighted)
    def _on_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        self.selected_index = event.cursor_row

    @override
    def on_key(self, event) -> None:  # type: ignore[override]
        key = event.key

        if key in {"q", "ctrl+c"}:
            self._quit()
            return
        if key == "escape":
            if self._filter:
                self._on_search_result("")
            return
        if key == "question_mark":
            self.push_screen(HelpOverlay())
            return
        if key == "slash":
            self.push_screen(SearchOverlay(self._filter), self._on_search_result)
            return
        if key == "space":
            event.stop()
            self._toggle_current()
            return
        if key == "a":
            self._toggle_all()
            return
        if key == "c":
            self._start_cleaning()
            return
        if key == "j":
            self._move_selection(1)
            return
        if key == "k":
            self._move_selection(-1)
            return
