from __future__ import annotations

import logging
import sys
import threading
import time
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console, Group
from rich.live import Live
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.spinner import Spinner
from rich.text import Text
from result import Err

from devtidy import __version__
from devtidy.config.defaults import default_config
from devtidy.config.loader import load_config, sample_config_json
from devtidy.models.enums import ScanMode
from devtidy.models.scan import ScanError, ScanErrorCode, ScanOptions, ScanResult
from devtidy.scan import Classifier
from devtidy.services.formatting import truncate_path
from devtidy.services.summary import render_cleanup_summary, render_inventory
from devtidy.ui.app import DevTidyApp

console = Console()


@dataclass(slots=True)
class _ScanProgress:
    current_path: str
    directories: int
    start_time: float


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _render_scan_panel(progress: _ScanProgress, workers: int, mode: ScanMode) -> Panel:
    elapsed = time.perf_counter() - progress.start_time
    phase = "Scanning .gitignore matches..." if mode is ScanMode.GITIGNORE else "Scanning for cleanable items..."
    body = Group(
        Spinner("dots", text=phase, style="bold #8abeb7"),
        Text.from_markup(f"[#81a2be]Path:[/] {escape(truncate_path(progress.current_path))}"),
        Text.from_markup(
            f"[#b5bd68]Visited:[/] {progress.directories:,} dirs"
            + f"    [#f0c674]Workers:[/] {workers}"
            + f"    [#de935f]Elapsed:[/] {elapsed:.1f}s"
        ),
    )
    return Panel(
        body,
        title="[bold #81a2be]devtidy - Scanning...[/]",
        border_style="#373b41",
    )


def _scan_with_progress(path: Path, options: ScanOptions, workers: int, classifier: Classifier) -> ScanResult:
    lock = threading.Lock()
    done = threading.Event()
    result: ScanResult | None = None
    progress = _ScanProgress(current_path=str(path), directories=0, start_time=time.perf_counter())

    def on_progress(current_path: str, directories: int) -> None:
        with lock:
            progress.current_path = current_path
            progress.directories = directories

    def scan_worker() -> None:
        nonlocal result
        try:
            result = classifier.scan(str(path), options, progress_callback=on_progress)
        except Exception as exc:  # noqa: BLE001
            logging.getLogger(__name__).debug("Scan crashed", exc_info=True)
            result = Err(
                ScanError(
                    code=ScanErrorCode.INTERNAL,
                    path=str(path),
                    message=f"Unhandled scan failure: {exc}",
                )
            )
        finally:
            done.set()

    thread = threading.Thread(target=scan_worker, daemon=True)
    thread.start()

    with Live(
        _render_scan_panel(progress, workers, options.mode),
        console=console,
        refresh_per_second=12,
        transient=True,
    ) as live:
        while not done.is_set():
            with lock:
                snapshot = replace(progress)
            live.update(_render_scan_panel(snapshot, workers, options.mode))
            time.sleep(0.08)

    thread.join()
    if result is None:
        return Err(
            ScanError(
                code=ScanErrorCode.INTERNAL,
                path=str(path),
                message="Scan did not complete",
            )
        )
    return result


def run(
    path: Annotated[str, typer.Argument(help="Target directory to scan.")] = ".",
    gitignore: Annotated[
        bool, typer.Option("--gitignore", help="Scan directories matching the root .gitignore patterns.")
    ] = False,
    list_only: Annotated[bool, typer.Option("--list", "-l", help="Print cleanable items and exit.")] = False,
    workers: Annotated[int | None, typer.Option("--workers", "-w", help="Number of scan workers.")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", help="Log debug details to stderr.")] = False,
    sample_config: Annotated[bool, typer.Option("--sample-config", help="Print sample config JSON.")] = False,
    version: Annotated[bool, typer.Option("--version", "-v", help="Show version information.")] = False,
) -> None:
    if sys.platform == "win32":
        console.print("[red]Windows support is not implemented yet.[/]")
        raise typer.Exit(1)

    if version:
        console.print(f"devtidy {__version__}")
        raise typer.Exit(0)

    if sample_config:
        console.print(sample_config_json())
        raise typer.Exit(0)

    _configure_logging(verbose)

    config_result = load_config()
    if isinstance(config_result, Err):
        console.print(f"[yellow]{config_result.unwrap_err()} Using defaults.[/]")
        config = default_config()
    else:
        config = config_result.unwrap()

    if workers is not None:
        config = replace(config, scan_workers=max(1, workers))

    mode = ScanMode.GITIGNORE if gitignore else ScanMode.BUILTIN
    classifier = Classifier(workers=config.scan_workers, rules=config.patterns, skip_dirs=config.skip_dirs)
    try:
        scan_result = _scan_with_progress(Path(path), ScanOptions(mode=mode), config.scan_workers, classifier)
    finally:
        classifier.close()

    if isinstance(scan_result, Err):
        error = scan_result.unwrap_err()
        console.print(f"[red]Error: {escape(error.message)}: {escape(error.path)}[/]")
        raise typer.Exit(1)
    snapshot = scan_result.unwrap()

    if list_only:
        render_inventory(console, snapshot)
        raise typer.Exit(0)

    app = DevTidyApp(snapshot=snapshot, config=config)
    app.run()
    summary = app.cleanup_summary()
    if summary.cleaned_bytes or summary.failed:
        render_cleanup_summary(console, summary)


def cli() -> None:
    typer.run(run)


if __name__ == "__main__":
    cli()
