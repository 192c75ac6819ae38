from __future__ import annotations

from devtidy.models.scan import ScanError, ScanErrorCode
from devtidy.services.fs import FileSystem
from devtidy.services.patterns import parse_gitignore

GITIGNORE_NAME = ".gitignore"


def resolve_root(path: str, fs: FileSystem) -> str | ScanError:
    """Validate and resolve a scan root path.

    Returns the resolved absolute path, or a ``ScanError`` on failure.
    """
    expanded = fs.expanduser(path)
    if not fs.exists(expanded):
        return ScanError(
            code=ScanErrorCode.NOT_FOUND,
            path=expanded,
            message="Path does not exist",
        )

    resolved = fs.absolute(expanded)
    try:
        root_stat = fs.stat(resolved)
    except OSError as exc:
        return ScanError(
            code=ScanErrorCode.ROOT_STAT_FAILED,
            path=resolved,
            message=f"Cannot stat root: {exc}",
        )
    if not root_stat.is_dir:
        return ScanError(
            code=ScanErrorCode.NOT_DIRECTORY,
            path=resolved,
            message="Path is not a directory",
        )
    return resolved


def load_gitignore(root: str, fs: FileSystem) -> list[str] | ScanError:
    """Read the usable pattern lines of ``root/.gitignore``."""
    gitignore_path = f"{root.rstrip('/')}/{GITIGNORE_NAME}"
    if not fs.exists(gitignore_path):
        return ScanError(
            code=ScanErrorCode.GITIGNORE_NOT_FOUND,
            path=gitignore_path,
            message=".gitignore file not found",
        )
    try:
        text = fs.read_text(gitignore_path)
    except (OSError, UnicodeDecodeError) as exc:
        return ScanError(
            code=ScanErrorCode.GITIGNORE_UNREADABLE,
            path=gitignore_path,
            message=f"Cannot read .gitignore: {exc}",
        )
    return parse_gitignore(text)
