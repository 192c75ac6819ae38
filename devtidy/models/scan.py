from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from result import Result

from devtidy.models.enums import ScanMode
from devtidy.models.item import Item

ProgressCallback = Callable[[str, int], None]
CancelCheck = Callable[[], bool]


@dataclass(slots=True)
class ScanStats:
    directories: int = 0
    access_errors: int = 0
    items: int = 0


@dataclass(slots=True)
class ScanOptions:
    mode: ScanMode = ScanMode.BUILTIN


@dataclass(slots=True, frozen=True)
class ScanSnapshot:
    root: str
    mode: ScanMode
    items: list[Item]
    stats: ScanStats
    duration_seconds: float = 0.0
    gitignore_lines: list[str] = field(default_factory=list)


class ScanErrorCode(str, Enum):
    NOT_FOUND = "not_found"
    NOT_DIRECTORY = "not_directory"
    ROOT_STAT_FAILED = "root_stat_failed"
    GITIGNORE_NOT_FOUND = "gitignore_not_found"
    GITIGNORE_UNREADABLE = "gitignore_unreadable"
    CANCELLED = "cancelled"
    INTERNAL = "internal"


@dataclass(slots=True, frozen=True)
class ScanError:
    code: ScanErrorCode
    path: str
    message: str


ScanResult = Result[ScanSnapshot, ScanError]
