from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable


class CleanupErrorCode(str, Enum):
    NO_SELECTION = "no_selection"
    ALREADY_RUNNING = "already_running"


@dataclass(slots=True, frozen=True)
class CleanupError:
    code: CleanupErrorCode
    message: str


@dataclass(slots=True, frozen=True)
class DeletionError:
    path: str
    message: str


@dataclass(slots=True, frozen=True)
class CleanupProgress:
    item_path: str
    completed: int
    total: int
    error: DeletionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class CleanupSummary:
    cleaned_bytes: int = 0
    deleted: list[str] = field(default_factory=list)
    failed: list[DeletionError] = field(default_factory=list)
    cancelled: bool = False

    @property
    def processed(self) -> int:
        return len(self.deleted) + len(self.failed)


CleanupProgressCallback = Callable[[CleanupProgress], None]
CleanupCompleteCallback = Callable[[CleanupSummary], None]
