from __future__ import annotations

from enum import Enum


class ScanMode(str, Enum):
    BUILTIN = "builtin"
    GITIGNORE = "gitignore"


class CleanupState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
