from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class Item:
    path: str
    category: str
    size_bytes: int
    selected: bool = False
