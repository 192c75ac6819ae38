from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True, frozen=True)
class PatternRule:
    pattern: str
    category: str


def default_workers() -> int:
    return os.cpu_count() or 1


@dataclass(slots=True)
class AppConfig:
    patterns: list[PatternRule] = field(default_factory=list)
    skip_dirs: list[str] = field(default_factory=lambda: [".git"])
    scan_workers: int = field(default_factory=default_workers)
    cleanup_delay_ms: int = 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "scanWorkers": self.scan_workers,
            "cleanupDelayMs": self.cleanup_delay_ms,
            "skipDirs": self.skip_dirs,
            "patterns": [_rule_to_dict(rule) for rule in self.patterns],
        }


def _rule_to_dict(rule: PatternRule) -> dict[str, Any]:
    return {
        "pattern": rule.pattern,
        "category": rule.category,
    }


def _rule_from_dict(payload: dict[str, Any]) -> PatternRule:
    return PatternRule(
        pattern=str(payload["pattern"]),
        category=str(payload["category"]),
    )


def from_dict(data: dict[str, Any], defaults: AppConfig) -> AppConfig:
    return AppConfig(
        patterns=[_rule_from_dict(x) for x in data["patterns"]] if "patterns" in data else list(defaults.patterns),
        skip_dirs=[str(x) for x in data.get("skipDirs", defaults.skip_dirs)],
        scan_workers=max(1, int(data.get("scanWorkers", defaults.scan_workers))),
        cleanup_delay_ms=max(0, int(data.get("cleanupDelayMs", defaults.cleanup_delay_ms))),
    )
