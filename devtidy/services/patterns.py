from __future__ import annotations

import re
from collections.abc import Iterable
from functools import lru_cache

from devtidy.config.defaults import BUILTIN_RULES
from devtidy.config.schema import PatternRule


def _has_glob_chars(s: str) -> bool:
    return "*" in s or "?" in s or "[" in s


@lru_cache(maxsize=1024)
def _segment_glob(pattern: str) -> re.Pattern[str] | None:
    """Compile a shell glob whose wildcards never cross a ``/``.

    ``*`` matches any run of non-separator characters, ``?`` exactly one,
    ``[...]`` a character class (``^`` or ``!`` negates). Malformed patterns
    compile to ``None`` and never match.
    """
    out: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        ch = pattern[i]
        i += 1
        if ch == "*":
            out.append("[^/]*")
        elif ch == "?":
            out.append("[^/]")
        elif ch == "\\":
            if i >= n:
                return None
            out.append(re.escape(pattern[i]))
            i += 1
        elif ch == "[":
            end = pattern.find("]", i + 1 if i < n and pattern[i] in "^!" else i)
            if end == -1:
                return None
            body = pattern[i:end]
            negate = body[:1] in ("^", "!")
            if negate:
                body = body[1:]
            body = body.replace("\\", "\\\\").replace("[", "\\[").replace("/", "")
            if not body:
                return None
            out.append(f"[^/{body}]" if negate else f"[{body}]")
            i = end + 1
        else:
            out.append(re.escape(ch))
    try:
        return re.compile("".join(out) + r"\Z")
    except re.error:
        return None


def glob_match(pattern: str, name: str) -> bool:
    compiled = _segment_glob(pattern)
    return compiled is not None and compiled.match(name) is not None


def _basename(path: str) -> str:
    return path.rstrip("/").rsplit("/", 1)[-1]


def classify_by_name(name: str, rules: Iterable[PatternRule] = BUILTIN_RULES) -> str | None:
    """Return the category of the first rule matching *name*, or ``None``.

    Literal patterns compare for equality; patterns with wildcards are globbed
    against the base name only.
    """
    base = _basename(name)
    for rule in rules:
        if _has_glob_chars(rule.pattern):
            if glob_match(rule.pattern, base):
                return rule.category
        elif base == rule.pattern:
            return rule.category
    return None


def is_gitignore_pattern(line: str) -> bool:
    return bool(line) and not line.startswith("#") and not line.startswith("!")


def parse_gitignore(text: str) -> list[str]:
    """Return the usable pattern lines of a ``.gitignore`` body.

    Blank lines, comments and negations are dropped here so that matching
    never sees them.
    """
    lines: list[str] = []
    for raw in text.splitlines():
        line = raw.strip()
        if is_gitignore_pattern(line):
            lines.append(line)
    return lines


def matches_gitignore_line(line: str, relative_path: str) -> bool:
    if line.endswith("/"):
        anchor = line[:-1]
        return relative_path == anchor or relative_path.startswith(anchor + "/")

    if "*" in line:
        return glob_match(line, _basename(relative_path)) or glob_match(line, relative_path)

    # Deliberately loose: "env" also hits "environment-data".
    return relative_path == line or line in relative_path or relative_path.endswith("/" + line)


def first_gitignore_match(lines: Iterable[str], relative_path: str) -> str | None:
    for line in lines:
        if matches_gitignore_line(line, relative_path):
            return line
    return None


def gitignore_category(line: str) -> str:
    return f"Gitignore pattern: {line}"
