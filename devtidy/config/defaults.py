from __future__ import annotations

from devtidy.config.schema import AppConfig, PatternRule

# Table order is match order: the first rule that matches a name wins.
BUILTIN_RULES: tuple[PatternRule, ...] = (
    PatternRule("node_modules", "Node.js dependencies"),
    PatternRule("target", "Rust build artifacts"),
    PatternRule("build", "Build artifacts"),
    PatternRule("dist", "Distribution files"),
    PatternRule("__pycache__", "Python cache"),
    PatternRule(".pytest_cache", "Pytest cache"),
    PatternRule("venv", "Python virtual environment"),
    PatternRule("env", "Python virtual environment"),
    PatternRule(".venv", "Python virtual environment"),
    PatternRule("vendor", "Vendor dependencies"),
    PatternRule("deps", "Elixir dependencies"),
    PatternRule("_build", "Elixir build artifacts"),
    PatternRule(".gradle", "Gradle cache"),
    PatternRule("cmake-build-debug", "CMake build artifacts"),
    PatternRule("cmake-build-release", "CMake build artifacts"),
    PatternRule("DerivedData", "Xcode derived data"),
    PatternRule("*.log", "Log files"),
    PatternRule("*.tmp", "Temporary files"),
)

SKIP_DIRS: tuple[str, ...] = (".git",)


def default_config() -> AppConfig:
    return AppConfig(
        patterns=list(BUILTIN_RULES),
        skip_dirs=list(SKIP_DIRS),
    )
