from __future__ import annotations

from devtidy.scan._base import load_gitignore, resolve_root
from devtidy.scan.classifier import AcceptedPaths, Classifier
from devtidy.scan.sizer import SizeAggregator
from devtidy.scan.walker import DirectoryWalker

__all__ = [
    "AcceptedPaths",
    "Classifier",
    "DirectoryWalker",
    "SizeAggregator",
    "load_gitignore",
    "resolve_root",
]
