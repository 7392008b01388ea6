"""Tree view: directory-prefix tree building, rendering and collapse state."""

from __future__ import annotations

from .build import build_tree
from .rendering import CLOSED_MARKER, OPEN_MARKER, TreeModel
from .types import DirectoryNode, FileLeaf

__all__ = [
    "DirectoryNode",
    "FileLeaf",
    "TreeModel",
    "build_tree",
    "OPEN_MARKER",
    "CLOSED_MARKER",
]
