"""Directory-prefix tree construction from a flat change list."""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Sequence

from ..changes import Change, status_letter
from .types import DirectoryNode, FileLeaf

logger = logging.getLogger(__name__)


def _get_or_create(tree: DirectoryNode, name: str) -> DirectoryNode:
    """Return child directory ``name`` of ``tree``, creating it on first use."""
    child = tree.children.get(name)
    if child is None:
        child = DirectoryNode(name=name, path=posixpath.join(tree.path, name) if tree.path else name)
        tree.children[name] = child
    if not isinstance(child, DirectoryNode):
        raise ValueError(f"Expected directory, got file: {name}")
    return child


def build_tree(changes: Sequence[Change], root_path: str) -> DirectoryNode:
    """Build a prefix tree of ``changes`` relative to ``root_path``.

    Intermediate path segments become directory nodes in first-seen order;
    the last segment becomes a leaf keyed by status letter and file name.
    """
    tree = DirectoryNode(name="/")
    for change_index, change in enumerate(changes):
        relative = posixpath.relpath(change.original_path, root_path)
        parts = [part for part in relative.split("/") if part]
        if not parts:
            logger.warning("build_tree: empty relative path for %s", change.original_path)
            continue
        file_name = parts.pop()
        current = tree
        for directory in parts:
            current = _get_or_create(current, directory)
        current.children[f"{status_letter(change.status)} {file_name}"] = FileLeaf(change_index, change.path)
    return tree
