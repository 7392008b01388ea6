"""Tree-view rendering and per-category directory collapse state."""

from __future__ import annotations

from collections.abc import Sequence

from ..changes import Change
from ..resource import CHANGE_CATEGORIES, ChangeLine, DirectoryLine, ModelLine
from .build import build_tree
from .types import DirectoryNode

OPEN_MARKER = "▽"
CLOSED_MARKER = "▷"


class TreeModel:
    """Render change lists as directory trees and remember collapsed directories.

    Collapse state is a set of root-relative directory paths per change
    category. It outlives single renders and is only changed by toggles.
    """

    def __init__(self) -> None:
        self._closed: dict[str, set[str]] = {category: set() for category in CHANGE_CATEGORIES}

    def clear(self) -> None:
        """Reopen every directory (fresh document open)."""
        for closed in self._closed.values():
            closed.clear()

    def closed_directories(self, category: str) -> frozenset[str]:
        return frozenset(self._closed[category])

    def is_closed(self, path: str, category: str) -> bool:
        return path in self._closed[category]

    def toggle_directory(self, path: str, category: str) -> bool:
        """Flip collapse state of ``path``; returns ``True`` when now closed."""
        closed = self._closed[category]
        if path in closed:
            closed.remove(path)
            return False
        closed.add(path)
        return True

    def changes_to_tree_model(self, changes: Sequence[Change], root_path: str, category: str) -> list[ModelLine]:
        return self.render(build_tree(changes, root_path), category)

    def render(self, tree: DirectoryNode, category: str, depth: int = 0) -> list[ModelLine]:
        """Render ``tree``: every subdirectory in full first, then direct files.

        A closed directory contributes its header line only.
        """
        model: list[ModelLine] = []
        indent = "  " * depth
        for directory in tree.subdirectories():
            closed = self.is_closed(directory.path, category)
            marker = CLOSED_MARKER if closed else OPEN_MARKER
            model.append((DirectoryLine(path=directory.path, category=category), f"{indent}{marker} {directory.name}"))
            if not closed:
                model.extend(self.render(directory, category, depth + 1))

        for list_index, (key, leaf) in enumerate(tree.files()):
            resource = ChangeLine(
                category=category,
                change_index=leaf.change_index,
                list_index=list_index,
                path=leaf.path,
            )
            model.append((resource, f"{indent}{key}"))
        return model
