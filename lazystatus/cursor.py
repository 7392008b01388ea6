"""Cursor anchoring across re-renders.

Line numbers are meaningless between two renders: staging a file removes it
from one section and shifts everything below. ``CursorAnchor`` captures the
descriptor under the cursor before a mutation and maps it back onto the new
line sequence afterwards, so repeated actions keep the cursor visually in
place (the next file slides up into the vacated line).
"""

from __future__ import annotations

import logging
import posixpath

from .changes import Change
from .resource import (
    HEADER_CATEGORIES,
    KIND_BLANK,
    KIND_CHANGE,
    KIND_DIFF,
    KIND_DIRECTORY,
    KIND_HEADER,
    Resource,
)
from .ui_model import LIST_VIEW, TREE_VIEW, StatusModel

logger = logging.getLogger(__name__)

FIRST_ITEM_LINE = 5


class CursorAnchor:
    """Previously captured descriptor plus the change it pointed at."""

    def __init__(self) -> None:
        self.line = 0
        self.resource: Resource | None = None
        self.change: Change | None = None

    def reset(self) -> None:
        self.line = 0
        self.resource = None
        self.change = None

    def capture(self, line: int, model: StatusModel) -> Resource | None:
        """Remember what is under ``line`` in ``model``'s current sequence."""
        self.line = line
        try:
            resource = model.resource_at(line)
        except IndexError:
            logger.warning("capture: line %d outside model of %d lines", line, model.length())
            self.resource = None
            self.change = None
            return None
        self.resource = resource
        self.change = model.snapshot.change_for(resource)
        return resource

    def resolve(self, model: StatusModel, view_style: str = LIST_VIEW, current_line: int | None = None) -> int:
        """Return the line in ``model``'s freshly rendered sequence to put the cursor on.

        The result is not clamped; a fallback of ``offset + 1`` may point past
        the end when the last section disappeared.
        """
        resource = self.resource
        if resource is None:
            if current_line and current_line < model.length():
                return current_line
            return FIRST_ITEM_LINE if model.length() >= FIRST_ITEM_LINE else 0

        if resource.kind == KIND_HEADER and resource.category in HEADER_CATEGORIES:
            return model.offset_of(resource.category) + 1

        if view_style == TREE_VIEW:
            return self._resolve_tree(model, resource)
        if resource.kind in {KIND_CHANGE, KIND_DIFF}:
            return self._resolve_list(model, resource)

        logger.error("resolve: %s line not implemented in %s view", resource.kind, view_style)
        return self.line

    def _resolve_list(self, model: StatusModel, resource: Resource) -> int:
        category = resource.category
        changes = model.snapshot.changes(category)
        index = min(resource.change_index, len(changes) - 1) if changes else 0
        line = model.find_index(
            lambda item: item[0].kind == KIND_CHANGE and item[0].category == category and item[0].change_index == index
        )
        if line != -1:
            return line
        return model.offset_of(category) + 1

    def _resolve_tree(self, model: StatusModel, resource: Resource) -> int:
        if resource.kind in {KIND_CHANGE, KIND_DIFF}:
            category = resource.category
            if not model.snapshot.changes(category):
                return model.offset_of(category) + 1
            if self.change is None:
                logger.warning("resolve: no change captured for %s", resource.path)
                return self.line

            line = self._same_file_line(model, category, self.change.path)
            if line is not None:
                return line

            directory = posixpath.dirname(model.snapshot.relative_path(self.change))
            siblings = self._sibling_lines(model, category, directory)
            if siblings:
                return siblings[min(resource.list_index, len(siblings) - 1)]
            return self._ancestor_line(model, category, directory)

        if resource.kind == KIND_DIRECTORY:
            if not model.snapshot.changes(resource.category):
                return model.offset_of(resource.category) + 1
            return self._ancestor_line(model, resource.category, resource.path)

        logger.error("resolve: %s line not implemented in tree view", resource.kind)
        return self.line

    def _same_file_line(self, model: StatusModel, category: str, path: str) -> int | None:
        """Scan the category section (up to the next blank line) for ``path``."""
        lines = model.lines()
        for index in range(model.offset_of(category) + 1, len(lines)):
            candidate = lines[index][0]
            if candidate.kind == KIND_BLANK:
                break
            if candidate.kind == KIND_CHANGE and candidate.category == category and candidate.path == path:
                return index
        return None

    def _sibling_lines(self, model: StatusModel, category: str, directory: str) -> list[int]:
        """Change lines of ``category`` whose file sits directly in ``directory``."""
        snapshot = model.snapshot
        siblings = []
        for index, (candidate, _text) in enumerate(model.lines()):
            if candidate.kind != KIND_CHANGE or candidate.category != category:
                continue
            change = snapshot.change_for(candidate)
            if change is not None and posixpath.dirname(snapshot.relative_path(change)) == directory:
                siblings.append(index)
        return siblings

    def _ancestor_line(self, model: StatusModel, category: str, directory: str) -> int:
        """Return the deepest rendered directory line on ``directory``'s path."""
        parts = [part for part in directory.split("/") if part]
        for depth in range(len(parts), 0, -1):
            path = "/".join(parts[:depth])
            line = model.find_index(
                lambda item: item[0].kind == KIND_DIRECTORY and item[0].category == category and item[0].path == path
            )
            if line != -1:
                return line
        return model.offset_of(category) + 1
