"""Line-model renderer for the status document.

``StatusModel.render`` projects a ``RepositorySnapshot`` plus the in-memory
opened-diff and collapse state into an ordered sequence of
``(descriptor, text)`` lines, in list or tree layout. The sequence is rebuilt
from scratch on every call; only descriptors are comparable across renders.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from .changes import RepositorySnapshot, status_letter
from .diff_model import DiffModel
from .resource import (
    BLANK_LINE,
    CHANGE_CATEGORIES,
    HEAD_LINE,
    HELP_LINE,
    KIND_HEADER,
    MERGE,
    MERGE_STATUS_LINE,
    STAGED,
    UNPUSHED,
    UNSTAGED,
    UNTRACKED,
    ChangeLine,
    HeaderLine,
    ModelLine,
    Resource,
    UnpushedLine,
    is_change_line,
    is_diff_line,
)
from .tree_model import TreeModel

logger = logging.getLogger(__name__)

LIST_VIEW = "list"
TREE_VIEW = "tree"
VIEW_STYLES: tuple[str, ...] = (LIST_VIEW, TREE_VIEW)

# Tried in this order from the requested category onwards.
OFFSET_FALLBACK_ORDER: tuple[str, ...] = (UNPUSHED, STAGED, UNSTAGED, UNTRACKED, MERGE)
DEFAULT_CATEGORY_OFFSET = 4

HELP_TEXT = "Help: g h"

_HEADER_TITLES: dict[str, str] = {
    MERGE: "Merge Changes",
    UNTRACKED: "Untracked",
    UNSTAGED: "Unstaged",
    STAGED: "Staged",
}


class StatusModel:
    """Compose header, category sections and inline diffs into one line model."""

    def __init__(
        self,
        snapshot: RepositorySnapshot | None = None,
        diff_model: DiffModel | None = None,
        tree_model: TreeModel | None = None,
    ) -> None:
        self.diff_model = diff_model if diff_model is not None else DiffModel()
        self.tree_model = tree_model if tree_model is not None else TreeModel()
        self.snapshot = RepositorySnapshot(root_path="")
        self._lines: list[ModelLine] = []
        if snapshot is not None:
            self.set_snapshot(snapshot)

    def set_snapshot(self, snapshot: RepositorySnapshot) -> None:
        """Adopt refreshed repository state and re-parse its diff text."""
        self.snapshot = snapshot
        self.diff_model.update_from_snapshot(snapshot)

    def _head_ref(self) -> str:
        head = self.snapshot.head
        if head.rebase_commit:
            return f"Rebasing at {head.rebase_commit[:8]}"
        return head.display_name()

    def _static_lines(self) -> list[ModelLine]:
        head = self.snapshot.head
        merge = "Unpublished"
        if head.has_upstream and head.remote:
            merge = f"Merge: {head.remote}/{self._head_ref()}"
        return [
            (HEAD_LINE, f"Head: {head.display_name()}"),
            (MERGE_STATUS_LINE, merge),
            (HELP_LINE, HELP_TEXT),
        ]

    def _unpushed_header_text(self, count: int) -> str:
        head = self.snapshot.head
        target = ""
        if head.remote:
            target = f"to {head.remote}/{self._head_ref()} " if head.has_upstream else "to * "
        return f"Unpushed {target}({count}):"

    def _list_body(self, category: str) -> list[ModelLine]:
        body: list[ModelLine] = []
        for index, change in enumerate(self.snapshot.changes(category)):
            resource = ChangeLine(category=category, change_index=index, list_index=index, path=change.path)
            body.append((resource, f"{status_letter(change.status)} {self.snapshot.relative_path(change)}"))
        return body

    def _category_body(self, category: str, view_style: str) -> list[ModelLine]:
        if view_style == TREE_VIEW:
            return self.tree_model.changes_to_tree_model(
                self.snapshot.changes(category),
                self.snapshot.root_path,
                category,
            )
        return self._list_body(category)

    def render(self, view_style: str = LIST_VIEW) -> tuple[ModelLine, ...]:
        """Rebuild the full line sequence for ``view_style`` and return it."""
        if view_style not in VIEW_STYLES:
            raise ValueError(f"Unknown view style: {view_style}")
        model = self._static_lines()
        for category in CHANGE_CATEGORIES:
            changes = self.snapshot.changes(category)
            if not changes:
                continue
            model.append((BLANK_LINE, ""))
            model.append((HeaderLine(category), f"{_HEADER_TITLES[category]} ({len(changes)}):"))
            model.extend(self._category_body(category, view_style))

        model = self.diff_model.inject_diffs(model, self.snapshot)

        commits = self.snapshot.unpushed
        if commits:
            model.append((BLANK_LINE, ""))
            model.append((HeaderLine(UNPUSHED), self._unpushed_header_text(len(commits))))
            model.extend((UnpushedLine(index), commit.summary()) for index, commit in enumerate(commits))

        self._lines = model
        logger.debug("render: %s view, %d lines", view_style, len(model))
        return tuple(model)

    def lines(self) -> tuple[ModelLine, ...]:
        return tuple(self._lines)

    def to_string_lines(self) -> list[str]:
        return [text for _resource, text in self._lines]

    def to_string(self) -> str:
        return "\n".join(self.to_string_lines())

    def length(self) -> int:
        return len(self._lines)

    def index(self, line: int) -> ModelLine:
        """Return the ``(descriptor, text)`` pair at ``line``.

        Raises ``IndexError`` outside ``[0, length())``; negative indexes are
        not wrapped.
        """
        if not 0 <= line < len(self._lines):
            raise IndexError(f"line {line} out of range (length {len(self._lines)})")
        return self._lines[line]

    def resource_at(self, line: int) -> Resource:
        return self.index(line)[0]

    def find_index(self, predicate: Callable[[ModelLine], bool]) -> int:
        for index, item in enumerate(self._lines):
            if predicate(item):
                return index
        return -1

    def find_header(self, category: str) -> int:
        """Return the header line of ``category`` or ``-1`` when it is not rendered."""
        return self.find_index(lambda item: item[0].kind == KIND_HEADER and item[0].category == category)

    def offset_of(self, category: str) -> int:
        """Return the header line of ``category``, falling back to the next present one.

        The fallback walks ``OFFSET_FALLBACK_ORDER`` from ``category`` onwards.
        When none of those is rendered the result is ``DEFAULT_CATEGORY_OFFSET``
        if any section exists at all, else ``0``.
        """
        if category not in OFFSET_FALLBACK_ORDER:
            raise ValueError(f"Unknown category: {category}")
        start = OFFSET_FALLBACK_ORDER.index(category)
        for candidate in OFFSET_FALLBACK_ORDER[start:]:
            index = self.find_header(candidate)
            if index != -1:
                return index
        has_section = any(resource.kind == KIND_HEADER for resource, _text in self._lines)
        return DEFAULT_CATEGORY_OFFSET if has_section else 0

    def category_for_line(self, line: int) -> str | None:
        """Return the change category whose section contains ``line``."""
        for index in range(min(line, len(self._lines) - 1), -1, -1):
            resource = self._lines[index][0]
            if resource.kind == KIND_HEADER:
                return resource.category if resource.category in CHANGE_CATEGORIES else None
        return None

    def _is_hunk_stop(self, resource: Resource) -> bool:
        if is_change_line(resource):
            return True
        return is_diff_line(resource) and resource.hunk_line_index == 0

    def next_hunk_line(self, line: int) -> int | None:
        """Return the next change line or hunk start after ``line``."""
        for index in range(max(line + 1, 0), len(self._lines)):
            if self._is_hunk_stop(self._lines[index][0]):
                return index
        return None

    def previous_hunk_line(self, line: int) -> int | None:
        """Return the previous change line or hunk start before ``line``."""
        for index in range(min(line, len(self._lines)) - 1, -1, -1):
            if self._is_hunk_stop(self._lines[index][0]):
                return index
        return None
