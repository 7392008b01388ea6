"""Presentation controller for one status document.

``StatusSession`` owns the line model, the cursor anchor and the action lock,
and turns user actions into change-source calls. Mutating actions capture
the cursor anchor, call the source and keep the lock held; the lock is
released by ``notify_repository_changed`` once the refreshed state has been
rendered (or by the lock's own timeout).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from .action_lock import LOCK_BUSY_MESSAGE, ActionLock
from .changes import (
    DELETED,
    DELETED_STATUSES,
    INDEX_ADDED,
    INDEX_COPIED,
    INDEX_RENAMED,
    UNTRACKED_STATUS,
    Change,
)
from .config import save_view_style
from .cursor import CursorAnchor
from .git_source import GitCommandError
from .resource import (
    CHANGE_CATEGORIES,
    DIFF_CATEGORIES,
    KIND_CHANGE,
    KIND_DIFF,
    KIND_DIRECTORY,
    KIND_HEADER,
    KIND_UNPUSHED,
    MERGE,
    STAGED,
    UNPUSHED,
    UNSTAGED,
    UNTRACKED,
    Resource,
    owning_category,
)
from .ui_model import LIST_VIEW, TREE_VIEW, VIEW_STYLES, StatusModel

logger = logging.getLogger(__name__)

CONFLICT_MARKER = "<<<<<<<"

Confirm = Callable[[str], bool]


@dataclass(frozen=True)
class SessionResult:
    """Outcome of one user action.

    ``changed`` is set when the repository was mutated and the caller still
    has to deliver ``notify_repository_changed``. ``target`` carries the file
    path or commit hash picked by ``open_target``.
    """

    message: str = ""
    changed: bool = False
    target: str | None = None


def _has_conflict_marker(path: str) -> bool:
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            return any(line.startswith(CONFLICT_MARKER) for line in handle)
    except OSError:
        return False


def _worktree_changes_after_unstage(changes: Sequence[Change]) -> list[Change]:
    """Describe what is left in the worktree once staged ``changes`` are unstaged."""
    result: list[Change] = []
    for change in changes:
        if change.status in {INDEX_ADDED, INDEX_COPIED}:
            result.append(Change(change.path, UNTRACKED_STATUS))
        elif change.status == INDEX_RENAMED:
            result.append(Change(change.path, UNTRACKED_STATUS))
            result.append(Change(change.original_path, DELETED))
        else:
            result.append(change)
    return result


class StatusSession:
    """Cursor, lock and actions on top of a ``StatusModel``."""

    def __init__(self, source: Any, view_style: str = LIST_VIEW, lock: ActionLock | None = None) -> None:
        if view_style not in VIEW_STYLES:
            raise ValueError(f"Unknown view style: {view_style}")
        self.source = source
        self.view_style = view_style
        self.lock = lock if lock is not None else ActionLock()
        self.model = StatusModel()
        self.anchor = CursorAnchor()
        self.cursor_line = 0

    @property
    def snapshot(self):
        return self.model.snapshot

    # Document lifecycle

    def open(self) -> None:
        """Fresh open: forget opened diffs, collapse state and anchor, then render."""
        self.model.diff_model.clear()
        self.model.tree_model.clear()
        self.anchor.reset()
        self.model.set_snapshot(self.source.load_snapshot())
        self._rerender()

    def _rerender(self) -> None:
        self.model.render(self.view_style)
        line = self.anchor.resolve(self.model, self.view_style, self.cursor_line)
        self.cursor_line = self._clamp(line)

    def notify_repository_changed(self) -> None:
        """Refresh from the source, re-render, re-anchor the cursor and release the lock."""
        try:
            self.model.set_snapshot(self.source.load_snapshot())
            self._rerender()
        finally:
            self.lock.release()

    def refresh(self) -> None:
        """Re-read the repository keeping the cursor on the current line's item."""
        self._capture()
        self.notify_repository_changed()

    def text_lines(self) -> list[str]:
        return self.model.to_string_lines()

    # Cursor

    def _clamp(self, line: int) -> int:
        length = self.model.length()
        if length == 0:
            return 0
        return max(0, min(line, length - 1))

    def move_cursor(self, line: int) -> int:
        self.cursor_line = self._clamp(line)
        return self.cursor_line

    def current_resource(self) -> Resource | None:
        try:
            return self.model.resource_at(self.cursor_line)
        except IndexError:
            return None

    def _capture(self) -> Resource | None:
        return self.anchor.capture(self.cursor_line, self.model)

    def go_up(self) -> int:
        return self.move_cursor(self.cursor_line - 1)

    def go_down(self) -> int:
        return self.move_cursor(self.cursor_line + 1)

    def go_top(self) -> int:
        return self.move_cursor(0)

    def _go_header(self, category: str) -> int:
        index = self.model.find_header(category)
        if index >= 0:
            self.move_cursor(index)
        return self.cursor_line

    def go_staged(self) -> int:
        return self._go_header(STAGED)

    def go_unstaged(self, go_unstaged: bool = False) -> int:
        """Jump to the untracked header, or unstaged when asked or untracked is absent."""
        if not go_unstaged and self.model.find_header(UNTRACKED) >= 0:
            return self._go_header(UNTRACKED)
        return self._go_header(UNSTAGED)

    def go_unpushed(self) -> int:
        return self._go_header(UNPUSHED)

    def go_next_hunk(self) -> int:
        line = self.model.next_hunk_line(self.cursor_line)
        if line is not None:
            self.move_cursor(line)
        return self.cursor_line

    def go_previous_hunk(self) -> int:
        line = self.model.previous_hunk_line(self.cursor_line)
        if line is not None:
            self.move_cursor(line)
        return self.cursor_line

    # Actions

    def _changes_under(self, resource: Resource | None) -> tuple[str | None, list[Change]]:
        """Return the category and the changes a line acts on."""
        if resource is None:
            return None, []
        if resource.kind in {KIND_CHANGE, KIND_DIFF}:
            change = self.snapshot.change_for(resource)
            return resource.category, [change] if change is not None else []
        if resource.kind == KIND_HEADER and resource.category in CHANGE_CATEGORIES:
            return resource.category, list(self.snapshot.changes(resource.category))
        if resource.kind == KIND_DIRECTORY:
            prefix = resource.path + "/"
            changes = [
                change
                for change in self.snapshot.changes(resource.category)
                if self.snapshot.relative_path(change).startswith(prefix)
            ]
            return resource.category, changes
        return None, []

    def _run_source(self, verb: str, action: Callable[[Sequence[Change]], None], changes: Sequence[Change]) -> SessionResult:
        try:
            action(changes)
        except GitCommandError as exc:
            logger.error("%s failed: %s", verb, exc)
            self.lock.release()
            return SessionResult(message=str(exc))
        logger.debug("%s %d file(s)", verb, len(changes))
        return SessionResult(changed=True)

    def _close_diffs(self, changes: Sequence[Change], categories: Sequence[str]) -> None:
        for category in categories:
            for change in changes:
                self.model.diff_model.close_inline_diff(change.path, category)

    def stage(self, confirm: Confirm | None = None) -> SessionResult:
        """Stage the change, header section or directory under the cursor."""
        if not self.lock.acquire():
            return SessionResult(message=LOCK_BUSY_MESSAGE)
        category, changes = self._changes_under(self._capture())
        if category not in {MERGE, UNTRACKED, UNSTAGED} or not changes:
            self.lock.release()
            return SessionResult()
        if category == MERGE and any(_has_conflict_marker(change.path) for change in changes):
            if confirm is None or not confirm("Conflict marker detected. Merge with conflicts?"):
                self.lock.release()
                return SessionResult(message="Stage cancelled")
        result = self._run_source("stage", self.source.stage, changes)
        if result.changed:
            self._close_diffs(changes, (UNSTAGED,))
        return result

    def unstage(self) -> SessionResult:
        """Unstage the staged change, header section or directory under the cursor."""
        if not self.lock.acquire():
            return SessionResult(message=LOCK_BUSY_MESSAGE)
        category, changes = self._changes_under(self._capture())
        if category != STAGED or not changes:
            self.lock.release()
            return SessionResult()
        result = self._run_source("unstage", self.source.unstage, changes)
        if result.changed:
            self._close_diffs(changes, (STAGED,))
        return result

    def toggle(self, confirm: Confirm | None = None) -> SessionResult:
        """Stage worktree lines, unstage staged lines."""
        resource = self.current_resource()
        category = owning_category(resource) if resource is not None else None
        if category in {UNTRACKED, UNSTAGED, MERGE}:
            return self.stage(confirm)
        if category == STAGED:
            return self.unstage()
        return SessionResult()

    def clean(self, confirm: Confirm | None = None) -> SessionResult:
        """Discard the changes under the cursor; sections and directories ask first."""
        if not self.lock.acquire():
            return SessionResult(message=LOCK_BUSY_MESSAGE)
        resource = self._capture()
        category, changes = self._changes_under(resource)
        if category not in {UNTRACKED, UNSTAGED, STAGED} or not changes:
            self.lock.release()
            return SessionResult()
        if resource.kind in {KIND_HEADER, KIND_DIRECTORY}:
            where = f"in directory {resource.path}" if resource.kind == KIND_DIRECTORY else "in section"
            question = f"Are you sure you want to clean {len(changes)} {category} files {where}?"
            if confirm is None or not confirm(question):
                self.lock.release()
                return SessionResult(message="Clean cancelled")

        if category == STAGED:
            result = self._run_source("unstage", self.source.unstage, changes)
            if not result.changed:
                return result
            worktree = _worktree_changes_after_unstage(changes)
        else:
            worktree = list(changes)
        result = self._run_source("clean", self.source.clean, worktree)
        if result.changed:
            self._close_diffs(changes, DIFF_CATEGORIES)
        elif category == STAGED:
            # The unstage already went through; the caller still needs a refresh.
            return SessionResult(message=result.message, changed=True)
        return result

    def toggle_directory(self) -> SessionResult:
        if not self.lock.acquire():
            return SessionResult(message=LOCK_BUSY_MESSAGE)
        try:
            resource = self._capture()
            if resource is None or resource.kind != KIND_DIRECTORY:
                return SessionResult()
            closed = self.model.tree_model.toggle_directory(resource.path, resource.category)
            logger.debug("%s directory %s", "closed" if closed else "opened", resource.path)
            self._rerender()
            return SessionResult()
        finally:
            self.lock.release()

    def toggle_inline_diff(self) -> SessionResult:
        """Open or close the inline diff of the file under the cursor.

        On a diff line this closes the owning file's diff.
        """
        if not self.lock.acquire():
            return SessionResult(message=LOCK_BUSY_MESSAGE)
        try:
            resource = self._capture()
            if resource is None or resource.kind not in {KIND_CHANGE, KIND_DIFF}:
                return SessionResult()
            if resource.category not in DIFF_CATEGORIES:
                return SessionResult()
            change = self.snapshot.change_for(resource)
            if change is None:
                return SessionResult()
            if resource.kind == KIND_DIFF:
                self.model.diff_model.close_inline_diff(change.path, resource.category)
            else:
                self.model.diff_model.toggle_inline_diff(change.path, resource.category)
            self._rerender()
            return SessionResult()
        finally:
            self.lock.release()

    def _exclude_pattern(self, resource: Resource | None) -> str | None:
        """Root-anchored ignore pattern for the file or directory under the cursor."""
        if resource is None:
            return None
        if resource.kind == KIND_DIRECTORY:
            return f"/{resource.path}"
        change = self.snapshot.change_for(resource)
        if change is None:
            return None
        return f"/{self.snapshot.relative_path(change)}"

    def git_exclude(self, git_ignore: bool = False) -> SessionResult:
        """Add the file or directory under the cursor to ``info/exclude`` or ``.gitignore``."""
        if not self.lock.acquire():
            return SessionResult(message=LOCK_BUSY_MESSAGE)
        pattern = self._exclude_pattern(self._capture())
        if pattern is None:
            logger.warning("No path found to exclude at line %d", self.cursor_line)
            self.lock.release()
            return SessionResult()
        try:
            written = self.source.exclude(pattern, git_ignore)
        except GitCommandError as exc:
            logger.error("exclude failed: %s", exc)
            self.lock.release()
            return SessionResult(message=str(exc))
        return SessionResult(message=f"Added {pattern} to {written}", changed=True, target=str(written))

    def toggle_view(self, view_style: str | None = None) -> SessionResult:
        """Switch list/tree layout, keeping the cursor on the same item."""
        if view_style is None:
            view_style = TREE_VIEW if self.view_style == LIST_VIEW else LIST_VIEW
        if view_style not in VIEW_STYLES:
            raise ValueError(f"Unknown view style: {view_style}")
        self._capture()
        self.view_style = view_style
        save_view_style(view_style)
        self._rerender()
        return SessionResult()

    def open_target(self) -> SessionResult:
        """Return the file path or commit hash under the cursor for opening."""
        if self.lock.is_locked():
            return SessionResult(message=LOCK_BUSY_MESSAGE)
        resource = self.current_resource()
        if resource is None:
            return SessionResult()
        if resource.kind == KIND_UNPUSHED:
            commit = self.snapshot.commit_for(resource)
            return SessionResult(target=commit.hash) if commit is not None else SessionResult()
        if resource.kind not in {KIND_CHANGE, KIND_DIFF}:
            return SessionResult()
        change = self.snapshot.change_for(resource)
        if change is None:
            return SessionResult()
        if change.status in DELETED_STATUSES:
            return SessionResult(message="File was deleted")
        return SessionResult(target=change.path)

    def open_inline_diffs(self, paths: Sequence[str]) -> int:
        """Open inline diffs for absolute ``paths`` wherever they have one; returns how many opened."""
        opened = 0
        for path in paths:
            for category in DIFF_CATEGORIES:
                if self.snapshot.find_change_index(path, category) is None:
                    continue
                if not self.model.diff_model.hunks(path, category):
                    continue
                self.model.diff_model.open_inline_diff(path, category)
                opened += 1
        if opened:
            self._rerender()
        return opened
