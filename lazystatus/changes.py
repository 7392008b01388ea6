"""Change-source data model.

A ``RepositorySnapshot`` is one immutable capture of the repository state:
the four categorized change lists, unpushed commits and raw diff text. The
line model renders from a snapshot only, so rendering never races a refresh.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field

from .resource import (
    KIND_CHANGE,
    KIND_DIFF,
    KIND_UNPUSHED,
    MERGE,
    STAGED,
    UNSTAGED,
    UNTRACKED,
    Resource,
)

logger = logging.getLogger(__name__)

INDEX_MODIFIED = "INDEX_MODIFIED"
INDEX_ADDED = "INDEX_ADDED"
INDEX_DELETED = "INDEX_DELETED"
INDEX_RENAMED = "INDEX_RENAMED"
INDEX_COPIED = "INDEX_COPIED"
INDEX_TYPE_CHANGED = "INDEX_TYPE_CHANGED"
MODIFIED = "MODIFIED"
DELETED = "DELETED"
UNTRACKED_STATUS = "UNTRACKED"
IGNORED = "IGNORED"
INTENT_TO_ADD = "INTENT_TO_ADD"
TYPE_CHANGED = "TYPE_CHANGED"
ADDED_BY_US = "ADDED_BY_US"
ADDED_BY_THEM = "ADDED_BY_THEM"
DELETED_BY_US = "DELETED_BY_US"
DELETED_BY_THEM = "DELETED_BY_THEM"
BOTH_ADDED = "BOTH_ADDED"
BOTH_DELETED = "BOTH_DELETED"
BOTH_MODIFIED = "BOTH_MODIFIED"

_STATUS_LETTERS: dict[str, str] = {
    INDEX_MODIFIED: "M",
    MODIFIED: "M",
    INDEX_ADDED: "A",
    INTENT_TO_ADD: "A",
    INDEX_DELETED: "D",
    DELETED: "D",
    INDEX_RENAMED: "R",
    INDEX_COPIED: "C",
    INDEX_TYPE_CHANGED: "T",
    TYPE_CHANGED: "T",
    UNTRACKED_STATUS: "U",
    IGNORED: "I",
    ADDED_BY_US: "U",
    ADDED_BY_THEM: "U",
    DELETED_BY_US: "U",
    DELETED_BY_THEM: "U",
    BOTH_ADDED: "U",
    BOTH_DELETED: "U",
    BOTH_MODIFIED: "U",
}

DELETED_STATUSES: frozenset[str] = frozenset({INDEX_DELETED, DELETED})


def status_letter(status: str) -> str:
    """Return the one-character code shown in front of a change."""
    letter = _STATUS_LETTERS.get(status)
    if letter is None:
        logger.debug("status_letter: unknown status %r", status)
        return "?"
    return letter


@dataclass(frozen=True)
class Change:
    """One file-level change; ``path`` is its identity across refreshes."""

    path: str
    status: str
    original_path: str = ""

    def __post_init__(self) -> None:
        if not self.original_path:
            object.__setattr__(self, "original_path", self.path)


@dataclass(frozen=True)
class Commit:
    hash: str
    message: str

    def summary(self) -> str:
        """Short hash plus the first message line, as shown in the unpushed section."""
        first_line = self.message.split("\n")[0]
        return f"{self.hash[:8]} {first_line[:80]}"


@dataclass(frozen=True)
class HeadInfo:
    """Branch state shown in the static header block."""

    name: str | None = None
    commit: str | None = None
    rebase_commit: str | None = None
    remote: str | None = None
    has_upstream: bool = False

    def display_name(self) -> str:
        if self.name:
            return self.name
        if self.commit:
            return f"Detached at {self.commit[:8]}"
        return "Detached"


@dataclass(frozen=True)
class RepositorySnapshot:
    """Cached repository state one render pass reads from."""

    root_path: str
    head: HeadInfo = field(default_factory=HeadInfo)
    merge: tuple[Change, ...] = ()
    untracked: tuple[Change, ...] = ()
    unstaged: tuple[Change, ...] = ()
    staged: tuple[Change, ...] = ()
    unpushed: tuple[Commit, ...] = ()
    unstaged_diff_text: str = ""
    staged_diff_text: str = ""

    def changes(self, category: str) -> tuple[Change, ...]:
        if category == MERGE:
            return self.merge
        if category == UNTRACKED:
            return self.untracked
        if category == UNSTAGED:
            return self.unstaged
        if category == STAGED:
            return self.staged
        raise ValueError(f"Invalid change category: {category}")

    def raw_diff_text(self, category: str) -> str:
        if category == UNSTAGED:
            return self.unstaged_diff_text
        if category == STAGED:
            return self.staged_diff_text
        raise ValueError(f"No diff text for category: {category}")

    def find_change_index(self, path: str, category: str) -> int | None:
        for index, change in enumerate(self.changes(category)):
            if change.path == path:
                return index
        return None

    def relative_path(self, change: Change) -> str:
        """Return the display path of ``change`` relative to the repository root."""
        return posixpath.relpath(change.original_path, self.root_path)

    def change_for(self, resource: Resource) -> Change | None:
        """Resolve the change a change or diff line points at.

        The stored index is trusted only while it still holds the same path;
        otherwise the path is looked up again in the current list.
        """
        if resource.kind not in {KIND_CHANGE, KIND_DIFF}:
            return None
        changes = self.changes(resource.category)
        if 0 <= resource.change_index < len(changes):
            by_index = changes[resource.change_index]
            if not resource.path or by_index.path == resource.path:
                return by_index

        if resource.path:
            index = self.find_change_index(resource.path, resource.category)
            if index is not None:
                logger.debug("change_for: resolved %s by path fallback", resource.path)
                return changes[index]
            logger.warning("change_for: could not resolve %s change for %s", resource.category, resource.path)
        return None

    def commit_for(self, resource: Resource) -> Commit | None:
        if resource.kind != KIND_UNPUSHED:
            return None
        if 0 <= resource.change_index < len(self.unpushed):
            return self.unpushed[resource.change_index]
        return None
