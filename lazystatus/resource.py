"""Line descriptors attached to every rendered status line.

Each rendered line carries exactly one descriptor. Descriptors are the only
thing comparable across renders; line numbers are not.
"""

from __future__ import annotations

from dataclasses import dataclass

MERGE = "MergeChange"
UNTRACKED = "Untracked"
UNSTAGED = "Unstaged"
STAGED = "Staged"
UNPUSHED = "Unpushed"

CHANGE_CATEGORIES: tuple[str, ...] = (MERGE, UNTRACKED, UNSTAGED, STAGED)
DIFF_CATEGORIES: tuple[str, ...] = (UNSTAGED, STAGED)
HEADER_CATEGORIES: tuple[str, ...] = (*CHANGE_CATEGORIES, UNPUSHED)

KIND_HEAD = "head"
KIND_MERGE_STATUS = "merge"
KIND_HELP = "help"
KIND_BLANK = "blank"
KIND_HEADER = "header"
KIND_CHANGE = "change"
KIND_DIFF = "diff"
KIND_DIRECTORY = "directory"
KIND_UNPUSHED = "unpushed"

@dataclass(frozen=True)
class StaticLine:
    """Head, merge-status, help or blank separator line."""

    kind: str


@dataclass(frozen=True)
class HeaderLine:
    """Start of one category section."""

    category: str
    kind: str = KIND_HEADER


@dataclass(frozen=True)
class ChangeLine:
    """One file-level change.

    ``change_index`` addresses the category's change list at render time and
    ``list_index`` is the position among sibling files of the same directory
    (equal to ``change_index`` in list view).
    """

    category: str
    change_index: int
    list_index: int
    path: str
    kind: str = KIND_CHANGE


@dataclass(frozen=True)
class DiffLine:
    """One physical line of an opened inline diff."""

    category: str
    change_index: int
    hunk_index: int
    hunk_line_index: int
    list_index: int
    path: str
    kind: str = KIND_DIFF


@dataclass(frozen=True)
class DirectoryLine:
    """Collapsible directory node in tree view; ``path`` is root-relative."""

    path: str
    category: str
    kind: str = KIND_DIRECTORY


@dataclass(frozen=True)
class UnpushedLine:
    change_index: int
    kind: str = KIND_UNPUSHED


Resource = StaticLine | HeaderLine | ChangeLine | DiffLine | DirectoryLine | UnpushedLine
ModelLine = tuple[Resource, str]

HEAD_LINE = StaticLine(KIND_HEAD)
MERGE_STATUS_LINE = StaticLine(KIND_MERGE_STATUS)
HELP_LINE = StaticLine(KIND_HELP)
BLANK_LINE = StaticLine(KIND_BLANK)


def is_change_line(resource: Resource) -> bool:
    return resource.kind == KIND_CHANGE


def is_diff_line(resource: Resource) -> bool:
    return resource.kind == KIND_DIFF


def owning_category(resource: Resource) -> str | None:
    """Return the change category a line belongs to, or ``None`` for static lines."""
    if resource.kind in {KIND_HEADER, KIND_CHANGE, KIND_DIFF, KIND_DIRECTORY}:
        return resource.category
    if resource.kind == KIND_UNPUSHED:
        return UNPUSHED
    return None
