"""ANSI palette for the status pager.

The palette colors status chrome (headers, directory markers, status
letters). Diff bodies are colored separately through the Pygments style.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class UITheme:
    """Semantic ANSI palette used by the line painter."""

    name: str
    reset: str
    reverse: str
    head: str
    section_header: str
    directory: str
    status_added: str
    status_modified: str
    status_deleted: str
    status_conflict: str
    status_other: str
    commit_hash: str
    status_bar: str


DEFAULT_THEME = UITheme(
    name="default",
    reset="\033[0m",
    reverse="\033[7m",
    head="\033[1;38;5;81m",
    section_header="\033[1;38;5;229m",
    directory="\033[1;34m",
    status_added="\033[38;5;42m",
    status_modified="\033[38;5;214m",
    status_deleted="\033[38;5;203m",
    status_conflict="\033[1;38;5;197m",
    status_other="\033[38;5;250m",
    commit_hash="\033[38;5;110m",
    status_bar="\033[2;38;5;250m",
)

PLAIN_THEME = UITheme(
    name="plain",
    reset="\033[0m",
    reverse="\033[7m",
    head="",
    section_header="",
    directory="",
    status_added="",
    status_modified="",
    status_deleted="",
    status_conflict="",
    status_other="",
    commit_hash="",
    status_bar="",
)


def resolve_theme(*, no_color: bool = False) -> UITheme:
    """Return concrete theme for the requested color mode."""
    return PLAIN_THEME if no_color else DEFAULT_THEME


def status_letter_color(theme: UITheme, letter: str) -> str:
    if letter in {"A", "C"}:
        return theme.status_added
    if letter in {"M", "R", "T"}:
        return theme.status_modified
    if letter == "D":
        return theme.status_deleted
    if letter == "U":
        return theme.status_conflict
    return theme.status_other


__all__ = [
    "UITheme",
    "DEFAULT_THEME",
    "PLAIN_THEME",
    "resolve_theme",
    "status_letter_color",
]
