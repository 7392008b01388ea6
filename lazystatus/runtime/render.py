"""Paint status lines and full pager frames as ANSI text."""

from __future__ import annotations

from collections.abc import Sequence

from ..highlight import colorize_diff_line, sanitize_terminal_text
from ..resource import (
    KIND_CHANGE,
    KIND_DIFF,
    KIND_DIRECTORY,
    KIND_HEAD,
    KIND_HEADER,
    KIND_UNPUSHED,
    ModelLine,
    Resource,
)
from ..ui_theme import UITheme, status_letter_color

TAB_WIDTH = 4


def clip_text(text: str, width: int) -> str:
    """Expand tabs, escape control bytes and cut ``text`` to ``width`` columns."""
    plain = sanitize_terminal_text(text.expandtabs(TAB_WIDTH))
    return plain[: max(0, width)]


def paint_line(resource: Resource, text: str, theme: UITheme, style: str, no_color: bool = False) -> str:
    """Return ``text`` (already clipped) with colors for its line kind."""
    if no_color or not text:
        return text
    kind = resource.kind
    if kind == KIND_DIFF:
        return colorize_diff_line(text, style)
    if kind == KIND_HEAD:
        return f"{theme.head}{text}{theme.reset}"
    if kind == KIND_HEADER:
        return f"{theme.section_header}{text}{theme.reset}"
    if kind == KIND_DIRECTORY:
        return f"{theme.directory}{text}{theme.reset}"
    if kind == KIND_CHANGE:
        body = text.lstrip(" ")
        indent = text[: len(text) - len(body)]
        letter, rest = body[:1], body[1:]
        return f"{indent}{status_letter_color(theme, letter)}{letter}{theme.reset}{rest}"
    if kind == KIND_UNPUSHED:
        commit_hash, sep, rest = text.partition(" ")
        return f"{theme.commit_hash}{commit_hash}{theme.reset}{sep}{rest}"
    return text


def scroll_top(cursor_line: int, top: int, rows: int, total: int) -> int:
    """Return the first visible line keeping ``cursor_line`` in view."""
    rows = max(1, rows)
    if cursor_line < top:
        top = cursor_line
    elif cursor_line >= top + rows:
        top = cursor_line - rows + 1
    return max(0, min(top, max(0, total - rows)))


def render_frame(
    lines: Sequence[ModelLine],
    cursor_line: int,
    top: int,
    columns: int,
    rows: int,
    theme: UITheme,
    style: str,
    status: str = "",
    no_color: bool = False,
) -> str:
    """Build one full-screen frame; the last row is the status bar."""
    body_rows = max(1, rows - 1)
    out = ["\x1b[H"]
    for row in range(body_rows):
        index = top + row
        if index < len(lines):
            resource, text = lines[index]
            clipped = clip_text(text, columns)
            if index == cursor_line:
                out.append(f"{theme.reverse}{clipped.ljust(columns)}{theme.reset}")
            else:
                out.append(paint_line(resource, clipped, theme, style, no_color))
        out.append("\x1b[K\r\n")
    out.append(f"{theme.status_bar}{clip_text(status, columns)}{theme.reset}\x1b[K")
    return "".join(out)


def render_plain(lines: Sequence[ModelLine], theme: UITheme, style: str, no_color: bool = False) -> str:
    """Render the whole document for non-interactive output."""
    out: list[str] = []
    for resource, text in lines:
        safe = sanitize_terminal_text(text)
        out.append(paint_line(resource, safe, theme, style, no_color))
        out.append("\n")
    return "".join(out)
