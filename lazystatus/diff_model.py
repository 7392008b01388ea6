"""Unified-diff parsing and inline diff injection.

``parse_unified_diff`` turns ``git diff`` output into per-file hunk texts.
``DiffModel`` remembers which files the user opened inline and splices their
hunk lines into a rendered line sequence right after the owning change line.
"""

from __future__ import annotations

import logging
import posixpath
import re

from .changes import RepositorySnapshot
from .resource import (
    DIFF_CATEGORIES,
    STAGED,
    UNSTAGED,
    DiffLine,
    ModelLine,
    is_change_line,
)

logger = logging.getLogger(__name__)

FILE_DIFF_MARKER = "diff --git"
SECTION_MARKER = "diff "
HUNK_MARKER = "@@"

_FILE_HEADER_RE = re.compile(r"^diff --git a/(.+?) b/(.+)$")
_OCTAL_RE = re.compile(r"[0-7]{1,3}")

_C_ESCAPES: dict[str, int] = {
    "a": 0x07,
    "b": 0x08,
    "t": 0x09,
    "n": 0x0A,
    "v": 0x0B,
    "f": 0x0C,
    "r": 0x0D,
    '"': 0x22,
    "\\": 0x5C,
}


def _read_quoted(text: str) -> tuple[str, str] | None:
    """Decode a C-style quoted path at the start of ``text``.

    Returns the decoded path and whatever follows the closing quote. Octal
    escapes are raw bytes of the UTF-8 encoded name.
    """
    if not text.startswith('"'):
        return None
    out = bytearray()
    index = 1
    while index < len(text):
        ch = text[index]
        if ch == '"':
            return out.decode("utf-8", errors="replace"), text[index + 1 :]
        if ch != "\\" or index + 1 >= len(text):
            out.extend(ch.encode("utf-8"))
            index += 1
            continue
        escaped = text[index + 1]
        octal = _OCTAL_RE.match(text, index + 1)
        if octal is not None:
            out.append(int(octal.group(0), 8) & 0xFF)
            index = octal.end()
        elif escaped in _C_ESCAPES:
            out.append(_C_ESCAPES[escaped])
            index += 2
        else:
            out.extend(escaped.encode("utf-8"))
            index += 2
    return None


def _quoted_target_path(rest: str) -> str | None:
    """Return the ``b/`` side of a header where git quoted one or both paths."""
    if rest.startswith('"'):
        first = _read_quoted(rest)
        if first is None:
            return None
        second = first[1].lstrip(" ")
        quoted = _read_quoted(second)
        target = quoted[0] if quoted is not None else second
    else:
        split = rest.rfind(' "b/')
        if split == -1:
            return None
        quoted = _read_quoted(rest[split + 1 :])
        if quoted is None:
            return None
        target = quoted[0]
    return target[2:] if target.startswith("b/") else None


def _diff_target_path(header_line: str) -> str | None:
    """Return the ``b/`` side path of a ``diff --git`` header line.

    Unrenamed files repeat the same path on both sides, so the header is split
    in half first; that keeps paths containing `` b/`` intact. Names git
    had to quote are unescaped.
    """
    rest = header_line[len(FILE_DIFF_MARKER) + 1 :]
    if '"' in rest:
        target = _quoted_target_path(rest)
        if target is not None:
            return target
    size = len(rest)
    if size % 2 == 1:
        middle = size // 2
        left, right = rest[:middle], rest[middle + 1 :]
        if rest[middle] == " " and left.startswith("a/") and right.startswith("b/") and left[2:] == right[2:]:
            return right[2:]
    match = _FILE_HEADER_RE.match(header_line)
    if match is None:
        return None
    return match.group(2)


def parse_unified_diff(diff_text: str, root_path: str) -> dict[str, list[str]]:
    """Parse unified diff text into ``absolute path -> hunk texts``.

    Each hunk text starts with its ``@@`` header line and joins the following
    body lines with ``\\n``. Preamble lines before a file's first hunk are
    dropped, as is the trailing empty line git prints at the end. Sections
    whose header is not a parsable ``diff --git`` line are skipped whole.
    """
    lines = diff_text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()

    result: dict[str, list[str]] = {}
    current_path = ""
    hunk_count = -1
    for line in lines:
        if line.startswith(SECTION_MARKER):
            # Combined (--cc) sections of conflicted files carry no inline diff.
            target = _diff_target_path(line) if line.startswith(FILE_DIFF_MARKER) else None
            if target is None:
                logger.debug("skipping diff section %r", line)
            current_path = posixpath.join(root_path, target) if target else ""
            hunk_count = -1
            continue
        if line.startswith(HUNK_MARKER):
            hunk_count += 1
        if hunk_count < 0 or not current_path:
            continue

        hunks = result.setdefault(current_path, [])
        if len(hunks) > hunk_count:
            hunks[hunk_count] = hunks[hunk_count] + "\n" + line
        else:
            hunks.append(line)
    return result


def _check_category(category: str) -> None:
    if category not in DIFF_CATEGORIES:
        raise ValueError(f"Inline diffs are not available for category: {category}")


class DiffModel:
    """Parsed diff text plus the per-category set of inline-opened files."""

    def __init__(self) -> None:
        self._opened: dict[str, set[str]] = {UNSTAGED: set(), STAGED: set()}
        self._diffs: dict[str, dict[str, list[str]]] = {UNSTAGED: {}, STAGED: {}}

    def clear(self) -> None:
        """Forget every opened inline diff (fresh document open)."""
        for opened in self._opened.values():
            opened.clear()

    def opened(self, category: str) -> frozenset[str]:
        _check_category(category)
        return frozenset(self._opened[category])

    def is_open(self, path: str, category: str) -> bool:
        _check_category(category)
        return path in self._opened[category]

    def open_inline_diff(self, path: str, category: str) -> None:
        _check_category(category)
        self._opened[category].add(path)

    def close_inline_diff(self, path: str, category: str) -> None:
        _check_category(category)
        self._opened[category].discard(path)

    def toggle_inline_diff(self, path: str, category: str) -> bool:
        """Flip whether ``path`` renders inline; returns the new state."""
        _check_category(category)
        opened = self._opened[category]
        if path in opened:
            opened.remove(path)
            return False
        opened.add(path)
        return True

    def hunks(self, path: str, category: str) -> list[str]:
        _check_category(category)
        return list(self._diffs[category].get(path, []))

    def update(self, category: str, raw_text: str, root_path: str) -> None:
        """Replace parsed diffs for ``category`` and evict paths that left the diff."""
        _check_category(category)
        diff_map = parse_unified_diff(raw_text, root_path)
        self._diffs[category] = diff_map
        stale = [path for path in self._opened[category] if path not in diff_map]
        for path in stale:
            logger.debug("evicting opened %s diff for %s", category, path)
            self._opened[category].discard(path)

    def update_from_snapshot(self, snapshot: RepositorySnapshot) -> None:
        for category in DIFF_CATEGORIES:
            self.update(category, snapshot.raw_diff_text(category), snapshot.root_path)

    def _opened_diffs(self, category: str) -> list[tuple[str, list[str]]]:
        """Opened files with parsed hunks, in diff-text order."""
        opened = self._opened[category]
        return [(path, hunks) for path, hunks in self._diffs[category].items() if path in opened]

    def diff_lines(
        self,
        path: str,
        category: str,
        change_index: int,
        list_index: int,
    ) -> list[ModelLine]:
        """Build one line per physical hunk line for an opened file."""
        lines: list[ModelLine] = []
        for hunk_index, hunk in enumerate(self._diffs[category].get(path, [])):
            for hunk_line_index, text in enumerate(hunk.split("\n")):
                resource = DiffLine(
                    category=category,
                    change_index=change_index,
                    hunk_index=hunk_index,
                    hunk_line_index=hunk_line_index,
                    list_index=list_index,
                    path=path,
                )
                lines.append((resource, text))
        return lines

    def inject_into(self, model: list[ModelLine], category: str, snapshot: RepositorySnapshot) -> None:
        """Splice opened hunk lines into ``model`` in place."""
        _check_category(category)
        for path, _hunks in self._opened_diffs(category):
            change_index = snapshot.find_change_index(path, category)
            if change_index is None:
                logger.error("Could not find change index of diff: %s", path)
                continue
            insert_at = -1
            for index, (resource, _text) in enumerate(model):
                if (
                    is_change_line(resource)
                    and resource.category == category
                    and resource.change_index == change_index
                ):
                    insert_at = index
                    break
            if insert_at == -1:
                # Collapsed tree directories hide the change line.
                logger.debug("Could not find change of diff: %s", path)
                continue
            parent = model[insert_at][0]
            model[insert_at + 1 : insert_at + 1] = self.diff_lines(
                path,
                category,
                change_index,
                parent.list_index,
            )

    def inject_diffs(self, model: list[ModelLine], snapshot: RepositorySnapshot) -> list[ModelLine]:
        """Return a copy of ``model`` with every opened diff injected."""
        new_model = list(model)
        for category in DIFF_CATEGORIES:
            self.inject_into(new_model, category, snapshot)
        return new_model
