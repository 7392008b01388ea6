"""Tests for cursor anchoring across re-renders.

Each case renders a snapshot, captures the cursor, swaps in the snapshot an
action would produce and checks where the cursor lands.
"""

from __future__ import annotations

import unittest

from lazystatus.changes import INDEX_MODIFIED, MODIFIED, Change, RepositorySnapshot
from lazystatus.cursor import CursorAnchor
from lazystatus.resource import STAGED, UNSTAGED, ChangeLine, DirectoryLine
from lazystatus.ui_model import LIST_VIEW, TREE_VIEW, StatusModel

ROOT = "/repo"


def _snapshot(unstaged: tuple[str, ...] = (), staged: tuple[str, ...] = ()) -> RepositorySnapshot:
    return RepositorySnapshot(
        root_path=ROOT,
        unstaged=tuple(Change(f"{ROOT}/{path}", MODIFIED) for path in unstaged),
        staged=tuple(Change(f"{ROOT}/{path}", INDEX_MODIFIED) for path in staged),
    )


class CursorTestCase(unittest.TestCase):
    view_style = LIST_VIEW

    def anchor_then_resolve(self, before: RepositorySnapshot, line: int, after: RepositorySnapshot) -> int:
        model = StatusModel(before)
        model.render(self.view_style)
        anchor = CursorAnchor()
        anchor.capture(line, model)
        model.set_snapshot(after)
        model.render(self.view_style)
        self.model = model
        return anchor.resolve(model, self.view_style)


class ListCursorTests(CursorTestCase):
    def test_staging_middle_entry_lands_on_next_entry(self) -> None:
        before = _snapshot(unstaged=("a.txt", "b.txt", "c.txt"))
        after = _snapshot(unstaged=("a.txt", "c.txt"), staged=("b.txt",))

        target = self.anchor_then_resolve(before, 6, after)

        self.assertEqual(target, 6)
        self.assertEqual(self.model.to_string_lines()[target], "M c.txt")

    def test_removing_last_entry_clamps_to_new_last_entry(self) -> None:
        before = _snapshot(unstaged=("a.txt", "b.txt", "c.txt"))
        after = _snapshot(unstaged=("a.txt", "b.txt"))

        self.assertEqual(self.anchor_then_resolve(before, 7, after), 6)

    def test_emptied_category_falls_back_to_next_section(self) -> None:
        before = _snapshot(unstaged=("b.txt",), staged=("x.txt",))
        after = _snapshot(staged=("b.txt", "x.txt"))

        target = self.anchor_then_resolve(before, 5, after)

        self.assertEqual(target, 5)
        self.assertEqual(self.model.to_string_lines()[4], "Staged (2):")

    def test_emptied_document_falls_back_past_top(self) -> None:
        before = _snapshot(unstaged=("b.txt",))
        after = _snapshot()

        target = self.anchor_then_resolve(before, 5, after)

        # Not clamped: the caller keeps it inside the document.
        self.assertEqual(target, 1)

    def test_header_anchor_lands_one_below_header(self) -> None:
        before = _snapshot(unstaged=("a.txt",), staged=("s.txt",))
        after = _snapshot(staged=("a.txt", "s.txt"))

        self.assertEqual(self.anchor_then_resolve(before, 7, after), 5)

    def test_diff_line_anchor_resolves_to_its_change(self) -> None:
        diff = "diff --git a/b.txt b/b.txt\n@@ -1 +1 @@\n-a\n+b\n"
        before = RepositorySnapshot(
            root_path=ROOT,
            unstaged=(Change(f"{ROOT}/a.txt", MODIFIED), Change(f"{ROOT}/b.txt", MODIFIED)),
            unstaged_diff_text=diff,
        )
        model = StatusModel(before)
        model.diff_model.open_inline_diff(f"{ROOT}/b.txt", UNSTAGED)
        model.render()
        anchor = CursorAnchor()
        anchor.capture(8, model)
        model.diff_model.close_inline_diff(f"{ROOT}/b.txt", UNSTAGED)
        model.render()

        self.assertEqual(anchor.resolve(model, LIST_VIEW), 6)

    def test_static_line_anchor_is_left_in_place(self) -> None:
        model = StatusModel(_snapshot(unstaged=("a.txt",)))
        model.render()
        anchor = CursorAnchor()
        anchor.capture(1, model)

        with self.assertLogs("lazystatus.cursor", level="ERROR"):
            self.assertEqual(anchor.resolve(model, LIST_VIEW), 1)


class FirstOpenCursorTests(unittest.TestCase):
    def test_defaults_to_first_item_line(self) -> None:
        model = StatusModel(_snapshot(unstaged=("a.txt",)))
        model.render()
        self.assertEqual(CursorAnchor().resolve(model, LIST_VIEW), 5)

    def test_short_document_defaults_to_top(self) -> None:
        model = StatusModel(_snapshot())
        model.render()
        self.assertEqual(CursorAnchor().resolve(model, LIST_VIEW), 0)

    def test_current_line_is_kept_when_inside_document(self) -> None:
        model = StatusModel(_snapshot(unstaged=("a.txt", "b.txt", "c.txt")))
        model.render()
        self.assertEqual(CursorAnchor().resolve(model, LIST_VIEW, current_line=7), 7)
        self.assertEqual(CursorAnchor().resolve(model, LIST_VIEW, current_line=40), 5)

    def test_capture_outside_document_clears_anchor(self) -> None:
        model = StatusModel(_snapshot(unstaged=("a.txt",)))
        model.render()
        anchor = CursorAnchor()

        with self.assertLogs("lazystatus.cursor", level="WARNING"):
            self.assertIsNone(anchor.capture(99, model))

        self.assertIsNone(anchor.resource)
        self.assertEqual(anchor.resolve(model, LIST_VIEW), 5)


class TreeCursorTests(CursorTestCase):
    view_style = TREE_VIEW

    def test_removed_file_lands_on_remaining_sibling(self) -> None:
        before = _snapshot(unstaged=("src/lib/x.py", "README.md", "src/main.py", "docs/guide.md", "src/lib/y.py"))
        after = _snapshot(unstaged=("README.md", "src/main.py", "docs/guide.md", "src/lib/y.py"))

        target = self.anchor_then_resolve(before, 7, after)

        self.assertEqual(self.model.to_string_lines()[target], "    M y.py")

    def test_file_still_listed_keeps_cursor_on_it(self) -> None:
        before = _snapshot(unstaged=("src/lib/x.py", "README.md", "src/main.py", "docs/guide.md", "src/lib/y.py"))
        after = _snapshot(unstaged=("src/lib/x.py", "README.md", "src/main.py", "src/lib/y.py"))

        target = self.anchor_then_resolve(before, 12, after)

        self.assertEqual(target, 10)
        self.assertEqual(self.model.to_string_lines()[target], "M README.md")

    def test_last_file_of_directory_lands_on_ancestor_directory(self) -> None:
        before = _snapshot(unstaged=("src/lib/x.py", "src/main.py"))
        after = _snapshot(unstaged=("src/main.py",))

        target = self.anchor_then_resolve(before, 7, after)

        self.assertEqual(target, 5)
        self.assertEqual(self.model.resource_at(target), DirectoryLine(path="src", category=UNSTAGED))

    def test_emptied_category_falls_back_to_offset(self) -> None:
        before = _snapshot(unstaged=("src/a.py",), staged=("z.py",))
        after = _snapshot(staged=("src/a.py", "z.py"))

        self.assertEqual(self.anchor_then_resolve(before, 6, after), 5)

    def test_removed_last_sibling_clamps_to_new_last_sibling(self) -> None:
        before = _snapshot(unstaged=("src/a.py", "src/b.py", "src/c.py"))
        after = _snapshot(unstaged=("src/a.py", "src/b.py"))

        target = self.anchor_then_resolve(before, 8, after)

        self.assertEqual(target, 7)
        self.assertEqual(self.model.to_string_lines()[target], "  M b.py")

    def test_directory_anchor_in_emptied_category_falls_back_to_offset(self) -> None:
        before = _snapshot(unstaged=("src/lib/x.py", "src/main.py"), staged=("z.py",))
        after = _snapshot(staged=("src/lib/x.py", "src/main.py", "z.py"))

        target = self.anchor_then_resolve(before, 5, after)

        self.assertEqual(target, 5)
        self.assertEqual(self.model.resource_at(target), DirectoryLine(path="src", category=STAGED))

    def test_directory_anchor_survives_collapse(self) -> None:
        model = StatusModel(_snapshot(unstaged=("src/lib/x.py", "src/main.py")))
        model.render(TREE_VIEW)
        anchor = CursorAnchor()
        anchor.capture(6, model)

        model.tree_model.toggle_directory("src/lib", UNSTAGED)
        model.render(TREE_VIEW)

        self.assertEqual(anchor.resolve(model, TREE_VIEW), 6)
        self.assertEqual(model.to_string_lines()[6], "  ▷ lib")

    def test_list_anchor_is_found_again_in_tree_view(self) -> None:
        model = StatusModel(_snapshot(unstaged=("src/a.py", "b.txt")))
        model.render(LIST_VIEW)
        anchor = CursorAnchor()
        anchor.capture(6, model)
        self.assertEqual(anchor.resource, ChangeLine(UNSTAGED, 1, 1, f"{ROOT}/b.txt"))

        model.render(TREE_VIEW)

        self.assertEqual(anchor.resolve(model, TREE_VIEW), 7)

    def test_staged_header_anchor(self) -> None:
        before = _snapshot(unstaged=("a.py",), staged=("b.py",))
        after = _snapshot(staged=("a.py", "b.py"))

        target = self.anchor_then_resolve(before, 7, after)

        self.assertEqual(target, self.model.offset_of(STAGED) + 1)


if __name__ == "__main__":
    unittest.main()
