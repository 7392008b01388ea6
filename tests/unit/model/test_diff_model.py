"""Tests for unified-diff parsing and inline diff injection.

Covers hunk splitting, path extraction from ``diff --git`` headers and the
placement of opened hunk lines right after their change line.
"""

from __future__ import annotations

import unittest

from lazystatus.changes import MODIFIED, Change, RepositorySnapshot
from lazystatus.diff_model import DiffModel, parse_unified_diff
from lazystatus.resource import KIND_DIFF, STAGED, UNSTAGED, UNTRACKED
from lazystatus.ui_model import StatusModel

ROOT = "/repo"

TWO_FILE_DIFF = (
    "diff --git a/a.txt b/a.txt\n"
    "index 1111111..2222222 100644\n"
    "--- a/a.txt\n"
    "+++ b/a.txt\n"
    "@@ -1,2 +1,2 @@\n"
    "-old\n"
    "+new\n"
    " same\n"
    "@@ -10,1 +10,2 @@\n"
    " ctx\n"
    "+added\n"
    "diff --git a/src/b.py b/src/b.py\n"
    "index 3333333..4444444 100644\n"
    "--- a/src/b.py\n"
    "+++ b/src/b.py\n"
    "@@ -1 +1 @@\n"
    "-x = 1\n"
    "+x = 2\n"
    "@@ -5,0 +6,1 @@\n"
    "+y = 3\n"
)


def _snapshot(unstaged_diff: str = TWO_FILE_DIFF, unstaged: tuple[str, ...] = ("a.txt", "src/b.py")) -> RepositorySnapshot:
    return RepositorySnapshot(
        root_path=ROOT,
        unstaged=tuple(Change(f"{ROOT}/{path}", MODIFIED) for path in unstaged),
        unstaged_diff_text=unstaged_diff,
    )


class ParseUnifiedDiffTests(unittest.TestCase):
    def test_two_files_with_two_hunks_each(self) -> None:
        parsed = parse_unified_diff(TWO_FILE_DIFF, ROOT)

        self.assertEqual(list(parsed), [f"{ROOT}/a.txt", f"{ROOT}/src/b.py"])
        a_hunks = parsed[f"{ROOT}/a.txt"]
        b_hunks = parsed[f"{ROOT}/src/b.py"]
        self.assertEqual(len(a_hunks), 2)
        self.assertEqual(len(b_hunks), 2)
        self.assertEqual(a_hunks[0], "@@ -1,2 +1,2 @@\n-old\n+new\n same")
        self.assertEqual(a_hunks[1], "@@ -10,1 +10,2 @@\n ctx\n+added")
        self.assertEqual([len(hunk.split("\n")) for hunk in b_hunks], [3, 2])

    def test_trailing_newline_does_not_add_empty_hunk_line(self) -> None:
        parsed = parse_unified_diff(TWO_FILE_DIFF, ROOT)
        self.assertFalse(parsed[f"{ROOT}/src/b.py"][-1].endswith("\n"))
        self.assertEqual(parsed[f"{ROOT}/src/b.py"][-1], "@@ -5,0 +6,1 @@\n+y = 3")

    def test_empty_text_yields_empty_mapping(self) -> None:
        self.assertEqual(parse_unified_diff("", ROOT), {})

    def test_path_with_spaces_is_kept_whole(self) -> None:
        text = "diff --git a/my b/file.txt b/my b/file.txt\n@@ -1 +1 @@\n-a\n+b\n"
        parsed = parse_unified_diff(text, ROOT)
        self.assertEqual(list(parsed), [f"{ROOT}/my b/file.txt"])

    def test_renamed_file_uses_new_path(self) -> None:
        text = "diff --git a/old.txt b/new.txt\nsimilarity index 90%\n@@ -1 +1 @@\n-a\n+b\n"
        parsed = parse_unified_diff(text, ROOT)
        self.assertEqual(list(parsed), [f"{ROOT}/new.txt"])

    def test_file_without_hunks_is_omitted(self) -> None:
        text = "diff --git a/bin.dat b/bin.dat\nBinary files a/bin.dat and b/bin.dat differ\n"
        self.assertEqual(parse_unified_diff(text, ROOT), {})

    def test_combined_conflict_section_does_not_leak_into_previous_file(self) -> None:
        text = (
            "diff --git a/a.txt b/a.txt\n"
            "@@ -1 +1 @@\n"
            "-a\n"
            "+b\n"
            "diff --cc c.txt\n"
            "index 1,2..3\n"
            "--- a/c.txt\n"
            "+++ b/c.txt\n"
            "@@@ -1,1 -1,1 +1,5 @@@\n"
            "++<<<<<<< HEAD\n"
            "diff --git a/d.txt b/d.txt\n"
            "@@ -2 +2 @@\n"
            "-x\n"
            "+y\n"
        )

        parsed = parse_unified_diff(text, ROOT)

        self.assertEqual(parsed[f"{ROOT}/a.txt"], ["@@ -1 +1 @@\n-a\n+b"])
        self.assertEqual(parsed[f"{ROOT}/d.txt"], ["@@ -2 +2 @@\n-x\n+y"])
        self.assertNotIn(f"{ROOT}/c.txt", parsed)

    def test_quoted_non_ascii_path_is_unescaped(self) -> None:
        text = 'diff --git "a/na\\303\\257ve.txt" "b/na\\303\\257ve.txt"\n@@ -1 +1 @@\n-a\n+b\n'
        self.assertEqual(list(parse_unified_diff(text, ROOT)), [f"{ROOT}/naïve.txt"])

    def test_quoted_path_with_escaped_tab_and_quote(self) -> None:
        text = 'diff --git "a/t\\tx\\"y.txt" "b/t\\tx\\"y.txt"\n@@ -1 +1 @@\n-a\n+b\n'
        self.assertEqual(list(parse_unified_diff(text, ROOT)), [f'{ROOT}/t\tx"y.txt'])

    def test_rename_to_quoted_path_uses_new_name(self) -> None:
        text = 'diff --git a/plain.txt "b/caf\\303\\251 \\\\ menu.txt"\nsimilarity index 90%\n@@ -1 +1 @@\n-a\n+b\n'
        self.assertEqual(list(parse_unified_diff(text, ROOT)), [f"{ROOT}/café \\ menu.txt"])


class DiffModelStateTests(unittest.TestCase):
    def test_toggle_flips_membership(self) -> None:
        model = DiffModel()
        self.assertTrue(model.toggle_inline_diff("/repo/a.txt", UNSTAGED))
        self.assertTrue(model.is_open("/repo/a.txt", UNSTAGED))
        self.assertFalse(model.is_open("/repo/a.txt", STAGED))
        self.assertFalse(model.toggle_inline_diff("/repo/a.txt", UNSTAGED))
        self.assertEqual(model.opened(UNSTAGED), frozenset())

    def test_non_diff_category_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            DiffModel().toggle_inline_diff("/repo/a.txt", UNTRACKED)

    def test_update_evicts_paths_missing_from_new_diff(self) -> None:
        model = DiffModel()
        model.update(UNSTAGED, TWO_FILE_DIFF, ROOT)
        model.open_inline_diff(f"{ROOT}/a.txt", UNSTAGED)
        model.open_inline_diff(f"{ROOT}/src/b.py", UNSTAGED)

        only_b = TWO_FILE_DIFF[TWO_FILE_DIFF.index("diff --git a/src/b.py") :]
        model.update(UNSTAGED, only_b, ROOT)

        self.assertEqual(model.opened(UNSTAGED), frozenset({f"{ROOT}/src/b.py"}))
        self.assertEqual(model.hunks(f"{ROOT}/a.txt", UNSTAGED), [])

    def test_clear_forgets_opened_diffs(self) -> None:
        model = DiffModel()
        model.open_inline_diff(f"{ROOT}/a.txt", UNSTAGED)
        model.open_inline_diff(f"{ROOT}/a.txt", STAGED)
        model.clear()
        self.assertEqual(model.opened(UNSTAGED), frozenset())
        self.assertEqual(model.opened(STAGED), frozenset())


class DiffInjectionTests(unittest.TestCase):
    def test_opened_hunks_follow_their_change_line_in_order(self) -> None:
        status = StatusModel(_snapshot())
        status.diff_model.toggle_inline_diff(f"{ROOT}/a.txt", UNSTAGED)
        lines = status.render()

        self.assertEqual(lines[5][1], "M a.txt")
        diff_lines = [(resource, text) for resource, text in lines if resource.kind == KIND_DIFF]
        self.assertEqual(len(diff_lines), 7)
        self.assertEqual([resource for resource, _text in lines[6:13]], [resource for resource, _text in diff_lines])
        self.assertEqual(
            [(resource.hunk_index, resource.hunk_line_index) for resource, _text in diff_lines],
            [(0, 0), (0, 1), (0, 2), (0, 3), (1, 0), (1, 1), (1, 2)],
        )
        self.assertEqual(lines[6][1], "@@ -1,2 +1,2 @@")
        self.assertEqual(lines[13][1], "M src/b.py")
        self.assertTrue(all(resource.change_index == 0 for resource, _text in diff_lines))

    def test_injection_count_matches_parsed_hunk_lines(self) -> None:
        status = StatusModel(_snapshot())
        path = f"{ROOT}/src/b.py"
        status.diff_model.toggle_inline_diff(path, UNSTAGED)
        lines = status.render()

        expected = sum(len(hunk.split("\n")) for hunk in status.diff_model.hunks(path, UNSTAGED))
        injected = [resource for resource, _text in lines if resource.kind == KIND_DIFF]
        self.assertEqual(len(injected), expected)
        self.assertTrue(all(resource.path == path and resource.change_index == 1 for resource in injected))

    def test_diff_for_unlisted_file_is_skipped_with_error_log(self) -> None:
        status = StatusModel(_snapshot(unstaged=("src/b.py",)))
        status.diff_model.open_inline_diff(f"{ROOT}/a.txt", UNSTAGED)

        with self.assertLogs("lazystatus.diff_model", level="ERROR"):
            lines = status.render()

        self.assertFalse(any(resource.kind == KIND_DIFF for resource, _text in lines))

    def test_inject_diffs_returns_new_list(self) -> None:
        status = StatusModel(_snapshot())
        status.render()
        base = list(status.lines())
        status.diff_model.toggle_inline_diff(f"{ROOT}/a.txt", UNSTAGED)

        injected = status.diff_model.inject_diffs(base, status.snapshot)

        self.assertEqual(len(base), 7)
        self.assertEqual(len(injected), 14)


if __name__ == "__main__":
    unittest.main()
