"""Git-backed change source.

Reads repository state with plain ``git`` subprocess calls into a
``RepositorySnapshot`` and provides the small amount of mutating glue the
interactive runtime needs (stage, unstage, discard, ignore-file entries).
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path

from .changes import (
    ADDED_BY_THEM,
    ADDED_BY_US,
    BOTH_ADDED,
    BOTH_DELETED,
    BOTH_MODIFIED,
    DELETED,
    DELETED_BY_THEM,
    DELETED_BY_US,
    INDEX_ADDED,
    INDEX_COPIED,
    INDEX_DELETED,
    INDEX_MODIFIED,
    INDEX_RENAMED,
    INDEX_TYPE_CHANGED,
    INTENT_TO_ADD,
    MODIFIED,
    TYPE_CHANGED,
    UNTRACKED_STATUS,
    Change,
    Commit,
    HeadInfo,
    RepositorySnapshot,
)

logger = logging.getLogger(__name__)

GIT_TIMEOUT_SECONDS = 5.0
UNPUSHED_MAX_ENTRIES = 50

_UNMERGED_STATUSES: dict[str, str] = {
    "DD": BOTH_DELETED,
    "AU": ADDED_BY_US,
    "UD": DELETED_BY_THEM,
    "UA": ADDED_BY_THEM,
    "DU": DELETED_BY_US,
    "AA": BOTH_ADDED,
    "UU": BOTH_MODIFIED,
}
_INDEX_STATUSES: dict[str, str] = {
    "M": INDEX_MODIFIED,
    "A": INDEX_ADDED,
    "D": INDEX_DELETED,
    "R": INDEX_RENAMED,
    "C": INDEX_COPIED,
    "T": INDEX_TYPE_CHANGED,
}
_WORKTREE_STATUSES: dict[str, str] = {
    "M": MODIFIED,
    "D": DELETED,
    "T": TYPE_CHANGED,
    "A": INTENT_TO_ADD,
}

_COMMIT_FIELD_SEP = "\x1f"
_COMMIT_RECORD_SEP = "\x1e"

# Keeps non-ASCII names literal in diff headers.
_UNQUOTED_PATHS = ("-c", "core.quotePath=false")


class GitCommandError(RuntimeError):
    """A mutating git command exited non-zero."""

    def __init__(self, args: Sequence[str], stderr: str) -> None:
        self.command = list(args)
        self.stderr = stderr
        detail = stderr.strip() or "no error output"
        super().__init__(f"git {' '.join(self.command)} failed: {detail}")


def _run_git(repo_root: str | Path, args: list[str], timeout_seconds: float) -> subprocess.CompletedProcess[str] | None:
    try:
        return subprocess.run(
            ["git", "-C", str(repo_root), *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=timeout_seconds,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("git %s could not run: %s", " ".join(args), exc)
        return None


def _git_output(repo_root: str | Path, args: list[str], timeout_seconds: float) -> str | None:
    """Return stdout of a successful command, ``None`` otherwise."""
    proc = _run_git(repo_root, args, timeout_seconds)
    if proc is None or proc.returncode != 0:
        return None
    return proc.stdout


def discover_repository_root(path: str | Path, timeout_seconds: float = GIT_TIMEOUT_SECONDS) -> str | None:
    """Return the work-tree root containing ``path`` as a posix path."""
    output = _git_output(path, ["rev-parse", "--show-toplevel"], timeout_seconds)
    if output is None or not output.strip():
        return None
    return Path(output.strip()).resolve().as_posix()


def iter_porcelain_records(output: str) -> list[tuple[str, str, str]]:
    """Split ``status --porcelain=v1 -z`` output into ``(XY, path, source path)``.

    Renamed and copied entries carry an extra token with the source path; for
    every other entry the source path is empty.
    """
    records: list[tuple[str, str, str]] = []
    tokens = output.split("\0")
    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1
        if not token:
            continue
        if len(token) < 4 or token[2] != " ":
            logger.debug("skipping malformed porcelain record %r", token)
            continue

        status = token[:2]
        source = ""
        if "R" in status or "C" in status:
            source = tokens[index] if index < len(tokens) else ""
            index += 1
        records.append((status, token[3:], source))
    return records


def categorize_status(
    output: str,
    root_path: str,
) -> tuple[tuple[Change, ...], tuple[Change, ...], tuple[Change, ...], tuple[Change, ...]]:
    """Return ``(merge, untracked, unstaged, staged)`` changes from porcelain output."""
    merge: list[Change] = []
    untracked: list[Change] = []
    unstaged: list[Change] = []
    staged: list[Change] = []

    def absolute(relative: str) -> str:
        return f"{root_path}/{relative}"

    for xy, path, source in iter_porcelain_records(output):
        if xy == "??":
            untracked.append(Change(absolute(path), UNTRACKED_STATUS))
            continue
        if xy == "!!":
            continue
        if xy in _UNMERGED_STATUSES:
            merge.append(Change(absolute(path), _UNMERGED_STATUSES[xy]))
            continue

        index_status, worktree_status = xy[0], xy[1]
        if index_status in _INDEX_STATUSES:
            original = absolute(source) if source else ""
            staged.append(Change(absolute(path), _INDEX_STATUSES[index_status], original))
        if worktree_status in _WORKTREE_STATUSES:
            unstaged.append(Change(absolute(path), _WORKTREE_STATUSES[worktree_status]))
    return tuple(merge), tuple(untracked), tuple(unstaged), tuple(staged)


def parse_commit_log(output: str) -> tuple[Commit, ...]:
    commits: list[Commit] = []
    for record in output.split(_COMMIT_RECORD_SEP):
        record = record.strip("\n")
        if not record:
            continue
        commit_hash, _sep, message = record.partition(_COMMIT_FIELD_SEP)
        commits.append(Commit(commit_hash.strip(), message.strip("\n")))
    return tuple(commits)


class GitChangeSource:
    """Change source for one work tree, backed by the ``git`` executable."""

    def __init__(self, root_path: str | Path, timeout_seconds: float = GIT_TIMEOUT_SECONDS) -> None:
        self.root_path = Path(root_path).resolve().as_posix()
        self.timeout_seconds = timeout_seconds

    def _output(self, args: list[str]) -> str | None:
        return _git_output(self.root_path, args, self.timeout_seconds)

    def _first_line(self, args: list[str]) -> str | None:
        output = self._output(args)
        if output is None:
            return None
        lines = [line.strip() for line in output.splitlines() if line.strip()]
        return lines[0] if lines else None

    def _rebase_commit(self) -> str | None:
        commit = self._first_line(["rev-parse", "-q", "--verify", "REBASE_HEAD"])
        if commit:
            return commit
        git_dir = self._first_line(["rev-parse", "--absolute-git-dir"])
        if git_dir is None:
            return None
        orig_head = Path(git_dir) / "rebase-merge" / "orig-head"
        try:
            return orig_head.read_text(encoding="utf-8").strip() or None
        except OSError:
            return None

    def load_head(self) -> tuple[HeadInfo, str | None]:
        """Return branch state and the upstream ref name, if any."""
        name = self._first_line(["symbolic-ref", "--short", "-q", "HEAD"])
        commit = self._first_line(["rev-parse", "-q", "--verify", "HEAD"])
        upstream = self._first_line(["rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{upstream}"])
        remote = self._first_line(["remote"])
        head = HeadInfo(
            name=name,
            commit=commit,
            rebase_commit=self._rebase_commit(),
            remote=remote,
            has_upstream=upstream is not None,
        )
        return head, upstream

    def load_unpushed(self, upstream: str | None) -> tuple[Commit, ...]:
        if upstream is None:
            return ()
        output = self._output(
            [
                "log",
                f"--max-count={UNPUSHED_MAX_ENTRIES}",
                f"--format=%H{_COMMIT_FIELD_SEP}%B{_COMMIT_RECORD_SEP}",
                f"{upstream}..HEAD",
            ]
        )
        return parse_commit_log(output or "")

    def load_snapshot(self) -> RepositorySnapshot:
        """Capture the full repository state in one pass."""
        status_output = self._output(["status", "--porcelain=v1", "-z", "--untracked-files=all"])
        if status_output is None:
            logger.warning("git status failed in %s", self.root_path)
        merge, untracked, unstaged, staged = categorize_status(status_output or "", self.root_path)
        head, upstream = self.load_head()
        snapshot = RepositorySnapshot(
            root_path=self.root_path,
            head=head,
            merge=merge,
            untracked=untracked,
            unstaged=unstaged,
            staged=staged,
            unpushed=self.load_unpushed(upstream),
            unstaged_diff_text=self._output([*_UNQUOTED_PATHS, "diff", "--no-color", "--no-ext-diff"]) or "",
            staged_diff_text=self._output([*_UNQUOTED_PATHS, "diff", "--cached", "--no-color", "--no-ext-diff"]) or "",
        )
        logger.debug(
            "snapshot %s: %d merge, %d untracked, %d unstaged, %d staged, %d unpushed",
            self.root_path,
            len(merge),
            len(untracked),
            len(unstaged),
            len(staged),
            len(snapshot.unpushed),
        )
        return snapshot

    def _relative_paths(self, changes: Sequence[Change]) -> list[str]:
        paths: list[str] = []
        for change in changes:
            for path in (change.original_path, change.path):
                relative = Path(path).relative_to(self.root_path).as_posix()
                if relative not in paths:
                    paths.append(relative)
        return paths

    def _run_checked(self, args: list[str]) -> None:
        try:
            proc = subprocess.run(
                ["git", "-C", self.root_path, *args],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False,
                timeout=self.timeout_seconds,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            raise GitCommandError(args, str(exc)) from exc
        if proc.returncode != 0:
            raise GitCommandError(args, proc.stderr)
        logger.debug("git %s", " ".join(args))

    def stage(self, changes: Sequence[Change]) -> None:
        if changes:
            self._run_checked(["add", "-A", "--", *self._relative_paths(changes)])

    def unstage(self, changes: Sequence[Change]) -> None:
        if not changes:
            return
        paths = self._relative_paths(changes)
        if self._first_line(["rev-parse", "-q", "--verify", "HEAD"]) is None:
            self._run_checked(["rm", "--cached", "-q", "-r", "--", *paths])
        else:
            self._run_checked(["reset", "-q", "HEAD", "--", *paths])

    def clean(self, changes: Sequence[Change]) -> None:
        """Discard worktree changes; untracked files are deleted."""
        tracked = [change for change in changes if change.status != UNTRACKED_STATUS]
        for change in changes:
            if change.status != UNTRACKED_STATUS:
                continue
            try:
                Path(change.path).unlink()
            except FileNotFoundError:
                logger.debug("clean: %s already gone", change.path)
            except OSError as exc:
                raise GitCommandError(["clean", change.path], str(exc)) from exc
        if tracked:
            self._run_checked(["checkout", "--", *self._relative_paths(tracked)])

    def _exclude_file(self, git_ignore: bool) -> Path:
        if git_ignore:
            return Path(self.root_path) / ".gitignore"
        location = self._first_line(["rev-parse", "--git-path", "info/exclude"])
        if location is None:
            return Path(self.root_path) / ".git" / "info" / "exclude"
        return Path(self.root_path) / location

    def exclude(self, pattern: str, git_ignore: bool = False) -> Path:
        """Append ``pattern`` to ``.gitignore`` or the repository's ``info/exclude``.

        Returns the file that was written.
        """
        target = self._exclude_file(git_ignore)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            existing = target.read_text(encoding="utf-8") if target.exists() else ""
            separator = "\n" if existing and not existing.endswith("\n") else ""
            target.write_text(f"{existing}{separator}{pattern}\n", encoding="utf-8")
        except OSError as exc:
            raise GitCommandError(["exclude", pattern], str(exc)) from exc
        logger.debug("excluded %s via %s", pattern, target)
        return target
