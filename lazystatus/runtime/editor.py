"""External programs launched from the pager.

Both helpers leave raw/alternate-screen mode while the program runs and
return an error message string instead of raising.
"""

from __future__ import annotations

import os
import shlex
import subprocess
from collections.abc import Callable


def launch_editor(
    target: str,
    disable_tui_mode: Callable[[], None],
    enable_tui_mode: Callable[[], None],
) -> str | None:
    editor_env = os.environ.get("EDITOR", "").strip()
    if not editor_env:
        return "Cannot edit: $EDITOR is not set."
    cmd = shlex.split(editor_env)
    if not cmd:
        return "Cannot edit: $EDITOR is empty."

    disable_tui_mode()
    try:
        subprocess.run([*cmd, target], check=False)
    except OSError as exc:
        return f"Failed to launch editor: {exc}"
    finally:
        enable_tui_mode()
    return None


def show_commit(
    repo_root: str,
    commit_hash: str,
    disable_tui_mode: Callable[[], None],
    enable_tui_mode: Callable[[], None],
) -> str | None:
    """Run ``git show`` for ``commit_hash`` through git's own pager."""
    disable_tui_mode()
    try:
        subprocess.run(["git", "-C", repo_root, "show", commit_hash], check=False)
    except OSError as exc:
        return f"Failed to run git show: {exc}"
    finally:
        enable_tui_mode()
    return None
