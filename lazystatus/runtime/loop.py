"""Interactive status pager loop.

Wires key dispatch to ``StatusSession`` actions and redraws after every key.
Mutating actions run synchronously, so their change notification is
delivered right after the action returns.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass

from ..resource import HELP_LINE, KIND_UNPUSHED
from ..session import SessionResult, StatusSession
from ..ui_theme import resolve_theme
from .editor import launch_editor, show_commit
from .input import read_key
from .keys import StatusKeyActions, build_status_keymap, help_lines
from .render import render_frame, scroll_top
from .terminal import TerminalController

logger = logging.getLogger(__name__)


@dataclass
class PagerState:
    """Mutable view state that is not part of the status document."""

    top: int = 0
    message: str = ""
    show_help: bool = False
    running: bool = True


def _idle_status(session: StatusSession) -> str:
    section = session.model.category_for_line(session.cursor_line)
    where = f"  {section}" if section else ""
    return f"{session.view_style} view{where}  (g h for help)"


def run_status_pager(
    session: StatusSession,
    style: str,
    no_color: bool = False,
    stdin_fd: int | None = None,
    stdout_fd: int | None = None,
) -> None:
    """Run the interactive pager until the user quits or input ends."""
    if stdin_fd is None:
        stdin_fd = sys.stdin.fileno()
    if stdout_fd is None:
        stdout_fd = sys.stdout.fileno()
    terminal = TerminalController(stdin_fd, stdout_fd)
    theme = resolve_theme(no_color=no_color)
    state = PagerState()

    def body_rows() -> int:
        return max(1, terminal.size()[1] - 1)

    def report(result: SessionResult) -> None:
        if result.changed:
            session.notify_repository_changed()
        state.message = result.message

    def confirm(question: str) -> bool:
        columns, rows = terminal.size()
        terminal.write(f"\x1b[{rows};1H{question[: max(0, columns - 6)]} [y/N]\x1b[K")
        return read_key(stdin_fd) in {"y", "Y"}

    def open_target() -> None:
        resource = session.current_resource()
        result = session.open_target()
        if result.target is None:
            state.message = result.message
            return
        if resource is not None and resource.kind == KIND_UNPUSHED:
            error = show_commit(session.snapshot.root_path, result.target, terminal.disable_tui_mode, terminal.enable_tui_mode)
        else:
            error = launch_editor(result.target, terminal.disable_tui_mode, terminal.enable_tui_mode)
        state.message = error or ""
        terminal.write("\x1b[2J")
        session.refresh()

    def quit_pager() -> None:
        state.running = False

    def toggle_help() -> None:
        state.show_help = not state.show_help

    keymap = build_status_keymap(
        StatusKeyActions(
            move_down=session.go_down,
            move_up=session.go_up,
            page_down=lambda: session.move_cursor(session.cursor_line + body_rows() // 2),
            page_up=lambda: session.move_cursor(session.cursor_line - body_rows() // 2),
            go_top=session.go_top,
            go_bottom=lambda: session.move_cursor(session.model.length() - 1),
            go_staged=session.go_staged,
            go_untracked=lambda: session.go_unstaged(False),
            go_unstaged=lambda: session.go_unstaged(True),
            go_unpushed=session.go_unpushed,
            next_hunk=session.go_next_hunk,
            previous_hunk=session.go_previous_hunk,
            stage=lambda: report(session.stage(confirm)),
            unstage=lambda: report(session.unstage()),
            toggle=lambda: report(session.toggle(confirm)),
            clean=lambda: report(session.clean(confirm)),
            exclude=lambda: report(session.git_exclude(False)),
            ignore=lambda: report(session.git_exclude(True)),
            toggle_inline_diff=lambda: report(session.toggle_inline_diff()),
            toggle_directory=lambda: report(session.toggle_directory()),
            toggle_view=lambda: report(session.toggle_view()),
            open_target=open_target,
            refresh=session.refresh,
            toggle_help=toggle_help,
            quit=quit_pager,
        )
    )
    help_model = [(HELP_LINE, line) for line in help_lines(keymap)]

    with terminal.raw_mode():
        terminal.write("\x1b[2J")
        while state.running:
            columns, rows = terminal.size()
            if state.show_help:
                frame = render_frame(help_model, -1, 0, columns, rows, theme, style, "press any key", no_color)
            else:
                lines = session.model.lines()
                state.top = scroll_top(session.cursor_line, state.top, rows - 1, len(lines))
                status = state.message or keymap.pending or _idle_status(session)
                frame = render_frame(lines, session.cursor_line, state.top, columns, rows, theme, style, status, no_color)
            terminal.write(frame)

            key = read_key(stdin_fd)
            if not key:
                break
            if state.show_help:
                state.show_help = False
                continue
            state.message = ""
            if keymap.dispatch(key) is None:
                logger.debug("unbound key %r", key)
