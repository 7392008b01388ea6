"""Command-line front door for lazystatus.

Parses CLI options, locates the repository and builds the status session.
Then either prints the document once or runs the interactive pager.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import load_style, load_view_style
from .git_source import GitChangeSource, discover_repository_root
from .runtime import run_status_pager
from .runtime.render import render_plain
from .session import StatusSession
from .ui_model import LIST_VIEW, TREE_VIEW
from .ui_theme import resolve_theme

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _configure_logging(level: str | None, log_file: str | None) -> None:
    """Enable logging only when a level was requested."""
    if level is None:
        return
    if log_file:
        logging.basicConfig(level=level, format=LOG_FORMAT, filename=log_file)
    else:
        logging.basicConfig(level=level, format=LOG_FORMAT)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lazystatus",
        description="Interactive git status with inline diffs, staging and a collapsible tree view.",
    )
    parser.add_argument("path", nargs="?", default=None, help="Path inside the repository. Defaults to current directory.")
    layout = parser.add_mutually_exclusive_group()
    layout.add_argument("--tree", dest="view_style", action="store_const", const=TREE_VIEW, help="Start in tree view.")
    layout.add_argument("--list", dest="view_style", action="store_const", const=LIST_VIEW, help="Start in list view.")
    parser.add_argument("--style", default=None, help="Pygments style name for inline diffs.")
    parser.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    parser.add_argument("--print", dest="print_only", action="store_true", help="Print the status once and exit.")
    parser.add_argument(
        "--open-diff",
        metavar="RELPATH",
        nargs="+",
        default=[],
        help="Show the inline diff of these repository-relative paths.",
    )
    parser.add_argument("--log-level", choices=LOG_LEVELS, default=None, help="Enable logging at this level.")
    parser.add_argument("--log-file", default=None, help="Write log records to this file instead of stderr.")
    return parser


def main(default_path: Path | None = None) -> None:
    """Parse CLI arguments and show the status of the enclosing repository.

    ``default_path`` is primarily for tests; when omitted the current working
    directory is used.
    """
    args = build_parser().parse_args()
    _configure_logging(args.log_level, args.log_file)

    if default_path is None:
        default_path = Path.cwd()
    path = Path(args.path or default_path)
    if not path.exists():
        raise SystemExit(f"Path not found: {path}")

    root = discover_repository_root(path if path.is_dir() else path.parent)
    if root is None:
        raise SystemExit(f"Not a git repository: {path}")

    view_style = args.view_style or load_view_style()
    style = args.style or load_style()
    session = StatusSession(GitChangeSource(root), view_style=view_style)
    session.open()
    if args.open_diff:
        session.open_inline_diffs([f"{root}/{relative.strip('/')}" for relative in args.open_diff])
    logger.debug("opened %s in %s view", root, view_style)

    interactive = sys.stdin.isatty() and sys.stdout.isatty()
    if args.print_only or not interactive:
        no_color = args.no_color or not sys.stdout.isatty()
        theme = resolve_theme(no_color=no_color)
        sys.stdout.write(render_plain(session.model.lines(), theme, style, no_color))
        return

    run_status_pager(session, style, no_color=args.no_color)


if __name__ == "__main__":
    main()
