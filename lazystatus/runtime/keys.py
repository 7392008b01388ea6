"""Key-combo registry and the status pager key map.

Combos are written as space-separated key tokens (``"g g"``, ``"] c"``);
the registry buffers a pending prefix until the combo completes or breaks.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class KeyComboBinding:
    """Mapping from one or more key combos to a single action callback."""

    combos: tuple[str, ...]
    handler: Callable[[], bool | None]
    description: str = ""


class KeyComboRegistry:
    """Key-dispatch table supporting multi-key combos."""

    def __init__(self) -> None:
        self._handlers: dict[tuple[str, ...], Callable[[], bool | None]] = {}
        self._prefixes: set[tuple[str, ...]] = set()
        self._bindings: list[KeyComboBinding] = []
        self._pending: tuple[str, ...] = ()

    @staticmethod
    def _split(combo: str) -> tuple[str, ...]:
        return tuple(combo.split(" ")) if combo != " " else (" ",)

    def register_binding(self, binding: KeyComboBinding) -> KeyComboRegistry:
        """Register one binding, overwriting existing handlers for same combos."""
        for combo in binding.combos:
            sequence = self._split(combo)
            self._handlers[sequence] = binding.handler
            for end in range(1, len(sequence)):
                self._prefixes.add(sequence[:end])
        self._bindings.append(binding)
        return self

    def register_bindings(self, *bindings: KeyComboBinding) -> KeyComboRegistry:
        """Register multiple bindings and return ``self`` for fluent usage."""
        for binding in bindings:
            self.register_binding(binding)
        return self

    @property
    def pending(self) -> str:
        """Keys typed so far of an unfinished combo."""
        return " ".join(self._pending)

    def bindings(self) -> tuple[KeyComboBinding, ...]:
        return tuple(self._bindings)

    def dispatch(self, key: str) -> bool | None:
        """Feed one key; run the handler when a combo completes.

        Returns ``True`` while a prefix is pending and ``None`` when ``key``
        neither completes nor extends a combo.
        """
        sequence = (*self._pending, key)
        handler = self._handlers.get(sequence)
        if handler is not None:
            self._pending = ()
            return handler()
        if sequence in self._prefixes:
            self._pending = sequence
            return True
        self._pending = ()
        return None


@dataclass(frozen=True)
class StatusKeyActions:
    """Callbacks the pager key map dispatches to."""

    move_down: Callable[[], object]
    move_up: Callable[[], object]
    page_down: Callable[[], object]
    page_up: Callable[[], object]
    go_top: Callable[[], object]
    go_bottom: Callable[[], object]
    go_staged: Callable[[], object]
    go_untracked: Callable[[], object]
    go_unstaged: Callable[[], object]
    go_unpushed: Callable[[], object]
    next_hunk: Callable[[], object]
    previous_hunk: Callable[[], object]
    stage: Callable[[], object]
    unstage: Callable[[], object]
    toggle: Callable[[], object]
    clean: Callable[[], object]
    exclude: Callable[[], object]
    ignore: Callable[[], object]
    toggle_inline_diff: Callable[[], object]
    toggle_directory: Callable[[], object]
    toggle_view: Callable[[], object]
    open_target: Callable[[], object]
    refresh: Callable[[], object]
    toggle_help: Callable[[], object]
    quit: Callable[[], object]


def build_status_keymap(actions: StatusKeyActions) -> KeyComboRegistry:
    """Return the registry used by the interactive pager."""

    def handled(callback: Callable[[], object]) -> Callable[[], bool]:
        def run() -> bool:
            callback()
            return True

        return run

    return KeyComboRegistry().register_bindings(
        KeyComboBinding(("j", "DOWN"), handled(actions.move_down), "down"),
        KeyComboBinding(("k", "UP"), handled(actions.move_up), "up"),
        KeyComboBinding(("CTRL_D", "PAGE_DOWN"), handled(actions.page_down), "page down"),
        KeyComboBinding(("CTRL_U", "PAGE_UP"), handled(actions.page_up), "page up"),
        KeyComboBinding(("g g", "HOME"), handled(actions.go_top), "top"),
        KeyComboBinding(("G", "END"), handled(actions.go_bottom), "bottom"),
        KeyComboBinding(("g s",), handled(actions.go_staged), "go to staged"),
        KeyComboBinding(("g u",), handled(actions.go_untracked), "go to untracked (or unstaged)"),
        KeyComboBinding(("g U",), handled(actions.go_unstaged), "go to unstaged"),
        KeyComboBinding(("g p",), handled(actions.go_unpushed), "go to unpushed"),
        KeyComboBinding(("] c",), handled(actions.next_hunk), "next file or hunk"),
        KeyComboBinding(("[ c",), handled(actions.previous_hunk), "previous file or hunk"),
        KeyComboBinding(("s",), handled(actions.stage), "stage"),
        KeyComboBinding(("u",), handled(actions.unstage), "unstage"),
        KeyComboBinding(("-",), handled(actions.toggle), "stage or unstage"),
        KeyComboBinding(("X",), handled(actions.clean), "discard changes"),
        KeyComboBinding(("g I",), handled(actions.exclude), "add to .git/info/exclude"),
        KeyComboBinding(("g i",), handled(actions.ignore), "add to .gitignore"),
        KeyComboBinding(("=",), handled(actions.toggle_inline_diff), "toggle inline diff"),
        KeyComboBinding(("TAB",), handled(actions.toggle_directory), "toggle directory"),
        KeyComboBinding(("g t",), handled(actions.toggle_view), "toggle list/tree view"),
        KeyComboBinding(("ENTER", "o"), handled(actions.open_target), "open file or commit"),
        KeyComboBinding(("r", "CTRL_L"), handled(actions.refresh), "refresh"),
        KeyComboBinding(("g h", "?"), handled(actions.toggle_help), "help"),
        KeyComboBinding(("q", "CTRL_C"), handled(actions.quit), "quit"),
    )


def help_lines(registry: KeyComboRegistry) -> list[str]:
    """Describe every described binding, one per line."""
    lines = []
    for binding in registry.bindings():
        if not binding.description:
            continue
        keys = ", ".join(binding.combos)
        lines.append(f"{keys:<18} {binding.description}")
    return lines
