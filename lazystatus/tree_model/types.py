"""Directory-prefix tree datatypes for the tree view."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class FileLeaf:
    """One change placed at its directory; keyed by ``"<letter> <filename>"``."""

    change_index: int
    path: str


@dataclass
class DirectoryNode:
    """Directory node; ``path`` is root-relative (``""`` for the root)."""

    name: str
    path: str = ""
    children: dict[str, DirectoryNode | FileLeaf] = field(default_factory=dict)

    def subdirectories(self) -> list[DirectoryNode]:
        return [child for child in self.children.values() if isinstance(child, DirectoryNode)]

    def files(self) -> list[tuple[str, FileLeaf]]:
        return [(key, child) for key, child in self.children.items() if isinstance(child, FileLeaf)]
