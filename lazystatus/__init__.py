"""Public package surface for lazystatus.

``main`` runs the command-line entrypoint. The line model lives in
``lazystatus.ui_model`` and the interactive controller in ``lazystatus.session``.
"""

from __future__ import annotations


def main(*args, **kwargs):
    """Run the CLI; the import is deferred so library use stays cheap."""
    from .cli import main as _main

    return _main(*args, **kwargs)

__all__ = ["main"]
