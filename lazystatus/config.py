"""Persistent JSON config helpers.

Stores the preferred view style (list or tree) and the Pygments style used
for inline diffs. Malformed or missing config falls back to defaults.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from platformdirs import user_config_dir

from .highlight import DEFAULT_STYLE
from .ui_model import LIST_VIEW, VIEW_STYLES

logger = logging.getLogger(__name__)

APP_NAME = "lazystatus"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME


def load_config() -> dict[str, object]:
    """Return the stored settings, or ``{}`` when there is nothing usable on disk."""
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.debug("ignoring unreadable config %s: %s", CONFIG_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Write ``data`` back; a read-only config directory only costs the setting."""
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        logger.debug("could not write config %s: %s", CONFIG_PATH, exc)


def load_view_style() -> str:
    value = load_config().get("view_style")
    return value if value in VIEW_STYLES else LIST_VIEW


def save_view_style(view_style: str) -> None:
    if view_style not in VIEW_STYLES:
        raise ValueError(f"Unknown view style: {view_style}")
    config = load_config()
    config["view_style"] = view_style
    save_config(config)


def load_style() -> str:
    value = load_config().get("style")
    return value if isinstance(value, str) and value.strip() else DEFAULT_STYLE
