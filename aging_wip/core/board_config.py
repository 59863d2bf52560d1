"""Load board settings from YAML (with fallbacks).

Example ``board.yaml``::

    columns_order: [Backlog, In Progress, Review, Done]
    percentiles: [50, 75, 85, 90]
    sle_window: 90d
    max_days: 60
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .config import DEFAULT_PERCENTILES, DEFAULT_SLE_WINDOW

BOARD_FILE_NAME = "board.yaml"
KNOWN_KEYS = ("columns_order", "percentiles", "sle_window", "max_days")


def default_board_settings() -> dict[str, Any]:
    return {
        "columns_order": None,
        "percentiles": list(DEFAULT_PERCENTILES),
        "sle_window": DEFAULT_SLE_WINDOW,
        "max_days": None,
    }


def load_board_settings(path: str | Path | None = None) -> dict[str, Any]:
    """Read board settings, falling back to defaults for absent keys.

    When ``path`` is None, ``board.yaml`` in the working directory is used if
    present. An explicitly given file must exist.

    Raises
    ------
    FileNotFoundError
        If an explicit ``path`` does not exist.
    ValueError
        If the file is not valid YAML or is not a mapping.
    """
    settings = default_board_settings()
    if path is None:
        yaml_path = Path.cwd() / BOARD_FILE_NAME
        if not yaml_path.exists():
            return settings
    else:
        yaml_path = Path(path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Board config not found: {yaml_path}")
    try:
        data = yaml.safe_load(yaml_path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Failed to parse board config {yaml_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Board config {yaml_path} must be a mapping")
    for key in KNOWN_KEYS:
        if data.get(key) is not None:
            settings[key] = data[key]
    if settings["sle_window"] is not None:
        settings["sle_window"] = str(settings["sle_window"])
    return settings
