"""Status category resolution.

Jira exposes a status category in two shapes depending on the endpoint:
``/rest/api/3/statuses`` returns a bare uppercase token (``TODO``,
``IN_PROGRESS``, ``DONE``) while ``/rest/api/3/status/{id}`` and issue fields
return an object carrying a lowercase ``key`` (``new``, ``indeterminate``,
``done``). Both collapse to the three-valued ``StatusCategory``.

A category map is built once per request and shared read-only by every
extraction step of that request. A missing entry means "unknown", never
Backlog.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

from .config import CATEGORY_KEYS, CATEGORY_TOKENS
from .models import StatusCategory

logger = logging.getLogger(__name__)

CategoryMap = Mapping[str, StatusCategory]

_KEY_TO_CATEGORY: dict[str, StatusCategory] = {
    "new": StatusCategory.BACKLOG,
    "indeterminate": StatusCategory.ACTIVE,
    "done": StatusCategory.DONE,
}


def normalize_category(value: Any) -> StatusCategory | None:
    """Normalize either status category shape to a ``StatusCategory``.

    Parameters
    ----------
    value : str | dict | None
        ``"TODO"``-style token, ``{"key": "new", ...}`` object, or a bare
        lowercase key.

    Returns
    -------
    StatusCategory | None
        None when the value is missing or not recognised.

    Examples
    --------
    >>> normalize_category("IN_PROGRESS")
    <StatusCategory.ACTIVE: 'Active'>
    >>> normalize_category({"key": "new"})
    <StatusCategory.BACKLOG: 'Backlog'>
    >>> normalize_category("undefined") is None
    True
    """
    if not value:
        return None
    if isinstance(value, str):
        text = value.strip()
        key = CATEGORY_TOKENS.get(text.upper(), text.lower())
    elif isinstance(value, Mapping):
        key = str(value.get("key") or "").strip().lower()
    else:
        return None
    if key not in CATEGORY_KEYS:
        return None
    return _KEY_TO_CATEGORY[key]


def build_status_category_map(statuses: Iterable[Mapping[str, Any]]) -> CategoryMap:
    """Map every status id and status name to its category.

    Statuses without a recognisable category are left out of the map.
    The result is read-only.
    """
    out: dict[str, StatusCategory] = {}
    for status in statuses:
        category = normalize_category(status.get("statusCategory"))
        if category is None:
            logger.debug("No category for status %s (%s)", status.get("id"), status.get("name"))
            continue
        status_id = status.get("id")
        name = status.get("name")
        if status_id is not None:
            out[str(status_id)] = category
        if name:
            out[str(name)] = category
    logger.debug("Built status category map with %d entries", len(out))
    return MappingProxyType(out)


def build_status_name_to_id_map(statuses: Iterable[Mapping[str, Any]]) -> dict[str, str]:
    out: dict[str, str] = {}
    for status in statuses:
        name = status.get("name")
        status_id = status.get("id")
        if name and status_id is not None:
            out[str(name)] = str(status_id)
    return out


def resolve_category(category_map: CategoryMap, key: str | None) -> StatusCategory | None:
    """Look up a status id or name; None means unknown."""
    if key is None:
        return None
    return category_map.get(str(key))
