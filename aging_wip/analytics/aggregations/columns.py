"""Board columns: merge live items, SLEs, and an optional explicit order."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import pandas as pd

from aging_wip.core.models import Column

logger = logging.getLogger(__name__)

ITEM_COLUMN = "item"


def group_items_by_status(df: pd.DataFrame) -> dict[str, list[dict[str, Any]]]:
    """Group board items by status name, keeping first-encounter order."""
    if df.empty or ITEM_COLUMN not in df.columns:
        return {}
    out: dict[str, list[dict[str, Any]]] = {}
    for status, group in df.groupby("status", sort=False, dropna=False):
        name = status if isinstance(status, str) else "Unknown"
        out.setdefault(name, []).extend(group[ITEM_COLUMN].tolist())
    return out


def parse_columns_order(value: str | Sequence[str] | None) -> list[str] | None:
    if value is None:
        return None
    names = value.split(",") if isinstance(value, str) else list(value)
    cleaned = [str(name).strip() for name in names if str(name).strip()]
    return cleaned or None


def build_columns(
    issues_by_status: Mapping[str, list[dict[str, Any]]],
    status_ids: Mapping[str, str],
    sles: Mapping[str, Sequence[int]] | None = None,
    columns_order: Sequence[str] | None = None,
) -> list[Column]:
    """Build ordered board columns.

    Parameters
    ----------
    issues_by_status : Mapping[str, list[dict]]
        Board items grouped by status name, in encounter order.
    status_ids : Mapping[str, str]
        Status name to id lookup used to find each column's SLE.
    sles : Mapping[str, Sequence[int]] or None
        SLE thresholds by status id. Missing ids give ``sle=None``.
    columns_order : sequence of str, optional
        Explicit column order. Named statuses without live items still get
        an (empty) column; unnamed columns follow in encounter order.

    Returns
    -------
    list[Column]
        Columns with 1-based ``order``.
    """
    sles = sles or {}

    def _sle_for(name: str) -> tuple[int, ...] | None:
        status_id = status_ids.get(name)
        if status_id is None:
            return None
        thresholds = sles.get(str(status_id))
        return tuple(thresholds) if thresholds is not None else None

    columns = [
        Column(name=name, order=0, sle=_sle_for(name), items=list(items))
        for name, items in issues_by_status.items()
    ]

    if columns_order:
        logger.debug("Applying custom column order: %s", ", ".join(columns_order))
        present = {col.name for col in columns}
        for name in columns_order:
            if name in present:
                continue
            logger.debug("Creating empty column for: %s (id: %s)", name, status_ids.get(name))
            columns.append(Column(name=name, order=0, sle=_sle_for(name), items=[]))
            present.add(name)
        position = {}
        for idx, name in enumerate(columns_order):
            position.setdefault(name, idx)
        unlisted = len(columns_order)
        # sorted() is stable, so unlisted columns keep encounter order
        columns = sorted(columns, key=lambda col: position.get(col.name, unlisted))

    for idx, col in enumerate(columns, start=1):
        col.order = idx
    return columns
