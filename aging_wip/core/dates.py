"""Timestamp and calendar-date helpers shared by the aging and SLE metrics."""

from __future__ import annotations

import re
from datetime import date, datetime

import pandas as pd
import pytz

from .config import TIMEZONE

_REFERENCE_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def resolve_tz(tz=None):
    """Return a tzinfo for ``tz`` (name, tzinfo, or None for the default)."""
    if tz is None:
        return pytz.timezone(TIMEZONE)
    if isinstance(tz, str):
        return pytz.timezone(tz)
    return tz


def normalize_timestamp(value, target_tz) -> pd.Timestamp | None:
    """Normalize a timestamp-like value into ``target_tz``.

    Naive values are taken as UTC. Returns None when the input cannot be
    parsed.
    """
    if value is None or value == "":
        return None
    ts = pd.to_datetime(value, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    if getattr(ts, "tzinfo", None) is None:
        ts = ts.tz_localize(pytz.UTC)
    return ts.tz_convert(target_tz)


def to_local_date(value, tz=None) -> date | None:
    ts = normalize_timestamp(value, resolve_tz(tz))
    if ts is None:
        return None
    return ts.date()


def parse_reference_date(value) -> date:
    """Parse a reference date given as ``YYYY-MM-DD``, date, or datetime.

    Raises
    ------
    ValueError
        If a string is not a valid ``YYYY-MM-DD`` calendar date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not _REFERENCE_DATE_RE.match(text):
        raise ValueError(f"Date must be in YYYY-MM-DD format: {value!r}")
    try:
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError as exc:
        raise ValueError(f"Invalid reference date: {value!r}") from exc


def format_date(value: date | datetime | None, tz=None) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        value = to_local_date(value, tz)
    return value.strftime("%Y-%m-%d")
