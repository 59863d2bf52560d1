"""Windowing of historical status exits before percentile computation.

A window is either date based (keep exits on or after a cutoff date) or
count based (keep the N most recent exits). ``parse_window`` is the only
place that interprets the user-facing string; everything downstream works
on the ``ByDate`` / ``ByCount`` values.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta

import pandas as pd

from aging_wip.core.dates import parse_reference_date

logger = logging.getLogger(__name__)

_DAYS_RE = re.compile(r"^(\d+)d$", re.IGNORECASE)
_DATE_RE = re.compile(r"^(\d{4})-?(\d{2})-?(\d{2})$")
_COUNT_RE = re.compile(r"^(\d+)$")


class WindowFormatError(ValueError):
    """Raised for a window string that is not ``Nd``, a date, or a count."""


@dataclass(slots=True, frozen=True)
class ByDate:
    cutoff: date


@dataclass(slots=True, frozen=True)
class ByCount:
    count: int


Window = ByDate | ByCount


def parse_window(text: str, reference: date | str) -> Window:
    """Parse ``"90d"``, ``"2024-01-01"``/``"20240101"`` or ``"100"``.

    Parameters
    ----------
    text : str
        Window text: ``Xd``, a date, or a count.
    reference : date or str
        Reference date used to resolve ``Nd`` into a cutoff.

    Returns
    -------
    ByDate or ByCount

    Raises
    ------
    WindowFormatError
        For any other input, including impossible calendar dates.

    Examples
    --------
    >>> parse_window("90d", "2024-04-01")
    ByDate(cutoff=datetime.date(2024, 1, 2))
    >>> parse_window("20240101", "2024-04-01")
    ByDate(cutoff=datetime.date(2024, 1, 1))
    >>> parse_window("100", "2024-04-01")
    ByCount(count=100)
    """
    raw = str(text or "").strip()

    match = _DAYS_RE.match(raw)
    if match:
        days = int(match.group(1))
        reference_day = parse_reference_date(reference)
        try:
            cutoff = reference_day - timedelta(days=days)
        except (OverflowError, ValueError) as exc:
            raise WindowFormatError(f"Window out of range: {text}") from exc
        logger.debug("Window: %d days before %s = %s", days, reference, cutoff)
        return ByDate(cutoff)

    # Checked before the bare count so YYYYMMDD reads as a date
    match = _DATE_RE.match(raw)
    if match:
        try:
            cutoff = datetime.strptime("-".join(match.groups()), "%Y-%m-%d").date()
        except ValueError as exc:
            raise WindowFormatError(f"Invalid window date: {text}") from exc
        logger.debug("Window: from date %s", cutoff)
        return ByDate(cutoff)

    match = _COUNT_RE.match(raw)
    if match:
        count = int(match.group(1))
        logger.debug("Window: latest %d transitions", count)
        return ByCount(count)

    raise WindowFormatError(
        f"Invalid window format: {text}. Use Xd, YYYY-MM-DD, YYYYMMDD, or integer."
    )


def apply_window(transitions: pd.DataFrame, window: Window) -> pd.DataFrame:
    """Restrict a transition frame (``exit_date``, ``exit_timestamp`` columns)
    to ``window``."""
    if transitions.empty:
        return transitions
    if isinstance(window, ByDate):
        return transitions[transitions["exit_date"] >= window.cutoff]
    if isinstance(window, ByCount):
        ordered = transitions.sort_values(by="exit_timestamp", ascending=False, kind="stable")
        return ordered.head(window.count)
    raise TypeError(f"Unsupported window: {window!r}")
