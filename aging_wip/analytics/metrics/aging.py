"""Aging metrics computation (pure functions).

Ages follow the "Day 1" rule: the day work starts is already day one, so
no issue is ever reported as zero days old. Differences are taken between
local calendar dates, which also absorbs anchors later than the reference
date (clock skew or bad input) through the clamp to 1.
"""

from __future__ import annotations

import logging
from datetime import date, datetime

import pandas as pd

from aging_wip.analytics.metrics.transitions import (
    find_first_stable_exit,
    find_most_recent_transition_to_status,
)
from aging_wip.core.dates import format_date, parse_reference_date, resolve_tz, to_local_date
from aging_wip.core.models import AgeMetrics, IssueModel
from aging_wip.core.status import CategoryMap

logger = logging.getLogger(__name__)


def calculate_age(anchor: date | datetime, reference: date | datetime | str, tz=None) -> int:
    """Days from ``anchor`` to ``reference``, inclusive, never below 1.

    >>> calculate_age(date(2024, 1, 10), date(2024, 1, 15))
    6
    >>> calculate_age(date(2024, 1, 20), date(2024, 1, 15))
    1
    """
    anchor_day = to_local_date(anchor, tz) if isinstance(anchor, datetime) else anchor
    reference_day = parse_reference_date(reference)
    return max(1, (reference_day - anchor_day).days + 1)


def calculate_age_metrics(
    issue: IssueModel,
    reference: date | str,
    category_map: CategoryMap,
    tz=None,
) -> AgeMetrics:
    """Total age (since the first stable exit from Backlog) and age in the
    current status (since the latest entry into it), both falling back to
    the creation date."""
    tz = resolve_tz(tz)
    reference_day = parse_reference_date(reference)
    stable_exit = find_first_stable_exit(issue.changelog.chronological(), category_map, tz)
    latest_entry = find_most_recent_transition_to_status(issue.changelog, issue.status_id)

    age_start = stable_exit or issue.created
    state_start = latest_entry or issue.created
    if age_start is None:
        logger.debug("%s has no creation date or history, aging from reference date", issue.key)
        age_start = reference_day
    if state_start is None:
        state_start = reference_day

    metrics = AgeMetrics(
        total_age=calculate_age(age_start, reference_day, tz),
        current_state_age=calculate_age(state_start, reference_day, tz),
        start_date=format_date(age_start, tz),
        current_state_start_date=format_date(state_start, tz),
    )
    logger.debug(
        "%s (%s): age %d since %s, %d in current state since %s",
        issue.key,
        issue.status_name,
        metrics.total_age,
        metrics.start_date,
        metrics.current_state_age,
        metrics.current_state_start_date,
    )
    return metrics


def add_aging_metrics(
    df: pd.DataFrame,
    reference: date | str,
    category_map: CategoryMap,
    tz=None,
) -> pd.DataFrame:
    """Add age columns to an issues frame holding ``IssueModel`` objects in
    its ``issue`` column."""
    if df.empty:
        return df
    out = df.copy()
    tz = resolve_tz(tz)
    metrics = out["issue"].apply(lambda issue: calculate_age_metrics(issue, reference, category_map, tz))
    out["metrics"] = metrics
    out["age"] = metrics.apply(lambda m: m.total_age)
    out["age_in_current_state"] = metrics.apply(lambda m: m.current_state_age)
    out["start_date"] = metrics.apply(lambda m: m.start_date)
    out["current_state_start_date"] = metrics.apply(lambda m: m.current_state_start_date)
    return out
