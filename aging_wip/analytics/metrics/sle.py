"""Service Level Expectations from historical status exits.

Each time a historical issue leaves a status, its overall age at that
moment (anchored at its first stable exit from Backlog, Day-1 rule) is
recorded against the status it left. Per status, the windowed sample
yields one threshold per requested percentile.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

import pandas as pd

from aging_wip.analytics.metrics.aging import calculate_age
from aging_wip.analytics.metrics.percentiles import percentile_thresholds
from aging_wip.analytics.metrics.transitions import find_first_stable_exit
from aging_wip.analytics.metrics.window import Window, apply_window
from aging_wip.core.dates import resolve_tz, to_local_date
from aging_wip.core.models import IssueModel, TransitionRecord
from aging_wip.core.status import CategoryMap

logger = logging.getLogger(__name__)

TRANSITION_COLUMNS = ["issue_key", "status_id", "exit_timestamp", "exit_date", "age_at_exit"]

SLEMap = dict[str, tuple[int, ...]]


def issue_status_exits(issue: IssueModel, category_map: CategoryMap, tz=None) -> list[TransitionRecord]:
    """Walk one issue's history oldest first and record every status exit.

    Only exits of a status the walk has seen the issue enter are recorded,
    so the status held before the first recorded transition is skipped.
    """
    tz = resolve_tz(tz)
    changelog = issue.changelog.chronological()
    if not len(changelog):
        return []
    anchor = find_first_stable_exit(changelog, category_map, tz) or issue.created

    records: list[TransitionRecord] = []
    open_status: str | None = None
    for event in changelog:
        if open_status is not None and event.from_status_id == open_status:
            exit_date = to_local_date(event.timestamp, tz)
            age = calculate_age(anchor, exit_date, tz) if anchor is not None else 1
            records.append(
                TransitionRecord(
                    issue_key=issue.key,
                    status_id=open_status,
                    exit_timestamp=event.timestamp,
                    exit_date=exit_date,
                    age_at_exit=age,
                )
            )
        open_status = event.to_status_id
    return records


def extract_status_transitions(
    issues: Iterable[IssueModel],
    category_map: CategoryMap,
    tz=None,
) -> pd.DataFrame:
    """Collect status exits of every issue into one long-form frame.

    Returns
    -------
    pd.DataFrame
        Columns: issue_key, status_id, exit_timestamp, exit_date,
        age_at_exit. Empty (with those columns) when nothing was exited.
    """
    tz = resolve_tz(tz)
    rows: list[dict[str, object]] = []
    for issue in issues:
        for rec in issue_status_exits(issue, category_map, tz):
            rows.append(
                {
                    "issue_key": rec.issue_key,
                    "status_id": rec.status_id,
                    "exit_timestamp": rec.exit_timestamp,
                    "exit_date": rec.exit_date,
                    "age_at_exit": rec.age_at_exit,
                }
            )
    frame = pd.DataFrame(rows, columns=TRANSITION_COLUMNS)
    logger.debug("Extracted transitions for %d unique statuses", frame["status_id"].nunique())
    return frame


def calculate_sles(
    transitions: pd.DataFrame,
    window: Window,
    percentiles: Sequence[float],
) -> SLEMap:
    """Per exited status, percentile thresholds of age at exit.

    Statuses left with no exits after windowing are absent from the result
    so the board shows "no data" rather than a zero-day SLE.
    """
    sles: SLEMap = {}
    if transitions.empty:
        return sles
    logger.info("Calculating SLEs for %d statuses", transitions["status_id"].nunique())
    for status_id, group in transitions.groupby("status_id", sort=False):
        windowed = apply_window(group, window)
        if windowed.empty:
            logger.debug("Status %s: no transitions in window", status_id)
            continue
        ages = windowed["age_at_exit"].tolist()
        sles[str(status_id)] = percentile_thresholds(ages, percentiles)
        logger.debug(
            "Status %s: %d transitions, SLEs: %s", status_id, len(ages), list(sles[str(status_id)])
        )
    logger.info("Calculated SLEs for %d statuses", len(sles))
    return sles
