"""Changelog scans: first stable exit from Backlog and latest entry into a status.

The two scans answer different questions and read the changelog under
different ordering preconditions, enforced through the changelog type:

- ``find_first_stable_exit`` needs a ``ChronologicalChangelog``;
- ``find_most_recent_transition_to_status`` reads a ``DeliveredChangelog``
  as-is and returns the first match.
"""

from __future__ import annotations

import logging
from datetime import datetime

from aging_wip.core.dates import resolve_tz, to_local_date
from aging_wip.core.models import ChronologicalChangelog, DeliveredChangelog, StatusCategory
from aging_wip.core.status import CategoryMap, resolve_category

logger = logging.getLogger(__name__)


def _require(changelog, expected: type, func: str) -> None:
    if not isinstance(changelog, expected):
        raise TypeError(
            f"{func} requires a {expected.__name__}, got {type(changelog).__name__}"
        )


def find_first_stable_exit(
    changelog: ChronologicalChangelog,
    category_map: CategoryMap,
    tz=None,
) -> datetime | None:
    """Return the timestamp of the first exit from Backlog that sticks.

    An exit is a transition whose source resolves to Backlog and whose
    target resolves to a known, different category. A candidate is dropped
    when a later event on the same local calendar day moves the issue back
    into Backlog; the scan then resumes with the next event.

    Parameters
    ----------
    changelog : ChronologicalChangelog
        Status changes, oldest first.
    category_map : Mapping[str, StatusCategory]
        Shared status id/name to category lookup.
    tz : timezone or str, optional
        Timezone that defines the calendar day. Defaults to the configured
        reporting timezone.

    Returns
    -------
    datetime or None
        None when no stable exit exists; callers fall back to creation date.
    """
    _require(changelog, ChronologicalChangelog, "find_first_stable_exit")
    tz = resolve_tz(tz)
    events = changelog.events
    for idx, event in enumerate(events):
        from_cat = resolve_category(category_map, event.from_status_id)
        to_cat = resolve_category(category_map, event.to_status_id)
        if from_cat is not StatusCategory.BACKLOG or to_cat in (None, StatusCategory.BACKLOG):
            continue
        logger.debug(
            "Exit from Backlog: %s -> %s at %s",
            event.from_name or event.from_status_id,
            event.to_name or event.to_status_id,
            event.timestamp,
        )
        exit_day = to_local_date(event.timestamp, tz)
        bounced = False
        for later in events[idx + 1 :]:
            if to_local_date(later.timestamp, tz) != exit_day:
                break
            if resolve_category(category_map, later.to_status_id) is StatusCategory.BACKLOG:
                bounced = True
                break
        if bounced:
            logger.debug("Same-day return to Backlog at %s, ignoring exit", exit_day)
            continue
        return event.timestamp
    return None


def find_most_recent_transition_to_status(
    changelog: DeliveredChangelog,
    status_id: str | None,
) -> datetime | None:
    """Return when the issue last entered ``status_id``.

    The delivered order is read as-is and the first matching event wins,
    which assumes the tracker delivers newest first.
    """
    _require(changelog, DeliveredChangelog, "find_most_recent_transition_to_status")
    if status_id is None:
        return None
    for event in changelog:
        if event.to_status_id == str(status_id):
            return event.timestamp
    return None
