"""Mapping raw Jira issue JSON into IssueModel instances and board items."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import pandas as pd

from .config import DEFAULT_PRIORITY, UNASSIGNED, UNKNOWN_TYPE
from .models import AgeMetrics, DeliveredChangelog, IssueModel, StatusChangeEvent
from .status import normalize_category


def parse_dt(val):
    if not val:
        return None
    ts = pd.to_datetime(val, utc=True, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return ts.to_pydatetime()


def _status_item(history: dict[str, Any]) -> dict[str, Any] | None:
    for item in history.get("items") or []:
        if isinstance(item, dict) and item.get("field") == "status":
            return item
    return None


def map_changelog(changelog: dict[str, Any] | None) -> DeliveredChangelog:
    """Keep the status transitions of a raw changelog, in delivered order.

    Only the first status item of each history entry is used; entries
    without a parseable ``created`` timestamp or a target status are
    dropped.
    """
    histories = (changelog or {}).get("histories") or []
    events: list[StatusChangeEvent] = []
    for history in histories:
        item = _status_item(history)
        if item is None:
            continue
        created = parse_dt(history.get("created"))
        to_id = item.get("to")
        if created is None or to_id is None:
            continue
        from_id = item.get("from")
        events.append(
            StatusChangeEvent(
                timestamp=created,
                from_status_id=str(from_id) if from_id is not None else None,
                to_status_id=str(to_id),
                from_name=item.get("fromString"),
                to_name=item.get("toString"),
            )
        )
    return DeliveredChangelog(tuple(events))


def extract_dependency(fields: dict[str, Any]) -> str | None:
    """Return the first issue this one is blocked by, if any."""
    for link in fields.get("issuelinks") or []:
        link_type = (link.get("type") or {}).get("name")
        inward = link.get("inwardIssue")
        if link_type == "Blocks" and inward:
            return inward.get("key")
    return None


def map_issue(raw: dict[str, Any]) -> IssueModel:
    fields = raw.get("fields") or {}
    status = fields.get("status") or {}
    status_id = status.get("id")
    return IssueModel(
        key=raw.get("key"),
        status_id=str(status_id) if status_id is not None else None,
        status_name=status.get("name"),
        status_category=normalize_category(status.get("statusCategory")),
        created=parse_dt(fields.get("created")),
        summary=fields.get("summary"),
        issuetype=(fields.get("issuetype") or {}).get("name") if fields.get("issuetype") else None,
        priority=(fields.get("priority") or {}).get("name") if fields.get("priority") else None,
        assignee=fields.get("assignee"),
        labels=list(fields.get("labels", []) or []),
        parent=fields.get("parent"),
        depends_on=extract_dependency(fields),
        changelog=map_changelog(raw.get("changelog")),
    )


def extract_unique_status_ids(raw_issues: Iterable[dict[str, Any]]) -> list[str]:
    """Collect every status id seen as a current status or in a changelog."""
    seen: dict[str, None] = {}
    for raw in raw_issues:
        status_id = ((raw.get("fields") or {}).get("status") or {}).get("id")
        if status_id is not None:
            seen[str(status_id)] = None
        for history in (raw.get("changelog") or {}).get("histories") or []:
            for item in history.get("items") or []:
                if item.get("field") != "status":
                    continue
                for side in ("from", "to"):
                    if item.get(side):
                        seen[str(item[side])] = None
    return list(seen)


def embedded_statuses(raw_issues: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Status definitions carried on the issues themselves (``fields.status``).

    Only current statuses are covered; statuses that appear solely in
    changelogs need the status metadata endpoint.
    """
    seen: dict[str, dict[str, Any]] = {}
    for raw in raw_issues:
        status = (raw.get("fields") or {}).get("status") or {}
        status_id = status.get("id")
        if status_id is not None and str(status_id) not in seen:
            seen[str(status_id)] = status
    return list(seen.values())


def issue_to_item(issue: IssueModel, metrics: AgeMetrics, server: str) -> dict[str, Any]:
    """Render one aged issue as a board item."""
    assignee = issue.assignee or {}
    parent = None
    if issue.parent:
        parent_key = issue.parent.get("key")
        parent = {
            "key": parent_key,
            "title": (issue.parent.get("fields") or {}).get("summary"),
            "url": f"{server}/browse/{parent_key}",
        }
    key = issue.key or ""
    return {
        "key": key,
        "title": issue.summary,
        "type": issue.issuetype or UNKNOWN_TYPE,
        "age": metrics.total_age,
        "age_in_current_state": metrics.current_state_age,
        "start_date": metrics.start_date,
        "current_state_start_date": metrics.current_state_start_date,
        "priority": issue.priority or DEFAULT_PRIORITY,
        "assignee": {
            "name": assignee.get("displayName") or UNASSIGNED,
            "picture": (assignee.get("avatarUrls") or {}).get("48x48") or "",
            "link": assignee.get("self") or "#",
        },
        "labels": list(issue.labels),
        "parent": parent,
        "url": f"{server}/browse/{key}",
        "depends_on": issue.depends_on,
        "nickname": key.split("-")[1] if "-" in key else key,
    }


def issues_to_dataframe(issues: Iterable[IssueModel]) -> pd.DataFrame:
    rows = []
    for i in issues:
        rows.append(
            {
                "key": i.key,
                "status": i.status_name,
                "status_id": i.status_id,
                "created": i.created,
                "issue": i,
            }
        )
    return pd.DataFrame(rows, columns=["key", "status", "status_id", "created", "issue"])
