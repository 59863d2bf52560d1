"""Domain data models for issues, status changelogs, and board columns."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any


class StatusCategory(str, Enum):
    BACKLOG = "Backlog"
    ACTIVE = "Active"
    DONE = "Done"


@dataclass(slots=True, frozen=True)
class StatusChangeEvent:
    timestamp: datetime
    from_status_id: str | None
    to_status_id: str
    from_name: str | None = None
    to_name: str | None = None


@dataclass(slots=True, frozen=True)
class ChronologicalChangelog:
    """Status change events sorted oldest first.

    Build it with ``DeliveredChangelog.chronological()`` rather than directly,
    so the ordering is guaranteed by construction.
    """

    events: tuple[StatusChangeEvent, ...] = ()

    def __iter__(self):
        return iter(self.events)

    def __len__(self) -> int:
        return len(self.events)


@dataclass(slots=True, frozen=True)
class DeliveredChangelog:
    """Status change events in the order the issue tracker returned them.

    No ordering is assumed. Scans that need oldest-first order must go
    through ``chronological()``.
    """

    events: tuple[StatusChangeEvent, ...] = ()

    def __iter__(self):
        return iter(self.events)

    def __len__(self) -> int:
        return len(self.events)

    def chronological(self) -> ChronologicalChangelog:
        # sorted() is stable: same-timestamp events keep their delivered order
        return ChronologicalChangelog(tuple(sorted(self.events, key=lambda ev: ev.timestamp)))


@dataclass(slots=True)
class IssueModel:
    key: str
    status_id: str | None
    status_name: str | None
    status_category: StatusCategory | None
    created: datetime | None
    summary: str | None = None
    issuetype: str | None = None
    priority: str | None = None
    assignee: dict[str, Any] | None = None
    labels: list[str] = field(default_factory=list)
    parent: dict[str, Any] | None = None
    depends_on: str | None = None
    changelog: DeliveredChangelog = field(default_factory=DeliveredChangelog)


@dataclass(slots=True, frozen=True)
class TransitionRecord:
    issue_key: str
    status_id: str
    exit_timestamp: datetime
    exit_date: date
    age_at_exit: int


@dataclass(slots=True, frozen=True)
class AgeMetrics:
    total_age: int
    current_state_age: int
    start_date: str
    current_state_start_date: str


@dataclass(slots=True)
class Column:
    name: str
    order: int
    sle: tuple[int, ...] | None
    items: list[dict[str, Any]] = field(default_factory=list)

    @property
    def top_text(self) -> str:
        return f"WIP: {len(self.items)}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "top_text": self.top_text,
            "order": self.order,
            "sle": list(self.sle) if self.sle is not None else None,
            "items": list(self.items),
        }
