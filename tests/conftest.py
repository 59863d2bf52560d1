"""Test configuration ensuring local package import when editable install not active.

If users invoke `pytest` outside the project's virtualenv, we still add the project
root to sys.path so `import aging_wip` works. Shared status fixtures describe a
small workflow: To Do (Backlog) -> In Progress -> Review -> Done.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from aging_wip.core.status import build_status_category_map  # noqa: E402

STATUSES = [
    {"id": "1", "name": "To Do", "statusCategory": "TODO"},
    {"id": "3", "name": "In Progress", "statusCategory": "IN_PROGRESS"},
    {"id": "4", "name": "Review", "statusCategory": {"key": "indeterminate", "name": "In Progress"}},
    {"id": "5", "name": "Done", "statusCategory": "DONE"},
]


def raw_issue(key, status_id, status_name, category_key, created, histories=(), **fields):
    """Raw Jira issue JSON; ``histories`` holds ``(created, from_id, to_id)`` tuples."""
    out_fields = {
        "summary": f"Issue {key}",
        "created": created,
        "status": {"id": status_id, "name": status_name, "statusCategory": {"key": category_key}},
        "issuetype": {"name": "Task"},
        "priority": {"name": "High"},
        "labels": [],
    }
    out_fields.update(fields)
    return {
        "key": key,
        "fields": out_fields,
        "changelog": {
            "histories": [
                {"created": ts, "items": [{"field": "status", "from": src, "to": dst}]}
                for ts, src, dst in histories
            ]
        },
    }


@pytest.fixture
def statuses():
    return [dict(s) for s in STATUSES]


@pytest.fixture
def category_map():
    return build_status_category_map(STATUSES)
