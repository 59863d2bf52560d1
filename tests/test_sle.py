from datetime import date

from conftest import raw_issue

from aging_wip.analytics.metrics.sle import calculate_sles, extract_status_transitions, issue_status_exits
from aging_wip.analytics.metrics.window import ByCount, ByDate, parse_window
from aging_wip.core.mappers import map_issue


def _history_issues():
    a = raw_issue(
        "PROJ-1",
        "5",
        "Done",
        "done",
        "2024-01-01T10:00:00.000+0000",
        histories=[
            ("2024-01-15T09:00:00.000+0000", "4", "5"),
            ("2024-01-12T09:00:00.000+0000", "3", "4"),
            ("2024-01-10T09:00:00.000+0000", "1", "3"),
        ],
    )
    b = raw_issue(
        "PROJ-2",
        "5",
        "Done",
        "done",
        "2024-02-01T08:00:00.000+0000",
        histories=[
            ("2024-02-11T09:00:00.000+0000", "4", "5"),
            ("2024-02-03T09:00:00.000+0000", "3", "4"),
            ("2024-02-01T09:00:00.000+0000", "1", "3"),
        ],
    )
    c = raw_issue("PROJ-3", "1", "To Do", "new", "2024-01-01T10:00:00.000+0000")
    return [map_issue(raw) for raw in (a, b, c)]


def test_exit_records_use_overall_age(category_map):
    records = issue_status_exits(_history_issues()[0], category_map, "UTC")
    assert [(r.status_id, r.exit_date, r.age_at_exit) for r in records] == [
        ("3", date(2024, 1, 12), 3),
        ("4", date(2024, 1, 15), 6),
    ]


def test_exit_before_stable_anchor_clamps_to_one(category_map):
    issue = map_issue(
        raw_issue(
            "PROJ-9",
            "5",
            "Done",
            "done",
            "2024-01-01T10:00:00.000+0000",
            histories=[
                ("2024-01-25T09:00:00.000+0000", "3", "5"),
                ("2024-01-20T09:00:00.000+0000", "1", "3"),
                ("2024-01-05T15:00:00.000+0000", "3", "1"),
                ("2024-01-05T09:00:00.000+0000", "1", "3"),
            ],
        )
    )
    records = issue_status_exits(issue, category_map, "UTC")
    assert [(r.status_id, r.age_at_exit) for r in records] == [("3", 1), ("1", 1), ("3", 6)]
    assert all(r.age_at_exit >= 1 for r in records)


def test_issue_without_history_has_no_exits(category_map):
    assert issue_status_exits(_history_issues()[2], category_map) == []


def test_transition_frame_columns(category_map):
    frame = extract_status_transitions(_history_issues(), category_map, "UTC")
    assert list(frame.columns) == ["issue_key", "status_id", "exit_timestamp", "exit_date", "age_at_exit"]
    assert len(frame) == 4
    assert set(frame["status_id"]) == {"3", "4"}


def test_sles_over_full_window(category_map):
    frame = extract_status_transitions(_history_issues(), category_map, "UTC")
    sles = calculate_sles(frame, parse_window("2000-01-01", "2024-03-01"), [50, 90])
    assert sles == {"3": (3, 3), "4": (9, 11)}


def test_sles_date_window(category_map):
    frame = extract_status_transitions(_history_issues(), category_map, "UTC")
    sles = calculate_sles(frame, ByDate(date(2024, 2, 1)), [50, 90])
    assert sles == {"3": (3, 3), "4": (11, 11)}


def test_sles_count_window(category_map):
    frame = extract_status_transitions(_history_issues(), category_map, "UTC")
    sles = calculate_sles(frame, ByCount(1), [50, 85])
    assert sles == {"3": (3, 3), "4": (11, 11)}


def test_empty_window_omits_status(category_map):
    frame = extract_status_transitions(_history_issues(), category_map, "UTC")
    sles = calculate_sles(frame, ByDate(date(2024, 3, 1)), [50, 75, 85, 90])
    assert sles == {}


def test_thresholds_non_decreasing(category_map):
    frame = extract_status_transitions(_history_issues(), category_map, "UTC")
    for thresholds in calculate_sles(frame, ByCount(100), [10, 50, 75, 85, 95]).values():
        assert list(thresholds) == sorted(thresholds)


def test_no_transitions(category_map):
    frame = extract_status_transitions([], category_map)
    assert frame.empty
    assert calculate_sles(frame, ByCount(5), [50]) == {}
