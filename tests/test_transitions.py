from datetime import UTC, datetime

import pytest

from aging_wip.analytics.metrics.transitions import (
    find_first_stable_exit,
    find_most_recent_transition_to_status,
)
from aging_wip.core.models import DeliveredChangelog, StatusChangeEvent


def _ev(ts, src, dst):
    return StatusChangeEvent(timestamp=ts, from_status_id=src, to_status_id=dst)


def _log(*events):
    return DeliveredChangelog(tuple(events))


def test_same_day_bounce_is_discarded(category_map):
    log = _log(
        _ev(datetime(2024, 1, 10, 9, tzinfo=UTC), "1", "3"),
        _ev(datetime(2024, 1, 10, 15, tzinfo=UTC), "3", "1"),
    )
    assert find_first_stable_exit(log.chronological(), category_map, "UTC") is None


def test_bounce_falls_through_to_next_genuine_exit(category_map):
    genuine = datetime(2024, 1, 12, 8, tzinfo=UTC)
    log = _log(
        _ev(datetime(2024, 1, 10, 9, tzinfo=UTC), "1", "3"),
        _ev(datetime(2024, 1, 10, 15, tzinfo=UTC), "3", "1"),
        _ev(genuine, "1", "4"),
    )
    assert find_first_stable_exit(log.chronological(), category_map, "UTC") == genuine


def test_return_on_a_later_day_keeps_exit_stable(category_map):
    first = datetime(2024, 1, 10, 9, tzinfo=UTC)
    log = _log(
        _ev(first, "1", "3"),
        _ev(datetime(2024, 1, 11, 9, tzinfo=UTC), "3", "1"),
        _ev(datetime(2024, 1, 15, 9, tzinfo=UTC), "1", "3"),
    )
    assert find_first_stable_exit(log.chronological(), category_map, "UTC") == first


def test_same_day_move_forward_does_not_cancel_exit(category_map):
    first = datetime(2024, 1, 10, 9, tzinfo=UTC)
    log = _log(
        _ev(first, "1", "3"),
        _ev(datetime(2024, 1, 10, 11, tzinfo=UTC), "3", "4"),
    )
    assert find_first_stable_exit(log.chronological(), category_map, "UTC") == first


def test_calendar_day_follows_timezone(category_map):
    # 23:30Z and 02:00Z are different UTC days but the same evening in Santiago (UTC-3)
    log = _log(
        _ev(datetime(2024, 1, 10, 23, 30, tzinfo=UTC), "1", "3"),
        _ev(datetime(2024, 1, 11, 2, 0, tzinfo=UTC), "3", "1"),
    )
    chrono = log.chronological()
    assert find_first_stable_exit(chrono, category_map, "UTC") is not None
    assert find_first_stable_exit(chrono, category_map, "America/Santiago") is None


def test_unknown_statuses_are_ineligible(category_map):
    log = _log(
        _ev(datetime(2024, 1, 10, tzinfo=UTC), "99", "3"),
        _ev(datetime(2024, 1, 11, tzinfo=UTC), "1", "98"),
    )
    assert find_first_stable_exit(log.chronological(), category_map, "UTC") is None


def test_chronological_sorts_delivered_newest_first(category_map):
    exit_ts = datetime(2024, 1, 10, 9, tzinfo=UTC)
    log = _log(
        _ev(datetime(2024, 1, 20, tzinfo=UTC), "3", "5"),
        _ev(exit_ts, "1", "3"),
    )
    chrono = log.chronological()
    assert [e.timestamp for e in chrono] == sorted(e.timestamp for e in log)
    assert find_first_stable_exit(chrono, category_map, "UTC") == exit_ts


def test_ordering_preconditions_are_enforced(category_map):
    log = _log(_ev(datetime(2024, 1, 10, tzinfo=UTC), "1", "3"))
    with pytest.raises(TypeError):
        find_first_stable_exit(log, category_map)
    with pytest.raises(TypeError):
        find_most_recent_transition_to_status(log.chronological(), "3")


def test_most_recent_transition_reads_delivered_order():
    newest = datetime(2024, 2, 1, tzinfo=UTC)
    log = _log(
        _ev(newest, "4", "3"),
        _ev(datetime(2024, 1, 20, tzinfo=UTC), "3", "4"),
        _ev(datetime(2024, 1, 10, tzinfo=UTC), "1", "3"),
    )
    assert find_most_recent_transition_to_status(log, "3") == newest
    assert find_most_recent_transition_to_status(log, "5") is None
    assert find_most_recent_transition_to_status(log, None) is None


def test_empty_changelog():
    empty = DeliveredChangelog()
    assert find_first_stable_exit(empty.chronological(), {}) is None
    assert find_most_recent_transition_to_status(empty, "3") is None
