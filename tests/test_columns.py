import pandas as pd

from aging_wip.analytics.aggregations.columns import build_columns, group_items_by_status, parse_columns_order


def _items(n, prefix="PROJ"):
    return [{"key": f"{prefix}-{i}", "age": i + 1} for i in range(n)]


def test_explicit_order_synthesizes_empty_columns():
    columns = build_columns(
        {"Doing": _items(3)},
        {"Backlog": "1", "Doing": "3", "Done": "5"},
        {},
        ["Backlog", "Doing", "Done"],
    )
    assert [(c.name, c.order, len(c.items)) for c in columns] == [
        ("Backlog", 1, 0),
        ("Doing", 2, 3),
        ("Done", 3, 0),
    ]


def test_empty_column_keeps_historical_sle():
    columns = build_columns({}, {"Review": "4"}, {"4": (2, 5, 8)}, ["Review"])
    assert columns[0].items == []
    assert columns[0].sle == (2, 5, 8)


def test_unlisted_columns_follow_in_encounter_order():
    grouped = {"QA": _items(1), "Doing": _items(2), "Blocked": _items(1)}
    columns = build_columns(grouped, {}, None, ["Doing"])
    assert [c.name for c in columns] == ["Doing", "QA", "Blocked"]
    assert [c.order for c in columns] == [1, 2, 3]


def test_without_order_uses_encounter_order():
    columns = build_columns({"B": _items(1), "A": _items(1)}, {}, None)
    assert [(c.name, c.order) for c in columns] == [("B", 1), ("A", 2)]


def test_unresolvable_status_has_no_sle():
    columns = build_columns({"Doing": _items(1)}, {"Doing": "3"}, {"3": (4, 6)}, ["Ghost", "Doing"])
    by_name = {c.name: c for c in columns}
    assert by_name["Ghost"].sle is None
    assert by_name["Doing"].sle == (4, 6)


def test_missing_sle_serializes_as_null():
    column = build_columns({"Doing": _items(2)}, {"Doing": "3"}, {})[0]
    data = column.to_dict()
    assert data["sle"] is None
    assert data["top_text"] == "WIP: 2"


def test_group_items_by_status_keeps_encounter_order():
    df = pd.DataFrame(
        {
            "status": ["Review", "Doing", "Review"],
            "item": [{"key": "A"}, {"key": "B"}, {"key": "C"}],
        }
    )
    grouped = group_items_by_status(df)
    assert list(grouped) == ["Review", "Doing"]
    assert [i["key"] for i in grouped["Review"]] == ["A", "C"]


def test_parse_columns_order():
    assert parse_columns_order(" To Do, Doing ,Done ") == ["To Do", "Doing", "Done"]
    assert parse_columns_order(["A", " "]) == ["A"]
    assert parse_columns_order("") is None
    assert parse_columns_order(None) is None
