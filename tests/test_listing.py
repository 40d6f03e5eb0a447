import io
import json

import pytest
import yaml

from n8nctl.listing import format_workflow_table, list_workflows, sort_workflows


class FakeClient:
    def __init__(self, workflows):
        self.workflows = workflows

    def get_workflows(self):
        return self.workflows


WORKFLOWS = [
    {"id": "3", "name": "charlie", "active": True, "updatedAt": "2024-03-01T00:00:00.000Z"},
    {"id": "1", "name": "alpha", "active": False, "updatedAt": "2024-01-01T00:00:00.000Z"},
    {"id": "4", "name": "delta", "active": True},
    {"id": "2", "name": "bravo", "active": False, "updatedAt": "2024-01-01T00:00:00.000Z"},
]


def _ids(workflows):
    return [w["id"] for w in workflows]


def test_sort_ascending_puts_undated_first_and_ties_by_name():
    assert _ids(sort_workflows(WORKFLOWS, "asc")) == ["4", "1", "2", "3"]


def test_sort_descending_puts_undated_last():
    assert _ids(sort_workflows(WORKFLOWS, "desc")) == ["3", "1", "2", "4"]


def test_sort_order_is_case_insensitive_and_defaults_to_ascending():
    assert sort_workflows(WORKFLOWS, "") == sort_workflows(WORKFLOWS, "ASC")


def test_sort_rejects_unknown_order():
    with pytest.raises(ValueError, match="unsupported sort order: up"):
        sort_workflows(WORKFLOWS, "up")


def test_sort_undated_by_name():
    items = [{"id": "b", "name": "b"}, {"id": "a", "name": "a"}]
    assert _ids(sort_workflows(items, "desc")) == ["a", "b"]


def test_table_pinned_layout():
    table = format_workflow_table(
        [{"id": "1", "name": "a", "active": True, "updatedAt": "2024-01-02T03:04:05.000Z"}]
    )
    assert table == (
        "ID   NAME   ACTIVE   LAST_UPDATED\n"
        "1    a      Yes      2024-01-02T03:04:05Z\n"
    )


def test_table_columns_align():
    lines = format_workflow_table(WORKFLOWS).splitlines()
    assert len(lines) == len(WORKFLOWS) + 1
    start = lines[0].index("LAST_UPDATED")
    for line in lines[1:]:
        assert line[start - 1] == " "
        assert line[start] != " "


def test_table_placeholders_for_missing_values():
    table = format_workflow_table([{"name": "x"}])
    row = table.splitlines()[1].split()
    assert row == ["N/A", "x", "No", "N/A"]


def test_table_keeps_time_offset():
    table = format_workflow_table(
        [{"id": "9", "name": "z", "active": True, "updatedAt": "2024-05-06T07:08:09+02:00"}]
    )
    assert table.splitlines()[1].endswith("2024-05-06T07:08:09+02:00")


def test_list_json_round_trip():
    out = io.StringIO()
    result = list_workflows(FakeClient(WORKFLOWS), out, "json", "asc")
    assert json.loads(out.getvalue()) == result
    assert _ids(result) == ["4", "1", "2", "3"]


def test_list_yaml_round_trip():
    out = io.StringIO()
    result = list_workflows(FakeClient(WORKFLOWS), out, "YAML", "desc")
    assert yaml.safe_load(out.getvalue()) == result


def test_list_table_writes_rows():
    out = io.StringIO()
    list_workflows(FakeClient(WORKFLOWS), out, "table", "asc")
    lines = out.getvalue().splitlines()
    assert lines[0].split() == ["ID", "NAME", "ACTIVE", "LAST_UPDATED"]
    assert [line.split()[0] for line in lines[1:]] == ["4", "1", "2", "3"]


def test_list_rejects_unknown_format():
    with pytest.raises(ValueError, match="unsupported output format: xml"):
        list_workflows(FakeClient(WORKFLOWS), io.StringIO(), "xml", "asc")


def test_list_empty_reports_and_skips_order_check():
    out = io.StringIO()
    assert list_workflows(FakeClient([]), out, "table", "sideways") == []
    assert out.getvalue() == "No workflows found\n"