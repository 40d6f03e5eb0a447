"""Listing the workflows of an n8n instance as a table, JSON or YAML."""

from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from functools import cmp_to_key
from typing import Any, Iterable, Mapping, Sequence, TextIO

import yaml

FORMAT_TABLE = "table"
FORMAT_JSON = "json"
FORMAT_YAML = "yaml"

_ORDERS = ("asc", "desc")
_PADDING = 3
_HEADER = ("ID", "NAME", "ACTIVE", "LAST_UPDATED")


def _say(out: TextIO | None, message: str) -> None:
    print(message, file=sys.stdout if out is None else out)


def _parse_time(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not isinstance(value, str) or not value:
        return None
    text = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _format_rfc3339(value: Any) -> str:
    parsed = _parse_time(value)
    if parsed is None:
        return str(value)
    stamp = parsed.strftime("%Y-%m-%dT%H:%M:%S")
    offset = parsed.utcoffset()
    if not offset:
        return stamp + "Z"
    total = int(offset.total_seconds())
    sign = "+" if total >= 0 else "-"
    hours, minutes = divmod(abs(total) // 60, 60)
    return f"{stamp}{sign}{hours:02d}:{minutes:02d}"


def _normalise_order(order: str | None) -> str:
    normalised = (order or "").lower() or "asc"
    if normalised not in _ORDERS:
        raise ValueError(f"unsupported sort order: {order}. Supported orders: asc, desc")
    return normalised


def sort_workflows(
    workflows: Iterable[Mapping[str, Any]], order: str = "asc"
) -> list[Mapping[str, Any]]:
    """Sort workflows by last update, ties and undated ones by name.

    Workflows without an update time come first in ascending order and last
    in descending order.
    """
    ascending = _normalise_order(order) == "asc"

    def compare(left: Mapping[str, Any], right: Mapping[str, Any]) -> int:
        left_name = left.get("name") or ""
        right_name = right.get("name") or ""
        by_name = (left_name > right_name) - (left_name < right_name)
        left_time = _parse_time(left.get("updatedAt"))
        right_time = _parse_time(right.get("updatedAt"))
        if left_time is None and right_time is None:
            return by_name
        if left_time is None:
            return -1 if ascending else 1
        if right_time is None:
            return 1 if ascending else -1
        if left_time == right_time:
            return by_name
        earlier = -1 if left_time < right_time else 1
        return earlier if ascending else -earlier

    return sorted(workflows, key=cmp_to_key(compare))


def _row(workflow: Mapping[str, Any]) -> tuple[str, str, str, str]:
    workflow_id = workflow.get("id")
    updated = workflow.get("updatedAt")
    return (
        str(workflow_id) if workflow_id is not None else "N/A",
        workflow.get("name") or "",
        "Yes" if workflow.get("active") is True else "No",
        _format_rfc3339(updated) if updated is not None else "N/A",
    )


def format_workflow_table(workflows: Iterable[Mapping[str, Any]]) -> str:
    """Render workflows as left-aligned columns separated by at least three spaces."""
    rows: list[Sequence[str]] = [_HEADER, *(_row(w) for w in workflows)]
    widths = [max(len(row[column]) for row in rows) + _PADDING for column in range(3)]
    lines = [
        "".join(cell.ljust(width) for cell, width in zip(row[:3], widths)) + row[3]
        for row in rows
    ]
    return "\n".join(lines) + "\n"


def list_workflows(
    client: Any,
    out: TextIO | None = None,
    output_format: str = FORMAT_TABLE,
    order: str = "asc",
) -> list[Mapping[str, Any]]:
    """Fetch the server's workflows, sort them and print them in the chosen format.

    Returns the sorted workflows.
    """
    workflows = client.get_workflows()
    if not workflows:
        _say(out, "No workflows found")
        return []

    ordered = sort_workflows(workflows, order)
    fmt = (output_format or "").lower()
    stream = sys.stdout if out is None else out

    if fmt == FORMAT_JSON:
        print(json.dumps(ordered, indent=2, ensure_ascii=False), file=stream)
    elif fmt == FORMAT_YAML:
        print(
            yaml.safe_dump(
                [dict(w) for w in ordered], sort_keys=False, allow_unicode=True
            ),
            file=stream,
        )
    elif fmt == FORMAT_TABLE:
        stream.write(format_workflow_table(ordered))
    else:
        raise ValueError(
            f"unsupported output format: {output_format}. "
            "Supported formats: table, json, yaml"
        )
    return ordered