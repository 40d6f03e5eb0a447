"""Activating and deactivating workflows on an n8n instance."""

from __future__ import annotations

import sys
from typing import Any, Callable, Mapping, TextIO


def _say(out: TextIO | None, message: str) -> None:
    print(message, file=sys.stdout if out is None else out)


def _toggle(
    call: Callable[[str], Mapping[str, Any]],
    workflow_id: str,
    verb: str,
    past: str,
    out: TextIO | None,
) -> Mapping[str, Any]:
    if not workflow_id:
        raise ValueError("this command requires a workflow ID")
    try:
        workflow = call(workflow_id)
    except Exception as exc:
        print(f"Error {verb} workflow: {exc}", file=sys.stderr)
        raise
    _say(out, f"Workflow with ID {workflow_id} has been {past} successfully")
    name = (workflow or {}).get("name")
    if name:
        _say(out, f"Name: {name}")
    return workflow


def activate_workflow(
    client: Any, workflow_id: str, out: TextIO | None = None
) -> Mapping[str, Any]:
    """Activate a workflow by ID and report it."""
    return _toggle(client.activate_workflow, workflow_id, "activating", "activated", out)


def deactivate_workflow(
    client: Any, workflow_id: str, out: TextIO | None = None
) -> Mapping[str, Any]:
    """Deactivate a workflow by ID and report it."""
    return _toggle(client.deactivate_workflow, workflow_id, "deactivating", "deactivated", out)