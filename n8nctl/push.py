"""Pushing a single local workflow file to an n8n instance."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, TextIO

from .changes import WorkflowResult
from .sync import process_workflow_payload
from .util import WorkflowNotFoundError
from .workflow_file import (
    WorkflowFileError,
    find_local_workflow_by_name,
    looks_like_file_path,
    read_workflow_from_file,
    resolve_workflow_id_by_name,
    validate_workflow_file_extension,
)


def _say(out: TextIO | None, message: str) -> None:
    print(message, file=sys.stdout if out is None else out)


def push_workflow(
    client: Any,
    out: TextIO | None = None,
    directory: str = "",
    file: str = "",
    workflow_id: str = "",
    workflow_name: str = "",
    dry_run: bool = False,
) -> WorkflowResult:
    """Push one workflow, named by file path or by name within a directory."""
    _say(out, "Pushing workflow...")

    if workflow_id and workflow_name:
        raise ValueError("use either --id or --name, not both")

    if file and not workflow_name and not workflow_id and not looks_like_file_path(file):
        workflow_name, file = file, ""

    file_path = file
    if file_path and not looks_like_file_path(file_path):
        workflow_name, file_path = file_path, ""

    if not file_path and not workflow_name:
        raise ValueError("workflow name or file is required")

    if not file_path:
        found = find_local_workflow_by_name(directory, workflow_name)
        if found is None:
            raise WorkflowFileError(f"workflow '{workflow_name}' not found in {directory}")
        file_path = found[0]

    validate_workflow_file_extension(file_path)
    workflow = read_workflow_from_file(file_path)

    if workflow_id:
        workflow["id"] = workflow_id
    elif workflow_name:
        try:
            workflow["id"] = resolve_workflow_id_by_name(client, workflow_name)
        except WorkflowNotFoundError:
            pass

    filename = Path(file_path).name
    result = process_workflow_payload(client, workflow, filename, file_path, dry_run, out)

    if result.workflow_id:
        _say(
            out,
            f"Workflow '{workflow.get('name') or ''}' synced (ID: {result.workflow_id}) "
            f"from {filename}",
        )
    return result