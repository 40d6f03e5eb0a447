"""Pulling a single workflow from an n8n instance into a local file."""

from __future__ import annotations

import os
import sys
from typing import Any, TextIO

from .refresh import (
    ensure_directory_exists,
    extract_local_workflows,
    refresh_workflow_to_file,
)
from .util import sanitize_filename
from .workflow_file import (
    WorkflowFileError,
    extract_workflow_id_from_file,
    find_local_workflow_by_name,
    looks_like_file_path,
    read_workflow_from_file,
    resolve_workflow_id_by_name,
    validate_workflow_file_extension,
)


def _say(out: TextIO | None, message: str) -> None:
    print(message, file=sys.stdout if out is None else out)


def _extension_for(output: str) -> str:
    return ".yaml" if output.lower() in ("yaml", "yml") else ".json"


def is_workflow_name_not_found(err: BaseException | None) -> bool:
    """Tell whether an error reports that no workflow carries a given name."""
    if err is None:
        return False
    message = str(err)
    return "workflow with name" in message and "not found" in message


def pull_workflow(
    client: Any,
    out: TextIO | None = None,
    directory: str = "",
    file: str = "",
    workflow_id: str = "",
    workflow_name: str = "",
    output: str = "json",
    no_truncate: bool = False,
    dry_run: bool = False,
) -> str:
    """Fetch one workflow by ID or name and write it to a file.

    Returns the path of the file that was (or would be) written.
    """
    _say(out, "Pulling workflow...")
    directory = os.fspath(directory) if directory else ""
    output = output or ""

    if workflow_id and workflow_name:
        raise ValueError("use either --id or --name, not both")

    if file and not workflow_name and not workflow_id and not looks_like_file_path(file):
        workflow_name, file = file, ""

    file_path = os.fspath(file) if file else ""
    if file_path and not looks_like_file_path(file_path):
        workflow_name, file_path = file_path, ""

    if not workflow_id and not workflow_name and not file_path:
        raise ValueError("workflow id, name, or file is required")

    local = find_local_workflow_by_name(directory, workflow_name)

    if not workflow_id and workflow_name:
        try:
            workflow_id = resolve_workflow_id_by_name(client, workflow_name)
        except Exception as exc:
            if not is_workflow_name_not_found(exc):
                raise
            if local is not None and local[1].get("id"):
                workflow_id = local[1]["id"]

    if not workflow_id and file_path:
        try:
            file_id = extract_workflow_id_from_file(file_path)
        except WorkflowFileError:
            file_id = ""
        if file_id:
            workflow_id = file_id
        elif not workflow_name:
            try:
                workflow_name = read_workflow_from_file(file_path).get("name") or ""
            except WorkflowFileError:
                pass

    if not workflow_id and not workflow_name:
        raise ValueError("workflow id or name is required")

    if not workflow_id:
        raise WorkflowFileError(
            f"workflow '{workflow_name}' not found on server and no local ID in {directory}"
        )

    try:
        workflow = client.get_workflow(workflow_id)
    except Exception as exc:
        raise WorkflowFileError(f"error fetching workflow: {exc}") from exc

    if not workflow_name and workflow and workflow.get("name"):
        workflow_name = workflow["name"]

    if not file_path:
        if directory:
            file_path = extract_local_workflows(directory).get(workflow_id, "")
        if not file_path and local is not None and local[0]:
            file_path = local[0]
        elif not file_path:
            if not directory:
                raise ValueError("directory is required when no file path is provided")
            file_path = os.path.join(
                directory, sanitize_filename(workflow_name) + _extension_for(output)
            )

    if output:
        file_path = os.path.splitext(file_path)[0] + _extension_for(output)

    validate_workflow_file_extension(file_path)

    parent = os.path.dirname(file_path) or "."
    if parent != ".":
        ensure_directory_exists(parent, dry_run, out)

    refresh_workflow_to_file(workflow, file_path, dry_run, not no_truncate, out)
    return file_path