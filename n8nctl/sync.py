"""Synchronising local workflow files to an n8n instance."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, MutableMapping, TextIO

from .changes import (
    WorkflowResult,
    create_workflow,
    create_workflow_with_id,
    detect_workflow_changes,
    process_activation_and_tags,
    prune_workflows,
    update_workflow,
)
from .refresh import refresh_workflow_to_file, refresh_workflows
from .workflow_file import (
    WORKFLOW_EXTENSIONS,
    WorkflowFileError,
    extract_workflow_id_from_file,
    read_workflow_from_file,
    resolve_workflow_id_by_name,
    validate_workflow_file_extension,
)


def _say(out: TextIO | None, message: str) -> None:
    print(message, file=sys.stdout if out is None else out)


def process_workflow_payload(
    client: Any,
    workflow: MutableMapping[str, Any],
    filename: str,
    file_path: str | os.PathLike[str] = "",
    dry_run: bool = False,
    out: TextIO | None = None,
) -> WorkflowResult:
    """Create or update one workflow remotely, then align its active state and tags."""
    result = WorkflowResult(file_path=os.fspath(file_path), name=workflow.get("name") or "")
    workflow_id = workflow.get("id")

    if not workflow_id:
        result = create_workflow(client, workflow, filename, dry_run, result, out)
        return process_activation_and_tags(client, workflow, result, dry_run, out)

    try:
        remote = client.get_workflow(workflow_id)
    except Exception:
        result = create_workflow_with_id(client, workflow, filename, dry_run, result, out)
        return process_activation_and_tags(client, workflow, result, dry_run, out)

    if not detect_workflow_changes(workflow, remote).needs_update:
        result.workflow_id = remote.get("id") or workflow_id
        status = "No content changes for" if dry_run else "No changes needed for"
        _say(
            out,
            f"{status} workflow '{workflow.get('name') or ''}' (ID: {workflow_id}) from {filename}",
        )
        return process_activation_and_tags(client, workflow, result, dry_run, out)

    result = update_workflow(client, workflow, filename, dry_run, result, out)
    return process_activation_and_tags(client, workflow, result, dry_run, out)


def process_workflow_file(
    client: Any,
    file_path: str | os.PathLike[str],
    dry_run: bool = False,
    out: TextIO | None = None,
) -> WorkflowResult:
    """Read a workflow file and push its content to the server."""
    workflow = read_workflow_from_file(file_path)
    return process_workflow_payload(
        client, workflow, Path(file_path).name, file_path, dry_run, out
    )


def sync_single_workflow_file(
    client: Any,
    file_path: str | os.PathLike[str],
    dry_run: bool = False,
    workflow_id: str = "",
    workflow_name: str = "",
    out: TextIO | None = None,
) -> WorkflowResult:
    """Push one file, optionally forcing its target by ID or by remote name."""
    workflow = read_workflow_from_file(file_path)
    if workflow_id:
        workflow["id"] = workflow_id
    elif workflow_name:
        workflow["id"] = resolve_workflow_id_by_name(client, workflow_name)
    return process_workflow_payload(
        client, workflow, Path(file_path).name, file_path, dry_run, out
    )


def _sync_file(
    client: Any,
    out: TextIO | None,
    file_path: str,
    dry_run: bool,
    refresh: bool,
    workflow_id: str,
    workflow_name: str,
) -> list[WorkflowResult]:
    validate_workflow_file_extension(file_path)
    result = sync_single_workflow_file(client, file_path, dry_run, workflow_id, workflow_name, out)

    if refresh and not dry_run and result.workflow_id:
        _say(out, "Refreshing local workflow file with remote state...")
        try:
            workflow = client.get_workflow(result.workflow_id)
        except Exception as exc:
            _say(out, f"Error refreshing workflow after sync: {exc}")
            return [result]
        try:
            refresh_workflow_to_file(workflow, file_path, False, True, out)
        except Exception as exc:
            _say(out, f"Error refreshing workflow after sync: {exc}")
        else:
            _say(out, "Local workflow file updated successfully with remote state")
    return [result]


def _sync_directory(
    client: Any,
    out: TextIO | None,
    directory: str,
    dry_run: bool,
    prune: bool,
    refresh: bool,
    output: str,
    all_workflows: bool,
) -> list[WorkflowResult]:
    try:
        entries = sorted(os.scandir(directory), key=lambda entry: entry.name)
    except OSError as exc:
        raise WorkflowFileError(f"error reading directory: {exc}") from exc

    local_ids: set[str] = set()
    results: list[WorkflowResult] = []

    for entry in entries:
        if entry.is_dir() or Path(entry.name).suffix.lower() not in WORKFLOW_EXTENSIONS:
            continue
        file_path = os.path.join(directory, entry.name)

        try:
            local_id = extract_workflow_id_from_file(file_path)
        except WorkflowFileError:
            local_id = ""
        if local_id:
            local_ids.add(local_id)

        try:
            result = process_workflow_file(client, file_path, dry_run, out)
        except Exception as exc:
            _say(out, f"Error processing workflow file {file_path}: {exc}")
            continue
        results.append(result)

    if prune:
        try:
            prune_workflows(client, local_ids, dry_run, out)
        except Exception as exc:
            _say(out, f"Error pruning workflows: {exc}")

    if refresh and not dry_run and any(result.workflow_id for result in results):
        _say(out, "Refreshing local workflow files with remote state...")
        if not output:
            _say(out, "No output format specified, maintaining existing file formats")
        try:
            refresh_workflows(client, directory, False, True, output, True, all_workflows, out)
        except Exception as exc:
            _say(out, f"Error refreshing workflows after sync: {exc}")
        else:
            _say(out, "Local workflow files updated successfully with remote state")

    return results


def sync_workflows(
    client: Any,
    out: TextIO | None = None,
    directory: str = "",
    file_path: str = "",
    dry_run: bool = False,
    prune: bool = False,
    refresh: bool = True,
    output: str = "",
    all_workflows: bool = False,
    workflow_id: str = "",
    workflow_name: str = "",
) -> list[WorkflowResult]:
    """Push a directory of workflow files, or a single file, to the server.

    Returns the results of the workflows that were processed without error.
    """
    _say(out, "Syncing workflows...")
    directory = os.fspath(directory) if directory else ""
    file_path = os.fspath(file_path) if file_path else ""

    if file_path and directory:
        raise ValueError("use either --file or --directory, not both")
    if not file_path and not directory:
        raise ValueError("directory or file is required")
    if workflow_id and workflow_name:
        raise ValueError("use either --id or --name, not both")
    if file_path and prune:
        raise ValueError("--prune is only supported with --directory")

    if file_path:
        return _sync_file(client, out, file_path, dry_run, refresh, workflow_id, workflow_name)
    return _sync_directory(client, out, directory, dry_run, prune, refresh, output, all_workflows)