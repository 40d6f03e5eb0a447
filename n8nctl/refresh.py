"""Refreshing local workflow files from the state held by an n8n instance."""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any, Mapping, TextIO

import yaml

from .util import detect_workflow_drift, sanitize_filename
from .workflow_file import (
    WORKFLOW_EXTENSIONS,
    WorkflowFileError,
    extract_original_name_from_file,
    extract_workflow_id_from_file,
    read_workflow_from_file,
    resolve_workflow_id_by_name,
)

_YAML_EXTENSIONS = (".yaml", ".yml")


class _Loader(yaml.SafeLoader):
    """Safe loader that keeps timestamps as plain strings."""


_Loader.add_constructor(
    "tag:yaml.org,2002:timestamp",
    lambda loader, node: loader.construct_scalar(node),
)


def _say(out: TextIO | None, message: str) -> None:
    print(message, file=sys.stdout if out is None else out)


def _ext(path: str | os.PathLike[str]) -> str:
    return Path(path).suffix.lower()


def _wants_yaml(output: str | None) -> bool:
    return (output or "").lower() in ("yaml", "yml")


def _without_nulls(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _without_nulls(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_without_nulls(item) for item in value]
    return value


def _decode(content: str) -> dict[str, Any]:
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        data = yaml.load(content, Loader=_Loader)
    if not isinstance(data, dict):
        raise ValueError("workflow document is not a mapping")
    return data


def ensure_directory_exists(
    directory: str | os.PathLike[str], dry_run: bool = False, out: TextIO | None = None
) -> None:
    """Create the directory when missing, or report that it would be created."""
    try:
        os.stat(directory)
    except FileNotFoundError:
        if dry_run:
            _say(out, f"Would create directory: {directory}")
            return
        try:
            os.makedirs(directory, mode=0o755, exist_ok=True)
        except OSError as exc:
            raise WorkflowFileError(f"error creating directory: {exc}") from exc
        _say(out, f"Created directory: {directory}")
    except OSError as exc:
        raise WorkflowFileError(f"error accessing directory: {exc}") from exc


def extract_local_workflows(directory: str | os.PathLike[str]) -> dict[str, str]:
    """Map workflow IDs to the files in a directory that hold them; YAML wins over JSON."""
    local_files: dict[str, str] = {}
    try:
        entries = sorted(os.scandir(directory), key=lambda entry: entry.name)
    except FileNotFoundError:
        return local_files
    except OSError as exc:
        raise WorkflowFileError(f"error reading directory: {exc}") from exc

    for entry in entries:
        if entry.is_dir() or _ext(entry.name) not in WORKFLOW_EXTENSIONS:
            continue
        file_path = os.path.join(directory, entry.name)
        try:
            workflow_id = extract_workflow_id_from_file(file_path)
        except WorkflowFileError:
            continue
        if not workflow_id:
            continue
        existing = local_files.get(workflow_id)
        if existing is not None:
            if _ext(file_path) in _YAML_EXTENSIONS and _ext(existing) == ".json":
                local_files[workflow_id] = file_path
            continue
        local_files[workflow_id] = file_path
    return local_files


def determine_file_path_and_action(
    workflow: Mapping[str, Any],
    local_files: Mapping[str, str],
    directory: str | os.PathLike[str],
    output: str = "",
    overwrite: bool = False,
) -> tuple[str, str]:
    """Choose the target file for a workflow and whether it is created, converted or updated."""
    workflow_id = workflow["id"]
    output = output or ""
    existing_path = local_files.get(workflow_id)

    extension = ".json"
    if existing_path is not None and output == "":
        existing_ext = _ext(existing_path)
        if existing_ext in _YAML_EXTENSIONS:
            extension = existing_ext
    elif _wants_yaml(output):
        extension = ".yaml"

    default_path = os.path.join(
        directory, sanitize_filename(workflow.get("name") or "") + extension
    )

    if existing_path is None or overwrite:
        return default_path, "Creating"

    existing_ext = _ext(existing_path)
    if _wants_yaml(output) and existing_ext == ".json":
        return default_path, "Converting"
    if output.lower() == "json" and existing_ext in _YAML_EXTENSIONS:
        return default_path, "Converting"
    return existing_path, "Updating"


def serialize_workflow(
    workflow: Mapping[str, Any],
    file_path: str | os.PathLike[str],
    minimal: bool = True,
    original_name: str = "",
) -> str:
    """Render a workflow as JSON or YAML depending on the file extension."""
    data = _without_nulls(workflow) if minimal else dict(workflow)
    try:
        data = json.loads(json.dumps(data))
    except (TypeError, ValueError) as exc:
        raise WorkflowFileError(
            f"error serializing workflow '{workflow.get('name', '')}' to JSON: {exc}"
        ) from exc

    if original_name and "originalName" not in data:
        data["originalName"] = original_name

    if _ext(file_path) in _YAML_EXTENSIONS:
        body = yaml.safe_dump(
            data, sort_keys=True, indent=2, allow_unicode=True, default_flow_style=False
        )
        return "---\n" + body
    return json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False)


def workflow_needs_update(
    file_path: str | os.PathLike[str],
    existing_path: str | os.PathLike[str],
    content: str,
    minimal: bool = True,
) -> bool:
    """Tell whether the file differs from the freshly serialized content."""
    path = Path(file_path)
    if not path.exists():
        return True
    if Path(existing_path).suffix.lower() != path.suffix.lower():
        return True
    try:
        existing_content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return True
    try:
        existing_workflow = _decode(existing_content)
        new_workflow = _decode(content)
    except (ValueError, yaml.YAMLError):
        return True
    return detect_workflow_drift(existing_workflow, new_workflow, minimal)


def _write(file_path: str, content: str, name: str) -> None:
    try:
        Path(file_path).write_text(content, encoding="utf-8")
    except OSError as exc:
        raise WorkflowFileError(f"error writing workflow '{name}' to file: {exc}") from exc


def process_workflow(
    workflow: Mapping[str, Any],
    local_files: Mapping[str, str],
    directory: str | os.PathLike[str],
    dry_run: bool = False,
    overwrite: bool = False,
    output: str = "",
    minimal: bool = True,
    out: TextIO | None = None,
) -> None:
    """Write one remote workflow into the directory when it changed."""
    name = workflow.get("name") or ""
    workflow_id = workflow.get("id")
    if not workflow_id:
        _say(out, f"Skipping workflow '{name}' with no ID")
        return

    file_path, action = determine_file_path_and_action(
        workflow, local_files, directory, output, overwrite
    )
    existing_path = local_files.get(workflow_id, "")

    original_name = name
    original_name_found = False
    if existing_path:
        found = extract_original_name_from_file(existing_path)
        if found is not None:
            original_name = found
            original_name_found = True

    content = serialize_workflow(workflow, file_path, minimal, original_name)

    if action == "Updating":
        needs_update = workflow_needs_update(file_path, existing_path, content, minimal)
        if not needs_update and not original_name_found:
            needs_update = True
        if not needs_update:
            _say(out, f"No changes for workflow '{name}' (ID: {workflow_id}) in file: {file_path}")
            return

    if dry_run:
        _say(
            out,
            f"Would {action.lower()} workflow '{name}' (ID: {workflow_id}) to file: {file_path}",
        )
        return

    _write(file_path, content, name)
    _say(out, f"{action} workflow '{name}' (ID: {workflow_id}) to file: {file_path}")


def refresh_workflow_to_file(
    workflow: Mapping[str, Any],
    file_path: str | os.PathLike[str],
    dry_run: bool = False,
    minimal: bool = True,
    out: TextIO | None = None,
) -> None:
    """Write one workflow to a given file when it changed."""
    file_path = os.fspath(file_path)
    name = workflow.get("name") or ""
    workflow_id = workflow.get("id")
    if not workflow_id:
        _say(out, f"Skipping workflow '{name}' with no ID")
        return

    exists = os.path.exists(file_path)
    original_name = name
    original_name_found = False
    if exists:
        found = extract_original_name_from_file(file_path)
        if found is not None:
            original_name = found
            original_name_found = True

    content = serialize_workflow(workflow, file_path, minimal, original_name)
    action = "Updating" if exists else "Creating"

    if action == "Updating":
        needs_update = workflow_needs_update(file_path, file_path, content, minimal)
        if not needs_update and not original_name_found:
            needs_update = True
        if not needs_update:
            _say(out, f"No changes for workflow '{name}' (ID: {workflow_id}) in file: {file_path}")
            return

    if dry_run:
        _say(
            out,
            f"Would {action.lower()} workflow '{name}' (ID: {workflow_id}) to file: {file_path}",
        )
        return

    _write(file_path, content, name)
    _say(out, f"{action} workflow '{name}' (ID: {workflow_id}) to file: {file_path}")


def refresh_workflows(
    client: Any,
    directory: str | os.PathLike[str],
    dry_run: bool = False,
    overwrite: bool = False,
    output: str = "json",
    minimal: bool = True,
    all_workflows: bool = False,
    out: TextIO | None = None,
) -> None:
    """Refresh the workflow files of a directory from the server.

    Without ``all_workflows`` only workflows already present locally are fetched,
    unless the directory holds none.
    """
    ensure_directory_exists(directory, dry_run, out)
    local_files = extract_local_workflows(directory)

    if all_workflows or not local_files:
        _say(out, "Refreshing all workflows from n8n instance")
        try:
            workflows = client.get_workflows()
        except Exception as exc:
            raise WorkflowFileError(f"error fetching workflows: {exc}") from exc
        if not workflows:
            _say(out, "No workflows found in n8n instance")
            return
        for workflow in workflows:
            process_workflow(
                workflow, local_files, directory, dry_run, overwrite, output, minimal, out
            )
    else:
        _say(out, "Refreshing only workflows that exist in the directory")
        refreshed = 0
        for workflow_id in list(local_files):
            try:
                workflow = client.get_workflow(workflow_id)
            except Exception as exc:
                _say(out, f"Warning: Could not fetch workflow with ID {workflow_id}: {exc}")
                continue
            process_workflow(
                workflow, local_files, directory, dry_run, overwrite, output, minimal, out
            )
            refreshed += 1
        if refreshed == 0:
            _say(
                out,
                "No workflows were refreshed. Either the local workflows don't exist in the "
                "n8n instance or there was an error fetching them. Try refresh --all and "
                "delete the local files you don't want to track.",
            )

    _say(out, "Workflow refresh completed successfully")


def refresh_single_workflow(
    client: Any,
    file_path: str | os.PathLike[str],
    workflow_id: str = "",
    workflow_name: str = "",
    dry_run: bool = False,
    minimal: bool = True,
    out: TextIO | None = None,
) -> None:
    """Refresh one workflow file, identified by ID, name, or the file's own content."""
    file_path = os.fspath(file_path)
    parent = os.path.dirname(file_path) or "."
    if parent != ".":
        ensure_directory_exists(parent, dry_run, out)

    if not workflow_id and not workflow_name and os.path.exists(file_path):
        try:
            workflow_id = extract_workflow_id_from_file(file_path)
        except WorkflowFileError:
            workflow_id = ""
        if not workflow_id:
            try:
                workflow_name = read_workflow_from_file(file_path).get("name") or ""
            except WorkflowFileError:
                workflow_name = ""

    if not workflow_id and not workflow_name:
        raise WorkflowFileError("workflow id or name is required when using --file")

    if not workflow_id:
        workflow_id = resolve_workflow_id_by_name(client, workflow_name)

    try:
        workflow = client.get_workflow(workflow_id)
    except Exception as exc:
        raise WorkflowFileError(f"error fetching workflow: {exc}") from exc

    refresh_workflow_to_file(workflow, file_path, dry_run, minimal, out)