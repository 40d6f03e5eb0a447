"""Reading workflow files and locating workflows locally or on the server."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import yaml

from . import logsetup
from .util import find_workflow

WORKFLOW_EXTENSIONS = (".json", ".yaml", ".yml")
_YAML_EXTENSIONS = (".yaml", ".yml")


class WorkflowFileError(Exception):
    """A workflow file or workflow source could not be used."""


class _YamlLoader(yaml.SafeLoader):
    """Safe loader that keeps timestamps as plain strings."""


_YamlLoader.add_constructor(
    "tag:yaml.org,2002:timestamp",
    lambda loader, node: loader.construct_scalar(node),
)


def _load_yaml(content: str) -> Any:
    return yaml.load(content, Loader=_YamlLoader)


def _extension(file_path: str | os.PathLike[str]) -> str:
    return Path(file_path).suffix.lower()


def _read_text(file_path: str | os.PathLike[str]) -> str:
    try:
        return Path(file_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise WorkflowFileError(f"error reading file: {exc}") from exc


def looks_like_file_path(value: str) -> bool:
    """Tell whether a value names a workflow file rather than a workflow."""
    if not value:
        return False
    if _extension(value) in WORKFLOW_EXTENSIONS:
        return True
    return "/" in value or "\\" in value


def validate_workflow_file_extension(file_path: str | os.PathLike[str]) -> None:
    """Raise unless the file has a JSON or YAML extension."""
    ext = _extension(file_path)
    if ext not in WORKFLOW_EXTENSIONS:
        raise WorkflowFileError(f"unsupported workflow file format: {ext}")


def read_workflow_from_file(file_path: str | os.PathLike[str]) -> dict[str, Any]:
    """Load a workflow from a JSON or YAML file."""
    logsetup.debug("Processing file: %s", file_path)
    content = _read_text(file_path)

    logsetup.debug("File size: %d bytes", len(content.encode("utf-8")))
    if content:
        preview = content if len(content) <= 100 else content[:100] + "..."
        logsetup.debug("Content preview: %s", preview)

    ext = _extension(file_path)
    filename = Path(file_path).name

    if ext == ".json":
        logsetup.debug("Parsing as JSON: %s", filename)
        try:
            workflow = json.loads(content)
        except json.JSONDecodeError as exc:
            logsetup.debug("JSON parsing error: %s", exc)
            raise WorkflowFileError(f"error parsing JSON workflow: {exc}") from exc
        if not isinstance(workflow, dict):
            raise WorkflowFileError("error parsing JSON workflow: document is not an object")
        return workflow

    if ext in _YAML_EXTENSIONS:
        logsetup.debug("Parsing as YAML: %s", filename)
        try:
            workflow = _load_yaml(content)
        except yaml.YAMLError as exc:
            logsetup.debug("YAML parsing error: %s", exc)
            raise WorkflowFileError(f"error parsing YAML workflow: {exc}") from exc
        if workflow is None:
            return {}
        if not isinstance(workflow, dict):
            raise WorkflowFileError("error parsing YAML workflow: document is not a mapping")
        return workflow

    raise WorkflowFileError(f"unsupported file format: {ext}")


def extract_workflow_id_from_file(file_path: str | os.PathLike[str]) -> str:
    """Return the workflow ID stored in a file, or an empty string."""
    content = _read_text(file_path)
    ext = _extension(file_path)

    if ext == ".json":
        try:
            workflow = json.loads(content)
        except json.JSONDecodeError as exc:
            raise WorkflowFileError(f"error parsing JSON workflow: {exc}") from exc
        if not isinstance(workflow, dict):
            raise WorkflowFileError("error parsing JSON workflow: document is not an object")
        workflow_id = workflow.get("id")
        if workflow_id is None:
            return ""
        if not isinstance(workflow_id, str):
            raise WorkflowFileError("error parsing JSON workflow: id is not a string")
        return workflow_id

    if ext in _YAML_EXTENSIONS:
        try:
            workflow = _load_yaml(content)
        except yaml.YAMLError as exc:
            raise WorkflowFileError(f"error parsing YAML workflow: {exc}") from exc
        if isinstance(workflow, dict) and isinstance(workflow.get("id"), str):
            return workflow["id"]

    return ""


def extract_original_name_from_file(file_path: str | os.PathLike[str]) -> str | None:
    """Return the non-empty originalName recorded in a workflow file, if any."""
    try:
        content = Path(file_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None

    ext = _extension(file_path)
    try:
        if ext == ".json":
            data = json.loads(content)
        elif ext in _YAML_EXTENSIONS:
            data = _load_yaml(content)
        else:
            return None
    except (json.JSONDecodeError, yaml.YAMLError):
        return None

    if isinstance(data, dict):
        name = data.get("originalName")
        if isinstance(name, str) and name:
            return name
    return None


def find_local_workflow_by_name(
    directory: str | os.PathLike[str] | None, name: str | None
) -> tuple[str, dict[str, Any]] | None:
    """Find a workflow file in a directory by original or current name."""
    if not directory or not name:
        return None

    try:
        entries = sorted(os.scandir(directory), key=lambda entry: entry.name)
    except OSError as exc:
        raise WorkflowFileError(f"error reading directory: {exc}") from exc

    for entry in entries:
        if entry.is_dir() or _extension(entry.name) not in WORKFLOW_EXTENSIONS:
            continue
        file_path = os.path.join(directory, entry.name)
        if extract_original_name_from_file(file_path) == name:
            return file_path, read_workflow_from_file(file_path)
        workflow = read_workflow_from_file(file_path)
        if workflow.get("name") == name:
            return file_path, workflow
    return None


def resolve_workflow_id_by_name(client: Any, name: str) -> str:
    """Look up a workflow ID on the server by exact name.

    The client's ``get_workflows()`` returns the server's workflows as mappings.
    """
    try:
        workflows = client.get_workflows()
    except Exception as exc:
        raise WorkflowFileError(f"error fetching workflows: {exc}") from exc

    if not workflows:
        raise WorkflowFileError("no workflows found in n8n instance")
    return find_workflow(name, workflows)