"""Deciding and applying the remote changes that a local workflow calls for."""

from __future__ import annotations

import sys
from dataclasses import dataclass, replace
from typing import Any, Callable, Iterable, Mapping, TextIO

from .util import detect_workflow_drift
from .workflow_file import WorkflowFileError

_IGNORED_FOR_DRIFT = ("id", "active", "tags")


@dataclass
class WorkflowChange:
    """What has to happen remotely to match a local workflow."""

    needs_update: bool = False
    needs_activation: bool = False
    needs_deactivation: bool = False
    needs_tags_update: bool = False


@dataclass
class WorkflowResult:
    """Outcome of pushing one workflow to the server."""

    workflow_id: str = ""
    name: str = ""
    file_path: str = ""
    created: bool = False
    updated: bool = False


def _say(out: TextIO | None, message: str) -> None:
    print(message, file=sys.stdout if out is None else out)


def _has_tags(workflow: Mapping[str, Any]) -> bool:
    return bool(workflow.get("tags"))


def execute_or_dry_run(
    out: TextIO | None,
    dry_run: bool,
    dry_run_msg: str,
    action: Callable[[], str],
) -> None:
    """Run the action and print its message, or only print what would happen."""
    if dry_run:
        _say(out, dry_run_msg)
        return
    message = action()
    if message:
        _say(out, message)


def detect_workflow_changes(
    local: Mapping[str, Any], remote: Mapping[str, Any] | None
) -> WorkflowChange:
    """Compare a local workflow with its remote copy."""
    changes = WorkflowChange()
    local_active = local.get("active")

    if remote is None:
        changes.needs_activation = local_active is True
        changes.needs_tags_update = _has_tags(local)
        return changes

    local_copy = {k: v for k, v in local.items() if k not in _IGNORED_FOR_DRIFT}
    remote_copy = {k: v for k, v in remote.items() if k not in _IGNORED_FOR_DRIFT}
    changes.needs_update = detect_workflow_drift(remote_copy, local_copy, True)

    remote_active = remote.get("active")
    if local_active is not None and remote_active is not None:
        if local_active and not remote_active:
            changes.needs_activation = True
        elif not local_active and remote_active:
            changes.needs_deactivation = True
    elif local_active:
        changes.needs_activation = True

    if _has_tags(local):
        remote_tags = remote.get("tags")
        if not remote_tags or list(local["tags"]) != list(remote_tags):
            changes.needs_tags_update = True

    return changes


def get_existing_tags_map(client: Any) -> dict[str, str]:
    """Map the names of the server's tags to their IDs."""
    try:
        tags = client.get_tags()
    except Exception as exc:
        raise WorkflowFileError(f"error fetching tags: {exc}") from exc
    return {tag.get("name", ""): tag["id"] for tag in tags or () if tag.get("id") is not None}


def handle_tag_updates(
    client: Any,
    workflow: Mapping[str, Any],
    workflow_id: str,
    dry_run: bool = False,
    out: TextIO | None = None,
) -> None:
    """Make sure the workflow's tags exist and attach them to the remote workflow."""
    tags = workflow.get("tags") or []
    if not tags:
        return

    name = workflow.get("name", "")
    if dry_run:
        existing: dict[str, str] = {}
    else:
        try:
            existing = get_existing_tags_map(client)
        except WorkflowFileError as exc:
            raise WorkflowFileError(f"error fetching existing tags: {exc}") from exc

    tag_ids: list[dict[str, str]] = []
    for tag in tags:
        tag_name = tag.get("name", "")
        if tag.get("id"):
            tag_ids.append({"id": tag["id"]})
            continue
        if dry_run:
            _say(out, f"Would create tag '{tag_name}' for workflow '{name}'")
            continue
        if tag_name in existing:
            tag_ids.append({"id": existing[tag_name]})
            continue

        def create_tag(tag_name: str = tag_name) -> str:
            try:
                created = client.create_tag(tag_name)
            except Exception as exc:
                raise WorkflowFileError(f"error creating tag '{tag_name}': {exc}") from exc
            created_id = created.get("id")
            if created_id is not None:
                tag_ids.append({"id": created_id})
                existing[tag_name] = created_id
            return f"Created tag '{tag_name}' (ID: {created_id or ''})"

        execute_or_dry_run(
            out, dry_run, f"Would create tag '{tag_name}' for workflow '{name}'", create_tag
        )

    if not tag_ids and not dry_run:
        return

    def update_tags() -> str:
        try:
            client.update_workflow_tags(workflow_id, tag_ids)
        except Exception as exc:
            raise WorkflowFileError(f"error updating workflow tags: {exc}") from exc
        return f"Updated tags for workflow '{name}' (ID: {workflow_id})"

    execute_or_dry_run(
        out, dry_run, f"Would update tags for workflow '{name}' (ID: {workflow_id})", update_tags
    )


def _create(
    client: Any,
    workflow: Mapping[str, Any],
    filename: str,
    dry_run: bool,
    result: WorkflowResult,
    out: TextIO | None,
    dry_run_msg: str,
) -> WorkflowResult:
    outcome = result

    def action() -> str:
        nonlocal outcome
        try:
            created = client.create_workflow(workflow)
        except Exception as exc:
            raise WorkflowFileError(f"error creating workflow: {exc}") from exc
        outcome = replace(result, created=True, workflow_id=created.get("id", ""))
        return (
            f"Created workflow '{created.get('name', '')}' "
            f"(ID: {created.get('id', '')}) from {filename}"
        )

    execute_or_dry_run(out, dry_run, dry_run_msg, action)
    return outcome


def create_workflow(
    client: Any,
    workflow: Mapping[str, Any],
    filename: str,
    dry_run: bool = False,
    result: WorkflowResult | None = None,
    out: TextIO | None = None,
) -> WorkflowResult:
    """Create a workflow that has no ID yet."""
    result = WorkflowResult() if result is None else result
    message = f"Would create workflow '{workflow.get('name', '')}' from {filename}"
    return _create(client, workflow, filename, dry_run, result, out, message)


def create_workflow_with_id(
    client: Any,
    workflow: Mapping[str, Any],
    filename: str,
    dry_run: bool = False,
    result: WorkflowResult | None = None,
    out: TextIO | None = None,
) -> WorkflowResult:
    """Create a workflow whose ID is set locally but unknown to the server."""
    result = WorkflowResult() if result is None else result
    message = (
        f"Would create workflow '{workflow.get('name', '')}' with ID {workflow.get('id', '')} "
        f"from {filename} (ID specified but not found on server)"
    )
    return _create(client, workflow, filename, dry_run, result, out, message)


def update_workflow(
    client: Any,
    workflow: Mapping[str, Any],
    filename: str,
    dry_run: bool = False,
    result: WorkflowResult | None = None,
    out: TextIO | None = None,
) -> WorkflowResult:
    """Update an existing remote workflow with the local content."""
    result = WorkflowResult() if result is None else result
    workflow_id = workflow.get("id", "")
    outcome = result

    def action() -> str:
        nonlocal outcome
        try:
            updated = client.update_workflow(workflow_id, workflow)
        except Exception as exc:
            raise WorkflowFileError(f"error updating workflow: {exc}") from exc
        outcome = replace(result, updated=True, workflow_id=updated.get("id", ""))
        return (
            f"Updated workflow '{updated.get('name', '')}' "
            f"(ID: {updated.get('id', '')}) from {filename}"
        )

    message = (
        f"Would update workflow '{workflow.get('name', '')}' (ID: {workflow_id}) from {filename}"
    )
    execute_or_dry_run(out, dry_run, message, action)
    return outcome


def process_activation_and_tags(
    client: Any,
    workflow: Mapping[str, Any],
    result: WorkflowResult,
    dry_run: bool = False,
    out: TextIO | None = None,
) -> WorkflowResult:
    """Bring the remote active state and tags in line with the local workflow."""
    if not result.workflow_id:
        return result

    workflow_id = result.workflow_id
    name = workflow.get("name", "")
    id_info = f"(ID: {workflow_id})"
    active = workflow.get("active")

    if result.created:
        changes = WorkflowChange(
            needs_activation=active is True, needs_tags_update=_has_tags(workflow)
        )
    else:
        try:
            remote = client.get_workflow(workflow_id)
        except Exception as exc:
            _say(
                out,
                "Warning: Could not retrieve workflow details for activation/tag "
                f"processing: {exc}",
            )
            changes = WorkflowChange(
                needs_activation=active is True, needs_tags_update=_has_tags(workflow)
            )
        else:
            changes = detect_workflow_changes(workflow, remote)

    if active is not None:
        if active and changes.needs_activation:

            def activate() -> str:
                try:
                    client.activate_workflow(workflow_id)
                except Exception as exc:
                    raise WorkflowFileError(f"error activating workflow: {exc}") from exc
                return f"Activated workflow '{name}' {id_info}"

            execute_or_dry_run(
                out, dry_run, f"Would activate workflow '{name}' {id_info}", activate
            )
        elif not active and changes.needs_deactivation:

            def deactivate() -> str:
                try:
                    client.deactivate_workflow(workflow_id)
                except Exception as exc:
                    raise WorkflowFileError(f"error deactivating workflow: {exc}") from exc
                return f"Deactivated workflow '{name}' {id_info}"

            execute_or_dry_run(
                out, dry_run, f"Would deactivate workflow '{name}' {id_info}", deactivate
            )

    if changes.needs_tags_update and _has_tags(workflow):
        handle_tag_updates(client, workflow, workflow_id, dry_run, out)

    return result


def prune_workflows(
    client: Any,
    local_workflow_ids: Iterable[str],
    dry_run: bool = False,
    out: TextIO | None = None,
) -> None:
    """Delete remote workflows whose IDs are not among the local ones."""
    keep = set(local_workflow_ids)
    try:
        workflows = client.get_workflows()
    except Exception as exc:
        raise WorkflowFileError(f"error getting workflows from n8n: {exc}") from exc
    if workflows is None:
        raise WorkflowFileError("no workflows found in n8n instance")

    for workflow in workflows:
        workflow_id = workflow.get("id")
        if not workflow_id or workflow_id in keep:
            continue
        name = workflow.get("name", "")

        def delete(workflow_id: str = workflow_id, name: str = name) -> str:
            try:
                client.delete_workflow(workflow_id)
            except Exception as exc:
                raise WorkflowFileError(
                    f"error deleting workflow {name} ({workflow_id}): {exc}"
                ) from exc
            return f"Deleted workflow '{name}' (ID: {workflow_id}) that was not in local files"

        execute_or_dry_run(
            out,
            dry_run,
            f"Would delete workflow '{name}' (ID: {workflow_id}) that was not in local files",
            delete,
        )