"""Helpers shared by the workflow commands."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

API_SUFFIX = "/api/v1"

_FORBIDDEN_CHARS = frozenset('<>:"/\\|?*')
_RESERVED_NAMES = frozenset({"CON", "PRN", "AUX", "NUL"})


class WorkflowNotFoundError(LookupError):
    """No workflow carries the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"workflow with name '{name}' not found")
        self.name = name


def format_api_base_url(instance_url: str) -> str:
    """Return the instance URL with the API path appended once."""
    instance_url = instance_url.removesuffix("/")
    if not instance_url.endswith(API_SUFFIX):
        instance_url += API_SUFFIX
    return instance_url


def find_workflow(name: str, workflows: Iterable[Mapping[str, Any]]) -> str:
    """Return the ID of the first workflow whose name matches exactly."""
    for workflow in workflows:
        if workflow.get("name") == name:
            return workflow.get("id")
    raise WorkflowNotFoundError(name)


def _sanitize_char(char: str) -> str:
    if char.isspace() or ord(char) < 32 or ord(char) >= 0x1F000 or char in _FORBIDDEN_CHARS:
        return "_"
    return char


def sanitize_filename(name: str) -> str:
    """Turn a workflow name into a filename that is safe on common filesystems."""
    if not name:
        return name
    sanitized = "".join(_sanitize_char(c) for c in name).rstrip(" .")
    if not sanitized:
        return "_"
    if is_windows_reserved_name(sanitized):
        sanitized = "_" + sanitized
    return sanitized


def is_windows_reserved_name(name: str) -> bool:
    """Tell whether the part before the first dot is a reserved device name."""
    base = name.split(".", 1)[0].upper()
    if base in _RESERVED_NAMES:
        return True
    if len(base) == 4 and base.startswith(("COM", "LPT")):
        return "1" <= base[3] <= "9"
    return False


def _clean(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _clean(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_clean(item) for item in value]
    return value


def detect_workflow_drift(
    actual: Mapping[str, Any], desired: Mapping[str, Any], minimal: bool = False
) -> bool:
    """Return True when two workflows differ; minimal ignores null fields."""
    if minimal:
        return _clean(actual) != _clean(desired)
    return dict(actual) != dict(desired)