import io
import json
import os

import pytest
import yaml

from n8nctl.refresh import (
    determine_file_path_and_action,
    ensure_directory_exists,
    extract_local_workflows,
    process_workflow,
    refresh_single_workflow,
    refresh_workflow_to_file,
    refresh_workflows,
    serialize_workflow,
    workflow_needs_update,
)
from n8nctl.util import WorkflowNotFoundError
from n8nctl.workflow_file import WorkflowFileError


class FakeClient:
    def __init__(self, workflows):
        self.workflows = {w["id"]: w for w in workflows}
        self.fetched = []

    def get_workflows(self):
        return list(self.workflows.values())

    def get_workflow(self, workflow_id):
        self.fetched.append(workflow_id)
        if workflow_id not in self.workflows:
            raise KeyError(workflow_id)
        return self.workflows[workflow_id]


def wf(workflow_id="1", name="My Flow", **extra):
    data = {"id": workflow_id, "name": name, "nodes": [], "connections": {}}
    data.update(extra)
    return data


def test_ensure_directory_creates(tmp_path):
    out = io.StringIO()
    target = tmp_path / "new"
    ensure_directory_exists(str(target), False, out)
    assert target.is_dir()
    assert f"Created directory: {target}" in out.getvalue()


def test_ensure_directory_dry_run(tmp_path):
    out = io.StringIO()
    target = tmp_path / "new"
    ensure_directory_exists(str(target), True, out)
    assert not target.exists()
    assert f"Would create directory: {target}" in out.getvalue()


def test_ensure_directory_existing_is_silent(tmp_path):
    out = io.StringIO()
    ensure_directory_exists(str(tmp_path), False, out)
    assert out.getvalue() == ""


def test_extract_local_workflows_prefers_yaml(tmp_path):
    (tmp_path / "a.json").write_text(json.dumps({"id": "1", "name": "A"}))
    (tmp_path / "b.yaml").write_text("id: '1'\nname: A\n")
    (tmp_path / "c.json").write_text(json.dumps({"name": "no id"}))
    (tmp_path / "d.txt").write_text(json.dumps({"id": "2"}))
    (tmp_path / "e.json").write_text(json.dumps({"id": "3"}))
    result = extract_local_workflows(str(tmp_path))
    assert result == {
        "1": os.path.join(str(tmp_path), "b.yaml"),
        "3": os.path.join(str(tmp_path), "e.json"),
    }


def test_extract_local_workflows_missing_dir(tmp_path):
    assert extract_local_workflows(str(tmp_path / "absent")) == {}


def test_determine_creating_when_not_local(tmp_path):
    path, action = determine_file_path_and_action(wf(), {}, str(tmp_path), "", False)
    assert action == "Creating"
    assert path == os.path.join(str(tmp_path), "My_Flow.json")


def test_determine_updating_keeps_yaml_extension(tmp_path):
    existing = os.path.join(str(tmp_path), "custom.yml")
    path, action = determine_file_path_and_action(wf(), {"1": existing}, str(tmp_path), "", False)
    assert (path, action) == (existing, "Updating")


def test_determine_converting(tmp_path):
    existing = os.path.join(str(tmp_path), "custom.json")
    path, action = determine_file_path_and_action(
        wf(), {"1": existing}, str(tmp_path), "yaml", False
    )
    assert action == "Converting"
    assert path.endswith(".yaml")

    existing_yaml = os.path.join(str(tmp_path), "custom.yaml")
    path, action = determine_file_path_and_action(
        wf(), {"1": existing_yaml}, str(tmp_path), "json", False
    )
    assert action == "Converting"
    assert path.endswith(".json")


def test_determine_overwrite_creates(tmp_path):
    existing = os.path.join(str(tmp_path), "custom.json")
    _, action = determine_file_path_and_action(wf(), {"1": existing}, str(tmp_path), "json", True)
    assert action == "Creating"


def test_serialize_json_roundtrip_minimal():
    workflow = wf(settings=None)
    content = serialize_workflow(workflow, "x.json", True, "Original")
    data = json.loads(content)
    assert "settings" not in data
    assert data["originalName"] == "Original"
    assert data["name"] == workflow["name"]


def test_serialize_keeps_nulls_when_not_minimal():
    data = json.loads(serialize_workflow(wf(settings=None), "x.json", False, ""))
    assert data["settings"] is None
    assert "originalName" not in data


def test_serialize_does_not_override_original_name():
    workflow = wf(originalName="Kept")
    data = json.loads(serialize_workflow(workflow, "x.json", True, "Other"))
    assert data["originalName"] == "Kept"


def test_serialize_yaml():
    content = serialize_workflow(wf(), "x.yaml", True, "My Flow")
    assert content.startswith("---\n")
    data = yaml.safe_load(content)
    assert data["id"] == "1"
    assert data["originalName"] == "My Flow"


def test_workflow_needs_update(tmp_path):
    target = tmp_path / "flow.json"
    content = serialize_workflow(wf(), str(target), True, "My Flow")
    assert workflow_needs_update(str(target), str(target), content, True) is True
    target.write_text(content)
    assert workflow_needs_update(str(target), str(target), content, True) is False
    changed = serialize_workflow(wf(name="Other"), str(target), True, "My Flow")
    assert workflow_needs_update(str(target), str(target), changed, True) is True
    assert workflow_needs_update(str(target), str(tmp_path / "flow.yaml"), content, True) is True


def test_process_workflow_create_then_no_changes(tmp_path):
    out = io.StringIO()
    process_workflow(wf(), {}, str(tmp_path), False, False, "json", True, out)
    target = tmp_path / "My_Flow.json"
    assert json.loads(target.read_text())["originalName"] == "My Flow"
    assert "Creating workflow 'My Flow' (ID: 1)" in out.getvalue()

    out = io.StringIO()
    local = extract_local_workflows(str(tmp_path))
    process_workflow(wf(), local, str(tmp_path), False, False, "", True, out)
    assert "No changes for workflow 'My Flow' (ID: 1)" in out.getvalue()


def test_process_workflow_dry_run_writes_nothing(tmp_path):
    out = io.StringIO()
    process_workflow(wf(), {}, str(tmp_path), True, False, "json", True, out)
    assert list(tmp_path.iterdir()) == []
    assert "Would creating workflow 'My Flow' (ID: 1)" in out.getvalue()


def test_process_workflow_skips_without_id(tmp_path):
    out = io.StringIO()
    process_workflow({"name": "Nameless"}, {}, str(tmp_path), False, False, "json", True, out)
    assert out.getvalue().strip() == "Skipping workflow 'Nameless' with no ID"
    assert list(tmp_path.iterdir()) == []


def test_refresh_workflow_to_file_update(tmp_path):
    target = tmp_path / "flow.yaml"
    out = io.StringIO()
    refresh_workflow_to_file(wf(), str(target), False, True, out)
    assert yaml.safe_load(target.read_text())["name"] == "My Flow"
    assert "Creating" in out.getvalue()

    out = io.StringIO()
    refresh_workflow_to_file(wf(name="Renamed"), str(target), False, True, out)
    data = yaml.safe_load(target.read_text())
    assert data["name"] == "Renamed"
    assert data["originalName"] == "My Flow"
    assert "Updating workflow 'Renamed'" in out.getvalue()


def test_refresh_workflows_all(tmp_path):
    client = FakeClient([wf("1", "One"), wf("2", "Two")])
    out = io.StringIO()
    refresh_workflows(client, str(tmp_path), False, False, "json", True, True, out)
    ids = extract_local_workflows(str(tmp_path))
    assert set(ids) == {"1", "2"}
    assert out.getvalue().strip().endswith("Workflow refresh completed successfully")


def test_refresh_workflows_empty_server(tmp_path):
    out = io.StringIO()
    refresh_workflows(FakeClient([]), str(tmp_path), False, False, "json", True, False, out)
    assert "No workflows found in n8n instance" in out.getvalue()


def test_refresh_workflows_local_only_missing_remote(tmp_path):
    (tmp_path / "gone.json").write_text(json.dumps({"id": "9", "name": "Gone"}))
    client = FakeClient([wf("1", "One")])
    out = io.StringIO()
    refresh_workflows(client, str(tmp_path), False, False, "json", True, False, out)
    text = out.getvalue()
    assert "Warning: Could not fetch workflow with ID 9" in text
    assert "No workflows were refreshed." in text
    assert client.fetched == ["9"]


def test_refresh_single_uses_id_from_file(tmp_path):
    target = tmp_path / "flow.json"
    target.write_text(json.dumps({"id": "1", "name": "Old"}))
    client = FakeClient([wf("1", "New")])
    refresh_single_workflow(client, str(target), "", "", False, True, io.StringIO())
    data = json.loads(target.read_text())
    assert data["name"] == "New"
    assert client.fetched == ["1"]


def test_refresh_single_by_name(tmp_path):
    target = tmp_path / "flow.json"
    client = FakeClient([wf("7", "Wanted")])
    refresh_single_workflow(client, str(target), "", "Wanted", False, True, io.StringIO())
    assert json.loads(target.read_text())["id"] == "7"


def test_refresh_single_unknown_name(tmp_path):
    client = FakeClient([wf("7", "Wanted")])
    with pytest.raises(WorkflowNotFoundError):
        refresh_single_workflow(client, str(tmp_path / "f.json"), "", "Other", False, True, io.StringIO())


def test_refresh_single_requires_id_or_name(tmp_path):
    with pytest.raises(WorkflowFileError, match="workflow id or name is required"):
        refresh_single_workflow(FakeClient([]), str(tmp_path / "f.json"), "", "", False, True, io.StringIO())


def test_refresh_single_fetch_error(tmp_path):
    with pytest.raises(WorkflowFileError, match="error fetching workflow"):
        refresh_single_workflow(FakeClient([]), str(tmp_path / "f.json"), "5", "", False, True, io.StringIO())