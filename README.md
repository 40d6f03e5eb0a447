# n8nctl

`n8nctl` is a Python library that keeps n8n workflows as plain JSON or
YAML files on disk. It synchronises them with an n8n instance in both
directions:

- **sync / push**: upload local workflow files. A workflow is created
  or updated, depending on whether its ID already exists on the server.
  Its active state and tags are applied as well. With pruning turned on,
  remote workflows that have no local file are removed.
- **refresh / pull**: write the server's current state back into local
  files. Existing file names and formats are kept, and a workflow's
  original name is remembered in an `originalName` field.
- **list / activate / deactivate**: inspect workflows and switch them on
  or off.

Every operation supports a dry run that reports what would change and
touches nothing.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## The client object

The operations do not talk HTTP themselves. Each one takes a client
object that you supply. Workflows, tags and results are plain mappings
shaped like the n8n API's JSON. Depending on the operation, the client
needs some of these methods:

| Method                                      | Used for                       |
|---------------------------------------------|--------------------------------|
| `get_workflows()`                           | list of all workflows          |
| `get_workflow(workflow_id)`                 | one workflow; raise if missing |
| `create_workflow(workflow)`                 | returns the created workflow   |
| `update_workflow(workflow_id, workflow)`    | returns the updated workflow   |
| `delete_workflow(workflow_id)`              | pruning                        |
| `activate_workflow(workflow_id)`            | returns the workflow           |
| `deactivate_workflow(workflow_id)`          | returns the workflow           |
| `get_tags()`                                | list of tags                   |
| `create_tag(name)`                          | returns the created tag        |
| `update_workflow_tags(workflow_id, tag_ids)`| attach tags by `{"id": ...}`   |

Each operation also takes an `out` text stream for its progress
messages. When it is `None`, messages go to standard output.

## Library use

```python
import sys

from n8nctl.sync import sync_workflows
from n8nctl.refresh import refresh_workflows

# Preview what a directory sync would do
results = sync_workflows(
    client, sys.stdout,
    directory="workflows/", dry_run=True, prune=False,
)

# Pull the remote state of every tracked workflow into the directory
refresh_workflows(
    client, "workflows/",
    dry_run=False, overwrite=False, output="yaml",
    minimal=True, all_workflows=False, out=sys.stdout,
)
```

`sync_workflows` returns a `WorkflowResult` (from `n8nctl.changes`) for
each workflow that was processed without error. Invalid combinations of
arguments raise `ValueError`. Problems with files or the server raise
`n8nctl.workflow_file.WorkflowFileError`.

Single workflows are handled by these functions:

- `n8nctl.push.push_workflow`: push one file, given by path or by
  workflow name within a directory.
- `n8nctl.pull.pull_workflow`: fetch one workflow by ID or name and
  write it to a file. Returns the file's path.
- `n8nctl.refresh.refresh_single_workflow`: refresh one file from the
  server.
- `n8nctl.activation.activate_workflow` and
  `n8nctl.activation.deactivate_workflow`.

`n8nctl.listing.list_workflows` prints workflows as a table, JSON or
YAML. They are sorted by their `updatedAt` time, in ascending or
descending order. `sort_workflows` and `format_workflow_table` are
available on their own.

`n8nctl.changes` holds the lower-level steps:

- `detect_workflow_changes`
- `create_workflow` and `update_workflow`
- `process_activation_and_tags` and `handle_tag_updates`
- `prune_workflows`

### Helpers

```python
from n8nctl.util import format_api_base_url, sanitize_filename, is_windows_reserved_name

format_api_base_url("http://localhost:5678/")   # "http://localhost:5678/api/v1"
sanitize_filename("My Workflow: v2")            # "My_Workflow__v2"
is_windows_reserved_name("CON.json")            # True
```

When a workflow is written to disk, its name is made filesystem-safe:

- whitespace, control characters and the characters `<>:"/\|?*` become
  underscores;
- trailing dots and spaces are removed;
- names reserved on Windows get a leading underscore.

### Logging

`n8nctl.logsetup.init_logger(debug)` sets up the `n8n-cli` logger:

- In debug mode, it logs readable lines at debug level. Debug mode is
  also turned on when the `DEBUG` environment variable is `1` or `true`.
- Otherwise, it logs JSON lines at info level.

Until the logger is set up, the module's `debug`, `info`, `warn` and
`error` functions do nothing.

## What this package does not do

- It has no command-line program; every operation is a function to call
  from Python.
- It ships no HTTP client for the n8n API. The client object described
  above must be provided by the caller.
- It does not read configuration files, `.env` files or API keys. The
  caller builds the client with whatever URL and key it needs.