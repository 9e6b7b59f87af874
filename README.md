# kargo

A Python library of helpers for working with Cargo projects. Some helpers
run `cargo` as a subprocess, so `cargo` must be on `PATH` for them.

## Modules

- `kargo.project`: `ProjectAnalyzer().analyze(path)` takes a directory, a
  `Cargo.toml` or a `.rs` script. It returns one of `BinaryConfig`,
  `LibraryConfig`, `HybridConfig`, `ProcMacroConfig`, `WorkspaceConfig`,
  `WorkspaceMemberConfig`, `RustScriptConfig` or `UnknownProject`. It raises
  `ProjectAnalysisError` in two cases: when no project is found, and when the
  manifest is invalid or has no package name. `extract_version(value)` reads
  a dependency's version from a bare string or from a table's `version` key.
- `kargo.rustscript`: `RustScript.load(path)` reads a script. It collects the
  embedded ```` ```cargo ```` blocks, whether plain, `//!` or `//`, as
  `CargoSection`s. It also collects the dependency versions those blocks
  declare. `parse_cargo_sections(content)` does the same for a string. A
  block that is not valid TOML is read with a simple `name = "version"` match.
- `kargo.processor`: `OutputProcessor` adds a prefix to cargo output lines:
  `ERROR:`, `WARNING:`, `COMPILING:` or `TEST:`. `process_output` appends an
  error/warning summary when the output has more than 20 lines. Use
  `add_pattern` and `add_transformation` to add your own tags.
- `kargo.executor`: `KargoExecutor.run_sync(args, working_dir)` runs `cargo`
  and returns its processed standard output. `run_async` prints each
  processed line as it arrives. Both raise `CargoCommandError` when `cargo`
  fails.
- `kargo.commands`: `CommandRunner.run_commands(commands, working_dir)` is a
  coroutine. It runs whitespace-split commands in order and stops at the
  first failure with `CommandError`.
- `kargo.backup`: `BackupManager` copies files into a temporary directory.
  `rollback()` restores them. It can be used as a context manager.
- `kargo.vendor`: `VendorManager.vendor_dependencies(workspace_path)` reads
  `cargo metadata`. For each registry package it creates a
  `<vendor_path>/<name>/<version>` directory. With `dedupe` it keeps only the
  highest version of each package.
- `kargo.updater`: `DependencyUpdater` finds every `Cargo.toml` under its
  scan directories. Its `run()` coroutine does the following:
  - backs up those manifests;
  - vendors the workspaces among them, if enabled;
  - runs the configured post-commands in each scan directory. A failing
    post-command is only logged.
  If any other step fails, `run()` rolls the manifests back.
  `update_crate_deps(crate_path, workspace_deps)` rewrites dependencies listed
  under `workspace_deps["workspace.dependencies"]` to `{ workspace = true }`.
  `scan_dirs_from_env()` reads `KRATER_SCAN`.
- `kargo.config`: `Config.load()` reads YAML from the first of these that
  exists:
  1. `~/.krater.yaml`
  2. the platform config directory's `krater/config.yaml`
  3. `~/.config/krater.yaml`
  If none exists, it returns the defaults. `Config.from_yaml(text)` requires
  every field (`scan_dirs`, `post_commands`, `rollback_on_failure`, `vendor`)
  and raises `ValueError` otherwise.
- `kargo.events`: `EventBus` delivers each published event to every
  `Subscription`. Receive events with `receive()` or `drain()`. When a
  subscription is full, its oldest pending events are dropped.
- `kargo.tasks`: `TaskManager` builds tasks by name from registered factories.
  It runs them on a thread pool. `poll_task` returns one of these responses:
  `TaskPending`, `Data` or `HostError`.
- `kargo.docs`: `DocConfig` and the `DocError` family of exceptions for
  documentation runs.

## Example

```python
from kargo.project import ProjectAnalyzer

project = ProjectAnalyzer().analyze("path/to/crate")
print(project)
```

```python
from kargo.processor import OutputProcessor

processor = OutputProcessor()
print(processor.process_line("warning: unused variable"))
# WARNING: warning: unused variable
```

## What it does not do

- There is no command-line program. This is a library only.
- It does not load or run plugins.
- Vendoring creates directories only. It does not copy package sources.
- `kargo.docs` holds only the options and errors. It does not generate
  documentation.

## Environment

- `KRATER_SCAN`: colon-separated directories for `DependencyUpdater` when no
  `scan_dirs` are given. If it is not set, `HOME` is used, or `.` if `HOME`
  is not set either.

## Tests

```
pip install .[test]
pytest
```