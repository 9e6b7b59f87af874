"""Recognising what kind of cargo project lives at a path."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

import tomlkit
from tomlkit.container import OutOfOrderTableProxy
from tomlkit.exceptions import TOMLKitError
from tomlkit.items import Table

_CARGO_SECTION_PATTERNS = (
    re.compile(r"```cargo\s*\n([\s\S]*?)```"),
    re.compile(r"//!\s*```cargo\s*\n([\s\S]*?)```"),
    re.compile(r"//\s*```cargo\s*\n([\s\S]*?)```"),
)

_CARGO_SECTION_MARKERS = ("```cargo", "//! ```cargo", "// ```cargo")

_INHERITABLE_FIELDS = (
    "version",
    "authors",
    "description",
    "documentation",
    "readme",
    "homepage",
    "repository",
    "license",
    "edition",
    "rust-version",
)

_DEPENDENCY_SECTIONS = ("dependencies", "dev-dependencies", "build-dependencies")


class ProjectAnalysisError(Exception):
    """No project could be recognised, or its manifest is unusable."""


@dataclass
class CargoSection:
    """An embedded cargo manifest inside a script, with its character range."""

    start: int
    end: int
    content: str


@dataclass
class BinaryConfig:
    name: str
    path: Path
    bin_path: Optional[Path]
    has_build_script: bool


@dataclass
class LibraryConfig:
    name: str
    path: Path
    lib_path: Optional[Path]
    has_build_script: bool


@dataclass
class HybridConfig:
    name: str
    path: Path
    bin_path: Optional[Path]
    lib_path: Optional[Path]
    has_build_script: bool


@dataclass
class WorkspaceConfig:
    path: Path
    members: list[Path]
    default_members: Optional[list[Path]]
    exclude: Optional[list[Path]]
    is_virtual: bool
    package_inheritance: dict[str, bool]
    dependency_inheritance: dict[str, bool]


@dataclass
class WorkspaceMemberConfig:
    name: str
    path: Path
    workspace_root: Path
    inherited_fields: dict[str, bool]
    workspace_dependencies: list[str]
    project_type: ProjectType


@dataclass
class RustScriptConfig:
    path: Path
    dependencies: dict[str, str] = field(default_factory=dict)
    cargo_sections: list[CargoSection] = field(default_factory=list)


@dataclass
class ProcMacroConfig:
    name: str
    path: Path
    has_build_script: bool


@dataclass
class UnknownProject:
    """A manifest whose crate kind could not be determined."""


ProjectType = Union[
    BinaryConfig,
    LibraryConfig,
    HybridConfig,
    WorkspaceConfig,
    WorkspaceMemberConfig,
    RustScriptConfig,
    ProcMacroConfig,
    UnknownProject,
]


def _plain(value: Any) -> Any:
    unwrap = getattr(value, "unwrap", None)
    return unwrap() if callable(unwrap) else value


def _is_table(value: Any) -> bool:
    """True for standard ``[section]`` tables; inline tables are values."""
    return isinstance(value, (Table, OutOfOrderTableProxy))


def _get(value: Any, key: str) -> Any:
    return value.get(key) if isinstance(value, Mapping) else None


def _as_str(value: Any) -> Optional[str]:
    value = _plain(value)
    return value if isinstance(value, str) else None


def _parse_toml(text: str, origin: Path) -> Any:
    try:
        return tomlkit.parse(text)
    except TOMLKitError as exc:
        raise ProjectAnalysisError(f"Invalid TOML in {origin}: {exc}") from exc


def extract_version(value: Any) -> Optional[str]:
    """Version of a dependency entry: a bare string or a table's ``version``."""
    if _is_table(value):
        return _as_str(value.get("version"))
    return _as_str(value)


def _resolve(entry: str, parent_dir: Path) -> Path:
    return Path(entry) if entry.startswith("/") else parent_dir / entry


def _path_list(workspace: Any, key: str, parent_dir: Path) -> Optional[list[Path]]:
    entries = _plain(_get(workspace, key))
    if not isinstance(entries, list):
        return None
    return [_resolve(e, parent_dir) for e in entries if isinstance(e, str)]


def _crate_type(
    name: str,
    path: Path,
    *,
    is_proc_macro: bool,
    is_binary: bool,
    is_library: bool,
    has_build_script: bool,
) -> ProjectType:
    parent = path.parent
    if is_proc_macro:
        return ProcMacroConfig(name=name, path=path, has_build_script=has_build_script)
    if is_binary and is_library:
        return HybridConfig(
            name=name,
            path=path,
            bin_path=parent / "src/main.rs",
            lib_path=parent / "src/lib.rs",
            has_build_script=has_build_script,
        )
    if is_binary:
        return BinaryConfig(
            name=name,
            path=path,
            bin_path=parent / "src/main.rs",
            has_build_script=has_build_script,
        )
    if is_library:
        return LibraryConfig(
            name=name,
            path=path,
            lib_path=parent / "src/lib.rs",
            has_build_script=has_build_script,
        )
    return UnknownProject()


class ProjectAnalyzer:
    """Inspects a path and reports which kind of project it is."""

    def analyze(self, path: str | Path) -> ProjectType:
        """Classify a directory, a ``Cargo.toml`` or a script file."""
        path = Path(path)
        if path.suffix == ".rs" and self._is_rust_script(path):
            return self._analyze_rust_script(path)

        cargo_path = path if path.name == "Cargo.toml" else path / "Cargo.toml"
        if cargo_path.exists():
            return self._analyze_cargo_toml(cargo_path)

        raise ProjectAnalysisError(f"No Rust project found at {path}")

    def _is_rust_script(self, path: Path) -> bool:
        if not path.is_file() or path.suffix != ".rs":
            return False
        try:
            content = path.read_text()
        except (OSError, UnicodeDecodeError):
            return False
        return any(marker in content for marker in _CARGO_SECTION_MARKERS)

    def _analyze_rust_script(self, path: Path) -> RustScriptConfig:
        content = path.read_text()
        config = RustScriptConfig(path=path)
        for pattern in _CARGO_SECTION_PATTERNS:
            for match in pattern.finditer(content):
                section = match.group(1)
                config.cargo_sections.append(
                    CargoSection(start=match.start(1), end=match.end(1), content=section)
                )
                try:
                    doc = tomlkit.parse(section)
                except TOMLKitError:
                    continue
                deps = doc.get("dependencies")
                if _is_table(deps):
                    for key, value in deps.items():
                        version = extract_version(value)
                        if version is not None:
                            config.dependencies[str(key)] = version
        return config

    def _analyze_cargo_toml(self, path: Path) -> ProjectType:
        document = _parse_toml(path.read_text(), path)

        if document.get("workspace") is not None:
            return self._analyze_workspace(path, document)

        parent = path.parent
        is_binary = (parent / "src/main.rs").exists()
        is_library = (parent / "src/lib.rs").exists()
        is_proc_macro = _plain(_get(document.get("lib"), "proc-macro")) is True

        name = _as_str(_get(document.get("package"), "name"))
        if name is None:
            raise ProjectAnalysisError("Missing package name in Cargo.toml")

        has_build_script = (parent / "build.rs").exists()
        inner = _crate_type(
            name,
            path,
            is_proc_macro=is_proc_macro,
            is_binary=is_binary,
            is_library=is_library,
            has_build_script=has_build_script,
        )

        workspace_info = self._extract_workspace_info(path, document)
        if workspace_info is None:
            return inner

        workspace_root, inherited_fields, workspace_deps = workspace_info
        return WorkspaceMemberConfig(
            name=name,
            path=path,
            workspace_root=workspace_root,
            inherited_fields=inherited_fields,
            workspace_dependencies=workspace_deps,
            project_type=inner,
        )

    def _analyze_workspace(self, path: Path, document: Any) -> WorkspaceConfig:
        workspace = document.get("workspace")
        parent_dir = path.parent

        package_inheritance: dict[str, bool] = {}
        workspace_package = _get(workspace, "package")
        if workspace_package is not None:
            for name in _INHERITABLE_FIELDS:
                package_inheritance[name] = _get(workspace_package, name) is not None

        dependency_inheritance: dict[str, bool] = {}
        deps = _get(workspace, "dependencies")
        if _is_table(deps):
            dependency_inheritance = {str(key): True for key in deps}

        return WorkspaceConfig(
            path=path,
            members=_path_list(workspace, "members", parent_dir) or [],
            default_members=_path_list(workspace, "default-members", parent_dir),
            exclude=_path_list(workspace, "exclude", parent_dir),
            is_virtual=document.get("package") is None,
            package_inheritance=package_inheritance,
            dependency_inheritance=dependency_inheritance,
        )

    def _find_enclosing_workspace(self, start: Path) -> Optional[Path]:
        current = start
        while True:
            candidate = current / "Cargo.toml"
            if candidate.exists():
                try:
                    doc = tomlkit.parse(candidate.read_text())
                except (OSError, UnicodeDecodeError, TOMLKitError):
                    doc = None
                if doc is not None and doc.get("workspace") is not None:
                    return candidate
            if current.parent == current:
                return None
            current = current.parent

    def _extract_workspace_info(
        self, path: Path, document: Any
    ) -> Optional[tuple[Path, dict[str, bool], list[str]]]:
        parent_dir = path.parent
        explicit = _as_str(_get(document.get("package"), "workspace"))

        if explicit is None:
            found = self._find_enclosing_workspace(parent_dir)
            return None if found is None else (found, {}, [])

        workspace_root = _resolve(explicit, parent_dir)

        inherited_fields: dict[str, bool] = {}
        for key, value in document.items():
            key = str(key)
            if ".workspace" in key:
                inherited_fields[key.replace(".workspace", "")] = True
                continue
            if _is_table(value) and _plain(value.get("workspace")) is True:
                inherited_fields[key] = True

        workspace_deps: list[str] = []
        for section in _DEPENDENCY_SECTIONS:
            deps = document.get(section)
            if not _is_table(deps):
                continue
            workspace_deps.extend(
                str(key)
                for key, value in deps.items()
                if _is_table(value) and value.get("workspace") is not None
            )

        return workspace_root, inherited_fields, workspace_deps