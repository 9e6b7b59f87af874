from pathlib import Path

import pytest
import tomlkit

from kargo.project import (
    BinaryConfig,
    HybridConfig,
    LibraryConfig,
    ProcMacroConfig,
    ProjectAnalysisError,
    ProjectAnalyzer,
    RustScriptConfig,
    UnknownProject,
    WorkspaceConfig,
    WorkspaceMemberConfig,
    extract_version,
)


def make_crate(root: Path, manifest: str, files=()) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    (root / "Cargo.toml").write_text(manifest)
    for name in files:
        target = root / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text("")
    return root / "Cargo.toml"


PACKAGE = '[package]\nname = "demo"\nversion = "0.1.0"\n'


def test_binary_crate(tmp_path):
    manifest = make_crate(tmp_path / "bin", PACKAGE, ["src/main.rs"])
    result = ProjectAnalyzer().analyze(tmp_path / "bin")
    assert result == BinaryConfig(
        name="demo",
        path=manifest,
        bin_path=manifest.parent / "src/main.rs",
        has_build_script=False,
    )


def test_library_crate_with_build_script(tmp_path):
    manifest = make_crate(tmp_path / "lib", PACKAGE, ["src/lib.rs", "build.rs"])
    result = ProjectAnalyzer().analyze(manifest)
    assert result == LibraryConfig(
        name="demo",
        path=manifest,
        lib_path=manifest.parent / "src/lib.rs",
        has_build_script=True,
    )


def test_hybrid_crate(tmp_path):
    manifest = make_crate(tmp_path / "hy", PACKAGE, ["src/main.rs", "src/lib.rs"])
    result = ProjectAnalyzer().analyze(manifest)
    assert isinstance(result, HybridConfig)
    assert result.bin_path == manifest.parent / "src/main.rs"
    assert result.lib_path == manifest.parent / "src/lib.rs"


def test_proc_macro_takes_precedence(tmp_path):
    manifest = make_crate(
        tmp_path / "pm", PACKAGE + "\n[lib]\nproc-macro = true\n", ["src/lib.rs"]
    )
    result = ProjectAnalyzer().analyze(manifest)
    assert result == ProcMacroConfig(name="demo", path=manifest, has_build_script=False)


def test_unknown_without_sources(tmp_path):
    manifest = make_crate(tmp_path / "empty", PACKAGE)
    assert ProjectAnalyzer().analyze(manifest) == UnknownProject()


def test_directory_and_manifest_give_same_result(tmp_path):
    manifest = make_crate(tmp_path / "same", PACKAGE, ["src/main.rs"])
    analyzer = ProjectAnalyzer()
    assert analyzer.analyze(manifest.parent) == analyzer.analyze(manifest)


def test_missing_package_name(tmp_path):
    manifest = make_crate(tmp_path / "noname", '[package]\nversion = "0.1.0"\n')
    with pytest.raises(ProjectAnalysisError, match="Missing package name"):
        ProjectAnalyzer().analyze(manifest)


def test_no_project(tmp_path):
    with pytest.raises(ProjectAnalysisError, match="No Rust project found"):
        ProjectAnalyzer().analyze(tmp_path)


def test_invalid_toml(tmp_path):
    manifest = make_crate(tmp_path / "bad", "[package\nname = ")
    with pytest.raises(ProjectAnalysisError):
        ProjectAnalyzer().analyze(manifest)


def test_workspace(tmp_path):
    manifest = make_crate(
        tmp_path / "ws",
        '[workspace]\nmembers = ["a", "/abs/b"]\ndefault-members = ["a"]\n'
        'exclude = ["old"]\n\n[workspace.package]\nversion = "0.1.0"\n'
        'edition = "2021"\n\n[workspace.dependencies]\nanyhow = "1"\n'
        'serde = { version = "1" }\n',
    )
    root = manifest.parent
    result = ProjectAnalyzer().analyze(root)
    assert isinstance(result, WorkspaceConfig)
    assert result.path == manifest
    assert result.members == [root / "a", Path("/abs/b")]
    assert result.default_members == [root / "a"]
    assert result.exclude == [root / "old"]
    assert result.is_virtual is True
    assert result.package_inheritance["version"] is True
    assert result.package_inheritance["edition"] is True
    assert result.package_inheritance["license"] is False
    assert len(result.package_inheritance) == 10
    assert result.dependency_inheritance == {"anyhow": True, "serde": True}


def test_non_virtual_workspace_without_optional_lists(tmp_path):
    manifest = make_crate(tmp_path / "ws2", PACKAGE + "\n[workspace]\n")
    result = ProjectAnalyzer().analyze(manifest)
    assert isinstance(result, WorkspaceConfig)
    assert result.is_virtual is False
    assert result.members == []
    assert result.default_members is None
    assert result.exclude is None
    assert result.package_inheritance == {}
    assert result.dependency_inheritance == {}


def test_member_found_by_walking_up(tmp_path):
    root_manifest = make_crate(tmp_path / "root", '[workspace]\nmembers = ["member"]\n')
    member = make_crate(
        tmp_path / "root" / "member", '[package]\nname = "m"\n', ["src/lib.rs"]
    )
    result = ProjectAnalyzer().analyze(member)
    assert result == WorkspaceMemberConfig(
        name="m",
        path=member,
        workspace_root=root_manifest,
        inherited_fields={},
        workspace_dependencies=[],
        project_type=LibraryConfig(
            name="m",
            path=member,
            lib_path=member.parent / "src/lib.rs",
            has_build_script=False,
        ),
    )


def test_member_with_explicit_workspace(tmp_path):
    member = make_crate(
        tmp_path / "explicit",
        '[package]\nname = "m"\nworkspace = ".."\n\n[lints]\nworkspace = true\n\n'
        "[dependencies]\nanyhow = { workspace = true }\n\n"
        "[dependencies.serde]\nworkspace = true\n\n"
        "[dev-dependencies.tempfile]\nworkspace = true\n",
    )
    result = ProjectAnalyzer().analyze(member)
    assert isinstance(result, WorkspaceMemberConfig)
    assert result.workspace_root == member.parent / ".."
    assert result.inherited_fields == {"lints": True}
    assert result.workspace_dependencies == ["serde", "tempfile"]
    assert result.project_type == UnknownProject()


def test_rust_script(tmp_path):
    script = tmp_path / "script.rs"
    content = (
        "#!/usr/bin/env rust-script\n"
        "```cargo\n[dependencies]\nregex = \"1\"\nserde = { version = \"1.0\" }\n```\n"
        "fn main() {}\n"
    )
    script.write_text(content)
    result = ProjectAnalyzer().analyze(script)
    assert isinstance(result, RustScriptConfig)
    assert result.path == script
    assert result.dependencies == {"regex": "1"}
    assert len(result.cargo_sections) == 1
    section = result.cargo_sections[0]
    assert content[section.start:section.end] == section.content
    assert section.content.startswith("[dependencies]")


def test_rs_file_without_cargo_section_is_not_a_project(tmp_path):
    script = tmp_path / "plain.rs"
    script.write_text("fn main() {}\n")
    with pytest.raises(ProjectAnalysisError):
        ProjectAnalyzer().analyze(script)


def test_extract_version_forms():
    doc = tomlkit.parse(
        '[deps]\nplain = "1.2"\ninline = { version = "3" }\nnumber = 4\n'
        '[deps.tabled]\nversion = "5.0"\n'
    )
    deps = doc["deps"]
    assert extract_version(deps["plain"]) == "1.2"
    assert extract_version(deps["tabled"]) == "5.0"
    assert extract_version(deps["inline"]) is None
    assert extract_version(deps["number"]) is None
    assert extract_version("0.9") == "0.9"