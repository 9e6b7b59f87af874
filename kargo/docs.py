"""Settings and errors for generating package documentation."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class DocConfig:
    """Options for a documentation run."""

    package_spec: str = ""
    output_dir: Path = field(default_factory=lambda: Path("./rust_docs"))
    temp_dir: Optional[Path] = None
    keep_temp: bool = False
    skip_component_check: bool = False
    verbose: bool = False
    document_private_items: bool = False


class DocError(Exception):
    """Base class of documentation generation errors."""

    _template = "{}"

    def __init__(self, detail: object = "") -> None:
        self.detail = str(detail)
        super().__init__(self._template.format(self.detail))


class InvalidPackageName(DocError):
    _template = "Invalid package name: {}"


class PackageSpecParseError(DocError):
    _template = "Failed to parse package specification: {}"


class ToolchainError(DocError):
    _template = "Toolchain error: {}"


class CommandFailed(DocError):
    _template = "Command failed: {}"


class DocNotFound(DocError):
    _template = "Failed to find generated documentation"


class TomlParseError(DocError):
    _template = "Failed to parse TOML: {}"


class JsonParseError(DocError):
    _template = "Failed to parse JSON: {}"


class RustupCheckFailed(DocError):
    _template = "Failed to check Rustup: {}"


class RustupNotFound(DocError):
    _template = "Rustup not found. Please install Rustup."


class CargoNotFound(DocError):
    _template = "Cargo not found. Please install Rust."


class TempProjectSetupError(DocError):
    _template = "Failed to set up temporary project: {}"


class DocCopyFailed(DocError):
    _template = "Failed to copy documentation: {}"


class PackageNotFound(DocError):
    _template = "Package not found: {}"


class CleanupFailed(DocError):
    _template = "Failed to cleanup temporary directory: {}"


class MarkdownConversionFailed(DocError):
    _template = "Failed to convert JSON to Markdown: {}"


class OtherDocError(DocError):
    _template = "Other error: {}"