"""Scripts that embed a cargo manifest in a fenced ``cargo`` block."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.container import OutOfOrderTableProxy
from tomlkit.exceptions import TOMLKitError
from tomlkit.items import Table

from kargo.project import CargoSection, extract_version

_SECTION_PATTERNS = (
    re.compile(r"```cargo\s*\n([\s\S]*?)```"),
    re.compile(r"//!\s*```cargo\s*\n(//!\s*[\s\S]*?)```"),
    re.compile(r"//\s*```cargo\s*\n(//\s*[\s\S]*?)```"),
)
_COMMENT_PREFIX = re.compile(r"^(//!?)\s?")
_SIMPLE_DEPENDENCY = re.compile(r"""(\w+)\s*=\s*["']([^"']+)["']""")
_DEPENDENCY_TABLES = ("dependencies", "dev-dependencies")


def _is_table(value: Any) -> bool:
    return isinstance(value, (Table, OutOfOrderTableProxy))


def _dependencies_from_document(doc: Any) -> dict[str, str]:
    found: dict[str, str] = {}
    for section in _DEPENDENCY_TABLES:
        deps = doc.get(section)
        if not _is_table(deps):
            continue
        for key, value in deps.items():
            version = extract_version(value)
            if version is not None:
                found[str(key)] = version
    return found


def _dependencies_from_text(text: str) -> dict[str, str]:
    return {m.group(1): m.group(2) for m in _SIMPLE_DEPENDENCY.finditer(text)}


def parse_cargo_sections(content: str) -> tuple[list[CargoSection], dict[str, str]]:
    """Find every embedded cargo block and the dependency versions it declares.

    Blocks that are not valid TOML fall back to matching ``name = "version"``.
    """
    sections: list[CargoSection] = []
    dependencies: dict[str, str] = {}
    for pattern in _SECTION_PATTERNS:
        for match in pattern.finditer(content):
            raw = match.group(1)
            cleaned = _COMMENT_PREFIX.sub("", raw, count=1) if raw.startswith("//") else raw
            sections.append(CargoSection(start=match.start(1), end=match.end(1), content=cleaned))
            try:
                doc = tomlkit.parse(cleaned)
            except TOMLKitError:
                dependencies.update(_dependencies_from_text(cleaned))
            else:
                dependencies.update(_dependencies_from_document(doc))
    return sections, dependencies


@dataclass
class RustScript:
    """A script file together with its embedded cargo sections."""

    path: Path
    sections: list[CargoSection] = field(default_factory=list)
    dependencies: dict[str, str] = field(default_factory=dict)
    content: str = field(default="", repr=False)

    @classmethod
    def load(cls, path: str | Path) -> RustScript:
        """Read ``path`` and parse its cargo sections."""
        path = Path(path)
        content = path.read_text()
        sections, dependencies = parse_cargo_sections(content)
        return cls(path=path, sections=sections, dependencies=dependencies, content=content)