"""Settings for the dependency updater, read from a YAML file."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import platformdirs
import yaml


def _default_scan_dirs() -> list[Path]:
    return [Path(os.environ.get("HOME", ""))]


def _require(data: dict[str, Any], key: str, where: str) -> Any:
    if key not in data:
        raise ValueError(f"{where}: missing field `{key}`")
    return data[key]


def _as_bool(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{key}: expected a boolean, got {value!r}")
    return value


def _as_path(value: Any, key: str) -> Path:
    if not isinstance(value, str):
        raise ValueError(f"{key}: expected a path string, got {value!r}")
    return Path(value)


def _as_str_list(value: Any, key: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{key}: expected a list of strings, got {value!r}")
    return list(value)


@dataclass
class VendorConfig:
    """Whether and where dependencies are vendored."""

    enabled: bool = False
    path: Path = field(default_factory=Path)
    dedupe: bool = False


@dataclass
class Config:
    """Updater settings; every field is required in a config file."""

    scan_dirs: list[Path] = field(default_factory=_default_scan_dirs)
    post_commands: list[str] = field(default_factory=lambda: ["cargo fmt"])
    rollback_on_failure: bool = True
    vendor: VendorConfig = field(default_factory=VendorConfig)

    @classmethod
    def from_yaml(cls, text: str) -> Config:
        """Parse a YAML document; raise ValueError if it is malformed."""
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValueError(f"invalid YAML: {exc}") from exc
        if not isinstance(data, dict):
            raise ValueError("config: expected a mapping")
        scan_dirs = _require(data, "scan_dirs", "config")
        if not isinstance(scan_dirs, list):
            raise ValueError(f"scan_dirs: expected a list, got {scan_dirs!r}")
        vendor = _require(data, "vendor", "config")
        if not isinstance(vendor, dict):
            raise ValueError("vendor: expected a mapping")
        return cls(
            scan_dirs=[_as_path(d, "scan_dirs") for d in scan_dirs],
            post_commands=_as_str_list(
                _require(data, "post_commands", "config"), "post_commands"
            ),
            rollback_on_failure=_as_bool(
                _require(data, "rollback_on_failure", "config"), "rollback_on_failure"
            ),
            vendor=VendorConfig(
                enabled=_as_bool(_require(vendor, "enabled", "vendor"), "vendor.enabled"),
                path=_as_path(_require(vendor, "path", "vendor"), "vendor.path"),
                dedupe=_as_bool(_require(vendor, "dedupe", "vendor"), "vendor.dedupe"),
            ),
        )

    @classmethod
    def config_paths(cls) -> list[Path]:
        """Candidate config files, in the order they are tried."""
        home = os.environ.get("HOME")
        paths: list[Path] = []
        if home is not None:
            paths.append(Path(home) / ".krater.yaml")
        paths.append(platformdirs.user_config_path("krater", appauthor=False) / "config.yaml")
        if home is not None:
            paths.append(Path(home) / ".config" / "krater.yaml")
        return paths

    @classmethod
    def load(cls) -> Config:
        """Load the first existing config file, or return the defaults."""
        for path in cls.config_paths():
            if path.exists():
                return cls.from_yaml(path.read_text())
        return cls()