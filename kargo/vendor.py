"""Placing a workspace's registry dependencies into a vendor directory."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import semver

from kargo.events import EventBus, VendorFinished, VendorStarted


class VendorError(RuntimeError):
    """Workspace metadata could not be obtained or understood."""


def _parse_version(pkg: dict[str, Any]) -> semver.Version:
    try:
        return semver.Version.parse(str(pkg["version"]))
    except (KeyError, ValueError, TypeError) as exc:
        raise VendorError(f"invalid package version in metadata: {pkg!r}") from exc


class VendorManager:
    """Creates one directory per vendored package under ``vendor_path``."""

    def __init__(self, vendor_path: str | Path, dedupe: bool, events: EventBus) -> None:
        self._vendor_path = Path(vendor_path)
        self._dedupe = dedupe
        self._events = events

    @property
    def vendor_path(self) -> Path:
        return self._vendor_path

    async def vendor_dependencies(self, workspace_path: str | Path) -> None:
        """Vendor every registry package the workspace depends on.

        With deduplication only the highest version of each package is kept.
        """
        workspace_path = Path(workspace_path)
        self._events.publish(VendorStarted(path=workspace_path))

        packages = await self._metadata_packages(workspace_path / "Cargo.toml")
        selected: dict[str, tuple[dict[str, Any], semver.Version]] = {}
        for pkg in packages:
            version = _parse_version(pkg)
            if self._dedupe:
                key = str(pkg.get("name", ""))
                current = selected.get(key)
                if current is None or version > current[1]:
                    selected[key] = (pkg, version)
            else:
                selected[str(pkg.get("id", ""))] = (pkg, version)

        self._vendor_path.mkdir(parents=True, exist_ok=True)
        for pkg, version in selected.values():
            source = pkg.get("source")
            if isinstance(source, str) and source.startswith("registry+"):
                self._vendor_package(str(pkg["name"]), version)

        self._events.publish(VendorFinished(path=workspace_path))

    def _vendor_package(self, name: str, version: semver.Version) -> None:
        (self._vendor_path / name / str(version)).mkdir(parents=True, exist_ok=True)

    async def _metadata_packages(self, manifest: Path) -> list[dict[str, Any]]:
        try:
            process = await asyncio.create_subprocess_exec(
                "cargo",
                "metadata",
                "--format-version",
                "1",
                "--manifest-path",
                str(manifest),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise VendorError(f"failed to run cargo metadata: {exc}") from exc
        stdout, stderr = await process.communicate()
        if process.returncode != 0:
            raise VendorError(
                f"cargo metadata failed: {stderr.decode(errors='replace').strip()}"
            )
        try:
            data = json.loads(stdout)
        except json.JSONDecodeError as exc:
            raise VendorError(f"invalid cargo metadata output: {exc}") from exc
        packages = data.get("packages") if isinstance(data, dict) else None
        if not isinstance(packages, list):
            raise VendorError("cargo metadata output has no package list")
        return [p for p in packages if isinstance(p, dict)]