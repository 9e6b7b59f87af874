"""Scanning directories for cargo manifests and maintaining them."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator, Mapping, Sequence
from pathlib import Path
from typing import Any, Optional

import tomlkit
from tomlkit.container import OutOfOrderTableProxy
from tomlkit.exceptions import TOMLKitError
from tomlkit.items import Table

from kargo.backup import BackupManager
from kargo.commands import CommandError, CommandRunner
from kargo.config import Config
from kargo.events import ErrorEvent, EventBus, Subscription
from kargo.vendor import VendorManager

log = logging.getLogger(__name__)

MANIFEST_NAME = "Cargo.toml"


def scan_dirs_from_env() -> list[Path]:
    """Directories from ``KRATER_SCAN`` (colon separated), else ``HOME``, else ``.``."""
    scan = os.environ.get("KRATER_SCAN")
    if scan is not None:
        return [Path(d) for d in scan.split(":")]
    home = os.environ.get("HOME")
    if home is None:
        log.warning("HOME environment variable not set, using current directory")
        return [Path(".")]
    return [Path(home)]


def _walk_manifests(root: Path) -> Iterator[Path]:
    seen: set[str] = set()
    for dirpath, dirnames, filenames in os.walk(root, followlinks=True):
        real = os.path.realpath(dirpath)
        if real in seen:
            dirnames[:] = []
            continue
        seen.add(real)
        if MANIFEST_NAME in filenames:
            yield Path(dirpath) / MANIFEST_NAME


def _is_table(value: Any) -> bool:
    return isinstance(value, (Table, OutOfOrderTableProxy))


def _load_config() -> Config:
    try:
        return Config.load()
    except (OSError, ValueError) as exc:
        log.error("Failed to load config: %s", exc)
        return Config()


class DependencyUpdater:
    """Finds manifests under the scan directories and post-processes them."""

    def __init__(
        self,
        config: Optional[Config] = None,
        events: Optional[EventBus] = None,
        scan_dirs: Optional[Sequence[str | Path]] = None,
    ) -> None:
        self._config = config if config is not None else _load_config()
        self._events = events if events is not None else EventBus()
        self._scan_dirs = (
            [Path(d) for d in scan_dirs] if scan_dirs is not None else scan_dirs_from_env()
        )
        log.info("Scanning directories: %s", self._scan_dirs)

    @property
    def scan_dirs(self) -> list[Path]:
        return list(self._scan_dirs)

    def find_cargo_tomls(self) -> list[Path]:
        """Every ``Cargo.toml`` below the scan directories, following links."""
        return [manifest for d in self._scan_dirs for manifest in _walk_manifests(d)]

    def subscribe(self) -> Subscription:
        return self._events.subscribe()

    async def run(self) -> None:
        """Back up manifests, vendor and run post-commands; roll back on failure."""
        backup: Optional[BackupManager] = None
        if self._config.rollback_on_failure:
            try:
                backup = BackupManager(self._events)
            except OSError as exc:
                log.error("Failed to create backup manager: %s", exc)
        try:
            await self._run_impl(backup)
        except Exception as exc:
            if backup is not None:
                self._events.publish(ErrorEvent(message=str(exc)))
                backup.rollback()
            raise
        finally:
            if backup is not None:
                backup.close()

    async def _run_impl(self, backup: Optional[BackupManager]) -> None:
        cargo_tomls = self.find_cargo_tomls()
        log.info("Found %d Cargo.toml files", len(cargo_tomls))

        if backup is not None:
            for manifest in cargo_tomls:
                backup.backup_file(manifest)

        vendor = self._config.vendor
        if vendor.enabled:
            manager = VendorManager(vendor.path, vendor.dedupe, self._events)
            for workspace in self._workspace_roots(cargo_tomls):
                await manager.vendor_dependencies(workspace)

        if self._config.post_commands:
            runner = CommandRunner(self._events)
            for directory in self._scan_dirs:
                try:
                    await runner.run_commands(self._config.post_commands, directory)
                except CommandError as exc:
                    log.warning("Post-command failed in %s: %s", directory, exc)

    @staticmethod
    def _workspace_roots(manifests: Sequence[Path]) -> list[Path]:
        roots = []
        for manifest in manifests:
            try:
                doc = tomlkit.parse(manifest.read_text())
            except (OSError, UnicodeDecodeError, TOMLKitError):
                continue
            if doc.get("workspace") is not None:
                roots.append(manifest.parent)
        return roots

    def update_crate_deps(
        self, crate_path: str | Path, workspace_deps: Mapping[str, Any]
    ) -> None:
        """Point dependencies listed under the ``workspace.dependencies`` key
        of ``workspace_deps`` at the workspace, and rewrite the manifest."""
        crate_path = Path(crate_path)
        try:
            doc = tomlkit.parse(crate_path.read_text())
        except TOMLKitError as exc:
            raise ValueError(f"Invalid TOML in {crate_path}: {exc}") from exc

        deps = doc.get("dependencies")
        shared = workspace_deps.get("workspace.dependencies")
        if _is_table(deps) and isinstance(shared, Mapping):
            for name in [str(k) for k in deps.keys()]:
                if shared.get(name) is None:
                    continue
                log.info("Updating %s in %s to use workspace version", name, crate_path)
                entry = tomlkit.inline_table()
                entry["workspace"] = True
                deps[name] = entry

        crate_path.write_text(tomlkit.dumps(doc))