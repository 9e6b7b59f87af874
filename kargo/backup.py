"""Copies of files taken before they are modified, for rolling back."""

from __future__ import annotations

import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

from kargo.events import EventBus, RollbackFinished, RollbackStarted


@dataclass(frozen=True)
class Change:
    """A file that was backed up and where its copy lives."""

    path: Path
    backup_path: Path


class BackupManager:
    """Keeps copies of files in a temporary directory and restores them."""

    def __init__(self, events: EventBus) -> None:
        self._events = events
        self._tempdir = tempfile.TemporaryDirectory()
        self._changes: list[Change] = []

    @property
    def backup_dir(self) -> Path:
        return Path(self._tempdir.name)

    @property
    def changes(self) -> tuple[Change, ...]:
        return tuple(self._changes)

    def backup_file(self, path: str | Path) -> None:
        """Copy ``path`` into the backup directory under its file name."""
        path = Path(path)
        if path.name in ("", ".."):
            raise ValueError(f"Path has no file name: {path}")
        backup_path = self.backup_dir / path.name
        shutil.copy(path, backup_path)
        self._changes.append(Change(path=path, backup_path=backup_path))

    def rollback(self) -> None:
        """Restore every backed-up file from its copy."""
        self._events.publish(RollbackStarted(path=self.backup_dir))
        for change in self._changes:
            shutil.copy(change.backup_path, change.path)
        self._events.publish(RollbackFinished(path=self.backup_dir))

    def close(self) -> None:
        """Remove the backup directory."""
        self._tempdir.cleanup()

    def __enter__(self) -> BackupManager:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()