from pathlib import Path

import pytest

from kargo.backup import BackupManager, Change
from kargo.events import EventBus, RollbackFinished, RollbackStarted


def test_rollback_restores_original_content(tmp_path):
    target = tmp_path / "Cargo.toml"
    target.write_text("original")
    bus = EventBus()
    with BackupManager(bus) as manager:
        manager.backup_file(target)
        target.write_text("modified")
        manager.rollback()
        assert target.read_text() == "original"


def test_backup_records_change(tmp_path):
    target = tmp_path / "Cargo.toml"
    target.write_text("data")
    with BackupManager(EventBus()) as manager:
        manager.backup_file(target)
        assert manager.changes == (
            Change(path=target, backup_path=manager.backup_dir / "Cargo.toml"),
        )
        assert (manager.backup_dir / "Cargo.toml").read_text() == "data"


def test_rollback_publishes_start_and_finish(tmp_path):
    bus = EventBus()
    sub = bus.subscribe()
    with BackupManager(bus) as manager:
        manager.rollback()
        assert sub.drain() == [
            RollbackStarted(path=manager.backup_dir),
            RollbackFinished(path=manager.backup_dir),
        ]


def test_path_without_file_name_is_rejected():
    with BackupManager(EventBus()) as manager:
        with pytest.raises(ValueError, match="Path has no file name"):
            manager.backup_file(Path("/"))


def test_missing_file_raises(tmp_path):
    with BackupManager(EventBus()) as manager:
        with pytest.raises(FileNotFoundError):
            manager.backup_file(tmp_path / "absent.toml")


def test_close_removes_backup_directory():
    manager = BackupManager(EventBus())
    directory = manager.backup_dir
    assert directory.is_dir()
    manager.close()
    assert not directory.exists()