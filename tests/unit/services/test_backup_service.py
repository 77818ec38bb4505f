"""Unit tests for backup_service."""
import re
from datetime import datetime, timedelta

import pytest

from rsvp.config import AppConfig
from rsvp.services.backup_service import BackupManager
from rsvp.utils.exceptions import StorageError


class FixedClock:
    """Clock returning a controllable moment."""

    def __init__(self, moment: datetime):
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment

    def advance(self, seconds: float) -> None:
        self.moment += timedelta(seconds=seconds)


@pytest.fixture
def config(tmp_path):
    return AppConfig(
        data_dir=str(tmp_path / "data"),
        backup_dir=str(tmp_path / "backups"),
        backup_retention=3,
    )


@pytest.fixture
def guest_file(config):
    config.guests_path.parent.mkdir(parents=True)
    config.guests_path.write_text('[\n  {"email": "a@x.com"}\n]', encoding="utf-8")
    return config.guests_path


@pytest.fixture
def clock():
    return FixedClock(datetime(2025, 10, 28, 14, 0, 10, 123456))


class TestSnapshot:
    """Test BackupManager.snapshot."""

    def test_no_source_file_no_backup(self, config):
        manager = BackupManager(config)

        assert manager.snapshot() is None
        assert manager.list_backups() == []

    def test_snapshot_copies_content_verbatim(self, config, guest_file):
        backup = BackupManager(config).snapshot()

        assert backup.read_bytes() == guest_file.read_bytes()
        assert backup.parent == config.backup_path

    def test_snapshot_name_has_prefix_and_timestamp(self, config, guest_file, clock):
        backup = BackupManager(config, clock=clock).snapshot()

        assert backup.name == "guests_backup_2025-10-28_14-00-10_123456.json"

    def test_name_format_without_fixed_clock(self, config, guest_file):
        backup = BackupManager(config).snapshot()

        assert re.match(r"^guests_backup_\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2}_\d{6}\.json$", backup.name)

    def test_same_timestamp_gets_numeric_suffix(self, config, guest_file, clock):
        manager = BackupManager(config, clock=clock)

        first = manager.snapshot()
        second = manager.snapshot()

        assert first != second
        assert second.name == "guests_backup_2025-10-28_14-00-10_123456-1.json"

    def test_backup_failure_raises_storage_error(self, config, guest_file):
        config.backup_path.parent.mkdir(parents=True, exist_ok=True)
        config.backup_path.write_text("not a directory", encoding="utf-8")

        with pytest.raises(StorageError, match="Failed to create backup"):
            BackupManager(config).snapshot()


class TestRetention:
    """Test BackupManager.prune and list_backups."""

    def test_list_backups_oldest_first(self, config, guest_file, clock):
        manager = BackupManager(config.with_overrides(backup_retention=0), clock=clock)
        names = []
        for _ in range(3):
            names.append(manager.snapshot().name)
            clock.advance(1)

        assert [p.name for p in manager.list_backups()] == names

    def test_suffixed_backups_sort_after_their_base(self, config, guest_file, clock):
        manager = BackupManager(config.with_overrides(backup_retention=0), clock=clock)
        created = [manager.snapshot() for _ in range(12)]

        assert manager.list_backups() == created

    def test_prune_keeps_newest(self, config, guest_file, clock):
        manager = BackupManager(config, clock=clock)
        created = []
        for _ in range(5):
            created.append(manager.snapshot())
            clock.advance(1)

        assert manager.list_backups() == created[-3:]

    def test_zero_retention_keeps_everything(self, config, guest_file, clock):
        manager = BackupManager(config.with_overrides(backup_retention=0), clock=clock)
        for _ in range(5):
            manager.snapshot()
            clock.advance(1)

        assert len(manager.list_backups()) == 5
        assert manager.prune() == []

    def test_prune_ignores_other_files(self, config, guest_file, clock):
        config.backup_path.mkdir(parents=True)
        unrelated = config.backup_path / "notes.txt"
        unrelated.write_text("keep me", encoding="utf-8")
        manager = BackupManager(config, clock=clock)
        for _ in range(5):
            manager.snapshot()
            clock.advance(1)

        assert unrelated.exists()
