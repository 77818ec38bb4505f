"""Backup snapshots of the guest file taken before every overwrite."""
import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from rsvp.config import AppConfig
from rsvp.utils.date_utils import backup_timestamp
from rsvp.utils.exceptions import StorageError

logger = logging.getLogger(__name__)

_STAMP_WIDTH = len("YYYY-MM-DD_HH-MM-SS_ffffff")


class BackupManager:
    """Copies the current guest file into the backup directory."""

    def __init__(self, config: AppConfig, clock: Optional[Callable[[], datetime]] = None):
        self.config = config
        self.source = config.guests_path
        self.backup_dir = config.backup_path
        self.prefix = self.source.stem
        self._clock = clock or datetime.now

    def snapshot(self) -> Optional[Path]:
        """
        Copy the guest file verbatim into a new timestamped backup.

        Returns:
            Path of the new backup, or None if the guest file doesn't exist yet

        Raises:
            StorageError: If the backup cannot be written

        Behavior:
            - Name: <prefix>_backup_<YYYY-MM-DD_HH-MM-SS_ffffff>.json
            - A numeric suffix is appended if that name is already taken
            - Old backups beyond the retention limit are pruned afterwards
        """
        if not self.source.exists():
            return None

        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            backup_path = self._unique_path(backup_timestamp(self._clock()))
            shutil.copyfile(self.source, backup_path)
        except OSError as e:
            raise StorageError(f"Failed to create backup of {self.source}: {e}") from e

        logger.debug("Created backup %s", backup_path)
        self.prune()
        return backup_path

    def list_backups(self) -> List[Path]:
        """Backups of this guest file, oldest first."""
        if not self.backup_dir.exists():
            return []
        return sorted(
            self.backup_dir.glob(f"{self.prefix}_backup_*.json"),
            key=self._sort_key,
        )

    def prune(self) -> List[Path]:
        """
        Delete the oldest backups beyond config.backup_retention.

        Returns:
            List of removed paths (empty when retention is disabled)
        """
        retention = self.config.backup_retention
        if retention <= 0:
            return []

        backups = self.list_backups()
        removed = []
        for path in backups[:-retention]:
            try:
                path.unlink()
                removed.append(path)
            except OSError as e:
                logger.warning(f"Could not remove old backup {path}: {e}")
        if removed:
            logger.info("Pruned %d old backup(s)", len(removed))
        return removed

    def _unique_path(self, stamp: str) -> Path:
        candidate = self.backup_dir / f"{self.prefix}_backup_{stamp}.json"
        counter = 1
        while candidate.exists():
            candidate = self.backup_dir / f"{self.prefix}_backup_{stamp}-{counter}.json"
            counter += 1
        return candidate

    def _sort_key(self, path: Path):
        # <stamp> or <stamp>-<n>; stamps have a fixed width and sort lexically
        name = path.stem[len(f"{self.prefix}_backup_"):]
        stamp, suffix = name[:_STAMP_WIDTH], name[_STAMP_WIDTH + 1:]
        return stamp, int(suffix) if suffix.isdigit() else 0
