"""JSON guest file persistence with advisory locking."""
import json
import logging
import os
import sys
import tempfile
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, List, Optional, Tuple, Union

from rsvp.config import AppConfig
from rsvp.models.guest import Guest, new_guest_id, normalize_email
from rsvp.services.backup_service import BackupManager
from rsvp.utils.exceptions import LockTimeoutError, StorageError

if sys.platform != "win32":
    import fcntl

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def lock_path_for(file_path: PathLike) -> Path:
    """Sidecar file that carries the advisory lock for file_path."""
    path = Path(file_path)
    return path.with_name(f"{path.name}.lock")


@contextmanager
def lock_file(file_path: PathLike, shared: bool = False, timeout: float = 5.0):
    """
    Context manager for advisory locking of a data file.

    Args:
        file_path: Path to the file being protected
        shared: True for a read lock, False for an exclusive write lock
        timeout: Maximum seconds to wait for lock acquisition (default: 5.0)

    Yields:
        None

    Usage:
        with lock_file('data/guests.json'):
            # Critical section - no other reader or writer holds the lock
            write_json('data/guests.json', guests)

    Raises:
        LockTimeoutError: If unable to acquire lock within timeout
        StorageError: If the lock file cannot be created
    """
    lock_file_path = lock_path_for(file_path)
    try:
        lock_file_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StorageError(f"Cannot create lock directory for {file_path}: {e}") from e

    # Windows has no shared flock; every lock is an exclusive lock file
    if sys.platform == "win32":
        windows_lock_path = f"{lock_file_path}.win"
        start_time = time.time()
        lock_fd = None

        while True:
            try:
                lock_fd = os.open(
                    windows_lock_path,
                    os.O_CREAT | os.O_EXCL | os.O_RDWR
                )
                break
            except FileExistsError:
                if time.time() - start_time > timeout:
                    raise LockTimeoutError(f"Could not acquire lock on {file_path} within {timeout}s")
                time.sleep(0.05)
            except OSError as e:
                raise StorageError(f"Cannot open lock file for {file_path}: {e}") from e

        try:
            yield
        finally:
            os.close(lock_fd)
            try:
                os.remove(windows_lock_path)
            except OSError:
                logger.warning("Could not remove lock file %s", windows_lock_path)
    else:
        try:
            lock_fd = open(lock_file_path, "a+")
        except OSError as e:
            raise StorageError(f"Cannot open lock file for {file_path}: {e}") from e

        mode = fcntl.LOCK_SH if shared else fcntl.LOCK_EX
        try:
            start_time = time.time()
            while True:
                try:
                    fcntl.flock(lock_fd.fileno(), mode | fcntl.LOCK_NB)
                    break
                except (IOError, OSError):
                    if time.time() - start_time > timeout:
                        raise LockTimeoutError(f"Could not acquire lock on {file_path} within {timeout}s")
                    time.sleep(0.05)

            try:
                yield
            finally:
                fcntl.flock(lock_fd.fileno(), fcntl.LOCK_UN)
        finally:
            lock_fd.close()


def read_json(file_path: PathLike) -> Any:
    """
    Load and parse a JSON file with UTF-8 encoding.

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If JSON is malformed
    """
    with open(file_path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_json(file_path: PathLike, data: Any) -> None:
    """
    Save data to a JSON file atomically with UTF-8 encoding.

    The content goes to a temporary file in the same directory which then
    replaces the target, so readers never observe a partial write.

    Raises:
        StorageError: If serialization or the write fails
    """
    path = Path(file_path)
    try:
        content = json.dumps(data, ensure_ascii=False, indent=2)
    except (TypeError, ValueError) as e:
        raise StorageError(f"Cannot serialize data for {path}: {e}") from e

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_fd, temp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=".tmp_",
            suffix=".json"
        )
    except OSError as e:
        raise StorageError(f"Cannot create temporary file for {path}: {e}") from e

    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except OSError as e:
        if os.path.exists(temp_path):
            os.remove(temp_path)
        raise StorageError(f"Failed to write file {path}: {e}") from e


@dataclass
class GuestSnapshot:
    """
    Parsed contents of the guest file.

    Entries that cannot be read as a Guest are kept verbatim in preserved,
    with their position in the file, so that a later save writes them back.
    """

    guests: List[Guest] = field(default_factory=list)
    preserved: List[Tuple[int, Any]] = field(default_factory=list)

    def has_preserved_email(self, email: str) -> bool:
        """Whether an unparsed entry carries this email (any case)."""
        key = normalize_email(email)
        for _, entry in self.preserved:
            stored = entry.get("email") if isinstance(entry, dict) else None
            if isinstance(stored, str) and normalize_email(stored) == key:
                return True
        return False

    def records(self, guests: List[Guest]) -> List[Any]:
        """
        JSON entries for guests with the preserved entries back in place.

        guests must keep the loaded order; new guests go at the end.
        """
        entries: List[Any] = [guest.to_dict() for guest in guests]
        for position, entry in self.preserved:
            entries.insert(min(position, len(entries)), entry)
        return entries


class GuestTransaction:
    """Load/save access to the guest file while the caller holds the write lock."""

    def __init__(self, store: "GuestStore"):
        self._store = store
        self._snapshot = GuestSnapshot()

    def load(self) -> List[Guest]:
        self._snapshot = self._store._read_snapshot()
        return self._snapshot.guests

    def has_preserved_email(self, email: str) -> bool:
        return self._snapshot.has_preserved_email(email)

    def save(self, guests: List[Guest]) -> None:
        self._store._write_records(self._snapshot.records(guests))


class GuestStore:
    """
    Owner of the on-disk guest collection.

    Every call goes back to disk; nothing is cached between operations.
    """

    def __init__(self, config: AppConfig, backup_manager: Optional[BackupManager] = None):
        self.config = config
        self.path = config.guests_path
        self.backup_manager = backup_manager or BackupManager(config)

    def load(self) -> List[Guest]:
        """
        Load all guests in stored order under a shared lock.

        Returns:
            List[Guest]: empty if the file is missing, unreadable or malformed
        """
        return self.load_snapshot().guests

    def load_snapshot(self) -> GuestSnapshot:
        """Load guests together with the entries that could not be parsed."""
        try:
            with lock_file(self.path, shared=True, timeout=self.config.lock_timeout):
                return self._read_snapshot()
        except StorageError as e:
            logger.error(f"Failed to read guests: {e}")
            return GuestSnapshot()

    def save(self, guests: List[Guest]) -> bool:
        """
        Back up the current file and overwrite it with guests.

        Entries of the current file that could not be parsed are written back
        at their original positions.

        Returns:
            True on success, False if locking, backup or writing failed
        """
        try:
            with self.transaction() as tx:
                tx.load()
                tx.save(guests)
            return True
        except StorageError as e:
            logger.error(f"Failed to save guests: {e}")
            return False

    @contextmanager
    def transaction(self) -> Iterator[GuestTransaction]:
        """
        Hold the exclusive lock across a read-modify-write span.

        Raises:
            StorageError: If the lock cannot be acquired or a save fails
        """
        with lock_file(self.path, timeout=self.config.lock_timeout):
            yield GuestTransaction(self)

    def _read_snapshot(self) -> GuestSnapshot:
        snapshot = GuestSnapshot()
        if not self.path.exists():
            return snapshot

        try:
            data = read_json(self.path)
        except json.JSONDecodeError as e:
            logger.warning(f"Malformed JSON in {self.path}: {e.msg}")
            return snapshot
        except OSError as e:
            logger.error(f"Cannot read {self.path}: {e}")
            return snapshot

        if not isinstance(data, list):
            logger.warning(f"Expected a JSON array in {self.path}, got {type(data).__name__}")
            return snapshot

        for index, entry in enumerate(data):
            try:
                snapshot.guests.append(Guest.from_dict(entry, id_factory=new_guest_id))
            except ValueError as e:
                logger.warning(f"Keeping unreadable guest record {index} in {self.path} as is: {e}")
                snapshot.preserved.append((index, entry))
        return snapshot

    def _write_records(self, records: List[Any]) -> None:
        self.backup_manager.snapshot()
        write_json(self.path, records)
