"""Application configuration and logging setup."""
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from threading import Lock
from typing import Mapping, Optional


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_ENV_LOADED = False
_ENV_LOCK = Lock()


@dataclass(frozen=True)
class AppConfig:
    """Paths and limits shared by the validator, store and services."""

    data_dir: str = "data"
    guests_file: str = "guests.json"
    backup_dir: str = "backups"
    max_input_length: int = 500
    max_comment_length: int = 1000
    max_guests_count: int = 10
    lock_timeout: float = 5.0
    backup_retention: int = 100
    log_level: str = "INFO"

    @property
    def guests_path(self) -> Path:
        return Path(self.data_dir) / self.guests_file

    @property
    def backup_path(self) -> Path:
        return Path(self.backup_dir)

    def with_overrides(self, **changes) -> "AppConfig":
        return replace(self, **changes)


def _load_dotenv(env_path: Path = Path(".env")) -> None:
    """Copy RSVP_* keys from a .env file into os.environ without overriding it."""
    global _ENV_LOADED

    if _ENV_LOADED:
        return

    with _ENV_LOCK:
        if _ENV_LOADED:
            return

        if env_path.exists():
            for raw_line in env_path.read_text(encoding="utf-8").splitlines():
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue

                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip().strip('"\'')

                if key.startswith("RSVP_") and key not in os.environ:
                    os.environ[key] = value

        _ENV_LOADED = True


def _int_setting(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring non-integer %s=%r", key, raw)
        return default


def _float_setting(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring non-numeric %s=%r", key, raw)
        return default


def load_config(env: Optional[Mapping[str, str]] = None) -> AppConfig:
    """
    Build an AppConfig from RSVP_* environment variables.

    Args:
        env: Mapping to read from (defaults to os.environ after loading .env)

    Returns:
        AppConfig with defaults for every unset key

    Recognized keys:
        RSVP_DATA_DIR, RSVP_GUESTS_FILE, RSVP_BACKUP_DIR, RSVP_MAX_INPUT_LENGTH,
        RSVP_MAX_COMMENT_LENGTH, RSVP_MAX_GUESTS_COUNT, RSVP_LOCK_TIMEOUT,
        RSVP_BACKUP_RETENTION, RSVP_LOG_LEVEL
    """
    if env is None:
        _load_dotenv()
        env = os.environ

    defaults = AppConfig()
    return AppConfig(
        data_dir=env.get("RSVP_DATA_DIR", defaults.data_dir).strip() or defaults.data_dir,
        guests_file=env.get("RSVP_GUESTS_FILE", defaults.guests_file).strip() or defaults.guests_file,
        backup_dir=env.get("RSVP_BACKUP_DIR", defaults.backup_dir).strip() or defaults.backup_dir,
        max_input_length=_int_setting(env, "RSVP_MAX_INPUT_LENGTH", defaults.max_input_length),
        max_comment_length=_int_setting(env, "RSVP_MAX_COMMENT_LENGTH", defaults.max_comment_length),
        max_guests_count=_int_setting(env, "RSVP_MAX_GUESTS_COUNT", defaults.max_guests_count),
        lock_timeout=_float_setting(env, "RSVP_LOCK_TIMEOUT", defaults.lock_timeout),
        backup_retention=_int_setting(env, "RSVP_BACKUP_RETENTION", defaults.backup_retention),
        log_level=env.get("RSVP_LOG_LEVEL", defaults.log_level).strip().upper() or defaults.log_level,
    )


def ensure_directories(config: AppConfig) -> None:
    """Create the data and backup directories if they are missing."""
    for directory in (Path(config.data_dir), config.backup_path):
        directory.mkdir(parents=True, exist_ok=True)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
