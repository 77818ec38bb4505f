"""Date and time utility functions."""
from datetime import datetime
from typing import Optional

BACKUP_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S_%f"


def now_iso() -> str:
    """Current local time as an ISO 8601 string with UTC offset."""
    return datetime.now().astimezone().isoformat()


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO 8601 timestamp.

    Args:
        value: Timestamp string (e.g., "2025-10-28T14:00:10+08:00" or "...Z")

    Returns:
        datetime object

    Raises:
        ValueError: If the format is invalid
    """
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def backup_timestamp(moment: Optional[datetime] = None) -> str:
    """
    Format a moment for use in a backup file name.

    Example: 2025-10-28 14:00:10.123456 -> "2025-10-28_14-00-10_123456"
    """
    return (moment or datetime.now()).strftime(BACKUP_TIMESTAMP_FORMAT)
