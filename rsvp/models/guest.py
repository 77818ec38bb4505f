"""Guest data model for event RSVP responses."""
import uuid
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional

from rsvp.utils.date_utils import parse_timestamp

ATTENDANCE_OPTIONS = ("yes", "no", "maybe")

# Keys written by earlier versions of the guest file.
_LEGACY_KEYS = {
    "guests": "guestsCount",
    "updates": "updatesRequested",
    "submitted": "submittedAt",
    "updated": "updatedAt",
}


def new_guest_id() -> str:
    return f"guest_{uuid.uuid4().hex}"


@dataclass(frozen=True)
class GuestFields:
    """Validated, sanitized form input that is not yet a stored record."""

    full_name: str
    email: str
    company: str
    job_title: str
    company_address: str
    attendance: str
    phone: str = ""
    guests_count: int = 0
    comments: str = ""
    updates_requested: bool = False


@dataclass
class Guest:
    """One RSVP record as stored in the guest file."""

    id: str
    full_name: str
    email: str
    company: str
    job_title: str
    company_address: str
    attendance: str
    submitted_at: str  # ISO 8601 format
    phone: str = ""
    guests_count: int = 0
    comments: str = ""
    updates_requested: bool = False
    updated_at: Optional[str] = None

    def __post_init__(self):
        """Validate record invariants."""
        if not self.id or not self.id.strip():
            raise ValueError("Guest ID cannot be empty")

        if not self.email or not self.email.strip():
            raise ValueError("Email cannot be empty")

        if self.attendance not in ATTENDANCE_OPTIONS:
            raise ValueError(f"Attendance must be one of {list(ATTENDANCE_OPTIONS)}, got: {self.attendance}")

        for stamp in (self.submitted_at, self.updated_at):
            if stamp is None:
                continue
            try:
                parse_timestamp(stamp)
            except ValueError as e:
                raise ValueError(f"Invalid timestamp format: {stamp}") from e

    @classmethod
    def create(cls, fields: GuestFields, guest_id: str, submitted_at: str) -> "Guest":
        return cls(
            id=guest_id,
            full_name=fields.full_name,
            email=fields.email,
            company=fields.company,
            job_title=fields.job_title,
            company_address=fields.company_address,
            attendance=fields.attendance,
            submitted_at=submitted_at,
            phone=fields.phone,
            guests_count=fields.guests_count,
            comments=fields.comments,
            updates_requested=fields.updates_requested,
        )

    def revise(self, fields: GuestFields, updated_at: str) -> "Guest":
        """Return a copy carrying new field values, keeping id and submitted_at."""
        return replace(
            self,
            full_name=fields.full_name,
            email=fields.email,
            company=fields.company,
            job_title=fields.job_title,
            company_address=fields.company_address,
            attendance=fields.attendance,
            phone=fields.phone,
            guests_count=fields.guests_count,
            comments=fields.comments,
            updates_requested=fields.updates_requested,
            updated_at=updated_at,
        )

    def email_key(self) -> str:
        return normalize_email(self.email)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "fullName": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "company": self.company,
            "jobTitle": self.job_title,
            "companyAddress": self.company_address,
            "attendance": self.attendance,
            "guestsCount": self.guests_count,
            "comments": self.comments,
            "updatesRequested": self.updates_requested,
            "submittedAt": self.submitted_at,
        }
        if self.updated_at is not None:
            data["updatedAt"] = self.updated_at
        return data

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        id_factory: Optional[Callable[[], str]] = None,
    ) -> "Guest":
        """
        Build a Guest from a stored JSON object.

        Args:
            data: Stored record
            id_factory: Supplies an id for records saved without one; without
                it a missing id is an error

        Raises:
            ValueError: If required keys are missing or values are invalid
        """
        if not isinstance(data, dict):
            raise ValueError("Guest record must be an object")

        record = dict(data)
        for legacy, current in _LEGACY_KEYS.items():
            if legacy in record and current not in record:
                record[current] = record.pop(legacy)
        if id_factory is not None and not record.get("id"):
            record["id"] = id_factory()

        try:
            return cls(
                id=record["id"],
                full_name=record["fullName"],
                email=record["email"],
                company=record["company"],
                job_title=record["jobTitle"],
                company_address=record["companyAddress"],
                attendance=record["attendance"],
                submitted_at=record["submittedAt"],
                phone=record.get("phone") or "",
                guests_count=int(record.get("guestsCount") or 0),
                comments=record.get("comments") or "",
                updates_requested=bool(record.get("updatesRequested", False)),
                updated_at=record.get("updatedAt"),
            )
        except KeyError as e:
            raise ValueError(f"Missing guest field: {e.args[0]}") from e
        except (TypeError, AttributeError) as e:
            raise ValueError(f"Malformed guest record: {e}") from e


def normalize_email(email: str) -> str:
    """
    Normalize an email address for duplicate comparison.

    Example: " Ann.Lee@Example.COM " -> "ann.lee@example.com"
    """
    return email.strip().lower()
