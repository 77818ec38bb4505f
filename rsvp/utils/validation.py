"""Validation and sanitization of RSVP form input."""
import html
import re
from typing import Any, Mapping, Optional, Tuple

import email_validator
from email_validator import EmailNotValidError, validate_email

from rsvp.config import AppConfig
from rsvp.models.guest import ATTENDANCE_OPTIONS, GuestFields
from rsvp.models.outcome import ErrorKind, FieldError

REQUIRED_TEXT_FIELDS = (
    ("fullName", "Full Name"),
    ("company", "Company"),
    ("jobTitle", "Job Title"),
    ("companyAddress", "Company Address"),
)

PHONE_MIN_LENGTH = 10
PHONE_MAX_LENGTH = 20

_PHONE_DISALLOWED = re.compile(r"[^0-9+\-() ]")
_INTEGER = re.compile(r"^[+-]?\d+$")

# Addresses on reserved names such as .local or .invalid are syntactically valid.
email_validator.SPECIAL_USE_DOMAIN_NAMES.clear()

# Anything else counts as checked, "false" and "no" included.
_FALSE_FLAGS = {"", "0"}


def sanitize_input(value: Any, max_length: int) -> str:
    """
    Trim, escape markup characters and truncate a text value.

    Args:
        value: Raw input (non-strings are treated as empty)
        max_length: Maximum length of the result

    Returns:
        Sanitized string, possibly empty

    Example:
        sanitize_input("  <b>Acme</b> ", 500) -> "&lt;b&gt;Acme&lt;/b&gt;"
    """
    if not isinstance(value, str):
        return ""

    sanitized = html.escape(value.strip(), quote=True)
    return sanitized[:max_length]


def is_valid_email(email: Any) -> bool:
    """Check email syntax only; no DNS or deliverability lookups."""
    if not isinstance(email, str) or not email.strip():
        return False
    try:
        validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def normalize_phone(phone: str) -> Optional[str]:
    """
    Strip disallowed characters from a phone number.

    Returns:
        The normalized number, or None if its length is outside [10, 20]
    """
    cleaned = _PHONE_DISALLOWED.sub("", phone)
    if PHONE_MIN_LENGTH <= len(cleaned) <= PHONE_MAX_LENGTH:
        return cleaned
    return None


def parse_guest_count(value: Any, max_count: int) -> int:
    """
    Parse the number of additional guests.

    Non-integers and values outside [0, max_count] become 0.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        count = value
    elif isinstance(value, str) and _INTEGER.match(value.strip()):
        count = int(value.strip())
    else:
        return 0

    if 0 <= count <= max_count:
        return count
    return 0


def parse_opt_in(value: Any) -> bool:
    """Map a checkbox-style value to a boolean; absent (None) is False."""
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() not in _FALSE_FLAGS
    return bool(value)


def _first_present(fields: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in fields:
            return fields[key]
    return None


def validate_guest_fields(
    fields: Mapping[str, Any], config: AppConfig
) -> Tuple[Optional[GuestFields], Optional[FieldError]]:
    """
    Turn untrusted form fields into canonical guest values.

    Args:
        fields: Raw field map (any key may be missing)
        config: Supplies length and guest-count limits

    Returns:
        Tuple of (guest_fields, error)
        - (GuestFields, None) if valid
        - (None, FieldError) for the first failing field
    """
    values = {}
    for key, label in REQUIRED_TEXT_FIELDS:
        values[key] = sanitize_input(fields.get(key), config.max_input_length)
        if not values[key]:
            return None, FieldError(ErrorKind.MISSING_FIELD, key, f"{label} is required")

    raw_email = fields.get("email")
    if not is_valid_email(raw_email):
        return None, FieldError(ErrorKind.INVALID_EMAIL, "email", "Valid email address is required")
    email = raw_email.strip()

    attendance = fields.get("attendance")
    if attendance not in ATTENDANCE_OPTIONS:
        return None, FieldError(
            ErrorKind.INVALID_ATTENDANCE, "attendance", "Attendance selection is required"
        )

    phone = ""
    raw_phone = fields.get("phone")
    if isinstance(raw_phone, int) and not isinstance(raw_phone, bool):
        raw_phone = str(raw_phone)
    elif raw_phone is not None and not isinstance(raw_phone, str):
        return None, FieldError(ErrorKind.INVALID_PHONE, "phone", "Invalid phone number format")
    if raw_phone and raw_phone.strip():
        phone = normalize_phone(raw_phone.strip())
        if phone is None:
            return None, FieldError(ErrorKind.INVALID_PHONE, "phone", "Invalid phone number format")

    return GuestFields(
        full_name=values["fullName"],
        email=email,
        company=values["company"],
        job_title=values["jobTitle"],
        company_address=values["companyAddress"],
        attendance=attendance,
        phone=phone,
        guests_count=parse_guest_count(
            _first_present(fields, "guestsCount", "guests"), config.max_guests_count
        ),
        comments=sanitize_input(fields.get("comments"), config.max_comment_length),
        updates_requested=parse_opt_in(_first_present(fields, "updatesRequested", "updates")),
    ), None
