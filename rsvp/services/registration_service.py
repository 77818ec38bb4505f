"""Registration service for adding and updating RSVP guests."""
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from rsvp.config import AppConfig
from rsvp.models.guest import ATTENDANCE_OPTIONS, Guest, new_guest_id, normalize_email
from rsvp.models.outcome import ErrorKind, Outcome
from rsvp.services.storage_service import GuestStore
from rsvp.utils.date_utils import now_iso
from rsvp.utils.exceptions import StorageError
from rsvp.utils.validation import validate_guest_fields

logger = logging.getLogger(__name__)

MSG_ADDED = "Guest added successfully"
MSG_UPDATED = "Guest updated successfully"
MSG_DUPLICATE = "Guest with this email already exists"
MSG_NOT_FOUND = "No registration found for this email"
MSG_SAVE_FAILED = "Unable to save your response, please try again later"


def find_guest_index(guests: List[Guest], email: str) -> Optional[int]:
    """
    Locate a guest by email.

    Args:
        guests: Collection in stored order
        email: Address to look for (case and surrounding spaces ignored)

    Returns:
        Index of the first matching guest, or None
    """
    key = normalize_email(email)
    for index, guest in enumerate(guests):
        if guest.email_key() == key:
            return index
    return None


class RegistrationService:
    """
    Email-keyed registration of guests on top of GuestStore.

    Holds no state between calls; each operation reloads the guest file.
    """

    def __init__(
        self,
        config: AppConfig,
        store: Optional[GuestStore] = None,
        id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], str]] = None,
    ):
        self.config = config
        self.store = store or GuestStore(config)
        self._new_id = id_factory or new_guest_id
        self._now = clock or now_iso

    def exists(self, email: str) -> bool:
        """Whether a guest with this email (any case) is registered."""
        snapshot = self.store.load_snapshot()
        if find_guest_index(snapshot.guests, email) is not None:
            return True
        return snapshot.has_preserved_email(email)

    def list_guests(self) -> List[Guest]:
        return self.store.load()

    def add(self, raw_fields: Mapping[str, Any]) -> Outcome:
        """
        Register a new guest.

        Args:
            raw_fields: Untrusted form fields

        Returns:
            Outcome
            - success with "Guest added successfully"
            - validation failure for the first invalid field
            - DUPLICATE_EMAIL if the email is already registered
            - IO_ERROR if the guest file could not be locked or written

        Behavior:
            - The duplicate check and the write happen under one exclusive lock
            - Assigns a fresh id and submittedAt
        """
        fields, error = validate_guest_fields(raw_fields, self.config)
        if error is not None:
            return Outcome.from_field_error(error)

        try:
            with self.store.transaction() as tx:
                guests = tx.load()
                taken = find_guest_index(guests, fields.email) is not None
                if taken or tx.has_preserved_email(fields.email):
                    return Outcome.fail(ErrorKind.DUPLICATE_EMAIL, MSG_DUPLICATE, "email")

                guest = Guest.create(fields, self._new_id(), self._now())
                guests.append(guest)
                tx.save(guests)
        except StorageError as e:
            logger.error(f"File operation failed while adding guest: {e}")
            return Outcome.fail(ErrorKind.IO_ERROR, MSG_SAVE_FAILED)

        logger.info("Added guest %s", guest.id)
        return Outcome.ok(MSG_ADDED)

    def update(self, email: str, raw_fields: Mapping[str, Any]) -> Outcome:
        """
        Replace the registration stored under email.

        Args:
            email: Address of the existing registration
            raw_fields: Untrusted form fields for the new version

        Returns:
            Outcome
            - success with "Guest updated successfully"
            - validation failure for the first invalid field
            - NOT_FOUND if no guest has this email (nothing is created)
            - DUPLICATE_EMAIL if the new email belongs to another guest
            - IO_ERROR if the guest file could not be locked or written

        Behavior:
            - Keeps id, submittedAt and position in the collection
            - Sets updatedAt to the current time
        """
        fields, error = validate_guest_fields(raw_fields, self.config)
        if error is not None:
            return Outcome.from_field_error(error)

        try:
            with self.store.transaction() as tx:
                guests = tx.load()
                index = find_guest_index(guests, email)
                if index is None:
                    return Outcome.fail(ErrorKind.NOT_FOUND, MSG_NOT_FOUND, "email")

                other = find_guest_index(guests, fields.email)
                taken = other is not None and other != index
                if taken or tx.has_preserved_email(fields.email):
                    return Outcome.fail(ErrorKind.DUPLICATE_EMAIL, MSG_DUPLICATE, "email")

                guests[index] = guests[index].revise(fields, self._now())
                tx.save(guests)
        except StorageError as e:
            logger.error(f"File operation failed while updating guest: {e}")
            return Outcome.fail(ErrorKind.IO_ERROR, MSG_SAVE_FAILED)

        logger.info("Updated guest %s", guests[index].id)
        return Outcome.ok(MSG_UPDATED)

    def summary(self) -> Dict[str, int]:
        """
        Count responses for the RSVP page header.

        Returns:
            Dict with "total", one key per attendance option, and "headcount"
            (attendees answering yes plus the guests they bring)
        """
        guests = self.store.load()
        counts = {"total": len(guests), "headcount": 0}
        for option in ATTENDANCE_OPTIONS:
            counts[option] = 0
        for guest in guests:
            counts[guest.attendance] += 1
            if guest.attendance == "yes":
                counts["headcount"] += 1 + guest.guests_count
        return counts
