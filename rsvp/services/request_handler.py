"""Dispatch of RSVP form actions to the registration service."""
import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from rsvp.services.registration_service import RegistrationService
from rsvp.utils.validation import is_valid_email

logger = logging.getLogger(__name__)

STATUS_OK = 200
STATUS_BAD_REQUEST = 400

Response = Tuple[int, Dict[str, Any]]


def _failure(message: str) -> Response:
    return STATUS_BAD_REQUEST, {"success": False, "message": message}


class RequestHandler:
    """
    Maps the action protocol onto RegistrationService.

    Actions:
        check_guest(email)         -> {"exists": bool}
        add_guest(fields)          -> {"success": True, "message": str}
        update_guest(email, fields) -> {"success": True, "message": str}
        get_guests()               -> {"guests": [...]}

    Every failure is (400, {"success": False, "message": str}).
    """

    def __init__(self, service: RegistrationService):
        self.service = service
        self._actions = {
            "check_guest": self.check_guest,
            "add_guest": self.add_guest,
            "update_guest": self.update_guest,
            "get_guests": self.get_guests,
        }

    @property
    def actions(self):
        return tuple(self._actions)

    def handle(self, action: Optional[str], fields: Mapping[str, Any]) -> Response:
        """
        Run one action.

        Args:
            action: Action name from the request body
            fields: Remaining request fields

        Returns:
            Tuple of (status_code, payload)
        """
        handler = self._actions.get(action) if isinstance(action, str) else None
        if handler is None:
            return _failure("Invalid action")

        try:
            return handler(fields)
        except Exception:
            logger.exception("Unhandled error during action %s", action)
            return _failure("An unexpected error occurred")

    def check_guest(self, fields: Mapping[str, Any]) -> Response:
        email = fields.get("email")
        if not isinstance(email, str) or not email.strip():
            return _failure("Email is required")
        if not is_valid_email(email):
            return _failure("Invalid email format")
        return STATUS_OK, {"exists": self.service.exists(email)}

    def add_guest(self, fields: Mapping[str, Any]) -> Response:
        outcome = self.service.add(fields)
        if not outcome.success:
            return _failure(outcome.message)
        return STATUS_OK, {"success": True, "message": outcome.message}

    def update_guest(self, fields: Mapping[str, Any]) -> Response:
        email = fields.get("email")
        if not isinstance(email, str) or not email.strip():
            return _failure("Email is required for update")

        outcome = self.service.update(email, fields)
        if not outcome.success:
            return _failure(outcome.message)
        return STATUS_OK, {"success": True, "message": outcome.message}

    def get_guests(self, fields: Mapping[str, Any]) -> Response:
        guests = self.service.list_guests()
        return STATUS_OK, {"guests": [guest.to_dict() for guest in guests]}
