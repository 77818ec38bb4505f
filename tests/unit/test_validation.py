"""Unit tests for RSVP form validation."""
import json
from dataclasses import asdict

import pytest

from rsvp.config import AppConfig
from rsvp.models.outcome import ErrorKind
from rsvp.utils.validation import (
    is_valid_email,
    normalize_phone,
    parse_guest_count,
    parse_opt_in,
    sanitize_input,
    validate_guest_fields,
)


@pytest.fixture
def config():
    return AppConfig()


@pytest.fixture
def valid_fields():
    """A complete, valid RSVP submission."""
    return {
        "fullName": "Ann Lee",
        "email": "Ann.Lee@Acme.com",
        "phone": "+1 (555) 123-4567",
        "company": "Acme",
        "jobTitle": "Eng",
        "companyAddress": "1 Main St",
        "attendance": "yes",
        "guestsCount": "2",
        "comments": "Looking forward to it",
        "updatesRequested": "on",
    }


class TestSanitizeInput:
    """Test sanitize_input function."""

    def test_trims_whitespace(self):
        assert sanitize_input("  Acme  ", 500) == "Acme"

    def test_escapes_markup(self):
        """Markup characters including quotes are escaped."""
        result = sanitize_input("<script>alert('x')</script>", 500)
        assert "<" not in result
        assert "&lt;script&gt;" in result
        assert "'" not in result

    def test_truncates_to_max_length(self):
        assert sanitize_input("a" * 600, 500) == "a" * 500

    def test_non_string_becomes_empty(self):
        assert sanitize_input(None, 500) == ""
        assert sanitize_input(42, 500) == ""

    def test_preserves_unicode(self):
        assert sanitize_input("Café Zürich", 500) == "Café Zürich"


class TestIsValidEmail:
    """Test is_valid_email function."""

    @pytest.mark.parametrize("email", ["a@x.com", "Ann.Lee@Acme.com", " ann@acme.org "])
    def test_valid_addresses(self, email):
        assert is_valid_email(email) is True

    @pytest.mark.parametrize("email", ["a@b.local", "jo@mail.invalid", "guest@example.test"])
    def test_special_use_domains_are_valid(self, email):
        assert is_valid_email(email) is True

    @pytest.mark.parametrize("email", ["", "   ", "not-an-email", "a@", "@x.com", "a b@x.com", "a@localhost", None])
    def test_invalid_addresses(self, email):
        assert is_valid_email(email) is False


class TestNormalizePhone:
    """Test normalize_phone function."""

    def test_keeps_allowed_characters(self):
        assert normalize_phone("+1 (555) 123-4567") == "+1 (555) 123-4567"

    def test_strips_disallowed_characters(self):
        assert normalize_phone("555.123.4567 ext") == "5551234567"

    def test_too_short_is_rejected(self):
        assert normalize_phone("12345") is None

    def test_too_long_is_rejected(self):
        assert normalize_phone("1" * 21) is None

    def test_boundaries(self):
        assert normalize_phone("1" * 10) == "1" * 10
        assert normalize_phone("1" * 20) == "1" * 20


class TestParseGuestCount:
    """Test parse_guest_count function."""

    @pytest.mark.parametrize("raw, expected", [
        ("0", 0),
        ("3", 3),
        (" 10 ", 10),
        (4, 4),
    ])
    def test_valid_counts(self, raw, expected):
        assert parse_guest_count(raw, 10) == expected

    @pytest.mark.parametrize("raw", ["15", "-3", "abc", "2.5", "", None, True, 11])
    def test_invalid_counts_default_to_zero(self, raw):
        assert parse_guest_count(raw, 10) == 0


class TestParseOptIn:
    """Test parse_opt_in function."""

    @pytest.mark.parametrize("raw", ["1", "on", "true", "yes", "false", "no", "off", " 0 x", True])
    def test_truthy_values(self, raw):
        assert parse_opt_in(raw) is True

    @pytest.mark.parametrize("raw", [None, "", "  ", "0", " 0 ", False, 0])
    def test_falsy_values(self, raw):
        assert parse_opt_in(raw) is False


class TestValidateGuestFields:
    """Test validate_guest_fields function."""

    def test_valid_submission(self, valid_fields, config):
        fields, error = validate_guest_fields(valid_fields, config)

        assert error is None
        assert fields.full_name == "Ann Lee"
        assert fields.email == "Ann.Lee@Acme.com"
        assert fields.phone == "+1 (555) 123-4567"
        assert fields.attendance == "yes"
        assert fields.guests_count == 2
        assert fields.updates_requested is True

    def test_minimal_submission_uses_defaults(self, config):
        """Scenario from the RSVP page: only required fields."""
        fields, error = validate_guest_fields({
            "fullName": "Ann Lee",
            "email": "a@x.com",
            "company": "Acme",
            "jobTitle": "Eng",
            "companyAddress": "1 Main St",
            "attendance": "yes",
        }, config)

        assert error is None
        assert fields.phone == ""
        assert fields.guests_count == 0
        assert fields.comments == ""
        assert fields.updates_requested is False

    @pytest.mark.parametrize("field", ["fullName", "company", "jobTitle", "companyAddress"])
    def test_missing_required_field(self, valid_fields, config, field):
        del valid_fields[field]

        fields, error = validate_guest_fields(valid_fields, config)

        assert fields is None
        assert error.kind == ErrorKind.MISSING_FIELD
        assert error.field == field
        assert "is required" in error.message

    def test_whitespace_only_required_field_is_missing(self, valid_fields, config):
        valid_fields["company"] = "   "

        _, error = validate_guest_fields(valid_fields, config)

        assert error.kind == ErrorKind.MISSING_FIELD
        assert error.field == "company"

    def test_invalid_email(self, valid_fields, config):
        valid_fields["email"] = "not-an-email"

        _, error = validate_guest_fields(valid_fields, config)

        assert error.kind == ErrorKind.INVALID_EMAIL
        assert error.field == "email"

    def test_email_is_trimmed_but_keeps_case(self, valid_fields, config):
        valid_fields["email"] = "  Ann.Lee@Acme.com "

        fields, _ = validate_guest_fields(valid_fields, config)

        assert fields.email == "Ann.Lee@Acme.com"

    @pytest.mark.parametrize("attendance", ["", "YES", "perhaps", None])
    def test_invalid_attendance(self, valid_fields, config, attendance):
        valid_fields["attendance"] = attendance

        _, error = validate_guest_fields(valid_fields, config)

        assert error.kind == ErrorKind.INVALID_ATTENDANCE

    def test_invalid_phone(self, valid_fields, config):
        valid_fields["phone"] = "12-34"

        _, error = validate_guest_fields(valid_fields, config)

        assert error.kind == ErrorKind.INVALID_PHONE
        assert error.field == "phone"

    def test_numeric_phone_is_kept(self, valid_fields, config):
        valid_fields["phone"] = 5551234567

        fields, error = validate_guest_fields(valid_fields, config)

        assert error is None
        assert fields.phone == "5551234567"

    @pytest.mark.parametrize("raw", [["555"], {"n": 1}, 555.5, True])
    def test_non_text_phone_is_invalid(self, valid_fields, config, raw):
        valid_fields["phone"] = raw

        fields, error = validate_guest_fields(valid_fields, config)

        assert fields is None
        assert error.kind == ErrorKind.INVALID_PHONE

    def test_blank_phone_is_allowed(self, valid_fields, config):
        valid_fields["phone"] = "   "

        fields, error = validate_guest_fields(valid_fields, config)

        assert error is None
        assert fields.phone == ""

    @pytest.mark.parametrize("raw", ["15", "-3", "abc"])
    def test_bad_guest_count_does_not_fail(self, valid_fields, config, raw):
        valid_fields["guestsCount"] = raw

        fields, error = validate_guest_fields(valid_fields, config)

        assert error is None
        assert fields.guests_count == 0

    def test_legacy_form_aliases(self, valid_fields, config):
        """The HTML form posts 'guests' and 'updates'."""
        del valid_fields["guestsCount"]
        del valid_fields["updatesRequested"]
        valid_fields["guests"] = "3"
        valid_fields["updates"] = "1"

        fields, _ = validate_guest_fields(valid_fields, config)

        assert fields.guests_count == 3
        assert fields.updates_requested is True

    def test_comment_uses_longer_limit(self, valid_fields, config):
        valid_fields["comments"] = "c" * 1500
        valid_fields["fullName"] = "n" * 1500

        fields, _ = validate_guest_fields(valid_fields, config)

        assert len(fields.comments) == 1000
        assert len(fields.full_name) == 500

    def test_limits_come_from_config(self, valid_fields):
        config = AppConfig(max_input_length=5, max_guests_count=1)

        fields, _ = validate_guest_fields(valid_fields, config)

        assert fields.full_name == "Ann L"
        assert fields.guests_count == 0

    def test_first_failure_wins(self, config):
        """fullName is checked before email and attendance."""
        _, error = validate_guest_fields({"email": "bad", "attendance": "nope"}, config)

        assert error.field == "fullName"

    def test_result_survives_json(self, valid_fields, config):
        fields, _ = validate_guest_fields(valid_fields, config)

        assert json.loads(json.dumps(asdict(fields), ensure_ascii=False)) == asdict(fields)
