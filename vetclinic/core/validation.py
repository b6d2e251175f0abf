"""
Common validation utilities for the clinic API.

Input DTOs use these helpers to check and normalize their fields. Every
check records at most one message per field in a ``ValidationResult`` and
returns the cleaned value (or None when the value is unusable).
"""

import logging
import re
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional, Pattern

logger = logging.getLogger(__name__)

# Spanish DNI: eight digits plus a control letter (I, O, U excluded)
NATIONAL_ID_PATTERN = re.compile(r"^[0-9]{8}[A-HJ-NP-TV-Z]$")
PHONE_PATTERN = re.compile(r"^\+34 ?[6789](?: ?[0-9]){8}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ValidationResult:
    """Container for validation results."""

    def __init__(self):
        self.errors: Dict[str, str] = {}

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(self, field_name: str, message: str) -> None:
        """Add validation error. The first message per field wins."""
        if field_name in self.errors:
            return
        self.errors[field_name] = message
        logger.debug(f"Validation error: {field_name}: {message}")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


class BaseValidator:
    """Base validator with common validation methods."""

    @staticmethod
    def validate_required_field(
        value: Any, field_name: str, result: ValidationResult
    ) -> bool:
        """Validate that a required field is present and not empty."""
        if _is_blank(value):
            result.add_error(field_name, "This field is required")
            return False
        return True

    @staticmethod
    def validate_string(
        value: Any,
        field_name: str,
        result: ValidationResult,
        min_length: Optional[int] = None,
        max_length: Optional[int] = None,
        pattern: Optional[Pattern] = None,
        pattern_message: str = "Invalid format",
    ) -> Optional[str]:
        """Validate string field. Blank strings become None."""
        if value is None:
            return None

        if not isinstance(value, str):
            result.add_error(field_name, "Must be a string")
            return None

        value = value.strip()
        if not value:
            return None

        too_short = min_length is not None and len(value) < min_length
        too_long = max_length is not None and len(value) > max_length
        if too_short or too_long:
            if min_length is not None and max_length is not None:
                message = f"Must be between {min_length} and {max_length} characters"
            elif min_length is not None:
                message = f"Must be at least {min_length} characters"
            else:
                message = f"Must be at most {max_length} characters"
            result.add_error(field_name, message)
            return None

        if pattern is not None and not pattern.match(value):
            result.add_error(field_name, pattern_message)
            return None

        return value

    @staticmethod
    def validate_email(
        value: Any, field_name: str, result: ValidationResult
    ) -> Optional[str]:
        return BaseValidator.validate_string(
            value,
            field_name,
            result,
            max_length=100,
            pattern=EMAIL_PATTERN,
            pattern_message="Must be a valid email address",
        )

    @staticmethod
    def validate_date(
        value: Any,
        field_name: str,
        result: ValidationResult,
        allow_future: bool = True,
    ) -> Optional[date]:
        """Validate and convert date field (ISO ``YYYY-MM-DD``)."""
        if _is_blank(value):
            return None

        if isinstance(value, datetime):
            parsed = value.date()
        elif isinstance(value, date):
            parsed = value
        elif isinstance(value, str):
            try:
                parsed = date.fromisoformat(value.strip())
            except ValueError:
                result.add_error(field_name, "Invalid date. Use format YYYY-MM-DD")
                return None
        else:
            result.add_error(field_name, "Invalid date format")
            return None

        if not allow_future and parsed > date.today():
            result.add_error(field_name, "Date cannot be in the future")
            return None

        return parsed

    @staticmethod
    def validate_datetime(
        value: Any, field_name: str, result: ValidationResult
    ) -> Optional[datetime]:
        """Validate and convert an ISO 8601 datetime.

        Aware values are converted to naive UTC, which is how they are stored.
        """
        if _is_blank(value):
            return None

        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, str):
            text = value.strip()
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            try:
                parsed = datetime.fromisoformat(text)
            except ValueError:
                result.add_error(
                    field_name, "Invalid datetime. Use ISO 8601, e.g. 2024-05-01T10:30"
                )
                return None
        else:
            result.add_error(field_name, "Invalid datetime format")
            return None

        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed

    @staticmethod
    def validate_number(
        value: Any,
        field_name: str,
        result: ValidationResult,
        min_value: Optional[float] = None,
        strictly_greater: bool = False,
        max_value: Optional[float] = None,
    ) -> Optional[float]:
        """Validate and convert a numeric field."""
        if _is_blank(value):
            return None

        if isinstance(value, bool):
            result.add_error(field_name, "Must be a number")
            return None

        try:
            number = float(value)
        except (TypeError, ValueError):
            result.add_error(field_name, "Must be a number")
            return None

        if number != number or number in (float("inf"), float("-inf")):
            result.add_error(field_name, "Must be a finite number")
            return None

        if min_value is not None:
            if strictly_greater and number <= min_value:
                result.add_error(field_name, f"Must be greater than {min_value:g}")
                return None
            if not strictly_greater and number < min_value:
                result.add_error(
                    field_name, f"Must be greater than or equal to {min_value:g}"
                )
                return None

        if max_value is not None and number > max_value:
            result.add_error(field_name, f"Must be at most {max_value:.2f}")
            return None

        return number

    @staticmethod
    def validate_integer(
        value: Any,
        field_name: str,
        result: ValidationResult,
        min_value: Optional[int] = None,
    ) -> Optional[int]:
        """Validate and convert integer field (ids and the like)."""
        if _is_blank(value):
            return None

        if isinstance(value, bool) or (
            isinstance(value, float) and not value.is_integer()
        ):
            result.add_error(field_name, "Must be an integer")
            return None

        try:
            int_value = int(value)
        except (ValueError, TypeError):
            result.add_error(field_name, "Must be an integer")
            return None

        if min_value is not None and int_value < min_value:
            result.add_error(field_name, f"Must be at least {min_value}")
            return None

        return int_value
