"""Validation utilities for the application."""
import re
from datetime import date
from typing import Any, Dict, List, Optional

from churchconnect.utils.errors import ValidationError

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
PHONE_PATTERN = r'^\+?[\d\s\-\(\)]+$'
HEX_COLOR_PATTERN = r'^#[0-9A-Fa-f]{6}$'
SUBDOMAIN_PATTERN = r'^[a-z0-9-]+$'

class Validator:
    """Validation helper class."""

    @staticmethod
    def validate_email(email: str) -> bool:
        """Validate email format."""
        if not email:
            return False
        return bool(re.match(EMAIL_PATTERN, email))

    @staticmethod
    def validate_phone(phone: str) -> bool:
        """Validate phone number format."""
        if not phone:
            return False
        return bool(re.match(PHONE_PATTERN, phone))

    @staticmethod
    def validate_hex_color(color: str) -> bool:
        return bool(color) and bool(re.match(HEX_COLOR_PATTERN, color))

    @staticmethod
    def validate_subdomain(subdomain: str) -> Dict[str, Any]:
        errors = []

        if not subdomain or len(subdomain) < 3:
            errors.append("Subdomain must be at least 3 characters")
        elif len(subdomain) > 50:
            errors.append("Subdomain is too long")
        elif not re.match(SUBDOMAIN_PATTERN, subdomain):
            errors.append("Subdomain can only contain lowercase letters, numbers, and hyphens")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_password(password: str) -> Dict[str, Any]:
        """Validate password strength."""
        errors = []

        if not password:
            errors.append("Password is required")
        elif len(password) < 8:
            errors.append("Password must be at least 8 characters")
        elif len(password) > 128:
            errors.append("Password is too long")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_name(name: str, label: str = "Name") -> Dict[str, Any]:
        """Validate a person or organisation name."""
        errors = []

        if not name or not str(name).strip():
            errors.append(f"{label} is required")
        elif len(str(name).strip()) > 100:
            errors.append(f"{label} is too long")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_choice(value: str, choices: List[str], label: str) -> Dict[str, Any]:
        errors = []
        if value not in choices:
            errors.append(f"{label} must be one of: {', '.join(choices)}")
        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_past_date(value: str, label: str) -> Dict[str, Any]:
        """Validate an ISO date that must not lie in the future."""
        errors = []
        try:
            parsed = date.fromisoformat(value)
            if parsed > date.today():
                errors.append(f"{label} must be in the past")
        except (TypeError, ValueError):
            errors.append(f"{label} must be a date in YYYY-MM-DD format")
        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_required_fields(data: Dict, required_fields: List[str]) -> Dict[str, Any]:
        """Validate required fields in data."""
        errors = []

        for field in required_fields:
            if field not in data or data[field] in (None, ''):
                errors.append(f"{field} is required")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

def ensure_valid(*results: Dict[str, Any]) -> None:
    """Raise ValidationError carrying every collected message."""
    errors = [message for result in results for message in result["errors"]]
    if errors:
        raise ValidationError(errors[0], payload={'details': errors})

def require_json(payload: Optional[Dict]) -> Dict:
    """Return the request body or fail when it is not a JSON object."""
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be JSON")
    return payload
