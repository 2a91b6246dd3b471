"""Helper functions for the application."""
import re
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any, Dict

from flask import jsonify

def utcnow() -> datetime:
    """Naive UTC timestamp, the format stored in every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def today() -> date:
    """Current calendar day in UTC, used as the attendance date."""
    return utcnow().date()

def camelize(name: str) -> str:
    """Convert snake_case to camelCase."""
    head, *rest = name.split('_')
    return head + ''.join(part.title() for part in rest)

def serialize_value(value: Any) -> Any:
    """Make dates, times and enums JSON friendly."""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value

def parse_date(value: str, field: str = 'date') -> date:
    """Parse a YYYY-MM-DD string."""
    from churchconnect.utils.errors import ValidationError

    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"Invalid {field}. Use YYYY-MM-DD")

def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {'1', 'true', 'yes', 'on'}

def slugify(value: str, max_length: int = 50) -> str:
    """Build a subdomain candidate from a church name."""
    slug = re.sub(r'[^a-z0-9\s-]', '', value.lower())
    slug = re.sub(r'\s+', '-', slug)
    slug = re.sub(r'-+', '-', slug).strip('-')
    return slug[:max_length]

def success_response(data: Any = None, message: str = "Success"):
    """Return consistent success response."""
    response = {
        'error': False,
        'message': message
    }

    if data is not None:
        response['data'] = data

    return jsonify(response)

def error_response(message: str, status_code: int = 400, **extra: Dict[str, Any]):
    """Return consistent error response."""
    body = {
        'error': True,
        'message': message,
        'status_code': status_code
    }
    body.update(extra)
    return jsonify(body), status_code

def parse_id(value: Any, field: str = 'id'):
    """Optional integer id from a request value."""
    from churchconnect.utils.errors import ValidationError

    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}")

def parse_id_list(values: Any, field: str = 'ids'):
    from churchconnect.utils.errors import ValidationError

    if not isinstance(values, list):
        raise ValidationError(f"{field} must be a list")
    return [parse_id(value, field) for value in values]
