import re
from typing import Optional, Tuple

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
RANGE_PATTERN = re.compile(r'^(\d+)-(\d+)$')

ORGANISATION_NAME_MAX_LENGTH = 64


def validate_email(email) -> bool:
    return isinstance(email, str) and bool(EMAIL_PATTERN.match(email))


def validate_password(password) -> bool:
    return isinstance(password, str) and len(password) >= 8


def validate_organisation_name(name) -> bool:
    """Names double as path segments, so no slashes and no surrounding spaces"""
    if not isinstance(name, str) or not name:
        return False
    if name != name.strip() or '/' in name:
        return False
    return len(name) <= ORGANISATION_NAME_MAX_LENGTH


def parse_range(value: Optional[str]) -> Optional[Tuple[int, int]]:
    """
    Parse a `from-to` listing range, e.g. "0-15".
    Returns None for "all" or an empty value, raises ValueError when malformed.
    """
    if not value or value == 'all':
        return None
    match = RANGE_PATTERN.match(value)
    if not match:
        raise ValueError(f"Invalid range: {value}")
    start, end = int(match.group(1)), int(match.group(2))
    if end < start:
        raise ValueError(f"Invalid range: {value}")
    return start, end
