import math
import re
from datetime import timedelta

from marshmallow import ValidationError, fields

_DURATION_RE = re.compile(r"^(\d+)(ms|s|m|h|d|w|y)$")

# Milliseconds per unit; a year is 365.25 days
_UNIT_MS = {
    "ms": 1,
    "s": 1000,
    "m": 60 * 1000,
    "h": 60 * 60 * 1000,
    "d": 24 * 60 * 60 * 1000,
    "w": 7 * 24 * 60 * 60 * 1000,
    "y": int(365.25 * 24 * 60 * 60 * 1000),
}


def _to_timedelta(ms) -> timedelta:
    try:
        return timedelta(milliseconds=ms)
    except (OverflowError, ValueError):
        raise ValidationError("Invalid duration.")


def parse_duration(raw) -> timedelta:
    """
    Accepts a number of milliseconds or a string like "500ms", "30m", "2h", "7d".
    """
    if isinstance(raw, bool):
        raise ValidationError("Invalid duration.")
    if isinstance(raw, (int, float)):
        if isinstance(raw, float) and not math.isfinite(raw):
            raise ValidationError("Invalid duration.")
        if raw <= 0:
            raise ValidationError("Duration must be positive.")
        return _to_timedelta(raw)
    if isinstance(raw, str):
        match = _DURATION_RE.match(raw.strip())
        if not match:
            raise ValidationError("Invalid ms duration format")
        amount, unit = match.groups()
        if int(amount) == 0:
            raise ValidationError("Duration must be positive.")
        return _to_timedelta(int(amount) * _UNIT_MS[unit])
    raise ValidationError("Invalid duration.")


class Duration(fields.Field):
    """Deserializes a ban duration into a timedelta."""

    def _deserialize(self, value, attr, data, **kwargs):
        return parse_duration(value)


def validate_password_strength(value: str) -> None:
    errors = []
    if len(value) < 8:
        errors.append("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", value):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", value):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", value):
        errors.append("Password must contain at least one number")
    if not re.search(r"[^A-Za-z0-9]", value):
        errors.append("Password must contain at least one special character")
    if errors:
        raise ValidationError(errors)
