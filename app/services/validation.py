"""Payload validation helpers shared by the services."""

from datetime import date, datetime, timezone
from typing import Any, Iterable

from app.errors import ValidationError


def require_payload(payload: Any) -> dict:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def require_fields(payload: dict, fields: Iterable[str]) -> None:
    """Reject the payload when any of ``fields`` is absent or blank."""
    missing = [
        name
        for name in fields
        if payload.get(name) is None
        or (isinstance(payload.get(name), str) and not payload[name].strip())
    ]
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}", fields=missing
        )


def parse_text(payload: dict, field: str) -> str:
    """A required text field, stripped. Call after :func:`require_fields`."""
    value = payload.get(field)
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field=field)
    return value.strip()


def check_choice(value: Any, allowed: Iterable[str], field: str) -> str:
    allowed = list(allowed)
    if value not in allowed:
        raise ValidationError(
            f'Invalid {field} value: "{value}". Must be one of: {", ".join(allowed)}',
            field=field,
            allowed=allowed,
        )
    return value


def parse_datetime(value: Any, field: str) -> datetime | None:
    """Parse an ISO-8601 string into a naive UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            raise ValidationError(
                f"Invalid date format for {field}: {value!r}", field=field
            ) from None
    else:
        raise ValidationError(f"Invalid date format for {field}: {value!r}", field=field)

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_number(value: Any, field: str, minimum: float | None = 0) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field} must be a number", field=field)
    if minimum is not None and value < minimum:
        raise ValidationError(f"{field} must be at least {minimum}", field=field)
    return value


def parse_id(value: Any, field: str) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer id", field=field)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer id", field=field) from None


def parse_labels(value: Any, field: str = "labels") -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError(f"{field} must be a list of strings", field=field)
    return [v.strip() for v in value if v.strip()]
