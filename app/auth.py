"""Caller identity forwarded by the authenticating gateway.

Token verification happens upstream; by the time a request reaches the
application the verified user id travels in a trusted header.
"""

from flask import current_app, g, request

from app.errors import AuthenticationError


def load_caller() -> None:
    """``before_request`` hook storing the caller id on ``g``."""
    header = current_app.config.get("USER_ID_HEADER", "X-User-Id")
    raw = request.headers.get(header, "").strip()
    g.caller_id = int(raw) if raw.isdecimal() else None


def current_user_id() -> int:
    caller_id = g.get("caller_id")
    if caller_id is None:
        raise AuthenticationError("A verified caller identity is required")
    return caller_id
