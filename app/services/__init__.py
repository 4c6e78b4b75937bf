"""Domain services called by the HTTP layer.

Each function takes plain ids and payload dictionaries, commits its own
changes and raises :mod:`app.errors` exceptions on rejection.
"""

import functools

from app.extensions import db


def rollback_on_error(func):
    """Discard half-applied changes when a service call is rejected."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception:
            db.session.rollback()
            raise

    return wrapper
