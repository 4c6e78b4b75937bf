"""API blueprint - JSON endpoints over the domain services."""

from flask import Blueprint, abort, current_app, request

from app.services.validation import require_payload

bp = Blueprint("api", __name__)


def json_body() -> dict:
    """The request's JSON object, or an empty dict when there is no body."""
    return require_payload(request.get_json(silent=True))


def query_flag(name: str) -> bool:
    return request.args.get(name, "").lower() in ("1", "true", "yes", "on")


def require_purge_enabled() -> None:
    if not current_app.config.get("ALLOW_PURGE", False):
        abort(404)


from app.blueprints.api import (  # noqa: E402,F401
    metrics,
    projects,
    sprints,
    teams,
    users,
    work_items,
)
