"""Main blueprint - service summary and health check."""

from flask import Blueprint, jsonify

bp = Blueprint("main", __name__)


@bp.route("/")
def index():
    """Counts of live entities."""
    from app.models import Project, Sprint, Team, User, WorkItem

    stats = {
        "projects": Project.query.filter(Project.live()).count(),
        "sprints": Sprint.query.filter(Sprint.live()).count(),
        "teams": Team.query.filter(Team.live()).count(),
        "users": User.query.count(),
        "work_items": WorkItem.query.filter(WorkItem.live()).count(),
        "deleted_work_items": WorkItem.query.filter(WorkItem.deleted).count(),
    }
    return jsonify({"service": "worktrack", "stats": stats})


@bp.route("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok"}
