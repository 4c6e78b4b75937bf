"""Sprint endpoints."""

from flask import jsonify, request

from app.blueprints.api import bp, json_body, query_flag, require_purge_enabled
from app.services import sprints as service
from app.services import work_items as work_item_service


@bp.route("/sprints")
def list_sprints():
    sprints = service.list_sprints(
        project_id=request.args.get("project_id", type=int),
        status=request.args.get("status"),
        include_deleted=query_flag("include_deleted"),
    )
    return jsonify([sprint.to_dict() for sprint in sprints])


@bp.route("/sprints", methods=["POST"])
def create_sprint():
    return jsonify(service.create_sprint(json_body()).to_dict()), 201


@bp.route("/sprints/<int:sprint_id>")
def get_sprint(sprint_id: int):
    sprint = service.get_sprint(sprint_id)
    payload = sprint.to_dict()
    payload["work_items"] = [
        {"id": item.id, "key": item.key, "title": item.title, "status": item.status}
        for item in work_item_service.list_work_items(sprint_id=sprint.id)
    ]
    return jsonify(payload)


@bp.route("/sprints/<int:sprint_id>", methods=["PATCH", "PUT"])
def update_sprint(sprint_id: int):
    return jsonify(service.update_sprint(sprint_id, json_body()).to_dict())


@bp.route("/sprints/<int:sprint_id>/status", methods=["PATCH", "PUT"])
def update_sprint_status(sprint_id: int):
    sprint = service.update_sprint_status(sprint_id, json_body().get("status"))
    return jsonify(sprint.to_dict())


@bp.route("/sprints/<int:sprint_id>/metrics/refresh", methods=["POST"])
def refresh_sprint_metrics(sprint_id: int):
    return jsonify(service.refresh_sprint_metrics(sprint_id).to_dict())


@bp.route("/sprints/<int:sprint_id>", methods=["DELETE"])
def delete_sprint(sprint_id: int):
    service.delete_sprint(sprint_id)
    return jsonify({"message": "Sprint deleted successfully", "id": sprint_id})


@bp.route("/sprints/<int:sprint_id>/restore", methods=["POST"])
def restore_sprint(sprint_id: int):
    return jsonify(service.restore_sprint(sprint_id).to_dict())


@bp.route("/sprints/<int:sprint_id>/purge", methods=["DELETE"])
def purge_sprint(sprint_id: int):
    require_purge_enabled()
    service.purge_sprint(sprint_id)
    return jsonify({"message": f"Sprint {sprint_id} permanently deleted"})
