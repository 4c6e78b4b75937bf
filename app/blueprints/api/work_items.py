"""Work item endpoints, generic and per type."""

from flask import jsonify, request

from app.auth import current_user_id
from app.blueprints.api import bp, json_body, query_flag, require_purge_enabled
from app.services import sprints as sprint_service
from app.services import work_items as service
from app.services.workflow import VARIANTS

COLLECTIONS = {
    "stories": "Story",
    "tasks": "Task",
    "defects": "Defect",
    "features": "Feature",
    "epics": "Epic",
}


def _list(item_type: str | None):
    items = service.list_work_items(
        project_id=request.args.get("project_id"),
        sprint_id=request.args.get("sprint_id"),
        item_type=item_type,
        status=request.args.get("status"),
        assignee_id=request.args.get("assignee_id"),
        include_deleted=query_flag("include_deleted"),
        limit=request.args.get("limit", type=int),
    )
    return jsonify([item.to_dict() for item in items])


@bp.route("/work-item-types")
def list_work_item_types():
    """Status and priority enums of every variant."""
    return jsonify(
        {
            name: {
                "key_prefix": variant.key_prefix,
                "statuses": list(variant.statuses),
                "initial_status": variant.initial_status,
                "priorities": list(variant.priorities),
                "default_priority": variant.default_priority,
                "severities": list(variant.severities),
                "transitions": {
                    status: list(variant.allowed_transitions(status))
                    for status in variant.statuses
                },
            }
            for name, variant in VARIANTS.items()
        }
    )


@bp.route("/work-items")
def list_work_items():
    """List work items; ``type`` narrows to one variant."""
    return _list(request.args.get("type"))


@bp.route("/work-items", methods=["POST"])
def create_work_item():
    payload = json_body()
    item = service.create_work_item(payload.get("type"), payload, current_user_id())
    return jsonify(item.to_dict()), 201


@bp.route("/<any(stories, tasks, defects, features, epics):collection>")
def list_collection(collection: str):
    return _list(COLLECTIONS[collection])


@bp.route("/<any(stories, tasks, defects, features, epics):collection>", methods=["POST"])
def create_in_collection(collection: str):
    item = service.create_work_item(COLLECTIONS[collection], json_body(), current_user_id())
    return jsonify(item.to_dict()), 201


@bp.route("/work-items/<int:item_id>")
def get_work_item(item_id: int):
    return jsonify(service.get_work_item(item_id).to_dict())


@bp.route("/work-items/by-key/<key>")
def get_work_item_by_key(key: str):
    return jsonify(service.get_work_item_by_key(key.upper()).to_dict())


@bp.route("/work-items/<int:item_id>", methods=["PATCH", "PUT"])
def update_work_item(item_id: int):
    return jsonify(service.update_work_item(item_id, json_body()).to_dict())


@bp.route("/work-items/<int:item_id>/status", methods=["PATCH", "PUT"])
def update_work_item_status(item_id: int):
    item = service.update_work_item_status(item_id, json_body().get("status"))
    return jsonify(item.to_dict())


@bp.route("/work-items/<int:item_id>/sprint", methods=["POST"])
def assign_work_item_to_sprint(item_id: int):
    payload = json_body()
    item = sprint_service.assign_to_sprint(
        item_id, payload.get("sprint_id"), payload.get("action", "add")
    )
    return jsonify(item.to_dict())


@bp.route("/work-items/<int:item_id>", methods=["DELETE"])
def delete_work_item(item_id: int):
    return jsonify(service.soft_delete_work_item(item_id))


@bp.route("/work-items/<int:item_id>/restore", methods=["POST"])
def restore_work_item(item_id: int):
    return jsonify(service.restore_work_item(item_id).to_dict())


@bp.route("/work-items/<int:item_id>/purge", methods=["DELETE"])
def purge_work_item(item_id: int):
    require_purge_enabled()
    service.purge_work_item(item_id)
    return jsonify({"message": f"Work item {item_id} permanently deleted"})
