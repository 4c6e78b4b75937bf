"""Project endpoints."""

from flask import g, jsonify, request

from app.blueprints.api import bp, json_body, query_flag, require_purge_enabled
from app.services import projects as service


@bp.route("/projects")
def list_projects():
    projects = service.list_projects(
        status=request.args.get("status"),
        include_deleted=query_flag("include_deleted"),
    )
    return jsonify([project.to_dict() for project in projects])


@bp.route("/projects", methods=["POST"])
def create_project():
    project = service.create_project(json_body(), caller_id=g.get("caller_id"))
    return jsonify(project.to_dict()), 201


@bp.route("/projects/<int:project_id>")
def get_project(project_id: int):
    return jsonify(service.get_project(project_id).to_dict())


@bp.route("/projects/<int:project_id>", methods=["PATCH", "PUT"])
def update_project(project_id: int):
    return jsonify(service.update_project(project_id, json_body()).to_dict())


@bp.route("/projects/<int:project_id>/status", methods=["PATCH", "PUT"])
def update_project_status(project_id: int):
    project = service.update_project_status(project_id, json_body().get("status"))
    return jsonify(project.to_dict())


@bp.route("/projects/<int:project_id>", methods=["DELETE"])
def delete_project(project_id: int):
    service.delete_project(project_id)
    return jsonify({"message": "Project deleted successfully", "id": project_id})


@bp.route("/projects/<int:project_id>/restore", methods=["POST"])
def restore_project(project_id: int):
    return jsonify(service.restore_project(project_id).to_dict())


@bp.route("/projects/<int:project_id>/purge", methods=["DELETE"])
def purge_project(project_id: int):
    require_purge_enabled()
    service.purge_project(project_id)
    return jsonify({"message": f"Project {project_id} permanently deleted"})
