"""Team and membership endpoints."""

from flask import jsonify

from app.blueprints.api import bp, json_body, query_flag, require_purge_enabled
from app.services import teams as service


@bp.route("/teams")
def list_teams():
    teams = service.list_teams(include_deleted=query_flag("include_deleted"))
    return jsonify([team.to_dict() for team in teams])


@bp.route("/teams", methods=["POST"])
def create_team():
    return jsonify(service.create_team(json_body()).to_dict()), 201


@bp.route("/teams/<int:team_id>")
def get_team(team_id: int):
    return jsonify(service.get_team(team_id).to_dict())


@bp.route("/teams/<int:team_id>", methods=["PATCH", "PUT"])
def update_team(team_id: int):
    return jsonify(service.update_team(team_id, json_body()).to_dict())


@bp.route("/teams/<int:team_id>/status", methods=["PATCH", "PUT"])
def update_team_status(team_id: int):
    team = service.update_team_status(team_id, json_body().get("status"))
    return jsonify(team.to_dict())


@bp.route("/teams/<int:team_id>", methods=["DELETE"])
def delete_team(team_id: int):
    service.delete_team(team_id)
    return jsonify({"message": "Team deleted successfully", "success": True})


@bp.route("/teams/<int:team_id>/restore", methods=["POST"])
def restore_team(team_id: int):
    return jsonify(service.restore_team(team_id).to_dict())


@bp.route("/teams/<int:team_id>/purge", methods=["DELETE"])
def purge_team(team_id: int):
    require_purge_enabled()
    service.purge_team(team_id)
    return jsonify({"message": f"Team {team_id} permanently deleted"})


@bp.route("/teams/<int:team_id>/members")
def list_team_members(team_id: int):
    return jsonify([member.to_dict() for member in service.list_team_members(team_id)])


@bp.route("/teams/<int:team_id>/members", methods=["POST"])
def add_team_member(team_id: int):
    payload = json_body()
    team = service.add_team_member(team_id, payload.get("user_id"), payload.get("role"))
    return jsonify(team.to_dict()), 201


@bp.route("/teams/<int:team_id>/members/<int:user_id>", methods=["DELETE"])
def remove_team_member(team_id: int, user_id: int):
    return jsonify(service.remove_team_member(team_id, user_id).to_dict())
