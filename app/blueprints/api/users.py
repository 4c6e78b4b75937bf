"""User endpoints."""

from flask import jsonify

from app.blueprints.api import bp, json_body
from app.services import users as service


@bp.route("/users")
def list_users():
    return jsonify([user.to_dict() for user in service.list_users()])


@bp.route("/users", methods=["POST"])
def create_user():
    return jsonify(service.create_user(json_body()).to_dict()), 201


@bp.route("/users/<int:user_id>")
def get_user(user_id: int):
    return jsonify(service.get_user(user_id).to_dict())
