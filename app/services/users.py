"""Users referenced as reporters, assignees, owners and team members."""

import logging

from app.errors import ConflictError
from app.extensions import db
from app.models import TeamMember, User
from app.services import rollback_on_error, soft_delete
from app.services.validation import (
    check_choice,
    parse_text,
    require_fields,
    require_payload,
)

logger = logging.getLogger(__name__)


@rollback_on_error
def create_user(payload: dict) -> User:
    payload = require_payload(payload)
    require_fields(payload, ("username", "email"))

    username = parse_text(payload, "username")
    email = parse_text(payload, "email").lower()
    if User.query.filter((User.username == username) | (User.email == email)).first():
        raise ConflictError(f"A user with username {username} or email {email} already exists")

    role = payload.get("role")
    if role:
        check_choice(role, TeamMember.ROLES, "role")

    user = User(username=username, email=email, name=payload.get("name"), role=role)
    db.session.add(user)
    db.session.commit()

    logger.info(f"Created user {user.username}")
    return user


def get_user(user_id: int) -> User:
    return soft_delete.get_entity(User, user_id)


def list_users() -> list[User]:
    return User.query.order_by(User.username).all()
