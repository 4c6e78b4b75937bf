"""Tests for projects and users."""

import pytest

from app.errors import ConflictError, NotFoundError, ValidationError
from app.services import projects, users


def test_project_key_is_uppercased(user):
    project = projects.create_project({"key": "acme", "name": "Acme"})

    assert project.key == "ACME"
    assert project.status == "Active"


def test_owner_defaults_to_caller(project, user):
    assert project.owner_id == user.id


def test_duplicate_key_conflicts(project):
    with pytest.raises(ConflictError):
        projects.create_project({"key": "ACME", "name": "Another"})


@pytest.mark.parametrize("key", ["A", "1ACME", "AC-ME", "ABCDEFGHIJK"])
def test_malformed_key_is_rejected(db, key):
    with pytest.raises(ValidationError) as exc:
        projects.create_project({"key": key, "name": "Bad"})

    assert exc.value.field == "key"


def test_key_cannot_change(project):
    with pytest.raises(ValidationError):
        projects.update_project(project.id, {"key": "BETA"})


def test_dates_must_be_ordered(db):
    with pytest.raises(ValidationError):
        projects.create_project(
            {
                "key": "ACME",
                "name": "Acme",
                "start_date": "2026-06-01",
                "target_end_date": "2026-01-01",
            }
        )


def test_invalid_status_is_rejected(project):
    with pytest.raises(ValidationError) as exc:
        projects.update_project_status(project.id, "Archived")

    assert "On Hold" in exc.value.allowed


def test_restore_project(project):
    projects.delete_project(project.id)

    restored = projects.restore_project(project.id)

    assert restored.deleted is False
    assert [p.key for p in projects.list_projects()] == ["ACME"]


def test_deleted_project_rejects_updates(project):
    projects.delete_project(project.id)

    with pytest.raises(NotFoundError):
        projects.update_project(project.id, {"name": "Renamed"})


def test_duplicate_username_conflicts(user):
    with pytest.raises(ConflictError):
        users.create_user({"username": "alice", "email": "other@example.com"})


def test_email_is_lowercased(db):
    assert users.create_user({"username": "carol", "email": "Carol@Example.com"}).email == (
        "carol@example.com"
    )


@pytest.mark.parametrize(
    "create, payload, field",
    [
        (projects.create_project, {"key": "ACME", "name": 7}, "name"),
        (users.create_user, {"username": 42, "email": "x@example.com"}, "username"),
        (users.create_user, {"username": "dave", "email": True}, "email"),
    ],
)
def test_non_string_text_fields_are_rejected(db, create, payload, field):
    with pytest.raises(ValidationError) as exc:
        create(payload)

    assert exc.value.field == field
