"""Tests for verified status writes on teams."""

import pytest
from sqlalchemy.exc import OperationalError

from app.errors import ConsistencyError, ValidationError
from app.extensions import db
from app.models import Team
from app.services import reconcile, teams
from app.services.reconcile import (
    StatusReconciler,
    write_core_update,
    write_orm,
    write_raw_sql,
)


def write_nothing(session, model, entity_id, values):
    """A write the store silently drops."""


def write_lowercase(session, model, entity_id, values):
    lossy = {**values, "status": values["status"].lower()}
    write_core_update(session, model, entity_id, lossy)


def write_failing(session, model, entity_id, values):
    raise OperationalError("UPDATE teams", {}, Exception("database is locked"))


@pytest.fixture
def team(db):
    return teams.create_team({"name": "Platform", "status": "INACTIVE"})


def test_lowercase_status_is_normalized(team):
    updated = teams.update_team_status(team.id, "active")

    assert updated.status == "ACTIVE"
    assert StatusReconciler(Team).read(team.id) == "ACTIVE"


def test_invalid_status_is_rejected_before_writing(team):
    with pytest.raises(ValidationError) as exc:
        teams.update_team_status(team.id, "retired")

    assert exc.value.allowed == ["ACTIVE", "INACTIVE", "ON_HOLD"]
    assert StatusReconciler(Team).read(team.id) == "INACTIVE"


def test_missing_status_is_rejected(team):
    with pytest.raises(ValidationError):
        teams.update_team_status(team.id, None)


def test_same_status_skips_the_write(team, monkeypatch):
    monkeypatch.setattr(
        StatusReconciler, "reconcile", lambda *args, **kwargs: pytest.fail("wrote")
    )

    assert teams.update_team_status(team.id, "inactive").status == "INACTIVE"


def test_first_strategy_that_verifies_wins(team):
    reconciler = StatusReconciler(Team, strategies=(("orm", write_orm),))

    result = reconciler.reconcile(team.id, "on_hold")

    assert result.requested == "ON_HOLD"
    assert result.observed == "ON_HOLD"
    assert result.strategy == "orm"
    assert len(result.attempts) == 1


def test_escalates_past_unverified_writes(team):
    reconciler = StatusReconciler(
        Team,
        strategies=(
            ("dropped", write_nothing),
            ("lowercase", write_lowercase),
            ("failing", write_failing),
            ("core_update", write_core_update),
        ),
    )

    result = reconciler.reconcile(team.id, "ACTIVE")

    assert result.strategy == "core_update"
    assert [attempt.strategy for attempt in result.attempts] == [
        "dropped",
        "lowercase",
        "failing",
        "core_update",
    ]
    assert result.attempts[1].after == "active"
    assert "database is locked" in result.attempts[2].error
    assert db.session.get(Team, team.id).status == "ACTIVE"


def test_all_strategies_failing_raises_consistency_error(team):
    reconciler = StatusReconciler(
        Team, strategies=(("dropped", write_nothing), ("failing", write_failing))
    )

    with pytest.raises(ConsistencyError) as exc:
        reconciler.reconcile(team.id, "ACTIVE")

    assert exc.value.requested == "ACTIVE"
    assert exc.value.observed == "INACTIVE"
    assert exc.value.to_dict()["observed"] == "INACTIVE"


def test_update_team_reconciles_status(team):
    updated = teams.update_team(team.id, {"status": "on_hold", "capacity": 30})

    assert updated.status == "ON_HOLD"
    assert updated.capacity == 30


def test_raw_sql_rejects_unknown_columns(team):
    with pytest.raises(ValueError):
        write_raw_sql(db.session, Team, team.id, {"status; DROP TABLE teams": "x"})


def test_raw_sql_strategy_alone(team):
    reconciler = StatusReconciler(Team, strategies=(("raw_sql", write_raw_sql),))

    assert reconciler.reconcile(team.id, "ON_HOLD").observed == "ON_HOLD"


@pytest.mark.parametrize("strategy", [write_nothing, write_lowercase, write_failing])
def test_failed_status_update_keeps_other_fields(team, monkeypatch, strategy):
    monkeypatch.setattr(reconcile, "DEFAULT_STRATEGIES", (("only", strategy),))

    with pytest.raises(ConsistencyError):
        teams.update_team(team.id, {"name": "Renamed", "capacity": 40, "status": "active"})

    db.session.expire_all()
    stored = db.session.get(Team, team.id)
    assert stored.name == "Platform"
    assert stored.capacity == 0


def test_status_update_writes_other_fields_with_it(team):
    updated = teams.update_team(team.id, {"name": "Renamed", "status": "active"})

    assert updated.name == "Renamed"
    assert updated.status == "ACTIVE"
