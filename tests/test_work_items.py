"""Tests for the work item lifecycle and status rules."""

import pytest

from app.errors import NotFoundError, ValidationError
from app.extensions import db
from app.models import WorkItem
from app.services import work_items
from app.services.workflow import VARIANTS, get_variant


def _create(item_type, project, user, **fields):
    payload = {"title": fields.pop("title", "Item"), "project_id": project.id, **fields}
    return work_items.create_work_item(item_type, payload, user.id)


class TestVariants:
    def test_lookup_is_case_insensitive(self):
        assert get_variant("story").name == "Story"
        assert get_variant("FEATURE").name == "Feature"

    def test_bug_is_an_alias_for_defect(self):
        assert get_variant("Bug").name == "Defect"

    def test_unknown_type_lists_the_variants(self):
        with pytest.raises(ValidationError) as exc:
            get_variant("Spike")
        assert exc.value.allowed == list(VARIANTS)


class TestCreate:
    @pytest.mark.parametrize(
        "item_type, status",
        [
            ("Story", "Backlog"),
            ("Task", "Planning"),
            ("Defect", "Open"),
            ("Feature", "PLANNED"),
            ("Epic", "To Do"),
        ],
    )
    def test_initial_status(self, project, user, item_type, status):
        assert _create(item_type, project, user).status == status

    def test_defect_defaults(self, project, user):
        defect = _create("Defect", project, user)

        assert defect.priority == "High"
        assert defect.severity == "Medium"

    def test_reporter_comes_from_caller(self, project, user):
        assert _create("Task", project, user).reporter_id == user.id

    def test_unknown_caller_is_rejected(self, project):
        with pytest.raises(NotFoundError):
            work_items.create_work_item("Story", {"title": "x", "project_id": project.id}, 999)

    def test_missing_title_is_rejected(self, project, user):
        with pytest.raises(ValidationError) as exc:
            work_items.create_work_item("Story", {"project_id": project.id}, user.id)
        assert exc.value.fields == ["title"]

    def test_priority_outside_variant_enum_is_rejected(self, project, user):
        with pytest.raises(ValidationError) as exc:
            _create("Feature", project, user, priority="Highest")
        assert exc.value.allowed == ["LOW", "MEDIUM", "HIGH", "CRITICAL"]
        assert WorkItem.query.count() == 0

    def test_severity_only_applies_to_defects(self, project, user):
        with pytest.raises(ValidationError):
            _create("Story", project, user, severity="High")

    def test_epic_link(self, project, user):
        epic = _create("Epic", project, user, title="Checkout")
        story = _create("Story", project, user, epic_id=epic.id)

        assert story.epic_id == epic.id

    def test_epic_link_must_target_an_epic(self, project, user):
        task = _create("Task", project, user)

        with pytest.raises(ValidationError):
            _create("Story", project, user, epic_id=task.id)


class TestStatus:
    def test_status_change_touches_only_status(self, project, user):
        story = _create("Story", project, user, description="Keep me", story_points=3)
        before = story.to_dict()

        updated = work_items.update_work_item_status(story.id, "In Progress")

        after = updated.to_dict()
        assert after["status"] == "In Progress"
        changed = {k for k in before if before[k] != after[k]}
        assert changed <= {"status", "updated_at"}

    def test_status_from_another_variant_is_rejected(self, project, user):
        task = _create("Task", project, user)

        with pytest.raises(ValidationError) as exc:
            work_items.update_work_item_status(task.id, "Done")

        assert exc.value.field == "status"
        assert exc.value.allowed == list(VARIANTS["Task"].statuses)
        assert db.session.get(WorkItem, task.id).status == "Planning"

    def test_missing_status_is_rejected(self, project, user):
        story = _create("Story", project, user)

        with pytest.raises(ValidationError):
            work_items.update_work_item_status(story.id, None)

    def test_transitions_not_checked_by_default(self, project, user):
        defect = _create("Defect", project, user)

        assert work_items.update_work_item_status(defect.id, "Reopened").status == "Reopened"

    def test_enforced_transition_is_rejected(self, project, user, enforce_transitions):
        defect = _create("Defect", project, user)

        with pytest.raises(ValidationError) as exc:
            work_items.update_work_item_status(defect.id, "Reopened")

        assert set(exc.value.allowed) == {"In Progress", "Resolved", "Closed"}
        assert db.session.get(WorkItem, defect.id).status == "Open"

    def test_enforced_reopen_after_close(self, project, user, enforce_transitions):
        defect = _create("Defect", project, user)
        work_items.update_work_item_status(defect.id, "Closed")

        assert work_items.update_work_item_status(defect.id, "Reopened").status == "Reopened"

    def test_deleted_item_cannot_change_status(self, project, user):
        story = _create("Story", project, user)
        work_items.soft_delete_work_item(story.id)

        with pytest.raises(NotFoundError):
            work_items.update_work_item_status(story.id, "To Do")


class TestUpdate:
    def test_type_is_immutable(self, project, user):
        story = _create("Story", project, user)

        updated = work_items.update_work_item(story.id, {"type": "Defect", "title": "Renamed"})

        assert updated.type == "Story"
        assert updated.key == "ACME-1"
        assert updated.title == "Renamed"

    def test_key_and_project_are_immutable(self, project, user):
        story = _create("Story", project, user)

        updated = work_items.update_work_item(story.id, {"key": "ACME-99", "project_id": 42})

        assert updated.key == "ACME-1"
        assert updated.project_id == project.id

    def test_rejected_update_leaves_no_partial_change(self, project, user):
        story = _create("Story", project, user, title="Original")

        with pytest.raises(ValidationError):
            work_items.update_work_item(story.id, {"title": "Changed", "status": "Closed"})

        assert db.session.get(WorkItem, story.id).title == "Original"

    def test_dependencies(self, project, user):
        first = _create("Task", project, user)
        second = _create("Task", project, user)

        updated = work_items.update_work_item(second.id, {"dependency_ids": [first.id]})

        assert updated.to_dict()["dependency_ids"] == [first.id]
        assert [item.id for item in first.dependents] == [second.id]

    def test_self_dependency_is_rejected(self, project, user):
        task = _create("Task", project, user)

        with pytest.raises(ValidationError):
            work_items.update_work_item(task.id, {"dependency_ids": [task.id]})

    def test_dependency_cycle_is_rejected(self, project, user):
        a = _create("Task", project, user)
        b = _create("Task", project, user)
        c = _create("Task", project, user)
        work_items.update_work_item(b.id, {"dependency_ids": [a.id]})
        work_items.update_work_item(c.id, {"dependency_ids": [b.id]})

        with pytest.raises(ValidationError):
            work_items.update_work_item(a.id, {"dependency_ids": [c.id]})

        assert db.session.get(WorkItem, a.id).dependencies == []


class TestListing:
    def test_filter_by_type(self, project, user):
        _create("Story", project, user)
        _create("Task", project, user)

        items = work_items.list_work_items(item_type="task")

        assert [item.key for item in items] == ["ACME-TASK-1"]

    def test_lookup_by_key(self, project, user):
        defect = _create("Defect", project, user)

        assert work_items.get_work_item_by_key("ACME-BUG-1").id == defect.id

    def test_unknown_key(self, db):
        with pytest.raises(NotFoundError):
            work_items.get_work_item_by_key("NOPE-1")


class TestFieldTypes:
    def test_non_string_title_is_rejected(self, project, user):
        with pytest.raises(ValidationError) as exc:
            _create("Story", project, user, title=123)

        assert exc.value.field == "title"
        assert WorkItem.query.count() == 0

    def test_non_string_title_on_update_is_rejected(self, project, user):
        story = _create("Story", project, user, title="Original")

        with pytest.raises(ValidationError):
            work_items.update_work_item(story.id, {"title": ["Renamed"]})

        assert db.session.get(WorkItem, story.id).title == "Original"
