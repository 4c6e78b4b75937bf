"""Tests for the JSON API."""

import pytest


@pytest.fixture
def story(client, project, auth_headers):
    response = client.post(
        "/api/stories",
        json={"title": "Login page", "project_id": project.id},
        headers=auth_headers,
    )
    assert response.status_code == 201
    return response.get_json()


class TestMain:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.get_json() == {"status": "ok"}

    def test_index_counts(self, client, story):
        stats = client.get("/").get_json()["stats"]

        assert stats["projects"] == 1
        assert stats["work_items"] == 1
        assert stats["deleted_work_items"] == 0


class TestWorkItems:
    def test_create_returns_key(self, story, project, user):
        assert story["key"] == "ACME-1"
        assert story["status"] == "Backlog"
        assert story["reporter_id"] == user.id
        assert story["project_key"] == "ACME"

    def test_create_without_caller_is_unauthorized(self, client, project):
        response = client.post("/api/tasks", json={"title": "x", "project_id": project.id})

        assert response.status_code == 401

    def test_generic_create_with_type(self, client, project, auth_headers):
        response = client.post(
            "/api/work-items",
            json={"type": "bug", "title": "Crash", "project_id": project.id},
            headers=auth_headers,
        )

        assert response.status_code == 201
        assert response.get_json()["key"] == "ACME-BUG-1"

    def test_generic_create_with_unknown_type(self, client, project, auth_headers):
        response = client.post(
            "/api/work-items",
            json={"type": "spike", "title": "x", "project_id": project.id},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert "Story" in response.get_json()["allowed"]

    def test_missing_fields(self, client, auth_headers):
        response = client.post("/api/features", json={}, headers=auth_headers)

        assert response.status_code == 400
        assert response.get_json()["fields"] == ["title", "project_id"]

    def test_invalid_status_returns_allowed_values(self, client, story):
        response = client.patch(f"/api/work-items/{story['id']}/status", json={"status": "Open"})

        body = response.get_json()
        assert response.status_code == 400
        assert body["field"] == "status"
        assert "In Review" in body["allowed"]

    def test_status_change(self, client, story):
        response = client.patch(
            f"/api/work-items/{story['id']}/status", json={"status": "In Progress"}
        )

        assert response.status_code == 200
        assert response.get_json()["status"] == "In Progress"

    def test_unknown_item_is_not_found(self, client, db):
        response = client.get("/api/work-items/999")

        assert response.status_code == 404
        assert response.get_json()["resource"] == "Work item"

    def test_get_by_key(self, client, story):
        response = client.get("/api/work-items/by-key/acme-1")

        assert response.get_json()["id"] == story["id"]

    def test_delete_restore_cycle(self, client, story):
        item_url = f"/api/work-items/{story['id']}"

        assert client.delete(item_url).status_code == 200
        assert client.get("/api/stories").get_json() == []
        assert client.get(item_url).get_json()["is_deleted"] is True
        assert len(client.get("/api/stories?include_deleted=true").get_json()) == 1

        assert client.post(f"{item_url}/restore").get_json()["is_deleted"] is False
        assert len(client.get("/api/stories").get_json()) == 1

    def test_purge_disabled(self, app, client, story, monkeypatch):
        monkeypatch.setitem(app.config, "ALLOW_PURGE", False)

        response = client.delete(f"/api/work-items/{story['id']}/purge")

        assert response.status_code == 404
        assert client.get(f"/api/work-items/{story['id']}").status_code == 200

    def test_purge(self, client, story):
        assert client.delete(f"/api/work-items/{story['id']}/purge").status_code == 200
        assert client.get(f"/api/work-items/{story['id']}").status_code == 404

    def test_work_item_types(self, client, db):
        types = client.get("/api/work-item-types").get_json()

        assert types["Defect"]["key_prefix"] == "BUG"
        assert types["Feature"]["initial_status"] == "PLANNED"


class TestSprints:
    def test_assign_via_api(self, client, project, story):
        sprint = client.post(
            "/api/sprints",
            json={
                "name": "Sprint 1",
                "project_id": project.id,
                "start_date": "2026-03-02T09:00:00Z",
                "end_date": "2026-03-16T17:00:00Z",
            },
        ).get_json()

        response = client.post(
            f"/api/work-items/{story['id']}/sprint", json={"sprint_id": sprint["id"]}
        )

        assert response.get_json()["sprint_id"] == sprint["id"]
        detail = client.get(f"/api/sprints/{sprint['id']}").get_json()
        assert [item["key"] for item in detail["work_items"]] == ["ACME-1"]

    def test_bad_dates(self, client, project):
        response = client.post(
            "/api/sprints",
            json={
                "name": "Sprint 1",
                "project_id": project.id,
                "start_date": "2026-03-16",
                "end_date": "2026-03-02",
            },
        )

        assert response.status_code == 400


class TestTeams:
    def test_status_is_normalized(self, client, db):
        team = client.post("/api/teams", json={"name": "Core", "status": "INACTIVE"}).get_json()

        response = client.patch(f"/api/teams/{team['id']}/status", json={"status": "active"})

        assert response.status_code == 200
        assert response.get_json()["status"] == "ACTIVE"

    def test_duplicate_member_conflicts(self, client, user):
        team = client.post("/api/teams", json={"name": "Core"}).get_json()
        url = f"/api/teams/{team['id']}/members"

        assert client.post(url, json={"user_id": user.id}).status_code == 201
        assert client.post(url, json={"user_id": user.id}).status_code == 409
        assert len(client.get(url).get_json()) == 1

    def test_remove_absent_member(self, client, user):
        team = client.post("/api/teams", json={"name": "Core"}).get_json()

        response = client.delete(f"/api/teams/{team['id']}/members/{user.id}")

        assert response.status_code == 404


class TestProjects:
    def test_create_uses_caller_as_owner(self, client, user, auth_headers):
        response = client.post(
            "/api/projects", json={"key": "beta", "name": "Beta"}, headers=auth_headers
        )

        assert response.status_code == 201
        assert response.get_json()["owner_id"] == user.id
        assert response.get_json()["key"] == "BETA"

    def test_duplicate_key(self, client, project):
        response = client.post("/api/projects", json={"key": "ACME", "name": "Again"})

        assert response.status_code == 409

    def test_non_object_body(self, client, db):
        response = client.post("/api/projects", json=["ACME"])

        assert response.status_code == 400


class TestRequestValidation:
    def test_non_string_title(self, client, project, auth_headers):
        response = client.post(
            "/api/stories", json={"title": 123, "project_id": project.id}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.get_json()["field"] == "title"

    @pytest.mark.parametrize("header", ["²", "abc", "-1", "1.5"])
    def test_malformed_caller_header_is_unauthorized(self, client, project, header):
        response = client.post(
            "/api/tasks",
            json={"title": "x", "project_id": project.id},
            headers={"X-User-Id": header},
        )

        assert response.status_code == 401

    def test_malformed_caller_header_does_not_break_reads(self, client, db):
        assert client.get("/api/projects", headers={"X-User-Id": "²"}).status_code == 200

    def test_listing_is_not_capped_without_limit(self, client, project, auth_headers):
        for n in range(3):
            client.post(
                "/api/tasks",
                json={"title": f"Task {n}", "project_id": project.id},
                headers=auth_headers,
            )

        assert len(client.get("/api/tasks").get_json()) == 3
        assert len(client.get("/api/tasks?limit=2").get_json()) == 2
