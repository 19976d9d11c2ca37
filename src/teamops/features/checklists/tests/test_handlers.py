"""Tests for checklist API handlers."""

from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from src.teamops.config import settings


@pytest.fixture
def no_seed():
    """Disable demo data for the duration of a test."""
    previous = settings.seed_demo_data
    settings.seed_demo_data = False
    yield
    settings.seed_demo_data = previous


def _create(client: TestClient, title: str = "Release readiness") -> dict:
    response = client.post("/api/checklists", json={"title": title})
    assert response.status_code == 201
    return response.json()


class TestListChecklists:
    """Tests for GET /api/checklists."""

    def test_first_list_seeds_demo_data(self, client: TestClient, fake_db) -> None:
        response = client.get("/api/checklists")

        assert response.status_code == 200
        checklists = response.json()
        assert len(checklists) == 1
        assert checklists[0]["title"] == "Buffalo Go-Live – Core UI Validation"
        assert len(checklists[0]["steps"]) == 5
        assert all(step["updated_by"] == "Alice Doe" for step in checklists[0]["steps"])
        assert len(fake_db.rows("incidents")) == 1
        assert len(fake_db.rows("incident_updates")) == 1

    def test_seed_runs_once(self, client: TestClient) -> None:
        client.get("/api/checklists")
        response = client.get("/api/checklists")

        assert len(response.json()) == 1

    def test_newest_first_and_steps_ordered(self, client: TestClient, fake_db, no_seed) -> None:
        base = datetime(2026, 1, 1, tzinfo=UTC)
        fake_db.seed(
            "checklists",
            {"id": "old", "user_sub": "auth0|alice", "title": "Old", "created_at": base},
            {"id": "new", "user_sub": "auth0|alice", "title": "New", "created_at": base + timedelta(days=1)},
            {"id": "theirs", "user_sub": "auth0|bob", "title": "Theirs", "created_at": base},
        )
        fake_db.seed(
            "checklist_steps",
            {"id": "b", "checklist_id": "new", "label": "second", "done": False,
             "updated_at": base + timedelta(hours=2), "updated_by": "Alice"},
            {"id": "a", "checklist_id": "new", "label": "first", "done": True,
             "updated_at": base + timedelta(hours=1), "updated_by": "Alice"},
        )

        checklists = client.get("/api/checklists").json()

        assert [c["id"] for c in checklists] == ["new", "old"]
        assert [s["label"] for s in checklists[0]["steps"]] == ["first", "second"]
        assert checklists[1]["steps"] == []


class TestChecklistMutations:
    """Tests for create/get/delete and step operations."""

    def test_create_and_get(self, client: TestClient, fake_db, no_seed) -> None:
        created = _create(client)

        response = client.get(f"/api/checklists/{created['id']}")

        assert response.status_code == 200
        assert response.json()["title"] == "Release readiness"
        assert fake_db.rows("audit_log")[-1]["action"] == "create"

    @pytest.mark.parametrize("title", ["ab", "x" * 121])
    def test_create_title_bounds(self, client: TestClient, title: str) -> None:
        assert client.post("/api/checklists", json={"title": title}).status_code == 422

    def test_create_accepts_image_id(self, client: TestClient, no_seed) -> None:
        response = client.post("/api/checklists", json={"title": "With image", "imageId": "img"})

        assert response.status_code == 201

    def test_get_other_users_checklist_is_404(self, client: TestClient, fake_db) -> None:
        fake_db.seed(
            "checklists",
            {"id": "theirs", "user_sub": "auth0|bob", "title": "Theirs",
             "created_at": datetime.now(UTC)},
        )

        assert client.get("/api/checklists/theirs").status_code == 404
        assert client.delete("/api/checklists/theirs").status_code == 404
        assert len(fake_db.rows("checklists")) == 1

    def test_add_toggle_and_delete_step(self, client: TestClient, fake_db, no_seed) -> None:
        checklist = _create(client)
        step = client.post(
            f"/api/checklists/{checklist['id']}/steps", json={"label": "Verify rollback"}
        ).json()
        assert step["done"] is False
        assert step["updated_by"] == "Alice Doe"

        toggled = client.post(f"/api/checklists/{checklist['id']}/steps/{step['id']}/toggle")
        assert toggled.status_code == 200
        assert toggled.json()["done"] is True

        toggled_back = client.post(f"/api/checklists/{checklist['id']}/steps/{step['id']}/toggle")
        assert toggled_back.json()["done"] is False

        deleted = client.delete(f"/api/checklists/{checklist['id']}/steps/{step['id']}")
        assert deleted.status_code == 200
        assert deleted.json() == {"ok": True}
        assert fake_db.rows("checklist_steps") == []

        actions = [entry["action"] for entry in fake_db.rows("audit_log")]
        assert actions == ["create", "add_step", "toggle_step", "toggle_step", "delete_step"]

    def test_step_label_bounds(self, client: TestClient, no_seed) -> None:
        checklist = _create(client)

        response = client.post(f"/api/checklists/{checklist['id']}/steps", json={"label": "no"})

        assert response.status_code == 422

    def test_toggle_unknown_step_is_404(self, client: TestClient, no_seed) -> None:
        checklist = _create(client)

        response = client.post(f"/api/checklists/{checklist['id']}/steps/missing/toggle")

        assert response.status_code == 404

    def test_delete_unknown_step_is_404(self, client: TestClient, no_seed) -> None:
        checklist = _create(client)

        assert client.delete(f"/api/checklists/{checklist['id']}/steps/missing").status_code == 404

    def test_delete_checklist_removes_steps(self, client: TestClient, fake_db, no_seed) -> None:
        checklist = _create(client)
        client.post(f"/api/checklists/{checklist['id']}/steps", json={"label": "Step one"})

        response = client.delete(f"/api/checklists/{checklist['id']}")

        assert response.status_code == 200
        assert fake_db.rows("checklists") == []
        assert fake_db.rows("checklist_steps") == []

    def test_audit_failure_does_not_fail_mutation(self, client: TestClient, fake_db, no_seed) -> None:
        fake_db.fail_tables.add("audit_log")

        response = client.post("/api/checklists", json={"title": "Still saved"})

        assert response.status_code == 201
        assert len(fake_db.rows("checklists")) == 1
