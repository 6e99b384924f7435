"""HTTP tests for the FastAPI app, run against the in-memory store."""

import asyncio
import time

import pytest
from fastapi.testclient import TestClient

from conftest import make_project
from specdrive.config import get_settings


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("STORE_BACKEND", "memory")
    monkeypatch.setenv("THINK_TIME_SECONDS", "0")
    get_settings.cache_clear()

    from specdrive.main import app

    with TestClient(app) as test_client:
        yield test_client
    get_settings.cache_clear()


def seed(client, **overrides):
    project = make_project(**overrides)
    asyncio.run(client.app.state.store.save_project(project))
    return project.id


def wait_for_status(client, project_id, status):
    for _ in range(500):
        body = client.get(f"/api/v1/projects/{project_id}/orchestration/progress").json()
        if body["status"] == status:
            return body
        time.sleep(0.01)
    raise AssertionError(f"project {project_id} never reached {status}")


def run_to_done(client, project_id):
    client.post(f"/api/v1/projects/{project_id}/orchestration/start")
    wait_for_status(client, project_id, "awaiting_approval")
    client.post(f"/api/v1/projects/{project_id}/stack/approve")
    wait_for_status(client, project_id, "awaiting_approval")
    client.post(f"/api/v1/projects/{project_id}/dependencies/approve")
    return wait_for_status(client, project_id, "completed")


class TestService:
    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["dependencies"]["store"]["status"] == "healthy"

    def test_root(self, client):
        assert client.get("/").json()["name"] == "SpecDrive"


class TestOrchestrationApi:
    def test_unknown_project_is_404(self, client):
        response = client.get("/api/v1/projects/missing/orchestration/progress")

        assert response.status_code == 404
        assert response.json()["error"] == "project_not_found"

    def test_full_run_with_approvals(self, client):
        project_id = seed(client)

        response = client.post(
            f"/api/v1/projects/{project_id}/orchestration/start",
            headers={"X-User-Id": "u-42"},
        )
        assert response.status_code == 200

        halted = wait_for_status(client, project_id, "awaiting_approval")
        assert halted["current_phase"] == "stack_selection"

        approved = client.post(f"/api/v1/projects/{project_id}/stack/approve")
        assert approved.status_code == 200
        assert approved.json()["stack_approved"] is True

        halted = wait_for_status(client, project_id, "awaiting_approval")
        assert halted["current_phase"] == "dependencies"

        client.post(f"/api/v1/projects/{project_id}/dependencies/approve")
        done = wait_for_status(client, project_id, "completed")
        assert done["current_phase"] == "done"
        assert done["percent_complete"] == 100

        history = client.get(f"/api/v1/projects/{project_id}/phases/history").json()
        assert len(history) == 5
        assert history[0]["transitioned_by"] == "u-42"

        spec_artifacts = client.get(f"/api/v1/projects/{project_id}/artifacts", params={"phase": "spec"}).json()
        assert [a["artifact_name"] for a in spec_artifacts] == [
            "PRD.md", "data-model.md", "api-spec.json", "traceability.json",
        ]

    def test_approval_in_wrong_phase_is_409(self, client):
        project_id = seed(client)

        response = client.post(f"/api/v1/projects/{project_id}/stack/approve")

        assert response.status_code == 409
        assert response.json()["error"] == "invalid_state"

    def test_advance(self, client):
        project_id = seed(client)

        response = client.post(f"/api/v1/projects/{project_id}/phases/advance", headers={"X-User-Id": "u-1"})

        assert response.status_code == 200
        assert response.json()["current_phase"] == "stack_selection"
        history = client.get(f"/api/v1/projects/{project_id}/phases/history").json()
        assert history[0]["from_phase"] == "analysis"
        assert history[0]["transitioned_by"] == "u-1"

    def test_advance_at_done_is_409(self, client):
        project_id = seed(client, current_phase="done")

        response = client.post(f"/api/v1/projects/{project_id}/phases/advance")

        assert response.status_code == 409

    def test_pause_when_idle_is_409(self, client):
        project_id = seed(client)

        assert client.post(f"/api/v1/projects/{project_id}/orchestration/pause").status_code == 409


class TestValidationApi:
    def test_run_validation_writes_back_statuses(self, client):
        project_id = seed(client)
        run_to_done(client, project_id)

        response = client.post("/api/v1/validation/run", json={"project_id": project_id, "phase": "solutioning"})

        assert response.status_code == 200
        report = response.json()
        assert report["overall_status"] == "pass"
        assert report["total_rules"] == 5

        artifacts = client.get(f"/api/v1/projects/{project_id}/artifacts").json()
        assert all(a["validation_status"] == "pass" for a in artifacts)

        reports = client.get(f"/api/v1/validation/reports/{project_id}").json()
        assert [r["id"] for r in reports] == [report["id"]]

        fetched = client.get(f"/api/v1/validation/reports/report/{report['id']}")
        assert fetched.status_code == 200

        dashboard = client.get(f"/api/v1/validation/dashboard/{project_id}").json()
        assert dashboard["metrics"]["total_validations"] == 1
        assert dashboard["metrics"]["trend"] == "stable"

    def test_missing_report_is_404(self, client):
        assert client.get("/api/v1/validation/reports/report/nope").status_code == 404

    def test_unknown_phase_is_422(self, client):
        project_id = seed(client)

        response = client.post("/api/v1/validation/run", json={"project_id": project_id, "phase": "review"})

        assert response.status_code == 422

    def test_validation_for_unknown_project_is_404(self, client):
        response = client.post("/api/v1/validation/run", json={"project_id": "missing", "phase": "spec"})

        assert response.status_code == 404

    def test_rule_management(self, client):
        rules = client.get("/api/v1/validation/rules").json()
        assert len(rules) == 5

        created = client.post("/api/v1/validation/rules", json={
            "id": "CUSTOM-1",
            "name": "Billing terminology",
            "check": "topic_consistency",
            "severity": "warning",
            "terms": ["billing"],
        })
        assert created.status_code == 201
        assert created.json()["terms"] == ["billing"]
        assert len(client.get("/api/v1/validation/rules").json()) == 6

        disabled = client.patch("/api/v1/validation/rules/REQ-TASK-001", json={"enabled": False})
        assert disabled.status_code == 200
        assert disabled.json()["enabled"] is False

        assert client.delete("/api/v1/validation/rules/CUSTOM-1").json() == {"rule_id": "CUSTOM-1", "deleted": True}
        assert client.delete("/api/v1/validation/rules/CUSTOM-1").status_code == 404
        assert client.patch("/api/v1/validation/rules/NOPE", json={"enabled": True}).status_code == 404

    def test_invalid_rule_is_422(self, client):
        response = client.post("/api/v1/validation/rules", json={"id": "X", "name": "X", "check": "regex"})

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"


class TestTraceabilityApi:
    def test_matrix_and_coverage(self, client):
        project_id = seed(client)
        run_to_done(client, project_id)

        matrix = client.get(f"/api/v1/projects/{project_id}/traceability").json()
        assert matrix["project_name"] == "Task Tracker"
        assert matrix["total_requirements"] == 8
        assert matrix["overall_coverage"] > 0

        coverage = client.get(f"/api/v1/projects/{project_id}/coverage").json()
        assert coverage["phase"] == "done"
        assert coverage["task_coverage"] == 100

        spec_coverage = client.get(f"/api/v1/projects/{project_id}/coverage", params={"phase": "spec"}).json()
        assert spec_coverage["phase"] == "spec"

    def test_project_without_artifacts(self, client):
        project_id = seed(client)

        matrix = client.get(f"/api/v1/projects/{project_id}/traceability").json()

        assert matrix["requirements"] == []
        assert matrix["overall_coverage"] == 0
