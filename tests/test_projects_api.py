# File: tests/test_projects_api.py

import pytest

from odm_bridge.core.errors import UpstreamError


def test_get_projects_returns_list(client, fake_webodm):
    resp = client.get("/api/get-projects")
    assert resp.status_code == 200
    assert [p["name"] for p in resp.json()] == ["Survey", "Orchard"]


def test_create_project(client, fake_webodm):
    resp = client.post("/api/create-project", json={"name": "Vineyard"})
    assert resp.status_code == 200
    assert resp.json()["name"] == "Vineyard"


def test_create_project_requires_name(client, fake_webodm):
    resp = client.post("/api/create-project", json={})
    assert resp.status_code == 400
    assert resp.json()["code"] == "missing-parameter"
    assert fake_webodm.calls == []


@pytest.mark.parametrize("project_id", [7, "7"])
def test_rename_returns_new_name(client, fake_webodm, project_id):
    resp = client.post("/api/rename-project", json={"project_id": project_id, "new_name": "Renamed"})
    assert resp.status_code == 200
    assert resp.json()["name"] == "Renamed"
    assert fake_webodm.calls == [("rename_project", project_id, "Renamed")]


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"project_id": 7},
        {"new_name": "Renamed"},
        {"project_id": "", "new_name": "Renamed"},
        {"project_id": 7, "new_name": ""},
    ],
)
def test_rename_with_missing_fields_is_400_without_remote_call(client, fake_webodm, body):
    resp = client.post("/api/rename-project", json=body)
    assert resp.status_code == 400
    assert "error" in resp.json()
    assert fake_webodm.calls == []


def test_rename_with_wrong_types_is_400(client, fake_webodm):
    resp = client.post("/api/rename-project", json={"project_id": [1], "new_name": {"a": 1}})
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid-request"
    assert fake_webodm.calls == []


def test_delete_project(client, fake_webodm):
    resp = client.post("/api/delete-project", json={"project_id": 2})
    assert resp.status_code == 200
    assert resp.json()["project_id"] == "2"
    assert "deleted" in resp.json()["message"].lower()


def test_delete_project_requires_id(client, fake_webodm):
    resp = client.post("/api/delete-project", json={})
    assert resp.status_code == 400
    assert fake_webodm.calls == []


def test_upstream_failure_is_500_with_upstream_details(client, fake_webodm, monkeypatch):
    def fail(project_id):
        raise UpstreamError(
            "Failed to delete project",
            details="WebODM responded with HTTP 403",
            upstream_status=403,
            upstream_body={"detail": "forbidden"},
        )

    monkeypatch.setattr(fake_webodm, "delete_project", fail)
    resp = client.post("/api/delete-project", json={"project_id": 2})
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Failed to delete project"
    assert body["code"] == "upstream-error"
    assert body["upstream_status"] == 403
    assert body["upstream_body"] == {"detail": "forbidden"}


def test_unexpected_exception_is_rendered_as_json(client, fake_webodm, monkeypatch):
    from fastapi.testclient import TestClient

    from odm_bridge.main import app

    def broken():
        raise RuntimeError("boom")

    monkeypatch.setattr(fake_webodm, "list_projects", broken)
    with TestClient(app, raise_server_exceptions=False) as lenient:
        resp = lenient.get("/api/get-projects")
    assert resp.status_code == 500
    assert resp.json() == {
        "error": "Internal server error",
        "code": "internal-error",
        "details": "boom",
    }
