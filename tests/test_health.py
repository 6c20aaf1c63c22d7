# File: tests/test_health.py

"""
Basic smoke tests for the application wiring.

These use FastAPI's TestClient. To run:
    pytest -q
"""

from fastapi.testclient import TestClient

from odm_bridge.main import app

client = TestClient(app)


def test_health_endpoint():
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_api_routes_are_mounted_under_api_prefix():
    paths = set(app.openapi()["paths"])
    for path in (
        "/api/push-images",
        "/api/get-projects",
        "/api/get-tasks",
        "/api/get-task-status/{task_id}",
        "/api/task-progress",
        "/api/create-project",
        "/api/delete-project",
        "/api/rename-project",
        "/api/commit-task-to-map",
    ):
        assert path in paths


def test_unknown_route_is_404():
    resp = client.get("/api/does-not-exist")
    assert resp.status_code == 404
