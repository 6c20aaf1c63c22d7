# File: tests/conftest.py

import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from odm_bridge.api.deps import get_webodm_client
from odm_bridge.core.config import Settings, get_settings
from odm_bridge.main import app
from odm_bridge.services.webodm_client import WebODMClient, resolve_project_by_name


class FakeWebODM:
    """
    Stand-in for WebODMClient. Records every call so tests can assert that
    nothing was sent upstream.
    """

    def __init__(self):
        self.calls = []
        self.projects = [{"id": 1, "name": "Survey"}, {"id": 2, "name": "Orchard"}]
        self.tasks = {}
        self.created = []
        self.create_error = None
        self.download_error = None
        self.download_content = b"II*\x00fake-tiff"

    def list_projects(self):
        self.calls.append(("list_projects",))
        return list(self.projects)

    def find_project(self, name):
        self.calls.append(("find_project", name))
        return resolve_project_by_name(name, self.projects)

    def create_project(self, name):
        self.calls.append(("create_project", name))
        project = {"id": 3, "name": name}
        self.projects.append(project)
        return project

    def rename_project(self, project_id, new_name):
        self.calls.append(("rename_project", project_id, new_name))
        return {"id": int(project_id), "name": new_name}

    def delete_project(self, project_id):
        self.calls.append(("delete_project", project_id))
        return {"message": "Project deleted successfully", "project_id": str(project_id)}

    def list_tasks(self, project_id):
        self.calls.append(("list_tasks", project_id))
        return [t for t in self.tasks.values() if str(t.get("project")) == str(project_id)]

    def get_task(self, task_id, project_id=None):
        self.calls.append(("get_task", task_id, project_id))
        if task_id not in self.tasks:
            raise WebODMClient._task_not_found(task_id, project_id)
        return self.tasks[task_id]

    def create_task(self, project_id, images, options, name):
        self.calls.append(("create_task", project_id))
        uploaded = [(filename, fh.read(), ctype) for filename, fh, ctype in images]
        self.created.append(
            {"project_id": project_id, "images": uploaded, "options": options, "name": name}
        )
        if self.create_error is not None:
            raise self.create_error
        return {"id": "task-new", "images_count": len(uploaded), "project": project_id}

    def download_asset(self, project_id, task_id, asset, dest_path):
        self.calls.append(("download_asset", project_id, task_id, asset))
        if self.download_error is not None:
            raise self.download_error
        dest_path = Path(dest_path)
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        dest_path.write_bytes(self.download_content)
        return dest_path


@pytest.fixture
def map_root(tmp_path):
    return tmp_path / "maps"


@pytest.fixture
def settings(tmp_path, map_root):
    mappings_path = tmp_path / "map_mappings.json"
    mappings_path.write_text(json.dumps({"north_field": str(map_root / "north_field")}))
    return Settings(
        webodm_url="http://webodm.test",
        webodm_username="admin",
        webodm_password="secret",
        map_mappings_path=mappings_path,
        upload_dir=tmp_path / "uploads",
        gdal_timeout=5,
    )


@pytest.fixture
def fake_webodm():
    return FakeWebODM()


@pytest.fixture
def client(settings, fake_webodm):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_webodm_client] = lambda: fake_webodm
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def completed_task():
    def make(task_id="t1", project_id=1, assets=("orthophoto.tif", "all.zip")):
        return {
            "id": task_id,
            "project": project_id,
            "status": 40,
            "available_assets": list(assets),
            "name": "Upload_2imgs",
            "created_at": "2024-05-01T10:00:00Z",
        }

    return make
