# odm_bridge/services/webodm_client.py
"""
Thin client for the WebODM REST API.

All endpoints live under ``<webodm_url>/api/``. One client is created per
incoming request; it fetches a JWT on first use and reuses it for the rest of
that request only. Nothing is retried: a failed call surfaces immediately as
an ``UpstreamError`` carrying the upstream status and body.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterable, List, Optional, Sequence, Tuple

import requests

from odm_bridge.core.config import Settings
from odm_bridge.core.errors import (
    AuthenticationError,
    DownloadError,
    NotFoundError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

DOWNLOAD_CHUNK_SIZE = 1024 * 1024

# (filename, file object, content type)
UploadPart = Tuple[str, BinaryIO, str]


def _make_session() -> requests.Session:
    s = requests.Session()
    s.headers.update({"User-Agent": "odm-map-bridge/0.1"})
    return s


def _response_body(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text[:2000]


def _json_body(resp: requests.Response, action: str) -> Any:
    try:
        return resp.json()
    except ValueError:
        logger.error("Failed to %s: HTTP %s with a non-JSON body", action, resp.status_code)
        raise UpstreamError(
            f"Failed to {action}",
            code="unexpected-response",
            details="WebODM returned a response that is not JSON",
            upstream_status=resp.status_code,
            upstream_body=resp.text[:2000],
        )


def normalize_listing(payload: Any, what: str) -> List[Dict[str, Any]]:
    """
    Return a plain list from a WebODM listing.

    WebODM answers with a bare array or, when pagination is on, with a
    ``{"results": [...]}`` envelope. Anything else is an error.
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("results"), list):
        return payload["results"]
    raise UpstreamError(
        f"Unexpected response structure from WebODM while listing {what}",
        code="unexpected-response",
        upstream_body=payload,
    )


def resolve_project_by_name(name: str, projects: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    projects = list(projects)
    for project in projects:
        if project.get("name") == name:
            return project
    raise NotFoundError(
        "Project not found",
        code="project-not-found",
        looking_for=name,
        available_projects=[p.get("name") for p in projects],
    )


class WebODMClient:
    def __init__(self, settings: Settings, session: Optional[requests.Session] = None) -> None:
        self.base_url = settings.webodm_url.rstrip("/")
        self.timeout = settings.http_timeout
        self._username = settings.webodm_username
        self._password = settings.webodm_password
        self.session = session or _make_session()
        self._token: Optional[str] = None

    def url(self, path: str) -> str:
        return f"{self.base_url}/api/{path.lstrip('/')}"

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------
    def get_token(self) -> str:
        if self._token:
            return self._token

        try:
            resp = self.session.request(
                "POST",
                self.url("token-auth/"),
                json={"username": self._username, "password": self._password},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("WebODM token request failed: %s", exc)
            raise AuthenticationError("Failed to authenticate with WebODM", details=str(exc))

        if not resp.ok:
            logger.error("WebODM token request rejected with HTTP %s", resp.status_code)
            raise AuthenticationError(
                "Failed to authenticate with WebODM",
                details=f"WebODM responded with HTTP {resp.status_code}",
                upstream_status=resp.status_code,
                upstream_body=_response_body(resp),
            )

        token = None
        try:
            token = resp.json().get("token")
        except (ValueError, AttributeError):
            pass
        if not token:
            raise AuthenticationError(
                "Failed to authenticate with WebODM",
                details="Token response did not contain a token",
                upstream_status=resp.status_code,
            )

        self._token = token
        return token

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------
    def _request(
        self,
        method: str,
        path: str,
        *,
        action: str,
        not_found: Optional[NotFoundError] = None,
        timeout: Any = None,
        **kwargs: Any,
    ) -> requests.Response:
        token = self.get_token()
        url = self.url(path)
        headers = {"Authorization": f"JWT {token}"}
        headers.update(kwargs.pop("headers", {}))

        try:
            resp = self.session.request(
                method,
                url,
                headers=headers,
                timeout=self.timeout if timeout is None else timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            logger.error("%s %s failed: %s", method, url, exc)
            raise UpstreamError(f"Failed to {action}", details=str(exc))

        if resp.status_code == 404 and not_found is not None:
            raise not_found

        if not resp.ok:
            body = _response_body(resp)
            logger.error("%s %s -> HTTP %s: %s", method, url, resp.status_code, body)
            raise UpstreamError(
                f"Failed to {action}",
                details=f"WebODM responded with HTTP {resp.status_code}",
                upstream_status=resp.status_code,
                upstream_body=body,
            )
        return resp

    @staticmethod
    def _task_not_found(task_id: Any, project_id: Any = None) -> NotFoundError:
        extra = {"task_id": str(task_id)}
        if project_id is not None:
            extra["project_id"] = str(project_id)
        return NotFoundError(
            "Task not found",
            code="task-not-found",
            details="Task may not exist in this project or may not be initialized yet",
            **extra,
        )

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------
    def list_projects(self) -> List[Dict[str, Any]]:
        resp = self._request("GET", "projects/", action="fetch projects")
        return normalize_listing(_json_body(resp, "fetch projects"), "projects")

    def find_project(self, name: str) -> Dict[str, Any]:
        return resolve_project_by_name(name, self.list_projects())

    def create_project(self, name: str) -> Dict[str, Any]:
        resp = self._request("POST", "projects/", action="create project", json={"name": name})
        return _json_body(resp, "create project")

    def rename_project(self, project_id: Any, new_name: str) -> Dict[str, Any]:
        resp = self._request(
            "PATCH",
            f"projects/{project_id}/",
            action="rename project",
            json={"name": new_name},
            not_found=NotFoundError(
                "Project not found", code="project-not-found", project_id=str(project_id)
            ),
        )
        return _json_body(resp, "rename project")

    def delete_project(self, project_id: Any) -> Dict[str, Any]:
        self._request(
            "DELETE",
            f"projects/{project_id}/",
            action="delete project",
            not_found=NotFoundError(
                "Project not found", code="project-not-found", project_id=str(project_id)
            ),
        )
        return {"message": "Project deleted successfully", "project_id": str(project_id)}

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------
    def list_tasks(self, project_id: Any) -> List[Dict[str, Any]]:
        resp = self._request("GET", f"projects/{project_id}/tasks/", action="fetch tasks")
        return normalize_listing(_json_body(resp, "fetch tasks"), "tasks")

    def get_task(self, task_id: Any, project_id: Any = None) -> Dict[str, Any]:
        """Fetch one task, project-scoped when ``project_id`` is given."""
        if project_id is None:
            path = f"tasks/{task_id}/"
        else:
            path = f"projects/{project_id}/tasks/{task_id}/"
        resp = self._request(
            "GET",
            path,
            action="fetch task",
            not_found=self._task_not_found(task_id, project_id),
        )
        return _json_body(resp, "fetch task") or {}

    def create_task(
        self,
        project_id: Any,
        images: Sequence[UploadPart],
        options: List[Dict[str, Any]],
        name: str,
    ) -> Dict[str, Any]:
        files = [("images", part) for part in images]
        data = {"options": json.dumps(options), "name": name}
        # No read timeout: the body can be gigabytes of imagery.
        resp = self._request(
            "POST",
            f"projects/{project_id}/tasks/",
            action="create task",
            files=files,
            data=data,
            timeout=(self.timeout, None),
        )
        return _json_body(resp, "create task")

    def download_asset(self, project_id: Any, task_id: Any, asset: str, dest_path: Path) -> Path:
        """
        Stream a task asset to ``dest_path``.

        Data goes to ``<dest_path>.part`` first and is renamed on success; a
        partial file never takes the final name.
        """
        dest_path = Path(dest_path)
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        part_path = dest_path.with_name(dest_path.name + ".part")
        path = f"projects/{project_id}/tasks/{task_id}/download/{asset}"

        try:
            with self._request(
                "GET",
                path,
                action=f"download {asset}",
                stream=True,
                timeout=(self.timeout, None),
            ) as resp:
                with open(part_path, "wb") as f:
                    for chunk in resp.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
            os.replace(part_path, dest_path)
        except (UpstreamError, requests.RequestException, OSError) as exc:
            part_path.unlink(missing_ok=True)
            if isinstance(exc, UpstreamError):
                raise DownloadError(
                    f"Failed to download {asset}",
                    details=exc.details or exc.message,
                    upstream_status=exc.upstream_status,
                    upstream_body=exc.upstream_body,
                )
            raise DownloadError(f"Failed to download {asset}", details=str(exc))

        return dest_path
