# File: odm_bridge/api/routes_tasks.py

"""
Task listing, status and progress.

Every call re-fetches from WebODM; nothing about a task is kept here.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from odm_bridge.api.deps import get_webodm_client
from odm_bridge.core.errors import MissingParameterError
from odm_bridge.services.progress import progress_report
from odm_bridge.services.webodm_client import WebODMClient

router = APIRouter(tags=["tasks"])


@router.get("/get-tasks", summary="List tasks of a project")
def get_tasks(
    project_id: Optional[str] = None,
    client: WebODMClient = Depends(get_webodm_client),
):
    if not project_id:
        raise MissingParameterError("project_id required")
    return client.list_tasks(project_id)


@router.get("/get-tasks/{project_id}", summary="List tasks of a project (path form)")
def get_tasks_by_path(project_id: str, client: WebODMClient = Depends(get_webodm_client)):
    return client.list_tasks(project_id)


def _task_status(client: WebODMClient, task_id: str, project_id: Optional[str]):
    task = client.get_task(task_id, project_id or None)
    return {"status": task.get("status"), "task": task}


@router.get("/get-task-status", summary="Raw status of a task (query form)")
def get_task_status(
    task_id: Optional[str] = None,
    project_id: Optional[str] = None,
    client: WebODMClient = Depends(get_webodm_client),
):
    if not task_id:
        raise MissingParameterError("task_id required")
    return _task_status(client, task_id, project_id)


@router.get("/get-task-status/{task_id}", summary="Raw status of a task")
def get_task_status_by_path(
    task_id: str,
    project_id: Optional[str] = None,
    client: WebODMClient = Depends(get_webodm_client),
):
    return _task_status(client, task_id, project_id)


@router.get("/task-progress", summary="Overall progress of a task")
def task_progress(
    task_id: Optional[str] = None,
    project_id: Optional[str] = None,
    client: WebODMClient = Depends(get_webodm_client),
):
    """
    Blends upload/resize/processing progress into one 0-100 value while the
    task runs; terminal states report fixed values.
    """
    if not task_id or not project_id:
        raise MissingParameterError(
            "Both task_id and project_id parameters are required",
            received={"task_id": task_id, "project_id": project_id},
        )
    task = client.get_task(task_id, project_id)
    return progress_report(task, task_id=task_id, project_id=project_id)
