# File: odm_bridge/api/routes_projects.py

import logging

from fastapi import APIRouter, Depends

from odm_bridge.api.deps import get_webodm_client
from odm_bridge.core.errors import MissingParameterError
from odm_bridge.schemas.project import ProjectCreate, ProjectDelete, ProjectRename
from odm_bridge.services.webodm_client import WebODMClient

logger = logging.getLogger(__name__)

router = APIRouter(tags=["projects"])


@router.get("/get-projects", summary="List WebODM projects")
def get_projects(client: WebODMClient = Depends(get_webodm_client)):
    return client.list_projects()


@router.post("/create-project", summary="Create a WebODM project")
def create_project(payload: ProjectCreate, client: WebODMClient = Depends(get_webodm_client)):
    if not payload.name:
        raise MissingParameterError("Project name required")
    logger.info("Creating project %r", payload.name)
    return client.create_project(payload.name)


@router.post("/delete-project", summary="Delete a WebODM project")
def delete_project(payload: ProjectDelete, client: WebODMClient = Depends(get_webodm_client)):
    if not payload.project_id:
        raise MissingParameterError("project_id required")
    logger.info("Deleting project %s", payload.project_id)
    return client.delete_project(payload.project_id)


@router.post("/rename-project", summary="Rename a WebODM project")
def rename_project(payload: ProjectRename, client: WebODMClient = Depends(get_webodm_client)):
    """
    Returns the updated project as WebODM reports it.
    """
    if not payload.project_id or not payload.new_name:
        raise MissingParameterError(
            "project_id and new_name required",
            received={"project_id": payload.project_id, "new_name": payload.new_name},
        )
    logger.info("Renaming project %s to %r", payload.project_id, payload.new_name)
    return client.rename_project(payload.project_id, payload.new_name)
