# File: odm_bridge/api/routes_commit.py

from fastapi import APIRouter, Depends

from odm_bridge.api.deps import get_webodm_client
from odm_bridge.core.config import Settings, get_settings
from odm_bridge.schemas.task import CommitRequest, CommitResult
from odm_bridge.services.commit_service import commit_task_to_map
from odm_bridge.services.map_mappings import load_mappings
from odm_bridge.services.webodm_client import WebODMClient

router = APIRouter(tags=["maps"])


@router.post(
    "/commit-task-to-map",
    response_model=CommitResult,
    summary="Copy a finished orthophoto into a map directory and index it",
)
def commit_task_to_map_endpoint(
    req: CommitRequest,
    client: WebODMClient = Depends(get_webodm_client),
    settings: Settings = Depends(get_settings),
):
    """
    Request JSON:
    {
      "task_id": "<uuid>",
      "project_id": 12,
      "map_name": "north_field",
      "require_shapefile": true
    }

    With require_shapefile=false a failed index is reported in "warnings"
    and the downloaded orthophoto is still returned.
    """
    return commit_task_to_map(client, settings, req)


@router.get("/get-maps", summary="Known map names and their directories")
def get_maps(settings: Settings = Depends(get_settings)):
    return {"maps": load_mappings(settings.map_mappings_path)}
