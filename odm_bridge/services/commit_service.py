# odm_bridge/services/commit_service.py
"""
Commit a completed WebODM task to a map directory.

Steps run strictly in order and each one gates the next:

  1. validate identifiers
  2. resolve the destination directory from the map mapping table
  3. fetch the task and check it is COMPLETED with an orthophoto
  4. download the orthophoto into the destination directory
  5. build a shapefile index for the downloaded raster

Nothing is rolled back. If indexing fails the orthophoto stays where it was
written; the caller decides through ``require_shapefile`` whether that is a
failure or a warning.
"""

import logging
from typing import Dict, List, Optional

from rasterio.errors import RasterioError

from odm_bridge.core.config import Settings
from odm_bridge.core.errors import (
    ConflictError,
    InvalidRequestError,
    MissingParameterError,
    NotFoundError,
    SpatialIndexError,
)
from odm_bridge.gis.gdal_index import build_index
from odm_bridge.gis.raster_info import describe_raster
from odm_bridge.schemas.task import STATUS_LEGEND, CommitRequest, CommitResult, TaskStatus
from odm_bridge.services.map_mappings import load_mappings, resolve_destination
from odm_bridge.services.webodm_client import WebODMClient

logger = logging.getLogger(__name__)

ORTHOPHOTO_ASSET = "orthophoto.tif"


def orthophoto_filename(task_id: str) -> str:
    return f"task_{task_id}_orthophoto.tif"


def index_filename(task_id: str) -> str:
    return f"task_{task_id}_index.shp"


def commit_task_to_map(client: WebODMClient, settings: Settings, req: CommitRequest) -> CommitResult:
    # 1. Validate
    if not req.task_id or not req.project_id or not req.map_name:
        raise MissingParameterError(
            "task_id, project_id and map_name required",
            received={
                "task_id": req.task_id,
                "project_id": req.project_id,
                "map_name": req.map_name,
            },
        )
    task_id = str(req.task_id)
    if "/" in task_id or "\\" in task_id or ".." in task_id:
        raise InvalidRequestError(
            "task_id must not contain path separators", received={"task_id": task_id}
        )
    project_id = str(req.project_id)
    map_name = req.map_name

    logger.info("Committing task %s (project %s) to map %r", task_id, project_id, map_name)

    # 2. Destination
    mappings = load_mappings(settings.map_mappings_path)
    dest_dir = resolve_destination(map_name, mappings)

    # 3. Task must be finished and carry an orthophoto
    task = client.get_task(task_id, project_id)
    status = task.get("status")
    available_assets: List[str] = task.get("available_assets") or []
    logger.info("Task %s status %s, assets %s", task_id, status, available_assets)

    if status != TaskStatus.COMPLETED:
        raise ConflictError(
            "Task is not completed yet",
            code="task-not-ready",
            current_status=status,
            status_codes=STATUS_LEGEND,
        )
    if ORTHOPHOTO_ASSET not in available_assets:
        raise NotFoundError(
            "Orthophoto not available for this task",
            code="asset-unavailable",
            available_assets=available_assets,
        )

    # 4. Download
    ortho_path = client.download_asset(
        project_id, task_id, ORTHOPHOTO_ASSET, dest_dir / orthophoto_filename(task_id)
    )
    logger.info("Orthophoto downloaded to %s", ortho_path)

    warnings: List[str] = []
    downloaded_assets: Dict[str, str] = {"orthophoto_tif": str(ortho_path)}

    orthophoto_info: Optional[dict] = None
    try:
        orthophoto_info = describe_raster(ortho_path)
    except (RasterioError, OSError, ValueError) as exc:
        logger.warning("Could not read orthophoto metadata from %s: %s", ortho_path, exc)
        warnings.append(f"Orthophoto metadata unavailable: {exc}")

    # 5. Spatial index
    index = build_index(ortho_path, dest_dir / index_filename(task_id), settings=settings)
    if index.created:
        downloaded_assets["shapefile"] = str(index.index_path)
    else:
        reason = index.failure_reason()
        if req.require_shapefile:
            raise SpatialIndexError(
                "Failed to create shapefile index",
                details=reason,
                task_id=task_id,
                project_id=project_id,
                map_name=map_name,
                orthophoto_tif=str(ortho_path),
            )
        warnings.append(f"Shapefile creation failed: {reason}")

    if index.created:
        message = "Task orthophoto and shapefile committed to map successfully"
    else:
        message = "Task orthophoto committed to map without a shapefile index"
    logger.info("Task %s committed to map %r (shapefile: %s)", task_id, map_name, index.created)

    return CommitResult(
        message=message,
        task_id=task_id,
        project_id=project_id,
        map_name=map_name,
        destination_directory=str(dest_dir),
        downloaded_assets=downloaded_assets,
        index_files=[str(p) for p in index.files],
        available_assets=available_assets,
        orthophoto_info=orthophoto_info,
        warnings=warnings,
        shapefile_created=index.created,
    )