# File: odm_bridge/schemas/task.py

from __future__ import annotations

from enum import IntEnum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from odm_bridge.schemas.project import ProjectId


class TaskStatus(IntEnum):
    """Task status codes reported by WebODM."""

    QUEUED = 10
    RUNNING = 20
    FAILED = 30
    COMPLETED = 40
    CANCELED = 50


STATUS_LEGEND: Dict[int, str] = {s.value: s.name for s in TaskStatus}


# -----------------------------
# Progress
# -----------------------------

class TaskProgress(BaseModel):
    progress: int
    stage: str
    is_complete: bool = False
    has_error: bool = False


# -----------------------------
# Commit request / response
# -----------------------------

class CommitRequest(BaseModel):
    task_id: Optional[Union[str, int]] = None
    project_id: Optional[ProjectId] = None
    map_name: Optional[str] = None
    require_shapefile: bool = True


class CommitResult(BaseModel):
    message: str
    task_id: str
    project_id: str
    map_name: str
    destination_directory: str
    downloaded_assets: Dict[str, str]
    index_files: List[str] = []
    available_assets: List[str] = []
    orthophoto_info: Optional[Dict[str, Any]] = None
    warnings: List[str] = Field(default_factory=list)
    shapefile_created: bool = False
