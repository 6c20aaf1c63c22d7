# odm_bridge/services/progress.py
"""
Overall progress for a WebODM task.

While a task is RUNNING its three sub-progress fractions are blended with
fixed weights: upload 30%, resize 20%, processing 50%. Terminal and queued
states map to fixed values.
"""

import math
from typing import Any, Dict

from odm_bridge.schemas.task import TaskProgress, TaskStatus

UPLOAD_WEIGHT = 30
RESIZE_WEIGHT = 20
RUNNING_WEIGHT = 50


def _percent(value: float) -> int:
    # Halves round up, so 62.5 reports as 63.
    return int(math.floor(value + 0.5))


def _fraction(task: Dict[str, Any], key: str) -> float:
    value = task.get(key)
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def derive_progress(task: Dict[str, Any]) -> TaskProgress:
    status = task.get("status")

    if status == TaskStatus.COMPLETED:
        return TaskProgress(progress=100, stage="Complete", is_complete=True)
    if status == TaskStatus.FAILED:
        return TaskProgress(progress=0, stage="Failed", has_error=True)
    if status == TaskStatus.QUEUED:
        return TaskProgress(progress=0, stage="Queued for processing")
    if status == TaskStatus.CANCELED:
        return TaskProgress(progress=0, stage="Canceled")

    if status == TaskStatus.RUNNING:
        upload = _fraction(task, "upload_progress")
        resize = _fraction(task, "resize_progress")
        running = _fraction(task, "running_progress")

        overall = _percent(
            upload * UPLOAD_WEIGHT + resize * RESIZE_WEIGHT + running * RUNNING_WEIGHT
        )

        if upload < 1:
            stage = "Uploading images..."
        elif resize < 1:
            stage = "Resizing images..."
        else:
            stage = "Processing orthophoto..."
        return TaskProgress(progress=max(0, min(100, overall)), stage=stage)

    return TaskProgress(progress=0, stage=f"Status: {status}")


def progress_report(task: Dict[str, Any], *, task_id: Any, project_id: Any) -> Dict[str, Any]:
    """Full payload for the task-progress endpoint."""
    derived = derive_progress(task)
    return {
        "task_id": str(task_id),
        "project_id": str(project_id),
        "status": task.get("status"),
        "stage": derived.stage,
        "progress": derived.progress,
        "upload_progress": _percent(_fraction(task, "upload_progress") * 100),
        "resize_progress": _percent(_fraction(task, "resize_progress") * 100),
        "running_progress": _percent(_fraction(task, "running_progress") * 100),
        "processing_time": task.get("processing_time"),
        "is_complete": derived.is_complete,
        "has_error": derived.has_error,
        "last_error": task.get("last_error"),
        "images_count": task.get("images_count"),
        "name": task.get("name"),
        "created_at": task.get("created_at"),
        "raw_data": task,
    }
