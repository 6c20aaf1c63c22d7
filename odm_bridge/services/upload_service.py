# odm_bridge/services/upload_service.py
"""
Image submission: stage uploaded images on disk, merge task options and
create a WebODM task from them.

Staged files belong to the request that received them and are always
removed when it finishes, whichever branch it leaves through.
"""

import json
import logging
import uuid
from contextlib import ExitStack
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from odm_bridge.core.config import Settings
from odm_bridge.core.errors import (
    InvalidRequestError,
    MissingParameterError,
    UploadTooLargeError,
)
from odm_bridge.services.webodm_client import WebODMClient

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 1024 * 1024
MB = 1024 * 1024

DEFAULT_TASK_OPTIONS: List[Dict[str, Any]] = [
    {"name": "fast-orthophoto", "value": True},
    {"name": "resize-to", "value": 1024},
    {"name": "quality", "value": "medium"},
    {"name": "pc-quality", "value": "medium"},
    {"name": "orthophoto-resolution", "value": 5},
]


# -----------------------------
# Task options
# -----------------------------

def parse_task_options(raw: Optional[str]) -> List[Dict[str, Any]]:
    """Parse the ``options`` form field: a JSON array of ``{name, value}``."""
    if raw is None or not raw.strip():
        return []
    try:
        options = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidRequestError(
            "options must be a JSON array", code="invalid-options", details=str(exc)
        )
    if not isinstance(options, list):
        raise InvalidRequestError("options must be a JSON array", code="invalid-options")
    for opt in options:
        if not isinstance(opt, dict) or not opt.get("name"):
            raise InvalidRequestError(
                "Each option needs a name", code="invalid-options", details=repr(opt)
            )
    return options


def merge_task_options(
    defaults: Sequence[Dict[str, Any]],
    overrides: Sequence[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """Caller options replace same-named defaults; the rest are appended."""
    override_names = {opt["name"] for opt in overrides}
    merged = [dict(opt) for opt in defaults if opt["name"] not in override_names]
    merged.extend(dict(opt) for opt in overrides)
    return merged


# -----------------------------
# Staging
# -----------------------------

@dataclass
class StagedFile:
    path: Path
    filename: str
    content_type: str
    size: int


class UploadStaging:
    """
    A per-request directory holding uploaded images until they are sent on.
    """

    def __init__(self, root: Path) -> None:
        self.directory = Path(root) / uuid.uuid4().hex
        self.files: List[StagedFile] = []

    @property
    def total_size(self) -> int:
        return sum(f.size for f in self.files)

    async def add(self, upload: UploadFile, index: int, settings: Settings) -> StagedFile:
        self.directory.mkdir(parents=True, exist_ok=True)
        filename = Path(upload.filename or "").name or f"image_{index + 1}.jpg"
        path = self.directory / f"{index:05d}_{uuid.uuid4().hex[:8]}"
        staged = StagedFile(
            path=path,
            filename=filename,
            content_type=upload.content_type or "image/jpeg",
            size=0,
        )
        # Registered before writing so a partial file is still cleaned up.
        self.files.append(staged)

        already = self.total_size
        with open(path, "wb") as f:
            while True:
                chunk = await upload.read(READ_CHUNK_SIZE)
                if not chunk:
                    break
                staged.size += len(chunk)
                if staged.size > settings.max_upload_file_size:
                    raise UploadTooLargeError(
                        "Uploaded file exceeds the per-file size limit",
                        details=f"{filename} is larger than {settings.max_upload_file_size} bytes",
                        filename=filename,
                    )
                if already + staged.size > settings.max_upload_total_size:
                    raise UploadTooLargeError(
                        "Upload exceeds the total size limit",
                        details=f"Total upload is larger than {settings.max_upload_total_size} bytes",
                    )
                f.write(chunk)
        return staged

    def cleanup(self) -> None:
        """Best-effort removal; one failed delete does not stop the rest."""
        removed = 0
        for staged in self.files:
            try:
                staged.path.unlink(missing_ok=True)
                removed += 1
            except OSError as exc:
                logger.warning("Failed to delete temp file %s: %s", staged.path, exc)
        try:
            if self.directory.exists():
                self.directory.rmdir()
        except OSError as exc:
            logger.warning("Failed to remove staging directory %s: %s", self.directory, exc)
        if self.files:
            logger.info("Cleaned up %d/%d temporary upload files", removed, len(self.files))


# -----------------------------
# Submission
# -----------------------------

def build_task_name(image_count: int, total_size_mb: float, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    timestamp = now.strftime("%Y-%m-%dT%H-%M-%S")
    return f"Upload_{image_count}imgs_{total_size_mb:.2f}MB_{timestamp}"


async def push_images(
    client: WebODMClient,
    settings: Settings,
    *,
    images: Optional[List[UploadFile]],
    project_name: Optional[str],
    options: Optional[str] = None,
    api_prefix: str = "/api",
) -> Dict[str, Any]:
    if not images:
        raise MissingParameterError("Images array required")
    if not project_name:
        raise MissingParameterError("project_name required")
    if len(images) > settings.max_upload_files:
        raise UploadTooLargeError(
            "Too many files in one upload",
            details=f"{len(images)} files sent, at most {settings.max_upload_files} allowed",
        )

    staging = UploadStaging(settings.upload_dir)
    try:
        task_options = merge_task_options(DEFAULT_TASK_OPTIONS, parse_task_options(options))

        for i, upload in enumerate(images):
            await staging.add(upload, i, settings)

        count = len(staging.files)
        total_size = staging.total_size
        total_mb = total_size / MB
        logger.info(
            "Received %d images (%.2f MB) for project %r", count, total_mb, project_name
        )

        project = await run_in_threadpool(client.find_project, project_name)
        task_name = build_task_name(count, total_mb)
        logger.info("Creating task %s in project %s", task_name, project.get("id"))

        with ExitStack() as stack:
            parts = [
                (f.filename, stack.enter_context(open(f.path, "rb")), f.content_type)
                for f in staging.files
            ]
            task = await run_in_threadpool(
                client.create_task, project["id"], parts, task_options, task_name
            )

        logger.info("Task %s created with %s images", task.get("id"), task.get("images_count"))
        return {
            "task": task,
            "message": f"Task created successfully with {count} images ({total_mb:.2f}MB)",
            "poll_url": (
                f"{api_prefix}/task-progress?task_id={task.get('id')}&project_id={project['id']}"
            ),
            "stats": {
                "image_count": count,
                "total_size_mb": round(total_mb, 2),
                "average_size_mb": round(total_mb / count, 2),
            },
        }
    finally:
        staging.cleanup()
