# File: odm_bridge/api/routes_upload.py

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from odm_bridge.api.deps import get_webodm_client
from odm_bridge.core.config import Settings, get_settings
from odm_bridge.services.upload_service import push_images
from odm_bridge.services.webodm_client import WebODMClient

router = APIRouter(tags=["upload"])


@router.post("/push-images", summary="Upload images as a new WebODM task")
async def push_images_endpoint(
    images: Optional[List[UploadFile]] = File(None),
    project_name: Optional[str] = Form(None),
    options: Optional[str] = Form(None),
    client: WebODMClient = Depends(get_webodm_client),
    settings: Settings = Depends(get_settings),
):
    """
    Form data:
    - images: image files (repeat the field once per file)
    - project_name: name of an existing WebODM project
    - options: optional JSON array of {"name": ..., "value": ...}

    Caller options replace same-named defaults. Uploaded files are removed
    from the staging directory whether or not the task is created.
    """
    return await push_images(
        client,
        settings,
        images=images,
        project_name=project_name,
        options=options,
        api_prefix=settings.api_prefix,
    )
