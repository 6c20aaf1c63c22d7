# File: odm_bridge/api/routes_status.py

import sys

from fastapi import APIRouter, Depends

from odm_bridge.core.config import Settings, get_settings
from odm_bridge.gis.gdal_index import gdal_tool_status

router = APIRouter(tags=["status"])


@router.get("/gdal-status")
def get_gdal_status(settings: Settings = Depends(get_settings)):
    """
    Diagnostic endpoint to check that gdaltindex runs with the configured
    GDAL environment, from the server's perspective.
    """
    diagnostics = gdal_tool_status(settings)
    diagnostics["python_version"] = sys.version
    return diagnostics
