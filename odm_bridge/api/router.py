from fastapi import APIRouter

from odm_bridge.api.routes_commit import router as commit_router
from odm_bridge.api.routes_projects import router as projects_router
from odm_bridge.api.routes_status import router as status_router
from odm_bridge.api.routes_tasks import router as tasks_router
from odm_bridge.api.routes_upload import router as upload_router


api_router = APIRouter()

api_router.include_router(projects_router)
api_router.include_router(tasks_router)
api_router.include_router(upload_router)
api_router.include_router(commit_router)
api_router.include_router(status_router)
