from fastapi import APIRouter
from leavedesk.routers import leave, leave_reports, leave_workflow

# Centralized API router hub
# Routers are aggregated here and main.py only imports this single hub.
# Fixed paths (reports, workflow queue) are registered before the /{request_id} routes.
api_router = APIRouter()

api_router.include_router(leave_reports.router, tags=["Leave Reports"])
api_router.include_router(leave_workflow.router, tags=["Leave Workflow"])
api_router.include_router(leave.router, tags=["Leave"])
