from fastapi import APIRouter

from intake.modules.employment_applications import dashboard_router
from intake.modules.employment_applications import router as employment_applications_router

api_router = APIRouter()

api_router.include_router(
    employment_applications_router, prefix="/applications", tags=["Employment Applications"]
)

api_router.include_router(
    dashboard_router,
    prefix="/applications",
    tags=["Dashboard - Applications"],
)
