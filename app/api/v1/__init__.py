from fastapi import APIRouter
from core.config import settings

from .consultants import router as consultants_router
from .job_details import router as job_details_router
from .agreements import router as agreements_router

api_router = APIRouter(prefix=settings.API_V1_STR)
api_router.include_router(consultants_router)
api_router.include_router(job_details_router)
api_router.include_router(agreements_router)
