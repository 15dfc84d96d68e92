import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from core.config import settings
from core.exceptions import PipelineError
from db.session import engine

from api import v1

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

description = """
Consultant placement pipeline: job details, service-fee agreements and EMI collection.
"""
version = "v0.1.0"


@asynccontextmanager
async def lifespan(_: FastAPI):
    logger.info("Starting %s (%s)", settings.PROJECT_NAME, settings.ENVIRONMENT.value)

    yield

    await engine.dispose()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description=description,
    version=version,
    lifespan=lifespan,
)

app.add_middleware(TrustedHostMiddleware)


@app.exception_handler(PipelineError)
async def pipeline_error_handler(_: Request, exc: PipelineError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# include routes here
app.include_router(v1.api_router)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "PUT", "POST", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "Accept-Language", "Authorization"],
)
