"""
FastAPI application entry point.

Configures shared clients, middleware, routes, and exception handlers.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
import redis.asyncio as aioredis
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError
from starlette.exceptions import HTTPException

from app.clients.employee_directory import EmployeeDirectory
from app.core.config import settings
from app.core.database import create_engine, create_session_factory
from app.core.logging import configure_logging, log_requests

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    configure_logging()
    logger.info("Starting TaskTrack API in %s mode", settings.ENVIRONMENT)

    engine = create_engine()
    redis = aioredis.from_url(str(settings.REDIS_URL), encoding="utf-8", decode_responses=True)
    http_client = httpx.AsyncClient()

    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.redis = redis
    app.state.http_client = http_client
    app.state.employee_directory = EmployeeDirectory(
        http_client,
        settings.EMPLOYEE_SERVICE_BASE_URL,
        token=settings.ATTENDANCE_API_ACCESS_TOKEN,
        redis=redis,
        cache_ttl=settings.EMPLOYEE_CACHE_TTL_SECONDS,
        timeout=settings.EMPLOYEE_SERVICE_TIMEOUT_SECONDS,
    )
    yield

    logger.info("Shutting down TaskTrack API")
    await http_client.aclose()
    await redis.aclose()
    await engine.dispose()


app = FastAPI(
    title="TaskTrack API",
    description="Projects, issues, sprints and sprint time tracking",
    version="1.0.0",
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
    openapi_url="/api/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)
app.middleware("http")(log_requests)


def error_body(message: str, code: str | None = None, **extra) -> dict:
    body = {"success": False, "message": message}
    if code:
        body["code"] = code
    body.update(extra)
    return body


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    if isinstance(exc.detail, dict):
        content = error_body(exc.detail.get("message", ""), exc.detail.get("code"))
    else:
        content = error_body(str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(
            "Validation error", "VALIDATION_ERROR", errors=jsonable_encoder(exc.errors())
        ),
    )


@app.exception_handler(StaleDataError)
async def stale_data_handler(request: Request, exc: StaleDataError) -> JSONResponse:
    logger.warning("Concurrent sprint update on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=error_body("Sprint was modified concurrently, retry", "CONCURRENT_UPDATE"),
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=error_body("Request conflicts with existing data", "CONFLICT"),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = str(exc) if settings.DEBUG else "An unexpected error occurred"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(message, "INTERNAL_SERVER_ERROR"),
    )


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    return {
        "status": "ok",
        "environment": settings.ENVIRONMENT,
        "version": "1.0.0",
    }


from app.routers import backlogs, employees, issues, projects, releases, reports, sprints

app.include_router(projects.router, prefix="/api/projects", tags=["Projects"])
app.include_router(issues.router, prefix="/api/issues", tags=["Issues"])
app.include_router(sprints.router, prefix="/api/sprints", tags=["Sprints"])
app.include_router(reports.router, prefix="/api/reports", tags=["Reports"])
app.include_router(releases.router, prefix="/api/releases", tags=["Releases"])
app.include_router(backlogs.router, prefix="/api/backlogs", tags=["Backlogs"])
app.include_router(employees.router, prefix="/api/users", tags=["Employees"])
