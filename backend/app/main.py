from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import (
    activity,
    announcements,
    assignments,
    events,
    general_announcements,
    health,
    settings as settings_routes,
    subjects,
    timetable,
)
from app.core.config import get_settings
from app.core.exceptions import AppError, GenerationError
from app.core.middleware import RequestContextMiddleware
from app.db.bootstrap import ensure_schema

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ensure_schema()
    yield


async def app_error_handler(request: Request, exc: AppError):
    if isinstance(exc, GenerationError) and exc.reason:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.reason)
    else:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "code": exc.code, "details": exc.details},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(RequestContextMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(settings_routes.router, prefix=settings.api_prefix, tags=["settings"])
app.include_router(timetable.router, prefix=settings.api_prefix, tags=["fixed-timetable"])
app.include_router(announcements.router, prefix=settings.api_prefix, tags=["announcements"])
app.include_router(general_announcements.router, prefix=settings.api_prefix, tags=["general-announcements"])
app.include_router(subjects.router, prefix=settings.api_prefix, tags=["subjects"])
app.include_router(events.router, prefix=settings.api_prefix, tags=["events"])
app.include_router(assignments.router, prefix=settings.api_prefix, tags=["assignments"])
app.include_router(activity.router, prefix=settings.api_prefix, tags=["activity"])
