from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

import hoist.models as _models  # noqa: F401, registers tables with SQLModel metadata
from hoist.config import settings
from hoist.database import create_db_and_tables
from hoist.errors import NotFoundError, ValidationError
from hoist.logging_config import configure_logging
from hoist.routers import sets, workouts

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    create_db_and_tables()
    logger.info("app_starting", app_name=settings.APP_NAME, environment=settings.APP_ENV)
    yield
    logger.info("app_shutting_down", app_name=settings.APP_NAME)


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.include_router(workouts.router, prefix="/api/workouts", tags=["workouts"])
app.include_router(sets.router, prefix="/api/workouts", tags=["sets"])


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    logger.info("not_found", path=request.url.path, entity=exc.entity, key=str(exc.key))
    return JSONResponse(
        status_code=404,
        content={"detail": str(exc), "entity": exc.entity, "key": str(exc.key)},
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    logger.info("validation_failed", path=request.url.path, errors=exc.errors_by_field())
    return JSONResponse(
        status_code=400,
        content={
            "detail": "One or more validation failures have occurred.",
            "errors": exc.errors_by_field(),
        },
    )


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
