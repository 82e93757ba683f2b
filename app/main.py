import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.cache.store import build_cache_store
from app.core.config import get_settings
from app.core.errors import AppError
from app.core.logging import configure_logging
from app.database import create_engine, create_session_factory
from app.repositories.task_repository import TaskRepository
from app.repositories.user_repository import UserRepository
from app.routers import tasks, users
from app.services.task_service import TaskService
from app.services.user_service import UserService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)

    engine = create_engine(settings)
    session_factory = create_session_factory(engine)
    cache = await build_cache_store(settings)

    app.state.task_service = TaskService(
        TaskRepository(session_factory),
        cache=cache,
        list_ttl_seconds=settings.task_list_ttl_seconds,
    )
    app.state.user_service = UserService(
        UserRepository(session_factory),
        jwt_secret=settings.jwt_secret,
        jwt_ttl_seconds=settings.jwt_ttl_seconds,
    )
    cache_state = "enabled" if cache is not None else "disabled"
    logger.info(f"Task API started (cache {cache_state})")
    yield

    if cache is not None:
        await cache.close()
    await engine.dispose()
    logger.info("Task API stopped")


app = FastAPI(
    title="Task Management API",
    description="Multi-user async task API with PostgreSQL, SQLModel and a Redis list cache",
    swagger_ui_parameters={"displayRequestDuration": True},
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# Include routers
app.include_router(users.router)
app.include_router(tasks.router)


@app.get("/")
async def root():
    return {
        "message": "Welcome to Task Management API",
        "docs": "/docs",
        "version": "1.0.0",
    }


@app.get("/health")
async def health_check(request: Request):
    task_service = getattr(request.app.state, "task_service", None)
    cache_enabled = task_service is not None and task_service.cache is not None
    return {
        "status": "healthy",
        "cache": "enabled" if cache_enabled else "disabled",
    }
