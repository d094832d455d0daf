"""FastAPI application entrypoint and router wiring."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware

from doneday.api.areas import router as areas_router
from doneday.api.errors import router as errors_router
from doneday.api.notifications import router as notifications_router
from doneday.api.projects import router as projects_router
from doneday.api.tags import router as tags_router
from doneday.api.tasks import router as tasks_router
from doneday.core.config import Settings, settings
from doneday.core.error_handling import install_error_handling
from doneday.core.logging import configure_logging, get_logger
from doneday.schemas.health import HealthStatusResponse
from doneday.services.container import ServiceContainer
from doneday.services.notifications.facility import NotificationFacility

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

configure_logging()
logger = get_logger(__name__)
OPENAPI_TAGS = [
    {
        "name": "health",
        "description": "Liveness probe, including persistence and reminder status.",
    },
    {
        "name": "tasks",
        "description": "Task CRUD, smart lists, completion, trash, snooze and tag assignment.",
    },
    {
        "name": "projects",
        "description": "Project CRUD, completion and deletion options, filters and progress.",
    },
    {
        "name": "areas",
        "description": "Area CRUD and the projects and tasks grouped under an area.",
    },
    {
        "name": "tags",
        "description": "Tag catalog and tagged-task lookup.",
    },
    {
        "name": "notifications",
        "description": (
            "Callbacks from the notification facility: permission changes, deliveries "
            "and reminder actions."
        ),
    },
    {
        "name": "errors",
        "description": "The pending user-facing error and its acknowledgement.",
    },
]


def create_app(
    app_settings: Settings | None = None,
    *,
    facility: NotificationFacility | None = None,
) -> FastAPI:
    """Build the API around a service container created at startup."""
    resolved = app_settings or settings

    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "app.lifecycle.starting",
            extra={
                "environment": resolved.environment,
                "db_auto_migrate": resolved.db_auto_migrate,
            },
        )
        container = await ServiceContainer.build(resolved, facility=facility)
        await container.start()
        fastapi_app.state.container = container
        logger.info("app.lifecycle.started")
        try:
            yield
        finally:
            await container.close()
            fastapi_app.state.container = None
            logger.info("app.lifecycle.stopped")

    fastapi_app = FastAPI(
        title="Doneday API",
        version="0.1.0",
        lifespan=lifespan,
        openapi_tags=OPENAPI_TAGS,
    )

    origins = [o.strip() for o in resolved.cors_origins.split(",") if o.strip()]
    if origins:
        fastapi_app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        logger.info("app.cors.enabled", extra={"origins_count": len(origins)})

    install_error_handling(fastapi_app)

    @fastapi_app.get(
        "/health",
        tags=["health"],
        response_model=HealthStatusResponse,
        summary="Health Check",
        responses={
            status.HTTP_200_OK: {
                "description": "Service is alive.",
                "content": {
                    "application/json": {
                        "example": {"ok": True, "persisted": True, "reminders_degraded": False},
                    },
                },
            },
        },
    )
    def health(request: Request) -> HealthStatusResponse:
        """Liveness probe; also reports the in-memory fallback and reminder state."""
        container: ServiceContainer | None = getattr(request.app.state, "container", None)
        if container is None:
            return HealthStatusResponse(ok=False, persisted=False, reminders_degraded=False)
        return HealthStatusResponse(
            ok=True,
            persisted=container.store.persisted,
            reminders_degraded=container.synchronizer.degraded,
        )

    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(tasks_router)
    api_v1.include_router(projects_router)
    api_v1.include_router(areas_router)
    api_v1.include_router(tags_router)
    api_v1.include_router(notifications_router)
    api_v1.include_router(errors_router)
    fastapi_app.include_router(api_v1)
    logger.debug("app.routes.registered", extra={"count": len(fastapi_app.routes)})
    return fastapi_app


app = create_app()
