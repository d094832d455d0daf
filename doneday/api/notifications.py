"""Callbacks from the notification facility and manual sync triggers."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter

from doneday.api.deps import CONTAINER_DEP
from doneday.schemas.common import OkResponse
from doneday.schemas.notifications import (
    AuthorizationChanged,
    NotificationDelivered,
    NotificationResponse,
    SyncReportRead,
)
from doneday.schemas.tasks import TaskRead
from doneday.services.container import ServiceContainer

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.post("/authorization", response_model=OkResponse)
async def authorization_changed(
    payload: AuthorizationChanged,
    container: ServiceContainer = CONTAINER_DEP,
) -> OkResponse:
    container.responses.on_authorization_changed(payload.granted)
    return OkResponse()


@router.post("/delivered", response_model=OkResponse)
async def notification_delivered(
    payload: NotificationDelivered,
    container: ServiceContainer = CONTAINER_DEP,
) -> OkResponse:
    container.responses.on_delivered(payload.task_id)
    return OkResponse()


@router.post("/response", response_model=TaskRead)
async def notification_response(
    payload: NotificationResponse,
    container: ServiceContainer = CONTAINER_DEP,
) -> TaskRead:
    """Apply a reminder action (`complete`, `open`, `snooze:<minutes>`)."""
    task = (await container.responses.on_response(payload.task_id, payload.action)).unwrap()
    return TaskRead.model_validate(task, from_attributes=True)


@router.post("/sync", response_model=SyncReportRead)
async def sync_notifications(container: ServiceContainer = CONTAINER_DEP) -> SyncReportRead:
    """Reconcile pending notifications with the store now."""
    report = (await container.synchronizer.sync()).unwrap()
    return SyncReportRead(**asdict(report))
