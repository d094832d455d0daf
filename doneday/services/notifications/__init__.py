"""Reminder delivery: facility boundary, reconciliation and response handling."""

from doneday.services.notifications.facility import (
    InMemoryNotificationFacility,
    NotificationFacility,
    NotificationRequest,
)
from doneday.services.notifications.responses import NotificationResponseHandler
from doneday.services.notifications.synchronizer import NotificationSynchronizer, SyncReport

__all__ = [
    "InMemoryNotificationFacility",
    "NotificationFacility",
    "NotificationRequest",
    "NotificationResponseHandler",
    "NotificationSynchronizer",
    "SyncReport",
]
