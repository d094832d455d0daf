"""Public schema exports shared across repositories and API route modules."""

from doneday.schemas.areas import AreaCreate, AreaRead, AreaUpdate
from doneday.schemas.common import OkResponse
from doneday.schemas.errors import ErrorRead
from doneday.schemas.health import HealthStatusResponse
from doneday.schemas.notifications import (
    AuthorizationChanged,
    NotificationDelivered,
    NotificationResponse,
    SyncReportRead,
)
from doneday.schemas.projects import (
    ProjectCompletePayload,
    ProjectCompletionOption,
    ProjectCreate,
    ProjectDeletionOption,
    ProjectFilter,
    ProjectProgressRead,
    ProjectRead,
    ProjectUpdate,
)
from doneday.schemas.tags import TagCreate, TagRead, TagUpdate
from doneday.schemas.tasks import (
    TaskCreate,
    TaskRead,
    TaskSnoozePayload,
    TaskTagsUpdate,
    TaskUpdate,
)

__all__ = [
    "AreaCreate",
    "AreaRead",
    "AreaUpdate",
    "AuthorizationChanged",
    "ErrorRead",
    "HealthStatusResponse",
    "NotificationDelivered",
    "NotificationResponse",
    "OkResponse",
    "ProjectCompletePayload",
    "ProjectCompletionOption",
    "ProjectCreate",
    "ProjectDeletionOption",
    "ProjectFilter",
    "ProjectProgressRead",
    "ProjectRead",
    "ProjectUpdate",
    "SyncReportRead",
    "TagCreate",
    "TagRead",
    "TagUpdate",
    "TaskCreate",
    "TaskRead",
    "TaskSnoozePayload",
    "TaskTagsUpdate",
    "TaskUpdate",
]
