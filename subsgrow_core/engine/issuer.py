"""Notification issuer - writes the retention warning document"""

from dataclasses import replace

from subsgrow_core.config import settings
from subsgrow_core.domain.exceptions import WriteError
from subsgrow_core.domain.models import Notification
from subsgrow_core.domain.notifications import build_retention_warning
from subsgrow_core.infrastructure.documents import paths
from subsgrow_core.infrastructure.documents.schemas import notification_to_document
from subsgrow_core.infrastructure.store.base import DocumentStore
from subsgrow_core.utils.date_utils import MS_PER_HOUR


class NotificationIssuer:
    """Single insert per call, no retry; the next open cycle retries"""

    def __init__(self, store: DocumentStore, ttl_hours: float | None = None):
        self.store = store
        hours = settings.retention_warning_ttl_hours if ttl_hours is None else ttl_hours
        self.ttl_ms = int(hours * MS_PER_HOUR)

    async def issue_retention_warning(self, tenant_id: str, now_ms: int) -> Notification:
        """
        Raises:
            WriteError: When the insert fails (nothing is persisted)
        """
        notification = build_retention_warning(tenant_id, now_ms, self.ttl_ms)

        try:
            doc_id = await self.store.insert(paths.NOTIFICATIONS, notification_to_document(notification))
        except Exception as e:
            raise WriteError(f"Failed to create retention warning for tenant {tenant_id}: {e}") from e

        return replace(notification, id=doc_id)
