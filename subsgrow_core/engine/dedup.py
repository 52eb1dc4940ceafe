"""Dedup check - looks for a retention warning already addressed to the tenant"""

from subsgrow_core.domain.exceptions import QueryError
from subsgrow_core.domain.notifications import TARGET_USER, has_retention_warning
from subsgrow_core.infrastructure.documents import paths
from subsgrow_core.infrastructure.documents.schemas import notifications_from_documents
from subsgrow_core.infrastructure.store.base import DocumentStore


class RetentionDedupCheck:
    """Point read over the tenant's user-targeted notifications"""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def has_existing_warning(self, tenant_id: str) -> bool:
        """
        Raises:
            QueryError: When the notifications lookup fails
        """
        try:
            documents = await self.store.query(
                paths.NOTIFICATIONS,
                [("target", "==", TARGET_USER), ("userId", "==", tenant_id)],
            )
        except QueryError:
            raise
        except Exception as e:
            raise QueryError(f"Notification lookup failed for tenant {tenant_id}: {e}") from e

        return has_retention_warning(notifications_from_documents(documents))
