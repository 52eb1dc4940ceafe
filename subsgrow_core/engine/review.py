"""Owner retention review - inspect, purge and snooze per tenant"""

import logging
from datetime import datetime
from typing import Callable

from subsgrow_core.config import settings
from subsgrow_core.domain.exceptions import QueryError, WriteError
from subsgrow_core.domain.models import RetentionReview, TenantSettings
from subsgrow_core.domain.retention import build_review
from subsgrow_core.infrastructure.documents import paths
from subsgrow_core.infrastructure.documents.schemas import sales_from_documents, settings_from_document
from subsgrow_core.infrastructure.store.base import DocumentStore
from subsgrow_core.utils.date_utils import add_days_ms, local_now, to_epoch_ms

logger = logging.getLogger(__name__)


class RetentionReviewService:
    """Point-read tooling for the owner console; independent of live sessions"""

    def __init__(
        self,
        store: DocumentStore,
        clock: Callable[[], datetime] = local_now,
        near_days: int | None = None,
    ):
        self.store = store
        self.clock = clock
        self.near_days = settings.retention_review_near_days if near_days is None else near_days

    async def review(self, tenant_id: str, months: int) -> RetentionReview:
        """
        Partition a tenant's sales against a retention window.

        Raises:
            QueryError: When the sales read fails
        """
        if months <= 0:
            return build_review((), self.clock(), 0)

        try:
            documents = await self.store.query(paths.sales_history(tenant_id))
        except Exception as e:
            raise QueryError(f"Sales read failed for tenant {tenant_id}: {e}") from e

        return build_review(sales_from_documents(documents), self.clock(), months, self.near_days)

    async def purge_old(self, tenant_id: str, months: int) -> int:
        """
        Delete every record past the review cutoff in one batch.

        Export first: deletion is permanent.

        Raises:
            QueryError: When the sales read fails
            WriteError: When the batch delete fails
        """
        review = await self.review(tenant_id, months)
        ids = [sale.id for sale in review.old if sale.id]
        if not ids:
            return 0

        try:
            removed = await self.store.delete_many(paths.sales_history(tenant_id), ids)
        except Exception as e:
            raise WriteError(f"Batch delete failed for tenant {tenant_id}: {e}") from e

        logger.info(
            "Purged records past retention",
            extra={"tenant_id": tenant_id, "retention_months": months, "removed": removed},
        )
        return removed

    async def snooze(self, tenant_id: str, days: int | None = None) -> int:
        """
        Suppress retention prompts for a number of days; returns the snooze end (epoch ms).

        Raises:
            WriteError: When the settings write fails
        """
        days = settings.retention_snooze_days if days is None else days
        until = add_days_ms(to_epoch_ms(self.clock()), days)

        try:
            await self.store.set(
                paths.general_settings(tenant_id),
                {"retentionSnoozeUntil": until},
                merge=True,
            )
        except Exception as e:
            raise WriteError(f"Snooze write failed for tenant {tenant_id}: {e}") from e

        logger.info("Retention prompts snoozed", extra={"tenant_id": tenant_id, "snooze_until": until})
        return until

    async def tenant_settings(self, tenant_id: str) -> TenantSettings:
        """
        Raises:
            QueryError: When the settings read fails
        """
        try:
            data = await self.store.get(paths.general_settings(tenant_id))
        except Exception as e:
            raise QueryError(f"Settings read failed for tenant {tenant_id}: {e}") from e
        return settings_from_document(data)
