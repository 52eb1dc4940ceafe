"""Change feed subscriber - tenant-scoped live queries over sales and shop orders"""

import logging
from typing import Callable, List, Optional

from subsgrow_core.domain.exceptions import SubscriptionError
from subsgrow_core.domain.models import Snapshot
from subsgrow_core.infrastructure.documents import paths
from subsgrow_core.infrastructure.documents.schemas import sales_from_documents
from subsgrow_core.infrastructure.observability.metrics import feed_error_counter, snapshot_counter
from subsgrow_core.infrastructure.store.base import Document, DocumentStore, Subscription

logger = logging.getLogger(__name__)

SnapshotHandler = Callable[[str, Snapshot], None]
ErrorHandler = Callable[[str, SubscriptionError], None]
CountHandler = Callable[[str, int], None]


class ChangeFeedSubscriber:
    """
    Owns the live queries for exactly one tenant at a time.

    attach() always releases the previous tenant's queries before opening new
    ones. Every attach/detach bumps a generation number; deliveries carrying
    an older generation are dropped, so a late callback from a released
    query can never leak into another tenant's state.
    """

    def __init__(
        self,
        store: DocumentStore,
        on_snapshot: SnapshotHandler,
        on_error: ErrorHandler,
        on_mart_orders: Optional[CountHandler] = None,
    ):
        self.store = store
        self.on_snapshot = on_snapshot
        self.on_error = on_error
        self.on_mart_orders = on_mart_orders
        self._subscriptions: List[Subscription] = []
        self._generation = 0
        self._tenant_id: Optional[str] = None

    @property
    def tenant_id(self) -> Optional[str]:
        return self._tenant_id

    @property
    def attached(self) -> bool:
        return bool(self._subscriptions)

    def attach(self, tenant_id: str) -> None:
        self.detach()

        self._generation += 1
        generation = self._generation
        self._tenant_id = tenant_id

        self._subscriptions.append(
            self.store.subscribe(
                paths.sales_history(tenant_id),
                lambda docs: self._handle_sales(generation, tenant_id, docs),
                lambda error: self._handle_error(generation, tenant_id, error),
            )
        )

        if self.on_mart_orders is not None:
            self._subscriptions.append(
                self.store.subscribe(
                    paths.NOTIFICATIONS,
                    lambda docs: self._handle_mart_orders(generation, tenant_id, docs),
                    lambda error: self._handle_mart_orders_error(generation, tenant_id, error),
                    filters=[
                        ("userId", "==", tenant_id),
                        ("type", "==", "shop_order"),
                        ("read", "==", False),
                    ],
                )
            )

        logger.info("Change feed attached", extra={"tenant_id": tenant_id})

    def detach(self) -> None:
        if not self._subscriptions and self._tenant_id is None:
            return

        for subscription in self._subscriptions:
            subscription.close()
        self._subscriptions = []
        self._generation += 1

        logger.info("Change feed detached", extra={"tenant_id": self._tenant_id})
        self._tenant_id = None

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _handle_sales(self, generation: int, tenant_id: str, documents: List[Document]) -> None:
        if not self._is_current(generation):
            logger.debug("Dropping stale sales delivery", extra={"tenant_id": tenant_id})
            return

        snapshot_counter.inc()
        self.on_snapshot(tenant_id, tuple(sales_from_documents(documents)))

    def _handle_mart_orders(self, generation: int, tenant_id: str, documents: List[Document]) -> None:
        if self._is_current(generation):
            self.on_mart_orders(tenant_id, len(documents))

    def _handle_error(self, generation: int, tenant_id: str, error: Exception) -> None:
        if not self._is_current(generation):
            return

        feed_error_counter.inc()
        if not isinstance(error, SubscriptionError):
            wrapped = SubscriptionError(f"Live query failed for tenant {tenant_id}: {error}")
            wrapped.__cause__ = error
            error = wrapped

        logger.warning(str(error), extra={"tenant_id": tenant_id})
        self.on_error(tenant_id, error)

    def _handle_mart_orders_error(self, generation: int, tenant_id: str, error: Exception) -> None:
        # Shop-order badge failures never touch the sales view
        if not self._is_current(generation):
            return

        feed_error_counter.inc()
        logger.warning(
            f"Shop order live query failed for tenant {tenant_id}: {error}",
            extra={"tenant_id": tenant_id},
        )
