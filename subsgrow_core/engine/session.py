"""Tenant session - wires identity, change feed, sales view and retention enforcement"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional, Set

from subsgrow_core.domain.exceptions import SubscriptionError
from subsgrow_core.domain.models import CounterAggregate, IdentityState, Snapshot
from subsgrow_core.domain.retention import effective_retention_months
from subsgrow_core.engine.orchestrator import CycleOutcome, EvaluationContext, RetentionEnforcer
from subsgrow_core.engine.sales_view import SalesView
from subsgrow_core.engine.subscriber import ChangeFeedSubscriber
from subsgrow_core.infrastructure.store.base import AlertSink, DocumentStore, KeyValueStore
from subsgrow_core.utils.date_utils import local_now

logger = logging.getLogger(__name__)


class TenantSession:
    """
    Embedded engine for one signed-in console session.

    Must be driven from a running event loop: snapshot and identity updates
    are applied synchronously, then an evaluation cycle is scheduled as a
    task. Scope changes and close() do not cancel cycles already running;
    they finish against the context they captured.
    """

    def __init__(
        self,
        store: DocumentStore,
        cooldown_store: KeyValueStore,
        alerts: Optional[AlertSink] = None,
        clock: Callable[[], datetime] = local_now,
        enforcer: Optional[RetentionEnforcer] = None,
    ):
        self.store = store
        self.view = SalesView(clock)
        self.enforcer = enforcer or RetentionEnforcer(store, cooldown_store, alerts=alerts, clock=clock)
        self.subscriber = ChangeFeedSubscriber(
            store,
            on_snapshot=self._on_snapshot,
            on_error=self._on_feed_error,
            on_mart_orders=self._on_mart_orders,
        )
        self.identity = IdentityState()
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False

    # Read model

    @property
    def tenant_id(self) -> Optional[str]:
        return self.identity.tenant_id

    @property
    def sales(self) -> Snapshot:
        return self.view.sales

    @property
    def counters(self) -> CounterAggregate:
        return self.view.counters

    @property
    def mart_orders(self) -> int:
        return self.view.mart_orders

    @property
    def loading(self) -> bool:
        return self.view.loading

    @property
    def effective_months(self) -> int:
        return effective_retention_months(self.identity.retention_months_override)

    # Inputs

    def update_identity(self, identity: IdentityState) -> None:
        """Apply a pushed identity/entitlement state"""
        if self._closed:
            return

        previous_tenant = self.identity.tenant_id
        self.identity = identity

        if identity.tenant_id != previous_tenant:
            self._switch_tenant(identity.tenant_id)

        self._schedule_evaluation()

    def _switch_tenant(self, tenant_id: Optional[str]) -> None:
        # Old feed is released before the view is reset and the new one opens
        self.subscriber.detach()
        self.view.reset(tenant_id)
        if tenant_id:
            self.subscriber.attach(tenant_id)

    def _on_snapshot(self, tenant_id: str, sales: Snapshot) -> None:
        if tenant_id != self.view.tenant_id:
            return
        self.view.apply_snapshot(sales)
        self._schedule_evaluation()

    def _on_feed_error(self, tenant_id: str, error: SubscriptionError) -> None:
        if tenant_id != self.view.tenant_id:
            return
        self.view.apply_error(error)
        self._schedule_evaluation()

    def _on_mart_orders(self, tenant_id: str, count: int) -> None:
        if tenant_id == self.view.tenant_id:
            self.view.apply_mart_orders(count)

    # Evaluation

    def _context(self) -> EvaluationContext:
        return EvaluationContext(
            tenant_id=self.identity.tenant_id,
            snapshot=self.view.sales,
            loading=self.identity.loading or self.view.loading,
            entitlement_flags=dict(self.identity.entitlement_flags),
            effective_months=self.effective_months,
        )

    def _schedule_evaluation(self) -> None:
        if self._closed or not self.identity.tenant_id:
            return

        task = asyncio.get_running_loop().create_task(self._evaluate(self._context()))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _evaluate(self, context: EvaluationContext) -> Optional[CycleOutcome]:
        try:
            return await self.enforcer.evaluate(context)
        except Exception:
            logger.exception("Retention cycle crashed", extra={"tenant_id": context.tenant_id})
            return None

    async def wait_idle(self) -> None:
        """Wait until no evaluation cycle is pending"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def aclose(self) -> None:
        """Release live queries, then let in-flight cycles finish"""
        self._closed = True
        self.subscriber.detach()
        await self.wait_idle()
