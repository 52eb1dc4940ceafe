"""Retention enforcement orchestrator - one evaluation cycle per trigger"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Mapping, Optional

from subsgrow_core.config import settings
from subsgrow_core.domain.exceptions import QueryError, WriteError
from subsgrow_core.domain.models import Snapshot
from subsgrow_core.domain.retention import records_past_cutoff, retention_cutoff
from subsgrow_core.engine.cooldown import CooldownGate
from subsgrow_core.engine.dedup import RetentionDedupCheck
from subsgrow_core.engine.issuer import NotificationIssuer
from subsgrow_core.infrastructure.documents import paths
from subsgrow_core.infrastructure.documents.schemas import settings_from_document
from subsgrow_core.infrastructure.observability.logging import log_cycle
from subsgrow_core.infrastructure.observability.metrics import record_cycle
from subsgrow_core.infrastructure.store.base import AlertSink, DocumentStore, KeyValueStore
from subsgrow_core.utils.date_utils import local_now, to_epoch_ms

logger = logging.getLogger(__name__)

ISSUED_ALERT_MESSAGE = "Retention warning issued - check notifications."


class CycleOutcome(str, Enum):
    """Result of one evaluation; the first group never touches the store"""

    NOT_READY = "not_ready"
    NOT_ENTITLED = "not_entitled"
    DISABLED = "disabled"
    COOLDOWN = "cooldown"
    NOTHING_EXPIRED = "nothing_expired"
    SNOOZED = "snoozed"
    ISSUED = "issued"
    SUPPRESSED = "suppressed"
    QUERY_FAILED = "query_failed"
    WRITE_FAILED = "write_failed"


@dataclass(frozen=True)
class EvaluationContext:
    """Inputs captured at trigger time; a cycle never re-reads session state"""

    tenant_id: Optional[str]
    snapshot: Snapshot
    loading: bool
    entitlement_flags: Mapping[str, bool] = field(default_factory=dict)
    effective_months: int = 0


class RetentionEnforcer:
    """
    Runs the gated retention warning cycle:
    cooldown gate -> snooze check -> dedup query -> issue -> record attempt

    Cycles for the same tenant are serialized by a per-tenant lock, and the
    preconditions are checked again once the lock is held, so overlapping
    triggers cannot both pass an open gate and create two warnings.
    """

    def __init__(
        self,
        store: DocumentStore,
        cooldown_store: KeyValueStore,
        alerts: Optional[AlertSink] = None,
        clock: Callable[[], datetime] = local_now,
        required_feature: str | None = None,
        cooldown_hours: float | None = None,
        warning_ttl_hours: float | None = None,
    ):
        self.store = store
        self.alerts = alerts
        self.clock = clock
        self.required_feature = required_feature or settings.retention_required_feature
        self.gate = CooldownGate(cooldown_store, cooldown_hours)
        self.dedup = RetentionDedupCheck(store)
        self.issuer = NotificationIssuer(store, warning_ttl_hours)
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, tenant_id: str) -> asyncio.Lock:
        lock = self._locks.get(tenant_id)
        if lock is None:
            lock = self._locks[tenant_id] = asyncio.Lock()
        return lock

    def _precheck(self, context: EvaluationContext, now: datetime) -> Optional[CycleOutcome]:
        """Cheap local checks, in the order they short-circuit"""
        if not context.tenant_id or context.loading:
            return CycleOutcome.NOT_READY
        if not context.entitlement_flags.get(self.required_feature, False):
            return CycleOutcome.NOT_ENTITLED

        months = context.effective_months
        if months <= 0:
            return CycleOutcome.DISABLED
        if not self.gate.is_open(context.tenant_id, months, to_epoch_ms(now)):
            return CycleOutcome.COOLDOWN
        if not records_past_cutoff(context.snapshot, retention_cutoff(now, months)):
            return CycleOutcome.NOTHING_EXPIRED
        return None

    async def evaluate(self, context: EvaluationContext) -> CycleOutcome:
        skipped = self._precheck(context, self.clock())
        if skipped is not None:
            return skipped

        async with self._lock_for(context.tenant_id):
            now = self.clock()
            skipped = self._precheck(context, now)
            if skipped is not None:
                return skipped

            start_time = time.time()
            outcome = await self._run_cycle(context.tenant_id, context.effective_months, to_epoch_ms(now))
            duration = time.time() - start_time

            record_cycle(outcome.value, duration)
            log_cycle(context.tenant_id, context.effective_months, outcome.value, duration * 1000)

        if outcome in (CycleOutcome.ISSUED, CycleOutcome.SUPPRESSED):
            await self._alert(ISSUED_ALERT_MESSAGE)
        return outcome

    async def _run_cycle(self, tenant_id: str, months: int, now_ms: int) -> CycleOutcome:
        snooze_until = await self._snooze_until(tenant_id)
        if snooze_until is not None and snooze_until > now_ms:
            logger.info(
                "Retention prompts snoozed",
                extra={"tenant_id": tenant_id, "snooze_until": snooze_until},
            )
            self.gate.record_attempt(tenant_id, months, now_ms)
            return CycleOutcome.SNOOZED

        try:
            duplicate = await self.dedup.has_existing_warning(tenant_id)
        except QueryError as e:
            # Cooldown is left untouched so the next tick retries
            logger.warning(str(e), extra={"tenant_id": tenant_id, "step": "dedup_query"})
            return CycleOutcome.QUERY_FAILED

        if not duplicate:
            try:
                notification = await self.issuer.issue_retention_warning(tenant_id, now_ms)
            except WriteError as e:
                logger.error(str(e), extra={"tenant_id": tenant_id, "step": "issue_warning"})
                return CycleOutcome.WRITE_FAILED
            logger.info(
                "Retention warning issued",
                extra={"tenant_id": tenant_id, "notification_id": notification.id},
            )

        self.gate.record_attempt(tenant_id, months, now_ms)
        return CycleOutcome.SUPPRESSED if duplicate else CycleOutcome.ISSUED

    async def _snooze_until(self, tenant_id: str) -> Optional[int]:
        """Owner snooze deadline; an unreadable settings document means no snooze"""
        try:
            data = await self.store.get(paths.general_settings(tenant_id))
        except Exception as e:
            logger.warning(
                f"Settings read failed for tenant {tenant_id}: {e}",
                extra={"tenant_id": tenant_id, "step": "settings_read"},
            )
            return None
        return settings_from_document(data).retention_snooze_until

    async def _alert(self, message: str) -> None:
        if self.alerts is None:
            return
        try:
            await self.alerts.notify(message, "info")
        except Exception as e:
            logger.warning(f"Operator alert failed: {e}")
