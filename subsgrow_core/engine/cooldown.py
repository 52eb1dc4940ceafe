"""Cooldown gate - throttles retention evaluation per (tenant, months)"""

import logging
from typing import Optional

from subsgrow_core.config import settings
from subsgrow_core.infrastructure.store.base import KeyValueStore
from subsgrow_core.utils.date_utils import MS_PER_HOUR

logger = logging.getLogger(__name__)


def cooldown_key(tenant_id: str, months: int) -> str:
    return f"retention:lastWarnAt:{tenant_id}:{months}"


class CooldownGate:
    """
    Durable last-attempt timestamps keyed by tenant and effective months.

    The gate limits how often the evaluation cycle runs, not how often a
    notification is created: a cycle that finds an existing warning still
    records its attempt.
    """

    def __init__(self, store: KeyValueStore, interval_hours: float | None = None):
        self.store = store
        hours = settings.retention_cooldown_hours if interval_hours is None else interval_hours
        self.interval_ms = int(hours * MS_PER_HOUR)

    def last_attempt(self, tenant_id: str, months: int) -> Optional[int]:
        raw = self.store.get(cooldown_key(tenant_id, months))
        if raw is None:
            return None
        try:
            return int(float(raw))
        except ValueError:
            logger.warning(
                "Unreadable cooldown timestamp, treating gate as open",
                extra={"tenant_id": tenant_id, "retention_months": months},
            )
            return None

    def is_open(self, tenant_id: str, months: int, now_ms: int) -> bool:
        last = self.last_attempt(tenant_id, months)
        return last is None or now_ms - last >= self.interval_ms

    def record_attempt(self, tenant_id: str, months: int, now_ms: int) -> int:
        """Store now_ms unless a later attempt is already recorded; returns the stored value"""
        last = self.last_attempt(tenant_id, months)
        if last is not None and last > now_ms:
            return last

        self.store.set(cooldown_key(tenant_id, months), str(now_ms))
        return now_ms
