"""Engine factory - builds a tenant session from configured collaborators"""

from datetime import datetime
from typing import Callable, Optional

from subsgrow_core.config import settings
from subsgrow_core.engine.review import RetentionReviewService
from subsgrow_core.engine.session import TenantSession
from subsgrow_core.infrastructure.clients.alerts import LoggingAlertSink, WebhookAlertSink
from subsgrow_core.infrastructure.database.repositories import SqlKeyValueStore
from subsgrow_core.infrastructure.observability.logging import setup_logging
from subsgrow_core.infrastructure.store.base import AlertSink, DocumentStore, KeyValueStore
from subsgrow_core.utils.date_utils import local_now

# Setup structured logging
setup_logging(settings.log_level)


def get_alert_sink() -> AlertSink:
    """Webhook alerts when a URL is configured, log-only otherwise"""
    if settings.alert_webhook_url:
        return WebhookAlertSink()
    return LoggingAlertSink()


def get_cooldown_store() -> KeyValueStore:
    """Durable cooldown state in the configured database"""
    return SqlKeyValueStore()


def create_session(
    store: DocumentStore,
    cooldown_store: Optional[KeyValueStore] = None,
    alerts: Optional[AlertSink] = None,
    clock: Callable[[], datetime] = local_now,
) -> TenantSession:
    """Create the embedded engine for one console session"""
    return TenantSession(
        store,
        cooldown_store if cooldown_store is not None else get_cooldown_store(),
        alerts=alerts if alerts is not None else get_alert_sink(),
        clock=clock,
    )


def create_review_service(
    store: DocumentStore,
    clock: Callable[[], datetime] = local_now,
) -> RetentionReviewService:
    return RetentionReviewService(store, clock=clock)
