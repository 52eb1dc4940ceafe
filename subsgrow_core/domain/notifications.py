"""Retention warning construction and matching"""

from typing import Iterable

from subsgrow_core.domain.models import Notification

RETENTION_WARNING_MESSAGE = (
    "Your data retention window is reached. Upgrade your plan to extend retention."
)
RETENTION_KEYWORD = "retention"

KIND_WARNING = "warning"
TARGET_USER = "user"
BEHAVIOR_FIXED = "fixed"


def build_retention_warning(tenant_id: str, now_ms: int, ttl_ms: int) -> Notification:
    """Non-dismissible upgrade prompt addressed to one tenant"""
    return Notification(
        message=RETENTION_WARNING_MESSAGE,
        kind=KIND_WARNING,
        target=TARGET_USER,
        user_id=tenant_id,
        behavior=BEHAVIOR_FIXED,
        created_at=now_ms,
        expires_at=now_ms + ttl_ms,
    )


def is_retention_warning(notification: Notification) -> bool:
    """
    True for a warning whose text mentions retention (any case).

    Matches on free-form message text; rewording the warning message without
    keeping the keyword breaks deduplication.
    """
    return (
        notification.kind == KIND_WARNING
        and RETENTION_KEYWORD in (notification.message or "").lower()
    )


def has_retention_warning(notifications: Iterable[Notification]) -> bool:
    return any(is_retention_warning(n) for n in notifications)
