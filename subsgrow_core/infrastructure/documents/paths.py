"""Document-store collection paths"""

NOTIFICATIONS = "notifications"


def sales_history(tenant_id: str) -> str:
    return f"users/{tenant_id}/salesHistory"


def general_settings(tenant_id: str) -> str:
    return f"users/{tenant_id}/settings/general"
