"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

# Client payment status values
CLIENT_CLEAR = "Clear"
CLIENT_PENDING = "Pending"
CLIENT_PARTIAL = "Partial"

# Vendor payment status values
VENDOR_PAID = "Paid"
VENDOR_UNPAID = "Unpaid"
VENDOR_CREDIT = "Credit"


@dataclass(frozen=True)
class Party:
    """Client or vendor attached to a sale"""

    name: str
    phone: str
    status: str  # client: Clear | Pending | Partial, vendor: Paid | Unpaid | Credit


@dataclass(frozen=True)
class LineItem:
    """Single subscription sold within a sale"""

    name: str
    expiry_date: str  # YYYY-MM-DD, compared as a plain string
    cost: float
    sell: float
    type: str = "Shared"  # Shared | Private | Screen
    purchase_date: str = ""


@dataclass(frozen=True)
class Finance:
    """Money summary for a sale"""

    total_sell: float = 0.0
    total_cost: float = 0.0
    total_profit: float = 0.0
    pending_amount: float = 0.0


@dataclass(frozen=True)
class SaleRecord:
    """Sale document owned by a tenant, read-only for the engine"""

    id: Optional[str]
    client: Party
    vendor: Party
    items: Tuple[LineItem, ...]
    finance: Finance
    created_at: int  # epoch milliseconds


# Complete, ordered list of live records for a tenant
Snapshot = Tuple[SaleRecord, ...]


@dataclass(frozen=True)
class CounterAggregate:
    """Derived status counters, recomputed from a full snapshot"""

    expiring_today: int = 0
    client_pending: int = 0
    vendor_due: int = 0
    total: int = 0


@dataclass(frozen=True)
class Notification:
    """Operator-facing notification record"""

    message: str
    kind: str  # info | warning | alert | shop_order
    target: str  # user | global
    user_id: Optional[str]
    behavior: str  # moving | fixed
    created_at: int
    expires_at: Optional[int] = None
    read: bool = False
    id: Optional[str] = None


@dataclass(frozen=True)
class TenantSettings:
    """Tenant-level retention configuration"""

    data_retention_months: int = 0
    retention_snooze_until: Optional[int] = None


@dataclass(frozen=True)
class IdentityState:
    """Identity and entitlement snapshot pushed by the auth layer"""

    tenant_id: Optional[str] = None
    entitlement_flags: Dict[str, bool] = field(default_factory=dict)
    retention_months_override: Optional[object] = None
    loading: bool = True


@dataclass(frozen=True)
class RetentionReview:
    """Records past the retention cutoff and records about to cross it"""

    cutoff: int
    old: Tuple[SaleRecord, ...]
    near: Tuple[SaleRecord, ...]
