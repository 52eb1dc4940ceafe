"""Live sales view - latest snapshot and the counters derived from it"""

from datetime import datetime
from typing import Callable, Iterable, Optional

from subsgrow_core.domain.aggregation import compute_counters, prepare_snapshot
from subsgrow_core.domain.models import CounterAggregate, SaleRecord, Snapshot
from subsgrow_core.utils.date_utils import local_now, today_string


class SalesView:
    """
    Holds the most recently delivered snapshot for one tenant.

    Counters are replaced wholesale on every snapshot, never patched. A feed
    error only clears the loading flag; the previous snapshot and counters
    stay in place.
    """

    def __init__(self, clock: Callable[[], datetime] = local_now):
        self.clock = clock
        self.tenant_id: Optional[str] = None
        self.sales: Snapshot = ()
        self.counters = CounterAggregate()
        self.mart_orders = 0
        self.loading = False
        self.last_error: Optional[Exception] = None

    def reset(self, tenant_id: Optional[str]) -> None:
        """Clear everything for a new scope; loading until its first snapshot"""
        self.tenant_id = tenant_id
        self.sales = ()
        self.counters = CounterAggregate()
        self.mart_orders = 0
        self.loading = tenant_id is not None
        self.last_error = None

    def apply_snapshot(self, sales: Iterable[SaleRecord]) -> Snapshot:
        snapshot = prepare_snapshot(sales)
        self.sales = snapshot
        self.counters = compute_counters(snapshot, today_string(self.clock()))
        self.loading = False
        return snapshot

    def apply_error(self, error: Exception) -> None:
        self.last_error = error
        self.loading = False

    def apply_mart_orders(self, count: int) -> None:
        self.mart_orders = count
