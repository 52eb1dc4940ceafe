"""Sales aggregation - pure recomputation of status counters from a snapshot"""

from dataclasses import replace
from typing import Iterable, Tuple

from subsgrow_core.domain.models import (
    CLIENT_PARTIAL,
    CLIENT_PENDING,
    VENDOR_CREDIT,
    VENDOR_UNPAID,
    CounterAggregate,
    SaleRecord,
    Snapshot,
)

PENDING_CLIENT_STATUSES = frozenset({CLIENT_PENDING, CLIENT_PARTIAL})
DUE_VENDOR_STATUSES = frozenset({VENDOR_UNPAID, VENDOR_CREDIT})


def _newest_first_key(sale: SaleRecord) -> Tuple[int, int, str]:
    # Descending created_at, then ascending id; id-less records last among equals
    return (-sale.created_at, 1 if sale.id is None else 0, sale.id or "")


def order_snapshot(sales: Iterable[SaleRecord]) -> Snapshot:
    """Sort records newest first with a deterministic tie-break on id"""
    return tuple(sorted(sales, key=_newest_first_key))


def with_derived_finance(sale: SaleRecord) -> SaleRecord:
    """
    Return a copy of the sale with cost and profit totals derived from its items.

    Missing prices count as zero. Sell total and pending amount are left as
    entered on the sale.
    """
    total_cost = 0.0
    total_profit = 0.0
    for item in sale.items:
        cost = item.cost or 0
        total_cost += cost
        total_profit += (item.sell or 0) - cost

    finance = replace(sale.finance, total_cost=total_cost, total_profit=total_profit)
    return replace(sale, finance=finance)


def compute_counters(snapshot: Iterable[SaleRecord], today: str) -> CounterAggregate:
    """
    Derive dashboard counters from a complete snapshot in a single pass.

    Counters:
    - expiring_today: line items whose expiry string equals `today` exactly
      (no date arithmetic, so client/store timezone drift is not corrected)
    - client_pending: sales whose client owes money (Pending or Partial)
    - vendor_due: sales where the vendor is still owed (Unpaid or Credit)
    - total: number of sales
    """
    expiring_today = 0
    client_pending = 0
    vendor_due = 0
    total = 0

    for sale in snapshot:
        total += 1
        expiring_today += sum(1 for item in sale.items if item.expiry_date == today)

        if sale.client.status in PENDING_CLIENT_STATUSES:
            client_pending += 1

        if sale.vendor.status in DUE_VENDOR_STATUSES:
            vendor_due += 1

    return CounterAggregate(
        expiring_today=expiring_today,
        client_pending=client_pending,
        vendor_due=vendor_due,
        total=total,
    )


def prepare_snapshot(sales: Iterable[SaleRecord]) -> Snapshot:
    """Order a raw delivery and derive finance totals for presentation"""
    return order_snapshot(with_derived_finance(sale) for sale in sales)
