"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, Optional

from subsgrow_core.domain.models import Finance, IdentityState, LineItem, Party, SaleRecord
from subsgrow_core.infrastructure.store.memory import InMemoryDocumentStore, InMemoryKeyValueStore
from subsgrow_core.utils.date_utils import subtract_months, to_epoch_ms

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)
TODAY = "2026-10-17"


class FakeClock:
    """Callable clock that only moves when told to"""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    @property
    def now_ms(self) -> int:
        return to_epoch_ms(self.now)

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def months_ago() -> Callable[[int], int]:
    """Epoch ms of NOW minus whole calendar months"""

    def _months_ago(months: int, days: int = 0) -> int:
        return to_epoch_ms(subtract_months(NOW, months) - timedelta(days=days))

    return _months_ago


@pytest.fixture
def sale_doc() -> Callable[..., Dict[str, Any]]:
    """Factory for raw salesHistory documents in the stored camelCase shape"""

    def _sale_doc(
        created_at: int,
        client_status: str = "Clear",
        vendor_status: str = "Paid",
        expiry_dates: Iterable[str] = ("2026-11-17",),
        cost: float = 5.0,
        sell: float = 8.0,
    ) -> Dict[str, Any]:
        expiry_dates = list(expiry_dates)
        return {
            "client": {"name": "Ayesha", "phone": "+923001234567", "status": client_status},
            "vendor": {"name": "StreamHub", "phone": "+923009876543", "status": vendor_status},
            "items": [
                {
                    "name": "Netflix",
                    "type": "Shared",
                    "pDate": "2026-09-17",
                    "eDate": expiry,
                    "cost": cost,
                    "sell": sell,
                }
                for expiry in expiry_dates
            ],
            "finance": {
                "totalSell": sell * len(expiry_dates),
                "totalCost": 0,
                "totalProfit": 0,
                "pendingAmount": 0,
            },
            "instructions": "",
            "createdAt": created_at,
        }

    return _sale_doc


@pytest.fixture
def make_sale() -> Callable[..., SaleRecord]:
    """Factory for domain SaleRecords"""

    def _make_sale(
        sale_id: Optional[str],
        created_at: int,
        client_status: str = "Clear",
        vendor_status: str = "Paid",
        expiry_dates: Iterable[str] = ("2026-11-17",),
        cost: float = 5.0,
        sell: float = 8.0,
    ) -> SaleRecord:
        expiry_dates = tuple(expiry_dates)
        return SaleRecord(
            id=sale_id,
            client=Party(name="Ayesha", phone="+923001234567", status=client_status),
            vendor=Party(name="StreamHub", phone="+923009876543", status=vendor_status),
            items=tuple(
                LineItem(name="Netflix", expiry_date=expiry, cost=cost, sell=sell)
                for expiry in expiry_dates
            ),
            finance=Finance(total_sell=sell * len(expiry_dates)),
            created_at=created_at,
        )

    return _make_sale


@pytest.fixture
def entitled_identity() -> Callable[..., IdentityState]:
    """Signed-in identity whose plan grants export and a retention window"""

    def _identity(tenant_id: str = "merchant-1", months: object = 3, export: bool = True) -> IdentityState:
        return IdentityState(
            tenant_id=tenant_id,
            entitlement_flags={"export": export, "pdf": True},
            retention_months_override=months,
            loading=False,
        )

    return _identity
