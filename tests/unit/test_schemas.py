"""Unit tests for document-store payload conversion"""

from subsgrow_core.domain.models import Notification
from subsgrow_core.infrastructure.documents.schemas import (
    notification_from_document,
    notification_to_document,
    sale_from_document,
    sales_from_documents,
    settings_from_document,
)
from subsgrow_core.infrastructure.store.base import Document


def test_sale_from_document_maps_camel_case(sale_doc):
    """Test stored field names map onto the domain record"""
    sale = sale_from_document("s1", sale_doc(1_700_000_000_000, "Partial", "Credit", ("2026-10-17",)))

    assert sale.id == "s1"
    assert sale.created_at == 1_700_000_000_000
    assert sale.client.status == "Partial"
    assert sale.vendor.status == "Credit"
    assert sale.items[0].expiry_date == "2026-10-17"
    assert sale.items[0].purchase_date == "2026-09-17"
    assert sale.finance.total_sell == 8.0


def test_sale_from_document_tolerates_missing_parts():
    """Test absent items, null blocks and missing createdAt"""
    sale = sale_from_document("s2", {"client": None, "items": None, "vendor": {"name": "V", "phone": None}})

    assert sale.items == ()
    assert sale.created_at == 0
    assert sale.client.status == ""
    assert sale.vendor.phone == ""


def test_sale_from_document_skips_null_items():
    """Test null entries inside items are ignored"""
    sale = sale_from_document("s3", {"items": [None, {"eDate": "2026-10-17", "cost": None, "sell": 4}]})

    assert len(sale.items) == 1
    assert sale.items[0].cost == 0.0
    assert sale.items[0].sell == 4.0


def test_sales_from_documents_skips_non_object_bodies():
    """Test a body that is not a mapping is dropped without losing the rest"""
    documents = [
        Document(id="good", data={"createdAt": 5}),
        Document(id="bad", data=["not", "a", "sale"]),
    ]

    assert [s.id for s in sales_from_documents(documents)] == ["good"]


def test_sale_from_document_coerces_form_values(sale_doc):
    """Test blank and numeric-string money fields and a numeric phone"""
    doc = sale_doc(1_700_000_000_000)
    doc["client"]["phone"] = 923001234567
    doc["items"][0]["cost"] = ""
    doc["items"][0]["sell"] = "12.5"
    doc["finance"]["totalProfit"] = "n/a"

    sale = sale_from_document("s4", doc)

    assert sale.client.phone == "923001234567"
    assert sale.items[0].cost == 0.0
    assert sale.items[0].sell == 12.5
    assert sale.finance.total_profit == 0.0


def test_sale_from_document_unreadable_fields_fall_back():
    """Test odd shapes keep the record with neutral values"""
    sale = sale_from_document(
        "s5",
        {
            "client": "Ayesha",
            "vendor": {"name": ["x"], "status": "Paid"},
            "items": ["Netflix", {"eDate": "2026-10-17", "type": None, "cost": float("nan")}],
            "createdAt": "yesterday",
        },
    )

    assert sale.client.status == ""
    assert sale.vendor.name == ""
    assert sale.vendor.status == "Paid"
    assert len(sale.items) == 1
    assert sale.items[0].type == "Shared"
    assert sale.items[0].cost == 0.0
    assert sale.created_at == 0


def test_fractional_created_at_is_truncated():
    sale = sale_from_document("s6", {"createdAt": 1_700_000_000_000.7})

    assert sale.created_at == 1_700_000_000_000


def test_notification_from_document_tolerates_unread_fields():
    """Test fields dedup never looks at cannot invalidate a warning"""
    notification = notification_from_document(
        "n2",
        {
            "type": "warning",
            "message": "Your data retention window is reached.",
            "userId": "merchant-1",
            "target": "user",
            "read": None,
            "createdAt": 1_700_000_000_000.5,
            "expiresAt": "later",
            "behavior": None,
        },
    )

    assert notification.kind == "warning"
    assert notification.read is False
    assert notification.created_at == 1_700_000_000_000
    assert notification.expires_at is None
    assert notification.behavior == "moving"


def test_notification_document_round_trip():
    """Test notification serializes with stored field names"""
    notification = Notification(
        message="Retention reached",
        kind="warning",
        target="user",
        user_id="merchant-1",
        behavior="fixed",
        created_at=10,
        expires_at=20,
    )

    body = notification_to_document(notification)

    assert body == {
        "message": "Retention reached",
        "type": "warning",
        "target": "user",
        "userId": "merchant-1",
        "behavior": "fixed",
        "createdAt": 10,
        "expiresAt": 20,
        "read": False,
    }
    assert notification_from_document("n1", body).kind == "warning"


def test_settings_from_document_coerces():
    """Test retention months and snooze parsing"""
    assert settings_from_document(None).data_retention_months == 0

    parsed = settings_from_document({"dataRetentionMonths": "6", "retentionSnoozeUntil": 123})
    assert parsed.data_retention_months == 6
    assert parsed.retention_snooze_until == 123

    broken = settings_from_document({"dataRetentionMonths": "lots", "retentionSnoozeUntil": "soon"})
    assert broken.data_retention_months == 0
    assert broken.retention_snooze_until is None
