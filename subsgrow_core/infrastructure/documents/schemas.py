"""Pydantic schemas for document-store payloads (camelCase wire format)"""

import logging
import math
from typing import Any, Dict, Iterable, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from subsgrow_core.domain.models import (
    Finance,
    LineItem,
    Notification,
    Party,
    SaleRecord,
    TenantSettings,
)
from subsgrow_core.domain.retention import coerce_retention_months

logger = logging.getLogger(__name__)


def _scalar_text(value: Any) -> Optional[str]:
    """Strings pass through, numbers are stringified, anything else is unusable"""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _finite_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


class WireModel(BaseModel):
    """Lenient base: unknown keys ignored, fields addressable by name or alias"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PartySchema(WireModel):
    """Client or vendor block of a sale document"""

    name: str = ""
    phone: str = ""
    status: str = ""

    @field_validator("name", "phone", "status", mode="before")
    @classmethod
    def _any_scalar_as_text(cls, value: Any) -> str:
        return _scalar_text(value) or ""


class ToolItemSchema(WireModel):
    """Line item inside a sale document"""

    name: str = ""
    type: str = "Shared"
    p_date: str = Field("", alias="pDate")
    e_date: str = Field("", alias="eDate")
    cost: float = 0.0
    sell: float = 0.0

    @field_validator("name", "p_date", "e_date", mode="before")
    @classmethod
    def _any_scalar_as_text(cls, value: Any) -> str:
        return _scalar_text(value) or ""

    @field_validator("type", mode="before")
    @classmethod
    def _type_defaults_to_shared(cls, value: Any) -> str:
        return _scalar_text(value) or "Shared"

    @field_validator("cost", "sell", mode="before")
    @classmethod
    def _unparseable_money_is_zero(cls, value: Any) -> float:
        # Form fields store blanks and numeric strings
        return _finite_number(value) or 0.0


class FinanceSchema(WireModel):
    """Finance summary of a sale document"""

    total_sell: float = Field(0.0, alias="totalSell")
    total_cost: float = Field(0.0, alias="totalCost")
    total_profit: float = Field(0.0, alias="totalProfit")
    pending_amount: float = Field(0.0, alias="pendingAmount")

    @field_validator("total_sell", "total_cost", "total_profit", "pending_amount", mode="before")
    @classmethod
    def _unparseable_money_is_zero(cls, value: Any) -> float:
        return _finite_number(value) or 0.0


class SaleDocument(WireModel):
    """Document under users/{tenant}/salesHistory"""

    client: PartySchema = Field(default_factory=PartySchema)
    vendor: PartySchema = Field(default_factory=PartySchema)
    items: List[ToolItemSchema] = Field(default_factory=list)
    finance: FinanceSchema = Field(default_factory=FinanceSchema)
    created_at: int = Field(0, alias="createdAt")

    @field_validator("items", mode="before")
    @classmethod
    def _keep_item_objects(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, (dict, ToolItemSchema))]

    @field_validator("client", "vendor", "finance", mode="before")
    @classmethod
    def _non_object_block_is_empty(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, BaseModel)) else {}

    @field_validator("created_at", mode="before")
    @classmethod
    def _unreadable_timestamp_is_missing(cls, value: Any) -> int:
        number = _finite_number(value)
        return int(number) if number is not None else 0


class NotificationDocument(WireModel):
    """Document in the top-level notifications collection"""

    message: str = ""
    type: str = "info"
    target: str = "user"
    user_id: Optional[str] = Field(None, alias="userId")
    behavior: str = "moving"
    created_at: int = Field(0, alias="createdAt")
    expires_at: Optional[int] = Field(None, alias="expiresAt")
    read: bool = False

    @field_validator("message", "type", "target", "behavior", mode="before")
    @classmethod
    def _text_or_default(cls, value: Any, info: ValidationInfo) -> str:
        text = _scalar_text(value)
        return text if text is not None else cls.model_fields[info.field_name].default

    @field_validator("user_id", mode="before")
    @classmethod
    def _user_id_as_text(cls, value: Any) -> Optional[str]:
        return _scalar_text(value)

    @field_validator("created_at", "expires_at", mode="before")
    @classmethod
    def _timestamp_or_default(cls, value: Any, info: ValidationInfo) -> Optional[int]:
        number = _finite_number(value)
        return int(number) if number is not None else cls.model_fields[info.field_name].default

    @field_validator("read", mode="before")
    @classmethod
    def _truthy_read(cls, value: Any) -> bool:
        return bool(value)


class GeneralSettingsDocument(WireModel):
    """Document at users/{tenant}/settings/general"""

    data_retention_months: Any = Field(None, alias="dataRetentionMonths")
    retention_snooze_until: Optional[float] = Field(None, alias="retentionSnoozeUntil")

    @field_validator("retention_snooze_until", mode="before")
    @classmethod
    def _unreadable_snooze_is_none(cls, value: Any) -> Optional[float]:
        return _finite_number(value)


def _party(block: PartySchema) -> Party:
    return Party(name=block.name, phone=block.phone, status=block.status)


def sale_from_document(doc_id: Optional[str], data: Dict[str, Any]) -> SaleRecord:
    """Convert a raw sale document into a SaleRecord"""
    doc = SaleDocument.model_validate(data)

    return SaleRecord(
        id=doc_id,
        client=_party(doc.client),
        vendor=_party(doc.vendor),
        items=tuple(
            LineItem(
                name=item.name,
                expiry_date=item.e_date,
                cost=item.cost,
                sell=item.sell,
                type=item.type,
                purchase_date=item.p_date,
            )
            for item in doc.items
        ),
        finance=Finance(
            total_sell=doc.finance.total_sell,
            total_cost=doc.finance.total_cost,
            total_profit=doc.finance.total_profit,
            pending_amount=doc.finance.pending_amount,
        ),
        created_at=doc.created_at,
    )


def notification_from_document(doc_id: Optional[str], data: Dict[str, Any]) -> Notification:
    doc = NotificationDocument.model_validate(data)
    return Notification(
        id=doc_id,
        message=doc.message,
        kind=doc.type,
        target=doc.target,
        user_id=doc.user_id,
        behavior=doc.behavior,
        created_at=doc.created_at,
        expires_at=doc.expires_at,
        read=doc.read,
    )


def notification_to_document(notification: Notification) -> Dict[str, Any]:
    """Serialize a Notification to its camelCase document body (id excluded)"""
    doc = NotificationDocument(
        message=notification.message,
        type=notification.kind,
        target=notification.target,
        user_id=notification.user_id,
        behavior=notification.behavior,
        created_at=notification.created_at,
        expires_at=notification.expires_at,
        read=notification.read,
    )
    return doc.model_dump(by_alias=True, exclude_none=True)


def settings_from_document(data: Optional[Dict[str, Any]]) -> TenantSettings:
    """Missing settings document means no retention and no snooze"""
    if not data:
        return TenantSettings()

    doc = GeneralSettingsDocument.model_validate(data)
    return TenantSettings(
        data_retention_months=coerce_retention_months(doc.data_retention_months),
        retention_snooze_until=(
            int(doc.retention_snooze_until) if doc.retention_snooze_until is not None else None
        ),
    )


def sales_from_documents(documents: Iterable[Any]) -> List[SaleRecord]:
    """Convert live-query documents, skipping any that fail validation"""
    sales = []
    for document in documents:
        try:
            sales.append(sale_from_document(document.id, document.data))
        except ValidationError as e:
            logger.warning(
                f"Skipping malformed sale document {document.id}: {e.error_count()} errors",
                extra={"document_id": document.id},
            )
    return sales


def notifications_from_documents(documents: Iterable[Any]) -> List[Notification]:
    notifications = []
    for document in documents:
        try:
            notifications.append(notification_from_document(document.id, document.data))
        except ValidationError:
            logger.warning("Ignoring unreadable notification", extra={"document_id": document.id})
    return notifications
