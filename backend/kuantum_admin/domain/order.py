"""
Order Domain Models

Represents orders and their line items as stored in the `orders` and
`order_items` tables. These are the single source of truth for order
data structure inside the backend.

Author: Kuantum Ticaret
Date: 2025-11-02
"""
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    IN_DELIVERY = "in_delivery"
    DELIVERED = "delivered"
    REJECTED = "rejected"


# Labels shown in the admin dashboard and in customer notifications
STATUS_LABELS = {
    OrderStatus.PENDING: "Beklemede",
    OrderStatus.CONFIRMED: "Onaylandı",
    OrderStatus.PREPARING: "Hazırlanıyor",
    OrderStatus.READY: "Hazır",
    OrderStatus.IN_DELIVERY: "Teslim Edilmek Üzere",
    OrderStatus.DELIVERED: "Teslim Edildi",
    OrderStatus.REJECTED: "Reddedildi",
}

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.REJECTED})


class PreparationUnit(str, Enum):
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"


class OrderItem(BaseModel):
    """
    Order Item domain model - one product line within an order

    `price` is the unit price snapshot taken at checkout.
    """

    id: Optional[str] = Field(None, description="Order item ID")
    order_id: str = Field(..., description="Parent order ID")
    product_id: str = Field(..., description="Product ID")
    quantity: int = Field(..., description="Quantity ordered", ge=1)
    price: Decimal = Field(..., description="Unit price at order time", ge=0)
    selected_size: Optional[str] = None
    custom_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class Order(BaseModel):
    """
    Order domain model - a purchase transaction

    Fields:
        id: Order ID (uuid, immutable)
        order_code: Human-readable order code
        user_id: Owning customer
        status: Current lifecycle status
        trashed: Soft-delete flag, independent of status

        # Financial information
        total_amount: Authoritative total when present
        subtotal_amount: Items total before fees and discount
        discount_amount: Coupon/premium discount
        shipping_fee: Shipping fee set by the operator
        extra_fee: Extra fee requested from the customer
        applied_coupon_code: Informational only

        # Operator fields
        preparation_time / preparation_unit: Estimated preparation time
        rejection_reason: Mandatory when rejected
        extra_fee_reason / extra_fee_requested_at: Extra fee request

        items: Order line items
    """

    id: str = Field(..., description="Order ID")
    order_code: Optional[str] = Field(None, description="Human-readable order code")
    user_id: Optional[str] = Field(None, description="Owning user ID")
    status: OrderStatus = Field(..., description="Order status")
    trashed: bool = Field(False, description="Soft-delete flag")

    delivery_type: Optional[str] = Field(None, description="home_delivery or pickup")
    delivery_address: Optional[str] = None

    # Financial information
    total_amount: Optional[Decimal] = Field(None, description="Authoritative total", ge=0)
    subtotal_amount: Optional[Decimal] = Field(None, ge=0)
    discount_amount: Decimal = Field(Decimal("0"), ge=0)
    shipping_fee: Decimal = Field(Decimal("0"), ge=0)
    extra_fee: Decimal = Field(Decimal("0"), ge=0)
    extra_fee_reason: Optional[str] = None
    extra_fee_requested_at: Optional[datetime] = None
    applied_coupon_code: Optional[str] = None

    preparation_time: Optional[int] = None
    preparation_unit: Optional[str] = None
    rejection_reason: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    items: List[OrderItem] = Field(default_factory=list, description="Order items")

    model_config = ConfigDict(from_attributes=True)

    @field_validator("trashed", mode="before")
    @classmethod
    def _null_trashed(cls, value):
        return bool(value)

    @field_validator("discount_amount", "shipping_fee", "extra_fee", mode="before")
    @classmethod
    def _null_amount(cls, value):
        return Decimal("0") if value is None else value

    @property
    def display_code(self) -> str:
        """Order code, or the short id used by the dashboard"""
        return self.order_code or self.id[:8]

    @property
    def items_total(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0"))

    @property
    def effective_total(self) -> Decimal:
        """
        total_amount when present, otherwise
        items + shipping + extra - discount (never negative)
        """
        if self.total_amount is not None:
            return self.total_amount

        derived = self.items_total + self.shipping_fee + self.extra_fee - self.discount_amount
        return max(derived, Decimal("0"))

    @property
    def status_label(self) -> str:
        return STATUS_LABELS[self.status]

    def to_dict(self) -> dict:
        """Convert to a JSON-ready dictionary with computed fields"""
        data = self.model_dump(mode="json")
        data['display_code'] = self.display_code
        data['status_label'] = self.status_label
        data['effective_total'] = float(self.effective_total)
        return data


# ============================================================================
# Request schemas
# ============================================================================

class StatusChangeRequest(BaseModel):
    status: OrderStatus
    preparation_time: Optional[int] = None
    preparation_unit: Optional[PreparationUnit] = None


class RejectionRequest(BaseModel):
    reason: str


class ShippingFeeRequest(BaseModel):
    fee: Decimal


class ExtraFeeRequest(BaseModel):
    fee: Decimal
    reason: str


class CustomerNotificationRequest(BaseModel):
    message: str
