"""
Order Lifecycle Planner

Pure functions of (current order, operator action) -> TransitionPlan.
A plan holds the patch to write to the order row and the ordered list of
side effects due because of the *previous* status:

- entering 'delivered': decrement stock per line item, record income
- leaving 'delivered' (or trashing a delivered order): restore stock per
  line item, remove the income entry

Nothing here touches a store; OrderLifecycleService executes plans.

Author: Kuantum Ticaret
Date: 2025-11-02
"""
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from kuantum_admin.domain.exceptions import (
    InvalidTransitionError,
    OrderTrashedError,
    OrderValidationError,
)
from kuantum_admin.domain.order import (
    Order,
    OrderStatus,
    PreparationUnit,
    TERMINAL_STATUSES,
)


# ============================================================================
# Side effects
# ============================================================================

class StockAdjustment(BaseModel):
    kind: Literal["stock_adjustment"] = "stock_adjustment"
    product_id: str
    delta: int


class RecordIncome(BaseModel):
    kind: Literal["record_income"] = "record_income"
    order_id: str
    amount: Decimal
    description: str


class RemoveIncome(BaseModel):
    kind: Literal["remove_income"] = "remove_income"
    order_id: str


class SendNotification(BaseModel):
    kind: Literal["send_notification"] = "send_notification"
    user_id: str
    order_id: str
    message: str


SideEffect = Union[StockAdjustment, RecordIncome, RemoveIncome, SendNotification]


class TransitionPlan(BaseModel):
    order_id: str
    previous_status: OrderStatus
    new_status: OrderStatus
    patch: Dict[str, Any] = Field(default_factory=dict)
    effects: List[SideEffect] = Field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return not self.patch and not self.effects


# ============================================================================
# Input validation (no order needed, runs before any remote call)
# ============================================================================

def normalize_status(value) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise OrderValidationError(f"Unknown order status: {value!r}")


def normalize_text(value: Optional[str], field: str) -> str:
    text = (value or "").strip()
    if not text:
        raise OrderValidationError(f"{field} must not be empty")
    return text


def validate_preparation(preparation_time: Optional[int], preparation_unit) -> Optional[PreparationUnit]:
    """Preparation fields count only when both are supplied"""
    if preparation_time is None or preparation_unit is None:
        return None
    if preparation_time <= 0:
        raise OrderValidationError("preparation_time must be positive")
    try:
        return PreparationUnit(preparation_unit)
    except ValueError:
        raise OrderValidationError(f"Unknown preparation unit: {preparation_unit!r}")


def _to_amount(fee) -> Decimal:
    try:
        amount = Decimal(str(fee))
    except (InvalidOperation, ValueError, TypeError):
        raise OrderValidationError(f"Fee must be a number, got {fee!r}")
    if not amount.is_finite():
        raise OrderValidationError("Fee must be a finite number")
    return amount


def validate_shipping_fee(fee) -> Decimal:
    amount = _to_amount(fee)
    if amount < 0:
        raise OrderValidationError("Shipping fee must not be negative")
    return amount


def validate_extra_fee(fee) -> Decimal:
    amount = _to_amount(fee)
    if amount <= 0:
        raise OrderValidationError("Extra fee must be positive")
    return amount


# ============================================================================
# Transition rules
# ============================================================================

def validate_transition(order: Order, new_status: OrderStatus) -> None:
    """
    Non-terminal orders may move to any status. A delivered order may only
    be re-delivered (no-op) or rejected; a rejected order stays rejected.
    """
    previous = order.status
    if previous == new_status or previous not in TERMINAL_STATUSES:
        return
    if previous == OrderStatus.DELIVERED and new_status == OrderStatus.REJECTED:
        return
    raise InvalidTransitionError(order.id, previous.value, new_status.value)


def income_description(order: Order) -> str:
    return f"Sipariş geliri - #{order.display_code}"


def delivery_effects(order: Order) -> List[SideEffect]:
    effects: List[SideEffect] = [
        StockAdjustment(product_id=item.product_id, delta=-item.quantity)
        for item in order.items
    ]
    effects.append(RecordIncome(
        order_id=order.id,
        amount=order.effective_total,
        description=income_description(order)
    ))
    return effects


def reversal_effects(order: Order) -> List[SideEffect]:
    effects: List[SideEffect] = [
        StockAdjustment(product_id=item.product_id, delta=item.quantity)
        for item in order.items
    ]
    effects.append(RemoveIncome(order_id=order.id))
    return effects


def status_effects(order: Order, new_status: OrderStatus) -> List[SideEffect]:
    previous = order.status
    if new_status == OrderStatus.DELIVERED and previous != OrderStatus.DELIVERED:
        return delivery_effects(order)
    if previous == OrderStatus.DELIVERED and new_status != OrderStatus.DELIVERED:
        return reversal_effects(order)
    return []


# ============================================================================
# Planners (inputs are expected to be validated already)
# ============================================================================

def plan_status_change(
    order: Order,
    new_status: OrderStatus,
    preparation_time: Optional[int] = None,
    preparation_unit: Optional[PreparationUnit] = None,
    rejection_reason: Optional[str] = None
) -> TransitionPlan:
    if new_status == OrderStatus.REJECTED and rejection_reason is None:
        raise OrderValidationError("Rejecting an order requires a reason; use reject()")
    if order.trashed:
        raise OrderTrashedError(order.id)
    validate_transition(order, new_status)

    patch: Dict[str, Any] = {'status': new_status.value}
    if preparation_unit is not None:
        patch['preparation_time'] = preparation_time
        patch['preparation_unit'] = preparation_unit.value
    if rejection_reason is not None:
        patch['rejection_reason'] = rejection_reason

    return TransitionPlan(
        order_id=order.id,
        previous_status=order.status,
        new_status=new_status,
        patch=patch,
        effects=status_effects(order, new_status)
    )


def plan_rejection(order: Order, reason: str) -> TransitionPlan:
    return plan_status_change(order, OrderStatus.REJECTED, rejection_reason=reason)


def plan_trash(order: Order) -> TransitionPlan:
    """
    Trashing keeps the status as is; a delivered order has its delivered
    effects reversed. Trashing twice plans nothing.
    """
    plan = TransitionPlan(order_id=order.id, previous_status=order.status, new_status=order.status)
    if order.trashed:
        return plan

    plan.patch = {'trashed': True}
    if order.status == OrderStatus.DELIVERED:
        plan.effects = reversal_effects(order)
    return plan


def plan_restore(order: Order) -> TransitionPlan:
    """
    Inverse of plan_trash: a restored delivered order gets its delivered
    effects applied again. Restoring a live order plans nothing.
    """
    plan = TransitionPlan(order_id=order.id, previous_status=order.status, new_status=order.status)
    if not order.trashed:
        return plan

    plan.patch = {'trashed': False}
    if order.status == OrderStatus.DELIVERED:
        plan.effects = delivery_effects(order)
    return plan


def plan_shipping_fee(order: Order, fee: Decimal) -> TransitionPlan:
    if order.trashed:
        raise OrderTrashedError(order.id)
    return TransitionPlan(
        order_id=order.id,
        previous_status=order.status,
        new_status=order.status,
        patch={'shipping_fee': fee}
    )


def extra_fee_message(order: Order, fee: Decimal, reason: str) -> str:
    return (
        f"#{order.display_code} numaralı siparişiniz için {fee:.2f} TL ek ücret "
        f"talep edildi. Sebep: {reason}"
    )


def plan_extra_fee(order: Order, fee: Decimal, reason: str, requested_at: datetime) -> TransitionPlan:
    if order.trashed:
        raise OrderTrashedError(order.id)
    if not order.user_id:
        raise OrderValidationError(f"Order {order.id} has no customer to notify")

    return TransitionPlan(
        order_id=order.id,
        previous_status=order.status,
        new_status=order.status,
        patch={
            'extra_fee': fee,
            'extra_fee_reason': reason,
            'extra_fee_requested_at': requested_at,
        },
        effects=[SendNotification(
            user_id=order.user_id,
            order_id=order.id,
            message=extra_fee_message(order, fee, reason)
        )]
    )
