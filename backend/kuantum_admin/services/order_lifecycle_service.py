"""
Order Lifecycle Service

Executes the plans produced by kuantum_admin.domain.lifecycle against the
remote tables:

1. validate operator input (no remote call yet)
2. read the order and plan the transition
3. write the order patch; if this fails nothing else happens
4. apply side effects in plan order (stock, ledger, notifications)
5. publish an OrderChanged event

Two execution modes:
- best-effort (Supabase store): every write is independent. A failing
  side effect is logged and skipped, it never reverts the status write
  or earlier effects. Concurrent operators are not guarded against.
- atomic (transactional store with ATOMIC_ORDER_TRANSITIONS): the order
  row is locked FOR UPDATE and the whole sequence commits or rolls back
  as one unit.

Author: Kuantum Ticaret
Date: 2025-11-02
"""
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from pydantic import BaseModel, Field

from kuantum_admin.core.config import settings
from kuantum_admin.core.events import OrderEventBus, order_events
from kuantum_admin.core.table_store import StoreError, TableStore
from kuantum_admin.domain.events import OrderChanged
from kuantum_admin.domain.exceptions import OrderTransitionError, OrderValidationError
from kuantum_admin.domain.lifecycle import (
    RecordIncome,
    RemoveIncome,
    SendNotification,
    SideEffect,
    StockAdjustment,
    TransitionPlan,
    normalize_status,
    normalize_text,
    plan_extra_fee,
    plan_rejection,
    plan_restore,
    plan_shipping_fee,
    plan_status_change,
    plan_trash,
    validate_extra_fee,
    validate_preparation,
    validate_shipping_fee,
)
from kuantum_admin.domain.notification import Notification
from kuantum_admin.domain.order import Order, OrderStatus
from kuantum_admin.repositories import (
    LedgerRepository,
    NotificationRepository,
    OrderRepository,
    ProductRepository,
)

logger = logging.getLogger(__name__)


class FailedEffect(BaseModel):
    effect: SideEffect
    error: str


class TransitionResult(BaseModel):
    """Outcome of one lifecycle operation"""

    order: Order
    previous_status: OrderStatus
    new_status: OrderStatus
    applied_effects: List[SideEffect] = Field(default_factory=list)
    failed_effects: List[FailedEffect] = Field(default_factory=list)

    @property
    def fully_applied(self) -> bool:
        return not self.failed_effects

    def to_dict(self) -> dict:
        return {
            'order': self.order.to_dict(),
            'previous_status': self.previous_status.value,
            'new_status': self.new_status.value,
            'applied_effects': [effect.model_dump(mode="json") for effect in self.applied_effects],
            'failed_effects': [failed.model_dump(mode="json") for failed in self.failed_effects],
        }


class OrderLifecycleService:
    """
    Service owning order status transitions and their side effects

    Handles:
    - Status changes (with optional preparation time)
    - Rejection with mandatory reason
    - Trash / restore
    - Shipping fee and extra fee requests
    - Operator messages to the customer
    """

    def __init__(
        self,
        store: TableStore,
        events: Optional[OrderEventBus] = None,
        atomic: Optional[bool] = None
    ):
        self.store = store
        self.orders = OrderRepository(store)
        self.products = ProductRepository(store)
        self.ledger = LedgerRepository(store)
        self.notifications = NotificationRepository(store)
        self.events = events if events is not None else order_events

        if atomic is None:
            atomic = settings.ATOMIC_ORDER_TRANSITIONS
        self.atomic = atomic and store.supports_transactions

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def set_status(
        self,
        order_id: str,
        new_status,
        preparation_time: Optional[int] = None,
        preparation_unit=None
    ) -> TransitionResult:
        """
        Move an order to new_status

        Entering 'delivered' decrements stock and records income;
        leaving 'delivered' restores stock and removes the income entry.

        Raises:
            OrderValidationError: Unknown status, bad preparation time, or
                'rejected' (rejection goes through reject() with a reason)
            OrderNotFoundError / OrderTrashedError / InvalidTransitionError
            StoreError: The status write was rejected (best-effort mode)
            OrderTransitionError: The unit of work was rolled back (atomic mode)
        """
        status = normalize_status(new_status)
        if status == OrderStatus.REJECTED:
            raise OrderValidationError("Rejecting an order requires a reason; use reject()")
        unit = validate_preparation(preparation_time, preparation_unit)

        return self._run(
            order_id, "status_changed",
            lambda order: plan_status_change(order, status, preparation_time if unit else None, unit)
        )

    def reject(self, order_id: str, reason: str) -> TransitionResult:
        """Reject an order; reason is mandatory"""
        reason = normalize_text(reason, "Rejection reason")
        return self._run(order_id, "rejected", lambda order: plan_rejection(order, reason))

    def trash(self, order_id: str) -> TransitionResult:
        """Soft-delete an order; a delivered order has its effects reversed"""
        return self._run(order_id, "trashed", plan_trash)

    def restore(self, order_id: str) -> TransitionResult:
        """Take an order out of the trash; a delivered order has its effects re-applied"""
        return self._run(order_id, "restored", plan_restore)

    def set_shipping_fee(self, order_id: str, fee) -> TransitionResult:
        amount = validate_shipping_fee(fee)
        return self._run(order_id, "shipping_fee_set", lambda order: plan_shipping_fee(order, amount))

    def request_extra_fee(self, order_id: str, fee, reason: str) -> TransitionResult:
        """
        Ask the customer for an extra fee

        Stores the fee, reason and request time on the order and notifies
        the customer. Status and ledger are left untouched.
        """
        amount = validate_extra_fee(fee)
        reason = normalize_text(reason, "Extra fee reason")
        requested_at = datetime.now(timezone.utc)

        return self._run(
            order_id, "extra_fee_requested",
            lambda order: plan_extra_fee(order, amount, reason, requested_at)
        )

    def notify_customer(self, order_id: str, message: str) -> Notification:
        """Send a free-text message to the order's customer; failures are raised"""
        message = normalize_text(message, "Message")
        order = self.orders.get(order_id)
        if not order.user_id:
            raise OrderValidationError(f"Order {order_id} has no customer to notify")

        notification = self.notifications.create(order.user_id, message)
        logger.info(f"Customer of order {order.display_code} notified")

        self.events.publish(OrderChanged(
            order_id=order.id,
            action="customer_notified",
            previous_status=order.status,
            new_status=order.status,
            trashed=order.trashed,
            applied_effects=["send_notification"]
        ))
        return notification

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _run(self, order_id: str, action: str, planner: Callable[[Order], TransitionPlan]) -> TransitionResult:
        if self.atomic:
            try:
                with self.store.transaction():
                    result = self._execute(order_id, planner)
            except StoreError as e:
                logger.error(f"{action} on order {order_id} rolled back: {e}")
                raise OrderTransitionError(order_id, str(e)) from e
        else:
            result = self._execute(order_id, planner)

        logger.info(
            f"{action} on order {result.order.display_code}: "
            f"{result.previous_status.value} -> {result.new_status.value}, "
            f"{len(result.applied_effects)} effects applied, {len(result.failed_effects)} failed"
        )

        self.events.publish(OrderChanged(
            order_id=result.order.id,
            action=action,
            previous_status=result.previous_status,
            new_status=result.new_status,
            trashed=result.order.trashed,
            applied_effects=[effect.kind for effect in result.applied_effects],
            failed_effects=[failed.effect.kind for failed in result.failed_effects]
        ))
        return result

    def _execute(self, order_id: str, planner: Callable[[Order], TransitionPlan]) -> TransitionResult:
        order = self.orders.get(order_id, for_update=self.atomic)
        plan = planner(order)

        if plan.patch:
            try:
                order = self.orders.update(order_id, plan.patch)
            except StoreError as e:
                logger.error(f"Update of order {order_id} rejected, no side effects applied: {e}")
                raise

        applied: List[SideEffect] = []
        failed: List[FailedEffect] = []
        for effect in plan.effects:
            try:
                self._apply(effect)
                applied.append(effect)
            except StoreError as e:
                if self.atomic:
                    raise
                logger.warning(f"Side effect {effect.kind} for order {order_id} skipped: {e}")
                failed.append(FailedEffect(effect=effect, error=str(e)))

        return TransitionResult(
            order=order,
            previous_status=plan.previous_status,
            new_status=plan.new_status,
            applied_effects=applied,
            failed_effects=failed
        )

    def _apply(self, effect: SideEffect) -> None:
        if isinstance(effect, StockAdjustment):
            self.products.adjust_stock(effect.product_id, effect.delta, for_update=self.atomic)

        elif isinstance(effect, RecordIncome):
            if self.ledger.find_income_for_order(effect.order_id):
                logger.info(f"Income for order {effect.order_id} already recorded")
                return
            self.ledger.insert_income(effect.order_id, effect.amount, effect.description)

        elif isinstance(effect, RemoveIncome):
            removed = self.ledger.delete_income_for_order(effect.order_id)
            logger.debug(f"Removed {removed} income entries for order {effect.order_id}")

        elif isinstance(effect, SendNotification):
            self.notifications.create(effect.user_id, effect.message)
