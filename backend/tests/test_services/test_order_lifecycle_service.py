"""
Tests for OrderLifecycleService against the in-memory table store

Covers delivery/reversal side effects, best-effort failure handling,
atomic rollback and event publication.

Author: Kuantum Ticaret
Date: 2025-11-02
"""
import pytest
from decimal import Decimal
from unittest.mock import MagicMock

import psycopg2

from kuantum_admin.core.table_store import PostgresTableStore, StoreError
from kuantum_admin.domain.exceptions import (
    InvalidTransitionError,
    OrderNotFoundError,
    OrderTransitionError,
    OrderTrashedError,
    OrderValidationError,
)
from kuantum_admin.domain.order import OrderStatus
from kuantum_admin.services.order_lifecycle_service import OrderLifecycleService


def stock(store, product_id):
    row = next(row for row in store.rows('products') if row['id'] == product_id)
    return row['stock_quantity'], row['stock_status']


def income_entries(store, order_id):
    return [row for row in store.rows('expenses') if row['order_id'] == order_id and row['type'] == 'income']


def order_row(store, order_id):
    return next(row for row in store.rows('orders') if row['id'] == order_id)


class TestDelivery:

    def test_pending_to_delivered_records_income_and_decrements_stock(self, service, store):
        result = service.set_status('order-o', 'delivered')

        assert result.previous_status == OrderStatus.PENDING
        assert result.new_status == OrderStatus.DELIVERED
        assert result.fully_applied
        assert order_row(store, 'order-o')['status'] == 'delivered'

        entries = income_entries(store, 'order-o')
        assert len(entries) == 1
        assert entries[0]['amount'] == Decimal('25.00')
        assert entries[0]['description'] == 'Sipariş geliri - #KT-1001'

        assert stock(store, 'product-a') == (8, 'in_stock')
        assert stock(store, 'product-b') == (0, 'out_of_stock')

    def test_redelivery_does_not_duplicate_income(self, service, store):
        service.set_status('order-o', 'delivered')
        result = service.set_status('order-o', 'delivered')

        assert result.applied_effects == []
        assert len(income_entries(store, 'order-o')) == 1
        assert stock(store, 'product-a') == (8, 'in_stock')

    def test_existing_income_entry_is_not_duplicated(self, service, store):
        store.rows('expenses').append({
            'id': 'ledger-1', 'type': 'income', 'amount': Decimal('25.00'),
            'description': 'Sipariş geliri - #KT-1001', 'order_id': 'order-o',
        })

        service.set_status('order-o', 'delivered')

        assert len(income_entries(store, 'order-o')) == 1

    def test_stock_floors_at_zero(self, service, store):
        order_items = store.rows('order_items')
        order_items[1]['quantity'] = 5

        service.set_status('order-o', 'delivered')

        assert stock(store, 'product-b') == (0, 'out_of_stock')

    def test_untracked_product_stock_left_alone(self, service, store):
        store.rows('products')[0]['stock_quantity'] = None

        result = service.set_status('order-o', 'delivered')

        assert result.fully_applied
        assert stock(store, 'product-a') == (None, 'in_stock')


class TestReversal:

    def test_rejecting_delivered_order_restores_stock_and_removes_income(self, service, store):
        service.set_status('order-o', 'delivered')

        result = service.reject('order-o', 'Müşteri iade etti')

        assert result.previous_status == OrderStatus.DELIVERED
        row = order_row(store, 'order-o')
        assert row['status'] == 'rejected'
        assert row['rejection_reason'] == 'Müşteri iade etti'
        assert income_entries(store, 'order-o') == []
        assert stock(store, 'product-a') == (10, 'in_stock')
        assert stock(store, 'product-b') == (1, 'in_stock')

    def test_trashing_delivered_order_reverses_but_keeps_status(self, service, store):
        service.set_status('order-o', 'delivered')

        service.trash('order-o')

        row = order_row(store, 'order-o')
        assert row['trashed'] is True
        assert row['status'] == 'delivered'
        assert income_entries(store, 'order-o') == []
        assert stock(store, 'product-a') == (10, 'in_stock')
        assert stock(store, 'product-b') == (1, 'in_stock')

    def test_trashing_twice_reverses_once(self, service, store):
        service.set_status('order-o', 'delivered')
        service.trash('order-o')

        result = service.trash('order-o')

        assert result.applied_effects == []
        assert stock(store, 'product-a') == (10, 'in_stock')

    def test_restoring_delivered_order_reapplies_effects(self, service, store):
        service.set_status('order-o', 'delivered')
        service.trash('order-o')

        service.restore('order-o')

        assert order_row(store, 'order-o')['trashed'] is False
        assert len(income_entries(store, 'order-o')) == 1
        assert stock(store, 'product-a') == (8, 'in_stock')

    def test_trashed_order_rejects_status_change(self, service, store):
        service.trash('order-p')

        with pytest.raises(OrderTrashedError):
            service.set_status('order-p', 'confirmed')


class TestNoSideEffects:

    def test_plain_progression_touches_nothing_else(self, service, store):
        service.set_status('order-p', 'confirmed')
        service.set_status('order-p', 'preparing', preparation_time=30, preparation_unit='minutes')

        row = order_row(store, 'order-p')
        assert row['status'] == 'preparing'
        assert row['preparation_time'] == 30
        assert row['preparation_unit'] == 'minutes'
        assert store.rows('expenses') == []
        assert store.rows('notifications') == []
        assert stock(store, 'product-a') == (10, 'in_stock')
        assert not any(operation != 'select' for operation, table in store.calls if table != 'orders')


class TestFailures:

    def test_failed_status_write_applies_no_side_effects(self, service, store):
        store.fail_on.add(('orders', 'update'))

        with pytest.raises(StoreError):
            service.set_status('order-o', 'delivered')

        assert store.rows('expenses') == []
        assert stock(store, 'product-a') == (10, 'in_stock')

    def test_failed_side_effect_is_skipped_not_rolled_back(self, service, store, events):
        store.fail_on.add(('products', 'update', 'product-a'))

        result = service.set_status('order-o', 'delivered')

        assert order_row(store, 'order-o')['status'] == 'delivered'
        assert [failed.effect.kind for failed in result.failed_effects] == ['stock_adjustment']
        assert result.failed_effects[0].effect.product_id == 'product-a'
        assert stock(store, 'product-a') == (10, 'in_stock')
        assert stock(store, 'product-b') == (0, 'out_of_stock')
        assert len(income_entries(store, 'order-o')) == 1
        assert events.received[-1].failed_effects == ['stock_adjustment']

    def test_unreachable_database_for_one_product_skips_only_that_effect(self, store, events):
        unreachable = PostgresTableStore(MagicMock(side_effect=psycopg2.OperationalError("could not connect")))
        in_memory_select = store.select

        def select(table, filters=None, **kwargs):
            if table == 'products' and (filters or {}).get('id') == 'product-a':
                return unreachable.select(table, filters, **kwargs)
            return in_memory_select(table, filters, **kwargs)

        store.select = select
        service = OrderLifecycleService(store, events=events, atomic=False)

        result = service.set_status('order-o', 'delivered')

        assert order_row(store, 'order-o')['status'] == 'delivered'
        assert [failed.effect.product_id for failed in result.failed_effects] == ['product-a']
        assert 'connection failed' in result.failed_effects[0].error
        assert stock(store, 'product-a') == (10, 'in_stock')
        assert stock(store, 'product-b') == (0, 'out_of_stock')
        assert len(income_entries(store, 'order-o')) == 1

    def test_status_change_cannot_reject(self, service, store):
        service.set_status('order-o', 'delivered')
        calls_before = len(store.calls)

        with pytest.raises(OrderValidationError):
            service.set_status('order-o', 'rejected')

        assert len(store.calls) == calls_before
        assert order_row(store, 'order-o')['status'] == 'delivered'
        assert order_row(store, 'order-o').get('rejection_reason') is None
        assert len(income_entries(store, 'order-o')) == 1

    def test_unknown_order(self, service):
        with pytest.raises(OrderNotFoundError):
            service.set_status('missing', 'confirmed')

    def test_invalid_transition(self, service):
        service.set_status('order-o', 'delivered')

        with pytest.raises(InvalidTransitionError):
            service.set_status('order-o', 'pending')

    def test_validation_happens_before_any_remote_call(self, service, store):
        with pytest.raises(OrderValidationError):
            service.set_status('order-o', 'shipped')
        with pytest.raises(OrderValidationError):
            service.reject('order-o', '  ')

        assert store.calls == []


class TestAtomicMode:

    def test_side_effect_failure_rolls_back_everything(self, atomic_service, transactional_store, events):
        transactional_store.fail_on.add(('expenses', 'insert'))

        with pytest.raises(OrderTransitionError):
            atomic_service.set_status('order-o', 'delivered')

        assert order_row(transactional_store, 'order-o')['status'] == 'pending'
        assert stock(transactional_store, 'product-a') == (10, 'in_stock')
        assert events.received == []

    def test_successful_transition_commits(self, atomic_service, transactional_store):
        result = atomic_service.set_status('order-o', 'delivered')

        assert result.fully_applied
        assert order_row(transactional_store, 'order-o')['status'] == 'delivered'
        assert len(income_entries(transactional_store, 'order-o')) == 1

    def test_unreachable_database_is_a_transition_error(self, events):
        store = PostgresTableStore(MagicMock(side_effect=psycopg2.OperationalError("could not connect")))
        service = OrderLifecycleService(store, events=events, atomic=True)

        with pytest.raises(OrderTransitionError):
            service.set_status('order-o', 'delivered')

        assert events.received == []

    def test_atomic_flag_ignored_without_transaction_support(self, store):
        assert OrderLifecycleService(store, atomic=True).atomic is False


class TestFees:

    def test_non_positive_extra_fee_writes_nothing(self, service, store):
        for fee in (0, -10):
            with pytest.raises(OrderValidationError):
                service.request_extra_fee('order-p', fee, 'Ek paketleme')

        assert store.calls == []
        assert store.rows('notifications') == []

    def test_extra_fee_requires_a_customer(self, service, store):
        order_row(store, 'order-p')['user_id'] = None

        with pytest.raises(OrderValidationError):
            service.request_extra_fee('order-p', Decimal('12.5'), 'Ek paketleme')

        assert order_row(store, 'order-p').get('extra_fee') is None
        assert store.rows('notifications') == []

    def test_extra_fee_stored_and_customer_notified(self, service, store):
        result = service.request_extra_fee('order-p', Decimal('12.5'), 'Ek paketleme')

        row = order_row(store, 'order-p')
        assert row['extra_fee'] == Decimal('12.5')
        assert row['extra_fee_reason'] == 'Ek paketleme'
        assert row['extra_fee_requested_at'] is not None
        assert row['status'] == 'pending'
        assert result.new_status == OrderStatus.PENDING

        notifications = store.rows('notifications')
        assert len(notifications) == 1
        assert notifications[0]['user_id'] == 'user-2'
        assert '12.50 TL' in notifications[0]['message']
        assert store.rows('expenses') == []

    def test_shipping_fee_update(self, service, store):
        service.set_shipping_fee('order-p', '35.90')

        assert order_row(store, 'order-p')['shipping_fee'] == Decimal('35.90')
        assert store.rows('notifications') == []

    def test_negative_shipping_fee_rejected(self, service, store):
        with pytest.raises(OrderValidationError):
            service.set_shipping_fee('order-p', -1)

        assert store.calls == []


class TestCustomerNotification:

    def test_notify_inserts_one_notification(self, service, store, events):
        notification = service.notify_customer('order-o', 'Siparişiniz yola çıktı')

        assert notification.user_id == 'user-1'
        assert [row['message'] for row in store.rows('notifications')] == ['Siparişiniz yola çıktı']
        assert events.received[-1].action == 'customer_notified'

    def test_notify_failure_is_raised(self, service, store):
        store.fail_on.add(('notifications', 'insert'))

        with pytest.raises(StoreError):
            service.notify_customer('order-o', 'Merhaba')

    def test_empty_message_rejected(self, service):
        with pytest.raises(OrderValidationError):
            service.notify_customer('order-o', '')


class TestEvents:

    def test_one_event_per_operation(self, service, events):
        service.set_status('order-o', 'delivered')
        service.reject('order-o', 'Hasarlı ürün')

        assert [event.action for event in events.received] == ['status_changed', 'rejected']
        delivered, rejected = events.received
        assert delivered.new_status == OrderStatus.DELIVERED
        assert delivered.applied_effects == ['stock_adjustment', 'stock_adjustment', 'record_income']
        assert rejected.previous_status == OrderStatus.DELIVERED
        assert rejected.applied_effects == ['stock_adjustment', 'stock_adjustment', 'remove_income']

    def test_failing_listener_does_not_break_operation(self, service, events, store):
        def broken(event):
            raise RuntimeError("listener down")

        events.subscribe(broken)

        service.set_status('order-p', 'confirmed')

        assert order_row(store, 'order-p')['status'] == 'confirmed'
        assert len(events.received) == 1

    def test_unsubscribe(self, service, events):
        seen = []
        unsubscribe = events.subscribe(seen.append)
        unsubscribe()

        service.set_status('order-p', 'confirmed')

        assert seen == []
