"""
Pytest fixtures and configuration for the admin backend tests

Provides an in-memory TableStore so services can be exercised end to end
without Supabase or Postgres.

Author: Kuantum Ticaret
Date: 2025-11-02
"""
import copy
import itertools
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from kuantum_admin.core.events import OrderEventBus
from kuantum_admin.core.table_store import StoreError, TableStore
from kuantum_admin.services.order_lifecycle_service import OrderLifecycleService


class InMemoryTableStore(TableStore):
    """
    TableStore keeping rows in dictionaries

    fail_on holds (table, operation) or (table, operation, row_id) entries
    that make the matching call raise StoreError.
    """

    def __init__(self, tables=None):
        self.tables = {name: [dict(row) for row in rows] for name, rows in (tables or {}).items()}
        self.fail_on = set()
        self.calls = []
        self._ids = itertools.count(1)

    def rows(self, table):
        return self.tables.setdefault(table, [])

    def _check(self, table, operation, filters=None):
        self.calls.append((operation, table))
        row_id = (filters or {}).get('id')
        if (table, operation) in self.fail_on or (table, operation, row_id) in self.fail_on:
            raise StoreError(table, operation, "simulated failure")

    @staticmethod
    def _matches(row, filters):
        for column, value in (filters or {}).items():
            if value is None:
                if row.get(column) is not None:
                    return False
            elif isinstance(value, (list, tuple)):
                if row.get(column) not in value:
                    return False
            elif row.get(column) != value:
                return False
        return True

    def select(self, table, filters=None, order_by=None, descending=False,
               limit=None, offset=0, for_update=False):
        self._check(table, "select", filters)
        rows = [dict(row) for row in self.rows(table) if self._matches(row, filters)]
        if order_by:
            rows.sort(key=lambda row: "" if row.get(order_by) is None else str(row.get(order_by)),
                      reverse=descending)
        if limit is not None:
            rows = rows[offset:offset + limit]
        return rows

    def update(self, table, filters, patch):
        self._check(table, "update", filters)
        updated = []
        for row in self.rows(table):
            if self._matches(row, filters):
                row.update(patch)
                updated.append(dict(row))
        return updated

    def insert(self, table, row):
        self._check(table, "insert")
        stored = dict(row)
        stored.setdefault('id', f"{table}-{next(self._ids)}")
        stored.setdefault('created_at', datetime.now(timezone.utc))
        self.rows(table).append(stored)
        return dict(stored)

    def delete(self, table, filters):
        self._check(table, "delete", filters)
        kept, deleted = [], []
        for row in self.rows(table):
            (deleted if self._matches(row, filters) else kept).append(row)
        self.tables[table] = kept
        return [dict(row) for row in deleted]


class TransactionalInMemoryTableStore(InMemoryTableStore):
    """In-memory store whose transaction() restores a snapshot on failure"""

    supports_transactions = True

    @contextmanager
    def transaction(self):
        snapshot = copy.deepcopy(self.tables)
        try:
            yield self
        except Exception:
            self.tables = snapshot
            raise


def _seed_tables():
    """
    Order O: productA x2 @ 10.00, productB x1 @ 5.00, no total_amount
    Order P: no items, no fees, no coupon
    """
    return {
        'orders': [
            {
                'id': 'order-o', 'order_code': 'KT-1001', 'user_id': 'user-1',
                'status': 'pending', 'trashed': False, 'total_amount': None,
                'shipping_fee': 0, 'extra_fee': 0, 'discount_amount': 0,
                'created_at': datetime(2025, 10, 20, 9, 30, tzinfo=timezone.utc),
            },
            {
                'id': 'order-p', 'order_code': 'KT-1002', 'user_id': 'user-2',
                'status': 'pending', 'trashed': False, 'total_amount': None,
                'shipping_fee': 0, 'extra_fee': 0, 'discount_amount': 0,
                'applied_coupon_code': None,
                'created_at': datetime(2025, 10, 21, 14, 0, tzinfo=timezone.utc),
            },
        ],
        'order_items': [
            {'id': 'item-1', 'order_id': 'order-o', 'product_id': 'product-a',
             'quantity': 2, 'price': Decimal('10.00')},
            {'id': 'item-2', 'order_id': 'order-o', 'product_id': 'product-b',
             'quantity': 1, 'price': Decimal('5.00')},
        ],
        'products': [
            {'id': 'product-a', 'title': 'Kupa', 'stock_quantity': 10, 'stock_status': 'in_stock'},
            {'id': 'product-b', 'title': 'Tişört', 'stock_quantity': 1, 'stock_status': 'in_stock'},
        ],
        'expenses': [],
        'notifications': [],
    }


@pytest.fixture
def store():
    """Seeded in-memory store (best-effort, no transactions)"""
    return InMemoryTableStore(_seed_tables())


@pytest.fixture
def transactional_store():
    """Seeded in-memory store supporting transaction()"""
    return TransactionalInMemoryTableStore(_seed_tables())


@pytest.fixture
def events():
    """Event bus recording every published OrderChanged in .received"""
    bus = OrderEventBus()
    bus.received = []
    bus.subscribe(bus.received.append)
    return bus


@pytest.fixture
def service(store, events):
    return OrderLifecycleService(store, events=events, atomic=False)


@pytest.fixture
def atomic_service(transactional_store, events):
    return OrderLifecycleService(transactional_store, events=events, atomic=True)


@pytest.fixture
def sample_order_row():
    """A single orders row as returned by the store"""
    return {
        'id': 'order-x',
        'order_code': 'KT-2001',
        'user_id': 'user-9',
        'status': 'confirmed',
        'trashed': None,
        'delivery_type': 'home_delivery',
        'total_amount': None,
        'shipping_fee': None,
        'extra_fee': None,
        'discount_amount': None,
        'created_at': datetime(2025, 10, 22, 8, 0, tzinfo=timezone.utc),
    }
