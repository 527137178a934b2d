"""
Order Repository - Data Access Layer for Orders

Reads orders together with their line items and writes order patches.
Returns Order domain models.

Author: Kuantum Ticaret
Date: 2025-11-02
"""
from typing import Any, Dict, List, Optional

from kuantum_admin.core.table_store import TableStore
from kuantum_admin.domain.exceptions import OrderNotFoundError
from kuantum_admin.domain.order import Order, OrderItem

ORDERS_TABLE = "orders"
ORDER_ITEMS_TABLE = "order_items"


class OrderRepository:
    """
    Repository for Order data access

    All table access for orders and order items is centralized here.
    """

    def __init__(self, store: TableStore):
        self.store = store

    def _items_for(self, order_id: str) -> List[OrderItem]:
        rows = self.store.select(ORDER_ITEMS_TABLE, {'order_id': order_id}, order_by='created_at')
        return [OrderItem(**row) for row in rows]

    def find_by_id(self, order_id: str, for_update: bool = False) -> Optional[Order]:
        """
        Find order by ID with its items

        Args:
            order_id: Order ID
            for_update: Lock the order row (transactional stores only)

        Returns:
            Order with items or None if not found
        """
        rows = self.store.select(ORDERS_TABLE, {'id': order_id}, for_update=for_update)
        if not rows:
            return None

        order_dict = dict(rows[0])
        order_dict['items'] = self._items_for(order_id)
        return Order(**order_dict)

    def get(self, order_id: str, for_update: bool = False) -> Order:
        """Like find_by_id but raises OrderNotFoundError"""
        order = self.find_by_id(order_id, for_update=for_update)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def find_all(
        self,
        status: Optional[str] = None,
        include_trashed: bool = False,
        limit: Optional[int] = None,
        offset: int = 0
    ) -> List[Order]:
        """
        Find orders, newest first, with their items

        Args:
            status: Filter by order status
            include_trashed: Include soft-deleted orders
            limit: Maximum results to return
            offset: Number of results to skip
        """
        filters: Dict[str, Any] = {}
        if status:
            filters['status'] = status
        if not include_trashed:
            filters['trashed'] = False

        rows = self.store.select(
            ORDERS_TABLE, filters,
            order_by='created_at', descending=True,
            limit=limit, offset=offset
        )
        if not rows:
            return []

        # Get ALL items for these orders in ONE query
        order_ids = [row['id'] for row in rows]
        item_rows = self.store.select(ORDER_ITEMS_TABLE, {'order_id': order_ids}, order_by='created_at')

        items_by_order: Dict[str, List[OrderItem]] = {}
        for item_row in item_rows:
            items_by_order.setdefault(item_row['order_id'], []).append(OrderItem(**item_row))

        return [
            Order(**{**dict(row), 'items': items_by_order.get(row['id'], [])})
            for row in rows
        ]

    def update(self, order_id: str, patch: Dict[str, Any]) -> Order:
        """
        Write patch to the order row

        Raises:
            OrderNotFoundError: If no row matched
            StoreError: If the store rejected the write
        """
        rows = self.store.update(ORDERS_TABLE, {'id': order_id}, patch)
        if not rows:
            raise OrderNotFoundError(order_id)

        order_dict = dict(rows[0])
        order_dict['items'] = self._items_for(order_id)
        return Order(**order_dict)
