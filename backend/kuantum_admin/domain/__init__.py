"""
Domain Layer - Business Entities

Pydantic models for orders, inventory, ledger and notifications, plus the
pure order lifecycle planner.

Author: Kuantum Ticaret
Date: 2025-11-02
"""
from kuantum_admin.domain.order import Order, OrderItem, OrderStatus, STATUS_LABELS
from kuantum_admin.domain.product import Product, StockStatus
from kuantum_admin.domain.ledger import LedgerEntry, LedgerEntryType, FinanceStats
from kuantum_admin.domain.notification import Notification
from kuantum_admin.domain.events import OrderChanged

__all__ = [
    'Order', 'OrderItem', 'OrderStatus', 'STATUS_LABELS',
    'Product', 'StockStatus',
    'LedgerEntry', 'LedgerEntryType', 'FinanceStats',
    'Notification', 'OrderChanged',
]
