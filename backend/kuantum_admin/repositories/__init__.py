"""
Repository Layer - Data Access

Repositories read and write remote tables through a TableStore and
return domain models.

Author: Kuantum Ticaret
Date: 2025-11-02
"""
from kuantum_admin.repositories.order_repository import OrderRepository
from kuantum_admin.repositories.product_repository import ProductRepository
from kuantum_admin.repositories.ledger_repository import LedgerRepository
from kuantum_admin.repositories.notification_repository import NotificationRepository

__all__ = [
    'OrderRepository',
    'ProductRepository',
    'LedgerRepository',
    'NotificationRepository'
]
