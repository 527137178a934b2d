"""
FastAPI dependencies shared by the routers
"""
from kuantum_admin.core.database import get_table_store
from kuantum_admin.repositories import LedgerRepository, OrderRepository
from kuantum_admin.services.order_lifecycle_service import OrderLifecycleService
from kuantum_admin.services.order_stats_service import OrderStatsService


def get_lifecycle_service() -> OrderLifecycleService:
    return OrderLifecycleService(get_table_store())


def get_order_repository() -> OrderRepository:
    return OrderRepository(get_table_store())


def get_stats_service() -> OrderStatsService:
    return OrderStatsService(OrderRepository(get_table_store()))


def get_ledger_repository() -> LedgerRepository:
    return LedgerRepository(get_table_store())
