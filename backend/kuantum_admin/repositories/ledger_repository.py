"""
Ledger Repository - income/expense entries (`expenses` table)

Author: Kuantum Ticaret
Date: 2025-11-02
"""
from decimal import Decimal
from typing import List, Optional

from kuantum_admin.core.table_store import TableStore
from kuantum_admin.domain.ledger import LedgerEntry, LedgerEntryType

LEDGER_TABLE = "expenses"


class LedgerRepository:
    """Repository for ledger entries"""

    def __init__(self, store: TableStore):
        self.store = store

    def find_all(self, entry_type: Optional[str] = None) -> List[LedgerEntry]:
        """All entries, newest first"""
        filters = {'type': entry_type} if entry_type else None
        rows = self.store.select(LEDGER_TABLE, filters, order_by='created_at', descending=True)
        return [LedgerEntry(**row) for row in rows]

    def find_income_for_order(self, order_id: str) -> List[LedgerEntry]:
        rows = self.store.select(
            LEDGER_TABLE, {'order_id': order_id, 'type': LedgerEntryType.INCOME.value}
        )
        return [LedgerEntry(**row) for row in rows]

    def insert_income(self, order_id: str, amount: Decimal, description: str) -> LedgerEntry:
        row = self.store.insert(LEDGER_TABLE, {
            'type': LedgerEntryType.INCOME.value,
            'amount': amount,
            'description': description,
            'order_id': order_id,
        })
        return LedgerEntry(**row)

    def delete_income_for_order(self, order_id: str) -> int:
        """Delete the order's income entries, returning how many were removed"""
        rows = self.store.delete(
            LEDGER_TABLE, {'order_id': order_id, 'type': LedgerEntryType.INCOME.value}
        )
        return len(rows)
