"""
Ledger Domain Models

Income and expense records of the `expenses` table. At most one income
entry exists per order: it is created when the order is first delivered
and removed when the delivered fact is retracted.

Author: Kuantum Ticaret
Date: 2025-11-02
"""
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict
from typing import Iterable, Optional
from datetime import datetime
from decimal import Decimal


class LedgerEntryType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class LedgerEntry(BaseModel):
    id: Optional[str] = None
    type: LedgerEntryType
    amount: Decimal = Field(..., ge=0)
    description: str
    order_id: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class FinanceStats(BaseModel):
    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")
    profit: Decimal = Decimal("0")


def compute_finance_stats(entries: Iterable[LedgerEntry]) -> FinanceStats:
    """Totals per entry type and the resulting profit"""
    total_income = Decimal("0")
    total_expense = Decimal("0")

    for entry in entries:
        if entry.type == LedgerEntryType.INCOME:
            total_income += entry.amount
        else:
            total_expense += entry.amount

    return FinanceStats(
        total_income=total_income,
        total_expense=total_expense,
        profit=total_income - total_expense
    )
