"""
Finances API Endpoints
Ledger entries (income and expenses) with totals
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from kuantum_admin.api.dependencies import get_ledger_repository
from kuantum_admin.core.table_store import StoreConfigurationError, StoreError
from kuantum_admin.domain.ledger import LedgerEntryType, compute_finance_stats
from kuantum_admin.repositories import LedgerRepository

router = APIRouter()


@router.get("/")
def get_finances(
    type: Optional[LedgerEntryType] = Query(None, description="Filter by entry type (income, expense)"),
    repo: LedgerRepository = Depends(get_ledger_repository)
):
    """
    Get ledger entries and totals

    Totals are computed over the returned entries.
    """
    try:
        entries = repo.find_all(entry_type=type.value if type else None)
    except (StoreError, StoreConfigurationError) as e:
        raise HTTPException(status_code=500, detail=f"Error fetching finances: {str(e)}")

    stats = compute_finance_stats(entries)

    return {
        "status": "success",
        "count": len(entries),
        "stats": stats.model_dump(mode="json"),
        "data": [entry.model_dump(mode="json") for entry in entries]
    }
