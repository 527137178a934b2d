"""
Order change events published after every successful lifecycle operation
"""
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

from kuantum_admin.domain.order import OrderStatus


class OrderChanged(BaseModel):
    order_id: str
    action: str
    previous_status: Optional[OrderStatus] = None
    new_status: Optional[OrderStatus] = None
    trashed: bool = False
    applied_effects: List[str] = Field(default_factory=list)
    failed_effects: List[str] = Field(default_factory=list)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
