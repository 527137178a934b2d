"""
Product Domain Model (inventory projection)

Only the stock fields are owned by the order lifecycle engine.
Invariant: stock_status == 'out_of_stock' iff stock_quantity <= 0,
for products whose quantity is tracked. A null quantity means the
product is untracked and always in stock.

Author: Kuantum Ticaret
Date: 2025-11-02
"""
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime
from decimal import Decimal


class StockStatus(str, Enum):
    IN_STOCK = "in_stock"
    LIMITED_STOCK = "limited_stock"
    OUT_OF_STOCK = "out_of_stock"


class Product(BaseModel):
    id: str = Field(..., description="Product ID")
    title: Optional[str] = Field(None, description="Product title")
    price: Optional[Decimal] = Field(None, ge=0)
    stock_quantity: Optional[int] = Field(None, description="Units on hand, null when untracked")
    stock_status: Optional[str] = Field(None, description="in_stock, limited_stock or out_of_stock")
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_tracked(self) -> bool:
        return self.stock_quantity is not None

    @property
    def is_out_of_stock(self) -> bool:
        return self.is_tracked and self.stock_quantity <= 0

    def stock_patch(self, delta: int) -> Optional[dict]:
        """
        Patch applying delta to the stock quantity, floored at 0

        Returns None for untracked products.
        """
        if not self.is_tracked:
            return None

        quantity = max(0, self.stock_quantity + delta)
        status = StockStatus.OUT_OF_STOCK if quantity == 0 else StockStatus.IN_STOCK
        return {'stock_quantity': quantity, 'stock_status': status.value}
