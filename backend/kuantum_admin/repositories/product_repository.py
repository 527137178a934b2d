"""
Product Repository - stock fields of the products table

Author: Kuantum Ticaret
Date: 2025-11-02
"""
from typing import Optional

from kuantum_admin.core.table_store import TableStore, StoreError
from kuantum_admin.domain.product import Product

PRODUCTS_TABLE = "products"


class ProductRepository:
    """Repository for the inventory projection of products"""

    def __init__(self, store: TableStore):
        self.store = store

    def find_by_id(self, product_id: str, for_update: bool = False) -> Optional[Product]:
        rows = self.store.select(PRODUCTS_TABLE, {'id': product_id}, for_update=for_update)
        return Product(**rows[0]) if rows else None

    def adjust_stock(self, product_id: str, delta: int, for_update: bool = False) -> Optional[Product]:
        """
        Apply delta to stock_quantity (floored at 0) and recompute stock_status

        Returns:
            The updated product, or the unchanged product when its stock
            is untracked

        Raises:
            StoreError: If the product does not exist or a call fails
        """
        product = self.find_by_id(product_id, for_update=for_update)
        if product is None:
            raise StoreError(PRODUCTS_TABLE, "select", f"product {product_id} not found")

        patch = product.stock_patch(delta)
        if patch is None:
            return product

        rows = self.store.update(PRODUCTS_TABLE, {'id': product_id}, patch)
        if not rows:
            raise StoreError(PRODUCTS_TABLE, "update", f"product {product_id} not updated")
        return Product(**rows[0])
