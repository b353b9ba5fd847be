from __future__ import annotations

from typing import Any, Optional, Protocol

from services.product_service.models_db import Product


class ProductRepository(Protocol):
    async def create_product(self, values: dict[str, Any]) -> Product: ...
    async def list_products(self) -> list[Product]: ...
    async def get_by_id(self, product_id: int) -> Optional[Product]: ...
    async def list_by_category(self, category: str) -> list[Product]: ...
    async def search_by_name(self, name: str) -> list[Product]: ...

    async def toggle_active(self, product_id: int) -> Optional[Product]:
        """Flip ``active``; None when the product does not exist."""
        ...

    async def delete_product(self, product_id: int) -> bool: ...

    async def adjust_stock(self, product_id: int, delta: int) -> tuple[Optional[Product], bool]:
        """
        Add ``delta`` to the stock in one conditional UPDATE.

        Returns ``(product, applied)``: product is None when it does not exist;
        ``applied`` is False when the result would have been negative.
        """
        ...
