"""Read-only views of a cart handed out by CartService."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple
from uuid import UUID


@dataclass(frozen=True)
class CartItemSnapshot:
    id: int
    product_id: UUID
    product_name: str
    supplier_id: int
    quantity: int
    price: Decimal
    subtotal: Decimal
    is_available: bool
    stock_quantity: int

    @classmethod
    def from_model(cls, item) -> "CartItemSnapshot":
        product = item.product
        return cls(
            id=item.id,
            product_id=item.product_id,
            product_name=product.name,
            supplier_id=product.supplier_id,
            quantity=item.quantity,
            price=item.price,
            subtotal=item.subtotal,
            is_available=product.is_available,
            stock_quantity=product.stock_quantity,
        )


@dataclass(frozen=True)
class CartSnapshot:
    id: Optional[int]
    user_id: UUID
    items: Tuple[CartItemSnapshot, ...]
    subtotal: Decimal
    total: Decimal
    currency: str
    updated_at: Optional[datetime] = None

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    @classmethod
    def from_model(cls, cart) -> "CartSnapshot":
        items = tuple(CartItemSnapshot.from_model(item) for item in cart.items.select_related("product"))
        return cls(
            id=cart.id,
            user_id=cart.user_id,
            items=items,
            subtotal=cart.subtotal,
            total=cart.total,
            currency=cart.currency,
            updated_at=cart.updated_at,
        )
