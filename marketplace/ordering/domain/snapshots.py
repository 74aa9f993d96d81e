"""Read-only views of orders handed out by OrderService."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple
from uuid import UUID


@dataclass(frozen=True)
class OrderItemSnapshot:
    id: int
    product_id: UUID
    product_name: str
    product_image: str
    quantity: int
    price: Decimal
    subtotal: Decimal

    @classmethod
    def from_model(cls, item) -> "OrderItemSnapshot":
        return cls(
            id=item.id,
            product_id=item.product_id,
            product_name=item.product_name,
            product_image=item.product_image,
            quantity=item.quantity,
            price=item.price,
            subtotal=item.subtotal,
        )


@dataclass(frozen=True)
class OrderSnapshot:
    id: UUID
    order_number: str
    user_id: UUID
    supplier_id: int
    status: str
    payment_status: str
    payment_method: str
    subtotal: Decimal
    shipping_cost: Decimal
    tax: Decimal
    total: Decimal
    currency: str
    shipping_address: Dict[str, Any]
    billing_address: Optional[Dict[str, Any]]
    tracking_number: str = ""
    carrier: str = ""
    estimated_delivery: Optional[datetime] = None
    created_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: str = ""
    items: Tuple[OrderItemSnapshot, ...] = field(default_factory=tuple)

    @classmethod
    def from_model(cls, order) -> "OrderSnapshot":
        return cls(
            id=order.id,
            order_number=order.order_number,
            user_id=order.user_id,
            supplier_id=order.supplier_id,
            status=order.status,
            payment_status=order.payment_status,
            payment_method=order.payment_method,
            subtotal=order.subtotal,
            shipping_cost=order.shipping_cost,
            tax=order.tax,
            total=order.total,
            currency=order.currency,
            shipping_address=dict(order.shipping_address or {}),
            billing_address=dict(order.billing_address) if order.billing_address else None,
            tracking_number=order.tracking_number,
            carrier=order.carrier,
            estimated_delivery=order.estimated_delivery,
            created_at=order.created_at,
            confirmed_at=order.confirmed_at,
            shipped_at=order.shipped_at,
            delivered_at=order.delivered_at,
            cancelled_at=order.cancelled_at,
            cancellation_reason=order.cancellation_reason,
            items=tuple(OrderItemSnapshot.from_model(item) for item in order.items.all()),
        )


@dataclass(frozen=True)
class TrackingInfo:
    order_id: UUID
    order_number: str
    status: str
    tracking_number: str
    carrier: str
    shipped_at: Optional[datetime]
    delivered_at: Optional[datetime]
    estimated_delivery: Optional[datetime]

    @classmethod
    def from_snapshot(cls, order: OrderSnapshot) -> "TrackingInfo":
        return cls(
            order_id=order.id,
            order_number=order.order_number,
            status=order.status,
            tracking_number=order.tracking_number,
            carrier=order.carrier,
            shipped_at=order.shipped_at,
            delivered_at=order.delivered_at,
            estimated_delivery=order.estimated_delivery,
        )
