"""
OrderService - Order Lifecycle Management

Checkout (one order per supplier), the status state machine, cancellation
with stock restoration, tracking, and order reads. Orchestrates the cart,
inventory, pricing, notification and activity services.
"""

import logging
import random
import time
from collections import OrderedDict
from datetime import timedelta
from typing import Dict, List, Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.utils import timezone

from marketplace import policies
from marketplace.cart.domain.models.cart import Cart
from marketplace.cart.domain.services.cart_service import CartService
from marketplace.cart.domain.services.inventory_service import InventoryService
from marketplace.cart.domain.services.pricing_service import PricingService
from marketplace.infra.observability.metrics import order_status_transitions_total, order_value, orders_placed_total
from marketplace.notifications.domain.services.notification_service import NotificationService, NotificationTypes
from marketplace.ordering.domain import state_machine
from marketplace.ordering.domain.models.order import Order, OrderItem
from marketplace.ordering.domain.snapshots import OrderSnapshot, TrackingInfo
from marketplace.services.base import (
    BaseService,
    ErrorCodes,
    ServiceAbort,
    ServiceResult,
    paginate,
    service_err,
    service_ok,
)
from marketplace.suppliers.domain.models.supplier import SupplierProfile

User = get_user_model()
logger = logging.getLogger(__name__)

ORDER_NUMBER_ATTEMPTS = 5
PAYMENT_METHODS = {value for value, _ in Order.PAYMENT_METHOD_CHOICES}


def generate_order_number() -> str:
    """ORD-<epoch milliseconds>-<3 random digits>."""
    return f"ORD-{int(time.time() * 1000)}-{random.randint(0, 999):03d}"


class OrderService(BaseService):
    """
    Service for managing order lifecycle.
    """

    def __init__(
        self,
        cart_service: CartService = None,
        inventory_service: InventoryService = None,
        pricing_service: PricingService = None,
        notification_service: NotificationService = None,
        activity_service=None,
    ):
        """
        Initialize OrderService.

        Args:
            cart_service: Service for cart operations (injected)
            inventory_service: Service for stock management (injected)
            pricing_service: Service for price calculations (injected)
            notification_service: Outbox for user notifications (injected)
            activity_service: Audit trail writer (injected)
        """
        super().__init__()
        self.inventory_service = inventory_service or InventoryService()
        self.pricing_service = pricing_service or PricingService()
        self.cart_service = cart_service or CartService(self.inventory_service, self.pricing_service)
        self.notification_service = notification_service or NotificationService()
        if activity_service is None:
            from activity.services import ActivityLogService

            activity_service = ActivityLogService()
        self.activity_service = activity_service

    @BaseService.log_performance
    def create_order(
        self,
        user: User,
        shipping_address: Dict,
        billing_address: Optional[Dict] = None,
        payment_method: str = "card",
    ) -> ServiceResult[List[OrderSnapshot]]:
        """
        Turn the user's cart into one order per supplier.

        Everything runs in one transaction: stock is decremented with a
        conditional UPDATE per item and any failure rolls back every order,
        every decrement and the cart clear.

        Returns:
            ServiceResult with every created order (first supplier first), or
            cart_empty / product_unavailable / insufficient_stock / invalid_input

        Example:
            >>> result = order_service.create_order(user, shipping_address={"street": "Av. Juárez 10"})
            >>> if result.ok:
            ...     numbers = [order.order_number for order in result.value]
        """
        if not isinstance(shipping_address, dict) or not shipping_address:
            return service_err(ErrorCodes.INVALID_INPUT, "Shipping address is required")
        if billing_address is not None and not isinstance(billing_address, dict):
            return service_err(ErrorCodes.INVALID_INPUT, "Billing address must be an object")
        if payment_method not in PAYMENT_METHODS:
            return service_err(ErrorCodes.INVALID_INPUT, f"Unsupported payment method '{payment_method}'")

        try:
            with transaction.atomic():
                cart = Cart.objects.select_for_update().filter(user=user).first()
                cart_items = list(cart.items.select_related("product").order_by("id")) if cart else []
                if not cart_items:
                    raise ServiceAbort(service_err(ErrorCodes.CART_EMPTY, "Cart is empty"))

                # Fail fast before writing anything
                for item in cart_items:
                    check = self.inventory_service.validate_purchase(item.product, item.quantity)
                    if not check.ok:
                        raise ServiceAbort(check)

                by_supplier = OrderedDict()
                for item in cart_items:
                    by_supplier.setdefault(item.product.supplier_id, []).append(item)

                now = timezone.now()
                estimated_delivery = now + timedelta(days=settings.ORDER_ESTIMATED_DELIVERY_DAYS)
                orders = []

                for supplier_id, items in by_supplier.items():
                    totals = self.pricing_service.calculate_order_totals(items)
                    if not totals.ok:
                        raise ServiceAbort(totals)

                    order = self._insert_order(
                        user=user,
                        supplier_id=supplier_id,
                        subtotal=totals.value["subtotal"],
                        shipping_cost=totals.value["shipping_cost"],
                        tax=totals.value["tax"],
                        total=totals.value["total"],
                        currency=cart.currency,
                        shipping_address=shipping_address,
                        billing_address=billing_address,
                        payment_method=payment_method,
                        estimated_delivery=estimated_delivery,
                    )

                    for item in items:
                        decrement = self.inventory_service.decrement_stock(item.product_id, item.quantity)
                        if not decrement.ok:
                            raise ServiceAbort(decrement)

                        OrderItem.objects.create(
                            order=order,
                            product=item.product,
                            quantity=item.quantity,
                            price=item.price,
                            subtotal=self.pricing_service.line_subtotal(item.price, item.quantity),
                            product_name=item.product.name,
                            product_image=item.product.primary_image_url,
                        )

                    orders.append(order)

                cart.items.all().delete()
                self.cart_service.recalculate(cart)

                snapshots = [OrderSnapshot.from_model(order) for order in orders]
                self._announce_new_orders(user, snapshots)

        except ServiceAbort as abort:
            self.logger.warning(f"Checkout for user {user.id} aborted: {abort.result.error}")
            return abort.result
        except Exception as e:
            self.logger.error(f"Error creating orders for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

        for snapshot in snapshots:
            orders_placed_total.labels(status=snapshot.status).inc()
            order_value.observe(float(snapshot.total))

        self.logger.info(
            f"Created {len(snapshots)} orders for user {user.id}: {[s.order_number for s in snapshots]}"
        )
        return service_ok(snapshots)

    @BaseService.log_performance
    def update_status(
        self,
        order_id,
        actor: User,
        new_status: str,
        tracking_number: Optional[str] = None,
        carrier: Optional[str] = None,
    ) -> ServiceResult[OrderSnapshot]:
        """
        Move an order along the state machine.

        Only the supplier may confirm, prepare, ship or deliver. Cancelling
        through this path is open to the supplier and the customer and
        restores stock like ``cancel_order``.

        Returns:
            ServiceResult with the updated order, or order_not_found /
            permission_denied / invalid_status_transition
        """
        if new_status not in state_machine.ALL_STATUSES:
            return service_err(ErrorCodes.INVALID_INPUT, f"Unknown order status '{new_status}'")

        try:
            with transaction.atomic():
                order = self._lock_order(order_id)
                before = OrderSnapshot.from_model(order)

                if not policies.can_transition(actor, before, new_status):
                    raise ServiceAbort(
                        service_err(ErrorCodes.PERMISSION_DENIED, "You cannot change the status of this order")
                    )

                if new_status == state_machine.CANCELLED:
                    after = self._cancel(before, actor, reason="", invalid_code=ErrorCodes.INVALID_STATUS_TRANSITION)
                else:
                    after = self._apply(
                        before,
                        new_status,
                        invalid_code=ErrorCodes.INVALID_STATUS_TRANSITION,
                        tracking_number=tracking_number,
                        carrier=carrier,
                    )
                    self._notify(
                        after.user_id,
                        NotificationTypes.for_order_status(new_status),
                        after,
                    )

        except ServiceAbort as abort:
            return abort.result
        except Exception as e:
            self.logger.error(f"Error updating status of order {order_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

        self.logger.info(f"Order {after.order_number} moved {before.status} -> {after.status} by {actor.id}")
        return service_ok(after)

    @BaseService.log_performance
    def add_tracking_info(self, order_id, actor: User, tracking_number: str, carrier: str) -> ServiceResult[OrderSnapshot]:
        """
        Record shipment details and mark the order shipped.

        Only valid from confirmed or preparing; supplier only.

        Returns:
            ServiceResult with the shipped order, or order_not_found /
            permission_denied / invalid_order_state / invalid_input
        """
        if not tracking_number or not carrier:
            return service_err(ErrorCodes.INVALID_INPUT, "Tracking number and carrier are required")

        try:
            with transaction.atomic():
                order = self._lock_order(order_id)
                before = OrderSnapshot.from_model(order)

                if not policies.can_transition(actor, before, state_machine.SHIPPED):
                    raise ServiceAbort(
                        service_err(ErrorCodes.PERMISSION_DENIED, "Only the supplier can add tracking information")
                    )

                try:
                    after = state_machine.ship_with_tracking(
                        before, at=timezone.now(), tracking_number=tracking_number, carrier=carrier
                    )
                except state_machine.InvalidTransitionError as e:
                    raise ServiceAbort(service_err(ErrorCodes.INVALID_ORDER_STATE, str(e)))

                self._persist(before, after, invalid_code=ErrorCodes.INVALID_ORDER_STATE)
                self._notify(after.user_id, NotificationTypes.ORDER_SHIPPED, after)

        except ServiceAbort as abort:
            return abort.result
        except Exception as e:
            self.logger.error(f"Error adding tracking to order {order_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

        self.logger.info(f"Order {after.order_number} shipped with {carrier} {tracking_number}")
        return service_ok(after)

    @BaseService.log_performance
    def cancel_order(self, order_id, actor: User, reason: str = "") -> ServiceResult[OrderSnapshot]:
        """
        Cancel an order before it ships and put its items back in stock.

        Returns:
            ServiceResult with the cancelled order, or order_not_found /
            not_order_owner / order_cannot_cancel

        Example:
            >>> result = order_service.cancel_order(order_id, actor=buyer, reason="Changed my mind")
        """
        try:
            with transaction.atomic():
                order = self._lock_order(order_id)
                before = OrderSnapshot.from_model(order)

                if not policies.can_cancel_order(actor, before):
                    raise ServiceAbort(service_err(ErrorCodes.NOT_ORDER_OWNER, "You cannot cancel this order"))

                if before.status not in state_machine.CANCELLABLE_STATUSES:
                    raise ServiceAbort(
                        service_err(
                            ErrorCodes.ORDER_CANNOT_CANCEL,
                            f"Cannot cancel order in status '{before.status}'",
                        )
                    )

                after = self._cancel(before, actor, reason=reason or "", invalid_code=ErrorCodes.ORDER_CANNOT_CANCEL)

        except ServiceAbort as abort:
            return abort.result
        except Exception as e:
            self.logger.error(f"Error cancelling order {order_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

        self.logger.info(f"Cancelled order {after.order_number} by user {actor.id}: {reason}")
        return service_ok(after)

    @BaseService.log_performance
    def get_order(self, order_id, actor: User) -> ServiceResult[OrderSnapshot]:
        """
        Get one order visible to ``actor`` (its customer, its supplier or an admin).
        """
        try:
            order = Order.objects.prefetch_related("items").get(id=order_id)
        except Order.DoesNotExist:
            return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order_id} not found")

        if not policies.can_view_order(actor, order):
            return service_err(ErrorCodes.NOT_ORDER_OWNER, "You do not have access to this order")

        return service_ok(OrderSnapshot.from_model(order))

    @BaseService.log_performance
    def list_user_orders(
        self, user: User, status: Optional[str] = None, page: int = 1, page_size: int = 20
    ) -> ServiceResult[Dict]:
        """
        List the user's orders, newest first.

        Example:
            >>> result = order_service.list_user_orders(user, status="pending")
            >>> if result.ok:
            ...     orders = result.value["results"]
        """
        try:
            queryset = Order.objects.filter(user=user).prefetch_related("items")
            if status:
                queryset = queryset.filter(status=status)

            data = paginate(queryset.order_by("-created_at"), page, page_size, OrderSnapshot.from_model)
            self.logger.info(f"Listed orders for user {user.id}: {data['count']} total, page {data['page']}")
            return service_ok(data)

        except Exception as e:
            self.logger.error(f"Error listing orders for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    def list_supplier_orders(
        self, supplier_user: User, status: Optional[str] = None, page: int = 1, page_size: int = 20
    ) -> ServiceResult[Dict]:
        """
        List orders placed with the supplier profile of ``supplier_user``, newest first.
        """
        supplier_id = policies.supplier_id_for(supplier_user)
        if supplier_id is None:
            return service_err(ErrorCodes.SUPPLIER_NOT_FOUND, "No supplier profile for this user")

        try:
            queryset = Order.objects.filter(supplier_id=supplier_id).prefetch_related("items")
            if status:
                queryset = queryset.filter(status=status)

            data = paginate(queryset.order_by("-created_at"), page, page_size, OrderSnapshot.from_model)
            self.logger.info(f"Listed orders for supplier {supplier_id}: {data['count']} total, page {data['page']}")
            return service_ok(data)

        except Exception as e:
            self.logger.error(f"Error listing orders for supplier {supplier_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    def get_tracking_info(self, order_id, actor: User) -> ServiceResult[TrackingInfo]:
        """Shipment details of an order visible to ``actor``."""
        result = self.get_order(order_id, actor)
        if not result.ok:
            return result
        return service_ok(TrackingInfo.from_snapshot(result.value))

    def _lock_order(self, order_id) -> Order:
        try:
            return Order.objects.select_for_update().get(id=order_id)
        except Order.DoesNotExist:
            raise ServiceAbort(service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order_id} not found"))

    def _apply(self, before: OrderSnapshot, target: str, invalid_code: str, **details) -> OrderSnapshot:
        """Run the transition and persist the fields it changed."""
        try:
            after = state_machine.transition(before, target, at=timezone.now(), **details)
        except state_machine.InvalidTransitionError as e:
            raise ServiceAbort(service_err(invalid_code, str(e)))

        return self._persist(before, after, invalid_code)

    def _persist(self, before: OrderSnapshot, after: OrderSnapshot, invalid_code: str) -> OrderSnapshot:
        """Write the changed fields, guarded on the status the change was computed from."""
        changes = state_machine.changed_fields(before, after)
        updated = Order.objects.filter(id=before.id, status=before.status).update(
            updated_at=timezone.now(), **changes
        )
        if updated == 0:
            raise ServiceAbort(service_err(invalid_code, f"Order {before.order_number} was modified concurrently"))

        order_status_transitions_total.labels(from_status=before.status, to_status=after.status).inc()
        return after

    def _cancel(self, before: OrderSnapshot, actor: User, reason: str, invalid_code: str) -> OrderSnapshot:
        after = self._apply(before, state_machine.CANCELLED, invalid_code=invalid_code, cancellation_reason=reason)

        for item in before.items:
            restored = self.inventory_service.restore_stock(item.product_id, item.quantity)
            if not restored.ok:
                raise ServiceAbort(restored)

        # Tell the other party
        if policies.is_order_customer(actor, before):
            recipient_id = SupplierProfile.objects.values_list("user_id", flat=True).get(id=before.supplier_id)
        else:
            recipient_id = before.user_id
        self._notify(recipient_id, NotificationTypes.ORDER_CANCELLED, after, reason=reason)

        self.activity_service.log_activity(
            action="order_cancelled",
            resource="order",
            resource_id=before.id,
            user=actor,
            metadata={"order_number": before.order_number, "previous_status": before.status, "reason": reason},
        )
        return after

    def _insert_order(self, **fields) -> Order:
        """Create an order row, drawing a fresh order number on collision."""
        for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
            order_number = generate_order_number()
            try:
                with transaction.atomic():
                    return Order.objects.create(order_number=order_number, **fields)
            except IntegrityError:
                if attempt == ORDER_NUMBER_ATTEMPTS:
                    raise
                self.logger.warning(f"Order number {order_number} already taken, retrying ({attempt})")

    def _announce_new_orders(self, user: User, orders: List[OrderSnapshot]) -> None:
        supplier_users = dict(
            SupplierProfile.objects.filter(id__in={o.supplier_id for o in orders}).values_list("id", "user_id")
        )
        for order in orders:
            self._notify(
                supplier_users[order.supplier_id],
                NotificationTypes.ORDER_CREATED,
                order,
                customer_id=str(user.id),
                item_count=len(order.items),
            )
            self.activity_service.log_activity(
                action="order_created",
                resource="order",
                resource_id=order.id,
                user=user,
                metadata={
                    "order_number": order.order_number,
                    "supplier_id": order.supplier_id,
                    "total": str(order.total),
                },
            )

    def _notify(self, recipient_id, notification_type: str, order: OrderSnapshot, **extra) -> None:
        data = {
            "order_id": str(order.id),
            "order_number": order.order_number,
            "status": order.status,
            "total": str(order.total),
        }
        if order.tracking_number:
            data["tracking_number"] = order.tracking_number
            data["carrier"] = order.carrier
        data.update(extra)
        self.notification_service.enqueue(recipient_id, notification_type, data)
