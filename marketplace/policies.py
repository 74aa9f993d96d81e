"""
Authorization rules for marketplace resources.

Every ownership decision made by the services goes through these functions.
They accept model instances or snapshots alike: orders expose ``user_id`` and
``supplier_id``, products expose ``supplier_id``.
"""

from typing import Optional

from django.core.exceptions import ObjectDoesNotExist

from marketplace.ordering.domain.state_machine import CANCELLED
from utils.rbac import is_admin


def supplier_id_for(actor) -> Optional[int]:
    """SupplierProfile id of the actor, or None when the actor is not a supplier."""
    if actor is None or not getattr(actor, "is_authenticated", False):
        return None
    try:
        profile = actor.supplier_profile
    except ObjectDoesNotExist:
        return None
    return profile.id if profile is not None else None


def is_order_customer(actor, order) -> bool:
    return actor is not None and getattr(actor, "is_authenticated", False) and actor.pk == order.user_id


def is_order_supplier(actor, order) -> bool:
    supplier_id = supplier_id_for(actor)
    return supplier_id is not None and supplier_id == order.supplier_id


def can_view_order(actor, order) -> bool:
    return is_admin(actor) or is_order_customer(actor, order) or is_order_supplier(actor, order)


def can_transition(actor, order, target: str) -> bool:
    """Suppliers drive fulfilment; either party may cancel."""
    if target == CANCELLED:
        return is_order_supplier(actor, order) or is_order_customer(actor, order)
    return is_order_supplier(actor, order)


def can_cancel_order(actor, order) -> bool:
    return is_order_customer(actor, order) or is_order_supplier(actor, order)


def can_manage_product(actor, product) -> bool:
    if is_admin(actor):
        return True
    supplier_id = supplier_id_for(actor)
    return supplier_id is not None and supplier_id == product.supplier_id


def can_reply_to_review(supplier_id: Optional[int], review) -> bool:
    """Only the supplier of the reviewed product may answer a review."""
    return supplier_id is not None and review.product.supplier_id == supplier_id
