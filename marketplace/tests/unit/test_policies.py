from types import SimpleNamespace

import pytest

from marketplace import policies
from marketplace.ordering.domain import state_machine as sm


def actor(pk, role="user", supplier_id=None, is_superuser=False):
    profile = SimpleNamespace(id=supplier_id) if supplier_id is not None else None
    return SimpleNamespace(
        pk=pk, id=pk, role=role, is_authenticated=True, is_superuser=is_superuser, supplier_profile=profile
    )


@pytest.mark.unit
class TestMarketplacePolicies:
    def setup_method(self):
        self.customer = actor("customer")
        self.supplier = actor("supplier", role="supplier", supplier_id=7)
        self.other_supplier = actor("other", role="supplier", supplier_id=8)
        self.stranger = actor("stranger")
        self.admin = actor("admin", role="admin")
        self.order = SimpleNamespace(user_id="customer", supplier_id=7)
        self.product = SimpleNamespace(supplier_id=7)

    def test_view_order(self):
        assert policies.can_view_order(self.customer, self.order)
        assert policies.can_view_order(self.supplier, self.order)
        assert policies.can_view_order(self.admin, self.order)
        assert not policies.can_view_order(self.stranger, self.order)
        assert not policies.can_view_order(self.other_supplier, self.order)

    def test_only_supplier_drives_fulfilment(self):
        for target in (sm.CONFIRMED, sm.PREPARING, sm.SHIPPED, sm.DELIVERED):
            assert policies.can_transition(self.supplier, self.order, target)
            assert not policies.can_transition(self.customer, self.order, target)
            assert not policies.can_transition(self.other_supplier, self.order, target)

    def test_either_party_may_cancel(self):
        assert policies.can_transition(self.customer, self.order, sm.CANCELLED)
        assert policies.can_transition(self.supplier, self.order, sm.CANCELLED)
        assert not policies.can_transition(self.stranger, self.order, sm.CANCELLED)
        assert policies.can_cancel_order(self.customer, self.order)
        assert not policies.can_cancel_order(self.stranger, self.order)

    def test_manage_product(self):
        assert policies.can_manage_product(self.supplier, self.product)
        assert policies.can_manage_product(self.admin, self.product)
        assert not policies.can_manage_product(self.other_supplier, self.product)
        assert not policies.can_manage_product(self.customer, self.product)

    def test_reply_to_review(self):
        review = SimpleNamespace(product=self.product)

        assert policies.can_reply_to_review(7, review)
        assert not policies.can_reply_to_review(8, review)
        assert not policies.can_reply_to_review(None, review)

    def test_anonymous_actor_has_no_supplier(self):
        anonymous = SimpleNamespace(is_authenticated=False)

        assert policies.supplier_id_for(anonymous) is None
        assert policies.supplier_id_for(None) is None
