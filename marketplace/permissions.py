from rest_framework import permissions

from utils.rbac import ROLE_ADMIN, ROLE_SUPPLIER, has_any_role, is_supplier


class IsSupplier(permissions.BasePermission):
    """
    Allows access only to authenticated users with the supplier role.
    """

    message = "Supplier account required."

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and is_supplier(request.user))


class IsSupplierOrAdmin(permissions.BasePermission):
    """
    Suppliers manage their own products; admins manage any product.
    Ownership itself is checked by the services.
    """

    message = "Supplier or admin account required."

    def has_permission(self, request, view):
        return bool(
            request.user and request.user.is_authenticated and has_any_role(request.user, [ROLE_SUPPLIER, ROLE_ADMIN])
        )
