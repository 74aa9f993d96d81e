from typing import Iterable

# Canonical role names
ROLE_USER = "user"
ROLE_SUPPLIER = "supplier"
ROLE_PROFESSIONAL = "professional"
ROLE_ADMIN = "admin"

ALL_ROLES = (ROLE_USER, ROLE_SUPPLIER, ROLE_PROFESSIONAL, ROLE_ADMIN)


def _role_of(user):
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    return getattr(user, "role", None)


def is_admin(user) -> bool:
    """Superusers and users with the admin role."""
    if user is None or not getattr(user, "is_authenticated", False):
        return False
    return bool(getattr(user, "is_superuser", False) or _role_of(user) == ROLE_ADMIN)


def is_supplier(user) -> bool:
    """Suppliers own products and fulfil orders. Admins are not suppliers."""
    return _role_of(user) == ROLE_SUPPLIER


def has_role(user, role: str) -> bool:
    if role == ROLE_ADMIN:
        return is_admin(user)
    return _role_of(user) == role


def has_any_role(user, roles: Iterable[str]) -> bool:
    return any(has_role(user, r) for r in roles)

