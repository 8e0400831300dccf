"""
Role based access control.

Permissions are strings shaped ``resource:action[:scope]`` (for example
``quotes:read:own``). Each role is granted a fixed list of them; ADMIN holds
the ``*`` wildcard.
"""

from typing import Iterable, List, Optional

from rest_framework import permissions

ADMIN = 'ADMIN'
OPERATIONS_MANAGER = 'OPERATIONS_MANAGER'
FINANCE_MANAGER = 'FINANCE_MANAGER'
CLIENT = 'CLIENT'
VIEWER = 'VIEWER'

STAFF_ROLES = (ADMIN, OPERATIONS_MANAGER, FINANCE_MANAGER)

ROLE_PERMISSIONS = {
    ADMIN: ['*'],
    OPERATIONS_MANAGER: [
        'shipments:read', 'shipments:create', 'shipments:update', 'shipments:delete',
        'clients:read', 'clients:create', 'clients:update',
        'tracking:read', 'tracking:create',
        'quotes:read', 'quotes:create', 'quotes:update',
        'pickups:read', 'pickups:create', 'pickups:update',
        'documents:read', 'documents:create',
        'reports:operations',
    ],
    FINANCE_MANAGER: [
        'invoices:read', 'invoices:create', 'invoices:update',
        'quotes:read', 'quotes:create', 'quotes:update',
        'shipments:read',
        'clients:read',
        'pickups:read',
        'reports:read',
    ],
    CLIENT: [
        'shipments:read:own',
        'quotes:read:own', 'quotes:create:own',
        'pickups:read:own', 'pickups:create:own',
        'tracking:read:own',
        'clients:read:own',
    ],
    VIEWER: [
        'shipments:read',
        'clients:read',
        'quotes:read',
        'pickups:read',
        'tracking:read',
        'reports:read',
    ],
}


def get_role_permissions(role: Optional[str]) -> List[str]:
    return list(ROLE_PERMISSIONS.get(role or '', []))


def has_permission(role: Optional[str], permission: str) -> bool:
    """
    Check a single permission for a role.

    Resolution order: the ``*`` wildcard, an exact match, a ``resource:*``
    grant, then (for scoped checks) the unscoped ``resource:action`` grant.
    A role holding ``quotes:read`` therefore satisfies ``quotes:read:own``
    but not the reverse.
    """
    granted = ROLE_PERMISSIONS.get(role or '')
    if not granted:
        return False
    if '*' in granted:
        return True
    if permission in granted:
        return True

    parts = permission.split(':')
    if f"{parts[0]}:*" in granted:
        return True
    if len(parts) == 3 and f"{parts[0]}:{parts[1]}" in granted:
        return True
    return False


def has_any_permission(role: Optional[str], perms: Iterable[str]) -> bool:
    return any(has_permission(role, p) for p in perms)


def has_all_permissions(role: Optional[str], perms: Iterable[str]) -> bool:
    return all(has_permission(role, p) for p in perms)


def is_staff_role(role: Optional[str]) -> bool:
    return role in STAFF_ROLES


def can_access_client(user, client_id) -> bool:
    """Staff roles see every client; everyone else only their own company."""
    if not user or not user.is_authenticated:
        return False
    if is_staff_role(getattr(user, 'role', None)):
        return True
    own = getattr(user, 'client_id', None)
    return own is not None and client_id is not None and str(own) == str(client_id)


class RolePermission(permissions.BasePermission):
    """
    Map view actions to permission strings.

    The view declares ``permission_map = {'list': 'quotes:read:own', ...}``;
    a list value requires every permission in it. Actions missing from the map
    are refused.
    """
    message = "You do not have permission to perform this action."

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        action = getattr(view, 'action', None) or request.method.lower()
        required = getattr(view, 'permission_map', {}).get(action)
        if required is None:
            return False
        role = getattr(user, 'role', None)
        if isinstance(required, (list, tuple)):
            return has_all_permissions(role, required)
        return has_permission(role, required)


class IsOperationsOrAdmin(permissions.BasePermission):
    """
    ADMIN or OPERATIONS_MANAGER users, e.g. for shipment status changes.
    """
    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.role in (ADMIN, OPERATIONS_MANAGER)


class IsStaffRole(permissions.BasePermission):
    """
    Internal roles (admin, operations, finance).
    """
    def has_permission(self, request, view):
        return request.user.is_authenticated and is_staff_role(request.user.role)


class IsAdminOrReadOnly(permissions.BasePermission):
    """
    Any authenticated user may read; only ADMIN may write.
    """
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return request.user.role == ADMIN


def can_read_all(user, resource: str) -> bool:
    """True when the user's role reads ``resource`` unscoped (not just ``:own``)."""
    return has_permission(getattr(user, 'role', None), f"{resource}:read")
