"""
Role checks.

Every check takes a role id (or None for users without a role) and answers
whether that role may perform an operation. Views never compare role ids
directly; they go through these checks or the permission classes built on
top of them in ``permissions.py``.
"""
from .models import Role

ADMIN = Role.ADMIN
STOREKEEPER = Role.STOREKEEPER
MANAGER = Role.MANAGER
DIRECTOR = Role.DIRECTOR
USER = Role.USER

ALL_ROLES = (ADMIN, STOREKEEPER, MANAGER, DIRECTOR, USER)
WAREHOUSE_STAFF = (ADMIN, MANAGER, STOREKEEPER)


def has_role(role_id, allowed):
    return role_id in allowed


def is_admin(role_id):
    return role_id == ADMIN


def can_view_receipts(role_id):
    return has_role(role_id, WAREHOUSE_STAFF)


def can_create_receipts(role_id):
    return has_role(role_id, (ADMIN, STOREKEEPER))


def can_view_realization(role_id):
    return has_role(role_id, WAREHOUSE_STAFF)


def can_create_realization(role_id):
    return has_role(role_id, (ADMIN, STOREKEEPER))


def can_delete_realization(role_id):
    return is_admin(role_id)


def can_manage_users(role_id):
    return is_admin(role_id)


def can_manage_brands(role_id):
    return is_admin(role_id)


def can_view_brands(role_id):
    return has_role(role_id, WAREHOUSE_STAFF)


def can_view_reports(role_id):
    return has_role(role_id, WAREHOUSE_STAFF)


def can_manage_products(role_id):
    return has_role(role_id, WAREHOUSE_STAFF)


def can_create_colors(role_id):
    return has_role(role_id, WAREHOUSE_STAFF)


def can_edit_colors(role_id):
    return has_role(role_id, (ADMIN, MANAGER))


def can_manage_actions(role_id):
    return is_admin(role_id)


def can_use_chat(role_id):
    return has_role(role_id, ALL_ROLES)


def permission_flags(role_id):
    """Flags the frontend uses to show or hide sections"""
    return {
        'is_admin': is_admin(role_id),
        'can_view_receipts': can_view_receipts(role_id),
        'can_create_receipts': can_create_receipts(role_id),
        'can_view_realization': can_view_realization(role_id),
        'can_create_realization': can_create_realization(role_id),
        'can_manage_users': can_manage_users(role_id),
        'can_manage_brands': can_manage_brands(role_id),
        'can_view_brands': can_view_brands(role_id),
        'can_view_reports': can_view_reports(role_id),
        'can_manage_products': can_manage_products(role_id),
        'can_create_colors': can_create_colors(role_id),
        'can_edit_colors': can_edit_colors(role_id),
        'can_manage_actions': can_manage_actions(role_id),
        'can_use_chat': can_use_chat(role_id),
    }
