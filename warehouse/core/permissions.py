from rest_framework.permissions import BasePermission, SAFE_METHODS

from . import roles


def role_permission(check, message, safe_check=None):
    """
    Build a DRF permission class from a role check.

    ``safe_check`` (optional) is used for GET/HEAD/OPTIONS so a single view can
    allow wider read access than write access.
    """

    class RolePermission(BasePermission):

        def has_permission(self, request, view):
            user = request.user
            if not user or not user.is_authenticated:
                return False
            role_id = getattr(user, 'role_id', None)
            if safe_check is not None and request.method in SAFE_METHODS:
                allowed = safe_check(role_id)
            else:
                allowed = check(role_id)
            if not allowed:
                self.message = message
            return allowed

    RolePermission.message = message
    RolePermission.__name__ = f'RolePermission_{check.__name__}'
    return RolePermission


IsAdminRole = role_permission(roles.is_admin, 'Доступ разрешен только администраторам')

CanViewReceipts = role_permission(
    roles.can_create_receipts, 'Создание поступлений доступно только кладовщикам',
    safe_check=roles.can_view_receipts,
)
CanViewRealization = role_permission(
    roles.can_create_realization, 'Создание реализации доступно только кладовщикам',
    safe_check=roles.can_view_realization,
)
CanDeleteRealization = role_permission(
    roles.can_delete_realization, 'Удаление реализации доступно только администраторам',
    safe_check=roles.can_view_realization,
)
CanViewReports = role_permission(roles.can_view_reports, 'Недостаточно прав для просмотра отчетов')
CanManageBrands = role_permission(
    roles.can_manage_brands, 'Управление брендами доступно только администраторам',
    safe_check=roles.can_view_brands,
)
CanManageProducts = role_permission(
    roles.can_manage_products, 'Недостаточно прав для управления товарами',
    safe_check=lambda role_id: role_id is not None,
)
CanCreateColors = role_permission(
    roles.can_create_colors, 'Создание цветов доступно только администраторам, менеджерам и кладовщикам',
    safe_check=lambda role_id: role_id is not None,
)
CanEditColors = role_permission(
    roles.can_edit_colors, 'Редактирование цветов доступно только администраторам и менеджерам',
    safe_check=lambda role_id: role_id is not None,
)
CanManageUsers = role_permission(roles.can_manage_users, 'Управление пользователями доступно только администраторам')
CanManageActions = role_permission(roles.can_manage_actions, 'Управление действиями доступно только администраторам')
CanUseChat = role_permission(roles.can_use_chat, 'Нет доступа к чату')
