"""
Papéis e permissões dos usuários da empresa
"""
import enum
from typing import Dict, Optional


class UserRole(enum.Enum):
    """Roles de usuário"""
    ADMIN = "admin"        # Acesso total
    MANAGER = "manager"    # Gerente: pedidos, relatórios e financeiro
    EDITOR = "editor"      # Cadastra e edita pedidos
    VIEWER = "viewer"      # Apenas visualização


class Permission(enum.Enum):
    """Chaves de permissão"""
    ORDERS_VIEW = "orders.view"
    ORDERS_CREATE = "orders.create"
    ORDERS_EDIT = "orders.edit"
    ORDERS_DELETE = "orders.delete"
    ORDERS_EXPORT = "orders.export"

    USERS_VIEW = "users.view"
    USERS_CREATE = "users.create"
    USERS_EDIT = "users.edit"
    USERS_DELETE = "users.delete"
    USERS_MANAGE_PERMISSIONS = "users.manage_permissions"

    REPORTS_VIEW = "reports.view"
    REPORTS_EXPORT = "reports.export"

    SETTINGS_VIEW = "settings.view"
    SETTINGS_EDIT = "settings.edit"


ALL_PERMISSIONS = [p.value for p in Permission]

ROLE_PERMISSIONS = {
    UserRole.ADMIN: set(ALL_PERMISSIONS),
    UserRole.MANAGER: {
        Permission.ORDERS_VIEW.value,
        Permission.ORDERS_CREATE.value,
        Permission.ORDERS_EDIT.value,
        Permission.ORDERS_EXPORT.value,
        Permission.REPORTS_VIEW.value,
        Permission.REPORTS_EXPORT.value,
        Permission.SETTINGS_VIEW.value,
    },
    UserRole.EDITOR: {
        Permission.ORDERS_VIEW.value,
        Permission.ORDERS_CREATE.value,
        Permission.ORDERS_EDIT.value,
        Permission.REPORTS_VIEW.value,
    },
    UserRole.VIEWER: {
        Permission.ORDERS_VIEW.value,
        Permission.REPORTS_VIEW.value,
    },
}

FINANCIAL_ROLES = {UserRole.ADMIN, UserRole.MANAGER}


def default_permissions(role: str) -> Dict[str, bool]:
    """Mapa completo de permissões padrão do papel"""
    granted = ROLE_PERMISSIONS[UserRole(role)]
    return {key: key in granted for key in ALL_PERMISSIONS}


def effective_permissions(role: str, overrides: Optional[Dict[str, bool]] = None,
                          is_active: bool = True) -> Dict[str, bool]:
    """Permissões do papel sobrepostas pelas customizações do usuário"""
    if not is_active:
        return {key: False for key in ALL_PERMISSIONS}

    permissions = default_permissions(role)
    for key, value in (overrides or {}).items():
        if key in permissions:
            permissions[key] = bool(value)
    return permissions


def has_permission(user, permission: str) -> bool:
    return effective_permissions(user.role, user.permissions, user.is_active).get(permission, False)


def can_access_financials(user) -> bool:
    return bool(user.is_active) and UserRole(user.role) in FINANCIAL_ROLES
