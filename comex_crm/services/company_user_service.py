"""
Serviço de usuários da empresa (papéis e permissões)
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from comex_crm.models.crm_models import CompanyUser
from comex_crm.models.permissions import (
    ALL_PERMISSIONS,
    UserRole,
    can_access_financials,
    default_permissions,
    effective_permissions,
)
from comex_crm.services.exceptions import (
    CompanyUserNotFoundError,
    DuplicateEmailError,
    InvalidUserDataError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

ROLES = [role.value for role in UserRole]
EDITABLE_FIELDS = ["email", "name", "position", "is_active"]


def company_user_to_dict(user: CompanyUser) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "position": user.position,
        "role": user.role,
        "is_active": user.is_active,
        "permissions": effective_permissions(user.role, user.permissions, user.is_active),
        "can_access_financials": can_access_financials(user),
        "last_login": user.last_login.isoformat() if user.last_login else None,
        "created_at": user.created_at.isoformat() if user.created_at else None,
        "updated_at": user.updated_at.isoformat() if user.updated_at else None,
    }


class CompanyUserService:
    """CRUD de usuários da empresa"""

    def __init__(self, db: Session):
        self.db = db

    def list_users(self) -> List[CompanyUser]:
        return self.db.query(CompanyUser).order_by(CompanyUser.name).all()

    def get_user(self, user_id: str) -> CompanyUser:
        user = self.db.query(CompanyUser).filter(CompanyUser.id == user_id).first()
        if not user:
            raise CompanyUserNotFoundError(user_id)
        return user

    def get_user_by_email(self, email: str) -> Optional[CompanyUser]:
        """Busca usuário por email"""
        return self.db.query(CompanyUser).filter(CompanyUser.email == email).first()

    def create_user(self, email: str, name: str, position: Optional[str] = None,
                    role: str = UserRole.VIEWER.value, is_active: bool = True,
                    permissions: Optional[Dict[str, bool]] = None) -> CompanyUser:
        """Cria um novo usuário; sem permissões explícitas usa as padrão do papel"""
        self._validate_role(role)
        if self.get_user_by_email(email):
            raise DuplicateEmailError(email)

        user = CompanyUser(
            email=email,
            name=name,
            position=position,
            role=role,
            is_active=is_active,
            permissions=(
                self._validate_permissions(permissions, base=default_permissions(role))
                if permissions is not None else default_permissions(role)
            )
        )
        self.db.add(user)
        self._commit(email)
        self.db.refresh(user)
        logger.info(f"👤 Usuário criado: {email} ({role})")
        return user

    def update_user(self, user_id: str, data: Dict[str, Any]) -> CompanyUser:
        """Atualização parcial dos dados cadastrais"""
        user = self.get_user(user_id)

        new_email = data.get("email")
        if new_email and new_email != user.email and self.get_user_by_email(new_email):
            raise DuplicateEmailError(new_email)

        for key in EDITABLE_FIELDS:
            if key in data and data[key] is not None:
                setattr(user, key, data[key])

        if data.get("role"):
            self._apply_role(user, data["role"])
        if data.get("permissions") is not None:
            user.permissions = self._validate_permissions(data["permissions"], base=user.permissions)

        self._commit(user.email)
        self.db.refresh(user)
        return user

    def delete_user(self, user_id: str) -> None:
        user = self.get_user(user_id)
        email = user.email
        self.db.delete(user)
        self._commit(email)
        logger.info(f"🗑️ Usuário excluído: {email}")

    def update_role(self, user_id: str, role: str) -> CompanyUser:
        """Troca o papel e redefine as permissões para as padrão do novo papel"""
        user = self.get_user(user_id)
        self._apply_role(user, role)
        self._commit(user.email)
        self.db.refresh(user)
        logger.info(f"🔑 Papel de {user.email} alterado para {role}")
        return user

    def update_permissions(self, user_id: str, permissions: Dict[str, bool]) -> CompanyUser:
        user = self.get_user(user_id)
        user.permissions = self._validate_permissions(permissions, base=user.permissions)
        self._commit(user.email)
        self.db.refresh(user)
        return user

    def toggle_active(self, user_id: str) -> CompanyUser:
        user = self.get_user(user_id)
        user.is_active = not user.is_active
        self._commit(user.email)
        self.db.refresh(user)
        logger.info(f"🔄 Usuário {user.email} {'ativado' if user.is_active else 'desativado'}")
        return user

    # === AUXILIARES ===
    def _apply_role(self, user: CompanyUser, role: str) -> None:
        self._validate_role(role)
        user.role = role
        user.permissions = default_permissions(role)

    def _validate_role(self, role: str) -> None:
        if role not in ROLES:
            raise InvalidUserDataError(f"Papel inválido: {role}. Valores aceitos: {', '.join(ROLES)}")

    def _validate_permissions(self, permissions: Dict[str, bool],
                              base: Optional[Dict[str, bool]] = None) -> Dict[str, bool]:
        unknown = [key for key in permissions if key not in ALL_PERMISSIONS]
        if unknown:
            raise InvalidUserDataError(f"Permissões desconhecidas: {', '.join(sorted(unknown))}")

        merged = dict(base or {})
        merged.update({key: bool(value) for key, value in permissions.items()})
        return merged

    def _commit(self, email: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Erro ao gravar usuário {email}: {e}")
            raise DuplicateEmailError(email) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Erro de banco ao gravar usuário {email}: {e}", exc_info=True)
            raise UpstreamError() from e
