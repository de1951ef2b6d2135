"""
Controller para usuários da empresa
"""
import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from comex_crm.controllers.errors import internal_error, to_http_exception
from comex_crm.services.company_user_service import CompanyUserService, company_user_to_dict
from comex_crm.services.exceptions import CrmError

logger = logging.getLogger(__name__)


class CompanyUserController:
    """Controller para operações com usuários da empresa"""

    def __init__(self, db: Session):
        self.db = db
        self.user_service = CompanyUserService(db)

    def list_users(self) -> List[Dict[str, Any]]:
        try:
            return [company_user_to_dict(user) for user in self.user_service.list_users()]
        except Exception as e:
            raise internal_error("listar usuários", e) from e

    def get_user(self, user_id: str) -> Dict[str, Any]:
        try:
            return company_user_to_dict(self.user_service.get_user(user_id))
        except CrmError as e:
            raise to_http_exception(e) from e

    def create_user(self, data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            user = self.user_service.create_user(**data)
            return company_user_to_dict(user)
        except CrmError as e:
            logger.warning(f"⚠️ Usuário não criado: {e.message}")
            raise to_http_exception(e) from e
        except Exception as e:
            self.db.rollback()
            raise internal_error("criar usuário", e) from e

    def update_user(self, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return company_user_to_dict(self.user_service.update_user(user_id, data))
        except CrmError as e:
            raise to_http_exception(e) from e
        except Exception as e:
            self.db.rollback()
            raise internal_error("atualizar usuário", e) from e

    def delete_user(self, user_id: str) -> None:
        try:
            self.user_service.delete_user(user_id)
        except CrmError as e:
            raise to_http_exception(e) from e

    def update_role(self, user_id: str, role: str) -> Dict[str, Any]:
        try:
            return company_user_to_dict(self.user_service.update_role(user_id, role))
        except CrmError as e:
            raise to_http_exception(e) from e

    def update_permissions(self, user_id: str, permissions: Dict[str, bool]) -> Dict[str, Any]:
        try:
            return company_user_to_dict(self.user_service.update_permissions(user_id, permissions))
        except CrmError as e:
            raise to_http_exception(e) from e

    def toggle_active(self, user_id: str) -> Dict[str, Any]:
        try:
            return company_user_to_dict(self.user_service.toggle_active(user_id))
        except CrmError as e:
            raise to_http_exception(e) from e
