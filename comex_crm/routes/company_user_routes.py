"""
Rotas para usuários da empresa
"""
import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session

from comex_crm.config.database import get_db
from comex_crm.controllers.company_user_controller import CompanyUserController

logger = logging.getLogger(__name__)

company_user_router = APIRouter(prefix="/api/company-users", tags=["Usuários"])


# === MODELS PYDANTIC ===
class CompanyUserCreate(BaseModel):
    email: EmailStr
    name: str
    position: Optional[str] = None
    role: str = "viewer"
    is_active: bool = True
    permissions: Optional[Dict[str, bool]] = None


class CompanyUserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = None
    position: Optional[str] = None
    role: Optional[str] = None
    is_active: Optional[bool] = None
    permissions: Optional[Dict[str, bool]] = None


class UserRoleUpdate(BaseModel):
    role: str


class UserPermissionsUpdate(BaseModel):
    permissions: Dict[str, bool]


# === ROTAS ===
@company_user_router.get("")
async def list_company_users(db: Session = Depends(get_db)):
    return CompanyUserController(db).list_users()


@company_user_router.post("", status_code=201)
async def create_company_user(user_data: CompanyUserCreate, db: Session = Depends(get_db)):
    """Cria usuário; sem permissões informadas usa as padrão do papel"""
    return CompanyUserController(db).create_user(user_data.model_dump())


@company_user_router.get("/{user_id}")
async def get_company_user(user_id: str, db: Session = Depends(get_db)):
    return CompanyUserController(db).get_user(user_id)


@company_user_router.put("/{user_id}")
async def update_company_user(user_id: str, user_data: CompanyUserUpdate, db: Session = Depends(get_db)):
    return CompanyUserController(db).update_user(user_id, user_data.model_dump(exclude_unset=True))


@company_user_router.delete("/{user_id}", status_code=204)
async def delete_company_user(user_id: str, db: Session = Depends(get_db)):
    CompanyUserController(db).delete_user(user_id)
    return Response(status_code=204)


@company_user_router.patch("/{user_id}/role")
async def update_company_user_role(user_id: str, role_data: UserRoleUpdate, db: Session = Depends(get_db)):
    """Troca o papel (as permissões voltam ao padrão do papel)"""
    return CompanyUserController(db).update_role(user_id, role_data.role)


@company_user_router.patch("/{user_id}/permissions")
async def update_company_user_permissions(user_id: str, data: UserPermissionsUpdate,
                                          db: Session = Depends(get_db)):
    return CompanyUserController(db).update_permissions(user_id, data.permissions)


@company_user_router.patch("/{user_id}/toggle-active")
async def toggle_company_user_active(user_id: str, db: Session = Depends(get_db)):
    return CompanyUserController(db).toggle_active(user_id)
