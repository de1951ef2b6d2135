"""
Rotas para importação de pedidos
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile
from pydantic import BaseModel
from sqlalchemy.orm import Session

from comex_crm.config.database import get_db
from comex_crm.controllers.import_controller import ImportController
from comex_crm.services.order_import_service import ERROR_CSV_FILENAME

logger = logging.getLogger(__name__)

import_router = APIRouter(prefix="/api/import", tags=["Importação"])


# === MODELS PYDANTIC ===
class ManualImportRequest(BaseModel):
    text: str


class ImportRowResultModel(BaseModel):
    row: int
    pedido: Optional[str] = ""
    success: bool
    error: Optional[str] = None
    order_id: Optional[str] = None


class ErrorsCsvRequest(BaseModel):
    results: List[ImportRowResultModel]


# === ROTAS ===
@import_router.post("/excel")
async def import_excel(
    file: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db)
):
    """Importa pedidos da primeira aba de um .xlsx ou de um .csv"""
    if file is None:
        raise HTTPException(status_code=400, detail="Nenhum arquivo enviado")

    content = await file.read()
    controller = ImportController(db)
    return controller.import_excel(content, file.filename or "")


@import_router.post("/manual/preview")
async def preview_manual(request: ManualImportRequest, db: Session = Depends(get_db)):
    """Confere o formato do texto colado sem gravar nada"""
    controller = ImportController(db)
    return controller.preview_manual(request.text)


@import_router.post("/manual")
async def import_manual(request: ManualImportRequest, db: Session = Depends(get_db)):
    controller = ImportController(db)
    return controller.import_manual(request.text)


@import_router.post("/errors-csv")
async def download_errors_csv(request: ErrorsCsvRequest):
    """CSV das linhas com erro de uma importação"""
    content = ImportController.errors_csv([item.model_dump() for item in request.results])
    return Response(
        content=content.encode("utf-8-sig"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{ERROR_CSV_FILENAME}"'}
    )
