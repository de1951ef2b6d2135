"""
Controller para importação de pedidos
"""
import logging
from typing import Any, Dict, List

from fastapi import HTTPException
from sqlalchemy.orm import Session

from comex_crm.config.settings import settings
from comex_crm.controllers.errors import internal_error, to_http_exception
from comex_crm.services.exceptions import CrmError
from comex_crm.services.order_import_service import ImportReport, OrderImportService

logger = logging.getLogger(__name__)


class ImportController:
    """Controller para importação por planilha e por texto colado"""

    def __init__(self, db: Session):
        self.db = db
        self.import_service = OrderImportService(db)

    def import_excel(self, content: bytes, filename: str) -> Dict[str, Any]:
        if not content:
            raise HTTPException(status_code=400, detail="Nenhum arquivo enviado")
        if len(content) > settings.import_max_file_bytes:
            raise HTTPException(
                status_code=400,
                detail=f"Arquivo maior que o limite de {settings.import_max_file_mb} MB"
            )

        try:
            logger.info(f"📥 Importando planilha {filename} ({len(content)} bytes)")
            return self.import_service.import_excel(content, filename)
        except CrmError as e:
            logger.warning(f"⚠️ Planilha {filename} rejeitada: {e.message}")
            raise to_http_exception(e) from e
        except Exception as e:
            raise internal_error("importar planilha", e) from e

    def preview_manual(self, text: str) -> Dict[str, Any]:
        try:
            return self.import_service.preview_manual(text)
        except CrmError as e:
            raise to_http_exception(e) from e

    def import_manual(self, text: str) -> Dict[str, Any]:
        try:
            return self.import_service.import_manual(text).to_dict()
        except CrmError as e:
            logger.warning(f"⚠️ Texto colado rejeitado: {e.message}")
            raise to_http_exception(e) from e
        except Exception as e:
            raise internal_error("importar texto colado", e) from e

    @staticmethod
    def errors_csv(results: List[Dict[str, Any]]) -> str:
        return ImportReport.from_results(results).to_error_csv()
