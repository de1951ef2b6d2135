"""
Conversão dos erros de domínio em respostas HTTP
"""
import logging

from fastapi import HTTPException

from comex_crm.services.exceptions import (
    CrmError,
    DuplicateKeyError,
    FormatError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)

logger = logging.getLogger(__name__)

INTERNAL_ERROR_DETAIL = "Erro interno do servidor"


def to_http_exception(error: CrmError) -> HTTPException:
    if isinstance(error, (ValidationError, FormatError)):
        return HTTPException(status_code=400, detail={"message": error.message, "errors": error.errors})
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=error.message)
    if isinstance(error, DuplicateKeyError):
        return HTTPException(status_code=409, detail=error.message)
    if isinstance(error, UpstreamError):
        return HTTPException(status_code=500, detail=INTERNAL_ERROR_DETAIL)
    return HTTPException(status_code=400, detail=error.message)


def internal_error(action: str, error: Exception) -> HTTPException:
    logger.error(f"❌ Erro no controller ao {action}: {str(error)}", exc_info=True)
    return HTTPException(status_code=500, detail=INTERNAL_ERROR_DETAIL)
