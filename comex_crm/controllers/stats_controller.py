"""
Controller para estatísticas, financeiro e análises
"""
import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from comex_crm.controllers.errors import internal_error, to_http_exception
from comex_crm.services.exceptions import CrmError
from comex_crm.services.stats_service import StatsService

logger = logging.getLogger(__name__)


class StatsController:
    """Controller das visões agregadas"""

    def __init__(self, db: Session):
        self.db = db
        self.stats_service = StatsService(db)

    # ============================================================================
    # PAINEL
    # ============================================================================

    def get_order_stats(self) -> Dict[str, Any]:
        try:
            return self.stats_service.get_order_stats()
        except CrmError as e:
            raise to_http_exception(e) from e

    # ============================================================================
    # FINANCEIRO
    # ============================================================================

    def get_financial_stats(self) -> Dict[str, Any]:
        try:
            return self.stats_service.get_financial_stats()
        except CrmError as e:
            raise to_http_exception(e) from e

    def get_financial_summary(self) -> Dict[str, Any]:
        try:
            return self.stats_service.get_financial_summary()
        except CrmError as e:
            raise to_http_exception(e) from e

    def get_accounts_receivable(self) -> List[Dict[str, Any]]:
        try:
            return self.stats_service.get_accounts_receivable()
        except CrmError as e:
            raise to_http_exception(e) from e

    def get_client_financials(self, client_id: str) -> Dict[str, Any]:
        try:
            return self.stats_service.get_client_financials(client_id)
        except CrmError as e:
            raise to_http_exception(e) from e
        except Exception as e:
            raise internal_error("buscar financeiro do cliente", e) from e

    # ============================================================================
    # ANÁLISES
    # ============================================================================

    def get_recent_orders(self, limit: int) -> List[Dict[str, Any]]:
        try:
            return self.stats_service.get_recent_orders(limit)
        except Exception as e:
            raise internal_error("buscar pedidos recentes", e) from e

    def get_upcoming_shipments(self, limit: int) -> List[Dict[str, Any]]:
        try:
            return self.stats_service.get_upcoming_shipments(limit)
        except Exception as e:
            raise internal_error("buscar próximos embarques", e) from e
