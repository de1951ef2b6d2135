"""
Controller para Pedidos
"""
import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from comex_crm.controllers.errors import internal_error, to_http_exception
from comex_crm.services.exceptions import CrmError
from comex_crm.services.order_export_service import OrderExportService
from comex_crm.services.order_service import OrderService, order_to_dict

logger = logging.getLogger(__name__)


class OrderController:
    """Controller para operações com pedidos"""

    def __init__(self, db: Session):
        self.db = db
        self.order_service = OrderService(db)

    def list_orders(self, **params) -> Dict[str, Any]:
        try:
            return self.order_service.list_orders(**params)
        except CrmError as e:
            raise to_http_exception(e) from e
        except Exception as e:
            raise internal_error("listar pedidos", e) from e

    def get_order(self, order_id: str) -> Dict[str, Any]:
        try:
            return order_to_dict(self.order_service.get_order(order_id))
        except CrmError as e:
            raise to_http_exception(e) from e
        except Exception as e:
            raise internal_error("buscar pedido", e) from e

    def create_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            order = self.order_service.create_order(payload)
            return order_to_dict(order)
        except CrmError as e:
            logger.warning(f"⚠️ Pedido não criado: {e.message}")
            raise to_http_exception(e) from e
        except Exception as e:
            self.db.rollback()
            raise internal_error("criar pedido", e) from e

    def update_order(self, order_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            order = self.order_service.update_order(order_id, payload)
            return order_to_dict(order)
        except CrmError as e:
            logger.warning(f"⚠️ Pedido {order_id} não atualizado: {e.message}")
            raise to_http_exception(e) from e
        except Exception as e:
            self.db.rollback()
            raise internal_error("atualizar pedido", e) from e

    def delete_order(self, order_id: str) -> None:
        try:
            self.order_service.delete_order(order_id)
        except CrmError as e:
            raise to_http_exception(e) from e
        except Exception as e:
            self.db.rollback()
            raise internal_error("excluir pedido", e) from e

    def list_entities(self, entity_type: str) -> List[Dict[str, str]]:
        try:
            return self.order_service.list_entities(entity_type)
        except CrmError as e:
            raise to_http_exception(e) from e

    def export_orders(self, **params) -> bytes:
        try:
            return OrderExportService(self.db).export_orders(**params)
        except CrmError as e:
            raise to_http_exception(e) from e
        except Exception as e:
            raise internal_error("exportar pedidos", e) from e
