"""
Serviço de pedidos: listagem com filtros, CRUD e listas de contrapartes
"""
import logging
import math
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from comex_crm.config.settings import settings
from comex_crm.models.crm_models import ENTITY_MODELS, Order
from comex_crm.services.entity_resolver import EntityResolver
from comex_crm.services.exceptions import (
    DuplicateOrderError,
    ENTITY_LABELS,
    OrderNotFoundError,
    OrderValidationError,
    UpstreamError,
)
from comex_crm.services.order_validator import DATE_LABELS, ENTITY_TYPES, TEXT_FIELDS, clean_order_data

logger = logging.getLogger(__name__)

ORDER_FIELDS = [
    "pedido",
    "quantidade",
    "preco_guia",
    "total_guia",
    "moeda",
    "via_transporte",
    "incoterm",
    *DATE_LABELS.keys(),
    *TEXT_FIELDS,
]

SORT_COLUMNS = {
    "data": Order.data,
    "pedido": Order.pedido,
    "embarque": Order.embarque,
    "previsao": Order.previsao,
    "chegada": Order.chegada,
    "created_at": Order.created_at,
    "total_guia": Order.total_guia,
    "situacao": Order.situacao,
}


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def _money(value) -> Optional[float]:
    return float(value) if value is not None else None


def entity_to_dict(entity) -> Optional[Dict[str, str]]:
    if entity is None:
        return None
    return {"id": entity.id, "name": entity.name}


def order_to_dict(order: Order) -> Dict[str, Any]:
    """Formato JSON do pedido com as contrapartes"""
    return {
        "id": order.id,
        "pedido": order.pedido,
        "data": _iso(order.data),
        "exporter_id": order.exporter_id,
        "importer_id": order.importer_id,
        "client_id": order.client_id,
        "producer_id": order.producer_id,
        "exporter": entity_to_dict(order.exporter),
        "importer": entity_to_dict(order.importer),
        "client": entity_to_dict(order.client),
        "producer": entity_to_dict(order.producer),
        "referencia_exportador": order.referencia_exportador,
        "referencia_importador": order.referencia_importador,
        "quantidade": str(order.quantidade) if order.quantidade is not None else "0",
        "itens": order.itens,
        "preco_guia": _money(order.preco_guia),
        "total_guia": _money(order.total_guia),
        "moeda": order.moeda,
        "etiqueta": order.etiqueta,
        "porto_embarque": order.porto_embarque,
        "porto_destino": order.porto_destino,
        "condicao": order.condicao,
        "via_transporte": order.via_transporte,
        "incoterm": order.incoterm,
        "embarque": _iso(order.embarque),
        "previsao": _iso(order.previsao),
        "chegada": _iso(order.chegada),
        "observacao": order.observacao,
        "situacao": order.situacao,
        "semana": order.semana,
        "cliente_rede": order.cliente_rede,
        "representante": order.representante,
        "produto": order.produto,
        "data_emissao_pedido": _iso(order.data_emissao_pedido),
        "cliente_final": order.cliente_final,
        "data_embarque_de": _iso(order.data_embarque_de),
        "grupo": order.grupo,
        "pais_exportador": order.pais_exportador,
        "created_at": _iso(order.created_at),
        "updated_at": _iso(order.updated_at),
    }


class OrderService:
    """Operações de pedidos sobre a sessão injetada"""

    def __init__(self, db: Session):
        self.db = db
        self.resolver = EntityResolver(db)

    # === LISTAGEM ===
    def list_orders(self, page: int = 1, limit: Optional[int] = None, sort_by: str = "data",
                    sort_order: str = "desc", **filters) -> Dict[str, Any]:
        """Lista paginada de pedidos com filtros"""
        page = max(page or 1, 1)
        limit = min(max(limit or settings.default_page_size, 1), settings.max_page_size)

        query = self.build_query(**filters)
        total = query.count()

        orders = (
            self.apply_sort(query, sort_by, sort_order)
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

        return {
            "orders": [order_to_dict(order) for order in orders],
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": math.ceil(total / limit) if total else 0,
        }

    def apply_sort(self, query, sort_by: str = "data", sort_order: str = "desc"):
        """Ordena pela coluna permitida (padrão: data) e carrega as contrapartes"""
        sort_column = SORT_COLUMNS.get(sort_by, Order.data)
        ordering = sort_column.asc() if sort_order == "asc" else sort_column.desc()
        return query.options(
            joinedload(Order.exporter),
            joinedload(Order.importer),
            joinedload(Order.client),
            joinedload(Order.producer),
        ).order_by(ordering, Order.pedido.asc())

    def build_query(self, search: Optional[str] = None,
                    client_id: Optional[str] = None, exporter_id: Optional[str] = None,
                    importer_id: Optional[str] = None, producer_id: Optional[str] = None,
                    situacao: Optional[str] = None, moeda: Optional[str] = None,
                    porto_embarque: Optional[str] = None, porto_destino: Optional[str] = None,
                    referencia_exportador: Optional[str] = None, referencia_importador: Optional[str] = None,
                    data_pedido_inicio: Optional[date] = None, data_pedido_fim: Optional[date] = None,
                    data_embarque_inicio: Optional[date] = None, data_embarque_fim: Optional[date] = None,
                    data_chegada_inicio: Optional[date] = None, data_chegada_fim: Optional[date] = None):
        """Query de pedidos com os filtros da listagem"""
        query = self.db.query(Order)

        if search:
            term = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Order.pedido.ilike(term),
                    Order.itens.ilike(term),
                    Order.referencia_exportador.ilike(term),
                    Order.referencia_importador.ilike(term)
                )
            )

        # Filtros exatos
        for column, value in (
            (Order.client_id, client_id),
            (Order.exporter_id, exporter_id),
            (Order.importer_id, importer_id),
            (Order.producer_id, producer_id),
            (Order.situacao, situacao),
            (Order.moeda, moeda),
        ):
            if value:
                query = query.filter(column == value)

        # Filtros por trecho de texto
        for column, value in (
            (Order.porto_embarque, porto_embarque),
            (Order.porto_destino, porto_destino),
            (Order.referencia_exportador, referencia_exportador),
            (Order.referencia_importador, referencia_importador),
        ):
            if value:
                query = query.filter(column.ilike(f"%{value}%"))

        # Intervalos de datas (limites inclusivos)
        for column, start, end in (
            (Order.data, data_pedido_inicio, data_pedido_fim),
            (Order.embarque, data_embarque_inicio, data_embarque_fim),
            (Order.chegada, data_chegada_inicio, data_chegada_fim),
        ):
            if start:
                query = query.filter(column >= start)
            if end:
                query = query.filter(column <= end)

        return query

    # === CRUD ===
    def get_order(self, order_id: str) -> Order:
        order = self.db.query(Order).filter(Order.id == order_id).first()
        if not order:
            raise OrderNotFoundError(order_id)
        return order

    def find_by_pedido(self, pedido: str) -> Optional[Order]:
        return self.db.query(Order).filter(Order.pedido == pedido).first()

    def create_order(self, payload: Dict[str, Any]) -> Order:
        """Valida, resolve contrapartes e grava um novo pedido"""
        cleaned = clean_order_data(payload)
        order = self.add_order(cleaned)
        self.commit(cleaned["pedido"])
        logger.info(f"📦 Pedido criado: {order.pedido} ({order.id})")
        return order

    def add_order(self, cleaned: Dict[str, Any]) -> Order:
        """
        Insere (flush, sem commit) um pedido já validado

        Pedido duplicado levanta DuplicateOrderError sem tocar no existente.
        """
        self._ensure_unique_pedido(cleaned["pedido"])
        refs = self._resolve_entities(cleaned)

        order = Order(
            **{key: cleaned[key] for key in ORDER_FIELDS if key in cleaned},
            **refs
        )
        self.db.add(order)
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateOrderError(cleaned["pedido"]) from e
        return order

    def update_order(self, order_id: str, payload: Dict[str, Any]) -> Order:
        """Atualização parcial de um pedido"""
        order = self.get_order(order_id)
        cleaned = clean_order_data(payload, partial=True)

        new_pedido = cleaned.get("pedido")
        if new_pedido and new_pedido != order.pedido:
            self._ensure_unique_pedido(new_pedido)

        refs = self._resolve_entities(cleaned, partial=True)

        for key in ORDER_FIELDS:
            if key in cleaned:
                setattr(order, key, cleaned[key])
        for key, value in refs.items():
            setattr(order, key, value)
        order.updated_at = datetime.now()

        self.commit(new_pedido or order.pedido)
        self.db.refresh(order)
        logger.info(f"✏️ Pedido atualizado: {order.pedido} ({order.id})")
        return order

    def delete_order(self, order_id: str) -> None:
        order = self.get_order(order_id)
        pedido = order.pedido
        self.db.delete(order)
        self.commit(pedido)
        logger.info(f"🗑️ Pedido excluído: {pedido} ({order_id})")

    # === CONTRAPARTES ===
    def list_entities(self, entity_type: str) -> List[Dict[str, str]]:
        model = ENTITY_MODELS[entity_type]
        try:
            entities = self.db.query(model).order_by(model.name).all()
        except SQLAlchemyError as e:
            logger.error(f"❌ Erro ao listar {entity_type}: {e}", exc_info=True)
            raise UpstreamError() from e
        return [entity_to_dict(entity) for entity in entities]

    # === AUXILIARES ===
    def _ensure_unique_pedido(self, pedido: str) -> None:
        if self.find_by_pedido(pedido):
            raise DuplicateOrderError(pedido)

    def _resolve_entities(self, cleaned: Dict[str, Any], partial: bool = False) -> Dict[str, Optional[str]]:
        """Converte nomes/ids de contrapartes nas chaves estrangeiras do pedido"""
        refs = {}
        for entity_type in ENTITY_TYPES:
            id_key, name_key = f"{entity_type}_id", f"{entity_type}_name"

            if cleaned.get(id_key):
                if self.resolver.get(entity_type, cleaned[id_key]) is None:
                    label = ENTITY_LABELS[entity_type].capitalize()
                    raise OrderValidationError([f"{label} não encontrado: {cleaned[id_key]}"])
                refs[id_key] = cleaned[id_key]
            elif cleaned.get(name_key):
                refs[id_key] = self.resolver.get_or_create(entity_type, cleaned[name_key])
            elif entity_type == "producer" and (not partial or id_key in cleaned or name_key in cleaned):
                # Produtor é opcional: vazio grava NULL
                refs[id_key] = None
        return refs

    def commit(self, pedido: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Conflito de unicidade ao gravar pedido {pedido}: {e.orig}")
            raise DuplicateOrderError(pedido) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Erro de banco ao gravar pedido {pedido}: {e}", exc_info=True)
            raise UpstreamError() from e
