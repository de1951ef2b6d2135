"""
Rotas para Pedidos e contrapartes
"""
import logging
from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from comex_crm.config.database import get_db
from comex_crm.controllers.order_controller import OrderController
from comex_crm.services.order_export_service import XLSX_MEDIA_TYPE, OrderExportService

logger = logging.getLogger(__name__)

order_router = APIRouter(tags=["Pedidos"])


# === MODELS PYDANTIC ===
class OrderPayload(BaseModel):
    """Corpo de criação/edição; aceita snake_case ou camelCase e números onde se espera texto"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True)

    pedido: Optional[str] = None
    data: Optional[str] = None

    exporter_id: Optional[str] = None
    exporter_name: Optional[str] = None
    importer_id: Optional[str] = None
    importer_name: Optional[str] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    producer_id: Optional[str] = None
    producer_name: Optional[str] = None

    referencia_exportador: Optional[str] = None
    referencia_importador: Optional[str] = None
    quantidade: Optional[str] = None
    itens: Optional[str] = None
    preco_guia: Optional[str] = None
    total_guia: Optional[str] = None
    moeda: Optional[str] = None
    etiqueta: Optional[str] = None
    porto_embarque: Optional[str] = None
    porto_destino: Optional[str] = None
    condicao: Optional[str] = None
    via_transporte: Optional[str] = None
    incoterm: Optional[str] = None
    embarque: Optional[str] = None
    previsao: Optional[str] = None
    chegada: Optional[str] = None
    observacao: Optional[str] = None
    situacao: Optional[str] = None
    semana: Optional[str] = None

    cliente_rede: Optional[str] = None
    representante: Optional[str] = None
    produto: Optional[str] = None
    data_emissao_pedido: Optional[str] = None
    cliente_final: Optional[str] = None
    data_embarque_de: Optional[str] = None
    grupo: Optional[str] = None
    pais_exportador: Optional[str] = None


def order_filters(
    search: Optional[str] = None,
    client_id: Optional[str] = Query(None, alias="clientId"),
    exporter_id: Optional[str] = Query(None, alias="exporterId"),
    importer_id: Optional[str] = Query(None, alias="importerId"),
    producer_id: Optional[str] = Query(None, alias="producerId"),
    situacao: Optional[str] = None,
    moeda: Optional[str] = None,
    porto_embarque: Optional[str] = Query(None, alias="portoEmbarque"),
    porto_destino: Optional[str] = Query(None, alias="portoDestino"),
    referencia_exportador: Optional[str] = Query(None, alias="referenciaExportador"),
    referencia_importador: Optional[str] = Query(None, alias="referenciaImportador"),
    data_pedido_inicio: Optional[date] = Query(None, alias="dataPedidoInicio"),
    data_pedido_fim: Optional[date] = Query(None, alias="dataPedidoFim"),
    data_embarque_inicio: Optional[date] = Query(None, alias="dataEmbarqueInicio"),
    data_embarque_fim: Optional[date] = Query(None, alias="dataEmbarqueFim"),
    data_chegada_inicio: Optional[date] = Query(None, alias="dataChegadaInicio"),
    data_chegada_fim: Optional[date] = Query(None, alias="dataChegadaFim"),
    sort_by: str = Query("data", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
) -> Dict[str, Any]:
    """Filtros comuns da listagem e da exportação"""
    return {
        "search": search,
        "client_id": client_id,
        "exporter_id": exporter_id,
        "importer_id": importer_id,
        "producer_id": producer_id,
        "situacao": situacao,
        "moeda": moeda,
        "porto_embarque": porto_embarque,
        "porto_destino": porto_destino,
        "referencia_exportador": referencia_exportador,
        "referencia_importador": referencia_importador,
        "data_pedido_inicio": data_pedido_inicio,
        "data_pedido_fim": data_pedido_fim,
        "data_embarque_inicio": data_embarque_inicio,
        "data_embarque_fim": data_embarque_fim,
        "data_chegada_inicio": data_chegada_inicio,
        "data_chegada_fim": data_chegada_fim,
        "sort_by": sort_by,
        "sort_order": sort_order,
    }


# === PEDIDOS ===
@order_router.get("/api/orders")
async def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    filters: Dict[str, Any] = Depends(order_filters),
    db: Session = Depends(get_db)
):
    """Lista paginada de pedidos"""
    controller = OrderController(db)
    return controller.list_orders(page=page, limit=limit, **filters)


@order_router.get("/api/orders/export")
async def export_orders(
    filters: Dict[str, Any] = Depends(order_filters),
    db: Session = Depends(get_db)
):
    """Exporta os pedidos filtrados em Excel"""
    controller = OrderController(db)
    content = controller.export_orders(**filters)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={OrderExportService.export_filename()}"}
    )


@order_router.get("/api/orders/{order_id}")
async def get_order(order_id: str, db: Session = Depends(get_db)):
    """Pedido com exportador, importador, cliente e produtor"""
    controller = OrderController(db)
    return controller.get_order(order_id)


@order_router.post("/api/orders", status_code=201)
async def create_order(payload: OrderPayload, db: Session = Depends(get_db)):
    controller = OrderController(db)
    return controller.create_order(payload.model_dump(exclude_unset=True))


@order_router.put("/api/orders/{order_id}")
async def update_order(order_id: str, payload: OrderPayload, db: Session = Depends(get_db)):
    """Atualização parcial: só os campos enviados são alterados"""
    controller = OrderController(db)
    return controller.update_order(order_id, payload.model_dump(exclude_unset=True))


@order_router.delete("/api/orders/{order_id}", status_code=204)
async def delete_order(order_id: str, db: Session = Depends(get_db)):
    controller = OrderController(db)
    controller.delete_order(order_id)
    return Response(status_code=204)


# === CONTRAPARTES ===
@order_router.get("/api/clients")
async def list_clients(db: Session = Depends(get_db)):
    return OrderController(db).list_entities("client")


@order_router.get("/api/exporters")
async def list_exporters(db: Session = Depends(get_db)):
    return OrderController(db).list_entities("exporter")


@order_router.get("/api/importers")
async def list_importers(db: Session = Depends(get_db)):
    return OrderController(db).list_entities("importer")


@order_router.get("/api/producers")
async def list_producers(db: Session = Depends(get_db)):
    return OrderController(db).list_entities("producer")
