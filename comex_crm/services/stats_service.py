"""
Estatísticas do painel, visões financeiras e listas de análise de pedidos
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import case, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from comex_crm.models.crm_models import Client, Moeda, Order, Situacao
from comex_crm.services.exceptions import ClientNotFoundError, UpstreamError

logger = logging.getLogger(__name__)

STATUSES = [s.value for s in Situacao]
PENDING_STATUSES = [Situacao.PENDIENTE.value, Situacao.TRANSITO.value]


def _float(value) -> float:
    return float(value or 0)


def _sum_where(condition):
    return func.coalesce(func.sum(case((condition, Order.total_guia), else_=0)), 0)


def _count_where(condition):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


def order_summary_dict(order: Order) -> Dict[str, Any]:
    return {
        "id": order.id,
        "pedido": order.pedido,
        "data": order.data.isoformat() if order.data else None,
        "clientName": order.client.name if order.client else None,
        "totalGuia": _float(order.total_guia),
        "moeda": order.moeda,
        "situacao": order.situacao,
        "embarque": order.embarque.isoformat() if order.embarque else None,
    }


class StatsService:
    """Consultas de agregação; cada chamada lê o banco novamente"""

    def __init__(self, db: Session):
        self.db = db

    # === PAINEL ===
    def get_order_stats(self) -> Dict[str, Any]:
        try:
            total = self.db.query(func.count(Order.id)).scalar() or 0

            status_counts = dict(
                self.db.query(Order.situacao, func.count(Order.id))
                .group_by(Order.situacao)
                .all()
            )

            currency_rows = (
                self.db.query(Order.moeda, func.coalesce(func.sum(Order.total_guia), 0))
                .group_by(Order.moeda)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"❌ Erro ao calcular estatísticas: {e}", exc_info=True)
            raise UpstreamError() from e

        currency_totals: Dict[str, float] = {}
        for moeda, amount in currency_rows:
            key = moeda or Moeda.BRL.value
            currency_totals[key] = currency_totals.get(key, 0.0) + _float(amount)

        stats = {"total": total}
        for status in STATUSES:
            stats[status] = status_counts.get(status, 0)
        stats["currencyTotals"] = currency_totals
        return stats

    # === FINANCEIRO ===
    def get_financial_stats(self, today: Optional[date] = None) -> Dict[str, Any]:
        today = today or date.today()
        try:
            row = self.db.query(
                func.count(Order.id),
                func.coalesce(func.sum(Order.total_guia), 0),
                _sum_where(Order.situacao == Situacao.ENTREGADO.value),
                _sum_where(Order.situacao == Situacao.PENDIENTE.value),
                _sum_where(
                    (Order.situacao != Situacao.ENTREGADO.value) &
                    (Order.previsao.isnot(None)) &
                    (Order.previsao < today)
                ),
            ).one()
        except SQLAlchemyError as e:
            logger.error(f"❌ Erro ao calcular estatísticas financeiras: {e}", exc_info=True)
            raise UpstreamError() from e

        count, receivable, paid, pending, overdue = row
        receivable = _float(receivable)
        return {
            "totalReceivable": receivable,
            "totalPaid": _float(paid),
            "pendingPayment": _float(pending),
            "overdueAmount": _float(overdue),
            "averageOrderValue": receivable / count if count else 0.0,
        }

    def get_financial_summary(self) -> Dict[str, Any]:
        try:
            rows = (
                self.db.query(
                    Order.situacao,
                    func.count(Order.id),
                    func.coalesce(func.sum(Order.total_guia), 0)
                )
                .group_by(Order.situacao)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"❌ Erro ao calcular resumo financeiro: {e}", exc_info=True)
            raise UpstreamError() from e

        by_status = {status: {"count": 0, "amount": 0.0} for status in STATUSES}
        total_orders = 0
        total_revenue = 0.0
        for situacao, count, amount in rows:
            total_orders += count
            total_revenue += _float(amount)
            bucket = by_status.setdefault(situacao, {"count": 0, "amount": 0.0})
            bucket["count"] += count
            bucket["amount"] += _float(amount)

        return {
            "totalRevenue": total_revenue,
            "totalOrders": total_orders,
            "averageOrderValue": total_revenue / total_orders if total_orders else 0.0,
            "byStatus": by_status,
        }

    def get_accounts_receivable(self) -> List[Dict[str, Any]]:
        """Contas a receber agrupadas por cliente, maior valor primeiro"""
        try:
            rows = (
                self.db.query(
                    Client.id,
                    Client.name,
                    func.count(Order.id),
                    func.coalesce(func.sum(Order.total_guia), 0),
                    _count_where(Order.situacao.in_(PENDING_STATUSES)),
                    _count_where(Order.situacao == Situacao.ENTREGADO.value),
                )
                .join(Order, Order.client_id == Client.id)
                .group_by(Client.id, Client.name)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"❌ Erro ao calcular contas a receber: {e}", exc_info=True)
            raise UpstreamError() from e

        receivables = [
            {
                "clientId": client_id,
                "clientName": client_name,
                "totalOrders": total_orders,
                "totalAmount": _float(total_amount),
                "pendingOrders": int(pending or 0),
                "deliveredOrders": int(delivered or 0),
            }
            for client_id, client_name, total_orders, total_amount, pending, delivered in rows
        ]
        receivables.sort(key=lambda item: item["totalAmount"], reverse=True)
        return receivables

    def get_client_financials(self, client_id: str) -> Dict[str, Any]:
        client = self.db.query(Client).filter(Client.id == client_id).first()
        if not client:
            raise ClientNotFoundError(client_id)

        orders = (
            self.db.query(Order)
            .filter(Order.client_id == client_id)
            .order_by(Order.data.desc(), Order.pedido.asc())
            .all()
        )

        return {
            "client": {"id": client.id, "name": client.name},
            "orders": [
                {
                    "id": order.id,
                    "pedido": order.pedido,
                    "data": order.data.isoformat() if order.data else None,
                    "itens": order.itens,
                    "total_guia": _float(order.total_guia),
                    "moeda": order.moeda,
                    "situacao": order.situacao,
                }
                for order in orders
            ],
            "totalAmount": sum(_float(order.total_guia) for order in orders),
            "totalOrders": len(orders),
        }

    # === ANÁLISES ===
    def get_recent_orders(self, limit: int = 10) -> List[Dict[str, Any]]:
        orders = (
            self.db.query(Order)
            .options(joinedload(Order.client))
            .order_by(Order.created_at.desc(), Order.pedido.desc())
            .limit(limit)
            .all()
        )
        return [order_summary_dict(order) for order in orders]

    def get_upcoming_shipments(self, limit: int = 10, today: Optional[date] = None) -> List[Dict[str, Any]]:
        """Próximos embarques a partir de hoje, do mais próximo ao mais distante"""
        today = today or date.today()
        orders = (
            self.db.query(Order)
            .options(joinedload(Order.client))
            .filter(Order.embarque.isnot(None), Order.embarque >= today)
            .order_by(Order.embarque.asc(), Order.pedido.asc())
            .limit(limit)
            .all()
        )
        return [order_summary_dict(order) for order in orders]
