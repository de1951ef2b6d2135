"""
Rotas de estatísticas, financeiro e análises
"""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from comex_crm.config.database import get_db
from comex_crm.controllers.stats_controller import StatsController

logger = logging.getLogger(__name__)

stats_router = APIRouter(prefix="/api", tags=["Estatísticas"])


# === PAINEL ===
@stats_router.get("/stats")
async def get_stats(db: Session = Depends(get_db)):
    """Totais por situação e por moeda"""
    return StatsController(db).get_order_stats()


@stats_router.get("/stats/financial")
async def get_financial_stats(db: Session = Depends(get_db)):
    return StatsController(db).get_financial_stats()


# === FINANCEIRO ===
@stats_router.get("/financial/summary")
async def get_financial_summary(db: Session = Depends(get_db)):
    return StatsController(db).get_financial_summary()


@stats_router.get("/financial/accounts-receivable")
async def get_accounts_receivable(db: Session = Depends(get_db)):
    """Contas a receber por cliente"""
    return StatsController(db).get_accounts_receivable()


@stats_router.get("/financial/by-client/{client_id}")
async def get_client_financials(client_id: str, db: Session = Depends(get_db)):
    return StatsController(db).get_client_financials(client_id)


# === ANÁLISES ===
@stats_router.get("/analytics/recent-orders")
async def get_recent_orders(
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db)
):
    return StatsController(db).get_recent_orders(limit)


@stats_router.get("/analytics/upcoming-shipments")
async def get_upcoming_shipments(
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db)
):
    """Próximos embarques a partir de hoje"""
    return StatsController(db).get_upcoming_shipments(limit)
