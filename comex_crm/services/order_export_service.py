"""
Exportação de pedidos para Excel no mesmo layout aceito pela importação
"""
import io
import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from sqlalchemy.orm import Session

from comex_crm.models.crm_models import Order
from comex_crm.services.order_service import OrderService

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# (cabeçalho, largura) na ordem da planilha de importação
EXPORT_COLUMNS = [
    ("PEDIDO", 14),
    ("DATA", 12),
    ("EXPORTADOR", 28),
    ("REFERÊNCIA", 16),
    ("IMPORTADOR", 28),
    ("REFERÊNCIA", 16),
    ("QUANTIDADE", 12),
    ("ITENS", 30),
    ("PREÇO GUIA", 14),
    ("TOTAL GUIA", 16),
    ("PRODUTOR", 24),
    ("CLIENTE", 28),
    ("ETIQUETA", 14),
    ("PORTO EMBARQUE", 18),
    ("PORTO DESTINO", 18),
    ("CONDIÇÃO", 14),
    ("EMBARQUE", 12),
    ("PREVISÃO", 12),
    ("CHEGADA", 12),
    ("OBSERVAÇÃO", 30),
    ("SITUAÇÃO", 12),
    ("SEMANA", 10),
    ("MOEDA", 8),
    ("VIA TRANSPORTE", 14),
    ("INCOTERM", 10),
]

DATE_FORMAT = "DD/MM/YYYY"
TEXT_FORMAT = "@"


def _name(entity) -> str:
    return entity.name if entity else ""


def _decimal_text(value) -> Optional[str]:
    """
    Texto com 2 casas ("45000.00"); a importação lê números entre 40000 e
    50000 como data serial do Excel
    """
    if value is None:
        return None
    return f"{Decimal(value):.2f}"


def order_row(order: Order) -> list:
    return [
        order.pedido,
        order.data,
        _name(order.exporter),
        order.referencia_exportador,
        _name(order.importer),
        order.referencia_importador,
        _decimal_text(order.quantidade) or "0.00",
        order.itens,
        _decimal_text(order.preco_guia),
        _decimal_text(order.total_guia),
        _name(order.producer),
        _name(order.client),
        order.etiqueta,
        order.porto_embarque,
        order.porto_destino,
        order.condicao,
        order.embarque,
        order.previsao,
        order.chegada,
        order.observacao,
        order.situacao,
        order.semana,
        order.moeda,
        order.via_transporte,
        order.incoterm,
    ]


class OrderExportService:
    """Gera o .xlsx com os pedidos filtrados"""

    def __init__(self, db: Session):
        self.db = db
        self.order_service = OrderService(db)

    def export_orders(self, sort_by: str = "data", sort_order: str = "desc", **filters) -> bytes:
        query = self.order_service.build_query(**filters)
        orders: List[Order] = self.order_service.apply_sort(query, sort_by, sort_order).all()

        wb = Workbook()
        ws = wb.active
        ws.title = "Pedidos"

        # Estilos
        header_font = Font(name='Arial', size=10, bold=True, color='FFFFFF')
        header_fill = PatternFill(start_color='4682B4', end_color='4682B4', fill_type='solid')
        normal_font = Font(name='Arial', size=10)
        center_alignment = Alignment(horizontal='center', vertical='center')
        right_alignment = Alignment(horizontal='right')
        thin_border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )

        for col, (header, width) in enumerate(EXPORT_COLUMNS, 1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = center_alignment
            cell.border = thin_border
            ws.column_dimensions[get_column_letter(col)].width = width

        text_columns = (7, 9, 10)  # QUANTIDADE, PREÇO GUIA, TOTAL GUIA
        date_columns = (2, 17, 18, 19)  # DATA, EMBARQUE, PREVISÃO, CHEGADA

        for row, order in enumerate(orders, 2):
            for col, value in enumerate(order_row(order), 1):
                cell = ws.cell(row=row, column=col, value=value)
                cell.font = normal_font
                cell.border = thin_border
                if col in date_columns and value is not None:
                    cell.number_format = DATE_FORMAT
                elif col in text_columns:
                    cell.number_format = TEXT_FORMAT
                    cell.alignment = right_alignment

        ws.freeze_panes = "A2"

        buffer = io.BytesIO()
        wb.save(buffer)
        logger.info(f"📤 Exportação gerada com {len(orders)} pedidos")
        return buffer.getvalue()

    @staticmethod
    def export_filename() -> str:
        return f"pedidos_{datetime.now().strftime('%Y%m%d_%H%M')}.xlsx"
