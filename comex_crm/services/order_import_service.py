"""
Importação em lote de pedidos (planilha Excel/CSV e texto colado)
"""
import csv
import io
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from comex_crm.services.exceptions import CrmError, ValidationError
from comex_crm.services.order_service import OrderService, order_to_dict
from comex_crm.services.order_validator import clean_order_data
from comex_crm.services.planilha_parser import map_excel_row, parse_manual_text, read_spreadsheet

logger = logging.getLogger(__name__)

ERROR_CSV_FILENAME = "erros-importacao.csv"


@dataclass
class ImportRowResult:
    """Resultado de uma linha importada (row começa em 1)"""
    row: int
    pedido: str
    success: bool
    error: Optional[str] = None
    order_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "row": self.row,
            "pedido": self.pedido,
            "success": self.success,
            "error": self.error,
            "order_id": self.order_id,
        }


@dataclass
class ImportReport:
    """Resumo de uma importação; não é persistido"""
    results: List[ImportRowResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def failed(self) -> int:
        return sum(1 for result in self.results if not result.success)

    @property
    def failures(self) -> List[ImportRowResult]:
        return [result for result in self.results if not result.success]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "successful": self.successful,
            "failed": self.failed,
            "results": [result.to_dict() for result in self.results],
        }

    def to_error_csv(self) -> str:
        """CSV das linhas com erro para download"""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(["Linha", "Pedido", "Erro"])
        for result in self.failures:
            writer.writerow([result.row, result.pedido, result.error or ""])
        return buffer.getvalue()

    @classmethod
    def from_results(cls, results: List[Dict[str, Any]]) -> "ImportReport":
        return cls(results=[
            ImportRowResult(
                row=int(item.get("row", 0)),
                pedido=str(item.get("pedido") or ""),
                success=bool(item.get("success")),
                error=item.get("error"),
                order_id=item.get("order_id"),
            )
            for item in results
        ])


def row_error_message(error: CrmError) -> str:
    if isinstance(error, ValidationError):
        return "; ".join(error.errors)
    return error.message


class OrderImportService:
    """Orquestra mapeamento, validação, resolução de contrapartes e gravação por linha"""

    def __init__(self, db: Session):
        self.db = db
        self.order_service = OrderService(db)

    def import_rows(self, rows: List[Dict[str, str]]) -> ImportReport:
        """
        Importa linhas já mapeadas, na ordem recebida, com commit por linha

        Falha de uma linha é registrada no relatório e não interrompe o lote.
        """
        report = ImportReport()

        for index, row in enumerate(rows, 1):
            pedido = (row.get("pedido") or "").strip()
            try:
                cleaned = clean_order_data(row)
                order = self.order_service.add_order(cleaned)
                self.order_service.commit(pedido)
                report.results.append(ImportRowResult(row=index, pedido=pedido, success=True, order_id=order.id))
            except CrmError as e:
                self.db.rollback()
                message = row_error_message(e)
                logger.warning(f"⚠️ Linha {index} (pedido '{pedido}') rejeitada: {message}")
                report.results.append(ImportRowResult(row=index, pedido=pedido, success=False, error=message))
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"❌ Erro de banco na linha {index} (pedido '{pedido}'): {e}", exc_info=True)
                report.results.append(ImportRowResult(
                    row=index, pedido=pedido, success=False,
                    error="Erro ao gravar o pedido no banco de dados"
                ))

        logger.info(
            f"📥 Importação concluída: {report.total} linhas, "
            f"{report.successful} importadas, {report.failed} com erro"
        )
        return report

    # === PLANILHA ===
    def import_excel(self, content: bytes, filename: str) -> Dict[str, Any]:
        """Importa a primeira aba de um .xlsx (ou um .csv); tolerante por linha"""
        rows = [map_excel_row(row) for row in read_spreadsheet(content, filename)]
        report = self.import_rows(rows)

        created_ids = [result.order_id for result in report.results if result.success]
        orders = [order_to_dict(self.order_service.get_order(order_id)) for order_id in created_ids]

        return {
            "success": True,
            "imported": report.successful,
            "failed": report.failed,
            "errors": [
                {"row": result.row, "pedido": result.pedido, "error": result.error}
                for result in report.failures
            ],
            "totalRows": report.total,
            "orders": orders,
        }

    # === TEXTO COLADO ===
    def preview_manual(self, text: str) -> Dict[str, Any]:
        """Confere o formato do bloco inteiro e devolve as linhas mapeadas"""
        rows = parse_manual_text(text)
        return {"total": len(rows), "rows": rows}

    def import_manual(self, text: str) -> ImportReport:
        """
        Importa o texto colado

        O formato (22 colunas) é conferido para o bloco todo antes de gravar;
        depois disso cada linha é validada e gravada individualmente.
        """
        rows = parse_manual_text(text)
        return self.import_rows(rows)
