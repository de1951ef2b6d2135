"""Testes da importação em lote."""

import io

import pytest
from openpyxl import load_workbook

from comex_crm.models.crm_models import Client, Exporter, Order, Producer
from comex_crm.services.exceptions import ManualFormatError, SpreadsheetReadError
from comex_crm.services.order_export_service import OrderExportService
from comex_crm.services.order_import_service import ImportReport, ImportRowResult, OrderImportService
from comex_crm.services.order_service import OrderService, order_to_dict


class TestManualImport:

    def test_blank_pedido_row_fails_and_valid_row_is_imported(self, db, manual_line):
        text = "\n".join([manual_line(pedido=""), manual_line(pedido="PED-200")])
        service = OrderImportService(db)

        preview = service.preview_manual(text)
        assert preview["total"] == 2

        report = service.import_manual(text)
        assert (report.total, report.successful, report.failed) == (2, 1, 1)

        failed = report.results[0]
        assert failed.row == 1
        assert not failed.success
        assert "Pedido é obrigatório" in failed.error

        assert report.results[1].success
        assert db.query(Order).filter(Order.pedido == "PED-200").count() == 1

    def test_format_error_aborts_before_any_insert(self, db, manual_line):
        text = "\n".join([manual_line(pedido="OK-1"), "curta\tdemais"])
        with pytest.raises(ManualFormatError):
            OrderImportService(db).import_manual(text)
        assert db.query(Order).count() == 0

    def test_entity_created_by_one_row_is_reused_by_the_next(self, db, manual_line):
        text = "\n".join([
            manual_line(pedido="A-1", client_name="Cliente Novo"),
            manual_line(pedido="A-2", client_name="Cliente Novo"),
        ])
        report = OrderImportService(db).import_manual(text)

        assert report.successful == 2
        assert db.query(Client).filter(Client.name == "Cliente Novo").count() == 1
        orders = db.query(Order).order_by(Order.pedido).all()
        assert orders[0].client_id == orders[1].client_id

    def test_empty_producer_gives_null_producer(self, db, manual_line):
        OrderImportService(db).import_manual(manual_line(producer_name=""))
        order = db.query(Order).one()
        assert order.producer_id is None
        assert db.query(Producer).count() == 0

    def test_duplicate_pedido_fails_row_and_keeps_existing_order(self, db, manual_line):
        service = OrderImportService(db)
        service.import_manual(manual_line(pedido="DUP-1", itens="Original"))

        report = service.import_manual(manual_line(pedido="DUP-1", itens="Alterado"))

        assert report.failed == 1
        assert report.results[0].error.startswith("Pedido duplicado")
        order = db.query(Order).filter(Order.pedido == "DUP-1").one()
        assert order.itens == "Original"

    def test_failed_row_does_not_leave_orphan_entities(self, db, manual_line):
        service = OrderImportService(db)
        service.import_manual(manual_line(pedido="X-1"))

        service.import_manual(manual_line(pedido="X-1", exporter_name="Exportador Fantasma"))

        assert db.query(Exporter).filter(Exporter.name == "Exportador Fantasma").count() == 0


class TestImportRows:

    def test_never_drops_rows(self, db, manual_line):
        rows = [
            {"pedido": "R-1", "data": "2024-01-10", "exporter_name": "E", "importer_name": "I",
             "client_name": "C", "quantidade": "1"},
            {"pedido": "R-2", "data": "data ruim", "exporter_name": "E", "importer_name": "I",
             "client_name": "C", "quantidade": "1"},
            {"pedido": "R-1", "data": "2024-01-10", "exporter_name": "E", "importer_name": "I",
             "client_name": "C", "quantidade": "1"},
            {"pedido": "R-3", "data": "2024-01-10", "exporter_name": "E", "importer_name": "I",
             "client_name": "", "quantidade": "abc"},
        ]
        report = OrderImportService(db).import_rows(rows)

        assert report.total == 4
        assert report.successful + report.failed == report.total
        assert [r.success for r in report.results] == [True, False, False, False]
        assert [r.row for r in report.results] == [1, 2, 3, 4]
        assert "Cliente é obrigatório" in report.results[3].error
        assert "Quantidade deve ser numérica: abc" in report.results[3].error


class TestExcelImport:

    def test_imports_valid_rows_and_reports_failures(self, db, xlsx_bytes, spreadsheet_row):
        content = xlsx_bytes([
            spreadsheet_row(PEDIDO="PLN-1"),
            spreadsheet_row(PEDIDO="PLN-2", CLIENTE=None),
            spreadsheet_row(PEDIDO="PLN-3", QUANTIDADE="muitos"),
        ])

        result = OrderImportService(db).import_excel(content, "pedidos.xlsx")

        assert result["success"] is True
        assert result["totalRows"] == 3
        assert result["imported"] == 1
        assert result["failed"] == 2
        assert [e["row"] for e in result["errors"]] == [2, 3]
        assert "Cliente é obrigatório" in result["errors"][0]["error"]

        order = result["orders"][0]
        assert order["pedido"] == "PLN-1"
        assert order["data"] == "2024-03-15"
        assert order["embarque"] == "2024-03-20"
        assert order["referencia_exportador"] == "EXP-A"
        assert order["referencia_importador"] == "IMP-B"
        assert order["exporter"]["name"] == "Exportadora Andina"
        assert order["producer"] is None

    def test_unreadable_file(self, db):
        with pytest.raises(SpreadsheetReadError):
            OrderImportService(db).import_excel(b"xx", "pedidos.docx")


class TestExportThenImport:

    def test_exported_file_imports_back_with_same_values(self, db, order_payload):
        orders = OrderService(db)
        original = order_to_dict(orders.create_order(order_payload(
            pedido="RT-1", quantidade="42000", preco_guia="1,07", total_guia="45000"
        )))
        content = OrderExportService(db).export_orders()
        orders.delete_order(original["id"])

        result = OrderImportService(db).import_excel(content, "pedidos.xlsx")

        assert result["errors"] == []
        assert result["imported"] == 1
        imported = result["orders"][0]
        for key in ("pedido", "data", "quantidade", "preco_guia", "total_guia", "moeda", "incoterm",
                    "via_transporte", "embarque", "previsao", "referencia_exportador", "referencia_importador"):
            assert imported[key] == original[key], key
        assert imported["exporter"] == original["exporter"]
        assert imported["producer"] == original["producer"]

    def test_numeric_columns_are_text_cells(self, db, order_payload):
        OrderService(db).create_order(order_payload(quantidade="42000", total_guia="45000"))
        sheet = load_workbook(io.BytesIO(OrderExportService(db).export_orders())).active

        assert sheet.cell(row=2, column=7).value == "42000.00"
        assert sheet.cell(row=2, column=10).value == "45000.00"


class TestImportReport:

    def test_counts_and_error_csv(self):
        report = ImportReport(results=[
            ImportRowResult(row=1, pedido="", success=False, error="Pedido é obrigatório"),
            ImportRowResult(row=2, pedido="P-2", success=True, order_id="abc"),
            ImportRowResult(row=3, pedido="P-3", success=False, error="Moeda inválida: X; Data é obrigatória"),
        ])

        assert (report.total, report.successful, report.failed) == (3, 1, 2)
        assert report.to_error_csv() == (
            "Linha,Pedido,Erro\n"
            "1,,Pedido é obrigatório\n"
            "3,P-3,Moeda inválida: X; Data é obrigatória\n"
        )

    def test_error_csv_quotes_commas(self):
        report = ImportReport(results=[
            ImportRowResult(row=1, pedido="P,1", success=False, error="erro, com vírgula"),
        ])
        assert report.to_error_csv().splitlines()[1] == '1,"P,1","erro, com vírgula"'

    def test_from_results_roundtrip_of_dict(self):
        report = ImportReport.from_results([
            {"row": 1, "pedido": "A", "success": True, "error": None},
            {"row": 2, "pedido": "B", "success": False, "error": "falhou"},
        ])
        assert report.to_dict()["failed"] == 1
        assert report.to_dict()["results"][1]["error"] == "falhou"
