"""Testes de integração das rotas HTTP."""

import io

import pytest
from openpyxl import load_workbook

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def camel_payload(**overrides):
    payload = {
        "pedido": "API-1",
        "data": "2024-03-15",
        "exporterName": "Exportadora Andina",
        "importerName": "Importadora Sul",
        "clientName": "Mercado Central",
        "quantidade": "100",
        "precoGuia": "2,50",
        "totalGuia": 250,
        "moeda": "USD",
        "portoEmbarque": "Valparaíso",
        "embarque": "2099-01-10",
        "situacao": "pendiente",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def created_order(client):
    response = client.post("/api/orders", json=camel_payload())
    assert response.status_code == 201
    return response.json()


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestOrderRoutes:

    def test_create_returns_order_with_entities(self, created_order):
        assert created_order["pedido"] == "API-1"
        assert created_order["preco_guia"] == 2.5
        assert created_order["total_guia"] == 250.0
        assert created_order["client"]["name"] == "Mercado Central"
        assert created_order["producer"] is None

    def test_snake_case_body_is_accepted(self, client, order_payload):
        response = client.post("/api/orders", json=order_payload(pedido="SNAKE-1"))
        assert response.status_code == 201
        assert response.json()["producer"]["name"] == "Fazenda Boa Vista"

    def test_validation_error_lists_all_problems(self, client):
        response = client.post("/api/orders", json={"pedido": "", "quantidade": "abc", "moeda": "ARS"})
        assert response.status_code == 400
        errors = response.json()["detail"]["errors"]
        assert "Pedido é obrigatório" in errors
        assert "Quantidade deve ser numérica: abc" in errors
        assert "Moeda inválida: ARS" in errors

    def test_numeric_text_fields_are_coerced(self, client):
        response = client.post("/api/orders", json=camel_payload(pedido=123, itens=456))
        assert response.status_code == 201
        assert response.json()["pedido"] == "123"
        assert response.json()["itens"] == "456"

    @pytest.mark.parametrize("pedido", [{"a": 1}, ["API-1"]])
    def test_wrongly_typed_body_is_bad_request(self, client, pedido):
        response = client.post("/api/orders", json=camel_payload(pedido=pedido))
        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["message"] == "Dados do pedido inválidos"
        assert detail["errors"][0].startswith("pedido:")

    def test_wrongly_typed_update_is_bad_request(self, client, created_order):
        response = client.put(f"/api/orders/{created_order['id']}", json={"situacao": {"x": 1}})
        assert response.status_code == 400
        assert response.json()["detail"]["errors"][0].startswith("situacao:")

    def test_duplicate_pedido_is_conflict(self, client, created_order):
        response = client.post("/api/orders", json=camel_payload(itens="Outro"))
        assert response.status_code == 409
        assert "API-1" in response.json()["detail"]

    def test_get_update_delete(self, client, created_order):
        order_id = created_order["id"]

        assert client.get(f"/api/orders/{order_id}").json()["pedido"] == "API-1"

        response = client.put(f"/api/orders/{order_id}", json={"situacao": "transito", "chegada": "2099-02-01"})
        assert response.status_code == 200
        body = response.json()
        assert body["situacao"] == "transito"
        assert body["chegada"] == "2099-02-01"
        assert body["moeda"] == "USD"

        assert client.delete(f"/api/orders/{order_id}").status_code == 204
        assert client.get(f"/api/orders/{order_id}").status_code == 404

    def test_missing_order(self, client):
        assert client.get("/api/orders/nao-existe").status_code == 404
        assert client.put("/api/orders/nao-existe", json={"itens": "x"}).status_code == 404
        assert client.delete("/api/orders/nao-existe").status_code == 404

    def test_list_with_camel_case_filters(self, client, created_order):
        client.post("/api/orders", json=camel_payload(pedido="API-2", data="2024-05-01", portoEmbarque="Callao"))

        body = client.get("/api/orders", params={"sortBy": "pedido", "sortOrder": "asc"}).json()
        assert [o["pedido"] for o in body["orders"]] == ["API-1", "API-2"]
        assert body["total"] == 2

        body = client.get("/api/orders", params={"portoEmbarque": "callao"}).json()
        assert [o["pedido"] for o in body["orders"]] == ["API-2"]

        body = client.get("/api/orders", params={"dataPedidoInicio": "2024-04-01"}).json()
        assert body["total"] == 1

        body = client.get("/api/orders", params={"clientId": created_order["client_id"], "limit": 1, "page": 2})
        assert body.json()["totalPages"] == 2
        assert body.json()["page"] == 2

    def test_list_rejects_invalid_params(self, client):
        assert client.get("/api/orders", params={"limit": 500}).status_code == 422
        assert client.get("/api/orders", params={"sortOrder": "sideways"}).status_code == 422

    def test_entity_lists(self, client, created_order):
        assert [c["name"] for c in client.get("/api/clients").json()] == ["Mercado Central"]
        assert [e["name"] for e in client.get("/api/exporters").json()] == ["Exportadora Andina"]
        assert [i["name"] for i in client.get("/api/importers").json()] == ["Importadora Sul"]
        assert client.get("/api/producers").json() == []

    def test_export_xlsx(self, client, created_order):
        response = client.get("/api/orders/export")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith(XLSX_MIME)
        assert "attachment" in response.headers["content-disposition"]

        sheet = load_workbook(io.BytesIO(response.content)).active
        assert sheet.cell(row=1, column=1).value == "PEDIDO"
        assert sheet.cell(row=2, column=1).value == "API-1"


class TestStatsRoutes:

    def test_stats_and_financial(self, client, created_order):
        client.post("/api/orders", json=camel_payload(pedido="API-2", situacao="entregado", totalGuia="750",
                                                      moeda="EUR", embarque="2020-01-01"))

        stats = client.get("/api/stats").json()
        assert stats["total"] == 2
        assert stats["entregado"] == 1
        assert stats["currencyTotals"] == {"USD": 250.0, "EUR": 750.0}

        financial = client.get("/api/stats/financial").json()
        assert financial["totalPaid"] == 750.0
        assert financial["totalReceivable"] == 1000.0

        summary = client.get("/api/financial/summary").json()
        assert summary["totalOrders"] == 2

        receivables = client.get("/api/financial/accounts-receivable").json()
        assert receivables[0]["clientName"] == "Mercado Central"
        assert receivables[0]["totalAmount"] == 1000.0

        by_client = client.get(f"/api/financial/by-client/{created_order['client_id']}").json()
        assert by_client["totalOrders"] == 2

    def test_unknown_client_financials(self, client):
        assert client.get("/api/financial/by-client/nao-existe").status_code == 404

    def test_analytics(self, client, created_order):
        client.post("/api/orders", json=camel_payload(pedido="API-OLD", embarque="2020-01-01"))

        recent = client.get("/api/analytics/recent-orders", params={"limit": 5}).json()
        assert {o["pedido"] for o in recent} == {"API-1", "API-OLD"}

        upcoming = client.get("/api/analytics/upcoming-shipments").json()
        assert [o["pedido"] for o in upcoming] == ["API-1"]


class TestImportRoutes:

    def test_excel_upload(self, client, xlsx_bytes, spreadsheet_row):
        content = xlsx_bytes([spreadsheet_row(PEDIDO="X-1"), spreadsheet_row(PEDIDO="")])
        response = client.post("/api/import/excel", files={"file": ("pedidos.xlsx", content, XLSX_MIME)})

        assert response.status_code == 200
        body = response.json()
        assert body["imported"] == 1
        assert body["failed"] == 1
        assert body["errors"][0]["row"] == 2
        assert client.get("/api/orders").json()["total"] == 1

    def test_excel_without_file(self, client):
        response = client.post("/api/import/excel")
        assert response.status_code == 400
        assert response.json()["detail"] == "Nenhum arquivo enviado"

    def test_excel_unreadable(self, client):
        response = client.post("/api/import/excel", files={"file": ("pedidos.xlsx", b"lixo", XLSX_MIME)})
        assert response.status_code == 400

    def test_manual_preview_and_import(self, client, manual_line):
        text = "\n".join([manual_line(pedido=""), manual_line(pedido="M-1")])

        preview = client.post("/api/import/manual/preview", json={"text": text}).json()
        assert preview["total"] == 2
        assert client.get("/api/orders").json()["total"] == 0

        body = client.post("/api/import/manual", json={"text": text}).json()
        assert body["total"] == 2
        assert body["successful"] == 1
        assert body["failed"] == 1
        assert body["results"][0]["success"] is False

        orders = client.get("/api/orders").json()["orders"]
        assert [o["pedido"] for o in orders] == ["M-1"]
        assert orders[0]["producer"] is None

    def test_manual_format_error(self, client, manual_line):
        response = client.post("/api/import/manual", json={"text": "A\tB\tC"})
        assert response.status_code == 400
        assert "22" in response.json()["detail"]["errors"][0]

    def test_errors_csv(self, client):
        response = client.post("/api/import/errors-csv", json={"results": [
            {"row": 1, "pedido": "", "success": False, "error": "Pedido é obrigatório"},
            {"row": 2, "pedido": "M-1", "success": True},
        ]})
        assert response.status_code == 200
        assert "erros-importacao.csv" in response.headers["content-disposition"]
        text = response.content.decode("utf-8-sig")
        assert text == "Linha,Pedido,Erro\n1,,Pedido é obrigatório\n"


class TestCompanyUserRoutes:

    def test_user_lifecycle(self, client):
        response = client.post("/api/company-users", json={"email": "ana@empresa.com", "name": "Ana"})
        assert response.status_code == 201
        user = response.json()
        assert user["role"] == "viewer"
        assert user["permissions"]["orders.view"] is True
        user_id = user["id"]

        duplicate = client.post("/api/company-users", json={"email": "ana@empresa.com", "name": "Ana 2"})
        assert duplicate.status_code == 409

        role = client.patch(f"/api/company-users/{user_id}/role", json={"role": "manager"}).json()
        assert role["can_access_financials"] is True

        perms = client.patch(f"/api/company-users/{user_id}/permissions",
                             json={"permissions": {"orders.delete": True}}).json()
        assert perms["permissions"]["orders.delete"] is True

        toggled = client.patch(f"/api/company-users/{user_id}/toggle-active").json()
        assert toggled["is_active"] is False
        assert toggled["can_access_financials"] is False
        assert toggled["permissions"]["orders.view"] is False

        updated = client.put(f"/api/company-users/{user_id}", json={"position": "Gerente"}).json()
        assert updated["position"] == "Gerente"

        assert len(client.get("/api/company-users").json()) == 1
        assert client.delete(f"/api/company-users/{user_id}").status_code == 204
        assert client.get(f"/api/company-users/{user_id}").status_code == 404

    def test_invalid_email_and_role(self, client):
        assert client.post("/api/company-users", json={"email": "nao-email", "name": "X"}).status_code == 422
        response = client.post("/api/company-users", json={"email": "x@empresa.com", "name": "X", "role": "root"})
        assert response.status_code == 400

    def test_unknown_permission(self, client):
        user_id = client.post("/api/company-users", json={"email": "b@empresa.com", "name": "B"}).json()["id"]
        response = client.patch(f"/api/company-users/{user_id}/permissions",
                                json={"permissions": {"orders.fly": True}})
        assert response.status_code == 400
