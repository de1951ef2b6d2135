"""Configuração dos testes e fixtures compartilhadas."""

import io
from datetime import date
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from comex_crm.config.database import Base, get_db
from comex_crm.main import app
from comex_crm.models import crm_models  # noqa: F401
from comex_crm.services.planilha_parser import MANUAL_COLUMNS

SPREADSHEET_HEADERS = [
    "PEDIDO", "DATA", "EXPORTADOR", "REFERÊNCIA", "IMPORTADOR", "REFERÊNCIA",
    "QUANTIDADE", "ITENS", "PREÇO GUIA", "TOTAL GUIA", "PRODUTOR", "CLIENTE",
    "ETIQUETA", "PORTO EMBARQUE", "PORTO DESTINO", "CONDIÇÃO", "EMBARQUE",
    "PREVISÃO", "CHEGADA", "OBSERVAÇÃO", "SITUAÇÃO", "SEMANA",
]


@pytest.fixture
def engine():
    """SQLite em memória compartilhado entre sessões, com suporte a SAVEPOINT."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        # pysqlite: desliga o BEGIN implícito do driver
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=True, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    """TestClient com get_db apontando para o banco de teste."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def order_payload():
    """Fábrica de payloads válidos de pedido (nomes das contrapartes)."""

    def _make(**overrides) -> Dict[str, Any]:
        payload = {
            "pedido": "PED-001",
            "data": "2024-03-15",
            "exporter_name": "Exportadora Andina",
            "importer_name": "Importadora Sul",
            "client_name": "Mercado Central",
            "producer_name": "Fazenda Boa Vista",
            "referencia_exportador": "EXP-REF-1",
            "referencia_importador": "IMP-REF-1",
            "quantidade": "1200",
            "itens": "Uvas frescas",
            "preco_guia": "2,50",
            "total_guia": "3000",
            "moeda": "USD",
            "porto_embarque": "Valparaíso",
            "porto_destino": "Santos",
            "incoterm": "FOB",
            "via_transporte": "maritimo",
            "embarque": "2024-03-20",
            "previsao": "2024-04-05",
            "situacao": "pendiente",
        }
        payload.update(overrides)
        return payload

    return _make


@pytest.fixture
def manual_line():
    """Monta uma linha de 22 colunas separadas por tabulação."""

    def _make(**overrides) -> str:
        values = {
            "pedido": "PED-100",
            "data": "15/03/24",
            "exporter_name": "Exportadora Andina",
            "referencia_exportador": "EXP-9",
            "importer_name": "Importadora Sul",
            "referencia_importador": "IMP-9",
            "quantidade": "500",
            "itens": "Cerejas",
            "preco_guia": "4.10",
            "total_guia": "2050",
            "producer_name": "",
            "client_name": "Mercado Central",
            "etiqueta": "Premium",
            "porto_embarque": "San Antonio",
            "porto_destino": "Santos",
            "condicao": "FOB",
            "embarque": "20/03/24",
            "previsao": "05/04/24",
            "chegada": "",
            "observacao": "",
            "situacao": "",
            "semana": "12",
        }
        values.update(overrides)
        return "\t".join(values[column] for column in MANUAL_COLUMNS)

    return _make


@pytest.fixture
def xlsx_bytes():
    """Gera um .xlsx em memória: primeira aba com cabeçalho + linhas."""

    def _make(rows: List[List[Any]], headers: Optional[List[str]] = None,
              extra_sheet_rows: Optional[List[List[Any]]] = None) -> bytes:
        wb = Workbook()
        ws = wb.active
        ws.title = "Pedidos"
        ws.append(headers or SPREADSHEET_HEADERS)
        for row in rows:
            ws.append(row)
        if extra_sheet_rows:
            other = wb.create_sheet("Outra")
            for row in extra_sheet_rows:
                other.append(row)
        buffer = io.BytesIO()
        wb.save(buffer)
        return buffer.getvalue()

    return _make


@pytest.fixture
def spreadsheet_row():
    """Linha de planilha no layout padrão (22 colunas)."""

    def _make(**overrides) -> List[Any]:
        values = {
            "PEDIDO": "PLN-1",
            "DATA": date(2024, 3, 15),
            "EXPORTADOR": "Exportadora Andina",
            "REF_EXP": "EXP-A",
            "IMPORTADOR": "Importadora Sul",
            "REF_IMP": "IMP-B",
            "QUANTIDADE": 100,
            "ITENS": "Maçãs",
            "PREÇO GUIA": 1.5,
            "TOTAL GUIA": 150,
            "PRODUTOR": None,
            "CLIENTE": "Mercado Central",
            "ETIQUETA": None,
            "PORTO EMBARQUE": "Valparaíso",
            "PORTO DESTINO": "Santos",
            "CONDIÇÃO": None,
            "EMBARQUE": 45371,
            "PREVISÃO": None,
            "CHEGADA": None,
            "OBSERVAÇÃO": None,
            "SITUAÇÃO": None,
            "SEMANA": "11",
        }
        values.update(overrides)
        return list(values.values())

    return _make
