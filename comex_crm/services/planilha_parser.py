"""
Leitura e normalização de planilhas e texto colado de pedidos

Converte células de Excel/CSV e linhas separadas por tabulação no conjunto
canônico de campos do pedido, antes da validação e da importação.
"""
import csv
import io
import logging
import zipfile
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

import xlrd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from xlrd.compdoc import CompDocError

from comex_crm.services.exceptions import ManualFormatError, SpreadsheetReadError

logger = logging.getLogger(__name__)

# Diferença em dias entre a época do Excel e a época Unix
EXCEL_UNIX_OFFSET_DAYS = 25569
EXCEL_SERIAL_MIN = 40000
EXCEL_SERIAL_MAX = 50000
UNIX_EPOCH = datetime(1970, 1, 1)

# Ordem literal das 22 colunas do texto colado (campo canônico)
MANUAL_COLUMNS = [
    "pedido",
    "data",
    "exporter_name",
    "referencia_exportador",
    "importer_name",
    "referencia_importador",
    "quantidade",
    "itens",
    "preco_guia",
    "total_guia",
    "producer_name",
    "client_name",
    "etiqueta",
    "porto_embarque",
    "porto_destino",
    "condicao",
    "embarque",
    "previsao",
    "chegada",
    "observacao",
    "situacao",
    "semana",
]
MANUAL_COLUMN_COUNT = len(MANUAL_COLUMNS)

DATE_FIELDS = ["data", "embarque", "previsao", "chegada"]

# campo canônico -> (cabeçalho da planilha, alias camelCase)
EXCEL_COLUMNS = {
    "pedido": ("PEDIDO", "pedido"),
    "data": ("DATA", "data"),
    "exporter_name": ("EXPORTADOR", "exportador"),
    "importer_name": ("IMPORTADOR", "importador"),
    "quantidade": ("QUANTIDADE", "quantidade"),
    "itens": ("ITENS", "itens"),
    "preco_guia": ("PREÇO GUIA", "precoGuia"),
    "total_guia": ("TOTAL GUIA", "totalGuia"),
    "producer_name": ("PRODUTOR", "produtor"),
    "client_name": ("CLIENTE", "cliente"),
    "etiqueta": ("ETIQUETA", "etiqueta"),
    "porto_embarque": ("PORTO EMBARQUE", "portoEmbarque"),
    "porto_destino": ("PORTO DESTINO", "portoDestino"),
    "condicao": ("CONDIÇÃO", "condicao"),
    "embarque": ("EMBARQUE", "embarque"),
    "previsao": ("PREVISÃO", "previsao"),
    "chegada": ("CHEGADA", "chegada"),
    "observacao": ("OBSERVAÇÃO", "observacao"),
    "situacao": ("SITUAÇÃO", "situacao"),
    "semana": ("SEMANA", "semana"),
}

# Colunas opcionais que só existem na planilha
EXCEL_OPTIONAL_COLUMNS = {
    "moeda": ("MOEDA", "moeda"),
    "via_transporte": ("VIA TRANSPORTE", "viaTransporte"),
    "incoterm": ("INCOTERM", "incoterm"),
}

REFERENCE_HEADER = "REFERÊNCIA"
IMPORTER_HEADER = "IMPORTADOR"


# === CÉLULAS ===
def normalize_cell(value: Any) -> str:
    """
    Converte o valor bruto de uma célula em texto canônico

    - None vira string vazia
    - números entre 40000 e 50000 (exclusivo) são datas seriais do Excel
    - demais números viram texto decimal sem formatação regional
    - strings são devolvidas sem alteração
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, (int, float, Decimal)):
        if EXCEL_SERIAL_MIN < value < EXCEL_SERIAL_MAX:
            return excel_serial_to_iso(value)
        return _number_to_str(value)
    return str(value)


def excel_serial_to_iso(serial) -> str:
    """Data serial do Excel para YYYY-MM-DD"""
    instant = UNIX_EPOCH + timedelta(seconds=(float(serial) - EXCEL_UNIX_OFFSET_DAYS) * 86400)
    return instant.date().isoformat()


def _number_to_str(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, Decimal) and value == value.to_integral_value():
        return str(value.quantize(Decimal(1)))
    return str(value)


def parse_date_ddmmyy(value: str, today: Optional[date] = None) -> str:
    """
    Converte DD/MM/AA ou DD/MM/AAAA em YYYY-MM-DD

    Ano com 2 dígitos recebe o século do ano corrente ("99" em 2026 vira 2099).
    Texto que não tem 3 partes separadas por "/" volta sem alteração.
    """
    if not value:
        return ""

    parts = value.split("/")
    if len(parts) != 3:
        return value

    day, month, year = (part.strip() for part in parts)
    if len(year) == 2 and year.isdigit():
        current_year = (today or date.today()).year
        year = str(current_year // 100 * 100 + int(year))

    return f"{year}-{month.zfill(2)}-{day.zfill(2)}"


# === PLANILHA (EXCEL / CSV) ===
def dedupe_headers(headers: List[Any]) -> List[str]:
    """Renomeia cabeçalhos repetidos: REFERÊNCIA, REFERÊNCIA__1, REFERÊNCIA__2..."""
    seen: Dict[str, int] = {}
    result = []
    for header in headers:
        name = normalize_cell(header).strip() or "__EMPTY"
        if name in seen:
            seen[name] += 1
            result.append(f"{name}__{seen[name]}")
        else:
            seen[name] = 0
            result.append(name)
    return result


def read_spreadsheet(content: bytes, filename: str) -> List[Dict[str, Any]]:
    """
    Lê a primeira aba de um .xlsx ou .xls (ou um .csv) em uma lista de linhas
    indexadas pelo cabeçalho. Linhas totalmente vazias são descartadas.
    """
    name = (filename or "").lower()

    if name.endswith((".xlsx", ".xlsm")):
        table = _read_xlsx(content)
    elif name.endswith(".xls"):
        table = _read_xls(content)
    elif name.endswith(".csv"):
        table = _read_csv(content)
    else:
        raise SpreadsheetReadError(
            f"Tipo de arquivo não suportado: {filename}. Tipos suportados: XLSX, XLS, CSV"
        )

    if not table:
        return []

    headers = dedupe_headers(list(table[0]))
    rows = []
    for values in table[1:]:
        if all(_is_blank(v) for v in values):
            continue
        rows.append({
            header: values[index] if index < len(values) else None
            for index, header in enumerate(headers)
        })

    logger.info(f"📄 Planilha {filename} lida: {len(rows)} linhas de dados")
    return rows


def _read_xlsx(content: bytes) -> List[tuple]:
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        raise SpreadsheetReadError(f"Não foi possível ler a planilha: {str(e)}") from e

    try:
        # Apenas a primeira aba é importada
        sheet = workbook.worksheets[0]
        return [tuple(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def _read_xls(content: bytes) -> List[tuple]:
    """Excel 97-2003 (.xls) via xlrd"""
    try:
        workbook = xlrd.open_workbook(file_contents=content, on_demand=True)
    except (xlrd.XLRDError, CompDocError, EOFError, ValueError) as e:
        raise SpreadsheetReadError(f"Não foi possível ler a planilha: {str(e)}") from e

    try:
        # Apenas a primeira aba é importada
        sheet = workbook.sheet_by_index(0)
        return [
            tuple(_xls_cell_value(cell, workbook.datemode) for cell in sheet.row(index))
            for index in range(sheet.nrows)
        ]
    finally:
        workbook.release_resources()


def _xls_cell_value(cell, datemode: int) -> Any:
    # xlrd entrega datas como número serial; o tipo da célula diz se é data
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
        return None
    if cell.ctype == xlrd.XL_CELL_DATE:
        return xlrd.xldate_as_datetime(cell.value, datemode)
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    return cell.value


def _read_csv(content: bytes) -> List[List[str]]:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        # Planilhas exportadas no Windows costumam vir em Latin-1
        text = content.decode("latin-1")

    try:
        dialect = csv.Sniffer().sniff(text[:4096], delimiters=",;\t")
        delimiter = dialect.delimiter
    except csv.Error:
        delimiter = ","

    return [row for row in csv.reader(io.StringIO(text), delimiter=delimiter)]


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _lookup(row: Dict[str, Any], header: str, alias: str) -> str:
    value = row.get(header)
    if _is_blank(value):
        value = row.get(alias)
    return normalize_cell(value)


def _reference_headers(row: Dict[str, Any]):
    """Localiza as colunas REFERÊNCIA antes e depois de IMPORTADOR"""
    keys = list(row.keys())
    importer_index = keys.index(IMPORTER_HEADER) if IMPORTER_HEADER in keys else -1

    exporter_ref = REFERENCE_HEADER
    importer_ref = f"{REFERENCE_HEADER}__1"
    if importer_index != -1:
        before = [k for i, k in enumerate(keys) if REFERENCE_HEADER in k and i < importer_index]
        after = [k for i, k in enumerate(keys) if REFERENCE_HEADER in k and i > importer_index]
        if before:
            exporter_ref = before[0]
        if after:
            importer_ref = after[0]
    return exporter_ref, importer_ref


def map_excel_row(row: Dict[str, Any]) -> Dict[str, str]:
    """Converte uma linha da planilha no conjunto canônico de campos"""
    exporter_ref, importer_ref = _reference_headers(row)

    mapped = {}
    for field in MANUAL_COLUMNS:
        if field == "referencia_exportador":
            mapped[field] = _lookup(row, exporter_ref, "referenciaExportador")
        elif field == "referencia_importador":
            mapped[field] = _lookup(row, importer_ref, "referenciaImportador")
        else:
            header, alias = EXCEL_COLUMNS[field]
            mapped[field] = _lookup(row, header, alias)

    for field, (header, alias) in EXCEL_OPTIONAL_COLUMNS.items():
        mapped[field] = _lookup(row, header, alias)

    mapped = {key: value.strip() for key, value in mapped.items()}

    # Datas digitadas como texto (CSV) no formato brasileiro
    for field in DATE_FIELDS:
        if "/" in mapped[field]:
            mapped[field] = parse_date_ddmmyy(mapped[field])

    return _apply_defaults(mapped)


# === TEXTO COLADO ===
def parse_manual_text(text: str) -> List[Dict[str, str]]:
    """
    Converte o bloco colado (uma linha por pedido, 22 colunas separadas por
    tabulação) em linhas canônicas.

    Qualquer linha com menos de 22 colunas invalida o bloco inteiro.
    """
    lines = [line.rstrip("\r") for line in (text or "").split("\n")]
    lines = [line for line in lines if line.strip()]

    if not lines:
        raise ManualFormatError(["Nenhum dado para processar"])

    rows = []
    errors = []
    for index, line in enumerate(lines, 1):
        fields = line.split("\t")
        if len(fields) < MANUAL_COLUMN_COUNT:
            errors.append(
                f"Linha {index}: formato incorreto "
                f"(esperadas {MANUAL_COLUMN_COUNT} colunas, encontradas {len(fields)})"
            )
            continue
        rows.append(map_manual_fields(fields))

    if errors:
        logger.warning(f"⚠️ Texto colado rejeitado: {len(errors)} linha(s) fora do formato")
        raise ManualFormatError(errors)

    return rows


def map_manual_fields(fields: List[str]) -> Dict[str, str]:
    mapped = {
        column: fields[index].strip()
        for index, column in enumerate(MANUAL_COLUMNS)
    }
    for field in DATE_FIELDS:
        mapped[field] = parse_date_ddmmyy(mapped[field])
    return _apply_defaults(mapped)


def _apply_defaults(mapped: Dict[str, str]) -> Dict[str, str]:
    if not mapped.get("quantidade"):
        mapped["quantidade"] = "0"
    if not mapped.get("situacao"):
        mapped["situacao"] = "pendiente"
    return mapped
