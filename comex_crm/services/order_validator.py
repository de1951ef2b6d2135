"""
Validação e conversão dos dados de pedido
"""
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List

from comex_crm.models.crm_models import Incoterm, Moeda, Situacao, ViaTransporte
from comex_crm.services.exceptions import OrderValidationError

MOEDAS = [m.value for m in Moeda]
VIAS_TRANSPORTE = [v.value for v in ViaTransporte]
INCOTERMS = [i.value for i in Incoterm]

DATE_LABELS = {
    "data": "Data",
    "embarque": "Data de embarque",
    "previsao": "Data de previsão",
    "chegada": "Data de chegada",
    "data_emissao_pedido": "Data de emissão do pedido",
    "data_embarque_de": "Data de embarque (de)",
}

TEXT_FIELDS = [
    "referencia_exportador",
    "referencia_importador",
    "itens",
    "etiqueta",
    "porto_embarque",
    "porto_destino",
    "condicao",
    "observacao",
    "situacao",
    "semana",
    "cliente_rede",
    "representante",
    "produto",
    "cliente_final",
    "grupo",
    "pais_exportador",
]

# tipo de entidade -> mensagem quando nem nome nem id foram informados
REQUIRED_ENTITIES = {
    "exporter": "Exportador é obrigatório",
    "importer": "Importador é obrigatório",
    "client": "Cliente é obrigatório",
}
ENTITY_TYPES = ["exporter", "importer", "client", "producer"]


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_decimal(value: Any) -> Decimal:
    """
    Converte número em Decimal aceitando formatos 1234.5, 1234,5 e 1.234,50

    Levanta InvalidOperation para texto não numérico.
    """
    if isinstance(value, bool):
        raise InvalidOperation(value)
    if isinstance(value, (int, float, Decimal)):
        result = Decimal(str(value))
    else:
        text = str(value).strip().replace(" ", "")
        for symbol in ("R$", "US$", "$", "€"):
            text = text.replace(symbol, "")
        if "," in text and "." in text:
            if text.rfind(",") > text.rfind("."):
                text = text.replace(".", "").replace(",", ".")
            else:
                text = text.replace(",", "")
        elif "," in text:
            text = text.replace(",", ".")
        result = Decimal(text)

    if not result.is_finite():
        raise InvalidOperation(value)
    return result


def parse_date(value: Any) -> date:
    """
    Data ISO (YYYY-MM-DD) ou objeto date/datetime

    Texto com horário só é aceito no formato ISO completo (YYYY-MM-DDTHH:MM...).
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if len(text) > 10 and text[10] == "T":
        return datetime.fromisoformat(text).date()
    if len(text) != 10:
        raise ValueError(f"Data fora do formato YYYY-MM-DD: {text}")
    return date.fromisoformat(text)


def validate_order_data(data: Dict[str, Any], partial: bool = False) -> List[str]:
    """
    Valida os dados de um pedido e devolve a lista de erros (vazia se ok)

    Com partial=True apenas os campos presentes são verificados.
    """
    errors = []

    def present(key):
        return not partial or key in data

    if present("pedido") and _is_blank(data.get("pedido")):
        errors.append("Pedido é obrigatório")

    if present("data") and _is_blank(data.get("data")):
        errors.append("Data é obrigatória")

    for entity_type, message in REQUIRED_ENTITIES.items():
        name_key, id_key = f"{entity_type}_name", f"{entity_type}_id"
        if partial and name_key not in data and id_key not in data:
            continue
        if _is_blank(data.get(name_key)) and _is_blank(data.get(id_key)):
            errors.append(message)

    if present("quantidade"):
        quantidade = data.get("quantidade")
        if _is_blank(quantidade):
            errors.append("Quantidade é obrigatória")
        else:
            try:
                if parse_decimal(quantidade) <= 0:
                    errors.append("Quantidade deve ser maior que zero")
            except InvalidOperation:
                errors.append(f"Quantidade deve ser numérica: {quantidade}")

    for key, label in (("preco_guia", "Preço guia"), ("total_guia", "Total guia")):
        value = data.get(key)
        if not _is_blank(value):
            try:
                parse_decimal(value)
            except InvalidOperation:
                errors.append(f"{label} deve ser numérico: {value}")

    for key, label in DATE_LABELS.items():
        value = data.get(key)
        if not _is_blank(value):
            try:
                parse_date(value)
            except (ValueError, TypeError):
                errors.append(f"{label} inválida: {value}")

    moeda = data.get("moeda")
    if not _is_blank(moeda) and str(moeda).strip().upper() not in MOEDAS:
        errors.append(f"Moeda inválida: {moeda}")

    via = data.get("via_transporte")
    if not _is_blank(via) and str(via).strip().lower() not in VIAS_TRANSPORTE:
        errors.append(f"Via de transporte inválida: {via}")

    incoterm = data.get("incoterm")
    if not _is_blank(incoterm) and str(incoterm).strip().upper() not in INCOTERMS:
        errors.append(f"Incoterm inválido: {incoterm}")

    return errors


def clean_order_data(data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Valida e converte os dados para os tipos das colunas

    Levanta OrderValidationError com todos os erros encontrados.
    """
    errors = validate_order_data(data, partial=partial)
    if errors:
        raise OrderValidationError(errors)

    cleaned: Dict[str, Any] = {}

    def present(key):
        return not partial or key in data

    if present("pedido"):
        cleaned["pedido"] = str(data["pedido"]).strip()

    if present("quantidade"):
        cleaned["quantidade"] = parse_decimal(data["quantidade"])

    for key in ("preco_guia", "total_guia"):
        if present(key):
            value = data.get(key)
            cleaned[key] = None if _is_blank(value) else parse_decimal(value)

    for key in DATE_LABELS:
        if present(key):
            value = data.get(key)
            cleaned[key] = None if _is_blank(value) else parse_date(value)

    for key in TEXT_FIELDS:
        if present(key):
            value = data.get(key)
            cleaned[key] = None if _is_blank(value) else str(value).strip()

    if present("situacao") and not cleaned.get("situacao"):
        cleaned["situacao"] = Situacao.PENDIENTE.value

    if present("moeda"):
        moeda = data.get("moeda")
        cleaned["moeda"] = Moeda.BRL.value if _is_blank(moeda) else str(moeda).strip().upper()

    if present("via_transporte"):
        via = data.get("via_transporte")
        cleaned["via_transporte"] = None if _is_blank(via) else str(via).strip().lower()

    if present("incoterm"):
        incoterm = data.get("incoterm")
        cleaned["incoterm"] = None if _is_blank(incoterm) else str(incoterm).strip().upper()

    for entity_type in ENTITY_TYPES:
        for suffix in ("name", "id"):
            key = f"{entity_type}_{suffix}"
            if key in data:
                value = data.get(key)
                cleaned[key] = None if _is_blank(value) else str(value).strip()

    return cleaned
