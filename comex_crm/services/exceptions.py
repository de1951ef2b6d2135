"""
Erros de domínio do CRM
"""
from typing import List, Optional


class CrmError(Exception):
    """Base para todos os erros de domínio"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# === VALIDAÇÃO ===
class ValidationError(CrmError):
    """Dados inválidos (campo obrigatório, enum, número)"""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]


class OrderValidationError(ValidationError):
    """Pedido reprovado na validação"""

    def __init__(self, errors: List[str]):
        super().__init__("Dados do pedido inválidos: " + "; ".join(errors), errors)


class InvalidUserDataError(ValidationError):
    pass


class MissingRequiredField(ValidationError):
    """Nome de contraparte vazio no resolvedor de entidades"""

    def __init__(self, entity_type: str):
        super().__init__(f"Nome de {ENTITY_LABELS.get(entity_type, entity_type)} é obrigatório")
        self.entity_type = entity_type


# === FORMATO ===
class FormatError(CrmError):
    """Estrutura de entrada incorreta (colunas, arquivo)"""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]


class ManualFormatError(FormatError):
    """Bloco colado com linhas fora do formato de 22 colunas"""

    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors), errors)


class SpreadsheetReadError(FormatError):
    pass


# === DUPLICIDADE ===
class DuplicateKeyError(CrmError):
    pass


class DuplicateOrderError(DuplicateKeyError):
    def __init__(self, pedido: str):
        super().__init__(f"Pedido duplicado: já existe um pedido com o número {pedido}")
        self.pedido = pedido


class DuplicateEmailError(DuplicateKeyError):
    def __init__(self, email: str):
        super().__init__(f"Já existe um usuário com o email {email}")
        self.email = email


# === NÃO ENCONTRADO ===
class NotFoundError(CrmError):
    pass


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: str):
        super().__init__("Pedido não encontrado")
        self.order_id = order_id


class ClientNotFoundError(NotFoundError):
    def __init__(self, client_id: str):
        super().__init__("Cliente não encontrado")
        self.client_id = client_id


class CompanyUserNotFoundError(NotFoundError):
    def __init__(self, user_id: str):
        super().__init__("Usuário não encontrado")
        self.user_id = user_id


# === BANCO ===
class UpstreamError(CrmError):
    """Falha na chamada ao banco de dados"""

    def __init__(self, message: str = "Erro ao acessar o banco de dados"):
        super().__init__(message)


ENTITY_LABELS = {
    "client": "cliente",
    "exporter": "exportador",
    "importer": "importador",
    "producer": "produtor",
}
