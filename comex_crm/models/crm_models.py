"""
Modelos do CRM de comércio exterior (pedidos, contrapartes e usuários da empresa)
"""
import enum
import uuid

from sqlalchemy import Column, String, Text, Boolean, DateTime, Date, ForeignKey, JSON, Index, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from comex_crm.config.database import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class Situacao(enum.Enum):
    """Situação do pedido (valores convencionais, não obrigatórios)"""
    PENDIENTE = "pendiente"
    TRANSITO = "transito"
    ENTREGADO = "entregado"


class Moeda(enum.Enum):
    """Moedas aceitas nos totais do pedido"""
    BRL = "BRL"
    USD = "USD"
    EUR = "EUR"


class ViaTransporte(enum.Enum):
    """Modal de transporte"""
    TERRESTRE = "terrestre"
    MARITIMO = "maritimo"
    AEREO = "aereo"


class Incoterm(enum.Enum):
    """Termos internacionais de entrega"""
    CIF = "CIF"
    FOB = "FOB"
    FCA = "FCA"
    CFR = "CFR"


class NamedEntityMixin:
    """Formato comum de cliente, exportador, importador e produtor (id + nome)"""

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), unique=True, nullable=False, index=True)
    created_at = Column(DateTime, default=func.now())


class Client(NamedEntityMixin, Base):
    """Cliente"""
    __tablename__ = "clients"


class Exporter(NamedEntityMixin, Base):
    """Exportador"""
    __tablename__ = "exporters"


class Importer(NamedEntityMixin, Base):
    """Importador"""
    __tablename__ = "importers"


class Producer(NamedEntityMixin, Base):
    """Produtor"""
    __tablename__ = "producers"


class Order(Base):
    """Pedido de importação/exportação"""
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    pedido = Column(String(100), unique=True, nullable=False, index=True)
    data = Column(Date, nullable=False)

    # Contrapartes
    exporter_id = Column(String(36), ForeignKey("exporters.id"), nullable=False, index=True)
    importer_id = Column(String(36), ForeignKey("importers.id"), nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=False, index=True)
    producer_id = Column(String(36), ForeignKey("producers.id"), nullable=True, index=True)

    referencia_exportador = Column(String(255))
    referencia_importador = Column(String(255))

    # Mercadoria e valores
    quantidade = Column(Numeric(12, 2), nullable=False, default=0)
    itens = Column(Text)
    preco_guia = Column(Numeric(14, 2))
    total_guia = Column(Numeric(14, 2))
    moeda = Column(String(3), default=Moeda.BRL.value)  # registros antigos sem moeda contam como BRL
    etiqueta = Column(String(255))

    # Logística
    porto_embarque = Column(String(255))
    porto_destino = Column(String(255))
    condicao = Column(String(255))
    via_transporte = Column(String(20))
    incoterm = Column(String(3))
    embarque = Column(Date)
    previsao = Column(Date)
    chegada = Column(Date)

    observacao = Column(Text)
    situacao = Column(String(50), default=Situacao.PENDIENTE.value, nullable=False, index=True)
    semana = Column(String(20))

    # Campos complementares
    cliente_rede = Column(String(255))
    representante = Column(String(255))
    produto = Column(String(255))
    data_emissao_pedido = Column(Date)
    cliente_final = Column(String(255))
    data_embarque_de = Column(Date)
    grupo = Column(String(255))
    pais_exportador = Column(String(100))

    # Timestamps
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # Relacionamentos
    exporter = relationship("Exporter")
    importer = relationship("Importer")
    client = relationship("Client")
    producer = relationship("Producer")

    __table_args__ = (
        Index("ix_orders_data", "data"),
        Index("ix_orders_embarque", "embarque"),
    )


class CompanyUser(Base):
    """Usuário da empresa com papel e permissões"""
    __tablename__ = "company_users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    position = Column(String(255))
    role = Column(String(20), nullable=False, default="viewer")
    is_active = Column(Boolean, default=True, nullable=False)
    permissions = Column(JSON)  # chave de permissão -> bool
    last_login = Column(DateTime)

    # Timestamps
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


ENTITY_MODELS = {
    "client": Client,
    "exporter": Exporter,
    "importer": Importer,
    "producer": Producer,
}
