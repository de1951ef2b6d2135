"""
Configuração do banco de dados
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from comex_crm.config.settings import settings

DATABASE_URL = settings.database_url


def build_engine(database_url: str):
    """Cria a engine do SQLAlchemy conforme o tipo de banco"""
    if database_url.startswith("sqlite"):
        # SQLite local (desenvolvimento)
        return create_engine(
            database_url,
            echo=False,
            connect_args={"check_same_thread": False}
        )

    return create_engine(
        database_url,
        pool_pre_ping=True,
        echo=False,  # Mude para True para ver queries SQL
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=3600,  # Reciclar conexões a cada hora
        connect_args={
            "connect_timeout": 30,
            "application_name": "comex_crm"
        }
    )


# Criar engine do SQLAlchemy
engine = build_engine(DATABASE_URL)

# Criar sessão
SessionLocal = sessionmaker(autocommit=False, autoflush=True, bind=engine)

# Base para modelos
Base = declarative_base()


def get_db():
    """Dependency para obter sessão do banco"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
