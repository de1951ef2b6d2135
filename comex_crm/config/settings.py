import os
from typing import List


class Settings:
    """Configurações da aplicação"""

    def __init__(self):
        # Detecta ambiente (produção ou desenvolvimento)
        self.environment = os.getenv("ENVIRONMENT", "development").lower()
        self.is_production = self.environment == "production"

        # Banco de dados (Postgres do Supabase em produção)
        self.database_url = os.getenv("DATABASE_URL")
        if not self.database_url:
            if self.is_production:
                raise ValueError(
                    "❌ ERRO CRÍTICO: DATABASE_URL deve ser definida nas variáveis de ambiente em produção!"
                )
            self.database_url = "sqlite:///./comex_crm.db"

        # API Configuration
        self.api_host = os.getenv("API_HOST", "0.0.0.0")
        self.api_port = int(os.getenv("API_PORT", "8000"))
        self.debug = os.getenv("DEBUG", str(not self.is_production)).lower() == "true"
        self.log_level = os.getenv("LOG_LEVEL", "DEBUG" if self.debug else "INFO").upper()

        # CORS - lista separada por vírgula, "*" libera tudo
        self.cors_origins: List[str] = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ]

        # Supabase (projeto que hospeda o Postgres)
        self.supabase_url = os.getenv("SUPABASE_URL", "").rstrip("/")
        self.supabase_service_key = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")

        # Importação de planilhas
        self.import_max_file_mb = int(os.getenv("IMPORT_MAX_FILE_MB", "10"))

        # Paginação
        self.default_page_size = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))
        self.max_page_size = int(os.getenv("MAX_PAGE_SIZE", "100"))

    @property
    def import_max_file_bytes(self) -> int:
        return self.import_max_file_mb * 1024 * 1024


# Instância global das configurações
settings = Settings()
