import logging
import time

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from comex_crm.config.database import Base, engine
from comex_crm.config.settings import settings
from comex_crm.models import crm_models  # noqa: F401  (registra as tabelas no Base)
from comex_crm.routes.company_user_routes import company_user_router
from comex_crm.routes.import_routes import import_router
from comex_crm.routes.order_routes import order_router
from comex_crm.routes.stats_routes import stats_router

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Inicializar FastAPI
app = FastAPI(
    title="Comex CRM - Pedidos de Importação e Exportação",
    description="CRM de pedidos de comércio exterior com importação de planilhas",
    version="1.0.0",
    docs_url="/docs"
)

# Configurar CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Corpo de pedido com tipo errado responde 400 no mesmo formato da validação de negócio
@app.exception_handler(RequestValidationError)
async def order_body_validation_handler(request: Request, exc: RequestValidationError):
    if request.method in ("POST", "PUT") and request.url.path.startswith("/api/orders"):
        errors = [
            f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
            for error in exc.errors()
        ]
        logger.warning(f"⚠️ Corpo de pedido inválido em {request.url.path}: {errors}")
        return JSONResponse(
            status_code=400,
            content={"detail": {"message": "Dados do pedido inválidos", "errors": errors}}
        )
    return await request_validation_exception_handler(request, exc)


# Criar tabelas do banco de dados
@app.on_event("startup")
async def startup_event():
    """Evento de inicialização da aplicação"""
    logger.info("🚀 [STARTUP] Iniciando aplicação...")

    # Criar tabelas se não existirem (com retry para conexões lentas)
    max_retries = 3
    retry_delay = 2

    for attempt in range(max_retries):
        try:
            logger.info(f"🔄 [STARTUP] Conectando ao banco de dados (tentativa {attempt + 1}/{max_retries})...")
            Base.metadata.create_all(bind=engine, checkfirst=True)
            logger.info("✅ Banco de dados inicializado")
            break
        except OperationalError as db_error:
            if attempt == max_retries - 1:
                logger.error(f"❌ [STARTUP] Banco de dados indisponível: {db_error}")
                raise
            logger.warning(f"⚠️ [STARTUP] Falha ao conectar, nova tentativa em {retry_delay}s: {db_error}")
            time.sleep(retry_delay)


@app.get("/health")
async def health_check():
    return {"status": "ok", "environment": settings.environment}


app.include_router(order_router)  # Para /api/orders e /api/clients|exporters|importers|producers
app.include_router(import_router)  # Para /api/import
app.include_router(stats_router)  # Para /api/stats, /api/financial e /api/analytics
app.include_router(company_user_router)  # Para /api/company-users
