"""
Module principal de l'application FastAPI du CRM construction.

Configure le logging, le cycle de vie (création du schéma, administrateur
initial), le CORS, la conversion des erreurs en `{"error": message}` et
monte les routeurs sous le préfixe de version de l'API.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from crm.config import settings
from crm.core.exceptions import CRMException
from crm.core.utils import utcnow
from crm.database import AsyncSessionLocal, create_tables
import crm.models  # noqa: F401

# --- Importer les routeurs ---
from crm.admin.router import router as admin_router
from crm.auth.router import router as auth_router
from crm.clients.router import router as client_router
from crm.dashboard.router import router as dashboard_router
from crm.invoices.router import router as invoice_router
from crm.materials.router import router as material_router
from crm.projects.router import router as project_router
from crm.quotes.router import router as quote_router
from crm.reports.router import router as report_router

# Configurer le logging
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


async def bootstrap_admin():
    """Crée l'administrateur initial si FIRST_ADMIN_EMAIL et FIRST_ADMIN_PASSWORD sont définis."""
    if not (settings.FIRST_ADMIN_EMAIL and settings.FIRST_ADMIN_PASSWORD):
        return
    from crm.auth.service import AuthService
    from crm.users.repositories import SQLAlchemyUserRepository

    async with AsyncSessionLocal() as session:
        service = AuthService(user_repository=SQLAlchemyUserRepository(db_session=session))
        await service.ensure_admin(settings.FIRST_ADMIN_EMAIL, settings.FIRST_ADMIN_PASSWORD)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Démarrage de {settings.APP_NAME} v{settings.APP_VERSION}")
    await create_tables()
    await bootstrap_admin()
    yield
    logger.info("Arrêt de l'application.")


app = FastAPI(
    title=settings.APP_NAME,
    description="API de gestion des clients, projets, devis, factures et matériaux d'une entreprise de construction.",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ======================================================
# Gestionnaires d'erreurs
# ======================================================

@app.exception_handler(CRMException)
async def crm_exception_handler(request: Request, exc: CRMException):
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg')}" if location else str(first.get("msg", "Requête invalide"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": message, "details": jsonable_encoder(errors, custom_encoder={Exception: str})},
    )


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Erreur base de données sur {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": settings.DB_SQL_ERROR_MSG},
    )


# ======================================================
# Inclure les routeurs
# ======================================================
prefix = settings.API_V1_PREFIX

app.include_router(auth_router, prefix=f"{prefix}/auth", tags=["Authentification"])
app.include_router(client_router, prefix=f"{prefix}/clients", tags=["Clients"])
app.include_router(project_router, prefix=f"{prefix}/projects", tags=["Projects"])
app.include_router(quote_router, prefix=f"{prefix}/quotes", tags=["Quotes"])
app.include_router(material_router, prefix=f"{prefix}/materials", tags=["Materials"])
app.include_router(invoice_router, prefix=f"{prefix}/invoices", tags=["Invoices"])
app.include_router(report_router, prefix=f"{prefix}/reports", tags=["Reports"])
app.include_router(dashboard_router, prefix=f"{prefix}/dashboard", tags=["Dashboard"])
app.include_router(admin_router, prefix=f"{prefix}/admin", tags=["Admin"])


@app.get("/health", tags=["System"])
async def health():
    return {"status": "ok", "timestamp": utcnow()}


@app.get("/api/info", tags=["System"])
async def api_info():
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "api_prefix": prefix,
    }


def run():
    """Point d'entrée `crm-api`: lance le serveur uvicorn."""
    import uvicorn

    uvicorn.run("crm.main:app", host=settings.SERVER_HOST, port=settings.SERVER_PORT, log_level=settings.LOG_LEVEL.lower())
