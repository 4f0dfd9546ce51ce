"""
Main Entry Point - FastAPI Application
Progetto: Billing Manager (Gestionale Fatturazione)

Configura l'applicazione FastAPI con middleware, router e lifecycle.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from billing.api.v1 import api_v1_router
from billing.core.config import settings
from billing.core.exceptions import (
    AppException,
    BusinessValidationError,
    ConflictError,
    NotFoundError,
)
from billing.core.store import BillingStore
from billing.data.demo import load_demo_data

# ------------------------------------------------------------
# Configurazione Logging
# ------------------------------------------------------------
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _error_response(exc: AppException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error_code": exc.error_code},
    )


# ------------------------------------------------------------
# Lifespan Handler
# ------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gestisce il ciclo di vita dell'applicazione.

    - Startup: crea lo store in memoria ed eventualmente carica i dati demo
    - Shutdown: rilascia lo store
    """
    # Startup
    logger.info(f"Avvio {settings.app_name} v{settings.app_version}")
    app.state.store = BillingStore.from_settings(settings)
    if settings.seed_demo_data:
        await load_demo_data(app.state.store, settings)
    logger.info("Applicazione avviata con successo")

    yield

    # Shutdown
    logger.info("Arresto applicazione in corso...")
    app.state.store = None
    logger.info("Applicazione arrestata")


# ------------------------------------------------------------
# FastAPI Application
# ------------------------------------------------------------
app = FastAPI(
    title=settings.app_name,
    description="Gestionale fatturazione: clienti, listino servizi, fatture e pagamenti",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# ------------------------------------------------------------
# Exception Handlers
# ------------------------------------------------------------
@app.exception_handler(NotFoundError)
async def not_found_exception_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """
    Gestore per eccezioni NotFoundError.

    Converte l'eccezione in risposta HTTP 404.
    """
    return _error_response(exc)


@app.exception_handler(BusinessValidationError)
async def validation_exception_handler(
    request: Request, exc: BusinessValidationError
) -> JSONResponse:
    """
    Gestore per eccezioni BusinessValidationError.

    Converte l'eccezione in risposta HTTP 400.
    """
    logger.warning(f"Validazione fallita su {request.url.path}: {exc.detail}")
    return _error_response(exc)


@app.exception_handler(ConflictError)
async def conflict_exception_handler(request: Request, exc: ConflictError) -> JSONResponse:
    """
    Gestore per eccezioni ConflictError.

    Converte l'eccezione in risposta HTTP 409.
    """
    logger.warning(f"Conflitto su {request.url.path}: {exc.detail}")
    return _error_response(exc)


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Gestore per errori di validazione dello schema della richiesta.

    Riporta i dati non validi come HTTP 400, come le altre violazioni
    delle regole di business.
    """
    messages = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={
            "detail": "; ".join(messages),
            "error_code": BusinessValidationError.error_code,
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Gestore generico per tutte le eccezioni non catturate.

    Converte l'eccezione in risposta HTTP 500 e logga l'errore.
    """
    logger.error(
        f"Unhandled exception: {exc}",
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Errore interno del server", "error_code": "INTERNAL_ERROR"},
    )


# ------------------------------------------------------------
# Middleware CORS
# ------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------
@app.get(
    "/health",
    name="Health Check",
    summary="Controlla lo stato dell'applicazione",
    tags=["System"],
)
async def health_check() -> dict[str, str]:
    """
    Endpoint per il controllo dello stato di salute.

    Returns:
        dict: Stato dell'applicazione
    """
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.app_env,
    }


# ------------------------------------------------------------
# Router
# ------------------------------------------------------------
app.include_router(api_v1_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "billing.main:app",
        host="0.0.0.0",
        port=settings.backend_port,
        reload=settings.debug,
    )
