from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware
from app.api import (
    users,
    companies,
    projects,
    terrenos,
    financial,
    documents,
    storage,
    media,
    settings as settings_api,
    lookups,
    assistant,
)
from app.core.config import settings
from app.core.logging import setup_logging, log_request
from app.core.rate_limit import limiter
from app.models import DOCUMENTS_BUCKET, BRANDING_BUCKET, AI_UPLOADS_BUCKET
from app.services.storage import ensure_storage_dirs
import logging
import time
import traceback

# Configurar logging estruturado
setup_logging(level=settings.LOG_LEVEL, json_logs=settings.JSON_LOGS)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Gestão de Incorporação Imobiliária",
    description="API de esteira de projetos, terrenos, financeiro, documentos e plano de mídia",
    version="1.0.0"
)

# Adicionar limiter ao app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# Middleware para garantir CORS em todas as respostas (incluindo erros)
class CORSErrorMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(f"Unhandled exception: {str(e)}\n{traceback.format_exc()}")
            response = JSONResponse(
                status_code=500,
                content={"detail": "Erro interno do servidor"}
            )

        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, OPTIONS, PATCH"
        response.headers["Access-Control-Allow-Headers"] = "*"

        return response


# Handler para OPTIONS (preflight requests)
@app.options("/{rest_of_path:path}")
async def preflight_handler(request: Request, rest_of_path: str):
    response = JSONResponse(content={"message": "OK"})
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, OPTIONS, PATCH"
    response.headers["Access-Control-Allow-Headers"] = "*"
    return response


app.add_middleware(CORSErrorMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    log_request(
        logger,
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round((time.time() - start_time) * 1000, 2),
        ip_address=request.client.host if request.client else None,
    )

    return response


app.include_router(users.router)
app.include_router(companies.router)
app.include_router(projects.router)
app.include_router(terrenos.router)
app.include_router(financial.router)
app.include_router(documents.router)
app.include_router(storage.router)
app.include_router(media.router)
app.include_router(settings_api.router)
app.include_router(lookups.router)
app.include_router(assistant.router)


@app.on_event("startup")
async def startup_event():
    ensure_storage_dirs([DOCUMENTS_BUCKET, BRANDING_BUCKET, AI_UPLOADS_BUCKET])
    logger.info("Application starting up", extra={'event': 'startup'})


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutting down", extra={'event': 'shutdown'})


@app.get("/")
def root():
    return {
        "message": "Gestão de Incorporação Imobiliária API",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    logger.debug("Health check performed")
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
