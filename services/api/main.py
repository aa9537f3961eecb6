"""
PDF Packet Generator - Backend API
FastAPI service that assembles submittal packets (cover, product info,
section dividers, documents, page numbers) and hosts the document catalog.

Install dependencies:
pip install -e ".[test]"

Run server:
uvicorn main:app --host 0.0.0.0 --port 8000
"""

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import Optional
import contextvars
import logging
import os
import time
import uuid

from adapters.sqlite import SqliteDocumentRepository
from settings import get_settings

# ========== Request Context for Tracing ==========
request_id_var = contextvars.ContextVar('request_id', default=None)
request_start_time_var = contextvars.ContextVar('request_start_time', default=None)

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

APP_VERSION = "1.0"

# ============================================================================
# DOCUMENT REPOSITORY
# ============================================================================

document_repository: Optional[SqliteDocumentRepository] = None

# ---- DI helper (used by routers/*) ----
def get_document_repository() -> SqliteDocumentRepository:
    global document_repository
    if document_repository is None:
        document_repository = SqliteDocumentRepository.from_url(settings.db_url)
        logger.info(f"Document repository ready: {settings.db_url.split('://')[0]}")
    return document_repository

# ============================================================================
# FASTAPI APP
# ============================================================================

app = FastAPI(
    title="PDF Packet Generator API",
    description="Builds submittal PDF packets and manages the document catalog",
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

# ========== Request Tracing Middleware ==========
@app.middleware("http")
async def request_tracing_middleware(request, call_next):
    """Add request_id and timing to all requests."""
    request_id = str(uuid.uuid4())[:8]
    request_id_var.set(request_id)
    request_start_time_var.set(time.time())

    response = await call_next(request)

    latency = time.time() - request_start_time_var.get()
    logger.info(
        f"[{request_id}] {request.method} {request.url.path} -> {response.status_code} "
        f"({round(latency * 1000, 2)} ms)"
    )

    response.headers["X-Request-ID"] = request_id
    return response

ALLOWED_ORIGINS = settings.get_origins_list()

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials="*" not in ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Packet-Page-Count", "X-Request-ID"],
)

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc):
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    )
    logger.warning(f"Rejected malformed request to {request.url.path}: {details}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request", "details": details}
    )

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "details": str(exc)}
    )

# ============================================================================
# ENDPOINTS
# ============================================================================
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    try:
        repo = get_document_repository()
        documents = repo.count()
        return {
            "status": "healthy",
            "backend": "sqlite",
            "documents": documents,
            "version": APP_VERSION
        }
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "backend": "sqlite", "error": str(e)}
        )


@app.get("/")
async def root():
    """API root endpoint"""
    return {
        "message": "PDF Packet Generator API",
        "version": APP_VERSION,
        "status": "running",
        "docs": "/docs"
    }


from routers import packets as packets_router
app.include_router(packets_router.router)

from routers import documents as documents_router
app.include_router(documents_router.router)


@app.on_event("startup")
async def startup_event():
    logger.info("PDF Packet Generator API starting up...")
    logger.info(f"Database: {settings.db_url.split('://')[0]}")
    logger.info(f"Structural floor template: {settings.structural_floor_template_url or '(synthesized)'}")
    logger.info(f"Underlayment template: {settings.underlayment_template_url or '(synthesized)'}")
    logger.info(f"Allowed origins: {ALLOWED_ORIGINS}")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("PDF Packet Generator API shutting down...")
    if document_repository is not None:
        document_repository.engine.dispose()

if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")
