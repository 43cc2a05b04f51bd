"""
Main FastAPI application for the Shahmukhi HP Engine.
Handles CORS, request logging middleware, lifespan events, and router registration.
"""
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hp_engine.config import settings
from hp_engine.exceptions import HPEngineError
from hp_engine.routers import analysis, corpus, credential, feedback, health, report
from hp_engine.services.analysis_client import GeminiAnalysisClient
from hp_engine.services.credential_store import CredentialStore
from hp_engine.services.dashboard import Dashboard

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown event handler."""
    logger.info("=" * 60)
    logger.info("  Starting Shahmukhi HP Engine …")
    logger.info("=" * 60)

    # A dashboard injected beforehand (tests) is kept as-is
    if getattr(app.state, "dashboard", None) is None:
        app.state.dashboard = Dashboard(
            client=GeminiAnalysisClient(),
            store=CredentialStore(),
        )

    if await app.state.dashboard.load_credential():
        logger.info("✓ Stored API key loaded")
    else:
        logger.warning("⚠ No stored API key, save one via PUT /api/credential/")

    logger.info("✓ Analysis model: %s", settings.GEMINI_MODEL)
    logger.info("=" * 60)
    logger.info("  HP Engine ready on http://%s:%d", settings.HOST, settings.PORT)
    logger.info("  Swagger UI : http://%s:%d/docs", settings.HOST, settings.PORT)
    logger.info("=" * 60)

    yield  # ← server is running

    logger.info("Shutting down Shahmukhi HP Engine …")


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Shahmukhi HP Engine API",
    description=(
        "**Shahmukhi HP Engine**: Historical Present analysis for Punjabi "
        "(Shahmukhi) narrative text.\n\n"
        "Key endpoints:\n"
        "- `PUT  /api/credential/` : save the Gemini API key\n"
        "- `POST /api/corpus/upload` : load text from PDF/DOCX/TXT\n"
        "- `POST /api/analysis/` : run the analysis\n"
        "- `GET  /api/analysis/segments` : annotation table\n"
        "- `POST /api/report/export` : download the Word report\n"
    ),
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)


# ---------------------------------------------------------------------------
# Request / response logging middleware
# ---------------------------------------------------------------------------

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Log every request with method, path, status code, and elapsed time.
    Attaches an ``X-Process-Time`` header (milliseconds) to every response.
    """
    t0 = time.monotonic()
    response = await call_next(request)
    elapsed_ms = round((time.monotonic() - t0) * 1000, 2)

    # Skip noisy health-check polling from the frontend
    if request.url.path not in ("/api/health/", "/"):
        logger.info(
            "%s %s → %d  (%.2f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )

    response.headers["X-Process-Time"] = f"{elapsed_ms}ms"
    return response


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

def _error_body(request: Request, detail: str, error: str) -> dict:
    return {
        "detail": detail,
        "error": error,
        "path": str(request.url.path),
        "timestamp": datetime.utcnow().isoformat(),
    }


@app.exception_handler(HPEngineError)
async def engine_exception_handler(request: Request, exc: HPEngineError):
    """Return a user-visible message for any pipeline error."""
    logger.warning(
        "%s on %s %s: %s",
        type(exc).__name__,
        request.method,
        request.url.path,
        exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.message, type(exc).__name__),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return a structured JSON error for any unhandled exception."""
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(request, "Internal server error", str(exc)),
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(health.router,      prefix="/api/health",     tags=["Health"])
app.include_router(credential.router,  prefix="/api/credential", tags=["Credential"])
app.include_router(corpus.router,      prefix="/api/corpus",     tags=["Corpus"])
app.include_router(analysis.router,    prefix="/api/analysis",   tags=["Analysis"])
app.include_router(report.router,      prefix="/api/report",     tags=["Report"])
app.include_router(feedback.router,    prefix="/api/feedback",   tags=["Feedback"])


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------

@app.get("/", tags=["Root"], include_in_schema=False)
async def root():
    """API root: returns basic service info."""
    return {
        "name": "Shahmukhi HP Engine API",
        "version": "0.1.0",
        "description": "Historical Present analysis and reporting backend",
        "docs": "/docs",
        "health": "/api/health",
        "endpoints": {
            "credential": "/api/credential",
            "corpus": "/api/corpus",
            "analysis": "/api/analysis",
            "report": "/api/report/export",
            "feedback": "/api/feedback",
        },
    }


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "hp_engine.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=True,
        log_level="info",
    )
