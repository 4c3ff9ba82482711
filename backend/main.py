from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import content, practice, progress
from core.config import settings
from core.database import engine, init_models
from core.logging import configure_logging, get_logger, SERVICE_VERSION
from core.middleware import RequestLoggingMiddleware
from core.errors import register_error_handlers
from engines.content import get_catalog

# Initialize logging before anything else
configure_logging(
    level=settings.LOG_LEVEL,
    json_logs=settings.LOG_JSON,
    log_sql=settings.LOG_SQL,
)

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("startup", message="Dojo API starting up")

    catalog = get_catalog()
    if not len(catalog):
        log.warning("content_missing", content_dir=str(settings.CONTENT_DIR))

    try:
        await init_models()
        log.info("database_connected", message="Progress tables initialized")
    except Exception as e:
        log.warning("database_unavailable", error=str(e), message="Starting without progress storage")

    yield

    log.info("shutdown", message="Dojo API shutting down")
    await engine.dispose()


app = FastAPI(
    title="Dojo API",
    description="Kana, kanji and vocabulary drills: practice sessions, stats and achievements",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)

register_error_handlers(app)

# Middleware (order matters: last added = first executed)
app.add_middleware(RequestLoggingMiddleware, slow_threshold_ms=500)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(content.router, prefix="/api/content", tags=["content"])
app.include_router(practice.router, prefix="/api/practice", tags=["practice"])
app.include_router(progress.router, prefix="/api/progress", tags=["progress"])


@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": SERVICE_VERSION}


if __name__ == "__main__":
    import uvicorn

    log.info("server_config", host=settings.BACKEND_HOST, port=settings.BACKEND_PORT, debug=settings.APP_DEBUG)
    uvicorn.run(
        "main:app",
        host=settings.BACKEND_HOST,
        port=settings.BACKEND_PORT,
        reload=settings.APP_DEBUG,
        log_config=None,  # uvicorn logs flow through our structlog handler
    )
