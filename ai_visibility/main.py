import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ai_visibility.api.v1.relay import router as relay_router
from ai_visibility.api.v1.router import api_v1_router
from ai_visibility.core.config import settings, validate_settings
from ai_visibility.core.exceptions import ConfigurationError, NotFoundError, UploadError, VisibilityError
from ai_visibility.core.logging import setup_logging
from ai_visibility.core.metrics import metrics_response
from ai_visibility.db.session import engine, init_db

# Configure logging before anything else
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    validate_settings()
    logger.info("Starting AI Visibility Tracker (relay=%s)...", settings.use_relay)
    await init_db()

    yield

    # Shutdown
    await engine.dispose()
    logger.info("AI Visibility Tracker shut down")


app = FastAPI(
    title="AI Visibility Tracker",
    description="Brand visibility in ChatGPT, Claude, Perplexity and Gemini answers",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.app_debug else None,
    redoc_url="/api/redoc" if settings.app_debug else None,
)


@app.exception_handler(NotFoundError)
async def _not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(UploadError)
@app.exception_handler(ConfigurationError)
async def _bad_request_handler(request: Request, exc: VisibilityError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled %s on %s %s:\n%s", type(exc).__name__, request.method, request.url.path, "".join(tb))
    return JSONResponse(status_code=500, content={"detail": f"{type(exc).__name__}: {exc}"})


# CORS: parse allowed_origins from settings (comma-separated)
_origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials="*" not in _origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(api_v1_router)

# Relay lives at /relay, outside the versioned API
app.include_router(relay_router)


@app.get("/api/v1/health")
async def health():
    return {"status": "ok", "use_relay": settings.use_relay}


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_response()
