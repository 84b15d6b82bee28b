"""
DB Query Assistant — natural-language questions over a WordPress database,
answered with validated read-only SQL.
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import chat, health, schema
from config import settings
from core.errors import DBQueryError

# ── Logging ──────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger("dbquery")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("DB Query Assistant starting up (model=%s, prefix=%s)", settings.MODEL_NAME, settings.TABLE_PREFIX)
    if not settings.has_api_key:
        logger.warning("PROVIDER_API_KEY is not set; chat requests will fail until it is configured")
    yield
    logger.info("DB Query Assistant shutting down.")


# ── App ───────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="DB Query Assistant",
    description="Ask questions about your database; answers come from validated, read-only SQL.",
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS ──────────────────────────────────────────────────────────────────────
origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Errors ────────────────────────────────────────────────────────────────────
@app.exception_handler(DBQueryError)
async def pipeline_error_handler(request: Request, exc: DBQueryError):
    logger.warning("%s on %s: %s", exc.code, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(health.router, prefix="/api")
app.include_router(chat.router,   prefix="/api")
app.include_router(schema.router, prefix="/api")
