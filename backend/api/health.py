"""GET /api/health — database reachability and provider configuration."""
import logging
from fastapi import APIRouter
from config import settings
from core.db_connector import create_engine_from_request, ping
from core.errors import ConnectivityError
from models.connection import ConnectionRequest

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health_check():
    db_status = _check_database()
    provider_status = _check_provider()
    overall = "ok" if db_status["status"] == "up" and provider_status["status"] == "configured" else "degraded"
    return {
        "status": overall,
        "services": {
            "database": db_status,
            "provider": provider_status,
        },
    }


def _check_database() -> dict:
    try:
        engine = create_engine_from_request(ConnectionRequest.from_settings(settings))
    except ConnectivityError as e:
        return {"status": "down", "error": e.message}
    try:
        ok, detail = ping(engine)
    finally:
        engine.dispose()
    if ok:
        return {"status": "up", "dialect": detail}
    return {"status": "down", "error": detail}


def _check_provider() -> dict:
    if not settings.has_api_key:
        return {"status": "missing_api_key", "model": settings.MODEL_NAME}
    return {"status": "configured", "model": settings.MODEL_NAME}
