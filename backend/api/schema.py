"""GET /api/schema — the inspected schema snapshot and its text summary."""
from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from sqlalchemy.engine import Engine

from api.deps import get_connection, get_engine
from core.schema_inspector import SchemaInspector, summarize_schema
from models.connection import ConnectionRequest
from models.schema import SchemaSnapshot

router = APIRouter()


def _snapshot(engine: Engine, conn_req: ConnectionRequest) -> SchemaSnapshot:
    return SchemaInspector(engine, conn_req.table_prefix, conn_req.database_name).inspect()


@router.get("/schema", response_model=SchemaSnapshot)
def get_schema(
    engine: Engine = Depends(get_engine),
    conn_req: ConnectionRequest = Depends(get_connection),
):
    return _snapshot(engine, conn_req)


@router.get("/schema/summary", response_class=PlainTextResponse)
def get_schema_summary(
    engine: Engine = Depends(get_engine),
    conn_req: ConnectionRequest = Depends(get_connection),
):
    return summarize_schema(_snapshot(engine, conn_req))
