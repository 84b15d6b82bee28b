"""
Database connector — SQLAlchemy engine factory and small catalog helpers.
Supports SQLite, MySQL and PostgreSQL targets.
"""
import logging

from sqlalchemy import create_engine, func, select, table, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.errors import ConnectivityError
from models.connection import ConnectionRequest

logger = logging.getLogger(__name__)


def create_engine_from_request(req: ConnectionRequest) -> Engine:
    """Build and test a SQLAlchemy engine from a ConnectionRequest."""
    url = req.get_sqlalchemy_url()
    engine = create_engine(url, pool_pre_ping=True)
    # Validate the connection immediately
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        engine.dispose()
        raise ConnectivityError(f"Could not connect to database: {e}") from e
    return engine


def get_row_count(conn, table_name: str) -> int:
    """Exact row count for a single table using a pushdown COUNT query."""
    result = conn.execute(select(func.count()).select_from(table(table_name)))
    return int(result.scalar() or 0)


def ping(engine: Engine) -> tuple[bool, str]:
    """Returns (True, dialect) if the database answers, (False, error) otherwise."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True, engine.dialect.name
    except SQLAlchemyError as e:
        return False, str(e)
