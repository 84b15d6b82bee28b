"""
Query executor — runs a validated SELECT on a read-only autocommit connection
and returns rows as string-valued dicts.
"""
import logging
import time
from contextlib import contextmanager
from typing import Optional

from pydantic import BaseModel
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.errors import ExecutionError
from core.sql_validator import LexicalQueryValidator, QueryValidator

logger = logging.getLogger(__name__)

Row = dict[str, Optional[str]]


class QueryStats(BaseModel):
    rows: list[Row]
    row_count: int
    execution_time_ms: float


def prepare_sql(sql: str) -> str:
    """Trim and drop a single trailing semicolon."""
    sql = sql.strip()
    if sql.endswith(";"):
        sql = sql[:-1].rstrip()
    return sql


def _coerce(v) -> Optional[str]:
    if v is None:
        return None
    if isinstance(v, bytes):
        return v.decode("utf-8", errors="replace")
    return str(v)


def read_only_options(dialect_name: str) -> dict:
    """Driver-level read-only session for dialects that support it as an execution option."""
    if dialect_name == "postgresql":
        return {"postgresql_readonly": True}
    return {}


@contextmanager
def _query_only(conn):
    """SQLite has no read-only execution option; the query_only pragma covers it."""
    if conn.dialect.name != "sqlite":
        yield
        return
    conn.exec_driver_sql("PRAGMA query_only = ON")
    try:
        yield
    finally:
        conn.exec_driver_sql("PRAGMA query_only = OFF")


class QueryExecutor:
    """Read path to the database. Validates again before every run."""

    def __init__(self, engine: Engine, validator: Optional[QueryValidator] = None):
        self.engine = engine
        self.validator = validator or LexicalQueryValidator()

    def execute(self, sql: str) -> list[Row]:
        """
        Returns [] for a well-formed query that matches nothing.
        Raises ValidationRejected or ExecutionError.
        """
        self.validator.validate(sql).raise_for_rejection()
        statement = prepare_sql(sql)
        try:
            # Autocommit: no transaction is opened, so nothing is held after the read.
            # no_parameters: the text goes to the driver untouched ('%' in LIKE patterns stays literal).
            with self.engine.connect() as conn:
                conn = conn.execution_options(
                    isolation_level="AUTOCOMMIT",
                    no_parameters=True,
                    **read_only_options(conn.dialect.name),
                )
                with _query_only(conn):
                    result = conn.exec_driver_sql(statement)
                    if not result.returns_rows:
                        return []
                    cols = list(result.keys())
                    return [{c: _coerce(v) for c, v in zip(cols, r)} for r in result.fetchall()]
        except SQLAlchemyError as e:
            message = str(getattr(e, "orig", None) or e)
            logger.warning("Query failed: %s", message)
            raise ExecutionError(message, sql=statement) from e

    def execute_with_stats(self, sql: str) -> QueryStats:
        t0 = time.monotonic()
        rows = self.execute(sql)
        elapsed = round((time.monotonic() - t0) * 1000, 2)
        logger.info("Query returned %d rows in %.2fms", len(rows), elapsed)
        return QueryStats(rows=rows, row_count=len(rows), execution_time_ms=elapsed)
