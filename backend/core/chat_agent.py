"""
Chat agent — runs one question through the safety-gated pipeline:
schema inspection, attribute discovery, generation, validation, execution,
the optional correction pass, answer phrasing and CSV export.
"""
import base64
import csv
import io
import logging
from typing import Optional

from sqlalchemy.engine import Engine

from core.attribute_discovery import AttributeDiscovery
from core.auto_correction import AutoCorrector
from core.query_executor import QueryExecutor, Row
from core.query_generator import CompletionClient, QueryGenerator
from core.schema_inspector import SchemaInspector
from core.sql_validator import LexicalQueryValidator
from models.chat import ChatRequest, ChatResponse, DebugReport
from models.connection import ConnectionRequest

logger = logging.getLogger(__name__)


def build_csv(rows: list[Row]) -> str:
    """Header row of column names, one line per record, base64-encoded. Empty string for no rows."""
    if not rows:
        return ""
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=list(rows[0].keys()), extrasaction="ignore")
    writer.writeheader()
    writer.writerows(rows)
    return base64.b64encode(buf.getvalue().encode("utf-8")).decode("ascii")


def handle_chat(
    req: ChatRequest,
    engine: Engine,
    client: CompletionClient,
    conn_req: ConnectionRequest,
) -> ChatResponse:
    """Main chat handler. Every stage finishes before the next one starts."""
    prefix = conn_req.table_prefix

    # Phase 1: schema snapshot and attribute discovery
    schema = SchemaInspector(engine, prefix, conn_req.database_name).inspect()
    discovery = AttributeDiscovery(engine, prefix).discover(req.message)

    # Phase 2: generate -> validate -> execute
    validator = LexicalQueryValidator()
    generator = QueryGenerator(client)
    executor = QueryExecutor(engine, validator)

    sql = generator.generate(req.message, schema, req.history, discovery)
    validator.ensure_valid(sql)
    stats = executor.execute_with_stats(sql)
    rows = stats.rows

    # Phase 3: one evidence-driven correction when nothing matched
    debug_report: Optional[DebugReport] = None
    if not rows:
        logger.info("Zero rows for generated query; troubleshooting")
        sql, corrected_stats, debug_report = AutoCorrector(generator, executor).correct(
            sql, schema, req.history, discovery,
        )
        if corrected_stats is not None:
            stats = corrected_stats
            rows = stats.rows

    answer = generator.format_answer(req.message, sql, rows, req.history)

    return ChatResponse(
        response=answer,
        sql_query=sql,
        raw_rows=rows,
        csv_export=build_csv(rows) or None,
        discovery_trace=discovery,
        debug_report=debug_report,
        execution_time_ms=stats.execution_time_ms,
    )
