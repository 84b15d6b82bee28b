"""
Query generator — builds the message list for the language model and turns
its reply into a bare candidate SQL string.
"""
import json
import logging
import re
from typing import Optional, Protocol

from core.context_builder import build_context
from models.chat import ConversationMessage
from models.discovery import DiscoveryResult
from models.schema import SchemaSnapshot
from prompts.sql_generation import ANSWER_SYSTEM_PROMPT, answer_user_prompt, sql_user_prompt

logger = logging.getLogger(__name__)

ANSWER_SAMPLE_ROWS = 5

_FENCE_OPEN = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\n?[ \t]*```$")


class CompletionClient(Protocol):
    def complete(self, messages: list[dict]) -> str: ...


def strip_code_fences(raw: str) -> str:
    """Remove a leading ``` / ```sql fence and a trailing ``` fence."""
    sql = raw.strip()
    sql = _FENCE_OPEN.sub("", sql, count=1)
    sql = _FENCE_CLOSE.sub("", sql, count=1)
    return sql.strip()


def _history_messages(history: list[ConversationMessage]) -> list[dict]:
    return [{"role": m.role, "content": m.content} for m in history]


class QueryGenerator:
    """Asks the model for exactly one SELECT statement."""

    def __init__(self, client: CompletionClient):
        self.client = client

    def generate(
        self,
        question: str,
        schema: SchemaSnapshot,
        history: list[ConversationMessage],
        discovery: Optional[DiscoveryResult] = None,
    ) -> str:
        messages = [
            {"role": "system", "content": build_context(schema, discovery or DiscoveryResult())},
            *_history_messages(history),
            {"role": "user", "content": sql_user_prompt.format(question=question)},
        ]
        sql = strip_code_fences(self.client.complete(messages))
        logger.debug("Generated SQL: %s", sql)
        return sql

    def generate_corrected(
        self,
        evidence: str,
        schema: SchemaSnapshot,
        history: list[ConversationMessage],
        discovery: Optional[DiscoveryResult] = None,
    ) -> str:
        """Same flow as generate(), but the user turn is the zero-row evidence report."""
        messages = [
            {"role": "system", "content": build_context(schema, discovery or DiscoveryResult(), correction=True)},
            *_history_messages(history),
            {"role": "user", "content": evidence},
        ]
        sql = strip_code_fences(self.client.complete(messages))
        logger.debug("Corrected SQL: %s", sql)
        return sql

    def format_answer(
        self,
        question: str,
        sql: str,
        rows: list[dict],
        history: list[ConversationMessage],
    ) -> str:
        """Natural-language phrasing of a result set (row count plus the first few rows)."""
        summary = {
            "query": question,
            "sql": sql,
            "row_count": len(rows),
            "sample_data": rows[:ANSWER_SAMPLE_ROWS],
        }
        messages = [
            {"role": "system", "content": ANSWER_SYSTEM_PROMPT},
            *_history_messages(history),
            {"role": "user", "content": answer_user_prompt.format(
                question=question, sql=sql, results=json.dumps(summary, indent=2, default=str),
            )},
        ]
        return self.client.complete(messages).strip()
