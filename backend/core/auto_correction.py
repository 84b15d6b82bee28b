"""
Auto-correction — when a query runs fine but matches nothing, compare the
attribute conditions it used against what discovery actually found, and
give the generator one evidence-backed second attempt.
"""
import logging
import re
from typing import Optional

from core.errors import DBQueryError
from core.query_executor import QueryExecutor, QueryStats
from core.query_generator import QueryGenerator
from models.chat import ConversationMessage, DebugReport
from models.discovery import DiscoveryResult, ValueProfile
from models.schema import SchemaSnapshot
from prompts.sql_generation import correction_evidence_prompt

logger = logging.getLogger(__name__)

MAX_CLOSE_MATCHES = 5
MAX_AVAILABLE_KEYS = 10
MAX_REPORTED_VALUES = 10
MAX_SUGGESTED_VALUES = 5

_KEY_EQUALS = re.compile(r"meta_key\s*=\s*['\"]([^'\"]+)['\"]", re.IGNORECASE)
_VALUE_EQUALS = re.compile(r"meta_value\s*=\s*['\"]([^'\"]*)['\"]", re.IGNORECASE)
_VALUE_IN = re.compile(r"meta_value\s+IN\s*\([^)]*\)", re.IGNORECASE)


def extract_conditions(sql: str) -> list[tuple[str, Optional[str], bool]]:
    """
    (key, equality value, has IN-list) for each distinct meta_key literal.
    A value belongs to the key condition it follows, up to the next key condition.
    """
    keys = list(_KEY_EQUALS.finditer(sql))
    conditions: dict[str, tuple[str, Optional[str], bool]] = {}
    for i, m in enumerate(keys):
        end = keys[i + 1].start() if i + 1 < len(keys) else len(sql)
        window = sql[m.end():end]
        value_match = _VALUE_EQUALS.search(window)
        value = value_match.group(1) if value_match else None
        has_in = bool(_VALUE_IN.search(window))
        key = m.group(1)
        if key not in conditions:
            conditions[key] = (key, value, has_in)
    return list(conditions.values())


def _close_matches(used_key: str, discovery: DiscoveryResult) -> list[str]:
    used = used_key.lower()
    return [
        name for name in discovery.attribute_names()
        if used in name.lower() or name.lower() in used
    ]


def _check_value(
    report: DebugReport,
    key: str,
    used_value: Optional[str],
    has_in: bool,
    profile: Optional[ValueProfile],
) -> None:
    if profile is None or not profile.value_samples:
        return
    affirmative = profile.affirmative_values

    if used_value is not None and not profile.has_value(used_value):
        actual = [s.value for s in profile.value_samples][:MAX_REPORTED_VALUES]
        report.issues.append(
            f"Value '{used_value}' not found for key '{key}'. Found values include: {', '.join(actual)}"
        )
        if affirmative:
            report.suggestions.append(f"For checkbox '{key}', use: {' OR '.join(affirmative)}")
        else:
            report.suggestions.append(
                f"Try using one of these actual values: {', '.join(actual[:MAX_SUGGESTED_VALUES])}"
            )
    elif used_value is None and has_in and affirmative:
        quoted = ", ".join(f"'{v}'" for v in affirmative)
        report.suggestions.append(f"For checkbox '{key}', try: meta_value IN ({quoted})")


def troubleshoot_query(sql: str, discovery: DiscoveryResult) -> DebugReport:
    """Build the evidence report for a zero-row query."""
    report = DebugReport(query=sql)

    for used_key, used_value, has_in in extract_conditions(sql):
        found = discovery.find_attribute(used_key)
        if found is None:
            report.issues.append(f"Attribute key '{used_key}' not found in database")
            close = _close_matches(used_key, discovery)
            if close:
                report.suggestions.append(f"Did you mean one of these? {', '.join(close[:MAX_CLOSE_MATCHES])}")
                source, attr = discovery.find_attribute(close[0])
                _check_value(report, attr.key_name, used_value, has_in, discovery.profile_for(source, attr.key_name))
            else:
                available = discovery.attribute_names()[:MAX_AVAILABLE_KEYS]
                if available:
                    report.suggestions.append(f"Available discovered keys: {', '.join(available)}")
            continue

        source, attr = found
        _check_value(report, attr.key_name, used_value, has_in, discovery.profile_for(source, attr.key_name))

    logger.info("Troubleshooting: %d issues, %d suggestions", len(report.issues), len(report.suggestions))
    return report


class AutoCorrector:
    """At most one corrected generation per user turn."""

    def __init__(self, generator: QueryGenerator, executor: QueryExecutor):
        self.generator = generator
        self.executor = executor

    def correct(
        self,
        sql: str,
        schema: SchemaSnapshot,
        history: list[ConversationMessage],
        discovery: DiscoveryResult,
    ) -> tuple[str, Optional[QueryStats], DebugReport]:
        """
        Returns (final sql, stats of the corrected run, report). Stats are None and
        the original query is kept unless the corrected query returns at least one row.
        """
        report = troubleshoot_query(sql, discovery)
        if not report.suggestions:
            return sql, None, report

        evidence = correction_evidence_prompt.format(
            report=report.model_dump_json(indent=2, include={"query", "issues", "suggestions"}),
        )
        try:
            corrected = self.generator.generate_corrected(evidence, schema, history, discovery)
            stats = self.executor.execute_with_stats(corrected)
        except DBQueryError as e:
            logger.warning("Correction attempt failed: %s", e.message)
            report.correction_error = f"{e.code}: {e.message}"
            return sql, None, report

        if not stats.rows:
            report.correction_error = "Corrected query also returned 0 rows"
            logger.info("Corrected query returned no rows; keeping original")
            return sql, None, report

        logger.info("Corrected query returned %d rows", stats.row_count)
        report.corrected = True
        return corrected, stats, report

