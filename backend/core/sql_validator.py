"""
Read-only gate for generated SQL.

A deliberately lexical check, not a parser: comments are stripped, the text
is upper-cased, and a fixed sequence of rules decides whether the candidate
may run. Every query goes through here before execution, corrected ones
included.

Known gap: obfuscated input (hex-encoded keywords, alternate statement
separators, keywords assembled by string functions) is not recognised.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Protocol

from core.errors import ValidationRejected

logger = logging.getLogger(__name__)

FORBIDDEN_KEYWORDS = (
    "INSERT", "UPDATE", "DELETE", "DROP", "ALTER", "CREATE", "TRUNCATE",
    "REPLACE", "GRANT", "REVOKE", "EXEC", "EXECUTE", "CALL", "LOCK", "UNLOCK",
)

DANGEROUS_FUNCTIONS = ("LOAD_FILE", "INTO OUTFILE", "INTO DUMPFILE", "BENCHMARK", "SLEEP")

RULE_LEADING_TOKEN = "leading_token"
RULE_FORBIDDEN_KEYWORD = "forbidden_keyword"
RULE_MULTIPLE_STATEMENTS = "multiple_statements"
RULE_DANGEROUS_FUNCTION = "dangerous_function"

# String literals are matched so comment markers inside them are left alone
_LEXEME = re.compile(
    r"'(?:[^'\\]|\\.|'')*'"
    r'|"(?:[^"\\]|\\.|"")*"'
    r"|(?P<line>--[^\n]*)"
    r"|(?P<block>/\*.*?(?:\*/|\Z))",
    re.DOTALL,
)
_LEADING_SELECT = re.compile(r"^\s*SELECT\b")
_KEYWORD_PATTERNS = {kw: re.compile(rf"\b{kw}\b") for kw in FORBIDDEN_KEYWORDS}


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    rule: Optional[str] = None
    reason: Optional[str] = None
    violations: list[str] = field(default_factory=list)

    def raise_for_rejection(self) -> None:
        if not self.ok:
            raise ValidationRejected(self.rule, self.reason, self.violations)


class QueryValidator(Protocol):
    def validate(self, candidate: str) -> ValidationResult: ...


def normalize(candidate: str) -> str:
    """Comment-stripped, upper-cased text; the leading-token rule reads only this form."""
    def _drop_comment(m: re.Match) -> str:
        if m.group("line") is not None:
            return ""
        if m.group("block") is not None:
            return " "
        return m.group(0)

    return _LEXEME.sub(_drop_comment, candidate).upper().strip()


def _has_extra_statement(text: str) -> bool:
    """One trailing semicolon is allowed; any other one separates statements."""
    body = text[:-1] if text.endswith(";") else text
    return ";" in body


class LexicalQueryValidator:
    """Single-SELECT gate. Pure: the same input always gets the same verdict."""

    def validate(self, candidate: str) -> ValidationResult:
        sql = normalize(candidate)

        if not _LEADING_SELECT.match(sql):
            return ValidationResult(
                ok=False,
                rule=RULE_LEADING_TOKEN,
                reason="Only SELECT queries are allowed. Query must start with SELECT.",
                violations=[RULE_LEADING_TOKEN],
            )

        # Past the leading token every rule runs, so all violations get reported.
        # Rules also scan the raw text: dialects disagree on where literals and
        # comments end, and the raw text can only add rejections.
        scanned = (sql, candidate.upper().strip())
        failures: list[tuple[str, str]] = []
        for kw, pattern in _KEYWORD_PATTERNS.items():
            if any(pattern.search(text) for text in scanned):
                failures.append((
                    RULE_FORBIDDEN_KEYWORD,
                    f"Query contains forbidden keyword: {kw}. Only SELECT queries are allowed.",
                ))
                break

        if any(_has_extra_statement(text) for text in scanned):
            failures.append((
                RULE_MULTIPLE_STATEMENTS,
                "Multiple statements detected. Only single SELECT queries are allowed.",
            ))

        for func in DANGEROUS_FUNCTIONS:
            if any(func in text for text in scanned):
                failures.append((
                    RULE_DANGEROUS_FUNCTION,
                    f"Query contains potentially dangerous function: {func}",
                ))
                break

        if failures:
            rule, reason = failures[0]
            return ValidationResult(ok=False, rule=rule, reason=reason, violations=[r for r, _ in failures])
        return ValidationResult(ok=True)

    def ensure_valid(self, candidate: str) -> str:
        """Return the candidate unchanged, or raise ValidationRejected."""
        result = self.validate(candidate)
        if not result.ok:
            logger.warning("Rejected query (%s): %s", result.rule, result.reason)
        result.raise_for_rejection()
        return candidate
