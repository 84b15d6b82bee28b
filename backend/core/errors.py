"""
Error taxonomy for the query pipeline.
Every failure a request can hit is one of these; the API layer turns them
into structured failure payloads.
"""
from typing import Any, Optional


class DBQueryError(Exception):
    """Base exception for all pipeline errors."""

    status_code = 500

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    @property
    def code(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "error": self.code, "message": self.message}


class ConnectivityError(DBQueryError):
    """The database catalog could not be listed."""

    status_code = 503


class GenerationError(DBQueryError):
    """The language model did not produce a usable completion."""

    status_code = 502


class NoApiKeyError(GenerationError):
    """No provider credential is configured."""

    status_code = 400

    def __init__(self, message: str = "Provider API key is not configured. Please set PROVIDER_API_KEY."):
        super().__init__(message)


# Missing credentials are the only configuration failure the core can hit.
ConfigurationError = NoApiKeyError


class UpstreamError(GenerationError):
    """The provider answered with a non-success status or could not be reached."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message, {"status": status} if status is not None else None)
        self.status = status


class MalformedResponseError(GenerationError):
    """The provider response has no completion text."""


class ValidationRejected(DBQueryError):
    """A candidate query failed the read-only gate."""

    status_code = 400

    def __init__(self, rule: str, reason: str, violations: Optional[list[str]] = None):
        super().__init__(reason, {"rule": rule, "violations": violations or [reason]})
        self.rule = rule
        self.violations = violations or [reason]


class ExecutionError(DBQueryError):
    """The database refused or failed to run an accepted query."""

    def __init__(self, message: str, sql: Optional[str] = None):
        super().__init__(f"Database error: {message}", {"sql": sql} if sql else None)
        self.sql = sql
