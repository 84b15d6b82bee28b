"""Pydantic schemas for the chat API."""
from typing import Optional, Literal
from pydantic import BaseModel, Field, field_validator

from models.discovery import DiscoveryResult


class ConversationMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1)
    history: list[ConversationMessage] = Field(default_factory=list)

    @field_validator("message")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Message is required")
        return v.strip()


class DebugReport(BaseModel):
    """Evidence gathered when a query ran fine but matched nothing."""
    query: str
    issues: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    corrected: bool = False
    correction_error: Optional[str] = None


class ChatResponse(BaseModel):
    success: bool = True
    response: str
    sql_query: str
    raw_rows: list[dict[str, Optional[str]]] = []
    csv_export: Optional[str] = None        # base64-encoded CSV
    discovery_trace: DiscoveryResult
    debug_report: Optional[DebugReport] = None
    execution_time_ms: Optional[float] = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    message: str
