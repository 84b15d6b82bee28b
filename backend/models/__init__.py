from models.connection import ConnectionRequest  # noqa: F401
from models.schema import ColumnInfo, IndexInfo, KeyRole, Relationship, SchemaSnapshot, TableInfo  # noqa: F401
from models.discovery import (  # noqa: F401
    AttributeSource, DiscoveredAttribute, DiscoveryResult, ValueProfile, ValueSample,
)
from models.chat import ChatRequest, ChatResponse, ConversationMessage, DebugReport, ErrorResponse  # noqa: F401
