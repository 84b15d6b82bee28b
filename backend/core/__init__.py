from core.db_connector import create_engine_from_request, ping  # noqa: F401
from core.schema_inspector import SchemaInspector, summarize_schema  # noqa: F401
from core.attribute_discovery import AttributeDiscovery, extract_search_terms  # noqa: F401
from core.sql_validator import LexicalQueryValidator  # noqa: F401
from core.query_executor import QueryExecutor  # noqa: F401
from core.chat_agent import handle_chat  # noqa: F401
