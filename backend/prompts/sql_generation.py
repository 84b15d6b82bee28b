"""
LangChain prompt templates for SQL generation, correction and answer phrasing.
"""
from langchain_core.prompts import PromptTemplate

# ── SQL generation (system turn) ──────────────────────────────────────────────

SQL_SYSTEM_TEMPLATE = """\
You are a SQL query generator for a WordPress database. Generate ONLY SELECT queries. Table prefix: {prefix}

{key_tables}
{custom_tables}
{relationships}
{storage_note}
{attributes}
{constraints}"""

sql_system_prompt = PromptTemplate(
    input_variables=["prefix", "key_tables", "custom_tables", "relationships", "storage_note", "attributes", "constraints"],
    template=SQL_SYSTEM_TEMPLATE,
)

STORAGE_NOTE_TEMPLATE = """\
NOTE: User metadata is stored in {usermeta} with meta_key and meta_value. \
To query user metadata, join {users} with {usermeta} WHERE user_id matches.
Post metadata is stored the same way in {postmeta}, keyed by post_id.
Example: SELECT u.*, um.meta_value FROM {users} u JOIN {usermeta} um ON u.ID = um.user_id WHERE um.meta_key = 'first_name';
"""

storage_note_prompt = PromptTemplate(
    input_variables=["users", "usermeta", "postmeta"],
    template=STORAGE_NOTE_TEMPLATE,
)

GENERATION_CONSTRAINTS = """\
CRITICAL RULES:
- Generate exactly ONE SELECT statement. Never INSERT, UPDATE, DELETE, DROP, ALTER, CREATE or any other write.
- Use ONLY the exact meta_key names listed under DISCOVERED ATTRIBUTES; never invent or re-case a key.
- Compare meta_value against values that actually appear in the samples above (for checkboxes use the listed checked values).
- Return ONLY the raw SQL: no explanations, no markdown, no code fences."""

CORRECTION_ADDENDUM = """

A PREVIOUS ATTEMPT RETURNED ZERO ROWS.
The user message contains the evidence gathered from the database about why.
Use that evidence: replace unknown meta_key names with the suggested real ones and use the real stored values."""

# ── User turns ────────────────────────────────────────────────────────────────

SQL_USER_TEMPLATE = (
    "Generate a SQL SELECT query for: {question}\n\n"
    "Return ONLY the SQL query, no explanations, no markdown formatting, just the raw SQL."
)

sql_user_prompt = PromptTemplate(input_variables=["question"], template=SQL_USER_TEMPLATE)

CORRECTION_EVIDENCE_TEMPLATE = """\
The query returned 0 results. Investigation shows:
{report}

Please generate a corrected SQL query based on the actual database structure discovered above.
Return ONLY the SQL query, no explanations, no markdown formatting, just the raw SQL."""

correction_evidence_prompt = PromptTemplate(input_variables=["report"], template=CORRECTION_EVIDENCE_TEMPLATE)

# ── Answer phrasing ───────────────────────────────────────────────────────────

ANSWER_SYSTEM_PROMPT = (
    "You are a helpful database assistant. Format query results into a clear, natural language "
    "response. Be concise but informative. If there are many results, summarize the key findings."
)

ANSWER_USER_TEMPLATE = """\
The user asked: '{question}'

SQL query executed: {sql}

Results: {results}

Format this into a clear, natural language response for the user."""

answer_user_prompt = PromptTemplate(input_variables=["question", "sql", "results"], template=ANSWER_USER_TEMPLATE)
