"""
Context builder — turns a schema snapshot plus discovery results into the
bounded system instruction the SQL generator sees.

Only a handful of core tables get full column lists; everything else is
capped (custom tables, relationships, attributes, value samples) so the prompt
stays a predictable size no matter how wide the database is.
"""
import logging

from models.discovery import AttributeSource, DiscoveryResult, ValueProfile
from models.schema import SchemaSnapshot
from prompts.sql_generation import (
    CORRECTION_ADDENDUM,
    GENERATION_CONSTRAINTS,
    sql_system_prompt,
    storage_note_prompt,
)

logger = logging.getLogger(__name__)

MAX_CUSTOM_TABLES = 10
MAX_CUSTOM_COLUMNS = 5
MAX_INFERRED_RELATIONSHIPS = 10
MAX_VALUES_PER_ATTRIBUTE = 10
MAX_SECONDARY_ATTRIBUTES = 10
MAX_FALLBACK_ATTRIBUTES = 100

# Unprefixed table -> essential columns with a short description each
KEY_TABLE_COLUMNS = {
    "users": {
        "ID": "primary key",
        "user_login": "username",
        "user_email": "email address",
        "user_nicename": "display name",
        "display_name": "display name",
        "user_registered": "registration date",
    },
    "usermeta": {
        "umeta_id": "primary key",
        "user_id": "foreign key to users.ID",
        "meta_key": "metadata key (e.g., first_name, last_name, license fields)",
        "meta_value": "metadata value",
    },
    "posts": {
        "ID": "primary key",
        "post_author": "foreign key to users.ID",
        "post_title": "title",
        "post_type": "post type (e.g., shop_order, product)",
        "post_status": "status",
        "post_date": "date",
    },
    "postmeta": {
        "meta_id": "primary key",
        "post_id": "foreign key to posts.ID",
        "meta_key": "metadata key",
        "meta_value": "metadata value",
    },
}


def build_context(
    schema: SchemaSnapshot,
    discovery: DiscoveryResult,
    correction: bool = False,
) -> str:
    """Render the system instruction for one generation call."""
    p = schema.table_prefix
    context = sql_system_prompt.format(
        prefix=p,
        key_tables=_key_tables_section(schema),
        custom_tables=_custom_tables_section(schema),
        relationships=_relationships_section(schema),
        storage_note=storage_note_prompt.format(
            users=p + "users", usermeta=p + "usermeta", postmeta=p + "postmeta",
        ),
        attributes=_attributes_section(discovery),
        constraints=GENERATION_CONSTRAINTS,
    )
    if correction:
        context += CORRECTION_ADDENDUM
    logger.debug("Built generation context: %d chars", len(context))
    return context


def _key_tables_section(schema: SchemaSnapshot) -> str:
    lines = ["KEY TABLES:"]
    for short_name, columns in KEY_TABLE_COLUMNS.items():
        name = schema.table_prefix + short_name
        info = schema.tables.get(name)
        if info is None:
            continue
        lines.append(f"{name}: {info.row_count} rows. Key columns: {', '.join(columns)}")
        lines += [f"  - {col}: {desc}" for col, desc in columns.items()]
        lines.append("")
    return "\n".join(lines)


def _custom_tables_section(schema: SchemaSnapshot) -> str:
    if not schema.custom_table_names:
        return ""
    lines = ["CUSTOM TABLES:"]
    for name in schema.custom_table_names[:MAX_CUSTOM_TABLES]:
        info = schema.tables[name]
        line = f"{name} ({info.row_count} rows)"
        if info.primary_key:
            line += f" PK: {info.primary_key}"
        line += " Columns: " + ", ".join(info.column_names[:MAX_CUSTOM_COLUMNS])
        if len(info.columns) > MAX_CUSTOM_COLUMNS:
            line += ", ..."
        lines.append(line)
    return "\n".join(lines) + "\n"


def _relationships_section(schema: SchemaSnapshot) -> str:
    p = schema.table_prefix
    lines = [
        "KEY RELATIONSHIPS:",
        f"- {p}usermeta.user_id -> {p}users.ID",
        f"- {p}posts.post_author -> {p}users.ID",
        f"- {p}postmeta.post_id -> {p}posts.ID",
    ]
    inferred = [r for r in schema.relationships if r.from_table.startswith(p)]
    lines += [f"- {rel} (inferred)" for rel in inferred[:MAX_INFERRED_RELATIONSHIPS]]
    return "\n".join(lines) + "\n"


def _format_profile(profile: ValueProfile) -> list[str]:
    lines = []
    samples = profile.value_samples[:MAX_VALUES_PER_ATTRIBUTE]
    if samples:
        values = ", ".join(f"'{s.value}' ({s.count})" for s in samples)
        lines.append(f"    values: {values}")
    if profile.affirmative_values:
        checked = ", ".join(f"'{v}'" for v in profile.affirmative_values)
        lines.append(f"    checkbox-style field; checked/true is stored as: {checked}")
    return lines


def _attributes_section(discovery: DiscoveryResult) -> str:
    lines = []
    if discovery.search_terms:
        lines.append(f"SEARCH TERMS: {', '.join(discovery.search_terms)}")

    user_attrs = discovery.attributes(AttributeSource.USER)
    if user_attrs:
        lines.append("DISCOVERED ATTRIBUTES (usermeta.meta_key, exact names):")
        for attr in user_attrs:
            lines.append(f"  - {attr.key_name} ({attr.occurrence_count} rows)")
            profile = discovery.profile_for(AttributeSource.USER, attr.key_name)
            if profile:
                lines += _format_profile(profile)

    post_attrs = discovery.attributes(AttributeSource.POST)
    if post_attrs:
        lines.append("DISCOVERED ATTRIBUTES (postmeta.meta_key, exact names):")
        for attr in post_attrs[:MAX_SECONDARY_ATTRIBUTES]:
            lines.append(f"  - {attr.key_name} ({attr.occurrence_count} rows)")
            profile = discovery.profile_for(AttributeSource.POST, attr.key_name)
            if profile:
                lines += _format_profile(profile)

    if discovery.is_empty and discovery.fallback_attribute_names:
        names = discovery.fallback_attribute_names[:MAX_FALLBACK_ATTRIBUTES]
        lines.append("KNOWN USER ATTRIBUTES (usermeta.meta_key):")
        lines.append(", ".join(names))

    return "\n".join(lines) + "\n" if lines else ""
