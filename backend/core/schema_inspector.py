"""
Schema inspector — reflects the prefixed tables of the target database into a
SchemaSnapshot: columns, keys, indexes, row counts, engine/collation, a sample
row, and naming-convention relationship hints.
"""
import logging
import re
from typing import Optional

from sqlalchemy import column, inspect, select, table
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.db_connector import get_row_count
from core.errors import ConnectivityError
from models.schema import ColumnInfo, IndexInfo, KeyRole, Relationship, SchemaSnapshot, TableInfo

logger = logging.getLogger(__name__)

SAMPLE_COLUMN_LIMIT = 10
SAMPLE_VALUE_MAX_CHARS = 100

CORE_TABLES = (
    "posts", "postmeta", "users", "usermeta", "comments", "commentmeta",
    "terms", "term_taxonomy", "term_relationships", "options",
)

CORE_TABLE_DESCRIPTIONS = {
    "posts": "Stores all posts, pages, and custom post types. Key columns: ID (primary key), post_title, post_content, post_status, post_type, post_date.",
    "postmeta": "Stores metadata for posts. Key columns: meta_id (primary key), post_id (foreign key to posts), meta_key, meta_value.",
    "users": "Stores user accounts. Key columns: ID (primary key), user_login, user_email, user_registered.",
    "usermeta": "Stores user metadata. Key columns: umeta_id (primary key), user_id (foreign key to users), meta_key, meta_value.",
    "comments": "Stores comments. Key columns: comment_ID (primary key), comment_post_ID (foreign key to posts), comment_author, comment_content.",
    "commentmeta": "Stores comment metadata. Key columns: meta_id (primary key), comment_id (foreign key to comments), meta_key, meta_value.",
    "terms": "Stores taxonomy terms. Key columns: term_id (primary key), name, slug.",
    "term_taxonomy": "Stores term taxonomy relationships. Key columns: term_taxonomy_id (primary key), term_id (foreign key to terms), taxonomy.",
    "term_relationships": "Stores relationships between posts and terms. Key columns: object_id (foreign key to posts), term_taxonomy_id (foreign key to term_taxonomy).",
    "options": "Stores site options and settings. Key columns: option_id (primary key), option_name, option_value.",
}

# Only described when the shop plugin's tables are present
SHOP_TABLE_DESCRIPTIONS = {
    "woocommerce_sessions": "Stores WooCommerce session data.",
    "woocommerce_api_keys": "Stores WooCommerce API keys.",
    "woocommerce_attribute_taxonomies": "Stores WooCommerce product attribute taxonomies.",
    "woocommerce_downloadable_product_permissions": "Stores downloadable product permissions.",
    "woocommerce_order_items": "Stores WooCommerce order items. Key columns: order_item_id (primary key), order_id (foreign key to posts where post_type = shop_order).",
    "woocommerce_order_itemmeta": "Stores metadata for order items. Key columns: meta_id (primary key), order_item_id (foreign key to woocommerce_order_items), meta_key, meta_value.",
    "woocommerce_tax_rates": "Stores tax rates.",
    "woocommerce_tax_rate_locations": "Stores tax rate locations.",
    "woocommerce_shipping_zones": "Stores shipping zones.",
    "woocommerce_shipping_zone_locations": "Stores shipping zone locations.",
    "woocommerce_shipping_zone_methods": "Stores shipping zone methods.",
    "woocommerce_payment_tokens": "Stores payment tokens.",
    "woocommerce_payment_tokenmeta": "Stores payment token metadata.",
}

_FK_NAME = re.compile(r"^(.+)_id$")


class SchemaInspector:
    """Builds a fresh SchemaSnapshot for one request. No writes, O(tables) round trips."""

    def __init__(self, engine: Engine, table_prefix: str = "wp_", database_name: str = ""):
        self.engine = engine
        self.prefix = table_prefix
        self.database_name = database_name or (engine.url.database or "")

    def core_table_names(self) -> list[str]:
        return [self.prefix + t for t in CORE_TABLES]

    def inspect(self) -> SchemaSnapshot:
        try:
            insp = inspect(self.engine)
            table_names = [t for t in insp.get_table_names() if t.startswith(self.prefix)]
        except SQLAlchemyError as e:
            raise ConnectivityError(f"Could not list tables: {e}") from e
        logger.info("Inspecting %d tables with prefix '%s'", len(table_names), self.prefix)

        tables: dict[str, TableInfo] = {}
        with self.engine.connect() as conn:
            for name in table_names:
                tables[name] = self._analyze_table(insp, conn, name)

        core = set(self.core_table_names())
        return SchemaSnapshot(
            database_name=self.database_name,
            table_prefix=self.prefix,
            tables=tables,
            core_table_names=[t for t in self.core_table_names() if t in tables],
            custom_table_names=[t for t in table_names if t not in core],
            relationships=infer_relationships(tables, self.prefix),
            table_descriptions=self._table_descriptions(tables),
        )

    # ── Per-table analysis ────────────────────────────────────────────────────

    def _analyze_table(self, insp, conn, table_name: str) -> TableInfo:
        pk_cols = insp.get_pk_constraint(table_name).get("constrained_columns") or []
        indexes = self._reflect_indexes(insp, table_name, pk_cols)
        indexed_cols = {ix.column for ix in indexes}

        columns = []
        for col in insp.get_columns(table_name):
            name = col["name"]
            if name in pk_cols:
                role = KeyRole.PRIMARY
            elif name in indexed_cols:
                role = KeyRole.INDEXED
            else:
                role = KeyRole.NONE
            default = col.get("default")
            columns.append(ColumnInfo(
                name=name,
                declared_type=str(col["type"]),
                nullable=col.get("nullable", True),
                key_role=role,
                default=str(default) if default is not None else None,
                extra="auto_increment" if col.get("autoincrement") is True else "",
            ))

        engine_name, charset = self._table_options(insp, table_name)
        return TableInfo(
            name=table_name,
            columns=columns,
            primary_key=pk_cols[0] if pk_cols else None,
            indexes=indexes,
            row_count=get_row_count(conn, table_name),
            engine=engine_name,
            charset=charset,
            sample_row=get_sample_row(conn, table_name, [c.name for c in columns]),
        )

    @staticmethod
    def _reflect_indexes(insp, table_name: str, pk_cols: list[str]) -> list[IndexInfo]:
        result: list[IndexInfo] = []
        seen: set[str] = set()
        if pk_cols:
            result.append(IndexInfo(name="PRIMARY", column=pk_cols[0], unique=True))
            seen.add("PRIMARY")
        for ix in insp.get_indexes(table_name):
            name = ix.get("name")
            cols = [c for c in ix.get("column_names") or [] if c]
            if not name or not cols or name in seen:
                continue
            seen.add(name)
            result.append(IndexInfo(name=name, column=cols[0], unique=bool(ix.get("unique"))))
        return result

    @staticmethod
    def _table_options(insp, table_name: str) -> tuple[Optional[str], Optional[str]]:
        try:
            opts = insp.get_table_options(table_name)
        except NotImplementedError:
            return None, None
        engine_name = opts.get("mysql_engine") or opts.get("mariadb_engine")
        charset = opts.get("mysql_collate") or opts.get("mysql_default charset")
        return engine_name, charset

    def _table_descriptions(self, tables: dict[str, TableInfo]) -> dict[str, str]:
        descriptions = {self.prefix + k: v for k, v in CORE_TABLE_DESCRIPTIONS.items()}
        if self.prefix + "woocommerce_order_items" in tables:
            descriptions.update({self.prefix + k: v for k, v in SHOP_TABLE_DESCRIPTIONS.items()})
        return descriptions


def get_sample_row(conn, table_name: str, column_names: list[str]) -> Optional[dict[str, Optional[str]]]:
    """First row of the table, limited to the leading columns, long strings truncated."""
    cols = column_names[:SAMPLE_COLUMN_LIMIT]
    if not cols:
        return None
    row = conn.execute(
        select(*[column(c) for c in cols]).select_from(table(table_name)).limit(1)
    ).first()
    if row is None:
        return None
    sample = {}
    for key, value in row._mapping.items():
        if value is None:
            sample[key] = None
            continue
        value = str(value)
        if len(value) > SAMPLE_VALUE_MAX_CHARS:
            value = value[:SAMPLE_VALUE_MAX_CHARS] + "..."
        sample[key] = value
    return sample


def infer_relationships(tables: dict[str, TableInfo], prefix: str) -> list[Relationship]:
    """`<word>_id` columns pointing at an existing `<prefix><word>` table's ID column."""
    relationships = []
    for table_name, info in tables.items():
        for col in info.columns:
            match = _FK_NAME.match(col.name)
            if not match:
                continue
            target = prefix + match.group(1)
            if target in tables:
                relationships.append(Relationship(
                    from_table=table_name,
                    from_column=col.name,
                    to_table=target,
                    to_column="ID",
                ))
    return relationships


def summarize_schema(snapshot: SchemaSnapshot) -> str:
    """Plain-text overview of the snapshot: core tables, custom tables, relationships."""
    lines = [f"Database Schema for: {snapshot.database_name}", "", "Core Tables:"]
    for name in snapshot.core_table_names:
        info = snapshot.tables[name]
        desc = snapshot.table_descriptions.get(name, "")
        lines.append(f"- {name}: {info.row_count} rows. {desc}".rstrip())
    lines += ["", "Custom Tables:"]
    for name in snapshot.custom_table_names:
        lines.append(f"- {name}: {snapshot.tables[name].row_count} rows")
    lines += ["", "Table Relationships:"]
    lines += [f"- {rel}" for rel in snapshot.relationships]
    return "\n".join(lines) + "\n"
