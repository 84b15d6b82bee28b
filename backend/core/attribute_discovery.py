"""
Attribute discovery — finds the sparse key/value attributes a question is
probably about, and samples the values actually stored under them.

Side tables (usermeta/postmeta) hold `(owner_id, meta_key, meta_value)` rows,
so the interesting "columns" only exist as data. Search terms pulled from the
question narrow the key scan; value profiling tells the generator how a key is
really encoded (e.g. a checkbox stored as 'on' rather than '1').
"""
import logging
import re
from typing import Optional

from sqlalchemy import column, func, inspect, select, table
from sqlalchemy.engine import Engine

from models.discovery import (
    AFFIRMATIVE_ENCODING,
    AttributeSource,
    DiscoveredAttribute,
    DiscoveryResult,
    ValueProfile,
    ValueSample,
)

logger = logging.getLogger(__name__)

MAX_KEYS_PER_TERM = 20
MAX_VALUE_SAMPLES = 20
MAX_FALLBACK_TERMS = 5
MAX_FALLBACK_ATTRIBUTES = 100

AFFIRMATIVE_VOCABULARY = {"1", "yes", "true", "checked", "on", "active"}

STOP_WORDS = {
    "the", "and", "for", "with", "that", "this", "have", "users", "user",
    "show", "get", "list", "find", "where", "email", "name",
}

# Underscores count as separators so "IAR_license" still seeds both terms
_SEED_TERMS = re.compile(r"(?<![a-z0-9])(iar|license|licence)(?![a-z0-9])", re.IGNORECASE)
_QUOTED = re.compile(r"[\"']([^\"']+)[\"']")
_FIELD_CAPS = re.compile(r"\b([A-Z][A-Z_]+)\b")
_FIELD_SHAPES = re.compile(r"\b(\w+_license|\w+_iar|license_\w+|iar_\w+)\b", re.IGNORECASE)


# ── Search-term extraction ────────────────────────────────────────────────────

def extract_search_terms(question: str) -> list[str]:
    """Pull likely attribute-name fragments out of a natural-language question."""
    terms: list[str] = []

    if _SEED_TERMS.search(question):
        terms += ["iar", "license"]
    terms += [m.lower() for m in _QUOTED.findall(question)]
    terms += [m.lower() for m in _FIELD_CAPS.findall(question)]
    terms += [m.lower() for m in _FIELD_SHAPES.findall(question)]

    terms = _dedupe(t.strip() for t in terms)
    if terms:
        return terms

    keywords = [
        w for w in question.lower().split()
        if len(w) > 3 and w not in STOP_WORDS
    ]
    return _dedupe(keywords)[:MAX_FALLBACK_TERMS]


def _dedupe(items) -> list[str]:
    seen: dict[str, None] = {}
    for item in items:
        if item and item not in seen:
            seen[item] = None
    return list(seen)


def detect_affirmative_values(samples: list[ValueSample]) -> list[str]:
    """Sampled values that read as a boolean 'true', in sample order."""
    found = [s.value for s in samples if s.value.strip().lower() in AFFIRMATIVE_VOCABULARY]
    return _dedupe(found)


# ── Discovery engine ──────────────────────────────────────────────────────────

class AttributeDiscovery:
    """Key/value side-table search for one request."""

    def __init__(self, engine: Engine, table_prefix: str = "wp_"):
        self.engine = engine
        self.prefix = table_prefix
        insp = inspect(engine)
        self.sources = [s for s in AttributeSource if insp.has_table(self.table_name(s))]

    def table_name(self, source: AttributeSource) -> str:
        return self.prefix + source.value

    def _meta_table(self, source: AttributeSource):
        return table(self.table_name(source), column("meta_key"), column("meta_value"))

    def discover(self, question: str) -> DiscoveryResult:
        """Terms -> matching keys -> value profiles, bundled as one result."""
        terms = extract_search_terms(question)
        discovered = self.discover_attributes(terms)

        value_samples: dict[AttributeSource, dict[str, ValueProfile]] = {}
        for source, attrs in discovered.items():
            for attr in attrs:
                profile = self.profile_value(attr.key_name, source)
                if profile.non_empty_row_count > 0:
                    value_samples.setdefault(source, {})[attr.key_name] = profile

        result = DiscoveryResult(
            search_terms=terms,
            discovered_attributes=discovered,
            value_samples=value_samples,
        )
        if result.is_empty and AttributeSource.USER in self.sources:
            result.fallback_attribute_names = self.list_attribute_names(
                AttributeSource.USER, limit=MAX_FALLBACK_ATTRIBUTES,
            )

        logger.info(
            "Discovery: %d terms, %d attributes, %d profiled",
            len(terms),
            sum(len(v) for v in discovered.values()),
            sum(len(v) for v in value_samples.values()),
        )
        return result

    def discover_attributes(self, terms: list[str]) -> dict[AttributeSource, list[DiscoveredAttribute]]:
        """Attribute names containing each term, most frequent first; first term to find a key keeps it."""
        found: dict[AttributeSource, dict[str, DiscoveredAttribute]] = {s: {} for s in self.sources}
        with self.engine.connect() as conn:
            for term in terms:
                for source in self.sources:
                    meta = self._meta_table(source)
                    count = func.count().label("count")
                    stmt = (
                        select(meta.c.meta_key, count)
                        .where(meta.c.meta_key != "")
                        .where(meta.c.meta_key.icontains(term, autoescape=True))
                        .group_by(meta.c.meta_key)
                        .order_by(count.desc())
                        .limit(MAX_KEYS_PER_TERM)
                    )
                    for key, n in conn.execute(stmt):
                        if key not in found[source]:
                            found[source][key] = DiscoveredAttribute(
                                key_name=key, occurrence_count=int(n), matched_search_term=term,
                            )
        return {source: list(attrs.values()) for source, attrs in found.items()}

    def profile_value(self, key_name: str, source: AttributeSource = AttributeSource.USER) -> ValueProfile:
        """Most frequent stored values for one key; zero counts when the key has no rows."""
        profile = ValueProfile(key_name=key_name, source_table=source)
        if source not in self.sources:
            return profile

        meta = self._meta_table(source)
        count = func.count().label("count")
        stmt = (
            select(meta.c.meta_value, count)
            .where(meta.c.meta_key == key_name)
            .group_by(meta.c.meta_value)
            .order_by(count.desc())
            .limit(MAX_VALUE_SAMPLES)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).all()

        for value, n in rows:
            n = int(n)
            profile.total_row_count += n
            if value is None or str(value) == "":
                continue
            value = str(value)
            profile.non_empty_row_count += n
            profile.value_samples.append(ValueSample(value=value, count=n, length=len(value)))

        affirmative = detect_affirmative_values(profile.value_samples)
        if affirmative:
            profile.detected_patterns[AFFIRMATIVE_ENCODING] = affirmative
        return profile

    def list_attribute_names(self, source: AttributeSource, limit: Optional[int] = None) -> list[str]:
        """Every distinct non-empty attribute name in a side table, alphabetical."""
        if source not in self.sources:
            return []
        meta = self._meta_table(source)
        stmt = select(meta.c.meta_key).distinct().where(meta.c.meta_key != "").order_by(meta.c.meta_key)
        if limit:
            stmt = stmt.limit(limit)
        with self.engine.connect() as conn:
            return [r[0] for r in conn.execute(stmt)]
