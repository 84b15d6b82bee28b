"""Pydantic schemas for attribute discovery and value profiling."""
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

AFFIRMATIVE_ENCODING = "affirmative_encoding"


class AttributeSource(str, Enum):
    """Side key-value tables, named by their unprefixed table name."""
    USER = "usermeta"
    POST = "postmeta"


class DiscoveredAttribute(BaseModel):
    key_name: str
    occurrence_count: int = Field(..., ge=0)
    matched_search_term: str


class ValueSample(BaseModel):
    value: str
    count: int = Field(..., ge=0)
    length: int = Field(..., ge=0)


class ValueProfile(BaseModel):
    key_name: str
    source_table: AttributeSource
    value_samples: list[ValueSample] = Field(default_factory=list)
    total_row_count: int = 0
    non_empty_row_count: int = 0
    detected_patterns: dict[str, list[str]] = Field(default_factory=dict)

    @property
    def unique_value_count(self) -> int:
        return len(self.value_samples)

    @property
    def affirmative_values(self) -> list[str]:
        return self.detected_patterns.get(AFFIRMATIVE_ENCODING, [])

    def has_value(self, value: str) -> bool:
        """Case-insensitive membership test against the sampled values."""
        wanted = value.lower()
        return any(s.value.lower() == wanted for s in self.value_samples)


class DiscoveryResult(BaseModel):
    """Everything discovery learned for one question; also the response's discovery trace."""
    search_terms: list[str] = Field(default_factory=list)
    discovered_attributes: dict[AttributeSource, list[DiscoveredAttribute]] = Field(default_factory=dict)
    value_samples: dict[AttributeSource, dict[str, ValueProfile]] = Field(default_factory=dict)
    fallback_attribute_names: list[str] = Field(default_factory=list)

    def attributes(self, source: AttributeSource) -> list[DiscoveredAttribute]:
        return self.discovered_attributes.get(source, [])

    def attribute_names(self, source: Optional[AttributeSource] = None) -> list[str]:
        sources = [source] if source else list(AttributeSource)
        return [a.key_name for s in sources for a in self.attributes(s)]

    @property
    def is_empty(self) -> bool:
        return not any(self.discovered_attributes.values())

    def find_attribute(self, key_name: str) -> Optional[tuple[AttributeSource, DiscoveredAttribute]]:
        """Case-insensitive lookup across sources; user attributes are searched first."""
        wanted = key_name.lower()
        for source in AttributeSource:
            for attr in self.attributes(source):
                if attr.key_name.lower() == wanted:
                    return source, attr
        return None

    def profile_for(self, source: AttributeSource, key_name: str) -> Optional[ValueProfile]:
        return self.value_samples.get(source, {}).get(key_name)
