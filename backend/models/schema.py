"""Pydantic schemas for the per-request schema snapshot."""
from enum import Enum
from typing import Optional, Literal
from pydantic import BaseModel, ConfigDict, Field, model_validator


class KeyRole(str, Enum):
    NONE = "NONE"
    PRIMARY = "PRIMARY"
    INDEXED = "INDEXED"


class ColumnInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    declared_type: str
    nullable: bool = True
    key_role: KeyRole = KeyRole.NONE
    default: Optional[str] = None
    extra: str = ""


class IndexInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    column: str
    unique: bool = False


class TableInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    columns: list[ColumnInfo]
    primary_key: Optional[str] = None
    indexes: list[IndexInfo] = Field(default_factory=list)
    row_count: int = Field(0, ge=0)
    engine: Optional[str] = None
    charset: Optional[str] = None
    sample_row: Optional[dict[str, Optional[str]]] = None

    @model_validator(mode="after")
    def _primary_key_is_a_column(self) -> "TableInfo":
        if self.primary_key is not None and self.primary_key not in self.column_names:
            raise ValueError(f"primary key '{self.primary_key}' is not a column of {self.name}")
        return self

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]


class Relationship(BaseModel):
    """Naming-convention hint (`<x>_id` -> `<prefix><x>.ID`), never a verified FK."""
    model_config = ConfigDict(frozen=True)

    from_table: str
    from_column: str
    to_table: str
    to_column: str
    confidence: Literal["inferred"] = "inferred"

    def __str__(self) -> str:
        return f"{self.from_table}.{self.from_column} -> {self.to_table}.{self.to_column}"


class SchemaSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    database_name: str
    table_prefix: str = ""
    tables: dict[str, TableInfo] = Field(default_factory=dict)
    core_table_names: list[str] = Field(default_factory=list)
    custom_table_names: list[str] = Field(default_factory=list)
    relationships: list[Relationship] = Field(default_factory=list)
    table_descriptions: dict[str, str] = Field(default_factory=dict)
