"""Pydantic schema describing the target database connection."""
from typing import Optional, Literal
from pydantic import BaseModel, Field

from config import Settings


class ConnectionRequest(BaseModel):
    db_type: Literal["sqlite", "mysql", "postgresql"] = Field(..., description="Database engine type")
    table_prefix: str = Field("wp_", description="Only tables starting with this prefix are inspected")

    # SQLite only
    file_path: Optional[str] = Field(None, description="Path to .db file (SQLite only)")

    # MySQL / PostgreSQL
    host: Optional[str] = Field(None, description="Database host")
    port: Optional[int] = Field(None, description="Database port")
    database: Optional[str] = Field(None, description="Database name")
    username: Optional[str] = Field(None, description="Username")
    password: Optional[str] = Field(None, description="Password")

    @classmethod
    def from_settings(cls, s: Settings) -> "ConnectionRequest":
        return cls(
            db_type=s.DB_TYPE,
            table_prefix=s.TABLE_PREFIX,
            file_path=s.DB_FILE_PATH,
            host=s.DB_HOST,
            port=s.DB_PORT,
            database=s.DB_NAME,
            username=s.DB_USER,
            password=s.DB_PASSWORD,
        )

    @property
    def database_name(self) -> str:
        if self.db_type == "sqlite":
            return (self.file_path or "db").replace("\\", "/").split("/")[-1]
        return self.database or ""

    def get_sqlalchemy_url(self) -> str:
        if self.db_type == "sqlite":
            return f"sqlite:///{self.file_path}"
        if self.db_type == "mysql":
            return (
                f"mysql+pymysql://{self.username}:{self.password}"
                f"@{self.host}:{self.port or 3306}/{self.database}?charset=utf8mb4"
            )
        return (
            f"postgresql+psycopg2://{self.username}:{self.password}"
            f"@{self.host}:{self.port or 5432}/{self.database}"
        )
