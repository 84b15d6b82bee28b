"""Application settings loaded from .env file."""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Language-model provider (OpenAI-compatible chat completions)
    PROVIDER_API_KEY: str = ""
    MODEL_NAME: str = "gpt-4"
    PROVIDER_BASE_URL: str = "https://api.openai.com/v1"
    PROVIDER_TIMEOUT_SECONDS: int = 60
    TEMPERATURE: float = 0.3
    MAX_OUTPUT_TOKENS: int = 2000

    # Target database
    DB_TYPE: str = "sqlite"
    DB_FILE_PATH: str = "scripts/demo.db"
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_NAME: str = ""
    DB_USER: str = ""
    DB_PASSWORD: str = ""
    TABLE_PREFIX: str = "wp_"

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: str = "http://localhost:5173"

    # Logging
    LOG_LEVEL: str = "INFO"

    @property
    def has_api_key(self) -> bool:
        return bool(self.PROVIDER_API_KEY.strip())


settings = Settings()
