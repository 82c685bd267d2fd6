from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List, Optional


class Settings(BaseSettings):
    app_name: str = "PDF Chat API"
    environment: str = Field(default="development")

    # Logging
    log_level: str = Field(default="INFO")
    json_logs: bool = Field(default=False)

    # CORS
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"])

    # File Upload Settings
    MAX_FILE_SIZE_MB: int = 20
    ALLOWED_EXTENSIONS: List[str] = [".pdf"]

    # RAG Settings
    TOP_K_RESULTS: int = 2
    MAX_HISTORY_PAIRS: int = 5

    # OpenAI-compatible endpoint (point OPENAI_BASE_URL at a local server to run offline)
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_BASE_URL: Optional[str] = None
    EMBEDDING_MODEL: str = "text-embedding-3-small"
    CHAT_MODEL: str = "gpt-4o-mini"
    TEMPERATURE: float = 0.0
    MAX_TOKENS: int = 500

    # Persistence
    CHATS_DIR: str = "chats"
    CHATS_ARCHIVE_DIR: str = "chats_archive"
    INDEX_EXPORT_DIR: str = "exports"

    # Scheduled re-index, daily at HH:MM local time
    INDEX_REFRESH_ENABLED: bool = True
    INDEX_REFRESH_TIME: str = "00:00"

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
        "extra": "ignore",
    }


settings = Settings()
