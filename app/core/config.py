from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    app_name: str = "AI Study Assistant"
    debug: bool = False
    environment: str = "development"  # development, production
    log_level: str = ""  # DEBUG, INFO, WARNING, ERROR, CRITICAL (empty = auto based on environment)
    log_to_file: bool = True  # Enable file logging

    # Frontend
    frontend_url: str = "http://localhost:5173"

    # CORS (comma-separated origins, empty = local dev defaults)
    allowed_origins: str = ""

    # Anthropic Claude
    anthropic_api_key: str = ""
    claude_model: str = "claude-sonnet-4-5-20250929"
    ai_timeout_seconds: float = 120.0

    # Generation limits
    summary_max_tokens: int = 2000
    chat_max_tokens: int = 1000
    quiz_max_tokens: int = 2000
    quiz_num_questions: int = 5

    # Uploads (files live here only for the duration of one request)
    upload_dir: Path = Path("uploads")
    max_upload_size_mb: int = 10

    # Study sessions (in-memory working note)
    session_ttl_minutes: int = 120

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
