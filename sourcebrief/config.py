"""SourceBrief configuration — loaded from environment variables."""

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "SOURCEBRIEF_", "env_file": ".env", "extra": "ignore"}

    # LLM (Groq, OpenAI-compatible). An empty key means "not configured".
    groq_api_key: str = ""
    llm_api_url: str = "https://api.groq.com/openai/v1/chat/completions"
    llm_model: str = "llama3-70b-8192"
    llm_temperature: float = 0.7
    llm_max_tokens: int = 8000
    llm_timeout: float = 60.0

    # Use the offline mock generator when no key is configured
    mock_fallback: bool = True

    # Storage
    store_backend: Literal["memory", "file", "sqlite"] = "memory"
    store_path: str = "briefs.json"
    database_path: str = "sourcebrief.db"
    recent_limit: int = 5

    # Server
    cors_origins: list[str] = ["http://localhost:3000"]
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    @property
    def llm_configured(self) -> bool:
        return bool(self.groq_api_key.strip())


settings = Settings()
