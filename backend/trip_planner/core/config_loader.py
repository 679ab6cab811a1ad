# backend/trip_planner/core/config_loader.py

from typing import List, Optional
from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    # Provider keys are optional at startup; a handler that needs a missing
    # key fails with ConfigurationError instead of crashing the process.
    LOVABLE_API_KEY: str = ""
    PERPLEXITY_API_KEY: str = ""

    JWT_SECRET_KEY: str = "supersecret"
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: Optional[str] = None

    chat_base_url: str = "https://ai.gateway.lovable.dev/v1"
    chat_model: str = "google/gemini-2.5-flash"
    search_url: str = "https://api.perplexity.ai/chat/completions"
    search_model: str = "sonar-pro"
    provider_timeout_seconds: float = 60.0

    retry_max_retries: int = 3
    retry_base_delay: float = 1.0
    retry_max_delay: float = 8.0

    attractions_cache_ttl_seconds: int = 30 * 60

    log_dir: Optional[str] = None
    log_level: str = "DEBUG"

    db_path: str = "data.sqlite3"
    timezone: str = "America/New_York"
    default_region: str = "Manhattan"
    default_destination: str = "New York City"

    allowed_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8080",
    ]
    environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
