"""
Core settings and environment variables for the FixIt analysis service.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """

    # Application
    APP_NAME: str = "FixIt Issue Analysis"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - Frontend URLs allowed to access this API
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:9002,http://127.0.0.1:3000"

    # AI Configuration
    AI_ENABLED: bool = True  # If False, the rule-based mock backend is used
    GEMINI_MODEL: str = "gemini-2.0-flash"
    # Any of these may carry the key; the first non-blank one wins
    GOOGLE_GENAI_API_KEY: Optional[str] = None
    GEMINI_API_KEY: Optional[str] = None
    GOOGLE_API_KEY: Optional[str] = None
    AI_TIMEOUT_SECONDS: float = 20.0

    # Rate-limit retry (single retry, interactive latency)
    RETRY_DEFAULT_DELAY_SECONDS: float = 1.0
    RETRY_MAX_DELAY_SECONDS: float = 2.0

    # Strict output
    TITLE_MAX_WORDS: int = 10

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"

    @property
    def resolved_api_key(self) -> Optional[str]:
        for key in (self.GOOGLE_GENAI_API_KEY, self.GEMINI_API_KEY, self.GOOGLE_API_KEY):
            if key and key.strip():
                return key.strip()
        return None

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Global settings instance
settings = Settings()
