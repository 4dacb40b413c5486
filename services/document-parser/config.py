"""Environment-based configuration for the document parser service."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Document parser settings, loaded from environment variables."""

    # Server
    PORT: int = 8092
    LOG_LEVEL: str = "INFO"

    # Provider credentials (empty = provider unavailable)
    GOOGLE_GEMINI_API_KEY: str = ""
    OPENAI_API_KEY: str = ""
    OPENROUTER_API_KEY: str = ""

    # Provider endpoints and models
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_MODEL: str = "gemini-1.5-flash-latest"
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    OPENROUTER_MODEL: str = "google/gemini-flash-1.5"

    # OpenRouter attribution headers
    APP_URL: str = "http://localhost:3000"
    APP_TITLE: str = "AI Personal Document Parser"

    # Which providers the processor uses
    PRIMARY_PROVIDER: str = "gemini"
    SECONDARY_PROVIDER: str = "openai"

    # Sampling
    AI_MAX_TOKENS: int = 1000
    AI_TEMPERATURE: float = 0.1

    # Per-call deadline (image fetch + model call)
    AI_TIMEOUT_SECONDS: float = 30.0

    # Retry with exponential backoff
    AI_RETRY_MAX_RETRIES: int = 3
    AI_RETRY_BASE_DELAY: float = 1.0
    AI_RETRY_MAX_DELAY: float = 30.0
    AI_RETRY_EXPONENTIAL_BASE: float = 2.0

    # Local rate limits per provider
    GEMINI_REQUESTS_PER_MINUTE: int = 15
    GEMINI_REQUESTS_PER_HOUR: int = 1000
    GEMINI_REQUESTS_PER_DAY: int = 50000
    OPENAI_REQUESTS_PER_MINUTE: int = 500
    OPENAI_REQUESTS_PER_HOUR: int = 10000
    OPENAI_REQUESTS_PER_DAY: int = 200000

    # Object storage (public bucket URL wins over the account endpoint)
    STORAGE_PUBLIC_URL: str = ""
    R2_ACCOUNT_ID: str = ""
    R2_BUCKET_NAME: str = ""

    model_config = {"env_prefix": "", "case_sensitive": True}


settings = Settings()
