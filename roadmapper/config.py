"""
Application Configuration

Every tunable of the service, read from the environment (or .env) by
pydantic-settings. Names are the environment variable names.
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Note: get_settings() is cached, so tests that change the environment
    need to call get_settings.cache_clear() before the new values are seen.
    """

    # Database settings
    # postgresql:// URLs are rewritten to the asyncpg driver in database.py
    DATABASE_URL: str = "postgresql+asyncpg://localhost/roadmapper_dev"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 40

    # Security settings
    SECRET_KEY: str = "dev-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REQUIRE_AUTH_FOR_WRITES: bool = True

    # Redis caches resolved tenant rows. 0 disables the cache entirely.
    REDIS_URL: str = "redis://localhost:6379/0"
    TENANT_CACHE_TTL_SECONDS: int = 300

    # Application settings
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # SECURITY: every origin is allowed in development only
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # List endpoints
    DEFAULT_PAGE_SIZE: int = 50
    MAX_PAGE_SIZE: int = 100
    MAX_OFFSET: int = 1_000_000

    # Read-only list endpoints that answer [] instead of 404 when no tenant
    # can be resolved for the request
    SOFT_TENANT_ENDPOINTS: list[str] = [
        "goals.list",
        "initiatives.list",
        "ideas.list",
        "feedback.list",
        "customers.list",
    ]

    # Upper bound for all database work done on behalf of one request
    REQUEST_TIMEOUT_SECONDS: float = 15.0

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Settings are read once per process."""
    return Settings()
