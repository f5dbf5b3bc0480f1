from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # App settings
    PROJECT_NAME: str = "FitnessExpenseTracker"
    API_PREFIX: str = "/api/v1"
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")
    CORS_ORIGINS: List[str] = Field(default=["http://localhost:3000", "http://localhost:5173"])
    MAX_BODY_BYTES: int = 16 * 1024
    SECURITY_HEADERS_ENABLED: bool = True

    # Use in-process store and identity service (local dev and tests)
    USE_IN_MEMORY_BACKENDS: bool = Field(default=False)

    # DynamoDB
    DYNAMO_REGION: str = Field(default="eu-west-1")
    DYNAMO_USERS_TABLE: str = Field(default="fitness-tracker-users")
    DYNAMO_EXPENSES_TABLE: str = Field(default="fitness-tracker-expenses")
    DYNAMO_TRAINING_TABLE: str = Field(default="fitness-tracker-training")
    DYNAMO_TODOS_TABLE: str = Field(default="fitness-tracker-todos")
    DYNAMO_USER_INDEX: str = Field(default="user_id-index")

    # JWT Authentication
    JWT_SECRET_KEY: str = Field(default="change-me-in-production")
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days

    # List cache
    CACHE_TTL_SECONDS: int = 600
    CACHE_MAX_ENTRIES: int = 10_000
    CACHE_CHECK_PERIOD: int = 600


settings = Settings()
