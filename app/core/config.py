from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App settings
    PROJECT_NAME: str = "FinanceTracker"
    API_PREFIX: str = "/api"
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)
    CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"]
    )

    # DynamoDB
    DYNAMO_REGION: str = Field(default="eu-west-1")
    DYNAMO_TRANSACTIONS_TABLE: str = Field(default="finance-tracker-transactions")
    DYNAMO_ENDPOINT_URL: Optional[str] = None  # e.g. http://localhost:8000 for DynamoDB Local
    STORE_MAX_RETRIES: int = Field(default=5, ge=1)

    # JWT Authentication (tokens are issued elsewhere, we only verify them)
    JWT_SECRET_KEY: str = Field(default="change-me")
    JWT_ALGORITHM: str = "HS256"

    # Analytics
    TREND_MONTHS: int = Field(default=6, ge=1, le=120)
    HEALTH_THRESHOLDS_JSON: str = Field(default="config/health_thresholds.json")

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


settings = Settings()
