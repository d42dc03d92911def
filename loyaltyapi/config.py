from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
from urllib.parse import quote_plus


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="loyaltyapi/.env",
        env_file_encoding="utf-8",
        extra="allow",
    )
    # Application
    APP_NAME: str = "Cafe Loyalty API"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = False

    # Database
    POSTGRES_HOST: str = ""
    POSTGRES_PORT: int = 5432
    POSTGRES_USERNAME: str = ""
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DATABASE: str = ""

    # Explicit URL wins over the POSTGRES_* components
    DATABASE_URL: Optional[str] = None
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    AUTO_CREATE_TABLES: bool = False  # create missing tables at startup (local dev)

    @property
    def database_url(self) -> str:
        """Resolve the SQLAlchemy URL from DATABASE_URL or the POSTGRES_* parts"""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        if not self.POSTGRES_HOST:
            return "sqlite:///./loyalty.db"

        # URL encode the password to handle special characters
        encoded_password = quote_plus(self.POSTGRES_PASSWORD)
        return f"postgresql+psycopg2://{self.POSTGRES_USERNAME}:{encoded_password}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DATABASE}"

    # Security (tokens are issued by the OTP login service)
    JWT_SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"

    # CORS
    ALLOWED_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    # Points conversion
    DEFAULT_POINTS_RATE: int = 1  # points per 1 currency unit when unset
    MAX_POINTS_RATE: int = 1000
    POINTS_RATE_STRICT: bool = False  # fail closed when the rate is unset or zero

    # Redemption codes
    REDEMPTION_CODE_LENGTH: int = 6
    REDEMPTION_CODE_MAX_ATTEMPTS: int = 10


settings = Settings()
