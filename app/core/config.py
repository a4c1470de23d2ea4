from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from pydantic import field_validator

class Settings(BaseSettings):
    # Database settings
    POSTGRES_USER: str = 'taller_user'
    POSTGRES_PASSWORD: str = 'taller_pass'
    POSTGRES_DB: str = 'taller_db'
    POSTGRES_HOST: str = 'postgres'
    POSTGRES_PORT: int = 5432
    DATABASE_URL: Optional[str] = None  # Sobrescribe la URL completa (ej. sqlite:// en tests)
    DB_ECHO: bool = False

    # JWT settings
    APP_SECRET_STRING: str = 'your-super-secret-key-here-change-in-production-2024'
    ALGORITHM: str = 'HS256'
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Pagination
    MAX_PAGE_SIZE: int = 500
    LEDGER_MAX_LIMIT: int = 1000

    # Ventas
    DEFAULT_TAX_PERCENTAGE: float = 16.0
    PAYMENTS_AREA: str = 'VENTAS'
    PAYMENTS_SUBAREA: str = 'VENTAS MAYOREO'
    ECOMMERCE_PAYMENTS_SUBAREA: str = 'VENTAS ECOMMERCE'

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    model_config = SettingsConfigDict(
        extra="allow",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @field_validator("DEBUG", "DB_ECHO", mode="before")
    @classmethod
    def parse_bool(cls, v):
        if isinstance(v, str):
            return v.lower().strip('"').strip("'") in ("true", "1", "yes", "on")
        return bool(v)

settings = Settings()
