# taxengine/core/config.py

from dotenv import load_dotenv
from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    # Read env from container + optionally from files
    model_config = SettingsConfigDict(
        env_file=(".env", ".env.docker"),
        extra="ignore",
        case_sensitive=False,
    )

    # App
    ENVIRONMENT: str = Field(default="dev", validation_alias=AliasChoices("ENVIRONMENT", "environment"))
    APP_NAME: str = Field(default="gst_tax_engine", validation_alias=AliasChoices("APP_NAME", "app_name"))
    LOG_LEVEL: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))
    DEBUG: bool = Field(default=False, validation_alias=AliasChoices("DEBUG", "debug"))

    # Infrastructure
    DATABASE_URL: str = Field(
        default="postgresql+asyncpg://postgres:postgres@db:5432/tax_db",
        validation_alias=AliasChoices("DATABASE_URL", "database_url"),
    )
    DB_ECHO: bool = Field(default=False, validation_alias=AliasChoices("DB_ECHO", "db_echo"))
    REDIS_URL: str = Field(
        default="redis://redis:6379/0",
        validation_alias=AliasChoices("REDIS_URL", "redis_url"),
    )

    # Calculation cache: "redis" or "memory"
    CACHE_BACKEND: str = Field(default="redis", validation_alias=AliasChoices("CACHE_BACKEND", "cache_backend"))
    TAX_CACHE_TTL_SECONDS: int = Field(
        default=3600,
        validation_alias=AliasChoices("TAX_CACHE_TTL_SECONDS", "tax_cache_ttl_seconds"),
    )

    # Tenancy. The placeholder tenant is only honoured outside production.
    DEFAULT_TENANT_ID: str = Field(
        default="00000000-0000-0000-0000-000000000001",
        validation_alias=AliasChoices("DEFAULT_TENANT_ID", "default_tenant_id"),
    )

    # Statutory defaults
    DEFAULT_GST_SLAB: int = Field(default=18, validation_alias=AliasChoices("DEFAULT_GST_SLAB", "default_gst_slab"))
    SHIPPING_GST_SLAB: int = Field(default=18, validation_alias=AliasChoices("SHIPPING_GST_SLAB", "shipping_gst_slab"))
    B2CL_INVOICE_THRESHOLD: int = Field(
        default=250000,
        validation_alias=AliasChoices("B2CL_INVOICE_THRESHOLD", "b2cl_invoice_threshold"),
    )
    TCS_1H_THRESHOLD: int = Field(
        default=5000000,
        validation_alias=AliasChoices("TCS_1H_THRESHOLD", "tcs_1h_threshold"),
    )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() in ("prod", "production")


settings = Settings()
