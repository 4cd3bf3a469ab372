from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = Field(alias="DATABASE_URL")

    # JWT Configuration
    secret_key: str = Field(alias="SECRET_KEY")
    algorithm: str = Field(alias="ALGORITHM")
    access_token_expire_minutes: int = Field(alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Platform administrator seeded by the users migration
    first_admin_email: str = Field(alias="FIRST_ADMIN_EMAIL")

    # Store defaults applied to newly created tenants
    default_timezone: str = Field(default="UTC", alias="DEFAULT_TIMEZONE")
    default_currency: str = Field(default="USD", alias="DEFAULT_CURRENCY")
    currency_decimals: int = Field(default=2, alias="CURRENCY_DECIMALS")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Frontend URL allowed by CORS
    frontend_url: str | None = Field(default=None, alias="FRONTEND_URL")

    @field_validator("frontend_url", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to None for optional string fields."""
        if v == "":
            return None
        return v

    @field_validator("currency_decimals", mode="before")
    @classmethod
    def empty_str_to_default_decimals(cls, v: str | int | None) -> int:
        """Fall back to two decimals when the variable is blank or not a number."""
        if v is None or v == "":
            return 2
        if isinstance(v, str):
            try:
                return int(v)
            except ValueError:
                return 2
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
